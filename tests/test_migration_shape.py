from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

from core.config import get_settings
from core.models import Base

MIGRATION = Path("alembic/versions/20261019_0001_initial.py")


def test_required_tables_present_in_migration():
    text = MIGRATION.read_text()
    for table in Base.metadata.tables:
        assert f'"{table}"' in text


def test_unique_constraints_back_the_ordering_invariants():
    text = MIGRATION.read_text()
    for name in (
        "uq_plan_owner_kind_zone",
        "uq_week_plan_number",
        "uq_day_owner_date_zone",
        "uq_session_day_number",
        "uq_move_unit_session_letter",
        "uq_lap_unit_number",
    ):
        assert name in text


def test_migrations_avoid_postgres_now_function_for_portability():
    for migration_file in Path("alembic/versions").glob("*.py"):
        text = migration_file.read_text(encoding="utf-8").lower()
        assert "now()" not in text, f"Non-portable now() found in {migration_file.name}"


def test_alembic_upgrade_head_succeeds_on_sqlite(tmp_path, monkeypatch):
    db_path = tmp_path / "migration_smoke.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{db_path}")
    get_settings.cache_clear()
    try:
        command.upgrade(Config("alembic.ini"), "head")
    finally:
        get_settings.cache_clear()

    tables = set(inspect(create_engine(f"sqlite:///{db_path}")).get_table_names())
    assert set(Base.metadata.tables) <= tables
