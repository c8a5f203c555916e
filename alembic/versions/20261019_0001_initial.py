"""initial plan structure schema"""

from alembic import op
import sqlalchemy as sa


revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "periods",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("owner_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("color", sa.String(length=20), nullable=False, server_default="#3b82f6"),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
    )
    op.create_index("ix_periods_owner_id", "periods", ["owner_id"])

    op.create_table(
        "sections",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("owner_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("color", sa.String(length=20), nullable=False, server_default="#64748b"),
    )
    op.create_index("ix_sections_owner_id", "sections", ["owner_id"])

    op.create_table(
        "plans",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("owner_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("kind", sa.String(length=20), nullable=False),
        sa.Column("storage_zone", sa.String(length=20), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("week_count", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.UniqueConstraint("owner_id", "kind", "storage_zone", name="uq_plan_owner_kind_zone"),
        sa.CheckConstraint("week_count >= 1"),
    )
    op.create_index("ix_plans_owner_id", "plans", ["owner_id"])

    op.create_table(
        "weeks",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("plan_id", sa.Integer(), sa.ForeignKey("plans.id", ondelete="CASCADE"), nullable=False),
        sa.Column("week_number", sa.Integer(), nullable=False),
        sa.Column("period_id", sa.Integer(), sa.ForeignKey("periods.id", ondelete="SET NULL"), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.UniqueConstraint("plan_id", "week_number", name="uq_week_plan_number"),
        sa.CheckConstraint("week_number >= 1"),
    )
    op.create_index("ix_weeks_plan_id", "weeks", ["plan_id"])

    op.create_table(
        "days",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("week_id", sa.Integer(), sa.ForeignKey("weeks.id", ondelete="CASCADE"), nullable=False),
        sa.Column("owner_id", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("storage_zone", sa.String(length=20), nullable=False),
        sa.Column("week_number", sa.Integer(), nullable=False),
        sa.Column("day_of_week", sa.Integer(), nullable=False),
        sa.Column("period_id", sa.Integer(), sa.ForeignKey("periods.id", ondelete="SET NULL"), nullable=True),
        sa.Column("weather", sa.String(length=60), nullable=True),
        sa.Column("feeling_status", sa.String(length=40), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.UniqueConstraint("owner_id", "date", "storage_zone", name="uq_day_owner_date_zone"),
        sa.CheckConstraint("day_of_week between 1 and 7"),
    )
    op.create_index("ix_days_week_id", "days", ["week_id"])
    op.create_index("ix_days_owner_id", "days", ["owner_id"])
    op.create_index("ix_days_date", "days", ["date"])

    op.create_table(
        "sessions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("day_id", sa.Integer(), sa.ForeignKey("days.id", ondelete="CASCADE"), nullable=False),
        sa.Column("session_number", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("code", sa.String(length=40), nullable=False, server_default=""),
        sa.Column("time", sa.String(length=20), nullable=False, server_default=""),
        sa.Column("location", sa.String(length=120), nullable=True),
        sa.Column("surface", sa.String(length=60), nullable=True),
        sa.Column("heart_rate_max", sa.Integer(), nullable=True),
        sa.Column("heart_rate_avg", sa.Integer(), nullable=True),
        sa.Column("calories", sa.Integer(), nullable=True),
        sa.Column("feeling_status", sa.String(length=40), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=30), nullable=False, server_default="planned_future"),
        sa.Column("include_stretching", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("main_sport", sa.String(length=40), nullable=True),
        sa.UniqueConstraint("day_id", "session_number", name="uq_session_day_number"),
    )
    op.create_index("ix_sessions_day_id", "sessions", ["day_id"])

    op.create_table(
        "move_units",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("session_id", sa.Integer(), sa.ForeignKey("sessions.id", ondelete="CASCADE"), nullable=False),
        sa.Column("letter", sa.String(length=8), nullable=False),
        sa.Column("sport", sa.String(length=40), nullable=False),
        sa.Column("type", sa.String(length=20), nullable=False, server_default="standard"),
        sa.Column("work_type", sa.String(length=20), nullable=False, server_default="none"),
        sa.Column("section_id", sa.Integer(), sa.ForeignKey("sections.id", ondelete="SET NULL"), nullable=True),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("macro_final", sa.String(length=40), nullable=True),
        sa.Column("alarm", sa.Integer(), nullable=True),
        sa.Column("annotation_text", sa.Text(), nullable=True),
        sa.Column("annotation_bg_color", sa.String(length=20), nullable=True),
        sa.Column("annotation_text_color", sa.String(length=20), nullable=True),
        sa.Column("annotation_bold", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("manual_mode", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("favourite", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.UniqueConstraint("session_id", "letter", name="uq_move_unit_session_letter"),
    )
    op.create_index("ix_move_units_session_id", "move_units", ["session_id"])

    op.create_table(
        "repetition_laps",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("move_unit_id", sa.Integer(), sa.ForeignKey("move_units.id", ondelete="CASCADE"), nullable=False),
        sa.Column("repetition_number", sa.Integer(), nullable=False),
        sa.Column("distance", sa.Float(), nullable=True),
        sa.Column("time", sa.String(length=20), nullable=True),
        sa.Column("speed", sa.String(length=20), nullable=True),
        sa.Column("style", sa.String(length=40), nullable=True),
        sa.Column("pace", sa.String(length=20), nullable=True),
        sa.Column("pause", sa.String(length=20), nullable=True),
        sa.Column("rest_type", sa.String(length=20), nullable=True),
        sa.Column("alarm", sa.Integer(), nullable=True),
        sa.Column("sound", sa.String(length=40), nullable=True),
        sa.Column("reps", sa.Integer(), nullable=True),
        sa.Column("weight", sa.String(length=20), nullable=True),
        sa.Column("tools", sa.String(length=120), nullable=True),
        sa.Column("exercise", sa.String(length=120), nullable=True),
        sa.Column("muscular_sector", sa.String(length=60), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("is_skipped", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("is_disabled", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.UniqueConstraint("move_unit_id", "repetition_number", name="uq_lap_unit_number"),
    )
    op.create_index("ix_repetition_laps_move_unit_id", "repetition_laps", ["move_unit_id"])

    op.create_table(
        "templates",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("owner_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=160), nullable=False),
        sa.Column("kind", sa.String(length=20), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("is_public", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("usage_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
    )
    op.create_index("ix_templates_owner_id", "templates", ["owner_id"])


def downgrade() -> None:
    for table in (
        "templates",
        "repetition_laps",
        "move_units",
        "sessions",
        "days",
        "weeks",
        "plans",
        "sections",
        "periods",
    ):
        op.drop_table(table)
