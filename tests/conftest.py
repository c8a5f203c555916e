"""Shared fixtures: a throwaway SQLite database per test and a built plan."""

from __future__ import annotations

from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from core.db import Base, configure_sqlite
from core.services import structure
from core.services.plans import create_plan

OWNER_ID = 7
PLAN_START = date(2026, 1, 5)  # a Monday


@pytest.fixture
def engine(tmp_path):
    engine = configure_sqlite(create_engine(f"sqlite+pysqlite:///{tmp_path / 'structure.db'}"))
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def plan(db):
    return create_plan(db, OWNER_ID, "template_weeks", PLAN_START)


@pytest.fixture
def day_at(plan):
    """``day_at(week_number, weekday)`` with weekday 1=Monday..7=Sunday."""

    def _day(week_number: int, weekday: int):
        return next(d for d in plan.weeks[week_number - 1].days if d.day_of_week == weekday)

    return _day


@pytest.fixture
def build_session(db):
    """Add a session with one move-unit per ``(sport, lap_count)`` pair."""

    def _build(day, name="Session", units=(("RUN", 2),)):
        session = structure.add_session(db, OWNER_ID, day.id, name=name)
        for sport, laps in units:
            unit = structure.add_move_unit(db, OWNER_ID, session.id, sport, description=f"{name} {sport}")
            if laps:
                structure.append_repetitions(db, OWNER_ID, unit.id, laps, 100)
        return session

    return _build
