from datetime import date

import pytest
from sqlalchemy import func, select

from conftest import OWNER_ID
from core.config import Settings
from core.errors import InvalidPosition
from core.models import Day, Period, Plan, Week
from core.services.plans import create_plan, default_week_count, monday_of, resolve_period


def _settings(**overrides):
    return Settings(database_url="sqlite://", **overrides)


def test_monday_alignment():
    assert monday_of(date(2026, 1, 8)) == date(2026, 1, 5)
    assert monday_of(date(2026, 1, 5)) == date(2026, 1, 5)
    assert monday_of(date(2026, 1, 11)) == date(2026, 1, 5)


def test_default_week_counts_follow_settings():
    settings = _settings(yearly_plan_weeks=50, template_plan_weeks=4)
    assert default_week_count("template_weeks", settings) == 4
    assert default_week_count("yearly_plan", settings) == 50
    assert default_week_count("completed_log", settings) == 50


def test_template_plan_has_weeks_of_seven_days(db):
    plan = create_plan(db, OWNER_ID, "template_weeks", date(2026, 1, 7), settings=_settings())

    assert plan.start_date == date(2026, 1, 5)
    assert plan.storage_zone == "template"
    assert [w.week_number for w in plan.weeks] == [1, 2, 3]
    for week in plan.weeks:
        assert [d.day_of_week for d in week.days] == [1, 2, 3, 4, 5, 6, 7]
        assert all(week.starts_on <= d.date <= week.ends_on for d in week.days)
        assert all(d.week_number == week.week_number for d in week.days)
    assert plan.weeks[2].starts_on == date(2026, 1, 19)


def test_yearly_plan_defaults_to_fifty_two_weeks(db):
    plan = create_plan(db, OWNER_ID, "yearly_plan", date(2026, 1, 1), settings=_settings())
    assert plan.week_count == 52
    assert plan.storage_zone == "planned"
    assert plan.start_date == date(2025, 12, 29)
    assert db.execute(select(func.count()).select_from(Day).where(Day.storage_zone == "planned")).scalar_one() == 364


def test_rebuild_replaces_the_existing_plan(db):
    create_plan(db, OWNER_ID, "template_weeks", date(2026, 1, 5), settings=_settings())
    second = create_plan(db, OWNER_ID, "template_weeks", date(2026, 2, 2), week_count=2, settings=_settings())

    assert second.start_date == date(2026, 2, 2)
    assert second.week_count == 2
    assert [w.week_number for w in second.weeks] == [1, 2]
    assert db.execute(select(func.count()).select_from(Plan)).scalar_one() == 1
    assert db.execute(select(func.count()).select_from(Week)).scalar_one() == 2
    dates = db.execute(select(Day.date)).scalars().all()
    assert len(dates) == 14
    assert min(dates) == date(2026, 2, 2)
    assert max(dates) == date(2026, 2, 15)


def test_default_period_is_created_once(db):
    settings = _settings(default_period_name="General prep")
    plan = create_plan(db, OWNER_ID, "template_weeks", date(2026, 1, 5), settings=settings)
    periods = db.execute(select(Period).where(Period.owner_id == OWNER_ID)).scalars().all()

    assert [p.name for p in periods] == ["General prep"]
    assert all(w.period_id == periods[0].id for w in plan.weeks)
    assert resolve_period(db, OWNER_ID, settings) is periods[0]


def test_default_period_can_be_switched_off(db):
    plan = create_plan(
        db, OWNER_ID, "completed_log", date(2026, 1, 5), week_count=1, settings=_settings(auto_create_default_period=False)
    )
    assert plan.storage_zone == "done"
    assert plan.weeks[0].period_id is None
    assert db.execute(select(func.count()).select_from(Period)).scalar_one() == 0


@pytest.mark.parametrize("kwargs", [{"kind": "monthly"}, {"kind": "yearly_plan", "week_count": 0}])
def test_invalid_plan_requests(db, kwargs):
    with pytest.raises(InvalidPosition):
        create_plan(db, OWNER_ID, start_date=date(2026, 1, 5), settings=_settings(), **kwargs)
