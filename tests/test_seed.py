from datetime import date

from db.seed import DEMO_OWNER_ID, seed_demo_plan, seed_demo_template
from core.services.duplicator import ordered_laps, ordered_sessions, ordered_units


def test_seed_demo_plan_populates_first_week(db):
    plan = seed_demo_plan(db, start=date(2026, 1, 7))
    days = {d.day_of_week: d for d in plan.weeks[0].days}

    assert plan.owner_id == DEMO_OWNER_ID
    assert [s.name for s in ordered_sessions(days[3])] == ["Tempo run", "Core strength"]
    swim = ordered_units(days[1].sessions[0])[0]
    assert swim.work_type == "primary"
    assert [lap.distance for lap in ordered_laps(swim)] == [400, 500, 600, 700, 500, 400]
    core = ordered_units(ordered_sessions(days[3])[1])[0]
    assert [lap.reps for lap in ordered_laps(core)] == [12, 15, 12, 15]


def test_seed_demo_template_is_public_and_idempotent(db):
    plan = seed_demo_plan(db, start=date(2026, 1, 7))
    template = seed_demo_template(db, plan)
    assert template.is_public is True
    assert template.kind == "session"
    assert seed_demo_template(db, plan) is template
