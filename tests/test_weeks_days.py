from datetime import date

import pytest

from conftest import OWNER_ID
from core.errors import ConflictRequiresConfirmation, InvalidPosition
from core.models import Day, Period
from core.services import structure
from core.services.duplicator import ordered_sessions
from core.services.plans import create_plan


def _names(day):
    return [s.name for s in ordered_sessions(day)]


def test_append_week_copy_onto_busy_saturday(db, plan, day_at, build_session):
    build_session(day_at(1, 6), name="Long ride")
    build_session(day_at(2, 6), name="Sat 1")
    build_session(day_at(2, 6), name="Sat 2")

    result = structure.copy_week(db, OWNER_ID, plan.weeks[0].id, plan.weeks[1].id, mode="append")

    assert _names(day_at(2, 6)) == ["Sat 1", "Sat 2", "Long ride"]
    assert [s.session_number for s in ordered_sessions(day_at(2, 6))] == [1, 2, 3]
    assert _names(day_at(1, 6)) == ["Long ride"]
    assert result.sessions_created == 1
    assert result.sessions_removed == 0


def test_replace_week_copy_needs_confirmation(db, plan, day_at, build_session):
    build_session(day_at(1, 2), name="Tempo")
    build_session(day_at(2, 2), name="Old")

    with pytest.raises(ConflictRequiresConfirmation) as exc_info:
        structure.copy_week(db, OWNER_ID, plan.weeks[0].id, plan.weeks[1].id)
    assert exc_info.value.context["week_id"] == plan.weeks[1].id
    assert _names(day_at(2, 2)) == ["Old"]

    result = structure.copy_week(db, OWNER_ID, plan.weeks[0].id, plan.weeks[1].id, confirm_replace=True)
    assert _names(day_at(2, 2)) == ["Tempo"]
    assert result.sessions_removed == 1


def test_week_copy_mirrors_period_and_notes(db, plan):
    period = Period(owner_id=OWNER_ID, name="Build", color="#ff0000")
    db.add(period)
    db.flush()
    source, target = plan.weeks[0], plan.weeks[2]
    source.period_id = period.id
    source.notes = "Threshold focus"
    db.flush()

    structure.copy_week(db, OWNER_ID, source.id, target.id)

    assert target.period_id == period.id
    assert target.notes == "Threshold focus"


def test_week_cannot_be_copied_onto_itself(db, plan):
    with pytest.raises(InvalidPosition):
        structure.copy_week(db, OWNER_ID, plan.weeks[0].id, plan.weeks[0].id)


def test_move_day_reanchors_date_and_replaces_occupant(db, plan, day_at, build_session):
    wednesday = day_at(1, 3)
    build_session(wednesday, name="Track")
    occupant = day_at(2, 3)
    occupant_id = occupant.id

    with pytest.raises(ConflictRequiresConfirmation):
        structure.move_day_to_week(db, OWNER_ID, wednesday.id, plan.weeks[1].id)

    moved = structure.move_day_to_week(db, OWNER_ID, wednesday.id, plan.weeks[1].id, target_index=0, confirm_replace=True)

    assert moved.week_id == plan.weeks[1].id
    assert moved.week_number == 2
    assert moved.date == date(2026, 1, 14)
    assert moved.day_of_week == 3
    assert _names(moved) == ["Track"]
    assert db.get(Day, occupant_id) is None
    assert len(plan.weeks[0].days) == 6
    assert len(plan.weeks[1].days) == 7


def test_move_day_into_another_plan_takes_its_storage_zone(db, plan, day_at, build_session):
    yearly = create_plan(db, OWNER_ID, "yearly_plan", date(2026, 3, 4), week_count=2)
    friday = day_at(1, 5)
    build_session(friday, name="Easy")

    moved = structure.move_day_to_week(db, OWNER_ID, friday.id, yearly.weeks[1].id, confirm_replace=True)

    assert moved.storage_zone == "planned"
    assert moved.date == date(2026, 3, 13)
    assert _names(moved) == ["Easy"]


def test_move_day_within_its_own_week_is_noop(db, plan, day_at):
    day = day_at(1, 1)
    assert structure.move_day_to_week(db, OWNER_ID, day.id, plan.weeks[0].id) is day
    assert day.date == date(2026, 1, 5)


def test_copy_day_append_and_replace(db, day_at, build_session):
    build_session(day_at(1, 1), name="Swim")
    build_session(day_at(3, 7), name="Rest walk")

    created = structure.copy_day(db, OWNER_ID, day_at(1, 1).id, day_at(3, 7).id)
    assert [s.session_number for s in created] == [2]
    assert _names(day_at(3, 7)) == ["Rest walk", "Swim"]

    structure.copy_day(db, OWNER_ID, day_at(1, 1).id, day_at(3, 7).id, mode="replace", confirm_replace=True)
    assert _names(day_at(3, 7)) == ["Swim"]


def test_copy_day_onto_itself_in_replace_mode_is_invalid(db, day_at):
    with pytest.raises(InvalidPosition):
        structure.copy_day(db, OWNER_ID, day_at(1, 1).id, day_at(1, 1).id, mode="replace")


def test_ensure_day_upserts_inside_week_span(db, plan, day_at):
    existing = day_at(1, 4)
    assert structure.ensure_day(db, plan.weeks[0], date(2026, 1, 8)) is existing

    plan.weeks[0].days.remove(existing)
    db.flush()
    recreated = structure.ensure_day(db, plan.weeks[0], date(2026, 1, 8))
    assert recreated.id is not None
    assert recreated.day_of_week == 4
    assert recreated.week_number == 1

    with pytest.raises(InvalidPosition):
        structure.ensure_day(db, plan.weeks[0], date(2026, 1, 12))


def test_move_week_rebinds_sessions_and_empties_the_source(db, plan, day_at, build_session):
    tempo = build_session(day_at(1, 2), name="Tempo", units=(("RUN", 3),))
    build_session(day_at(1, 6), name="Long ride", units=(("BIKE", 1),))
    build_session(day_at(2, 6), name="Sat 1")

    result = structure.move_week(db, OWNER_ID, plan.weeks[0].id, plan.weeks[1].id, mode="append")

    assert _names(day_at(2, 2)) == ["Tempo"]
    assert _names(day_at(2, 6)) == ["Sat 1", "Long ride"]
    assert [s.session_number for s in ordered_sessions(day_at(2, 6))] == [1, 2]
    assert tempo.day_id == day_at(2, 2).id
    assert len(tempo.move_units[0].laps) == 3
    assert all(not d.sessions for d in plan.weeks[0].days)
    assert result.sessions_moved == 2
    assert result.sessions_created == 0
    assert result.copied_weekdays == [1, 2, 3, 4, 5, 6, 7]


def test_move_week_replace_needs_confirmation(db, plan, day_at, build_session):
    build_session(day_at(1, 4), name="Hills")
    build_session(day_at(2, 4), name="Old")

    with pytest.raises(ConflictRequiresConfirmation):
        structure.move_week(db, OWNER_ID, plan.weeks[0].id, plan.weeks[1].id)
    assert _names(day_at(1, 4)) == ["Hills"]
    assert _names(day_at(2, 4)) == ["Old"]

    result = structure.move_week(db, OWNER_ID, plan.weeks[0].id, plan.weeks[1].id, confirm_replace=True)
    assert _names(day_at(2, 4)) == ["Hills"]
    assert _names(day_at(1, 4)) == []
    assert result.sessions_removed == 1


def test_week_cannot_be_moved_onto_itself(db, plan):
    with pytest.raises(InvalidPosition):
        structure.move_week(db, OWNER_ID, plan.weeks[0].id, plan.weeks[0].id)
