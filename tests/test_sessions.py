import pytest

from conftest import OWNER_ID
from core.errors import CapacityExceeded, ConflictRequiresConfirmation, Forbidden, InvalidPosition, NotFound
from core.models import MoveUnit, WorkoutSession
from core.services import structure
from core.services.duplicator import ordered_sessions, ordered_units


def _numbers(day):
    return [(s.session_number, s.name) for s in ordered_sessions(day)]


def test_add_session_stops_at_three(db, day_at):
    day = day_at(1, 1)
    for n in range(3):
        structure.add_session(db, OWNER_ID, day.id, name=f"S{n + 1}")
    with pytest.raises(CapacityExceeded):
        structure.add_session(db, OWNER_ID, day.id, name="S4")
    assert _numbers(day) == [(1, "S1"), (2, "S2"), (3, "S3")]


def test_copy_session_leaves_source_untouched(db, day_at, build_session):
    source = build_session(day_at(1, 1), name="Intervals", units=(("RUN", 3),))
    target_day = day_at(1, 2)
    build_session(target_day, name="Existing")

    [clone] = structure.transfer_session(db, OWNER_ID, source.id, target_day.id, "copy")

    assert clone.id != source.id
    assert _numbers(target_day) == [(1, "Existing"), (2, "Intervals")]
    assert _numbers(day_at(1, 1)) == [(1, "Intervals")]
    assert len(clone.move_units[0].laps) == 3


def test_move_renumbers_source_day_contiguously(db, day_at, build_session):
    day_a, day_b = day_at(1, 1), day_at(1, 2)
    first = build_session(day_a, name="A1")
    build_session(day_a, name="A2")
    build_session(day_a, name="A3")

    [moved] = structure.transfer_session(db, OWNER_ID, first.id, day_b.id, "move")

    assert moved.id == first.id
    assert moved.day_id == day_b.id
    assert _numbers(day_b) == [(1, "A1")]
    assert _numbers(day_a) == [(1, "A2"), (2, "A3")]


def test_moving_fourth_session_into_full_day_is_rejected(db, day_at, build_session):
    full_day = day_at(1, 1)
    for n in range(3):
        build_session(full_day, name=f"F{n + 1}")
    extra = build_session(day_at(1, 2), name="Extra")

    with pytest.raises(CapacityExceeded):
        structure.transfer_session(db, OWNER_ID, extra.id, full_day.id, "move", confirm=True)

    assert len(full_day.sessions) == 3
    assert extra.day_id == day_at(1, 2).id


def test_move_into_occupied_day_requires_confirmation(db, day_at, build_session):
    source = build_session(day_at(1, 1), name="Src")
    build_session(day_at(1, 2), name="Busy")

    with pytest.raises(ConflictRequiresConfirmation) as exc_info:
        structure.transfer_session(db, OWNER_ID, source.id, day_at(1, 2).id, "move")
    assert exc_info.value.existing_summary[0]["name"] == "Busy"

    structure.transfer_session(db, OWNER_ID, source.id, day_at(1, 2).id, "move", confirm=True)
    assert _numbers(day_at(1, 2)) == [(1, "Busy"), (2, "Src")]
    assert day_at(1, 1).sessions == []


def test_confirmed_move_onto_target_session_replaces_it(db, day_at, build_session):
    source = build_session(day_at(1, 1), name="Src", units=(("SWIM", 2),))
    doomed = build_session(day_at(1, 2), name="Doomed", units=(("RUN", 4),))
    build_session(day_at(1, 2), name="Kept")
    doomed_id = doomed.id
    doomed_unit_id = doomed.move_units[0].id

    structure.transfer_session(
        db, OWNER_ID, source.id, day_at(1, 2).id, "move", target_session_id=doomed_id, confirm=True
    )

    assert _numbers(day_at(1, 2)) == [(1, "Src"), (2, "Kept")]
    assert db.get(WorkoutSession, doomed_id) is None
    assert db.get(MoveUnit, doomed_unit_id) is None


def test_switch_exchanges_days_and_numbers(db, day_at, build_session):
    day_a, day_b = day_at(1, 1), day_at(1, 4)
    build_session(day_a, name="A1")
    a2 = build_session(day_a, name="A2", units=(("SWIM", 2), ("GYM", 0)))
    b1 = build_session(day_b, name="B1", units=(("RUN", 5),))

    structure.transfer_session(db, OWNER_ID, a2.id, day_b.id, "switch", target_session_id=b1.id)

    assert _numbers(day_a) == [(1, "A1"), (2, "B1")]
    assert _numbers(day_b) == [(1, "A2")]
    assert [u.sport for u in ordered_units(a2)] == ["SWIM", "GYM"]
    assert len(b1.move_units[0].laps) == 5


def test_switch_within_one_day_swaps_numbers(db, day_at, build_session):
    day = day_at(2, 3)
    first = build_session(day, name="First")
    second = build_session(day, name="Second")

    structure.transfer_session(db, OWNER_ID, first.id, day.id, "switch", target_session_id=second.id)

    assert (first.session_number, second.session_number) == (2, 1)
    assert _numbers(day) == [(1, "Second"), (2, "First")]


def test_delete_session_renumbers_siblings(db, day_at, build_session):
    day = day_at(1, 5)
    build_session(day, name="One")
    two = build_session(day, name="Two")
    build_session(day, name="Three")

    structure.delete_session(db, OWNER_ID, two.id)

    assert _numbers(day) == [(1, "One"), (2, "Three")]


def test_other_callers_may_not_transfer(db, day_at, build_session):
    source = build_session(day_at(1, 1))
    with pytest.raises(Forbidden):
        structure.transfer_session(db, OWNER_ID + 1, source.id, day_at(1, 2).id, "copy")


def test_injected_access_check_is_honoured(db, day_at, build_session):
    source = build_session(day_at(1, 1))
    coach_id = 99
    [clone] = structure.transfer_session(
        db, coach_id, source.id, day_at(1, 2).id, "copy", may_modify=lambda caller, plan: caller == coach_id
    )
    assert clone.day_id == day_at(1, 2).id


def test_missing_session_is_not_found(db, day_at):
    with pytest.raises(NotFound):
        structure.transfer_session(db, OWNER_ID, 12345, day_at(1, 1).id, "copy")


def test_reorder_sessions_within_a_day(db, day_at, build_session):
    day = day_at(1, 3)
    first = build_session(day, name="Swim")
    second = build_session(day, name="Bike")
    third = build_session(day, name="Run")

    reordered = structure.reorder_sessions(db, OWNER_ID, day.id, [third.id, first.id, second.id])

    assert [s.id for s in reordered] == [third.id, first.id, second.id]
    assert _numbers(day) == [(1, "Run"), (2, "Swim"), (3, "Bike")]
    assert [u.sport for u in ordered_units(third)] == ["RUN"]


def test_reorder_sessions_rejects_a_partial_order(db, day_at, build_session):
    day = day_at(1, 3)
    first = build_session(day, name="Swim")
    second = build_session(day, name="Bike")
    stranger = build_session(day_at(1, 4), name="Elsewhere")

    with pytest.raises(InvalidPosition):
        structure.reorder_sessions(db, OWNER_ID, day.id, [second.id])
    with pytest.raises(InvalidPosition):
        structure.reorder_sessions(db, OWNER_ID, day.id, [second.id, stranger.id])
    assert _numbers(day) == [(1, "Swim"), (2, "Bike")]
    assert first.session_number == 1
