import pytest
from pydantic import ValidationError

from core.validators import (
    MoveUnitTransferInput,
    PlanCreateInput,
    RepetitionInput,
    SessionReorderInput,
    SessionTransferInput,
    TemplateCreateInput,
    WeekCopyInput,
    WeekMoveInput,
)


def test_plan_create_input_limits_kind():
    ok = PlanCreateInput(kind="yearly_plan", start_date="2026-01-07")
    assert ok.week_count is None
    with pytest.raises(ValidationError):
        PlanCreateInput(kind="monthly", start_date="2026-01-07")


def test_week_copy_needs_distinct_weeks():
    with pytest.raises(ValidationError):
        WeekCopyInput(source_week_id=3, target_week_id=3)
    assert WeekCopyInput(source_week_id=3, target_week_id=4).mode == "replace"


def test_session_transfer_rejects_unknown_action():
    with pytest.raises(ValidationError):
        SessionTransferInput(session_id=1, target_day_id=2, action="merge")


def test_move_unit_transfer_dedupes_ids_in_order():
    body = MoveUnitTransferInput(unit_ids=[5, 3, 5, 1], target_session_id=9)
    assert body.unit_ids == [5, 3, 1]
    assert body.position == "after"


def test_move_unit_transfer_requires_reference_for_before_and_replace():
    with pytest.raises(ValidationError):
        MoveUnitTransferInput(unit_ids=[1], target_session_id=9, position="replace")
    with pytest.raises(ValidationError):
        MoveUnitTransferInput(unit_ids=[], target_session_id=9)


@pytest.mark.parametrize("count", [0, 51])
def test_repetition_input_count_bounds(count):
    with pytest.raises(ValidationError):
        RepetitionInput(count=count, base_value=100)


def test_template_create_needs_exactly_one_source():
    with pytest.raises(ValidationError):
        TemplateCreateInput(name="x")
    with pytest.raises(ValidationError):
        TemplateCreateInput(name="x", session_id=1, day_id=2)
    assert TemplateCreateInput(name="x", day_id=2).is_public is False


def test_repetition_input_rejects_patterns_below_zero():
    with pytest.raises(ValidationError):
        RepetitionInput(count=4, base_value=100, pattern="linear", amount=-50)
    assert RepetitionInput(count=3, base_value=100, pattern="linear", amount=-50).amount == -50


def test_session_reorder_input_bounds():
    assert SessionReorderInput(session_ids=[3, 1, 2]).session_ids == [3, 1, 2]
    with pytest.raises(ValidationError):
        SessionReorderInput(session_ids=[])
    with pytest.raises(ValidationError):
        SessionReorderInput(session_ids=[1, 2, 3, 4])


def test_week_move_needs_distinct_weeks():
    with pytest.raises(ValidationError):
        WeekMoveInput(source_week_id=2, target_week_id=2)
