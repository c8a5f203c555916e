from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status

from api.deps import get_caller_id
from api.schemas import (
    DayOut,
    LapDraftOut,
    LapOut,
    MoveUnitOut,
    PlanOut,
    SessionOut,
    TemplateOut,
    WeekCopyOut,
)
from core.config import get_settings
from core.db import session_scope
from core.services import structure
from core.services.plans import create_plan
from core.services.repetitions import discipline_for_sport, generate_repetitions
from core.validators import (
    DayCopyInput,
    DayMoveInput,
    MoveUnitCreateInput,
    MoveUnitTransferInput,
    PlanCreateInput,
    RepetitionInput,
    RepetitionPreviewInput,
    RepetitionReorderInput,
    SessionCreateInput,
    SessionReorderInput,
    SessionTransferInput,
    TemplateApplyInput,
    TemplateCreateInput,
    WeekCopyInput,
    WeekMoveInput,
    WorkTypeInput,
)

router = APIRouter(prefix="/api/v1")

CallerId = Annotated[int, Depends(get_caller_id)]


@router.post("/plans", response_model=PlanOut, status_code=201, tags=["plans"])
def create_plan_route(body: PlanCreateInput, caller_id: CallerId):
    with session_scope() as s:
        plan = create_plan(s, caller_id, **body.model_dump())
        return PlanOut.model_validate(plan)


@router.post("/weeks/copy", response_model=WeekCopyOut, tags=["weeks"])
def copy_week_route(body: WeekCopyInput, caller_id: CallerId):
    with session_scope() as s:
        result = structure.copy_week(s, caller_id, **body.model_dump())
        return WeekCopyOut.model_validate(result)


@router.post("/weeks/move", response_model=WeekCopyOut, tags=["weeks"])
def move_week_route(body: WeekMoveInput, caller_id: CallerId):
    with session_scope() as s:
        result = structure.move_week(s, caller_id, **body.model_dump())
        return WeekCopyOut.model_validate(result)


@router.patch("/days/move-to-week", response_model=DayOut, tags=["days"])
def move_day_route(body: DayMoveInput, caller_id: CallerId):
    with session_scope() as s:
        day = structure.move_day_to_week(s, caller_id, **body.model_dump())
        return DayOut.model_validate(day)


@router.post("/days/copy", response_model=DayOut, tags=["days"])
def copy_day_route(body: DayCopyInput, caller_id: CallerId):
    with session_scope() as s:
        structure.copy_day(s, caller_id, **body.model_dump())
        return DayOut.model_validate(structure.day_tree(s, caller_id, body.target_day_id))


@router.get("/days/{day_id}", response_model=DayOut, tags=["days"])
def get_day(day_id: int, caller_id: CallerId):
    with session_scope() as s:
        return DayOut.model_validate(structure.day_tree(s, caller_id, day_id))


@router.post("/days/{day_id}/sessions", response_model=SessionOut, status_code=201, tags=["sessions"])
def add_session_route(day_id: int, body: SessionCreateInput, caller_id: CallerId):
    with session_scope() as s:
        session = structure.add_session(s, caller_id, day_id, **body.model_dump())
        return SessionOut.model_validate(session)


@router.post("/sessions/transfer", response_model=list[SessionOut], tags=["sessions"])
def transfer_session_route(body: SessionTransferInput, caller_id: CallerId):
    with session_scope() as s:
        sessions = structure.transfer_session(s, caller_id, **body.model_dump())
        return [SessionOut.model_validate(x) for x in sessions]


@router.delete("/sessions/{session_id}", status_code=204, tags=["sessions"])
def delete_session_route(session_id: int, caller_id: CallerId):
    with session_scope() as s:
        structure.delete_session(s, caller_id, session_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch("/days/{day_id}/sessions/reorder", response_model=list[SessionOut], tags=["sessions"])
def reorder_sessions_route(day_id: int, body: SessionReorderInput, caller_id: CallerId):
    with session_scope() as s:
        sessions = structure.reorder_sessions(s, caller_id, day_id, body.session_ids)
        return [SessionOut.model_validate(x) for x in sessions]


@router.post("/sessions/{session_id}/move-units", response_model=MoveUnitOut, status_code=201, tags=["move-units"])
def add_move_unit_route(session_id: int, body: MoveUnitCreateInput, caller_id: CallerId):
    with session_scope() as s:
        unit = structure.add_move_unit(s, caller_id, session_id, **body.model_dump())
        return MoveUnitOut.model_validate(unit)


@router.post("/move-units/transfer", response_model=list[MoveUnitOut], tags=["move-units"])
def transfer_move_units_route(body: MoveUnitTransferInput, caller_id: CallerId):
    with session_scope() as s:
        units = structure.transfer_move_units(s, caller_id, **body.model_dump())
        return [MoveUnitOut.model_validate(u) for u in units]


@router.patch("/move-units/{unit_id}/work-type", response_model=MoveUnitOut, tags=["move-units"])
def set_work_type_route(unit_id: int, body: WorkTypeInput, caller_id: CallerId):
    with session_scope() as s:
        unit = structure.set_work_type(s, caller_id, unit_id, body.work_type)
        return MoveUnitOut.model_validate(unit)


@router.delete("/move-units/{unit_id}", status_code=204, tags=["move-units"])
def delete_move_unit_route(unit_id: int, caller_id: CallerId):
    with session_scope() as s:
        structure.delete_move_unit(s, caller_id, unit_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/repetitions/preview", response_model=list[LapDraftOut], tags=["repetitions"])
def preview_repetitions(body: RepetitionPreviewInput, caller_id: CallerId):
    discipline = body.discipline or (discipline_for_sport(body.sport) if body.sport else "distance")
    drafts = generate_repetitions(
        body.count,
        body.base_value,
        pattern=body.pattern,
        amount=body.amount,
        discipline=discipline,
        existing_max=body.existing_max,
        speed=body.speed,
        pause=body.pause,
    )
    return [LapDraftOut.model_validate(d) for d in drafts]


@router.post("/move-units/{unit_id}/repetitions", response_model=list[LapOut], status_code=201, tags=["repetitions"])
def append_repetitions_route(unit_id: int, body: RepetitionInput, caller_id: CallerId):
    with session_scope() as s:
        laps = structure.append_repetitions(s, caller_id, unit_id, **body.model_dump())
        return [LapOut.model_validate(lap) for lap in laps]


@router.delete("/repetitions/{lap_id}", status_code=204, tags=["repetitions"])
def delete_repetition_route(lap_id: int, caller_id: CallerId):
    with session_scope() as s:
        structure.delete_repetition(s, caller_id, lap_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch("/move-units/{unit_id}/repetitions/reorder", response_model=list[LapOut], tags=["repetitions"])
def reorder_repetitions_route(unit_id: int, body: RepetitionReorderInput, caller_id: CallerId):
    with session_scope() as s:
        laps = structure.reorder_repetitions(s, caller_id, unit_id, body.lap_ids)
        return [LapOut.model_validate(lap) for lap in laps]


@router.post("/templates", response_model=TemplateOut, status_code=201, tags=["templates"])
def save_template_route(body: TemplateCreateInput, caller_id: CallerId):
    with session_scope() as s:
        template = structure.save_template(s, caller_id, **body.model_dump())
        return TemplateOut.model_validate(template)


@router.post("/templates/{template_id}/apply", response_model=list[SessionOut], status_code=201, tags=["templates"])
def apply_template_route(template_id: int, body: TemplateApplyInput, caller_id: CallerId):
    with session_scope() as s:
        sessions = structure.apply_template(s, caller_id, template_id, body.target_day_id)
        return [SessionOut.model_validate(x) for x in sessions]


@router.get("/health", tags=["health"])
def health() -> dict[str, str]:
    return {"status": "ok", "env": get_settings().app_env}
