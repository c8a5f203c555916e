"""Stored template payloads as a tagged variant.

A template is either a single session (``kind="session"``) or a whole day
(``kind="day"``, up to three sessions). Payloads are validated here, before
any row is written; anything that does not fit the shape raises
``MalformedTemplate``.
"""

from __future__ import annotations

import json
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from core.errors import MalformedTemplate
from core.models import Day, MoveUnit, RepetitionLap, WorkoutSession
from core.services.duplicator import (
    LAP_FIELDS,
    MOVE_UNIT_FIELDS,
    SESSION_FIELDS,
    copy_fields,
    normalize_work_types,
    ordered_laps,
    ordered_sessions,
    ordered_units,
)
from core.services.ordering import position_to_label

TEMPLATE_KINDS = ("session", "day")


class LapTemplate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    repetition_number: Optional[int] = Field(default=None, ge=1)
    distance: Optional[float] = Field(default=None, ge=0)
    time: Optional[str] = None
    speed: Optional[str] = None
    style: Optional[str] = None
    pace: Optional[str] = None
    pause: Optional[str] = None
    rest_type: Optional[str] = None
    alarm: Optional[int] = None
    sound: Optional[str] = None
    reps: Optional[int] = Field(default=None, ge=0)
    weight: Optional[str] = None
    tools: Optional[str] = None
    exercise: Optional[str] = None
    muscular_sector: Optional[str] = None
    notes: Optional[str] = None


class MoveUnitTemplate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    letter: Optional[str] = None
    sport: str = Field(min_length=1, max_length=40)
    type: Literal["standard", "annotation", "manual"] = "standard"
    work_type: Literal["none", "primary", "secondary"] = "none"
    description: str = ""
    notes: Optional[str] = None
    macro_final: Optional[str] = None
    alarm: Optional[int] = None
    annotation_text: Optional[str] = None
    annotation_bg_color: Optional[str] = None
    annotation_text_color: Optional[str] = None
    annotation_bold: bool = False
    manual_mode: bool = False
    laps: list[LapTemplate] = Field(default_factory=list, validation_alias=AliasChoices("laps", "movelaps"))


class SessionBody(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str = ""
    code: str = ""
    time: str = ""
    location: Optional[str] = None
    surface: Optional[str] = None
    heart_rate_max: Optional[int] = None
    heart_rate_avg: Optional[int] = None
    calories: Optional[int] = None
    feeling_status: Optional[str] = None
    notes: Optional[str] = None
    status: str = "planned_future"
    include_stretching: bool = False
    main_sport: Optional[str] = None
    move_units: list[MoveUnitTemplate] = Field(
        default_factory=list, validation_alias=AliasChoices("move_units", "moveframes")
    )


class SessionTemplate(SessionBody):
    kind: Literal["session"] = "session"


class DayTemplate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    kind: Literal["day"] = "day"
    sessions: list[SessionBody] = Field(min_length=1, validation_alias=AliasChoices("sessions", "workouts"))


TemplateSpec = Annotated[Union[SessionTemplate, DayTemplate], Field(discriminator="kind")]
_TEMPLATE_ADAPTER: TypeAdapter = TypeAdapter(TemplateSpec)


def parse_template(kind: str, payload: Any) -> Union[SessionTemplate, DayTemplate]:
    if kind not in TEMPLATE_KINDS:
        raise MalformedTemplate(f"template kind must be one of {TEMPLATE_KINDS}", kind=kind)
    if isinstance(payload, (str, bytes)):
        try:
            payload = json.loads(payload)
        except json.JSONDecodeError as exc:
            raise MalformedTemplate(f"template payload is not valid JSON: {exc.msg}") from exc
    if not isinstance(payload, dict):
        raise MalformedTemplate("template payload must be an object")
    try:
        return _TEMPLATE_ADAPTER.validate_python({**payload, "kind": kind})
    except ValidationError as exc:
        errors = [{"loc": [str(p) for p in err["loc"]], "msg": err["msg"]} for err in exc.errors()]
        raise MalformedTemplate("template payload failed validation", errors=errors) from exc


def template_sessions(spec: Union[SessionTemplate, DayTemplate]) -> list[SessionBody]:
    if isinstance(spec, DayTemplate):
        return list(spec.sessions)
    return [spec]


def build_session(body: SessionBody, session_number: int) -> WorkoutSession:
    """Unattached session built from a template body.

    Template letters and repetition numbers are ignored; the rows are
    relabeled and renumbered in payload order.
    """
    session = WorkoutSession(
        session_number=session_number,
        **body.model_dump(include=set(SESSION_FIELDS) & set(SessionBody.model_fields)),
    )
    for index, unit_body in enumerate(body.move_units):
        unit = MoveUnit(
            letter=position_to_label(index),
            **unit_body.model_dump(include=set(MOVE_UNIT_FIELDS) & set(MoveUnitTemplate.model_fields)),
        )
        for number, lap_body in enumerate(unit_body.laps, start=1):
            unit.laps.append(
                RepetitionLap(
                    repetition_number=number,
                    status="pending",
                    **lap_body.model_dump(include=set(LAP_FIELDS) & set(LapTemplate.model_fields)),
                )
            )
        session.move_units.append(unit)
    normalize_work_types(session.move_units)
    return session


def serialize_session(session: WorkoutSession) -> dict[str, Any]:
    body = copy_fields(session, SESSION_FIELDS)
    units = []
    for unit in ordered_units(session):
        unit_body = copy_fields(unit, MOVE_UNIT_FIELDS)
        unit_body.pop("section_id", None)
        unit_body.pop("favourite", None)
        unit_body["letter"] = unit.letter
        unit_body["laps"] = [
            {"repetition_number": lap.repetition_number, **copy_fields(lap, LAP_FIELDS)} for lap in ordered_laps(unit)
        ]
        for lap_body in unit_body["laps"]:
            for key in ("status", "is_skipped", "is_disabled"):
                lap_body.pop(key, None)
        units.append(unit_body)
    body["move_units"] = units
    return body


def serialize_day(day: Day) -> dict[str, Any]:
    return {"sessions": [serialize_session(s) for s in ordered_sessions(day)]}
