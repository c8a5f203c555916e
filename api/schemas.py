from __future__ import annotations

from datetime import date as dt_date
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, model_validator

from core.services.ordering import label_sort_key


class LapOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    repetition_number: int
    distance: Optional[float] = None
    time: Optional[str] = None
    speed: Optional[str] = None
    pace: Optional[str] = None
    pause: Optional[str] = None
    reps: Optional[int] = None
    weight: Optional[str] = None
    exercise: Optional[str] = None
    notes: Optional[str] = None
    status: str
    is_skipped: bool = False
    is_disabled: bool = False


class LapDraftOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    repetition_number: int
    distance: Optional[float] = None
    reps: Optional[int] = None
    speed: Optional[str] = None
    pause: Optional[str] = None
    status: str


class MoveUnitOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    session_id: int
    letter: str
    sport: str
    type: str
    work_type: str
    section_id: Optional[int] = None
    description: str = ""
    notes: Optional[str] = None
    annotation_text: Optional[str] = None
    manual_mode: bool = False
    laps: list[LapOut] = []

    @model_validator(mode="after")
    def _order_laps(self):
        self.laps.sort(key=lambda lap: lap.repetition_number)
        return self


class SessionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    day_id: int
    session_number: int
    name: str = ""
    code: str = ""
    time: str = ""
    location: Optional[str] = None
    surface: Optional[str] = None
    status: str
    main_sport: Optional[str] = None
    include_stretching: bool = False
    notes: Optional[str] = None
    move_units: list[MoveUnitOut] = []

    @model_validator(mode="after")
    def _order_units(self):
        self.move_units.sort(key=lambda unit: label_sort_key(unit.letter))
        return self


class DayOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    week_id: int
    date: dt_date
    week_number: int
    day_of_week: int
    storage_zone: str
    period_id: Optional[int] = None
    weather: Optional[str] = None
    feeling_status: Optional[str] = None
    notes: Optional[str] = None
    sessions: list[SessionOut] = []

    @model_validator(mode="after")
    def _order_sessions(self):
        self.sessions.sort(key=lambda s: s.session_number)
        return self


class WeekOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    week_number: int
    starts_on: dt_date
    period_id: Optional[int] = None
    notes: Optional[str] = None


class PlanOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    owner_id: int
    name: str
    kind: str
    storage_zone: str
    start_date: dt_date
    week_count: int
    weeks: list[WeekOut] = []


class WeekCopyOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    source_week_id: int
    target_week_id: int
    copied_weekdays: list[int]
    skipped_weekdays: list[int]
    sessions_created: int
    sessions_removed: int
    sessions_moved: int = 0


class TemplateOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    owner_id: int
    name: str
    kind: str
    is_public: bool
    usage_count: int
    payload: dict[str, Any]
