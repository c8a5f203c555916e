"""Pydantic validation models for all structural operation entry points."""

from __future__ import annotations

from datetime import date
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from core.models import MAX_SESSIONS_PER_DAY
from core.services.repetitions import MAX_GENERATED_REPETITIONS, lowest_value

CopyMode = Literal["replace", "append"]


class PlanCreateInput(BaseModel):
    kind: Literal["template_weeks", "yearly_plan", "completed_log"]
    start_date: date
    week_count: Optional[int] = Field(default=None, ge=1, le=104)
    storage_zone: Optional[str] = Field(default=None, min_length=1, max_length=20)
    name: Optional[str] = Field(default=None, max_length=120)


class WeekCopyInput(BaseModel):
    source_week_id: int = Field(gt=0)
    target_week_id: int = Field(gt=0)
    mode: CopyMode = "replace"
    confirm_replace: bool = False

    @model_validator(mode="after")
    def distinct_weeks(self):
        if self.source_week_id == self.target_week_id:
            raise ValueError("source and target week must differ")
        return self


class WeekMoveInput(WeekCopyInput):
    pass


class SessionReorderInput(BaseModel):
    session_ids: list[int] = Field(min_length=1, max_length=MAX_SESSIONS_PER_DAY)


class RepetitionReorderInput(BaseModel):
    lap_ids: list[int] = Field(min_length=1)


class DayMoveInput(BaseModel):
    day_id: int = Field(gt=0)
    target_week_id: int = Field(gt=0)
    target_index: Optional[int] = Field(default=None, ge=0)
    confirm_replace: bool = False


class DayCopyInput(BaseModel):
    source_day_id: int = Field(gt=0)
    target_day_id: int = Field(gt=0)
    mode: CopyMode = "append"
    confirm_replace: bool = False


class SessionTransferInput(BaseModel):
    session_id: int = Field(gt=0)
    target_day_id: int = Field(gt=0)
    action: Literal["copy", "move", "switch"]
    target_session_id: Optional[int] = Field(default=None, gt=0)
    confirm: bool = False


class MoveUnitTransferInput(BaseModel):
    unit_ids: list[int] = Field(min_length=1)
    target_session_id: int = Field(gt=0)
    action: Literal["copy", "move"] = "move"
    position: Literal["before", "after", "replace"] = "after"
    target_unit_id: Optional[int] = Field(default=None, gt=0)
    confirm: bool = False

    @field_validator("unit_ids")
    @classmethod
    def unique_in_order(cls, v):
        if any(i <= 0 for i in v):
            raise ValueError("unit_ids must be positive")
        return list(dict.fromkeys(v))

    @model_validator(mode="after")
    def reference_required(self):
        if self.position in ("before", "replace") and self.target_unit_id is None:
            raise ValueError(f"position '{self.position}' needs target_unit_id")
        return self


class WorkTypeInput(BaseModel):
    work_type: Literal["none", "primary", "secondary"]


class RepetitionInput(BaseModel):
    count: int = Field(ge=1, le=MAX_GENERATED_REPETITIONS)
    base_value: float = Field(ge=0)
    pattern: Literal["none", "linear", "pyramid", "alternating"] = "none"
    amount: float = 0
    discipline: Optional[Literal["distance", "load"]] = None
    speed: Optional[str] = Field(default=None, max_length=20)
    pause: Optional[str] = Field(default=None, max_length=20)

    @model_validator(mode="after")
    def values_not_negative(self):
        if lowest_value(self.count, self.base_value, self.pattern, self.amount) < 0:
            raise ValueError("pattern and amount would produce a negative value")
        return self


class RepetitionPreviewInput(RepetitionInput):
    existing_max: int = Field(default=0, ge=0)
    sport: Optional[str] = Field(default=None, max_length=40)


class TemplateCreateInput(BaseModel):
    name: str = Field(min_length=1, max_length=160)
    session_id: Optional[int] = Field(default=None, gt=0)
    day_id: Optional[int] = Field(default=None, gt=0)
    is_public: bool = False

    @model_validator(mode="after")
    def exactly_one_source(self):
        if (self.session_id is None) == (self.day_id is None):
            raise ValueError("give exactly one of session_id or day_id")
        return self


class TemplateApplyInput(BaseModel):
    target_day_id: int = Field(gt=0)


class SessionCreateInput(BaseModel):
    name: str = Field(default="", max_length=200)
    code: str = Field(default="", max_length=40)
    time: str = Field(default="", max_length=20)
    location: Optional[str] = Field(default=None, max_length=120)
    surface: Optional[str] = Field(default=None, max_length=60)
    main_sport: Optional[str] = Field(default=None, max_length=40)
    include_stretching: bool = False
    notes: Optional[str] = None


class MoveUnitCreateInput(BaseModel):
    sport: str = Field(min_length=1, max_length=40)
    type: Literal["standard", "annotation", "manual"] = "standard"
    work_type: Literal["none", "primary", "secondary"] = "none"
    description: str = ""
    notes: Optional[str] = None
    annotation_text: Optional[str] = None
    manual_mode: bool = False
