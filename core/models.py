from __future__ import annotations

import datetime as dt
from typing import Any, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

PLAN_KINDS = ("template_weeks", "yearly_plan", "completed_log")
DEFAULT_STORAGE_ZONES = {
    "template_weeks": "template",
    "yearly_plan": "planned",
    "completed_log": "done",
}
MOVE_UNIT_TYPES = ("standard", "annotation", "manual")
WORK_TYPES = ("none", "primary", "secondary")

MAX_DAYS_PER_WEEK = 7
MAX_SESSIONS_PER_DAY = 3


class Base(DeclarativeBase):
    pass


class Period(Base):
    __tablename__ = "periods"
    id: Mapped[int] = mapped_column(primary_key=True)
    owner_id: Mapped[int] = mapped_column(Integer, index=True)
    name: Mapped[str] = mapped_column(String(120))
    description: Mapped[str] = mapped_column(Text, default="")
    color: Mapped[str] = mapped_column(String(20), default="#3b82f6")
    created_at: Mapped[dt.datetime] = mapped_column(DateTime, default=dt.datetime.utcnow)


class Section(Base):
    __tablename__ = "sections"
    id: Mapped[int] = mapped_column(primary_key=True)
    owner_id: Mapped[int] = mapped_column(Integer, index=True)
    name: Mapped[str] = mapped_column(String(120))
    color: Mapped[str] = mapped_column(String(20), default="#64748b")


class Plan(Base):
    __tablename__ = "plans"
    id: Mapped[int] = mapped_column(primary_key=True)
    owner_id: Mapped[int] = mapped_column(Integer, index=True)
    name: Mapped[str] = mapped_column(String(120))
    kind: Mapped[str] = mapped_column(String(20))
    storage_zone: Mapped[str] = mapped_column(String(20))
    start_date: Mapped[dt.date] = mapped_column(Date)
    week_count: Mapped[int] = mapped_column(Integer)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime, default=dt.datetime.utcnow)

    weeks: Mapped[list[Week]] = relationship(
        back_populates="plan", cascade="all, delete-orphan", order_by="Week.week_number"
    )

    __table_args__ = (
        UniqueConstraint("owner_id", "kind", "storage_zone", name="uq_plan_owner_kind_zone"),
        CheckConstraint("week_count >= 1"),
    )


class Week(Base):
    __tablename__ = "weeks"
    id: Mapped[int] = mapped_column(primary_key=True)
    plan_id: Mapped[int] = mapped_column(ForeignKey("plans.id", ondelete="CASCADE"), index=True)
    week_number: Mapped[int] = mapped_column(Integer)
    period_id: Mapped[Optional[int]] = mapped_column(ForeignKey("periods.id", ondelete="SET NULL"))
    notes: Mapped[Optional[str]] = mapped_column(Text)

    plan: Mapped[Plan] = relationship(back_populates="weeks")
    days: Mapped[list[Day]] = relationship(back_populates="week", cascade="all, delete-orphan", order_by="Day.date")
    period: Mapped[Optional[Period]] = relationship()

    __table_args__ = (
        UniqueConstraint("plan_id", "week_number", name="uq_week_plan_number"),
        CheckConstraint("week_number >= 1"),
    )

    @property
    def starts_on(self) -> dt.date:
        return self.plan.start_date + dt.timedelta(days=7 * (self.week_number - 1))

    @property
    def ends_on(self) -> dt.date:
        return self.starts_on + dt.timedelta(days=6)


class Day(Base):
    __tablename__ = "days"
    id: Mapped[int] = mapped_column(primary_key=True)
    week_id: Mapped[int] = mapped_column(ForeignKey("weeks.id", ondelete="CASCADE"), index=True)
    owner_id: Mapped[int] = mapped_column(Integer, index=True)
    date: Mapped[dt.date] = mapped_column(Date, index=True)
    storage_zone: Mapped[str] = mapped_column(String(20))
    week_number: Mapped[int] = mapped_column(Integer)
    day_of_week: Mapped[int] = mapped_column(Integer)
    period_id: Mapped[Optional[int]] = mapped_column(ForeignKey("periods.id", ondelete="SET NULL"))
    weather: Mapped[Optional[str]] = mapped_column(String(60))
    feeling_status: Mapped[Optional[str]] = mapped_column(String(40))
    notes: Mapped[Optional[str]] = mapped_column(Text)

    week: Mapped[Week] = relationship(back_populates="days")
    sessions: Mapped[list[WorkoutSession]] = relationship(
        back_populates="day", cascade="all, delete-orphan", order_by="WorkoutSession.session_number"
    )

    __table_args__ = (
        UniqueConstraint("owner_id", "date", "storage_zone", name="uq_day_owner_date_zone"),
        CheckConstraint("day_of_week between 1 and 7"),
    )


class WorkoutSession(Base):
    __tablename__ = "sessions"
    id: Mapped[int] = mapped_column(primary_key=True)
    day_id: Mapped[int] = mapped_column(ForeignKey("days.id", ondelete="CASCADE"), index=True)
    session_number: Mapped[int] = mapped_column(Integer)
    name: Mapped[str] = mapped_column(String(200), default="")
    code: Mapped[str] = mapped_column(String(40), default="")
    time: Mapped[str] = mapped_column(String(20), default="")
    location: Mapped[Optional[str]] = mapped_column(String(120))
    surface: Mapped[Optional[str]] = mapped_column(String(60))
    heart_rate_max: Mapped[Optional[int]] = mapped_column(Integer)
    heart_rate_avg: Mapped[Optional[int]] = mapped_column(Integer)
    calories: Mapped[Optional[int]] = mapped_column(Integer)
    feeling_status: Mapped[Optional[str]] = mapped_column(String(40))
    notes: Mapped[Optional[str]] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(30), default="planned_future")
    include_stretching: Mapped[bool] = mapped_column(Boolean, default=False)
    main_sport: Mapped[Optional[str]] = mapped_column(String(40))

    day: Mapped[Day] = relationship(back_populates="sessions")
    move_units: Mapped[list[MoveUnit]] = relationship(back_populates="session", cascade="all, delete-orphan")

    __table_args__ = (UniqueConstraint("day_id", "session_number", name="uq_session_day_number"),)


class MoveUnit(Base):
    __tablename__ = "move_units"
    id: Mapped[int] = mapped_column(primary_key=True)
    session_id: Mapped[int] = mapped_column(ForeignKey("sessions.id", ondelete="CASCADE"), index=True)
    letter: Mapped[str] = mapped_column(String(8))
    sport: Mapped[str] = mapped_column(String(40))
    type: Mapped[str] = mapped_column(String(20), default="standard")
    work_type: Mapped[str] = mapped_column(String(20), default="none")
    section_id: Mapped[Optional[int]] = mapped_column(ForeignKey("sections.id", ondelete="SET NULL"))
    description: Mapped[str] = mapped_column(Text, default="")
    notes: Mapped[Optional[str]] = mapped_column(Text)
    macro_final: Mapped[Optional[str]] = mapped_column(String(40))
    alarm: Mapped[Optional[int]] = mapped_column(Integer)
    annotation_text: Mapped[Optional[str]] = mapped_column(Text)
    annotation_bg_color: Mapped[Optional[str]] = mapped_column(String(20))
    annotation_text_color: Mapped[Optional[str]] = mapped_column(String(20))
    annotation_bold: Mapped[bool] = mapped_column(Boolean, default=False)
    manual_mode: Mapped[bool] = mapped_column(Boolean, default=False)
    favourite: Mapped[bool] = mapped_column(Boolean, default=False)

    session: Mapped[WorkoutSession] = relationship(back_populates="move_units")
    laps: Mapped[list[RepetitionLap]] = relationship(
        back_populates="move_unit", cascade="all, delete-orphan", order_by="RepetitionLap.repetition_number"
    )
    section: Mapped[Optional[Section]] = relationship()

    __table_args__ = (UniqueConstraint("session_id", "letter", name="uq_move_unit_session_letter"),)


class RepetitionLap(Base):
    __tablename__ = "repetition_laps"
    id: Mapped[int] = mapped_column(primary_key=True)
    move_unit_id: Mapped[int] = mapped_column(ForeignKey("move_units.id", ondelete="CASCADE"), index=True)
    repetition_number: Mapped[int] = mapped_column(Integer)
    distance: Mapped[Optional[float]] = mapped_column(Float)
    time: Mapped[Optional[str]] = mapped_column(String(20))
    speed: Mapped[Optional[str]] = mapped_column(String(20))
    style: Mapped[Optional[str]] = mapped_column(String(40))
    pace: Mapped[Optional[str]] = mapped_column(String(20))
    pause: Mapped[Optional[str]] = mapped_column(String(20))
    rest_type: Mapped[Optional[str]] = mapped_column(String(20))
    alarm: Mapped[Optional[int]] = mapped_column(Integer)
    sound: Mapped[Optional[str]] = mapped_column(String(40))
    reps: Mapped[Optional[int]] = mapped_column(Integer)
    weight: Mapped[Optional[str]] = mapped_column(String(20))
    tools: Mapped[Optional[str]] = mapped_column(String(120))
    exercise: Mapped[Optional[str]] = mapped_column(String(120))
    muscular_sector: Mapped[Optional[str]] = mapped_column(String(60))
    notes: Mapped[Optional[str]] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(20), default="pending")
    is_skipped: Mapped[bool] = mapped_column(Boolean, default=False)
    is_disabled: Mapped[bool] = mapped_column(Boolean, default=False)

    move_unit: Mapped[MoveUnit] = relationship(back_populates="laps")

    __table_args__ = (
        UniqueConstraint("move_unit_id", "repetition_number", name="uq_lap_unit_number"),
    )


class Template(Base):
    __tablename__ = "templates"
    id: Mapped[int] = mapped_column(primary_key=True)
    owner_id: Mapped[int] = mapped_column(Integer, index=True)
    name: Mapped[str] = mapped_column(String(160))
    kind: Mapped[str] = mapped_column(String(20))
    payload: Mapped[Any] = mapped_column(JSON)
    is_public: Mapped[bool] = mapped_column(Boolean, default=False)
    usage_count: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime, default=dt.datetime.utcnow)
