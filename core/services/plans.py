from __future__ import annotations

import datetime as dt
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from core.config import Settings, get_settings
from core.errors import InvalidPosition
from core.models import DEFAULT_STORAGE_ZONES, PLAN_KINDS, Day, Period, Plan, Week

logger = logging.getLogger(__name__)

PLAN_NAMES = {
    "template_weeks": "Template weeks",
    "yearly_plan": "Yearly plan",
    "completed_log": "Completed workouts",
}


def monday_of(value: dt.date) -> dt.date:
    return value - dt.timedelta(days=value.weekday())


def default_week_count(kind: str, settings: Optional[Settings] = None) -> int:
    settings = settings or get_settings()
    return settings.template_plan_weeks if kind == "template_weeks" else settings.yearly_plan_weeks


def resolve_period(db: Session, owner_id: int, settings: Optional[Settings] = None) -> Optional[Period]:
    """The owner's first period, creating the default one when allowed."""
    settings = settings or get_settings()
    period = db.execute(
        select(Period).where(Period.owner_id == owner_id).order_by(Period.id).limit(1)
    ).scalar_one_or_none()
    if period is not None or not settings.auto_create_default_period:
        return period
    period = Period(
        owner_id=owner_id,
        name=settings.default_period_name,
        description="Created automatically with the first plan",
        color=settings.default_period_color,
    )
    db.add(period)
    db.flush()
    logger.info("default_period_created", extra={"owner_id": owner_id, "period_id": period.id})
    return period


def create_plan(
    db: Session,
    caller_id: int,
    kind: str,
    start_date: dt.date,
    week_count: Optional[int] = None,
    storage_zone: Optional[str] = None,
    name: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> Plan:
    """Build a plan with ``week_count`` weeks of seven days each.

    The start date snaps back to its Monday. A plan the caller already holds
    for the same kind and storage zone is deleted first, together with its
    whole schedule.
    """
    settings = settings or get_settings()
    if kind not in PLAN_KINDS:
        raise InvalidPosition(f"kind must be one of {PLAN_KINDS}", kind=kind)
    weeks = week_count if week_count is not None else default_week_count(kind, settings)
    if weeks < 1:
        raise InvalidPosition("week_count must be >= 1", week_count=weeks)
    zone = storage_zone or DEFAULT_STORAGE_ZONES[kind]
    start = monday_of(start_date)

    existing = db.execute(
        select(Plan)
        .where(Plan.owner_id == caller_id, Plan.kind == kind, Plan.storage_zone == zone)
        .with_for_update()
    ).scalar_one_or_none()
    if existing is not None:
        logger.info("plan_rebuild", extra={"plan_id": existing.id, "owner_id": caller_id, "kind": kind})
        db.delete(existing)
        db.flush()

    period = resolve_period(db, caller_id, settings)
    plan = Plan(
        owner_id=caller_id,
        name=name or PLAN_NAMES[kind],
        kind=kind,
        storage_zone=zone,
        start_date=start,
        week_count=weeks,
    )
    for week_number in range(1, weeks + 1):
        week = Week(week_number=week_number, period=period)
        week_start = start + dt.timedelta(days=7 * (week_number - 1))
        for offset in range(7):
            day_date = week_start + dt.timedelta(days=offset)
            week.days.append(
                Day(
                    owner_id=caller_id,
                    date=day_date,
                    storage_zone=zone,
                    week_number=week_number,
                    day_of_week=offset + 1,
                    period_id=period.id if period is not None else None,
                )
            )
        plan.weeks.append(week)
    db.add(plan)
    db.flush()

    logger.info(
        "plan_created",
        extra={
            "plan_id": plan.id,
            "owner_id": caller_id,
            "kind": kind,
            "storage_zone": zone,
            "start_date": start.isoformat(),
            "week_count": weeks,
        },
    )
    return plan
