"""Deep copy of schedule subtrees.

Clones carry every scalar field of their source but never its id, parent
reference or ordering label: session numbers, move-unit letters and
repetition numbers are assigned relative to the target.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable

from sqlalchemy.orm import Session

from core.errors import CapacityExceeded, ConflictRequiresConfirmation
from core.models import MAX_SESSIONS_PER_DAY, Day, MoveUnit, RepetitionLap, Week, WorkoutSession
from core.services.ordering import label_sort_key, position_to_label

logger = logging.getLogger(__name__)

WEEKDAY_NAMES = {1: "Mon", 2: "Tue", 3: "Wed", 4: "Thu", 5: "Fri", 6: "Sat", 7: "Sun"}

LAP_FIELDS = (
    "distance",
    "time",
    "speed",
    "style",
    "pace",
    "pause",
    "rest_type",
    "alarm",
    "sound",
    "reps",
    "weight",
    "tools",
    "exercise",
    "muscular_sector",
    "notes",
    "status",
    "is_skipped",
    "is_disabled",
)
MOVE_UNIT_FIELDS = (
    "sport",
    "type",
    "work_type",
    "section_id",
    "description",
    "notes",
    "macro_final",
    "alarm",
    "annotation_text",
    "annotation_bg_color",
    "annotation_text_color",
    "annotation_bold",
    "manual_mode",
    "favourite",
)
SESSION_FIELDS = (
    "name",
    "code",
    "time",
    "location",
    "surface",
    "heart_rate_max",
    "heart_rate_avg",
    "calories",
    "feeling_status",
    "notes",
    "status",
    "include_stretching",
    "main_sport",
)


@dataclass
class WeekCopyResult:
    source_week_id: int
    target_week_id: int
    copied_weekdays: list[int] = field(default_factory=list)
    skipped_weekdays: list[int] = field(default_factory=list)
    sessions_created: int = 0
    sessions_removed: int = 0
    sessions_moved: int = 0


def copy_fields(source: Any, fields: Iterable[str]) -> dict[str, Any]:
    return {name: getattr(source, name) for name in fields}


def ordered_units(session: WorkoutSession) -> list[MoveUnit]:
    return sorted(session.move_units, key=lambda u: label_sort_key(u.letter))


def ordered_sessions(day: Day) -> list[WorkoutSession]:
    return sorted(day.sessions, key=lambda s: s.session_number)


def ordered_laps(unit: MoveUnit) -> list[RepetitionLap]:
    return sorted(unit.laps, key=lambda lap: lap.repetition_number)


def normalize_work_types(units: Iterable[MoveUnit]) -> list[MoveUnit]:
    """Keep the first primary and the first secondary unit; reset the rest.

    Returns the units whose work type was reset.
    """
    seen: set[str] = set()
    reset: list[MoveUnit] = []
    for unit in units:
        if unit.work_type in ("primary", "secondary"):
            if unit.work_type in seen:
                unit.work_type = "none"
                reset.append(unit)
            else:
                seen.add(unit.work_type)
    return reset


def clone_lap(source: RepetitionLap, repetition_number: int) -> RepetitionLap:
    return RepetitionLap(repetition_number=repetition_number, **copy_fields(source, LAP_FIELDS))


def clone_move_unit(source: MoveUnit, letter: str) -> MoveUnit:
    """Unattached copy of a move-unit and its laps, laps renumbered 1..M."""
    clone = MoveUnit(letter=letter, **copy_fields(source, MOVE_UNIT_FIELDS))
    for number, lap in enumerate(ordered_laps(source), start=1):
        clone.laps.append(clone_lap(lap, number))
    return clone


def clone_session(source: WorkoutSession, session_number: int) -> WorkoutSession:
    """Unattached deep copy of a session, move-units relabeled from "A"."""
    clone = WorkoutSession(session_number=session_number, **copy_fields(source, SESSION_FIELDS))
    for index, unit in enumerate(ordered_units(source)):
        clone.move_units.append(clone_move_unit(unit, position_to_label(index)))
    return clone


def clear_day(db: Session, day: Day, *, confirmed: bool) -> int:
    """Remove every session under ``day`` (laps and move-units cascade)."""
    existing = list(day.sessions)
    if not existing:
        return 0
    if not confirmed:
        raise ConflictRequiresConfirmation(
            "Target day already holds sessions",
            existing_summary=[session_summary(s) for s in ordered_sessions(day)],
            allowed_resolutions=("replace", "append"),
            day_id=day.id,
        )
    day.sessions.clear()
    # Deletes must reach the database before replacement rows reuse their numbers.
    db.flush()
    return len(existing)


def duplicate_day_sessions(
    db: Session,
    source_day: Day,
    target_day: Day,
    *,
    replace: bool,
    confirmed: bool = False,
) -> tuple[list[WorkoutSession], int]:
    """Copy every session of ``source_day`` into ``target_day``.

    Returns the new sessions and the number of target sessions removed.
    """
    sources = ordered_sessions(source_day)
    kept = 0 if replace else len(target_day.sessions)
    if kept + len(sources) > MAX_SESSIONS_PER_DAY:
        raise CapacityExceeded(
            f"Day would hold {kept + len(sources)} sessions; the limit is {MAX_SESSIONS_PER_DAY}",
            day_id=target_day.id,
        )

    removed = clear_day(db, target_day, confirmed=confirmed) if replace else 0
    created: list[WorkoutSession] = []
    for offset, source in enumerate(sources, start=1):
        clone = clone_session(source, kept + offset)
        target_day.sessions.append(clone)
        created.append(clone)
    db.flush()
    return created, removed


def match_week_days(
    source_week: Week,
    target_week: Week,
    *,
    replace: bool,
    confirmed: bool = False,
) -> tuple[list[tuple[Day, Day]], WeekCopyResult]:
    """Pair source and target days by weekday and check every pair up front.

    Weekdays missing from the target are logged and reported as skipped. A
    capacity or confirmation failure is raised before anything is written.
    """
    result = WeekCopyResult(source_week_id=source_week.id, target_week_id=target_week.id)
    targets_by_weekday = {d.day_of_week: d for d in target_week.days}

    pairs: list[tuple[Day, Day]] = []
    for source_day in sorted(source_week.days, key=lambda d: d.day_of_week):
        target_day = targets_by_weekday.get(source_day.day_of_week)
        if target_day is None:
            logger.warning(
                "week_copy_weekday_missing",
                extra={
                    "source_week_id": source_week.id,
                    "target_week_id": target_week.id,
                    "weekday": WEEKDAY_NAMES[source_day.day_of_week],
                },
            )
            result.skipped_weekdays.append(source_day.day_of_week)
            continue
        pairs.append((source_day, target_day))

    occupied = [t for _, t in pairs if t.sessions]
    if replace and occupied and not confirmed:
        raise ConflictRequiresConfirmation(
            "Target week already holds sessions",
            existing_summary=[day_summary(d) for d in occupied],
            allowed_resolutions=("replace", "append"),
            week_id=target_week.id,
        )
    for source_day, target_day in pairs:
        kept = 0 if replace else len(target_day.sessions)
        if kept + len(source_day.sessions) > MAX_SESSIONS_PER_DAY:
            raise CapacityExceeded(
                f"{WEEKDAY_NAMES[target_day.day_of_week]} would exceed {MAX_SESSIONS_PER_DAY} sessions",
                day_id=target_day.id,
            )
    return pairs, result


def duplicate_week(
    db: Session,
    source_week: Week,
    target_week: Week,
    *,
    replace: bool,
    confirmed: bool = False,
) -> WeekCopyResult:
    """Copy a week day-by-day, matching source and target days by weekday."""
    pairs, result = match_week_days(source_week, target_week, replace=replace, confirmed=confirmed)
    for source_day, target_day in pairs:
        created, removed = duplicate_day_sessions(db, source_day, target_day, replace=replace, confirmed=True)
        result.copied_weekdays.append(source_day.day_of_week)
        result.sessions_created += len(created)
        result.sessions_removed += removed
    return result


def session_summary(session: WorkoutSession) -> dict[str, Any]:
    return {
        "session_id": session.id,
        "session_number": session.session_number,
        "name": session.name,
        "move_units": len(session.move_units),
    }


def day_summary(day: Day) -> dict[str, Any]:
    return {
        "day_id": day.id,
        "date": day.date.isoformat(),
        "sessions": [session_summary(s) for s in ordered_sessions(day)],
    }
