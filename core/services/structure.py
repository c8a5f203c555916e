"""Plan structure operations: copy, move, switch and insert at every tree level.

Each public function is one structural operation. It must run inside a
single ``session_scope()``: all validation (ownership, capacity, conflicts,
template shape) happens before the first write, the target rows are read
with ``SELECT ... FOR UPDATE``, and a unique-constraint violation raised at
flush time (a concurrent writer got there first) surfaces as
``ConflictRequiresConfirmation`` so the caller re-checks and retries. Any
error propagates to the scope, which rolls back every partial write.

Renumbering is two-phase: affected rows are first parked on temporary
numbers/labels and flushed, then given their final contiguous values, so no
intermediate state trips the per-parent unique constraints.
"""

from __future__ import annotations

import datetime as dt
import logging
from contextlib import contextmanager
from typing import Any, Callable, Iterable, Iterator, Optional, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.errors import (
    CapacityExceeded,
    ConflictRequiresConfirmation,
    Forbidden,
    InvalidPosition,
    NotFound,
)
from core.models import (
    MAX_DAYS_PER_WEEK,
    MAX_SESSIONS_PER_DAY,
    MOVE_UNIT_TYPES,
    WORK_TYPES,
    Day,
    MoveUnit,
    Plan,
    RepetitionLap,
    Template,
    Week,
    WorkoutSession,
)
from core.services.conflicts import MOVE_UNIT_ACTIONS, resolve_session_transfer, resolve_unit_placement
from core.services.duplicator import (
    WeekCopyResult,
    clear_day,
    clone_move_unit,
    clone_session,
    day_summary,
    duplicate_day_sessions,
    duplicate_week,
    match_week_days,
    normalize_work_types,
    ordered_laps,
    ordered_sessions,
    ordered_units,
)
from core.services.ordering import position_to_label
from core.services.repetitions import discipline_for_sport, generate_repetitions
from core.services.templates import build_session, parse_template, serialize_day, serialize_session, template_sessions

logger = logging.getLogger(__name__)

AccessCheck = Callable[[int, Plan], bool]
T = TypeVar("T")

_TEMP_OFFSET = 1_000_000


def owns_plan(caller_id: int, plan: Plan) -> bool:
    return plan.owner_id == caller_id


# -- lookups and guards --


def _get(db: Session, model: type[T], obj_id: Optional[int], label: str, *, lock: bool = False) -> T:
    if obj_id is None:
        raise NotFound(f"{label} not found")
    stmt = select(model).where(model.id == obj_id)
    if lock:
        stmt = stmt.with_for_update()
    obj = db.execute(stmt).scalar_one_or_none()
    if obj is None:
        key = label.lower().replace(" ", "_").replace("-", "_") + "_id"
        raise NotFound(f"{label} {obj_id} not found", **{key: obj_id})
    return obj


def _require_modify(caller_id: int, plans: Iterable[Plan], may_modify: Optional[AccessCheck]) -> None:
    check = may_modify or owns_plan
    for plan in {p.id: p for p in plans}.values():
        if not check(caller_id, plan):
            raise Forbidden(f"Caller may not modify plan {plan.id}", plan_id=plan.id)


def _plan_of_day(day: Day) -> Plan:
    return day.week.plan


def _plan_of_session(session: WorkoutSession) -> Plan:
    return session.day.week.plan


def _plan_of_unit(unit: MoveUnit) -> Plan:
    return unit.session.day.week.plan


@contextmanager
def _commit_guard(operation: str, **context: Any) -> Iterator[None]:
    try:
        yield
    except IntegrityError as exc:
        logger.warning("structure_write_conflict", extra={"operation": operation, **context})
        raise ConflictRequiresConfirmation(
            "The target changed while the operation was running; re-check and retry",
            operation=operation,
        ) from exc


# -- two-phase renumbering --


def _place_sessions(db: Session, placements: list[tuple[WorkoutSession, Day, int]]) -> None:
    for i, (session, day, _) in enumerate(placements):
        if session.day is not day:
            session.day = day
        session.session_number = _TEMP_OFFSET + i
    db.flush()
    for session, _, number in placements:
        session.session_number = number
    db.flush()


def _compact_sessions(day: Day, order: dict[int, float]) -> list[tuple[WorkoutSession, Day, int]]:
    """Contiguous 1..n numbering for ``day`` following the ``order`` keys."""
    ranked = sorted(day.sessions, key=lambda s: order.get(id(s), s.session_number))
    return [(s, day, n) for n, s in enumerate(ranked, start=1)]


def _place_units(db: Session, placements: list[tuple[MoveUnit, WorkoutSession, str]]) -> None:
    for i, (unit, session, _) in enumerate(placements):
        if unit.session is not session:
            unit.session = session
        unit.letter = f"~{i}"
    db.flush()
    for unit, _, letter in placements:
        unit.letter = letter
    db.flush()


def _relabel(session: WorkoutSession, units: list[MoveUnit]) -> list[tuple[MoveUnit, WorkoutSession, str]]:
    return [(u, session, position_to_label(i)) for i, u in enumerate(units)]


def _renumber_laps(db: Session, laps: list[RepetitionLap]) -> None:
    for i, lap in enumerate(laps):
        lap.repetition_number = _TEMP_OFFSET + i
    db.flush()
    for number, lap in enumerate(laps, start=1):
        lap.repetition_number = number
    db.flush()


# -- weeks and days --


def copy_week(
    db: Session,
    caller_id: int,
    source_week_id: int,
    target_week_id: int,
    mode: str = "replace",
    confirm_replace: bool = False,
    may_modify: Optional[AccessCheck] = None,
) -> WeekCopyResult:
    """Copy every session of a week onto the matching weekdays of another.

    ``mode="replace"`` swaps the target days' sessions wholesale and needs
    ``confirm_replace`` when any of them holds sessions; ``mode="append"``
    adds the copies beside the existing sessions. The target week's period
    and notes mirror the source.
    """
    if mode not in ("replace", "append"):
        raise InvalidPosition("mode must be 'replace' or 'append'", mode=mode)
    if source_week_id == target_week_id:
        raise InvalidPosition("A week cannot be copied onto itself", week_id=source_week_id)

    source = _get(db, Week, source_week_id, "Source week")
    target = _get(db, Week, target_week_id, "Target week", lock=True)
    _require_modify(caller_id, [source.plan, target.plan], may_modify)

    with _commit_guard("copy_week", source_week_id=source.id, target_week_id=target.id):
        result = duplicate_week(db, source, target, replace=(mode == "replace"), confirmed=confirm_replace)
        target.period_id = source.period_id
        target.notes = source.notes
        db.flush()

    logger.info(
        "week_copied",
        extra={
            "source_week_id": source.id,
            "target_week_id": target.id,
            "mode": mode,
            "sessions_created": result.sessions_created,
            "sessions_removed": result.sessions_removed,
            "skipped_weekdays": result.skipped_weekdays,
        },
    )
    return result


def move_week(
    db: Session,
    caller_id: int,
    source_week_id: int,
    target_week_id: int,
    mode: str = "replace",
    confirm_replace: bool = False,
    may_modify: Optional[AccessCheck] = None,
) -> WeekCopyResult:
    """Move every session of a week onto the matching weekdays of another.

    Sessions are rebound rather than cloned, so they keep their ids and
    subtrees and the source days end up empty. ``mode`` and
    ``confirm_replace`` behave as in ``copy_week``.
    """
    if mode not in ("replace", "append"):
        raise InvalidPosition("mode must be 'replace' or 'append'", mode=mode)
    if source_week_id == target_week_id:
        raise InvalidPosition("A week cannot be moved onto itself", week_id=source_week_id)

    source = _get(db, Week, source_week_id, "Source week", lock=True)
    target = _get(db, Week, target_week_id, "Target week", lock=True)
    _require_modify(caller_id, [source.plan, target.plan], may_modify)
    pairs, result = match_week_days(source, target, replace=(mode == "replace"), confirmed=confirm_replace)

    with _commit_guard("move_week", source_week_id=source.id, target_week_id=target.id):
        placements: list[tuple[WorkoutSession, Day, int]] = []
        for source_day, target_day in pairs:
            if mode == "replace":
                result.sessions_removed += clear_day(db, target_day, confirmed=True)
            kept = len(target_day.sessions)
            moving = ordered_sessions(source_day)
            placements += [(s, target_day, kept + n) for n, s in enumerate(moving, start=1)]
            result.copied_weekdays.append(source_day.day_of_week)
            result.sessions_moved += len(moving)
        _place_sessions(db, placements)

    logger.info(
        "week_moved",
        extra={
            "source_week_id": source.id,
            "target_week_id": target.id,
            "mode": mode,
            "sessions_moved": result.sessions_moved,
            "sessions_removed": result.sessions_removed,
            "skipped_weekdays": result.skipped_weekdays,
        },
    )
    return result


def ensure_day(db: Session, week: Week, day_date: dt.date) -> Day:
    """Return the day for ``day_date`` in ``week``, creating it on first use."""
    if not week.starts_on <= day_date <= week.ends_on:
        raise InvalidPosition(
            f"{day_date.isoformat()} is outside week {week.week_number}",
            week_id=week.id,
        )
    plan = week.plan
    existing = db.execute(
        select(Day).where(
            Day.owner_id == plan.owner_id,
            Day.date == day_date,
            Day.storage_zone == plan.storage_zone,
        )
    ).scalar_one_or_none()
    if existing is not None:
        return existing
    if len(week.days) >= MAX_DAYS_PER_WEEK:
        raise CapacityExceeded(f"Week already holds {MAX_DAYS_PER_WEEK} days", week_id=week.id)
    day = Day(
        owner_id=plan.owner_id,
        date=day_date,
        storage_zone=plan.storage_zone,
        week_number=week.week_number,
        day_of_week=day_date.isoweekday(),
        period_id=week.period_id,
    )
    week.days.append(day)
    db.flush()
    return day


def move_day_to_week(
    db: Session,
    caller_id: int,
    day_id: int,
    target_week_id: int,
    target_index: Optional[int] = None,
    confirm_replace: bool = False,
    may_modify: Optional[AccessCheck] = None,
) -> Day:
    """Rebind a day (with its sessions) to another week.

    The day keeps its weekday: its date is re-anchored inside the target
    week's span. ``target_index`` is accepted but days stay ordered by date.
    """
    day = _get(db, Day, day_id, "Day", lock=True)
    target = _get(db, Week, target_week_id, "Target week", lock=True)
    _require_modify(caller_id, [_plan_of_day(day), target.plan], may_modify)

    if day.week_id == target.id:
        return day
    if target_index is not None:
        logger.debug("day_move_target_index_ignored", extra={"day_id": day.id, "target_index": target_index})

    occupant = next((d for d in target.days if d.day_of_week == day.day_of_week), None)
    if occupant is not None and not confirm_replace:
        raise ConflictRequiresConfirmation(
            "Target week already has this weekday",
            existing_summary=[day_summary(occupant)],
            allowed_resolutions=("replace",),
            week_id=target.id,
        )
    remaining = [d for d in target.days if d is not occupant]
    if len(remaining) >= MAX_DAYS_PER_WEEK:
        raise CapacityExceeded(f"Week already holds {MAX_DAYS_PER_WEEK} days", week_id=target.id)

    plan = target.plan
    with _commit_guard("move_day_to_week", day_id=day.id, target_week_id=target.id):
        if occupant is not None:
            target.days.remove(occupant)
            db.flush()
        day.week = target
        day.week_number = target.week_number
        day.date = target.starts_on + dt.timedelta(days=day.day_of_week - 1)
        day.owner_id = plan.owner_id
        day.storage_zone = plan.storage_zone
        db.flush()

    logger.info(
        "day_moved_to_week",
        extra={
            "day_id": day.id,
            "target_week_id": target.id,
            "date": day.date.isoformat(),
            "replaced_day": occupant is not None,
        },
    )
    return day


def copy_day(
    db: Session,
    caller_id: int,
    source_day_id: int,
    target_day_id: int,
    mode: str = "append",
    confirm_replace: bool = False,
    may_modify: Optional[AccessCheck] = None,
) -> list[WorkoutSession]:
    if mode not in ("replace", "append"):
        raise InvalidPosition("mode must be 'replace' or 'append'", mode=mode)
    if source_day_id == target_day_id and mode == "replace":
        raise InvalidPosition("A day cannot replace itself", day_id=source_day_id)

    source = _get(db, Day, source_day_id, "Source day")
    target = _get(db, Day, target_day_id, "Target day", lock=True)
    _require_modify(caller_id, [_plan_of_day(source), _plan_of_day(target)], may_modify)

    with _commit_guard("copy_day", source_day_id=source.id, target_day_id=target.id):
        created, removed = duplicate_day_sessions(
            db, source, target, replace=(mode == "replace"), confirmed=confirm_replace
        )
    logger.info(
        "day_copied",
        extra={
            "source_day_id": source.id,
            "target_day_id": target.id,
            "mode": mode,
            "sessions_created": len(created),
            "sessions_removed": removed,
        },
    )
    return created


# -- sessions --


def add_session(
    db: Session,
    caller_id: int,
    day_id: int,
    may_modify: Optional[AccessCheck] = None,
    **fields: Any,
) -> WorkoutSession:
    day = _get(db, Day, day_id, "Day", lock=True)
    _require_modify(caller_id, [_plan_of_day(day)], may_modify)
    if len(day.sessions) >= MAX_SESSIONS_PER_DAY:
        raise CapacityExceeded(f"Day already holds {MAX_SESSIONS_PER_DAY} sessions", day_id=day.id)
    with _commit_guard("add_session", day_id=day.id):
        session = WorkoutSession(session_number=len(day.sessions) + 1, **fields)
        day.sessions.append(session)
        db.flush()
    return session


def transfer_session(
    db: Session,
    caller_id: int,
    session_id: int,
    target_day_id: int,
    action: str,
    target_session_id: Optional[int] = None,
    confirm: bool = False,
    may_modify: Optional[AccessCheck] = None,
) -> list[WorkoutSession]:
    """Copy, move or switch a session into ``target_day_id``.

    Returns the sessions whose placement changed: the new copy, the moved
    session, or both switched sessions.
    """
    source = _get(db, WorkoutSession, session_id, "Session", lock=(action != "copy"))
    target_day = _get(db, Day, target_day_id, "Target day", lock=True)
    target_session = (
        _get(db, WorkoutSession, target_session_id, "Target session", lock=True)
        if target_session_id is not None
        else None
    )
    _require_modify(caller_id, [_plan_of_session(source), _plan_of_day(target_day)], may_modify)

    resolution = resolve_session_transfer(source, target_day, action, target_session, confirm)
    context = {"session_id": source.id, "target_day_id": target_day.id, "action": action}

    with _commit_guard("transfer_session", **context):
        if resolution.action == "copy":
            clone = clone_session(source, len(target_day.sessions) + 1)
            target_day.sessions.append(clone)
            db.flush()
            logger.info("session_copied", extra={**context, "new_session_id": clone.id})
            return [clone]

        if resolution.action == "switch":
            partner = resolution.switch_with
            day_a, day_b = source.day, partner.day
            num_a, num_b = source.session_number, partner.session_number
            _place_sessions(db, [(source, day_b, num_b), (partner, day_a, num_a)])
            logger.info("sessions_switched", extra={**context, "partner_session_id": partner.id})
            return [source, partner]

        if resolution.noop:
            return [source]

        source_day = source.day
        order: dict[int, float] = {}
        replaced = resolution.replace_session
        if replaced is not None:
            order[id(source)] = replaced.session_number
            target_day.sessions.remove(replaced)
            db.flush()
        else:
            order[id(source)] = MAX_SESSIONS_PER_DAY + 1
        if source.day is not target_day:
            source.day = target_day
        placements = _compact_sessions(target_day, order)
        if source_day is not target_day:
            placements += _compact_sessions(source_day, {})
        _place_sessions(db, placements)

    logger.info(
        "session_moved",
        extra={**context, "session_number": source.session_number, "replaced": replaced is not None},
    )
    return [source]


def delete_session(
    db: Session,
    caller_id: int,
    session_id: int,
    may_modify: Optional[AccessCheck] = None,
) -> None:
    session = _get(db, WorkoutSession, session_id, "Session", lock=True)
    day = session.day
    _require_modify(caller_id, [_plan_of_day(day)], may_modify)
    with _commit_guard("delete_session", session_id=session.id):
        day.sessions.remove(session)
        db.flush()
        _place_sessions(db, _compact_sessions(day, {}))
    logger.info("session_deleted", extra={"session_id": session_id, "day_id": day.id})


def reorder_sessions(
    db: Session,
    caller_id: int,
    day_id: int,
    session_ids: Iterable[int],
    may_modify: Optional[AccessCheck] = None,
) -> list[WorkoutSession]:
    """Renumber a day's sessions 1..n in the order of ``session_ids``."""
    day = _get(db, Day, day_id, "Day", lock=True)
    _require_modify(caller_id, [_plan_of_day(day)], may_modify)
    ids = list(session_ids)
    current = {s.id: s for s in day.sessions}
    if sorted(ids) != sorted(current):
        raise InvalidPosition("session_ids must list every session of the day once", day_id=day.id)
    with _commit_guard("reorder_sessions", day_id=day.id):
        _place_sessions(db, [(current[sid], day, n) for n, sid in enumerate(ids, start=1)])
    logger.info("sessions_reordered", extra={"day_id": day.id, "session_ids": ids})
    return ordered_sessions(day)


# -- move-units --


def add_move_unit(
    db: Session,
    caller_id: int,
    session_id: int,
    sport: str,
    type: str = "standard",
    work_type: str = "none",
    may_modify: Optional[AccessCheck] = None,
    **fields: Any,
) -> MoveUnit:
    """Append a move-unit; its label follows the current sibling count."""
    if type not in MOVE_UNIT_TYPES:
        raise InvalidPosition(f"type must be one of {MOVE_UNIT_TYPES}", type=type)
    session = _get(db, WorkoutSession, session_id, "Session", lock=True)
    _require_modify(caller_id, [_plan_of_session(session)], may_modify)
    with _commit_guard("add_move_unit", session_id=session.id):
        unit = MoveUnit(letter=position_to_label(len(session.move_units)), sport=sport, type=type, **fields)
        session.move_units.append(unit)
        db.flush()
    if work_type != "none":
        set_work_type(db, caller_id, unit.id, work_type, may_modify=may_modify)
    return unit


def transfer_move_units(
    db: Session,
    caller_id: int,
    unit_ids: Iterable[int],
    target_session_id: int,
    action: str = "move",
    position: str = "after",
    target_unit_id: Optional[int] = None,
    confirm: bool = False,
    may_modify: Optional[AccessCheck] = None,
) -> list[MoveUnit]:
    """Copy or move one move-unit or an ordered batch into a session.

    ``position`` is relative to ``target_unit_id``: ``before``/``after``
    never delete it, ``replace`` deletes it (after confirmation) and the
    batch takes over its slot. ``after`` without a reference appends.
    The target session and every source session that lost units are
    relabeled contiguously from "A".
    """
    if action not in MOVE_UNIT_ACTIONS:
        raise InvalidPosition(f"action must be one of {MOVE_UNIT_ACTIONS}", action=action)
    ids = list(dict.fromkeys(unit_ids))
    if not ids:
        raise InvalidPosition("No move-units given")

    target = _get(db, WorkoutSession, target_session_id, "Target session", lock=True)
    units = [_get(db, MoveUnit, uid, "Move-unit", lock=(action == "move")) for uid in ids]
    reference = _get(db, MoveUnit, target_unit_id, "Target move-unit") if target_unit_id is not None else None
    _require_modify(caller_id, [_plan_of_session(target), *(_plan_of_unit(u) for u in units)], may_modify)

    moving_ids = ids if action == "move" else ()
    placement = resolve_unit_placement(target, position, reference, moving_ids, confirm)
    context = {"target_session_id": target.id, "action": action, "position": position, "unit_ids": ids}

    with _commit_guard("transfer_move_units", **context):
        if placement.replace_unit is not None:
            target.move_units.remove(placement.replace_unit)
            db.flush()

        if action == "copy":
            batch = []
            for i, unit in enumerate(units):
                clone = clone_move_unit(unit, f"+{i}")
                target.move_units.append(clone)
                batch.append(clone)
        else:
            batch = units

        reset = normalize_work_types([*placement.remaining, *batch])
        if reset:
            logger.info("work_type_reset", extra={**context, "reset_unit_ids": [u.id for u in reset]})

        final = [*placement.remaining[: placement.index], *batch, *placement.remaining[placement.index :]]
        placements = _relabel(target, final)
        if action == "move":
            sources = {u.session.id: u.session for u in units if u.session is not target}
            for source in sources.values():
                left = [u for u in ordered_units(source) if u.id not in moving_ids]
                placements += _relabel(source, left)
        _place_units(db, placements)

    logger.info(
        "move_units_transferred",
        extra={**context, "letters": [u.letter for u in batch], "replaced": placement.replace_unit is not None},
    )
    return batch


def set_work_type(
    db: Session,
    caller_id: int,
    unit_id: int,
    work_type: str,
    may_modify: Optional[AccessCheck] = None,
) -> MoveUnit:
    """Mark a move-unit as the session's primary or secondary focus.

    The previous holder of that role is reset to ``none``. Clearing the
    primary promotes the secondary unit, if any.
    """
    if work_type not in WORK_TYPES:
        raise InvalidPosition(f"work_type must be one of {WORK_TYPES}", work_type=work_type)
    unit = _get(db, MoveUnit, unit_id, "Move-unit", lock=True)
    session = unit.session
    _require_modify(caller_id, [_plan_of_session(session)], may_modify)

    others = [u for u in session.move_units if u.id != unit.id]
    if work_type in ("primary", "secondary"):
        for other in others:
            if other.work_type == work_type:
                other.work_type = "none"
    elif unit.work_type == "primary":
        promoted = next((u for u in ordered_units(session) if u.work_type == "secondary" and u.id != unit.id), None)
        if promoted is not None:
            promoted.work_type = "primary"
    unit.work_type = work_type
    db.flush()
    logger.info("work_type_set", extra={"move_unit_id": unit.id, "work_type": work_type})
    return unit


def delete_move_unit(
    db: Session,
    caller_id: int,
    unit_id: int,
    may_modify: Optional[AccessCheck] = None,
) -> None:
    unit = _get(db, MoveUnit, unit_id, "Move-unit", lock=True)
    session = unit.session
    _require_modify(caller_id, [_plan_of_session(session)], may_modify)
    with _commit_guard("delete_move_unit", move_unit_id=unit.id):
        session.move_units.remove(unit)
        db.flush()
        _place_units(db, _relabel(session, ordered_units(session)))
    logger.info("move_unit_deleted", extra={"move_unit_id": unit_id, "session_id": session.id})


# -- repetition-laps --


def append_repetitions(
    db: Session,
    caller_id: int,
    unit_id: int,
    count: int,
    base_value: float,
    pattern: str = "none",
    amount: float = 0,
    discipline: Optional[str] = None,
    speed: Optional[str] = None,
    pause: Optional[str] = None,
    may_modify: Optional[AccessCheck] = None,
) -> list[RepetitionLap]:
    """Generate laps and append them after the move-unit's last repetition."""
    unit = _get(db, MoveUnit, unit_id, "Move-unit", lock=True)
    _require_modify(caller_id, [_plan_of_unit(unit)], may_modify)
    drafts = generate_repetitions(
        count,
        base_value,
        pattern=pattern,
        amount=amount,
        discipline=discipline or discipline_for_sport(unit.sport),
        existing_max=max((lap.repetition_number for lap in unit.laps), default=0),
        speed=speed,
        pause=pause,
    )
    with _commit_guard("append_repetitions", move_unit_id=unit.id):
        laps = [RepetitionLap(**draft.as_dict()) for draft in drafts]
        unit.laps.extend(laps)
        db.flush()
    logger.info(
        "repetitions_appended",
        extra={"move_unit_id": unit.id, "count": len(laps), "pattern": pattern},
    )
    return laps


def delete_repetition(
    db: Session,
    caller_id: int,
    lap_id: int,
    may_modify: Optional[AccessCheck] = None,
) -> None:
    lap = _get(db, RepetitionLap, lap_id, "Repetition", lock=True)
    unit = lap.move_unit
    _require_modify(caller_id, [_plan_of_unit(unit)], may_modify)
    with _commit_guard("delete_repetition", lap_id=lap.id):
        unit.laps.remove(lap)
        db.flush()
        _renumber_laps(db, ordered_laps(unit))
    logger.info("repetition_deleted", extra={"lap_id": lap_id, "move_unit_id": unit.id})


def reorder_repetitions(
    db: Session,
    caller_id: int,
    unit_id: int,
    lap_ids: Iterable[int],
    may_modify: Optional[AccessCheck] = None,
) -> list[RepetitionLap]:
    """Renumber a move-unit's laps 1..n in the order of ``lap_ids``."""
    unit = _get(db, MoveUnit, unit_id, "Move-unit", lock=True)
    _require_modify(caller_id, [_plan_of_unit(unit)], may_modify)
    ids = list(lap_ids)
    current = {lap.id: lap for lap in unit.laps}
    if sorted(ids) != sorted(current):
        raise InvalidPosition("lap_ids must list every repetition of the move-unit once", move_unit_id=unit.id)
    with _commit_guard("reorder_repetitions", move_unit_id=unit.id):
        _renumber_laps(db, [current[lid] for lid in ids])
    logger.info("repetitions_reordered", extra={"move_unit_id": unit.id, "lap_ids": ids})
    return ordered_laps(unit)


# -- templates --


def save_template(
    db: Session,
    caller_id: int,
    name: str,
    session_id: Optional[int] = None,
    day_id: Optional[int] = None,
    is_public: bool = False,
    may_modify: Optional[AccessCheck] = None,
) -> Template:
    if (session_id is None) == (day_id is None):
        raise InvalidPosition("Give exactly one of session_id or day_id")
    if session_id is not None:
        session = _get(db, WorkoutSession, session_id, "Session")
        _require_modify(caller_id, [_plan_of_session(session)], may_modify)
        kind, payload = "session", serialize_session(session)
    else:
        day = _get(db, Day, day_id, "Day")
        _require_modify(caller_id, [_plan_of_day(day)], may_modify)
        if not day.sessions:
            raise InvalidPosition("An empty day cannot be saved as a template", day_id=day.id)
        kind, payload = "day", serialize_day(day)
    template = Template(owner_id=caller_id, name=name, kind=kind, payload=payload, is_public=is_public, usage_count=0)
    db.add(template)
    db.flush()
    logger.info("template_saved", extra={"template_id": template.id, "kind": kind})
    return template


def apply_template(
    db: Session,
    caller_id: int,
    template_id: int,
    target_day_id: int,
    may_modify: Optional[AccessCheck] = None,
) -> list[WorkoutSession]:
    """Materialize a stored template as new sessions under a day.

    A session template yields exactly one session. A day template yields
    as many sessions as the day still has room for; extras are dropped.
    """
    template = _get(db, Template, template_id, "Template", lock=True)
    if template.owner_id != caller_id and not template.is_public:
        raise Forbidden("Caller may not use this template", template_id=template.id)
    target_day = _get(db, Day, target_day_id, "Target day", lock=True)
    _require_modify(caller_id, [_plan_of_day(target_day)], may_modify)

    bodies = template_sessions(parse_template(template.kind, template.payload))
    room = MAX_SESSIONS_PER_DAY - len(target_day.sessions)
    if room <= 0:
        raise CapacityExceeded(f"Day already holds {MAX_SESSIONS_PER_DAY} sessions", day_id=target_day.id)
    if len(bodies) > room:
        logger.warning(
            "template_sessions_truncated",
            extra={"template_id": template.id, "day_id": target_day.id, "dropped": len(bodies) - room},
        )
        bodies = bodies[:room]

    with _commit_guard("apply_template", template_id=template.id, target_day_id=target_day.id):
        start = len(target_day.sessions)
        created = [build_session(body, start + offset) for offset, body in enumerate(bodies, start=1)]
        target_day.sessions.extend(created)
        template.usage_count = (template.usage_count or 0) + 1
        db.flush()

    logger.info(
        "template_applied",
        extra={"template_id": template.id, "target_day_id": target_day.id, "sessions_created": len(created)},
    )
    return created


def day_tree(db: Session, caller_id: int, day_id: int, may_modify: Optional[AccessCheck] = None) -> Day:
    """Load a day for display; callers walk it with the ``ordered_*`` helpers."""
    day = _get(db, Day, day_id, "Day")
    _require_modify(caller_id, [_plan_of_day(day)], may_modify)
    return day
