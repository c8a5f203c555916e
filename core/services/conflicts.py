"""Conflict detection and resolution for session and move-unit transfers.

Nothing in this module writes to the database. It inspects the target of a
transfer and either returns the placement the caller should apply or raises
the error kind that stops the operation:

- a target that would exceed the session ceiling is *blocked* and rejected
  with ``CapacityExceeded``; it is never offered a resolution,
- an occupied target is a *conflict*; a move into it needs explicit
  confirmation, a copy lands beside the existing items,
- a switch exchanges two sessions and never deletes anything.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from core.errors import CapacityExceeded, ConflictRequiresConfirmation, InvalidPosition
from core.models import MAX_SESSIONS_PER_DAY, Day, MoveUnit, WorkoutSession
from core.services.duplicator import ordered_sessions, ordered_units, session_summary

SESSION_ACTIONS = ("copy", "move", "switch")
MOVE_UNIT_ACTIONS = ("copy", "move")
MOVE_UNIT_POSITIONS = ("before", "after", "replace")


@dataclass(frozen=True)
class ConflictReport:
    has_conflict: bool
    blocked: bool
    existing_summary: list[dict[str, Any]] = field(default_factory=list)
    allowed_resolutions: tuple[str, ...] = ()


@dataclass(frozen=True)
class SessionResolution:
    action: str
    replace_session: Optional[WorkoutSession] = None
    switch_with: Optional[WorkoutSession] = None
    noop: bool = False


@dataclass(frozen=True)
class UnitPlacement:
    """Where a batch of move-units lands inside the target session.

    ``remaining`` is the target's current order without the moving units
    and without ``replace_unit``; the batch is spliced in at ``index``.
    """

    remaining: list[MoveUnit]
    index: int
    replace_unit: Optional[MoveUnit] = None


def unit_summary(unit: MoveUnit) -> dict[str, Any]:
    return {
        "move_unit_id": unit.id,
        "letter": unit.letter,
        "sport": unit.sport,
        "laps": len(unit.laps),
    }


def detect_session_conflict(target_day: Day, exclude_ids: Iterable[int] = ()) -> ConflictReport:
    excluded = set(exclude_ids)
    existing = [s for s in ordered_sessions(target_day) if s.id not in excluded]
    blocked = len(existing) >= MAX_SESSIONS_PER_DAY
    if not existing:
        allowed: tuple[str, ...] = ("copy", "move")
    elif blocked:
        allowed = ("switch",)
    else:
        allowed = SESSION_ACTIONS
    return ConflictReport(
        has_conflict=bool(existing),
        blocked=blocked,
        existing_summary=[session_summary(s) for s in existing],
        allowed_resolutions=allowed,
    )


def detect_move_unit_conflict(
    target_session: WorkoutSession,
    position: str,
    reference: Optional[MoveUnit] = None,
) -> ConflictReport:
    """Only replacing a specific unit conflicts; appending never does."""
    has_units = bool(target_session.move_units)
    allowed = MOVE_UNIT_POSITIONS if has_units else ("after",)
    if position == "replace" and reference is not None:
        return ConflictReport(
            has_conflict=True,
            blocked=False,
            existing_summary=[unit_summary(reference)],
            allowed_resolutions=allowed,
        )
    return ConflictReport(has_conflict=False, blocked=False, allowed_resolutions=allowed)


def resolve_session_transfer(
    source: WorkoutSession,
    target_day: Day,
    action: str,
    target_session: Optional[WorkoutSession] = None,
    confirm: bool = False,
) -> SessionResolution:
    if action not in SESSION_ACTIONS:
        raise InvalidPosition(f"action must be one of {SESSION_ACTIONS}", action=action)
    if target_session is not None and target_session.day_id != target_day.id:
        raise InvalidPosition("Target session does not belong to the target day", session_id=target_session.id)
    if target_session is not None and target_session.id == source.id:
        raise InvalidPosition("A session cannot target itself", session_id=source.id)

    if action == "switch":
        partner = target_session
        if partner is None:
            others = [s for s in target_day.sessions if s.id != source.id]
            if len(others) != 1:
                raise InvalidPosition("Switch needs a target session", day_id=target_day.id)
            partner = others[0]
        return SessionResolution(action="switch", switch_with=partner)

    if action == "copy":
        report = detect_session_conflict(target_day)
        if report.blocked:
            raise CapacityExceeded(
                f"Day already holds {MAX_SESSIONS_PER_DAY} sessions",
                day_id=target_day.id,
            )
        return SessionResolution(action="copy")

    if source.day_id == target_day.id and target_session is None:
        return SessionResolution(action="move", noop=True)

    report = detect_session_conflict(target_day, exclude_ids=[source.id])
    incoming = 0 if target_session is not None else 1
    if len(report.existing_summary) + incoming > MAX_SESSIONS_PER_DAY:
        raise CapacityExceeded(
            f"Day already holds {MAX_SESSIONS_PER_DAY} sessions",
            day_id=target_day.id,
        )
    if report.has_conflict and not confirm:
        raise ConflictRequiresConfirmation(
            "Target day already holds sessions",
            existing_summary=report.existing_summary,
            allowed_resolutions=report.allowed_resolutions,
            day_id=target_day.id,
        )
    return SessionResolution(action="move", replace_session=target_session)


def resolve_unit_placement(
    target_session: WorkoutSession,
    position: str,
    reference: Optional[MoveUnit],
    moving_ids: Iterable[int] = (),
    confirm: bool = False,
) -> UnitPlacement:
    if position not in MOVE_UNIT_POSITIONS:
        raise InvalidPosition(f"position must be one of {MOVE_UNIT_POSITIONS}", position=position)
    moving = set(moving_ids)
    ordered = [u for u in ordered_units(target_session) if u.id not in moving]

    if reference is None:
        if position != "after":
            raise InvalidPosition(f"'{position}' needs a reference move-unit", position=position)
        return UnitPlacement(remaining=ordered, index=len(ordered))

    if reference.id in moving:
        raise InvalidPosition("The reference move-unit is part of the moved batch", move_unit_id=reference.id)
    if reference.session_id != target_session.id or reference not in ordered:
        raise InvalidPosition("Reference move-unit is not in the target session", move_unit_id=reference.id)

    ref_index = ordered.index(reference)
    if position == "before":
        return UnitPlacement(remaining=ordered, index=ref_index)
    if position == "after":
        return UnitPlacement(remaining=ordered, index=ref_index + 1)

    report = detect_move_unit_conflict(target_session, position, reference)
    if report.has_conflict and not confirm:
        raise ConflictRequiresConfirmation(
            f"Move-unit {reference.letter} would be replaced",
            existing_summary=report.existing_summary,
            allowed_resolutions=report.allowed_resolutions,
            session_id=target_session.id,
        )
    remaining = [u for u in ordered if u.id != reference.id]
    return UnitPlacement(remaining=remaining, index=ref_index, replace_unit=reference)
