"""Error kinds raised by the plan structure engine.

Every error is local to a single operation. Callers surface ``code`` and
``message``; only ``ConflictRequiresConfirmation`` expects a follow-up call
with an explicit resolution.
"""

from __future__ import annotations

from typing import Any


class PlanStructureError(Exception):
    code = "PLAN_STRUCTURE_ERROR"

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def to_detail(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, **self.context}


class NotFound(PlanStructureError):
    code = "NOT_FOUND"


class Forbidden(PlanStructureError):
    code = "FORBIDDEN"


class CapacityExceeded(PlanStructureError):
    code = "CAPACITY_EXCEEDED"


class ConflictRequiresConfirmation(PlanStructureError):
    code = "CONFLICT_REQUIRES_CONFIRMATION"

    def __init__(
        self,
        message: str,
        existing_summary: list[dict[str, Any]] | None = None,
        allowed_resolutions: tuple[str, ...] | list[str] = (),
        **context: Any,
    ) -> None:
        super().__init__(
            message,
            existing_summary=list(existing_summary or []),
            allowed_resolutions=list(allowed_resolutions),
            **context,
        )
        self.existing_summary = list(existing_summary or [])
        self.allowed_resolutions = tuple(allowed_resolutions)


class InvalidPosition(PlanStructureError):
    code = "INVALID_POSITION"


class MalformedTemplate(PlanStructureError):
    code = "MALFORMED_TEMPLATE"
