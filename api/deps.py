from __future__ import annotations

from fastapi import HTTPException, Request, status

from core.config import get_settings


def get_caller_id(request: Request) -> int:
    """Caller id forwarded by the upstream gateway."""
    header_name = get_settings().caller_header_name
    raw = (request.headers.get(header_name) or "").strip()
    if not raw:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": "UNAUTHENTICATED", "message": f"Missing {header_name} header"},
        )
    try:
        caller_id = int(raw)
    except ValueError:
        caller_id = 0
    if caller_id <= 0:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": "UNAUTHENTICATED", "message": f"Invalid {header_name} header"},
        )
    return caller_id
