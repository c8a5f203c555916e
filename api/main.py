from __future__ import annotations

import logging
import time
from typing import Callable

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from api.routes import router
from core.config import get_settings
from core.errors import (
    CapacityExceeded,
    ConflictRequiresConfirmation,
    Forbidden,
    InvalidPosition,
    MalformedTemplate,
    NotFound,
    PlanStructureError,
)
from core.logging_config import new_request_id, reset_request_id, set_request_id, setup_logging

logger = logging.getLogger(__name__)

ERROR_STATUS: dict[type[PlanStructureError], int] = {
    NotFound: 404,
    Forbidden: 403,
    CapacityExceeded: 409,
    ConflictRequiresConfirmation: 409,
    InvalidPosition: 422,
    MalformedTemplate: 422,
}


def status_for(exc: PlanStructureError) -> int:
    for cls in type(exc).__mro__:
        if cls in ERROR_STATUS:
            return ERROR_STATUS[cls]
    return 400


def create_app() -> FastAPI:
    settings = get_settings()
    setup_logging(settings.log_level)

    app = FastAPI(title="Training Plan Structure API", version="1.0.0")
    app.include_router(router)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(PlanStructureError)
    async def plan_structure_error_handler(request: Request, exc: PlanStructureError) -> JSONResponse:
        status_code = status_for(exc)
        logger.info(
            "plan_structure_error",
            extra={"code": exc.code, "status_code": status_code, "path": request.url.path},
        )
        return JSONResponse(status_code=status_code, content={"detail": exc.to_detail()})

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
        logger.warning("structure_commit_conflict", extra={"path": request.url.path})
        return JSONResponse(
            status_code=409,
            content={
                "detail": {
                    "code": ConflictRequiresConfirmation.code,
                    "message": "The target changed while the operation was running; re-check and retry",
                }
            },
        )

    @app.middleware("http")
    async def request_context_and_logging(request: Request, call_next: Callable) -> Response:
        header_name = settings.request_id_header_name or "X-Request-ID"
        request_id = (request.headers.get(header_name) or "").strip() or new_request_id()
        token = set_request_id(request_id)
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "http_request_error",
                extra={"method": request.method, "path": request.url.path, "status_code": 500},
            )
            raise
        else:
            response.headers[header_name] = request_id
            logger.info(
                "http_request",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": response.status_code,
                    "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                },
            )
            return response
        finally:
            reset_request_id(token)

    return app


app = create_app()
