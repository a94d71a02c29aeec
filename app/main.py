from __future__ import annotations

import logging
import math
import time
from pathlib import Path
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.responses import error_response
from app.api.routers import (
    adresler,
    alarmlar,
    araclar,
    auth,
    etkinlikler,
    gsmler,
    kisiler,
    loglar,
    lokasyon,
    marka_model,
    notlar,
    personel,
    takipler,
    tercihler,
    ui,
    workspace,
)
from app.domain.errors import AppError, InternalError, RateLimitError
from app.infra.auth import is_production
from app.infra.db import check_db_ready
from app.infra.gate import RequestGateMiddleware
from app.infra.logging_config import configure_logging
from app.infra.redis_state import check_redis_ready
from app.infra.request_context import get_current_user_session

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(
    title="altay",
    description="ALTAY back-office: kişiler, takipler, alarmlar, saha kayıtları and the tab workspace.",
    version="1.0.0",
)

app.add_middleware(RequestGateMiddleware)

app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(kisiler.router, prefix="/api/kisiler", tags=["kisiler"])
app.include_router(gsmler.router, prefix="/api/gsmler", tags=["gsmler"])
app.include_router(notlar.router, prefix="/api/notlar", tags=["notlar"])
app.include_router(adresler.router, prefix="/api/adresler", tags=["adresler"])
app.include_router(lokasyon.router, prefix="/api/lokasyon", tags=["lokasyon"])
app.include_router(marka_model.router, prefix="/api/marka-model", tags=["marka-model"])
app.include_router(araclar.router, prefix="/api/araclar", tags=["araclar"])
app.include_router(etkinlikler.tanitim_router, prefix="/api/tanitimlar", tags=["tanitimlar"])
app.include_router(etkinlikler.operasyon_router, prefix="/api/operasyonlar", tags=["operasyonlar"])
app.include_router(takipler.router, prefix="/api/takipler", tags=["takipler"])
app.include_router(alarmlar.router, prefix="/api/alarmlar", tags=["alarmlar"])
app.include_router(personel.router, prefix="/api/personel", tags=["personel"])
app.include_router(loglar.router, prefix="/api/loglar", tags=["loglar"])
app.include_router(tercihler.router, prefix="/api/tercihler", tags=["tercihler"])
app.include_router(workspace.router, prefix="/api/workspace", tags=["workspace"])
app.include_router(ui.router, tags=["ui"])

static_dir = Path("app") / "web" / "static"
app.mount("/static", StaticFiles(directory=str(static_dir)), name="static")


def _validation_details(errors: list[dict[str, Any]]) -> dict[str, Any]:
    field_errors: dict[str, list[str]] = {}
    form_errors: list[str] = []
    for error in errors:
        message = str(error.get("msg", ""))
        if message.startswith("Value error, "):
            message = message[len("Value error, ") :]
        loc = [part for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        if loc:
            field_errors.setdefault(str(loc[-1]), []).append(message)
        else:
            form_errors.append(message)
    return {"fieldErrors": field_errors, "formErrors": form_errors}


@app.exception_handler(AppError)
async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
    headers = None
    if isinstance(exc, RateLimitError):
        headers = {"Retry-After": str(max(0, math.ceil(exc.reset - time.time())))}
    if isinstance(exc, InternalError):
        logger.error("internal error", extra={"context": {"path": request.url.path, "error": exc.message}})
    return error_response(
        status_code=exc.status_code,
        message=exc.message,
        code=exc.code,
        details=exc.details,
        headers=headers,
    )


@app.exception_handler(RequestValidationError)
async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    return error_response(
        status_code=400,
        message="Geçersiz veri girişi",
        code="VALIDATION_ERROR",
        details=_validation_details(list(exc.errors())),
    )


@app.exception_handler(StarletteHTTPException)
async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return error_response(status_code=exc.status_code, message=str(exc.detail), headers=exc.headers)


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    session = get_current_user_session()
    logger.exception(
        "unhandled error",
        extra={
            "context": {
                "path": request.url.path,
                "method": request.method,
                "actor_id": session.subject_id if session else None,
            }
        },
    )
    message = InternalError.default_message if is_production() else str(exc) or InternalError.default_message
    return error_response(status_code=500, message=message, code=InternalError.code)


@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/readyz", response_model=None)
def readyz() -> dict[str, object] | JSONResponse:
    db_ok = check_db_ready()
    redis_ok = check_redis_ready()
    checks = {
        "db": "ok" if db_ok else "fail",
        "redis": "ok" if redis_ok else "fail",
    }
    if not (db_ok and redis_ok):
        return error_response(
            status_code=503,
            message="not_ready",
            code="NOT_READY",
            details={"status": "not_ready", "checks": checks},
        )
    return {"status": "ready", "checks": checks}
