from __future__ import annotations

import math
from typing import Any, Generic, TypeVar

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from app.domain.models import Pagination, now_utc

T = TypeVar("T")


class Envelope(BaseModel, Generic[T]):
    data: T
    timestamp: str


class PagedEnvelope(BaseModel, Generic[T]):
    data: list[T]
    pagination: Pagination
    timestamp: str


def iso_timestamp() -> str:
    """UTC time in the `Z` form shared by every envelope."""
    return now_utc().isoformat().replace("+00:00", "Z")


def ok(data: Any) -> dict[str, Any]:
    return {"data": data, "timestamp": iso_timestamp()}


def paged(items: list[Any], *, page: int, limit: int, total: int) -> dict[str, Any]:
    return {
        "data": items,
        "pagination": build_pagination(page=page, limit=limit, total=total),
        "timestamp": iso_timestamp(),
    }


def build_pagination(*, page: int, limit: int, total: int) -> Pagination:
    return Pagination(page=page, limit=limit, total=total, totalPages=math.ceil(total / limit) if limit else 0)


def error_response(
    *,
    status_code: int,
    message: str,
    code: str | None = None,
    details: Any = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body: dict[str, Any] = {"error": message, "timestamp": iso_timestamp()}
    if code is not None:
        body["code"] = code
    if details is not None:
        body["details"] = details
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body), headers=headers)
