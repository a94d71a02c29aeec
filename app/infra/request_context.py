from __future__ import annotations

from contextvars import ContextVar
from dataclasses import dataclass

from starlette.requests import Request

from app.infra.auth import UserSession


@dataclass(frozen=True)
class RequestMeta:
    ip_address: str | None = None
    user_agent: str | None = None


session_ctx: ContextVar[UserSession | None] = ContextVar("user_session", default=None)
request_meta_ctx: ContextVar[RequestMeta] = ContextVar("request_meta", default=RequestMeta())


def client_ip(request: Request) -> str | None:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    return None


def set_request_context(request: Request, session: UserSession | None) -> None:
    session_ctx.set(session)
    request_meta_ctx.set(
        RequestMeta(
            ip_address=client_ip(request),
            user_agent=request.headers.get("user-agent"),
        )
    )


def get_current_user_session() -> UserSession | None:
    return session_ctx.get()


def get_request_meta() -> RequestMeta:
    return request_meta_ctx.get()
