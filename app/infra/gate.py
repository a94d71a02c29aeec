from __future__ import annotations

import logging
from urllib.parse import urlencode

import jwt
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import RedirectResponse, Response

from app.infra.auth import SESSION_COOKIE_NAME, decode_access_token
from app.infra.request_context import set_request_context

logger = logging.getLogger(__name__)

LOGIN_PATH = "/login"
PUBLIC_PATH_PREFIXES = ("/login", "/api/auth/login")
STATIC_PATH_PREFIXES = ("/static", "/favicon")
PROBE_PATHS = frozenset({"/healthz", "/readyz"})


def is_public_path(path: str) -> bool:
    if path in PROBE_PATHS:
        return True
    if any(path.startswith(prefix) for prefix in PUBLIC_PATH_PREFIXES):
        return True
    if any(path.startswith(prefix) for prefix in STATIC_PATH_PREFIXES):
        return True
    last_segment = path.rsplit("/", 1)[-1]
    return "." in last_segment


def login_redirect_url(path: str) -> str:
    return f"{LOGIN_PATH}?{urlencode({'redirect': path})}"


class RequestGateMiddleware(BaseHTTPMiddleware):
    """Cookie check in front of every route.

    Only answers "was the token valid at gate time"; handlers re-derive the
    identity from the same cookie.

    Client address and user agent are recorded for the audit trail before
    any route runs.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path
        set_request_context(request, None)
        if is_public_path(path):
            return await call_next(request)

        token = request.cookies.get(SESSION_COOKIE_NAME)
        if not token:
            return RedirectResponse(login_redirect_url(path), status_code=307)

        try:
            decode_access_token(token)
        except (jwt.PyJWTError, ValueError) as exc:
            logger.info("session token rejected", extra={"context": {"path": path, "reason": type(exc).__name__}})
            response = RedirectResponse(login_redirect_url(path), status_code=307)
            response.delete_cookie(key=SESSION_COOKIE_NAME, path="/")
            return response

        return await call_next(request)
