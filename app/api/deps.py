from __future__ import annotations

from collections.abc import Callable
from typing import Annotated

import jwt
from fastapi import Depends, Query, Request

from app.domain.errors import AuthenticationError, AuthorizationError, RateLimitError
from app.domain.models import ListQuery
from app.domain.permissions import has_role
from app.infra.auth import SESSION_COOKIE_NAME, UserSession, session_from_token
from app.infra.rate_limit import (
    API_RATE_LIMIT_ENABLED,
    RateLimiter,
    api_rate_limiter,
    client_identifier,
    heavy_rate_limiter,
    mutation_rate_limiter,
)
from app.infra.request_context import set_request_context


def get_current_session(request: Request) -> UserSession:
    token = request.cookies.get(SESSION_COOKIE_NAME)
    if not token:
        raise AuthenticationError()
    try:
        session = session_from_token(token)
    except (jwt.PyJWTError, ValueError) as exc:
        raise AuthenticationError("Oturum geçersiz veya süresi dolmuş") from exc
    request.state.user_session = session
    set_request_context(request, session)
    return session


CurrentSession = Annotated[UserSession, Depends(get_current_session)]


def require_role(*roles: str) -> Callable[[UserSession], UserSession]:
    def _checker(session: CurrentSession) -> UserSession:
        if not has_role(session, *roles):
            raise AuthorizationError()
        return session

    return _checker


def list_query(
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
    search: str | None = None,
    sort_by: Annotated[str | None, Query(alias="sortBy")] = None,
    sort_order: Annotated[str, Query(alias="sortOrder", pattern="^(asc|desc)$")] = "asc",
) -> ListQuery:
    return ListQuery(page=page, limit=limit, search=search, sort_by=sort_by, sort_order=sort_order)


ListParams = Annotated[ListQuery, Depends(list_query)]


def enforce_rate_limit(limiter: RateLimiter, request: Request) -> None:
    result = limiter.limit(client_identifier(request))
    if not result.success:
        raise RateLimitError(limit=result.limit, remaining=result.remaining, reset=result.reset)


def rate_limited(limiter: RateLimiter, *, enabled: bool = API_RATE_LIMIT_ENABLED) -> Callable[[Request], None]:
    def _limiter(request: Request) -> None:
        if enabled:
            enforce_rate_limit(limiter, request)

    return _limiter


api_rate_limit = rate_limited(api_rate_limiter)
heavy_rate_limit = rate_limited(heavy_rate_limiter)
mutation_rate_limit = rate_limited(mutation_rate_limiter)
