from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from starlette.responses import Response

JWT_SECRET = os.getenv("JWT_SECRET", "dev-secret-change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
SESSION_MAX_AGE_SECONDS = int(os.getenv("SESSION_MAX_AGE_SECONDS", str(60 * 60 * 24)))
APP_ENV = os.getenv("APP_ENV", "development")

SESSION_COOKIE_NAME = "auth-token"


def is_production() -> bool:
    return APP_ENV == "production"


@dataclass(frozen=True)
class UserSession:
    subject_id: str
    visible_id: str
    display_name: str
    role: str
    issued_at: datetime
    expires_at: datetime

    def to_public(self) -> dict[str, Any]:
        return {
            "id": self.subject_id,
            "visible_id": self.visible_id,
            "display_name": self.display_name,
            "role": self.role,
            "issued_at": self.issued_at.isoformat(),
            "expires_at": self.expires_at.isoformat(),
        }


def create_access_token(
    *,
    user_id: str,
    visible_id: str,
    display_name: str,
    role: str,
    expires_seconds: int | None = None,
) -> str:
    now = datetime.now(UTC)
    expire_delta = timedelta(seconds=expires_seconds or SESSION_MAX_AGE_SECONDS)
    payload: dict[str, Any] = {
        "sub": user_id,
        "vid": visible_id,
        "name": display_name,
        "role": role,
        "iat": int(now.timestamp()),
        "exp": int((now + expire_delta).timestamp()),
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> dict[str, Any]:
    decoded = jwt.decode(
        token,
        JWT_SECRET,
        algorithms=[JWT_ALGORITHM],
        options={"require": ["exp", "iat", "sub"]},
    )
    if not isinstance(decoded, dict):
        raise ValueError("Invalid token payload")
    return decoded


def session_from_token(token: str) -> UserSession:
    """Verify ``token`` and build the session it carries.

    Raises ``jwt.PyJWTError`` for bad signatures or expiry and ``ValueError``
    when required claims are missing.
    """
    claims = decode_access_token(token)
    for key in ("sub", "vid", "name", "role"):
        if not isinstance(claims.get(key), str):
            raise ValueError(f"Invalid token claim: {key}")
    return UserSession(
        subject_id=claims["sub"],
        visible_id=claims["vid"],
        display_name=claims["name"],
        role=claims["role"],
        issued_at=datetime.fromtimestamp(int(claims["iat"]), UTC),
        expires_at=datetime.fromtimestamp(int(claims["exp"]), UTC),
    )


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=token,
        httponly=True,
        secure=is_production(),
        samesite="lax",
        max_age=SESSION_MAX_AGE_SECONDS,
        path="/",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(key=SESSION_COOKIE_NAME, path="/")
