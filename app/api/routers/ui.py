from __future__ import annotations

import secrets
from dataclasses import asdict
from pathlib import Path
from urllib.parse import urlparse

import jwt
from fastapi import APIRouter, Form, Query, Request, status
from fastapi.responses import RedirectResponse, Response
from fastapi.templating import Jinja2Templates

from app.api.deps import enforce_rate_limit
from app.domain.errors import AuthenticationError, RateLimitError
from app.domain.page_registry import STATIC_PAGES
from app.infra import audit, rate_limit
from app.infra.auth import (
    SESSION_COOKIE_NAME,
    SESSION_MAX_AGE_SECONDS,
    UserSession,
    clear_session_cookie,
    create_access_token,
    is_production,
    session_from_token,
    set_session_cookie,
)
from app.infra.gate import LOGIN_PATH
from app.services.personel_service import PersonelService
from app.services.workspace_service import PreferenceStorage, WorkspaceService

router = APIRouter()
templates = Jinja2Templates(directory=str(Path("app") / "web" / "templates"))

CSRF_COOKIE_NAME = "altay_csrf"
DEFAULT_REDIRECT_PATH = "/"

# Sidebar entries: top-level pages only.
NAV_PATHS = (
    "/",
    "/kisiler",
    "/numaralar",
    "/araclar",
    "/tanitimlar",
    "/operasyonlar",
    "/takipler",
    "/alarmlar",
    "/lokasyonlar",
    "/marka-model",
    "/personel",
    "/loglar",
    "/ayarlar",
)


def _sanitize_redirect(redirect: str | None) -> str:
    if not redirect:
        return DEFAULT_REDIRECT_PATH
    parsed = urlparse(redirect)
    if parsed.scheme or parsed.netloc:
        return DEFAULT_REDIRECT_PATH
    if not parsed.path.startswith("/") or parsed.path.startswith("//"):
        return DEFAULT_REDIRECT_PATH
    if parsed.path.startswith(LOGIN_PATH):
        return DEFAULT_REDIRECT_PATH
    sanitized = parsed.path
    if parsed.query:
        sanitized = f"{sanitized}?{parsed.query}"
    return sanitized


def _session_from_cookie(request: Request) -> UserSession | None:
    token = request.cookies.get(SESSION_COOKIE_NAME)
    if not token:
        return None
    try:
        return session_from_token(token)
    except (jwt.PyJWTError, ValueError):
        return None


def _new_csrf_token() -> str:
    return secrets.token_urlsafe(24)


def _set_csrf_cookie(response: Response, csrf_token: str) -> None:
    response.set_cookie(
        key=CSRF_COOKIE_NAME,
        value=csrf_token,
        httponly=False,
        secure=is_production(),
        samesite="strict",
        max_age=SESSION_MAX_AGE_SECONDS,
        path="/",
    )


def _csrf_valid(request: Request, csrf_token: str) -> bool:
    csrf_cookie = request.cookies.get(CSRF_COOKIE_NAME)
    if not csrf_cookie or not csrf_token:
        return False
    return secrets.compare_digest(csrf_cookie, csrf_token)


def _render_login(
    request: Request,
    *,
    redirect: str,
    visible_id: str = "",
    error_message: str | None = None,
    status_code: int = status.HTTP_200_OK,
) -> Response:
    csrf_token = request.cookies.get(CSRF_COOKIE_NAME) or _new_csrf_token()
    response = templates.TemplateResponse(
        request=request,
        name="login.html",
        context={
            "redirect": redirect,
            "visible_id": visible_id,
            "error_message": error_message,
            "csrf_token": csrf_token,
        },
        status_code=status_code,
    )
    _set_csrf_cookie(response, csrf_token)
    return response


@router.get("/login")
def ui_login(request: Request, redirect: str | None = Query(default=None)) -> Response:
    safe_redirect = _sanitize_redirect(redirect)
    if _session_from_cookie(request) is not None:
        return RedirectResponse(url=safe_redirect, status_code=status.HTTP_303_SEE_OTHER)
    return _render_login(request, redirect=safe_redirect)


@router.post("/login")
def ui_login_submit(
    request: Request,
    visible_id: str = Form(...),
    parola: str = Form(...),
    csrf_token: str = Form(...),
    redirect: str = Form(DEFAULT_REDIRECT_PATH),
) -> Response:
    safe_redirect = _sanitize_redirect(redirect)
    if not _csrf_valid(request, csrf_token):
        return _render_login(
            request,
            redirect=safe_redirect,
            visible_id=visible_id,
            error_message="Geçersiz form, lütfen tekrar deneyin",
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    try:
        if rate_limit.LOGIN_RATE_LIMIT_ENABLED:
            enforce_rate_limit(rate_limit.login_rate_limiter, request)
        personel = PersonelService().authenticate(visible_id.strip(), parola)
    except (AuthenticationError, RateLimitError) as exc:
        return _render_login(
            request,
            redirect=safe_redirect,
            visible_id=visible_id,
            error_message=exc.message,
            status_code=exc.status_code,
        )

    token = create_access_token(
        user_id=personel.id,
        visible_id=personel.visible_id,
        display_name=f"{personel.ad} {personel.soyad}",
        role=str(personel.rol),
    )
    response = RedirectResponse(url=safe_redirect, status_code=status.HTTP_303_SEE_OTHER)
    set_session_cookie(response, token)
    _set_csrf_cookie(response, _new_csrf_token())
    return response


@router.post("/logout")
def ui_logout(request: Request, csrf_token: str = Form(...)) -> Response:
    response = RedirectResponse(url=LOGIN_PATH, status_code=status.HTTP_303_SEE_OTHER)
    if not _csrf_valid(request, csrf_token):
        return response
    session = _session_from_cookie(request)
    if session is not None:
        audit.log_logout(session)
    clear_session_cookie(response)
    _set_csrf_cookie(response, _new_csrf_token())
    return response


@router.get("/")
def ui_workspace(request: Request) -> Response:
    session = _session_from_cookie(request)
    if session is None:
        return RedirectResponse(url=LOGIN_PATH, status_code=status.HTTP_303_SEE_OTHER)

    service = WorkspaceService(session.subject_id, PreferenceStorage(session.subject_id))
    workspace = service.load()
    csrf_token = request.cookies.get(CSRF_COOKIE_NAME) or _new_csrf_token()
    response = templates.TemplateResponse(
        request=request,
        name="workspace.html",
        context={
            "user": session.to_public(),
            "nav_items": [{"path": path, **asdict(STATIC_PAGES[path])} for path in NAV_PATHS],
            "tabs": workspace.snapshot()["tabs"],
            "active_tab_id": workspace.active_tab_id,
            "preferences": service.preferences().model_dump(),
            "csrf_token": csrf_token,
        },
    )
    _set_csrf_cookie(response, csrf_token)
    return response
