from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Request, Response

from app.api.deps import CurrentSession, enforce_rate_limit
from app.api.responses import Envelope, ok
from app.domain.models import LoginRequest
from app.infra import audit, rate_limit
from app.infra.auth import clear_session_cookie, create_access_token, session_from_token, set_session_cookie
from app.services.personel_service import PersonelService

router = APIRouter()


def get_personel_service() -> PersonelService:
    return PersonelService()


Service = Annotated[PersonelService, Depends(get_personel_service)]


def login_rate_limit(request: Request) -> None:
    if rate_limit.LOGIN_RATE_LIMIT_ENABLED:
        enforce_rate_limit(rate_limit.login_rate_limiter, request)


@router.post(
    "/login",
    response_model=Envelope[dict[str, Any]],
    dependencies=[Depends(login_rate_limit)],
)
def login(payload: LoginRequest, response: Response, service: Service) -> dict[str, Any]:
    personel = service.authenticate(payload.visible_id, payload.parola)
    token = create_access_token(
        user_id=personel.id,
        visible_id=personel.visible_id,
        display_name=f"{personel.ad} {personel.soyad}",
        role=str(personel.rol),
    )
    set_session_cookie(response, token)
    return ok({"user": session_from_token(token).to_public()})


@router.post("/logout", response_model=Envelope[dict[str, Any]])
def logout(session: CurrentSession, response: Response) -> dict[str, Any]:
    audit.log_logout(session)
    clear_session_cookie(response)
    return ok({"message": "Çıkış yapıldı"})


@router.get("/me", response_model=Envelope[dict[str, Any]])
def me(session: CurrentSession) -> dict[str, Any]:
    return ok({"user": session.to_public()})
