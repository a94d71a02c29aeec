from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, status

from app.api.deps import CurrentSession, ListParams
from app.api.responses import Envelope, PagedEnvelope, ok, paged
from app.domain.models import TakipCreate, TakipDurum, TakipRead, TakipUpdate
from app.services.takip_service import TakipService

router = APIRouter()


def get_takip_service() -> TakipService:
    return TakipService()


Service = Annotated[TakipService, Depends(get_takip_service)]


@router.get("", response_model=PagedEnvelope[TakipRead])
def list_takipler(
    session: CurrentSession,
    service: Service,
    query: ListParams,
    gsm_id: str | None = None,
    durum: TakipDurum | None = None,
    is_active: bool | None = None,
) -> dict[str, Any]:
    page = service.list_page(
        query,
        filters={"gsm_id": gsm_id, "durum": durum, "is_active": is_active},
        user=session,
    )
    return paged(
        [TakipRead.model_validate(item) for item in page.items],
        page=page.page,
        limit=page.limit,
        total=page.total,
    )


@router.post("", response_model=Envelope[TakipRead], status_code=status.HTTP_201_CREATED)
def create_takip(payload: TakipCreate, session: CurrentSession, service: Service) -> dict[str, Any]:
    return ok(TakipRead.model_validate(service.create(payload, user=session)))


@router.get("/{takip_id}", response_model=Envelope[TakipRead])
def get_takip(takip_id: str, session: CurrentSession, service: Service) -> dict[str, Any]:
    return ok(TakipRead.model_validate(service.get(takip_id, user=session)))


@router.put("/{takip_id}", response_model=Envelope[TakipRead])
def update_takip(takip_id: str, payload: TakipUpdate, session: CurrentSession, service: Service) -> dict[str, Any]:
    return ok(TakipRead.model_validate(service.update(takip_id, payload, user=session)))


@router.delete("/{takip_id}", response_model=Envelope[dict[str, str]])
def delete_takip(takip_id: str, session: CurrentSession, service: Service) -> dict[str, Any]:
    service.delete(takip_id, user=session)
    return ok({"message": "Takip silindi"})
