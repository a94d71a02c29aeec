from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, status

from app.api.deps import CurrentSession, ListParams
from app.api.responses import Envelope, PagedEnvelope, ok, paged
from app.domain.models import GsmCreate, GsmRead, GsmUpdate
from app.services.gsm_service import GsmService

router = APIRouter()


def get_gsm_service() -> GsmService:
    return GsmService()


Service = Annotated[GsmService, Depends(get_gsm_service)]


@router.get("", response_model=PagedEnvelope[GsmRead])
def list_gsmler(
    session: CurrentSession,
    service: Service,
    query: ListParams,
    kisi_id: str | None = None,
) -> dict[str, Any]:
    page = service.list_page(query, filters={"kisi_id": kisi_id}, user=session)
    return paged(
        [GsmRead.model_validate(item) for item in page.items],
        page=page.page,
        limit=page.limit,
        total=page.total,
    )


@router.post("", response_model=Envelope[GsmRead], status_code=status.HTTP_201_CREATED)
def create_gsm(payload: GsmCreate, session: CurrentSession, service: Service) -> dict[str, Any]:
    return ok(GsmRead.model_validate(service.create(payload, user=session)))


@router.get("/{gsm_id}", response_model=Envelope[GsmRead])
def get_gsm(gsm_id: str, session: CurrentSession, service: Service) -> dict[str, Any]:
    return ok(GsmRead.model_validate(service.get(gsm_id, user=session)))


@router.put("/{gsm_id}", response_model=Envelope[GsmRead])
def update_gsm(gsm_id: str, payload: GsmUpdate, session: CurrentSession, service: Service) -> dict[str, Any]:
    return ok(GsmRead.model_validate(service.update(gsm_id, payload, user=session)))


@router.delete("/{gsm_id}", response_model=Envelope[dict[str, str]])
def delete_gsm(gsm_id: str, session: CurrentSession, service: Service) -> dict[str, Any]:
    service.delete(gsm_id, user=session)
    return ok({"message": "GSM silindi"})
