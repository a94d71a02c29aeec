from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, status

from app.api.deps import CurrentSession, ListParams
from app.api.responses import Envelope, PagedEnvelope, ok, paged
from app.domain.models import (
    AracCreate,
    AracKisiCreate,
    AracKisiRead,
    AracRead,
    AracRenk,
    AracUpdate,
)
from app.services.arac_service import AracService

router = APIRouter()


def get_arac_service() -> AracService:
    return AracService()


Service = Annotated[AracService, Depends(get_arac_service)]


@router.get("", response_model=PagedEnvelope[AracRead])
def list_araclar(
    session: CurrentSession,
    service: Service,
    query: ListParams,
    model_id: str | None = None,
    renk: AracRenk | None = None,
) -> dict[str, Any]:
    page = service.list_page(query, filters={"model_id": model_id, "renk": renk}, user=session)
    return paged(
        [AracRead.model_validate(item) for item in page.items],
        page=page.page,
        limit=page.limit,
        total=page.total,
    )


@router.post("", response_model=Envelope[AracRead], status_code=status.HTTP_201_CREATED)
def create_arac(payload: AracCreate, session: CurrentSession, service: Service) -> dict[str, Any]:
    return ok(AracRead.model_validate(service.create(payload, user=session)))


@router.get("/{arac_id}", response_model=Envelope[AracRead])
def get_arac(arac_id: str, session: CurrentSession, service: Service) -> dict[str, Any]:
    return ok(AracRead.model_validate(service.get(arac_id, user=session)))


@router.put("/{arac_id}", response_model=Envelope[AracRead])
def update_arac(arac_id: str, payload: AracUpdate, session: CurrentSession, service: Service) -> dict[str, Any]:
    return ok(AracRead.model_validate(service.update(arac_id, payload, user=session)))


@router.delete("/{arac_id}", response_model=Envelope[dict[str, str]])
def delete_arac(arac_id: str, session: CurrentSession, service: Service) -> dict[str, Any]:
    service.delete(arac_id, user=session)
    return ok({"message": "Araç silindi"})


@router.get("/{arac_id}/kisiler", response_model=Envelope[dict[str, list[str]]])
def list_arac_kisileri(arac_id: str, session: CurrentSession, service: Service) -> dict[str, Any]:
    return ok({"kisi_ids": service.linked_kisi_ids(arac_id)})


@router.post(
    "/{arac_id}/kisiler",
    response_model=Envelope[AracKisiRead],
    status_code=status.HTTP_201_CREATED,
)
def add_arac_kisi(
    arac_id: str,
    payload: AracKisiCreate,
    session: CurrentSession,
    service: Service,
) -> dict[str, Any]:
    link = service.add_kisi(arac_id, payload.kisi_id, payload.aciklama, user=session)
    return ok(AracKisiRead.model_validate(link))


@router.delete("/{arac_id}/kisiler/{kisi_id}", response_model=Envelope[dict[str, str]])
def remove_arac_kisi(arac_id: str, kisi_id: str, session: CurrentSession, service: Service) -> dict[str, Any]:
    service.remove_kisi(arac_id, kisi_id, user=session)
    return ok({"message": "Bağlantı kaldırıldı"})
