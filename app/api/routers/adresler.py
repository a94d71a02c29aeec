from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, status

from app.api.deps import CurrentSession, ListParams
from app.api.responses import Envelope, PagedEnvelope, ok, paged
from app.domain.models import AdresBulkCreate, AdresCreate, AdresRead, AdresUpdate
from app.services.adres_service import AdresService

router = APIRouter()


def get_adres_service() -> AdresService:
    return AdresService()


Service = Annotated[AdresService, Depends(get_adres_service)]


@router.get("", response_model=PagedEnvelope[AdresRead])
def list_adresler(
    session: CurrentSession,
    service: Service,
    query: ListParams,
    kisi_id: str | None = None,
    mahalle_id: str | None = None,
) -> dict[str, Any]:
    page = service.list_page(query, filters={"kisi_id": kisi_id, "mahalle_id": mahalle_id}, user=session)
    return paged(
        [AdresRead.model_validate(item) for item in page.items],
        page=page.page,
        limit=page.limit,
        total=page.total,
    )


@router.post("", response_model=Envelope[AdresRead], status_code=status.HTTP_201_CREATED)
def create_adres(payload: AdresCreate, session: CurrentSession, service: Service) -> dict[str, Any]:
    return ok(AdresRead.model_validate(service.create(payload, user=session)))


@router.post("/bulk", response_model=Envelope[list[AdresRead]], status_code=status.HTTP_201_CREATED)
def bulk_create_adresler(payload: AdresBulkCreate, session: CurrentSession, service: Service) -> dict[str, Any]:
    return ok([AdresRead.model_validate(item) for item in service.bulk_create(payload, user=session)])


@router.get("/{adres_id}", response_model=Envelope[AdresRead])
def get_adres(adres_id: str, session: CurrentSession, service: Service) -> dict[str, Any]:
    return ok(AdresRead.model_validate(service.get(adres_id, user=session)))


@router.put("/{adres_id}", response_model=Envelope[AdresRead])
def update_adres(adres_id: str, payload: AdresUpdate, session: CurrentSession, service: Service) -> dict[str, Any]:
    return ok(AdresRead.model_validate(service.update(adres_id, payload, user=session)))


@router.delete("/{adres_id}", response_model=Envelope[dict[str, str]])
def delete_adres(adres_id: str, session: CurrentSession, service: Service) -> dict[str, Any]:
    service.delete(adres_id, user=session)
    return ok({"message": "Adres silindi"})
