from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, status

from app.api.deps import CurrentSession, ListParams
from app.api.responses import Envelope, PagedEnvelope, ok, paged
from app.domain.models import NotCreate, NotRead, NotUpdate
from app.services.not_service import NotService

router = APIRouter()


def get_not_service() -> NotService:
    return NotService()


Service = Annotated[NotService, Depends(get_not_service)]


@router.get("", response_model=PagedEnvelope[NotRead])
def list_notlar(
    session: CurrentSession,
    service: Service,
    query: ListParams,
    kisi_id: str | None = None,
) -> dict[str, Any]:
    page = service.list_page(query, filters={"kisi_id": kisi_id}, user=session)
    return paged(
        [NotRead.model_validate(item) for item in page.items],
        page=page.page,
        limit=page.limit,
        total=page.total,
    )


@router.post("", response_model=Envelope[NotRead], status_code=status.HTTP_201_CREATED)
def create_not(payload: NotCreate, session: CurrentSession, service: Service) -> dict[str, Any]:
    return ok(NotRead.model_validate(service.create(payload, user=session)))


@router.get("/{not_id}", response_model=Envelope[NotRead])
def get_not(not_id: str, session: CurrentSession, service: Service) -> dict[str, Any]:
    return ok(NotRead.model_validate(service.get(not_id, user=session)))


@router.put("/{not_id}", response_model=Envelope[NotRead])
def update_not(not_id: str, payload: NotUpdate, session: CurrentSession, service: Service) -> dict[str, Any]:
    return ok(NotRead.model_validate(service.update(not_id, payload, user=session)))


@router.delete("/{not_id}", response_model=Envelope[dict[str, str]])
def delete_not(not_id: str, session: CurrentSession, service: Service) -> dict[str, Any]:
    service.delete(not_id, user=session)
    return ok({"message": "Not silindi"})
