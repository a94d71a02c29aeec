from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, status

from app.api.deps import CurrentSession, ListParams, mutation_rate_limit
from app.api.responses import Envelope, PagedEnvelope, ok, paged
from app.domain.models import (
    BatchArchiveRequest,
    BatchDeleteRequest,
    BatchOperationResult,
    KisiCreate,
    KisiRead,
    KisiTip,
    KisiUpdate,
)
from app.services.kisi_service import KisiService

router = APIRouter()


def get_kisi_service() -> KisiService:
    return KisiService()


Service = Annotated[KisiService, Depends(get_kisi_service)]


@router.get("", response_model=PagedEnvelope[KisiRead])
def list_kisiler(
    session: CurrentSession,
    service: Service,
    query: ListParams,
    tip: KisiTip | None = None,
    is_archived: bool = False,
) -> dict[str, Any]:
    page = service.list_page(query, filters={"tip": tip, "is_archived": is_archived}, user=session)
    return paged(
        [KisiRead.model_validate(item) for item in page.items],
        page=page.page,
        limit=page.limit,
        total=page.total,
    )


@router.post("", response_model=Envelope[KisiRead], status_code=status.HTTP_201_CREATED)
def create_kisi(payload: KisiCreate, session: CurrentSession, service: Service) -> dict[str, Any]:
    return ok(KisiRead.model_validate(service.create(payload, user=session)))


@router.delete(
    "/batch",
    response_model=Envelope[BatchOperationResult],
    dependencies=[Depends(mutation_rate_limit)],
)
def batch_delete_kisiler(payload: BatchDeleteRequest, session: CurrentSession, service: Service) -> dict[str, Any]:
    return ok(service.batch_delete(payload.ids, user=session))


@router.patch(
    "/batch",
    response_model=Envelope[BatchOperationResult],
    dependencies=[Depends(mutation_rate_limit)],
)
def batch_archive_kisiler(payload: BatchArchiveRequest, session: CurrentSession, service: Service) -> dict[str, Any]:
    return ok(service.batch_archive(payload.ids, payload.is_archived, user=session))


@router.get("/{kisi_id}", response_model=Envelope[KisiRead])
def get_kisi(kisi_id: str, session: CurrentSession, service: Service) -> dict[str, Any]:
    return ok(KisiRead.model_validate(service.get(kisi_id, user=session)))


@router.put("/{kisi_id}", response_model=Envelope[KisiRead])
def update_kisi(kisi_id: str, payload: KisiUpdate, session: CurrentSession, service: Service) -> dict[str, Any]:
    return ok(KisiRead.model_validate(service.update(kisi_id, payload, user=session)))


@router.delete("/{kisi_id}", response_model=Envelope[dict[str, str]])
def delete_kisi(kisi_id: str, session: CurrentSession, service: Service) -> dict[str, Any]:
    service.delete(kisi_id, user=session)
    return ok({"message": "Kişi silindi"})
