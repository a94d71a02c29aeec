from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, status

from app.api.deps import CurrentSession, ListParams, require_role
from app.api.responses import Envelope, PagedEnvelope, ok, paged
from app.domain.models import (
    AracModelCreate,
    AracModelRead,
    AracModelUpdate,
    MarkaCreate,
    MarkaRead,
    MarkaUpdate,
)
from app.domain.permissions import TAXONOMY_MANAGER_ROLES
from app.services.arac_service import AracModelService, MarkaService

router = APIRouter()

manage_taxonomy = [Depends(require_role(*TAXONOMY_MANAGER_ROLES))]


def get_marka_service() -> MarkaService:
    return MarkaService()


def get_model_service() -> AracModelService:
    return AracModelService()


MarkaServiceDep = Annotated[MarkaService, Depends(get_marka_service)]
ModelServiceDep = Annotated[AracModelService, Depends(get_model_service)]


@router.get("/markalar", response_model=PagedEnvelope[MarkaRead])
def list_markalar(session: CurrentSession, service: MarkaServiceDep, query: ListParams) -> dict[str, Any]:
    page = service.list_page(query, user=session)
    return paged(
        [MarkaRead.model_validate(item) for item in page.items], page=page.page, limit=page.limit, total=page.total
    )


@router.post(
    "/markalar",
    response_model=Envelope[MarkaRead],
    status_code=status.HTTP_201_CREATED,
    dependencies=manage_taxonomy,
)
def create_marka(payload: MarkaCreate, session: CurrentSession, service: MarkaServiceDep) -> dict[str, Any]:
    return ok(MarkaRead.model_validate(service.create(payload, user=session)))


@router.get("/markalar/{marka_id}", response_model=Envelope[MarkaRead])
def get_marka(marka_id: str, session: CurrentSession, service: MarkaServiceDep) -> dict[str, Any]:
    return ok(MarkaRead.model_validate(service.get(marka_id, user=session)))


@router.put("/markalar/{marka_id}", response_model=Envelope[MarkaRead], dependencies=manage_taxonomy)
def update_marka(
    marka_id: str,
    payload: MarkaUpdate,
    session: CurrentSession,
    service: MarkaServiceDep,
) -> dict[str, Any]:
    return ok(MarkaRead.model_validate(service.update(marka_id, payload, user=session)))


@router.delete("/markalar/{marka_id}", response_model=Envelope[dict[str, str]], dependencies=manage_taxonomy)
def delete_marka(marka_id: str, session: CurrentSession, service: MarkaServiceDep) -> dict[str, Any]:
    service.delete(marka_id, user=session)
    return ok({"message": "Marka silindi"})


@router.get("/modeller", response_model=PagedEnvelope[AracModelRead])
def list_modeller(
    session: CurrentSession,
    service: ModelServiceDep,
    query: ListParams,
    marka_id: str | None = None,
) -> dict[str, Any]:
    page = service.list_page(query, filters={"marka_id": marka_id}, user=session)
    return paged(
        [AracModelRead.model_validate(item) for item in page.items],
        page=page.page,
        limit=page.limit,
        total=page.total,
    )


@router.post(
    "/modeller",
    response_model=Envelope[AracModelRead],
    status_code=status.HTTP_201_CREATED,
    dependencies=manage_taxonomy,
)
def create_model(payload: AracModelCreate, session: CurrentSession, service: ModelServiceDep) -> dict[str, Any]:
    return ok(AracModelRead.model_validate(service.create(payload, user=session)))


@router.get("/modeller/{model_id}", response_model=Envelope[AracModelRead])
def get_model(model_id: str, session: CurrentSession, service: ModelServiceDep) -> dict[str, Any]:
    return ok(AracModelRead.model_validate(service.get(model_id, user=session)))


@router.put("/modeller/{model_id}", response_model=Envelope[AracModelRead], dependencies=manage_taxonomy)
def update_model(
    model_id: str,
    payload: AracModelUpdate,
    session: CurrentSession,
    service: ModelServiceDep,
) -> dict[str, Any]:
    return ok(AracModelRead.model_validate(service.update(model_id, payload, user=session)))


@router.delete("/modeller/{model_id}", response_model=Envelope[dict[str, str]], dependencies=manage_taxonomy)
def delete_model(model_id: str, session: CurrentSession, service: ModelServiceDep) -> dict[str, Any]:
    service.delete(model_id, user=session)
    return ok({"message": "Model silindi"})
