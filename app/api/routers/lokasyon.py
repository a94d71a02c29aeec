from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, status

from app.api.deps import CurrentSession, ListParams, require_role
from app.api.responses import Envelope, PagedEnvelope, ok, paged
from app.domain.models import (
    IlceCreate,
    IlceRead,
    IlceUpdate,
    IlCreate,
    IlRead,
    IlUpdate,
    MahalleCreate,
    MahalleRead,
    MahalleUpdate,
)
from app.domain.permissions import TAXONOMY_MANAGER_ROLES
from app.services.lokasyon_service import IlceService, IlService, MahalleService

router = APIRouter()

manage_taxonomy = [Depends(require_role(*TAXONOMY_MANAGER_ROLES))]


def get_il_service() -> IlService:
    return IlService()


def get_ilce_service() -> IlceService:
    return IlceService()


def get_mahalle_service() -> MahalleService:
    return MahalleService()


IlServiceDep = Annotated[IlService, Depends(get_il_service)]
IlceServiceDep = Annotated[IlceService, Depends(get_ilce_service)]
MahalleServiceDep = Annotated[MahalleService, Depends(get_mahalle_service)]


# ---------------------------------------------------------------------- iller


@router.get("/iller", response_model=PagedEnvelope[IlRead])
def list_iller(
    session: CurrentSession,
    service: IlServiceDep,
    query: ListParams,
    is_active: bool | None = None,
) -> dict[str, Any]:
    page = service.list_page(query, filters={"is_active": is_active}, user=session)
    return paged(
        [IlRead.model_validate(item) for item in page.items],
        page=page.page,
        limit=page.limit,
        total=page.total,
    )


@router.post(
    "/iller",
    response_model=Envelope[IlRead],
    status_code=status.HTTP_201_CREATED,
    dependencies=manage_taxonomy,
)
def create_il(payload: IlCreate, session: CurrentSession, service: IlServiceDep) -> dict[str, Any]:
    return ok(IlRead.model_validate(service.create(payload, user=session)))


@router.get("/iller/{il_id}", response_model=Envelope[IlRead])
def get_il(il_id: str, session: CurrentSession, service: IlServiceDep) -> dict[str, Any]:
    return ok(IlRead.model_validate(service.get(il_id, user=session)))


@router.put("/iller/{il_id}", response_model=Envelope[IlRead], dependencies=manage_taxonomy)
def update_il(il_id: str, payload: IlUpdate, session: CurrentSession, service: IlServiceDep) -> dict[str, Any]:
    return ok(IlRead.model_validate(service.update(il_id, payload, user=session)))


@router.delete("/iller/{il_id}", response_model=Envelope[dict[str, str]], dependencies=manage_taxonomy)
def delete_il(il_id: str, session: CurrentSession, service: IlServiceDep) -> dict[str, Any]:
    service.delete(il_id, user=session)
    return ok({"message": "İl silindi"})


# ---------------------------------------------------------------------- ilceler


@router.get("/ilceler", response_model=PagedEnvelope[IlceRead])
def list_ilceler(
    session: CurrentSession,
    service: IlceServiceDep,
    query: ListParams,
    il_id: str | None = None,
    is_active: bool | None = None,
) -> dict[str, Any]:
    page = service.list_page(query, filters={"il_id": il_id, "is_active": is_active}, user=session)
    return paged(
        [IlceRead.model_validate(item) for item in page.items], page=page.page, limit=page.limit, total=page.total
    )


@router.post(
    "/ilceler",
    response_model=Envelope[IlceRead],
    status_code=status.HTTP_201_CREATED,
    dependencies=manage_taxonomy,
)
def create_ilce(payload: IlceCreate, session: CurrentSession, service: IlceServiceDep) -> dict[str, Any]:
    return ok(IlceRead.model_validate(service.create(payload, user=session)))


@router.get("/ilceler/{ilce_id}", response_model=Envelope[IlceRead])
def get_ilce(ilce_id: str, session: CurrentSession, service: IlceServiceDep) -> dict[str, Any]:
    return ok(IlceRead.model_validate(service.get(ilce_id, user=session)))


@router.put("/ilceler/{ilce_id}", response_model=Envelope[IlceRead], dependencies=manage_taxonomy)
def update_ilce(ilce_id: str, payload: IlceUpdate, session: CurrentSession, service: IlceServiceDep) -> dict[str, Any]:
    return ok(IlceRead.model_validate(service.update(ilce_id, payload, user=session)))


@router.delete("/ilceler/{ilce_id}", response_model=Envelope[dict[str, str]], dependencies=manage_taxonomy)
def delete_ilce(ilce_id: str, session: CurrentSession, service: IlceServiceDep) -> dict[str, Any]:
    service.delete(ilce_id, user=session)
    return ok({"message": "İlçe silindi"})


# ---------------------------------------------------------------------- mahalleler


@router.get("/mahalleler", response_model=PagedEnvelope[MahalleRead])
def list_mahalleler(
    session: CurrentSession,
    service: MahalleServiceDep,
    query: ListParams,
    ilce_id: str | None = None,
    is_active: bool | None = None,
) -> dict[str, Any]:
    page = service.list_page(query, filters={"ilce_id": ilce_id, "is_active": is_active}, user=session)
    return paged(
        [MahalleRead.model_validate(item) for item in page.items], page=page.page, limit=page.limit, total=page.total
    )


@router.post(
    "/mahalleler",
    response_model=Envelope[MahalleRead],
    status_code=status.HTTP_201_CREATED,
    dependencies=manage_taxonomy,
)
def create_mahalle(payload: MahalleCreate, session: CurrentSession, service: MahalleServiceDep) -> dict[str, Any]:
    return ok(MahalleRead.model_validate(service.create(payload, user=session)))


@router.get("/mahalleler/{mahalle_id}", response_model=Envelope[MahalleRead])
def get_mahalle(mahalle_id: str, session: CurrentSession, service: MahalleServiceDep) -> dict[str, Any]:
    return ok(MahalleRead.model_validate(service.get(mahalle_id, user=session)))


@router.put("/mahalleler/{mahalle_id}", response_model=Envelope[MahalleRead], dependencies=manage_taxonomy)
def update_mahalle(
    mahalle_id: str,
    payload: MahalleUpdate,
    session: CurrentSession,
    service: MahalleServiceDep,
) -> dict[str, Any]:
    return ok(MahalleRead.model_validate(service.update(mahalle_id, payload, user=session)))


@router.delete("/mahalleler/{mahalle_id}", response_model=Envelope[dict[str, str]], dependencies=manage_taxonomy)
def delete_mahalle(mahalle_id: str, session: CurrentSession, service: MahalleServiceDep) -> dict[str, Any]:
    service.delete(mahalle_id, user=session)
    return ok({"message": "Mahalle silindi"})
