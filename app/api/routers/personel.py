from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, status

from app.api.deps import CurrentSession, ListParams, require_role
from app.api.responses import Envelope, PagedEnvelope, ok, paged
from app.domain.models import (
    PasswordChangeRequest,
    PersonelCreate,
    PersonelRead,
    PersonelRolUpdate,
    PersonelUpdate,
)
from app.domain.permissions import PERSONEL_MANAGER_ROLES, PersonelRol
from app.services.personel_service import PersonelService

router = APIRouter()

manage_personel = [Depends(require_role(*PERSONEL_MANAGER_ROLES))]


def get_personel_service() -> PersonelService:
    return PersonelService()


Service = Annotated[PersonelService, Depends(get_personel_service)]


@router.get("", response_model=PagedEnvelope[PersonelRead], dependencies=manage_personel)
def list_personel(
    session: CurrentSession,
    service: Service,
    query: ListParams,
    rol: PersonelRol | None = None,
    is_active: bool | None = None,
) -> dict[str, Any]:
    page = service.list_page(query, filters={"rol": rol, "is_active": is_active}, user=session)
    return paged(
        [PersonelRead.model_validate(item) for item in page.items],
        page=page.page,
        limit=page.limit,
        total=page.total,
    )


@router.post(
    "",
    response_model=Envelope[PersonelRead],
    status_code=status.HTTP_201_CREATED,
    dependencies=manage_personel,
)
def create_personel(payload: PersonelCreate, session: CurrentSession, service: Service) -> dict[str, Any]:
    return ok(PersonelRead.model_validate(service.create(payload, user=session)))


@router.get("/{personel_id}", response_model=Envelope[PersonelRead], dependencies=manage_personel)
def get_personel(personel_id: str, session: CurrentSession, service: Service) -> dict[str, Any]:
    return ok(PersonelRead.model_validate(service.get(personel_id, user=session)))


@router.put("/{personel_id}", response_model=Envelope[PersonelRead], dependencies=manage_personel)
def update_personel(
    personel_id: str,
    payload: PersonelUpdate,
    session: CurrentSession,
    service: Service,
) -> dict[str, Any]:
    return ok(PersonelRead.model_validate(service.update(personel_id, payload, user=session)))


@router.delete("/{personel_id}", response_model=Envelope[dict[str, str]], dependencies=manage_personel)
def delete_personel(personel_id: str, session: CurrentSession, service: Service) -> dict[str, Any]:
    service.delete(personel_id, user=session)
    return ok({"message": "Personel silindi"})


@router.put("/{personel_id}/rol", response_model=Envelope[PersonelRead], dependencies=manage_personel)
def change_personel_rol(
    personel_id: str,
    payload: PersonelRolUpdate,
    session: CurrentSession,
    service: Service,
) -> dict[str, Any]:
    return ok(PersonelRead.model_validate(service.change_role(personel_id, payload.rol, user=session)))


# Any signed-in personel may change their own password; admins may reset others.
@router.put("/{personel_id}/parola", response_model=Envelope[dict[str, str]])
def change_personel_parola(
    personel_id: str,
    payload: PasswordChangeRequest,
    session: CurrentSession,
    service: Service,
) -> dict[str, Any]:
    service.change_password(personel_id, payload, user=session)
    return ok({"message": "Parola güncellendi"})
