from __future__ import annotations

from enum import StrEnum

from app.infra.auth import UserSession


class PersonelRol(StrEnum):
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    STAFF = "STAFF"


# Roles allowed to manage shared taxonomies (locations, vehicle brands/models).
TAXONOMY_MANAGER_ROLES = (PersonelRol.ADMIN, PersonelRol.MANAGER)
PERSONEL_MANAGER_ROLES = (PersonelRol.ADMIN,)


def has_role(session: UserSession | None, *roles: str) -> bool:
    if session is None:
        return False
    return session.role in {str(role) for role in roles}


def is_admin(session: UserSession | None) -> bool:
    return has_role(session, PersonelRol.ADMIN)
