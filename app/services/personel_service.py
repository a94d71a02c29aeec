from __future__ import annotations

from typing import Any

from pydantic import BaseModel
from sqlalchemy import delete
from sqlmodel import Session, col, select

from app.domain.errors import AuthenticationError, AuthorizationError, ValidationError
from app.domain.models import (
    KullaniciTercihi,
    PasswordChangeRequest,
    Personel,
    PersonelCreate,
    now_utc,
)
from app.domain.permissions import PersonelRol, is_admin
from app.infra import audit
from app.infra.auth import UserSession
from app.infra.passwords import hash_password, verify_password
from app.services.resource_service import ResourceService


class PersonelService(ResourceService[Personel]):
    model = Personel
    entity_type = "Personel"
    not_found_message = "Personel bulunamadı"
    conflict_message = "Bu kullanıcı ID zaten kullanılıyor"
    search_fields = ("ad", "soyad", "visible_id")
    sortable_fields = frozenset({"ad", "soyad", "visible_id", "created_at", "last_login_at"})
    tracks_users = False

    def label(self, row: Personel) -> str | None:
        return f"{row.ad} {row.soyad}"

    def _create_data(self, payload: BaseModel) -> dict[str, Any]:
        data = payload.model_dump()
        data["parola"] = hash_password(data["parola"])
        return data

    def _before_delete(self, session: Session, row: Personel, user: UserSession | None) -> None:
        if user is not None and user.subject_id == row.id:
            raise ValidationError("Kendi hesabınızı silemezsiniz")
        statement = delete(KullaniciTercihi).where(col(KullaniciTercihi.personel_id) == row.id)
        session.exec(statement)  # type: ignore[call-overload]

    def change_role(self, personel_id: str, rol: PersonelRol, *, user: UserSession | None = None) -> Personel:
        with self._session() as session:
            row = self._get_or_404(session, personel_id)
            if user is not None and user.subject_id == row.id:
                raise ValidationError("Kendi rolünüzü değiştiremezsiniz")
            previous = row.rol
            row.rol = rol
            row.updated_at = now_utc()
            session.add(row)
            session.commit()
            session.refresh(row)
        audit.log_status_change(self.entity_type, row.id, str(previous), str(rol), self.label(row), session=user)
        return row

    def change_password(
        self,
        personel_id: str,
        payload: PasswordChangeRequest,
        *,
        user: UserSession,
    ) -> None:
        own_account = user.subject_id == personel_id
        if not own_account and not is_admin(user):
            raise AuthorizationError()
        with self._session() as session:
            row = self._get_or_404(session, personel_id)
            if own_account:
                if not payload.current_password or not verify_password(payload.current_password, row.parola):
                    raise ValidationError.for_field("current_password", "Mevcut şifre hatalı")
            before = audit.snapshot(row)
            row.parola = hash_password(payload.new_password)
            row.updated_at = now_utc()
            session.add(row)
            session.commit()
            session.refresh(row)
        audit.log_update(self.entity_type, row.id, before, row, self.label(row), session=user)

    def authenticate(self, visible_id: str, parola: str) -> Personel:
        """Check credentials and stamp ``last_login_at``.

        Every outcome is written to the audit log as LOGIN or LOGIN_FAIL.
        """
        with self._session() as session:
            row = session.exec(select(Personel).where(Personel.visible_id == visible_id)).first()
            if row is None:
                audit.log_login(
                    personel_id=visible_id,
                    display_name=visible_id,
                    success=False,
                    metadata={"reason": "unknown_user"},
                )
                raise AuthenticationError("Kullanıcı bulunamadı")
            if not row.is_active:
                audit.log_login(
                    personel_id=row.id,
                    display_name=self.label(row) or row.visible_id,
                    success=False,
                    metadata={"reason": "inactive"},
                )
                raise AuthenticationError("Hesabınız devre dışı bırakılmış")
            if not verify_password(parola, row.parola):
                audit.log_login(
                    personel_id=row.id,
                    display_name=self.label(row) or row.visible_id,
                    success=False,
                    metadata={"reason": "bad_password"},
                )
                raise AuthenticationError("Geçersiz parola")
            row.last_login_at = now_utc()
            session.add(row)
            session.commit()
            session.refresh(row)
        audit.log_login(personel_id=row.id, display_name=self.label(row) or row.visible_id, success=True)
        return row

    def bootstrap_admin(self, payload: PersonelCreate) -> Personel | None:
        """Create the first ADMIN account; no-op once any personel exists."""
        with self._session() as session:
            if session.exec(select(Personel.id).limit(1)).first() is not None:
                return None
        return self.create(payload.model_copy(update={"rol": PersonelRol.ADMIN}))
