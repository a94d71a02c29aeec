from __future__ import annotations

from typing import Any

from pydantic import BaseModel
from sqlalchemy import delete
from sqlmodel import Session, col, select

from app.domain.errors import ConflictError, NotFoundError
from app.domain.models import Arac, AracKisi, AracModel, Kisi, Marka, OperasyonArac, TanitimArac
from app.infra import audit
from app.infra.auth import UserSession
from app.services.resource_service import Dependent, ParentRef, ResourceService, exists_all


class MarkaService(ResourceService[Marka]):
    model = Marka
    entity_type = "Marka"
    not_found_message = "Marka bulunamadı"
    conflict_message = "Bu marka zaten mevcut"
    search_fields = ("ad",)
    sortable_fields = frozenset({"ad", "created_at"})
    default_sort = ("ad", "asc")
    dependents = (Dependent(AracModel, "marka_id"),)


class AracModelService(ResourceService[AracModel]):
    model = AracModel
    entity_type = "Model"
    not_found_message = "Model bulunamadı"
    conflict_message = "Bu markada aynı isimde model zaten mevcut"
    search_fields = ("ad",)
    sortable_fields = frozenset({"ad", "created_at"})
    default_sort = ("ad", "asc")
    dependents = (Dependent(Arac, "model_id"),)
    parents = (ParentRef("marka_id", Marka, "Marka bulunamadı"),)


class AracService(ResourceService[Arac]):
    model = Arac
    entity_type = "Arac"
    not_found_message = "Araç bulunamadı"
    conflict_message = "Bu plaka zaten kayıtlı"
    search_fields = ("plaka",)
    sortable_fields = frozenset({"plaka", "created_at", "updated_at"})
    dependents = (Dependent(TanitimArac, "arac_id"), Dependent(OperasyonArac, "arac_id"))
    parents = (ParentRef("model_id", AracModel, "Model bulunamadı"),)

    def label(self, row: Arac) -> str | None:
        return row.plaka

    def _create_data(self, payload: BaseModel) -> dict[str, Any]:
        return payload.model_dump(exclude={"kisi_ids"})

    def _update_data(self, payload: BaseModel) -> dict[str, Any]:
        return payload.model_dump(exclude_unset=True, exclude={"kisi_ids"})

    def create(self, payload: BaseModel, *, user: UserSession | None = None) -> Arac:
        self._check_kisiler(getattr(payload, "kisi_ids", None))
        return super().create(payload, user=user)

    def update(self, record_id: str, payload: BaseModel, *, user: UserSession | None = None) -> Arac:
        self._check_kisiler(getattr(payload, "kisi_ids", None))
        return super().update(record_id, payload, user=user)

    def _check_kisiler(self, kisi_ids: list[str] | None) -> None:
        if not kisi_ids:
            return
        with self._session() as session:
            if not exists_all(session, Kisi, list(dict.fromkeys(kisi_ids))):
                raise NotFoundError("Kişi bulunamadı")

    def _after_create(self, session: Session, row: Arac, payload: BaseModel, user: UserSession | None) -> None:
        kisi_ids = getattr(payload, "kisi_ids", None) or []
        self._replace_links(session, row.id, kisi_ids)

    def _after_update(self, session: Session, row: Arac, payload: BaseModel, user: UserSession | None) -> None:
        kisi_ids = getattr(payload, "kisi_ids", None)
        if kisi_ids is not None:
            self._replace_links(session, row.id, kisi_ids)

    def _before_delete(self, session: Session, row: Arac, user: UserSession | None) -> None:
        session.exec(delete(AracKisi).where(col(AracKisi.arac_id) == row.id))  # type: ignore[call-overload]

    def _replace_links(self, session: Session, arac_id: str, kisi_ids: list[str]) -> None:
        unique_ids = list(dict.fromkeys(kisi_ids))
        session.exec(delete(AracKisi).where(col(AracKisi.arac_id) == arac_id))  # type: ignore[call-overload]
        for kisi_id in unique_ids:
            session.add(AracKisi(arac_id=arac_id, kisi_id=kisi_id))
        session.commit()

    def linked_kisi_ids(self, arac_id: str) -> list[str]:
        with self._session() as session:
            self._get_or_404(session, arac_id)
            return list(session.exec(select(AracKisi.kisi_id).where(AracKisi.arac_id == arac_id)).all())

    def add_kisi(
        self,
        arac_id: str,
        kisi_id: str,
        aciklama: str | None = None,
        *,
        user: UserSession | None = None,
    ) -> AracKisi:
        with self._session() as session:
            arac = self._get_or_404(session, arac_id)
            if session.get(Kisi, kisi_id) is None:
                raise NotFoundError("Kişi bulunamadı")
            if session.get(AracKisi, (arac_id, kisi_id)) is not None:
                raise ConflictError("Bu kişi zaten bu araca bağlı")
            link = AracKisi(arac_id=arac_id, kisi_id=kisi_id, aciklama=aciklama)
            session.add(link)
            self._commit(session)
            session.refresh(link)
        audit.log_create("AracKisi", f"{arac_id}:{kisi_id}", link, arac.plaka, session=user)
        return link

    def remove_kisi(self, arac_id: str, kisi_id: str, *, user: UserSession | None = None) -> None:
        with self._session() as session:
            arac = self._get_or_404(session, arac_id)
            link = session.get(AracKisi, (arac_id, kisi_id))
            if link is None:
                raise NotFoundError("Bağlantı bulunamadı")
            before = audit.snapshot(link)
            session.delete(link)
            session.commit()
        audit.log_delete("AracKisi", f"{arac_id}:{kisi_id}", before, arac.plaka, session=user)
