from __future__ import annotations

from typing import Any

from sqlalchemy import update
from sqlmodel import Session, col

from app.domain.models import Gsm, Kisi, OperasyonKatilimci, Takip, TanitimKatilimci
from app.services.resource_service import Dependent, ParentRef, ResourceService


class GsmService(ResourceService[Gsm]):
    model = Gsm
    entity_type = "Gsm"
    not_found_message = "GSM bulunamadı"
    conflict_message = "Bu GSM numarası zaten kayıtlı"
    search_fields = ("numara",)
    sortable_fields = frozenset({"numara", "created_at", "updated_at"})
    dependents = (
        Dependent(Takip, "gsm_id"),
        Dependent(TanitimKatilimci, "gsm_id"),
        Dependent(OperasyonKatilimci, "gsm_id"),
    )
    parents = (ParentRef("kisi_id", Kisi, "Kişi bulunamadı"),)

    def label(self, row: Gsm) -> str | None:
        return row.numara

    def _before_create(self, session: Session, data: dict[str, Any]) -> None:
        if data.get("is_primary"):
            self._clear_primary(session, data["kisi_id"])

    def _before_update(self, session: Session, row: Gsm, changes: dict[str, Any]) -> None:
        if changes.get("is_primary"):
            self._clear_primary(session, changes.get("kisi_id", row.kisi_id), keep_id=row.id)

    def _clear_primary(self, session: Session, kisi_id: str, keep_id: str | None = None) -> None:
        statement = update(Gsm).where(col(Gsm.kisi_id) == kisi_id).values(is_primary=False)
        if keep_id is not None:
            statement = statement.where(col(Gsm.id) != keep_id)
        session.exec(statement)  # type: ignore[call-overload]
