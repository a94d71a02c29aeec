from __future__ import annotations

from typing import Any

from sqlalchemy import update
from sqlmodel import Session, col

from app.domain.errors import NotFoundError
from app.domain.models import Adres, AdresBulkCreate, Kisi, ListQuery, Mahalle
from app.infra import audit
from app.infra.auth import UserSession
from app.services.resource_service import ParentRef, ResourceService, exists_all


class AdresService(ResourceService[Adres]):
    """Addresses of a kişi; at most one of them is primary."""

    model = Adres
    entity_type = "Adres"
    not_found_message = "Adres bulunamadı"
    search_fields = ("ad", "detay")
    sortable_fields = frozenset({"ad", "created_at", "updated_at"})
    parents = (
        ParentRef("kisi_id", Kisi, "Kişi bulunamadı"),
        ParentRef("mahalle_id", Mahalle, "Mahalle bulunamadı"),
    )

    def label(self, row: Adres) -> str | None:
        return row.ad or row.detay

    def _apply_sort(self, statement: Any, query: ListQuery) -> Any:
        return super()._apply_sort(statement.order_by(col(Adres.is_primary).desc()), query)

    def _before_create(self, session: Session, data: dict[str, Any]) -> None:
        if data.get("is_primary"):
            self._clear_primary(session, data["kisi_id"])

    def _before_update(self, session: Session, row: Adres, changes: dict[str, Any]) -> None:
        if changes.get("is_primary"):
            self._clear_primary(session, row.kisi_id, keep_id=row.id)

    def _clear_primary(self, session: Session, kisi_id: str, keep_id: str | None = None) -> None:
        statement = update(Adres).where(col(Adres.kisi_id) == kisi_id).values(is_primary=False)
        if keep_id is not None:
            statement = statement.where(col(Adres.id) != keep_id)
        session.exec(statement)  # type: ignore[call-overload]

    def bulk_create(self, payload: AdresBulkCreate, *, user: UserSession | None = None) -> list[Adres]:
        """Add several addresses to one kişi in a single commit.

        Only the first item flagged primary keeps the flag.
        """
        with self._session() as session:
            if session.get(Kisi, payload.kisi_id) is None:
                raise NotFoundError("Kişi bulunamadı")
            if not exists_all(session, Mahalle, list({item.mahalle_id for item in payload.adresler})):
                raise NotFoundError("Mahalle bulunamadı")
            actor_id = self.resolve_actor_id(session, user)
            primary_taken = False
            if any(item.is_primary for item in payload.adresler):
                self._clear_primary(session, payload.kisi_id)
            rows: list[Adres] = []
            for item in payload.adresler:
                is_primary = item.is_primary and not primary_taken
                primary_taken = primary_taken or is_primary
                row = Adres(
                    **item.model_dump(exclude={"is_primary"}),
                    kisi_id=payload.kisi_id,
                    is_primary=is_primary,
                    created_user_id=actor_id,
                    updated_user_id=actor_id,
                )
                session.add(row)
                rows.append(row)
            self._commit(session)
            for row in rows:
                session.refresh(row)
        for row in rows:
            audit.log_create(self.entity_type, row.id, row, self.label(row), session=user)
        return rows
