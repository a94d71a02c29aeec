from __future__ import annotations

from sqlalchemy import delete, func, update
from sqlmodel import Session, SQLModel, col, select

from app.domain.models import (
    Adres,
    AracKisi,
    AuditAction,
    BatchOperationResult,
    Gsm,
    Kisi,
    KisiNot,
    OperasyonKatilimci,
    TanitimKatilimci,
    now_utc,
)
from app.infra import audit
from app.infra.auth import UserSession
from app.services.resource_service import Dependent, ResourceService

# Relations whose presence blocks a delete and turns a batch delete into an archive.
TRACKED_RELATIONS: tuple[tuple[type[SQLModel], str], ...] = (
    (Gsm, "kisi_id"),
    (KisiNot, "kisi_id"),
    (AracKisi, "kisi_id"),
    (Adres, "kisi_id"),
    (TanitimKatilimci, "kisi_id"),
    (OperasyonKatilimci, "kisi_id"),
)


class KisiService(ResourceService[Kisi]):
    model = Kisi
    entity_type = "Kisi"
    not_found_message = "Kişi bulunamadı"
    conflict_message = "Bu TC kimlik numarası zaten kayıtlı"
    search_fields = ("ad", "soyad", "tc")
    sortable_fields = frozenset({"ad", "soyad", "created_at", "updated_at"})
    dependents = tuple(Dependent(model, column) for model, column in TRACKED_RELATIONS)

    def label(self, row: Kisi) -> str | None:
        return f"{row.ad} {row.soyad}"

    def relation_counts(self, session: Session, ids: list[str]) -> dict[str, int]:
        counts = dict.fromkeys(ids, 0)
        for model, column_name in TRACKED_RELATIONS:
            column = col(getattr(model, column_name))
            rows = session.exec(
                select(column, func.count()).where(column.in_(ids)).group_by(column)
            ).all()
            for kisi_id, count in rows:
                counts[kisi_id] += count
        return counts

    def batch_delete(self, ids: list[str], *, user: UserSession | None = None) -> BatchOperationResult:
        """Delete kişiler in one transaction.

        Records that still have phones, notes or vehicle links are archived
        instead of removed. Unknown ids count as failed.
        """
        unique_ids = list(dict.fromkeys(ids))
        with self._session() as session, session.begin():
            existing = list(session.exec(select(Kisi.id).where(col(Kisi.id).in_(unique_ids))).all())
            counts = self.relation_counts(session, existing)
            to_archive = [kisi_id for kisi_id in existing if counts[kisi_id] > 0]
            to_delete = [kisi_id for kisi_id in existing if counts[kisi_id] == 0]
            actor_id = self.resolve_actor_id(session, user)

            archived = 0
            if to_archive:
                result = session.exec(  # type: ignore[call-overload]
                    update(Kisi)
                    .where(col(Kisi.id).in_(to_archive))
                    .values(is_archived=True, updated_user_id=actor_id, updated_at=now_utc())
                )
                archived = result.rowcount
            deleted = 0
            if to_delete:
                result = session.exec(delete(Kisi).where(col(Kisi.id).in_(to_delete)))  # type: ignore[call-overload]
                deleted = result.rowcount

        outcome = BatchOperationResult(
            success=archived + deleted,
            failed=len(unique_ids) - (archived + deleted),
            archived=archived,
            deleted=deleted,
        )
        audit.log_bulk(
            AuditAction.BULK_DELETE,
            self.entity_type,
            unique_ids,
            metadata={"archived_ids": to_archive, "deleted_ids": to_delete},
            session=user,
        )
        return outcome

    def batch_archive(
        self,
        ids: list[str],
        is_archived: bool,
        *,
        user: UserSession | None = None,
    ) -> BatchOperationResult:
        unique_ids = list(dict.fromkeys(ids))
        with self._session() as session, session.begin():
            actor_id = self.resolve_actor_id(session, user)
            result = session.exec(  # type: ignore[call-overload]
                update(Kisi)
                .where(col(Kisi.id).in_(unique_ids))
                .values(is_archived=is_archived, updated_user_id=actor_id, updated_at=now_utc())
            )
            updated = result.rowcount
        audit.log_bulk(
            AuditAction.BULK_ARCHIVE,
            self.entity_type,
            unique_ids,
            metadata={"is_archived": is_archived},
            session=user,
        )
        return BatchOperationResult(success=updated, failed=len(unique_ids) - updated)
