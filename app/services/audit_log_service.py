from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, or_
from sqlmodel import Session, col, select

from app.domain.errors import NotFoundError
from app.domain.models import AuditAction, AuditLog, ListQuery
from app.infra.db import get_engine
from app.services.resource_service import Page


class AuditLogService:
    """Read side of the append-only audit trail."""

    def _session(self) -> Session:
        return Session(get_engine(), expire_on_commit=False)

    def list_logs(
        self,
        query: ListQuery,
        *,
        actor_id: str | None = None,
        entity_type: str | None = None,
        entity_id: str | None = None,
        action: AuditAction | None = None,
        from_date: datetime | None = None,
        to_date: datetime | None = None,
    ) -> Page[AuditLog]:
        statement = select(AuditLog)
        if actor_id:
            statement = statement.where(AuditLog.actor_id == actor_id)
        if entity_type:
            statement = statement.where(AuditLog.entity_type == entity_type)
        if entity_id:
            statement = statement.where(AuditLog.entity_id == entity_id)
        if action:
            statement = statement.where(AuditLog.action == action)
        if from_date:
            statement = statement.where(col(AuditLog.ts) >= from_date)
        if to_date:
            statement = statement.where(col(AuditLog.ts) <= to_date)
        if query.search:
            pattern = f"%{query.search}%"
            statement = statement.where(
                or_(
                    col(AuditLog.description).ilike(pattern),
                    col(AuditLog.entity_label).ilike(pattern),
                    col(AuditLog.actor_name).ilike(pattern),
                )
            )

        with self._session() as session:
            total = session.exec(select(func.count()).select_from(statement.subquery())).one()
            ascending = query.sort_by == "ts" and query.sort_order == "asc"
            order = col(AuditLog.ts).asc() if ascending else col(AuditLog.ts).desc()
            rows = list(
                session.exec(
                    statement.order_by(order).offset((query.page - 1) * query.limit).limit(query.limit)
                ).all()
            )
        return Page(items=rows, total=total, page=query.page, limit=query.limit)

    def get_log(self, log_id: str) -> AuditLog:
        with self._session() as session:
            row = session.get(AuditLog, log_id)
            if row is None:
                raise NotFoundError("Log bulunamadı")
            return row
