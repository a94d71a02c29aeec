from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any

from fastapi import APIRouter, Depends

from app.api.deps import CurrentSession, ListParams, heavy_rate_limit
from app.api.responses import Envelope, PagedEnvelope, ok, paged
from app.domain.models import AuditAction, AuditLogRead
from app.services.audit_log_service import AuditLogService

router = APIRouter()


def get_audit_log_service() -> AuditLogService:
    return AuditLogService()


Service = Annotated[AuditLogService, Depends(get_audit_log_service)]


@router.get("", response_model=PagedEnvelope[AuditLogRead], dependencies=[Depends(heavy_rate_limit)])
def list_loglar(
    session: CurrentSession,
    service: Service,
    query: ListParams,
    actor_id: str | None = None,
    entity_type: str | None = None,
    entity_id: str | None = None,
    action: AuditAction | None = None,
    from_date: datetime | None = None,
    to_date: datetime | None = None,
) -> dict[str, Any]:
    page = service.list_logs(
        query,
        actor_id=actor_id,
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        from_date=from_date,
        to_date=to_date,
    )
    return paged(
        [AuditLogRead.model_validate(item) for item in page.items],
        page=page.page,
        limit=page.limit,
        total=page.total,
    )


@router.get("/{log_id}", response_model=Envelope[AuditLogRead])
def get_log(log_id: str, session: CurrentSession, service: Service) -> dict[str, Any]:
    return ok(AuditLogRead.model_validate(service.get_log(log_id)))
