from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query, status

from app.api.deps import CurrentSession, ListParams
from app.api.responses import Envelope, PagedEnvelope, ok, paged
from app.domain.models import (
    AlarmCreate,
    AlarmDurum,
    AlarmRead,
    AlarmTip,
    AlarmUpdate,
    BildirimRead,
)
from app.services.alarm_service import MAX_BILDIRIM_LIMIT, AlarmService

router = APIRouter()


def get_alarm_service() -> AlarmService:
    return AlarmService()


Service = Annotated[AlarmService, Depends(get_alarm_service)]


@router.get("", response_model=PagedEnvelope[AlarmRead])
def list_alarmlar(
    session: CurrentSession,
    service: Service,
    query: ListParams,
    takip_id: str | None = None,
    tip: AlarmTip | None = None,
    durum: AlarmDurum | None = None,
    is_paused: bool | None = None,
    from_date: datetime | None = None,
    to_date: datetime | None = None,
) -> dict[str, Any]:
    page = service.list_page(
        query,
        filters={"takip_id": takip_id, "tip": tip, "durum": durum, "is_paused": is_paused},
        extra={"from_date": from_date, "to_date": to_date},
        user=session,
    )
    return paged(
        [AlarmRead.model_validate(item) for item in page.items],
        page=page.page,
        limit=page.limit,
        total=page.total,
    )


@router.post("", response_model=Envelope[AlarmRead], status_code=status.HTTP_201_CREATED)
def create_alarm(payload: AlarmCreate, session: CurrentSession, service: Service) -> dict[str, Any]:
    return ok(AlarmRead.model_validate(service.create(payload, user=session)))


@router.get("/bildirimler", response_model=Envelope[BildirimRead])
def get_bildirimler(
    session: CurrentSession,
    service: Service,
    limit: Annotated[int, Query(ge=1, le=MAX_BILDIRIM_LIMIT)] = 10,
) -> dict[str, Any]:
    rows, unread = service.bildirimler(limit)
    return ok(
        BildirimRead(
            bildirimler=[AlarmRead.model_validate(item) for item in rows],
            unread_count=unread,
        )
    )


@router.post("/bildirimler", response_model=Envelope[dict[str, int]])
def mark_bildirimler_seen(session: CurrentSession, service: Service) -> dict[str, Any]:
    return ok({"updated": service.mark_bildirimler_seen()})


@router.get("/{alarm_id}", response_model=Envelope[AlarmRead])
def get_alarm(alarm_id: str, session: CurrentSession, service: Service) -> dict[str, Any]:
    return ok(AlarmRead.model_validate(service.get(alarm_id, user=session)))


@router.put("/{alarm_id}", response_model=Envelope[AlarmRead])
def update_alarm(alarm_id: str, payload: AlarmUpdate, session: CurrentSession, service: Service) -> dict[str, Any]:
    return ok(AlarmRead.model_validate(service.update(alarm_id, payload, user=session)))


@router.delete("/{alarm_id}", response_model=Envelope[dict[str, str]])
def delete_alarm(alarm_id: str, session: CurrentSession, service: Service) -> dict[str, Any]:
    service.delete(alarm_id, user=session)
    return ok({"message": "Alarm silindi"})
