from __future__ import annotations

from typing import Any

from sqlalchemy import func, update
from sqlmodel import col, select

from app.domain.models import Alarm, AlarmDurum, Takip, now_utc
from app.services.resource_service import ParentRef, ResourceService

MAX_BILDIRIM_LIMIT = 20
ACTIVE_STATES = (AlarmDurum.BEKLIYOR, AlarmDurum.TETIKLENDI)


class AlarmService(ResourceService[Alarm]):
    model = Alarm
    entity_type = "Alarm"
    not_found_message = "Alarm bulunamadı"
    search_fields = ("baslik", "mesaj")
    sortable_fields = frozenset({"tetik_tarihi", "created_at", "updated_at"})
    default_sort = ("tetik_tarihi", "asc")
    parents = (ParentRef("takip_id", Takip, "Takip bulunamadı"),)

    def label(self, row: Alarm) -> str | None:
        return row.baslik

    def _apply_extra_filters(self, statement: Any, extra: dict[str, Any]) -> Any:
        if "from_date" in extra:
            statement = statement.where(col(Alarm.tetik_tarihi) >= extra["from_date"])
        if "to_date" in extra:
            statement = statement.where(col(Alarm.tetik_tarihi) <= extra["to_date"])
        return statement

    def bildirimler(self, limit: int = 10) -> tuple[list[Alarm], int]:
        """Due, unpaused alarms for the notification bell.

        Pending alarms among the returned rows move to TETIKLENDI; the count is
        every triggered, due, unpaused alarm after that transition.
        """
        take = max(1, min(limit, MAX_BILDIRIM_LIMIT))
        now = now_utc()
        with self._session() as session:
            rows = list(
                session.exec(
                    select(Alarm)
                    .where(col(Alarm.is_paused).is_(False))
                    .where(col(Alarm.durum).in_(ACTIVE_STATES))
                    .where(col(Alarm.tetik_tarihi) <= now)
                    .order_by(col(Alarm.tetik_tarihi).desc())
                    .limit(take)
                ).all()
            )
            pending = [row.id for row in rows if row.durum == AlarmDurum.BEKLIYOR]
            if pending:
                session.exec(  # type: ignore[call-overload]
                    update(Alarm)
                    .where(col(Alarm.id).in_(pending))
                    .values(durum=AlarmDurum.TETIKLENDI, updated_at=now)
                )
                session.commit()
                for row in rows:
                    session.refresh(row)
            unread = session.exec(
                select(func.count())
                .select_from(Alarm)
                .where(col(Alarm.is_paused).is_(False))
                .where(col(Alarm.durum) == AlarmDurum.TETIKLENDI)
                .where(col(Alarm.tetik_tarihi) <= now)
            ).one()
        return rows, unread

    def mark_bildirimler_seen(self) -> int:
        now = now_utc()
        with self._session() as session:
            result = session.exec(  # type: ignore[call-overload]
                update(Alarm)
                .where(col(Alarm.durum) == AlarmDurum.TETIKLENDI)
                .where(col(Alarm.tetik_tarihi) <= now)
                .values(durum=AlarmDurum.GORULDU, updated_at=now)
            )
            session.commit()
            return result.rowcount
