from __future__ import annotations

from datetime import timedelta
from typing import Any

from pydantic import BaseModel
from sqlalchemy import update
from sqlmodel import Session, col

from app.domain.models import (
    Alarm,
    AlarmTip,
    Gsm,
    Kisi,
    KisiTip,
    Takip,
    TakipDurum,
    now_utc,
)
from app.infra import audit
from app.infra.auth import UserSession
from app.services.resource_service import Dependent, ParentRef, ResourceService

DEFAULT_TAKIP_DAYS = 90


class TakipService(ResourceService[Takip]):
    """Follow-up periods on a phone number.

    Creating a takip closes the previous active one for the same GSM and
    promotes the owning kişi from LEAD to MUSTERI.
    """

    model = Takip
    entity_type = "Takip"
    not_found_message = "Takip bulunamadı"
    sortable_fields = frozenset({"baslama_tarihi", "bitis_tarihi", "created_at", "updated_at"})
    default_sort = ("bitis_tarihi", "asc")
    dependents = (Dependent(Alarm, "takip_id"),)
    parents = (ParentRef("gsm_id", Gsm, "GSM bulunamadı"),)

    def label(self, row: Takip) -> str | None:
        return str(row.durum)

    def _create_data(self, payload: BaseModel) -> dict[str, Any]:
        data = payload.model_dump(exclude={"alarm_gun_once"})
        baslama = data.get("baslama_tarihi") or now_utc()
        data["baslama_tarihi"] = baslama
        data["bitis_tarihi"] = data.get("bitis_tarihi") or baslama + timedelta(days=DEFAULT_TAKIP_DAYS)
        data["is_active"] = True
        return data

    def _before_create(self, session: Session, data: dict[str, Any]) -> None:
        session.exec(  # type: ignore[call-overload]
            update(Takip)
            .where(col(Takip.gsm_id) == data["gsm_id"])
            .where(col(Takip.is_active).is_(True))
            .values(is_active=False, durum=TakipDurum.UZATILDI, updated_at=now_utc())
        )
        gsm = session.get(Gsm, data["gsm_id"])
        if gsm is not None:
            session.exec(  # type: ignore[call-overload]
                update(Kisi)
                .where(col(Kisi.id) == gsm.kisi_id)
                .where(col(Kisi.tip) == KisiTip.LEAD)
                .values(tip=KisiTip.MUSTERI, updated_at=now_utc())
            )

    def _after_create(self, session: Session, row: Takip, payload: BaseModel, user: UserSession | None) -> None:
        gun_once = getattr(payload, "alarm_gun_once", None)
        if gun_once is None or row.bitis_tarihi is None:
            return
        actor_id = row.created_user_id
        alarm = Alarm(
            takip_id=row.id,
            tip=AlarmTip.TAKIP_BITIS,
            baslik="Takip bitiş hatırlatması",
            tetik_tarihi=row.bitis_tarihi - timedelta(days=gun_once),
            gun_once=gun_once,
            created_user_id=actor_id,
            updated_user_id=actor_id,
        )
        session.add(alarm)
        session.commit()
        session.refresh(alarm)
        audit.log_create("Alarm", alarm.id, alarm, alarm.baslik, session=user)

    def update(self, record_id: str, payload: BaseModel, *, user: UserSession | None = None) -> Takip:
        with self._session() as session:
            previous = self._get_or_404(session, record_id).durum
        row = super().update(record_id, payload, user=user)
        if row.durum != previous:
            audit.log_status_change(self.entity_type, row.id, str(previous), str(row.durum), session=user)
        return row
