"""Routers for tanıtım and operasyon records.

Both resources share one shape, so a single builder produces each router.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query, status

from app.api.deps import CurrentSession, ListParams
from app.api.responses import Envelope, PagedEnvelope, ok, paged
from app.domain.models import (
    EtkinlikAracCreate,
    EtkinlikAracRead,
    EtkinlikCreate,
    EtkinlikRead,
    EtkinlikUpdate,
    KatilimciCreate,
    KatilimciRead,
)
from app.services.etkinlik_service import EtkinlikService, OperasyonService, TanitimService


def build_etkinlik_router(service_class: type[EtkinlikService], deleted_message: str) -> APIRouter:
    router = APIRouter()

    def get_service() -> EtkinlikService:
        return service_class()

    @router.get("", response_model=PagedEnvelope[EtkinlikRead])
    def list_records(
        session: CurrentSession,
        query: ListParams,
        mahalle_id: str | None = None,
        kisi_id: str | None = None,
        tarih_baslangic: Annotated[datetime | None, Query(alias="tarihBaslangic")] = None,
        tarih_bitis: Annotated[datetime | None, Query(alias="tarihBitis")] = None,
        service: EtkinlikService = Depends(get_service),
    ) -> dict[str, Any]:
        page = service.list_page(
            query,
            filters={"mahalle_id": mahalle_id},
            extra={"kisi_id": kisi_id, "tarih_baslangic": tarih_baslangic, "tarih_bitis": tarih_bitis},
            user=session,
        )
        return paged(
            [EtkinlikRead.model_validate(item) for item in page.items],
            page=page.page,
            limit=page.limit,
            total=page.total,
        )

    @router.post("", response_model=Envelope[EtkinlikRead], status_code=status.HTTP_201_CREATED)
    def create_record(
        payload: EtkinlikCreate,
        session: CurrentSession,
        service: EtkinlikService = Depends(get_service),
    ) -> dict[str, Any]:
        return ok(EtkinlikRead.model_validate(service.create(payload, user=session)))

    @router.get("/{record_id}", response_model=Envelope[EtkinlikRead])
    def get_record(
        record_id: str,
        session: CurrentSession,
        service: EtkinlikService = Depends(get_service),
    ) -> dict[str, Any]:
        return ok(EtkinlikRead.model_validate(service.get(record_id, user=session)))

    @router.put("/{record_id}", response_model=Envelope[EtkinlikRead])
    def update_record(
        record_id: str,
        payload: EtkinlikUpdate,
        session: CurrentSession,
        service: EtkinlikService = Depends(get_service),
    ) -> dict[str, Any]:
        return ok(EtkinlikRead.model_validate(service.update(record_id, payload, user=session)))

    @router.delete("/{record_id}", response_model=Envelope[dict[str, str]])
    def delete_record(
        record_id: str,
        session: CurrentSession,
        service: EtkinlikService = Depends(get_service),
    ) -> dict[str, Any]:
        service.delete(record_id, user=session)
        return ok({"message": deleted_message})

    @router.get("/{record_id}/katilimcilar", response_model=Envelope[list[KatilimciRead]])
    def list_katilimcilar(
        record_id: str,
        session: CurrentSession,
        service: EtkinlikService = Depends(get_service),
    ) -> dict[str, Any]:
        return ok([KatilimciRead.model_validate(item) for item in service.list_katilimcilar(record_id)])

    @router.post(
        "/{record_id}/katilimcilar",
        response_model=Envelope[KatilimciRead],
        status_code=status.HTTP_201_CREATED,
    )
    def add_katilimci(
        record_id: str,
        payload: KatilimciCreate,
        session: CurrentSession,
        service: EtkinlikService = Depends(get_service),
    ) -> dict[str, Any]:
        return ok(KatilimciRead.model_validate(service.add_katilimci(record_id, payload, user=session)))

    @router.delete("/{record_id}/katilimcilar/{katilimci_id}", response_model=Envelope[dict[str, str]])
    def remove_katilimci(
        record_id: str,
        katilimci_id: str,
        session: CurrentSession,
        service: EtkinlikService = Depends(get_service),
    ) -> dict[str, Any]:
        service.remove_katilimci(record_id, katilimci_id, user=session)
        return ok({"message": "Katılımcı başarıyla silindi"})

    @router.get("/{record_id}/araclar", response_model=Envelope[list[EtkinlikAracRead]])
    def list_araclar(
        record_id: str,
        session: CurrentSession,
        service: EtkinlikService = Depends(get_service),
    ) -> dict[str, Any]:
        return ok([EtkinlikAracRead.model_validate(item) for item in service.list_araclar(record_id)])

    @router.post(
        "/{record_id}/araclar",
        response_model=Envelope[EtkinlikAracRead],
        status_code=status.HTTP_201_CREATED,
    )
    def add_arac(
        record_id: str,
        payload: EtkinlikAracCreate,
        session: CurrentSession,
        service: EtkinlikService = Depends(get_service),
    ) -> dict[str, Any]:
        return ok(EtkinlikAracRead.model_validate(service.add_arac(record_id, payload, user=session)))

    @router.delete("/{record_id}/araclar/{link_id}", response_model=Envelope[dict[str, str]])
    def remove_arac(
        record_id: str,
        link_id: str,
        session: CurrentSession,
        service: EtkinlikService = Depends(get_service),
    ) -> dict[str, Any]:
        service.remove_arac(record_id, link_id, user=session)
        return ok({"message": "Araç başarıyla kaldırıldı"})

    return router


tanitim_router = build_etkinlik_router(TanitimService, "Tanıtım silindi")
operasyon_router = build_etkinlik_router(OperasyonService, "Operasyon silindi")
