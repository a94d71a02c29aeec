from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends

from app.api.deps import CurrentSession
from app.api.responses import Envelope, ok
from app.domain.models import TercihBatchUpsert, TercihKategori, TercihRead, TercihUpsert
from app.services.tercih_service import TercihService

router = APIRouter()


def get_tercih_service() -> TercihService:
    return TercihService()


Service = Annotated[TercihService, Depends(get_tercih_service)]


@router.get("", response_model=Envelope[dict[str, dict[str, Any]]])
def list_tercihler(
    session: CurrentSession,
    service: Service,
    kategori: TercihKategori | None = None,
) -> dict[str, Any]:
    return ok(service.grouped(service.list_tercihler(session.subject_id, kategori)))


@router.post("", response_model=Envelope[TercihRead])
def upsert_tercih(payload: TercihUpsert, session: CurrentSession, service: Service) -> dict[str, Any]:
    return ok(TercihRead.model_validate(service.upsert(session.subject_id, payload)))


@router.put("", response_model=Envelope[list[TercihRead]])
def batch_upsert_tercihler(payload: TercihBatchUpsert, session: CurrentSession, service: Service) -> dict[str, Any]:
    rows = service.batch_upsert(session.subject_id, payload.tercihler)
    return ok([TercihRead.model_validate(item) for item in rows])


@router.delete("/{kategori}/{anahtar}", response_model=Envelope[dict[str, str]])
def delete_tercih(
    kategori: TercihKategori,
    anahtar: str,
    session: CurrentSession,
    service: Service,
) -> dict[str, Any]:
    service.delete(session.subject_id, kategori, anahtar)
    return ok({"message": "Tercih silindi"})
