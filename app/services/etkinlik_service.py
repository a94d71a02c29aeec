from __future__ import annotations

from typing import Any, ClassVar

from pydantic import BaseModel
from sqlalchemy import delete
from sqlmodel import Session, SQLModel, col, select

from app.domain.errors import ConflictError, NotFoundError, ValidationError
from app.domain.models import (
    Arac,
    EtkinlikAracCreate,
    Gsm,
    KatilimciCreate,
    Kisi,
    Mahalle,
    Operasyon,
    OperasyonArac,
    OperasyonKatilimci,
    Tanitim,
    TanitimArac,
    TanitimKatilimci,
    now_utc,
)
from app.infra import audit
from app.infra.auth import UserSession
from app.services.resource_service import ModelT, ParentRef, ResourceService, exists_all


class EtkinlikService(ResourceService[ModelT]):
    """Dated field activity with participating kişiler and vehicles.

    Participant and vehicle links belong to the record: they are created with
    it, managed through their own sub-resources and removed with it.
    """

    katilimci_model: ClassVar[type[SQLModel]]
    arac_model: ClassVar[type[SQLModel]]
    owner_column: ClassVar[str]

    search_fields = ("adres_detay", "notlar")
    sortable_fields = frozenset({"tarih", "created_at", "updated_at"})
    default_sort = ("tarih", "desc")
    parents = (ParentRef("mahalle_id", Mahalle, "Mahalle bulunamadı"),)

    def label(self, row: Any) -> str | None:
        return row.adres_detay

    @property
    def katilimci_entity(self) -> str:
        return f"{self.entity_type}Katilimci"

    @property
    def arac_entity(self) -> str:
        return f"{self.entity_type}Arac"

    # ------------------------------------------------------------------ record

    def _create_data(self, payload: BaseModel) -> dict[str, Any]:
        data = payload.model_dump(exclude={"katilimcilar", "araclar"})
        data["tarih"] = data.get("tarih") or now_utc()
        return data

    def create(self, payload: BaseModel, *, user: UserSession | None = None) -> ModelT:
        katilimcilar = _unique(getattr(payload, "katilimcilar", []), "kisi_id")
        araclar = _unique(getattr(payload, "araclar", []), "arac_id")
        with self._session() as session:
            for item in katilimcilar:
                self._check_katilimci(session, item)
            if not exists_all(session, Arac, [item.arac_id for item in araclar]):
                raise NotFoundError("Araç bulunamadı")
        return super().create(payload, user=user)

    def _after_create(self, session: Session, row: Any, payload: BaseModel, user: UserSession | None) -> None:
        for item in _unique(getattr(payload, "katilimcilar", []), "kisi_id"):
            session.add(self.katilimci_model(**{self.owner_column: row.id, **item.model_dump()}))
        for item in _unique(getattr(payload, "araclar", []), "arac_id"):
            session.add(self.arac_model(**{self.owner_column: row.id, **item.model_dump()}))
        session.commit()

    def _before_delete(self, session: Session, row: Any, user: UserSession | None) -> None:
        for link_model in (self.katilimci_model, self.arac_model):
            owner = col(getattr(link_model, self.owner_column))
            session.exec(delete(link_model).where(owner == row.id))  # type: ignore[call-overload]

    def _apply_extra_filters(self, statement: Any, extra: dict[str, Any]) -> Any:
        tarih = col(getattr(self.model, "tarih"))
        if "tarih_baslangic" in extra:
            statement = statement.where(tarih >= extra["tarih_baslangic"])
        if "tarih_bitis" in extra:
            statement = statement.where(tarih <= extra["tarih_bitis"])
        if "kisi_id" in extra:
            owner = getattr(self.katilimci_model, self.owner_column)
            participants = select(owner).where(col(getattr(self.katilimci_model, "kisi_id")) == extra["kisi_id"])
            statement = statement.where(col(getattr(self.model, "id")).in_(participants))
        return statement

    # ------------------------------------------------------------------ katılımcılar

    def _check_katilimci(self, session: Session, item: KatilimciCreate) -> None:
        if session.get(Kisi, item.kisi_id) is None:
            raise NotFoundError("Kişi bulunamadı")
        if item.gsm_id is None:
            return
        gsm = session.get(Gsm, item.gsm_id)
        if gsm is None:
            raise NotFoundError("GSM bulunamadı")
        if gsm.kisi_id != item.kisi_id:
            raise ValidationError.for_field("gsm_id", "GSM bu kişiye ait değil")

    def list_katilimcilar(self, record_id: str) -> list[Any]:
        with self._session() as session:
            self._get_or_404(session, record_id)
            owner = col(getattr(self.katilimci_model, self.owner_column))
            statement = (
                select(self.katilimci_model)
                .where(owner == record_id)
                .order_by(col(getattr(self.katilimci_model, "created_at")))
            )
            return list(session.exec(statement).all())

    def add_katilimci(self, record_id: str, payload: KatilimciCreate, *, user: UserSession | None = None) -> Any:
        with self._session() as session:
            self._get_or_404(session, record_id)
            self._check_katilimci(session, payload)
            kisi = session.get(Kisi, payload.kisi_id)
            existing = session.exec(
                select(self.katilimci_model)
                .where(col(getattr(self.katilimci_model, self.owner_column)) == record_id)
                .where(col(getattr(self.katilimci_model, "kisi_id")) == payload.kisi_id)
            ).first()
            if existing is not None:
                raise ConflictError("Bu kişi zaten katılımcı olarak eklenmiş")
            link = self.katilimci_model(**{self.owner_column: record_id, **payload.model_dump()})
            session.add(link)
            self._commit(session)
            session.refresh(link)
        label = f"{kisi.ad} {kisi.soyad}" if kisi is not None else None
        audit.log_create(self.katilimci_entity, link.id, link, label, session=user)  # type: ignore[attr-defined]
        return link

    def remove_katilimci(self, record_id: str, katilimci_id: str, *, user: UserSession | None = None) -> None:
        with self._session() as session:
            self._get_or_404(session, record_id)
            link = session.get(self.katilimci_model, katilimci_id)
            if link is None or getattr(link, self.owner_column) != record_id:
                raise NotFoundError("Katılımcı bulunamadı")
            before = audit.snapshot(link)
            session.delete(link)
            session.commit()
        audit.log_delete(self.katilimci_entity, katilimci_id, before, session=user)

    # ------------------------------------------------------------------ araçlar

    def list_araclar(self, record_id: str) -> list[Any]:
        with self._session() as session:
            self._get_or_404(session, record_id)
            owner = col(getattr(self.arac_model, self.owner_column))
            statement = (
                select(self.arac_model).where(owner == record_id).order_by(col(getattr(self.arac_model, "created_at")))
            )
            return list(session.exec(statement).all())

    def add_arac(self, record_id: str, payload: EtkinlikAracCreate, *, user: UserSession | None = None) -> Any:
        with self._session() as session:
            self._get_or_404(session, record_id)
            arac = session.get(Arac, payload.arac_id)
            if arac is None:
                raise NotFoundError("Araç bulunamadı")
            existing = session.exec(
                select(self.arac_model)
                .where(col(getattr(self.arac_model, self.owner_column)) == record_id)
                .where(col(getattr(self.arac_model, "arac_id")) == payload.arac_id)
            ).first()
            if existing is not None:
                raise ConflictError("Bu araç zaten eklenmiş")
            link = self.arac_model(**{self.owner_column: record_id, **payload.model_dump()})
            session.add(link)
            self._commit(session)
            session.refresh(link)
        audit.log_create(self.arac_entity, link.id, link, arac.plaka, session=user)  # type: ignore[attr-defined]
        return link

    def remove_arac(self, record_id: str, link_id: str, *, user: UserSession | None = None) -> None:
        with self._session() as session:
            self._get_or_404(session, record_id)
            link = session.get(self.arac_model, link_id)
            if link is None or getattr(link, self.owner_column) != record_id:
                raise NotFoundError("Araç ilişkisi bulunamadı")
            before = audit.snapshot(link)
            session.delete(link)
            session.commit()
        audit.log_delete(self.arac_entity, link_id, before, session=user)


class TanitimService(EtkinlikService[Tanitim]):
    model = Tanitim
    entity_type = "Tanitim"
    not_found_message = "Tanıtım bulunamadı"
    katilimci_model = TanitimKatilimci
    arac_model = TanitimArac
    owner_column = "tanitim_id"


class OperasyonService(EtkinlikService[Operasyon]):
    model = Operasyon
    entity_type = "Operasyon"
    not_found_message = "Operasyon bulunamadı"
    katilimci_model = OperasyonKatilimci
    arac_model = OperasyonArac
    owner_column = "operasyon_id"


def _unique(items: list[Any], key: str) -> list[Any]:
    seen: dict[str, Any] = {}
    for item in items:
        seen.setdefault(getattr(item, key), item)
    return list(seen.values())
