from __future__ import annotations

from typing import Any

from sqlmodel import Session, col, select

from app.domain.errors import NotFoundError
from app.domain.models import KullaniciTercihi, TercihKategori, TercihUpsert, now_utc
from app.infra.db import get_engine


class TercihService:
    """Per-personel key/value preferences grouped by kategori."""

    def _session(self) -> Session:
        return Session(get_engine(), expire_on_commit=False)

    def list_tercihler(
        self,
        personel_id: str,
        kategori: TercihKategori | None = None,
    ) -> list[KullaniciTercihi]:
        with self._session() as session:
            statement = select(KullaniciTercihi).where(KullaniciTercihi.personel_id == personel_id)
            if kategori is not None:
                statement = statement.where(KullaniciTercihi.kategori == kategori)
            statement = statement.order_by(col(KullaniciTercihi.kategori), col(KullaniciTercihi.anahtar))
            return list(session.exec(statement).all())

    def grouped(self, rows: list[KullaniciTercihi]) -> dict[str, dict[str, Any]]:
        grouped: dict[str, dict[str, Any]] = {}
        for row in rows:
            grouped.setdefault(str(row.kategori), {})[row.anahtar] = row.deger
        return grouped

    def get_value(self, personel_id: str, kategori: TercihKategori, anahtar: str) -> Any:
        with self._session() as session:
            row = self._find(session, personel_id, kategori, anahtar)
            return row.deger if row is not None else None

    def _find(
        self,
        session: Session,
        personel_id: str,
        kategori: TercihKategori,
        anahtar: str,
    ) -> KullaniciTercihi | None:
        return session.exec(
            select(KullaniciTercihi)
            .where(KullaniciTercihi.personel_id == personel_id)
            .where(KullaniciTercihi.kategori == kategori)
            .where(KullaniciTercihi.anahtar == anahtar)
        ).first()

    def _upsert(self, session: Session, personel_id: str, item: TercihUpsert) -> KullaniciTercihi:
        row = self._find(session, personel_id, item.kategori, item.anahtar)
        if row is None:
            row = KullaniciTercihi(
                personel_id=personel_id,
                kategori=item.kategori,
                anahtar=item.anahtar,
                deger=item.deger,
            )
        else:
            row.deger = item.deger
            row.updated_at = now_utc()
        session.add(row)
        return row

    def upsert(self, personel_id: str, item: TercihUpsert) -> KullaniciTercihi:
        with self._session() as session:
            row = self._upsert(session, personel_id, item)
            session.commit()
            session.refresh(row)
            return row

    def batch_upsert(self, personel_id: str, items: list[TercihUpsert]) -> list[KullaniciTercihi]:
        with self._session() as session, session.begin():
            rows = [self._upsert(session, personel_id, item) for item in items]
            session.flush()
        return rows

    def delete(self, personel_id: str, kategori: TercihKategori, anahtar: str) -> None:
        with self._session() as session:
            row = self._find(session, personel_id, kategori, anahtar)
            if row is None:
                raise NotFoundError("Tercih bulunamadı")
            session.delete(row)
            session.commit()
