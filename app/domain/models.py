from __future__ import annotations

import re
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any, ClassVar
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, ValidationInfo, field_validator, model_validator
from pydantic import Field as PydanticField
from sqlalchemy import JSON, Column, UniqueConstraint
from sqlmodel import Field, SQLModel

from app.domain.permissions import PersonelRol


def now_utc() -> datetime:
    return datetime.now(UTC)


def new_id() -> str:
    return str(uuid4())


class KisiTip(StrEnum):
    LEAD = "LEAD"
    MUSTERI = "MUSTERI"


class AracRenk(StrEnum):
    BEYAZ = "BEYAZ"
    SIYAH = "SIYAH"
    GRI = "GRI"
    GUMUS = "GUMUS"
    KIRMIZI = "KIRMIZI"
    MAVI = "MAVI"
    LACIVERT = "LACIVERT"
    YESIL = "YESIL"
    SARI = "SARI"
    TURUNCU = "TURUNCU"
    KAHVERENGI = "KAHVERENGI"
    BEJ = "BEJ"
    BORDO = "BORDO"
    DIGER = "DIGER"


class TakipDurum(StrEnum):
    UZATILACAK = "UZATILACAK"
    DEVAM_EDECEK = "DEVAM_EDECEK"
    SONLANDIRILACAK = "SONLANDIRILACAK"
    UZATILDI = "UZATILDI"


class AlarmTip(StrEnum):
    TAKIP_BITIS = "TAKIP_BITIS"
    ODEME_HATIRLATMA = "ODEME_HATIRLATMA"
    OZEL = "OZEL"


class AlarmDurum(StrEnum):
    BEKLIYOR = "BEKLIYOR"
    TETIKLENDI = "TETIKLENDI"
    GORULDU = "GORULDU"
    IPTAL = "IPTAL"


class AuditAction(StrEnum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    VIEW = "VIEW"
    LOGIN = "LOGIN"
    LOGOUT = "LOGOUT"
    LOGIN_FAIL = "LOGIN_FAIL"
    BULK_DELETE = "BULK_DELETE"
    BULK_ARCHIVE = "BULK_ARCHIVE"
    STATUS_CHANGE = "STATUS_CHANGE"


class TercihKategori(StrEnum):
    TABLO = "tablo"
    TEMA = "tema"
    GENEL = "genel"
    WORKSPACE = "workspace"


# --------------------------------------------------------------------------- tables


class AuditLog(SQLModel, table=True):
    __tablename__ = "loglar"

    id: str = Field(default_factory=new_id, primary_key=True)
    action: AuditAction = Field(index=True)
    description: str | None = None
    entity_type: str | None = Field(default=None, index=True)
    entity_id: str | None = Field(default=None, index=True)
    entity_label: str | None = None
    actor_id: str | None = Field(default=None, index=True)
    actor_name: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    before_state: dict[str, Any] | None = Field(default=None, sa_column=Column(JSON, nullable=True))
    after_state: dict[str, Any] | None = Field(default=None, sa_column=Column(JSON, nullable=True))
    changes: dict[str, Any] | None = Field(default=None, sa_column=Column(JSON, nullable=True))
    extra: dict[str, Any] | None = Field(default=None, sa_column=Column("metadata", JSON, nullable=True))
    ts: datetime = Field(default_factory=now_utc, index=True)


class Personel(SQLModel, table=True):
    __tablename__ = "personel"

    id: str = Field(default_factory=new_id, primary_key=True)
    visible_id: str = Field(index=True, unique=True)
    ad: str
    soyad: str
    parola: str
    rol: PersonelRol = Field(default=PersonelRol.STAFF, index=True)
    fotograf: str | None = None
    is_active: bool = Field(default=True)
    last_login_at: datetime | None = None
    created_at: datetime = Field(default_factory=now_utc, index=True)
    updated_at: datetime = Field(default_factory=now_utc)


class Kisi(SQLModel, table=True):
    __tablename__ = "kisiler"

    id: str = Field(default_factory=new_id, primary_key=True)
    tip: KisiTip = Field(default=KisiTip.LEAD, index=True)
    tc: str | None = Field(default=None, unique=True)
    ad: str = Field(index=True)
    soyad: str = Field(index=True)
    faaliyet: str | None = None
    pio: bool = Field(default=False)
    asli: bool = Field(default=False)
    fotograf: str | None = None
    is_archived: bool = Field(default=False, index=True)
    created_user_id: str | None = Field(default=None, index=True)
    updated_user_id: str | None = Field(default=None, index=True)
    created_at: datetime = Field(default_factory=now_utc, index=True)
    updated_at: datetime = Field(default_factory=now_utc)


class Gsm(SQLModel, table=True):
    __tablename__ = "gsmler"

    id: str = Field(default_factory=new_id, primary_key=True)
    numara: str = Field(index=True, unique=True)
    kisi_id: str = Field(foreign_key="kisiler.id", index=True)
    is_primary: bool = Field(default=False)
    created_user_id: str | None = Field(default=None, index=True)
    updated_user_id: str | None = Field(default=None, index=True)
    created_at: datetime = Field(default_factory=now_utc, index=True)
    updated_at: datetime = Field(default_factory=now_utc)


class KisiNot(SQLModel, table=True):
    __tablename__ = "notlar"

    id: str = Field(default_factory=new_id, primary_key=True)
    kisi_id: str = Field(foreign_key="kisiler.id", index=True)
    icerik: str
    created_user_id: str | None = Field(default=None, index=True)
    updated_user_id: str | None = Field(default=None, index=True)
    created_at: datetime = Field(default_factory=now_utc, index=True)
    updated_at: datetime = Field(default_factory=now_utc)


class Il(SQLModel, table=True):
    __tablename__ = "iller"

    id: str = Field(default_factory=new_id, primary_key=True)
    ad: str = Field(index=True, unique=True)
    plaka: int | None = Field(default=None, unique=True)
    is_active: bool = Field(default=True)
    created_user_id: str | None = Field(default=None, index=True)
    updated_user_id: str | None = Field(default=None, index=True)
    created_at: datetime = Field(default_factory=now_utc, index=True)
    updated_at: datetime = Field(default_factory=now_utc)


class Ilce(SQLModel, table=True):
    __tablename__ = "ilceler"
    __table_args__ = (UniqueConstraint("il_id", "ad", name="uq_ilceler_il_ad"),)

    id: str = Field(default_factory=new_id, primary_key=True)
    ad: str = Field(index=True)
    il_id: str = Field(foreign_key="iller.id", index=True)
    is_active: bool = Field(default=True)
    created_user_id: str | None = Field(default=None, index=True)
    updated_user_id: str | None = Field(default=None, index=True)
    created_at: datetime = Field(default_factory=now_utc, index=True)
    updated_at: datetime = Field(default_factory=now_utc)


class Mahalle(SQLModel, table=True):
    __tablename__ = "mahalleler"
    __table_args__ = (UniqueConstraint("ilce_id", "ad", name="uq_mahalleler_ilce_ad"),)

    id: str = Field(default_factory=new_id, primary_key=True)
    ad: str = Field(index=True)
    ilce_id: str = Field(foreign_key="ilceler.id", index=True)
    is_active: bool = Field(default=True)
    created_user_id: str | None = Field(default=None, index=True)
    updated_user_id: str | None = Field(default=None, index=True)
    created_at: datetime = Field(default_factory=now_utc, index=True)
    updated_at: datetime = Field(default_factory=now_utc)


class Marka(SQLModel, table=True):
    __tablename__ = "markalar"

    id: str = Field(default_factory=new_id, primary_key=True)
    ad: str = Field(index=True, unique=True)
    created_user_id: str | None = Field(default=None, index=True)
    updated_user_id: str | None = Field(default=None, index=True)
    created_at: datetime = Field(default_factory=now_utc, index=True)
    updated_at: datetime = Field(default_factory=now_utc)


class AracModel(SQLModel, table=True):
    __tablename__ = "modeller"
    __table_args__ = (UniqueConstraint("marka_id", "ad", name="uq_modeller_marka_ad"),)

    id: str = Field(default_factory=new_id, primary_key=True)
    ad: str = Field(index=True)
    marka_id: str = Field(foreign_key="markalar.id", index=True)
    created_user_id: str | None = Field(default=None, index=True)
    updated_user_id: str | None = Field(default=None, index=True)
    created_at: datetime = Field(default_factory=now_utc, index=True)
    updated_at: datetime = Field(default_factory=now_utc)


class Arac(SQLModel, table=True):
    __tablename__ = "araclar"

    id: str = Field(default_factory=new_id, primary_key=True)
    plaka: str = Field(index=True, unique=True)
    renk: AracRenk | None = None
    model_id: str = Field(foreign_key="modeller.id", index=True)
    created_user_id: str | None = Field(default=None, index=True)
    updated_user_id: str | None = Field(default=None, index=True)
    created_at: datetime = Field(default_factory=now_utc, index=True)
    updated_at: datetime = Field(default_factory=now_utc)


class AracKisi(SQLModel, table=True):
    __tablename__ = "arac_kisiler"

    arac_id: str = Field(foreign_key="araclar.id", primary_key=True)
    kisi_id: str = Field(foreign_key="kisiler.id", primary_key=True)
    aciklama: str | None = None
    created_at: datetime = Field(default_factory=now_utc, index=True)


class Adres(SQLModel, table=True):
    __tablename__ = "adresler"

    id: str = Field(default_factory=new_id, primary_key=True)
    ad: str | None = None
    kisi_id: str = Field(foreign_key="kisiler.id", index=True)
    mahalle_id: str = Field(foreign_key="mahalleler.id", index=True)
    detay: str | None = None
    is_primary: bool = Field(default=False)
    created_user_id: str | None = Field(default=None, index=True)
    updated_user_id: str | None = Field(default=None, index=True)
    created_at: datetime = Field(default_factory=now_utc, index=True)
    updated_at: datetime = Field(default_factory=now_utc)


class Tanitim(SQLModel, table=True):
    __tablename__ = "tanitimlar"

    id: str = Field(default_factory=new_id, primary_key=True)
    baslik: str | None = None
    tarih: datetime = Field(default_factory=now_utc, index=True)
    saat: str | None = None
    mahalle_id: str | None = Field(default=None, foreign_key="mahalleler.id", index=True)
    adres_detay: str | None = None
    notlar: str | None = None
    created_user_id: str | None = Field(default=None, index=True)
    updated_user_id: str | None = Field(default=None, index=True)
    created_at: datetime = Field(default_factory=now_utc, index=True)
    updated_at: datetime = Field(default_factory=now_utc)


class TanitimKatilimci(SQLModel, table=True):
    __tablename__ = "tanitim_katilimcilar"
    __table_args__ = (UniqueConstraint("tanitim_id", "kisi_id", name="uq_tanitim_katilimcilar_tanitim_kisi"),)

    id: str = Field(default_factory=new_id, primary_key=True)
    tanitim_id: str = Field(foreign_key="tanitimlar.id", index=True)
    kisi_id: str = Field(foreign_key="kisiler.id", index=True)
    gsm_id: str | None = Field(default=None, foreign_key="gsmler.id", index=True)
    created_at: datetime = Field(default_factory=now_utc, index=True)


class TanitimArac(SQLModel, table=True):
    __tablename__ = "tanitim_araclar"
    __table_args__ = (UniqueConstraint("tanitim_id", "arac_id", name="uq_tanitim_araclar_tanitim_arac"),)

    id: str = Field(default_factory=new_id, primary_key=True)
    tanitim_id: str = Field(foreign_key="tanitimlar.id", index=True)
    arac_id: str = Field(foreign_key="araclar.id", index=True)
    aciklama: str | None = None
    created_at: datetime = Field(default_factory=now_utc, index=True)


class Operasyon(SQLModel, table=True):
    __tablename__ = "operasyonlar"

    id: str = Field(default_factory=new_id, primary_key=True)
    baslik: str | None = None
    tarih: datetime = Field(default_factory=now_utc, index=True)
    saat: str | None = None
    mahalle_id: str | None = Field(default=None, foreign_key="mahalleler.id", index=True)
    adres_detay: str | None = None
    notlar: str | None = None
    created_user_id: str | None = Field(default=None, index=True)
    updated_user_id: str | None = Field(default=None, index=True)
    created_at: datetime = Field(default_factory=now_utc, index=True)
    updated_at: datetime = Field(default_factory=now_utc)


class OperasyonKatilimci(SQLModel, table=True):
    __tablename__ = "operasyon_katilimcilar"
    __table_args__ = (
        UniqueConstraint("operasyon_id", "kisi_id", name="uq_operasyon_katilimcilar_operasyon_kisi"),
    )

    id: str = Field(default_factory=new_id, primary_key=True)
    operasyon_id: str = Field(foreign_key="operasyonlar.id", index=True)
    kisi_id: str = Field(foreign_key="kisiler.id", index=True)
    gsm_id: str | None = Field(default=None, foreign_key="gsmler.id", index=True)
    created_at: datetime = Field(default_factory=now_utc, index=True)


class OperasyonArac(SQLModel, table=True):
    __tablename__ = "operasyon_araclar"
    __table_args__ = (UniqueConstraint("operasyon_id", "arac_id", name="uq_operasyon_araclar_operasyon_arac"),)

    id: str = Field(default_factory=new_id, primary_key=True)
    operasyon_id: str = Field(foreign_key="operasyonlar.id", index=True)
    arac_id: str = Field(foreign_key="araclar.id", index=True)
    aciklama: str | None = None
    created_at: datetime = Field(default_factory=now_utc, index=True)


class Takip(SQLModel, table=True):
    __tablename__ = "takipler"

    id: str = Field(default_factory=new_id, primary_key=True)
    gsm_id: str = Field(foreign_key="gsmler.id", index=True)
    baslama_tarihi: datetime = Field(default_factory=now_utc)
    bitis_tarihi: datetime | None = Field(default=None, index=True)
    durum: TakipDurum = Field(default=TakipDurum.UZATILACAK, index=True)
    is_active: bool = Field(default=True)
    created_user_id: str | None = Field(default=None, index=True)
    updated_user_id: str | None = Field(default=None, index=True)
    created_at: datetime = Field(default_factory=now_utc, index=True)
    updated_at: datetime = Field(default_factory=now_utc)


class Alarm(SQLModel, table=True):
    __tablename__ = "alarmlar"

    id: str = Field(default_factory=new_id, primary_key=True)
    takip_id: str | None = Field(default=None, foreign_key="takipler.id", index=True)
    tip: AlarmTip = Field(index=True)
    baslik: str | None = None
    mesaj: str | None = None
    tetik_tarihi: datetime = Field(index=True)
    gun_once: int = Field(default=20)
    durum: AlarmDurum = Field(default=AlarmDurum.BEKLIYOR, index=True)
    is_paused: bool = Field(default=False)
    created_user_id: str | None = Field(default=None, index=True)
    updated_user_id: str | None = Field(default=None, index=True)
    created_at: datetime = Field(default_factory=now_utc, index=True)
    updated_at: datetime = Field(default_factory=now_utc)


class KullaniciTercihi(SQLModel, table=True):
    __tablename__ = "kullanici_tercihleri"
    __table_args__ = (
        UniqueConstraint("personel_id", "kategori", "anahtar", name="uq_tercih_personel_kategori_anahtar"),
    )

    id: str = Field(default_factory=new_id, primary_key=True)
    personel_id: str = Field(foreign_key="personel.id", index=True)
    kategori: TercihKategori = Field(index=True)
    anahtar: str
    deger: Any = Field(default=None, sa_column=Column(JSON, nullable=True))
    created_at: datetime = Field(default_factory=now_utc, index=True)
    updated_at: datetime = Field(default_factory=now_utc)


# --------------------------------------------------------------------------- schemas


class ORMReadModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class InputModel(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)


class UpdateModel(InputModel):
    """Partial update body. Omitted fields stay untouched.

    Fields named in ``non_nullable`` map to NOT NULL columns, so an explicit
    ``null`` for them is rejected instead of reaching the database.
    """

    non_nullable: ClassVar[frozenset[str]] = frozenset()

    @field_validator("*")
    @classmethod
    def _reject_null(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None and info.field_name in cls.non_nullable:
            raise ValueError("Bu alan boş bırakılamaz")
        return value


class ListQuery(BaseModel):
    page: int = PydanticField(default=1, ge=1)
    limit: int = PydanticField(default=20, ge=1, le=100)
    search: str | None = None
    sort_by: str | None = None
    sort_order: str = PydanticField(default="asc", pattern="^(asc|desc)$")


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    totalPages: int


class LoginRequest(InputModel):
    visible_id: str = PydanticField(min_length=1)
    parola: str = PydanticField(min_length=1)


class PersonelCreate(InputModel):
    visible_id: str = PydanticField(pattern=r"^\d{6}$")
    ad: str = PydanticField(min_length=1, max_length=100)
    soyad: str = PydanticField(min_length=1, max_length=100)
    parola: str = PydanticField(min_length=6, max_length=100)
    rol: PersonelRol = PersonelRol.STAFF
    fotograf: str | None = PydanticField(default=None, max_length=500)
    is_active: bool = True


class PersonelUpdate(UpdateModel):
    non_nullable = frozenset({"visible_id", "ad", "soyad", "is_active"})

    visible_id: str | None = PydanticField(default=None, pattern=r"^\d{6}$")
    ad: str | None = PydanticField(default=None, min_length=1, max_length=100)
    soyad: str | None = PydanticField(default=None, min_length=1, max_length=100)
    fotograf: str | None = PydanticField(default=None, max_length=500)
    is_active: bool | None = None


class PersonelRolUpdate(BaseModel):
    rol: PersonelRol


class PasswordChangeRequest(BaseModel):
    current_password: str | None = None
    new_password: str = PydanticField(min_length=6, max_length=100)
    confirm_password: str = PydanticField(min_length=1)

    @model_validator(mode="after")
    def _passwords_match(self) -> PasswordChangeRequest:
        if self.new_password != self.confirm_password:
            raise ValueError("Şifreler eşleşmiyor")
        return self


class PersonelRead(ORMReadModel):
    id: str
    visible_id: str
    ad: str
    soyad: str
    rol: PersonelRol
    fotograf: str | None = None
    is_active: bool
    last_login_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class KisiCreate(InputModel):
    tip: KisiTip = KisiTip.LEAD
    tc: str | None = PydanticField(default=None, max_length=11)
    ad: str = PydanticField(min_length=1, max_length=100)
    soyad: str = PydanticField(min_length=1, max_length=100)
    faaliyet: str | None = PydanticField(default=None, max_length=5000)
    pio: bool = False
    asli: bool = False
    fotograf: str | None = PydanticField(default=None, max_length=500)


class KisiUpdate(UpdateModel):
    non_nullable = frozenset({"tip", "ad", "soyad", "pio", "asli", "is_archived"})

    tip: KisiTip | None = None
    tc: str | None = PydanticField(default=None, max_length=11)
    ad: str | None = PydanticField(default=None, min_length=1, max_length=100)
    soyad: str | None = PydanticField(default=None, min_length=1, max_length=100)
    faaliyet: str | None = PydanticField(default=None, max_length=5000)
    pio: bool | None = None
    asli: bool | None = None
    fotograf: str | None = PydanticField(default=None, max_length=500)
    is_archived: bool | None = None


class KisiRead(ORMReadModel):
    id: str
    tip: KisiTip
    tc: str | None = None
    ad: str
    soyad: str
    faaliyet: str | None = None
    pio: bool
    asli: bool
    fotograf: str | None = None
    is_archived: bool
    created_user_id: str | None = None
    updated_user_id: str | None = None
    created_at: datetime
    updated_at: datetime


class BatchDeleteRequest(BaseModel):
    ids: list[str] = PydanticField(min_length=1, max_length=100)

    @field_validator("ids")
    @classmethod
    def _uuid_ids(cls, value: list[str]) -> list[str]:
        for item in value:
            _ensure_uuid(item)
        return value


class BatchArchiveRequest(BatchDeleteRequest):
    is_archived: bool


class BatchOperationResult(BaseModel):
    success: int
    failed: int
    archived: int | None = None
    deleted: int | None = None


def _ensure_uuid(value: str) -> None:
    from uuid import UUID

    try:
        UUID(value)
    except (TypeError, ValueError) as exc:
        raise ValueError("Geçersiz ID formatı") from exc


class GsmCreate(InputModel):
    numara: str = PydanticField(min_length=10, max_length=20)
    kisi_id: str
    is_primary: bool = False

    @field_validator("numara")
    @classmethod
    def _compact_numara(cls, value: str) -> str:
        return value.replace(" ", "")


class GsmUpdate(UpdateModel):
    non_nullable = frozenset({"numara", "is_primary"})

    numara: str | None = PydanticField(default=None, min_length=10, max_length=20)
    is_primary: bool | None = None

    @field_validator("numara")
    @classmethod
    def _compact_numara(cls, value: str | None) -> str | None:
        return value.replace(" ", "") if value is not None else None


class GsmRead(ORMReadModel):
    id: str
    numara: str
    kisi_id: str
    is_primary: bool
    created_at: datetime
    updated_at: datetime


class NotCreate(InputModel):
    kisi_id: str
    icerik: str = PydanticField(min_length=1, max_length=10000)


class NotUpdate(UpdateModel):
    non_nullable = frozenset({"icerik"})

    icerik: str | None = PydanticField(default=None, min_length=1, max_length=10000)


class NotRead(ORMReadModel):
    id: str
    kisi_id: str
    icerik: str
    created_user_id: str | None = None
    created_at: datetime
    updated_at: datetime


class IlCreate(InputModel):
    ad: str = PydanticField(min_length=1, max_length=100)
    plaka: int | None = PydanticField(default=None, ge=1, le=81)
    is_active: bool = True


class IlUpdate(UpdateModel):
    non_nullable = frozenset({"ad", "is_active"})

    ad: str | None = PydanticField(default=None, min_length=1, max_length=100)
    plaka: int | None = PydanticField(default=None, ge=1, le=81)
    is_active: bool | None = None


class IlRead(ORMReadModel):
    id: str
    ad: str
    plaka: int | None = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class IlceCreate(InputModel):
    ad: str = PydanticField(min_length=1, max_length=100)
    il_id: str
    is_active: bool = True


class IlceUpdate(UpdateModel):
    non_nullable = frozenset({"ad", "is_active"})

    ad: str | None = PydanticField(default=None, min_length=1, max_length=100)
    is_active: bool | None = None


class IlceRead(ORMReadModel):
    id: str
    ad: str
    il_id: str
    is_active: bool
    created_at: datetime
    updated_at: datetime


class MahalleCreate(InputModel):
    ad: str = PydanticField(min_length=1, max_length=150)
    ilce_id: str
    is_active: bool = True


class MahalleUpdate(UpdateModel):
    non_nullable = frozenset({"ad", "is_active"})

    ad: str | None = PydanticField(default=None, min_length=1, max_length=150)
    is_active: bool | None = None


class MahalleRead(ORMReadModel):
    id: str
    ad: str
    ilce_id: str
    is_active: bool
    created_at: datetime
    updated_at: datetime


class MarkaCreate(InputModel):
    ad: str = PydanticField(min_length=1, max_length=100)


class MarkaUpdate(UpdateModel):
    non_nullable = frozenset({"ad"})

    ad: str | None = PydanticField(default=None, min_length=1, max_length=100)


class MarkaRead(ORMReadModel):
    id: str
    ad: str
    created_at: datetime
    updated_at: datetime


class AracModelCreate(InputModel):
    ad: str = PydanticField(min_length=1, max_length=100)
    marka_id: str


class AracModelUpdate(UpdateModel):
    non_nullable = frozenset({"ad"})

    ad: str | None = PydanticField(default=None, min_length=1, max_length=100)


class AracModelRead(ORMReadModel):
    id: str
    ad: str
    marka_id: str
    created_at: datetime
    updated_at: datetime


class AracCreate(InputModel):
    model_id: str
    renk: AracRenk | None = None
    plaka: str = PydanticField(min_length=1, max_length=20)
    kisi_ids: list[str] = PydanticField(default_factory=list)

    @field_validator("plaka")
    @classmethod
    def _upper_plaka(cls, value: str) -> str:
        return value.upper()


class AracUpdate(UpdateModel):
    non_nullable = frozenset({"model_id", "plaka"})

    model_id: str | None = None
    renk: AracRenk | None = None
    plaka: str | None = PydanticField(default=None, min_length=1, max_length=20)
    kisi_ids: list[str] | None = None

    @field_validator("plaka")
    @classmethod
    def _upper_plaka(cls, value: str | None) -> str | None:
        return value.upper() if value is not None else None


class AracRead(ORMReadModel):
    id: str
    plaka: str
    renk: AracRenk | None = None
    model_id: str
    created_at: datetime
    updated_at: datetime


class AracKisiCreate(InputModel):
    kisi_id: str
    aciklama: str | None = PydanticField(default=None, max_length=500)


class AracKisiRead(ORMReadModel):
    arac_id: str
    kisi_id: str
    aciklama: str | None = None
    created_at: datetime


class AdresCreate(InputModel):
    ad: str | None = PydanticField(default=None, max_length=50)
    kisi_id: str
    mahalle_id: str
    detay: str | None = PydanticField(default=None, max_length=2000)
    is_primary: bool = False


class AdresItem(InputModel):
    ad: str | None = PydanticField(default=None, max_length=50)
    mahalle_id: str
    detay: str | None = PydanticField(default=None, max_length=2000)
    is_primary: bool = False


class AdresBulkCreate(InputModel):
    kisi_id: str
    adresler: list[AdresItem]

    @field_validator("adresler")
    @classmethod
    def _at_least_one(cls, value: list[AdresItem]) -> list[AdresItem]:
        if not value:
            raise ValueError("En az bir adres gereklidir")
        return value


class AdresUpdate(UpdateModel):
    non_nullable = frozenset({"mahalle_id", "is_primary"})

    ad: str | None = PydanticField(default=None, max_length=50)
    mahalle_id: str | None = None
    detay: str | None = PydanticField(default=None, max_length=2000)
    is_primary: bool | None = None


class AdresRead(ORMReadModel):
    id: str
    ad: str | None = None
    kisi_id: str
    mahalle_id: str
    detay: str | None = None
    is_primary: bool
    created_user_id: str | None = None
    created_at: datetime
    updated_at: datetime


SAAT_PATTERN = re.compile(r"^([01]?[0-9]|2[0-3]):[0-5][0-9]$")


def _check_saat(value: str | None) -> str | None:
    if value is not None and not SAAT_PATTERN.match(value):
        raise ValueError("Geçersiz saat formatı (HH:mm)")
    return value


class KatilimciCreate(InputModel):
    kisi_id: str
    gsm_id: str | None = None


class EtkinlikAracCreate(InputModel):
    arac_id: str
    aciklama: str | None = PydanticField(default=None, max_length=500)


class EtkinlikCreate(InputModel):
    """Body shared by tanıtım and operasyon records."""

    baslik: str | None = PydanticField(default=None, max_length=200)
    tarih: datetime | None = None
    saat: str | None = None
    mahalle_id: str | None = None
    adres_detay: str | None = PydanticField(default=None, max_length=500)
    notlar: str | None = PydanticField(default=None, max_length=5000)
    katilimcilar: list[KatilimciCreate] = PydanticField(default_factory=list)
    araclar: list[EtkinlikAracCreate] = PydanticField(default_factory=list)

    _saat = field_validator("saat")(_check_saat)


class EtkinlikUpdate(UpdateModel):
    non_nullable = frozenset({"tarih"})

    baslik: str | None = PydanticField(default=None, max_length=200)
    tarih: datetime | None = None
    saat: str | None = None
    mahalle_id: str | None = None
    adres_detay: str | None = PydanticField(default=None, max_length=500)
    notlar: str | None = PydanticField(default=None, max_length=5000)

    _saat = field_validator("saat")(_check_saat)


class EtkinlikRead(ORMReadModel):
    id: str
    baslik: str | None = None
    tarih: datetime
    saat: str | None = None
    mahalle_id: str | None = None
    adres_detay: str | None = None
    notlar: str | None = None
    created_user_id: str | None = None
    updated_user_id: str | None = None
    created_at: datetime
    updated_at: datetime


class KatilimciRead(ORMReadModel):
    id: str
    kisi_id: str
    gsm_id: str | None = None
    created_at: datetime


class EtkinlikAracRead(ORMReadModel):
    id: str
    arac_id: str
    aciklama: str | None = None
    created_at: datetime


class TakipCreate(BaseModel):
    gsm_id: str
    baslama_tarihi: datetime | None = None
    bitis_tarihi: datetime | None = None
    durum: TakipDurum = TakipDurum.UZATILACAK
    alarm_gun_once: int | None = PydanticField(default=None, ge=1, le=365)

    @model_validator(mode="after")
    def _dates_in_order(self) -> TakipCreate:
        if self.baslama_tarihi and self.bitis_tarihi and self.bitis_tarihi < self.baslama_tarihi:
            raise ValueError("Bitiş tarihi başlama tarihinden önce olamaz")
        return self


class TakipUpdate(UpdateModel):
    non_nullable = frozenset({"baslama_tarihi", "durum", "is_active"})

    baslama_tarihi: datetime | None = None
    bitis_tarihi: datetime | None = None
    durum: TakipDurum | None = None
    is_active: bool | None = None

    @model_validator(mode="after")
    def _dates_in_order(self) -> TakipUpdate:
        if self.baslama_tarihi and self.bitis_tarihi and self.bitis_tarihi < self.baslama_tarihi:
            raise ValueError("Bitiş tarihi başlama tarihinden önce olamaz")
        return self


class TakipRead(ORMReadModel):
    id: str
    gsm_id: str
    baslama_tarihi: datetime
    bitis_tarihi: datetime | None = None
    durum: TakipDurum
    is_active: bool
    created_at: datetime
    updated_at: datetime


class AlarmCreate(InputModel):
    takip_id: str | None = None
    tip: AlarmTip
    baslik: str | None = PydanticField(default=None, max_length=200)
    mesaj: str | None = PydanticField(default=None, max_length=1000)
    tetik_tarihi: datetime
    gun_once: int = PydanticField(default=20, ge=1, le=365)


class AlarmUpdate(UpdateModel):
    non_nullable = frozenset({"tetik_tarihi", "gun_once", "is_paused", "durum"})

    baslik: str | None = PydanticField(default=None, max_length=200)
    mesaj: str | None = PydanticField(default=None, max_length=1000)
    tetik_tarihi: datetime | None = None
    gun_once: int | None = PydanticField(default=None, ge=1, le=365)
    is_paused: bool | None = None
    durum: AlarmDurum | None = None


class AlarmRead(ORMReadModel):
    id: str
    takip_id: str | None = None
    tip: AlarmTip
    baslik: str | None = None
    mesaj: str | None = None
    tetik_tarihi: datetime
    gun_once: int
    durum: AlarmDurum
    is_paused: bool
    created_at: datetime
    updated_at: datetime


class BildirimRead(BaseModel):
    bildirimler: list[AlarmRead]
    unread_count: int


class TercihUpsert(InputModel):
    kategori: TercihKategori
    anahtar: str = PydanticField(min_length=1, max_length=50)
    deger: Any = None


class TercihBatchUpsert(BaseModel):
    tercihler: list[TercihUpsert]


class TercihRead(ORMReadModel):
    id: str
    personel_id: str
    kategori: TercihKategori
    anahtar: str
    deger: Any = None
    updated_at: datetime


class AuditLogRead(ORMReadModel):
    id: str
    action: AuditAction
    description: str | None = None
    entity_type: str | None = None
    entity_id: str | None = None
    entity_label: str | None = None
    actor_id: str | None = None
    actor_name: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    before_state: dict[str, Any] | None = None
    after_state: dict[str, Any] | None = None
    changes: dict[str, Any] | None = None
    extra: dict[str, Any] | None = PydanticField(default=None, serialization_alias="metadata")
    ts: datetime


class WorkspaceActionType(StrEnum):
    OPEN_TAB = "OPEN_TAB"
    CLOSE_TAB = "CLOSE_TAB"
    CLOSE_OTHER_TABS = "CLOSE_OTHER_TABS"
    CLOSE_TABS_TO_RIGHT = "CLOSE_TABS_TO_RIGHT"
    CLOSE_ALL_TABS = "CLOSE_ALL_TABS"
    RESET = "RESET"
    REOPEN_LAST_CLOSED_TAB = "REOPEN_LAST_CLOSED_TAB"
    SET_ACTIVE = "SET_ACTIVE"
    UPDATE_SCROLL = "UPDATE_SCROLL"
    UPDATE_SPLIT_SCROLL = "UPDATE_SPLIT_SCROLL"
    UPDATE_TITLE = "UPDATE_TITLE"
    UPDATE_ICON = "UPDATE_ICON"
    SET_TAB_DIRTY = "SET_TAB_DIRTY"
    REORDER = "REORDER"
    PIN_TAB = "PIN_TAB"
    UNPIN_TAB = "UNPIN_TAB"
    CREATE_GROUP = "CREATE_GROUP"
    UPDATE_GROUP = "UPDATE_GROUP"
    DELETE_GROUP = "DELETE_GROUP"
    ASSIGN_TAB_TO_GROUP = "ASSIGN_TAB_TO_GROUP"
    SAVE_SESSION = "SAVE_SESSION"
    LOAD_SESSION = "LOAD_SESSION"
    DELETE_SESSION = "DELETE_SESSION"
    OPEN_SPLIT = "OPEN_SPLIT"
    SELECT_SPLIT_TAB = "SELECT_SPLIT_TAB"
    CLOSE_SPLIT = "CLOSE_SPLIT"


class WorkspaceAction(BaseModel):
    type: WorkspaceActionType
    path: str | None = PydanticField(default=None, max_length=500)
    background: bool = False
    tab_id: str | None = None
    group_id: str | None = None
    session_id: str | None = None
    live_scroll: int | None = PydanticField(default=None, ge=0)
    offset: int | None = PydanticField(default=None, ge=0)
    title: str | None = PydanticField(default=None, max_length=200)
    icon: str | None = PydanticField(default=None, max_length=50)
    dynamic: bool = True
    dirty: bool | None = None
    from_index: int | None = PydanticField(default=None, ge=0)
    to_index: int | None = PydanticField(default=None, ge=0)
    label: str | None = PydanticField(default=None, max_length=50)
    color: str | None = PydanticField(default=None, max_length=30)
    name: str | None = PydanticField(default=None, max_length=100)
    orientation: str = PydanticField(default="horizontal", pattern="^(horizontal|vertical)$")


class WorkspacePreferences(BaseModel):
    locale: str | None = PydanticField(default=None, pattern="^(tr|en)$")
    theme: str | None = PydanticField(default=None, pattern="^(light|dark|system)$")
