"""init altay tables

Revision ID: 202610190001
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "202610190001"
down_revision = None
branch_labels = None
depends_on = None


def _tracking_columns() -> list[sa.Column]:
    return [
        sa.Column("created_user_id", sa.String(), nullable=True),
        sa.Column("updated_user_id", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def _tracking_indexes(table: str) -> None:
    op.create_index(f"ix_{table}_created_user_id", table, ["created_user_id"])
    op.create_index(f"ix_{table}_updated_user_id", table, ["updated_user_id"])
    op.create_index(f"ix_{table}_created_at", table, ["created_at"])


def upgrade() -> None:
    op.create_table(
        "loglar",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("action", sa.String(), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("entity_type", sa.String(), nullable=True),
        sa.Column("entity_id", sa.String(), nullable=True),
        sa.Column("entity_label", sa.String(), nullable=True),
        sa.Column("actor_id", sa.String(), nullable=True),
        sa.Column("actor_name", sa.String(), nullable=True),
        sa.Column("ip_address", sa.String(), nullable=True),
        sa.Column("user_agent", sa.String(), nullable=True),
        sa.Column("before_state", sa.JSON(), nullable=True),
        sa.Column("after_state", sa.JSON(), nullable=True),
        sa.Column("changes", sa.JSON(), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("ts", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_loglar_action", "loglar", ["action"])
    op.create_index("ix_loglar_entity_type", "loglar", ["entity_type"])
    op.create_index("ix_loglar_entity_id", "loglar", ["entity_id"])
    op.create_index("ix_loglar_actor_id", "loglar", ["actor_id"])
    op.create_index("ix_loglar_ts", "loglar", ["ts"])

    op.create_table(
        "personel",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("visible_id", sa.String(), nullable=False),
        sa.Column("ad", sa.String(), nullable=False),
        sa.Column("soyad", sa.String(), nullable=False),
        sa.Column("parola", sa.String(), nullable=False),
        sa.Column("rol", sa.String(), nullable=False),
        sa.Column("fotograf", sa.String(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_personel_visible_id", "personel", ["visible_id"], unique=True)
    op.create_index("ix_personel_rol", "personel", ["rol"])
    op.create_index("ix_personel_created_at", "personel", ["created_at"])

    op.create_table(
        "kisiler",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("tip", sa.String(), nullable=False),
        sa.Column("tc", sa.String(), nullable=True),
        sa.Column("ad", sa.String(), nullable=False),
        sa.Column("soyad", sa.String(), nullable=False),
        sa.Column("faaliyet", sa.String(), nullable=True),
        sa.Column("pio", sa.Boolean(), nullable=False),
        sa.Column("asli", sa.Boolean(), nullable=False),
        sa.Column("fotograf", sa.String(), nullable=True),
        sa.Column("is_archived", sa.Boolean(), nullable=False),
        *_tracking_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("tc"),
    )
    op.create_index("ix_kisiler_tip", "kisiler", ["tip"])
    op.create_index("ix_kisiler_ad", "kisiler", ["ad"])
    op.create_index("ix_kisiler_soyad", "kisiler", ["soyad"])
    op.create_index("ix_kisiler_is_archived", "kisiler", ["is_archived"])
    _tracking_indexes("kisiler")

    op.create_table(
        "gsmler",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("numara", sa.String(), nullable=False),
        sa.Column("kisi_id", sa.String(), nullable=False),
        sa.Column("is_primary", sa.Boolean(), nullable=False),
        *_tracking_columns(),
        sa.ForeignKeyConstraint(["kisi_id"], ["kisiler.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_gsmler_numara", "gsmler", ["numara"], unique=True)
    op.create_index("ix_gsmler_kisi_id", "gsmler", ["kisi_id"])
    _tracking_indexes("gsmler")

    op.create_table(
        "notlar",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("kisi_id", sa.String(), nullable=False),
        sa.Column("icerik", sa.String(), nullable=False),
        *_tracking_columns(),
        sa.ForeignKeyConstraint(["kisi_id"], ["kisiler.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_notlar_kisi_id", "notlar", ["kisi_id"])
    _tracking_indexes("notlar")

    op.create_table(
        "iller",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("ad", sa.String(), nullable=False),
        sa.Column("plaka", sa.Integer(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_tracking_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("plaka"),
    )
    op.create_index("ix_iller_ad", "iller", ["ad"], unique=True)
    _tracking_indexes("iller")

    op.create_table(
        "ilceler",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("ad", sa.String(), nullable=False),
        sa.Column("il_id", sa.String(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_tracking_columns(),
        sa.ForeignKeyConstraint(["il_id"], ["iller.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("il_id", "ad", name="uq_ilceler_il_ad"),
    )
    op.create_index("ix_ilceler_ad", "ilceler", ["ad"])
    op.create_index("ix_ilceler_il_id", "ilceler", ["il_id"])
    _tracking_indexes("ilceler")

    op.create_table(
        "mahalleler",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("ad", sa.String(), nullable=False),
        sa.Column("ilce_id", sa.String(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_tracking_columns(),
        sa.ForeignKeyConstraint(["ilce_id"], ["ilceler.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("ilce_id", "ad", name="uq_mahalleler_ilce_ad"),
    )
    op.create_index("ix_mahalleler_ad", "mahalleler", ["ad"])
    op.create_index("ix_mahalleler_ilce_id", "mahalleler", ["ilce_id"])
    _tracking_indexes("mahalleler")

    op.create_table(
        "markalar",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("ad", sa.String(), nullable=False),
        *_tracking_columns(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_markalar_ad", "markalar", ["ad"], unique=True)
    _tracking_indexes("markalar")

    op.create_table(
        "modeller",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("ad", sa.String(), nullable=False),
        sa.Column("marka_id", sa.String(), nullable=False),
        *_tracking_columns(),
        sa.ForeignKeyConstraint(["marka_id"], ["markalar.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("marka_id", "ad", name="uq_modeller_marka_ad"),
    )
    op.create_index("ix_modeller_ad", "modeller", ["ad"])
    op.create_index("ix_modeller_marka_id", "modeller", ["marka_id"])
    _tracking_indexes("modeller")

    op.create_table(
        "araclar",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("plaka", sa.String(), nullable=False),
        sa.Column("renk", sa.String(), nullable=True),
        sa.Column("model_id", sa.String(), nullable=False),
        *_tracking_columns(),
        sa.ForeignKeyConstraint(["model_id"], ["modeller.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_araclar_plaka", "araclar", ["plaka"], unique=True)
    op.create_index("ix_araclar_model_id", "araclar", ["model_id"])
    _tracking_indexes("araclar")

    op.create_table(
        "arac_kisiler",
        sa.Column("arac_id", sa.String(), nullable=False),
        sa.Column("kisi_id", sa.String(), nullable=False),
        sa.Column("aciklama", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["arac_id"], ["araclar.id"]),
        sa.ForeignKeyConstraint(["kisi_id"], ["kisiler.id"]),
        sa.PrimaryKeyConstraint("arac_id", "kisi_id"),
    )
    op.create_index("ix_arac_kisiler_created_at", "arac_kisiler", ["created_at"])

    op.create_table(
        "takipler",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("gsm_id", sa.String(), nullable=False),
        sa.Column("baslama_tarihi", sa.DateTime(timezone=True), nullable=False),
        sa.Column("bitis_tarihi", sa.DateTime(timezone=True), nullable=True),
        sa.Column("durum", sa.String(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_tracking_columns(),
        sa.ForeignKeyConstraint(["gsm_id"], ["gsmler.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_takipler_gsm_id", "takipler", ["gsm_id"])
    op.create_index("ix_takipler_bitis_tarihi", "takipler", ["bitis_tarihi"])
    op.create_index("ix_takipler_durum", "takipler", ["durum"])
    _tracking_indexes("takipler")

    op.create_table(
        "alarmlar",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("takip_id", sa.String(), nullable=True),
        sa.Column("tip", sa.String(), nullable=False),
        sa.Column("baslik", sa.String(), nullable=True),
        sa.Column("mesaj", sa.String(), nullable=True),
        sa.Column("tetik_tarihi", sa.DateTime(timezone=True), nullable=False),
        sa.Column("gun_once", sa.Integer(), nullable=False),
        sa.Column("durum", sa.String(), nullable=False),
        sa.Column("is_paused", sa.Boolean(), nullable=False),
        *_tracking_columns(),
        sa.ForeignKeyConstraint(["takip_id"], ["takipler.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_alarmlar_takip_id", "alarmlar", ["takip_id"])
    op.create_index("ix_alarmlar_tip", "alarmlar", ["tip"])
    op.create_index("ix_alarmlar_tetik_tarihi", "alarmlar", ["tetik_tarihi"])
    op.create_index("ix_alarmlar_durum", "alarmlar", ["durum"])
    _tracking_indexes("alarmlar")

    op.create_table(
        "kullanici_tercihleri",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("personel_id", sa.String(), nullable=False),
        sa.Column("kategori", sa.String(), nullable=False),
        sa.Column("anahtar", sa.String(), nullable=False),
        sa.Column("deger", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["personel_id"], ["personel.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "personel_id",
            "kategori",
            "anahtar",
            name="uq_tercih_personel_kategori_anahtar",
        ),
    )
    op.create_index("ix_kullanici_tercihleri_personel_id", "kullanici_tercihleri", ["personel_id"])
    op.create_index("ix_kullanici_tercihleri_kategori", "kullanici_tercihleri", ["kategori"])
    op.create_index("ix_kullanici_tercihleri_created_at", "kullanici_tercihleri", ["created_at"])


def downgrade() -> None:
    for table in (
        "kullanici_tercihleri",
        "alarmlar",
        "takipler",
        "arac_kisiler",
        "araclar",
        "modeller",
        "markalar",
        "mahalleler",
        "ilceler",
        "iller",
        "notlar",
        "gsmler",
        "kisiler",
        "personel",
        "loglar",
    ):
        op.drop_table(table)
