"""adresler, tanitimlar and operasyonlar

Revision ID: 202610190002
Revises: 202610190001
Create Date: 2026-10-19
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "202610190002"
down_revision = "202610190001"
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


def _create_etkinlik_tables(table: str, owner_column: str, link_prefix: str) -> None:
    op.create_table(
        table,
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("baslik", sa.String(), nullable=True),
        sa.Column("tarih", sa.DateTime(timezone=True), nullable=False),
        sa.Column("saat", sa.String(), nullable=True),
        sa.Column("mahalle_id", sa.String(), nullable=True),
        sa.Column("adres_detay", sa.String(), nullable=True),
        sa.Column("notlar", sa.String(), nullable=True),
        *_tracking_columns(),
        sa.ForeignKeyConstraint(["mahalle_id"], ["mahalleler.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(f"ix_{table}_tarih", table, ["tarih"])
    op.create_index(f"ix_{table}_mahalle_id", table, ["mahalle_id"])
    _tracking_indexes(table)

    katilimcilar = f"{link_prefix}_katilimcilar"
    op.create_table(
        katilimcilar,
        sa.Column("id", sa.String(), nullable=False),
        sa.Column(owner_column, sa.String(), nullable=False),
        sa.Column("kisi_id", sa.String(), nullable=False),
        sa.Column("gsm_id", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint([owner_column], [f"{table}.id"]),
        sa.ForeignKeyConstraint(["kisi_id"], ["kisiler.id"]),
        sa.ForeignKeyConstraint(["gsm_id"], ["gsmler.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(owner_column, "kisi_id", name=f"uq_{katilimcilar}_{link_prefix}_kisi"),
    )
    for column in (owner_column, "kisi_id", "gsm_id", "created_at"):
        op.create_index(f"ix_{katilimcilar}_{column}", katilimcilar, [column])

    araclar = f"{link_prefix}_araclar"
    op.create_table(
        araclar,
        sa.Column("id", sa.String(), nullable=False),
        sa.Column(owner_column, sa.String(), nullable=False),
        sa.Column("arac_id", sa.String(), nullable=False),
        sa.Column("aciklama", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint([owner_column], [f"{table}.id"]),
        sa.ForeignKeyConstraint(["arac_id"], ["araclar.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(owner_column, "arac_id", name=f"uq_{araclar}_{link_prefix}_arac"),
    )
    for column in (owner_column, "arac_id", "created_at"):
        op.create_index(f"ix_{araclar}_{column}", araclar, [column])


def upgrade() -> None:
    op.create_table(
        "adresler",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("ad", sa.String(), nullable=True),
        sa.Column("kisi_id", sa.String(), nullable=False),
        sa.Column("mahalle_id", sa.String(), nullable=False),
        sa.Column("detay", sa.String(), nullable=True),
        sa.Column("is_primary", sa.Boolean(), nullable=False),
        *_tracking_columns(),
        sa.ForeignKeyConstraint(["kisi_id"], ["kisiler.id"]),
        sa.ForeignKeyConstraint(["mahalle_id"], ["mahalleler.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_adresler_kisi_id", "adresler", ["kisi_id"])
    op.create_index("ix_adresler_mahalle_id", "adresler", ["mahalle_id"])
    _tracking_indexes("adresler")

    _create_etkinlik_tables("tanitimlar", "tanitim_id", "tanitim")
    _create_etkinlik_tables("operasyonlar", "operasyon_id", "operasyon")


def downgrade() -> None:
    for table in (
        "operasyon_araclar",
        "operasyon_katilimcilar",
        "operasyonlar",
        "tanitim_araclar",
        "tanitim_katilimcilar",
        "tanitimlar",
        "adresler",
    ):
        op.drop_table(table)
