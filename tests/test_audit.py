from __future__ import annotations

from app.domain.models import Kisi
from app.infra.audit import MASK, diff, sanitize, snapshot


def test_sanitize_masks_secrets_without_touching_input() -> None:
    data = {"visible_id": "100001", "parola": "pbkdf2_sha256$1$x$y", "token": "abc"}
    masked = sanitize(data)
    assert masked == {"visible_id": "100001", "parola": MASK, "token": MASK}
    assert data["parola"] == "pbkdf2_sha256$1$x$y"
    assert sanitize(None) is None


def test_diff_reports_changed_fields_and_ignores_bookkeeping() -> None:
    before = {"ad": "Ali", "soyad": "Kaya", "updated_at": "2026-01-01", "updated_user_id": "u1"}
    after = {"ad": "Ali", "soyad": "Kara", "updated_at": "2026-02-01", "updated_user_id": "u2", "pio": True}
    assert diff(before, after) == {
        "pio": {"before": None, "after": True},
        "soyad": {"before": "Kaya", "after": "Kara"},
    }


def test_diff_is_none_without_both_sides_or_changes() -> None:
    assert diff(None, {"ad": "x"}) is None
    assert diff({"ad": "x"}, None) is None
    assert diff({"ad": "x"}, {"ad": "x"}) is None


def test_snapshot_encodes_rows() -> None:
    kisi = Kisi(ad="Zeynep", soyad="Arslan")
    encoded = snapshot(kisi)
    assert encoded is not None
    assert encoded["ad"] == "Zeynep"
    assert encoded["tip"] == "LEAD"
    assert isinstance(encoded["created_at"], str)
    assert snapshot(None) is None
