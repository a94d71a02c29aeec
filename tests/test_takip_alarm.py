from __future__ import annotations

from collections.abc import Generator
from datetime import datetime, timedelta
from pathlib import Path
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import event
from sqlmodel import Session, SQLModel, create_engine, select

from app import main as app_main
from app.domain.models import AuditAction, AuditLog, PersonelCreate
from app.infra import audit, db, passwords, rate_limit
from app.services.personel_service import PersonelService


@pytest.fixture()
def takip_client(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
) -> Generator[TestClient, None, None]:
    db_path = tmp_path / "takip_test.db"
    test_engine = create_engine(
        f"sqlite:///{db_path}",
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(test_engine, "connect")
    def _enable_foreign_keys(dbapi_connection: object, _connection_record: object) -> None:
        cursor = dbapi_connection.cursor()  # type: ignore[attr-defined]
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    SQLModel.metadata.create_all(test_engine)
    monkeypatch.setattr(db, "engine", test_engine)
    monkeypatch.setattr(audit, "engine", test_engine)
    monkeypatch.setattr(passwords, "PASSWORD_ITERATIONS", 1000)
    monkeypatch.setattr(rate_limit, "LOGIN_RATE_LIMIT_ENABLED", False)
    rate_limit.reset_rate_limiters()
    PersonelService().bootstrap_admin(
        PersonelCreate(visible_id="100001", ad="Sistem", soyad="Yönetici", parola="admin123")
    )
    client = TestClient(app_main.app)
    assert client.post("/api/auth/login", json={"visible_id": "100001", "parola": "admin123"}).status_code == 200
    yield client
    client.close()


def _kisi_with_gsm(client: TestClient, numara: str = "05551234567") -> tuple[str, str]:
    kisi = client.post("/api/kisiler", json={"ad": "Murat", "soyad": "Öztürk"}).json()["data"]
    gsm = client.post("/api/gsmler", json={"kisi_id": kisi["id"], "numara": numara}).json()["data"]
    return kisi["id"], gsm["id"]


def _create_alarm(client: TestClient, tetik_tarihi: str, baslik: str) -> dict:
    response = client.post(
        "/api/alarmlar",
        json={"tip": "OZEL", "baslik": baslik, "tetik_tarihi": tetik_tarihi},
    )
    assert response.status_code == 201
    return response.json()["data"]


def test_takip_defaults_promote_kisi_and_schedule_alarm(takip_client: TestClient) -> None:
    kisi_id, gsm_id = _kisi_with_gsm(takip_client)

    response = takip_client.post("/api/takipler", json={"gsm_id": gsm_id, "alarm_gun_once": 20})
    assert response.status_code == 201
    takip = response.json()["data"]
    assert takip["durum"] == "UZATILACAK"
    assert takip["is_active"] is True
    baslama = datetime.fromisoformat(takip["baslama_tarihi"])
    bitis = datetime.fromisoformat(takip["bitis_tarihi"])
    assert bitis - baslama == timedelta(days=90)

    kisi = takip_client.get(f"/api/kisiler/{kisi_id}").json()["data"]
    assert kisi["tip"] == "MUSTERI"

    alarms = takip_client.get("/api/alarmlar", params={"takip_id": takip["id"]}).json()["data"]
    assert len(alarms) == 1
    assert alarms[0]["tip"] == "TAKIP_BITIS"
    assert alarms[0]["gun_once"] == 20
    assert datetime.fromisoformat(alarms[0]["tetik_tarihi"]) == bitis - timedelta(days=20)


def test_new_takip_closes_previous_one(takip_client: TestClient) -> None:
    _, gsm_id = _kisi_with_gsm(takip_client)
    first = takip_client.post("/api/takipler", json={"gsm_id": gsm_id}).json()["data"]
    second = takip_client.post("/api/takipler", json={"gsm_id": gsm_id}).json()["data"]

    previous = takip_client.get(f"/api/takipler/{first['id']}").json()["data"]
    assert previous["is_active"] is False
    assert previous["durum"] == "UZATILDI"

    active = takip_client.get("/api/takipler", params={"gsm_id": gsm_id, "is_active": "true"}).json()["data"]
    assert [item["id"] for item in active] == [second["id"]]


def test_takip_validation_and_parent_checks(takip_client: TestClient) -> None:
    _, gsm_id = _kisi_with_gsm(takip_client)
    reversed_dates = takip_client.post(
        "/api/takipler",
        json={
            "gsm_id": gsm_id,
            "baslama_tarihi": "2026-05-01T00:00:00Z",
            "bitis_tarihi": "2026-04-01T00:00:00Z",
        },
    )
    assert reversed_dates.status_code == 400
    assert reversed_dates.json()["details"]["formErrors"] == ["Bitiş tarihi başlama tarihinden önce olamaz"]

    unknown_gsm = takip_client.post("/api/takipler", json={"gsm_id": str(uuid4())})
    assert unknown_gsm.status_code == 404
    assert unknown_gsm.json()["error"] == "GSM bulunamadı"


def test_takip_status_change_is_audited_and_alarms_block_delete(takip_client: TestClient) -> None:
    _, gsm_id = _kisi_with_gsm(takip_client)
    takip = takip_client.post("/api/takipler", json={"gsm_id": gsm_id, "alarm_gun_once": 5}).json()["data"]

    updated = takip_client.put(f"/api/takipler/{takip['id']}", json={"durum": "DEVAM_EDECEK"})
    assert updated.status_code == 200
    assert updated.json()["data"]["durum"] == "DEVAM_EDECEK"

    with Session(db.get_engine()) as session:
        status_rows = list(
            session.exec(select(AuditLog).where(AuditLog.action == AuditAction.STATUS_CHANGE)).all()
        )
    assert len(status_rows) == 1
    assert status_rows[0].extra == {"status": {"before": "UZATILACAK", "after": "DEVAM_EDECEK"}}

    blocked = takip_client.delete(f"/api/takipler/{takip['id']}")
    assert blocked.status_code == 400
    assert blocked.json()["code"] == "HAS_DEPENDENTS"


def test_bildirimler_trigger_due_alarms_then_mark_seen(takip_client: TestClient) -> None:
    due = _create_alarm(takip_client, "2020-01-01T09:00:00Z", "Ödeme")
    _create_alarm(takip_client, "2100-01-01T09:00:00Z", "Gelecek")
    paused = _create_alarm(takip_client, "2020-02-01T09:00:00Z", "Beklemede")
    takip_client.put(f"/api/alarmlar/{paused['id']}", json={"is_paused": True})

    response = takip_client.get("/api/alarmlar/bildirimler")
    assert response.status_code == 200
    data = response.json()["data"]
    assert [item["id"] for item in data["bildirimler"]] == [due["id"]]
    assert data["bildirimler"][0]["durum"] == "TETIKLENDI"
    assert data["unread_count"] == 1

    seen = takip_client.post("/api/alarmlar/bildirimler")
    assert seen.json()["data"] == {"updated": 1}

    after = takip_client.get("/api/alarmlar/bildirimler").json()["data"]
    assert after == {"bildirimler": [], "unread_count": 0}
    assert takip_client.get(f"/api/alarmlar/{due['id']}").json()["data"]["durum"] == "GORULDU"

    too_many = takip_client.get("/api/alarmlar/bildirimler", params={"limit": 50})
    assert too_many.status_code == 400


def test_alarm_list_date_window(takip_client: TestClient) -> None:
    _create_alarm(takip_client, "2026-01-10T00:00:00Z", "Ocak")
    _create_alarm(takip_client, "2026-03-10T00:00:00Z", "Mart")

    window = takip_client.get(
        "/api/alarmlar",
        params={"from_date": "2026-02-01T00:00:00", "to_date": "2026-04-01T00:00:00"},
    ).json()
    assert [item["baslik"] for item in window["data"]] == ["Mart"]
