from __future__ import annotations

from collections.abc import Generator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import event
from sqlmodel import Session, SQLModel, create_engine, select

from app import main as app_main
from app.domain.models import AuditAction, AuditLog, KullaniciTercihi, PersonelCreate
from app.infra import audit, db, passwords, rate_limit
from app.infra.audit import MASK
from app.services.personel_service import PersonelService


@pytest.fixture()
def personel_client(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
) -> Generator[TestClient, None, None]:
    db_path = tmp_path / "personel_test.db"
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
    yield client
    client.close()


def _login(client: TestClient, visible_id: str, parola: str) -> dict:
    response = client.post("/api/auth/login", json={"visible_id": visible_id, "parola": parola})
    assert response.status_code == 200, response.text
    return response.json()["data"]["user"]


def _create_staff(client: TestClient, visible_id: str = "200001") -> dict:
    response = client.post(
        "/api/personel",
        json={"visible_id": visible_id, "ad": "Selin", "soyad": "Koç", "parola": "staff123"},
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


def test_admin_manages_personel(personel_client: TestClient) -> None:
    admin = _login(personel_client, "100001", "admin123")
    assert admin["role"] == "ADMIN"
    second_admin = PersonelCreate(visible_id="100002", ad="İkinci", soyad="Admin", parola="admin456")
    assert PersonelService().bootstrap_admin(second_admin) is None

    staff = _create_staff(personel_client)
    assert staff["rol"] == "STAFF"
    assert "parola" not in staff

    with Session(db.get_engine()) as session:
        create_log = session.exec(
            select(AuditLog)
            .where(AuditLog.action == AuditAction.CREATE)
            .where(AuditLog.entity_id == staff["id"])
        ).one()
    assert create_log.after_state is not None
    assert create_log.after_state["parola"] == MASK

    duplicate = personel_client.post(
        "/api/personel",
        json={"visible_id": "200001", "ad": "Aynı", "soyad": "Kimlik", "parola": "staff123"},
    )
    assert duplicate.status_code == 409

    bad_id = personel_client.post(
        "/api/personel",
        json={"visible_id": "12ab", "ad": "Hatalı", "soyad": "Kimlik", "parola": "staff123"},
    )
    assert bad_id.status_code == 400
    assert "visible_id" in bad_id.json()["details"]["fieldErrors"]

    promoted = personel_client.put(f"/api/personel/{staff['id']}/rol", json={"rol": "MANAGER"})
    assert promoted.status_code == 200
    assert promoted.json()["data"]["rol"] == "MANAGER"

    own_role = personel_client.put(f"/api/personel/{admin['id']}/rol", json={"rol": "STAFF"})
    assert own_role.status_code == 400
    assert own_role.json()["error"] == "Kendi rolünüzü değiştiremezsiniz"

    own_delete = personel_client.delete(f"/api/personel/{admin['id']}")
    assert own_delete.status_code == 400
    assert own_delete.json()["error"] == "Kendi hesabınızı silemezsiniz"

    listed = personel_client.get("/api/personel", params={"rol": "MANAGER"}).json()
    assert [item["id"] for item in listed["data"]] == [staff["id"]]


def test_staff_cannot_manage_personel(personel_client: TestClient) -> None:
    admin = _login(personel_client, "100001", "admin123")
    _create_staff(personel_client)
    _login(personel_client, "200001", "staff123")

    assert personel_client.get("/api/personel").status_code == 403
    assert personel_client.delete(f"/api/personel/{admin['id']}").status_code == 403
    reset_other = personel_client.put(
        f"/api/personel/{admin['id']}/parola",
        json={"new_password": "hacked1", "confirm_password": "hacked1"},
    )
    assert reset_other.status_code == 403


def test_password_change_rules(personel_client: TestClient) -> None:
    _login(personel_client, "100001", "admin123")
    staff = _create_staff(personel_client)
    _login(personel_client, "200001", "staff123")
    url = f"/api/personel/{staff['id']}/parola"

    mismatch = personel_client.put(
        url,
        json={"current_password": "staff123", "new_password": "yeni123", "confirm_password": "baska123"},
    )
    assert mismatch.status_code == 400
    assert mismatch.json()["details"]["formErrors"] == ["Şifreler eşleşmiyor"]

    wrong_current = personel_client.put(
        url,
        json={"current_password": "yanlis1", "new_password": "yeni123", "confirm_password": "yeni123"},
    )
    assert wrong_current.status_code == 400
    assert wrong_current.json()["details"]["fieldErrors"] == {"current_password": ["Mevcut şifre hatalı"]}

    changed = personel_client.put(
        url,
        json={"current_password": "staff123", "new_password": "yeni123", "confirm_password": "yeni123"},
    )
    assert changed.status_code == 200

    old_password = personel_client.post("/api/auth/login", json={"visible_id": "200001", "parola": "staff123"})
    assert old_password.status_code == 401
    _login(personel_client, "200001", "yeni123")

    # Admins reset other accounts without the current password.
    _login(personel_client, "100001", "admin123")
    reset = personel_client.put(url, json={"new_password": "sifir123", "confirm_password": "sifir123"})
    assert reset.status_code == 200
    _login(personel_client, "200001", "sifir123")


def test_preferences_round_trip_and_cleanup(personel_client: TestClient) -> None:
    _login(personel_client, "100001", "admin123")
    staff = _create_staff(personel_client)
    _login(personel_client, "200001", "staff123")

    saved = personel_client.post(
        "/api/tercihler",
        json={"kategori": "tablo", "anahtar": "kisiler", "deger": {"columns": ["ad", "soyad"]}},
    )
    assert saved.status_code == 200
    assert saved.json()["data"]["personel_id"] == staff["id"]

    batch = personel_client.put(
        "/api/tercihler",
        json={
            "tercihler": [
                {"kategori": "tablo", "anahtar": "kisiler", "deger": {"columns": ["ad"]}},
                {"kategori": "tema", "anahtar": "mod", "deger": "dark"},
            ]
        },
    )
    assert batch.status_code == 200
    assert len(batch.json()["data"]) == 2

    grouped = personel_client.get("/api/tercihler").json()["data"]
    assert grouped == {"tablo": {"kisiler": {"columns": ["ad"]}}, "tema": {"mod": "dark"}}
    only_tema = personel_client.get("/api/tercihler", params={"kategori": "tema"}).json()["data"]
    assert only_tema == {"tema": {"mod": "dark"}}

    assert personel_client.delete("/api/tercihler/tema/mod").status_code == 200
    assert personel_client.delete("/api/tercihler/tema/mod").status_code == 404
    assert personel_client.post("/api/tercihler", json={"kategori": "bilinmeyen", "anahtar": "x"}).status_code == 400

    _login(personel_client, "100001", "admin123")
    assert personel_client.delete(f"/api/personel/{staff['id']}").status_code == 200
    with Session(db.get_engine()) as session:
        leftovers = session.exec(select(KullaniciTercihi).where(KullaniciTercihi.personel_id == staff["id"])).all()
    assert leftovers == []


def test_audit_log_browsing(personel_client: TestClient) -> None:
    admin = _login(personel_client, "100001", "admin123")
    _create_staff(personel_client)

    logins = personel_client.get("/api/loglar", params={"action": "LOGIN", "actor_id": admin["id"]})
    assert logins.status_code == 200
    body = logins.json()
    assert body["pagination"]["total"] == 1
    entry = body["data"][0]
    assert entry["actor_name"] == "Sistem Yönetici"
    assert "metadata" in entry

    detail = personel_client.get(f"/api/loglar/{entry['id']}")
    assert detail.status_code == 200
    assert detail.json()["data"]["action"] == "LOGIN"

    missing = personel_client.get("/api/loglar/yok")
    assert missing.status_code == 404
    assert missing.json()["error"] == "Log bulunamadı"

    created = personel_client.get("/api/loglar", params={"entity_type": "Personel", "action": "CREATE"}).json()
    # Bootstrap admin plus the staff account.
    assert created["pagination"]["total"] == 2
