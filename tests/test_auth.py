from __future__ import annotations

from collections.abc import Generator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import event
from sqlmodel import Session, SQLModel, create_engine, select

from app import main as app_main
from app.domain.models import AuditAction, AuditLog, Personel, PersonelCreate
from app.domain.permissions import PersonelRol
from app.infra import audit, db, passwords, rate_limit
from app.infra.auth import SESSION_COOKIE_NAME, create_access_token
from app.services.personel_service import PersonelService


@pytest.fixture()
def auth_client(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
) -> Generator[TestClient, None, None]:
    db_path = tmp_path / "auth_test.db"
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
    client = TestClient(app_main.app)
    yield client
    client.close()


def _create_personel(
    visible_id: str,
    parola: str,
    *,
    rol: PersonelRol = PersonelRol.STAFF,
    is_active: bool = True,
) -> Personel:
    return PersonelService().create(
        PersonelCreate(
            visible_id=visible_id,
            ad="Deniz",
            soyad="Aydın",
            parola=parola,
            rol=rol,
            is_active=is_active,
        )
    )


def _audit_rows(action: AuditAction) -> list[AuditLog]:
    with Session(db.get_engine(), expire_on_commit=False) as session:
        return list(session.exec(select(AuditLog).where(AuditLog.action == action)).all())


def test_gate_redirects_anonymous_requests_to_login(auth_client: TestClient) -> None:
    response = auth_client.get("/api/kisiler", follow_redirects=False)
    assert response.status_code == 307
    assert response.headers["location"] == "/login?redirect=%2Fapi%2Fkisiler"


def test_gate_lets_public_paths_through(auth_client: TestClient) -> None:
    assert auth_client.get("/healthz").status_code == 200
    assert auth_client.get("/login").status_code == 200
    assert auth_client.get("/static/app.css").status_code == 200

    # Login endpoint reaches the handler without a cookie.
    response = auth_client.post("/api/auth/login", json={"visible_id": "999999", "parola": "yanlis"})
    assert response.status_code == 401


def test_gate_clears_invalid_session_cookie(auth_client: TestClient) -> None:
    response = auth_client.get(
        "/api/kisiler",
        headers={"Cookie": f"{SESSION_COOKIE_NAME}=not-a-jwt"},
        follow_redirects=False,
    )
    assert response.status_code == 307
    set_cookie = response.headers["set-cookie"]
    assert set_cookie.startswith(f"{SESSION_COOKIE_NAME}=")
    assert "Max-Age=0" in set_cookie


def test_gate_rejects_expired_token(auth_client: TestClient) -> None:
    token = create_access_token(
        user_id="p-1",
        visible_id="100001",
        display_name="Deniz Aydın",
        role="ADMIN",
        expires_seconds=-60,
    )
    response = auth_client.get(
        "/api/auth/me",
        headers={"Cookie": f"{SESSION_COOKIE_NAME}={token}"},
        follow_redirects=False,
    )
    assert response.status_code == 307
    assert response.headers["location"] == "/login?redirect=%2Fapi%2Fauth%2Fme"


def test_login_me_logout_flow(auth_client: TestClient) -> None:
    personel = _create_personel("100001", "gizli123", rol=PersonelRol.MANAGER)

    login_resp = auth_client.post("/api/auth/login", json={"visible_id": "100001", "parola": "gizli123"})
    assert login_resp.status_code == 200
    user = login_resp.json()["data"]["user"]
    assert user["id"] == personel.id
    assert user["display_name"] == "Deniz Aydın"
    assert user["role"] == "MANAGER"
    assert auth_client.cookies.get(SESSION_COOKIE_NAME)

    me_resp = auth_client.get("/api/auth/me")
    assert me_resp.status_code == 200
    assert me_resp.json()["data"]["user"]["visible_id"] == "100001"

    logins = _audit_rows(AuditAction.LOGIN)
    assert len(logins) == 1
    assert logins[0].actor_id == personel.id

    logout_resp = auth_client.post("/api/auth/logout")
    assert logout_resp.status_code == 200
    assert logout_resp.json()["data"]["message"] == "Çıkış yapıldı"
    assert len(_audit_rows(AuditAction.LOGOUT)) == 1

    after_logout = auth_client.get("/api/auth/me", follow_redirects=False)
    assert after_logout.status_code == 307


def test_login_stamps_last_login(auth_client: TestClient) -> None:
    personel = _create_personel("100002", "gizli123")
    assert personel.last_login_at is None
    auth_client.post("/api/auth/login", json={"visible_id": "100002", "parola": "gizli123"})
    with Session(db.get_engine()) as session:
        stored = session.get(Personel, personel.id)
        assert stored is not None
        assert stored.last_login_at is not None


def test_failed_logins_are_audited(auth_client: TestClient) -> None:
    _create_personel("100003", "gizli123")
    _create_personel("100004", "gizli123", is_active=False)

    bad_password = auth_client.post("/api/auth/login", json={"visible_id": "100003", "parola": "yanlis1"})
    assert bad_password.status_code == 401
    body = bad_password.json()
    assert body["code"] == "UNAUTHORIZED"
    assert body["error"] == "Geçersiz parola"
    assert "timestamp" in body

    inactive = auth_client.post("/api/auth/login", json={"visible_id": "100004", "parola": "gizli123"})
    assert inactive.status_code == 401
    assert inactive.json()["error"] == "Hesabınız devre dışı bırakılmış"

    unknown = auth_client.post("/api/auth/login", json={"visible_id": "999999", "parola": "gizli123"})
    assert unknown.status_code == 401

    reasons = sorted(row.extra["reason"] for row in _audit_rows(AuditAction.LOGIN_FAIL) if row.extra)
    assert reasons == ["bad_password", "inactive", "unknown_user"]
    assert auth_client.cookies.get(SESSION_COOKIE_NAME) is None


def test_login_payload_validation_envelope(auth_client: TestClient) -> None:
    response = auth_client.post("/api/auth/login", json={"visible_id": ""})
    assert response.status_code == 400
    body = response.json()
    assert body["code"] == "VALIDATION_ERROR"
    assert body["error"] == "Geçersiz veri girişi"
    assert set(body["details"]["fieldErrors"]) == {"visible_id", "parola"}
    assert body["details"]["formErrors"] == []


def test_login_rate_limit_returns_retry_after(
    auth_client: TestClient,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr(rate_limit, "LOGIN_RATE_LIMIT_ENABLED", True)
    _create_personel("100005", "gizli123")

    for _ in range(rate_limit.login_rate_limiter.max_requests):
        response = auth_client.post("/api/auth/login", json={"visible_id": "100005", "parola": "yanlis1"})
        assert response.status_code == 401

    blocked = auth_client.post("/api/auth/login", json={"visible_id": "100005", "parola": "gizli123"})
    assert blocked.status_code == 429
    body = blocked.json()
    assert body["code"] == "RATE_LIMIT_EXCEEDED"
    assert body["details"]["remaining"] == 0
    assert int(blocked.headers["retry-after"]) > 0
    # The blocked attempt never reaches the credential check.
    assert len(_audit_rows(AuditAction.LOGIN)) == 0
