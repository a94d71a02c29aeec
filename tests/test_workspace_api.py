from __future__ import annotations

from collections.abc import Generator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import event
from sqlmodel import SQLModel, create_engine

from app import main as app_main
from app.domain.models import PersonelCreate, TercihKategori, TercihUpsert, WorkspaceAction, WorkspaceActionType
from app.domain.tab_workspace import RUNTIME_STORAGE_KEY, TAB_STORAGE_KEY
from app.infra import audit, db, passwords, rate_limit
from app.services.personel_service import PersonelService
from app.services.tercih_service import TercihService
from app.services.workspace_service import MemoryStorage, WorkspaceService


@pytest.fixture()
def workspace_client(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
) -> Generator[TestClient, None, None]:
    db_path = tmp_path / "workspace_test.db"
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
    service = PersonelService()
    service.bootstrap_admin(PersonelCreate(visible_id="100001", ad="Sistem", soyad="Yönetici", parola="admin123"))
    service.create(PersonelCreate(visible_id="200001", ad="Saha", soyad="Personeli", parola="staff123"))
    client = TestClient(app_main.app)
    assert client.post("/api/auth/login", json={"visible_id": "100001", "parola": "admin123"}).status_code == 200
    yield client
    client.close()


def _act(client: TestClient, **action: object) -> dict:
    response = client.post("/api/workspace/actions", json=action)
    assert response.status_code == 200, response.text
    return response.json()["data"]


def _paths(state: dict) -> list[str]:
    return [tab["path"] for tab in state["tabs"]]


def test_fresh_workspace_has_only_home(workspace_client: TestClient) -> None:
    response = workspace_client.get("/api/workspace")
    assert response.status_code == 200
    state = response.json()["data"]
    assert _paths(state) == ["/"]
    assert state["active_tab_id"] == state["tabs"][0]["id"]
    assert [panel["page_key"] for panel in state["render_plan"]["panels"]] == ["home"]
    assert state["scroll_restore"] is None


def test_actions_drive_the_workspace(workspace_client: TestClient) -> None:
    opened = _act(workspace_client, type="OPEN_TAB", path="/kisiler/7")
    assert opened["changed"] is True
    assert opened["result"]["title"] == "Kişi Detay"
    tab_id = opened["result"]["id"]
    assert opened["state"]["active_tab_id"] == tab_id

    home_id = opened["state"]["tabs"][0]["id"]
    switched = _act(workspace_client, type="SET_ACTIVE", tab_id=home_id, live_scroll=640)
    kisi_tab = next(tab for tab in switched["state"]["tabs"] if tab["id"] == tab_id)
    assert kisi_tab["scroll_position"] == 640

    unchanged = _act(workspace_client, type="UPDATE_SCROLL", tab_id=home_id, offset=10)
    assert unchanged["changed"] is False

    back = _act(workspace_client, type="SET_ACTIVE", tab_id=tab_id)
    assert back["state"]["scroll_restore"] == 640

    closed = _act(workspace_client, type="CLOSE_TAB", tab_id=tab_id)
    assert _paths(closed["state"]) == ["/"]
    assert closed["state"]["closed_tab_count"] == 1

    reopened = _act(workspace_client, type="REOPEN_LAST_CLOSED_TAB")
    assert reopened["result"]["path"] == "/kisiler/7"
    assert reopened["state"]["closed_tab_count"] == 0


def test_action_validation_and_unknown_references(workspace_client: TestClient) -> None:
    missing = workspace_client.post("/api/workspace/actions", json={"type": "OPEN_TAB"})
    assert missing.status_code == 400
    assert missing.json()["details"]["fieldErrors"] == {"path": ["Bu alan zorunludur"]}

    bad_type = workspace_client.post("/api/workspace/actions", json={"type": "EXPLODE"})
    assert bad_type.status_code == 400

    unknown_tab = workspace_client.post("/api/workspace/actions", json={"type": "CLOSE_TAB", "tab_id": "nope"})
    assert unknown_tab.status_code == 404
    assert unknown_tab.json()["error"] == "Sekme bulunamadı"

    unknown_group = workspace_client.post(
        "/api/workspace/actions",
        json={"type": "DELETE_GROUP", "group_id": "nope"},
    )
    assert unknown_group.status_code == 404

    unknown_session = workspace_client.post(
        "/api/workspace/actions",
        json={"type": "LOAD_SESSION", "session_id": "nope"},
    )
    assert unknown_session.status_code == 404
    assert unknown_session.json()["error"] == "Kayıtlı oturum bulunamadı"


def test_split_state_survives_requests(workspace_client: TestClient) -> None:
    kisiler = _act(workspace_client, type="OPEN_TAB", path="/kisiler")["result"]
    alarmlar = _act(workspace_client, type="OPEN_TAB", path="/alarmlar")["result"]
    _act(workspace_client, type="OPEN_SPLIT", tab_id=kisiler["id"], orientation="vertical")
    selected = _act(workspace_client, type="SELECT_SPLIT_TAB", tab_id=alarmlar["id"])
    assert selected["state"]["split"]["secondary_tab_id"] == alarmlar["id"]

    state = workspace_client.get("/api/workspace").json()["data"]
    assert state["split"]["orientation"] == "vertical"
    assert state["split"]["primary_tab_id"] == kisiler["id"]
    panes = [panel["pane"] for panel in state["render_plan"]["panels"]]
    assert panes.count("secondary") == 1

    scrolled = _act(workspace_client, type="UPDATE_SPLIT_SCROLL", offset=300)
    assert scrolled["state"]["split"]["secondary_scroll_position"] == 300


def test_external_write_is_not_overwritten(workspace_client: TestClient) -> None:
    admin_id = workspace_client.get("/api/auth/me").json()["data"]["user"]["id"]
    kisiler = _act(workspace_client, type="OPEN_TAB", path="/kisiler")["result"]
    _act(workspace_client, type="OPEN_SPLIT", tab_id=kisiler["id"])

    # Another worker or browser rewrites the stored tab list.
    TercihService().upsert(
        admin_id,
        TercihUpsert(
            kategori=TercihKategori.WORKSPACE,
            anahtar=TAB_STORAGE_KEY,
            deger={
                "version": 1,
                "tabs": [{"id": "home-x", "path": "/"}, {"id": "alarm-x", "path": "/alarmlar"}],
                "active_tab_id": "alarm-x",
            },
        ),
    )

    state = workspace_client.get("/api/workspace").json()["data"]
    assert _paths(state) == ["/", "/alarmlar"]
    assert state["active_tab_id"] == "alarm-x"
    assert state["split"] is None

    opened = _act(workspace_client, type="OPEN_TAB", path="/takipler")
    assert _paths(opened["state"]) == ["/", "/alarmlar", "/takipler"]
    stored = TercihService().get_value(admin_id, TercihKategori.WORKSPACE, TAB_STORAGE_KEY)
    assert [item["id"] for item in stored["tabs"]][:2] == ["home-x", "alarm-x"]

def test_workspace_is_written_through_to_preferences(workspace_client: TestClient) -> None:
    admin_id = workspace_client.get("/api/auth/me").json()["data"]["user"]["id"]
    group = _act(workspace_client, type="CREATE_GROUP", label="Takip", color="orange")["result"]
    tab = _act(workspace_client, type="OPEN_TAB", path="/takipler")["result"]
    _act(workspace_client, type="ASSIGN_TAB_TO_GROUP", tab_id=tab["id"], group_id=group["id"])
    session = _act(workspace_client, type="SAVE_SESSION", name="Sabah")["result"]
    assert session["name"] == "Sabah"

    stored = TercihService().get_value(admin_id, TercihKategori.WORKSPACE, TAB_STORAGE_KEY)
    assert stored["version"] == 1
    assert [item["path"] for item in stored["tabs"]] == ["/", "/takipler"]
    assert stored["tabs"][1]["group_id"] == group["id"]
    assert [item["name"] for item in stored["sessions"]] == ["Sabah"]


def test_each_personel_has_own_workspace(workspace_client: TestClient) -> None:
    _act(workspace_client, type="OPEN_TAB", path="/kisiler")

    login_resp = workspace_client.post("/api/auth/login", json={"visible_id": "200001", "parola": "staff123"})
    assert login_resp.status_code == 200
    state = workspace_client.get("/api/workspace").json()["data"]
    assert _paths(state) == ["/"]


def test_preferences_defaults_and_updates(workspace_client: TestClient) -> None:
    assert workspace_client.get("/api/workspace/preferences").json()["data"] == {"locale": "tr", "theme": "system"}

    updated = workspace_client.put("/api/workspace/preferences", json={"theme": "dark"})
    assert updated.status_code == 200
    assert updated.json()["data"] == {"locale": "tr", "theme": "dark"}

    invalid = workspace_client.put("/api/workspace/preferences", json={"locale": "de"})
    assert invalid.status_code == 400


def test_unreadable_stored_state_falls_back_to_home() -> None:
    storage = MemoryStorage()
    storage.set(TAB_STORAGE_KEY, {"version": 1, "tabs": [{"path": "/kisiler", "scroll_position": "çok"}]})
    workspace = WorkspaceService("personel-x", storage).load()
    assert [tab.path for tab in workspace.tabs] == ["/"]


def test_fresh_home_tab_keeps_its_id_between_loads() -> None:
    storage = MemoryStorage()
    first = WorkspaceService("personel-x", storage).load()
    second = WorkspaceService("personel-x", storage).load()
    assert first.tabs[0].id == second.tabs[0].id


def test_services_sharing_storage_see_each_others_writes() -> None:
    storage = MemoryStorage()
    worker_a = WorkspaceService("personel-x", storage)
    worker_b = WorkspaceService("personel-x", storage)

    _, tab = worker_a.apply(WorkspaceAction(type=WorkspaceActionType.OPEN_TAB, path="/kisiler"))
    worker_b.apply(WorkspaceAction(type=WorkspaceActionType.CLOSE_TAB, tab_id=tab.id))
    workspace, reopened = worker_a.apply(WorkspaceAction(type=WorkspaceActionType.REOPEN_LAST_CLOSED_TAB))

    assert reopened.path == "/kisiler"
    assert [item.path for item in workspace.tabs] == ["/", "/kisiler"]
    assert storage.get(RUNTIME_STORAGE_KEY)["closed_tabs"] == []
