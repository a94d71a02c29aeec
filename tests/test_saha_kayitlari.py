from __future__ import annotations

from collections.abc import Generator
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
def saha_client(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
) -> Generator[TestClient, None, None]:
    db_path = tmp_path / "saha_test.db"
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


def _created(response) -> dict:
    assert response.status_code == 201, response.text
    return response.json()["data"]


def _mahalle(client: TestClient, ad: str = "Moda") -> dict:
    il = _created(client.post("/api/lokasyon/iller", json={"ad": f"İl {ad}"}))
    ilce = _created(client.post("/api/lokasyon/ilceler", json={"ad": "Merkez", "il_id": il["id"]}))
    return _created(client.post("/api/lokasyon/mahalleler", json={"ad": ad, "ilce_id": ilce["id"]}))


def _kisi(client: TestClient, ad: str, soyad: str) -> dict:
    return _created(client.post("/api/kisiler", json={"ad": ad, "soyad": soyad}))


def _arac(client: TestClient, plaka: str) -> dict:
    marka = _created(client.post("/api/marka-model/markalar", json={"ad": f"Marka {plaka}"}))
    model = _created(client.post("/api/marka-model/modeller", json={"ad": "Model", "marka_id": marka["id"]}))
    return _created(client.post("/api/araclar", json={"model_id": model["id"], "plaka": plaka}))


def _audit_count(action: AuditAction, entity_type: str) -> int:
    with Session(db.get_engine()) as session:
        statement = select(AuditLog).where(AuditLog.action == action).where(AuditLog.entity_type == entity_type)
        return len(list(session.exec(statement).all()))


def test_tanitim_created_with_links_and_filtered(saha_client: TestClient) -> None:
    mahalle = _mahalle(saha_client)
    ali = _kisi(saha_client, "Ali", "Kaya")
    gsm = _created(saha_client.post("/api/gsmler", json={"kisi_id": ali["id"], "numara": "05321112233"}))
    veli = _kisi(saha_client, "Veli", "Demir")
    arac = _arac(saha_client, "34ABC12")

    tanitim = _created(
        saha_client.post(
            "/api/tanitimlar",
            json={
                "baslik": "Pazar tanıtımı",
                "tarih": "2026-03-01T10:00:00Z",
                "saat": "14:30",
                "mahalle_id": mahalle["id"],
                "adres_detay": "Moda caddesi 5",
                "katilimcilar": [{"kisi_id": ali["id"], "gsm_id": gsm["id"]}, {"kisi_id": ali["id"]}],
                "araclar": [{"arac_id": arac["id"], "aciklama": "Servis aracı"}],
            },
        )
    )
    assert tanitim["saat"] == "14:30"
    assert tanitim["created_user_id"] is not None

    katilimcilar = saha_client.get(f"/api/tanitimlar/{tanitim['id']}/katilimcilar").json()["data"]
    assert [(item["kisi_id"], item["gsm_id"]) for item in katilimcilar] == [(ali["id"], gsm["id"])]
    araclar = saha_client.get(f"/api/tanitimlar/{tanitim['id']}/araclar").json()["data"]
    assert [item["aciklama"] for item in araclar] == ["Servis aracı"]

    def _total(**params: str) -> int:
        response = saha_client.get("/api/tanitimlar", params=params)
        assert response.status_code == 200
        return response.json()["pagination"]["total"]

    assert _total(kisi_id=ali["id"]) == 1
    assert _total(kisi_id=veli["id"]) == 0
    assert _total(mahalle_id=mahalle["id"]) == 1
    assert _total(search="moda") == 1
    assert _total(tarihBaslangic="2026-02-01T00:00:00Z", tarihBitis="2026-03-31T00:00:00Z") == 1
    assert _total(tarihBaslangic="2026-04-01T00:00:00Z") == 0
    assert _audit_count(AuditAction.CREATE, "Tanitim") == 1


def test_tanitim_create_rejects_unknown_references(saha_client: TestClient) -> None:
    unknown_kisi = saha_client.post("/api/tanitimlar", json={"katilimcilar": [{"kisi_id": str(uuid4())}]})
    assert unknown_kisi.status_code == 404
    assert unknown_kisi.json()["error"] == "Kişi bulunamadı"

    unknown_arac = saha_client.post("/api/tanitimlar", json={"araclar": [{"arac_id": str(uuid4())}]})
    assert unknown_arac.status_code == 404
    assert unknown_arac.json()["error"] == "Araç bulunamadı"

    unknown_mahalle = saha_client.post("/api/tanitimlar", json={"mahalle_id": str(uuid4())})
    assert unknown_mahalle.status_code == 404
    assert unknown_mahalle.json()["error"] == "Mahalle bulunamadı"

    bad_saat = saha_client.post("/api/tanitimlar", json={"saat": "25:00"})
    assert bad_saat.status_code == 400
    assert bad_saat.json()["details"]["fieldErrors"] == {"saat": ["Geçersiz saat formatı (HH:mm)"]}

    assert saha_client.get("/api/tanitimlar").json()["pagination"]["total"] == 0


def test_katilimci_and_arac_sub_resources(saha_client: TestClient) -> None:
    tanitim = _created(saha_client.post("/api/tanitimlar", json={"adres_detay": "Meydan"}))
    base = f"/api/tanitimlar/{tanitim['id']}"
    ayse = _kisi(saha_client, "Ayşe", "Yıldız")
    baska = _kisi(saha_client, "Başka", "Kişi")
    baska_gsm = _created(saha_client.post("/api/gsmler", json={"kisi_id": baska["id"], "numara": "05329998877"}))
    arac = _arac(saha_client, "06XYZ34")

    katilimci = _created(saha_client.post(f"{base}/katilimcilar", json={"kisi_id": ayse["id"]}))
    again = saha_client.post(f"{base}/katilimcilar", json={"kisi_id": ayse["id"]})
    assert again.status_code == 409
    assert again.json()["error"] == "Bu kişi zaten katılımcı olarak eklenmiş"

    foreign_gsm = saha_client.post(f"{base}/katilimcilar", json={"kisi_id": ayse["id"], "gsm_id": baska_gsm["id"]})
    assert foreign_gsm.status_code == 400
    assert foreign_gsm.json()["details"]["fieldErrors"] == {"gsm_id": ["GSM bu kişiye ait değil"]}

    missing_kisi = saha_client.post(f"{base}/katilimcilar", json={"kisi_id": str(uuid4())})
    assert missing_kisi.status_code == 404
    assert missing_kisi.json()["error"] == "Kişi bulunamadı"

    missing_tanitim = saha_client.post(f"/api/tanitimlar/{uuid4()}/katilimcilar", json={"kisi_id": ayse["id"]})
    assert missing_tanitim.status_code == 404
    assert missing_tanitim.json()["error"] == "Tanıtım bulunamadı"

    assert saha_client.delete(f"{base}/katilimcilar/{uuid4()}").json()["error"] == "Katılımcı bulunamadı"
    removed = saha_client.delete(f"{base}/katilimcilar/{katilimci['id']}")
    assert removed.status_code == 200
    assert saha_client.get(f"{base}/katilimcilar").json()["data"] == []

    link = _created(saha_client.post(f"{base}/araclar", json={"arac_id": arac["id"]}))
    duplicate = saha_client.post(f"{base}/araclar", json={"arac_id": arac["id"]})
    assert duplicate.status_code == 409
    assert duplicate.json()["error"] == "Bu araç zaten eklenmiş"
    assert saha_client.post(f"{base}/araclar", json={"arac_id": str(uuid4())}).json()["error"] == "Araç bulunamadı"

    blocked = saha_client.delete(f"/api/araclar/{arac['id']}")
    assert blocked.status_code == 400
    assert blocked.json()["code"] == "HAS_DEPENDENTS"

    assert saha_client.delete(f"{base}/araclar/{uuid4()}").json()["error"] == "Araç ilişkisi bulunamadı"
    assert saha_client.delete(f"{base}/araclar/{link['id']}").status_code == 200

    assert _audit_count(AuditAction.CREATE, "TanitimKatilimci") == 1
    assert _audit_count(AuditAction.DELETE, "TanitimKatilimci") == 1
    assert _audit_count(AuditAction.DELETE, "TanitimArac") == 1


def test_deleting_tanitim_removes_links_and_frees_kisi(saha_client: TestClient) -> None:
    kisi = _kisi(saha_client, "Katılan", "Kişi")
    arac = _arac(saha_client, "35DEF56")
    tanitim = _created(
        saha_client.post(
            "/api/tanitimlar",
            json={"katilimcilar": [{"kisi_id": kisi["id"]}], "araclar": [{"arac_id": arac["id"]}]},
        )
    )

    blocked = saha_client.delete(f"/api/kisiler/{kisi['id']}")
    assert blocked.status_code == 400
    assert blocked.json()["code"] == "HAS_DEPENDENTS"

    batch = saha_client.request("DELETE", "/api/kisiler/batch", json={"ids": [kisi["id"]]})
    assert batch.json()["data"] == {"success": 1, "failed": 0, "archived": 1, "deleted": 0}

    deleted = saha_client.delete(f"/api/tanitimlar/{tanitim['id']}")
    assert deleted.status_code == 200
    assert deleted.json()["data"]["message"] == "Tanıtım silindi"
    assert saha_client.get(f"/api/tanitimlar/{tanitim['id']}").status_code == 404

    assert saha_client.delete(f"/api/kisiler/{kisi['id']}").status_code == 200
    assert saha_client.delete(f"/api/araclar/{arac['id']}").status_code == 200


def test_tanitim_update_keeps_required_tarih(saha_client: TestClient) -> None:
    tanitim = _created(saha_client.post("/api/tanitimlar", json={"baslik": "İlk"}))

    cleared = saha_client.put(f"/api/tanitimlar/{tanitim['id']}", json={"tarih": None})
    assert cleared.status_code == 400
    assert cleared.json()["details"]["fieldErrors"] == {"tarih": ["Bu alan boş bırakılamaz"]}

    updated = saha_client.put(f"/api/tanitimlar/{tanitim['id']}", json={"baslik": "Son", "saat": "09:05"})
    assert updated.status_code == 200
    assert updated.json()["data"]["baslik"] == "Son"
    assert updated.json()["data"]["tarih"] == tanitim["tarih"]
    assert _audit_count(AuditAction.UPDATE, "Tanitim") == 1


def test_operasyon_is_separate_from_tanitim(saha_client: TestClient) -> None:
    missing = saha_client.get(f"/api/operasyonlar/{uuid4()}")
    assert missing.status_code == 404
    assert missing.json()["error"] == "Operasyon bulunamadı"

    kisi = _kisi(saha_client, "Operasyon", "Katılımcısı")
    operasyon = _created(saha_client.post("/api/operasyonlar", json={"baslik": "Gece"}))
    _created(saha_client.post(f"/api/operasyonlar/{operasyon['id']}/katilimcilar", json={"kisi_id": kisi["id"]}))

    assert saha_client.get("/api/operasyonlar", params={"kisi_id": kisi["id"]}).json()["pagination"]["total"] == 1
    assert saha_client.get("/api/tanitimlar", params={"kisi_id": kisi["id"]}).json()["pagination"]["total"] == 0
    assert _audit_count(AuditAction.CREATE, "OperasyonKatilimci") == 1

    deleted = saha_client.delete(f"/api/operasyonlar/{operasyon['id']}")
    assert deleted.json()["data"]["message"] == "Operasyon silindi"


def test_adres_primary_flag_moves_between_addresses(saha_client: TestClient) -> None:
    mahalle = _mahalle(saha_client)
    kisi = _kisi(saha_client, "Adres", "Sahibi")

    ev = _created(
        saha_client.post(
            "/api/adresler",
            json={"kisi_id": kisi["id"], "mahalle_id": mahalle["id"], "ad": "Ev", "is_primary": True},
        )
    )
    is_yeri = _created(
        saha_client.post("/api/adresler", json={"kisi_id": kisi["id"], "mahalle_id": mahalle["id"], "ad": "İş"})
    )

    promoted = saha_client.put(f"/api/adresler/{is_yeri['id']}", json={"is_primary": True})
    assert promoted.status_code == 200
    assert saha_client.get(f"/api/adresler/{ev['id']}").json()["data"]["is_primary"] is False

    listed = saha_client.get("/api/adresler", params={"kisi_id": kisi["id"]}).json()["data"]
    assert [item["ad"] for item in listed] == ["İş", "Ev"]

    cleared = saha_client.put(f"/api/adresler/{ev['id']}", json={"mahalle_id": None})
    assert cleared.status_code == 400

    assert saha_client.delete(f"/api/kisiler/{kisi['id']}").json()["code"] == "HAS_DEPENDENTS"
    assert saha_client.delete(f"/api/lokasyon/mahalleler/{mahalle['id']}").json()["code"] == "HAS_DEPENDENTS"

    assert saha_client.delete(f"/api/adresler/{ev['id']}").json()["data"]["message"] == "Adres silindi"
    assert saha_client.get(f"/api/adresler/{ev['id']}").json()["error"] == "Adres bulunamadı"


def test_adres_bulk_create(saha_client: TestClient) -> None:
    mahalle = _mahalle(saha_client)
    kisi = _kisi(saha_client, "Toplu", "Adres")
    eski = _created(
        saha_client.post(
            "/api/adresler",
            json={"kisi_id": kisi["id"], "mahalle_id": mahalle["id"], "ad": "Eski", "is_primary": True},
        )
    )

    empty = saha_client.post("/api/adresler/bulk", json={"kisi_id": kisi["id"], "adresler": []})
    assert empty.status_code == 400
    assert empty.json()["details"]["fieldErrors"] == {"adresler": ["En az bir adres gereklidir"]}

    unknown_mahalle = saha_client.post(
        "/api/adresler/bulk",
        json={"kisi_id": kisi["id"], "adresler": [{"mahalle_id": str(uuid4())}]},
    )
    assert unknown_mahalle.status_code == 404
    assert unknown_mahalle.json()["error"] == "Mahalle bulunamadı"

    created = saha_client.post(
        "/api/adresler/bulk",
        json={
            "kisi_id": kisi["id"],
            "adresler": [
                {"mahalle_id": mahalle["id"], "ad": "Yeni ev", "is_primary": True},
                {"mahalle_id": mahalle["id"], "ad": "Yazlık", "is_primary": True},
            ],
        },
    )
    assert created.status_code == 201
    assert [(item["ad"], item["is_primary"]) for item in created.json()["data"]] == [
        ("Yeni ev", True),
        ("Yazlık", False),
    ]
    assert saha_client.get(f"/api/adresler/{eski['id']}").json()["data"]["is_primary"] is False
    assert _audit_count(AuditAction.CREATE, "Adres") == 3
