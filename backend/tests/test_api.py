"""HTTP surface tests through FastAPI's TestClient."""

import pytest
from fastapi.testclient import TestClient

from fsns.api.deps import get_folder_router
from fsns.ids.idlist import ItemIdList
from fsns.logging.ndjson import log_event
from fsns.main import create_app
from fsns.shell.attributes import ItemAttributes
from fsns.shell.flags import CLSID_ZIP_FOLDER, DisplayFlags


@pytest.fixture
def client(router):
    app = create_app()
    app.dependency_overrides[get_folder_router] = lambda: router
    with TestClient(app) as c:
        yield c


def _parse(client, path: str) -> str:
    res = client.post("/api/ns/parse", json={"path": path})
    assert res.status_code == 200, res.text
    return res.json()["id"]


class TestNamespaceEndpoints:
    def test_health(self, client):
        assert client.get("/api/health").json() == {"ok": True}

    def test_parse(self, client):
        res = client.post("/api/ns/parse", json={"path": "data/docs", "attributes": int(ItemAttributes.FOLDER)})
        body = res.json()
        assert res.status_code == 200
        assert body["consumed"] == len("data/docs")
        assert body["attributes"] == ItemAttributes.FOLDER
        assert len(ItemIdList.from_token(body["id"])) == 2

    def test_parse_errors_map_to_status(self, client):
        assert client.post("/api/ns/parse", json={"path": ""}).status_code == 400
        res = client.post("/api/ns/parse", json={"path": "data/missing"})
        assert res.status_code == 404
        assert res.json()["detail"]["code"] == "not_found"

    def test_list_root_and_folder(self, client):
        drives = client.get("/api/ns/list").json()["entries"]
        assert [d["name"] for d in drives] == ["data"]

        res = client.get("/api/ns/list", params={"id": drives[0]["id"]})
        entries = {e["name"]: e for e in res.json()["entries"]}
        assert set(entries) == {"docs", "empty", "Doc.txt", "shortcut", "zz.bin"}
        assert entries["docs"]["kind"] == "folder"
        assert entries["zz.bin"]["size"] == "3 KB"
        assert entries["shortcut"]["attributes"] & ItemAttributes.LINK

    def test_list_bad_token(self, client):
        assert client.get("/api/ns/list", params={"id": "A"}).status_code == 400

    def test_display_name(self, client, data_root):
        token = _parse(client, "data/docs/a.txt")
        res = client.post("/api/ns/display-name", json={"id": token, "flags": int(DisplayFlags.FORPARSING)})
        assert res.json()["name"] == str(data_root / "docs" / "a.txt")
        assert client.post("/api/ns/display-name", json={"id": ""}).json()["name"] == "Computer"

    def test_attributes(self, client):
        ids = [_parse(client, "data/docs"), _parse(client, "data/empty")]
        res = client.post("/api/ns/attributes", json={"ids": ids, "mask": 0})
        body = res.json()
        assert body["attributes"] & ItemAttributes.FOLDER
        assert "FOLDER" in body["names"]
        assert "VALIDATE" not in body["names"]

    def test_attributes_need_one_parent(self, client):
        ids = [_parse(client, "data/docs"), _parse(client, "data/docs/a.txt")]
        assert client.post("/api/ns/attributes", json={"ids": ids}).status_code == 400

    def test_compare(self, client):
        docs, doc = _parse(client, "data/docs"), _parse(client, "data/Doc.txt")
        assert client.post("/api/ns/compare", json={"a": docs, "b": doc, "column": 0}).json()["result"] == -1

    def test_rename_and_changes(self, client, data_root):
        token = _parse(client, "data/Doc.txt")
        res = client.post("/api/ns/rename", json={"id": token, "newName": "Memo.txt"})
        assert res.status_code == 200
        renamed = ItemIdList.from_token(res.json()["id"])
        assert renamed.last().name == "Memo.txt"
        assert (data_root / "Memo.txt").exists()

        changes = client.get("/api/ns/changes").json()["changes"]
        assert changes[0]["kind"] == "rename_item"
        assert changes[0]["newPath"] == str(data_root / "Memo.txt")

    def test_rename_conflict(self, client):
        token = _parse(client, "data/Doc.txt")
        res = client.post("/api/ns/rename", json={"id": token, "newName": "zz.bin"})
        assert res.status_code == 500
        assert res.json()["detail"]["detail"]["errno"] is not None


class TestSettingsEndpoints:
    def test_hide_file_ext_round_trip(self, client):
        assert client.get("/api/settings").json() == {"hideFileExt": False}
        assert client.put("/api/settings", json={"hideFileExt": True}).json() == {"hideFileExt": True}
        drive = client.get("/api/ns/list").json()["entries"][0]["id"]
        names = {e["name"] for e in client.get("/api/ns/list", params={"id": drive}).json()["entries"]}
        assert "Doc" in names

    def test_register_file_type(self, client):
        res = client.put(
            "/api/settings/file-types",
            json={"extension": ".txt", "progId": "txtfile", "friendlyName": "Text Document", "neverShowExt": True},
        )
        assert res.json()["friendlyName"] == "Text Document"
        assert res.json()["neverShowExt"] is True

    def test_register_bad_handler(self, client):
        res = client.put(
            "/api/settings/file-types",
            json={"extension": ".pak", "progId": "pakfile", "clsid": "nope"},
        )
        assert res.status_code == 400

    def test_register_archive_handler(self, client, router):
        client.put(
            "/api/settings/file-types",
            json={"extension": ".jar", "progId": "jarfile", "clsid": CLSID_ZIP_FOLDER},
        )
        assert router.registry.clsid_for_file("app.jar") == CLSID_ZIP_FOLDER


class TestLogsEndpoint:
    def test_tail_filters_by_event(self, client):
        log_event(level="info", event="test.marker", data={"n": 1})
        res = client.get("/api/logs/tail", params={"event": "test."})
        records = res.json()["records"]
        assert [r["event"] for r in records] == ["test.marker"]
        assert records[0]["data"] == {"n": 1}

    def test_tail_by_level(self, client):
        log_event(level="error", event="test.failure")
        records = client.get("/api/logs/tail", params={"level": "error"}).json()["records"]
        assert any(r["event"] == "test.failure" for r in records)
