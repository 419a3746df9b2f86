"""API behaviour when the document store holds the migrated tree."""
import zipfile
from io import BytesIO

from conftest import FakeConnection, make_settings
from fastapi.testclient import TestClient

from report_dashboard.app import create_app

JOB = "/test_pipeline_results/job_12345"
LOG = f"{JOB}/integration_test.log"


def test_startup_migrates_tree(store_client):
    documents = store_client.connection.collection.documents
    assert "/" in documents
    assert LOG in documents
    assert documents[LOG]["metadata"]["tags"] == ["test", "log", "integration"]
    assert store_client.get("/api/health").json()["mongodb"] == {"connected": True}


def test_store_listing_wins_over_disk(store_client, data_dir):
    (data_dir / JOB.lstrip("/") / "late.log").write_text("added after migration", encoding="utf-8")
    names = [item["name"] for item in store_client.get("/api/list", params={"path": JOB}).json()["data"]["items"]]
    assert "integration_test.log" in names
    assert "late.log" not in names


def test_folder_unknown_to_store_is_listed_from_disk(store_client, data_dir):
    fresh = data_dir / "test_pipeline_results" / "job_new"
    fresh.mkdir()
    (fresh / "unit_test.log").write_text("fresh", encoding="utf-8")

    items = store_client.get("/api/list", params={"path": "/test_pipeline_results/job_new"}).json()["data"]["items"]
    assert [item["name"] for item in items] == ["unit_test.log"]
    response = store_client.get("/api/file", params={"path": "/test_pipeline_results/job_new/unit_test.log"})
    assert response.text == "fresh"


def test_file_and_info_from_store(store_client):
    store_client.connection.collection.documents[LOG]["content"] = "served from the store"
    assert store_client.get("/api/file", params={"path": LOG}).text == "served from the store"

    data = store_client.get("/api/info", params={"path": LOG}).json()["data"]
    assert data["metadata"]["description"] == "Test file: integration_test.log"
    assert data["isFile"] is True


def test_store_folder_is_not_a_file(store_client):
    response = store_client.get("/api/file", params={"path": JOB})
    assert response.status_code == 400
    assert response.json()["error"] == "Path is not a file"


def test_search_uses_full_text_index(store_client):
    body = store_client.get("/api/search", params={"q": "integration", "limit": "1"}).json()
    assert body["data"]["total"] == 1
    assert "integration" in body["data"]["results"][0]["name"]


def test_stats_from_store(store_client, data_dir):
    job_dir = data_dir / JOB.lstrip("/")
    data = store_client.get("/api/stats", params={"path": JOB}).json()["data"]
    assert data["totalFiles"] == 8
    assert data["totalSize"] == sum(child.stat().st_size for child in job_dir.iterdir())


def test_download_archive_from_store(store_client):
    store_client.connection.collection.documents[LOG]["content"] = "archived from the store"
    response = store_client.get("/api/download", params={"path": JOB})
    with zipfile.ZipFile(BytesIO(response.content)) as archive:
        assert archive.read("integration_test.log") == b"archived from the store"


def test_connection_closed_on_shutdown(data_dir):
    connection = FakeConnection()
    with TestClient(create_app(make_settings(data_dir, mongodb_enabled=True), connection=connection)):
        assert not connection.closed
    assert connection.closed
