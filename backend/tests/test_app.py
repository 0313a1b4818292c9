from fastapi.testclient import TestClient

from app.api.deps import get_db
from app.main import app


def test_root_and_health(client):
    assert client.get("/").json() == {"status": "ok", "service": "uniqverse-api"}
    assert client.get("/api/health").json()["status"] == "healthy"


def test_unexpected_errors_become_json_500(client, caplog):
    def broken_db():
        raise RuntimeError("database on fire")
        yield

    app.dependency_overrides[get_db] = broken_db
    quiet_client = TestClient(app, raise_server_exceptions=False)

    response = quiet_client.get("/api/categories/")

    assert response.status_code == 500
    assert response.json() == {"detail": "Internal server error"}
    assert "unhandled error on GET /api/categories/" in caplog.text
