import base64

import httpx
import pytest
from sqlmodel import select

from app.main import app
from app.models import AuditLog, Product, Supplier
from app.services.suppliers import (
    ConnectionConfigError, ConnectionSettings, SupplierConnectionTester,
    build_auth_headers, get_connection_tester, probe_urls, supplier_name_from_endpoint
)
from conftest import make_product


class RecordingTransport(httpx.MockTransport):
    """Answers probes by path and remembers every request"""

    def __init__(self, statuses=None, error=None):
        self.requests = []
        self.statuses = statuses or {}
        self.error = error
        super().__init__(self.handle)

    def handle(self, request):
        self.requests.append(request)
        if self.error:
            raise self.error
        status = self.statuses.get(request.url.path, 404)
        return httpx.Response(status, json={})


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def tester_client(admin_client, transport):
    app.dependency_overrides[get_connection_tester] = lambda: SupplierConnectionTester(timeout=1, transport=transport)
    return admin_client


# === Helpers ===

def test_probe_paths_follow_templates():
    assert probe_urls("https://api.aliexpress.com/v2") == [
        "https://api.aliexpress.com/v2/ping",
        "https://api.aliexpress.com/v2/api/v1/products",
    ]
    assert probe_urls("https://app.spocket.co/")[0] == "https://app.spocket.co/profile"
    assert probe_urls("https://oberlo.example/api")[0] == "https://oberlo.example/api/products"
    assert probe_urls("https://modalyst.co")[0] == "https://modalyst.co/suppliers"
    assert probe_urls("https://dropship.example.com")[0] == "https://dropship.example.com/status"


def test_auth_headers():
    headers = build_auth_headers(ConnectionSettings("https://api.aliexpress.com", api_key="k", api_secret="s"))
    assert headers["X-API-KEY"] == "k"
    assert headers["X-API-SECRET"] == "s"
    assert "Authorization" not in headers

    headers = build_auth_headers(ConnectionSettings("https://api.spocket.co", api_key="k"))
    assert headers["Authorization"] == "Bearer k"

    headers = build_auth_headers(ConnectionSettings("https://x.example", api_username="u", api_password="p"))
    assert headers["Authorization"] == "Basic " + base64.b64encode(b"u:p").decode()

    headers = build_auth_headers(ConnectionSettings("https://x.example", api_header_auth="Token abc"))
    assert headers["Authorization"] == "Token abc"


def test_supplier_name_from_endpoint():
    assert supplier_name_from_endpoint("https://api.spocket.co/v1") == "Spocket"
    assert supplier_name_from_endpoint("http://localhost:8080") == "Localhost"


@pytest.mark.parametrize("conn, message", [
    (ConnectionSettings("", api_key="k"), "API endpoint URL is required"),
    (ConnectionSettings("ftp://files.example", api_key="k"), "Invalid API endpoint URL"),
    (ConnectionSettings("https://x.example", api_username="u"), "API authentication credentials required"),
])
def test_connection_settings_validation(conn, message):
    with pytest.raises(ConnectionConfigError, match=message):
        conn.validate()


# === Connection test endpoint ===

def test_connection_success(tester_client, transport, session):
    transport.statuses = {"/v1/status": 200}

    response = tester_client.post("/api/admin/suppliers/test-connection", json={
        "api_endpoint": "https://api.dropship.com/v1", "api_key": "secret",
    })

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "message": "Successfully connected to API with status 200",
        "error": None,
        "supplier_name": "Dropship",
    }
    assert len(transport.requests) == 1
    assert transport.requests[0].headers["Authorization"] == "Bearer secret"

    log = session.exec(select(AuditLog)).one()
    assert log.action == "SUPPLIER_API_TEST"
    assert log.details == "Connection test succeeded for https://api.dropship.com/v1"


def test_connection_falls_back_to_products_path(tester_client, transport):
    transport.statuses = {"/api/v1/products": 200}

    body = tester_client.post("/api/admin/suppliers/test-connection", json={
        "api_endpoint": "https://app.spocket.co", "api_username": "u", "api_password": "p",
    }).json()

    assert body["success"] is True
    assert [r.url.path for r in transport.requests] == ["/profile", "/api/v1/products"]


def test_connection_failure_reports_first_probe(tester_client, transport, session):
    transport.statuses = {"/status": 401}

    body = tester_client.post("/api/admin/suppliers/test-connection", json={
        "api_endpoint": "https://supplier.example.com", "api_header_auth": "Token t",
    }).json()

    assert body["success"] is False
    assert body["error"] == "API responded with status 401"
    assert body["supplier_name"] == "Example"
    assert session.exec(select(AuditLog)).one().details == "Connection test failed for https://supplier.example.com"


def test_connection_network_error_is_reported(admin_client):
    transport = RecordingTransport(error=httpx.ConnectError("refused"))
    app.dependency_overrides[get_connection_tester] = lambda: SupplierConnectionTester(transport=transport)

    body = admin_client.post("/api/admin/suppliers/test-connection", json={
        "api_endpoint": "https://down.example.com", "api_key": "k",
    }).json()

    assert body["success"] is False
    assert body["error"] == "refused"


def test_connection_timeout_is_reported(admin_client):
    transport = RecordingTransport(error=httpx.ReadTimeout("slow"))
    app.dependency_overrides[get_connection_tester] = lambda: SupplierConnectionTester(transport=transport)

    body = admin_client.post("/api/admin/suppliers/test-connection", json={
        "api_endpoint": "https://slow.example.com", "api_key": "k",
    }).json()

    assert body == {"success": False, "message": None, "error": "Request timed out", "supplier_name": "Example"}


def test_connection_config_errors_are_400(tester_client, transport):
    response = tester_client.post("/api/admin/suppliers/test-connection", json={"api_key": "k"})
    assert response.status_code == 400
    assert response.json()["detail"] == "API endpoint URL is required"

    response = tester_client.post("/api/admin/suppliers/test-connection", json={"api_endpoint": "https://x.example.com"})
    assert response.status_code == 400
    assert transport.requests == []


# === CRUD ===

def test_supplier_crud_masks_api_key(admin_client, session):
    created = admin_client.post("/api/admin/suppliers/", json={
        "name": "Acme Wholesale", "api_key": "super-secret", "contact_email": "ops@acme.com",
    })
    assert created.status_code == 201
    supplier = created.json()
    assert supplier["api_key"] == "[HIDDEN]"
    assert supplier["status"] == "ACTIVE"

    make_product(session, "Anvil", supplier_id=supplier["id"])

    listed = admin_client.get("/api/admin/suppliers/").json()
    assert listed[0]["products_count"] == 1
    assert listed[0]["api_key"] == "[HIDDEN]"

    detail = admin_client.get(f"/api/admin/suppliers/{supplier['id']}").json()
    assert [p["name"] for p in detail["recent_products"]] == ["Anvil"]

    # Sending the mask back keeps the stored key
    admin_client.put(f"/api/admin/suppliers/{supplier['id']}", json={"name": "Acme", "api_key": "[HIDDEN]"})
    session.expire_all()
    assert session.get(Supplier, supplier["id"]).api_key == "super-secret"
    assert session.get(Supplier, supplier["id"]).name == "Acme"


def test_supplier_requires_name(admin_client):
    assert admin_client.post("/api/admin/suppliers/", json={"website": "https://x.example"}).status_code == 422


def test_supplier_status_update(admin_client, session):
    supplier = Supplier(name="Beta")
    session.add(supplier)
    session.commit()

    response = admin_client.patch(f"/api/admin/suppliers/{supplier.id}/status", json={"status": "SUSPENDED"})
    assert response.json()["status"] == "SUSPENDED"

    invalid = admin_client.patch(f"/api/admin/suppliers/{supplier.id}/status", json={"status": "GONE"})
    assert invalid.status_code == 422


def test_delete_supplier_detaches_products(admin_client, session):
    supplier = Supplier(name="Gamma Goods")
    session.add(supplier)
    session.commit()
    product = make_product(session, "Widget", supplier_id=supplier.id)

    response = admin_client.delete(f"/api/admin/suppliers/{supplier.id}")
    assert response.json()["detached_products"] == 1

    session.expire_all()
    product = session.get(Product, product.id)
    assert product.supplier_id is None
    assert product.supplier_source == "Gamma Goods"
    assert session.get(Supplier, supplier.id) is None
    actions = [log.action for log in session.exec(select(AuditLog)).all()]
    assert actions == ["SUPPLIER_DELETE"]
