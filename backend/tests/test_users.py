from sqlmodel import select

from app.models import AuditLog, User, UserRole
from conftest import make_product, make_user


# === Wishlist ===

def test_wishlist_add_is_idempotent(customer_client, session):
    product = make_product(session, "Globe")

    for _ in range(2):
        response = customer_client.post("/api/users/wishlist/", json={"product_id": product.id})
        assert response.status_code == 200

    items = customer_client.get("/api/users/wishlist/").json()
    assert [p["name"] for p in items] == ["Globe"]


def test_wishlist_remove(customer_client, session):
    product = make_product(session, "Atlas")
    customer_client.post("/api/users/wishlist/", json={"product_id": product.id})

    assert customer_client.delete(f"/api/users/wishlist/{product.id}").status_code == 200
    assert customer_client.get("/api/users/wishlist/").json() == []
    assert customer_client.delete(f"/api/users/wishlist/{product.id}").status_code == 404


def test_wishlist_unknown_product(customer_client):
    assert customer_client.post("/api/users/wishlist/", json={"product_id": 404}).status_code == 404


def test_wishlist_requires_login(client):
    assert client.get("/api/users/wishlist/").status_code == 401


# === Profile ===

def test_update_profile(customer_client):
    response = customer_client.patch("/api/users/me", json={"name": "Jane D.", "phone": "555-0101"})
    assert response.status_code == 200
    assert response.json()["name"] == "Jane D."
    assert response.json()["phone"] == "555-0101"


def test_deactivate_account_ends_session(customer_client, session, customer):
    assert customer_client.delete("/api/users/me").status_code == 200
    assert customer_client.get("/api/auth/me").status_code == 401

    session.expire_all()
    assert session.get(User, customer.id).is_active is False


# === Admin ===

def test_admin_lists_and_searches_users(admin_client, session):
    make_user(session, "alice@example.com", name="Alice")
    make_user(session, "bob@shop.com", UserRole.VENDOR, name="Bob")

    everyone = admin_client.get("/api/users/").json()
    assert len(everyone) == 3

    vendors = admin_client.get("/api/users/", params={"role": "VENDOR"}).json()
    assert [u["email"] for u in vendors] == ["bob@shop.com"]

    found = admin_client.get("/api/users/", params={"q": "ALICE"}).json()
    assert [u["name"] for u in found] == ["Alice"]


def test_admin_updates_role(admin_client, session, customer):
    response = admin_client.patch(f"/api/users/{customer.id}", json={"role": "VENDOR"})
    assert response.status_code == 200
    assert response.json()["role"] == "VENDOR"

    log = session.exec(select(AuditLog)).one()
    assert log.details == f"Updated user {customer.email}: role=VENDOR"


def test_admin_cannot_demote_self(admin_client, admin):
    assert admin_client.patch(f"/api/users/{admin.id}", json={"role": "CUSTOMER"}).status_code == 400
    assert admin_client.patch(f"/api/users/{admin.id}", json={"is_active": False}).status_code == 400


def test_user_admin_requires_admin(customer_client, customer):
    assert customer_client.get("/api/users/").status_code == 401
    assert customer_client.get(f"/api/users/{customer.id}").status_code == 401
