from sqlmodel import select

from app.models import AuditLog, Order, OrderItem, OrderStatus, Review, ReviewStatus
from conftest import login, make_product, make_user


def buy(session, user, product, status=OrderStatus.DELIVERED, number="UQ-100"):
    order = Order(
        order_number=number, user_id=user.id, shipping_name="Jane", shipping_address="1 Main St",
        shipping_city="Springfield", subtotal=product.price, total=product.price, status=status,
    )
    session.add(order)
    session.commit()
    session.add(OrderItem(
        order_id=order.id, product_id=product.id, product_name=product.name,
        quantity=1, price=product.price, total=product.price,
    ))
    session.commit()
    return order


def add_review(session, user, product, status=ReviewStatus.APPROVED, rating=5):
    review = Review(product_id=product.id, user_id=user.id, rating=rating, status=status, content="Nice")
    session.add(review)
    session.commit()
    session.refresh(review)
    return review


# === Eligibility ===

def test_can_review_reasons(client, session, customer):
    product = make_product(session, "Kettle")

    anonymous = client.get("/api/reviews/can-review", params={"product_id": product.id}).json()
    assert anonymous["reason"] == "AUTHENTICATION_REQUIRED"

    login(client, customer.email)
    assert client.get("/api/reviews/can-review", params={"product_id": 999}).json()["reason"] == "PRODUCT_NOT_FOUND"

    not_bought = client.get("/api/reviews/can-review", params={"product_id": product.id}).json()
    assert not_bought["can_review"] is False
    assert not_bought["reason"] == "NOT_PURCHASED"

    buy(session, customer, product)
    eligible = client.get("/api/reviews/can-review", params={"product_id": product.id}).json()
    assert eligible["can_review"] is True
    assert eligible["order_number"] == "UQ-100"

    add_review(session, customer, product, status=ReviewStatus.PENDING)
    reviewed = client.get("/api/reviews/can-review", params={"product_id": product.id}).json()
    assert reviewed["reason"] == "ALREADY_REVIEWED"
    assert reviewed["existing_review"]["status"] == "PENDING"


# === Submitting ===

def test_review_requires_delivered_purchase(customer_client, session, customer):
    product = make_product(session, "Toaster")
    buy(session, customer, product, status=OrderStatus.SHIPPED)

    response = customer_client.post("/api/reviews/", json={"product_id": product.id, "rating": 4})
    assert response.status_code == 400
    assert response.json()["detail"] == "You can only review products you have purchased and received"


def test_submitted_review_waits_for_moderation(customer_client, session, customer):
    product = make_product(session, "Blender")
    buy(session, customer, product)

    response = customer_client.post(
        "/api/reviews/", json={"product_id": product.id, "rating": 4, "title": "Good", "content": "Loud but fast"}
    )
    assert response.status_code == 201
    review = response.json()
    assert review["status"] == "PENDING"
    assert review["is_verified"] is True

    public = customer_client.get("/api/reviews/", params={"product_id": product.id}).json()
    assert public["total"] == 0
    assert public["average_rating"] is None

    again = customer_client.post("/api/reviews/", json={"product_id": product.id, "rating": 5})
    assert again.status_code == 400


def test_rating_bounds(customer_client, session):
    product = make_product(session, "Mixer")
    for rating in (0, 6):
        response = customer_client.post("/api/reviews/", json={"product_id": product.id, "rating": rating})
        assert response.status_code == 422


def test_public_list_shows_approved_only(client, session, customer):
    product = make_product(session, "Grill")
    other = make_user(session, "sam@example.com")
    third = make_user(session, "lee@example.com")
    add_review(session, customer, product, rating=5)
    add_review(session, other, product, rating=2)
    add_review(session, third, product, status=ReviewStatus.REJECTED, rating=1)

    body = client.get("/api/reviews/", params={"product_id": product.id}).json()
    assert body["total"] == 2
    assert body["average_rating"] == 3.5
    assert {r["user"]["name"] for r in body["items"]} == {"Jane", "Sam"}


def test_edit_resets_to_pending(client, session, customer):
    product = make_product(session, "Fan")
    review = add_review(session, customer, product)

    other = make_user(session, "sam@example.com")
    login(client, other.email)
    assert client.put(f"/api/reviews/{review.id}", json={"rating": 1}).status_code == 403
    assert client.delete(f"/api/reviews/{review.id}").status_code == 403

    login(client, customer.email)
    response = client.put(f"/api/reviews/{review.id}", json={"rating": 3, "content": "Changed my mind"})
    assert response.status_code == 200
    assert response.json()["rating"] == 3
    assert response.json()["status"] == "PENDING"

    assert client.put(f"/api/reviews/{review.id}", json={"rating": None}).status_code == 422
    assert client.delete(f"/api/reviews/{review.id}").status_code == 200


def test_pending_review_hidden_from_others(client, session, customer):
    product = make_product(session, "Heater")
    review = add_review(session, customer, product, status=ReviewStatus.PENDING)

    assert client.get(f"/api/reviews/{review.id}").status_code == 404
    login(client, customer.email)
    assert client.get(f"/api/reviews/{review.id}").status_code == 200


# === Moderation ===

def test_admin_moderation_is_audited(admin_client, session, customer):
    product = make_product(session, "Iron")
    review = add_review(session, customer, product, status=ReviewStatus.PENDING)

    listed = admin_client.get("/api/admin/reviews/", params={"status": "PENDING"}).json()
    assert [r["id"] for r in listed["items"]] == [review.id]
    assert listed["items"][0]["product_name"] == "Iron"
    assert listed["items"][0]["user_email"] == customer.email

    approved = admin_client.patch(f"/api/admin/reviews/{review.id}", json={"status": "APPROVED"})
    assert approved.status_code == 200
    assert approved.json()["status"] == "APPROVED"

    responded = admin_client.patch(f"/api/admin/reviews/{review.id}", json={"admin_response": "Thanks!"})
    assert responded.json()["admin_response"] == "Thanks!"
    assert responded.json()["admin_response_date"] is not None

    assert admin_client.patch(f"/api/admin/reviews/{review.id}", json={"status": None}).status_code == 422
    assert admin_client.delete(f"/api/admin/reviews/{review.id}").status_code == 200
    assert admin_client.get(f"/api/admin/reviews/{review.id}").status_code == 404

    logs = session.exec(select(AuditLog).order_by(AuditLog.id)).all()
    assert [log.action for log in logs] == ["REVIEW_APPROVE", "REVIEW_RESPOND", "REVIEW_DELETE"]
    assert logs[0].details == 'Approved review for "Iron" by Jane'


def test_deleting_product_removes_its_reviews(admin_client, session, customer):
    product = make_product(session, "Vase", "15.00")
    add_review(session, customer, product)

    assert admin_client.delete(f"/api/admin/products/{product.id}").status_code == 200
    assert session.exec(select(Review)).all() == []


def test_moderation_requires_admin(customer_client):
    assert customer_client.get("/api/admin/reviews/").status_code == 401
