import pytest
from sqlalchemy import func, select

from conftest import make_user
from storefront.db.models import Order, Role, User, UserAddress


def test_admin_surface_requires_admin(client, customer_headers):
    res = client.get("/api/admin/users", headers=customer_headers)

    assert res.status_code == 403
    assert res.json()["message"] == "Admin only"


def test_user_crud(client, admin_headers, customer):
    listed = client.get("/api/admin/users", params={"role": "user"}, headers=admin_headers).json()
    assert [u["email"] for u in listed["data"]] == [customer.email]

    created = client.post("/api/admin/users", json={"name": "Staff", "email": "staff@example.com", "password": "secret123", "role": "admin"},
                          headers=admin_headers)
    assert created.status_code == 201
    assert created.json()["data"]["role"] == "admin"

    dup = client.patch(f"/api/admin/users/{customer.id}", json={"email": "staff@example.com"}, headers=admin_headers)
    assert dup.status_code == 409

    shown = client.get(f"/api/admin/users/{customer.id}", headers=admin_headers).json()["data"]
    assert shown["orders"] == [] and shown["default_address"] is None

    assert client.delete(f"/api/admin/users/{customer.id}", headers=admin_headers).status_code == 200
    assert client.get(f"/api/admin/users/{customer.id}", headers=admin_headers).status_code == 404


def test_last_admin_cannot_be_deleted(client, db, admin, admin_headers):
    res = client.delete(f"/api/admin/users/{admin.id}", headers=admin_headers)
    assert res.status_code == 403
    assert res.json()["message"] == "Cannot delete the last admin user."

    second = make_user(db, "second@example.com", role=Role.ADMIN)
    assert client.delete(f"/api/admin/users/{second.id}", headers=admin_headers).status_code == 200


def test_guest_messages_flow(client, admin_headers):
    sent = client.post("/api/guest-messages", json={"name": "Visitor", "email": "v@example.com", "message": "Do you ship abroad?"})
    assert sent.status_code == 201
    message_id = sent.json()["data"]["id"]
    client.post("/api/guest-messages", json={"name": "Other", "email": "o@example.com", "message": "Hi"})

    stats = client.get("/api/admin/statistics/guest-messages", headers=admin_headers).json()["data"]
    assert stats == {"total": 2, "unread": 2, "read": 0}

    client.patch(f"/api/admin/guest-messages/{message_id}", json={"is_read": True}, headers=admin_headers)
    unread = client.get("/api/admin/guest-messages", params={"is_read": "false"}, headers=admin_headers).json()
    assert unread["meta"]["total"] == 1

    stats = client.get("/api/admin/statistics/guest-messages", headers=admin_headers).json()["data"]
    assert stats == {"total": 2, "unread": 1, "read": 1}

    assert client.delete(f"/api/admin/guest-messages/{message_id}", headers=admin_headers).status_code == 200


def test_guest_message_requires_valid_email(client):
    res = client.post("/api/guest-messages", json={"name": "Visitor", "email": "not-an-email", "message": "Hi"})

    assert res.status_code == 422
    assert "email" in res.json()["errors"]


def test_overview_counts_revenue_from_settled_orders(client, admin_headers, customer, products, address):
    for status, price in (("pending", 100), ("paid", 200), ("completed", 300), ("cancelled", 400)):
        client.post("/api/admin/orders", json={
            "user_id": customer.id,
            "user_address_id": address.id,
            "order_details": [{"product_id": products[0].id, "quantity": 1, "price_cents": price}],
            "status": status,
        }, headers=admin_headers)

    data = client.get("/api/admin/statistics/overview", headers=admin_headers).json()["data"]

    assert data["orders"] == 4
    assert data["revenue_cents"] == 500
    assert data["products"] == 2
    assert data["users"] == 2
    assert data["orders_by_status"] == {"pending": 1, "paid": 1, "shipped": 0, "completed": 1, "cancelled": 1}


def test_health_and_info(client):
    assert client.get("/health").json() == {"status": "ok"}
    assert client.get("/v1/_info").json()["service"] == "storefront"


@pytest.mark.parametrize("status", ["paid", "shipped", "completed"])
def test_user_with_settled_orders_cannot_be_deleted(client, db, admin_headers, customer, products, address, status):
    client.post("/api/admin/orders", json={
        "user_id": customer.id,
        "user_address_id": address.id,
        "order_details": [{"product_id": products[0].id, "quantity": 1, "price_cents": 100}],
        "status": status,
    }, headers=admin_headers)

    res = client.delete(f"/api/admin/users/{customer.id}", headers=admin_headers)

    assert res.status_code == 409
    assert res.json()["message"] == "Cannot delete user with paid, shipped, or completed orders."
    db.expire_all()
    assert db.get(User, customer.id) is not None
    assert db.execute(select(func.count(Order.id))).scalar_one() == 1
    assert db.execute(select(func.count(UserAddress.id))).scalar_one() == 1


def test_user_with_only_open_orders_can_be_deleted(client, db, admin_headers, customer, products, address):
    for status in ("pending", "cancelled"):
        client.post("/api/admin/orders", json={
            "user_id": customer.id,
            "user_address_id": address.id,
            "order_details": [{"product_id": products[0].id, "quantity": 1, "price_cents": 100}],
            "status": status,
        }, headers=admin_headers)

    res = client.delete(f"/api/admin/users/{customer.id}", headers=admin_headers)

    assert res.status_code == 200
    assert db.execute(select(func.count(Order.id))).scalar_one() == 0
