import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from conftest import ADDRESS, make_address
from storefront.core.errors import OperationFailed
from storefront.db.models import UserAddress
from storefront.services import addresses as address_service


def _defaults(db, user_id):
    db.expire_all()
    return db.execute(
        select(UserAddress.id).where(UserAddress.user_id == user_id, UserAddress.is_default.is_(True))
    ).scalars().all()


def test_new_default_clears_previous(client, db, customer, customer_headers):
    first = client.post("/api/user_addresses", json={**ADDRESS, "is_default": True}, headers=customer_headers)
    assert first.status_code == 201
    first_id = first.json()["data"]["id"]

    second = client.post("/api/user_addresses", json={**ADDRESS, "label": "Office", "is_default": True}, headers=customer_headers)
    second_id = second.json()["data"]["id"]

    assert second.json()["data"]["is_default"] is True
    assert _defaults(db, customer.id) == [second_id]

    res = client.patch(f"/api/user_addresses/{first_id}", json={"is_default": True}, headers=customer_headers)
    assert res.status_code == 200
    assert _defaults(db, customer.id) == [first_id]


def test_non_default_write_leaves_default_alone(client, db, customer, customer_headers, address):
    res = client.post("/api/user_addresses", json={**ADDRESS, "label": "Office"}, headers=customer_headers)

    assert res.json()["data"]["is_default"] is False
    assert _defaults(db, customer.id) == [address.id]


def test_defaults_are_per_user(client, db, customer, other_customer, other_headers, address):
    client.post("/api/user_addresses", json={**ADDRESS, "is_default": True}, headers=other_headers)

    assert _defaults(db, customer.id) == [address.id]
    assert len(_defaults(db, other_customer.id)) == 1


def test_unsetting_default_leaves_none(client, db, customer, customer_headers, address):
    res = client.put(f"/api/user_addresses/{address.id}", json={"is_default": False}, headers=customer_headers)

    assert res.status_code == 200
    assert _defaults(db, customer.id) == []


def test_deleting_default_does_not_promote(client, db, customer, customer_headers, address):
    other = make_address(db, customer, label="Office")

    res = client.delete(f"/api/user_addresses/{address.id}", headers=customer_headers)

    assert res.status_code == 200
    assert _defaults(db, customer.id) == []
    assert db.get(UserAddress, other.id) is not None


def test_address_used_by_order_cannot_be_deleted(client, db, customer_headers, products, address):
    cart = client.post("/api/carts", json={"product_id": products[0].id}, headers=customer_headers).json()["data"]
    client.post("/api/orders", json={"user_address_id": address.id, "cart_ids": [cart["id"]]}, headers=customer_headers)

    res = client.delete(f"/api/user_addresses/{address.id}", headers=customer_headers)

    assert res.status_code == 409
    assert res.json()["message"] == "Cannot delete address that is used in orders."
    assert db.execute(select(func.count(UserAddress.id))).scalar_one() == 1


def test_other_users_address_is_forbidden(client, other_headers, address):
    assert client.get(f"/api/user_addresses/{address.id}", headers=other_headers).status_code == 403
    assert client.patch(f"/api/user_addresses/{address.id}", json={"city": "Bandung"}, headers=other_headers).status_code == 403
    assert client.delete(f"/api/user_addresses/{address.id}", headers=other_headers).status_code == 403


def test_list_puts_default_first(client, db, customer, customer_headers):
    make_address(db, customer, label="Older")
    default = make_address(db, customer, is_default=True, label="Home")
    make_address(db, customer, label="Newer")

    body = client.get("/api/user_addresses", headers=customer_headers).json()

    assert body["data"][0]["id"] == default.id
    assert body["meta"]["total"] == 3
    only_default = client.get("/api/user_addresses", params={"default": "true"}, headers=customer_headers).json()
    assert [a["id"] for a in only_default["data"]] == [default.id]


def test_validation_errors_are_keyed_by_field(client, customer_headers):
    res = client.post("/api/user_addresses", json={"label": "Home"}, headers=customer_headers)

    assert res.status_code == 422
    errors = res.json()["errors"]
    for field in ("recipient_name", "phone", "address_line_1", "city", "state", "postal_code"):
        assert field in errors


def test_admin_creates_address_for_user(client, db, admin_headers, customer, address):
    res = client.post("/api/admin/user-addresses", json={**ADDRESS, "user_id": customer.id, "is_default": True},
                      headers=admin_headers)

    assert res.status_code == 201
    assert res.json()["data"]["user_id"] == customer.id
    assert _defaults(db, customer.id) == [res.json()["data"]["id"]]

    missing = client.post("/api/admin/user-addresses", json=ADDRESS, headers=admin_headers)
    assert missing.status_code == 422
    assert "user_id" in missing.json()["errors"]


def test_unique_index_rejects_second_default(db, customer, address):
    db.add(UserAddress(user_id=customer.id, is_default=True, **ADDRESS))
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()


def test_service_update_keeps_single_default(db, customer, address):
    other = make_address(db, customer, label="Office")

    address_service.update_address(db, other, {"is_default": True})

    assert _defaults(db, customer.id) == [other.id]


def test_delete_commit_failure_is_wrapped(db, monkeypatch, customer, address):
    def boom(self):
        raise RuntimeError("database went away")
    monkeypatch.setattr(Session, "commit", boom)

    with pytest.raises(OperationFailed) as exc:
        address_service.delete_address(db, address)

    assert exc.value.message == "Failed to delete address: database went away"
    assert db.execute(select(func.count(UserAddress.id))).scalar_one() == 1
