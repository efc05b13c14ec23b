from storefront.db.models import Product


def test_public_listing_paginates_and_sorts(client, products):
    body = client.get("/api/products", params={"sort": "price-asc", "per_page": 1}).json()

    assert body["success"] is True
    assert body["meta"] == {"current_page": 1, "per_page": 1, "total": 2, "last_page": 2}
    assert body["data"][0]["name"] == "Trail Socks"
    assert body["data"][0]["category"]["name"] == "Shoes"


def test_search_matches_name_case_insensitively(client, products):
    body = client.get("/api/products", params={"search": "ZOOM"}).json()

    assert [p["name"] for p in body["data"]] == ["Air Zoom"]


def test_unknown_product_is_enveloped_404(client):
    res = client.get("/api/products/999")

    assert res.status_code == 404
    assert res.json() == {"success": False, "message": "Product not found.", "data": None}


def test_per_page_is_bounded(client):
    assert client.get("/api/products", params={"per_page": 1000}).status_code == 422


def test_admin_product_crud(client, db, admin_headers, uploads):
    cat = client.post("/api/admin/categories", json={"name": "Bags"}, headers=admin_headers).json()["data"]
    created = client.post("/api/admin/products", json={"name": "Tote", "price_cents": 1999, "stock": 3, "category_id": cat["id"]},
                          headers=admin_headers)
    assert created.status_code == 201
    product_id = created.json()["data"]["id"]

    updated = client.patch(f"/api/admin/products/{product_id}", json={"price_cents": 2499}, headers=admin_headers)
    assert updated.json()["data"]["price_cents"] == 2499
    assert updated.json()["data"]["name"] == "Tote"

    image = client.post(f"/api/admin/products/{product_id}/image", files={"file": ("tote.png", b"png", "image/png")},
                        headers=admin_headers)
    assert image.status_code == 200
    assert image.json()["data"]["image_url"].endswith("products/1.png")

    client.post(f"/api/admin/products/{product_id}/image", files={"file": ("tote.jpg", b"jpg", "image/jpeg")},
                headers=admin_headers)
    assert uploads["removed"] == ["products/1.png"]

    assert client.delete(f"/api/admin/products/{product_id}", headers=admin_headers).status_code == 200
    assert uploads["removed"] == ["products/1.png", "products/2.jpg"]
    assert db.get(Product, product_id) is None


def test_price_bounds_are_enforced(client, admin_headers):
    res = client.post("/api/admin/products", json={"name": "Gold", "price_cents": 100_000_000}, headers=admin_headers)

    assert res.status_code == 422
    assert "price_cents" in res.json()["errors"]


def test_product_in_order_cannot_be_deleted(client, admin_headers, customer_headers, products, address):
    cart = client.post("/api/carts", json={"product_id": products[0].id}, headers=customer_headers).json()["data"]
    client.post("/api/orders", json={"user_address_id": address.id, "cart_ids": [cart["id"]]}, headers=customer_headers)

    res = client.delete(f"/api/admin/products/{products[0].id}", headers=admin_headers)

    assert res.status_code == 409


def test_category_rules(client, admin_headers, customer_headers, products):
    shoes_id = products[0].category_id

    assert client.post("/api/admin/categories", json={"name": "Shoes"}, headers=admin_headers).status_code == 409
    assert client.delete(f"/api/admin/categories/{shoes_id}", headers=admin_headers).status_code == 409
    assert client.post("/api/admin/categories", json={"name": "Hats"}, headers=customer_headers).status_code == 403
    assert [c["name"] for c in client.get("/api/categories").json()["data"]] == ["Shoes"]


def test_product_with_unknown_category_is_404(client, admin_headers):
    res = client.post("/api/admin/products", json={"name": "X", "price_cents": 1, "category_id": 42}, headers=admin_headers)

    assert res.status_code == 404
