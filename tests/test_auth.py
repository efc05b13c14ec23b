from storefront.core.security import decode_token


def test_register_always_creates_customer(client):
    res = client.post("/api/auth/register", json={"name": "Ana", "email": "ana@example.com", "password": "secret123", "role": "admin"})

    assert res.status_code == 201
    assert res.json()["data"]["role"] == "user"


def test_duplicate_email_is_conflict(client, customer):
    res = client.post("/api/auth/register", json={"name": "Again", "email": customer.email, "password": "secret123"})

    assert res.status_code == 409


def test_login_sets_cookie_and_returns_token(client, customer):
    res = client.post("/api/auth/login", json={"email": customer.email, "password": "secret123"})

    assert res.status_code == 200
    data = res.json()["data"]
    assert decode_token(data["access_token"])["sub"] == str(customer.id)
    assert "auth_token" in res.cookies

    # the cookie alone authenticates
    me = client.get("/api/auth/me")
    assert me.json()["data"]["email"] == customer.email

    client.post("/api/auth/logout")
    client.cookies.clear()
    assert client.get("/api/auth/me").status_code == 401


def test_bad_credentials(client, customer):
    res = client.post("/api/auth/login", json={"email": customer.email, "password": "wrong-pass"})

    assert res.status_code == 401
    assert res.json() == {"success": False, "message": "Invalid credentials", "data": None}


def test_garbage_token_is_rejected(client):
    res = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})

    assert res.status_code == 401
    assert res.json()["message"] == "Invalid token"


def test_profile_update_cannot_escalate_role(client, customer_headers):
    res = client.put("/api/user/me", json={"name": "Renamed", "role": "admin"}, headers=customer_headers)

    assert res.status_code == 200
    assert res.json()["data"]["name"] == "Renamed"
    assert res.json()["data"]["role"] == "user"


def test_profile_shows_default_address(client, customer_headers, address):
    data = client.get("/api/user/me", headers=customer_headers).json()["data"]

    assert data["default_address"]["id"] == address.id
    assert [a["id"] for a in data["addresses"]] == [address.id]
