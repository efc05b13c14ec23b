import os

# settings are read at import time
os.environ.setdefault("POSTGRES_DSN", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret")

import fakeredis
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from storefront.api.deps import get_db
from storefront.core.security import create_access_token, hash_password
from storefront.db.models import Category, Product, Role, User, UserAddress
from storefront.db.session import Base
from storefront.main import app
from storefront.services import storage
from storefront.store import content_store

engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
TestingSession = sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture
def db():
    Base.metadata.create_all(engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)


@pytest.fixture
def redis_client(monkeypatch):
    r = fakeredis.FakeRedis(decode_responses=True)
    monkeypatch.setattr(content_store, "get_client", lambda: r)
    return r


@pytest.fixture
def uploads(monkeypatch):
    """Record object-store calls instead of talking to MinIO."""
    stored = {"proofs": [], "images": [], "removed": []}

    def fake_proof(upload):
        stored["proofs"].append(upload.filename)
        return storage.public_url(f"payment_proofs/{len(stored['proofs'])}.{upload.ext}")

    def fake_image(upload):
        key = f"products/{len(stored['images']) + 1}.{upload.ext}"
        stored["images"].append(key)
        return key, storage.public_url(key)

    monkeypatch.setattr(storage, "store_payment_proof", fake_proof)
    monkeypatch.setattr(storage, "store_product_image", fake_image)
    monkeypatch.setattr(storage, "remove_objects", lambda keys: stored["removed"].extend(keys))
    return stored


@pytest.fixture
def client(db, redis_client, uploads):
    def override_get_db():
        s = TestingSession()
        try: yield s
        finally: s.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def make_user(db, email, role=Role.USER, name="Test User", password="secret123"):
    user = User(name=name, email=email, password_hash=hash_password(password), role=role.value)
    db.add(user); db.commit(); db.refresh(user)
    return user


def auth(user):
    token, _ = create_access_token(user.id, user.role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def customer(db):
    return make_user(db, "cust@example.com", name="Customer")


@pytest.fixture
def other_customer(db):
    return make_user(db, "other@example.com", name="Other")


@pytest.fixture
def admin(db):
    return make_user(db, "admin@example.com", role=Role.ADMIN, name="Admin")


@pytest.fixture
def customer_headers(customer):
    return auth(customer)


@pytest.fixture
def other_headers(other_customer):
    return auth(other_customer)


@pytest.fixture
def admin_headers(admin):
    return auth(admin)


@pytest.fixture
def products(db):
    shoes = Category(name="Shoes")
    db.add(shoes); db.commit()
    a = Product(name="Air Zoom", price_cents=100, stock=10, category_id=shoes.id)
    b = Product(name="Trail Socks", price_cents=50, stock=10, category_id=shoes.id)
    db.add_all([a, b]); db.commit()
    db.refresh(a); db.refresh(b)
    return a, b


ADDRESS = {
    "label": "Home",
    "recipient_name": "Customer",
    "phone": "+62811000000",
    "address_line_1": "1 Demo Street",
    "city": "Jakarta",
    "state": "DKI Jakarta",
    "postal_code": "10110",
}


def make_address(db, user, is_default=False, **overrides):
    address = UserAddress(user_id=user.id, is_default=is_default, **{**ADDRESS, **overrides})
    db.add(address); db.commit(); db.refresh(address)
    return address


@pytest.fixture
def address(db, customer):
    return make_address(db, customer, is_default=True)
