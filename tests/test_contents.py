import json

from storefront.db.models import Content
from storefront.store import content_store


def test_get_reads_through_and_caches(db, redis_client):
    db.add(Content(key="homepage", value={"headline": "Hello"})); db.commit()

    assert content_store.get(db, "homepage") == {"headline": "Hello"}
    assert json.loads(redis_client.get("content:homepage")) == {"headline": "Hello"}


def test_get_serves_cache_without_touching_table(db, redis_client):
    redis_client.set("content:homepage", json.dumps({"headline": "cached"}))

    assert content_store.get(db, "homepage") == {"headline": "cached"}


def test_missing_key_is_not_cached(db, redis_client):
    assert content_store.get(db, "nope") is None
    assert redis_client.get("content:nope") is None


def test_save_refreshes_entry_and_drops_aggregate(db, redis_client):
    content_store.save(db, "homepage", {"headline": "v1"})
    assert content_store.get_all(db) == {"homepage": {"headline": "v1"}}
    assert redis_client.get(content_store.ALL_CONTENTS_KEY) is not None

    content_store.save(db, "homepage", {"headline": "v2"})

    assert redis_client.get(content_store.ALL_CONTENTS_KEY) is None
    assert json.loads(redis_client.get("content:homepage")) == {"headline": "v2"}
    assert content_store.get_all(db) == {"homepage": {"headline": "v2"}}
    assert db.get(Content, "homepage").value == {"headline": "v2"}


def test_delete_clears_both_cache_entries(db, redis_client):
    content_store.save(db, "about", {"body": "x"})
    content_store.get_all(db)

    assert content_store.delete(db, "about") is True
    assert redis_client.get("content:about") is None
    assert redis_client.get(content_store.ALL_CONTENTS_KEY) is None
    assert content_store.delete(db, "about") is False


def test_public_and_admin_endpoints(client, admin_headers, customer_headers):
    assert client.get("/api/contents/homepage").status_code == 404

    assert client.put("/api/admin/contents/homepage", json={"headline": "Sale"}, headers=customer_headers).status_code == 403
    saved = client.put("/api/admin/contents/homepage", json={"headline": "Sale"}, headers=admin_headers)
    assert saved.status_code == 200
    assert saved.json()["data"] == {"key": "homepage", "value": {"headline": "Sale"}}

    assert client.get("/api/contents/homepage").json()["data"]["value"] == {"headline": "Sale"}
    assert client.get("/api/contents").json()["data"] == {"homepage": {"headline": "Sale"}}

    client.put("/api/admin/contents/homepage", json={"headline": "New"}, headers=admin_headers)
    assert client.get("/api/contents").json()["data"] == {"homepage": {"headline": "New"}}

    assert client.delete("/api/admin/contents/homepage", headers=admin_headers).status_code == 200
    assert client.get("/api/contents/homepage").status_code == 404
