"""Tests for webhook CRUD operations."""
import redis

from app.main import app
from app.models import User, Webhook, WebhookData
from app.services.webhook_cache import WebhookIdCache, get_webhook_cache


class UnavailableRedis:
    def set(self, *args, **kwargs):
        raise redis.ConnectionError("redis down")

    def get(self, *args, **kwargs):
        raise redis.ConnectionError("redis down")

    def delete(self, *args, **kwargs):
        raise redis.ConnectionError("redis down")


def create(client, headers, name="Stripe events", tags=None):
    response = client.post("/api/webhooks", json={"name": name, "tags": tags}, headers=headers)
    assert response.status_code == 201
    return response.json()


def test_health_check(client):
    """Test health check endpoint."""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_requires_user(client):
    assert client.get("/api/webhooks").status_code == 401
    assert client.get("/api/webhooks", headers={"X-User-Id": "nobody"}).status_code == 401


def test_create_webhook_primes_cache(client, auth_headers, cache, redis_client):
    """Creating a webhook stores uuid -> id in the cache."""
    data = create(client, auth_headers, name="  Stripe events  ", tags=["billing"])

    assert data["name"] == "Stripe events"
    assert data["tags"] == ["billing"]
    assert data["uuid"] != data["id"]
    assert cache.get(data["uuid"]) == data["id"]
    assert redis_client.ttl(f"webhook:uuid:{data['uuid']}") > 0


def test_create_webhook_validation(client, auth_headers):
    response = client.post("/api/webhooks", json={"name": "ab"}, headers=auth_headers)
    assert response.status_code == 422

    response = client.post(
        "/api/webhooks",
        json={"name": "Too many tags", "tags": [str(i) for i in range(11)]},
        headers=auth_headers,
    )
    assert response.status_code == 422


def test_create_webhook_succeeds_when_cache_down(client, auth_headers, db_session):
    """A cache outage never fails webhook creation."""
    app.dependency_overrides[get_webhook_cache] = lambda: WebhookIdCache(UnavailableRedis())

    data = create(client, auth_headers)

    assert db_session.query(Webhook).filter(Webhook.id == data["id"]).count() == 1


def test_list_only_own_webhooks(client, auth_headers, db_session):
    other = User(email="other@example.com")
    db_session.add(other)
    db_session.commit()
    create(client, auth_headers, name="Mine")
    create(client, {"X-User-Id": other.id}, name="Theirs")

    response = client.get("/api/webhooks", headers=auth_headers)

    assert response.status_code == 200
    assert [w["name"] for w in response.json()] == ["Mine"]


def test_get_other_users_webhook_is_404(client, auth_headers, db_session):
    other = User(email="other@example.com")
    db_session.add(other)
    db_session.commit()
    theirs = create(client, {"X-User-Id": other.id}, name="Theirs")

    response = client.get(f"/api/webhooks/{theirs['id']}", headers=auth_headers)

    assert response.status_code == 404


def test_update_webhook_keeps_uuid(client, auth_headers):
    data = create(client, auth_headers)

    response = client.put(
        f"/api/webhooks/{data['id']}",
        json={"name": "Renamed", "tags": ["a", "b"]},
        headers=auth_headers,
    )

    assert response.status_code == 200
    updated = response.json()
    assert updated["name"] == "Renamed"
    assert updated["tags"] == ["a", "b"]
    assert updated["uuid"] == data["uuid"]


def test_delete_webhook_cascades_data_and_cache(client, auth_headers, cache, db_session):
    """Deleting a webhook removes its captured requests and its cache entry."""
    data = create(client, auth_headers)
    client.post(f"/w/{data['uuid']}", content=b'{"a": 1}', headers=auth_headers)
    client.get(f"/w/{data['uuid']}?x=1")
    assert db_session.query(WebhookData).filter(WebhookData.webhook_id == data["id"]).count() == 2

    response = client.delete(f"/api/webhooks/{data['id']}", headers=auth_headers)

    assert response.status_code == 204
    assert db_session.query(WebhookData).filter(WebhookData.webhook_id == data["id"]).count() == 0
    assert db_session.query(Webhook).filter(Webhook.id == data["id"]).count() == 0
    assert cache.get(data["uuid"]) is None
    assert client.post(f"/w/{data['uuid']}", content=b"{}").status_code == 404


def test_delete_webhook_succeeds_when_cache_down(client, auth_headers, db_session):
    data = create(client, auth_headers)
    app.dependency_overrides[get_webhook_cache] = lambda: WebhookIdCache(UnavailableRedis())

    response = client.delete(f"/api/webhooks/{data['id']}", headers=auth_headers)

    assert response.status_code == 204
    assert db_session.query(Webhook).count() == 0
