from datetime import timedelta

from fitlikeus.features.premium.service import PremiumService
from fitlikeus.features.resources.service import ResourceService
from fitlikeus.models.resource import ResourceCreate


def seed(store):
    service = ResourceService(store)
    free = service.create(ResourceCreate(
        title="Warm-up basics",
        category="training",
        link="https://example.com/warmup",
    ))
    premium = service.create(ResourceCreate(
        title="Meal plans",
        category="nutrition",
        content="Week 1: ...",
        link="https://example.com/meals",
        premium=True,
    ))
    return free, premium


def test_free_user_sees_locked_premium_entries(client, client_user, store):
    headers, _ = client_user
    free, premium = seed(store)

    body = client.get("/v1/resources", headers=headers).json()
    assert body["counts"] == {"free": 1, "premium": 1}
    assert body["free"][0]["locked"] is False
    assert body["free"][0]["link"] == "https://example.com/warmup"

    locked = body["premium"][0]
    assert locked["id"] == premium.id
    assert locked["locked"] is True
    assert locked["link"] is None
    assert locked["content"] is None


def test_free_user_cannot_open_premium_entry(client, client_user, store):
    headers, _ = client_user
    free, premium = seed(store)

    assert client.get(f"/v1/resources/{free.id}", headers=headers).status_code == 200
    resp = client.get(f"/v1/resources/{premium.id}", headers=headers)
    assert resp.status_code == 403
    assert resp.json()["error"]["code"] == "premium-required"


def test_premium_user_unlocks_everything(client, client_user, store):
    headers, profile = client_user
    _, premium = seed(store)
    PremiumService(store).grant_premium(profile.uid, 30)

    body = client.get("/v1/resources", headers=headers).json()
    assert body["premium"][0]["locked"] is False
    opened = client.get(f"/v1/resources/{premium.id}", headers=headers).json()
    assert opened["content"] == "Week 1: ..."


def test_expired_premium_is_locked_again(client, client_user, store):
    headers, profile = client_user
    _, premium = seed(store)
    store.update("users", profile.uid, {
        "plan": "premium",
        "premium_expires_at": store.now() - timedelta(days=1),
    })
    assert client.get(f"/v1/resources/{premium.id}", headers=headers).status_code == 403


def test_category_filter(client, client_user, store):
    headers, _ = client_user
    seed(store)
    body = client.get("/v1/resources", headers=headers, params={"category": "nutrition"}).json()
    assert body["counts"] == {"free": 0, "premium": 1}


def test_admin_creates_and_sees_unlocked(client, admin_user, client_user, store):
    admin_headers, _ = admin_user
    client_headers, _ = client_user
    payload = {"title": "Sleep and recovery", "category": "recovery", "premium": True, "content": "Sleep 8h"}

    assert client.post("/v1/admin/resources", headers=client_headers, json=payload).status_code == 403
    resp = client.post("/v1/admin/resources", headers=admin_headers, json=payload)
    assert resp.status_code == 201
    created = resp.json()

    assert client.get(f"/v1/resources/{created['id']}", headers=admin_headers).json()["content"] == "Sleep 8h"


def test_missing_resource(client, client_user):
    headers, _ = client_user
    assert client.get("/v1/resources/nope", headers=headers).status_code == 404
