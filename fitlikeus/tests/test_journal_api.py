import pytest


def create(client, headers, **body):
    payload = {"title": "Leg day", "content": "New squat PR", **body}
    return client.post("/v1/journal", headers=headers, json=payload)


def test_create_and_get_entry(client, client_user):
    headers, profile = client_user
    resp = create(client, headers, mood=7, tags=[" legs ", "pr", "legs", ""])
    assert resp.status_code == 201
    entry = resp.json()
    assert entry["user_id"] == profile.uid
    assert entry["tags"] == ["legs", "pr"]
    assert entry["created_at"] is not None

    fetched = client.get(f"/v1/journal/{entry['id']}", headers=headers).json()
    assert fetched["content"] == "New squat PR"
    assert fetched["mood"] == 7


def test_list_is_newest_first_and_owner_scoped(client, make_user):
    alice, _ = make_user()
    bob, _ = make_user()
    first = create(client, alice, title="one").json()["id"]
    second = create(client, alice, title="two").json()["id"]
    create(client, bob, title="bob's")

    entries = client.get("/v1/journal", headers=alice).json()["entries"]
    assert [e["id"] for e in entries] == [second, first]


def test_update_only_changes_given_fields(client, client_user):
    headers, _ = client_user
    entry = create(client, headers, mood=5).json()
    resp = client.patch(f"/v1/journal/{entry['id']}", headers=headers, json={"title": "Leg day (edited)"})
    assert resp.status_code == 200
    updated = resp.json()
    assert updated["title"] == "Leg day (edited)"
    assert updated["content"] == "New squat PR"
    assert updated["mood"] == 5


def test_validation(client, client_user):
    headers, _ = client_user
    assert create(client, headers, title="").status_code == 422
    assert create(client, headers, mood=11).status_code == 422


def test_other_users_cannot_touch_entry(client, make_user):
    alice, _ = make_user()
    bob, _ = make_user()
    entry_id = create(client, alice).json()["id"]

    assert client.get(f"/v1/journal/{entry_id}", headers=bob).status_code == 403
    assert client.patch(f"/v1/journal/{entry_id}", headers=bob, json={"title": "x"}).status_code == 403
    assert client.delete(f"/v1/journal/{entry_id}", headers=bob).status_code == 403


def test_delete(client, client_user):
    headers, _ = client_user
    entry_id = create(client, headers).json()["id"]
    assert client.delete(f"/v1/journal/{entry_id}", headers=headers).status_code == 204
    resp = client.get(f"/v1/journal/{entry_id}", headers=headers)
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "not-found"


def test_requires_authentication(client, store):
    resp = client.get("/v1/journal")
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "unauthenticated"


@pytest.mark.parametrize("field", ["title", "content", "tags"])
def test_null_for_required_field_is_rejected(client, client_user, store, field):
    headers, _ = client_user
    entry = create(client, headers, tags=["legs"]).json()

    resp = client.patch(f"/v1/journal/{entry['id']}", headers=headers, json={field: None})
    assert resp.status_code == 422
    assert store.get("journalEntries", entry["id"]).get(field) == entry[field]
    assert client.get("/v1/journal", headers=headers).status_code == 200


def test_mood_can_be_cleared(client, client_user):
    headers, _ = client_user
    entry = create(client, headers, mood=6).json()
    resp = client.patch(f"/v1/journal/{entry['id']}", headers=headers, json={"mood": None})
    assert resp.status_code == 200
    assert resp.json()["mood"] is None
