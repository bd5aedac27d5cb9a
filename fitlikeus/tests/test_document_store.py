"""Document store semantics, shared by the memory and SQL backends."""

from datetime import datetime, timedelta, timezone

import pytest

from fitlikeus.core.database import build_engine
from fitlikeus.core.errors import BackendError
from fitlikeus.core.store import (
    MemoryDocumentStore,
    Query,
    SERVER_TIMESTAMP,
    SqlDocumentStore,
    build_store,
)
from fitlikeus.core.config import Settings

T0 = datetime(2024, 3, 14, 9, tzinfo=timezone.utc)


class FixedClock:
    def __init__(self, start):
        self.now = start

    def __call__(self):
        return self.now


@pytest.fixture(params=["memory", "sql"])
def doc_store(request):
    clock = FixedClock(T0)
    if request.param == "memory":
        return MemoryDocumentStore(clock=clock)
    return SqlDocumentStore(build_engine("sqlite://"), clock=clock)


def test_add_and_get(doc_store):
    doc = doc_store.add("workouts", {"user_id": "u1", "reps": 10, "timestamp": SERVER_TIMESTAMP})
    loaded = doc_store.get("workouts", doc.id)
    assert loaded.id == doc.id
    assert loaded.get("reps") == 10
    assert loaded.get("timestamp") == T0
    assert doc_store.get("workouts", "missing") is None


def test_set_merge_and_update(doc_store):
    doc_store.set("users", "u1", {"email": "a@example.com", "plan": "free"})
    doc_store.set("users", "u1", {"plan": "premium"}, merge=True)
    assert doc_store.get("users", "u1").data == {"email": "a@example.com", "plan": "premium"}

    doc_store.update("users", "u1", {"level": "advanced"})
    assert doc_store.get("users", "u1").get("level") == "advanced"

    doc_store.set("users", "u1", {"plan": "free"})
    assert doc_store.get("users", "u1").data == {"plan": "free"}


def test_update_missing_raises_not_found(doc_store):
    with pytest.raises(BackendError) as exc:
        doc_store.update("users", "ghost", {"plan": "premium"})
    assert exc.value.code == "not-found"


def test_delete_is_idempotent(doc_store):
    doc = doc_store.add("moods", {"score": 5})
    doc_store.delete("moods", doc.id)
    doc_store.delete("moods", doc.id)
    assert doc_store.get("moods", doc.id) is None


def test_query_filters_orders_and_limits(doc_store):
    for n in range(5):
        doc_store.add("workouts", {"user_id": "u1", "reps": n, "timestamp": T0 + timedelta(hours=n)})
    doc_store.add("workouts", {"user_id": "u2", "reps": 99, "timestamp": T0})
    doc_store.add("workouts", {"user_id": "u1", "reps": 7})  # no timestamp

    newest = doc_store.query(
        Query("workouts").where("user_id", "==", "u1").order_by("timestamp", descending=True).limit(3)
    )
    assert [d.get("reps") for d in newest] == [4, 3, 2]

    unordered = doc_store.query(Query("workouts").where("user_id", "==", "u1"))
    assert len(unordered) == 6

    heavy = doc_store.query(Query("workouts").where("reps", ">=", 4).order_by("reps"))
    assert [d.get("reps") for d in heavy] == [4, 7, 99]


def test_query_in_and_array_contains(doc_store):
    doc_store.add("journalEntries", {"tags": ["legs", "pr"], "mood": 8})
    doc_store.add("journalEntries", {"tags": ["rest"], "mood": 3})
    assert len(doc_store.query(Query("journalEntries").where("tags", "array-contains", "pr"))) == 1
    assert len(doc_store.query(Query("journalEntries").where("mood", "in", [3, 4]))) == 1


def test_unsupported_operator_rejected():
    with pytest.raises(ValueError):
        Query("workouts").where("reps", "~", 1)


def test_subscribe_pushes_snapshots(doc_store):
    snapshots = []
    unsubscribe = doc_store.subscribe(Query("workouts").where("user_id", "==", "u1"), snapshots.append)
    assert snapshots == [[]]

    doc_store.add("workouts", {"user_id": "u1", "reps": 3})
    doc_store.add("moods", {"user_id": "u1", "score": 5})
    assert len(snapshots) == 2
    assert snapshots[-1][0].get("reps") == 3

    unsubscribe()
    doc_store.add("workouts", {"user_id": "u1", "reps": 4})
    assert len(snapshots) == 2


def test_failing_listener_does_not_break_writes(doc_store):
    def explode(_docs):
        if _docs:
            raise RuntimeError("listener bug")

    doc_store.subscribe(Query("workouts"), explode)
    doc = doc_store.add("workouts", {"reps": 1})
    assert doc_store.get("workouts", doc.id) is not None


def test_memory_store_copies_values():
    store = MemoryDocumentStore()
    payload = {"tags": ["a"]}
    doc = store.add("journalEntries", payload)
    payload["tags"].append("b")
    assert store.get("journalEntries", doc.id).get("tags") == ["a"]


def test_sql_store_ping():
    store = SqlDocumentStore(build_engine("sqlite://"))
    assert store.ping() is True


def test_build_store_selects_backend():
    assert isinstance(build_store(Settings(STORE_BACKEND="memory")), MemoryDocumentStore)
    assert isinstance(build_store(Settings(STORE_BACKEND="sql", DATABASE_URL="sqlite://")), SqlDocumentStore)
    with pytest.raises(ValueError):
        build_store(Settings(STORE_BACKEND="sql", DATABASE_URL=None, TEST_DATABASE_URL=None))
