from typing import List

from fitlikeus.core.errors import BackendError
from fitlikeus.core.logging import log_event
from fitlikeus.core.store import DocumentStore, Query, SERVER_TIMESTAMP
from fitlikeus.models.journal import JournalEntry, JournalEntryCreate, JournalEntryUpdate

JOURNAL = "journalEntries"


class JournalService:
    """Owner-scoped CRUD over journal entries."""

    def __init__(self, store: DocumentStore):
        self._store = store

    def create(self, user_id: str, entry: JournalEntryCreate) -> JournalEntry:
        doc = self._store.add(JOURNAL, {
            "user_id": user_id,
            **entry.model_dump(),
            "created_at": SERVER_TIMESTAMP,
            "updated_at": SERVER_TIMESTAMP,
        })
        log_event("info", "journal.created", user_id=user_id, event_type="journal.created", extra={"entry_id": doc.id})
        return JournalEntry.from_document(doc)

    def list(self, user_id: str) -> List[JournalEntry]:
        docs = self._store.query(
            Query(JOURNAL).where("user_id", "==", user_id).order_by("created_at", descending=True)
        )
        return [JournalEntry.from_document(doc) for doc in docs]

    def get(self, user_id: str, entry_id: str) -> JournalEntry:
        return JournalEntry.from_document(self._owned(user_id, entry_id))

    def update(self, user_id: str, entry_id: str, changes: JournalEntryUpdate) -> JournalEntry:
        self._owned(user_id, entry_id)
        payload = changes.model_dump(exclude_unset=True)
        payload["updated_at"] = SERVER_TIMESTAMP
        return JournalEntry.from_document(self._store.update(JOURNAL, entry_id, payload))

    def delete(self, user_id: str, entry_id: str) -> None:
        self._owned(user_id, entry_id)
        self._store.delete(JOURNAL, entry_id)
        log_event("info", "journal.deleted", user_id=user_id, event_type="journal.deleted", extra={"entry_id": entry_id})

    def _owned(self, user_id: str, entry_id: str):
        doc = self._store.get(JOURNAL, entry_id)
        if doc is None:
            raise BackendError("not-found", f"{JOURNAL}/{entry_id}")
        if doc.get("user_id") != user_id:
            raise BackendError("permission-denied", f"{JOURNAL}/{entry_id}")
        return doc
