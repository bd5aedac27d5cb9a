"""
Free-form fitness log: any exercise with duration, intensity and calories.

Separate from `workouts` (the four tracked exercises with reps); entries
here are editable and never feed the consistency streak.
"""
from typing import List, Optional

from fitlikeus.core.errors import BackendError
from fitlikeus.core.logging import log_event
from fitlikeus.core.store import DocumentStore, Query, SERVER_TIMESTAMP
from fitlikeus.models.fitness import FitnessEntry, FitnessEntryCreate, FitnessEntryUpdate, FitnessSummary

FITNESS_ENTRIES = "fitness_entries"


class FitnessService:
    def __init__(self, store: DocumentStore):
        self._store = store

    def create(self, user_id: str, entry: FitnessEntryCreate) -> FitnessEntry:
        data = entry.model_dump()
        doc = self._store.add(FITNESS_ENTRIES, {
            "user_id": user_id,
            **data,
            "date": data["date"] or SERVER_TIMESTAMP,
            "created_at": SERVER_TIMESTAMP,
            "updated_at": SERVER_TIMESTAMP,
        })
        log_event("info", "fitness.created", user_id=user_id, event_type="fitness.created", extra={"entry_id": doc.id})
        return FitnessEntry.from_document(doc)

    def list(self, user_id: str, limit: Optional[int] = None) -> List[FitnessEntry]:
        query = Query(FITNESS_ENTRIES).where("user_id", "==", user_id).order_by("created_at", descending=True)
        if limit is not None:
            query = query.limit(limit)
        return [FitnessEntry.from_document(doc) for doc in self._store.query(query)]

    def get(self, user_id: str, entry_id: str) -> FitnessEntry:
        return FitnessEntry.from_document(self._owned(user_id, entry_id))

    def update(self, user_id: str, entry_id: str, changes: FitnessEntryUpdate) -> FitnessEntry:
        self._owned(user_id, entry_id)
        payload = changes.model_dump(exclude_unset=True)
        payload["updated_at"] = SERVER_TIMESTAMP
        return FitnessEntry.from_document(self._store.update(FITNESS_ENTRIES, entry_id, payload))

    def delete(self, user_id: str, entry_id: str) -> None:
        self._owned(user_id, entry_id)
        self._store.delete(FITNESS_ENTRIES, entry_id)
        log_event("info", "fitness.deleted", user_id=user_id, event_type="fitness.deleted", extra={"entry_id": entry_id})

    def summary(self, user_id: str) -> FitnessSummary:
        entries = self.list(user_id)
        return FitnessSummary(
            total_entries=len(entries),
            total_duration=sum(e.duration for e in entries),
            total_calories=sum(e.calories for e in entries),
        )

    def _owned(self, user_id: str, entry_id: str):
        doc = self._store.get(FITNESS_ENTRIES, entry_id)
        if doc is None:
            raise BackendError("not-found", f"{FITNESS_ENTRIES}/{entry_id}")
        if doc.get("user_id") != user_id:
            raise BackendError("permission-denied", f"{FITNESS_ENTRIES}/{entry_id}")
        return doc
