"""
Workout log and post-workout moods.

Workouts and moods are separate documents; a mood references its workout
by id only. log_workout_with_mood() writes both but never undoes the
workout when the mood write fails.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from fitlikeus.core.errors import AppError, BackendError
from fitlikeus.core.logging import log_event
from fitlikeus.core.metrics import moods_recorded_total, workouts_logged_total
from fitlikeus.core.store import DocumentStore, Query, SERVER_TIMESTAMP
from fitlikeus.features.streaks.consistency import workout_stats
from fitlikeus.models.workout import EXERCISES, MAX_REPS, MIN_REPS, Mood, Workout, WorkoutCreate, WorkoutStats

logger = logging.getLogger(__name__)

WORKOUTS = "workouts"
MOODS = "moods"


@dataclass(frozen=True)
class LoggedWorkout:
    workout: Workout
    mood: Optional[Mood] = None
    mood_synced: bool = True


class WorkoutService:
    def __init__(self, store: DocumentStore):
        self._store = store

    # Workouts -------------------------------------------------------------
    def log_workout(
        self,
        user_id: str,
        exercise: str,
        reps: int,
        notes: Optional[str] = None,
        *,
        timestamp: Optional[datetime] = None,
    ) -> str:
        if exercise not in EXERCISES:
            raise BackendError("failed-precondition", f"unknown exercise: {exercise}")
        if not MIN_REPS <= reps <= MAX_REPS:
            raise BackendError("failed-precondition", f"reps out of range: {reps}")
        doc = self._store.add(WORKOUTS, {
            "user_id": user_id,
            "exercise": exercise,
            "reps": reps,
            "notes": notes,
            "timestamp": timestamp or SERVER_TIMESTAMP,
        })
        workouts_logged_total.inc(labels={"exercise": exercise})
        log_event("info", "workout.logged", user_id=user_id, event_type="workout.logged", extra={"workout_id": doc.id, "exercise": exercise})
        return doc.id

    def list_workouts(self, user_id: str, limit: Optional[int] = None) -> List[Workout]:
        query = Query(WORKOUTS).where("user_id", "==", user_id).order_by("timestamp", descending=True)
        if limit is not None:
            query = query.limit(limit)
        return [Workout.from_document(doc) for doc in self._store.query(query)]

    def get_workout(self, user_id: str, workout_id: str) -> Workout:
        return Workout.from_document(self._owned(user_id, workout_id))

    def delete_workout(self, user_id: str, workout_id: str) -> None:
        self._owned(user_id, workout_id)
        self._store.delete(WORKOUTS, workout_id)
        log_event("info", "workout.deleted", user_id=user_id, event_type="workout.deleted", extra={"workout_id": workout_id})

    def stats(self, user_id: str, now: Optional[datetime] = None) -> WorkoutStats:
        return workout_stats(self.list_workouts(user_id), now or self._store.now())

    # Moods ----------------------------------------------------------------
    def record_mood(self, user_id: str, workout_id: str, score: int, notes: Optional[str] = None) -> Mood:
        if not 1 <= score <= 10:
            raise BackendError("failed-precondition", f"mood score out of range: {score}")
        doc = self._store.add(MOODS, {
            "user_id": user_id,
            "workout_id": workout_id,
            "score": score,
            "notes": notes,
            "timestamp": SERVER_TIMESTAMP,
        })
        return Mood.from_document(doc)

    def list_moods(self, user_id: str, limit: Optional[int] = None) -> List[Mood]:
        query = Query(MOODS).where("user_id", "==", user_id).order_by("timestamp", descending=True)
        if limit is not None:
            query = query.limit(limit)
        return [Mood.from_document(doc) for doc in self._store.query(query)]

    def moods_for_workout(self, user_id: str, workout_id: str) -> List[Mood]:
        docs = self._store.query(
            Query(MOODS)
            .where("user_id", "==", user_id)
            .where("workout_id", "==", workout_id)
            .order_by("timestamp")
        )
        return [Mood.from_document(doc) for doc in docs]

    # Linked flow ----------------------------------------------------------
    def log_workout_with_mood(self, user_id: str, payload: WorkoutCreate) -> LoggedWorkout:
        workout_id = self.log_workout(user_id, payload.exercise, payload.reps, payload.notes)
        workout = self.get_workout(user_id, workout_id)
        if payload.mood_score is None:
            return LoggedWorkout(workout=workout)

        try:
            mood = self.record_mood(user_id, workout_id, payload.mood_score)
        except AppError as e:
            moods_recorded_total.inc(labels={"synced": "false"})
            log_event(
                "warning",
                "mood.sync_failed",
                user_id=user_id,
                event_type="mood.sync_failed",
                error_code=e.code,
                extra={"workout_id": workout_id},
            )
            return LoggedWorkout(workout=workout, mood_synced=False)

        moods_recorded_total.inc(labels={"synced": "true"})
        return LoggedWorkout(workout=workout, mood=mood)

    def _owned(self, user_id: str, workout_id: str):
        doc = self._store.get(WORKOUTS, workout_id)
        if doc is None:
            raise BackendError("not-found", f"workouts/{workout_id}")
        if doc.get("user_id") != user_id:
            raise BackendError("permission-denied", f"workouts/{workout_id}")
        return doc
