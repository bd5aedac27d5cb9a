from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from fitlikeus.core.auth import require_client
from fitlikeus.core.store import DocumentStore, get_store
from fitlikeus.features.workouts.service import WorkoutService
from fitlikeus.models.workout import EXERCISE_VIDEOS, EXERCISES, MoodCreate, WorkoutCreate
from fitlikeus.models.user import UserProfile

router = APIRouter()


def get_workout_service(store: DocumentStore = Depends(get_store)) -> WorkoutService:
    return WorkoutService(store)


@router.get("/v1/workouts")
def list_workouts(
    limit: Optional[int] = Query(None, ge=1, le=500),
    user: UserProfile = Depends(require_client),
    workouts: WorkoutService = Depends(get_workout_service),
):
    return {"workouts": workouts.list_workouts(user.uid, limit=limit)}


@router.post("/v1/workouts", status_code=201)
def log_workout(
    body: WorkoutCreate,
    user: UserProfile = Depends(require_client),
    workouts: WorkoutService = Depends(get_workout_service),
):
    """Log a workout; an optional mood score is saved alongside, best-effort."""
    logged = workouts.log_workout_with_mood(user.uid, body)
    return {
        "id": logged.workout.id,
        "workout": logged.workout,
        "mood": logged.mood,
        "mood_synced": logged.mood_synced,
    }


@router.get("/v1/workouts/stats")
def workout_stats(user: UserProfile = Depends(require_client), workouts: WorkoutService = Depends(get_workout_service)):
    return workouts.stats(user.uid)


@router.get("/v1/workouts/exercises")
def list_exercises():
    return {"exercises": [{"name": name, "video_url": EXERCISE_VIDEOS[name]} for name in EXERCISES]}


@router.get("/v1/workouts/{workout_id}")
def get_workout(
    workout_id: str,
    user: UserProfile = Depends(require_client),
    workouts: WorkoutService = Depends(get_workout_service),
):
    workout = workouts.get_workout(user.uid, workout_id)
    return {
        "workout": workout,
        "moods": workouts.moods_for_workout(user.uid, workout_id),
        "video_url": EXERCISE_VIDEOS.get(workout.exercise),
    }


@router.delete("/v1/workouts/{workout_id}", status_code=204)
def delete_workout(
    workout_id: str,
    user: UserProfile = Depends(require_client),
    workouts: WorkoutService = Depends(get_workout_service),
):
    workouts.delete_workout(user.uid, workout_id)
    return Response(status_code=204)


@router.get("/v1/workouts/{workout_id}/moods")
def workout_moods(
    workout_id: str,
    user: UserProfile = Depends(require_client),
    workouts: WorkoutService = Depends(get_workout_service),
):
    return {"moods": workouts.moods_for_workout(user.uid, workout_id)}


@router.get("/v1/moods")
def list_moods(
    limit: Optional[int] = Query(None, ge=1, le=500),
    user: UserProfile = Depends(require_client),
    workouts: WorkoutService = Depends(get_workout_service),
):
    return {"moods": workouts.list_moods(user.uid, limit=limit)}


@router.post("/v1/moods", status_code=201)
def record_mood(
    body: MoodCreate,
    user: UserProfile = Depends(require_client),
    workouts: WorkoutService = Depends(get_workout_service),
):
    return workouts.record_mood(user.uid, body.workout_id, body.score, body.notes)
