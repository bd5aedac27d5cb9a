from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from fitlikeus.core.auth import require_client
from fitlikeus.core.store import DocumentStore, get_store
from fitlikeus.features.streaks.consistency import ConsistencyService
from fitlikeus.features.streaks.service import StreakService
from fitlikeus.models.streak import MatchMode
from fitlikeus.models.user import UserProfile

router = APIRouter()


class CompleteHabit(BaseModel):
    # Client-local calendar day; defaults to today in UTC
    today: Optional[date] = None


@router.get("/v1/streaks/consistency")
def get_consistency(
    days: Optional[int] = Query(None, ge=1, le=90),
    today: Optional[date] = None,
    match: Optional[MatchMode] = None,
    user: UserProfile = Depends(require_client),
    store: DocumentStore = Depends(get_store),
):
    """Chart series and streak metrics over the most recent workouts."""
    return ConsistencyService(store).window(user.uid, days, today=today, match=match)


@router.get("/v1/streaks")
def list_streaks(user: UserProfile = Depends(require_client), store: DocumentStore = Depends(get_store)):
    return StreakService(store).summary(user.uid)


@router.post("/v1/streaks/{habit_id}/complete")
def complete_habit(
    habit_id: str,
    body: Optional[CompleteHabit] = None,
    user: UserProfile = Depends(require_client),
    store: DocumentStore = Depends(get_store),
):
    today = body.today if body else None
    return {"streak": StreakService(store).update_streak(user.uid, habit_id, today)}
