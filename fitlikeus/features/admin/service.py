"""
Admin area: client overview and per-client activity.

Premium grants and resource creation live in their own services; the admin
router calls them directly.
"""

from typing import List

from fitlikeus.core.store import DocumentStore
from fitlikeus.features.premium.service import is_premium
from fitlikeus.features.users.service import get_profile, list_profiles
from fitlikeus.features.workouts.service import WorkoutService
from fitlikeus.models.user import UserProfile

RECENT_ACTIVITY_LIMIT = 5


def list_clients(store: DocumentStore) -> List[UserProfile]:
    return list_profiles(store, role="client")


def client_activity(store: DocumentStore, client_id: str, limit: int = RECENT_ACTIVITY_LIMIT) -> dict:
    profile = get_profile(store, client_id)
    workouts = WorkoutService(store)
    return {
        "profile": profile,
        "is_premium": is_premium(profile, store.now()),
        "recent_workouts": workouts.list_workouts(client_id, limit=limit),
        "recent_moods": workouts.list_moods(client_id, limit=limit),
        "stats": workouts.stats(client_id),
    }
