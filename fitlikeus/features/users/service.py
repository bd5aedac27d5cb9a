"""
User profile service.
- get_profile(store, uid)
- update_profile(store, uid, changes)
- list_profiles(store, role=None)
"""

from typing import List, Optional

from fitlikeus.core.errors import BackendError
from fitlikeus.core.store import DocumentStore, Query, SERVER_TIMESTAMP
from fitlikeus.models.user import ProfileUpdate, Role, UserProfile

USERS = "users"


def get_profile(store: DocumentStore, uid: str) -> UserProfile:
    doc = store.get(USERS, uid)
    if doc is None:
        raise BackendError("not-found", f"users/{uid}")
    return UserProfile.from_document(doc)


def update_profile(store: DocumentStore, uid: str, changes: ProfileUpdate) -> UserProfile:
    # Role and plan are not client-editable; ProfileUpdate has no such fields.
    payload = changes.model_dump(exclude_unset=True)
    if not payload:
        return get_profile(store, uid)
    payload["updated_at"] = SERVER_TIMESTAMP
    return UserProfile.from_document(store.update(USERS, uid, payload))


def list_profiles(store: DocumentStore, role: Optional[Role] = None) -> List[UserProfile]:
    query = Query(USERS)
    if role:
        query = query.where("role", "==", role)
    docs = store.query(query.order_by("created_at", descending=True))
    return [UserProfile.from_document(doc) for doc in docs]
