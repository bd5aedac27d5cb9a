"""
Resource catalog with premium gating.

Clients see every entry; premium entries are flagged `locked` (and their
link/content withheld) unless the caller currently has premium.
"""
from datetime import datetime
from typing import Dict, List, Optional

from fitlikeus.core.errors import BackendError
from fitlikeus.core.logging import log_event
from fitlikeus.core.store import DocumentStore, Query, SERVER_TIMESTAMP
from fitlikeus.features.premium.service import is_premium
from fitlikeus.models.resource import Resource, ResourceCreate, ResourceView
from fitlikeus.models.user import UserProfile

RESOURCES = "resources"


def to_view(resource: Resource, unlocked: bool) -> ResourceView:
    data = resource.model_dump()
    if resource.premium and not unlocked:
        data.update(link=None, content=None)
        return ResourceView(**data, locked=True)
    return ResourceView(**data, locked=False)


class ResourceService:
    def __init__(self, store: DocumentStore):
        self._store = store

    def all(self, category: Optional[str] = None) -> List[Resource]:
        query = Query(RESOURCES)
        if category:
            query = query.where("category", "==", category)
        docs = self._store.query(query.order_by("title"))
        return [Resource.from_document(doc) for doc in docs]

    def catalog(self, profile: UserProfile, *, category: Optional[str] = None, now: Optional[datetime] = None) -> Dict[str, List[ResourceView]]:
        unlocked = is_premium(profile, now) or profile.role == "admin"
        catalog: Dict[str, List[ResourceView]] = {"free": [], "premium": []}
        for resource in self.all(category):
            catalog["premium" if resource.premium else "free"].append(to_view(resource, unlocked))
        return catalog

    def get(self, profile: UserProfile, resource_id: str, *, now: Optional[datetime] = None) -> ResourceView:
        doc = self._store.get(RESOURCES, resource_id)
        if doc is None:
            raise BackendError("not-found", f"{RESOURCES}/{resource_id}")
        resource = Resource.from_document(doc)
        if resource.premium and not (is_premium(profile, now) or profile.role == "admin"):
            raise BackendError("premium-required", f"{RESOURCES}/{resource_id}")
        return to_view(resource, True)

    def create(self, payload: ResourceCreate, *, created_by: Optional[str] = None) -> Resource:
        doc = self._store.add(RESOURCES, {
            **payload.model_dump(mode="json"),
            "created_at": SERVER_TIMESTAMP,
        })
        log_event("info", "resource.created", user_id=created_by, event_type="resource.created", extra={"resource_id": doc.id})
        return Resource.from_document(doc)
