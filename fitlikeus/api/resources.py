from typing import Optional

from fastapi import APIRouter, Depends

from fitlikeus.core.auth import get_current_user
from fitlikeus.core.store import DocumentStore, get_store
from fitlikeus.features.resources.service import ResourceService
from fitlikeus.models.resource import Category
from fitlikeus.models.user import UserProfile

router = APIRouter(prefix="/v1/resources")


@router.get("")
def list_resources(
    category: Optional[Category] = None,
    user: UserProfile = Depends(get_current_user),
    store: DocumentStore = Depends(get_store),
):
    catalog = ResourceService(store).catalog(user, category=category)
    return {
        **catalog,
        "counts": {"free": len(catalog["free"]), "premium": len(catalog["premium"])},
    }


@router.get("/{resource_id}")
def get_resource(resource_id: str, user: UserProfile = Depends(get_current_user), store: DocumentStore = Depends(get_store)):
    return ResourceService(store).get(user, resource_id)
