from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from fitlikeus.api.premium import get_premium_service
from fitlikeus.core.auth import require_admin
from fitlikeus.core.store import DocumentStore, get_store
from fitlikeus.features.admin.service import client_activity, list_clients
from fitlikeus.features.premium.service import PremiumService
from fitlikeus.features.resources.service import ResourceService
from fitlikeus.models.resource import ResourceCreate
from fitlikeus.models.user import UserProfile

router = APIRouter(prefix="/v1/admin")


class GrantPremium(BaseModel):
    days: int = Field(..., ge=1, le=3650)


@router.get("/clients")
def get_clients(admin: UserProfile = Depends(require_admin), store: DocumentStore = Depends(get_store)):
    clients = list_clients(store)
    return {"clients": clients, "count": len(clients)}


@router.get("/clients/{client_id}/activity")
def get_client_activity(client_id: str, admin: UserProfile = Depends(require_admin), store: DocumentStore = Depends(get_store)):
    return client_activity(store, client_id)


@router.post("/clients/{client_id}/premium")
def grant_premium(
    client_id: str,
    body: GrantPremium,
    admin: UserProfile = Depends(require_admin),
    premium: PremiumService = Depends(get_premium_service),
):
    profile = premium.grant_premium(client_id, body.days, granted_by=admin.uid)
    return {"profile": profile}


@router.post("/resources", status_code=201)
def create_resource(
    body: ResourceCreate,
    admin: UserProfile = Depends(require_admin),
    store: DocumentStore = Depends(get_store),
):
    return ResourceService(store).create(body, created_by=admin.uid)
