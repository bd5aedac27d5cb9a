"""
Premium plan API.

Endpoints:
- GET /v1/premium/status: plan, expiry and per-feature access for the caller
- POST /v1/premium/checkout: start a Stripe checkout (monthly or yearly)
- POST /v1/premium/webhook: Stripe events (signature verified, replay-safe)
"""
from typing import Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from fitlikeus.core.auth import get_current_user
from fitlikeus.core.errors import ValidationError
from fitlikeus.core.store import DocumentStore, get_store
from fitlikeus.features.premium.provider import BillingWebhookError
from fitlikeus.features.premium.service import PremiumService, has_feature_access, premium_status
from fitlikeus.models.subscription import BillingInterval
from fitlikeus.models.user import UserProfile

router = APIRouter(prefix="/v1/premium")


class CheckoutRequest(BaseModel):
    interval: BillingInterval = "monthly"
    success_url: Optional[str] = None
    cancel_url: Optional[str] = None


def get_premium_service(request: Request, store: DocumentStore = Depends(get_store)) -> PremiumService:
    return PremiumService(store, provider=getattr(request.app.state, "billing_provider", None))


@router.get("/status")
def get_status(user: UserProfile = Depends(get_current_user), premium: PremiumService = Depends(get_premium_service)):
    return {**premium_status(user), "billing_enabled": premium.billing_enabled()}


@router.get("/features/{feature}")
def feature_access(feature: str, user: UserProfile = Depends(get_current_user)):
    return {"feature": feature, "has_access": has_feature_access(user, feature)}


@router.post("/checkout")
def create_checkout(
    body: CheckoutRequest,
    user: UserProfile = Depends(get_current_user),
    premium: PremiumService = Depends(get_premium_service),
):
    session = premium.start_checkout(user, body.interval, success_url=body.success_url, cancel_url=body.cancel_url)
    return {"session_id": session.session_id, "url": session.url}


@router.post("/webhook")
async def handle_webhook(request: Request, premium: PremiumService = Depends(get_premium_service)):
    # Raw body is required for signature verification
    body = await request.body()
    try:
        result = premium.process_webhook(dict(request.headers), body)
    except BillingWebhookError as e:
        raise ValidationError(str(e), code="invalid_webhook")
    return {"received": True, "event_id": result.event_id}
