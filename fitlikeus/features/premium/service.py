"""
Premium plan: gating checks and the upgrade lifecycle.

The profile's `plan` and `premium_expires_at` decide access. Billing
webhooks (and admin grants) are the only writers of those fields; each
write is mirrored into `subscriptions`.
"""
import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

from fitlikeus.core.config import Settings, settings
from fitlikeus.core.errors import BackendError, BillingDisabledError, ValidationError
from fitlikeus.core.logging import log_event
from fitlikeus.core.store import DocumentStore, SERVER_TIMESTAMP
from fitlikeus.features.premium.provider import (
    BillingProvider,
    BillingProviderError,
    BillingWebhookResult,
    CheckoutSession,
)
from fitlikeus.features.premium.stripe_provider import StripeProvider
from fitlikeus.models.subscription import BillingInterval
from fitlikeus.models.user import UserProfile

logger = logging.getLogger(__name__)

USERS = "users"
SUBSCRIPTIONS = "subscriptions"
BILLING_EVENTS = "billing_events"

PREMIUM_FEATURES: Dict[str, bool] = {
    "advanced-analytics": True,
    "advanced-workouts": True,
    "custom-programs": True,
    "nutrition-guidance": True,
    "priority-support": True,
}

INTERVAL_DAYS = {"monthly": 30, "yearly": 365}

# Provider subscription status -> stored subscription status
_STATUS_MAP = {
    "active": "active",
    "trialing": "active",
    "canceled": "cancelled",
    "unpaid": "expired",
    "incomplete_expired": "expired",
}


def _aware(moment: Optional[datetime]) -> Optional[datetime]:
    if moment is not None and moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def is_premium(profile: Optional[UserProfile], now: Optional[datetime] = None) -> bool:
    if profile is None or profile.plan != "premium":
        return False
    if profile.premium_expires_at is None:
        return True
    return _aware(profile.premium_expires_at) > (now or datetime.now(timezone.utc))


def has_feature_access(profile: Optional[UserProfile], feature: str, now: Optional[datetime] = None) -> bool:
    if not PREMIUM_FEATURES.get(feature):
        return True
    return is_premium(profile, now)


def days_until_expiry(profile: Optional[UserProfile], now: Optional[datetime] = None) -> Optional[int]:
    if profile is None or profile.premium_expires_at is None:
        return None
    remaining = _aware(profile.premium_expires_at) - (now or datetime.now(timezone.utc))
    days = math.ceil(remaining.total_seconds() / 86400)
    return days if days > 0 else 0


def premium_status(profile: UserProfile, now: Optional[datetime] = None) -> dict:
    return {
        "plan": profile.plan,
        "is_premium": is_premium(profile, now),
        "premium_expires_at": profile.premium_expires_at,
        "days_until_expiry": days_until_expiry(profile, now),
        "features": {name: has_feature_access(profile, name, now) for name in PREMIUM_FEATURES},
    }


class PremiumService:
    def __init__(
        self,
        store: DocumentStore,
        *,
        settings_obj: Optional[Settings] = None,
        provider: Optional[BillingProvider] = None,
    ):
        self._store = store
        self._settings = settings_obj or settings
        self._provider = provider

    # Billing --------------------------------------------------------------
    def billing_enabled(self) -> bool:
        return self._provider is not None or bool(self._settings.STRIPE_SECRET_KEY)

    def get_provider(self) -> BillingProvider:
        if self._provider is None:
            if not self._settings.STRIPE_SECRET_KEY:
                raise BillingDisabledError("Billing is not configured")
            self._provider = StripeProvider(
                self._settings.STRIPE_SECRET_KEY,
                self._settings.STRIPE_WEBHOOK_SECRET,
            )
        return self._provider

    def price_for_interval(self, interval: BillingInterval) -> str:
        prices = {
            "monthly": self._settings.STRIPE_PRICE_MONTHLY,
            "yearly": self._settings.STRIPE_PRICE_YEARLY,
        }
        if interval not in prices:
            raise ValidationError(f"Unknown billing interval: {interval}")
        if not prices[interval]:
            raise BillingDisabledError(f"No price configured for {interval} billing")
        return prices[interval]

    def start_checkout(
        self,
        profile: UserProfile,
        interval: BillingInterval,
        *,
        success_url: Optional[str] = None,
        cancel_url: Optional[str] = None,
    ) -> CheckoutSession:
        provider = self.get_provider()
        price_id = self.price_for_interval(interval)
        base = self._settings.FRONTEND_URL.rstrip("/")
        try:
            session = provider.create_checkout_session(
                price_id=price_id,
                success_url=success_url or f"{base}/dashboard?upgraded=1",
                cancel_url=cancel_url or f"{base}/upgrade",
                customer_email=profile.email,
                metadata={"user_id": profile.uid, "interval": interval},
            )
        except BillingProviderError as e:
            raise BackendError("unavailable", str(e)) from e
        log_event("info", "premium.checkout.started", user_id=profile.uid, event_type="premium.checkout", extra={"interval": interval})
        return session

    def process_webhook(self, headers: Dict[str, str], body: bytes) -> BillingWebhookResult:
        """Verify and apply a provider webhook. Replayed events are ignored."""
        result = self.get_provider().handle_webhook(headers, body)
        if self._store.get(BILLING_EVENTS, result.event_id) is not None:
            logger.info(f"Skipping already processed billing event {result.event_id}")
            return result
        self.apply_webhook_result(result)
        self._store.set(BILLING_EVENTS, result.event_id, {
            "event_type": result.event_type,
            "user_id": result.user_id,
            "processed_at": SERVER_TIMESTAMP,
        })
        return result

    def apply_webhook_result(self, result: BillingWebhookResult) -> None:
        if not result.user_id:
            logger.warning(f"Billing event {result.event_id} ({result.event_type}) has no user id")
            return
        if self._store.get(USERS, result.user_id) is None:
            raise BackendError("not-found", f"users/{result.user_id}")

        now = self._store.now()
        if result.event_type == "checkout.session.completed":
            period_end = result.current_period_end or now + timedelta(days=INTERVAL_DAYS.get(result.interval or "monthly", 30))
            self._activate(result.user_id, result.subscription_id, now, period_end)
        elif result.event_type == "customer.subscription.updated":
            status = _STATUS_MAP.get(result.status or "")
            if status is None:
                logger.info(f"Ignoring subscription status {result.status} for {result.user_id}")
                return
            if status == "active":
                self._activate(
                    result.user_id,
                    result.subscription_id,
                    result.current_period_start or now,
                    result.current_period_end,
                )
            else:
                self._deactivate(result.user_id, result.subscription_id, status)
        elif result.event_type == "customer.subscription.deleted":
            self._deactivate(result.user_id, result.subscription_id, "cancelled")
        else:
            logger.debug(f"Unhandled billing event type {result.event_type}")
            return
        log_event("info", "premium.webhook.applied", user_id=result.user_id, event_type=result.event_type)

    # Admin ----------------------------------------------------------------
    def grant_premium(self, user_id: str, days: int, *, granted_by: Optional[str] = None) -> UserProfile:
        """Extend (or start) premium for `days` days from the later of now and the current expiry."""
        if days < 1:
            raise ValidationError("days must be at least 1")
        doc = self._store.get(USERS, user_id)
        if doc is None:
            raise BackendError("not-found", f"users/{user_id}")
        profile = UserProfile.from_document(doc)

        now = self._store.now()
        start = now
        if is_premium(profile, now) and profile.premium_expires_at is not None:
            start = _aware(profile.premium_expires_at)
        expires_at = start + timedelta(days=days)
        self._activate(user_id, None, now, expires_at, subscription_id=f"grant:{user_id}")
        log_event(
            "info",
            "premium.granted",
            user_id=user_id,
            event_type="premium.granted",
            extra={"days": days, "granted_by": granted_by},
        )
        return UserProfile.from_document(self._store.get(USERS, user_id))

    # Internal helpers -----------------------------------------------------
    def _activate(
        self,
        user_id: str,
        stripe_subscription_id: Optional[str],
        period_start: datetime,
        period_end: Optional[datetime],
        *,
        subscription_id: Optional[str] = None,
    ) -> None:
        self._store.update(USERS, user_id, {
            "plan": "premium",
            "premium_expires_at": period_end,
            "updated_at": SERVER_TIMESTAMP,
        })
        doc_id = subscription_id or stripe_subscription_id or f"user:{user_id}"
        record = {
            "user_id": user_id,
            "plan": "premium",
            "status": "active",
            "stripe_subscription_id": stripe_subscription_id,
            "current_period_start": period_start,
            "current_period_end": period_end,
            "cancelled_at": None,
        }
        if self._store.get(SUBSCRIPTIONS, doc_id) is None:
            record["created_at"] = SERVER_TIMESTAMP
        self._store.set(SUBSCRIPTIONS, doc_id, record, merge=True)

    def _deactivate(self, user_id: str, stripe_subscription_id: Optional[str], status: str) -> None:
        self._store.update(USERS, user_id, {
            "plan": "free",
            "premium_expires_at": None,
            "updated_at": SERVER_TIMESTAMP,
        })
        doc_id = stripe_subscription_id or f"user:{user_id}"
        changes = {"user_id": user_id, "plan": "premium", "status": status}
        if status == "cancelled":
            changes["cancelled_at"] = SERVER_TIMESTAMP
        self._store.set(SUBSCRIPTIONS, doc_id, changes, merge=True)
