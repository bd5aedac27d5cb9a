"""
Stripe implementation of the billing provider.

Checkout sessions carry the internal user id in metadata (on the session
and on the subscription it creates), so webhooks resolve the user without
a customer lookup.
"""
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import stripe

from fitlikeus.features.premium.provider import (
    BillingProviderError,
    BillingWebhookError,
    BillingWebhookResult,
    CheckoutSession,
)


def _from_epoch(value: Optional[int]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromtimestamp(int(value), tz=timezone.utc)


class StripeProvider:
    def __init__(self, secret_key: str, webhook_secret: Optional[str] = None):
        if not secret_key:
            raise BillingProviderError("STRIPE_SECRET_KEY not configured")
        self.secret_key = secret_key
        self.webhook_secret = webhook_secret
        stripe.api_key = secret_key

    def create_checkout_session(
        self,
        *,
        price_id: str,
        success_url: str,
        cancel_url: str,
        customer_email: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
    ) -> CheckoutSession:
        metadata = metadata or {}
        params: Dict[str, Any] = {
            "mode": "subscription",
            "line_items": [{"price": price_id, "quantity": 1}],
            "success_url": success_url,
            "cancel_url": cancel_url,
            "metadata": metadata,
            "subscription_data": {"metadata": metadata},
        }
        if metadata.get("user_id"):
            params["client_reference_id"] = metadata["user_id"]
        if customer_email:
            params["customer_email"] = customer_email
        try:
            session = stripe.checkout.Session.create(**params)
        except stripe.StripeError as e:
            raise BillingProviderError(f"Stripe checkout session creation failed: {e}") from e
        return CheckoutSession(session_id=session.id, url=session.url)

    def handle_webhook(self, headers: Dict[str, str], body: bytes) -> BillingWebhookResult:
        if not self.webhook_secret:
            raise BillingWebhookError("STRIPE_WEBHOOK_SECRET not configured")
        sig_header = headers.get("stripe-signature") or headers.get("Stripe-Signature")
        if not sig_header:
            raise BillingWebhookError("Missing stripe-signature header")
        try:
            event = stripe.Webhook.construct_event(body, sig_header, self.webhook_secret)
        except ValueError as e:
            raise BillingWebhookError(f"Invalid payload: {e}") from e
        except stripe.SignatureVerificationError as e:
            raise BillingWebhookError(f"Invalid signature: {e}") from e
        return self.parse_event(event)

    @staticmethod
    def parse_event(event) -> BillingWebhookResult:
        event_type = event["type"]
        data = event.get("data", {}).get("object", {}) or {}
        metadata = dict(data.get("metadata") or {})
        result = BillingWebhookResult(
            event_id=event["id"],
            event_type=event_type,
            user_id=metadata.get("user_id"),
            interval=metadata.get("interval"),
            metadata=metadata,
        )

        if event_type == "checkout.session.completed":
            result.user_id = result.user_id or data.get("client_reference_id")
            result.subscription_id = data.get("subscription")
            result.status = "active"
        elif event_type.startswith("customer.subscription."):
            result.subscription_id = data.get("id")
            result.status = data.get("status")
            result.current_period_start = _from_epoch(data.get("current_period_start"))
            result.current_period_end = _from_epoch(data.get("current_period_end"))
        return result
