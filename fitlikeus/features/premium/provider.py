"""
Billing provider interface for the premium upgrade.

Stripe is the only implementation; the protocol keeps the premium service
independent of the SDK so tests can substitute a fake provider.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, Protocol


@dataclass
class CheckoutSession:
    session_id: str
    url: str


@dataclass
class BillingWebhookResult:
    """Provider event reduced to what the premium plan needs."""
    event_id: str
    event_type: str
    user_id: Optional[str] = None
    subscription_id: Optional[str] = None
    interval: Optional[str] = None
    status: Optional[str] = None  # provider status: active, trialing, canceled, unpaid, ...
    current_period_start: Optional[datetime] = None
    current_period_end: Optional[datetime] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


class BillingProvider(Protocol):
    def create_checkout_session(
        self,
        *,
        price_id: str,
        success_url: str,
        cancel_url: str,
        customer_email: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
    ) -> CheckoutSession:
        ...

    def handle_webhook(self, headers: Dict[str, str], body: bytes) -> BillingWebhookResult:
        """Verify the signature and parse the event.

        Raises BillingWebhookError when the signature or payload is invalid.
        """
        ...


class BillingProviderError(Exception):
    pass


class BillingWebhookError(BillingProviderError):
    pass
