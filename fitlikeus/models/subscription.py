"""
Subscription record for the premium plan.

Written by the billing webhook; the profile's `plan` and `premium_expires_at`
are the fields actually used for gating.
"""

from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel

from fitlikeus.models.user import Plan

SubscriptionStatus = Literal["active", "cancelled", "expired"]
BillingInterval = Literal["monthly", "yearly"]


class Subscription(BaseModel):
    id: str
    user_id: str
    plan: Plan
    status: SubscriptionStatus
    stripe_subscription_id: Optional[str] = None
    current_period_start: Optional[datetime] = None
    current_period_end: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, doc) -> "Subscription":
        return cls(id=doc.id, **{k: v for k, v in doc.data.items() if k in cls.model_fields and k != "id"})
