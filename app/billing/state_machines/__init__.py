"""
State machine enums for billing models.
"""

from billing.state_machines.states import (
    AsaasEventType,
    BillingType,
    PaymentStatus,
    SubscriptionStatus,
    WebhookOutcome,
)

__all__ = [
    "AsaasEventType",
    "BillingType",
    "PaymentStatus",
    "SubscriptionStatus",
    "WebhookOutcome",
]
