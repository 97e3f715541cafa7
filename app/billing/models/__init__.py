"""
Billing models.

- Payment: one tuition charge mirrored from Asaas
- Subscription: recurring tuition of one enrollment
- WebhookLogEntry: append-only webhook audit trail
"""

from billing.models.payment import Payment
from billing.models.subscription import Subscription
from billing.models.webhook_log import WebhookLogEntry

__all__ = [
    "Payment",
    "Subscription",
    "WebhookLogEntry",
]
