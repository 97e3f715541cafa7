"""
State enums for billing models.

These are Django TextChoices for database storage and admin integration,
plus the enum of provider webhook events.

State Machines Overview:

Payment States:
    pending → paid (PAYMENT_RECEIVED / PAYMENT_CONFIRMED)
    pending → overdue (PAYMENT_OVERDUE)
    overdue → paid (late payment)
    pending/overdue → cancelled (PAYMENT_DELETED)
    pending/overdue/paid → cancelled (PAYMENT_REFUNDED)
    overdue/cancelled → pending (PAYMENT_RESTORED)

Subscription States:
    pending → active (first payment received)
    active/pending → overdue (payment overdue)
    overdue → active (late payment received)
    active/overdue/pending → paused (pause action)
    paused → active (reactivate action)
    any non-cancelled → cancelled (cancel action)
"""

from __future__ import annotations

from enum import Enum

from django.db import models


class PaymentStatus(models.TextChoices):
    """
    States for the Payment model.

    Terminal-ish state: PAID only leaves through a refund.
    """

    PENDING = "pending", "Pending"
    PAID = "paid", "Paid"
    OVERDUE = "overdue", "Overdue"
    CANCELLED = "cancelled", "Cancelled"


class SubscriptionStatus(models.TextChoices):
    """
    States for the Subscription model.

    Subscriptions are never hard-deleted; CANCELLED is terminal.
    """

    PENDING = "pending", "Pending"
    ACTIVE = "active", "Active"
    PAUSED = "paused", "Paused"
    OVERDUE = "overdue", "Overdue"
    CANCELLED = "cancelled", "Cancelled"


class BillingType(models.TextChoices):
    """Payment methods accepted for tuition."""

    CREDIT_CARD = "CREDIT_CARD", "Credit card"
    PIX = "PIX", "Pix"
    BOLETO = "BOLETO", "Boleto"
    UNDEFINED = "UNDEFINED", "Undefined"


class WebhookOutcome(models.TextChoices):
    """
    Result recorded in the webhook audit log.

    Every outcome is acknowledged to the provider with HTTP 200.
    """

    PROCESSED = "processed", "Processed"
    IGNORED = "ignored", "Ignored"
    PAYMENT_NOT_FOUND = "payment_not_found", "Payment not found"
    SUBSCRIPTION_NOT_FOUND = "subscription_not_found", "Subscription not found"
    ERROR = "error", "Error"


class AsaasEventType(str, Enum):
    """
    Payment events delivered by the Asaas webhook.

    Anything the provider sends that is not listed here parses to UNKNOWN,
    which is acknowledged and logged without touching state.
    """

    PAYMENT_CREATED = "PAYMENT_CREATED"
    PAYMENT_RECEIVED = "PAYMENT_RECEIVED"
    PAYMENT_CONFIRMED = "PAYMENT_CONFIRMED"
    PAYMENT_OVERDUE = "PAYMENT_OVERDUE"
    PAYMENT_DELETED = "PAYMENT_DELETED"
    PAYMENT_REFUNDED = "PAYMENT_REFUNDED"
    PAYMENT_RESTORED = "PAYMENT_RESTORED"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, value: str | None) -> AsaasEventType:
        """Map a raw event name to a member, falling back to UNKNOWN."""
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN


__all__ = [
    "AsaasEventType",
    "BillingType",
    "PaymentStatus",
    "SubscriptionStatus",
    "WebhookOutcome",
]
