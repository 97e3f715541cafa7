"""
WebhookLogEntry model: append-only audit trail of Asaas webhooks.

One row is written per authenticated webhook request, whatever the outcome.
Rows are never updated; re-saving an existing entry raises.

Usage:
    from billing.models import WebhookLogEntry
    from billing.state_machines import WebhookOutcome

    WebhookLogEntry.objects.create(
        event_type="PAYMENT_RECEIVED",
        asaas_payment_id="pay_123",
        payment=payment,
        payload=raw_body,
        outcome=WebhookOutcome.PROCESSED,
    )
"""

from __future__ import annotations

from django.db import models

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel

from billing.state_machines import WebhookOutcome


class WebhookLogEntry(UUIDPrimaryKeyMixin, BaseModel):
    """
    Audit record of one received webhook.

    Fields:
        event_type: Raw event name as sent by Asaas (kept even when unknown)
        asaas_payment_id: Payment ID from the payload
        payment: Local payment, when one was found
        payload: Full JSON body
        outcome: Processing outcome
        detail: Error message or note
    """

    event_type = models.CharField(max_length=64, db_index=True)
    asaas_payment_id = models.CharField(max_length=64, blank=True, db_index=True)
    payment = models.ForeignKey(
        "billing.Payment",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="webhook_logs",
    )
    payload = models.JSONField(default=dict)
    outcome = models.CharField(
        max_length=32,
        choices=WebhookOutcome.choices,
        db_index=True,
    )
    detail = models.TextField(blank=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "webhook log entry"
        verbose_name_plural = "webhook log entries"

    def __str__(self) -> str:
        return f"WebhookLogEntry({self.event_type}, {self.asaas_payment_id}, {self.outcome})"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError("Webhook log entries are append-only")
        super().save(*args, **kwargs)
