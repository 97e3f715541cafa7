"""
Parsed form of an Asaas webhook body.

Body shape:
    {
        "event": "PAYMENT_RECEIVED",
        "payment": {"id": "pay_123", "subscription": "sub_456", "value": 250.0, ...}
    }
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from billing.adapters import PaymentResult
from billing.exceptions import InvalidWebhookPayloadError
from billing.state_machines import AsaasEventType, WebhookOutcome

if TYPE_CHECKING:
    from billing.models import Payment


@dataclass(frozen=True)
class AsaasWebhookEvent:
    """
    One inbound webhook.

    Attributes:
        event_type: Parsed event, UNKNOWN for names this system does not handle
        raw_event: Event name exactly as received
        payment: The payment object of the body
        payload: The full decoded body
    """

    event_type: AsaasEventType
    raw_event: str
    payment: PaymentResult
    payload: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @classmethod
    def parse(cls, body: Any) -> AsaasWebhookEvent:
        """
        Build an event from a decoded JSON body.

        Raises:
            InvalidWebhookPayloadError: No ``payment`` object with an ``id``
        """
        if not isinstance(body, dict):
            raise InvalidWebhookPayloadError("Webhook body must be a JSON object")

        payment = body.get("payment")
        if not isinstance(payment, dict) or not payment.get("id"):
            raise InvalidWebhookPayloadError(
                "Webhook body has no payment data",
                details={"event": str(body.get("event", ""))},
            )

        raw_event = str(body.get("event") or "")
        return cls(
            event_type=AsaasEventType.parse(raw_event),
            raw_event=raw_event,
            payment=PaymentResult.from_payload(payment),
            payload=body,
        )

    @property
    def asaas_payment_id(self) -> str:
        return self.payment.id


@dataclass
class HandlerOutcome:
    """
    What a reconciliation handler did with an event.

    Attributes:
        outcome: Result recorded in the audit log
        payment: Local payment touched, if any
        detail: Short note for the audit log
        enrollment_activated: True when this event activated the enrollment
    """

    outcome: WebhookOutcome
    payment: Payment | None = None
    detail: str = ""
    enrollment_activated: bool = False
