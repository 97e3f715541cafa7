"""
Acknowledgement policy of the webhook boundary.

Asaas retries any non-2xx answer with backoff, so a local fault would turn
into a storm of repeated deliveries. Once a request is authenticated and
well formed, AlwaysAcknowledgePolicy turns every processing result, an
unexpected exception included, into an acknowledgement. Failures are only
visible in the audit log and in server logs.

Usage:
    from billing.webhooks.policy import AlwaysAcknowledgePolicy

    ack = AlwaysAcknowledgePolicy().handle(event)
    return JsonResponse(ack.to_response_body(), status=200)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from core.services import BaseService, ServiceResult

from billing.state_machines import WebhookOutcome
from billing.webhooks.audit import record_webhook_log
from billing.webhooks.handlers import dispatch_event

if TYPE_CHECKING:
    from typing import Any, Callable

    from billing.webhooks.events import AsaasWebhookEvent, HandlerOutcome


@dataclass
class WebhookAcknowledgement:
    """What the webhook endpoint answers, always with HTTP 200."""

    event: str
    outcome: WebhookOutcome
    asaas_payment_id: str
    detail: str = ""

    def to_response_body(self) -> dict[str, Any]:
        return {
            "received": True,
            "event": self.event,
            "outcome": str(self.outcome),
            "payment": self.asaas_payment_id,
        }


class AlwaysAcknowledgePolicy(BaseService):
    """
    Run reconciliation and acknowledge whatever happens.

    Args:
        dispatcher: Event dispatcher; defaults to handlers.dispatch_event
        audit: Audit sink; defaults to record_webhook_log
    """

    def __init__(
        self,
        dispatcher: Callable[[AsaasWebhookEvent], ServiceResult[HandlerOutcome]] | None = None,
        audit: Callable[..., Any] | None = None,
    ) -> None:
        self.dispatcher = dispatcher
        self.audit = audit

    def run(self, event: AsaasWebhookEvent) -> ServiceResult[HandlerOutcome]:
        """Dispatch, converting any exception into a failed result."""
        dispatcher = self.dispatcher or dispatch_event
        try:
            return dispatcher(event)
        except Exception as exc:
            return self.handle_exception(
                exc, f"Webhook {event.raw_event or '<no event>'} for {event.asaas_payment_id} failed"
            )

    def handle(self, event: AsaasWebhookEvent) -> WebhookAcknowledgement:
        result = self.run(event)

        if result.success and result.data is not None:
            outcome = result.data.outcome
            payment = result.data.payment
            detail = result.data.detail
        else:
            outcome = WebhookOutcome.ERROR
            payment = None
            detail = result.error or "Unknown error"

        audit = self.audit or record_webhook_log
        audit(
            event_type=event.raw_event,
            asaas_payment_id=event.asaas_payment_id,
            payload=event.payload,
            outcome=outcome,
            payment=payment,
            detail=detail,
        )

        return WebhookAcknowledgement(
            event=event.raw_event,
            outcome=outcome,
            asaas_payment_id=event.asaas_payment_id,
            detail=detail,
        )
