"""
Best-effort audit trail of received webhooks.

Writing the log entry must never change the webhook response: any failure
here is logged and swallowed.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.db import transaction

from billing.models import WebhookLogEntry

if TYPE_CHECKING:
    from typing import Any

    from billing.models import Payment
    from billing.state_machines import WebhookOutcome


logger = logging.getLogger(__name__)


def record_webhook_log(
    *,
    event_type: str,
    asaas_payment_id: str,
    payload: dict[str, Any],
    outcome: WebhookOutcome,
    payment: Payment | None = None,
    detail: str = "",
) -> WebhookLogEntry | None:
    """
    Append one WebhookLogEntry.

    Runs in its own savepoint so a failed insert cannot poison an
    enclosing transaction.

    Returns:
        The entry, or None when it could not be written
    """
    try:
        with transaction.atomic():
            return WebhookLogEntry.objects.create(
                event_type=event_type[:64],
                asaas_payment_id=asaas_payment_id[:64],
                payment=payment,
                payload=payload,
                outcome=outcome,
                detail=detail,
            )
    except Exception:
        logger.error(
            "Failed to write webhook log entry",
            extra={"event_type": event_type, "asaas_payment_id": asaas_payment_id, "outcome": outcome},
            exc_info=True,
        )
        return None
