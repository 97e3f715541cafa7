"""
Asaas webhook handling: parsing, reconciliation, audit and the HTTP endpoint.

Module Structure:
    events.py   - AsaasWebhookEvent parsing and HandlerOutcome
    handlers.py - Per-event reconciliation handlers and their registry
    audit.py    - Best-effort WebhookLogEntry writer
    policy.py   - AlwaysAcknowledgePolicy, the "answer 200" boundary
    views.py    - The webhook endpoint

Views are not re-exported here so that importing this package does not
require the URL layer.
"""

from billing.webhooks.events import AsaasWebhookEvent, HandlerOutcome
from billing.webhooks.handlers import WEBHOOK_HANDLERS, dispatch_event, register_handler

__all__ = [
    "AsaasWebhookEvent",
    "HandlerOutcome",
    "WEBHOOK_HANDLERS",
    "dispatch_event",
    "register_handler",
]
