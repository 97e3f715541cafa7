"""
Pytest fixtures for webhook tests.

Provides webhook body and event builders.
"""

import pytest

from billing.webhooks.events import AsaasWebhookEvent


def build_body(event: str, payment_id: str, **payment_fields) -> dict:
    """Asaas webhook body: ``{"event": ..., "payment": {"id": ..., ...}}``."""
    return {"event": event, "payment": {"id": payment_id, **payment_fields}}


@pytest.fixture
def webhook_body():
    return build_body


@pytest.fixture
def make_event():
    def _make(event: str, payment_id: str, **payment_fields) -> AsaasWebhookEvent:
        return AsaasWebhookEvent.parse(build_body(event, payment_id, **payment_fields))

    return _make