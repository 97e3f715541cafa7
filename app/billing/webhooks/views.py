"""
Webhook endpoint for Asaas payment events.

One endpoint receives both one-off and subscription charge events. The view:
1. Answers CORS preflight requests
2. Verifies the shared access token, when one is configured
3. Parses the body into an AsaasWebhookEvent
4. Hands the event to AlwaysAcknowledgePolicy and answers 200

Usage:
    # In urls.py
    from billing.webhooks.views import asaas_webhook

    urlpatterns = [
        path("webhooks/asaas/", asaas_webhook, name="asaas_webhook"),
    ]
"""

from __future__ import annotations

import hmac
import json
import logging

from django.conf import settings
from django.http import HttpRequest, HttpResponse, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from billing.exceptions import InvalidWebhookPayloadError, WebhookAuthError
from billing.webhooks.events import AsaasWebhookEvent
from billing.webhooks.policy import AlwaysAcknowledgePolicy


logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, content-type, asaas-access-token, access-token",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
}


def _with_cors(response: HttpResponse) -> HttpResponse:
    for header, value in CORS_HEADERS.items():
        response[header] = value
    return response


def verify_webhook_token(request: HttpRequest) -> None:
    """
    Compare the request token with ASAAS_WEBHOOK_TOKEN.

    Asaas sends ``asaas-access-token``; ``access-token`` is accepted for
    manually configured senders. No configured secret disables the check.

    Raises:
        WebhookAuthError: Token missing or different
    """
    expected = settings.ASAAS_WEBHOOK_TOKEN
    if not expected:
        return

    received = request.headers.get("asaas-access-token") or request.headers.get("access-token") or ""
    if not hmac.compare_digest(received.encode(), expected.encode()):
        raise WebhookAuthError("Invalid webhook access token")


@csrf_exempt
@require_http_methods(["POST", "OPTIONS"])
def asaas_webhook(request: HttpRequest) -> HttpResponse:
    """
    Receive an Asaas payment event.

    Asaas retries every non-2xx answer, so once a request is authentic and
    well formed the answer is 200 whatever reconciliation did with it.

    Returns:
        HttpResponse with status:
        - 200: Event acknowledged, or CORS preflight
        - 400: Body is not JSON or has no payment data
        - 401: Access token mismatch
    """
    if request.method == "OPTIONS":
        return _with_cors(HttpResponse("ok", status=200))

    try:
        verify_webhook_token(request)
    except WebhookAuthError as e:
        logger.warning(
            "Webhook rejected: invalid access token",
            extra={"remote_addr": request.META.get("REMOTE_ADDR", "")},
        )
        return _with_cors(JsonResponse(e.to_dict(), status=e.http_status))

    try:
        body = json.loads(request.body or b"null")
    except (ValueError, UnicodeDecodeError):
        logger.warning("Webhook rejected: body is not valid JSON")
        error = InvalidWebhookPayloadError("Webhook body is not valid JSON")
        return _with_cors(JsonResponse(error.to_dict(), status=error.http_status))

    try:
        event = AsaasWebhookEvent.parse(body)
    except InvalidWebhookPayloadError as e:
        logger.warning("Webhook rejected: no payment data", extra={"details": e.details})
        return _with_cors(JsonResponse(e.to_dict(), status=e.http_status))

    logger.info(
        f"Received Asaas webhook: {event.raw_event or '<empty>'}",
        extra={"asaas_payment_id": event.asaas_payment_id},
    )

    acknowledgement = AlwaysAcknowledgePolicy().handle(event)
    return _with_cors(JsonResponse(acknowledgement.to_response_body(), status=200))
