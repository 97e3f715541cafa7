"""
Reconciliation handlers for Asaas payment events.

Each AsaasEventType member, UNKNOWN included, maps to exactly one handler;
the registry is checked for completeness at import time.

Every handler treats its event as an idempotent "set status to X":
re-delivering an event, or delivering it out of order, never moves a
payment backwards out of a terminal state. A paid payment only leaves
PAID through a refund and a cancelled one only through a restore.

Usage:
    from billing.webhooks.handlers import dispatch_event

    result = dispatch_event(AsaasWebhookEvent.parse(body))
    if result.success:
        print(result.data.outcome)
"""

from __future__ import annotations

import logging
import uuid
from typing import Callable

from django.core.exceptions import ImproperlyConfigured
from django.db import transaction
from django.utils import timezone
from django_fsm import can_proceed

from core.services import ServiceResult

from billing.models import Payment, Subscription
from billing.services.activation import activate_if_first_payment
from billing.services.payments import upsert_payment
from billing.state_machines import AsaasEventType, PaymentStatus, WebhookOutcome
from billing.webhooks.events import AsaasWebhookEvent, HandlerOutcome
from school.models import Enrollment


logger = logging.getLogger(__name__)

Handler = Callable[[AsaasWebhookEvent], ServiceResult[HandlerOutcome]]


# =============================================================================
# Handler Registry
# =============================================================================


WEBHOOK_HANDLERS: dict[AsaasEventType, Handler] = {}


def register_handler(*event_types: AsaasEventType) -> Callable[[Handler], Handler]:
    """
    Decorator to register a handler for one or more event types.

    Usage:
        @register_handler(AsaasEventType.PAYMENT_OVERDUE)
        def handle_payment_overdue(event: AsaasWebhookEvent) -> ServiceResult:
            ...
    """

    def decorator(func: Handler) -> Handler:
        for event_type in event_types:
            if event_type in WEBHOOK_HANDLERS:
                raise ImproperlyConfigured(f"Duplicate webhook handler for {event_type.value}")
            WEBHOOK_HANDLERS[event_type] = func
        return func

    return decorator


def check_handler_registry() -> None:
    """Raise if any event type has no handler."""
    missing = [event_type.value for event_type in AsaasEventType if event_type not in WEBHOOK_HANDLERS]
    if missing:
        raise ImproperlyConfigured(f"No webhook handler registered for: {', '.join(missing)}")


def dispatch_event(event: AsaasWebhookEvent) -> ServiceResult[HandlerOutcome]:
    """
    Route an event to its handler.

    Exceptions raised by the handler propagate; the webhook view's
    policy decides what to do with them.
    """
    handler = WEBHOOK_HANDLERS[event.event_type]
    logger.info(
        f"Dispatching {event.raw_event or '<no event>'} to {handler.__name__}",
        extra={"asaas_payment_id": event.asaas_payment_id},
    )
    return handler(event)


# =============================================================================
# Helpers
# =============================================================================


def _lock_payment(asaas_payment_id: str) -> Payment | None:
    return Payment.objects.select_for_update().filter(asaas_payment_id=asaas_payment_id).first()


def _not_found(event: AsaasWebhookEvent) -> ServiceResult[HandlerOutcome]:
    logger.warning(
        f"{event.raw_event}: payment not found",
        extra={"asaas_payment_id": event.asaas_payment_id},
    )
    return ServiceResult.success(
        HandlerOutcome(
            outcome=WebhookOutcome.PAYMENT_NOT_FOUND,
            detail=f"No local payment for {event.asaas_payment_id}",
        )
    )


def _stale(event: AsaasWebhookEvent, payment: Payment) -> ServiceResult[HandlerOutcome]:
    logger.info(
        f"{event.raw_event}: ignored for {payment.status} payment",
        extra={"asaas_payment_id": event.asaas_payment_id, "status": payment.status},
    )
    return ServiceResult.success(
        HandlerOutcome(
            outcome=WebhookOutcome.IGNORED,
            payment=payment,
            detail=f"Payment is {payment.status}",
        )
    )


def _set_payment_status(
    event: AsaasWebhookEvent,
    transition_name: str,
    target: PaymentStatus,
) -> ServiceResult[HandlerOutcome]:
    """Move the payment to ``target`` unless already there or not allowed."""
    with transaction.atomic():
        payment = _lock_payment(event.asaas_payment_id)
        if payment is None:
            return _not_found(event)

        if payment.status == target:
            return ServiceResult.success(
                HandlerOutcome(outcome=WebhookOutcome.PROCESSED, payment=payment, detail="Already applied")
            )

        transition_method = getattr(payment, transition_name)
        if not can_proceed(transition_method):
            return _stale(event, payment)

        transition_method()
        payment.save()

    logger.info(
        f"{event.raw_event}: payment set to {target}",
        extra={"asaas_payment_id": event.asaas_payment_id, "payment_id": str(payment.pk)},
    )
    return ServiceResult.success(HandlerOutcome(outcome=WebhookOutcome.PROCESSED, payment=payment))


def _enrollment_from_reference(reference: str) -> Enrollment | None:
    """One-off charges carry their enrollment ID as ``externalReference``."""
    try:
        enrollment_id = uuid.UUID(reference)
    except ValueError:
        return None
    return Enrollment.objects.filter(pk=enrollment_id).first()


# =============================================================================
# Event Handlers
# =============================================================================


@register_handler(AsaasEventType.PAYMENT_CREATED)
def handle_payment_created(event: AsaasWebhookEvent) -> ServiceResult[HandlerOutcome]:
    """
    Insert the new charge when its owner is known locally.

    Subscription charges are matched by subscription ID, one-off charges
    by the enrollment in ``externalReference``. Charges of neither kind
    (e.g. created in the Asaas dashboard) are logged and left alone. A
    charge already settled at insert time activates its enrollment.
    """
    data = event.payment
    if data.subscription_id:
        subscription = Subscription.objects.filter(asaas_subscription_id=data.subscription_id).first()
        if subscription is None:
            logger.warning(
                "PAYMENT_CREATED: subscription not found",
                extra={
                    "asaas_payment_id": event.asaas_payment_id,
                    "asaas_subscription_id": data.subscription_id,
                },
            )
            return ServiceResult.success(
                HandlerOutcome(
                    outcome=WebhookOutcome.SUBSCRIPTION_NOT_FOUND,
                    detail=f"No local subscription for {data.subscription_id}",
                )
            )
        result = upsert_payment(data, subscription=subscription)
    else:
        enrollment = _enrollment_from_reference(data.external_reference)
        if enrollment is None:
            logger.warning(
                "PAYMENT_CREATED: charge has no known subscription or enrollment",
                extra={
                    "asaas_payment_id": event.asaas_payment_id,
                    "external_reference": data.external_reference,
                },
            )
            return ServiceResult.success(
                HandlerOutcome(
                    outcome=WebhookOutcome.IGNORED,
                    detail=f"No local owner for {event.asaas_payment_id}",
                )
            )
        result = upsert_payment(data, enrollment=enrollment)

    if result.enrollment_activated:
        detail = "Enrollment activated"
    else:
        detail = "Payment created" if result.created else "Payment already present"
    return ServiceResult.success(
        HandlerOutcome(
            outcome=WebhookOutcome.PROCESSED,
            payment=result.payment,
            detail=detail,
            enrollment_activated=result.enrollment_activated,
        )
    )


@register_handler(AsaasEventType.PAYMENT_RECEIVED, AsaasEventType.PAYMENT_CONFIRMED)
def handle_payment_received(event: AsaasWebhookEvent) -> ServiceResult[HandlerOutcome]:
    """
    Mark the payment paid and run first-payment activation.

    CONFIRMED (card approved) and RECEIVED (money settled) may both arrive
    for the same charge; whichever comes second is a no-op.
    """
    with transaction.atomic():
        payment = _lock_payment(event.asaas_payment_id)
        if payment is None:
            return _not_found(event)

        if not payment.is_paid:
            if not can_proceed(payment.mark_paid):
                return _stale(event, payment)
            payment.mark_paid(
                paid_date=event.payment.payment_date or timezone.localdate(),
                payment_method=event.payment.billing_type or "unknown",
            )
            payment.save()

        activated = activate_if_first_payment(payment)

    logger.info(
        f"{event.raw_event}: payment paid",
        extra={
            "asaas_payment_id": event.asaas_payment_id,
            "payment_id": str(payment.pk),
            "enrollment_activated": activated,
        },
    )
    return ServiceResult.success(
        HandlerOutcome(
            outcome=WebhookOutcome.PROCESSED,
            payment=payment,
            detail="Enrollment activated" if activated else "",
            enrollment_activated=activated,
        )
    )


@register_handler(AsaasEventType.PAYMENT_OVERDUE)
def handle_payment_overdue(event: AsaasWebhookEvent) -> ServiceResult[HandlerOutcome]:
    """
    Mark the payment and its subscription overdue.

    A paid or cancelled payment is left untouched, and so is its
    subscription: the overdue notice is stale. Paused and cancelled
    subscriptions keep their status.
    """
    with transaction.atomic():
        result = _set_payment_status(event, "mark_overdue", PaymentStatus.OVERDUE)
        outcome = result.data
        if outcome.outcome != WebhookOutcome.PROCESSED or outcome.payment.subscription_id is None:
            return result

        subscription = Subscription.objects.select_for_update().get(pk=outcome.payment.subscription_id)
        if not can_proceed(subscription.mark_overdue):
            return result
        subscription.mark_overdue()
        subscription.save()

    logger.info(
        "PAYMENT_OVERDUE: subscription set to overdue",
        extra={"subscription_id": str(subscription.pk)},
    )
    return result


@register_handler(AsaasEventType.PAYMENT_DELETED)
def handle_payment_deleted(event: AsaasWebhookEvent) -> ServiceResult[HandlerOutcome]:
    """Cancel an unpaid charge removed at Asaas."""
    return _set_payment_status(event, "cancel", PaymentStatus.CANCELLED)


@register_handler(AsaasEventType.PAYMENT_REFUNDED)
def handle_payment_refunded(event: AsaasWebhookEvent) -> ServiceResult[HandlerOutcome]:
    """Cancel a refunded charge, paid ones included."""
    return _set_payment_status(event, "refund", PaymentStatus.CANCELLED)


@register_handler(AsaasEventType.PAYMENT_RESTORED)
def handle_payment_restored(event: AsaasWebhookEvent) -> ServiceResult[HandlerOutcome]:
    """Bring a deleted or overdue charge back to pending."""
    return _set_payment_status(event, "restore", PaymentStatus.PENDING)


@register_handler(AsaasEventType.UNKNOWN)
def handle_unknown_event(event: AsaasWebhookEvent) -> ServiceResult[HandlerOutcome]:
    logger.info(
        f"Unhandled webhook event: {event.raw_event or '<empty>'}",
        extra={"asaas_payment_id": event.asaas_payment_id},
    )
    return ServiceResult.success(
        HandlerOutcome(
            outcome=WebhookOutcome.IGNORED,
            detail=f"Unhandled event {event.raw_event or '<empty>'}",
        )
    )


check_handler_registry()
