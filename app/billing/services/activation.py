"""
First-payment activation of enrollments.

Runs wherever a payment becomes paid: the PAYMENT_RECEIVED handler, and
payment mirroring when a charge is first seen already settled (for
example PAYMENT_CREATED delivered after PAYMENT_RECEIVED). Either way the
enrollment is activated once and the confirmation email is queued once.

Paused subscriptions:
    A payment on a paused subscription leaves it paused; only the student
    reactivates it. If it is the first payment, the enrollment is still
    activated, since pausing never deactivates an enrollment.
"""

from __future__ import annotations

import logging

from django.db import transaction
from django_fsm import can_proceed

from billing.models import Payment, Subscription
from billing.state_machines import PaymentStatus
from billing.tasks import send_enrollment_confirmation
from school.models import Enrollment

logger = logging.getLogger(__name__)


def _activate_enrollment(enrollment_id) -> bool:
    return Enrollment.objects.filter(pk=enrollment_id, is_active=False).update(is_active=True) == 1


def activate_if_first_payment(payment: Payment) -> bool:
    """
    Activate enrollment and subscription after a paid payment.

    Must run inside the transaction that marked the payment paid. The
    subscription row is locked so concurrent deliveries for sibling
    payments serialize here; the enrollment update is "set active where
    not active", so repeating it changes nothing.

    Returns:
        True when this call flipped the enrollment to active
    """
    if payment.subscription_id is None:
        # One-off charge: the enrollment it pays for is activated directly
        enrollment_id = payment.enrollment_id
        activated = enrollment_id is not None and _activate_enrollment(enrollment_id)
    else:
        subscription = Subscription.objects.select_for_update().get(pk=payment.subscription_id)
        if subscription.is_cancelled:
            return False

        # Pending (first payment) or overdue (late payment) becomes active
        if can_proceed(subscription.activate):
            subscription.activate()
            subscription.save()

        enrollment_id = subscription.enrollment_id
        paid_count = subscription.payments.filter(status=PaymentStatus.PAID).count()
        activated = paid_count == 1 and _activate_enrollment(enrollment_id)

    if activated:
        payment_pk = payment.pk
        transaction.on_commit(
            lambda: send_enrollment_confirmation.delay(str(enrollment_id), str(payment_pk))
        )
        logger.info(
            "Enrollment activated by first payment",
            extra={"enrollment_id": str(enrollment_id), "payment_id": str(payment_pk)},
        )
    return activated
