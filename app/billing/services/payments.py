"""
Local mirroring of Asaas charges.

Payments are keyed by ``asaas_payment_id`` (unique), so inserting the same
charge twice, from the PAYMENT_CREATED webhook and from the fetch after
the charge was created, yields one row.

A charge that is first seen already settled (PAYMENT_CREATED delivered
after PAYMENT_RECEIVED) runs first-payment activation in the insert's
transaction, exactly as if PAYMENT_RECEIVED had found the row.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING

from django.db import IntegrityError, transaction
from django.utils import timezone

from billing.models import Payment
from billing.services.activation import activate_if_first_payment
from billing.state_machines import BillingType, PaymentStatus

if TYPE_CHECKING:
    from billing.adapters import PaymentResult
    from billing.models import Subscription
    from school.models import Enrollment


logger = logging.getLogger(__name__)

# Asaas payment status -> local status, used only when a row is first inserted
PROVIDER_STATUS_MAP = {
    "PENDING": PaymentStatus.PENDING,
    "AWAITING_RISK_ANALYSIS": PaymentStatus.PENDING,
    "RECEIVED": PaymentStatus.PAID,
    "CONFIRMED": PaymentStatus.PAID,
    "RECEIVED_IN_CASH": PaymentStatus.PAID,
    "OVERDUE": PaymentStatus.OVERDUE,
    "REFUNDED": PaymentStatus.CANCELLED,
    "DELETED": PaymentStatus.CANCELLED,
}


@dataclass
class UpsertResult:
    """
    Attributes:
        payment: The local row
        created: True when this call inserted it
        enrollment_activated: True when the insert activated the enrollment
    """

    payment: Payment
    created: bool
    enrollment_activated: bool = False


def upsert_payment(
    data: PaymentResult,
    subscription: Subscription | None = None,
    enrollment: Enrollment | None = None,
) -> UpsertResult:
    """
    Insert the charge if absent, else refresh its descriptive fields.

    Subscription charges pass their subscription; one-off charges pass
    the enrollment they pay for. Status is only taken from the provider
    on insert; afterwards it is owned by the webhook handlers.
    """
    if subscription is None and enrollment is None:
        raise ValueError("A charge belongs to a subscription or to an enrollment")

    if subscription is not None:
        owner = {
            "student_id": subscription.student_id,
            "enrollment_id": subscription.enrollment_id,
            "subscription": subscription,
        }
        default_amount, default_due_date = subscription.value, subscription.next_due_date
    else:
        owner = {"student_id": enrollment.student_id, "enrollment_id": enrollment.pk}
        default_amount, default_due_date = Decimal("0"), timezone.localdate()

    billing_type = data.billing_type if data.billing_type in BillingType.values else BillingType.UNDEFINED
    descriptive = {
        "amount": data.value if data.value is not None else default_amount,
        "net_amount": data.net_value,
        "due_date": data.due_date or default_due_date,
        "billing_type": billing_type,
        "description": data.description[:255],
        "invoice_url": data.invoice_url,
        "bank_slip_url": data.bank_slip_url,
        "pix_qr_code": data.pix_qr_code,
    }
    status = PROVIDER_STATUS_MAP.get(data.status, PaymentStatus.PENDING)

    activated = False
    try:
        with transaction.atomic():
            payment, created = Payment.objects.get_or_create(
                asaas_payment_id=data.id,
                defaults={
                    **descriptive,
                    **owner,
                    "status": status,
                    "paid_date": (data.payment_date or timezone.localdate())
                    if status == PaymentStatus.PAID
                    else None,
                    "payment_method": (data.billing_type or "unknown").lower()
                    if status == PaymentStatus.PAID
                    else None,
                },
            )
            if created and payment.status == PaymentStatus.PAID:
                activated = activate_if_first_payment(payment)
    except IntegrityError:
        # Lost the insert race to a concurrent delivery; the row exists now
        payment, created = Payment.objects.get(asaas_payment_id=data.id), False

    if not created:
        Payment.objects.filter(pk=payment.pk).update(**descriptive)
        for name, value in descriptive.items():
            setattr(payment, name, value)

    logger.info(
        "Payment mirrored",
        extra={
            "asaas_payment_id": data.id,
            "subscription_id": str(subscription.pk) if subscription else None,
            "inserted": created,
            "enrollment_activated": activated,
        },
    )
    return UpsertResult(payment=payment, created=created, enrollment_activated=activated)
