"""
One-off enrollment charges.

An enrollment can be paid with a single charge instead of a monthly
subscription. The charge carries the enrollment ID as its external
reference, so the PAYMENT_CREATED and PAYMENT_RECEIVED webhooks find the
local row, and the first payment activates the enrollment.

Usage:
    from billing.services import EnrollmentPaymentService

    payment = EnrollmentPaymentService.create_for_enrollment(
        enrollment_id, request.user, billing_type=BillingType.PIX
    )
    redirect_to(payment.invoice_url)
"""

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal
from typing import TYPE_CHECKING

from django.conf import settings
from django.db import DatabaseError
from django.utils import timezone

from core.exceptions import ConflictError, PermissionDeniedError, ValidationError
from core.services import BaseService

from billing.adapters import AsaasAdapter, CreatePaymentParams
from billing.exceptions import BillingNotFoundError, PersistenceError
from billing.models import Payment
from billing.services.customer_resolver import BillingCustomerResolver
from billing.services.payments import upsert_payment
from billing.state_machines import BillingType, PaymentStatus
from school.models import Enrollment

if TYPE_CHECKING:
    from typing import Any


class EnrollmentPaymentService(BaseService):
    """Create single charges that pay for an enrollment."""

    _adapter: type | None = None

    @classmethod
    def get_adapter(cls) -> type[AsaasAdapter]:
        return cls._adapter or AsaasAdapter

    @classmethod
    def set_adapter(cls, adapter: type | None) -> None:
        """Set the Asaas adapter class (for testing)."""
        cls._adapter = adapter

    @classmethod
    def create_for_enrollment(
        cls,
        enrollment_id: Any,
        user,
        billing_type: str = BillingType.UNDEFINED,
        value: Decimal | None = None,
        due_date: date | None = None,
        resolver: BillingCustomerResolver | None = None,
    ) -> Payment:
        """
        Charge an inactive enrollment once.

        The charge is stored locally with its enrollment set. Asaas
        redirects the payer to the site's checkout success page.

        Raises:
            BillingNotFoundError: No such enrollment
            PermissionDeniedError: User neither owns the enrollment nor is staff
            ConflictError: Enrollment already active, or an open charge exists
            ValidationError: Non-positive value or past due date
            StudentDataValidationError, ProviderError, PersistenceError
        """
        log = cls.get_logger()
        enrollment = (
            Enrollment.objects.select_related("student__user", "school_class")
            .filter(pk=enrollment_id)
            .first()
        )
        if enrollment is None:
            raise BillingNotFoundError(
                f"Enrollment {enrollment_id} not found",
                error_code="ENROLLMENT_NOT_FOUND",
                details={"enrollment_id": str(enrollment_id)},
            )
        if enrollment.student.user_id != user.pk and not user.is_staff:
            raise PermissionDeniedError(
                "You do not own this enrollment",
                error_code="NOT_ENROLLMENT_OWNER",
            )
        if enrollment.is_active:
            raise ConflictError(
                "Enrollment is already active",
                error_code="ENROLLMENT_ALREADY_ACTIVE",
                details={"enrollment_id": str(enrollment.pk)},
            )

        open_charge = Payment.objects.filter(
            enrollment=enrollment,
            subscription__isnull=True,
            status__in=[PaymentStatus.PENDING, PaymentStatus.OVERDUE],
        ).first()
        if open_charge is not None:
            raise ConflictError(
                "Enrollment already has an open charge",
                error_code="OPEN_CHARGE_EXISTS",
                details={
                    "enrollment_id": str(enrollment.pk),
                    "payment_id": str(open_charge.pk),
                },
            )

        value = value if value is not None else enrollment.school_class.monthly_fee
        if value is None or Decimal(value) <= 0:
            raise ValidationError(
                "Charge value must be positive",
                error_code="INVALID_TUITION_VALUE",
                details={"value": str(value)},
            )

        today = timezone.localdate()
        due_date = due_date or today + timedelta(days=settings.BILLING_ONE_OFF_DUE_DAYS)
        if due_date < today:
            raise ValidationError(
                "Due date cannot be in the past",
                error_code="INVALID_DUE_DATE",
                details={"due_date": due_date.isoformat()},
            )

        resolver = resolver or BillingCustomerResolver(adapter=cls.get_adapter())
        customer_id = resolver.ensure_customer(enrollment.student_id)

        params = CreatePaymentParams(
            customer_id=customer_id,
            billing_type=billing_type,
            value=Decimal(value),
            due_date=due_date,
            description=f"Matrícula - {enrollment.school_class.name}",
            external_reference=str(enrollment.pk),
            success_url=f"{settings.SITE_URL.rstrip('/')}/checkout/success?enrollment={enrollment.pk}",
        )
        remote = cls.get_adapter().create_payment(params)

        try:
            payment = upsert_payment(remote, enrollment=enrollment).payment
        except DatabaseError as e:
            log.error(
                "Failed to store charge created at Asaas",
                extra={"asaas_payment_id": remote.id, "enrollment_id": str(enrollment.pk)},
                exc_info=True,
            )
            raise PersistenceError(
                "Charge was created at Asaas but could not be saved",
                details={"asaas_payment_id": remote.id},
            ) from e

        log.info(
            "Enrollment charge created",
            extra={
                "payment_id": str(payment.pk),
                "asaas_payment_id": remote.id,
                "enrollment_id": str(enrollment.pk),
                "billing_type": billing_type,
            },
        )
        return payment
