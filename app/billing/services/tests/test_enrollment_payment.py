"""
Tests for EnrollmentPaymentService.

Tests cover:
- One-off charge creation with checkout callback and external reference
- Default value and due date
- Ownership, active enrollment and open charge conflicts
- Input validation before any provider call
"""

import datetime
import uuid
from decimal import Decimal

import pytest
from freezegun import freeze_time

from authentication.tests.factories import UserFactory
from core.exceptions import ConflictError, PermissionDeniedError, ValidationError

from billing.exceptions import BillingNotFoundError, StudentDataValidationError
from billing.models import Payment
from billing.services import EnrollmentPaymentService
from billing.state_machines import BillingType, PaymentStatus
from billing.tests.factories import PaymentFactory
from school.tests.factories import EnrollmentFactory, StudentFactory


pytestmark = pytest.mark.django_db


@freeze_time("2026-03-10")
class TestCreateForEnrollment:
    def test_creates_charge_linked_to_enrollment(self, enrollment, fake_adapter, settings):
        settings.SITE_URL = "https://escola.example.com/"

        payment = EnrollmentPaymentService.create_for_enrollment(
            enrollment.pk, enrollment.student.user, billing_type=BillingType.PIX
        )

        assert payment.asaas_payment_id == "pay_once"
        assert payment.enrollment_id == enrollment.pk
        assert payment.student_id == enrollment.student_id
        assert payment.subscription is None
        assert payment.status == PaymentStatus.PENDING
        assert payment.invoice_url == "https://sandbox.asaas.com/i/pay_once"

        params = fake_adapter.create_payment.call_args.args[0]
        assert params.customer_id == "cus_new"
        assert params.billing_type == BillingType.PIX
        assert params.external_reference == str(enrollment.pk)
        assert params.description == f"Matrícula - {enrollment.school_class.name}"
        assert params.success_url == (
            f"https://escola.example.com/checkout/success?enrollment={enrollment.pk}"
        )

        enrollment.refresh_from_db()
        assert enrollment.is_active is False

    def test_defaults_to_class_fee_and_due_days(self, enrollment, fake_adapter, settings):
        settings.BILLING_ONE_OFF_DUE_DAYS = 3

        EnrollmentPaymentService.create_for_enrollment(enrollment.pk, enrollment.student.user)

        params = fake_adapter.create_payment.call_args.args[0]
        assert params.billing_type == BillingType.UNDEFINED
        assert params.value == enrollment.school_class.monthly_fee
        assert params.due_date == datetime.date(2026, 3, 13)

    def test_explicit_value_and_due_date(self, enrollment, fake_adapter):
        EnrollmentPaymentService.create_for_enrollment(
            enrollment.pk,
            enrollment.student.user,
            value=Decimal("99.90"),
            due_date=datetime.date(2026, 4, 1),
        )

        params = fake_adapter.create_payment.call_args.args[0]
        assert params.value == Decimal("99.90")
        assert params.due_date == datetime.date(2026, 4, 1)

    def test_staff_may_charge_any_enrollment(self, enrollment, fake_adapter):
        payment = EnrollmentPaymentService.create_for_enrollment(
            enrollment.pk, UserFactory(is_staff=True)
        )

        assert payment.student == enrollment.student

    def test_unknown_enrollment(self, fake_adapter):
        with pytest.raises(BillingNotFoundError) as exc_info:
            EnrollmentPaymentService.create_for_enrollment(uuid.uuid4(), UserFactory())

        assert exc_info.value.error_code == "ENROLLMENT_NOT_FOUND"

    def test_other_user_rejected(self, enrollment, fake_adapter):
        with pytest.raises(PermissionDeniedError):
            EnrollmentPaymentService.create_for_enrollment(enrollment.pk, UserFactory())

        fake_adapter.create_payment.assert_not_called()

    def test_active_enrollment_conflicts(self, fake_adapter):
        enrollment = EnrollmentFactory(is_active=True)

        with pytest.raises(ConflictError) as exc_info:
            EnrollmentPaymentService.create_for_enrollment(enrollment.pk, enrollment.student.user)

        assert exc_info.value.error_code == "ENROLLMENT_ALREADY_ACTIVE"
        fake_adapter.create_payment.assert_not_called()

    def test_open_one_off_charge_conflicts(self, enrollment, fake_adapter):
        PaymentFactory(subscription=None, enrollment=enrollment, student=enrollment.student)

        with pytest.raises(ConflictError) as exc_info:
            EnrollmentPaymentService.create_for_enrollment(enrollment.pk, enrollment.student.user)

        assert exc_info.value.error_code == "OPEN_CHARGE_EXISTS"
        fake_adapter.create_payment.assert_not_called()

    def test_cancelled_one_off_charge_does_not_block(self, enrollment, fake_adapter):
        PaymentFactory(
            subscription=None,
            enrollment=enrollment,
            student=enrollment.student,
            status=PaymentStatus.CANCELLED,
        )

        EnrollmentPaymentService.create_for_enrollment(enrollment.pk, enrollment.student.user)

        assert Payment.objects.filter(enrollment=enrollment).count() == 2

    def test_zero_value_rejected(self, fake_adapter):
        enrollment = EnrollmentFactory(school_class__monthly_fee=Decimal("0"))

        with pytest.raises(ValidationError) as exc_info:
            EnrollmentPaymentService.create_for_enrollment(enrollment.pk, enrollment.student.user)

        assert exc_info.value.error_code == "INVALID_TUITION_VALUE"

    def test_past_due_date_rejected(self, enrollment, fake_adapter):
        with pytest.raises(ValidationError) as exc_info:
            EnrollmentPaymentService.create_for_enrollment(
                enrollment.pk, enrollment.student.user, due_date=datetime.date(2026, 3, 9)
            )

        assert exc_info.value.error_code == "INVALID_DUE_DATE"
        fake_adapter.create_payment.assert_not_called()

    def test_incomplete_student_data_stops_before_provider(self, fake_adapter):
        enrollment = EnrollmentFactory(student=StudentFactory(full_name="Maria"))

        with pytest.raises(StudentDataValidationError):
            EnrollmentPaymentService.create_for_enrollment(enrollment.pk, enrollment.student.user)

        fake_adapter.create_payment.assert_not_called()
