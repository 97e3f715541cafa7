"""
Pytest fixtures shared by all billing test packages.

Fixtures provide students, enrollments, subscriptions and payments in the
states the webhook handlers and lifecycle actions care about, plus a fake
Asaas adapter so no test reaches the network.

Usage:
    def test_pause(active_subscription, fake_adapter):
        SubscriptionLifecycleService.pause(active_subscription.pk, active_subscription.student.user)
"""

from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from billing.adapters import CustomerResult, PaymentResult, SubscriptionResult
from billing.services import (
    EnrollmentPaymentService,
    SubscriptionLifecycleService,
    get_validation_cache,
)
from billing.state_machines import PaymentStatus, SubscriptionStatus
from billing.tests.factories import PaymentFactory, SubscriptionFactory
from school.tests.factories import EnrollmentFactory, StudentFactory


# =============================================================================
# School Fixtures
# =============================================================================


@pytest.fixture
def student(db):
    """Student with complete billing data and no Asaas customer yet."""
    return StudentFactory()


@pytest.fixture
def enrollment(db, student):
    """Inactive enrollment awaiting its first payment."""
    return EnrollmentFactory(student=student)


# =============================================================================
# Subscription Fixtures
# =============================================================================


@pytest.fixture
def pending_subscription(db, enrollment):
    return SubscriptionFactory(enrollment=enrollment)


@pytest.fixture
def active_subscription(db, enrollment):
    enrollment.is_active = True
    enrollment.save()
    return SubscriptionFactory(enrollment=enrollment, status=SubscriptionStatus.ACTIVE)


@pytest.fixture
def paused_subscription(db, enrollment):
    return SubscriptionFactory(enrollment=enrollment, status=SubscriptionStatus.PAUSED)


@pytest.fixture
def cancelled_subscription(db, enrollment):
    return SubscriptionFactory(enrollment=enrollment, status=SubscriptionStatus.CANCELLED)


# =============================================================================
# Payment Fixtures
# =============================================================================


@pytest.fixture
def pending_payment(db, pending_subscription):
    return PaymentFactory(subscription=pending_subscription, asaas_payment_id="pay_first")


@pytest.fixture
def paid_payment(db, pending_payment):
    pending_payment.status = PaymentStatus.PAID
    pending_payment.save()
    return pending_payment


# =============================================================================
# Asaas Fixtures
# =============================================================================


@pytest.fixture
def fake_adapter():
    """
    MagicMock standing in for the AsaasAdapter class.

    Installed on SubscriptionLifecycleService and EnrollmentPaymentService
    for the duration of the test.
    """
    adapter = MagicMock(name="AsaasAdapter")
    adapter.create_customer.return_value = CustomerResult(id="cus_new")
    adapter.find_customer_by_cpf.return_value = None
    adapter.create_subscription.return_value = SubscriptionResult(id="sub_new", status="ACTIVE")
    adapter.update_subscription_status.return_value = SubscriptionResult(id="sub_new")
    adapter.delete_subscription.return_value = True
    adapter.list_subscription_payments.return_value = []
    adapter.create_payment.return_value = PaymentResult(
        id="pay_once",
        status="PENDING",
        billing_type="UNDEFINED",
        value=Decimal("250.00"),
        due_date=date(2026, 3, 13),
        invoice_url="https://sandbox.asaas.com/i/pay_once",
    )

    SubscriptionLifecycleService.set_adapter(adapter)
    EnrollmentPaymentService.set_adapter(adapter)
    yield adapter
    SubscriptionLifecycleService.set_adapter(None)
    EnrollmentPaymentService.set_adapter(None)


@pytest.fixture(autouse=True)
def _reset_validation_cache():
    get_validation_cache().clear()
    yield
    get_validation_cache().clear()


@pytest.fixture(autouse=True)
def mock_confirmation_task():
    """Replace the confirmation email task so no test needs a Celery broker."""
    with patch("billing.services.activation.send_enrollment_confirmation") as mock:
        yield mock


# =============================================================================
# API Client Fixtures
# =============================================================================


@pytest.fixture
def api_client():
    """Unauthenticated API client."""
    return APIClient()


@pytest.fixture
def authenticated_client_factory(db):
    """
    Factory to create JWT-authenticated clients for any user.

    Usage:
        def test_example(authenticated_client_factory, student):
            client = authenticated_client_factory(student.user)
    """

    def _create(user):
        client = APIClient()
        refresh = RefreshToken.for_user(user)
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")
        return client

    return _create
