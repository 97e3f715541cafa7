"""
Subscription lifecycle service.

User-triggered operations on a tuition subscription. Unlike the webhook
path these fail loudly: permission, state and provider errors propagate
to the caller.

Each action follows the same order:
    1. Ownership check (the acting user must own the enrollment)
    2. State check (the local FSM must allow the action)
    3. Version check when the caller sent ``expected_version``
    4. Provider call
    5. Local mirror, under a row lock, re-checking the version

Usage:
    from billing.services import SubscriptionLifecycleService

    subscription = SubscriptionLifecycleService.pause(subscription_id, request.user)
    SubscriptionLifecycleService.cancel(subscription_id, request.user)

    subscription = SubscriptionLifecycleService.create_for_enrollment(
        enrollment_id, request.user, billing_type=BillingType.PIX
    )
"""

from __future__ import annotations

import calendar
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING

from django.conf import settings
from django.db import DatabaseError
from django.utils import timezone
from django_fsm import TransitionNotAllowed, can_proceed

from core.exceptions import ConflictError, PermissionDeniedError, ValidationError
from core.services import BaseService

from billing.adapters import AsaasAdapter, CreateSubscriptionParams
from billing.exceptions import (
    BillingNotFoundError,
    InvalidStateTransitionError,
    PersistenceError,
    ProviderError,
)
from billing.locks import check_version, ensure_version
from billing.models import Subscription
from billing.services.customer_resolver import BillingCustomerResolver
from billing.services.payments import upsert_payment
from billing.state_machines import BillingType
from school.models import Enrollment

if TYPE_CHECKING:
    from typing import Any, Callable


ASAAS_ACTIVE = "ACTIVE"
ASAAS_INACTIVE = "INACTIVE"


def compute_next_due_date(today: date, due_day: int) -> date:
    """
    First due date for a new subscription.

    The due day of the current month, or of the next month when that day
    is today or already past. Days beyond the month's end are clamped.
    """
    due_day = max(1, due_day)

    def _in_month(year: int, month: int) -> date:
        return date(year, month, min(due_day, calendar.monthrange(year, month)[1]))

    candidate = _in_month(today.year, today.month)
    if candidate <= today:
        year, month = (today.year + 1, 1) if today.month == 12 else (today.year, today.month + 1)
        candidate = _in_month(year, month)
    return candidate


class SubscriptionLifecycleService(BaseService):
    """
    Pause, cancel, reactivate and create tuition subscriptions.

    All methods are classmethods; the Asaas adapter can be swapped for
    tests with set_adapter().
    """

    _adapter: type | None = None

    @classmethod
    def get_adapter(cls) -> type[AsaasAdapter]:
        return cls._adapter or AsaasAdapter

    @classmethod
    def set_adapter(cls, adapter: type | None) -> None:
        """Set the Asaas adapter class (for testing)."""
        cls._adapter = adapter

    # =========================================================================
    # Lifecycle Actions
    # =========================================================================

    @classmethod
    def pause(cls, subscription_id: Any, user, expected_version: int | None = None) -> Subscription:
        """
        Stop billing until reactivated.

        Raises:
            BillingNotFoundError, PermissionDeniedError,
            InvalidStateTransitionError, ProviderError, StaleRecordError
        """
        subscription = cls._load_owned(subscription_id, user)
        cls._ensure_allowed(subscription, "pause")
        if expected_version is not None:
            ensure_version(Subscription, subscription.pk, expected_version)

        cls.get_adapter().update_subscription_status(subscription.asaas_subscription_id, ASAAS_INACTIVE)

        return cls._mirror(subscription, expected_version, lambda s: s.pause(), "pause")

    @classmethod
    def cancel(cls, subscription_id: Any, user, expected_version: int | None = None) -> Subscription:
        """
        Cancel at the provider and deactivate the enrollment.

        Raises:
            BillingNotFoundError, PermissionDeniedError,
            InvalidStateTransitionError, ProviderError, StaleRecordError
        """
        subscription = cls._load_owned(subscription_id, user)
        cls._ensure_allowed(subscription, "cancel")
        if expected_version is not None:
            ensure_version(Subscription, subscription.pk, expected_version)

        cls.get_adapter().delete_subscription(subscription.asaas_subscription_id)

        return cls._mirror(
            subscription,
            expected_version,
            lambda s: s.cancel(),
            "cancel",
            enrollment_active=False,
        )

    @classmethod
    def reactivate(cls, subscription_id: Any, user, expected_version: int | None = None) -> Subscription:
        """
        Resume billing of a paused subscription and reactivate the enrollment.

        Raises:
            BillingNotFoundError, PermissionDeniedError,
            InvalidStateTransitionError, ProviderError, StaleRecordError
        """
        subscription = cls._load_owned(subscription_id, user)
        cls._ensure_allowed(subscription, "reactivate")
        if expected_version is not None:
            ensure_version(Subscription, subscription.pk, expected_version)

        cls.get_adapter().update_subscription_status(subscription.asaas_subscription_id, ASAAS_ACTIVE)

        def _apply(s: Subscription) -> None:
            s.reactivate()
            s.paused_at = None

        return cls._mirror(subscription, expected_version, _apply, "reactivate", enrollment_active=True)

    # =========================================================================
    # Creation
    # =========================================================================

    @classmethod
    def create_for_enrollment(
        cls,
        enrollment_id: Any,
        user,
        billing_type: str = BillingType.PIX,
        value: Decimal | None = None,
        due_day: int | None = None,
        resolver: BillingCustomerResolver | None = None,
    ) -> Subscription:
        """
        Create the monthly tuition subscription of an enrollment.

        The enrollment stays inactive until the first payment is received.

        Raises:
            BillingNotFoundError: No such enrollment
            PermissionDeniedError: User neither owns the enrollment nor is staff
            ConflictError: The enrollment already has a subscription
            ValidationError: No tuition value available
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
        if Subscription.objects.filter(enrollment=enrollment).exists():
            raise ConflictError(
                "Enrollment already has a subscription",
                error_code="SUBSCRIPTION_EXISTS",
                details={"enrollment_id": str(enrollment.pk)},
            )

        value = value if value is not None else enrollment.school_class.monthly_fee
        if value is None or Decimal(value) <= 0:
            raise ValidationError(
                "Tuition value must be positive",
                error_code="INVALID_TUITION_VALUE",
                details={"value": str(value)},
            )

        resolver = resolver or BillingCustomerResolver(adapter=cls.get_adapter())
        customer_id = resolver.ensure_customer(enrollment.student_id)

        next_due_date = compute_next_due_date(
            timezone.localdate(),
            due_day or settings.BILLING_DEFAULT_DUE_DAY,
        )
        params = CreateSubscriptionParams(
            customer_id=customer_id,
            billing_type=billing_type,
            value=Decimal(value),
            next_due_date=next_due_date,
            description=f"Mensalidade - {enrollment.school_class.name}",
            external_reference=str(enrollment.pk),
        )
        remote = cls.get_adapter().create_subscription(params)

        try:
            subscription = Subscription.objects.create(
                student_id=enrollment.student_id,
                enrollment=enrollment,
                asaas_subscription_id=remote.id,
                asaas_customer_id=customer_id,
                billing_type=billing_type,
                value=Decimal(value),
                next_due_date=next_due_date,
                description=params.description,
            )
        except DatabaseError as e:
            log.error(
                "Failed to store subscription created at Asaas",
                extra={"asaas_subscription_id": remote.id, "enrollment_id": str(enrollment.pk)},
                exc_info=True,
            )
            raise PersistenceError(
                "Subscription was created at Asaas but could not be saved",
                details={"asaas_subscription_id": remote.id},
            ) from e

        log.info(
            "Subscription created",
            extra={
                "subscription_id": str(subscription.pk),
                "asaas_subscription_id": remote.id,
                "enrollment_id": str(enrollment.pk),
            },
        )

        cls._fetch_first_charge(subscription)
        return subscription

    # =========================================================================
    # Helpers
    # =========================================================================

    @classmethod
    def _fetch_first_charge(cls, subscription: Subscription) -> None:
        """Mirror the charges Asaas already generated; the webhook covers any miss."""
        try:
            charges = cls.get_adapter().list_subscription_payments(subscription.asaas_subscription_id)
        except ProviderError as e:
            cls.get_logger().warning(
                "Could not fetch first charge, waiting for PAYMENT_CREATED",
                extra={"subscription_id": str(subscription.pk), "error_code": e.error_code},
            )
            return
        for charge in charges[:1]:
            upsert_payment(charge, subscription)

    @classmethod
    def _load_owned(cls, subscription_id: Any, user) -> Subscription:
        subscription = (
            Subscription.objects.select_related("enrollment__student")
            .filter(pk=subscription_id)
            .first()
        )
        if subscription is None:
            raise BillingNotFoundError(
                f"Subscription {subscription_id} not found",
                error_code="SUBSCRIPTION_NOT_FOUND",
                details={"subscription_id": str(subscription_id)},
            )
        if subscription.enrollment.student.user_id != user.pk:
            cls.get_logger().warning(
                "Subscription action by non-owner",
                extra={"subscription_id": str(subscription.pk), "user_id": str(user.pk)},
            )
            raise PermissionDeniedError(
                "You do not own this subscription",
                error_code="NOT_SUBSCRIPTION_OWNER",
            )
        return subscription

    @staticmethod
    def _ensure_allowed(subscription: Subscription, action: str) -> None:
        if not can_proceed(getattr(subscription, action)):
            raise InvalidStateTransitionError(
                f"Cannot {action} a {subscription.status} subscription",
                details={
                    "subscription_id": str(subscription.pk),
                    "status": subscription.status,
                },
            )

    @classmethod
    def _mirror(
        cls,
        subscription: Subscription,
        expected_version: int | None,
        apply: Callable[[Subscription], None],
        action: str,
        enrollment_active: bool | None = None,
    ) -> Subscription:
        """Apply the transition locally after the provider accepted it."""
        try:
            with cls.atomic():
                if expected_version is not None:
                    locked = check_version(Subscription, subscription.pk, expected_version)
                else:
                    locked = Subscription.objects.select_for_update().get(pk=subscription.pk)
                try:
                    apply(locked)
                except TransitionNotAllowed as e:
                    raise InvalidStateTransitionError(
                        f"Cannot {action} a {locked.status} subscription",
                        details={"subscription_id": str(locked.pk), "status": locked.status},
                    ) from e
                locked.save()
                if enrollment_active is not None:
                    Enrollment.objects.filter(pk=locked.enrollment_id).update(is_active=enrollment_active)
        except DatabaseError as e:
            cls.get_logger().error(
                f"Subscription {action} applied at Asaas but not stored locally",
                extra={"subscription_id": str(subscription.pk)},
                exc_info=True,
            )
            raise PersistenceError(
                f"Subscription {action} could not be saved",
                details={"subscription_id": str(subscription.pk), "action": action},
            ) from e

        cls.get_logger().info(
            f"Subscription {action} completed",
            extra={"subscription_id": str(locked.pk), "status": locked.status},
        )
        return locked
