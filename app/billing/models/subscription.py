"""
Subscription model for monthly tuition.

A Subscription mirrors an Asaas subscription created for one enrollment.
Each billing cycle produces a Payment linked to it.

Usage:
    from billing.models import Subscription

    subscription = Subscription.objects.create(
        student=student,
        enrollment=enrollment,
        asaas_subscription_id="sub_xxx",
        asaas_customer_id="cus_xxx",
        billing_type=BillingType.PIX,
        value=Decimal("250.00"),
        next_due_date=date(2026, 11, 10),
    )

    subscription.pause()  # active -> paused
    subscription.save()
"""

from __future__ import annotations

from django.db import models
from django.db.models import F
from django.utils import timezone
from django_fsm import FSMField, transition

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel

from billing.state_machines import BillingType, SubscriptionStatus


class Subscription(UUIDPrimaryKeyMixin, BaseModel):
    """
    Tracks the recurring tuition charge of one enrollment.

    Uses django-fsm for state machine management and optimistic
    locking via the version field.

    State Flow:
        PENDING -> ACTIVE (first payment received)
        PENDING/ACTIVE -> OVERDUE (payment overdue)
        OVERDUE -> ACTIVE (late payment received)
        PENDING/ACTIVE/OVERDUE -> PAUSED (user pause)
        PAUSED -> ACTIVE (user reactivation)
        any non-cancelled -> CANCELLED (user cancellation)

    Subscriptions are never hard-deleted.
    """

    # ==========================================================================
    # Relationships
    # ==========================================================================

    student = models.ForeignKey(
        "school.Student",
        on_delete=models.PROTECT,
        related_name="subscriptions",
    )
    enrollment = models.OneToOneField(
        "school.Enrollment",
        on_delete=models.PROTECT,
        related_name="subscription",
    )

    # ==========================================================================
    # Asaas Integration
    # ==========================================================================

    asaas_subscription_id = models.CharField(
        max_length=64,
        unique=True,
        help_text="Asaas subscription ID (sub_xxx)",
    )
    asaas_customer_id = models.CharField(
        max_length=64,
        db_index=True,
        help_text="Asaas customer ID (cus_xxx)",
    )

    # ==========================================================================
    # Billing Terms
    # ==========================================================================

    billing_type = models.CharField(
        max_length=20,
        choices=BillingType.choices,
        default=BillingType.PIX,
    )
    value = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        help_text="Monthly tuition in BRL",
    )
    next_due_date = models.DateField()
    description = models.CharField(max_length=255, blank=True)

    # ==========================================================================
    # State
    # ==========================================================================

    status = FSMField(
        default=SubscriptionStatus.PENDING,
        choices=SubscriptionStatus.choices,
        db_index=True,
        help_text="Current state of the subscription (managed by FSM)",
    )

    paused_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    reactivated_at = models.DateTimeField(null=True, blank=True)

    # ==========================================================================
    # Concurrency Control
    # ==========================================================================

    version = models.PositiveIntegerField(
        default=1,
        help_text="Version for optimistic locking - incremented on each save",
    )

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["student", "status"], name="billing_sub_student_d3a1c2_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                check=models.Q(value__gt=0),
                name="subscription_value_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"Subscription({self.asaas_subscription_id}, {self.status}, R$ {self.value}/month)"

    def save(self, *args, **kwargs):
        """Save with version auto-increment for optimistic locking."""
        is_update = self.pk and not self._state.adding and not kwargs.get("force_insert", False)
        if is_update:
            self.version = F("version") + 1
        super().save(*args, **kwargs)
        if is_update:
            self.refresh_from_db(fields=["version"])

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(
        field=status,
        source=[SubscriptionStatus.PENDING, SubscriptionStatus.OVERDUE],
        target=SubscriptionStatus.ACTIVE,
    )
    def activate(self):
        """
        Payment received on a pending or overdue subscription.

        Transition: PENDING/OVERDUE -> ACTIVE
        """

    @transition(
        field=status,
        source=[SubscriptionStatus.PENDING, SubscriptionStatus.ACTIVE],
        target=SubscriptionStatus.OVERDUE,
    )
    def mark_overdue(self):
        """Transition: PENDING/ACTIVE -> OVERDUE"""

    @transition(
        field=status,
        source=[
            SubscriptionStatus.PENDING,
            SubscriptionStatus.ACTIVE,
            SubscriptionStatus.OVERDUE,
        ],
        target=SubscriptionStatus.PAUSED,
    )
    def pause(self):
        """
        Pause billing at the student's request.

        Transition: PENDING/ACTIVE/OVERDUE -> PAUSED
        """
        self.paused_at = timezone.now()

    @transition(
        field=status,
        source=SubscriptionStatus.PAUSED,
        target=SubscriptionStatus.ACTIVE,
    )
    def reactivate(self):
        """Transition: PAUSED -> ACTIVE"""
        self.reactivated_at = timezone.now()

    @transition(
        field=status,
        source=[
            SubscriptionStatus.PENDING,
            SubscriptionStatus.ACTIVE,
            SubscriptionStatus.PAUSED,
            SubscriptionStatus.OVERDUE,
        ],
        target=SubscriptionStatus.CANCELLED,
    )
    def cancel(self):
        """
        Cancel the subscription.

        Transition: any non-cancelled -> CANCELLED
        """
        self.cancelled_at = timezone.now()

    # ==========================================================================
    # Helper Properties
    # ==========================================================================

    @property
    def is_cancelled(self) -> bool:
        return self.status == SubscriptionStatus.CANCELLED
