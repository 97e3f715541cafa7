"""
Payment model: one tuition charge mirrored from Asaas.

Rows are created either when a subscription's first charge is fetched or
when the PAYMENT_CREATED webhook arrives. ``asaas_payment_id`` is unique,
so concurrent inserts for the same charge collapse into one row.

Usage:
    from billing.models import Payment

    payment = Payment.objects.select_for_update().get(asaas_payment_id="pay_123")
    payment.mark_paid(paid_date=date.today(), payment_method="pix")
    payment.save()
"""

from __future__ import annotations

from django.db import models
from django_fsm import FSMField, transition

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel

from billing.state_machines import BillingType, PaymentStatus


class Payment(UUIDPrimaryKeyMixin, BaseModel):
    """
    Local mirror of an Asaas payment (one charge).

    State Flow:
        PENDING -> PAID (received or confirmed)
        PENDING -> OVERDUE
        OVERDUE -> PAID (late payment)
        PENDING/OVERDUE -> CANCELLED (deleted)
        PENDING/OVERDUE/PAID -> CANCELLED (refunded)
        OVERDUE/CANCELLED -> PENDING (restored)

    Fields:
        asaas_payment_id: Asaas payment ID (pay_xxx), unique
        student: Student being charged
        enrollment: Enrollment this charge pays for
        subscription: Owning subscription; null for one-off charges
        amount / net_amount: Gross value and value after provider fees (BRL)
        due_date / paid_date: Due date and settlement date
        status: Current FSM state
        payment_method: Lowercased billing type once paid (pix, boleto, ...)
        billing_type: Billing type the charge was issued with
        invoice_url, bank_slip_url, pix_qr_code: Links and Pix code returned by Asaas
    """

    # ==========================================================================
    # Asaas Integration
    # ==========================================================================

    asaas_payment_id = models.CharField(
        max_length=64,
        unique=True,
        help_text="Asaas payment ID (pay_xxx)",
    )

    # ==========================================================================
    # Relationships
    # ==========================================================================

    student = models.ForeignKey(
        "school.Student",
        on_delete=models.PROTECT,
        related_name="payments",
    )
    enrollment = models.ForeignKey(
        "school.Enrollment",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="payments",
    )
    subscription = models.ForeignKey(
        "billing.Subscription",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="payments",
    )

    # ==========================================================================
    # Amounts & Dates
    # ==========================================================================

    amount = models.DecimalField(max_digits=10, decimal_places=2)
    net_amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
    )
    due_date = models.DateField()
    paid_date = models.DateField(null=True, blank=True)

    # ==========================================================================
    # State
    # ==========================================================================

    status = FSMField(
        default=PaymentStatus.PENDING,
        choices=PaymentStatus.choices,
        db_index=True,
        help_text="Current state of the payment (managed by FSM)",
    )

    payment_method = models.CharField(
        max_length=20,
        null=True,
        blank=True,
        help_text="How the charge was settled (lowercased billing type)",
    )
    billing_type = models.CharField(
        max_length=20,
        choices=BillingType.choices,
        default=BillingType.UNDEFINED,
    )

    # ==========================================================================
    # Provider Links
    # ==========================================================================

    description = models.CharField(max_length=255, blank=True)
    invoice_url = models.URLField(max_length=500, blank=True)
    bank_slip_url = models.URLField(max_length=500, blank=True)
    pix_qr_code = models.TextField(blank=True)

    class Meta:
        ordering = ["-due_date"]
        indexes = [
            models.Index(fields=["subscription", "status"], name="billing_pay_subscri_6b0e4f_idx"),
            models.Index(fields=["student", "status"], name="billing_pay_student_9c7d21_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                check=models.Q(amount__gte=0),
                name="payment_amount_not_negative",
            ),
        ]

    def __str__(self) -> str:
        return f"Payment({self.asaas_payment_id}, {self.status}, R$ {self.amount})"

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(
        field=status,
        source=[PaymentStatus.PENDING, PaymentStatus.OVERDUE],
        target=PaymentStatus.PAID,
    )
    def mark_paid(self, paid_date, payment_method: str | None = None):
        """Record settlement. Transition: PENDING/OVERDUE -> PAID"""
        self.paid_date = paid_date
        if payment_method:
            self.payment_method = payment_method.lower()

    @transition(
        field=status,
        source=PaymentStatus.PENDING,
        target=PaymentStatus.OVERDUE,
    )
    def mark_overdue(self):
        """Transition: PENDING -> OVERDUE"""

    @transition(
        field=status,
        source=[PaymentStatus.PENDING, PaymentStatus.OVERDUE],
        target=PaymentStatus.CANCELLED,
    )
    def cancel(self):
        """Charge deleted at the provider. Transition: PENDING/OVERDUE -> CANCELLED"""

    @transition(
        field=status,
        source=[PaymentStatus.PENDING, PaymentStatus.OVERDUE, PaymentStatus.PAID],
        target=PaymentStatus.CANCELLED,
    )
    def refund(self):
        """Charge refunded. Transition: PENDING/OVERDUE/PAID -> CANCELLED"""

    @transition(
        field=status,
        source=[PaymentStatus.OVERDUE, PaymentStatus.CANCELLED],
        target=PaymentStatus.PENDING,
    )
    def restore(self):
        """Charge restored at the provider. Transition: OVERDUE/CANCELLED -> PENDING"""
        self.paid_date = None

    # ==========================================================================
    # Helper Properties
    # ==========================================================================

    @property
    def is_paid(self) -> bool:
        return self.status == PaymentStatus.PAID
