"""
DRF serializers for the billing app.

This module provides serializers for:
- Subscription and payment display
- Subscription creation and lifecycle action requests

Related files:
    - models/: Subscription, Payment
    - views.py: Billing API views

Usage:
    serializer = SubscriptionSerializer(subscription)
    data = serializer.data
"""

from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers

from billing.models import Payment, Subscription
from billing.state_machines import BillingType


class PaymentSerializer(serializers.ModelSerializer):
    """
    Payment serializer for the student's charge history.

    Fields:
        id: Local payment ID
        asaas_payment_id: Charge ID at Asaas
        subscription: Owning subscription, null for one-off charges
        enrollment: Enrollment the charge pays for
        amount: Gross charge value
        due_date / paid_date: Due and settlement dates
        status: pending, paid, overdue or cancelled
        payment_method: How it was paid (lowercased billing type)
        invoice_url / bank_slip_url / pix_qr_code: Payment instructions
    """

    class Meta:
        model = Payment
        fields = [
            "id",
            "asaas_payment_id",
            "subscription",
            "enrollment",
            "amount",
            "due_date",
            "paid_date",
            "status",
            "payment_method",
            "billing_type",
            "description",
            "invoice_url",
            "bank_slip_url",
            "pix_qr_code",
            "created_at",
        ]
        read_only_fields = fields


class SubscriptionSerializer(serializers.ModelSerializer):
    """
    Subscription serializer for API responses.

    ``version`` is returned so clients can send it back as
    ``expected_version`` on lifecycle actions.
    """

    school_class = serializers.CharField(source="enrollment.school_class.name", read_only=True)
    enrollment_active = serializers.BooleanField(source="enrollment.is_active", read_only=True)

    class Meta:
        model = Subscription
        fields = [
            "id",
            "asaas_subscription_id",
            "enrollment",
            "school_class",
            "enrollment_active",
            "billing_type",
            "value",
            "next_due_date",
            "status",
            "paused_at",
            "cancelled_at",
            "reactivated_at",
            "version",
            "created_at",
        ]
        read_only_fields = fields


class CreateSubscriptionSerializer(serializers.Serializer):
    """
    Request body for creating the tuition subscription of an enrollment.

    Fields:
        enrollment_id: Enrollment to bill
        billing_type: BOLETO, CREDIT_CARD or PIX (default PIX)
        value: Monthly value; defaults to the class monthly fee
        due_day: Day of month charges fall due; defaults to settings
    """

    enrollment_id = serializers.UUIDField()
    billing_type = serializers.ChoiceField(
        choices=[BillingType.BOLETO, BillingType.CREDIT_CARD, BillingType.PIX],
        default=BillingType.PIX,
    )
    value = serializers.DecimalField(
        max_digits=10,
        decimal_places=2,
        min_value=Decimal("0.01"),
        required=False,
    )
    due_day = serializers.IntegerField(min_value=1, max_value=28, required=False)


class CreateEnrollmentPaymentSerializer(serializers.Serializer):
    """
    Request body for paying an enrollment with a single charge.

    Fields:
        enrollment_id: Enrollment to pay for
        billing_type: BOLETO, CREDIT_CARD, PIX or UNDEFINED (payer chooses)
        value: Charge value; defaults to the class monthly fee
        due_date: Defaults to a few days from today
    """

    enrollment_id = serializers.UUIDField()
    billing_type = serializers.ChoiceField(choices=BillingType.choices, default=BillingType.UNDEFINED)
    value = serializers.DecimalField(
        max_digits=10,
        decimal_places=2,
        min_value=Decimal("0.01"),
        required=False,
    )
    due_date = serializers.DateField(required=False)


class SubscriptionActionSerializer(serializers.Serializer):
    """Optional body of pause, cancel and reactivate."""

    expected_version = serializers.IntegerField(min_value=1, required=False)


class EnsureCustomerResponseSerializer(serializers.Serializer):
    asaas_customer_id = serializers.CharField()
