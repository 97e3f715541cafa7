import uuid

import django.db.models.deletion
import django_fsm
from django.db import migrations, models


def _timestamps():
    return [
        (
            "created_at",
            models.DateTimeField(
                auto_now_add=True, db_index=True, help_text="Timestamp when this record was created"
            ),
        ),
        (
            "updated_at",
            models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified"),
        ),
        (
            "id",
            models.UUIDField(
                default=uuid.uuid4,
                editable=False,
                help_text="Unique identifier for this record",
                primary_key=True,
                serialize=False,
            ),
        ),
    ]


BILLING_TYPE_CHOICES = [
    ("CREDIT_CARD", "Credit card"),
    ("PIX", "Pix"),
    ("BOLETO", "Boleto"),
    ("UNDEFINED", "Undefined"),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("school", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Subscription",
            fields=_timestamps()
            + [
                (
                    "asaas_subscription_id",
                    models.CharField(help_text="Asaas subscription ID (sub_xxx)", max_length=64, unique=True),
                ),
                (
                    "asaas_customer_id",
                    models.CharField(db_index=True, help_text="Asaas customer ID (cus_xxx)", max_length=64),
                ),
                (
                    "billing_type",
                    models.CharField(choices=BILLING_TYPE_CHOICES, default="PIX", max_length=20),
                ),
                (
                    "value",
                    models.DecimalField(decimal_places=2, help_text="Monthly tuition in BRL", max_digits=10),
                ),
                ("next_due_date", models.DateField()),
                ("description", models.CharField(blank=True, max_length=255)),
                (
                    "status",
                    django_fsm.FSMField(
                        choices=[
                            ("pending", "Pending"),
                            ("active", "Active"),
                            ("paused", "Paused"),
                            ("overdue", "Overdue"),
                            ("cancelled", "Cancelled"),
                        ],
                        db_index=True,
                        default="pending",
                        help_text="Current state of the subscription (managed by FSM)",
                        max_length=50,
                    ),
                ),
                ("paused_at", models.DateTimeField(blank=True, null=True)),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                ("reactivated_at", models.DateTimeField(blank=True, null=True)),
                (
                    "version",
                    models.PositiveIntegerField(
                        default=1, help_text="Version for optimistic locking - incremented on each save"
                    ),
                ),
                (
                    "enrollment",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="subscription",
                        to="school.enrollment",
                    ),
                ),
                (
                    "student",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="subscriptions",
                        to="school.student",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [models.Index(fields=["student", "status"], name="billing_sub_student_d3a1c2_idx")],
                "constraints": [
                    models.CheckConstraint(check=models.Q(value__gt=0), name="subscription_value_positive")
                ],
            },
        ),
        migrations.CreateModel(
            name="Payment",
            fields=_timestamps()
            + [
                (
                    "asaas_payment_id",
                    models.CharField(help_text="Asaas payment ID (pay_xxx)", max_length=64, unique=True),
                ),
                ("amount", models.DecimalField(decimal_places=2, max_digits=10)),
                ("net_amount", models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ("due_date", models.DateField()),
                ("paid_date", models.DateField(blank=True, null=True)),
                (
                    "status",
                    django_fsm.FSMField(
                        choices=[
                            ("pending", "Pending"),
                            ("paid", "Paid"),
                            ("overdue", "Overdue"),
                            ("cancelled", "Cancelled"),
                        ],
                        db_index=True,
                        default="pending",
                        help_text="Current state of the payment (managed by FSM)",
                        max_length=50,
                    ),
                ),
                (
                    "payment_method",
                    models.CharField(
                        blank=True,
                        help_text="How the charge was settled (lowercased billing type)",
                        max_length=20,
                        null=True,
                    ),
                ),
                (
                    "billing_type",
                    models.CharField(choices=BILLING_TYPE_CHOICES, default="UNDEFINED", max_length=20),
                ),
                ("description", models.CharField(blank=True, max_length=255)),
                ("invoice_url", models.URLField(blank=True, max_length=500)),
                ("bank_slip_url", models.URLField(blank=True, max_length=500)),
                ("pix_qr_code", models.TextField(blank=True)),
                (
                    "enrollment",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="payments",
                        to="school.enrollment",
                    ),
                ),
                (
                    "student",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="payments",
                        to="school.student",
                    ),
                ),
                (
                    "subscription",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="payments",
                        to="billing.subscription",
                    ),
                ),
            ],
            options={
                "ordering": ["-due_date"],
                "indexes": [
                    models.Index(fields=["subscription", "status"], name="billing_pay_subscri_6b0e4f_idx"),
                    models.Index(fields=["student", "status"], name="billing_pay_student_9c7d21_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(check=models.Q(amount__gte=0), name="payment_amount_not_negative")
                ],
            },
        ),
        migrations.CreateModel(
            name="WebhookLogEntry",
            fields=_timestamps()
            + [
                ("event_type", models.CharField(db_index=True, max_length=64)),
                ("asaas_payment_id", models.CharField(blank=True, db_index=True, max_length=64)),
                ("payload", models.JSONField(default=dict)),
                (
                    "outcome",
                    models.CharField(
                        choices=[
                            ("processed", "Processed"),
                            ("ignored", "Ignored"),
                            ("payment_not_found", "Payment not found"),
                            ("subscription_not_found", "Subscription not found"),
                            ("error", "Error"),
                        ],
                        db_index=True,
                        max_length=32,
                    ),
                ),
                ("detail", models.TextField(blank=True)),
                (
                    "payment",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="webhook_logs",
                        to="billing.payment",
                    ),
                ),
            ],
            options={
                "verbose_name": "webhook log entry",
                "verbose_name_plural": "webhook log entries",
                "ordering": ["-created_at"],
            },
        ),
    ]
