"""
Billing admin configuration.

Subscriptions and payments are mirrors of Asaas state and the webhook log
is an audit trail, so nothing here can be added or deleted through admin.
"""

from django.contrib import admin

from billing.models import Payment, Subscription, WebhookLogEntry


class ReadOnlyAuditMixin:
    def has_add_permission(self, request) -> bool:
        return False

    def has_delete_permission(self, request, obj=None) -> bool:
        return False


@admin.register(Subscription)
class SubscriptionAdmin(ReadOnlyAuditMixin, admin.ModelAdmin):
    list_display = [
        "id",
        "asaas_subscription_id",
        "student",
        "status",
        "value",
        "next_due_date",
        "created_at",
    ]
    list_filter = ["status", "billing_type"]
    search_fields = ["id", "asaas_subscription_id", "asaas_customer_id", "student__full_name"]
    readonly_fields = [
        "id",
        "asaas_subscription_id",
        "asaas_customer_id",
        "status",
        "paused_at",
        "cancelled_at",
        "reactivated_at",
        "version",
        "created_at",
        "updated_at",
    ]
    raw_id_fields = ["student", "enrollment"]
    ordering = ["-created_at"]


@admin.register(Payment)
class PaymentAdmin(ReadOnlyAuditMixin, admin.ModelAdmin):
    list_display = [
        "id",
        "asaas_payment_id",
        "student",
        "amount",
        "due_date",
        "paid_date",
        "status",
    ]
    list_filter = ["status", "billing_type", "payment_method"]
    search_fields = ["id", "asaas_payment_id", "student__full_name"]
    readonly_fields = [
        "id",
        "asaas_payment_id",
        "status",
        "paid_date",
        "payment_method",
        "created_at",
        "updated_at",
    ]
    raw_id_fields = ["student", "enrollment", "subscription"]
    date_hierarchy = "due_date"
    ordering = ["-due_date"]


@admin.register(WebhookLogEntry)
class WebhookLogEntryAdmin(ReadOnlyAuditMixin, admin.ModelAdmin):
    """
    Admin for the webhook audit trail.

    Entries are append-only; every field is read-only.
    """

    list_display = ["id", "event_type", "asaas_payment_id", "outcome", "created_at"]
    list_filter = ["outcome", "event_type", "created_at"]
    search_fields = ["id", "asaas_payment_id", "event_type"]
    readonly_fields = [
        "id",
        "event_type",
        "asaas_payment_id",
        "payment",
        "payload",
        "outcome",
        "detail",
        "created_at",
        "updated_at",
    ]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]

    def has_change_permission(self, request, obj=None) -> bool:
        return False
