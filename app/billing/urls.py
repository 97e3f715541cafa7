"""
URL configuration for the billing app.

All routes are prefixed with /api/v1/billing/ when included in the main URLconf.

Usage:
    # In config/urls.py
    api_v1_patterns = [
        path("billing/", include("billing.urls")),
    ]
"""

from django.urls import path

from billing import views
from billing.webhooks.views import asaas_webhook

app_name = "billing"

urlpatterns = [
    path("customers/ensure/", views.EnsureCustomerView.as_view(), name="ensure_customer"),
    path("subscriptions/", views.SubscriptionListCreateView.as_view(), name="subscriptions"),
    path(
        "subscriptions/<uuid:subscription_id>/pause/",
        views.PauseSubscriptionView.as_view(),
        name="subscription_pause",
    ),
    path(
        "subscriptions/<uuid:subscription_id>/cancel/",
        views.CancelSubscriptionView.as_view(),
        name="subscription_cancel",
    ),
    path(
        "subscriptions/<uuid:subscription_id>/reactivate/",
        views.ReactivateSubscriptionView.as_view(),
        name="subscription_reactivate",
    ),
    path("payments/", views.PaymentListCreateView.as_view(), name="payments"),
    # Webhook endpoints
    path("webhooks/asaas/", asaas_webhook, name="asaas_webhook"),
]
