"""
Root URL configuration.

URL Structure:
    /                                   - ReDoc API documentation
    /admin/                             - Django admin interface
    /health/                            - Health check endpoint
    /schema/                            - OpenAPI schema
    /api/v1/auth/token/                 - JWT obtain pair
    /api/v1/auth/token/refresh/         - JWT refresh
    /api/v1/billing/                    - Billing endpoints
        customers/ensure/               - Ensure Asaas customer for current student
        subscriptions/                  - Create subscription for an enrollment
        subscriptions/{id}/pause/       - Pause subscription
        subscriptions/{id}/cancel/      - Cancel subscription
        subscriptions/{id}/reactivate/  - Reactivate subscription
        payments/                       - Payments of the current student, one-off charges
        webhooks/asaas/                 - Asaas payment webhook (POST, OPTIONS)
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from core.views import health_check

# =============================================================================
# API v1 Routes
# =============================================================================
api_v1_patterns = [
    path("auth/token/", TokenObtainPairView.as_view(), name="token_obtain_pair"),
    path("auth/token/refresh/", TokenRefreshView.as_view(), name="token_refresh"),
    path("billing/", include("billing.urls")),
]

urlpatterns = [
    path("", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    path("admin/", admin.site.urls),
    path("health/", health_check, name="health_check"),
    path("api/v1/", include(api_v1_patterns)),
]

admin.site.site_header = "School Billing Admin"
admin.site.site_title = "School Billing"
admin.site.index_title = "Billing administration"
