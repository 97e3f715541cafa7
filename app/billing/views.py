"""
DRF views for the billing app.

This module provides API views for:
- Resolving the current student's Asaas customer
- Creating, pausing, cancelling and reactivating tuition subscriptions
- Listing the current student's subscriptions and payments
- Paying an enrollment with a single charge

The Asaas webhook lives in webhooks/views.py.

Related files:
    - services/: BillingCustomerResolver, SubscriptionLifecycleService,
      EnrollmentPaymentService
    - serializers.py: Request/response serializers
    - urls.py: URL routing

Endpoints:
    POST /api/v1/billing/customers/ensure/ - Ensure Asaas customer
    GET  /api/v1/billing/subscriptions/ - List own subscriptions
    POST /api/v1/billing/subscriptions/ - Create subscription for an enrollment
    POST /api/v1/billing/subscriptions/{id}/pause/ - Pause subscription
    POST /api/v1/billing/subscriptions/{id}/cancel/ - Cancel subscription
    POST /api/v1/billing/subscriptions/{id}/reactivate/ - Reactivate subscription
    GET  /api/v1/billing/payments/ - List own payments
    POST /api/v1/billing/payments/ - Create a one-off enrollment charge

Application errors are answered with their own http_status and to_dict()
body; unlike the webhook, nothing here is swallowed.
"""

from __future__ import annotations

import logging

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.exceptions import BaseApplicationError

from billing.models import Payment, Subscription
from billing.serializers import (
    CreateEnrollmentPaymentSerializer,
    CreateSubscriptionSerializer,
    EnsureCustomerResponseSerializer,
    PaymentSerializer,
    SubscriptionActionSerializer,
    SubscriptionSerializer,
)
from billing.services import (
    BillingCustomerResolver,
    EnrollmentPaymentService,
    SubscriptionLifecycleService,
)

logger = logging.getLogger(__name__)


def _error_response(error: BaseApplicationError) -> Response:
    return Response(error.to_dict(), status=error.http_status)


ERROR_RESPONSES = {
    400: OpenApiResponse(description="Validation error"),
    403: OpenApiResponse(description="Not the owner"),
    404: OpenApiResponse(description="Not found"),
    409: OpenApiResponse(description="State conflict or stale version"),
    502: OpenApiResponse(description="Asaas unavailable or rejected the call"),
}


class EnsureCustomerView(APIView):
    """
    Make sure the current student has an Asaas customer.

    POST /api/v1/billing/customers/ensure/

    Returns:
        {"asaas_customer_id": "cus_000005219613"}
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Ensure Asaas customer",
        tags=["Billing"],
        request=None,
        responses={200: EnsureCustomerResponseSerializer, **ERROR_RESPONSES},
    )
    def post(self, request):
        student = getattr(request.user, "student", None)
        if student is None:
            return Response(
                {"error": "Student profile not found", "error_code": "STUDENT_NOT_FOUND"},
                status=status.HTTP_404_NOT_FOUND,
            )
        try:
            customer_id = BillingCustomerResolver(
                adapter=SubscriptionLifecycleService.get_adapter()
            ).ensure_customer(student.pk)
        except BaseApplicationError as e:
            return _error_response(e)
        return Response({"asaas_customer_id": customer_id})


class SubscriptionListCreateView(APIView):
    """
    List or create the current student's subscriptions.

    GET  /api/v1/billing/subscriptions/
    POST /api/v1/billing/subscriptions/

    Request body (POST):
        {
            "enrollment_id": "<uuid>",
            "billing_type": "PIX",   // Optional, BOLETO | CREDIT_CARD | PIX
            "value": "250.00",       // Optional, defaults to the class fee
            "due_day": 10            // Optional
        }
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="List subscriptions",
        tags=["Billing"],
        responses={200: SubscriptionSerializer(many=True)},
    )
    def get(self, request):
        subscriptions = Subscription.objects.select_related("enrollment__school_class").filter(
            student__user=request.user
        )
        return Response(SubscriptionSerializer(subscriptions, many=True).data)

    @extend_schema(
        summary="Create subscription",
        description="Create the monthly tuition subscription of an enrollment at Asaas.",
        tags=["Billing"],
        request=CreateSubscriptionSerializer,
        responses={201: SubscriptionSerializer, **ERROR_RESPONSES},
    )
    def post(self, request):
        serializer = CreateSubscriptionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            subscription = SubscriptionLifecycleService.create_for_enrollment(
                data["enrollment_id"],
                request.user,
                billing_type=data["billing_type"],
                value=data.get("value"),
                due_day=data.get("due_day"),
            )
        except BaseApplicationError as e:
            return _error_response(e)

        return Response(SubscriptionSerializer(subscription).data, status=status.HTTP_201_CREATED)


class SubscriptionActionView(APIView):
    """
    Base view for lifecycle actions on one subscription.

    Subclasses name the SubscriptionLifecycleService method in ``action``.

    Request body (optional):
        {"expected_version": 3}
    """

    permission_classes = [IsAuthenticated]
    action: str = ""

    def post(self, request, subscription_id):
        serializer = SubscriptionActionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        service_method = getattr(SubscriptionLifecycleService, self.action)
        try:
            subscription = service_method(
                subscription_id,
                request.user,
                expected_version=serializer.validated_data.get("expected_version"),
            )
        except BaseApplicationError as e:
            return _error_response(e)

        return Response(SubscriptionSerializer(subscription).data)


@extend_schema(
    summary="Pause subscription",
    tags=["Billing"],
    request=SubscriptionActionSerializer,
    responses={200: SubscriptionSerializer, **ERROR_RESPONSES},
)
class PauseSubscriptionView(SubscriptionActionView):
    """POST /api/v1/billing/subscriptions/{id}/pause/"""

    action = "pause"


@extend_schema(
    summary="Cancel subscription",
    description="Cancels at Asaas and deactivates the enrollment.",
    tags=["Billing"],
    request=SubscriptionActionSerializer,
    responses={200: SubscriptionSerializer, **ERROR_RESPONSES},
)
class CancelSubscriptionView(SubscriptionActionView):
    """POST /api/v1/billing/subscriptions/{id}/cancel/"""

    action = "cancel"


@extend_schema(
    summary="Reactivate subscription",
    description="Resumes billing at Asaas and reactivates the enrollment.",
    tags=["Billing"],
    request=SubscriptionActionSerializer,
    responses={200: SubscriptionSerializer, **ERROR_RESPONSES},
)
class ReactivateSubscriptionView(SubscriptionActionView):
    """POST /api/v1/billing/subscriptions/{id}/reactivate/"""

    action = "reactivate"


class PaymentListCreateView(APIView):
    """
    List the current student's payments, or pay an enrollment once.

    GET  /api/v1/billing/payments/
    POST /api/v1/billing/payments/

    Request body (POST):
        {
            "enrollment_id": "<uuid>",
            "billing_type": "PIX",        // Optional, defaults to UNDEFINED
            "value": "250.00",            // Optional, defaults to the class fee
            "due_date": "2026-11-01"      // Optional
        }

    The response carries invoice_url, where the payer completes checkout.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="List payments",
        tags=["Billing"],
        responses={200: PaymentSerializer(many=True)},
    )
    def get(self, request):
        payments = Payment.objects.filter(student__user=request.user).order_by("-due_date")
        return Response(PaymentSerializer(payments, many=True).data)

    @extend_schema(
        summary="Create enrollment charge",
        description="Create a single Asaas charge that pays for an inactive enrollment.",
        tags=["Billing"],
        request=CreateEnrollmentPaymentSerializer,
        responses={201: PaymentSerializer, **ERROR_RESPONSES},
    )
    def post(self, request):
        serializer = CreateEnrollmentPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            payment = EnrollmentPaymentService.create_for_enrollment(
                data["enrollment_id"],
                request.user,
                billing_type=data["billing_type"],
                value=data.get("value"),
                due_date=data.get("due_date"),
            )
        except BaseApplicationError as e:
            return _error_response(e)

        return Response(PaymentSerializer(payment).data, status=status.HTTP_201_CREATED)
