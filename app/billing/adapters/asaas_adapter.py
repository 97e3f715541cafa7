"""
Asaas API adapter for billing operations.

This module provides the AsaasAdapter class which encapsulates all
Asaas REST API interactions. All Asaas calls should go through this
adapter to ensure consistent error handling, timeouts and observability.

Features:
- Bounded timeouts on all API calls
- Automatic error translation to domain exceptions
- Structured logging with timing metrics
- Thread-safe for use from Celery workers

Configuration (via settings):
- ASAAS_API_KEY: Asaas API key, sent in the ``access_token`` header
- ASAAS_ENVIRONMENT: "sandbox" (default) or "production"
- ASAAS_API_TIMEOUT_SECONDS: API call timeout, clamped to 10-30s (default: 15)

Usage:
    from billing.adapters import AsaasAdapter, CreateSubscriptionParams

    customer = AsaasAdapter.create_customer(payload)

    subscription = AsaasAdapter.create_subscription(
        CreateSubscriptionParams(
            customer_id=customer.id,
            billing_type="PIX",
            value=Decimal("250.00"),
            next_due_date=date(2026, 11, 10),
            description="Mensalidade - Ballet Infantil",
            external_reference=str(enrollment.id),
        )
    )
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any

import requests
from django.conf import settings

from billing.exceptions import (
    AsaasInvalidResponseError,
    AsaasRequestRejectedError,
    AsaasTimeoutError,
    AsaasUnavailableError,
)
from toolkit.helpers import mask_cpf, only_digits

ASAAS_BASE_URLS = {
    "sandbox": "https://sandbox.asaas.com/api/v3",
    "production": "https://api.asaas.com/api/v3",
}

MIN_TIMEOUT_SECONDS = 10
MAX_TIMEOUT_SECONDS = 30


# =============================================================================
# Data Types
# =============================================================================


def _to_decimal(value: Any) -> Decimal | None:
    if value is None or value == "":
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return None


def _to_date(value: Any) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


@dataclass
class CustomerResult:
    """
    Result from Asaas customer operations.

    Attributes:
        id: Customer ID (cus_xxx)
        name: Customer name
        email: Customer email
        cpf_cnpj: Document, digits only
        raw_response: Full Asaas response dict (for debugging)
    """

    id: str
    name: str = ""
    email: str = ""
    cpf_cnpj: str = ""
    raw_response: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> CustomerResult:
        return cls(
            id=payload["id"],
            name=payload.get("name") or "",
            email=payload.get("email") or "",
            cpf_cnpj=payload.get("cpfCnpj") or "",
            raw_response=payload,
        )


@dataclass
class CreateSubscriptionParams:
    """
    Parameters for creating a monthly Asaas subscription.

    Penalty defaults come from settings (BILLING_FINE_PERCENT,
    BILLING_INTEREST_PERCENT, BILLING_EARLY_DISCOUNT_PERCENT,
    BILLING_EARLY_DISCOUNT_DAYS) when not given.
    """

    customer_id: str
    billing_type: str
    value: Decimal
    next_due_date: date
    description: str = ""
    external_reference: str = ""
    cycle: str = "MONTHLY"
    fine_percent: float | None = None
    interest_percent: float | None = None
    discount_percent: float | None = None
    discount_days: int | None = None

    def __post_init__(self) -> None:
        """Validate parameters after initialization."""
        if not self.customer_id:
            raise ValueError("customer_id is required")
        if self.value is None or Decimal(self.value) <= 0:
            raise ValueError("value must be positive")

    def to_payload(self) -> dict[str, Any]:
        fine = self.fine_percent if self.fine_percent is not None else settings.BILLING_FINE_PERCENT
        interest = (
            self.interest_percent
            if self.interest_percent is not None
            else settings.BILLING_INTEREST_PERCENT
        )
        discount = (
            self.discount_percent
            if self.discount_percent is not None
            else settings.BILLING_EARLY_DISCOUNT_PERCENT
        )
        discount_days = (
            self.discount_days if self.discount_days is not None else settings.BILLING_EARLY_DISCOUNT_DAYS
        )
        return {
            "customer": self.customer_id,
            "billingType": self.billing_type,
            "nextDueDate": self.next_due_date.isoformat(),
            "value": float(self.value),
            "cycle": self.cycle,
            "description": self.description,
            "externalReference": self.external_reference,
            "fine": {"value": fine, "type": "PERCENTAGE"},
            "interest": {"value": interest, "type": "PERCENTAGE"},
            "discount": {
                "value": discount,
                "dueDateLimitDays": discount_days,
                "type": "PERCENTAGE",
            },
        }


@dataclass
class CreatePaymentParams:
    """
    Parameters for a one-off charge (enrollment payment).

    ``success_url`` becomes the checkout callback Asaas redirects to after
    payment. Fine and interest default to settings like subscriptions.
    """

    customer_id: str
    billing_type: str
    value: Decimal
    due_date: date
    description: str = ""
    external_reference: str = ""
    success_url: str = ""
    fine_percent: float | None = None
    interest_percent: float | None = None

    def __post_init__(self) -> None:
        if not self.customer_id:
            raise ValueError("customer_id is required")
        if self.value is None or Decimal(self.value) <= 0:
            raise ValueError("value must be positive")

    def to_payload(self) -> dict[str, Any]:
        fine = self.fine_percent if self.fine_percent is not None else settings.BILLING_FINE_PERCENT
        interest = (
            self.interest_percent
            if self.interest_percent is not None
            else settings.BILLING_INTEREST_PERCENT
        )
        payload = {
            "customer": self.customer_id,
            "billingType": self.billing_type,
            "value": float(self.value),
            "dueDate": self.due_date.isoformat(),
            "description": self.description,
            "externalReference": self.external_reference,
            "postalService": False,
            "fine": {"value": fine, "type": "PERCENTAGE"},
            "interest": {"value": interest, "type": "PERCENTAGE"},
        }
        if self.success_url:
            payload["callback"] = {"successUrl": self.success_url, "autoRedirect": True}
        return payload


@dataclass
class SubscriptionResult:
    """
    Result from Asaas subscription operations.

    Attributes:
        id: Subscription ID (sub_xxx)
        customer_id: Owning customer ID
        status: Asaas status (ACTIVE, INACTIVE, EXPIRED)
        billing_type: Billing type
        value: Monthly value
        next_due_date: Next charge date
        deleted: True once the subscription was deleted
        raw_response: Full Asaas response dict
    """

    id: str
    customer_id: str = ""
    status: str = ""
    billing_type: str = ""
    value: Decimal | None = None
    next_due_date: date | None = None
    deleted: bool = False
    raw_response: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> SubscriptionResult:
        return cls(
            id=payload["id"],
            customer_id=payload.get("customer") or "",
            status=payload.get("status") or "",
            billing_type=payload.get("billingType") or "",
            value=_to_decimal(payload.get("value")),
            next_due_date=_to_date(payload.get("nextDueDate")),
            deleted=bool(payload.get("deleted", False)),
            raw_response=payload,
        )


@dataclass
class PaymentResult:
    """
    A payment (charge) as described by Asaas.

    Built from API responses and from the ``payment`` object of webhook
    bodies, which share the same shape.
    """

    id: str
    subscription_id: str | None = None
    customer_id: str = ""
    status: str = ""
    billing_type: str = ""
    value: Decimal | None = None
    net_value: Decimal | None = None
    due_date: date | None = None
    payment_date: date | None = None
    description: str = ""
    invoice_url: str = ""
    bank_slip_url: str = ""
    pix_qr_code: str = ""
    external_reference: str = ""
    raw_response: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> PaymentResult:
        return cls(
            id=payload["id"],
            subscription_id=payload.get("subscription") or None,
            customer_id=payload.get("customer") or "",
            status=payload.get("status") or "",
            billing_type=payload.get("billingType") or "",
            value=_to_decimal(payload.get("value")),
            net_value=_to_decimal(payload.get("netValue")),
            due_date=_to_date(payload.get("dueDate")),
            payment_date=_to_date(payload.get("paymentDate") or payload.get("clientPaymentDate")),
            description=payload.get("description") or "",
            invoice_url=payload.get("invoiceUrl") or "",
            bank_slip_url=payload.get("bankSlipUrl") or "",
            pix_qr_code=payload.get("pixQrCode") or "",
            external_reference=payload.get("externalReference") or "",
            raw_response=payload,
        )


# =============================================================================
# Asaas Adapter
# =============================================================================


class AsaasAdapter:
    """
    Adapter for Asaas API operations.

    All methods are classmethods - no instance state is maintained.
    Thread-safe for use from Celery workers.

    Usage:
        customer = AsaasAdapter.find_customer_by_cpf("529.982.247-25")
        AsaasAdapter.update_subscription_status("sub_xxx", "INACTIVE")
    """

    # =========================================================================
    # Configuration
    # =========================================================================

    @staticmethod
    def _base_url() -> str:
        environment = getattr(settings, "ASAAS_ENVIRONMENT", "sandbox")
        return ASAAS_BASE_URLS.get(environment, ASAAS_BASE_URLS["sandbox"])

    @staticmethod
    def _timeout() -> int:
        timeout = getattr(settings, "ASAAS_API_TIMEOUT_SECONDS", 15)
        return max(MIN_TIMEOUT_SECONDS, min(MAX_TIMEOUT_SECONDS, int(timeout)))

    @staticmethod
    def _headers() -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "access_token": settings.ASAAS_API_KEY,
        }

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """Get logger for this adapter."""
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    # =========================================================================
    # Customers
    # =========================================================================

    @classmethod
    def create_customer(cls, payload: dict[str, Any]) -> CustomerResult:
        """
        Create an Asaas customer.

        Args:
            payload: Customer body (see toolkit.validators.build_asaas_customer_payload)

        Returns:
            CustomerResult with the new customer ID

        Raises:
            AsaasRequestRejectedError: Asaas refused the data (e.g. CPF already registered)
            AsaasUnavailableError: Asaas service unavailable
            AsaasTimeoutError: Request timed out
        """
        log_context = {
            "operation": "create_customer",
            "cpf": mask_cpf(payload.get("cpfCnpj", "")),
        }
        body = cls._request("POST", "/customers", log_context, json=payload)
        return CustomerResult.from_payload(cls._require_id(body, log_context))

    @classmethod
    def find_customer_by_cpf(cls, cpf: str) -> CustomerResult | None:
        """
        Look up an existing customer by CPF.

        Returns:
            The first matching customer, or None when there is none
        """
        digits = only_digits(cpf)
        log_context = {"operation": "find_customer_by_cpf", "cpf": mask_cpf(digits)}
        body = cls._request("GET", "/customers", log_context, params={"cpfCnpj": digits})

        matches = body.get("data") or []
        if not matches:
            return None
        return CustomerResult.from_payload(cls._require_id(matches[0], log_context))

    # =========================================================================
    # Subscriptions
    # =========================================================================

    @classmethod
    def create_subscription(cls, params: CreateSubscriptionParams) -> SubscriptionResult:
        """
        Create a recurring subscription.

        Raises:
            AsaasRequestRejectedError: Invalid parameters
            AsaasUnavailableError: Asaas service unavailable
            AsaasTimeoutError: Request timed out
        """
        log_context = {
            "operation": "create_subscription",
            "customer_id": params.customer_id,
            "billing_type": params.billing_type,
            "external_reference": params.external_reference,
        }
        body = cls._request("POST", "/subscriptions", log_context, json=params.to_payload())
        return SubscriptionResult.from_payload(cls._require_id(body, log_context))

    @classmethod
    def update_subscription_status(cls, subscription_id: str, status: str) -> SubscriptionResult:
        """
        Set the Asaas status of a subscription.

        ``INACTIVE`` stops new charges (pause), ``ACTIVE`` resumes them.
        """
        log_context = {
            "operation": "update_subscription_status",
            "subscription_id": subscription_id,
            "status": status,
        }
        body = cls._request(
            "PUT",
            f"/subscriptions/{subscription_id}",
            log_context,
            json={"status": status},
        )
        return SubscriptionResult.from_payload(cls._require_id(body, log_context))

    @classmethod
    def delete_subscription(cls, subscription_id: str) -> bool:
        """Delete (cancel) a subscription. Returns Asaas's ``deleted`` flag."""
        log_context = {"operation": "delete_subscription", "subscription_id": subscription_id}
        body = cls._request("DELETE", f"/subscriptions/{subscription_id}", log_context)
        return bool(body.get("deleted", True))

    @classmethod
    def list_subscription_payments(cls, subscription_id: str) -> list[PaymentResult]:
        """List the charges generated for a subscription, oldest first."""
        log_context = {"operation": "list_subscription_payments", "subscription_id": subscription_id}
        body = cls._request("GET", f"/subscriptions/{subscription_id}/payments", log_context)
        return [
            PaymentResult.from_payload(item)
            for item in body.get("data") or []
            if isinstance(item, dict) and item.get("id")
        ]

    # =========================================================================
    # Payments
    # =========================================================================

    @classmethod
    def create_payment(cls, params: CreatePaymentParams) -> PaymentResult:
        """
        Create a one-off charge.

        Raises:
            AsaasRequestRejectedError: Invalid parameters
            AsaasUnavailableError: Asaas service unavailable
            AsaasTimeoutError: Request timed out
        """
        log_context = {
            "operation": "create_payment",
            "customer_id": params.customer_id,
            "billing_type": params.billing_type,
            "external_reference": params.external_reference,
        }
        body = cls._request("POST", "/payments", log_context, json=params.to_payload())
        return PaymentResult.from_payload(cls._require_id(body, log_context))

    # =========================================================================
    # Transport
    # =========================================================================

    @classmethod
    def _request(
        cls,
        method: str,
        path: str,
        log_context: dict[str, Any],
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Perform one HTTP call and return the decoded JSON body."""
        logger = cls.get_logger()
        log_context = {**log_context, "method": method, "path": path}

        start_time = time.time()
        logger.info("Starting Asaas operation", extra=log_context)

        try:
            response = requests.request(
                method,
                f"{cls._base_url()}{path}",
                headers=cls._headers(),
                json=json,
                params=params,
                timeout=cls._timeout(),
            )
        except requests.RequestException as e:
            duration_ms = (time.time() - start_time) * 1000
            cls._handle_request_error(e, log_context, duration_ms)
            raise  # Never reached, but satisfies type checker

        duration_ms = (time.time() - start_time) * 1000

        if response.status_code >= 400:
            cls._handle_error_response(response, log_context, duration_ms)

        try:
            body = response.json()
        except ValueError:
            logger.error(
                "Asaas returned a non-JSON body",
                extra={**log_context, "status_code": response.status_code, "duration_ms": duration_ms},
            )
            raise AsaasInvalidResponseError(
                "Asaas returned an invalid response",
                status_code=response.status_code,
            )

        if not isinstance(body, dict):
            raise AsaasInvalidResponseError(
                "Asaas returned an unexpected response shape",
                status_code=response.status_code,
            )

        logger.info(
            "Asaas operation completed",
            extra={**log_context, "status_code": response.status_code, "duration_ms": duration_ms},
        )
        return body

    @classmethod
    def _require_id(cls, body: dict[str, Any], log_context: dict[str, Any]) -> dict[str, Any]:
        if not body.get("id"):
            cls.get_logger().error("Asaas response without id", extra=log_context)
            raise AsaasInvalidResponseError("Asaas response is missing the resource id")
        return body

    # =========================================================================
    # Error Handling
    # =========================================================================

    @classmethod
    def _handle_request_error(
        cls,
        error: requests.RequestException,
        log_context: dict[str, Any],
        duration_ms: float,
    ) -> None:
        """
        Translate transport failures to domain exceptions.

        Raises:
            AsaasTimeoutError: Request timed out
            AsaasUnavailableError: Connection failure or other transport error
        """
        logger = cls.get_logger()
        log_context = {**log_context, "duration_ms": duration_ms}

        if isinstance(error, requests.Timeout):
            logger.warning("Asaas request timed out", extra=log_context)
            raise AsaasTimeoutError(
                "Asaas did not answer in time. Please retry.",
                error_code="ASAAS_TIMEOUT",
            ) from error

        logger.error("Connection error to Asaas", extra=log_context, exc_info=True)
        raise AsaasUnavailableError(
            "Could not connect to Asaas. Please retry.",
            error_code="ASAAS_CONNECTION_ERROR",
        ) from error

    @classmethod
    def _handle_error_response(
        cls,
        response: requests.Response,
        log_context: dict[str, Any],
        duration_ms: float,
    ) -> None:
        """
        Translate an HTTP error status to a domain exception.

        Asaas error bodies look like
        ``{"errors": [{"code": "invalid_cpfCnpj", "description": "..."}]}``.

        Raises:
            AsaasUnavailableError: 5xx
            AsaasRequestRejectedError: 4xx
        """
        logger = cls.get_logger()
        status_code = response.status_code
        log_context = {**log_context, "status_code": status_code, "duration_ms": duration_ms}

        try:
            body = response.json()
        except ValueError:
            body = {}
        provider_errors = body.get("errors") if isinstance(body, dict) else None
        if not isinstance(provider_errors, list):
            provider_errors = []

        if status_code >= 500:
            logger.error("Asaas server error", extra=log_context)
            raise AsaasUnavailableError(
                "Asaas service error. Please retry.",
                status_code=status_code,
                provider_errors=provider_errors,
            )

        if status_code == 401:
            logger.critical("Asaas authentication failed - check API key", extra=log_context)
        else:
            logger.warning(
                "Asaas rejected the request",
                extra={**log_context, "provider_errors": provider_errors},
            )

        description = next(
            (e.get("description") for e in provider_errors if isinstance(e, dict) and e.get("description")),
            None,
        )
        raise AsaasRequestRejectedError(
            description or f"Asaas rejected the request (HTTP {status_code})",
            status_code=status_code,
            provider_errors=provider_errors,
        )
