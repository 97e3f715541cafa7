"""
Billing-specific exceptions.

Exception Hierarchy:
    BillingError (base for billing domain)
    ├── BillingNotFoundError - Payment/subscription/student lookup failures
    ├── StudentDataValidationError - Student data incomplete (inherits ValidationError)
    ├── WebhookAuthError - Webhook token mismatch (inherits AuthenticationError)
    ├── InvalidWebhookPayloadError - Webhook body without payment data (inherits ValidationError)
    ├── PersistenceError - Local write failed after a provider call succeeded
    └── ProviderError - Base for all Asaas errors
        ├── AsaasRequestRejectedError - 4xx, request refused (permanent)
        ├── AsaasInvalidResponseError - Unparseable response (permanent)
        ├── AsaasUnavailableError - 5xx or connection failure (transient, retry)
        └── AsaasTimeoutError - Request timeout (transient, retry)

    LockAcquisitionError - Distributed lock timeout (inherits ConflictError)
    InvalidStateTransitionError - FSM transition not allowed (inherits ConflictError)
    StaleRecordError - Optimistic locking version mismatch (inherits ConflictError)

Usage:
    from billing.exceptions import ProviderError, StudentDataValidationError

    try:
        customer_id = resolver.ensure_customer(student.id)
    except StudentDataValidationError as e:
        return Response(e.to_dict(), status=400)  # details["missing"] lists fields
    except ProviderError as e:
        if e.is_retryable:
            ...
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import (
    AuthenticationError,
    BaseApplicationError,
    ConflictError,
    ExternalServiceError,
    NotFoundError,
    ValidationError,
)

if TYPE_CHECKING:
    from typing import Any


# =============================================================================
# Billing Domain Exceptions
# =============================================================================


class BillingError(BaseApplicationError):
    """Base exception for billing operations."""

    default_error_code: str = "BILLING_ERROR"


class BillingNotFoundError(NotFoundError, BillingError):
    """
    Raised when a billing entity cannot be found.

    Example:
        subscription = Subscription.objects.filter(pk=subscription_id).first()
        if subscription is None:
            raise BillingNotFoundError(
                f"Subscription {subscription_id} not found",
                error_code="SUBSCRIPTION_NOT_FOUND",
                details={"subscription_id": str(subscription_id)},
            )
    """

    default_error_code: str = "BILLING_NOT_FOUND"


class StudentDataValidationError(ValidationError, BillingError):
    """
    Raised when a student's data is not complete enough for billing.

    ``details["missing"]`` lists the offending fields (full_name, email,
    cpf, phone) so the client can point the user at them. Raised before
    any network call is made.
    """

    default_error_code: str = "STUDENT_DATA_INCOMPLETE"

    def __init__(
        self,
        message: str,
        missing: list[str],
        errors: dict[str, str] | None = None,
        error_code: str | None = None,
    ):
        details: dict[str, Any] = {"missing": list(missing)}
        if errors:
            details["errors"] = errors
        super().__init__(message, error_code=error_code, details=details)
        self.missing = list(missing)


class WebhookAuthError(AuthenticationError, BillingError):
    """Raised when the webhook access token does not match the configured secret."""

    default_error_code: str = "INVALID_WEBHOOK_TOKEN"


class InvalidWebhookPayloadError(ValidationError, BillingError):
    """Raised when a webhook body has no payment object with an id."""

    default_error_code: str = "INVALID_WEBHOOK_PAYLOAD"


class PersistenceError(BillingError):
    """
    Raised when a local write fails.

    Typical case: the provider created the customer but saving its id on
    the student failed. The next resolution finds it again by CPF.
    """

    default_error_code: str = "PERSISTENCE_ERROR"
    http_status: int = 500


# =============================================================================
# Provider (Asaas) Exceptions
# =============================================================================


class ProviderError(ExternalServiceError, BillingError):
    """
    Base exception for all Asaas errors.

    Attributes:
        status_code: HTTP status returned by Asaas, if any
        provider_errors: ``errors`` list from the Asaas response body
        is_retryable: Whether the same call may succeed later

    Example:
        try:
            AsaasAdapter.create_customer(payload)
        except ProviderError as e:
            if e.is_retryable:
                raise self.retry(exc=e)
            raise
    """

    default_error_code: str = "ASAAS_ERROR"
    is_retryable: bool = False

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        status_code: int | None = None,
        provider_errors: list[dict[str, Any]] | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if status_code is not None:
            details["status_code"] = status_code
        if provider_errors:
            details["provider_errors"] = provider_errors
        super().__init__(message, error_code=error_code, details=details)
        self.status_code = status_code
        self.provider_errors = provider_errors or []


# -----------------------------------------------------------------------------
# Permanent Errors (do not retry)
# -----------------------------------------------------------------------------


class AsaasRequestRejectedError(ProviderError):
    """
    Asaas refused the request (HTTP 4xx).

    Customer creation answers this way for an already registered CPF,
    which is why the resolver falls back to a lookup by CPF.
    """

    default_error_code: str = "ASAAS_REQUEST_REJECTED"
    is_retryable: bool = False


class AsaasInvalidResponseError(ProviderError):
    """Asaas answered with a body that is not the expected JSON."""

    default_error_code: str = "ASAAS_INVALID_RESPONSE"
    is_retryable: bool = False


# -----------------------------------------------------------------------------
# Transient Errors (safe to retry)
# -----------------------------------------------------------------------------


class AsaasUnavailableError(ProviderError):
    """Asaas returned 5xx or could not be reached."""

    default_error_code: str = "ASAAS_UNAVAILABLE"
    is_retryable: bool = True
    http_status: int = 502


class AsaasTimeoutError(ProviderError):
    """The request exceeded ASAAS_API_TIMEOUT_SECONDS."""

    default_error_code: str = "ASAAS_TIMEOUT"
    is_retryable: bool = True
    http_status: int = 504


# =============================================================================
# Concurrency Control Exceptions
# =============================================================================


class LockAcquisitionError(ConflictError):
    """
    Raised when a distributed lock cannot be acquired in time.

    Example:
        with DistributedLock(f"billing:customer:{student_id}", timeout=10):
            ...
    """

    default_error_code: str = "LOCK_ACQUISITION_FAILED"


class InvalidStateTransitionError(ConflictError):
    """
    Raised when a subscription action is not allowed from the current state.

    Wraps django-fsm's TransitionNotAllowed in the standard error format.
    """

    default_error_code: str = "INVALID_STATE_TRANSITION"


class StaleRecordError(ConflictError):
    """
    Raised when a record changed since the caller last read it.

    The subscription ``version`` field did not match the expected value.
    """

    default_error_code: str = "STALE_RECORD"
