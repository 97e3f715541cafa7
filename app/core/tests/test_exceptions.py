"""Tests for the application exception hierarchy."""

from core.exceptions import (
    BaseApplicationError,
    ConflictError,
    ExternalServiceError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)

from billing.exceptions import (
    AsaasTimeoutError,
    BillingNotFoundError,
    PersistenceError,
    StaleRecordError,
    StudentDataValidationError,
    WebhookAuthError,
)


class TestBaseApplicationError:
    def test_to_dict(self):
        error = NotFoundError(
            "Student 42 not found",
            error_code="STUDENT_NOT_FOUND",
            details={"student_id": "42"},
        )

        assert error.to_dict() == {
            "error": "Student 42 not found",
            "error_code": "STUDENT_NOT_FOUND",
            "details": {"student_id": "42"},
        }

    def test_default_code_and_status(self):
        error = BaseApplicationError("oops")

        assert error.error_code == "APPLICATION_ERROR"
        assert error.http_status == 400
        assert str(error) == "[APPLICATION_ERROR] oops"


class TestHttpStatuses:
    def test_core_statuses(self):
        assert ValidationError("x").http_status == 400
        assert PermissionDeniedError("x").http_status == 403
        assert NotFoundError("x").http_status == 404
        assert ConflictError("x").http_status == 409
        assert ExternalServiceError("x").http_status == 502

    def test_billing_statuses(self):
        assert WebhookAuthError("x").http_status == 401
        assert BillingNotFoundError("x").http_status == 404
        assert StaleRecordError("x").http_status == 409
        assert PersistenceError("x").http_status == 500
        assert AsaasTimeoutError("x").http_status == 504

    def test_student_data_error_lists_missing_fields(self):
        error = StudentDataValidationError(
            "incomplete", missing=["cpf", "phone"], errors={"cpf": "CPF is required"}
        )

        assert error.details == {
            "missing": ["cpf", "phone"],
            "errors": {"cpf": "CPF is required"},
        }
        assert isinstance(error, ValidationError)
