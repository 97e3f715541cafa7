"""
Tests for the Asaas adapter.

Tests cover:
- Parameter validation and payload building
- Result parsing from Asaas bodies
- Request construction (base URL, headers, timeout)
- Error translation to domain exceptions
"""

import datetime
from decimal import Decimal

import pytest
import requests

from billing.adapters import (
    ASAAS_BASE_URLS,
    AsaasAdapter,
    CreatePaymentParams,
    CreateSubscriptionParams,
    PaymentResult,
)
from billing.exceptions import (
    AsaasInvalidResponseError,
    AsaasRequestRejectedError,
    AsaasTimeoutError,
    AsaasUnavailableError,
)


# =============================================================================
# Data Types
# =============================================================================


class TestCreateSubscriptionParams:
    def test_customer_required(self):
        with pytest.raises(ValueError, match="customer_id"):
            CreateSubscriptionParams(
                customer_id="",
                billing_type="PIX",
                value=Decimal("100"),
                next_due_date=datetime.date(2026, 11, 10),
            )

    def test_value_must_be_positive(self):
        with pytest.raises(ValueError, match="value"):
            CreateSubscriptionParams(
                customer_id="cus_1",
                billing_type="PIX",
                value=Decimal("0"),
                next_due_date=datetime.date(2026, 11, 10),
            )

    def test_payload_uses_penalty_defaults_from_settings(self, settings):
        settings.BILLING_FINE_PERCENT = 2.0
        settings.BILLING_INTEREST_PERCENT = 1.0
        settings.BILLING_EARLY_DISCOUNT_PERCENT = 5.0
        settings.BILLING_EARLY_DISCOUNT_DAYS = 5

        payload = CreateSubscriptionParams(
            customer_id="cus_1",
            billing_type="BOLETO",
            value=Decimal("250.00"),
            next_due_date=datetime.date(2026, 11, 10),
            description="Mensalidade - Ballet",
            external_reference="enr-1",
        ).to_payload()

        assert payload["customer"] == "cus_1"
        assert payload["billingType"] == "BOLETO"
        assert payload["nextDueDate"] == "2026-11-10"
        assert payload["value"] == 250.0
        assert payload["cycle"] == "MONTHLY"
        assert payload["fine"] == {"value": 2.0, "type": "PERCENTAGE"}
        assert payload["interest"] == {"value": 1.0, "type": "PERCENTAGE"}
        assert payload["discount"] == {"value": 5.0, "dueDateLimitDays": 5, "type": "PERCENTAGE"}


class TestCreatePaymentParams:
    def test_value_must_be_positive(self):
        with pytest.raises(ValueError, match="value"):
            CreatePaymentParams(
                customer_id="cus_1",
                billing_type="PIX",
                value=Decimal("-1"),
                due_date=datetime.date(2026, 3, 13),
            )

    def test_payload_carries_reference_penalties_and_callback(self, settings):
        settings.BILLING_FINE_PERCENT = 2.0
        settings.BILLING_INTEREST_PERCENT = 1.0

        payload = CreatePaymentParams(
            customer_id="cus_1",
            billing_type="UNDEFINED",
            value=Decimal("250.00"),
            due_date=datetime.date(2026, 3, 13),
            description="Matrícula - Ballet",
            external_reference="enr-1",
            success_url="https://escola.example.com/checkout/success?enrollment=enr-1",
        ).to_payload()

        assert payload["customer"] == "cus_1"
        assert payload["billingType"] == "UNDEFINED"
        assert payload["dueDate"] == "2026-03-13"
        assert payload["value"] == 250.0
        assert payload["externalReference"] == "enr-1"
        assert payload["postalService"] is False
        assert payload["fine"] == {"value": 2.0, "type": "PERCENTAGE"}
        assert payload["interest"] == {"value": 1.0, "type": "PERCENTAGE"}
        assert payload["callback"] == {
            "successUrl": "https://escola.example.com/checkout/success?enrollment=enr-1",
            "autoRedirect": True,
        }
        assert "cycle" not in payload

    def test_no_callback_without_success_url(self):
        payload = CreatePaymentParams(
            customer_id="cus_1",
            billing_type="PIX",
            value=Decimal("10"),
            due_date=datetime.date(2026, 3, 13),
            fine_percent=0,
        ).to_payload()

        assert "callback" not in payload
        assert payload["fine"]["value"] == 0


class TestPaymentResult:
    def test_parses_webhook_payment_object(self):
        result = PaymentResult.from_payload(
            {
                "id": "pay_1",
                "subscription": "sub_1",
                "customer": "cus_1",
                "status": "RECEIVED",
                "billingType": "PIX",
                "value": 250.0,
                "netValue": 248.01,
                "dueDate": "2026-11-10",
                "paymentDate": "2026-11-09",
                "invoiceUrl": "https://asaas.example/i/1",
            }
        )

        assert result.subscription_id == "sub_1"
        assert result.value == Decimal("250.0")
        assert result.net_value == Decimal("248.01")
        assert result.due_date == datetime.date(2026, 11, 10)
        assert result.payment_date == datetime.date(2026, 11, 9)
        assert result.invoice_url == "https://asaas.example/i/1"

    def test_client_payment_date_is_fallback(self):
        result = PaymentResult.from_payload({"id": "pay_1", "clientPaymentDate": "2026-11-08"})

        assert result.payment_date == datetime.date(2026, 11, 8)

    def test_tolerates_missing_and_malformed_fields(self):
        result = PaymentResult.from_payload({"id": "pay_1", "value": "abc", "dueDate": "soon"})

        assert result.subscription_id is None
        assert result.value is None
        assert result.due_date is None
        assert result.payment_date is None


# =============================================================================
# Requests
# =============================================================================


class TestRequestConstruction:
    def test_create_customer_posts_to_sandbox(self, asaas_settings, mock_requests, asaas_response):
        mock_requests.return_value = asaas_response(200, {"id": "cus_1", "name": "Maria"})

        customer = AsaasAdapter.create_customer({"name": "Maria", "cpfCnpj": "52998224725"})

        assert customer.id == "cus_1"
        args, kwargs = mock_requests.call_args
        assert args == ("POST", f"{ASAAS_BASE_URLS['sandbox']}/customers")
        assert kwargs["headers"]["access_token"] == "test-api-key"
        assert kwargs["json"] == {"name": "Maria", "cpfCnpj": "52998224725"}
        assert kwargs["timeout"] == 15

    def test_production_base_url(self, asaas_settings, mock_requests, asaas_response):
        asaas_settings.ASAAS_ENVIRONMENT = "production"
        mock_requests.return_value = asaas_response(200, {"id": "sub_1", "deleted": True})

        AsaasAdapter.delete_subscription("sub_1")

        args, _ = mock_requests.call_args
        assert args == ("DELETE", "https://api.asaas.com/api/v3/subscriptions/sub_1")

    @pytest.mark.parametrize("configured, expected", [(1, 10), (15, 15), (120, 30)])
    def test_timeout_is_clamped(self, asaas_settings, mock_requests, asaas_response, configured, expected):
        asaas_settings.ASAAS_API_TIMEOUT_SECONDS = configured
        mock_requests.return_value = asaas_response(200, {"data": []})

        AsaasAdapter.find_customer_by_cpf("529.982.247-25")

        assert mock_requests.call_args.kwargs["timeout"] == expected

    def test_find_customer_by_cpf_sends_digits(self, asaas_settings, mock_requests, asaas_response):
        mock_requests.return_value = asaas_response(200, {"data": [{"id": "cus_9"}]})

        customer = AsaasAdapter.find_customer_by_cpf("529.982.247-25")

        assert customer.id == "cus_9"
        assert mock_requests.call_args.kwargs["params"] == {"cpfCnpj": "52998224725"}

    def test_find_customer_by_cpf_returns_none_without_match(
        self, asaas_settings, mock_requests, asaas_response
    ):
        mock_requests.return_value = asaas_response(200, {"data": []})

        assert AsaasAdapter.find_customer_by_cpf("52998224725") is None

    def test_update_subscription_status(self, asaas_settings, mock_requests, asaas_response):
        mock_requests.return_value = asaas_response(200, {"id": "sub_1", "status": "INACTIVE"})

        result = AsaasAdapter.update_subscription_status("sub_1", "INACTIVE")

        assert result.status == "INACTIVE"
        args, kwargs = mock_requests.call_args
        assert args[0] == "PUT"
        assert kwargs["json"] == {"status": "INACTIVE"}

    def test_list_subscription_payments_skips_items_without_id(
        self, asaas_settings, mock_requests, asaas_response
    ):
        mock_requests.return_value = asaas_response(
            200, {"data": [{"id": "pay_1", "status": "PENDING"}, {"status": "PENDING"}]}
        )

        payments = AsaasAdapter.list_subscription_payments("sub_1")

        assert [p.id for p in payments] == ["pay_1"]

    def test_create_payment_posts_to_payments(self, asaas_settings, mock_requests, asaas_response):
        mock_requests.return_value = asaas_response(
            200,
            {
                "id": "pay_once",
                "status": "PENDING",
                "billingType": "UNDEFINED",
                "value": 250.0,
                "dueDate": "2026-03-13",
                "externalReference": "enr-1",
                "invoiceUrl": "https://sandbox.asaas.com/i/pay_once",
            },
        )
        params = CreatePaymentParams(
            customer_id="cus_1",
            billing_type="UNDEFINED",
            value=Decimal("250.00"),
            due_date=datetime.date(2026, 3, 13),
            external_reference="enr-1",
        )

        payment = AsaasAdapter.create_payment(params)

        assert payment.id == "pay_once"
        assert payment.external_reference == "enr-1"
        assert payment.invoice_url == "https://sandbox.asaas.com/i/pay_once"
        args, kwargs = mock_requests.call_args
        assert args == ("POST", f"{ASAAS_BASE_URLS['sandbox']}/payments")
        assert kwargs["json"] == params.to_payload()

    def test_create_payment_rejected(self, asaas_settings, mock_requests, asaas_response):
        mock_requests.return_value = asaas_response(
            400, {"errors": [{"code": "invalid_value", "description": "Valor inválido"}]}
        )

        with pytest.raises(AsaasRequestRejectedError):
            AsaasAdapter.create_payment(
                CreatePaymentParams(
                    customer_id="cus_1",
                    billing_type="PIX",
                    value=Decimal("1"),
                    due_date=datetime.date(2026, 3, 13),
                )
            )


# =============================================================================
# Error Handling
# =============================================================================


class TestErrorHandling:
    def test_timeout(self, asaas_settings, mock_requests):
        mock_requests.side_effect = requests.Timeout("read timed out")

        with pytest.raises(AsaasTimeoutError) as exc_info:
            AsaasAdapter.create_customer({"cpfCnpj": "52998224725"})

        assert exc_info.value.error_code == "ASAAS_TIMEOUT"

    def test_connection_error(self, asaas_settings, mock_requests):
        mock_requests.side_effect = requests.ConnectionError("refused")

        with pytest.raises(AsaasUnavailableError) as exc_info:
            AsaasAdapter.create_customer({"cpfCnpj": "52998224725"})

        assert exc_info.value.error_code == "ASAAS_CONNECTION_ERROR"

    def test_server_error(self, asaas_settings, mock_requests, asaas_response):
        mock_requests.return_value = asaas_response(503, json_error=True)

        with pytest.raises(AsaasUnavailableError) as exc_info:
            AsaasAdapter.delete_subscription("sub_1")

        assert exc_info.value.status_code == 503

    def test_rejection_uses_provider_description(self, asaas_settings, mock_requests, asaas_response):
        errors = [{"code": "invalid_cpfCnpj", "description": "CPF já cadastrado"}]
        mock_requests.return_value = asaas_response(400, {"errors": errors})

        with pytest.raises(AsaasRequestRejectedError) as exc_info:
            AsaasAdapter.create_customer({"cpfCnpj": "52998224725"})

        assert exc_info.value.message == "CPF já cadastrado"
        assert exc_info.value.provider_errors == errors
        assert exc_info.value.details["status_code"] == 400

    def test_rejection_without_body(self, asaas_settings, mock_requests, asaas_response):
        mock_requests.return_value = asaas_response(404, json_error=True)

        with pytest.raises(AsaasRequestRejectedError, match="HTTP 404"):
            AsaasAdapter.update_subscription_status("sub_missing", "ACTIVE")

    def test_non_json_success_body(self, asaas_settings, mock_requests, asaas_response):
        mock_requests.return_value = asaas_response(200, json_error=True)

        with pytest.raises(AsaasInvalidResponseError):
            AsaasAdapter.create_customer({"cpfCnpj": "52998224725"})

    def test_response_without_id(self, asaas_settings, mock_requests, asaas_response):
        mock_requests.return_value = asaas_response(200, {"name": "Maria"})

        with pytest.raises(AsaasInvalidResponseError):
            AsaasAdapter.create_customer({"cpfCnpj": "52998224725"})
