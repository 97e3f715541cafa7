"""
Adapters for external billing services.

All Asaas API calls go through AsaasAdapter to ensure consistent error
handling, timeouts and observability.

Usage:
    from billing.adapters import AsaasAdapter

    customer = AsaasAdapter.find_customer_by_cpf("52998224725")
"""

from billing.adapters.asaas_adapter import (
    ASAAS_BASE_URLS,
    AsaasAdapter,
    CreatePaymentParams,
    CreateSubscriptionParams,
    CustomerResult,
    PaymentResult,
    SubscriptionResult,
)

__all__ = [
    "ASAAS_BASE_URLS",
    "AsaasAdapter",
    "CreatePaymentParams",
    "CreateSubscriptionParams",
    "CustomerResult",
    "PaymentResult",
    "SubscriptionResult",
]
