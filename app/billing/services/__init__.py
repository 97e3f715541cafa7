"""
Billing services.

This module provides:
- BillingCustomerResolver: Ensures a student has one Asaas customer
- SubscriptionLifecycleService: Create, pause, cancel and reactivate subscriptions
- EnrollmentPaymentService: Pay an enrollment with a single charge
- upsert_payment: Mirror an Asaas charge locally, keyed by its provider ID
- activate_if_first_payment: Activate enrollment and subscription on a first payment

Usage:
    from billing.services import BillingCustomerResolver, SubscriptionLifecycleService

    customer_id = BillingCustomerResolver().ensure_customer(student.id)
    SubscriptionLifecycleService.cancel(subscription.id, request.user)
"""

from billing.services.activation import activate_if_first_payment
from billing.services.customer_resolver import BillingCustomerResolver, get_validation_cache
from billing.services.enrollment_payment import EnrollmentPaymentService
from billing.services.payments import UpsertResult, upsert_payment
from billing.services.subscription_service import (
    SubscriptionLifecycleService,
    compute_next_due_date,
)

__all__ = [
    "BillingCustomerResolver",
    "EnrollmentPaymentService",
    "SubscriptionLifecycleService",
    "UpsertResult",
    "activate_if_first_payment",
    "compute_next_due_date",
    "get_validation_cache",
    "upsert_payment",
]
