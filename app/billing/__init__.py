"""
Billing app for Asaas tuition payments.

This app handles:
- Asaas customer resolution for students
- Monthly tuition subscriptions (create, pause, cancel, reactivate)
- Payment webhook reconciliation and its audit log

Related apps:
    - school: Student, SchoolClass and Enrollment records billing updates
    - toolkit: Student data validation before any provider call

Usage:
    from billing.services import BillingCustomerResolver, SubscriptionLifecycleService

    customer_id = BillingCustomerResolver().ensure_customer(student.id)
    SubscriptionLifecycleService.pause(subscription.id, request.user)
"""
