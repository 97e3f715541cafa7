"""
Tests for Payment and Subscription state machines.

Tests cover:
- Allowed transitions and their side effects
- Blocked transitions raising TransitionNotAllowed
- Subscription version auto-increment
- Append-only webhook log entries
"""

import datetime

import pytest
from django_fsm import TransitionNotAllowed, can_proceed

from billing.state_machines import PaymentStatus, SubscriptionStatus
from billing.tests.factories import PaymentFactory, SubscriptionFactory, WebhookLogEntryFactory


pytestmark = pytest.mark.django_db


class TestPaymentTransitions:
    def test_mark_paid_records_date_and_lowercased_method(self):
        payment = PaymentFactory()

        payment.mark_paid(paid_date=datetime.date(2026, 10, 19), payment_method="PIX")
        payment.save()
        payment.refresh_from_db()

        assert payment.status == PaymentStatus.PAID
        assert payment.paid_date == datetime.date(2026, 10, 19)
        assert payment.payment_method == "pix"

    def test_overdue_payment_can_be_paid(self):
        payment = PaymentFactory(status=PaymentStatus.OVERDUE)

        payment.mark_paid(paid_date=datetime.date(2026, 10, 19))

        assert payment.status == PaymentStatus.PAID

    @pytest.mark.parametrize("transition", ["mark_overdue", "cancel", "restore"])
    def test_paid_payment_only_leaves_through_refund(self, transition):
        payment = PaymentFactory(status=PaymentStatus.PAID)

        with pytest.raises(TransitionNotAllowed):
            getattr(payment, transition)()

        assert can_proceed(payment.refund)

    def test_refund_cancels_paid_payment(self):
        payment = PaymentFactory(status=PaymentStatus.PAID)

        payment.refund()

        assert payment.status == PaymentStatus.CANCELLED

    def test_restore_clears_paid_date(self):
        payment = PaymentFactory(status=PaymentStatus.CANCELLED, paid_date=datetime.date(2026, 1, 1))

        payment.restore()

        assert payment.status == PaymentStatus.PENDING
        assert payment.paid_date is None

    def test_cancelled_payment_cannot_be_paid(self):
        payment = PaymentFactory(status=PaymentStatus.CANCELLED)

        assert not can_proceed(payment.mark_paid)


class TestSubscriptionTransitions:
    def test_pause_sets_paused_at(self):
        subscription = SubscriptionFactory(status=SubscriptionStatus.ACTIVE)

        subscription.pause()

        assert subscription.status == SubscriptionStatus.PAUSED
        assert subscription.paused_at is not None

    def test_reactivate_only_from_paused(self):
        subscription = SubscriptionFactory(status=SubscriptionStatus.ACTIVE)

        assert not can_proceed(subscription.reactivate)

    def test_cancelled_is_terminal(self):
        subscription = SubscriptionFactory(status=SubscriptionStatus.CANCELLED)

        for transition in ("activate", "mark_overdue", "pause", "reactivate", "cancel"):
            assert not can_proceed(getattr(subscription, transition))

    def test_cancel_sets_cancelled_at(self):
        subscription = SubscriptionFactory(status=SubscriptionStatus.PAUSED)

        subscription.cancel()

        assert subscription.status == SubscriptionStatus.CANCELLED
        assert subscription.cancelled_at is not None

    def test_save_increments_version(self):
        subscription = SubscriptionFactory()
        assert subscription.version == 1

        subscription.activate()
        subscription.save()

        assert subscription.version == 2


class TestWebhookLogEntry:
    def test_entries_cannot_be_updated(self):
        entry = WebhookLogEntryFactory()
        entry.detail = "rewritten"

        with pytest.raises(ValueError):
            entry.save()
