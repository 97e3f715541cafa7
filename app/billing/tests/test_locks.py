"""
Tests for concurrency control utilities.

DistributedLock runs against the local-memory cache configured for tests;
ensure_version and check_version against the test database.
"""

import uuid

import pytest
from django.core.cache import cache
from django.db import transaction

from billing.exceptions import BillingNotFoundError, LockAcquisitionError, StaleRecordError
from billing.locks import DistributedLock, check_version, ensure_version
from billing.models import Subscription


class TestDistributedLock:
    """Tests for DistributedLock class."""

    def test_acquire_sets_prefixed_key(self):
        lock = DistributedLock("billing:test", ttl=30)

        assert lock.acquire() is True
        assert cache.get("lock:billing:test") == lock._token

    def test_each_acquisition_gets_unique_token(self):
        lock1 = DistributedLock("billing:a")
        lock2 = DistributedLock("billing:b")

        lock1.acquire()
        lock2.acquire()

        assert lock1._token != lock2._token

    def test_times_out_when_held(self):
        DistributedLock("billing:busy").acquire()
        waiter = DistributedLock("billing:busy", timeout=0.1)

        with pytest.raises(LockAcquisitionError) as exc_info:
            waiter.acquire()

        assert exc_info.value.details == {"key": "lock:billing:busy", "timeout": 0.1}
        assert waiter._token is None

    def test_release_frees_the_key(self):
        lock = DistributedLock("billing:test")
        lock.acquire()

        assert lock.release() is True
        assert cache.get("lock:billing:test") is None

    def test_release_without_acquire_returns_false(self):
        assert DistributedLock("billing:test").release() is False

    def test_release_does_not_delete_another_holders_lock(self):
        lock = DistributedLock("billing:test")
        lock.acquire()
        # Our lock expired and someone else took the key
        cache.set("lock:billing:test", "other-token")

        assert lock.release() is False
        assert cache.get("lock:billing:test") == "other-token"

    def test_context_manager_releases_on_exception(self):
        with pytest.raises(RuntimeError):
            with DistributedLock("billing:test"):
                raise RuntimeError("boom")

        assert cache.get("lock:billing:test") is None


@pytest.mark.django_db
class TestEnsureVersion:
    """Tests for the lock-free version pre-check."""

    def test_passes_at_expected_version(self, pending_subscription):
        ensure_version(Subscription, pending_subscription.pk, expected_version=1)

    def test_raises_when_version_moved_on(self, pending_subscription):
        pending_subscription.description = "changed"
        pending_subscription.save()

        with pytest.raises(StaleRecordError) as exc_info:
            ensure_version(Subscription, pending_subscription.pk, expected_version=1)

        assert exc_info.value.details["expected_version"] == 1
        assert exc_info.value.details["current_version"] == 2

    def test_raises_not_found(self, db):
        with pytest.raises(BillingNotFoundError):
            ensure_version(Subscription, uuid.uuid4(), expected_version=1)


@pytest.mark.django_db
class TestCheckVersion:
    """Tests for optimistic locking on Subscription."""

    def test_returns_locked_record_at_expected_version(self, pending_subscription):
        with transaction.atomic():
            locked = check_version(Subscription, pending_subscription.pk, expected_version=1)

        assert locked.pk == pending_subscription.pk

    def test_raises_when_version_moved_on(self, pending_subscription):
        pending_subscription.description = "changed"
        pending_subscription.save()
        assert pending_subscription.version == 2

        with pytest.raises(StaleRecordError) as exc_info:
            with transaction.atomic():
                check_version(Subscription, pending_subscription.pk, expected_version=1)

        assert exc_info.value.details["current_version"] == 2

    def test_raises_not_found(self, db):
        with pytest.raises(BillingNotFoundError) as exc_info:
            with transaction.atomic():
                check_version(Subscription, uuid.uuid4(), expected_version=1)

        assert exc_info.value.error_code == "SUBSCRIPTION_NOT_FOUND"
