"""
Concurrency control utilities for billing operations.

1. **Distributed Locks** (DistributedLock)
   - Mutual exclusion across processes through the Django cache
   - TTL prevents deadlocks from crashed processes
   - Use for: provider calls that must not run twice concurrently
     (creating the Asaas customer of a student)

2. **Optimistic Locking** (ensure_version, check_version)
   - Version-based conflict detection on Subscription
   - ensure_version before provider calls, check_version under the row lock
   - Use for: user actions that must apply to the state the user saw

The lock relies on ``cache.add`` being atomic, which holds for
django-redis (SET NX) and for the local-memory backend within a process.

Usage:

    from billing.locks import DistributedLock, check_version

    with DistributedLock(f"billing:customer:{student_id}", ttl=30):
        resolve_customer(student_id)

    with transaction.atomic():
        subscription = check_version(Subscription, subscription_id, expected_version=3)
        subscription.pause()
        subscription.save()  # Version auto-increments
"""

from __future__ import annotations

import time
import uuid as uuid_module
from typing import TYPE_CHECKING, TypeVar

from django.core.cache import cache
from django.db import models

from billing.exceptions import BillingNotFoundError, LockAcquisitionError, StaleRecordError

if TYPE_CHECKING:
    from typing import Any

T = TypeVar("T", bound=models.Model)


# =============================================================================
# Distributed Locks
# =============================================================================


class DistributedLock:
    """
    Cache-based distributed lock with TTL.

    Features:
        - Automatic TTL prevents deadlocks from crashed processes
        - Token-based ownership prevents release by another holder
        - Bounded wait: acquisition gives up after ``timeout`` seconds

    Example:
        lock = DistributedLock("billing:customer:42", ttl=30, timeout=5.0)
        try:
            with lock:
                create_customer()
        except LockAcquisitionError:
            handle_contention()

    Args:
        key: Lock identifier (prefixed with "lock:")
        ttl: Lock TTL in seconds (auto-releases after this time)
        timeout: Maximum wait time in seconds
    """

    poll_interval = 0.05

    def __init__(self, key: str, ttl: int = 30, timeout: float = 10.0) -> None:
        self.key = f"lock:{key}"
        self.ttl = ttl
        self.timeout = timeout
        self._token: str | None = None

    def acquire(self) -> bool:
        """
        Wait for the lock, up to ``timeout`` seconds.

        Raises:
            LockAcquisitionError: If the lock couldn't be acquired
        """
        token = str(uuid_module.uuid4())
        end_time = time.monotonic() + self.timeout
        while True:
            if cache.add(self.key, token, timeout=self.ttl):
                self._token = token
                return True
            if time.monotonic() >= end_time:
                break
            time.sleep(self.poll_interval)

        raise LockAcquisitionError(
            f"Failed to acquire lock '{self.key}' within {self.timeout}s",
            details={"key": self.key, "timeout": self.timeout},
        )

    def release(self) -> bool:
        """
        Release the lock if we hold it.

        Returns:
            True if the lock was released, False if we didn't hold it
        """
        if self._token is None:
            return False

        token, self._token = self._token, None
        if cache.get(self.key) != token:
            # Expired and possibly taken by someone else
            return False
        cache.delete(self.key)
        return True

    def __enter__(self) -> DistributedLock:
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.release()
        return False


# =============================================================================
# Optimistic Locking
# =============================================================================


def _verify(model_class: type[models.Model], pk: Any, expected_version: int, current: int | None) -> None:
    model_name = model_class.__name__
    if current is None:
        raise BillingNotFoundError(
            f"{model_name} {pk} not found",
            error_code=f"{model_name.upper()}_NOT_FOUND",
            details={"pk": str(pk)},
        )
    if current != expected_version:
        raise StaleRecordError(
            f"{model_name} {pk} has been modified "
            f"(expected version {expected_version}, current {current})",
            details={
                "pk": str(pk),
                "expected_version": expected_version,
                "current_version": current,
            },
        )


def ensure_version(model_class: type[T], pk: Any, expected_version: int) -> None:
    """
    Verify a record is still at ``expected_version`` without locking it.

    Used before side effects that cannot be rolled back (provider calls);
    check_version repeats the check under the row lock afterwards.

    Raises:
        StaleRecordError: The version moved on
        BillingNotFoundError: The record doesn't exist
    """
    current = model_class.objects.filter(pk=pk).values_list("version", flat=True).first()
    _verify(model_class, pk, expected_version, current)


def check_version(
    model_class: type[T],
    pk: Any,
    expected_version: int,
) -> T:
    """
    Lock a record for update, verifying it is still at ``expected_version``.

    Must be called inside ``transaction.atomic()``; the row lock is held
    until the outer transaction ends.

    Raises:
        StaleRecordError: The version moved on (concurrent modification)
        BillingNotFoundError: The record doesn't exist
    """
    instance = model_class.objects.select_for_update().filter(pk=pk).first()
    _verify(model_class, pk, expected_version, instance.version if instance else None)
    return instance


__all__ = [
    "DistributedLock",
    "check_version",
    "ensure_version",
]
