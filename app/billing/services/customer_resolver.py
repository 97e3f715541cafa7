"""
Billing customer resolution for students.

Ensures every student who is billed has exactly one Asaas customer, and
that the customer ID is stored on the student record.

Flow:
    1. Validate the student's data (before any network call)
    2. Return the stored customer ID when there is one
    3. Create the customer at Asaas
    4. On rejection (typically an already registered CPF), look the
       customer up by CPF and reuse it
    5. Store the ID on the student

Usage:
    from billing.services import BillingCustomerResolver

    resolver = BillingCustomerResolver()
    customer_id = resolver.ensure_customer(student.id)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.conf import settings
from django.db import DatabaseError

from core.services import BaseService

from billing.adapters import AsaasAdapter
from billing.cache import ValidationCache
from billing.exceptions import (
    AsaasRequestRejectedError,
    BillingNotFoundError,
    PersistenceError,
    StudentDataValidationError,
)
from billing.locks import DistributedLock
from school.models import Student
from toolkit.helpers import mask_cpf, mask_email, mask_phone
from toolkit.validators import (
    StudentDataValidation,
    build_asaas_customer_payload,
    validate_student_billing_data,
)

if TYPE_CHECKING:
    from typing import Any

    from toolkit.validators import StudentBillingData


# Lock TTL must outlast two provider calls at the maximum timeout
CUSTOMER_LOCK_TTL = 75
CUSTOMER_LOCK_TIMEOUT = 10.0

_default_cache: ValidationCache[StudentDataValidation] | None = None


def get_validation_cache() -> ValidationCache[StudentDataValidation]:
    """Process-wide validation cache, created on first use."""
    global _default_cache
    if _default_cache is None:
        _default_cache = ValidationCache(ttl_seconds=settings.BILLING_VALIDATION_CACHE_TTL_SECONDS)
    return _default_cache


class BillingCustomerResolver(BaseService):
    """
    Resolves the Asaas customer of a student.

    Args:
        cache: Validation cache; defaults to the process-wide instance
        adapter: Asaas adapter class; injectable for tests
    """

    def __init__(
        self,
        cache: ValidationCache[StudentDataValidation] | None = None,
        adapter: type[AsaasAdapter] | None = None,
    ) -> None:
        self.cache = cache if cache is not None else get_validation_cache()
        self.adapter = adapter or AsaasAdapter

    def ensure_customer(self, student_id: Any) -> str:
        """
        Return the student's Asaas customer ID, creating the customer if needed.

        Raises:
            BillingNotFoundError: No such student
            StudentDataValidationError: Data incomplete, ``missing`` lists the fields
            ProviderError: Asaas call failed
            PersistenceError: Customer exists at Asaas but could not be stored
            LockAcquisitionError: Another resolution for the student is running
        """
        log = self.get_logger()
        student = Student.objects.select_related("user").filter(pk=student_id).first()
        if student is None:
            raise BillingNotFoundError(
                f"Student {student_id} not found",
                error_code="STUDENT_NOT_FOUND",
                details={"student_id": str(student_id)},
            )

        data = student.billing_data()
        self.validate(student.pk, data)

        if student.asaas_customer_id:
            log.debug(
                "Customer already resolved",
                extra={"student_id": str(student.pk), "customer_id": student.asaas_customer_id},
            )
            return student.asaas_customer_id

        with DistributedLock(
            f"billing:customer:{student.pk}",
            ttl=CUSTOMER_LOCK_TTL,
            timeout=CUSTOMER_LOCK_TIMEOUT,
        ):
            # A concurrent resolution may have finished while we waited
            stored = (
                Student.objects.filter(pk=student.pk)
                .values_list("asaas_customer_id", flat=True)
                .first()
            )
            if stored:
                return stored

            customer_id = self._create_or_find(data)
            self._store(student, customer_id)

        self.cache.invalidate(student.pk)
        return customer_id

    def validate(self, student_pk: Any, data: StudentBillingData) -> StudentDataValidation:
        """
        Validate billing data, consulting the cache first.

        Raises:
            StudentDataValidationError: When any required field is invalid
        """
        key = (student_pk, data)
        validation = self.cache.get(key)
        if validation is None:
            validation = validate_student_billing_data(data)
            self.cache.set(key, validation)

        if not validation.valid:
            missing = validation.missing_fields
            self.get_logger().warning(
                "Student data incomplete for billing",
                extra={"student_id": str(student_pk), "missing": missing},
            )
            raise StudentDataValidationError(
                "Student data is incomplete for billing",
                missing=missing,
                errors={issue.field: issue.message for issue in validation.errors},
            )
        return validation

    def _create_or_find(self, data: StudentBillingData) -> str:
        payload = build_asaas_customer_payload(data)
        log = self.get_logger()
        try:
            customer = self.adapter.create_customer(payload)
            log.info(
                "Asaas customer created",
                extra={
                    "customer_id": customer.id,
                    "email": mask_email(payload["email"]),
                    "phone": mask_phone(payload["phone"]),
                },
            )
            return customer.id
        except AsaasRequestRejectedError as rejection:
            log.info(
                "Customer creation rejected, looking up by CPF",
                extra={"cpf": mask_cpf(payload["cpfCnpj"]), "error_code": rejection.error_code},
            )
            existing = self.adapter.find_customer_by_cpf(payload["cpfCnpj"])
            if existing is None:
                raise
            log.info("Reusing existing Asaas customer", extra={"customer_id": existing.id})
            return existing.id

    def _store(self, student: Student, customer_id: str) -> None:
        try:
            Student.objects.filter(pk=student.pk).update(asaas_customer_id=customer_id)
        except DatabaseError as e:
            self.get_logger().error(
                "Failed to store Asaas customer id",
                extra={"student_id": str(student.pk), "customer_id": customer_id},
                exc_info=True,
            )
            raise PersistenceError(
                "Customer was created at Asaas but could not be saved",
                details={"student_id": str(student.pk), "customer_id": customer_id},
            ) from e
        student.asaas_customer_id = customer_id
