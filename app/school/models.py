"""
School models read and written by billing.

- Student: a student user's billing profile and Asaas customer reference
- SchoolClass: a class students enroll in
- Enrollment: a student's place in a class; active once tuition is paid

Usage:
    enrollment = Enrollment.objects.create(student=student, school_class=school_class)
    assert enrollment.is_active is False  # until the first payment is received
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel
from toolkit.validators import (
    StudentBillingData,
    validate_cep,
    validate_cpf,
    validate_phone_number,
)


class Student(UUIDPrimaryKeyMixin, BaseModel):
    """
    Billing profile of a student.

    Fields:
        user: Login account (role=student)
        full_name, email, cpf, whatsapp: data sent to the billing provider
        address, postal_code: optional address data
        asaas_customer_id: billing customer reference, set once resolved
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="student",
    )
    full_name = models.CharField(max_length=200, blank=True)
    email = models.EmailField(blank=True)
    cpf = models.CharField(
        max_length=14,
        blank=True,
        validators=[validate_cpf],
        help_text="CPF, with or without punctuation",
    )
    whatsapp = models.CharField(
        max_length=20,
        blank=True,
        validators=[validate_phone_number],
    )
    address = models.CharField(max_length=255, blank=True)
    postal_code = models.CharField(
        max_length=9,
        blank=True,
        validators=[validate_cep],
    )
    asaas_customer_id = models.CharField(
        max_length=64,
        null=True,
        blank=True,
        unique=True,
        help_text="Asaas customer ID (cus_xxx)",
    )

    class Meta:
        ordering = ["full_name"]

    def __str__(self) -> str:
        return self.full_name or str(self.user)

    def billing_data(self) -> StudentBillingData:
        """Snapshot of the fields the billing provider needs."""
        return StudentBillingData(
            full_name=self.full_name,
            email=self.email or self.user.email,
            cpf=self.cpf,
            phone=self.whatsapp,
            address=self.address,
            postal_code=self.postal_code,
        )


class SchoolClass(UUIDPrimaryKeyMixin, BaseModel):
    name = models.CharField(max_length=150)
    monthly_fee = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        help_text="Default monthly tuition in BRL",
    )

    class Meta:
        ordering = ["name"]
        verbose_name = "class"
        verbose_name_plural = "classes"

    def __str__(self) -> str:
        return self.name


class Enrollment(UUIDPrimaryKeyMixin, BaseModel):
    """
    A student's enrollment in a class.

    ``is_active`` flips to True when the first tuition payment is
    reconciled and back to False when the subscription is cancelled.
    """

    student = models.ForeignKey(
        Student,
        on_delete=models.PROTECT,
        related_name="enrollments",
    )
    school_class = models.ForeignKey(
        SchoolClass,
        on_delete=models.PROTECT,
        related_name="enrollments",
    )
    is_active = models.BooleanField(default=False, db_index=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["student", "school_class"],
                name="unique_enrollment_per_class",
            ),
        ]

    def __str__(self) -> str:
        state = "active" if self.is_active else "inactive"
        return f"Enrollment({self.student} in {self.school_class}, {state})"
