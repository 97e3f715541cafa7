"""
Validators for Brazilian personal data used in billing.

This module provides:
- Field-level checks (full name, email, CPF, phone, CEP)
- Django model field validators built on those checks
- validate_student_billing_data(): the full pre-flight check a student must
  pass before a billing customer is created for them
- build_asaas_customer_payload(): the normalized customer payload

Usage:
    from toolkit.validators import (
        StudentBillingData,
        build_asaas_customer_payload,
        validate_student_billing_data,
    )

    data = StudentBillingData(
        full_name="maria da silva",
        email="Maria@Example.com",
        cpf="529.982.247-25",
        phone="(11) 98765-4321",
    )
    result = validate_student_billing_data(data)
    if result.valid:
        payload = build_asaas_customer_payload(data)

Note:
    A malformed CEP is only a warning; the provider accepts a placeholder
    postal code.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from django.core.exceptions import ValidationError

from toolkit.helpers import only_digits

EMAIL_REGEX = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# Placeholder address block sent when the student has none on file
DEFAULT_ADDRESS = "Não informado"
DEFAULT_ADDRESS_NUMBER = "S/N"
DEFAULT_PROVINCE = "Centro"
DEFAULT_CITY = "Não informado"
DEFAULT_STATE = "SP"
DEFAULT_POSTAL_CODE = "00000000"


# =============================================================================
# Data Types
# =============================================================================


@dataclass(frozen=True)
class StudentBillingData:
    """Billing-relevant snapshot of a student. Hashable, so it can key caches."""

    full_name: str | None
    email: str | None
    cpf: str | None
    phone: str | None
    address: str | None = None
    postal_code: str | None = None


@dataclass
class DataIssue:
    """
    A single problem found in student data.

    Attributes:
        field: One of full_name, email, cpf, phone, address, postal_code
        code: Machine-readable code (INVALID_CPF, ...)
        message: Human-readable description
        severity: "error" blocks customer creation, "warning" does not
    """

    field: str
    code: str
    message: str
    severity: str = "error"


@dataclass
class StudentDataValidation:
    """Outcome of validate_student_billing_data()."""

    errors: list[DataIssue] = field(default_factory=list)
    warnings: list[DataIssue] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    @property
    def missing_fields(self) -> list[str]:
        """Names of the fields that must be fixed, in check order."""
        return [issue.field for issue in self.errors]


# =============================================================================
# Field Checks
# =============================================================================
# Each check returns an error message, or None when the value is acceptable.


def check_full_name(value: str | None) -> str | None:
    if not value or not value.strip():
        return "Full name is required"
    trimmed = value.strip()
    if len(trimmed) < 2:
        return "Full name is too short"
    if len(trimmed.split()) < 2:
        return "First and last name are required"
    return None


def check_email(value: str | None) -> str | None:
    if not value or not value.strip():
        return "Email is required"
    if not EMAIL_REGEX.match(value.strip().lower()):
        return "Invalid email format"
    return None


def is_valid_cpf_checksum(digits: str) -> bool:
    """Verify both CPF check digits for an 11-digit string."""
    for position in (9, 10):
        total = sum(int(digits[i]) * (position + 1 - i) for i in range(position))
        remainder = (total * 10) % 11
        if remainder == 10:
            remainder = 0
        if remainder != int(digits[position]):
            return False
    return True


def check_cpf(value: str | None) -> str | None:
    if not value:
        return "CPF is required"
    digits = only_digits(value)
    if len(digits) != 11:
        return "CPF must have 11 digits"
    if digits == digits[0] * 11:
        return "CPF with repeated digits is invalid"
    if not is_valid_cpf_checksum(digits):
        return "CPF check digits are invalid"
    return None


def check_phone(value: str | None) -> str | None:
    if not value:
        return "Phone is required"
    digits = only_digits(value)
    if len(digits) not in (10, 11):
        return "Phone must have 10 or 11 digits"
    if not 11 <= int(digits[:2]) <= 99:
        return "Invalid area code"
    return None


def check_cep(value: str | None) -> str | None:
    # Optional field
    if not value:
        return None
    if len(only_digits(value)) != 8:
        return "CEP must have 8 digits"
    return None


# =============================================================================
# Django Field Validators
# =============================================================================


def validate_cpf(value: str):
    """
    Django validator for CPF fields.

    Raises:
        ValidationError: If the CPF is malformed or fails the checksum
    """
    error = check_cpf(value)
    if error:
        raise ValidationError(error)


def validate_phone_number(value: str):
    """
    Django validator for Brazilian phone numbers (DDD + number).

    Accepts any punctuation: "(11) 98765-4321", "11987654321".

    Raises:
        ValidationError: If the number has the wrong length or area code
    """
    error = check_phone(value)
    if error:
        raise ValidationError(error)


def validate_cep(value: str):
    """Django validator for CEP (postal code) fields."""
    error = check_cep(value)
    if error:
        raise ValidationError(error)


# =============================================================================
# Normalization
# =============================================================================


def normalize_name(value: str) -> str:
    """Collapse whitespace and title-case each word."""
    return " ".join(word[:1].upper() + word[1:].lower() for word in value.split())


def normalize_email(value: str) -> str:
    return value.strip().lower()


# =============================================================================
# Student Checks
# =============================================================================


def validate_student_billing_data(data: StudentBillingData) -> StudentDataValidation:
    """
    Check everything the billing provider needs to create a customer.

    Errors are reported for full_name, email, cpf and phone; a malformed
    postal code or a very short address only produce warnings.

    Args:
        data: Student snapshot to check

    Returns:
        StudentDataValidation listing errors and warnings
    """
    result = StudentDataValidation()

    checks = (
        ("full_name", "INVALID_NAME", check_full_name(data.full_name)),
        ("email", "INVALID_EMAIL", check_email(data.email)),
        ("cpf", "INVALID_CPF", check_cpf(data.cpf)),
        ("phone", "INVALID_PHONE", check_phone(data.phone)),
    )
    for field_name, code, message in checks:
        if message:
            result.errors.append(DataIssue(field_name, code, message))

    if data.address and len(data.address.strip()) < 10:
        result.warnings.append(
            DataIssue("address", "SHORT_ADDRESS", "Address is very short", "warning")
        )
    cep_error = check_cep(data.postal_code)
    if cep_error:
        result.warnings.append(DataIssue("postal_code", "INVALID_CEP", cep_error, "warning"))

    return result


def build_asaas_customer_payload(data: StudentBillingData) -> dict[str, str]:
    """
    Build the customer-creation payload from already validated data.

    CPF and phone are sent as digits only; missing address fields are
    filled with the placeholder block.
    """
    phone = only_digits(data.phone or "")
    postal_code = only_digits(data.postal_code or "")
    return {
        "name": normalize_name(data.full_name or ""),
        "email": normalize_email(data.email or ""),
        "cpfCnpj": only_digits(data.cpf or ""),
        "phone": phone,
        "mobilePhone": phone,
        "address": (data.address or "").strip() or DEFAULT_ADDRESS,
        "addressNumber": DEFAULT_ADDRESS_NUMBER,
        "complement": "",
        "province": DEFAULT_PROVINCE,
        "city": DEFAULT_CITY,
        "state": DEFAULT_STATE,
        "postalCode": postal_code if len(postal_code) == 8 else DEFAULT_POSTAL_CODE,
    }
