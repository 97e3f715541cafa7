"""
Helper functions for handling Brazilian personal data.

- Digit extraction for documents and phone numbers
- Masking (email, CPF, phone) so PII never reaches logs in full

Usage:
    from toolkit.helpers import mask_cpf, mask_email, only_digits

    only_digits("529.982.247-25")  # "52998224725"
    mask_cpf("52998224725")        # "***.***.*47-25"
    logger.info("Customer created", extra={"email": mask_email(email)})
"""

from __future__ import annotations

import re

_NON_DIGITS = re.compile(r"\D")


def only_digits(value: str) -> str:
    """Strip everything except 0-9."""
    return _NON_DIGITS.sub("", value or "")


def mask_email(email: str) -> str:
    """
    Mask email for logs.

    Keeps the first character and the domain visible.

    Example:
        mask_email("maria.silva@example.com")  # "m***@example.com"
    """
    if not email or "@" not in email:
        return "***"

    local, domain = email.rsplit("@", 1)
    masked_local = local[0] + "***" if len(local) > 1 else "***"
    return f"{masked_local}@{domain}"


def mask_cpf(cpf: str) -> str:
    """
    Mask a CPF, keeping the last three digits.

    Example:
        mask_cpf("529.982.247-25")  # "***.***.*47-25"
    """
    digits = only_digits(cpf)
    if len(digits) != 11:
        return "***"
    return f"***.***.*{digits[7:9]}-{digits[9:]}"


def mask_phone(phone: str) -> str:
    """
    Mask a phone number, keeping the area code and the last 4 digits.

    Example:
        mask_phone("(11) 98765-4321")  # "(11) ****-4321"
    """
    digits = only_digits(phone)
    if len(digits) < 6:
        return "***"
    return f"({digits[:2]}) ****-{digits[-4:]}"
