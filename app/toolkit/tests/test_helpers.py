"""
Tests for toolkit helpers (digit extraction and PII masking).
"""

from toolkit.helpers import mask_cpf, mask_email, mask_phone, only_digits


class TestOnlyDigits:
    def test_strips_punctuation(self):
        assert only_digits("529.982.247-25") == "52998224725"

    def test_none_safe(self):
        assert only_digits(None) == ""


class TestMasking:
    """PII never appears in full after masking."""

    def test_mask_cpf_keeps_last_digits(self):
        assert mask_cpf("529.982.247-25") == "***.***.*47-25"

    def test_mask_cpf_rejects_malformed(self):
        assert mask_cpf("123") == "***"

    def test_mask_email(self):
        assert mask_email("maria.silva@example.com") == "m***@example.com"
        assert mask_email("not-an-email") == "***"

    def test_mask_phone(self):
        assert mask_phone("(11) 98765-4321") == "(11) ****-4321"
