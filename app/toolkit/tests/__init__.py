"""
Tests for the toolkit app.

- test_helpers.py: digit extraction and masking
- test_validators.py: CPF, phone, CEP and student billing data validation
"""
