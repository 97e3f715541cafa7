"""
Toolkit - helpers for Brazilian personal data.

Key components:
    - validators.py: CPF, phone, CEP and email checks; student billing
      data validation and customer payload normalization
    - helpers.py: digit extraction and PII masking for logs

Note:
    This app has no models.
"""
