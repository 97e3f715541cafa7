"""
Pytest fixtures for Asaas adapter tests.

``mock_requests`` replaces ``requests.request`` inside the adapter module;
``asaas_response`` builds fake responses with a status code and JSON body.
"""

from unittest.mock import MagicMock, patch

import pytest


def make_response(status_code: int = 200, body=None, json_error: bool = False) -> MagicMock:
    response = MagicMock(name="Response")
    response.status_code = status_code
    if json_error:
        response.json.side_effect = ValueError("No JSON object could be decoded")
    else:
        response.json.return_value = body if body is not None else {}
    return response


@pytest.fixture
def asaas_response():
    return make_response


@pytest.fixture
def mock_requests():
    with patch("billing.adapters.asaas_adapter.requests.request") as mock:
        yield mock


@pytest.fixture
def asaas_settings(settings):
    settings.ASAAS_API_KEY = "test-api-key"
    settings.ASAAS_ENVIRONMENT = "sandbox"
    settings.ASAAS_API_TIMEOUT_SECONDS = 15
    return settings
