"""
Unit Tests for the error taxonomy and envelope mapping.
"""

import pytest

from mailverify.errors import (
    ApiError,
    DNSTimeoutError,
    EmptyExtractionError,
    FileProcessingError,
    RateLimitError,
    UnsupportedFormatError,
    ValidationError,
    get_status_code,
    is_client_error,
    is_retryable,
    to_api_error,
)


@pytest.mark.parametrize("error,status,error_type", [
    (ValidationError("bad"), 422, "validation_error"),
    (FileProcessingError("bad upload"), 400, "invalid_request_error"),
    (UnsupportedFormatError(), 400, "invalid_request_error"),
    (EmptyExtractionError(), 400, "invalid_request_error"),
    (RateLimitError(), 429, "rate_limit_error"),
    (DNSTimeoutError("slow.com"), 504, "api_error"),
    (ApiError("boom"), 500, "api_error"),
])
def test_status_and_type(error, status, error_type):
    """Test each error maps to its status and type."""
    assert get_status_code(error) == status
    assert to_api_error(error)['type'] == error_type


def test_envelope_fields():
    """Test the envelope fields."""
    body = to_api_error(ValidationError("Email address is required", param="email"))
    assert body == {
        'object': 'error',
        'type': 'validation_error',
        'code': 'invalid_email_format',
        'message': 'Email address is required',
        'param': 'email',
    }


def test_param_omitted_when_absent():
    """Test param is omitted when not set."""
    assert 'param' not in to_api_error(ApiError("boom"))


def test_timeout_error_code():
    """Test the timeout error code and message."""
    body = to_api_error(DNSTimeoutError("slow.com"))
    assert body['code'] == 'timeout_error'
    assert body['message'] == 'DNS lookup timeout'


def test_unexpected_exception_maps_to_internal_error():
    """Test unknown exceptions map to internal_error."""
    body = to_api_error(KeyError("missing"))
    assert body['type'] == 'api_error'
    assert body['code'] == 'internal_error'
    assert get_status_code(KeyError("missing")) == 500


def test_unexpected_exception_message_hidden_in_production():
    """Test internal messages are hidden in production."""
    body = to_api_error(RuntimeError("db password is hunter2"), production=True)
    assert body['message'] == 'An internal error occurred'


def test_retryable_and_client_errors():
    """Test retryable and client error classification."""
    assert is_retryable(DNSTimeoutError("slow.com")) is True
    assert is_retryable(ValidationError("bad")) is False
    assert is_retryable(RuntimeError("x")) is False
    assert is_client_error(UnsupportedFormatError()) is True
    assert is_client_error(ApiError("boom")) is False
