"""
Errors Module

Exception taxonomy for the service and its mapping onto the JSON error envelope.
"""

from typing import Optional, Dict, Any

from .config import ErrorCodes, Messages


class AppError(Exception):
    """
    Base class for errors that carry an API error type, code and HTTP status.

    Attributes:
        type: One of api_error, invalid_request_error, validation_error, rate_limit_error
        code: Machine-readable error code
        message: Human-readable message
        status_code: HTTP status the error maps to
        param: Request parameter the error relates to, if any
    """
    type = 'api_error'
    code = ErrorCodes.INTERNAL_ERROR
    status_code = 500

    def __init__(self, message: str, code: Optional[str] = None,
                 param: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        self.param = param

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to the envelope's inner object."""
        body = {
            'object': 'error',
            'type': self.type,
            'code': self.code,
            'message': self.message,
        }
        if self.param:
            body['param'] = self.param
        return body


class ApiError(AppError):
    """Internal failure (500)."""


class ValidationError(AppError):
    """Malformed input (422)."""
    type = 'validation_error'
    code = ErrorCodes.INVALID_EMAIL_FORMAT
    status_code = 422


class InvalidRequestError(AppError):
    """Request could not be understood (400)."""
    type = 'invalid_request_error'
    code = ErrorCodes.INVALID_PARAMETERS
    status_code = 400


class FileProcessingError(InvalidRequestError):
    """Upload is unsupported, oversized, empty or unparseable (400)."""
    code = ErrorCodes.EXTRACTION_FAILED

    def __init__(self, message: str, code: Optional[str] = None, param: Optional[str] = 'file'):
        super().__init__(message, code=code, param=param)


class UnsupportedFormatError(FileProcessingError):
    code = ErrorCodes.UNSUPPORTED_FORMAT

    def __init__(self, message: str = Messages.UNSUPPORTED_FILE):
        super().__init__(message)


class FileTooLargeError(FileProcessingError):
    code = ErrorCodes.FILE_TOO_LARGE

    def __init__(self, message: str = Messages.FILE_TOO_LARGE):
        super().__init__(message)


class EmptyExtractionError(FileProcessingError):
    code = ErrorCodes.NO_EMAILS_FOUND

    def __init__(self, message: str = Messages.NO_EMAILS_EXTRACTED):
        super().__init__(message)


class ExtractionFailedError(FileProcessingError):
    code = ErrorCodes.EXTRACTION_FAILED

    def __init__(self, details: str = ''):
        super().__init__(f"Failed to extract emails from file. {details}".strip())


class RateLimitError(AppError):
    type = 'rate_limit_error'
    code = ErrorCodes.RATE_LIMIT_EXCEEDED
    status_code = 429

    def __init__(self, message: str = 'Too many requests'):
        super().__init__(message)


class DNSTimeoutError(AppError):
    """
    DNS lookup exceeded its deadline (504).

    Distinct from a domain that does not exist: callers must not read it as
    a negative lookup result.
    """
    code = ErrorCodes.TIMEOUT_ERROR
    status_code = 504

    def __init__(self, domain: str, message: str = Messages.DNS_TIMEOUT):
        super().__init__(message, param='email')
        self.domain = domain


class InvalidArtifactIdError(InvalidRequestError):
    code = ErrorCodes.INVALID_FILE_ID

    def __init__(self, message: str = 'Invalid file ID'):
        super().__init__(message, param='id')


class ArtifactNotFoundError(InvalidRequestError):
    code = ErrorCodes.FILE_NOT_FOUND
    status_code = 404

    def __init__(self, message: str = 'File not found or has expired'):
        super().__init__(message, param='id')


def to_api_error(error: BaseException, production: bool = False) -> Dict[str, Any]:
    """
    Map any exception to the error envelope's inner object.

    Args:
        error: The exception to convert
        production: Hide messages of unexpected exceptions when True

    Returns:
        Dictionary with object, type, code, message and optional param
    """
    if isinstance(error, AppError):
        return error.to_dict()

    return {
        'object': 'error',
        'type': 'api_error',
        'code': ErrorCodes.INTERNAL_ERROR,
        'message': Messages.INTERNAL_ERROR if production else str(error) or Messages.INTERNAL_ERROR,
    }


def get_status_code(error: BaseException) -> int:
    if isinstance(error, AppError):
        return error.status_code
    return 500


def is_retryable(error: BaseException) -> bool:
    """Server-side failures of type api_error may succeed on retry."""
    return isinstance(error, AppError) and error.type == 'api_error' and error.status_code >= 500


def is_client_error(error: BaseException) -> bool:
    return isinstance(error, AppError) and 400 <= error.status_code < 500
