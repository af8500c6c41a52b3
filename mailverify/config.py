"""
Configuration Module

Service-wide constants and environment-driven settings.
"""

import os
import re
import tempfile
from dataclasses import dataclass


API_VERSION = 'v1'
BASE_PATH = '/api/v1'

# Declared for API consumers; nothing enforces them yet.
RATE_LIMIT_REQUESTS_PER_MINUTE = 60
RATE_LIMIT_BURST = 10

DNS_LOOKUP_TIMEOUT = 5.0  # seconds
DNS_CACHE_TTL = 300.0
DNS_NEGATIVE_CACHE_TTL = 60.0

MAX_FILE_SIZE_MB = 10
MAX_EMAILS_PER_BATCH = 1000
MAX_EMAILS_FREE_TIER = 100
SUPPORTED_FORMATS = ('xlsx', 'xls', 'csv')
MIME_TYPES = {
    'xlsx': ['application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'],
    'xls': ['application/vnd.ms-excel'],
    'csv': ['text/csv', 'application/csv'],
}

BATCH_CHUNK_SIZE = 5
BATCH_DELAY_MS = 100

BASIC_FORMAT = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
EXTRACTION_PATTERN = re.compile(r'\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b')
ARTIFACT_ID_PATTERN = re.compile(r'^[a-zA-Z0-9-]+$')


class ErrorCodes:
    INVALID_EMAIL_FORMAT = 'invalid_email_format'
    DOMAIN_NOT_FOUND = 'domain_not_found'
    NO_MX_RECORDS = 'no_mx_records'
    FILE_TOO_LARGE = 'file_too_large'
    UNSUPPORTED_FORMAT = 'unsupported_format'
    NO_EMAILS_FOUND = 'no_emails_found'
    EXTRACTION_FAILED = 'extraction_failed'
    RATE_LIMIT_EXCEEDED = 'rate_limit_exceeded'
    INTERNAL_ERROR = 'internal_error'
    TIMEOUT_ERROR = 'timeout_error'
    DNS_RESOLUTION_FAILED = 'dns_resolution_failed'
    INVALID_PARAMETERS = 'invalid_parameters'
    MISSING_FILE_ID = 'missing_file_id'
    INVALID_FILE_ID = 'invalid_file_id'
    FILE_NOT_FOUND = 'file_not_found'
    NOT_FOUND = 'not_found'
    METHOD_NOT_ALLOWED = 'method_not_allowed'


class Messages:
    EMAIL_VALID = 'Email address is valid and deliverable'
    INVALID_EMAIL = 'Invalid email format'
    MISSING_DOMAIN = 'Invalid email format - missing domain'
    DOMAIN_MISSING = "Domain '{domain}' does not exist"
    DOMAIN_NO_MX = "Domain '{domain}' has no MX records"
    EMAIL_REQUIRED = 'Email address is required'
    FILE_REQUIRED = 'File is required'
    FILE_TOO_LARGE = 'File size exceeds the maximum allowed limit'
    UNSUPPORTED_FILE = 'Unsupported file format. Please upload Excel (.xlsx, .xls) or CSV files.'
    NO_EMAILS_EXTRACTED = 'No email addresses found in the uploaded file'
    DNS_TIMEOUT = 'DNS lookup timeout'
    INTERNAL_ERROR = 'An internal error occurred'


def _env_bool(name: str, default: str = 'false') -> bool:
    return os.environ.get(name, default).lower() == 'true'


@dataclass(frozen=True)
class Settings:
    """
    Runtime settings read from the environment.

    Attributes:
        environment: Deployment environment name ('production' hides internal error messages)
        check_smtp: Whether the derived SMTP flag is reported by default
        dns_timeout: Per-lookup deadline in seconds
        cache_ttl: Lifetime of positive DNS cache entries in seconds
        negative_cache_ttl: Lifetime of cached failed lookups in seconds
        max_emails: Cap on emails extracted from one upload
        chunk_size: Emails validated concurrently per batch chunk
        delay_ms: Pause between batch chunks
        artifact_dir: Directory for generated spreadsheets
        log_level: Root logging level name
    """
    environment: str = 'development'
    check_smtp: bool = False
    dns_timeout: float = DNS_LOOKUP_TIMEOUT
    cache_ttl: float = DNS_CACHE_TTL
    negative_cache_ttl: float = DNS_NEGATIVE_CACHE_TTL
    max_emails: int = MAX_EMAILS_FREE_TIER
    chunk_size: int = BATCH_CHUNK_SIZE
    delay_ms: int = BATCH_DELAY_MS
    artifact_dir: str = tempfile.gettempdir()
    log_level: str = 'INFO'

    @property
    def is_production(self) -> bool:
        return self.environment == 'production'

    @classmethod
    def from_env(cls) -> 'Settings':
        """Build settings from environment variables, falling back to defaults."""
        return cls(
            environment=os.environ.get('ENVIRONMENT', 'development'),
            check_smtp=_env_bool('ENABLE_SMTP_CHECK'),
            dns_timeout=float(os.environ.get('DNS_TIMEOUT', DNS_LOOKUP_TIMEOUT)),
            cache_ttl=float(os.environ.get('DNS_CACHE_TTL', DNS_CACHE_TTL)),
            negative_cache_ttl=float(os.environ.get('DNS_NEGATIVE_CACHE_TTL', DNS_NEGATIVE_CACHE_TTL)),
            max_emails=int(os.environ.get('MAX_EMAILS_PER_BATCH', MAX_EMAILS_FREE_TIER)),
            chunk_size=int(os.environ.get('BATCH_CHUNK_SIZE', BATCH_CHUNK_SIZE)),
            delay_ms=int(os.environ.get('BATCH_DELAY_MS', BATCH_DELAY_MS)),
            artifact_dir=os.environ.get('ARTIFACT_DIR', tempfile.gettempdir()),
            log_level=os.environ.get('LOG_LEVEL', 'INFO').upper(),
        )
