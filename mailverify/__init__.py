"""
Email Verification Package

Provides email validation with format checking, cached DNS MX record
verification, paced batch validation and spreadsheet extraction.
"""

from .artifacts import ArtifactStore
from .dns_cache import DNSCache
from .dns_service import DNSService, MockDNSService
from .domain_validator import DomainValidator
from .extractor import EmailExtractor
from .file_processor import FileProcessor
from .validator import EmailValidator

__all__ = [
    'ArtifactStore',
    'DNSCache',
    'DNSService',
    'MockDNSService',
    'DomainValidator',
    'EmailExtractor',
    'FileProcessor',
    'EmailValidator',
]
__version__ = '1.0.0'
