"""
Data models for email verification.

Results are plain dataclasses with ``to_dict`` serializers matching the JSON
shapes the API returns.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Dict, Any


class Deliverability(str, Enum):
    DELIVERABLE = 'deliverable'
    UNDELIVERABLE = 'undeliverable'
    UNKNOWN = 'unknown'


@dataclass(frozen=True)
class MXRecord:
    """A mail exchanger with its preference (lower is preferred)."""
    priority: int
    exchange: str

    def to_dict(self) -> Dict[str, Any]:
        return {'priority': self.priority, 'exchange': self.exchange}


@dataclass(frozen=True)
class DomainRecord:
    """
    Outcome of an MX lookup for one domain.

    Attributes:
        domain: The domain that was looked up
        exists: Whether DNS knows the domain
        mx_records: MX records ordered by priority
    """
    domain: str
    exists: bool
    mx_records: List[MXRecord] = field(default_factory=list)

    def __post_init__(self):
        if not self.exists and self.mx_records:
            raise ValueError(f"Non-existent domain '{self.domain}' cannot carry MX records")

    @property
    def mx_count(self) -> int:
        return len(self.mx_records)

    @classmethod
    def missing(cls, domain: str) -> 'DomainRecord':
        return cls(domain=domain, exists=False, mx_records=[])

    def to_dict(self) -> Dict[str, Any]:
        return {
            'domain': self.domain,
            'exists': self.exists,
            'mx_records': [r.to_dict() for r in self.mx_records],
            'mx_count': self.mx_count,
        }


@dataclass(frozen=True)
class Checks:
    format: bool
    domain: bool
    mx_records: int
    smtp: Optional[bool] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'format': self.format,
            'domain': self.domain,
            'mx_records': self.mx_records,
        }
        if self.smtp is not None:
            result['smtp'] = self.smtp
        return result


@dataclass(frozen=True)
class ValidationResult:
    """
    Represents the result of validating one email address.

    Attributes:
        email: The normalized email address
        valid: True when the domain exists and has at least one MX record
        deliverable: Deliverability derived from the domain record
        domain_record: The DNS lookup outcome
        reason: Human-readable explanation
        checks: Individual check outcomes
        elapsed_ms: Time spent validating, in milliseconds
    """
    email: str
    valid: bool
    deliverable: Deliverability
    domain_record: DomainRecord
    reason: str
    checks: Checks
    elapsed_ms: int = 0

    @property
    def domain(self) -> str:
        return self.domain_record.domain

    def to_dict(self) -> Dict[str, Any]:
        """Convert result to dictionary format."""
        return {
            'email': self.email,
            'valid': self.valid,
            'deliverable': self.deliverable.value,
            'domain_info': self.domain_record.to_dict(),
            'reason': self.reason,
            'checks': self.checks.to_dict(),
            'validation_time_ms': self.elapsed_ms,
        }


@dataclass(frozen=True)
class FileInfo:
    name: str
    size: int
    type: str
    mime_type: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'size': self.size,
            'type': self.type,
            'mime_type': self.mime_type,
        }


@dataclass
class ExtractionResult:
    """
    Candidates pulled out of an uploaded file.

    Attributes:
        emails: Unique, filtered candidates in first-seen order
        truncated: True when more unique candidates existed than the cap allowed
        total_extracted: Raw pattern matches before deduplication
        duplicates_removed: Matches dropped as case-insensitive duplicates
    """
    emails: List[str]
    truncated: bool = False
    total_extracted: int = 0
    duplicates_removed: int = 0


@dataclass
class ProcessingStats:
    started_at: float
    completed_at: float
    elapsed_ms: int
    truncated: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'started_at': self.started_at,
            'completed_at': self.completed_at,
            'processing_time_ms': self.elapsed_ms,
            'truncated': self.truncated,
        }


@dataclass
class BatchResult:
    total_count: int
    valid_count: int
    invalid_count: int
    results: List[ValidationResult]
    file_info: FileInfo
    processing_stats: ProcessingStats
    download_id: Optional[str] = None

    @classmethod
    def from_results(cls, results: List[ValidationResult], file_info: FileInfo,
                     processing_stats: ProcessingStats,
                     download_id: Optional[str] = None) -> 'BatchResult':
        valid_count = sum(1 for r in results if r.valid)
        return cls(
            total_count=len(results),
            valid_count=valid_count,
            invalid_count=len(results) - valid_count,
            results=list(results),
            file_info=file_info,
            processing_stats=processing_stats,
            download_id=download_id,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total_count': self.total_count,
            'valid_count': self.valid_count,
            'invalid_count': self.invalid_count,
            'results': [r.to_dict() for r in self.results],
            'file_info': self.file_info.to_dict(),
            'processing_stats': self.processing_stats.to_dict(),
            'download_id': self.download_id,
        }
