"""
Email Validator Module

Contains the EmailValidator class for validating single email addresses
and batches of them.
"""

import asyncio
import logging
import time
from typing import Optional, List

from .config import BASIC_FORMAT, BATCH_CHUNK_SIZE, BATCH_DELAY_MS, ErrorCodes, Messages
from .domain_validator import DomainValidator, deliverability
from .errors import ApiError, AppError, ValidationError
from .models import Checks, Deliverability, DomainRecord, ValidationResult

logger = logging.getLogger(__name__)


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


class EmailValidator:
    """
    Validates email addresses by format and by the MX records of their domain.

    This validator performs, for each address:
    - Normalization (trim, lower-case)
    - Basic format validation using regex
    - Domain MX lookup through the DomainValidator (cached, with a deadline)
    - Optional SMTP flag, derived from MX presence only

    Malformed input never raises; it produces an invalid ValidationResult.
    DNS timeouts raise DNSTimeoutError.

    Example:
        >>> validator = EmailValidator(DomainValidator(MockDNSService(), DNSCache()))
        >>> asyncio.run(validator.validate_email('not-an-email')).reason
        'Invalid email format'
    """

    def __init__(self, domain_validator: DomainValidator, check_smtp: bool = False):
        """
        Initialize the EmailValidator.

        Args:
            domain_validator: Performs cached MX lookups
            check_smtp: Whether results carry the derived SMTP flag by default
        """
        self.domain_validator = domain_validator
        self.check_smtp = check_smtp

    @staticmethod
    def normalize(email: str) -> str:
        return email.strip().lower()

    @staticmethod
    def validate_format(email: str) -> bool:
        return bool(BASIC_FORMAT.match(email))

    @staticmethod
    def extract_domain(email: str) -> str:
        """
        Split the domain off an email address.

        Args:
            email: The normalized email address

        Returns:
            The part after '@'

        Raises:
            ValidationError: The address does not contain exactly one '@'
        """
        parts = email.split('@')
        if len(parts) != 2:
            raise ValidationError(Messages.MISSING_DOMAIN, param='email')
        return parts[1]

    async def validate_email(self, email, check_smtp: Optional[bool] = None) -> ValidationResult:
        """
        Validate an email address.

        Args:
            email: The raw email address
            check_smtp: Override the validator's default for the SMTP flag

        Returns:
            ValidationResult object with validation details

        Raises:
            DNSTimeoutError: The domain lookup exceeded its deadline
            ApiError: The lookup failed unexpectedly
        """
        start = time.perf_counter()
        if check_smtp is None:
            check_smtp = self.check_smtp

        if not isinstance(email, str):
            return self._failed_result('', Messages.INVALID_EMAIL, start)

        normalized = self.normalize(email)
        # More than one '@' is reported apart from a plain format failure.
        try:
            domain = self.extract_domain(normalized) if '@' in normalized else ''
        except ValidationError as e:
            return self._failed_result(normalized, e.message, start)

        if not self.validate_format(normalized):
            return self._failed_result(normalized, Messages.INVALID_EMAIL, start)

        try:
            record = await self.domain_validator.validate(domain)
        except AppError:
            raise
        except Exception as e:
            raise ApiError(
                f"Email validation failed: {e}",
                code=ErrorCodes.DNS_RESOLUTION_FAILED,
            ) from e

        return ValidationResult(
            email=normalized,
            valid=record.exists and record.mx_count > 0,
            deliverable=deliverability(record),
            domain_record=record,
            reason=self._reason(record),
            checks=Checks(
                format=True,
                domain=record.exists,
                mx_records=record.mx_count,
                smtp=record.mx_count > 0 if check_smtp else None,
            ),
            elapsed_ms=_elapsed_ms(start),
        )

    async def validate_batch(self, emails: List[str],
                             max_concurrent: int = BATCH_CHUNK_SIZE,
                             delay_ms: int = BATCH_DELAY_MS) -> List[ValidationResult]:
        """
        Validate multiple email addresses.

        Emails are processed in consecutive chunks of ``max_concurrent``; a
        chunk runs concurrently and must finish before the next one starts,
        with a ``delay_ms`` pause in between. A failure on one email becomes
        an invalid placeholder result for that email only.

        Args:
            emails: List of email addresses to validate
            max_concurrent: Chunk size
            delay_ms: Pause between chunks in milliseconds

        Returns:
            List of ValidationResult objects, one per input, in input order
        """
        if max_concurrent < 1:
            raise ValueError(f"max_concurrent must be at least 1, got {max_concurrent}")

        total = len(emails)
        results: List[ValidationResult] = []
        batch_start = time.perf_counter()
        failures = 0

        for offset in range(0, total, max_concurrent):
            chunk = emails[offset:offset + max_concurrent]
            chunk_results = await asyncio.gather(*[self._validate_isolated(e) for e in chunk])
            failures += sum(1 for failed, _ in chunk_results if failed)
            results.extend(result for _, result in chunk_results)

            logger.debug(f"Validated {len(results)}/{total} emails")

            if offset + max_concurrent < total and delay_ms > 0:
                await asyncio.sleep(delay_ms / 1000)

        valid = sum(1 for r in results if r.valid)
        logger.info(
            f"Batch validation complete: total={total} valid={valid} "
            f"invalid={total - valid} failures={failures} "
            f"elapsed={_elapsed_ms(batch_start)}ms"
        )
        return results

    async def _validate_isolated(self, email) -> tuple[bool, ValidationResult]:
        start = time.perf_counter()
        try:
            return False, await self.validate_email(email)
        except Exception as e:
            logger.warning(f"Validation of {email!r} failed: {e}")
            normalized = self.normalize(email) if isinstance(email, str) else ''
            return True, self._failed_result(
                normalized, str(e) or 'Validation failed', start,
                deliverable=Deliverability.UNKNOWN,
            )

    @staticmethod
    def _reason(record: DomainRecord) -> str:
        if not record.exists:
            return Messages.DOMAIN_MISSING.format(domain=record.domain)
        if record.mx_count == 0:
            return Messages.DOMAIN_NO_MX.format(domain=record.domain)
        return Messages.EMAIL_VALID

    @staticmethod
    def _failed_result(email: str, reason: str, start: float,
                       deliverable: Deliverability = Deliverability.UNDELIVERABLE) -> ValidationResult:
        domain = email.split('@')[1] if '@' in email else ''
        return ValidationResult(
            email=email,
            valid=False,
            deliverable=deliverable,
            domain_record=DomainRecord.missing(domain),
            reason=reason,
            checks=Checks(format=False, domain=False, mx_records=0),
            elapsed_ms=_elapsed_ms(start),
        )
