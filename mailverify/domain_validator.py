"""
Domain Validator Module

Classifies a domain from its MX records, consulting the DNS cache first.
"""

import asyncio
import logging

import dns.exception

from .config import DNS_LOOKUP_TIMEOUT
from .dns_cache import DNSCache
from .dns_service import DNSServiceBase, DomainNotFound
from .errors import DNSTimeoutError
from .models import Deliverability, DomainRecord

logger = logging.getLogger(__name__)


def deliverability(record: DomainRecord) -> Deliverability:
    """
    Derive deliverability from a domain record.

    Args:
        record: The lookup outcome

    Returns:
        DELIVERABLE when the domain exists with at least one MX record,
        UNDELIVERABLE otherwise
    """
    if not record.exists:
        return Deliverability.UNDELIVERABLE
    if record.mx_count == 0:
        return Deliverability.UNDELIVERABLE
    return Deliverability.DELIVERABLE


class DomainValidator:
    """
    Looks up a domain's MX records under a deadline.

    A lookup that runs past the deadline is cancelled and reported as
    DNSTimeoutError; it is not cached and not treated as a missing domain.
    Any other resolution failure yields a non-existent domain record, which
    is cached like a normal result.
    """

    def __init__(self, dns_service: DNSServiceBase, cache: DNSCache,
                 timeout: float = DNS_LOOKUP_TIMEOUT):
        """
        Initialize the DomainValidator.

        Args:
            dns_service: Service performing the actual MX lookups
            cache: Shared cache of lookup outcomes
            timeout: Lookup deadline in seconds
        """
        self.dns_service = dns_service
        self.cache = cache
        self.timeout = timeout

    async def validate(self, domain: str) -> DomainRecord:
        """
        Validate a domain.

        Args:
            domain: The domain to look up

        Returns:
            DomainRecord describing existence and MX records

        Raises:
            DNSTimeoutError: The lookup did not finish before the deadline
        """
        domain = domain.strip().lower()

        cached = self.cache.lookup(domain)
        if cached is not None:
            logger.debug(f"DNS cache hit for {domain}")
            return cached

        try:
            mx_records = await asyncio.wait_for(self.dns_service.resolve_mx(domain), self.timeout)
            record = DomainRecord(domain=domain, exists=True, mx_records=mx_records)
        except (asyncio.TimeoutError, dns.exception.Timeout) as e:
            logger.warning(f"DNS lookup for {domain} exceeded {self.timeout}s")
            raise DNSTimeoutError(domain) from e
        except DomainNotFound as e:
            logger.info(f"Domain {domain} does not resolve: {e.reason or 'unknown reason'}")
            record = DomainRecord.missing(domain)

        self.cache.store(domain, record)
        return record
