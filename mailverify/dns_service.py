"""
DNS Service Module

Provides asynchronous MX lookups for email validation.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Optional, List, Dict, Union

import dns.asyncresolver
import dns.exception
import dns.resolver

from .models import MXRecord


class DomainNotFound(Exception):
    """Raised by DNS services when a domain cannot be resolved for a reason other than a timeout."""

    def __init__(self, domain: str, reason: str = ''):
        super().__init__(f"Domain '{domain}' could not be resolved{': ' + reason if reason else ''}")
        self.domain = domain
        self.reason = reason


class DNSServiceBase(ABC):
    """Abstract base class for DNS services."""

    @abstractmethod
    async def resolve_mx(self, domain: str) -> List[MXRecord]:
        """
        Get all MX records for a domain.

        Args:
            domain: The domain to check

        Returns:
            MX records sorted by priority; empty if the domain has none

        Raises:
            DomainNotFound: The domain does not resolve
            dns.exception.Timeout: The resolver gave up waiting
        """
        pass


class DNSService(DNSServiceBase):
    """
    Real DNS service that performs lookups with dnspython's async resolver.

    The resolver is created on first use so that constructing the service
    does not read the system resolver configuration.
    """

    def __init__(self, timeout: float = 5, resolver: Optional[dns.asyncresolver.Resolver] = None):
        """
        Initialize the DNS service.

        Args:
            timeout: DNS query timeout in seconds
            resolver: Pre-configured resolver to use instead of the system one
        """
        self.timeout = timeout
        self._resolver = resolver

    @property
    def resolver(self) -> dns.asyncresolver.Resolver:
        if self._resolver is None:
            self._resolver = dns.asyncresolver.Resolver()
            self._resolver.timeout = self.timeout
            self._resolver.lifetime = self.timeout
        return self._resolver

    async def resolve_mx(self, domain: str) -> List[MXRecord]:
        try:
            answers = await self.resolver.resolve(domain, 'MX')
        except dns.resolver.NoAnswer:
            # Domain exists but publishes no MX records
            return []
        except dns.exception.Timeout:
            raise
        except dns.resolver.NXDOMAIN as e:
            raise DomainNotFound(domain, 'NXDOMAIN') from e
        except dns.resolver.NoNameservers as e:
            raise DomainNotFound(domain, 'no nameservers') from e
        except dns.exception.DNSException as e:
            raise DomainNotFound(domain, str(e)) from e

        records = [
            MXRecord(priority=rdata.preference, exchange=str(rdata.exchange).rstrip('.'))
            for rdata in answers
        ]
        return sorted(records, key=lambda r: r.priority)


class MockDNSService(DNSServiceBase):
    """
    Mock DNS service for testing purposes.

    Allows configuring predefined responses for specific domains.
    A response of True yields one MX record, False an unknown domain, a list
    of MXRecord is returned as-is and an exception instance is raised.
    """

    def __init__(self, responses: Optional[Dict[str, Union[bool, list, Exception]]] = None,
                 delay: float = 0.0):
        """
        Initialize the mock DNS service.

        Args:
            responses: Dictionary mapping domains to their configured response
                      e.g., {'gmail.com': True, 'invalid.fake': False}
            delay: Seconds to sleep before answering, to exercise timeouts
        """
        self.responses = responses or {}
        self.delay = delay
        self.call_history = []
        self.in_flight = 0
        self.max_in_flight = 0

    def set_response(self, domain: str, response: Union[bool, list, Exception]):
        """
        Set the response for a specific domain.

        Args:
            domain: The domain to configure
            response: True/False, a list of MXRecord, or an exception to raise
        """
        self.responses[domain] = response

    async def resolve_mx(self, domain: str) -> List[MXRecord]:
        self.call_history.append(('resolve_mx', domain))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            response = self.responses.get(domain, False)
        finally:
            self.in_flight -= 1

        if isinstance(response, Exception):
            raise response
        if isinstance(response, list):
            return sorted(response, key=lambda r: r.priority)
        if response:
            return [MXRecord(priority=10, exchange=f'mail.{domain}')]
        raise DomainNotFound(domain, 'NXDOMAIN')

    def reset_history(self):
        """Reset the call history."""
        self.call_history = []
        self.max_in_flight = 0
