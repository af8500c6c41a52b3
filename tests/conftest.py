"""
Shared fixtures for the test suite.
"""

import pytest

from mailverify.dns_cache import DNSCache
from mailverify.dns_service import MockDNSService
from mailverify.domain_validator import DomainValidator
from mailverify.models import MXRecord
from mailverify.validator import EmailValidator


class FakeClock:
    """Manually advanced time source for cache tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def mock_dns():
    return MockDNSService(responses={
        'example.com': True,
        'gmail.com': [
            MXRecord(priority=20, exchange='alt1.gmail-smtp-in.l.google.com'),
            MXRecord(priority=5, exchange='gmail-smtp-in.l.google.com'),
        ],
        'x.com': True,
        'no-mx.com': [],
    })


@pytest.fixture
def cache(clock):
    return DNSCache(ttl=300, negative_ttl=60, clock=clock)


@pytest.fixture
def domain_validator(mock_dns, cache):
    return DomainValidator(mock_dns, cache, timeout=1.0)


@pytest.fixture
def validator(domain_validator):
    return EmailValidator(domain_validator)
