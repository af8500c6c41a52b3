"""
Unit Tests for DomainValidator

Cache usage, timeout handling and deliverability derivation.
"""

import asyncio

import dns.exception
import pytest

from mailverify.dns_cache import DNSCache
from mailverify.dns_service import MockDNSService
from mailverify.domain_validator import DomainValidator, deliverability
from mailverify.errors import DNSTimeoutError
from mailverify.models import Deliverability, DomainRecord, MXRecord


class TestDomainValidatorLookup:
    """Lookup outcomes."""

    @pytest.mark.asyncio
    async def test_existing_domain(self, domain_validator):
        """Test a domain with MX records."""
        record = await domain_validator.validate('example.com')
        assert record.domain == 'example.com'
        assert record.exists is True
        assert record.mx_count == 1

    @pytest.mark.asyncio
    async def test_records_ordered_by_priority(self, domain_validator):
        """Test records come back ordered by priority."""
        record = await domain_validator.validate('gmail.com')
        assert [r.priority for r in record.mx_records] == [5, 20]

    @pytest.mark.asyncio
    async def test_unknown_domain_is_negative_result(self, domain_validator):
        """Test an unknown domain yields exists=False."""
        record = await domain_validator.validate('nonexistent-domain-xyz123.invalid')
        assert record.exists is False
        assert record.mx_records == []

    @pytest.mark.asyncio
    async def test_domain_is_normalized(self, domain_validator, mock_dns):
        """Test the domain is trimmed and lower-cased before lookup."""
        await domain_validator.validate(' Example.COM ')
        assert mock_dns.call_history == [('resolve_mx', 'example.com')]


class TestDomainValidatorCache:
    """Cache interaction."""

    @pytest.mark.asyncio
    async def test_second_lookup_within_ttl_hits_cache(self, domain_validator, mock_dns):
        """Test a repeat lookup within the TTL is served from cache."""
        first = await domain_validator.validate('example.com')
        second = await domain_validator.validate('example.com')
        assert first == second
        assert len(mock_dns.call_history) == 1

    @pytest.mark.asyncio
    async def test_lookup_repeats_after_ttl(self, domain_validator, mock_dns, clock):
        """Test the lookup repeats once the TTL passes."""
        await domain_validator.validate('example.com')
        clock.advance(301)
        await domain_validator.validate('example.com')
        assert len(mock_dns.call_history) == 2

    @pytest.mark.asyncio
    async def test_negative_result_is_cached(self, domain_validator, mock_dns):
        """Test negative results are cached."""
        await domain_validator.validate('gone.invalid')
        await domain_validator.validate('gone.invalid')
        assert mock_dns.call_history == [('resolve_mx', 'gone.invalid')]


class TestDomainValidatorTimeout:
    """Lookup deadline."""

    @pytest.mark.asyncio
    async def test_slow_lookup_raises_timeout(self, cache):
        """Test a slow lookup raises DNSTimeoutError."""
        dns_service = MockDNSService({'slow.com': True}, delay=1.0)
        validator = DomainValidator(dns_service, cache, timeout=0.05)

        with pytest.raises(DNSTimeoutError) as exc_info:
            await validator.validate('slow.com')

        assert exc_info.value.status_code == 504
        assert exc_info.value.domain == 'slow.com'
        # The abandoned lookup was cancelled, not left running
        assert dns_service.in_flight == 0

    @pytest.mark.asyncio
    async def test_resolver_timeout_raises_timeout(self, cache):
        """Test a resolver timeout raises DNSTimeoutError."""
        validator = DomainValidator(MockDNSService({'slow.com': dns.exception.Timeout()}), cache)
        with pytest.raises(DNSTimeoutError):
            await validator.validate('slow.com')

    @pytest.mark.asyncio
    async def test_timeout_is_not_cached(self, cache):
        """Test timeouts are never cached."""
        dns_service = MockDNSService({'slow.com': dns.exception.Timeout()})
        validator = DomainValidator(dns_service, cache)

        with pytest.raises(DNSTimeoutError):
            await validator.validate('slow.com')
        assert cache.lookup('slow.com') is None

        dns_service.set_response('slow.com', True)
        record = await validator.validate('slow.com')
        assert record.exists is True

    def test_default_timeout_is_five_seconds(self):
        """Test the default lookup deadline."""
        validator = DomainValidator(MockDNSService(), DNSCache())
        assert validator.timeout == 5.0

    @pytest.mark.asyncio
    async def test_unexpected_errors_propagate(self, cache):
        """Test non-DNS errors propagate unchanged."""
        validator = DomainValidator(MockDNSService({'boom.com': RuntimeError('boom')}), cache)
        with pytest.raises(RuntimeError):
            await validator.validate('boom.com')
        assert cache.lookup('boom.com') is None


class TestDeliverability:
    """Deliverability from a domain record."""

    def test_missing_domain_is_undeliverable(self):
        """Test a missing domain is undeliverable."""
        assert deliverability(DomainRecord.missing('x.invalid')) == Deliverability.UNDELIVERABLE

    def test_no_mx_is_undeliverable(self):
        """Test a domain without MX records is undeliverable."""
        record = DomainRecord(domain='no-mx.com', exists=True)
        assert deliverability(record) == Deliverability.UNDELIVERABLE

    def test_mx_present_is_deliverable(self):
        """Test a domain with MX records is deliverable."""
        record = DomainRecord(domain='a.com', exists=True, mx_records=[MXRecord(10, 'mx.a.com')])
        assert deliverability(record) == Deliverability.DELIVERABLE


@pytest.mark.asyncio
async def test_concurrent_lookups_share_cache_afterwards(cache):
    """Test concurrent lookups leave one cache entry per domain."""
    dns_service = MockDNSService({'example.com': True}, delay=0.01)
    validator = DomainValidator(dns_service, cache)

    await asyncio.gather(*[validator.validate('example.com') for _ in range(3)])
    calls_after_race = len(dns_service.call_history)
    await validator.validate('example.com')

    # Concurrent misses may each query; later calls are served from cache
    assert 1 <= calls_after_race <= 3
    assert len(dns_service.call_history) == calls_after_race
