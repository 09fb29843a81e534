"""
Unit Tests for DomainChecker

Tests for the combined syntax and domain resolution check:
- Outcomes for malformed, literal, resolvable and unresolvable addresses
- A DNS failure never makes a well formed address invalid
- Exactly one completion, delivered on the dispatcher
- Timeouts, cancellation and the asyncio interface
"""

import asyncio
import threading
import time
from unittest.mock import MagicMock

import dns.exception
import pytest

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from email_check.checker import (
    DomainChecker,
    CheckResult,
    ResolutionOutcome,
    LITERAL_ADDRESS_REASON,
    check_email_address,
    shutdown_default_checker,
)
from email_check.dispatch import QueueDispatcher, LoopDispatcher
from email_check.dns_service import DNSService, MockDNSService
from email_check.errors import ErrorKind, ResolutionError, ResolutionTimeout


class TestDomainCheckerOutcomes:
    """Tests for the result of each kind of check."""

    def setup_method(self):
        """Set up test fixtures with a mocked DNS service."""
        self.dns = MockDNSService({'example.com': ['93.184.216.34']})
        self.dispatcher = QueueDispatcher()
        self.checker = DomainChecker(dns_service=self.dns, dispatcher=self.dispatcher, timeout=2)
        self.calls = []

    def teardown_method(self):
        """Release the checker's threads."""
        self.checker.close()

    def callback(self, *args):
        self.calls.append(args)

    def test_invalid_address_never_resolves(self):
        """Test that a malformed address completes without a lookup."""
        future = self.checker.check_email_address("user@example.1", self.callback)
        result = future.result(timeout=1)

        assert result.is_valid is False
        assert result.outcome is ResolutionOutcome.NOT_CHECKED
        assert result.error.kind == ErrorKind.INVALID_TLD
        assert result.error.offset == 13
        assert self.dns.call_history == []

    def test_invalid_address_callback_is_not_inline(self):
        """Test that the syntax failure is still delivered asynchronously."""
        self.checker.check_email_address("plainaddress", self.callback)
        assert self.calls == []

        assert self.dispatcher.run_pending(timeout=1) == 1
        address, is_valid, error = self.calls[0]
        assert address == "plainaddress"
        assert is_valid is False
        assert error.kind == ErrorKind.NO_AT_SIGN

    def test_resolved(self):
        """Test a well formed address whose domain resolves."""
        future = self.checker.check_email_address("user@example.com", self.callback)
        result = future.result(timeout=2)

        assert result == CheckResult("user@example.com", True, None, ('93.184.216.34',))
        assert result.outcome is ResolutionOutcome.RESOLVED
        assert self.dns.call_history == [('resolve_host', 'example.com')]

        assert self.dispatcher.run_pending(timeout=2) == 1
        assert self.calls == [("user@example.com", True, None)]

    def test_resolved_when_only_aaaa_times_out(self):
        """Test that A answers are used when the AAAA query times out."""
        dns_service = DNSService(timeout=2)
        dns_service._resolver = MagicMock()

        def resolve(domain, rtype, **kwargs):
            if rtype == 'AAAA':
                raise dns.exception.Timeout()
            rdata = MagicMock()
            rdata.to_text.return_value = '93.184.216.34'
            return [rdata]

        dns_service._resolver.resolve.side_effect = resolve
        checker = DomainChecker(dns_service=dns_service, timeout=2)
        try:
            result = checker.check_email_address("user@example.com").result(timeout=2)
        finally:
            checker.close()

        assert result.outcome is ResolutionOutcome.RESOLVED
        assert result.error is None
        assert result.addresses == ('93.184.216.34',)

    @pytest.mark.parametrize("address", ["user@192.168.0.1", "user@[::1]", "user@[IPv6:2001:db8::1]"])
    def test_literal_address_skips_lookup(self, address):
        """Test that literal domains are reported as skipped but valid."""
        result = self.checker.check_email_address(address).result(timeout=1)

        assert result.is_valid is True
        assert result.outcome is ResolutionOutcome.SKIPPED
        assert result.error.kind == ErrorKind.DNS_CHECK_SKIPPED
        assert result.error.cause == LITERAL_ADDRESS_REASON
        assert result.error.offset is None
        assert self.dns.call_history == []

    def test_unresolvable_domain_stays_valid(self):
        """Test that a DNS failure does not invalidate a well formed address."""
        result = self.checker.check_email_address("user@nowhere.example").result(timeout=2)

        assert result.is_valid is True
        assert result.outcome is ResolutionOutcome.FAILED
        assert result.error.kind == ErrorKind.DNS_CHECK_FAILED
        assert isinstance(result.error.cause, ResolutionError)
        assert result.addresses == ()

    def test_unresolvable_domain_is_idempotent(self):
        """Test that repeated checks of an unreachable domain stay valid."""
        for _ in range(3):
            self.checker.check_email_address("user@nowhere.example", self.callback).result(timeout=2)

        for _ in range(3):
            if len(self.calls) == 3:
                break
            self.dispatcher.run_pending(timeout=2)
        assert [is_valid for _, is_valid, _ in self.calls] == [True, True, True]
        assert all(error.kind == ErrorKind.DNS_CHECK_FAILED for _, _, error in self.calls)

    def test_unexpected_lookup_error_is_a_value(self):
        """Test that any exception from the DNS service becomes DNS_CHECK_FAILED."""
        boom = RuntimeError("network exploded")
        self.dns.set_response("broken.com", boom)

        result = self.checker.check_email_address("user@broken.com").result(timeout=2)

        assert result.is_valid is True
        assert result.error.kind == ErrorKind.DNS_CHECK_FAILED
        assert result.error.cause is boom

    def test_to_dict(self):
        """Test CheckResult.to_dict()."""
        result = self.checker.check_email_address("user@nowhere.example").result(timeout=2)
        data = result.to_dict()

        assert data['email'] == "user@nowhere.example"
        assert data['is_valid'] is True
        assert data['outcome'] == 'failed'
        assert data['error']['kind'] == 'DNS_CHECK_FAILED'
        assert data['error']['offset'] is None
        assert "nowhere.example" in data['error']['cause']
        assert data['addresses'] == []

    def test_closed_checker_rejects_checks(self):
        """Test that a closed checker raises."""
        self.checker.close()
        with pytest.raises(RuntimeError):
            self.checker.check_email_address("user@example.com")


class TestDomainCheckerCompletion:
    """Tests for timeouts, cancellation and delivery contexts."""

    def test_timeout_reports_failure_once(self):
        """Test that a slow lookup is reported as failed exactly once."""
        dns = MockDNSService({'slow.com': ['10.0.0.1']}, delay=0.5)
        dispatcher = QueueDispatcher()
        calls = []

        with DomainChecker(dns_service=dns, dispatcher=dispatcher, timeout=0.05) as checker:
            result = checker.check_email_address("user@slow.com", lambda *args: calls.append(args)).result(timeout=2)

            assert result.is_valid is True
            assert result.outcome is ResolutionOutcome.FAILED
            assert isinstance(result.error.cause, ResolutionTimeout)
            assert dispatcher.run_pending(timeout=2) == 1

            # The late answer is dropped
            time.sleep(0.7)
            assert dispatcher.run_pending() == 0
        assert len(calls) == 1

    def test_cancelled_check_delivers_nothing(self):
        """Test that cancelling the future suppresses the callback."""
        dns = MockDNSService({'slow.com': ['10.0.0.1']}, delay=0.3)
        dispatcher = QueueDispatcher()
        calls = []

        with DomainChecker(dns_service=dns, dispatcher=dispatcher, timeout=None) as checker:
            future = checker.check_email_address("user@slow.com", lambda *args: calls.append(args))
            assert future.cancel() is True
            time.sleep(0.5)

        assert future.cancelled() is True
        assert dispatcher.run_pending() == 0
        assert calls == []

    def test_default_dispatcher_uses_one_thread(self):
        """Test that callbacks all run on the checker's callback thread."""
        dns = MockDNSService({'a.com': ['10.0.0.1'], 'b.com': ['10.0.0.2']})
        threads = []
        done = threading.Event()

        def callback(address, is_valid, error):
            threads.append(threading.current_thread())
            if len(threads) == 4:
                done.set()

        with DomainChecker(dns_service=dns, timeout=2) as checker:
            for address in ("x@a.com", "y@b.com", "bad", "z@10.0.0.1"):
                checker.check_email_address(address, callback)
            assert done.wait(timeout=2)

        assert len(set(threads)) == 1
        assert threads[0] is not threading.current_thread()
        assert threads[0].name.startswith("email-check-callbacks")

    def test_loop_dispatcher_runs_on_event_loop(self):
        """Test delivery onto the calling asyncio event loop."""
        dns = MockDNSService({'example.com': ['10.0.0.1']})

        async def main():
            loop = asyncio.get_running_loop()
            delivered = loop.create_future()
            checker = DomainChecker(dns_service=dns, dispatcher=LoopDispatcher(), timeout=2)
            checker.check_email_address(
                "user@example.com",
                lambda *args: delivered.set_result((threading.get_ident(), args))
            )
            try:
                return await asyncio.wait_for(delivered, 2)
            finally:
                checker.close()

        ident, args = asyncio.run(main())
        assert ident == threading.get_ident()
        assert args == ("user@example.com", True, None)

    def test_check_async(self):
        """Test the awaitable interface."""
        dns = MockDNSService({'example.com': ['10.0.0.1']})

        async def main():
            with DomainChecker(dns_service=dns, timeout=2) as checker:
                return await asyncio.gather(
                    checker.check_async("user@example.com"),
                    checker.check_async("user@nowhere.example"),
                    checker.check_async("not-an-address"),
                )

        resolved, failed, invalid = asyncio.run(main())
        assert resolved.outcome is ResolutionOutcome.RESOLVED
        assert failed.outcome is ResolutionOutcome.FAILED
        assert failed.is_valid is True
        assert invalid.outcome is ResolutionOutcome.NOT_CHECKED


class TestDefaultChecker:
    """Tests for the module level entry point."""

    def teardown_method(self):
        """Release the shared checker."""
        shutdown_default_checker()

    def test_module_check_invalid_address(self):
        """Test the module level function with a malformed address."""
        delivered = threading.Event()
        calls = []

        def callback(*args):
            calls.append(args)
            delivered.set()

        result = check_email_address("user@@example.com", callback).result(timeout=1)

        assert result.is_valid is False
        assert result.error.kind == ErrorKind.NO_AT_SIGN
        assert delivered.wait(timeout=2)
        assert calls[0][:2] == ("user@@example.com", False)

    def test_module_check_literal_address(self):
        """Test the module level function with a literal domain."""
        result = check_email_address("user@192.168.0.1").result(timeout=1)
        assert result.outcome is ResolutionOutcome.SKIPPED
        assert result.is_valid is True


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
