"""
Domain Checker Module

Combines the syntactic check with an asynchronous lookup of the domain part.

A DNS failure never makes a correctly formed address invalid: is_valid
reflects syntax only, and the outcome of the lookup is reported alongside it.
"""

import asyncio
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Callable, Tuple, Dict, Any

from .dispatch import Dispatcher, SerialDispatcher
from .dns_service import DNSServiceBase, DNSService
from .errors import ErrorKind, ValidationError, ResolutionTimeout
from .validator import EmailValidator, split_address

logger = logging.getLogger(__name__)

LITERAL_ADDRESS_REASON = "literal address"

CheckCallback = Callable[[str, bool, Optional[ValidationError]], None]


class ResolutionOutcome(Enum):
    """What happened to the domain lookup of a check."""
    RESOLVED = 'resolved'
    SKIPPED = 'skipped'
    FAILED = 'failed'
    NOT_CHECKED = 'not_checked'


@dataclass(frozen=True)
class CheckResult:
    """
    Represents the result of a combined syntax and DNS check.

    Attributes:
        address: The address that was checked
        is_valid: Whether the address is correctly formed
        error: The syntactic defect, or the DNS skip/failure (None if resolved)
        addresses: Network addresses the domain resolved to
    """
    address: str
    is_valid: bool
    error: Optional[ValidationError] = None
    addresses: Tuple[str, ...] = ()

    @property
    def outcome(self) -> ResolutionOutcome:
        if not self.is_valid:
            return ResolutionOutcome.NOT_CHECKED
        if self.error is None:
            return ResolutionOutcome.RESOLVED
        if self.error.kind == ErrorKind.DNS_CHECK_SKIPPED:
            return ResolutionOutcome.SKIPPED
        return ResolutionOutcome.FAILED

    def to_dict(self) -> Dict[str, Any]:
        """Convert result to dictionary format."""
        return {
            'email': self.address,
            'is_valid': self.is_valid,
            'outcome': self.outcome.value,
            'error': self.error.to_dict() if self.error else None,
            'addresses': list(self.addresses)
        }


class _PendingCheck:
    """Resolves one check's future exactly once, then hands off the callback."""

    def __init__(self, future: Future, callback: Optional[CheckCallback], dispatcher: Dispatcher):
        self.future = future
        self.callback = callback
        self.dispatcher = dispatcher
        self._lock = threading.Lock()
        self._finished = False

    def finish(self, result: CheckResult) -> bool:
        with self._lock:
            if self._finished:
                return False
            self._finished = True

        # Cancelled by the caller: no result, no callback
        if not self.future.set_running_or_notify_cancel():
            return False
        self.future.set_result(result)
        if self.callback is not None:
            self.dispatcher.dispatch(self.callback, result.address, result.is_valid, result.error)
        return True


class DomainChecker:
    """
    Checks that an address is correctly formed and that its domain resolves.

    Lookups run on a thread pool; completions are delivered through a
    Future and, optionally, a callback run on the checker's dispatcher.

    Example:
        >>> with DomainChecker() as checker:
        ...     result = checker.check_email_address('user@example.com').result()
        >>> result.outcome
        <ResolutionOutcome.RESOLVED: 'resolved'>
    """

    DEFAULT_TIMEOUT = 5.0
    DEFAULT_MAX_WORKERS = 4

    def __init__(
        self,
        dns_service: Optional[DNSServiceBase] = None,
        timeout: Optional[float] = DEFAULT_TIMEOUT,
        max_workers: int = DEFAULT_MAX_WORKERS,
        dispatcher: Optional[Dispatcher] = None,
        validator: Optional[EmailValidator] = None
    ):
        """
        Initialize the DomainChecker.

        Args:
            dns_service: Service used to resolve domains (DNSService by default)
            timeout: Seconds before a pending lookup is reported as failed
                     (None disables the timeout)
            max_workers: Size of the lookup thread pool
            dispatcher: Context callbacks are delivered on (a private
                        SerialDispatcher by default)
            validator: Syntactic validator to run first
        """
        self.validator = validator if validator is not None else EmailValidator()
        if dns_service is None:
            dns_service = DNSService(timeout=timeout or self.DEFAULT_TIMEOUT)
        self.dns_service = dns_service
        self.timeout = timeout

        self._owns_dispatcher = dispatcher is None
        self.dispatcher = dispatcher if dispatcher is not None else SerialDispatcher()
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="dns-lookup")
        self._closed = False

    def check_email_address(self, address: str, callback: Optional[CheckCallback] = None) -> Future:
        """
        Check an address and, if it is correctly formed, resolve its domain.

        The callback, if given, is called exactly once as
        callback(address, is_valid, error) on the dispatcher, never inline,
        including when the syntax check fails.

        Args:
            address: The email address to check
            callback: Optional completion callback

        Returns:
            Future resolving to a CheckResult; it never raises a lookup error

        Raises:
            RuntimeError: If the checker has been closed
        """
        if self._closed:
            raise RuntimeError("DomainChecker is closed")

        future = Future()
        pending = _PendingCheck(future, callback, self.dispatcher)

        validation = self.validator.validate(address)
        if not validation.is_valid:
            logger.debug("Skipping lookup for malformed address %r: %s",
                         address, validation.error.kind.name)
            pending.finish(CheckResult(address, False, validation.error))
            return future

        if validation.literal_domain:
            skipped = ValidationError(ErrorKind.DNS_CHECK_SKIPPED, cause=LITERAL_ADDRESS_REASON)
            pending.finish(CheckResult(address, True, skipped))
            return future

        _, domain = split_address(address)
        logger.debug("Resolving %s", domain)
        lookup = self._executor.submit(self.dns_service.resolve_host, domain)

        timer = None
        if self.timeout is not None:
            timer = threading.Timer(self.timeout, self._on_timeout, args=(pending, address, domain, lookup))
            timer.daemon = True

        def on_lookup_done(done: Future) -> None:
            if timer is not None:
                timer.cancel()
            if done.cancelled():
                return
            pending.finish(self._result_from_lookup(address, domain, done))

        def on_check_done(done: Future) -> None:
            if done.cancelled():
                if timer is not None:
                    timer.cancel()
                lookup.cancel()

        lookup.add_done_callback(on_lookup_done)
        future.add_done_callback(on_check_done)
        if timer is not None:
            timer.start()
        return future

    def _result_from_lookup(self, address: str, domain: str, lookup: Future) -> CheckResult:
        error = lookup.exception()
        if error is not None:
            logger.info("DNS check failed for %s: %s", domain, error)
            failed = ValidationError(ErrorKind.DNS_CHECK_FAILED, cause=error)
            return CheckResult(address, True, failed)
        return CheckResult(address, True, addresses=tuple(lookup.result()))

    def _on_timeout(self, pending: _PendingCheck, address: str, domain: str, lookup: Future) -> None:
        lookup.cancel()
        error = ResolutionTimeout(domain, self.timeout)
        if pending.finish(CheckResult(address, True, ValidationError(ErrorKind.DNS_CHECK_FAILED, cause=error))):
            logger.warning("DNS lookup for %s timed out after %ss", domain, self.timeout)

    async def check_async(self, address: str) -> CheckResult:
        """
        Awaitable form of check_email_address.

        The result is delivered on the awaiting event loop; cancelling the
        awaiting task cancels the check.
        """
        return await asyncio.wrap_future(self.check_email_address(address))

    def close(self, wait: bool = True) -> None:
        """
        Stop accepting checks and release the worker threads.

        Args:
            wait: Wait for in-flight lookups and callbacks to finish
        """
        if self._closed:
            return
        self._closed = True
        self._executor.shutdown(wait=wait)
        if self._owns_dispatcher:
            self.dispatcher.shutdown()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()


_default_checker: Optional[DomainChecker] = None
_default_lock = threading.Lock()


def get_default_checker() -> DomainChecker:
    """Return the shared checker, creating it on first use."""
    global _default_checker
    with _default_lock:
        if _default_checker is None:
            _default_checker = DomainChecker()
        return _default_checker


def check_email_address(address: str, callback: Optional[CheckCallback] = None) -> Future:
    """Check an address with the shared checker. See DomainChecker.check_email_address."""
    return get_default_checker().check_email_address(address, callback)


def shutdown_default_checker() -> None:
    """Close the shared checker; the next call creates a fresh one."""
    global _default_checker
    with _default_lock:
        checker, _default_checker = _default_checker, None
    if checker is not None:
        checker.close()
