"""
DNS Service Module

Provides host name resolution for the domain part of email addresses.
"""

import logging
import socket
import time
from typing import Optional, List, Dict, Union
from abc import ABC, abstractmethod

import dns.exception
import dns.resolver

from .errors import ResolutionError

logger = logging.getLogger(__name__)


class DNSServiceBase(ABC):
    """Abstract base class for DNS services."""

    @abstractmethod
    def resolve_host(self, domain: str) -> List[str]:
        """
        Resolve a domain to its network addresses.

        Args:
            domain: The domain to resolve

        Returns:
            List of IPv4/IPv6 addresses as strings, never empty

        Raises:
            ResolutionError: If the domain does not resolve
        """
        pass


class DNSService(DNSServiceBase):
    """
    Real DNS service that performs actual lookups.

    Queries A and then AAAA records with dnspython. When use_system_resolver
    is set, the operating system resolver (socket.getaddrinfo) is used
    instead, which also honours /etc/hosts.
    """

    RECORD_TYPES = ('A', 'AAAA')

    def __init__(self, timeout: float = 5, use_system_resolver: bool = False):
        """
        Initialize the DNS service.

        Args:
            timeout: DNS query timeout in seconds
            use_system_resolver: Resolve through getaddrinfo instead of dnspython
        """
        self.timeout = timeout
        self.use_system_resolver = use_system_resolver

        try:
            self._resolver = dns.resolver.Resolver()
        except dns.resolver.NoResolverConfiguration:
            logger.warning("No system resolver configuration found; dnspython lookups will fail")
            self._resolver = dns.resolver.Resolver(configure=False)
        self._resolver.timeout = timeout
        self._resolver.lifetime = timeout

    def resolve_host(self, domain: str) -> List[str]:
        if self.use_system_resolver:
            return self._resolve_socket(domain)
        return self._resolve_dnspython(domain)

    def _resolve_dnspython(self, domain: str) -> List[str]:
        """
        Resolve A/AAAA records using dnspython library.

        Both queries share one time budget of self.timeout seconds. A failed
        AAAA query does not discard A records already found.
        """
        deadline = time.monotonic() + self.timeout
        addresses = []
        for record_type in self.RECORD_TYPES:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                if addresses:
                    break
                raise ResolutionError(domain, "query timed out")
            try:
                answers = self._resolver.resolve(domain, record_type, lifetime=remaining)
            except dns.resolver.NXDOMAIN as e:
                raise ResolutionError(domain, "domain does not exist") from e
            except dns.resolver.NoAnswer:
                # No records of this type, try the next one
                continue
            except dns.exception.DNSException as e:
                if addresses:
                    logger.debug("%s query for %s failed, keeping earlier answers: %s", record_type, domain, e)
                    break
                raise self._resolution_error(domain, e) from e
            addresses.extend(rdata.to_text() for rdata in answers)

        if not addresses:
            raise ResolutionError(domain, "no address records")
        logger.debug("Resolved %s to %s", domain, addresses)
        return addresses

    @staticmethod
    def _resolution_error(domain: str, error: Exception) -> ResolutionError:
        if isinstance(error, dns.resolver.NoNameservers):
            return ResolutionError(domain, "no nameservers available")
        if isinstance(error, dns.exception.Timeout):
            return ResolutionError(domain, "query timed out")
        return ResolutionError(domain, str(error) or type(error).__name__)

    def _resolve_socket(self, domain: str) -> List[str]:
        """Resolve using the operating system resolver."""
        try:
            infos = socket.getaddrinfo(domain, None, proto=socket.IPPROTO_TCP)
        except socket.gaierror as e:
            raise ResolutionError(domain, e.strerror or str(e)) from e
        except socket.timeout as e:
            raise ResolutionError(domain, "query timed out") from e
        except OSError as e:
            raise ResolutionError(domain, str(e)) from e

        # getaddrinfo repeats addresses across socket types
        addresses = list(dict.fromkeys(info[4][0] for info in infos))
        if not addresses:
            raise ResolutionError(domain, "no address records")
        logger.debug("Resolved %s to %s", domain, addresses)
        return addresses


class MockDNSService(DNSServiceBase):
    """
    Mock DNS service for testing purposes.

    Allows configuring predefined responses for specific domains.
    """

    def __init__(self, responses: Optional[dict] = None, delay: float = 0):
        """
        Initialize the mock DNS service.

        Args:
            responses: Dictionary mapping domains to a list of addresses, or to
                       an exception instance to raise,
                       e.g., {'gmail.com': ['142.250.1.1'], 'invalid.fake': []}
            delay: Seconds to sleep before answering each lookup
        """
        self.responses: Dict[str, Union[List[str], BaseException]] = responses or {}
        self.delay = delay
        self.call_history = []

    def set_response(self, domain: str, response: Union[List[str], BaseException]):
        """
        Set the response for a specific domain.

        Args:
            domain: The domain to configure
            response: Addresses the domain resolves to, or an exception to raise
        """
        self.responses[domain] = response

    def resolve_host(self, domain: str) -> List[str]:
        """
        Resolve a domain (mocked).

        Unconfigured domains and domains configured with an empty list raise
        ResolutionError.
        """
        self.call_history.append(('resolve_host', domain))
        if self.delay:
            time.sleep(self.delay)

        response = self.responses.get(domain, [])
        if isinstance(response, BaseException):
            raise response
        if not response:
            raise ResolutionError(domain, "domain does not exist")
        return list(response)

    def reset_history(self):
        """Reset the call history."""
        self.call_history = []
