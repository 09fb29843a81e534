"""
Errors Module

Error kinds and error values reported by the validator and the domain checker.
"""

from enum import IntEnum
from dataclasses import dataclass
from typing import Optional, Union, Dict, Any


class ErrorKind(IntEnum):
    """
    Closed set of defects an address check can report.

    The numeric values are stable and safe to expose in API responses.
    """
    TOO_LONG = 0
    LOCAL_TOO_LONG = 1
    DOMAIN_TOO_LONG = 2
    DOMAIN_PART_TOO_LONG = 3

    INVALID_CHARACTER_IN_LOCAL_PART = 4
    INVALID_LOCAL_PART = 5

    NO_AT_SIGN = 6

    INVALID_DOMAIN = 7
    INVALID_CHARACTER_IN_DOMAIN = 8
    INVALID_TLD = 9

    DNS_CHECK_SKIPPED = 100
    DNS_CHECK_FAILED = 101


_MESSAGES = {
    ErrorKind.TOO_LONG: "Email exceeds maximum length",
    ErrorKind.LOCAL_TOO_LONG: "Local part exceeds maximum length",
    ErrorKind.DOMAIN_TOO_LONG: "Domain exceeds maximum length",
    ErrorKind.DOMAIN_PART_TOO_LONG: "Domain label exceeds maximum length",
    ErrorKind.INVALID_CHARACTER_IN_LOCAL_PART: "Invalid character in local part",
    ErrorKind.INVALID_LOCAL_PART: "Local part is malformed",
    ErrorKind.NO_AT_SIGN: "Email must contain exactly one '@' symbol",
    ErrorKind.INVALID_DOMAIN: "Domain is malformed",
    ErrorKind.INVALID_CHARACTER_IN_DOMAIN: "Invalid character in domain",
    ErrorKind.INVALID_TLD: "Top-level domain is invalid",
    ErrorKind.DNS_CHECK_SKIPPED: "DNS check skipped",
    ErrorKind.DNS_CHECK_FAILED: "DNS check failed",
}

DNS_KINDS = frozenset({ErrorKind.DNS_CHECK_SKIPPED, ErrorKind.DNS_CHECK_FAILED})


@dataclass(frozen=True)
class ValidationError:
    """
    The first defect found in an address, or the reason a DNS check did not
    produce a positive answer.

    Attributes:
        kind: The ErrorKind of the defect
        offset: Zero-based index into the original address where the defect
                was detected (None for the DNS kinds)
        cause: Underlying reason for the DNS kinds; a string for skips and
               the raised exception for failures
    """
    kind: ErrorKind
    offset: Optional[int] = None
    cause: Optional[Union[str, BaseException]] = None

    @property
    def is_dns_error(self) -> bool:
        return self.kind in DNS_KINDS

    @property
    def message(self) -> str:
        """Human readable description of the error."""
        text = _MESSAGES[self.kind]
        if self.offset is not None:
            return f"{text} (at offset {self.offset})"
        if self.cause is not None:
            return f"{text}: {self.cause}"
        return text

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary format."""
        return {
            'kind': self.kind.name,
            'code': int(self.kind),
            'offset': self.offset,
            'cause': None if self.cause is None else str(self.cause),
            'message': self.message
        }


class ResolutionError(Exception):
    """Raised by DNS services when a domain does not map to any address."""

    def __init__(self, domain: str, reason: str):
        super().__init__(f"{domain}: {reason}")
        self.domain = domain
        self.reason = reason


class ResolutionTimeout(ResolutionError):
    """Raised when a lookup does not finish within the configured timeout."""

    def __init__(self, domain: str, timeout: float):
        super().__init__(domain, f"lookup did not finish within {timeout:g}s")
        self.timeout = timeout
