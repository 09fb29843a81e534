"""
Email Validator Module

Contains the EmailValidator class for checking that email addresses are
correctly formed.
"""

import ipaddress
import string
from typing import Optional, Dict, Any, List, Tuple
from dataclasses import dataclass

from .errors import ErrorKind, ValidationError


@dataclass(frozen=True)
class ValidationResult:
    """
    Represents the result of an email validation.

    Attributes:
        is_valid: Whether the email is correctly formed
        email: The email address that was validated, unchanged
        error: The first defect found (None if valid)
        literal_domain: Whether the domain is a literal IP address
    """
    is_valid: bool
    email: str
    error: Optional[ValidationError] = None
    literal_domain: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert result to dictionary format."""
        return {
            'is_valid': self.is_valid,
            'email': self.email,
            'error': self.error.to_dict() if self.error else None,
            'literal_domain': self.literal_domain
        }


class EmailValidator:
    """
    A scanning email validator that reports the first defect in an address.

    The address is walked left to right and the scan stops at the first
    problem, which is reported with its ErrorKind and the character offset
    where it was found. Supported syntax is a deliberate subset of RFC 5322:
    no quoted local parts, comments or folding whitespace.

    Example:
        >>> validator = EmailValidator()
        >>> validator.validate('user@example.com').is_valid
        True
        >>> validator.validate('user@example.1').error.kind.name
        'INVALID_TLD'
    """

    # Maximum lengths according to RFC 5321 / RFC 1035
    MAX_EMAIL_LENGTH = 254
    MAX_LOCAL_LENGTH = 64
    MAX_DOMAIN_LENGTH = 253
    MAX_LABEL_LENGTH = 63
    MIN_TLD_LENGTH = 2

    LOCAL_CHARACTERS = frozenset(string.ascii_letters + string.digits + "._%+-")
    DOMAIN_CHARACTERS = frozenset(string.ascii_letters + string.digits + "-")
    TLD_CHARACTERS = frozenset(string.ascii_letters)

    def _fail(self, email: str, error: ValidationError) -> ValidationResult:
        return ValidationResult(is_valid=False, email=email, error=error)

    def _check_local(self, email: str, at: int) -> Optional[ValidationError]:
        """
        Scan the local part, which occupies email[0:at].

        Returns:
            The first defect found, or None
        """
        if at > self.MAX_LOCAL_LENGTH:
            return ValidationError(ErrorKind.LOCAL_TOO_LONG, self.MAX_LOCAL_LENGTH)
        if at == 0:
            return ValidationError(ErrorKind.INVALID_LOCAL_PART, 0)

        previous = None
        for index in range(at):
            char = email[index]
            if char not in self.LOCAL_CHARACTERS:
                return ValidationError(ErrorKind.INVALID_CHARACTER_IN_LOCAL_PART, index)
            if char == '.' and (index == 0 or previous == '.'):
                return ValidationError(ErrorKind.INVALID_LOCAL_PART, index)
            previous = char

        if previous == '.':
            return ValidationError(ErrorKind.INVALID_LOCAL_PART, at - 1)
        return None

    @staticmethod
    def parse_literal(domain: str) -> Optional[str]:
        """
        Parse a domain written as a literal network address.

        Accepts an unbracketed IPv4 dotted quad, or a bracketed IPv4 or IPv6
        address (optionally with the RFC 5321 "IPv6:" tag).

        Args:
            domain: The domain part of an address

        Returns:
            The normalized address, or None if the domain is not a literal
        """
        bracketed = domain.startswith('[') and domain.endswith(']')
        text = domain[1:-1] if bracketed else domain
        if bracketed and text[:5].lower() == 'ipv6:':
            text = text[5:]
            versions = (ipaddress.IPv6Address,)
        elif bracketed:
            versions = (ipaddress.IPv4Address, ipaddress.IPv6Address)
        else:
            versions = (ipaddress.IPv4Address,)

        for version in versions:
            try:
                return str(version(text))
            except ValueError:
                continue
        return None

    def _check_domain(self, email: str, start: int) -> Tuple[Optional[ValidationError], bool]:
        """
        Scan the domain part, which occupies email[start:].

        Returns:
            Tuple of (first defect or None, whether the domain is a literal)
        """
        domain = email[start:]

        if not domain:
            return ValidationError(ErrorKind.INVALID_DOMAIN, start), False

        if self.parse_literal(domain) is not None:
            return None, True
        if domain.startswith('[') and domain.endswith(']'):
            return ValidationError(ErrorKind.INVALID_DOMAIN, start), False

        if len(domain) > self.MAX_DOMAIN_LENGTH:
            return ValidationError(ErrorKind.DOMAIN_TOO_LONG, start + self.MAX_DOMAIN_LENGTH), False

        labels = domain.split('.')
        if len(labels) < 2:
            return ValidationError(ErrorKind.INVALID_DOMAIN, start), False

        offset = start
        for label in labels:
            if not label:
                return ValidationError(ErrorKind.INVALID_DOMAIN, offset), False
            if len(label) > self.MAX_LABEL_LENGTH:
                return ValidationError(ErrorKind.DOMAIN_PART_TOO_LONG, offset + self.MAX_LABEL_LENGTH), False

            for index, char in enumerate(label):
                if char not in self.DOMAIN_CHARACTERS:
                    return ValidationError(ErrorKind.INVALID_CHARACTER_IN_DOMAIN, offset + index), False

            # Hyphens are allowed inside a label only
            if label[0] == '-':
                return ValidationError(ErrorKind.INVALID_CHARACTER_IN_DOMAIN, offset), False
            if label[-1] == '-':
                return ValidationError(ErrorKind.INVALID_CHARACTER_IN_DOMAIN, offset + len(label) - 1), False

            offset += len(label) + 1

        tld = labels[-1]
        tld_offset = len(email) - len(tld)
        if len(tld) < self.MIN_TLD_LENGTH or not set(tld) <= self.TLD_CHARACTERS:
            return ValidationError(ErrorKind.INVALID_TLD, tld_offset), False

        return None, False

    def validate(self, email: str) -> ValidationResult:
        """
        Validate an email address.

        Args:
            email: The email address to validate

        Returns:
            ValidationResult object; on failure it carries the first defect

        Raises:
            TypeError: If email is not a string
        """
        if not isinstance(email, str):
            raise TypeError(f"Email must be a string, got {type(email).__name__}")

        if len(email) > self.MAX_EMAIL_LENGTH:
            return self._fail(email, ValidationError(ErrorKind.TOO_LONG, self.MAX_EMAIL_LENGTH))

        at = email.find('@')
        if at < 0:
            return self._fail(email, ValidationError(ErrorKind.NO_AT_SIGN, len(email)))
        second_at = email.find('@', at + 1)
        if second_at >= 0:
            return self._fail(email, ValidationError(ErrorKind.NO_AT_SIGN, second_at))

        error = self._check_local(email, at)
        if error is not None:
            return self._fail(email, error)

        error, literal = self._check_domain(email, at + 1)
        if error is not None:
            return self._fail(email, error)

        return ValidationResult(is_valid=True, email=email, literal_domain=literal)

    def validate_batch(self, emails: List[str]) -> List[ValidationResult]:
        """
        Validate multiple email addresses.

        Args:
            emails: List of email addresses to validate

        Returns:
            List of ValidationResult objects
        """
        return [self.validate(email) for email in emails]

    def is_valid(self, email: str) -> bool:
        """
        Quick check if email is correctly formed.

        Args:
            email: The email address to validate

        Returns:
            True if email is valid, False otherwise
        """
        return self.validate(email).is_valid


_validator = EmailValidator()


def is_correctly_formed_email_address(email: str) -> bool:
    """Return True if the address is syntactically well formed."""
    return _validator.is_valid(email)


def validate_email_address(email: str) -> Tuple[bool, Optional[ValidationError]]:
    """
    Check whether an address is well formed, returning the first defect.

    Returns:
        Tuple of (is_valid, error); error is None when the address is valid
    """
    result = _validator.validate(email)
    return result.is_valid, result.error


def split_address(email: str) -> Tuple[str, str]:
    """Split a well formed address into (local part, domain part)."""
    local, _, domain = email.partition('@')
    return local, domain
