"""
Email Check Package

Provides email address syntax checking with first-defect reporting and an
asynchronous check that the address's domain resolves.
"""

from .errors import ErrorKind, ValidationError, ResolutionError, ResolutionTimeout
from .validator import (
    EmailValidator,
    ValidationResult,
    is_correctly_formed_email_address,
    validate_email_address,
)
from .dns_service import DNSService, MockDNSService
from .dispatch import SerialDispatcher, LoopDispatcher, QueueDispatcher
from .checker import (
    DomainChecker,
    CheckResult,
    ResolutionOutcome,
    check_email_address,
    shutdown_default_checker,
)

__all__ = [
    'ErrorKind', 'ValidationError', 'ResolutionError', 'ResolutionTimeout',
    'EmailValidator', 'ValidationResult',
    'is_correctly_formed_email_address', 'validate_email_address',
    'DNSService', 'MockDNSService',
    'SerialDispatcher', 'LoopDispatcher', 'QueueDispatcher',
    'DomainChecker', 'CheckResult', 'ResolutionOutcome',
    'check_email_address', 'shutdown_default_checker',
]
__version__ = '1.0.0'
