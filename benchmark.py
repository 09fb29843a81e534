#!/usr/bin/env python3
"""
Performance Benchmark for Email Check

Measures syntax validation throughput and the overhead of the asynchronous
check path, using a mocked DNS service so no network is involved.
"""

import time
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from email_check import EmailValidator, DomainChecker, MockDNSService

VALID_EMAILS = [
    "user@example.com",
    "john.doe@company.org",
    "alice123@gmail.com",
    "bob_smith@yahoo.com",
    "charlie.brown@outlook.com",
]

INVALID_EMAILS = [
    "plainaddress",
    "@missing-local.com",
    "user@",
    "user@@domain.com",
    "user@example.1",
]

ALL_EMAILS = VALID_EMAILS + INVALID_EMAILS


def benchmark(fn, emails, iterations=10000):
    """Call fn on every email, iterations times, and return statistics."""
    start_time = time.perf_counter()

    for _ in range(iterations):
        for email in emails:
            fn(email)

    total_time = time.perf_counter() - start_time
    total_requests = iterations * len(emails)

    return {
        'total_time': total_time,
        'total_requests': total_requests,
        'rps': total_requests / total_time,
        'avg_time_ms': (total_time / total_requests) * 1000
    }


def report(title, result):
    print(f"\n{title}")
    print(f"  Total time: {result['total_time']:.3f}s")
    print(f"  Total requests: {result['total_requests']}")
    print(f"  RPS: {result['rps']:,.0f} requests/second")
    print(f"  Avg time: {result['avg_time_ms']:.4f}ms")


def main():
    print("=" * 60)
    print("Email Check Performance Benchmark")
    print("=" * 60)

    validator = EmailValidator()

    # Warmup
    benchmark(validator.validate, ALL_EMAILS, iterations=1000)

    report("[Benchmark 1] Valid emails only (10,000 iterations)",
           benchmark(validator.validate, VALID_EMAILS))
    report("[Benchmark 2] Invalid emails only (10,000 iterations)",
           benchmark(validator.validate, INVALID_EMAILS))
    syntax = benchmark(validator.validate, ALL_EMAILS)
    report("[Benchmark 3] Mixed emails (10,000 iterations)", syntax)

    # Worst case for the scanner: every character of a maximum length address
    longest = "a" * 64 + "@" + "b" * 63 + "." + "c" * 63 + "." + "d" * 57 + ".com"
    report("[Benchmark 4] Maximum length address (10,000 iterations)",
           benchmark(validator.validate, [longest]))

    dns = MockDNSService({domain: ["10.0.0.1"] for domain in
                          (email.split('@')[1] for email in VALID_EMAILS)})
    with DomainChecker(dns_service=dns, timeout=5) as checker:
        check = benchmark(lambda email: checker.check_email_address(email).result(), ALL_EMAILS, iterations=1000)
    report("[Benchmark 5] Combined check, mocked DNS (1,000 iterations)", check)

    print("\n" + "=" * 60)
    print("Summary")
    print("=" * 60)
    print(f"Syntax check: ~{syntax['rps']:,.0f} addresses/second")
    print(f"Combined check: ~{check['rps']:,.0f} addresses/second (thread handoff included)")
    print("=" * 60)


if __name__ == "__main__":
    main()
