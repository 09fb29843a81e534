#!/usr/bin/env python3
"""
Test Runner Script

Installs the package with its test extra and runs the suite with coverage.

Usage:
    python run_tests.py            # whole suite
    python run_tests.py -k checker # extra arguments are passed to pytest
"""

import subprocess
import sys
import os

COVERAGE_THRESHOLD = 90


def run_tests(pytest_args):
    """Run tests with coverage."""
    project_dir = os.path.dirname(os.path.abspath(__file__))

    print("=" * 60)
    print("Running Email Check Tests with Coverage")
    print("=" * 60)

    print("\n[1/3] Installing package with test dependencies...")
    try:
        subprocess.run(
            [sys.executable, "-m", "pip", "install", "-q", "-e", ".[test]"],
            cwd=project_dir,
            check=True
        )
    except subprocess.CalledProcessError as e:
        print(f"✗ Failed to install dependencies: {e}")
        return 1

    print("\n[2/3] Running tests...")
    result = subprocess.run(
        [sys.executable, "-m", "pytest",
         "tests/",
         "-v",
         "--cov=email_check",
         "--cov-report=term-missing",
         "--cov-report=html",
         f"--cov-fail-under={COVERAGE_THRESHOLD}",
         *pytest_args],
        cwd=project_dir
    )

    print("\n[3/3] Test Summary")
    print("-" * 40)
    if result.returncode == 0:
        print(f"✓ All tests passed, coverage >= {COVERAGE_THRESHOLD}%")
    else:
        print(f"✗ pytest exited with status {result.returncode}")
    print("Coverage HTML report generated in: htmlcov/index.html")

    return result.returncode


if __name__ == "__main__":
    sys.exit(run_tests(sys.argv[1:]))
