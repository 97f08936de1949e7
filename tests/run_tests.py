#!/usr/bin/env python3
# File: tests/run_tests.py
"""
Test runner for the parking engine tests.

    python tests/run_tests.py                    # everything
    python tests/run_tests.py unit.test_pricing  # one module
"""

import unittest
import sys
from pathlib import Path

# Make `tests` and `src/parkledger` importable without installing
ROOT = Path(__file__).parent.parent
sys.path.append(str(ROOT))
sys.path.append(str(ROOT / "src"))


def run_all_tests():
    """Run all test suites"""
    test_loader = unittest.TestLoader()
    test_suite = test_loader.discover(str(ROOT / "tests"), pattern='test_*.py', top_level_dir=str(ROOT))

    test_runner = unittest.TextTestRunner(verbosity=2)
    return test_runner.run(test_suite)


def run_specific_test(test_name):
    """Run a specific test module or test case"""
    test_loader = unittest.TestLoader()
    test_suite = test_loader.loadTestsFromName(f'tests.{test_name}')

    test_runner = unittest.TextTestRunner(verbosity=2)
    return test_runner.run(test_suite)


if __name__ == "__main__":
    if len(sys.argv) > 1:
        result = run_specific_test(sys.argv[1])
    else:
        result = run_all_tests()

    sys.exit(0 if result.wasSuccessful() else 1)
