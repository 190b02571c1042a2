#!/usr/bin/env python3
"""
Unit tests for logging helpers.

Usage:
    python -m pytest tests/test_logging_utils.py -v
"""

import logging
import sys
import unittest
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.append(str(project_root))

from entity_support.utils.logging_utils import TimedOperation, log_results, setup_logging


class TestLoggingUtils(unittest.TestCase):

    def setUp(self):
        self.logger = logging.getLogger("tests.logging_utils")

    def test_timed_operation_success(self):
        with self.assertLogs(self.logger, level="INFO") as logs:
            with TimedOperation(self.logger, "loading") as timer:
                pass
        self.assertIsNotNone(timer.elapsed)
        self.assertTrue(logs.output[-1].startswith("INFO:tests.logging_utils:Completed: loading"))

    def test_timed_operation_failure_propagates(self):
        with self.assertLogs(self.logger, level="ERROR") as logs:
            with self.assertRaises(RuntimeError):
                with TimedOperation(self.logger, "scoring"):
                    raise RuntimeError("boom")
        self.assertIn("Failed: scoring", logs.output[0])

    def test_log_results_formats_floats(self):
        with self.assertLogs(self.logger, level="INFO") as logs:
            log_results(self.logger, {"ecn": {"map": 0.123456}, "queries": 3})
        self.assertIn("INFO:tests.logging_utils:  map: 0.1235", logs.output)
        self.assertIn("INFO:tests.logging_utils:queries: 3", logs.output)

    def test_invalid_level(self):
        with self.assertRaises(ValueError):
            setup_logging("LOUD")


if __name__ == "__main__":
    unittest.main()
