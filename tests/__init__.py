"""
Test suite for the support-passage ranking package.

This module contains unit tests for all components:
- Core tests (identifiers, corpus, pseudo-documents, RM expansion, queries, scoring)
- Model tests (support-passage models, parallel runner, configuration)
- Evaluation tests (metrics, evaluators)
- File handling tests (runs, qrels, salience annotations)

Test modules:
- test_entities: Tests for entity/query identifiers and analyzers
- test_corpus: Tests for the in-process BM25 corpus
- test_pseudo_document: Tests for pseudo-documents and co-occurrence expansion
- test_rm_expansion: Tests for RM expansion algorithms
- test_query_builder: Tests for weighted query construction
- test_scoring: Tests for score combination and ranked output
- test_file_utils: Tests for run, qrels and salience files
- test_support_models: Tests for the support-passage models
- test_runner: Tests for the parallel runner
- test_evaluation: Tests for evaluation functionality
- test_config: Tests for run configuration
- test_lucene_utils: Tests for Lucene initialization
- test_logging_utils: Tests for logging helpers

Usage:
    # Run all tests
    python -m pytest tests/ -v

    # Run specific test module
    python -m pytest tests/test_rm_expansion.py -v

    # Run tests with coverage
    python -m pytest tests/ --cov=entity_support --cov-report=html
"""

import sys
import unittest
from pathlib import Path

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))


def run_all_tests():
    """
    Run all tests in the test suite.

    Returns:
        bool: True if all tests pass, False otherwise
    """
    loader = unittest.TestLoader()
    suite = loader.discover(start_dir=str(Path(__file__).parent), pattern='test_*.py')

    runner = unittest.TextTestRunner(verbosity=2)
    result = runner.run(suite)

    return result.wasSuccessful()


def run_test_module(module_name):
    """
    Run tests from a specific module.

    Args:
        module_name (str): Name of the test module (e.g., 'test_rm_expansion')

    Returns:
        bool: True if tests pass, False otherwise
    """
    loader = unittest.TestLoader()
    suite = loader.loadTestsFromName(module_name)

    runner = unittest.TextTestRunner(verbosity=2)
    result = runner.run(suite)

    return result.wasSuccessful()


# Test configuration
TEST_CONFIG = {
    'verbose': True,
    'failfast': False,
    'buffer': True,
    'catch': True
}

# Available test modules
TEST_MODULES = [
    'test_entities',
    'test_corpus',
    'test_pseudo_document',
    'test_rm_expansion',
    'test_query_builder',
    'test_scoring',
    'test_file_utils',
    'test_support_models',
    'test_runner',
    'test_evaluation',
    'test_config',
    'test_lucene_utils',
    'test_logging_utils'
]

__all__ = [
    'run_all_tests',
    'run_test_module',
    'TEST_CONFIG',
    'TEST_MODULES'
]
