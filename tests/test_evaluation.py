#!/usr/bin/env python3
"""
Unit tests for evaluation functionality.

Tests the evaluation modules including:
- Metric name mapping for pytrec_eval
- TRECEvaluator run comparison
- Results table generation
- Evaluating run and qrels files

Usage:
    python -m pytest tests/test_evaluation.py -v
    python tests/test_evaluation.py  # Run directly
"""

import os
import shutil
import sys
import tempfile
import unittest
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.append(str(project_root))

# pytrec_eval needs a compiled extension
try:
    from entity_support.evaluation.evaluator import DEFAULT_METRICS, TRECEvaluator
    from entity_support.evaluation.metrics import compute_metric, get_metric, measure_name, per_query_metrics

    EVALUATOR_AVAILABLE = True
except ImportError as e:
    print(f"Warning: Evaluator modules not available: {e}")
    EVALUATOR_AVAILABLE = False


@unittest.skipUnless(EVALUATOR_AVAILABLE, "Evaluator modules not available")
class TestMetrics(unittest.TestCase):
    """Test cases for the pytrec_eval wrappers."""

    def setUp(self):
        self.qrels = {'q+e1': {'p1': 1, 'p2': 0}, 'q+e2': {'p3': 1}}
        self.run = {'q+e1': {'p1': 2.0, 'p2': 1.0}, 'q+e2': {'p4': 2.0, 'p3': 1.0}}

    def test_measure_name(self):
        self.assertEqual(measure_name('map'), 'map')
        self.assertEqual(measure_name('P_1'), 'P.1')
        self.assertEqual(measure_name('ndcg_cut_10'), 'ndcg_cut.10')
        with self.assertRaises(ValueError):
            measure_name('accuracy')

    def test_per_query_metrics(self):
        per_query = per_query_metrics(self.qrels, self.run, ['P_1', 'recip_rank'])
        self.assertEqual(per_query['q+e1'], {'P_1': 1.0, 'recip_rank': 1.0})
        self.assertEqual(per_query['q+e2'], {'P_1': 0.0, 'recip_rank': 0.5})

    def test_compute_metric_is_mean(self):
        self.assertAlmostEqual(compute_metric(self.qrels, self.run, 'map'), 0.75)

    def test_no_common_queries(self):
        self.assertEqual(compute_metric(self.qrels, {'other': {'p1': 1.0}}, 'map'), 0.0)


@unittest.skipUnless(EVALUATOR_AVAILABLE, "Evaluator modules not available")
class TestTRECEvaluator(unittest.TestCase):
    """Test cases for TRECEvaluator functionality."""

    def setUp(self):
        """Set up test fixtures."""
        self.temp_dir = tempfile.mkdtemp()
        self.qrels = {'q+e1': {'p1': 1, 'p2': 0}}
        self.runs = {
            'baseline': {'q+e1': [('p2', 2.0), ('p1', 1.0)]},
            'ecn': {'q+e1': [('p1', 2.0), ('p2', 1.0)]},
        }
        self.evaluator = TRECEvaluator(metrics=['map', 'P_1'])

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_default_metrics(self):
        self.assertEqual(TRECEvaluator().metrics, DEFAULT_METRICS)

    def test_evaluate_run(self):
        results = self.evaluator.evaluate_run(self.runs['ecn'], self.qrels)
        self.assertEqual(results, {'map': 1.0, 'P_1': 1.0})

    def test_unsupported_metric_scores_zero(self):
        evaluator = TRECEvaluator(metrics=['map', 'accuracy'])
        with self.assertLogs("entity_support.evaluation.evaluator", level="WARNING"):
            results = evaluator.evaluate_run(self.runs['ecn'], self.qrels)
        self.assertEqual(results['accuracy'], 0.0)

    def test_compare_runs(self):
        comparison = self.evaluator.compare_runs(self.runs, self.qrels)
        self.assertEqual(comparison['baseline'], 'baseline')
        improvements = comparison['improvements']['ecn']
        self.assertAlmostEqual(improvements['map_improvement_abs'], 0.5)
        self.assertAlmostEqual(improvements['map_improvement_pct'], 100.0)
        # baseline P_1 is zero
        self.assertEqual(improvements['P_1_improvement_pct'], 0.0)

    def test_compare_runs_unknown_baseline(self):
        with self.assertRaises(ValueError):
            self.evaluator.compare_runs(self.runs, self.qrels, baseline_run='missing')

    def test_results_table(self):
        table = self.evaluator.create_results_table(self.evaluator.compare_runs(self.runs, self.qrels))
        lines = table.strip().split("\n")
        self.assertEqual(lines[0], "Method\tmap\tP_1")
        self.assertTrue(lines[2].startswith("baseline\t0.5000"))
        self.assertIn("(+0.5000)", lines[3])

    def test_get_metric_from_files(self):
        qrels_file = os.path.join(self.temp_dir, 'qrels.txt')
        run_file = os.path.join(self.temp_dir, 'run.txt')
        with open(qrels_file, 'w') as f:
            f.write("q+e1 0 p1 1\nq+e1 0 p2 0\n")
        with open(run_file, 'w') as f:
            f.write("q+e1 Q0 p2 1 2.0 test\nq+e1 Q0 p1 2 1.0 test\n")

        self.assertAlmostEqual(get_metric(qrels_file, run_file, 'map'), 0.5)
        self.assertAlmostEqual(get_metric(qrels_file, run_file, 'recip_rank'), 0.5)


if __name__ == "__main__":
    unittest.main()
