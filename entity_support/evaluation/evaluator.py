import logging
from typing import Any, Dict, List, Mapping, Tuple

from .metrics import compute_metric

logger = logging.getLogger(__name__)

DEFAULT_METRICS = ['map', 'P_1', 'ndcg_cut_10', 'recip_rank']


class TRECEvaluator:
    """
    Evaluator for support-passage runs.

    Runs are keyed by composite ``<queryID>+<entityID>`` IDs and judged
    against support-passage qrels with the same keys.
    """

    def __init__(self, metrics: List[str] = None):
        """
        Initialize evaluator with specified metrics.

        Args:
            metrics: List of metrics to compute (e.g., ['map', 'P_1', 'recip_rank'])
        """
        if metrics is None:
            self.metrics = list(DEFAULT_METRICS)
        else:
            self.metrics = metrics

        logger.info(f"TRECEvaluator initialized with metrics: {self.metrics}")

    @staticmethod
    def to_score_run(run_results: Mapping[str, List[Tuple[str, float]]]) -> Dict[str, Dict[str, float]]:
        return {query_id: {doc_id: score for doc_id, score in docs} for query_id, docs in run_results.items()}

    def evaluate_run(self, run_results: Mapping[str, List[Tuple[str, float]]],
                     qrels: Mapping[str, Mapping[str, int]]) -> Dict[str, float]:
        """
        Evaluate a single run against qrels.

        Args:
            run_results: {query_id: [(doc_id, score), ...]}
            qrels: {query_id: {doc_id: relevance}}

        Returns:
            Dictionary of metric scores
        """
        run = self.to_score_run(run_results)

        results = {}
        for metric in self.metrics:
            try:
                results[metric] = compute_metric(qrels, run, metric)
            except ValueError as e:
                logger.warning(f"Failed to compute {metric}: {e}")
                results[metric] = 0.0

        return results

    def evaluate_multiple_runs(self, runs: Mapping[str, Mapping[str, List[Tuple[str, float]]]],
                               qrels: Mapping[str, Mapping[str, int]]) -> Dict[str, Dict[str, float]]:
        """
        Evaluate multiple runs against qrels.

        Args:
            runs: {run_name: {query_id: [(doc_id, score), ...]}}
            qrels: {query_id: {doc_id: relevance}}

        Returns:
            {run_name: {metric: score}}
        """
        logger.info(f"Evaluating {len(runs)} runs on {len(qrels)} queries")

        results = {}
        for run_name, run_results in runs.items():
            logger.info(f"Evaluating run: {run_name}")
            results[run_name] = self.evaluate_run(run_results, qrels)

        return results

    def compare_runs(self, runs: Mapping[str, Mapping[str, List[Tuple[str, float]]]],
                     qrels: Mapping[str, Mapping[str, int]],
                     baseline_run: str = None) -> Dict[str, Any]:
        """
        Compare multiple runs and compute improvements over a baseline.

        Args:
            runs: {run_name: {query_id: [(doc_id, score), ...]}}
            qrels: {query_id: {doc_id: relevance}}
            baseline_run: Name of baseline run (default: first run)

        Returns:
            {'evaluations': ..., 'baseline': name, 'improvements': {run: {...}}}
        """
        evaluations = self.evaluate_multiple_runs(runs, qrels)

        if baseline_run is None:
            baseline_run = next(iter(runs))
            logger.info(f"Using '{baseline_run}' as baseline")
        elif baseline_run not in evaluations:
            raise ValueError(f"Baseline run '{baseline_run}' not among evaluated runs")

        baseline_scores = evaluations[baseline_run]

        comparison = {
            'evaluations': evaluations,
            'baseline': baseline_run,
            'improvements': {}
        }

        for run_name, scores in evaluations.items():
            if run_name == baseline_run:
                continue

            improvements = {}
            for metric, score in scores.items():
                baseline_score = baseline_scores[metric]
                improvements[f"{metric}_improvement_abs"] = score - baseline_score
                if baseline_score > 0:
                    improvements[f"{metric}_improvement_pct"] = (score - baseline_score) / baseline_score * 100
                else:
                    improvements[f"{metric}_improvement_pct"] = 0.0

            comparison['improvements'][run_name] = improvements

        return comparison

    def create_results_table(self, comparison_results: Dict[str, Any]) -> str:
        """Tab-separated table: baseline first, then every other run with absolute deltas."""
        evaluations = comparison_results['evaluations']
        baseline = comparison_results['baseline']
        improvements = comparison_results['improvements']

        lines = ["Method\t" + "\t".join(self.metrics),
                 "-" * (len("Method") + sum(len(m) + 1 for m in self.metrics))]

        baseline_scores = evaluations[baseline]
        lines.append(baseline + "".join(f"\t{baseline_scores[m]:.4f}" for m in self.metrics))

        for run_name, scores in evaluations.items():
            if run_name == baseline:
                continue
            row = run_name
            for metric in self.metrics:
                delta = improvements[run_name].get(f"{metric}_improvement_abs", 0.0)
                row += f"\t{scores[metric]:.4f} ({delta:+.4f})"
            lines.append(row)

        return "\n".join(lines) + "\n"
