"""
IR metrics via pytrec_eval.

Metric names follow trec_eval's output keys (``map``, ``P_1``,
``ndcg_cut_10``, ``recip_rank``, ``recall_100``, ...).
"""

import logging
from typing import Dict, Iterable, Mapping

import numpy as np
import pytrec_eval

from entity_support.utils.file_utils import load_qrels_graded, load_trec_run

logger = logging.getLogger(__name__)


def measure_name(metric: str) -> str:
    """pytrec_eval measure for a metric key: ``ndcg_cut_10`` -> ``ndcg_cut.10``."""
    if metric in pytrec_eval.supported_measures:
        return metric
    family, _, cutoff = metric.rpartition('_')
    if family in pytrec_eval.supported_measures and cutoff.isdigit():
        return f"{family}.{cutoff}"
    raise ValueError(f"Unsupported metric: {metric}")


def per_query_metrics(qrels: Mapping[str, Mapping[str, int]],
                      run: Mapping[str, Mapping[str, float]],
                      metrics: Iterable[str]) -> Dict[str, Dict[str, float]]:
    """
    Evaluate a run per query.

    Args:
        qrels: {query_id: {doc_id: relevance}}
        run: {query_id: {doc_id: score}}
        metrics: Metric keys

    Returns:
        {query_id: {metric: value}} for queries present in both qrels and run
    """
    metrics = list(metrics)
    evaluator = pytrec_eval.RelevanceEvaluator(
        {q: dict(docs) for q, docs in qrels.items()},
        {measure_name(m) for m in metrics}
    )
    results = evaluator.evaluate({q: {d: float(s) for d, s in docs.items()} for q, docs in run.items()})
    return {query_id: {m: values[m] for m in metrics} for query_id, values in results.items()}


def compute_metric(qrels: Mapping[str, Mapping[str, int]],
                   run: Mapping[str, Mapping[str, float]],
                   metric: str) -> float:
    """Mean of ``metric`` over the evaluated queries (0.0 if none)."""
    per_query = per_query_metrics(qrels, run, [metric])
    if not per_query:
        logger.warning(f"No query in common between run and qrels for {metric}")
        return 0.0
    return float(np.mean([values[metric] for values in per_query.values()]))


def get_metric(qrels_file: str, run_file: str, metric: str = 'map') -> float:
    """
    Evaluate a run file against a qrels file.

    Args:
        qrels_file: Path to qrels file
        run_file: Path to run file
        metric: Metric key

    Returns:
        Mean metric value
    """
    qrels = load_qrels_graded(qrels_file)
    run = load_trec_run(run_file)
    return compute_metric(qrels, run, metric)
