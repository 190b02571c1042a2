"""
Evaluation tools for support-passage runs.

- Standard IR metrics through pytrec_eval (MAP, P@1, nDCG@10, MRR)
- Multi-run comparison against a baseline and a results table

Key classes:
- TRECEvaluator: TREC-style evaluation of composite (query+entity) runs
"""

from .metrics import get_metric, compute_metric, per_query_metrics
from .evaluator import TRECEvaluator, DEFAULT_METRICS

__all__ = [
    'get_metric',
    'compute_metric',
    'per_query_metrics',
    'TRECEvaluator',
    'DEFAULT_METRICS'
]
