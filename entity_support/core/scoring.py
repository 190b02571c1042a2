"""
Score normalization and combination.

Two families that are not interchangeable:
- probability style: normalize() then combine_product()
- count style: frequency_sum() over co-occurrence frequencies

combine_sum() merges partial scores when a passage is evidence for several
entities (pseudo-document retrieval).
"""

import logging
import math
from collections import defaultdict
from typing import Dict, Iterable, Mapping, Sequence

from entity_support.core.types import ScoreMap

logger = logging.getLogger(__name__)


def normalize(scores: Mapping[str, float]) -> ScoreMap:
    """
    Divide every score by the sum of all scores.

    Args:
        scores: passage ID -> score

    Returns:
        New map with the same keys; all zeros if the scores sum to 0
    """
    total = math.fsum(scores.values())
    if total == 0:
        return {key: 0.0 for key in scores}
    return {key: value / total for key, value in scores.items()}


def combine_product(scores_a: Mapping[str, float], scores_b: Mapping[str, float]) -> ScoreMap:
    """
    Per-key product over the keys present in both maps.

    Keys found in only one map are left out of the result entirely.
    Result order follows ``scores_a``.
    """
    return {key: value * scores_b[key] for key, value in scores_a.items() if key in scores_b}


def combine_sum(score_maps: Iterable[Mapping[str, float]]) -> ScoreMap:
    """Per-key sum across a list of score maps."""
    combined: Dict[str, float] = defaultdict(float)
    for score_map in score_maps:
        for key, value in score_map.items():
            combined[key] += value
    return dict(combined)


def frequency_sum(mentions: Sequence[str], frequencies: Mapping[str, float]) -> float:
    """
    Sum the co-occurrence frequency of every mention in a passage.

    Repeated mentions count once per occurrence; mentions without a
    frequency contribute 0.
    """
    return sum(frequencies.get(mention, 0.0) for mention in mentions)
