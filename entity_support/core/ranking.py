"""
Ranked output for one (query, entity) pair.

Run-file lines have six whitespace-separated fields:

    <queryID>+<entityID> Q0 <passageID> <rank> <score> <tag>
"""

import logging
import math
from typing import List, Mapping, NamedTuple

from entity_support.core.entities import composite_query_id

logger = logging.getLogger(__name__)


class RankedEntry(NamedTuple):
    doc_id: str
    rank: int
    score: float


def format_run_line(query_id: str, doc_id: str, rank: int, score: float, tag: str) -> str:
    """One run-file line; repr(float) keeps the score exact when re-parsed."""
    return f"{query_id} Q0 {doc_id} {rank} {score!r} {tag}"


class RankedOutputEmitter:
    """
    Sorts a score map and formats it as run-file lines.

    Entries are ordered by descending score, ties by ascending passage ID.
    Scores that are not positive (or NaN) mean "no evidence" and are dropped.
    """

    def __init__(self, tag: str, rank_start: int = 1):
        """
        Args:
            tag: Run name written in the last column
            rank_start: Rank of the first entry (0 or 1)
        """
        if not tag or any(ch.isspace() for ch in tag):
            raise ValueError(f"Run tag must be a non-empty word, got {tag!r}")
        self.tag = tag
        self.rank_start = rank_start

    def rank(self, scores: Mapping[str, float]) -> List[RankedEntry]:
        positive = [(doc_id, float(score)) for doc_id, score in scores.items()
                    if not math.isnan(score) and score > 0]
        positive.sort(key=lambda item: (-item[1], item[0]))

        return [RankedEntry(doc_id, self.rank_start + i, score)
                for i, (doc_id, score) in enumerate(positive)]

    def format(self, query_id: str, entity_id: str, scores: Mapping[str, float]) -> List[str]:
        """
        Run-file lines for one (query, entity) key.

        Args:
            query_id: Query ID
            entity_id: Entity ID
            scores: passage ID -> score

        Returns:
            Lines (without newline) in rank order; empty if nothing scored above 0
        """
        run_id = composite_query_id(query_id, entity_id)
        return [format_run_line(run_id, entry.doc_id, entry.rank, entry.score, self.tag)
                for entry in self.rank(scores)]
