"""
Value types shared across the scoring engine.

All of these are created per (query, entity) pass and thrown away once the
ranked output has been produced.
"""

from dataclasses import dataclass, field
from typing import Dict, List, NamedTuple, Optional, Tuple

# passage ID -> score; raw frequency, retrieval score or probability
ScoreMap = Dict[str, float]


@dataclass(frozen=True)
class Passage:
    """A candidate passage as stored in the corpus."""
    passage_id: str
    text: str
    mentions: Tuple[str, ...] = field(default_factory=tuple)

    def mentions_entity(self, canonical_entity: str) -> bool:
        return canonical_entity in self.mentions


class SearchHit(NamedTuple):
    passage: Passage
    score: float


class ExpansionTerm(NamedTuple):
    """A word or entity ID with its expansion weight."""
    term: str
    weight: float


class QueryClause(NamedTuple):
    """One SHOULD clause of a weighted disjunctive query."""
    field: str
    term: str
    weight: float


@dataclass
class WeightedQuery:
    """
    Disjunctive weighted term query.

    Every clause is optional (SHOULD); a document's score is the weighted
    sum of its clause scores and documents matching no clause are not hits.
    """
    clauses: List[QueryClause] = field(default_factory=list)

    def add(self, field_name: str, term: str, weight: float = 1.0):
        self.clauses.append(QueryClause(field_name, term, float(weight)))

    def fields(self) -> List[str]:
        return sorted({clause.field for clause in self.clauses})

    def terms(self, field_name: Optional[str] = None) -> List[str]:
        return [c.term for c in self.clauses if field_name is None or c.field == field_name]

    def __len__(self):
        return len(self.clauses)

    def __bool__(self):
        return bool(self.clauses)

    def __iter__(self):
        return iter(self.clauses)
