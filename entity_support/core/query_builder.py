"""
Weighted disjunctive query construction.

All builders produce a WeightedQuery of SHOULD term clauses, never more than
MAX_CLAUSES of them. Word expansion adds relevance-model terms on the text
field; entity expansion adds the tokenized names of co-occurring entities,
each token weighted by its entity's frequency.
"""

import logging
from typing import List, Sequence

from entity_support.core.corpus import ENTITY_FIELD, TEXT_FIELD
from entity_support.core.entities import canonicalize, entity_name
from entity_support.core.types import ExpansionTerm, WeightedQuery

logger = logging.getLogger(__name__)

MAX_CLAUSES = 64


class QueryBuilder:
    """Builds term, word-expansion and entity-expansion queries."""

    def __init__(self, analyzer, text_field: str = TEXT_FIELD, entity_field: str = ENTITY_FIELD,
                 max_clauses: int = MAX_CLAUSES):
        """
        Args:
            analyzer: Tokenizer used for query text and entity names
            text_field: Field searched by word clauses
            entity_field: Field searched by entity-mention clauses
            max_clauses: Upper bound on clauses per query
        """
        self.analyzer = analyzer
        self.text_field = text_field
        self.entity_field = entity_field
        self.max_clauses = max_clauses

    def tokenize_query(self, query: str) -> List[str]:
        return self.analyzer.tokenize(query)[:self.max_clauses]

    def term_query(self, query: str) -> WeightedQuery:
        """Plain disjunction of the query's tokens, each with weight 1.0."""
        weighted = WeightedQuery()
        for token in self.tokenize_query(query):
            weighted.add(self.text_field, token, 1.0)
        return weighted

    def _seed(self, query: str, omit_query_terms: bool) -> WeightedQuery:
        if omit_query_terms:
            return WeightedQuery()
        return self.term_query(query)

    def word_expansion_query(self,
                             query: str,
                             expansion_terms: Sequence[ExpansionTerm],
                             omit_query_terms: bool = False) -> WeightedQuery:
        """
        Query tokens plus relevance-model terms.

        Args:
            query: Query text
            expansion_terms: Terms sorted by descending weight
            omit_query_terms: Leave the original query tokens out

        Returns:
            WeightedQuery with at most max_clauses clauses
        """
        weighted = self._seed(query, omit_query_terms)
        room = max(0, self.max_clauses - len(weighted))

        for term, weight in expansion_terms[:room]:
            weighted.add(self.text_field, term, weight)

        logger.debug(f"Word-expansion query for '{query}': {len(weighted)} clauses")
        return weighted

    def entity_expansion_query(self,
                               query: str,
                               entities: Sequence[ExpansionTerm],
                               omit_query_terms: bool = False) -> WeightedQuery:
        """
        Query tokens plus the tokenized names of expansion entities.

        The entity list is cut to the room left by the query tokens before
        the names are tokenized; since a name can yield several tokens the
        result is then capped at max_clauses.
        """
        weighted = self._seed(query, omit_query_terms)
        room = max(0, self.max_clauses - len(weighted))

        for entity_id, weight in entities[:room]:
            for token in self.analyzer.tokenize(entity_name(entity_id)):
                weighted.add(self.text_field, token, weight)

        if len(weighted) > self.max_clauses:
            weighted.clauses = weighted.clauses[:self.max_clauses]

        logger.debug(f"Entity-expansion query for '{query}': {len(weighted)} clauses")
        return weighted

    def query_entity_query(self, query: str, entity_id: str) -> WeightedQuery:
        """Query tokens on the text field plus the entity itself on the entity field."""
        weighted = WeightedQuery()
        tokens = self.tokenize_query(query)[:self.max_clauses - 1]
        for token in tokens:
            weighted.add(self.text_field, token, 1.0)
        weighted.add(self.entity_field, canonicalize(entity_id), 1.0)
        return weighted
