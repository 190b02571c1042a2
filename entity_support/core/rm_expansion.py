"""
RM (Relevance Model) Expansion Module

RM1 and RM3 pseudo-relevance feedback over any SearchableIndex: the whole
corpus, or an ephemeral index built over a pseudo-document's passages.

Algorithm (one pass per query):
1. Tokenize the query, search the feedback index with the disjunction of its
   tokens and keep the top ``take_k_docs`` hits.
2. If any hit score is negative the scores are log-scores; a document then
   weighs exp(score - log(sum(exp(scores)))), otherwise score / sum(scores).
3. Every token occurrence in a feedback document adds the document's weight
   to that token. RM3 seeds the accumulator with the query tokens at 1.0;
   RM1 (``omit_query_terms``) does not.
4. The ``take_k_terms`` heaviest tokens are the expansion terms.
"""

import logging
import statistics
from collections import defaultdict
from typing import Dict, List, Sequence

import numpy as np

from entity_support.core.corpus import CorpusHandle, SearchableIndex, TEXT_FIELD
from entity_support.core.query_builder import QueryBuilder
from entity_support.core.types import ExpansionTerm, Passage, SearchHit

logger = logging.getLogger(__name__)


class RelevanceModelExpander:
    """
    Word-level relevance model estimated from a feedback set.
    """

    def __init__(self,
                 analyzer,
                 take_k_terms: int = 20,
                 take_k_docs: int = 10,
                 omit_query_terms: bool = False,
                 text_field: str = TEXT_FIELD):
        """
        Initialize the expander.

        Args:
            analyzer: Tokenizer for the query and the feedback documents
            take_k_terms: Number of expansion terms to return
            take_k_docs: Number of pseudo-relevant documents to use
            omit_query_terms: If True, compute RM1 (no original query terms)
            text_field: Field holding the text of feedback documents
        """
        if take_k_terms < 0 or take_k_docs < 0:
            raise ValueError("take_k_terms and take_k_docs must be non-negative")

        self.analyzer = analyzer
        self.take_k_terms = take_k_terms
        self.take_k_docs = take_k_docs
        self.omit_query_terms = omit_query_terms
        self.query_builder = QueryBuilder(analyzer, text_field=text_field)

    def expand(self, feedback_index: SearchableIndex, query: str) -> List[ExpansionTerm]:
        """
        Compute the expansion of ``query`` against ``feedback_index``.

        Args:
            feedback_index: Index to draw pseudo-relevant documents from
            query: Query text

        Returns:
            ExpansionTerms sorted by descending weight. With no feedback
            documents this is just the query tokens (or nothing for RM1).
        """
        logger.debug(f"Computing relevance model for query: '{query}'")

        initial_query = self.query_builder.term_query(query)
        if not initial_query:
            logger.warning(f"No valid terms in query: '{query}'")
            hits = []
        else:
            hits = feedback_index.search(initial_query, self.take_k_docs)

        if not hits:
            logger.debug(f"Empty feedback set for query: '{query}'")

        result = self.top_terms(query, hits)

        logger.debug(f"Relevance model completed: {len(result)} terms from {len(hits)} documents")
        return result

    def expand_from_passages(self, corpus: CorpusHandle, passages: Sequence[Passage],
                             query: str) -> List[ExpansionTerm]:
        """
        Expansion over a private feedback index built from ``passages``.

        The index is closed before returning, also when the expansion fails.
        """
        if not passages:
            return self.top_terms(query, [])

        with corpus.build_feedback_index(passages) as feedback_index:
            return self.expand(feedback_index, query)

    def top_terms(self, query: str, hits: Sequence[SearchHit]) -> List[ExpansionTerm]:
        """The take_k_terms heaviest terms of the model estimated from ``hits``."""
        term_weights = self.compute_weights(query, hits)
        sorted_terms = sorted(term_weights.items(), key=lambda x: x[1], reverse=True)
        return [ExpansionTerm(term, weight) for term, weight in sorted_terms[:self.take_k_terms]]

    def compute_weights(self, query: str, hits: Sequence[SearchHit]) -> Dict[str, float]:
        """
        Accumulate term weights from scored feedback documents.

        Args:
            query: Query text (seeds the model unless omit_query_terms)
            hits: Feedback documents with their retrieval scores

        Returns:
            term -> weight, in first-seen order
        """
        term_weights: Dict[str, float] = defaultdict(float)

        if not self.omit_query_terms:
            query_tokens = self.query_builder.tokenize_query(query)
            self._add_tokens(query_tokens, 1.0, term_weights)
            logger.debug(f"Added {len(query_tokens)} query terms with weight 1.0")

        if not hits:
            return dict(term_weights)

        scores = np.array([hit.score for hit in hits], dtype=float)
        use_log = bool((scores < 0.0).any())

        if use_log:
            normalizer = float(np.exp(scores).sum())
        else:
            normalizer = float(scores.sum())

        if normalizer == 0.0:
            logger.debug("Feedback scores sum to zero, no document contributes")
            return dict(term_weights)

        if use_log:
            doc_weights = np.exp(scores - np.log(normalizer))
        else:
            doc_weights = scores / normalizer

        for hit, doc_weight in zip(hits, doc_weights):
            doc_tokens = self.analyzer.tokenize(hit.passage.text)
            self._add_tokens(doc_tokens, float(doc_weight), term_weights)

        logger.debug(f"Processed {len(hits)} documents, total terms: {len(term_weights)}")
        return dict(term_weights)

    @staticmethod
    def _add_tokens(tokens: Sequence[str], weight: float, term_weights: Dict[str, float]):
        for token in tokens:
            term_weights[token] += weight

    def explain_expansion(self, feedback_index: SearchableIndex, query: str) -> Dict[str, any]:
        """Return detailed information about the expansion process for debugging."""
        initial_query = self.query_builder.term_query(query)
        hits = feedback_index.search(initial_query, self.take_k_docs) if initial_query else []

        return {
            'query': query,
            'query_terms': initial_query.terms(),
            'num_feedback_docs': len(hits),
            'feedback_doc_ids': [hit.passage.passage_id for hit in hits],
            'feedback_doc_scores': [hit.score for hit in hits],
            'use_log_scores': any(hit.score < 0.0 for hit in hits),
        }


def expansion_statistics(expansion_terms: Sequence[ExpansionTerm]) -> dict:
    """
    Compute statistics about expansion terms.

    Args:
        expansion_terms: List of (term, weight) tuples

    Returns:
        Dictionary with statistics
    """
    if not expansion_terms:
        return {}

    weights = [weight for _, weight in expansion_terms]

    stats = {
        'num_terms': len(expansion_terms),
        'mean_weight': statistics.mean(weights),
        'median_weight': statistics.median(weights),
        'min_weight': min(weights),
        'max_weight': max(weights),
        'std_weight': statistics.stdev(weights) if len(weights) > 1 else 0.0,
    }

    return stats


# Convenience functions
def rm1_expansion(query: str, feedback_index: SearchableIndex, analyzer,
                  num_terms: int = 20, num_docs: int = 10) -> List[ExpansionTerm]:
    """RM1 expansion: feedback terms only."""
    expander = RelevanceModelExpander(analyzer, num_terms, num_docs, omit_query_terms=True)
    return expander.expand(feedback_index, query)


def rm3_expansion(query: str, feedback_index: SearchableIndex, analyzer,
                  num_terms: int = 20, num_docs: int = 10) -> List[ExpansionTerm]:
    """RM3 expansion: feedback terms merged with the original query terms."""
    expander = RelevanceModelExpander(analyzer, num_terms, num_docs, omit_query_terms=False)
    return expander.expand(feedback_index, query)
