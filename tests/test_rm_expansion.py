#!/usr/bin/env python3
"""
Unit tests for RM expansion module.

Tests the relevance-model estimation used for word expansion:
- Linear and log-score document weighting
- RM1 vs RM3 seeding
- Empty and degenerate feedback sets
- Private feedback indices over pseudo-document passages

Usage:
    python -m pytest tests/test_rm_expansion.py -v
    python tests/test_rm_expansion.py  # Run directly
"""

import math
import sys
import unittest
from pathlib import Path
from unittest.mock import Mock

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.append(str(project_root))

from entity_support.core.analysis import Analyzer
from entity_support.core.corpus import BM25Corpus, SearchableIndex
from entity_support.core.rm_expansion import (RelevanceModelExpander, expansion_statistics,
                                              rm1_expansion, rm3_expansion)
from entity_support.core.types import ExpansionTerm, Passage
from tests.fixtures import FailingIndex, FixedIndex, hit


class TestRelevanceModelExpander(unittest.TestCase):
    """Test cases for RelevanceModelExpander."""

    def setUp(self):
        """Set up test fixtures."""
        self.analyzer = Analyzer("standard")
        self.index = FixedIndex([hit("a", "alpha beta", 3.0), hit("b", "beta gamma", 1.0)])

    def assertTerms(self, actual, expected):
        self.assertEqual([t.term for t in actual], [t for t, _ in expected])
        for (term, weight), (expected_term, expected_weight) in zip(actual, expected):
            self.assertAlmostEqual(weight, expected_weight, places=6, msg=term)

    def test_rm3_linear_scores(self):
        expander = RelevanceModelExpander(self.analyzer, take_k_terms=10, take_k_docs=10)
        terms = expander.expand(self.index, "alpha")
        self.assertTerms(terms, [("alpha", 1.75), ("beta", 1.0), ("gamma", 0.25)])

    def test_rm1_omits_query_seed(self):
        expander = RelevanceModelExpander(self.analyzer, take_k_terms=10, omit_query_terms=True)
        terms = expander.expand(self.index, "alpha")
        self.assertTerms(terms, [("beta", 1.0), ("alpha", 0.75), ("gamma", 0.25)])

    def test_take_k_terms(self):
        expander = RelevanceModelExpander(self.analyzer, take_k_terms=2)
        self.assertEqual([t.term for t in expander.expand(self.index, "alpha")], ["alpha", "beta"])

    def test_take_k_docs_limits_search(self):
        expander = RelevanceModelExpander(self.analyzer, take_k_terms=10, take_k_docs=1,
                                          omit_query_terms=True)
        terms = expander.expand(self.index, "alpha")
        self.assertTerms(terms, [("alpha", 1.0), ("beta", 1.0)])

    def test_search_uses_query_tokens(self):
        expander = RelevanceModelExpander(self.analyzer)
        expander.expand(self.index, "Alpha Delta")
        self.assertEqual(self.index.queries[0].terms("text"), ["alpha", "delta"])

    def test_log_scores(self):
        index = FixedIndex([hit("a", "alpha", -1.0), hit("b", "beta", -2.0)])
        expander = RelevanceModelExpander(self.analyzer, omit_query_terms=True)
        weights = dict(expander.expand(index, "alpha"))
        first = math.exp(-1.0) / (math.exp(-1.0) + math.exp(-2.0))
        self.assertAlmostEqual(weights["alpha"], first, places=6)
        self.assertAlmostEqual(weights["beta"], 1.0 - first, places=6)
        self.assertAlmostEqual(sum(weights.values()), 1.0, places=6)

    def test_repeated_query_tokens_seed_per_occurrence(self):
        expander = RelevanceModelExpander(self.analyzer)
        self.assertEqual(expander.compute_weights("alpha alpha", []), {"alpha": 2.0})

    def test_no_feedback_documents(self):
        empty = FixedIndex([])
        rm3 = RelevanceModelExpander(self.analyzer).expand(empty, "alpha beta")
        self.assertEqual(rm3, [ExpansionTerm("alpha", 1.0), ExpansionTerm("beta", 1.0)])
        rm1 = RelevanceModelExpander(self.analyzer, omit_query_terms=True).expand(empty, "alpha beta")
        self.assertEqual(rm1, [])

    def test_zero_scores_contribute_nothing(self):
        index = FixedIndex([hit("a", "beta", 0.0), hit("b", "gamma", 0.0)])
        terms = RelevanceModelExpander(self.analyzer).expand(index, "alpha")
        self.assertEqual(terms, [ExpansionTerm("alpha", 1.0)])

    def test_query_without_terms(self):
        expander = RelevanceModelExpander(Analyzer("english"))
        with self.assertLogs("entity_support.core.rm_expansion", level="WARNING"):
            terms = expander.expand(self.index, "the of and")
        self.assertEqual(terms, [])
        self.assertEqual(self.index.queries, [])

    def test_search_depth_is_take_k_docs(self):
        index = Mock(spec=SearchableIndex)
        index.search.return_value = [hit("a", "alpha beta", 1.0)]
        RelevanceModelExpander(self.analyzer, take_k_docs=7).expand(index, "alpha")
        query, top_n = index.search.call_args[0]
        self.assertEqual(top_n, 7)
        self.assertEqual(query.terms(), ["alpha"])

    def test_search_failure_propagates(self):
        expander = RelevanceModelExpander(self.analyzer)
        with self.assertRaises(RuntimeError):
            expander.expand(FailingIndex([]), "alpha")

    def test_negative_parameters_rejected(self):
        with self.assertRaises(ValueError):
            RelevanceModelExpander(self.analyzer, take_k_terms=-1)

    def test_explain_expansion(self):
        info = RelevanceModelExpander(self.analyzer).explain_expansion(self.index, "alpha")
        self.assertEqual(info['query_terms'], ["alpha"])
        self.assertEqual(info['feedback_doc_ids'], ["a", "b"])
        self.assertFalse(info['use_log_scores'])


class TestFeedbackFromPassages(unittest.TestCase):
    """Test cases for expansion over a private feedback index."""

    def setUp(self):
        self.analyzer = Analyzer("standard")
        self.corpus = BM25Corpus([Passage("a", "alpha beta", ()), Passage("b", "beta gamma", ())],
                                 analyzer=self.analyzer)

    def test_only_matching_passages_give_feedback(self):
        expander = RelevanceModelExpander(self.analyzer, take_k_terms=10)
        terms = expander.expand_from_passages(self.corpus, [self.corpus.lookup("a"), self.corpus.lookup("b")],
                                              "alpha")
        self.assertEqual([t.term for t in terms], ["alpha", "beta"])
        self.assertAlmostEqual(terms[0].weight, 2.0)
        self.assertAlmostEqual(terms[1].weight, 1.0)

    def test_no_passages(self):
        expander = RelevanceModelExpander(self.analyzer)
        self.assertEqual(expander.expand_from_passages(self.corpus, [], "alpha"),
                         [ExpansionTerm("alpha", 1.0)])

    def test_corpus_stays_open(self):
        expander = RelevanceModelExpander(self.analyzer)
        expander.expand_from_passages(self.corpus, [self.corpus.lookup("a")], "alpha")
        self.assertFalse(self.corpus.closed)


class TestConvenienceFunctions(unittest.TestCase):
    """Test cases for module-level helpers."""

    def setUp(self):
        self.analyzer = Analyzer("standard")
        self.index = FixedIndex([hit("a", "alpha beta", 3.0), hit("b", "beta gamma", 1.0)])

    def test_rm1_and_rm3(self):
        rm1 = rm1_expansion("alpha", self.index, self.analyzer, num_terms=1)
        rm3 = rm3_expansion("alpha", self.index, self.analyzer, num_terms=1)
        self.assertEqual(rm1[0].term, "beta")
        self.assertEqual(rm3[0].term, "alpha")

    def test_expansion_statistics(self):
        stats = expansion_statistics([ExpansionTerm("a", 1.0), ExpansionTerm("b", 3.0)])
        self.assertEqual(stats['num_terms'], 2)
        self.assertEqual(stats['mean_weight'], 2.0)
        self.assertEqual(stats['max_weight'], 3.0)
        self.assertEqual(expansion_statistics([]), {})


if __name__ == "__main__":
    unittest.main()
