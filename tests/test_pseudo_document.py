#!/usr/bin/env python3
"""
Unit tests for pseudo-document construction and co-occurrence expansion.

Usage:
    python -m pytest tests/test_pseudo_document.py -v
"""

import sys
import unittest
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.append(str(project_root))

from entity_support.core.analysis import Analyzer
from entity_support.core.cooccurrence import COUNT_OWNING_ENTITY, CoOccurrenceExpander
from entity_support.core.corpus import BM25Corpus
from entity_support.core.pseudo_document import PseudoDocument, PseudoDocumentBuilder
from entity_support.core.types import ExpansionTerm, Passage
from tests.fixtures import CANDIDATES, GREEN_SEA_TURTLE, JELLYFISH, SEAGRASS, make_corpus


class TestPseudoDocumentBuilder(unittest.TestCase):
    """Test cases for PseudoDocumentBuilder."""

    def setUp(self):
        # P1 mentions A and B, P2 mentions B
        self.corpus = BM25Corpus([Passage("P1", "first", ("a", "b")),
                                  Passage("P2", "second", ("b",))],
                                 analyzer=Analyzer("standard"))
        self.builder = PseudoDocumentBuilder(self.corpus)

    def test_entity_in_one_passage(self):
        pdoc = self.builder.build("a", ["P1", "P2"])
        self.assertEqual(pdoc.passage_ids, ["P1"])
        self.assertEqual(pdoc.mentions, ("a", "b"))

    def test_entity_in_two_passages_keeps_duplicates(self):
        pdoc = self.builder.build("b", ["P1", "P2"])
        self.assertEqual(pdoc.passage_ids, ["P1", "P2"])
        self.assertEqual(pdoc.mentions, ("a", "b", "b"))

    def test_candidate_order_is_kept(self):
        pdoc = self.builder.build("b", ["P2", "P1"])
        self.assertEqual(pdoc.passage_ids, ["P2", "P1"])

    def test_no_evidence_is_none(self):
        self.assertIsNone(self.builder.build("c", ["P1", "P2"]))
        self.assertIsNone(self.builder.build("a", []))

    def test_raw_entity_id_is_canonicalized(self):
        pdoc = self.builder.build("enwiki:A", ["P1", "P2"])
        self.assertEqual(pdoc.passage_ids, ["P1"])
        self.assertEqual(pdoc.entity_id, "enwiki:A")

    def test_missing_passage_is_skipped(self):
        with self.assertLogs("entity_support.core.pseudo_document", level="WARNING"):
            pdoc = self.builder.build("b", ["P9", "P2"])
        self.assertEqual(pdoc.passage_ids, ["P2"])

    def test_passages_without_mentions_are_skipped(self):
        corpus = BM25Corpus([Passage("x", "text", ()), Passage("y", "text", ("a",))])
        pdoc = PseudoDocumentBuilder(corpus).build("a", ["x", "y"])
        self.assertEqual(pdoc.passage_ids, ["y"])

    def test_build_all_leaves_out_missing_entities(self):
        pdocs = self.builder.build_all(["a", "b", "c"], ["P1", "P2"])
        self.assertEqual(list(pdocs), ["a", "b"])

    def test_turtle_corpus(self):
        builder = PseudoDocumentBuilder(make_corpus())
        self.assertEqual(builder.build(GREEN_SEA_TURTLE, list(CANDIDATES)).passage_ids, ["p1", "p4"])
        self.assertEqual(builder.build(SEAGRASS, list(CANDIDATES)).passage_ids, ["p1", "p2", "p4"])
        self.assertIsNone(builder.build(JELLYFISH, list(CANDIDATES)))


class TestPseudoDocument(unittest.TestCase):
    """Test cases for the PseudoDocument value."""

    def test_empty_passage_list_rejected(self):
        with self.assertRaises(ValueError):
            PseudoDocument("a", (), ())

    def test_to_passage(self):
        pdoc = PseudoDocument("enwiki:A", (Passage("P1", "one", ("a",)), Passage("P2", "two", ("a", "b"))),
                              ("a", "a", "b"))
        passage = pdoc.to_passage()
        self.assertEqual(passage.passage_id, "enwiki:A")
        self.assertIn("one", passage.text)
        self.assertIn("two", passage.text)
        self.assertEqual(passage.mentions, ("a", "a", "b"))
        self.assertTrue(pdoc.contains_passage("P2"))
        self.assertFalse(pdoc.contains_passage("P3"))
        self.assertEqual(len(pdoc), 2)


class TestCoOccurrenceExpander(unittest.TestCase):
    """Test cases for CoOccurrenceExpander."""

    def setUp(self):
        passages = (Passage("P1", "", ("a", "c", "b")), Passage("P2", "", ("a", "b", "d")))
        self.pdoc = PseudoDocument("a", passages, ("a", "c", "b", "a", "b", "d"))

    def test_owning_entity_counted_by_default(self):
        self.assertTrue(COUNT_OWNING_ENTITY)
        freqs = CoOccurrenceExpander().frequency_map(self.pdoc, ["a", "b", "c"])
        self.assertEqual(freqs, {"a": 2, "c": 1, "b": 2})

    def test_owning_entity_excluded(self):
        expander = CoOccurrenceExpander(count_owning_entity=False)
        self.assertEqual(expander.frequency_map(self.pdoc, ["enwiki:A", "b"]), {"b": 2})

    def test_only_context_entities_counted(self):
        freqs = CoOccurrenceExpander().frequency_map(self.pdoc, ["enwiki:D"])
        self.assertEqual(freqs, {"d": 1})

    def test_sorted_with_first_seen_ties(self):
        terms = CoOccurrenceExpander().expand(self.pdoc, ["a", "b", "c", "d"])
        self.assertEqual(terms, [ExpansionTerm("a", 2.0), ExpansionTerm("b", 2.0),
                                 ExpansionTerm("c", 1.0), ExpansionTerm("d", 1.0)])

    def test_top_k(self):
        terms = CoOccurrenceExpander(top_k=1).expand(self.pdoc, ["b", "c", "d"])
        self.assertEqual(terms, [ExpansionTerm("b", 2.0)])

    def test_none_pseudo_document(self):
        self.assertEqual(CoOccurrenceExpander().expand(None, ["a"]), [])
        self.assertEqual(CoOccurrenceExpander().frequency_map(None, ["a"]), {})


if __name__ == "__main__":
    unittest.main()
