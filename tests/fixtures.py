"""
Shared test data: a small turtle-diet corpus with canonical entity mentions,
the rankings of one query over it, and helper indices with fixed hits.
"""

from typing import List, Optional

from entity_support.core.analysis import Analyzer
from entity_support.core.corpus import BM25Corpus, SearchableIndex
from entity_support.core.types import Passage, SearchHit

QUERY_ID = "enwiki:Green%20sea%20turtle/Diet"

GREEN_SEA_TURTLE = "enwiki:Green%20sea%20turtle"
SEAGRASS = "enwiki:Seagrass"
CORAL_REEF = "enwiki:Coral%20reef"
JELLYFISH = "enwiki:Jellyfish"

PASSAGES = [
    Passage("p1", "Green sea turtles eat seagrass and algae in shallow lagoons.",
            ("green_sea_turtle", "seagrass")),
    Passage("p2", "Seagrass meadows shelter juvenile fish and feed grazing animals.",
            ("seagrass",)),
    Passage("p3", "Hawksbill turtles feed on sponges along coral reefs.",
            ("hawksbill_sea_turtle", "sponge", "coral_reef")),
    Passage("p4", "Green sea turtle hatchlings are omnivores before they switch to seagrass, "
                  "and adults graze seagrass beds daily.",
            ("green_sea_turtle", "seagrass", "seagrass")),
    Passage("p5", "Volcanic islands form over hotspots in the mantle.", ()),
]

# candidate passages of QUERY_ID with their first-stage scores, in rank order
CANDIDATES = {"p1": 10.0, "p2": 8.0, "p3": 6.0, "p4": 4.0, "p5": 2.0}

RETRIEVED_ENTITIES = [GREEN_SEA_TURTLE, SEAGRASS, CORAL_REEF, JELLYFISH]
JUDGED_ENTITIES = [GREEN_SEA_TURTLE, SEAGRASS, JELLYFISH]
RELEVANT_ENTITIES = [GREEN_SEA_TURTLE, SEAGRASS, JELLYFISH]

SALIENCE = {
    "p1": {"green_sea_turtle": 0.5},
    "p2": {"seagrass": 0.4},
    "p4": {"green_sea_turtle": 0.25, "seagrass": 1.0},
}


def make_corpus(analyzer: Optional[Analyzer] = None) -> BM25Corpus:
    return BM25Corpus(PASSAGES, analyzer=analyzer or Analyzer("english"))


class FixedIndex(SearchableIndex):
    """Returns the same hits for every query."""

    def __init__(self, hits: List[SearchHit], analyzer=None):
        self.hits = hits
        self.analyzer = analyzer or Analyzer("standard")
        self.queries = []
        self._closed = False

    def search(self, query, top_n):
        self._check_open()
        self.queries.append(query)
        return self.hits[:top_n]

    def close(self):
        self._closed = True

    @property
    def closed(self):
        return self._closed


class FailingIndex(FixedIndex):
    """Raises on every search."""

    def search(self, query, top_n):
        raise RuntimeError("search failed")


def hit(passage_id: str, text: str, score: float) -> SearchHit:
    return SearchHit(Passage(passage_id, text, ()), score)
