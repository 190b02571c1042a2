"""
Corpus handles: read-only passage lookup and weighted term search.

A CorpusHandle is opened once per run and shared by every worker thread.
Implementations must allow concurrent lookup() and search() calls without
external locking. build_feedback_index() creates a small, private index over
an explicit list of passages (used for pseudo-relevance feedback); it must be
closed by the task that built it, which is easiest with a ``with`` block:

    with corpus.build_feedback_index(pdoc.passages) as feedback:
        hits = feedback.search(query, top_n=10)

Backends:
- BM25Corpus: in-process BM25 (rank_bm25) over a JSONL passage file
- LuceneCorpus: on-disk Lucene index through pyjnius (see lucene_corpus)
"""

import json
import logging
import math
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

import numpy as np
from rank_bm25 import BM25Okapi

from entity_support.core.analysis import Analyzer
from entity_support.core.entities import parse_mentions
from entity_support.core.types import Passage, SearchHit, WeightedQuery
from entity_support.exceptions import BackendUnavailableError

logger = logging.getLogger(__name__)

TEXT_FIELD = "text"
ENTITY_FIELD = "entity"


class SearchableIndex(ABC):
    """Anything that can answer a WeightedQuery with scored passages."""

    analyzer = None

    @abstractmethod
    def search(self, query: WeightedQuery, top_n: int) -> List[SearchHit]:
        """
        Run a disjunctive weighted query.

        Args:
            query: Weighted clauses over the text and entity fields
            top_n: Maximum number of hits

        Returns:
            Hits ordered by descending score; only passages matching at
            least one clause are returned
        """
        pass

    @abstractmethod
    def close(self):
        pass

    @property
    @abstractmethod
    def closed(self) -> bool:
        pass

    def _check_open(self):
        if self.closed:
            raise BackendUnavailableError(f"{self.__class__.__name__} is closed")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


class CorpusHandle(SearchableIndex):
    """Read-only passage store shared by all workers of a run."""

    @abstractmethod
    def lookup(self, passage_id: str) -> Optional[Passage]:
        """Fetch a passage by ID, or None if the corpus does not hold it."""
        pass

    @abstractmethod
    def build_feedback_index(self, passages: Sequence[Passage]) -> SearchableIndex:
        """Build an ephemeral in-memory index over ``passages``. Caller closes it."""
        pass

    def release_thread(self):
        """Called by a worker thread when its task ends."""
        pass

    def lookup_many(self, passage_ids: Iterable[str]) -> List[Passage]:
        passages = []
        for passage_id in passage_ids:
            passage = self.lookup(passage_id)
            if passage is not None:
                passages.append(passage)
        return passages


class LuceneIdfBM25(BM25Okapi):
    """
    BM25Okapi with Lucene's idf, log(1 + (N - n + 0.5) / (n + 0.5)).

    Okapi's idf goes negative for terms in more than half the documents,
    which breaks the score-mode detection of the relevance model.
    """

    def _calc_idf(self, nd):
        for word, freq in nd.items():
            self.idf[word] = math.log(1 + (self.corpus_size - freq + 0.5) / (freq + 0.5))


class BM25Corpus(CorpusHandle):
    """
    In-process corpus backed by two BM25 indices: analyzed passage text and
    entity mentions (one token per mention, not analyzed).
    """

    def __init__(self,
                 passages: Iterable[Passage],
                 analyzer: Optional[Analyzer] = None,
                 k1: float = 1.2,
                 b: float = 0.75,
                 text_field: str = TEXT_FIELD,
                 entity_field: str = ENTITY_FIELD):
        """
        Args:
            passages: Passages to index; a later duplicate ID replaces an earlier one
            analyzer: Tokenizer for the text field (English analyzer by default)
            k1: BM25 k1 parameter
            b: BM25 b parameter
            text_field: Field name that queries use for passage text
            entity_field: Field name that queries use for entity mentions
        """
        self.analyzer = analyzer or Analyzer("english")
        self.k1 = k1
        self.b = b
        self.text_field = text_field
        self.entity_field = entity_field

        by_id: Dict[str, Passage] = {}
        for passage in passages:
            by_id[passage.passage_id] = passage
        self._by_id = by_id
        self._passages: List[Passage] = list(by_id.values())

        self._indices = {
            text_field: self._build_index([self.analyzer.tokenize(p.text) for p in self._passages]),
            entity_field: self._build_index([list(p.mentions) for p in self._passages]),
        }
        self._closed = False

        logger.debug(f"BM25Corpus built over {len(self._passages)} passages")

    def _build_index(self, tokenized: List[List[str]]) -> Optional[BM25Okapi]:
        # rank_bm25 divides by the average document length
        if not tokenized or not any(tokenized):
            return None
        return LuceneIdfBM25(tokenized, k1=self.k1, b=self.b)

    @classmethod
    def from_jsonl(cls, path: str, analyzer: Optional[Analyzer] = None, **kwargs) -> "BM25Corpus":
        """
        Load passages from a JSONL file with ``id``, ``text`` and ``entities`` keys.

        ``entities`` may be a list of canonical entity IDs or a single
        whitespace-separated string. Lines that are not valid JSON or lack
        an ``id`` are skipped with a warning.
        """
        path = Path(path)
        if not path.exists():
            raise BackendUnavailableError(f"Corpus file not found: {path}")

        passages = []
        with open(path, 'r', encoding='utf-8') as f:
            for line_number, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue
                try:
                    record = json.loads(line)
                    passage_id = str(record['id'])
                except (json.JSONDecodeError, KeyError, TypeError) as e:
                    logger.warning(f"{path}:{line_number}: skipping corpus record ({e})")
                    continue

                entities = record.get('entities') or []
                if isinstance(entities, str):
                    mentions = parse_mentions(entities)
                else:
                    mentions = [str(e) for e in entities if e]

                passages.append(Passage(passage_id, record.get('text') or "", tuple(mentions)))

        logger.info(f"Loaded {len(passages)} passages from {path}")
        return cls(passages, analyzer=analyzer, **kwargs)

    def __len__(self):
        return len(self._passages)

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self):
        self._closed = True

    def lookup(self, passage_id: str) -> Optional[Passage]:
        self._check_open()
        return self._by_id.get(passage_id)

    def search(self, query: WeightedQuery, top_n: int) -> List[SearchHit]:
        self._check_open()
        if not query or top_n <= 0 or not self._passages:
            return []

        scores = np.zeros(len(self._passages))
        matched = np.zeros(len(self._passages), dtype=bool)

        for clause in query:
            if clause.field not in self._indices:
                raise ValueError(f"Unknown field '{clause.field}' "
                                 f"(expected '{self.text_field}' or '{self.entity_field}')")
            index = self._indices[clause.field]
            if index is None:
                continue
            matched |= np.array([clause.term in freqs for freqs in index.doc_freqs], dtype=bool)
            scores += clause.weight * index.get_scores([clause.term])

        candidates = np.flatnonzero(matched)
        # stable sort keeps index order among equal scores
        order = candidates[np.argsort(-scores[candidates], kind='stable')]

        return [SearchHit(self._passages[i], float(scores[i])) for i in order[:top_n]]

    def build_feedback_index(self, passages: Sequence[Passage]) -> "BM25Corpus":
        self._check_open()
        return BM25Corpus(passages,
                          analyzer=self.analyzer,
                          k1=self.k1,
                          b=self.b,
                          text_field=self.text_field,
                          entity_field=self.entity_field)
