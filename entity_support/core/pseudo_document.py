"""
Pseudo-documents: the passages among a query's candidates that mention an entity.

A pseudo-document is the evidence set for one entity. Its merged mention
list is the concatenation of the member passages' mentions with duplicates
kept, so that co-occurrence frequencies can be counted from it directly.
An entity without evidence has no pseudo-document (None), never an empty one.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from entity_support.core.corpus import CorpusHandle
from entity_support.core.entities import canonicalize
from entity_support.core.types import Passage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PseudoDocument:
    entity_id: str
    passages: Tuple[Passage, ...]
    mentions: Tuple[str, ...]

    def __post_init__(self):
        if not self.passages:
            raise ValueError(f"Pseudo-document for '{self.entity_id}' has no passages")

    @property
    def passage_ids(self) -> List[str]:
        return [p.passage_id for p in self.passages]

    def contains_passage(self, passage_id: str) -> bool:
        return any(p.passage_id == passage_id for p in self.passages)

    def to_passage(self) -> Passage:
        """The whole pseudo-document as one indexable passage, keyed by the entity ID."""
        text = "\n".join(p.text for p in self.passages)
        return Passage(self.entity_id, text, self.mentions)

    def __len__(self):
        return len(self.passages)


class PseudoDocumentBuilder:
    """Collects an entity's evidence passages from a query's candidate list."""

    def __init__(self, corpus: CorpusHandle):
        self.corpus = corpus

    def build(self, entity_id: str, passage_ids: Iterable[str]) -> Optional[PseudoDocument]:
        """
        Build the pseudo-document of ``entity_id``.

        Args:
            entity_id: Raw or canonical entity ID
            passage_ids: Candidate passage IDs for the query, in rank order

        Returns:
            PseudoDocument with the matching passages in candidate order,
            or None if no candidate mentions the entity
        """
        target = canonicalize(entity_id)
        passages: List[Passage] = []
        mentions: List[str] = []

        for passage_id in passage_ids:
            passage = self.corpus.lookup(passage_id)
            if passage is None:
                logger.warning(f"Passage {passage_id} not found in corpus")
                continue
            if not passage.mentions:
                continue
            if target in passage.mentions:
                passages.append(passage)
                mentions.extend(passage.mentions)

        if not passages:
            logger.debug(f"No evidence for entity {entity_id}")
            return None

        return PseudoDocument(entity_id, tuple(passages), tuple(mentions))

    def build_all(self, entity_ids: Sequence[str],
                  passage_ids: Sequence[str]) -> Dict[str, PseudoDocument]:
        """Pseudo-documents for several entities; entities without evidence are left out."""
        pseudo_docs = {}
        for entity_id in entity_ids:
            pdoc = self.build(entity_id, passage_ids)
            if pdoc is not None:
                pseudo_docs[entity_id] = pdoc
        return pseudo_docs
