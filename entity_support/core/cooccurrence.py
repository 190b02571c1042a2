"""
Co-occurrence expansion: entities that share passages with a target entity.
"""

import logging
from collections import Counter
from typing import Dict, Iterable, List, Optional

from entity_support.core.entities import canonicalize, canonicalize_all
from entity_support.core.pseudo_document import PseudoDocument
from entity_support.core.types import ExpansionTerm

logger = logging.getLogger(__name__)

# Whether an entity's own mentions count toward its co-occurrence frequencies.
# Every passage of a pseudo-document mentions the owning entity, so when
# counted it is always the most frequent neighbour.
COUNT_OWNING_ENTITY = True


class CoOccurrenceExpander:
    """
    Counts how often query-relevant entities are mentioned inside a
    pseudo-document and returns the most frequent ones as expansion terms.
    """

    def __init__(self, top_k: Optional[int] = None, count_owning_entity: bool = COUNT_OWNING_ENTITY):
        """
        Args:
            top_k: Number of entities to keep (None keeps all)
            count_owning_entity: Count the pseudo-document's own entity
        """
        self.top_k = top_k
        self.count_owning_entity = count_owning_entity

    def frequency_map(self, pdoc: Optional[PseudoDocument],
                      context_entities: Iterable[str]) -> Dict[str, int]:
        """
        Mention frequencies restricted to ``context_entities``.

        Args:
            pdoc: Pseudo-document, or None
            context_entities: Raw or canonical IDs of the entities that may be counted

        Returns:
            canonical entity ID -> count, in first-seen order
        """
        if pdoc is None:
            return {}

        allowed = set(canonicalize_all(context_entities))
        if not self.count_owning_entity:
            allowed.discard(canonicalize(pdoc.entity_id))

        counts = Counter(mention for mention in pdoc.mentions if mention in allowed)
        return dict(counts)

    def expand(self, pdoc: Optional[PseudoDocument],
               context_entities: Iterable[str]) -> List[ExpansionTerm]:
        """
        Co-occurring entities sorted by descending frequency.

        Ties keep first-seen order. A missing pseudo-document gives an
        empty list.
        """
        frequencies = self.frequency_map(pdoc, context_entities)
        # sorted() is stable and Counter preserves first-seen order
        ranked = sorted(frequencies.items(), key=lambda item: item[1], reverse=True)
        if self.top_k is not None:
            ranked = ranked[:self.top_k]

        return [ExpansionTerm(entity, float(count)) for entity, count in ranked]
