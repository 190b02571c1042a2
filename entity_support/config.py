"""
Run configuration for support-passage ranking.

A SupportPassageConfig holds every tunable of a run. It is saved next to the
run file so that an experiment can be reproduced from its output directory.
"""

import logging
import os
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Optional

from entity_support.core.analysis import ANALYZER_TYPES
from entity_support.core.cooccurrence import COUNT_OWNING_ENTITY
from entity_support.utils.file_utils import load_json, save_json

logger = logging.getLogger(__name__)

MODEL_NAMES = ("ecn", "qew", "qee", "pseudo-doc", "entity-overlap",
               "query-entity", "candidate-score", "salience")

DEFAULT_TAGS = {
    "ecn": "ECN",
    "qew": "QEW",
    "qee": "QEE",
    "pseudo-doc": "pseudo-doc-ret-score",
    "entity-overlap": "Baseline1",
    "query-entity": "Baseline2",
    "candidate-score": "baseline3",
    "salience": "salience",
}

COOCCURRENCE_POOLS = ("relevant", "retrieved")
SIMILARITIES = ("bm25", "lmds", "lmjm")


@dataclass
class SupportPassageConfig:
    model: str = "ecn"

    # relevance model
    take_k_terms: int = 20
    take_k_docs: int = 10
    omit_query_terms: bool = False

    # co-occurrence expansion
    take_k_entities: int = 20
    cooccurrence_pool: str = "relevant"
    count_owning_entity: bool = COUNT_OWNING_ENTITY
    normalize_frequencies: bool = False

    # pseudo-document retrieval
    expand_pseudo_doc_query: bool = False

    # retrieval
    num_results: int = 100
    analyzer: str = "english"
    similarity: str = "bm25"
    k1: float = 1.2
    b: float = 0.75

    # output
    tag: Optional[str] = None
    rank_start: int = 1

    # execution
    num_workers: Optional[int] = None

    # index fields
    id_field: str = "id"
    text_field: str = "text"
    entity_field: str = "entity"

    def __post_init__(self):
        if self.tag is None:
            self.tag = DEFAULT_TAGS.get(self.model)
        if self.num_workers is None:
            self.num_workers = os.cpu_count() or 1
        self.validate()

    def validate(self):
        """Raise ValueError if any setting is out of range."""
        if self.model not in MODEL_NAMES:
            raise ValueError(f"Unknown model '{self.model}'. Available: {', '.join(MODEL_NAMES)}")
        if self.analyzer not in ANALYZER_TYPES:
            raise ValueError(f"analyzer must be one of {ANALYZER_TYPES}, got '{self.analyzer}'")
        if self.similarity not in SIMILARITIES:
            raise ValueError(f"similarity must be one of {SIMILARITIES}, got '{self.similarity}'")
        if self.cooccurrence_pool not in COOCCURRENCE_POOLS:
            raise ValueError(f"cooccurrence_pool must be one of {COOCCURRENCE_POOLS}")
        for name in ("take_k_terms", "take_k_docs", "take_k_entities", "num_results"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative, got {getattr(self, name)}")
        if self.rank_start not in (0, 1):
            raise ValueError(f"rank_start must be 0 or 1, got {self.rank_start}")
        if self.num_workers < 1:
            raise ValueError(f"num_workers must be at least 1, got {self.num_workers}")
        if not self.tag or any(ch.isspace() for ch in self.tag):
            raise ValueError(f"tag must be a non-empty word, got {self.tag!r}")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> "SupportPassageConfig":
        known = {f.name for f in fields(cls)}
        unknown = set(values) - known
        if unknown:
            logger.warning(f"Ignoring unknown config keys: {sorted(unknown)}")
        return cls(**{k: v for k, v in values.items() if k in known})

    def save(self, filepath):
        save_json(self.to_dict(), filepath)

    @classmethod
    def load(cls, filepath) -> "SupportPassageConfig":
        return cls.from_dict(load_json(filepath))

    @classmethod
    def from_args(cls, args, base: Optional["SupportPassageConfig"] = None) -> "SupportPassageConfig":
        """
        Build from an argparse namespace.

        Attributes that are None keep the value from ``base`` (or the
        defaults). Switching model resets the tag to the new model's default.
        """
        known = {f.name for f in fields(cls)}
        values = base.to_dict() if base is not None else {}
        overrides = {k: v for k, v in vars(args).items() if k in known and v is not None}
        if "model" in overrides and overrides["model"] != values.get("model") and "tag" not in overrides:
            values.pop("tag", None)
        values.update(overrides)
        return cls(**values)
