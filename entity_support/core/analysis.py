"""
Text analysis for the in-process backend.

Mirrors the two Lucene analyzers the experiments are run with, so that the
BM25 backend and the Lucene backend tokenize queries and passages the same
way:

- ``standard``: lowercased unicode word tokens
- ``english``: standard + English stop words + possessive removal + Porter stemming

Anything exposing ``tokenize(text) -> List[str]`` can be used as a tokenizer;
the Lucene backend supplies LuceneAnalyzer (see lucene_corpus).
"""

import logging
import re
from typing import List, Optional

from nltk.stem.porter import PorterStemmer

logger = logging.getLogger(__name__)

# org.apache.lucene.analysis.en.EnglishAnalyzer.ENGLISH_STOP_WORDS_SET
ENGLISH_STOP_WORDS = frozenset([
    "a", "an", "and", "are", "as", "at", "be", "but", "by", "for", "if", "in",
    "into", "is", "it", "no", "not", "of", "on", "or", "such", "that", "the",
    "their", "then", "there", "these", "they", "this", "to", "was", "will", "with",
])

ANALYZER_TYPES = ("standard", "english")

_TOKEN = re.compile(r"\w+", re.UNICODE)
_POSSESSIVE = re.compile(r"['’]s\b", re.UNICODE)


class Analyzer:
    """
    Python analyzer compatible with Lucene's StandardAnalyzer / EnglishAnalyzer.
    """

    def __init__(self, name: str = "english", max_tokens: Optional[int] = None):
        """
        Args:
            name: "standard" or "english"
            max_tokens: Stop after this many tokens (None for no limit)
        """
        if name not in ANALYZER_TYPES:
            raise ValueError(f"analyzer must be one of {ANALYZER_TYPES}, got '{name}'")

        self.name = name
        self.max_tokens = max_tokens
        self._stemmer = PorterStemmer() if name == "english" else None

    def tokenize(self, text: str) -> List[str]:
        if not text:
            return []

        text = text.lower()
        if self._stemmer is not None:
            text = _POSSESSIVE.sub("", text)

        tokens = []
        for match in _TOKEN.finditer(text):
            token = match.group(0)
            if self._stemmer is not None:
                if token in ENGLISH_STOP_WORDS:
                    continue
                token = self._stemmer.stem(token)
            tokens.append(token)
            if self.max_tokens is not None and len(tokens) >= self.max_tokens:
                break

        return tokens

    def __repr__(self):
        return f"Analyzer(name={self.name!r})"
