"""
Entity Support Passages

Ranks candidate passages as support for a (query, entity) pair by
aggregating textual and co-occurrence evidence about the entity from the
passages retrieved for the query.

Main modules:
- core: Pseudo-documents, co-occurrence and relevance-model expansion,
  weighted queries, score combination, ranked output, corpus backends
- models: Ranking models composed from the core and their parallel runner
- evaluation: pytrec_eval-based evaluation of run files
- utils: Logging, file I/O, Lucene initialization
"""

__version__ = "0.1.0"

from .exceptions import SupportPassageError, BackendUnavailableError, MalformedLineError, ErrorKind
from .config import SupportPassageConfig
from .core import (
    BM25Corpus,
    PseudoDocumentBuilder,
    CoOccurrenceExpander,
    RelevanceModelExpander,
    QueryBuilder,
    RankedOutputEmitter,
    canonicalize,
    normalize,
    combine_product,
    combine_sum,
    frequency_sum
)
from .models import create_model, SupportPassageRunner, build_query_contexts

__all__ = [
    'SupportPassageError',
    'BackendUnavailableError',
    'MalformedLineError',
    'ErrorKind',
    'SupportPassageConfig',
    'BM25Corpus',
    'PseudoDocumentBuilder',
    'CoOccurrenceExpander',
    'RelevanceModelExpander',
    'QueryBuilder',
    'RankedOutputEmitter',
    'canonicalize',
    'normalize',
    'combine_product',
    'combine_sum',
    'frequency_sum',
    'create_model',
    'SupportPassageRunner',
    'build_query_contexts',
]
