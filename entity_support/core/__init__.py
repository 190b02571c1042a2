"""
Core functionality for support-passage ranking.

This module provides the building blocks every ranking model is composed of:
- Entity/query identifier canonicalization
- Corpus handles (in-process BM25, Lucene)
- Pseudo-documents and co-occurrence expansion
- RM1/RM3 relevance models and weighted query construction
- Score normalization/combination and ranked output
"""

from .types import Passage, SearchHit, ExpansionTerm, QueryClause, WeightedQuery
from .entities import canonicalize, query_text, entity_name, composite_query_id, split_composite_id
from .analysis import Analyzer
from .corpus import CorpusHandle, SearchableIndex, BM25Corpus
from .pseudo_document import PseudoDocument, PseudoDocumentBuilder
from .cooccurrence import CoOccurrenceExpander, COUNT_OWNING_ENTITY
from .rm_expansion import RelevanceModelExpander, rm1_expansion, rm3_expansion
from .query_builder import QueryBuilder, MAX_CLAUSES
from .scoring import normalize, combine_product, combine_sum, frequency_sum
from .ranking import RankedOutputEmitter, RankedEntry

__all__ = [
    'Passage', 'SearchHit', 'ExpansionTerm', 'QueryClause', 'WeightedQuery',
    'canonicalize', 'query_text', 'entity_name', 'composite_query_id', 'split_composite_id',
    'Analyzer',
    'CorpusHandle', 'SearchableIndex', 'BM25Corpus',
    'PseudoDocument', 'PseudoDocumentBuilder',
    'CoOccurrenceExpander', 'COUNT_OWNING_ENTITY',
    'RelevanceModelExpander', 'rm1_expansion', 'rm3_expansion',
    'QueryBuilder', 'MAX_CLAUSES',
    'normalize', 'combine_product', 'combine_sum', 'frequency_sum',
    'RankedOutputEmitter', 'RankedEntry',
]

# Optional Lucene backend (needs pyjnius and a JVM)
try:
    from .lucene_corpus import LuceneCorpus, LuceneAnalyzer
    __all__ += ['LuceneCorpus', 'LuceneAnalyzer']
except ImportError:
    pass
