"""
Lucene backend through PyJnius.

Opens an on-disk Lucene index whose documents store a passage ID, the
passage text and a whitespace-separated list of canonical entity mentions.
Feedback indices are built in a ByteBuffersDirectory and closed by the task
that built them.

initialize_lucene() (utils.lucene_utils) must have been called first.
"""

import logging
from pathlib import Path
from typing import List, Optional, Sequence

from entity_support.core.corpus import CorpusHandle, ENTITY_FIELD, SearchableIndex, TEXT_FIELD
from entity_support.core.entities import parse_mentions
from entity_support.core.types import Passage, SearchHit, WeightedQuery
from entity_support.exceptions import BackendUnavailableError
from entity_support.utils.lucene_utils import get_lucene_classes

logger = logging.getLogger(__name__)

ID_FIELD = "id"
SIMILARITIES = ("bm25", "lmds", "lmjm")


class LuceneAnalyzer:
    """Tokenizer backed by a JVM analyzer, so queries match the index's terms."""

    def __init__(self, classes, name: str = "english", field: str = TEXT_FIELD,
                 max_tokens: Optional[int] = None):
        if name == "english":
            self.jvm_analyzer = classes['EnglishAnalyzer']()
        elif name == "standard":
            self.jvm_analyzer = classes['StandardAnalyzer']()
        else:
            raise ValueError(f"analyzer must be 'english' or 'standard', got '{name}'")

        self.name = name
        self.field = field
        self.max_tokens = max_tokens
        self._StringReader = classes['StringReader']
        self._char_term_class = classes['JavaClass'].forName(
            'org.apache.lucene.analysis.tokenattributes.CharTermAttribute')

    def tokenize(self, text: str) -> List[str]:
        if not text:
            return []

        tokens = []
        token_stream = self.jvm_analyzer.tokenStream(self.field, self._StringReader(text))
        try:
            char_term_attr = token_stream.addAttribute(self._char_term_class)
            token_stream.reset()
            while token_stream.incrementToken():
                tokens.append(char_term_attr.toString())
                if self.max_tokens is not None and len(tokens) >= self.max_tokens:
                    break
            token_stream.end()
        finally:
            token_stream.close()

        return tokens


class _LuceneSearchable(SearchableIndex):
    """Search and stored-field access shared by the corpus and feedback indices."""

    def __init__(self, classes, reader, similarity, analyzer: LuceneAnalyzer,
                 id_field: str, text_field: str, entity_field: str):
        self.classes = classes
        self.reader = reader
        self.searcher = classes['IndexSearcher'](reader)
        self.searcher.setSimilarity(similarity)
        self.similarity = similarity
        self.analyzer = analyzer
        self.id_field = id_field
        self.text_field = text_field
        self.entity_field = entity_field
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _build_query(self, query: WeightedQuery):
        c = self.classes
        builder = c['BooleanQueryBuilder']()
        for clause in query:
            if clause.weight < 0:
                logger.debug(f"Skipping negative-weight clause {clause}")
                continue
            term_query = c['TermQuery'](c['Term'](clause.field, clause.term))
            if clause.weight != 1.0:
                term_query = c['BoostQuery'](term_query, float(clause.weight))
            builder.add(term_query, c['BooleanClauseOccur'].SHOULD)
        return builder.build()

    def _to_passage(self, doc_id: int) -> Passage:
        document = self.searcher.storedFields().document(doc_id)
        return Passage(document.get(self.id_field),
                       document.get(self.text_field) or "",
                       tuple(parse_mentions(document.get(self.entity_field))))

    def search(self, query: WeightedQuery, top_n: int) -> List[SearchHit]:
        self._check_open()
        if not query or top_n <= 0:
            return []

        try:
            top_docs = self.searcher.search(self._build_query(query), top_n)
            return [SearchHit(self._to_passage(score_doc.doc), float(score_doc.score))
                    for score_doc in top_docs.scoreDocs]
        except Exception as e:
            raise BackendUnavailableError(f"Lucene search failed: {e}") from e

    def close(self):
        if self._closed:
            return
        self._closed = True
        self.reader.close()


class LuceneFeedbackIndex(_LuceneSearchable):
    """In-memory index over a handful of passages; owns its directory."""

    def __init__(self, classes, directory, **kwargs):
        reader = classes['DirectoryReader'].open(directory)
        super().__init__(classes, reader, **kwargs)
        self.directory = directory

    def close(self):
        if self._closed:
            return
        try:
            super().close()
        finally:
            self.directory.close()


class LuceneCorpus(_LuceneSearchable, CorpusHandle):
    """
    Read-only corpus over an on-disk Lucene index.

    IndexSearcher is thread-safe, so one instance serves all workers.
    """

    def __init__(self,
                 index_path: str,
                 analyzer: str = "english",
                 similarity: str = "bm25",
                 k1: float = 1.2,
                 b: float = 0.75,
                 mu: float = 1000.0,
                 jm_lambda: float = 0.5,
                 id_field: str = ID_FIELD,
                 text_field: str = TEXT_FIELD,
                 entity_field: str = ENTITY_FIELD):
        """
        Open a Lucene index.

        Args:
            index_path: Path to Lucene index
            analyzer: "english" or "standard", as used for indexing
            similarity: "bm25", "lmds" (Dirichlet) or "lmjm" (Jelinek-Mercer)
            k1: BM25 k1 parameter
            b: BM25 b parameter
            mu: Dirichlet smoothing parameter
            jm_lambda: Jelinek-Mercer smoothing parameter
            id_field: Stored field with the passage ID
            text_field: Stored field with the passage text
            entity_field: Stored field with the entity mentions
        """
        if not Path(index_path).exists():
            raise BackendUnavailableError(f"Index path does not exist: {index_path}")
        if similarity not in SIMILARITIES:
            raise ValueError(f"similarity must be one of {SIMILARITIES}, got '{similarity}'")

        try:
            classes = get_lucene_classes()
            directory = classes['FSDirectory'].open(classes['Paths'].get(str(index_path)))
            reader = classes['DirectoryReader'].open(directory)

            if similarity == "bm25":
                jvm_similarity = classes['BM25Similarity'](k1, b)
            elif similarity == "lmds":
                jvm_similarity = classes['LMDirichletSimilarity'](mu)
            else:
                jvm_similarity = classes['LMJelinekMercerSimilarity'](jm_lambda)

            super().__init__(classes, reader, jvm_similarity,
                             LuceneAnalyzer(classes, analyzer, text_field),
                             id_field, text_field, entity_field)
            self.index_path = index_path
            self.directory = directory

            logger.info(f"LuceneCorpus opened: {index_path} ({reader.numDocs()} docs, {similarity})")

        except BackendUnavailableError:
            raise
        except Exception as e:
            logger.error(f"Error opening Lucene index {index_path}: {e}")
            raise BackendUnavailableError(f"Cannot open Lucene index {index_path}: {e}") from e

    def lookup(self, passage_id: str) -> Optional[Passage]:
        self._check_open()
        c = self.classes
        try:
            top_docs = self.searcher.search(c['TermQuery'](c['Term'](self.id_field, passage_id)), 1)
            if len(top_docs.scoreDocs) == 0:
                return None
            return self._to_passage(top_docs.scoreDocs[0].doc)
        except Exception as e:
            raise BackendUnavailableError(f"Lookup of {passage_id} failed: {e}") from e

    def build_feedback_index(self, passages: Sequence[Passage]) -> LuceneFeedbackIndex:
        self._check_open()
        c = self.classes

        directory = c['ByteBuffersDirectory']()
        try:
            per_field = c['HashMap']()
            per_field.put(self.entity_field, c['WhitespaceAnalyzer']())
            wrapper = c['PerFieldAnalyzerWrapper'](self.analyzer.jvm_analyzer, per_field)

            config = c['IndexWriterConfig'](wrapper)
            config.setSimilarity(self.similarity)
            writer = c['IndexWriter'](directory, config)
            try:
                store = c['FieldStore'].YES
                for passage in passages:
                    document = c['Document']()
                    document.add(c['StringField'](self.id_field, passage.passage_id, store))
                    document.add(c['TextField'](self.text_field, passage.text, store))
                    document.add(c['TextField'](self.entity_field, " ".join(passage.mentions), store))
                    writer.addDocument(document)
            finally:
                writer.close()

            return LuceneFeedbackIndex(c, directory,
                                       similarity=self.similarity,
                                       analyzer=self.analyzer,
                                       id_field=self.id_field,
                                       text_field=self.text_field,
                                       entity_field=self.entity_field)
        except Exception as e:
            directory.close()
            raise BackendUnavailableError(f"Cannot build feedback index: {e}") from e

    def release_thread(self):
        import jnius
        jnius.detach()

    def close(self):
        if self._closed:
            return
        try:
            super().close()
        finally:
            self.directory.close()
