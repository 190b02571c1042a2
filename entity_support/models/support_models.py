"""
Support Passage Models Module

Every ranking model scores the candidate passages of a query for each of the
query's relevant entities. Each model is a composition of the core
primitives (pseudo-documents, co-occurrence and relevance-model expansion,
weighted queries, score combination):

- ecn:             Entity Context Neighbors (co-occurrence frequency sum)
- qew:             Query expansion with words (RM over the pseudo-document)
- qee:             Query expansion with co-occurring entities
- pseudo-doc:      Retrieval score of the entity's pseudo-document
- entity-overlap:  Number of retrieved entities a passage mentions
- query-entity:    Query plus entity mention, searched over the corpus
- candidate-score: Candidate retrieval score within the pseudo-document
- salience:        P(p|q) * P(p|e) from precomputed entity salience
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

from entity_support.config import SupportPassageConfig
from entity_support.core.cooccurrence import CoOccurrenceExpander
from entity_support.core.corpus import CorpusHandle
from entity_support.core.entities import canonicalize, canonicalize_all, query_text
from entity_support.core.pseudo_document import PseudoDocument, PseudoDocumentBuilder
from entity_support.core.query_builder import QueryBuilder
from entity_support.core.rm_expansion import RelevanceModelExpander
from entity_support.core.scoring import combine_product, combine_sum, frequency_sum, normalize
from entity_support.core.types import ScoreMap
from entity_support.exceptions import BackendUnavailableError, ErrorKind

logger = logging.getLogger(__name__)


@dataclass
class QueryContext:
    """Everything known about one query before scoring."""
    query_id: str
    candidates: Dict[str, float]
    retrieved_entities: List[str]
    relevant_entities: List[str]

    @property
    def query_text(self) -> str:
        return query_text(self.query_id)

    @property
    def passage_ids(self) -> List[str]:
        return list(self.candidates)


@dataclass
class TaskFailure:
    query_id: str
    entity_id: Optional[str]
    kind: ErrorKind
    message: str


@dataclass
class QueryScores:
    """Per-entity score maps of one query plus what went wrong on the way."""
    entity_scores: Dict[str, ScoreMap] = field(default_factory=dict)
    failures: List[TaskFailure] = field(default_factory=list)
    missing_evidence: List[str] = field(default_factory=list)


class SupportPassageModel(ABC):
    """
    Abstract base class for support-passage models.
    """

    name = None

    def __init__(self, corpus: CorpusHandle, config: SupportPassageConfig):
        self.corpus = corpus
        self.config = config
        self.pseudo_docs = PseudoDocumentBuilder(corpus)
        self.query_builder = QueryBuilder(corpus.analyzer,
                                          text_field=config.text_field,
                                          entity_field=config.entity_field)

    def score_query(self, context: QueryContext) -> QueryScores:
        """
        Score every relevant entity of a query.

        A failure while scoring one entity is logged and recorded; the
        remaining entities are still scored.
        """
        result = QueryScores()

        for entity_id in context.relevant_entities:
            try:
                scores = self.score_entity(context, entity_id)
            except BackendUnavailableError as e:
                logger.error(f"Backend error for query {context.query_id}, entity {entity_id}: {e}")
                result.failures.append(TaskFailure(context.query_id, entity_id,
                                                   ErrorKind.BACKEND_UNAVAILABLE, str(e)))
                continue
            except Exception as e:
                logger.error(f"Error scoring query {context.query_id}, entity {entity_id}: {e}")
                result.failures.append(TaskFailure(context.query_id, entity_id,
                                                   ErrorKind.TASK_FAILED, str(e)))
                continue

            if scores is None:
                result.missing_evidence.append(entity_id)
            else:
                result.entity_scores[entity_id] = scores

        return result

    @abstractmethod
    def score_entity(self, context: QueryContext, entity_id: str) -> Optional[ScoreMap]:
        """
        Score candidate passages for one (query, entity) pair.

        Args:
            context: Query context
            entity_id: A relevant entity of the query

        Returns:
            passage ID -> score, or None if no candidate passage mentions the entity
        """
        pass

    def cooccurrence_pool(self, context: QueryContext) -> List[str]:
        """Entities whose co-occurrence with the target entity is counted."""
        if self.config.cooccurrence_pool == "retrieved":
            return context.retrieved_entities
        return context.relevant_entities

    def _search_scores(self, query) -> ScoreMap:
        return {hit.passage.passage_id: hit.score
                for hit in self.corpus.search(query, self.config.num_results)}


class EntityContextNeighborsModel(SupportPassageModel):
    """
    Scores each pseudo-document passage by the co-occurrence frequencies of
    the relevant entities it mentions.
    """

    name = "ecn"

    def __init__(self, corpus: CorpusHandle, config: SupportPassageConfig):
        super().__init__(corpus, config)
        self.expander = CoOccurrenceExpander(count_owning_entity=config.count_owning_entity)

    def score_entity(self, context: QueryContext, entity_id: str) -> Optional[ScoreMap]:
        pdoc = self.pseudo_docs.build(entity_id, context.passage_ids)
        if pdoc is None:
            return None

        frequencies = self.expander.frequency_map(pdoc, self.cooccurrence_pool(context))
        if self.config.normalize_frequencies:
            frequencies = normalize(frequencies)

        return {p.passage_id: frequency_sum(p.mentions, frequencies) for p in pdoc.passages}


class WordExpansionModel(SupportPassageModel):
    """
    Expands the query with an RM estimated over the entity's pseudo-document
    and searches the corpus with the expanded query.
    """

    name = "qew"

    def __init__(self, corpus: CorpusHandle, config: SupportPassageConfig):
        super().__init__(corpus, config)
        self.expander = RelevanceModelExpander(corpus.analyzer,
                                               take_k_terms=config.take_k_terms,
                                               take_k_docs=config.take_k_docs,
                                               omit_query_terms=config.omit_query_terms,
                                               text_field=config.text_field)

    def score_entity(self, context: QueryContext, entity_id: str) -> Optional[ScoreMap]:
        pdoc = self.pseudo_docs.build(entity_id, context.passage_ids)
        if pdoc is None:
            return None

        terms = self.expander.expand_from_passages(self.corpus, pdoc.passages, context.query_text)
        query = self.query_builder.word_expansion_query(context.query_text, terms,
                                                        self.config.omit_query_terms)
        return self._search_scores(query)


class EntityExpansionModel(SupportPassageModel):
    """
    Expands the query with the names of the entities that co-occur most with
    the target entity and searches the corpus with the expanded query.
    """

    name = "qee"

    def __init__(self, corpus: CorpusHandle, config: SupportPassageConfig):
        super().__init__(corpus, config)
        self.expander = CoOccurrenceExpander(top_k=config.take_k_entities,
                                             count_owning_entity=config.count_owning_entity)

    def score_entity(self, context: QueryContext, entity_id: str) -> Optional[ScoreMap]:
        pdoc = self.pseudo_docs.build(entity_id, context.passage_ids)
        if pdoc is None:
            return None

        entities = self.expander.expand(pdoc, self.cooccurrence_pool(context))
        query = self.query_builder.entity_expansion_query(context.query_text, entities,
                                                          self.config.omit_query_terms)
        return self._search_scores(query)


class PseudoDocRetrievalModel(SupportPassageModel):
    """
    Indexes the pseudo-documents of all relevant entities of a query as
    documents, retrieves them with the query and gives every passage the sum
    of the retrieval scores of the pseudo-documents it belongs to.
    """

    name = "pseudo-doc"

    def __init__(self, corpus: CorpusHandle, config: SupportPassageConfig):
        super().__init__(corpus, config)
        self.expander = None
        if config.expand_pseudo_doc_query:
            self.expander = RelevanceModelExpander(corpus.analyzer,
                                                   take_k_terms=config.take_k_terms,
                                                   take_k_docs=config.take_k_docs,
                                                   omit_query_terms=config.omit_query_terms,
                                                   text_field=config.text_field)

    def score_query(self, context: QueryContext) -> QueryScores:
        result = QueryScores()

        pseudo_docs = self.pseudo_docs.build_all(context.relevant_entities, context.passage_ids)
        result.missing_evidence = [e for e in context.relevant_entities if e not in pseudo_docs]
        if not pseudo_docs:
            return result

        try:
            entity_scores = self.score_pseudo_documents(context, pseudo_docs)
        except Exception as e:
            logger.error(f"Error retrieving pseudo-documents for query {context.query_id}: {e}")
            kind = ErrorKind.BACKEND_UNAVAILABLE if isinstance(e, BackendUnavailableError) else ErrorKind.TASK_FAILED
            result.failures.append(TaskFailure(context.query_id, None, kind, str(e)))
            return result

        passage_scores = combine_sum(
            {pid: score for pid in pseudo_docs[entity_id].passage_ids}
            for entity_id, score in entity_scores.items()
        )

        for entity_id, pdoc in pseudo_docs.items():
            result.entity_scores[entity_id] = {pid: passage_scores.get(pid, 0.0)
                                               for pid in pdoc.passage_ids}
        return result

    def score_pseudo_documents(self, context: QueryContext,
                               pseudo_docs: Mapping[str, PseudoDocument]) -> ScoreMap:
        """Retrieval score of each pseudo-document (entity ID -> score)."""
        documents = [pdoc.to_passage() for pdoc in pseudo_docs.values()]

        with self.corpus.build_feedback_index(documents) as index:
            if self.expander is not None:
                terms = self.expander.expand(index, context.query_text)
                query = self.query_builder.word_expansion_query(context.query_text, terms,
                                                                self.config.omit_query_terms)
            else:
                query = self.query_builder.term_query(context.query_text)

            return {hit.passage.passage_id: hit.score for hit in index.search(query, len(documents))}

    def score_entity(self, context: QueryContext, entity_id: str) -> Optional[ScoreMap]:
        scores = self.score_query(QueryContext(context.query_id, context.candidates,
                                               context.retrieved_entities, [entity_id]))
        return scores.entity_scores.get(entity_id)


class EntityOverlapModel(SupportPassageModel):
    """
    Scores a passage by how many of the query's retrieved entities it
    mentions; the score goes to every relevant entity the passage mentions.
    """

    name = "entity-overlap"

    def score_query(self, context: QueryContext) -> QueryScores:
        result = QueryScores()
        retrieved = set(canonicalize_all(context.retrieved_entities))
        relevant = {canonicalize(e): e for e in context.relevant_entities}

        for passage_id in context.passage_ids:
            try:
                passage = self.corpus.lookup(passage_id)
            except BackendUnavailableError as e:
                logger.error(f"Backend error for query {context.query_id}, passage {passage_id}: {e}")
                result.failures.append(TaskFailure(context.query_id, None,
                                                   ErrorKind.BACKEND_UNAVAILABLE, str(e)))
                return result
            if passage is None or not passage.mentions:
                continue

            mentioned = set(passage.mentions)
            overlap = len(retrieved & mentioned)
            for canonical, entity_id in relevant.items():
                if canonical in mentioned:
                    result.entity_scores.setdefault(entity_id, {})[passage_id] = float(overlap)

        result.missing_evidence = [e for e in context.relevant_entities if e not in result.entity_scores]
        return result

    def score_entity(self, context: QueryContext, entity_id: str) -> Optional[ScoreMap]:
        scores = self.score_query(QueryContext(context.query_id, context.candidates,
                                               context.retrieved_entities, [entity_id]))
        return scores.entity_scores.get(entity_id)


class QueryEntityModel(SupportPassageModel):
    """
    Searches the corpus with the query tokens plus a clause on the entity
    field and keeps the hits that mention the entity.
    """

    name = "query-entity"

    def score_entity(self, context: QueryContext, entity_id: str) -> Optional[ScoreMap]:
        target = canonicalize(entity_id)
        query = self.query_builder.query_entity_query(context.query_text, entity_id)

        scores = {hit.passage.passage_id: hit.score
                  for hit in self.corpus.search(query, self.config.num_results)
                  if hit.passage.mentions_entity(target)}
        return scores or None


class CandidateScoreModel(SupportPassageModel):
    """Candidate retrieval scores restricted to the entity's pseudo-document."""

    name = "candidate-score"

    def score_entity(self, context: QueryContext, entity_id: str) -> Optional[ScoreMap]:
        pdoc = self.pseudo_docs.build(entity_id, context.passage_ids)
        if pdoc is None:
            return None
        return {pid: context.candidates[pid] for pid in pdoc.passage_ids}


class SalienceModel(SupportPassageModel):
    """
    P(p|e,q) = P(p|q) * P(p|e), where P(p|q) is the normalized candidate
    score over all candidates of the query and P(p|e) the salience of the
    entity in the passage normalized over the entity's pseudo-document.
    """

    name = "salience"

    def __init__(self, corpus: CorpusHandle, config: SupportPassageConfig,
                 salience: Mapping[str, Mapping[str, float]]):
        """
        Args:
            corpus: Corpus handle
            config: Run configuration
            salience: passage ID -> canonical entity ID -> salience score
        """
        super().__init__(corpus, config)
        self.salience = salience

    def score_entity(self, context: QueryContext, entity_id: str) -> Optional[ScoreMap]:
        pdoc = self.pseudo_docs.build(entity_id, context.passage_ids)
        if pdoc is None:
            return None

        target = canonicalize(entity_id)
        entity_salience = {}
        for pid in pdoc.passage_ids:
            annotations = self.salience.get(pid)
            if annotations and target in annotations:
                entity_salience[pid] = annotations[target]

        return combine_product(normalize(context.candidates), normalize(entity_salience))


MODEL_REGISTRY = {
    model_class.name: model_class
    for model_class in (EntityContextNeighborsModel, WordExpansionModel, EntityExpansionModel,
                        PseudoDocRetrievalModel, EntityOverlapModel, QueryEntityModel,
                        CandidateScoreModel, SalienceModel)
}


def create_model(name: str,
                 corpus: CorpusHandle,
                 config: Optional[SupportPassageConfig] = None,
                 salience: Optional[Mapping[str, Mapping[str, float]]] = None) -> SupportPassageModel:
    """
    Factory function to create support-passage models.

    Args:
        name: Model name (see MODEL_REGISTRY)
        corpus: Corpus handle shared by all workers
        config: Run configuration (defaults for ``name`` if omitted)
        salience: Salience annotations, required by the salience model

    Returns:
        SupportPassageModel instance

    Raises:
        ValueError: If unknown model name or missing salience annotations
    """
    if name not in MODEL_REGISTRY:
        raise ValueError(f"Unknown model: {name}. Available: {', '.join(MODEL_REGISTRY)}")

    if config is None:
        config = SupportPassageConfig(model=name)

    if name == SalienceModel.name:
        if salience is None:
            raise ValueError("The salience model needs salience annotations")
        return SalienceModel(corpus, config, salience)

    model = MODEL_REGISTRY[name](corpus, config)
    logger.info(f"Created model '{name}' ({model.__class__.__name__})")
    return model
