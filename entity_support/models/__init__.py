"""
Support-passage models and their parallel runner.

Key classes:
- SupportPassageModel: Base class; one subclass per ranking variant
- SupportPassageRunner: Thread-pool execution with per-task isolation
"""

from .support_models import (
    QueryContext,
    QueryScores,
    TaskFailure,
    SupportPassageModel,
    EntityContextNeighborsModel,
    WordExpansionModel,
    EntityExpansionModel,
    PseudoDocRetrievalModel,
    EntityOverlapModel,
    QueryEntityModel,
    CandidateScoreModel,
    SalienceModel,
    MODEL_REGISTRY,
    create_model
)
from .runner import SupportPassageRunner, TaskResult, RunOutput, build_query_contexts

__all__ = [
    'QueryContext',
    'QueryScores',
    'TaskFailure',
    'SupportPassageModel',
    'EntityContextNeighborsModel',
    'WordExpansionModel',
    'EntityExpansionModel',
    'PseudoDocRetrievalModel',
    'EntityOverlapModel',
    'QueryEntityModel',
    'CandidateScoreModel',
    'SalienceModel',
    'MODEL_REGISTRY',
    'create_model',
    'SupportPassageRunner',
    'TaskResult',
    'RunOutput',
    'build_query_contexts',
]
