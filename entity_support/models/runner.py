"""
Parallel execution of a support-passage model over all queries.

Each query is one task on a thread pool. A task builds its own private
TaskResult (run lines, failures, entities without evidence) and never raises
out of the pool. Results are merged in query-ID order by the calling thread
once every task has finished, so output is identical across worker counts.
"""

import logging
import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence

from tqdm import tqdm

from entity_support.core.ranking import RankedOutputEmitter
from entity_support.exceptions import BackendUnavailableError, ErrorKind
from entity_support.models.support_models import QueryContext, SupportPassageModel, TaskFailure
from entity_support.utils.file_utils import save_trec_run

logger = logging.getLogger(__name__)


def build_query_contexts(passage_run: Mapping[str, Mapping[str, float]],
                         entity_run: Mapping[str, Sequence[str]],
                         entity_qrels: Mapping[str, Sequence[str]],
                         query_ids: Optional[Sequence[str]] = None) -> List[QueryContext]:
    """
    Assemble the per-query inputs of a run.

    Args:
        passage_run: Candidate passages with scores per query
        entity_run: Retrieved entities per query, in rank order
        entity_qrels: Ground-truth relevant entities per query
        query_ids: Restrict to these queries (default: queries of the entity run)

    Returns:
        One QueryContext per query that has candidates, retrieved entities
        and entity judgments. Relevant entities are the retrieved ones that
        are judged relevant, in retrieved order.
    """
    contexts = []
    for query_id in (query_ids if query_ids is not None else list(entity_run)):
        missing = [name for name, source in (("passage run", passage_run),
                                             ("entity run", entity_run),
                                             ("entity qrels", entity_qrels))
                   if query_id not in source]
        if missing:
            logger.warning(f"Skipping query {query_id}: not in {', '.join(missing)}")
            continue

        judged = set(entity_qrels[query_id])
        retrieved = list(entity_run[query_id])
        contexts.append(QueryContext(query_id=query_id,
                                     candidates=dict(passage_run[query_id]),
                                     retrieved_entities=retrieved,
                                     relevant_entities=[e for e in retrieved if e in judged]))

    logger.info(f"Built {len(contexts)} query contexts")
    return contexts


@dataclass
class TaskResult:
    """Private output of one query task."""
    query_id: str
    lines: List[str] = field(default_factory=list)
    failures: List[TaskFailure] = field(default_factory=list)
    missing_evidence: List[str] = field(default_factory=list)


@dataclass
class RunOutput:
    lines: List[str] = field(default_factory=list)
    failures: List[TaskFailure] = field(default_factory=list)
    missing_evidence: Dict[str, List[str]] = field(default_factory=dict)
    num_queries: int = 0

    def summary(self) -> Dict[str, int]:
        return {
            'queries': self.num_queries,
            'run_lines': len(self.lines),
            'failed_tasks': len(self.failures),
            'entities_without_evidence': sum(len(v) for v in self.missing_evidence.values()),
        }


class SupportPassageRunner:
    """Runs a model over query contexts on a fixed-size thread pool."""

    def __init__(self, model: SupportPassageModel, emitter: RankedOutputEmitter,
                 num_workers: Optional[int] = None, show_progress: bool = True):
        """
        Args:
            model: Model that scores a query's entities
            emitter: Formats score maps as run lines
            num_workers: Pool size (default: number of CPUs)
            show_progress: Show a tqdm progress bar
        """
        self.model = model
        self.emitter = emitter
        self.num_workers = num_workers or os.cpu_count() or 1
        self.show_progress = show_progress

    def run_query(self, context: QueryContext) -> TaskResult:
        """Score and format one query. Never raises."""
        result = TaskResult(context.query_id)
        try:
            scores = self.model.score_query(context)
            for entity_id, score_map in scores.entity_scores.items():
                result.lines.extend(self.emitter.format(context.query_id, entity_id, score_map))
            result.failures.extend(scores.failures)
            result.missing_evidence.extend(scores.missing_evidence)
        except BackendUnavailableError as e:
            logger.error(f"Backend unavailable for query {context.query_id}: {e}")
            result.lines = []
            result.failures.append(TaskFailure(context.query_id, None, ErrorKind.BACKEND_UNAVAILABLE, str(e)))
        except Exception as e:
            logger.error(f"Error processing query {context.query_id}: {e}")
            result.lines = []
            result.failures.append(TaskFailure(context.query_id, None, ErrorKind.TASK_FAILED, str(e)))
        finally:
            self.model.corpus.release_thread()

        return result

    def run(self, contexts: Sequence[QueryContext]) -> RunOutput:
        """
        Run all queries and merge their results.

        Returns:
            RunOutput with lines ordered by query ID, then entity order, then rank
        """
        results: List[TaskResult] = []

        with ThreadPoolExecutor(max_workers=self.num_workers) as executor:
            futures = [executor.submit(self.run_query, context) for context in contexts]
            for future in tqdm(as_completed(futures), total=len(futures),
                               desc=f"Scoring ({self.model.name})", disable=not self.show_progress):
                results.append(future.result())

        output = RunOutput(num_queries=len(results))
        for result in sorted(results, key=lambda r: r.query_id):
            output.lines.extend(result.lines)
            output.failures.extend(result.failures)
            if result.missing_evidence:
                output.missing_evidence[result.query_id] = result.missing_evidence

        for failure in output.failures:
            logger.warning(f"Failed task: query={failure.query_id} entity={failure.entity_id} "
                           f"kind={failure.kind.value}")

        logger.info(f"Run finished: {output.summary()}")
        return output

    def write_run(self, output: RunOutput, filepath):
        """Write the merged run; a failing write aborts the run."""
        save_trec_run(output.lines, Path(filepath))
