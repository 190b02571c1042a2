"""
File I/O for run files, qrels, salience annotations and JSON.

Run-file lines: ``queryID Q0 docID rank score tag``
Qrels lines:    ``queryID 0 docID relevance``

Readers skip malformed lines with a warning naming the file and line number
rather than aborting, since large ranking files may hold isolated corruption.
A missing file is an error.
"""

import json
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from entity_support.core.entities import canonicalize
from entity_support.exceptions import MalformedLineError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def ensure_dir(path: PathLike) -> Path:
    """Create ``path`` (and parents) if needed and return it as a Path."""
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def save_json(data, filepath: PathLike, indent: int = 2):
    filepath = Path(filepath)
    ensure_dir(filepath.parent)
    with open(filepath, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=indent)
    logger.debug(f"Saved JSON to {filepath}")


def load_json(filepath: PathLike):
    with open(filepath, 'r', encoding='utf-8') as f:
        return json.load(f)


def _read_fields(filepath: PathLike, min_fields: int) -> Iterable[Tuple[int, List[str]]]:
    """Yield (line number, fields) for every well-formed non-blank line."""
    filepath = Path(filepath)
    if not filepath.exists():
        raise FileNotFoundError(f"File not found: {filepath}")

    with open(filepath, 'r', encoding='utf-8') as f:
        for line_number, line in enumerate(f, 1):
            parts = line.split()
            if not parts:
                continue
            if len(parts) < min_fields:
                error = MalformedLineError(f"expected {min_fields} fields, got {len(parts)}",
                                           str(filepath), line_number)
                logger.warning(f"Skipping malformed line: {error}")
                continue
            yield line_number, parts


def load_trec_run(filepath: PathLike) -> Dict[str, Dict[str, float]]:
    """
    Load a run file.

    Args:
        filepath: Path to run file

    Returns:
        {query_id: {doc_id: score}} in file order. A repeated (query, doc)
        pair keeps its first position and takes the later score.
    """
    run: Dict[str, Dict[str, float]] = {}
    num_lines = 0

    for line_number, parts in _read_fields(filepath, 5):
        query_id, doc_id = parts[0], parts[2]
        try:
            score = float(parts[4])
        except ValueError:
            error = MalformedLineError(f"score '{parts[4]}' is not a number", str(filepath), line_number)
            logger.warning(f"Skipping malformed line: {error}")
            continue
        run.setdefault(query_id, {})[doc_id] = score
        num_lines += 1

    logger.info(f"Loaded run with {len(run)} queries ({num_lines} lines) from {filepath}")
    return run


def load_rankings(filepath: PathLike) -> Dict[str, List[str]]:
    """Ordered document IDs per query from a run file."""
    return {query_id: list(docs) for query_id, docs in load_trec_run(filepath).items()}


def load_qrels(filepath: PathLike, min_relevance: Optional[int] = None) -> Dict[str, List[str]]:
    """
    Load qrels as ordered document lists.

    Args:
        filepath: Path to qrels file
        min_relevance: If given, keep only judgments with at least this grade

    Returns:
        {query_id: [doc_id, ...]} in file order, without duplicates
    """
    qrels: Dict[str, Dict[str, None]] = {}

    for line_number, parts in _read_fields(filepath, 3 if min_relevance is None else 4):
        if min_relevance is not None:
            try:
                if int(parts[3]) < min_relevance:
                    continue
            except ValueError:
                error = MalformedLineError(f"relevance '{parts[3]}' is not an integer",
                                           str(filepath), line_number)
                logger.warning(f"Skipping malformed line: {error}")
                continue
        qrels.setdefault(parts[0], {})[parts[2]] = None

    logger.info(f"Loaded qrels for {len(qrels)} queries from {filepath}")
    return {query_id: list(docs) for query_id, docs in qrels.items()}


def load_qrels_graded(filepath: PathLike) -> Dict[str, Dict[str, int]]:
    """Qrels with relevance grades, in the form pytrec_eval expects."""
    qrels: Dict[str, Dict[str, int]] = {}

    for line_number, parts in _read_fields(filepath, 4):
        try:
            qrels.setdefault(parts[0], {})[parts[2]] = int(parts[3])
        except ValueError:
            error = MalformedLineError(f"relevance '{parts[3]}' is not an integer",
                                       str(filepath), line_number)
            logger.warning(f"Skipping malformed line: {error}")

    return qrels


def save_trec_run(run: Union[Sequence[str], Mapping[str, Mapping[str, float]]],
                  filepath: PathLike,
                  run_name: str = "run"):
    """
    Write a run file.

    Args:
        run: Pre-formatted lines, or {query_id: {doc_id: score}}
        filepath: Output path
        run_name: Tag used when ``run`` is a mapping
    """
    filepath = Path(filepath)
    ensure_dir(filepath.parent)

    with open(filepath, 'w', encoding='utf-8') as f:
        if isinstance(run, Mapping):
            for query_id, docs in run.items():
                ranked = sorted(docs.items(), key=lambda item: (-item[1], item[0]))
                for rank, (doc_id, score) in enumerate(ranked, 1):
                    f.write(f"{query_id} Q0 {doc_id} {rank} {score!r} {run_name}\n")
        else:
            for line in run:
                f.write(line.rstrip("\n") + "\n")

    logger.info(f"Saved run to {filepath}")


def load_salience(filepath: PathLike) -> Dict[str, Dict[str, float]]:
    """
    Load precomputed salience annotations.

    Args:
        filepath: JSON file ``{passage_id: {entity_id: salience}}``

    Returns:
        passage ID -> canonical entity ID -> salience score
    """
    raw = load_json(filepath)
    salience = {}
    for passage_id, entities in raw.items():
        salience[passage_id] = {canonicalize(entity): float(score) for entity, score in entities.items()}

    logger.info(f"Loaded salience annotations for {len(salience)} passages from {filepath}")
    return salience
