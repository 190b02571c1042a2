#!/usr/bin/env python3
"""
Ranks support passages for every (query, relevant entity) pair.

This script:
1.  Opens the passage corpus (a JSONL file for the in-process BM25 backend,
    or an on-disk Lucene index).
2.  Loads the candidate passage run, the entity run and the entity qrels.
3.  Scores the candidates of each query for each relevant entity with the
    chosen model, one query per worker thread.
4.  Writes the merged run file and the run configuration to the output directory.
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to path for local imports
project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

from entity_support.config import MODEL_NAMES, SupportPassageConfig
from entity_support.core.analysis import Analyzer
from entity_support.core.corpus import BM25Corpus
from entity_support.core.ranking import RankedOutputEmitter
from entity_support.models.runner import SupportPassageRunner, build_query_contexts
from entity_support.models.support_models import create_model
from entity_support.utils.file_utils import (ensure_dir, load_qrels, load_rankings, load_salience,
                                             load_trec_run, save_json)
from entity_support.utils.logging_utils import (setup_experiment_logging, log_experiment_info,
                                                log_results, TimedOperation)

logger = logging.getLogger(__name__)


def open_corpus(args, config: SupportPassageConfig):
    """Open the corpus backend selected on the command line."""
    if args.corpus_jsonl:
        return BM25Corpus.from_jsonl(args.corpus_jsonl,
                                     analyzer=Analyzer(config.analyzer),
                                     k1=config.k1,
                                     b=config.b,
                                     text_field=config.text_field,
                                     entity_field=config.entity_field)

    from entity_support.utils.lucene_utils import initialize_lucene
    if not initialize_lucene(args.lucene_path):
        raise RuntimeError(f"Could not initialize Lucene from {args.lucene_path}")

    from entity_support.core.lucene_corpus import LuceneCorpus
    return LuceneCorpus(args.index_path,
                        analyzer=config.analyzer,
                        similarity=config.similarity,
                        k1=config.k1,
                        b=config.b,
                        id_field=config.id_field,
                        text_field=config.text_field,
                        entity_field=config.entity_field)


def main():
    parser = argparse.ArgumentParser(
        description="Rank support passages for query-entity pairs.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser.add_argument('--model', type=str, required=True, choices=MODEL_NAMES, help='Ranking model.')
    parser.add_argument('--passage-run', type=str, required=True, help='Candidate passage run file.')
    parser.add_argument('--entity-run', type=str, required=True, help='Entity run file.')
    parser.add_argument('--entity-qrels', type=str, required=True, help='Entity ground truth (qrels) file.')
    parser.add_argument('--output-dir', type=str, required=True, help='Directory for the run file and logs.')
    parser.add_argument('--run-name', type=str, default=None, help='Run file name (default: <model>.run).')

    backend = parser.add_mutually_exclusive_group(required=True)
    backend.add_argument('--corpus-jsonl', type=str, help='JSONL passage corpus for the BM25 backend.')
    backend.add_argument('--index-path', type=str, help='Lucene passage index.')
    parser.add_argument('--lucene-path', type=str, default=None, help='Path to Lucene JAR files.')
    parser.add_argument('--salience-file', type=str, default=None,
                        help='Salience annotations JSON (salience model only).')
    parser.add_argument('--config', type=str, default=None,
                        help='JSON config; command-line options override it.')

    parser.add_argument('--take-k-terms', dest='take_k_terms', type=int, default=None)
    parser.add_argument('--take-k-docs', dest='take_k_docs', type=int, default=None)
    parser.add_argument('--take-k-entities', dest='take_k_entities', type=int, default=None)
    parser.add_argument('--omit-query-terms', dest='omit_query_terms', action='store_true', default=None,
                        help='Use RM1 (no original query terms).')
    parser.add_argument('--num-results', dest='num_results', type=int, default=None)
    parser.add_argument('--cooccurrence-pool', dest='cooccurrence_pool', choices=['relevant', 'retrieved'],
                        default=None)
    parser.add_argument('--exclude-owning-entity', dest='count_owning_entity', action='store_false',
                        default=None, help="Do not count an entity's own mentions as co-occurrences.")
    parser.add_argument('--normalize-frequencies', dest='normalize_frequencies', action='store_true',
                        default=None)
    parser.add_argument('--expand-pseudo-doc-query', dest='expand_pseudo_doc_query', action='store_true',
                        default=None, help='RM3-expand the query of the pseudo-doc model.')
    parser.add_argument('--analyzer', choices=['english', 'standard'], default=None)
    parser.add_argument('--similarity', choices=['bm25', 'lmds', 'lmjm'], default=None)
    parser.add_argument('--k1', type=float, default=None)
    parser.add_argument('--b', type=float, default=None)
    parser.add_argument('--tag', type=str, default=None, help='Run tag (default depends on model).')
    parser.add_argument('--rank-start', dest='rank_start', type=int, choices=[0, 1], default=None)
    parser.add_argument('--num-workers', dest='num_workers', type=int, default=None)
    parser.add_argument('--log-level', type=str, default='INFO', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'])
    args = parser.parse_args()

    if args.index_path and not args.lucene_path:
        parser.error("--index-path requires --lucene-path")
    if args.model == 'salience' and not args.salience_file:
        parser.error("the salience model requires --salience-file")

    output_dir = ensure_dir(args.output_dir)
    logger = setup_experiment_logging("run_support_passage", args.log_level,
                                      str(output_dir / f'{args.model}.log'))
    log_experiment_info(logger, **vars(args))

    try:
        base = SupportPassageConfig.load(args.config) if args.config else None
        config = SupportPassageConfig.from_args(args, base)
        config.save(output_dir / f'{args.model}.config.json')

        with TimedOperation(logger, "Opening corpus"):
            corpus = open_corpus(args, config)

        with TimedOperation(logger, "Loading rankings and qrels"):
            passage_run = load_trec_run(args.passage_run)
            entity_run = load_rankings(args.entity_run)
            entity_qrels = load_qrels(args.entity_qrels)
            salience = load_salience(args.salience_file) if args.salience_file else None
            contexts = build_query_contexts(passage_run, entity_run, entity_qrels)

        model = create_model(config.model, corpus, config, salience=salience)
        emitter = RankedOutputEmitter(config.tag, config.rank_start)
        runner = SupportPassageRunner(model, emitter, config.num_workers)

        try:
            with TimedOperation(logger, f"Scoring {len(contexts)} queries with {config.model}"):
                output = runner.run(contexts)
        finally:
            corpus.close()

        run_file = output_dir / (args.run_name or f'{config.model}.run')
        runner.write_run(output, run_file)

        summary = output.summary()
        log_results(logger, summary, "RUN SUMMARY")
        save_json({
            'summary': summary,
            'failures': [{'query_id': f.query_id, 'entity_id': f.entity_id,
                          'kind': f.kind.value, 'message': f.message} for f in output.failures],
            'missing_evidence': output.missing_evidence,
        }, output_dir / f'{config.model}.report.json')

    except Exception as e:
        logger.critical(f"A critical error occurred: {e}", exc_info=True)
        sys.exit(1)

    logger.info(f"Run written to: {run_file}")


if __name__ == "__main__":
    main()
