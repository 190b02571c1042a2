#!/usr/bin/env python3
"""
Evaluates one or more support-passage run files against support-passage qrels.

Run files use composite ``<queryID>+<entityID>`` query IDs; the qrels must
use the same keys. The first run (or --baseline) is the reference for the
improvement columns of the results table.
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to path for local imports
project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

from entity_support.evaluation.evaluator import DEFAULT_METRICS, TRECEvaluator
from entity_support.utils.file_utils import ensure_dir, load_qrels_graded, load_trec_run, save_json
from entity_support.utils.logging_utils import setup_experiment_logging, log_experiment_info, log_results

logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(
        description="Evaluate support-passage run files.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser.add_argument('--qrels', type=str, required=True, help='Support-passage qrels file.')
    parser.add_argument('--runs', type=str, nargs='+', required=True,
                        help='Run files; the run name is the file stem.')
    parser.add_argument('--baseline', type=str, default=None, help='Name of the baseline run.')
    parser.add_argument('--metrics', type=str, nargs='+', default=DEFAULT_METRICS)
    parser.add_argument('--output-dir', type=str, default=None, help='Save metrics JSON here.')
    parser.add_argument('--log-level', type=str, default='INFO', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'])
    args = parser.parse_args()

    log_file = str(Path(args.output_dir) / 'evaluation.log') if args.output_dir else None
    logger = setup_experiment_logging("evaluate_run", args.log_level, log_file)
    log_experiment_info(logger, **vars(args))

    try:
        qrels = load_qrels_graded(args.qrels)

        runs = {}
        for run_path in args.runs:
            run = load_trec_run(run_path)
            ranked = {query_id: sorted(docs.items(), key=lambda item: -item[1]) for query_id, docs in run.items()}
            runs[Path(run_path).stem] = ranked

        evaluator = TRECEvaluator(args.metrics)
        comparison = evaluator.compare_runs(runs, qrels, baseline_run=args.baseline)
        log_results(logger, comparison['evaluations'], "EVALUATION RESULTS")

        if args.output_dir:
            save_json(comparison, ensure_dir(args.output_dir) / 'evaluation_metrics.json')

        print("\n" + "=" * 80)
        print(evaluator.create_results_table(comparison))
        print("=" * 80)

    except Exception as e:
        logger.critical(f"A critical error occurred during evaluation: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
