"""
Utility functions for support-passage ranking.

Key modules:
- logging_utils: Logging setup and experiment tracking
- file_utils: Run files, qrels, salience annotations and JSON
- lucene_utils: Lucene JVM initialization and management
"""

from .logging_utils import (
    setup_logging,
    setup_experiment_logging,
    get_logger,
    log_experiment_info,
    log_results,
    TimedOperation
)

from .file_utils import (
    ensure_dir,
    save_json,
    load_json,
    save_trec_run,
    load_trec_run,
    load_rankings,
    load_qrels,
    load_qrels_graded,
    load_salience
)

# Optional Lucene utilities (pyjnius is only installed with the lucene extra)
try:
    from .lucene_utils import initialize_lucene, check_lucene_availability

    LUCENE_AVAILABLE = True
    __all_lucene = ['initialize_lucene', 'check_lucene_availability']
except ImportError:
    LUCENE_AVAILABLE = False
    __all_lucene = []

__all__ = [
              # Logging utilities
              'setup_logging',
              'setup_experiment_logging',
              'get_logger',
              'log_experiment_info',
              'log_results',
              'TimedOperation',

              # File utilities
              'ensure_dir',
              'save_json',
              'load_json',
              'save_trec_run',
              'load_trec_run',
              'load_rankings',
              'load_qrels',
              'load_qrels_graded',
              'load_salience',
              'LUCENE_AVAILABLE'
          ] + __all_lucene
