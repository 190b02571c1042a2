"""
Logging configuration and experiment tracking.
"""

import logging
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(log_level: str = "INFO", log_file: Optional[str] = None) -> logging.Logger:
    """
    Configure the root logger with a console handler and an optional file handler.

    Args:
        log_level: Logging level name
        log_file: Also write the log to this file

    Returns:
        The root logger
    """
    level = getattr(logging, str(log_level).upper(), None)
    if not isinstance(level, int):
        raise ValueError(f"Invalid log level: {log_level}")

    root = logging.getLogger()
    root.setLevel(level)
    for handler in list(root.handlers):
        root.removeHandler(handler)

    formatter = logging.Formatter(LOG_FORMAT, DATE_FORMAT)

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(formatter)
    root.addHandler(console)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    return root


def setup_experiment_logging(experiment_name: str,
                             log_level: str = "INFO",
                             log_file: Optional[str] = None) -> logging.Logger:
    """
    Set up logging for a script run.

    Without an explicit ``log_file`` the log goes to
    ``logs/<experiment_name>_<timestamp>.log``.

    Returns:
        Logger named after the experiment
    """
    if log_file is None:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = str(Path("logs") / f"{experiment_name}_{timestamp}.log")

    setup_logging(log_level, log_file)
    logger = logging.getLogger(experiment_name)
    logger.info(f"Logging to {log_file}")
    return logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def log_experiment_info(logger: logging.Logger, **kwargs):
    """Log the settings of a run, one per line."""
    logger.info("=" * 60)
    logger.info("EXPERIMENT CONFIGURATION")
    logger.info("=" * 60)
    for key, value in sorted(kwargs.items()):
        logger.info(f"  {key}: {value}")
    logger.info("=" * 60)


def log_results(logger: logging.Logger, results: Dict[str, Any], title: str = "RESULTS"):
    """Log a (possibly nested) results dictionary."""
    logger.info("=" * 60)
    logger.info(title)
    logger.info("=" * 60)
    for key, value in results.items():
        if isinstance(value, dict):
            logger.info(f"{key}:")
            for sub_key, sub_value in value.items():
                if isinstance(sub_value, float):
                    logger.info(f"  {sub_key}: {sub_value:.4f}")
                else:
                    logger.info(f"  {sub_key}: {sub_value}")
        elif isinstance(value, float):
            logger.info(f"{key}: {value:.4f}")
        else:
            logger.info(f"{key}: {value}")
    logger.info("=" * 60)


class TimedOperation:
    """
    Context manager that logs how long a block took.

        with TimedOperation(logger, "Loading corpus"):
            corpus = BM25Corpus.from_jsonl(path)
    """

    def __init__(self, logger: logging.Logger, description: str):
        self.logger = logger
        self.description = description
        self.start_time = None
        self.elapsed = None

    def __enter__(self):
        self.start_time = time.time()
        self.logger.info(f"Starting: {self.description}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.elapsed = time.time() - self.start_time
        if exc_type is None:
            self.logger.info(f"Completed: {self.description} ({self.elapsed:.2f}s)")
        else:
            self.logger.error(f"Failed: {self.description} after {self.elapsed:.2f}s: {exc_val}")
        return False
