"""
Logging configuration for the media intake pipeline.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Dict

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LEDGER_FORMAT = "%(asctime)s %(message)s"


def _file_only_logger(name: str, log_file: Path, fmt: str) -> logging.Logger:
    """A logger writing to its own file and nowhere else."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        logger.setLevel(logging.INFO)
        handler = logging.FileHandler(log_file, encoding="utf-8")
        handler.setFormatter(logging.Formatter(fmt))
        logger.addHandler(handler)
        logger.propagate = False
    return logger


def setup_logging(log_dir: Path, level: int = logging.INFO) -> Dict[str, logging.Logger]:
    """Initialize loggers and return them keyed by role.

    ``main`` goes to the console, a dated intake log and a dated error log.
    ``movement`` records one line per library write or duplicate skip, and
    ``runs`` records one summary line per ingest run.
    """
    log_dir.mkdir(parents=True, exist_ok=True)
    date_stamp = datetime.utcnow().strftime("%Y%m%d")
    formatter = logging.Formatter(LOG_FORMAT)

    base_logger = logging.getLogger("media_intake")
    if not base_logger.handlers:
        base_logger.setLevel(level)
        handlers = [
            logging.StreamHandler(),
            logging.FileHandler(log_dir / f"intake_log_{date_stamp}.log", encoding="utf-8"),
        ]
        error_handler = logging.FileHandler(log_dir / f"error_log_{date_stamp}.log", encoding="utf-8")
        error_handler.setLevel(logging.ERROR)
        handlers.append(error_handler)
        for handler in handlers:
            handler.setFormatter(formatter)
            base_logger.addHandler(handler)

    return {
        "main": base_logger,
        "movement": _file_only_logger(
            "media_intake.movement", log_dir / f"movement_log_{date_stamp}.log", LEDGER_FORMAT
        ),
        "runs": _file_only_logger("media_intake.runs", log_dir / f"run_log_{date_stamp}.log", LOG_FORMAT),
    }
