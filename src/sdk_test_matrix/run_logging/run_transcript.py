"""Consolidated run transcript wiring for the standard logging module."""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

PACKAGE_LOGGER_NAME = "sdk_test_matrix"
TRANSCRIPT_FILENAME = "log"
_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


@contextmanager
def open_run_transcript(log_dir: Path, *, echo: bool = True) -> Iterator[Path]:
    """Send package log records to ``log_dir/log`` (and stderr) for the duration of a run."""
    transcript_path = log_dir / TRANSCRIPT_FILENAME
    logger = logging.getLogger(PACKAGE_LOGGER_NAME)
    formatter = logging.Formatter(_FORMAT)

    handlers: list[logging.Handler] = [logging.FileHandler(transcript_path, encoding="utf-8")]
    if echo:
        handlers.append(logging.StreamHandler(sys.stderr))
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    previous_level = logger.level
    logger.setLevel(logging.INFO)
    try:
        yield transcript_path
    finally:
        logger.setLevel(previous_level)
        for handler in handlers:
            logger.removeHandler(handler)
            handler.close()
