"""Run logging exports."""

from .run_transcript import PACKAGE_LOGGER_NAME, TRANSCRIPT_FILENAME, open_run_transcript

__all__ = ["PACKAGE_LOGGER_NAME", "TRANSCRIPT_FILENAME", "open_run_transcript"]
