"""Matrix orchestration exports."""

from .keystore_purge import KeystorePurger
from .matrix_orchestrator import MatrixOrchestrator
from .matrix_run_use_case import (
    REPORT_FILENAME,
    RunExecutionError,
    execute_matrix_run,
    load_run_settings,
)
from .run_contracts import RunOutcome, RunRequest

__all__ = [
    "KeystorePurger",
    "MatrixOrchestrator",
    "REPORT_FILENAME",
    "RunExecutionError",
    "execute_matrix_run",
    "load_run_settings",
    "RunOutcome",
    "RunRequest",
]
