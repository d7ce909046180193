"""Results writing domain exports."""

from .report_models import (
    DISPATCH_COLUMNS,
    DISPATCH_SHEET_NAME,
    RUN_INFO_SHEET_NAME,
    RunMetadata,
)
from .run_report_writer import write_results_workbook

__all__ = [
    "DISPATCH_COLUMNS",
    "DISPATCH_SHEET_NAME",
    "RUN_INFO_SHEET_NAME",
    "RunMetadata",
    "write_results_workbook",
]
