"""Results workbook writer service."""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from pathlib import Path

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from sdk_test_matrix.test_dispatch.dispatch_outcomes import DispatchRecord, DispatchStatus

from .report_models import DISPATCH_COLUMNS, DISPATCH_SHEET_NAME, RUN_INFO_SHEET_NAME, RunMetadata

_MAX_COLUMN_WIDTH = 80


def write_results_workbook(
    output_path: Path | str,
    records: Sequence[DispatchRecord],
    run_metadata: RunMetadata,
) -> Path:
    """Write one row per dispatch plus a RunInfo summary sheet."""
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = DISPATCH_SHEET_NAME
    _write_dispatch_rows(sheet, records)
    _write_run_info_sheet(workbook, records, run_metadata)

    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)
    workbook.save(output)
    return output


def _write_dispatch_rows(sheet, records: Sequence[DispatchRecord]) -> None:
    for column, header in enumerate(DISPATCH_COLUMNS, start=1):
        cell = sheet.cell(row=1, column=column, value=header)
        cell.font = Font(bold=True)

    for row, record in enumerate(records, start=2):
        values = (
            "on" if record.configuration.tls_enabled else "off",
            record.configuration.deploy_mode.value,
            record.test_identifier,
            record.status.value,
            record.exit_code,
            record.detail,
        )
        for column, value in enumerate(values, start=1):
            sheet.cell(row=row, column=column, value=value)

    sheet.freeze_panes = "A2"
    _fit_column_widths(sheet)


def _fit_column_widths(sheet) -> None:
    for column in range(1, sheet.max_column + 1):
        width = max(
            len(str(sheet.cell(row=row, column=column).value or ""))
            for row in range(1, sheet.max_row + 1)
        )
        sheet.column_dimensions[get_column_letter(column)].width = min(width + 2, _MAX_COLUMN_WIDTH)


def _write_run_info_sheet(
    workbook,
    records: Sequence[DispatchRecord],
    run_metadata: RunMetadata,
) -> None:
    sheet = workbook.create_sheet(RUN_INFO_SHEET_NAME)
    counts = Counter(record.status for record in records)

    entries = (
        ("run_start", run_metadata.run_start.isoformat()),
        ("run_end", run_metadata.run_end.isoformat()),
        ("log_dir", str(run_metadata.log_dir)),
        ("transcript", str(run_metadata.transcript_path)),
        ("membersrvc_address", run_metadata.authority_address),
        ("peer_address", run_metadata.peer_address),
        ("test_set", ", ".join(run_metadata.test_set)),
        ("dispatches", len(records)),
        ("passed", counts[DispatchStatus.PASSED]),
        ("failed", counts[DispatchStatus.FAILED]),
        ("setup_failed", counts[DispatchStatus.SETUP_FAILED]),
        ("skipped", counts[DispatchStatus.SKIPPED]),
        ("unknown", counts[DispatchStatus.UNKNOWN]),
        ("failure_count", run_metadata.failure_count),
        ("verdict", "PASSED" if run_metadata.failure_count == 0 else "FAILED"),
    )
    for row, (key, value) in enumerate(entries, start=1):
        sheet.cell(row=row, column=1, value=key)
        sheet.cell(row=row, column=2, value=value)
