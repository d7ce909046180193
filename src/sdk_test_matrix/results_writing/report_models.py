"""Results writing entities."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

DISPATCH_SHEET_NAME = "Dispatches"
RUN_INFO_SHEET_NAME = "RunInfo"
DISPATCH_COLUMNS: tuple[str, ...] = ("TLS", "Mode", "Test", "Status", "Exit Code", "Detail")


@dataclass(frozen=True)
class RunMetadata:  # pylint: disable=too-many-instance-attributes
    """Metadata rendered into the RunInfo sheet."""

    run_start: datetime
    run_end: datetime
    log_dir: Path
    transcript_path: Path
    authority_address: str
    peer_address: str
    test_set: tuple[str, ...]
    failure_count: int
