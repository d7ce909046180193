"""Run execution entities."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class RunRequest:
    """Input contract for executing one matrix run."""

    test_identifiers: tuple[str, ...] = ()
    config_path: str | None = None
    log_dir: str | None = None
    write_report: bool = True
    echo: bool = True


@dataclass(frozen=True)
class RunOutcome:
    """Output contract for one completed matrix run."""

    failure_count: int
    dispatch_count: int
    log_dir: Path
    transcript_path: Path
    report_path: Path | None

    @property
    def passed(self) -> bool:
        return self.failure_count == 0
