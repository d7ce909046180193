"""Test dispatch domain entities."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from sdk_test_matrix.configuration.runtime_settings import RunConfiguration


class DispatchStatus(str, Enum):
    """Outcome of dispatching one test identifier in one matrix cell."""

    PASSED = "passed"
    FAILED = "failed"
    SETUP_FAILED = "setup_failed"
    SKIPPED = "skipped"
    UNKNOWN = "unknown"


_FAILURE_STATUSES = frozenset({DispatchStatus.FAILED, DispatchStatus.SETUP_FAILED})


@dataclass(frozen=True)
class DispatchRecord:
    """Result of one dispatch."""

    configuration: RunConfiguration
    test_identifier: str
    exit_code: int
    status: DispatchStatus
    detail: str | None = None

    @property
    def is_failure(self) -> bool:
        return self.status in _FAILURE_STATUSES

    @staticmethod
    def completed(
        configuration: RunConfiguration, test_identifier: str, exit_code: int
    ) -> DispatchRecord:
        return DispatchRecord(
            configuration=configuration,
            test_identifier=test_identifier,
            exit_code=exit_code,
            status=DispatchStatus.PASSED if exit_code == 0 else DispatchStatus.FAILED,
        )

    @staticmethod
    def setup_failed(
        configuration: RunConfiguration, test_identifier: str, error: Exception
    ) -> DispatchRecord:
        return DispatchRecord(
            configuration=configuration,
            test_identifier=test_identifier,
            exit_code=1,
            status=DispatchStatus.SETUP_FAILED,
            detail=str(error),
        )

    @staticmethod
    def skipped(
        configuration: RunConfiguration, test_identifier: str, reason: str
    ) -> DispatchRecord:
        return DispatchRecord(
            configuration=configuration,
            test_identifier=test_identifier,
            exit_code=0,
            status=DispatchStatus.SKIPPED,
            detail=reason,
        )

    @staticmethod
    def unknown(configuration: RunConfiguration, test_identifier: str) -> DispatchRecord:
        return DispatchRecord(
            configuration=configuration,
            test_identifier=test_identifier,
            exit_code=0,
            status=DispatchStatus.UNKNOWN,
            detail="no dispatch entry",
        )


@dataclass
class RunResult:
    """Failure counter and dispatch log accumulated across the whole matrix."""

    failure_count: int = 0
    records: list[DispatchRecord] = field(default_factory=list)

    def record(self, dispatch: DispatchRecord) -> None:
        self.records.append(dispatch)
        if dispatch.is_failure:
            self.failure_count += 1

    @property
    def passed(self) -> bool:
        return self.failure_count == 0
