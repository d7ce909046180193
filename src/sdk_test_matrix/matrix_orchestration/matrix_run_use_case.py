"""Matrix run use-case service."""

from __future__ import annotations

import dataclasses
import logging
import os
import shutil
import time
from collections.abc import Callable, Mapping, Sequence
from datetime import UTC, datetime
from pathlib import Path

from sdk_test_matrix.chaincode_preparation import ChaincodePreparer
from sdk_test_matrix.configuration import Configuration, ConfigurationError, load_configuration
from sdk_test_matrix.executable_builds import (
    BuildError,
    CommandRunner,
    ServiceBinary,
    ensure_service_executable,
)
from sdk_test_matrix.network_probe import NetworkProbe, ResolutionError
from sdk_test_matrix.process_supervision import ProcessSupervisor
from sdk_test_matrix.results_writing import RunMetadata, write_results_workbook
from sdk_test_matrix.run_logging import open_run_transcript
from sdk_test_matrix.service_control import (
    AUTHORITY_DEFINITION,
    PEER_DEFINITION,
    FatalSetupError,
    ServiceController,
    ServiceDefinition,
)
from sdk_test_matrix.test_dispatch import RunResult, TestRunner, default_test_set
from sdk_test_matrix.test_dispatch.test_runner import TestCommandRunner

from .keystore_purge import KeystorePurger
from .matrix_orchestrator import MatrixOrchestrator
from .run_contracts import RunOutcome, RunRequest

LOGGER = logging.getLogger(__name__)

REPORT_FILENAME = "results.xlsx"


class RunExecutionError(Exception):
    """Raised when a run cannot be set up from its request."""


@dataclasses.dataclass(frozen=True)
class _RunCollaborators:
    """Injectable seams used to build the run's components."""

    probe: NetworkProbe
    supervisor: ProcessSupervisor
    run_command: CommandRunner | None
    run_test_command: TestCommandRunner | None
    environ: Mapping[str, str]
    sleep: Callable[[float], None]


def load_run_settings(
    request: RunRequest, environ: Mapping[str, str] | None = None
) -> Configuration:
    """Load configuration for ``request``, applying its log directory override."""
    try:
        settings = load_configuration(request.config_path, environ=environ)
    except ConfigurationError as exc:
        raise RunExecutionError(str(exc)) from exc
    if request.log_dir:
        paths = dataclasses.replace(settings.paths, log_dir=Path(request.log_dir).resolve())
        settings = dataclasses.replace(settings, paths=paths)
    return settings


# pylint: disable=too-many-arguments
def execute_matrix_run(
    request: RunRequest,
    *,
    environ: Mapping[str, str] | None = None,
    probe: NetworkProbe | None = None,
    supervisor: ProcessSupervisor | None = None,
    run_command: CommandRunner | None = None,
    run_test_command: TestCommandRunner | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> RunOutcome:
    """Execute the full TLS x mode matrix and return the run outcome.

    Raises:
      RunExecutionError: If the configuration is invalid.
      FatalSetupError: If a service cannot be built, started or reached.
    """
    resolved_environ = dict(os.environ if environ is None else environ)
    settings = load_run_settings(request, resolved_environ)
    timing = settings.timing
    collaborators = _RunCollaborators(
        probe=probe or NetworkProbe(poll_interval_seconds=timing.poll_interval_seconds),
        supervisor=supervisor
        or ProcessSupervisor(liveness_grace_seconds=timing.liveness_grace_seconds),
        run_command=run_command,
        run_test_command=run_test_command,
        environ=resolved_environ,
        sleep=sleep,
    )
    test_set = request.test_identifiers or default_test_set()
    log_dir = settings.paths.log_dir
    _reset_log_dir(log_dir)

    run_start = datetime.now(UTC)
    with open_run_transcript(log_dir, echo=request.echo) as transcript_path:
        LOGGER.info("Beginning nodejs SDK UT tests...")
        for identifier in test_set:
            LOGGER.info("   %s", identifier)
        try:
            result = _run_matrix(settings, collaborators, test_set)
        except FatalSetupError as exc:
            LOGGER.error("%s...exiting", exc)
            raise

        LOGGER.info("exit code: %d", result.failure_count)
        LOGGER.info("UT tests %s", "PASSED" if result.passed else "FAILED")

    report_path = None
    if request.write_report:
        report_path = write_results_workbook(
            log_dir / REPORT_FILENAME,
            result.records,
            RunMetadata(
                run_start=run_start,
                run_end=datetime.now(UTC),
                log_dir=log_dir,
                transcript_path=transcript_path,
                authority_address=str(settings.authority),
                peer_address=str(settings.peer),
                test_set=tuple(test_set),
                failure_count=result.failure_count,
            ),
        )
    return RunOutcome(
        failure_count=result.failure_count,
        dispatch_count=len(result.records),
        log_dir=log_dir,
        transcript_path=transcript_path,
        report_path=report_path,
    )


# pylint: enable=too-many-arguments


def _run_matrix(
    settings: Configuration, collaborators: _RunCollaborators, test_set: Sequence[str]
) -> RunResult:
    authority = _build_controller(settings, collaborators, AUTHORITY_DEFINITION)
    peer = _build_controller(settings, collaborators, PEER_DEFINITION)
    result = RunResult()
    preparer = ChaincodePreparer(
        settings.paths,
        supervisor=collaborators.supervisor,
        ca_cert_file=settings.tls.ca_cert_file,
        peer_port=settings.peer.port,
        run_command=collaborators.run_command,
        base_environ=collaborators.environ,
    )
    test_runner = TestRunner(
        settings,
        preparer=preparer,
        result=result,
        run_test_command=collaborators.run_test_command,
        base_environ=collaborators.environ,
    )
    orchestrator = MatrixOrchestrator(
        settings,
        authority=authority,
        peer=peer,
        test_runner=test_runner,
        result=result,
        keystore=KeystorePurger(settings.keystore),
        sleep=collaborators.sleep,
    )
    return orchestrator.run(test_set)


def _build_controller(
    settings: Configuration,
    collaborators: _RunCollaborators,
    definition: ServiceDefinition,
) -> ServiceController:
    endpoint = settings.authority if definition is AUTHORITY_DEFINITION else settings.peer
    probe = collaborators.probe
    try:
        address = probe.resolve(endpoint.host)
    except ResolutionError as exc:
        raise FatalSetupError(f"{definition.name}: {exc}") from exc
    is_local = probe.is_local(address, endpoint.port)
    LOGGER.info(
        "%s at %s (%s) is %s", definition.name, endpoint, address, "local" if is_local else "remote"
    )

    executable = None
    if is_local:
        try:
            executable = ensure_service_executable(
                ServiceBinary(definition.name, settings.paths.fabric_dir),
                go_executable=settings.paths.go_executable,
                run_command=collaborators.run_command,
            )
        except BuildError as exc:
            raise FatalSetupError(str(exc)) from exc

    controller = ServiceController(
        definition,
        endpoint,
        address=address,
        is_local=is_local,
        executable=executable,
        log_path=settings.paths.log_dir / f"{definition.name}.log",
        supervisor=collaborators.supervisor,
        probe=probe,
        timing=settings.timing,
        settle_seconds=(
            settings.timing.peer_settle_seconds if definition is PEER_DEFINITION else 0.0
        ),
        base_environ=collaborators.environ,
        sleep=collaborators.sleep,
    )
    if is_local:
        controller.cleanup_stale()
    else:
        controller.verify_reachable()
    return controller


def _reset_log_dir(log_dir: Path) -> None:
    if log_dir.exists():
        shutil.rmtree(log_dir)
    log_dir.mkdir(parents=True)
