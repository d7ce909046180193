"""Lifecycle control of one long-running network service."""

from __future__ import annotations

import logging
import os
import shutil
import time
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from sdk_test_matrix.configuration.runtime_settings import NetworkEndpoint, TimingSettings
from sdk_test_matrix.network_probe import NetworkProbe
from sdk_test_matrix.process_supervision import ProcessHandle, ProcessSupervisor, StartError

LOGGER = logging.getLogger(__name__)

TlsEnvironmentBuilder = Callable[[Path, Path, str], Mapping[str, str]]


class FatalSetupError(Exception):
    """Raised when the network cannot be brought up; aborts the whole run."""


class ServiceStartError(FatalSetupError):
    """Raised when a locally managed service fails to start or become reachable."""


class ServiceState(str, Enum):
    """Lifecycle state of a managed service."""

    STOPPED = "stopped"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"
    FAILED = "failed"


@dataclass(frozen=True)
class ServiceDefinition:
    """Static description of a fabric service."""

    name: str
    description: str
    base_arguments: tuple[str, ...]
    service_environment: Mapping[str, str]
    tls_environment: TlsEnvironmentBuilder
    tls_variables: tuple[str, ...] = field(default=())


class ServiceController:  # pylint: disable=too-many-instance-attributes
    """Starts, stops and health-checks one service at a known endpoint."""

    def __init__(
        self,
        definition: ServiceDefinition,
        endpoint: NetworkEndpoint,
        *,
        address: str,
        is_local: bool,
        executable: Path | None,
        log_path: Path,
        supervisor: ProcessSupervisor,
        probe: NetworkProbe,
        timing: TimingSettings,
        settle_seconds: float = 0.0,
        base_environ: Mapping[str, str] | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.definition = definition
        self.endpoint = endpoint
        self.address = address
        self.is_local = is_local
        self.executable = executable
        self.log_path = log_path
        self._supervisor = supervisor
        self._probe = probe
        self._timing = timing
        self._settle_seconds = settle_seconds
        self._base_environ = dict(os.environ if base_environ is None else base_environ)
        self._sleep = sleep
        self._tls_environment: Mapping[str, str] = {}
        self._tls_material: tuple[Path, Path] | None = None
        self._handle: ProcessHandle | None = None
        self._state = ServiceState.STOPPED

    @property
    def name(self) -> str:
        return self.definition.name

    @property
    def state(self) -> ServiceState:
        return self._state

    @property
    def handle(self) -> ProcessHandle | None:
        return self._handle

    def configure_tls(
        self,
        enabled: bool,
        cert_path: Path,
        key_path: Path,
        server_host_override: str = "tlsca",
    ) -> None:
        """Select the TLS variables the service reads on its next start."""
        if enabled:
            self._tls_environment = dict(
                self.definition.tls_environment(cert_path, key_path, server_host_override)
            )
            self._tls_material = (cert_path, key_path)
        else:
            self._tls_environment = {}
            self._tls_material = None

    def environment(self) -> dict[str, str]:
        """Full environment for the service process."""
        environment = {
            key: value
            for key, value in self._base_environ.items()
            if key not in self.definition.tls_variables
        }
        environment.update(self.definition.service_environment)
        environment.update(self._tls_environment)
        return environment

    def start(self, arguments: Sequence[str] = ()) -> None:
        """Start the service and wait until its endpoint accepts connections."""
        if not self.is_local or self.executable is None:
            raise ServiceStartError(f"{self.name} at {self.endpoint} is not managed locally")
        if self._handle is not None:
            self.stop()

        self._state = ServiceState.STARTING
        command = (str(self.executable), *self.definition.base_arguments, *arguments)
        try:
            self._handle = self._supervisor.start(
                command,
                self.log_path,
                description=self.definition.description,
                env=self.environment(),
                cwd=self.executable.parent,
            )
        except StartError as exc:
            self._state = ServiceState.FAILED
            raise ServiceStartError(str(exc)) from exc

        LOGGER.info(
            "Waiting for %s start on %s:%s ...", self.name, self.address, self.endpoint.port
        )
        reachable = self._probe.poll_until_reachable(
            self.address, self.endpoint.port, self._timing.readiness_timeout_seconds
        )
        if not reachable or not self._handle.is_alive():
            self._fail_start()
        self._state = ServiceState.RUNNING
        if self._settle_seconds:
            self._sleep(self._settle_seconds)

    def restart(self, arguments: Sequence[str] = ()) -> None:
        self.stop()
        self.start(arguments)

    def stop(self) -> None:
        """Terminate the tracked process; no-op when nothing is running."""
        if self._handle is None:
            self._state = ServiceState.STOPPED
            return
        self._state = ServiceState.STOPPING
        self._supervisor.stop(self._handle)
        self._handle = None
        self._state = ServiceState.STOPPED

    def cleanup_stale(self) -> list[int]:
        """Kill instances left over from earlier runs."""
        if self.executable is None:
            return []
        return self._supervisor.stop_matching(str(self.executable))

    def verify_reachable(self) -> None:
        """Fail the run when a remote service is not listening."""
        if not self._probe.is_reachable(self.address, self.endpoint.port):
            raise FatalSetupError(f"{self.name} ({self.endpoint}) unreachable")

    def publish_tls_material(self, destination: Path) -> None:
        """Copy the CA certificate and key where dependent services expect them.

        The service generates the material shortly after start, so the copy
        waits out the propagation delay first.
        """
        if self._tls_material is None:
            return
        self._sleep(self._timing.tls_propagation_delay_seconds)
        for source in self._tls_material:
            try:
                shutil.copy(source, destination)
            except OSError as exc:
                raise FatalSetupError(f"Cannot copy TLS material {source}: {exc}") from exc
            LOGGER.info("copied %s to %s", source, destination)

    def _fail_start(self) -> None:
        self._state = ServiceState.FAILED
        handle = self._handle
        self._handle = None
        if handle is not None:
            self._supervisor.stop(handle)
        raise ServiceStartError(
            f"{self.name} did not become reachable on {self.address}:{self.endpoint.port} "
            f"within {self._timing.readiness_timeout_seconds:.0f}s; see {self.log_path}"
        )
