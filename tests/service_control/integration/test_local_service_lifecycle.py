"""Service lifecycle against a real listening child process."""

from __future__ import annotations

import os
import socket
import sys
import time
from pathlib import Path

from sdk_test_matrix.configuration.runtime_settings import NetworkEndpoint, TimingSettings
from sdk_test_matrix.network_probe import NetworkProbe
from sdk_test_matrix.process_supervision import ProcessSupervisor
from sdk_test_matrix.service_control import ServiceController, ServiceDefinition, ServiceState

_LISTENER_SCRIPT = (
    "import socket, sys, time\n"
    "server = socket.socket()\n"
    "server.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)\n"
    "server.bind(('127.0.0.1', int(sys.argv[1])))\n"
    "server.listen()\n"
    "time.sleep(60)\n"
)


def _free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as placeholder:
        placeholder.bind(("127.0.0.1", 0))
        return placeholder.getsockname()[1]


def _listener_definition() -> ServiceDefinition:
    return ServiceDefinition(
        name="listener",
        description="loopback listener",
        base_arguments=("-c", _LISTENER_SCRIPT),
        service_environment={},
        tls_environment=lambda cert, key, host: {},
    )


def test_started_service_listens_and_stops_listening_after_stop(tmp_path: Path) -> None:
    port = _free_port()
    probe = NetworkProbe(poll_interval_seconds=0.1, connect_timeout_seconds=0.5)
    controller = ServiceController(
        _listener_definition(),
        NetworkEndpoint("127.0.0.1", port),
        address="127.0.0.1",
        is_local=True,
        executable=Path(sys.executable),
        log_path=tmp_path / "listener.log",
        supervisor=ProcessSupervisor(liveness_grace_seconds=0.5),
        probe=probe,
        timing=TimingSettings(readiness_timeout_seconds=10),
        base_environ=dict(os.environ),
    )

    controller.start((str(port),))
    try:
        assert controller.state is ServiceState.RUNNING
        assert probe.is_reachable("127.0.0.1", port)
    finally:
        controller.stop()

    deadline = time.monotonic() + 5
    while probe.is_reachable("127.0.0.1", port) and time.monotonic() < deadline:
        time.sleep(0.1)
    assert not probe.is_reachable("127.0.0.1", port)
    assert controller.state is ServiceState.STOPPED
