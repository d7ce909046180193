"""Reachability checks against real loopback sockets."""

from __future__ import annotations

import socket
from collections.abc import Iterator

import pytest
from sdk_test_matrix.configuration.runtime_settings import NetworkEndpoint
from sdk_test_matrix.network_probe import NetworkProbe, inspect_endpoint


@pytest.fixture
def listening_port() -> Iterator[int]:
    server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    server.bind(("127.0.0.1", 0))
    server.listen()
    try:
        yield server.getsockname()[1]
    finally:
        server.close()


@pytest.fixture
def closed_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as placeholder:
        placeholder.bind(("127.0.0.1", 0))
        return placeholder.getsockname()[1]


def test_listening_loopback_port_is_reachable(listening_port: int) -> None:
    assert NetworkProbe().is_reachable("127.0.0.1", listening_port) is True


def test_closed_loopback_port_is_unreachable(closed_port: int) -> None:
    assert NetworkProbe().is_reachable("127.0.0.1", closed_port, timeout=0.5) is False


def test_inspect_endpoint_reports_local_reachable_service(listening_port: int) -> None:
    status = inspect_endpoint(
        "membersrvc", NetworkEndpoint("localhost", listening_port), NetworkProbe()
    )

    assert status.address == "127.0.0.1"
    assert status.is_local is True
    assert status.reachable is True
    assert status.usable is True
