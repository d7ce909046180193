"""Hostname resolution, locality and TCP reachability checks."""

from __future__ import annotations

import ipaddress
import logging
import socket
import time
from collections.abc import Callable

import psutil

LOGGER = logging.getLogger(__name__)

_PROXY_PROCESS_MARKER = "proxy"


class ResolutionError(Exception):
    """Raised when a hostname cannot be resolved."""


class NetworkProbe:
    """Answers where a service lives and whether it is listening."""

    def __init__(
        self,
        *,
        poll_interval_seconds: float = 1.0,
        connect_timeout_seconds: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._poll_interval = poll_interval_seconds
        self._connect_timeout = connect_timeout_seconds
        self._sleep = sleep
        self._clock = clock

    @staticmethod
    def resolve(hostname: str) -> str:
        """Return the IPv4 address for ``hostname``."""
        try:
            return socket.gethostbyname(hostname)
        except (socket.gaierror, UnicodeError) as exc:
            raise ResolutionError(f"Cannot resolve host '{hostname}': {exc}") from exc

    def is_local(self, address: str, port: int) -> bool:
        """Return True when ``address`` is served by a native process on this host.

        Loopback addresses are always local. Any other address must belong to one
        of this host's interfaces, and the listener on ``port`` must not be a
        container proxy forwarding to a service running elsewhere.
        """
        try:
            if ipaddress.ip_address(address).is_loopback:
                return True
        except ValueError:
            LOGGER.debug("%s is not an IP address; treating it as remote", address)
            return False

        if address not in _local_interface_addresses():
            return False
        return not _port_served_by_proxy(port)

    def is_reachable(self, host: str, port: int, timeout: float | None = None) -> bool:
        """Try one TCP connect; resolution failures count as unreachable."""
        connect_timeout = self._connect_timeout if timeout is None else timeout
        try:
            with socket.create_connection((host, port), timeout=connect_timeout):
                return True
        except (OSError, UnicodeError):
            return False

    def poll_until_reachable(self, host: str, port: int, timeout: float) -> bool:
        """Probe ``host:port`` every poll interval until it answers or ``timeout`` passes."""
        deadline = self._clock() + timeout
        attempts = 0
        while True:
            attempts += 1
            if self.is_reachable(host, port):
                LOGGER.debug("%s:%s reachable after %d attempt(s)", host, port, attempts)
                return True
            remaining = deadline - self._clock()
            if remaining <= 0:
                LOGGER.info("%s:%s still unreachable after %.0fs", host, port, timeout)
                return False
            self._sleep(min(self._poll_interval, remaining))


def _local_interface_addresses() -> set[str]:
    addresses = set()
    for interface_addresses in psutil.net_if_addrs().values():
        for entry in interface_addresses:
            if entry.family in (socket.AF_INET, socket.AF_INET6):
                addresses.add(entry.address.split("%", 1)[0])
    return addresses


def _port_served_by_proxy(port: int) -> bool:
    try:
        connections = psutil.net_connections(kind="tcp")
    except psutil.AccessDenied:
        LOGGER.debug("Cannot inspect listeners on port %s; assuming no proxy", port)
        return False

    for connection in connections:
        if connection.status != psutil.CONN_LISTEN or not connection.laddr:
            continue
        if connection.laddr.port != port or connection.pid is None:
            continue
        try:
            name = psutil.Process(connection.pid).name()
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            continue
        if _PROXY_PROCESS_MARKER in name:
            LOGGER.info("Port %s is forwarded by %s (pid %s)", port, name, connection.pid)
            return True
    return False
