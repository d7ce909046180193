"""Configuration domain entities."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class DeployMode(str, Enum):
    """How chaincode reaches the peer during a matrix cell."""

    NET = "net"
    DEV = "dev"


@dataclass(frozen=True)
class NetworkEndpoint:
    """Host and port of one managed service."""

    host: str
    port: int

    @classmethod
    def parse(cls, value: str) -> NetworkEndpoint:
        """Parse a ``host:port`` string."""
        host, separator, port_text = value.strip().rpartition(":")
        if not separator or not host:
            raise ValueError(f"Endpoint must use host:port form: {value!r}")
        try:
            port = int(port_text)
        except ValueError as exc:
            raise ValueError(f"Endpoint port must be an integer: {value!r}") from exc
        if not 0 < port <= 65535:
            raise ValueError(f"Endpoint port out of range: {value!r}")
        return cls(host=host, port=port)

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"


@dataclass(frozen=True)
class TlsSettings:
    """CA material and identity used when TLS is enabled."""

    ca_cert_file: Path
    ca_key_file: Path
    server_host_override: str
    cipher_suites: str | None


@dataclass(frozen=True)
class WaitSettings:
    """Deploy/invoke waits handed to the unit tests."""

    deploy_seconds: int
    invoke_seconds: int


@dataclass(frozen=True)
class TimingSettings:
    """Fixed delays and timeouts used while driving services."""

    readiness_timeout_seconds: float = 15.0
    poll_interval_seconds: float = 1.0
    liveness_grace_seconds: float = 2.0
    tls_propagation_delay_seconds: float = 5.0
    peer_settle_seconds: float = 3.0
    mode_cooldown_seconds: float = 5.0


@dataclass(frozen=True)
class PathSettings:  # pylint: disable=too-many-instance-attributes
    """Filesystem layout of the fabric checkout and the run outputs."""

    gopath: Path
    fabric_dir: Path
    sdk_dir: Path
    unit_test_dir: Path
    chaincode_examples_dir: Path
    log_dir: Path
    node_executable: str
    go_executable: str


@dataclass(frozen=True)
class CredentialSettings:
    """Registrar credentials passed through to the unit tests."""

    default_user: str | None
    default_secret: str | None


@dataclass(frozen=True)
class KeystoreSettings:
    """Authentication state that is purged between TLS iterations."""

    persist: bool
    directory: Path | None
    purge_patterns: tuple[str, ...]


@dataclass(frozen=True)
class ChaincodeSettings:
    """Overrides for previously deployed or relocated chaincode."""

    path: str | None
    chaincode_id: str | None


@dataclass(frozen=True)
class MatrixSettings:
    """Axes of the test matrix."""

    tls_values: tuple[bool, ...]
    modes: tuple[DeployMode, ...]


@dataclass(frozen=True)
class Configuration:  # pylint: disable=too-many-instance-attributes
    """Top-level configuration aggregate."""

    path: Path | None
    authority: NetworkEndpoint
    peer: NetworkEndpoint
    tls: TlsSettings
    waits: Mapping[DeployMode, WaitSettings]
    timing: TimingSettings
    paths: PathSettings
    credentials: CredentialSettings
    keystore: KeystoreSettings
    chaincode: ChaincodeSettings
    matrix: MatrixSettings


@dataclass(frozen=True)
class RunConfiguration:
    """One matrix cell, read-only for every component during the cell."""

    tls_enabled: bool
    deploy_mode: DeployMode
    deploy_wait: int
    invoke_wait: int

    @property
    def label(self) -> str:
        tls = "tls" if self.tls_enabled else "no-tls"
        return f"{tls}/{self.deploy_mode.value}"
