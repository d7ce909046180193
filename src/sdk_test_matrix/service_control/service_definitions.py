"""Membership authority and peer service definitions."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path

from sdk_test_matrix.configuration.runtime_settings import DeployMode

from .service_controller import ServiceDefinition

AUTHORITY_NAME = "membersrvc"
PEER_NAME = "peer"

_AUTHORITY_LOGGING_MODULES = (
    "SERVER",
    "CA",
    "ECA",
    "ECAP",
    "ECAA",
    "ACA",
    "ACAP",
    "TCA",
    "TCAP",
    "TCAA",
    "TLSCA",
)
_PEER_LOGGING_MODULES = ("LEVEL", "PEER", "NODE", "NETWORK", "CHAINCODE", "VERSION")

_AUTHORITY_TLS_VARIABLES = (
    "MEMBERSRVC_CA_SERVER_TLS_CERT_FILE",
    "MEMBERSRVC_CA_SERVER_TLS_KEY_FILE",
    "MEMBERSRVC_CA_SERVER_TLS_CERTFILE",
    "MEMBERSRVC_CA_SERVER_TLS_KEYFILE",
)
_PEER_TLS_VARIABLES = (
    "CORE_PEER_TLS_ENABLED",
    "CORE_PEER_TLS_CERT_FILE",
    "CORE_PEER_TLS_KEY_FILE",
    "CORE_PEER_TLS_SERVERHOSTOVERRIDE",
    "CORE_PEER_PKI_TLS_ENABLED",
    "CORE_PEER_PKI_TLS_ROOTCERT_FILE",
    "CORE_PEER_PKI_TLS_SERVERHOSTOVERRIDE",
)


def _authority_environment() -> dict[str, str]:
    environment = {"MEMBERSRVC_CA_LOGGING_TRACE": "1", "MEMBERSRVC_CA_ACA_ENABLED": "true"}
    for module in _AUTHORITY_LOGGING_MODULES:
        environment[f"MEMBERSRVC_CA_LOGGING_{module}"] = "debug"
    return environment


def _peer_environment() -> dict[str, str]:
    environment = {"CORE_SECURITY_ENABLED": "true", "CORE_SECURITY_PRIVACY": "true"}
    for module in _PEER_LOGGING_MODULES:
        environment[f"CORE_LOGGING_{module}"] = "debug"
    return environment


def _authority_tls_environment(
    cert_path: Path, key_path: Path, _server_host_override: str
) -> Mapping[str, str]:
    return {
        "MEMBERSRVC_CA_SERVER_TLS_CERT_FILE": str(cert_path),
        "MEMBERSRVC_CA_SERVER_TLS_KEY_FILE": str(key_path),
        "MEMBERSRVC_CA_SERVER_TLS_CERTFILE": str(cert_path),
        "MEMBERSRVC_CA_SERVER_TLS_KEYFILE": str(key_path),
    }


def _peer_tls_environment(
    cert_path: Path, key_path: Path, server_host_override: str
) -> Mapping[str, str]:
    return {
        "CORE_PEER_TLS_ENABLED": "true",
        "CORE_PEER_TLS_CERT_FILE": str(cert_path),
        "CORE_PEER_TLS_KEY_FILE": str(key_path),
        "CORE_PEER_TLS_SERVERHOSTOVERRIDE": server_host_override,
        "CORE_PEER_PKI_TLS_ENABLED": "true",
        "CORE_PEER_PKI_TLS_ROOTCERT_FILE": str(cert_path),
        "CORE_PEER_PKI_TLS_SERVERHOSTOVERRIDE": server_host_override,
    }


AUTHORITY_DEFINITION = ServiceDefinition(
    name=AUTHORITY_NAME,
    description="member services",
    base_arguments=(),
    service_environment=_authority_environment(),
    tls_environment=_authority_tls_environment,
    tls_variables=_AUTHORITY_TLS_VARIABLES,
)

PEER_DEFINITION = ServiceDefinition(
    name=PEER_NAME,
    description="peer",
    base_arguments=("node", "start"),
    service_environment=_peer_environment(),
    tls_environment=_peer_tls_environment,
    tls_variables=_PEER_TLS_VARIABLES,
)


def peer_arguments(mode: DeployMode) -> tuple[str, ...]:
    """Extra peer arguments for a deploy mode."""
    if mode is DeployMode.DEV:
        return ("--peer-chaincodedev",)
    return ()
