"""Configuration loader service."""

from __future__ import annotations

import os
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import yaml

from .runtime_settings import (
    ChaincodeSettings,
    Configuration,
    CredentialSettings,
    DeployMode,
    KeystoreSettings,
    MatrixSettings,
    NetworkEndpoint,
    PathSettings,
    TimingSettings,
    TlsSettings,
    WaitSettings,
)

DEFAULT_AUTHORITY_ADDRESS = "localhost:7054"
DEFAULT_PEER_ADDRESS = "localhost:7051"
DEFAULT_CA_CERT_FILE = "/var/hyperledger/production/.membersrvc/tlsca.cert"
DEFAULT_CA_KEY_FILE = "/var/hyperledger/production/.membersrvc/tlsca.priv"
DEFAULT_SERVER_HOST_OVERRIDE = "tlsca"
DEFAULT_LOG_DIR = "/tmp/node-sdk-unit-test"
DEFAULT_GOPATH = "~/go"
DEFAULT_PURGE_PATTERNS: tuple[str, ...] = ("/var/hyperledger/production", "/tmp/*keyValStore*")
DEFAULT_WAITS: Mapping[DeployMode, WaitSettings] = {
    DeployMode.NET: WaitSettings(deploy_seconds=40, invoke_seconds=15),
    DeployMode.DEV: WaitSettings(deploy_seconds=10, invoke_seconds=5),
}

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


class ConfigurationError(Exception):
    """Raised when the configuration file or environment is invalid."""


def load_configuration(
    config_path: Path | str | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> Configuration:
    """Load defaults, then the optional YAML file, then environment overrides."""
    env = os.environ if environ is None else environ
    path = Path(config_path) if config_path is not None else None
    parsed = _read_config_file(path) if path is not None else {}
    base_path = path.parent if path is not None else Path.cwd()

    network = _optional_mapping(parsed.get("network"), "network")
    authority = _parse_endpoint(
        _env_value(env, "SDK_MEMBERSRVC_ADDRESS")
        or network.get("membersrvc_address", DEFAULT_AUTHORITY_ADDRESS),
        "network.membersrvc_address",
    )
    peer = _parse_endpoint(
        _env_value(env, "SDK_PEER_ADDRESS") or network.get("peer_address", DEFAULT_PEER_ADDRESS),
        "network.peer_address",
    )

    return Configuration(
        path=path,
        authority=authority,
        peer=peer,
        tls=_parse_tls_section(parsed.get("tls"), env, base_path),
        waits=_parse_waits_section(parsed.get("waits"), env),
        timing=_parse_timing_section(parsed.get("timing")),
        paths=_parse_paths_section(parsed.get("paths"), env, base_path),
        credentials=_parse_credentials_section(parsed.get("credentials"), env),
        keystore=_parse_keystore_section(parsed.get("keystore"), env, base_path),
        chaincode=_parse_chaincode_section(parsed.get("chaincode"), env),
        matrix=_parse_matrix_section(parsed.get("matrix"), env),
    )


def _read_config_file(path: Path) -> Mapping[str, Any]:
    if not path.exists():
        raise ConfigurationError(f"Configuration file not found: {path}")

    text = path.read_text(encoding="utf-8")
    try:
        parsed = yaml.safe_load(text)
    except yaml.YAMLError as exc:  # pragma: no cover - exercised indirectly
        raise ConfigurationError(f"Failed to parse configuration file: {exc}") from exc

    if parsed is None:
        parsed = {}

    if not isinstance(parsed, Mapping):
        raise ConfigurationError("Configuration root must be a mapping.")
    return parsed


def _parse_endpoint(value: Any, field_name: str) -> NetworkEndpoint:
    text = _require_non_empty_string(value, field_name)
    try:
        return NetworkEndpoint.parse(text)
    except ValueError as exc:
        raise ConfigurationError(f"{field_name}: {exc}") from exc


def _parse_tls_section(value: Any, env: Mapping[str, str], base_path: Path) -> TlsSettings:
    section = _optional_mapping(value, "tls")
    cert_file = _env_value(env, "SDK_CA_CERT_FILE") or _require_non_empty_string(
        section.get("ca_cert_file", DEFAULT_CA_CERT_FILE), "tls.ca_cert_file"
    )
    key_file = _env_value(env, "SDK_CA_KEY_FILE") or _require_non_empty_string(
        section.get("ca_key_file", DEFAULT_CA_KEY_FILE), "tls.ca_key_file"
    )
    host_override = _env_value(env, "SDK_CA_CERT_HOST") or _require_non_empty_string(
        section.get("server_host_override", DEFAULT_SERVER_HOST_OVERRIDE),
        "tls.server_host_override",
    )
    cipher_suites = _env_value(env, "GRPC_SSL_CIPHER_SUITES") or _optional_string(
        section.get("cipher_suites"), "tls.cipher_suites"
    )
    return TlsSettings(
        ca_cert_file=_resolve_path(base_path, cert_file),
        ca_key_file=_resolve_path(base_path, key_file),
        server_host_override=host_override,
        cipher_suites=cipher_suites,
    )


def _parse_waits_section(value: Any, env: Mapping[str, str]) -> Mapping[DeployMode, WaitSettings]:
    section = _optional_mapping(value, "waits")
    deploy_override = _env_int(env, "SDK_DEPLOYWAIT")
    invoke_override = _env_int(env, "SDK_INVOKEWAIT")
    waits: dict[DeployMode, WaitSettings] = {}
    for mode, defaults in DEFAULT_WAITS.items():
        mode_section = _optional_mapping(section.get(mode.value), f"waits.{mode.value}")
        deploy_seconds = _require_positive_int(
            mode_section.get("deploy_seconds", defaults.deploy_seconds),
            f"waits.{mode.value}.deploy_seconds",
        )
        invoke_seconds = _require_positive_int(
            mode_section.get("invoke_seconds", defaults.invoke_seconds),
            f"waits.{mode.value}.invoke_seconds",
        )
        waits[mode] = WaitSettings(
            deploy_seconds=deploy_override or deploy_seconds,
            invoke_seconds=invoke_override or invoke_seconds,
        )
    return waits


def _parse_timing_section(value: Any) -> TimingSettings:
    section = _optional_mapping(value, "timing")
    defaults = TimingSettings()
    overrides = {}
    for field_name in (
        "readiness_timeout_seconds",
        "poll_interval_seconds",
        "liveness_grace_seconds",
        "tls_propagation_delay_seconds",
        "peer_settle_seconds",
        "mode_cooldown_seconds",
    ):
        raw = section.get(field_name, getattr(defaults, field_name))
        overrides[field_name] = _require_non_negative_number(raw, f"timing.{field_name}")
    if overrides["readiness_timeout_seconds"] <= 0:
        raise ConfigurationError("timing.readiness_timeout_seconds must be greater than zero.")
    return TimingSettings(**overrides)


def _parse_paths_section(value: Any, env: Mapping[str, str], base_path: Path) -> PathSettings:
    section = _optional_mapping(value, "paths")
    gopath_value = (
        _env_value(env, "GOPATH")
        or _optional_string(section.get("gopath"), "paths.gopath")
        or DEFAULT_GOPATH
    )
    # GOPATH may list several workspaces; the first one holds the fabric checkout.
    gopath = _resolve_path(base_path, gopath_value.split(os.pathsep)[0])

    fabric_value = _optional_string(section.get("fabric_dir"), "paths.fabric_dir")
    fabric_dir = (
        _resolve_path(base_path, fabric_value)
        if fabric_value
        else gopath / "src" / "github.com" / "hyperledger" / "fabric"
    )
    sdk_dir = fabric_dir / "sdk" / "node"
    log_dir = _resolve_path(
        base_path,
        _require_non_empty_string(section.get("log_dir", DEFAULT_LOG_DIR), "paths.log_dir"),
    )
    return PathSettings(
        gopath=gopath,
        fabric_dir=fabric_dir,
        sdk_dir=sdk_dir,
        unit_test_dir=sdk_dir / "test" / "unit",
        chaincode_examples_dir=fabric_dir / "examples" / "chaincode" / "go",
        log_dir=log_dir,
        node_executable=_require_non_empty_string(
            section.get("node_executable", "node"), "paths.node_executable"
        ),
        go_executable=_require_non_empty_string(
            section.get("go_executable", "go"), "paths.go_executable"
        ),
    )


def _parse_credentials_section(value: Any, env: Mapping[str, str]) -> CredentialSettings:
    section = _optional_mapping(value, "credentials")
    return CredentialSettings(
        default_user=_env_value(env, "SDK_DEFAULT_USER")
        or _optional_string(section.get("default_user"), "credentials.default_user"),
        default_secret=_env_value(env, "SDK_DEFAULT_SECRET")
        or _optional_string(section.get("default_secret"), "credentials.default_secret"),
    )


def _parse_keystore_section(
    value: Any, env: Mapping[str, str], base_path: Path
) -> KeystoreSettings:
    section = _optional_mapping(value, "keystore")
    persist_env = _env_value(env, "SDK_KEYSTORE_PERSIST")
    if persist_env is not None:
        # Only an explicit true value keeps enrollment data; anything else purges it.
        persist = persist_env.lower() in _TRUE_VALUES
    else:
        persist = _require_bool(section.get("persist", False), "keystore.persist")

    directory_value = _env_value(env, "SDK_KEYSTORE") or _optional_string(
        section.get("directory"), "keystore.directory"
    )
    directory = _resolve_path(base_path, directory_value) if directory_value else None

    raw_patterns = section.get("purge_patterns")
    patterns = (
        _normalize_string_sequence(raw_patterns, "keystore.purge_patterns")
        if raw_patterns is not None
        else DEFAULT_PURGE_PATTERNS
    )
    if directory is not None and str(directory) not in patterns:
        patterns = (*patterns, str(directory))
    return KeystoreSettings(persist=persist, directory=directory, purge_patterns=patterns)


def _parse_chaincode_section(value: Any, env: Mapping[str, str]) -> ChaincodeSettings:
    section = _optional_mapping(value, "chaincode")
    return ChaincodeSettings(
        path=_env_value(env, "SDK_CHAINCODE_PATH")
        or _optional_string(section.get("path"), "chaincode.path"),
        chaincode_id=_env_value(env, "SDK_CHAINCODE_ID")
        or _optional_string(section.get("id"), "chaincode.id"),
    )


def _parse_matrix_section(value: Any, env: Mapping[str, str]) -> MatrixSettings:
    section = _optional_mapping(value, "matrix")

    tls_env = _env_value(env, "SDK_TLS")
    if tls_env is not None:
        tls_values: tuple[bool, ...] = (_parse_flag(tls_env, "SDK_TLS"),)
    else:
        raw_tls = section.get("tls", [False, True])
        if not isinstance(raw_tls, Sequence) or isinstance(raw_tls, str) or not raw_tls:
            raise ConfigurationError("matrix.tls must be a non-empty list of booleans.")
        tls_values = _unique(_require_bool(item, "matrix.tls") for item in raw_tls)

    raw_modes = section.get("modes", [mode.value for mode in DeployMode])
    mode_names = _normalize_string_sequence(raw_modes, "matrix.modes")
    if not mode_names:
        raise ConfigurationError("matrix.modes must contain at least one mode.")
    try:
        modes = _unique(DeployMode(name.lower()) for name in mode_names)
    except ValueError as exc:
        raise ConfigurationError(f"matrix.modes entries must be 'net' or 'dev': {exc}") from exc
    return MatrixSettings(tls_values=tls_values, modes=modes)


def _unique(values) -> tuple:
    ordered: list = []
    for value in values:
        if value not in ordered:
            ordered.append(value)
    return tuple(ordered)


def _env_value(env: Mapping[str, str], name: str) -> str | None:
    value = env.get(name)
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def _env_int(env: Mapping[str, str], name: str) -> int | None:
    value = _env_value(env, name)
    if value is None:
        return None
    try:
        parsed = int(value)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer.") from exc
    return _require_positive_int(parsed, name)


def _parse_flag(value: str, field_name: str) -> bool:
    lowered = value.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"{field_name} must be '1' or '0'.")


def _normalize_string_sequence(value: Any, field_name: str) -> tuple[str, ...]:
    if isinstance(value, str):
        stripped = value.strip()
        return (stripped,) if stripped else ()
    if isinstance(value, Sequence):
        normalized = []
        for item in value:
            if not isinstance(item, str):
                raise ConfigurationError(f"{field_name} entries must be strings.")
            stripped = item.strip()
            if stripped:
                normalized.append(stripped)
        return tuple(normalized)
    raise ConfigurationError(f"{field_name} must be a string or list of strings.")


def _resolve_path(base_path: Path, raw_path: str) -> Path:
    candidate = Path(raw_path).expanduser()
    if not candidate.is_absolute():
        return (base_path / candidate).resolve()
    return candidate


def _optional_mapping(value: Any, section_name: str) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ConfigurationError(f"Configuration section '{section_name}' must be a mapping.")
    return value


def _require_non_empty_string(value: Any, field_name: str) -> str:
    if not isinstance(value, str):
        raise ConfigurationError(f"{field_name} must be a string.")
    stripped = value.strip()
    if not stripped:
        raise ConfigurationError(f"{field_name} must not be empty.")
    return stripped


def _optional_string(value: Any, field_name: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigurationError(f"{field_name} must be a string.")
    stripped = value.strip()
    return stripped or None


def _require_bool(value: Any, field_name: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    raise ConfigurationError(f"{field_name} must be a boolean.")


def _require_positive_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool):
        raise ConfigurationError(f"{field_name} must be an integer.")
    if not isinstance(value, int):
        raise ConfigurationError(f"{field_name} must be an integer.")
    if value <= 0:
        raise ConfigurationError(f"{field_name} must be greater than zero.")
    return value


def _require_non_negative_number(value: Any, field_name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise ConfigurationError(f"{field_name} must be a number.")
    if value < 0:
        raise ConfigurationError(f"{field_name} must not be negative.")
    return float(value)
