"""Configuration domain exports."""

from .config_scaffold_builder import (
    DEFAULT_CONFIG_FILENAME,
    build_placeholder_configuration,
    write_placeholder_configuration,
)
from .loader import ConfigurationError, load_configuration
from .runtime_settings import (
    ChaincodeSettings,
    Configuration,
    CredentialSettings,
    DeployMode,
    KeystoreSettings,
    MatrixSettings,
    NetworkEndpoint,
    PathSettings,
    RunConfiguration,
    TimingSettings,
    TlsSettings,
    WaitSettings,
)

__all__ = [
    "ChaincodeSettings",
    "Configuration",
    "CredentialSettings",
    "DeployMode",
    "KeystoreSettings",
    "MatrixSettings",
    "NetworkEndpoint",
    "PathSettings",
    "RunConfiguration",
    "TimingSettings",
    "TlsSettings",
    "WaitSettings",
    "ConfigurationError",
    "load_configuration",
    "DEFAULT_CONFIG_FILENAME",
    "build_placeholder_configuration",
    "write_placeholder_configuration",
]
