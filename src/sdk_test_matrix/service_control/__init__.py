"""Service control exports."""

from .service_controller import (
    FatalSetupError,
    ServiceController,
    ServiceDefinition,
    ServiceStartError,
    ServiceState,
)
from .service_definitions import (
    AUTHORITY_DEFINITION,
    AUTHORITY_NAME,
    PEER_DEFINITION,
    PEER_NAME,
    peer_arguments,
)

__all__ = [
    "FatalSetupError",
    "ServiceController",
    "ServiceDefinition",
    "ServiceStartError",
    "ServiceState",
    "AUTHORITY_DEFINITION",
    "AUTHORITY_NAME",
    "PEER_DEFINITION",
    "PEER_NAME",
    "peer_arguments",
]
