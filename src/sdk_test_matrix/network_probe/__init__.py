"""Network probe exports."""

from .endpoint_probe import NetworkProbe, ResolutionError
from .endpoint_status import EndpointStatus, inspect_endpoint

__all__ = ["EndpointStatus", "NetworkProbe", "ResolutionError", "inspect_endpoint"]
