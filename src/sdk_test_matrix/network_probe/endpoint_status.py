"""Point-in-time view of a configured service endpoint."""

from __future__ import annotations

from dataclasses import dataclass

from sdk_test_matrix.configuration.runtime_settings import NetworkEndpoint

from .endpoint_probe import NetworkProbe, ResolutionError


@dataclass(frozen=True)
class EndpointStatus:
    """Resolution, locality and reachability of one endpoint."""

    name: str
    endpoint: NetworkEndpoint
    address: str | None
    is_local: bool
    reachable: bool
    error: str | None = None

    @property
    def usable(self) -> bool:
        """Local services get started by the harness; remote ones must already listen."""
        if self.address is None:
            return False
        return self.is_local or self.reachable


def inspect_endpoint(name: str, endpoint: NetworkEndpoint, probe: NetworkProbe) -> EndpointStatus:
    try:
        address = probe.resolve(endpoint.host)
    except ResolutionError as exc:
        return EndpointStatus(
            name=name,
            endpoint=endpoint,
            address=None,
            is_local=False,
            reachable=False,
            error=str(exc),
        )
    return EndpointStatus(
        name=name,
        endpoint=endpoint,
        address=address,
        is_local=probe.is_local(address, endpoint.port),
        reachable=probe.is_reachable(address, endpoint.port),
    )
