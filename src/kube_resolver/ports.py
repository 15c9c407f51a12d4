"""Port selection for endpoint subsets."""

from __future__ import annotations

from typing import Sequence

from .errors import PortListEmpty, PortNotFound
from .snapshot import EndpointPort
from .target import Named, Numeric, PortSpec, Unspecified


def resolve_port(ports: Sequence[EndpointPort], spec: PortSpec) -> int:
    """Select the port to dial for one subset.

    ``Numeric`` ports are returned without looking at ``ports``: workloads
    on the host network, or listening on ports the Service does not declare,
    are still reachable that way.  ``Named`` ports must be declared.
    """

    if isinstance(spec, Numeric):
        return spec.port

    if isinstance(spec, Named):
        for declared in ports:
            if declared.name == spec.name:
                return declared.port
        raise PortNotFound(spec.name)

    if isinstance(spec, Unspecified):
        if not ports:
            raise PortListEmpty()
        return ports[0].port

    raise TypeError(f"Unsupported port spec: {spec!r}")
