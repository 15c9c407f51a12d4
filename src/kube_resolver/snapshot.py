"""Snapshot of a Service's endpoints and the watch events that carry it.

These dataclasses decouple resolution from the ``kubernetes`` client models so
the resolution logic can be exercised without an API server.  Use
:meth:`EndpointSnapshot.from_k8s` to convert a ``V1Endpoints`` object.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Sequence, Union


@dataclass(frozen=True)
class EndpointPort:
    """A port declared by an endpoint subset.

    Attributes
    ----------
    name:
        Port name from the Service spec.  Single-port Services commonly leave
        it unset.
    port:
        Port number on the endpoint addresses.
    protocol:
        Transport protocol, informational only.
    """

    name: Optional[str]
    port: int
    protocol: str = "TCP"


@dataclass(frozen=True)
class EndpointSubset:
    """Addresses that share one list of declared ports."""

    addresses: Sequence[str] = ()
    ports: Sequence[EndpointPort] = ()
    not_ready_addresses: Sequence[str] = ()


@dataclass(frozen=True)
class EndpointSnapshot:
    """The full endpoint state of one Service at one instant."""

    name: str
    namespace: Optional[str] = None
    subsets: Sequence[EndpointSubset] = field(default_factory=tuple)
    resource_version: Optional[str] = None

    @classmethod
    def from_k8s(cls, endpoints: Any) -> "EndpointSnapshot":
        """Build a snapshot from a ``kubernetes.client.V1Endpoints``."""

        metadata = endpoints.metadata
        subsets = []
        for subset in endpoints.subsets or []:
            subsets.append(
                EndpointSubset(
                    addresses=tuple(a.ip for a in subset.addresses or []),
                    ports=tuple(
                        EndpointPort(
                            name=p.name or None,
                            port=int(p.port),
                            protocol=p.protocol or "TCP",
                        )
                        for p in subset.ports or []
                    ),
                    not_ready_addresses=tuple(
                        a.ip for a in subset.not_ready_addresses or []
                    ),
                )
            )
        return cls(
            name=metadata.name,
            namespace=metadata.namespace,
            subsets=tuple(subsets),
            resource_version=metadata.resource_version,
        )


@dataclass(frozen=True)
class Applied:
    """The object was created or changed; ``snapshot`` is its full state."""

    snapshot: EndpointSnapshot


@dataclass(frozen=True)
class Deleted:
    """The object was removed.  The last known state is attached if known."""

    snapshot: Optional[EndpointSnapshot] = None


@dataclass(frozen=True)
class Bookmark:
    """Progress marker from the API server; carries no endpoint state."""

    resource_version: Optional[str] = None


WatchEvent = Union[Applied, Deleted, Bookmark]
