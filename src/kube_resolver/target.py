"""Locator parsing.

A locator names a Kubernetes service and optionally the port to dial::

    [kubernetes://]<service>[.<namespace>][:<port-or-name>]
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional, Union

from .errors import MissingHost, SchemeMismatch

SCHEME = "kubernetes"


@dataclass(frozen=True)
class Unspecified:
    """Use the first port declared by each endpoint subset."""

    def __str__(self) -> str:
        return "<first>"


@dataclass(frozen=True)
class Numeric:
    """Dial this port number as-is, whatever the subsets declare."""

    port: int

    def __str__(self) -> str:
        return str(self.port)


@dataclass(frozen=True)
class Named:
    """Dial the subset port declared under this name."""

    name: str

    def __str__(self) -> str:
        return self.name


PortSpec = Union[Unspecified, Numeric, Named]


@dataclass(frozen=True)
class TargetDescriptor:
    service_name: str
    namespace: Optional[str] = None
    port: PortSpec = Unspecified()

    def with_default_namespace(self, namespace: str) -> "TargetDescriptor":
        """Return a copy scoped to ``namespace`` unless one was given."""

        if self.namespace:
            return self
        return replace(self, namespace=namespace)

    def __str__(self) -> str:
        host = self.service_name
        if self.namespace:
            host = f"{host}.{self.namespace}"
        if not isinstance(self.port, Unspecified):
            host = f"{host}:{self.port}"
        return f"{SCHEME}://{host}"


def parse_port_spec(value: str) -> PortSpec:
    if not value:
        return Unspecified()
    if value.isascii() and value.strip() == value and "_" not in value:
        try:
            return Numeric(int(value))
        except ValueError:
            pass
    return Named(value)


def _split_authority(locator: str) -> str:
    scheme, sep, rest = locator.partition("://")
    if not sep:
        rest = locator
    elif scheme != SCHEME:
        raise SchemeMismatch(scheme)

    for delimiter in ("/", "?", "#"):
        rest = rest.split(delimiter, 1)[0]
    # userinfo is never meaningful for a service locator
    return rest.rpartition("@")[2]


def parse_target(locator: str) -> TargetDescriptor:
    """Parse ``locator`` into a :class:`TargetDescriptor`.

    Raises :class:`SchemeMismatch` for any scheme other than ``kubernetes``
    and :class:`MissingHost` when no service name is present.  Only the first
    two dot-separated labels of the host are significant: ``a.b.c`` resolves
    service ``a`` in namespace ``b``.
    """

    authority = _split_authority(locator.strip())
    host, _, port = authority.partition(":")
    if not host:
        raise MissingHost(locator)

    labels = host.split(".")
    service = labels[0]
    if not service:
        raise MissingHost(locator)
    namespace = labels[1] if len(labels) > 1 and labels[1] else None

    return TargetDescriptor(
        service_name=service,
        namespace=namespace,
        port=parse_port_spec(port),
    )
