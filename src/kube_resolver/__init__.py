"""Resolve ``kubernetes://`` locators into live endpoint pool membership.

A locator names a Service (and optionally its namespace and port).  Its
``Endpoints`` object is watched, every new state is reduced to a set of
``ip:port`` addresses, and the difference from the previous state is sent to
an endpoint pool as ``Insert``/``Remove`` changes.
"""

from .addresses import AddressSet, build_address_set, diff_address_sets  # noqa: F401
from .balance import balance_channel, resolve  # noqa: F401
from .config import ResolverOptions, WatchOptions  # noqa: F401
from .errors import (  # noqa: F401
    AddressConstructionError,
    LocatorError,
    MissingHost,
    PortListEmpty,
    PortNotFound,
    PortResolutionError,
    ResolverError,
    SchemeMismatch,
    UpstreamApiError,
    WatchSessionError,
)
from .ports import resolve_port  # noqa: F401
from .reconciler import EndpointReconciler, Termination  # noqa: F401
from .snapshot import (  # noqa: F401
    Applied,
    Bookmark,
    Deleted,
    EndpointPort,
    EndpointSnapshot,
    EndpointSubset,
)
from .target import Named, Numeric, TargetDescriptor, Unspecified, parse_target  # noqa: F401
from .watch import EndpointsWatch  # noqa: F401

__all__ = [
    "AddressConstructionError",
    "AddressSet",
    "Applied",
    "Bookmark",
    "Deleted",
    "EndpointPort",
    "EndpointReconciler",
    "EndpointSnapshot",
    "EndpointSubset",
    "EndpointsWatch",
    "LocatorError",
    "MissingHost",
    "Named",
    "Numeric",
    "PortListEmpty",
    "PortNotFound",
    "PortResolutionError",
    "ResolverError",
    "ResolverOptions",
    "SchemeMismatch",
    "TargetDescriptor",
    "Termination",
    "Unspecified",
    "UpstreamApiError",
    "WatchOptions",
    "WatchSessionError",
    "balance_channel",
    "build_address_set",
    "diff_address_sets",
    "parse_target",
    "resolve",
    "resolve_port",
]
