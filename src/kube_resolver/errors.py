"""Error taxonomy for endpoint resolution.

Locator errors are raised synchronously by :func:`parse_target` before any
background work starts.  Everything else is raised inside a reconciliation
thread and ends it; the thread's ``done`` future carries the exception.
:class:`AddressConstructionError` is the exception to that rule: the sink
adapter logs it and skips the offending change.
"""

from __future__ import annotations

from endpoint_pool.errors import AddressConstructionError

__all__ = [
    "AddressConstructionError",
    "LocatorError",
    "MissingHost",
    "PortListEmpty",
    "PortNotFound",
    "PortResolutionError",
    "ResolverError",
    "SchemeMismatch",
    "UpstreamApiError",
    "WatchSessionError",
]


class ResolverError(Exception):
    """Base class for all resolution failures."""


class LocatorError(ResolverError, ValueError):
    """The locator string cannot be turned into a target descriptor."""


class SchemeMismatch(LocatorError):
    def __init__(self, scheme: str) -> None:
        super().__init__(f"unsupported locator scheme '{scheme}', expected 'kubernetes'")
        self.scheme = scheme


class MissingHost(LocatorError):
    def __init__(self, locator: str) -> None:
        super().__init__(f"locator '{locator}' does not name a service")
        self.locator = locator


class PortResolutionError(ResolverError):
    """No port could be selected for an endpoint subset."""


class PortNotFound(PortResolutionError):
    def __init__(self, name: str) -> None:
        super().__init__(f"endpoint subset declares no port named '{name}'")
        self.name = name


class PortListEmpty(PortResolutionError):
    def __init__(self) -> None:
        super().__init__("endpoint subset declares no ports")


class UpstreamApiError(ResolverError):
    """A request to the cluster API failed."""


class WatchSessionError(ResolverError):
    """The endpoint watch gave up after exhausting its retries."""
