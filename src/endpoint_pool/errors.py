"""Exceptions raised by the endpoint pool membership layer."""

from __future__ import annotations


class PoolError(Exception):
    """Base class for endpoint pool failures."""


class ChannelClosed(PoolError):
    """The receiving side of a change channel has been dropped."""


class AddressConstructionError(PoolError, ValueError):
    """An address string could not be turned into an endpoint handle."""

    def __init__(self, address: str, reason: str) -> None:
        super().__init__(f"invalid endpoint address '{address}': {reason}")
        self.address = address
        self.reason = reason


class MembershipError(PoolError):
    """A change would leave the pool membership inconsistent."""
