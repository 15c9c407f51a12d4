"""Endpoint pool membership primitives.

A resolver feeds ``Insert``/``Remove`` changes through a bounded channel; the
pool side consumes them to learn which endpoints are live.  Load balancing
across those endpoints is left to the pool implementation.
"""

from .channel import ChangeReceiver, ChangeSender, open_channel  # noqa: F401
from .endpoint import Endpoint  # noqa: F401
from .errors import (  # noqa: F401
    AddressConstructionError,
    ChannelClosed,
    MembershipError,
    PoolError,
)
from .events import Change, Insert, Remove  # noqa: F401
from .listeners import LoggingListener, MembershipListener  # noqa: F401
from .registry import MembershipRegistry  # noqa: F401
from .sink import DiscoverySink  # noqa: F401

__all__ = [
    "AddressConstructionError",
    "Change",
    "ChangeReceiver",
    "ChangeSender",
    "ChannelClosed",
    "DiscoverySink",
    "Endpoint",
    "Insert",
    "LoggingListener",
    "MembershipError",
    "MembershipListener",
    "MembershipRegistry",
    "PoolError",
    "Remove",
    "open_channel",
]
