"""Adapter that turns address diffs into pool membership changes."""

from __future__ import annotations

import logging
from typing import AbstractSet, Set

from .channel import ChangeSender
from .endpoint import Endpoint
from .errors import AddressConstructionError
from .events import Insert, Remove

LOG = logging.getLogger(__name__)


class DiscoverySink:
    """Deliver ``Insert``/``Remove`` changes to a pool, one at a time.

    An address that cannot be turned into an :class:`Endpoint` is logged and
    skipped; the sink remembers which keys it actually delivered so the pool
    never receives a ``Remove`` for something it was not given.
    :class:`~endpoint_pool.errors.ChannelClosed` propagates to the caller.
    """

    def __init__(self, sender: ChangeSender) -> None:
        self._sender = sender
        self._delivered: Set[str] = set()

    @property
    def delivered(self) -> AbstractSet[str]:
        return frozenset(self._delivered)

    @property
    def is_closed(self) -> bool:
        return self._sender.is_closed

    def insert(self, key: str) -> bool:
        """Send an ``Insert`` for ``key``; return False if it was skipped."""

        try:
            endpoint = Endpoint.from_address(key)
        except AddressConstructionError as exc:
            LOG.warning("not adding endpoint %s: %s", key, exc.reason)
            return False

        self._sender.send(Insert(key, endpoint))
        self._delivered.add(key)
        LOG.debug("inserted endpoint %s", key)
        return True

    def remove(self, key: str) -> bool:
        """Send a ``Remove`` for ``key`` if it was previously inserted."""

        if key not in self._delivered:
            LOG.debug("endpoint %s was never inserted, nothing to remove", key)
            return False

        self._sender.send(Remove(key))
        self._delivered.discard(key)
        LOG.debug("removed endpoint %s", key)
        return True

    def close(self) -> None:
        self._sender.close()
