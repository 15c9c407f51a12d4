"""Live endpoint bookkeeping for one pool."""

from __future__ import annotations

import logging
import threading
from typing import Dict, Mapping

from .channel import ChangeReceiver
from .endpoint import Endpoint
from .errors import MembershipError
from .events import Change, Insert, Remove
from .listeners import MembershipListener

LOG = logging.getLogger(__name__)


class MembershipRegistry:
    """Track live endpoints and dispatch changes to registered listeners."""

    def __init__(self) -> None:
        self._listeners: Dict[str, MembershipListener] = {}
        self._live: Dict[str, Endpoint] = {}
        self._lock = threading.Lock()

    def register(self, name: str, listener: MembershipListener) -> None:
        if name in self._listeners:
            raise ValueError(f"listener '{name}' already registered")
        self._listeners[name] = listener

    def unregister(self, name: str) -> None:
        self._listeners.pop(name, None)

    def live(self) -> Mapping[str, Endpoint]:
        with self._lock:
            return dict(self._live)

    def handle(self, change: Change) -> None:
        if isinstance(change, Insert):
            self._on_insert(change)
        elif isinstance(change, Remove):
            self._on_remove(change)
        else:
            raise TypeError(f"Unsupported change type: {type(change)!r}")

    def drain(self, receiver: ChangeReceiver) -> int:
        """Apply changes from ``receiver`` until its sender finishes."""

        count = 0
        for change in receiver:
            self.handle(change)
            count += 1
        LOG.debug("change stream ended after %d changes", count)
        return count

    def _on_insert(self, change: Insert) -> None:
        with self._lock:
            if change.key in self._live:
                raise MembershipError(f"endpoint '{change.key}' inserted twice")
            self._live[change.key] = change.endpoint
        for listener in self._listeners.values():
            listener.on_insert(change.key, change.endpoint)

    def _on_remove(self, change: Remove) -> None:
        with self._lock:
            endpoint = self._live.pop(change.key, None)
        if endpoint is None:
            raise MembershipError(f"endpoint '{change.key}' removed but never inserted")
        for listener in self._listeners.values():
            listener.on_remove(change.key, endpoint)
