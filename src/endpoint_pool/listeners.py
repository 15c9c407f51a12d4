"""Interfaces for components that follow pool membership."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from .endpoint import Endpoint

LOG = logging.getLogger(__name__)


class MembershipListener(ABC):
    """Base class for listeners managed by :class:`MembershipRegistry`."""

    @abstractmethod
    def on_insert(self, key: str, endpoint: Endpoint) -> None:
        """``endpoint`` became live under ``key``."""

    @abstractmethod
    def on_remove(self, key: str, endpoint: Endpoint) -> None:
        """The endpoint under ``key`` is no longer live."""


class LoggingListener(MembershipListener):
    """Log every membership change, tagged with the target it belongs to."""

    def __init__(self, target: str, *, level: int = logging.INFO) -> None:
        self._target = target
        self._level = level

    def on_insert(self, key: str, endpoint: Endpoint) -> None:
        LOG.log(self._level, "%s: endpoint %s up (%s)", self._target, key, endpoint.uri)

    def on_remove(self, key: str, endpoint: Endpoint) -> None:
        LOG.log(self._level, "%s: endpoint %s down", self._target, key)
