"""Membership change events delivered to the endpoint pool."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .endpoint import Endpoint


@dataclass(frozen=True)
class Insert:
    """Add ``endpoint`` to the pool under ``key``.

    ``key`` is the ``ip:port`` string; it is the identity a later
    :class:`Remove` refers to.
    """

    key: str
    endpoint: Endpoint


@dataclass(frozen=True)
class Remove:
    """Drop the endpoint previously inserted under ``key``."""

    key: str


Change = Union[Insert, Remove]
