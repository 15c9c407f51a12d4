"""Address set construction and diffing."""

from __future__ import annotations

import logging
from typing import AbstractSet, FrozenSet, List, Tuple

from .errors import PortResolutionError
from .ports import resolve_port
from .snapshot import EndpointSnapshot
from .target import TargetDescriptor

LOG = logging.getLogger(__name__)

AddressSet = FrozenSet[str]

EMPTY: AddressSet = frozenset()


def format_address(ip: str, port: int) -> str:
    return f"{ip}:{port}"


def build_address_set(
    snapshot: EndpointSnapshot,
    target: TargetDescriptor,
    *,
    skip_malformed_subsets: bool = False,
) -> AddressSet:
    """Return every ready ``ip:port`` the snapshot exposes for ``target``.

    By default a subset whose port cannot be resolved fails the whole build.
    With ``skip_malformed_subsets`` the subset is logged and left out instead,
    so one misconfigured pod group does not hide the rest of the Service.
    """

    result = set()
    for index, subset in enumerate(snapshot.subsets):
        try:
            port = resolve_port(subset.ports, target.port)
        except PortResolutionError as exc:
            if not skip_malformed_subsets:
                raise
            LOG.warning(
                "skipping subset %d of endpoints %s/%s: %s",
                index,
                snapshot.namespace,
                snapshot.name,
                exc,
            )
            continue
        for ip in subset.addresses:
            result.add(format_address(ip, port))
    return frozenset(result)


def diff_address_sets(
    previous: AbstractSet[str], current: AbstractSet[str]
) -> Tuple[List[str], List[str]]:
    """Return ``(removed, added)`` between two address sets, each sorted."""

    removed = sorted(previous - current)
    added = sorted(current - previous)
    return removed, added
