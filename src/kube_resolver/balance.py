"""Wire a locator to an endpoint pool channel."""

from __future__ import annotations

import threading
from typing import Any, Iterable, Optional, Tuple

from endpoint_pool.channel import ChangeReceiver, ChangeSender, open_channel
from endpoint_pool.sink import DiscoverySink

from .config import ResolverOptions
from .reconciler import EndpointReconciler
from .snapshot import WatchEvent
from .target import TargetDescriptor, parse_target
from .watch import EndpointsWatch

DEFAULT_NAMESPACE = "default"


def resolve(
    target: TargetDescriptor,
    events: Iterable[WatchEvent],
    sender: ChangeSender,
    options: Optional[ResolverOptions] = None,
    stop_event: Optional[threading.Event] = None,
) -> EndpointReconciler:
    """Build an unstarted reconciler feeding ``sender`` from ``events``."""

    return EndpointReconciler(
        target,
        events,
        DiscoverySink(sender),
        options=options,
        stop_event=stop_event,
    )


def balance_channel(
    locator: str,
    api: Any,
    *,
    default_namespace: str = DEFAULT_NAMESPACE,
    options: Optional[ResolverOptions] = None,
) -> Tuple[ChangeReceiver, EndpointReconciler]:
    """Start resolving ``locator`` and return the pool side of its channel.

    ``api`` is a ``kubernetes.client.CoreV1Api``.  Locator errors are raised
    here, before any thread is started.  The returned reconciler is already
    running; its ``done`` future reports how it ended.
    """

    options = options or ResolverOptions()
    target = parse_target(locator).with_default_namespace(default_namespace)

    stop_event = threading.Event()
    events = EndpointsWatch(
        api,
        target.service_name,
        target.namespace,
        options=options.watch,
        stop_event=stop_event,
    )
    sender, receiver = open_channel(options.channel_capacity)
    reconciler = resolve(target, events, sender, options=options, stop_event=stop_event)
    reconciler.start()
    return receiver, reconciler
