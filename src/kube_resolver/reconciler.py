"""Watch-and-diff loop keeping a pool in step with a Service's endpoints."""

from __future__ import annotations

import enum
import logging
import threading
from concurrent.futures import Future
from typing import Iterable, Optional

from endpoint_pool.errors import ChannelClosed
from endpoint_pool.sink import DiscoverySink

from .addresses import EMPTY, AddressSet, build_address_set, diff_address_sets
from .config import ResolverOptions
from .errors import ResolverError
from .snapshot import Applied, Deleted, WatchEvent
from .target import TargetDescriptor

LOG = logging.getLogger(__name__)


class Termination(enum.Enum):
    """Why a reconciler stopped without an error."""

    STREAM_ENDED = "stream-ended"
    SINK_CLOSED = "sink-closed"
    STOPPED = "stopped"


class EndpointReconciler(threading.Thread):
    """Apply watch events for one target to a :class:`DiscoverySink`.

    Events are handled strictly in delivery order.  Each ``Applied`` snapshot
    is resolved to an address set and diffed against the previous one; the
    removals are sent first, then the insertions, and only then is the next
    event read.  ``Deleted`` withdraws everything currently inserted.

    A resolution error ends the thread.  The outcome is published on
    :attr:`done`: a :class:`Termination` on a clean exit, otherwise the
    exception that stopped the loop.
    """

    def __init__(
        self,
        target: TargetDescriptor,
        events: Iterable[WatchEvent],
        sink: DiscoverySink,
        options: Optional[ResolverOptions] = None,
        stop_event: Optional[threading.Event] = None,
    ) -> None:
        super().__init__(name=f"resolver-{target}", daemon=True)
        self._target = target
        self._events = events
        self._sink = sink
        self._options = options or ResolverOptions()
        self._stop_event = stop_event or threading.Event()
        self._previous: AddressSet = EMPTY
        self._lock = threading.Lock()
        self.done: "Future[Termination]" = Future()

    @property
    def target(self) -> TargetDescriptor:
        return self._target

    def addresses(self) -> AddressSet:
        """Return the address set applied most recently."""

        with self._lock:
            return self._previous

    def stop(self) -> None:
        self._stop_event.set()
        stop_events = getattr(self._events, "stop", None)
        if stop_events is not None:
            stop_events()

    def wait(self, timeout: Optional[float] = None) -> Termination:
        """Block until the loop ends; re-raise the error that ended it."""

        return self.done.result(timeout)

    def run(self) -> None:
        LOG.info("resolving %s", self._target)
        try:
            reason = self._reconcile()
        except ResolverError as exc:
            LOG.error("resolver for %s failed: %s", self._target, exc)
            self.done.set_exception(exc)
        except Exception as exc:
            LOG.exception("resolver for %s crashed", self._target)
            self.done.set_exception(exc)
        else:
            LOG.info("resolver for %s finished: %s", self._target, reason.value)
            self.done.set_result(reason)
        finally:
            self._sink.close()

    def _reconcile(self) -> Termination:
        events = iter(self._events)
        try:
            for event in events:
                if self._stop_event.is_set():
                    return Termination.STOPPED
                try:
                    self.apply(event)
                except ChannelClosed:
                    LOG.info("pool for %s closed its channel", self._target)
                    return Termination.SINK_CLOSED
        finally:
            # releases the watch connection when we leave early
            close = getattr(events, "close", None)
            if close is not None:
                close()
        if self._stop_event.is_set():
            return Termination.STOPPED
        return Termination.STREAM_ENDED

    def apply(self, event: WatchEvent) -> None:
        """Process a single watch event against the current state."""

        if isinstance(event, Applied):
            current = build_address_set(
                event.snapshot,
                self._target,
                skip_malformed_subsets=self._options.skip_malformed_subsets,
            )
        elif isinstance(event, Deleted):
            current = EMPTY
            LOG.info("endpoints for %s deleted", self._target)
        else:
            LOG.debug("ignoring %s for %s", type(event).__name__, self._target)
            return

        removed, added = diff_address_sets(self._previous, current)
        if removed or added:
            LOG.debug(
                "%s: removing %s, adding %s", self._target, removed, added
            )
        for address in removed:
            self._sink.remove(address)
        for address in added:
            self._sink.insert(address)

        with self._lock:
            self._previous = current
