"""Endpoints watch session backed by the ``kubernetes`` client.

:class:`EndpointsWatch` turns the API server's watch protocol into a plain
iterator of :class:`Applied`, :class:`Deleted` and :class:`Bookmark` events for
a single named ``Endpoints`` object.  Reconnects, resource-version expiry and
retry backoff are handled here so consumers only see a possibly delayed next
event, or the end of the iteration.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Iterator, List, Mapping, Optional, Tuple

import urllib3
from kubernetes import watch
from kubernetes.client.rest import ApiException

from .config import WatchOptions
from .errors import UpstreamApiError, WatchSessionError
from .snapshot import Applied, Bookmark, Deleted, EndpointSnapshot, WatchEvent

LOG = logging.getLogger(__name__)

HTTP_NOT_FOUND = 404
HTTP_GONE = 410

TRANSPORT_ERRORS = (urllib3.exceptions.HTTPError, OSError)


def translate_event(raw: Mapping[str, Any]) -> Optional[WatchEvent]:
    """Convert a raw event from ``kubernetes.watch.Watch.stream``.

    Returns ``None`` for event types that carry nothing to act on.  ``ERROR``
    events are raised as :class:`ApiException` with the status code the
    server reported.
    """

    kind = raw.get("type")
    if kind in ("ADDED", "MODIFIED"):
        return Applied(EndpointSnapshot.from_k8s(raw["object"]))
    if kind == "DELETED":
        return Deleted(EndpointSnapshot.from_k8s(raw["object"]))
    if kind == "BOOKMARK":
        obj = raw.get("raw_object") or raw.get("object") or {}
        return Bookmark(obj.get("metadata", {}).get("resourceVersion"))
    if kind == "ERROR":
        status = raw.get("raw_object") or {}
        raise ApiException(status=status.get("code"), reason=status.get("message"))
    LOG.debug("ignoring watch event of type %r", kind)
    return None


def _resource_version(event: WatchEvent) -> Optional[str]:
    if isinstance(event, Bookmark):
        return event.resource_version
    if event.snapshot is not None:
        return event.snapshot.resource_version
    return None


class EndpointsWatch:
    """Iterate over changes to one ``Endpoints`` object.

    The session starts with a point read so the current state is delivered
    first, then watches from that resource version.  Failure to perform the
    initial read raises :class:`UpstreamApiError`.  Later failures are
    retried with exponential backoff; once ``options.max_retries``
    consecutive attempts have failed the iteration raises
    :class:`WatchSessionError`.
    """

    def __init__(
        self,
        api: Any,
        name: str,
        namespace: str,
        options: Optional[WatchOptions] = None,
        stop_event: Optional[threading.Event] = None,
        watch_factory: Callable[[], Any] = watch.Watch,
    ) -> None:
        self._api = api
        self._name = name
        self._namespace = namespace
        self._options = options or WatchOptions()
        self._stop = stop_event or threading.Event()
        self._watch_factory = watch_factory
        self._present = False
        self._watcher: Optional[Any] = None

    @property
    def field_selector(self) -> str:
        return f"metadata.name={self._name}"

    def _seed(self) -> Tuple[List[WatchEvent], Optional[str]]:
        try:
            endpoints = self._api.read_namespaced_endpoints(self._name, self._namespace)
        except ApiException as exc:
            if exc.status != HTTP_NOT_FOUND:
                raise
            LOG.info("endpoints %s/%s not found yet", self._namespace, self._name)
            events: List[WatchEvent] = [Deleted()] if self._present else []
            self._present = False
            return events, None

        snapshot = EndpointSnapshot.from_k8s(endpoints)
        self._present = True
        return [Applied(snapshot)], snapshot.resource_version

    def stop(self) -> None:
        """End the iteration and ask the active watch request to stop.

        The ``kubernetes`` watch only checks its stop flag between lines of the
        response, so a quiet stream still ends at the next event, bookmark or
        ``timeout_seconds``, whichever comes first.
        """

        self._stop.set()
        watcher = self._watcher
        if watcher is not None:
            watcher.stop()

    def __iter__(self) -> Iterator[WatchEvent]:
        try:
            seeded, resource_version = self._seed()
        except ApiException as exc:
            raise UpstreamApiError(
                f"reading endpoints {self._namespace}/{self._name} failed: "
                f"{exc.status} {exc.reason}"
            ) from exc
        except TRANSPORT_ERRORS as exc:
            raise UpstreamApiError(
                f"reading endpoints {self._namespace}/{self._name} failed: {exc}"
            ) from exc
        yield from seeded

        failures = 0
        resync = False
        while not self._stop.is_set():
            error: Optional[Exception] = None
            received = False
            watcher = self._watch_factory()
            self._watcher = watcher
            try:
                if resync:
                    seeded, resource_version = self._seed()
                    resync = False
                    yield from seeded

                LOG.debug(
                    "watching endpoints %s/%s from version %s",
                    self._namespace,
                    self._name,
                    resource_version,
                )
                stream = watcher.stream(
                    self._api.list_namespaced_endpoints,
                    self._namespace,
                    field_selector=self.field_selector,
                    resource_version=resource_version,
                    timeout_seconds=self._options.timeout_seconds,
                    allow_watch_bookmarks=True,
                )
                for raw in stream:
                    received = True
                    event = translate_event(raw)
                    failures = 0
                    if event is None:
                        continue
                    resource_version = _resource_version(event) or resource_version
                    if not isinstance(event, Bookmark):
                        self._present = not isinstance(event, Deleted)
                    yield event
                    if self._stop.is_set():
                        return
            except ApiException as exc:
                if exc.status == HTTP_GONE:
                    LOG.info(
                        "resource version %s of endpoints %s/%s expired, re-reading",
                        resource_version,
                        self._namespace,
                        self._name,
                    )
                    resync = True
                    resource_version = None
                    continue
                error = exc
            except TRANSPORT_ERRORS as exc:
                error = exc
            finally:
                self._watcher = None
                watcher.stop()

            if error is None:
                if not received:
                    # closed without sending anything
                    LOG.debug(
                        "watch on endpoints %s/%s closed empty, reconnecting in %.1fs",
                        self._namespace,
                        self._name,
                        self._options.initial_backoff,
                    )
                    if self._stop.wait(self._options.initial_backoff):
                        return
                continue

            failures += 1
            if failures > self._options.max_retries:
                raise WatchSessionError(
                    f"watch on endpoints {self._namespace}/{self._name} failed "
                    f"{failures} times in a row: {error}"
                ) from error
            delay = self._options.delay(failures)
            LOG.warning(
                "watch on endpoints %s/%s failed (%s), retrying in %.1fs",
                self._namespace,
                self._name,
                error,
                delay,
            )
            if self._stop.wait(delay):
                return
