"""Runtime options for endpoint resolution."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from endpoint_pool.channel import DEFAULT_CAPACITY


@dataclass(frozen=True)
class WatchOptions:
    """Tuning for the Kubernetes endpoints watch.

    Attributes
    ----------
    timeout_seconds:
        Server-side timeout of one watch request.  The watch resumes from the
        last seen resource version when the server closes the stream.
    initial_backoff:
        Delay before the first retry after a failed watch request.
    backoff_factor:
        Multiplier applied to the delay on each consecutive failure.
    max_backoff:
        Upper bound on the retry delay.
    max_retries:
        Consecutive failures tolerated before the watch gives up.
    """

    timeout_seconds: int = 290
    initial_backoff: float = 0.8
    backoff_factor: float = 2.0
    max_backoff: float = 30.0
    max_retries: int = 10

    def delay(self, attempt: int) -> float:
        """Return the backoff delay before retry number ``attempt`` (1-based)."""

        return min(
            self.initial_backoff * self.backoff_factor ** max(attempt - 1, 0),
            self.max_backoff,
        )


@dataclass(frozen=True)
class ResolverOptions:
    skip_malformed_subsets: bool = False
    channel_capacity: int = DEFAULT_CAPACITY
    watch: WatchOptions = field(default_factory=WatchOptions)


def options_from_mapping(section: Mapping[str, Any]) -> ResolverOptions:
    """Build :class:`ResolverOptions` from a plain mapping (e.g. YAML)."""

    watch_section = section.get("watch", {}) or {}
    if not isinstance(watch_section, Mapping):
        raise ValueError("'watch' options must be a mapping")

    defaults = WatchOptions()
    watch = WatchOptions(
        timeout_seconds=int(watch_section.get("timeout_seconds", defaults.timeout_seconds)),
        initial_backoff=float(watch_section.get("initial_backoff", defaults.initial_backoff)),
        backoff_factor=float(watch_section.get("backoff_factor", defaults.backoff_factor)),
        max_backoff=float(watch_section.get("max_backoff", defaults.max_backoff)),
        max_retries=int(watch_section.get("max_retries", defaults.max_retries)),
    )
    capacity = int(section.get("channel_capacity", DEFAULT_CAPACITY))
    if capacity < 1:
        raise ValueError("'channel_capacity' must be positive")

    return ResolverOptions(
        skip_malformed_subsets=bool(section.get("skip_malformed_subsets", False)),
        channel_capacity=capacity,
        watch=watch,
    )
