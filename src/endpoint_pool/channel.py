"""Bounded channel carrying membership changes from a resolver to a pool.

The channel has exactly one producer (a reconciliation thread) and one
consumer.  :meth:`ChangeSender.send` blocks while the buffer is full, which is
how a slow pool holds back the watch that feeds it.
"""

from __future__ import annotations

import threading
from collections import deque
from typing import Deque, Iterator, Optional, Tuple

from .errors import ChannelClosed
from .events import Change

DEFAULT_CAPACITY = 1024


class _ChannelState:
    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError("channel capacity must be positive")
        self.capacity = capacity
        self.buffer: Deque[Change] = deque()
        self.cond = threading.Condition()
        self.sender_closed = False
        self.receiver_closed = False


class ChangeSender:
    """Producer side of a change channel."""

    def __init__(self, state: _ChannelState) -> None:
        self._state = state

    @property
    def is_closed(self) -> bool:
        """True once the receiver is gone and sends can no longer succeed."""

        return self._state.receiver_closed

    def send(self, change: Change, timeout: Optional[float] = None) -> None:
        """Enqueue ``change``, waiting for capacity.

        Raises :class:`ChannelClosed` if the receiver has been closed, or is
        closed while waiting, and :class:`TimeoutError` if ``timeout`` elapses
        first.
        """

        state = self._state
        with state.cond:
            if state.sender_closed:
                raise ChannelClosed("send on a channel whose sender was closed")
            ready = state.cond.wait_for(
                lambda: state.receiver_closed or len(state.buffer) < state.capacity,
                timeout,
            )
            if state.receiver_closed:
                raise ChannelClosed("change channel receiver closed")
            if not ready:
                raise TimeoutError("timed out waiting for channel capacity")
            state.buffer.append(change)
            state.cond.notify_all()

    def close(self) -> None:
        """Signal end of stream; buffered changes remain readable."""

        with self._state.cond:
            self._state.sender_closed = True
            self._state.cond.notify_all()


class ChangeReceiver:
    """Consumer side of a change channel."""

    def __init__(self, state: _ChannelState) -> None:
        self._state = state

    def __len__(self) -> int:
        with self._state.cond:
            return len(self._state.buffer)

    def recv(self, timeout: Optional[float] = None) -> Optional[Change]:
        """Return the next change, or ``None`` once the sender has finished.

        Raises :class:`TimeoutError` if nothing arrives within ``timeout``.
        """

        state = self._state
        with state.cond:
            ready = state.cond.wait_for(
                lambda: state.buffer or state.sender_closed or state.receiver_closed,
                timeout,
            )
            if state.buffer:
                change = state.buffer.popleft()
                state.cond.notify_all()
                return change
            if not ready:
                raise TimeoutError("timed out waiting for a change")
            return None

    def close(self) -> None:
        """Drop the consumer side; pending and future sends fail."""

        with self._state.cond:
            self._state.receiver_closed = True
            self._state.buffer.clear()
            self._state.cond.notify_all()

    def __iter__(self) -> Iterator[Change]:
        while True:
            change = self.recv()
            if change is None:
                return
            yield change


def open_channel(capacity: int = DEFAULT_CAPACITY) -> Tuple[ChangeSender, ChangeReceiver]:
    state = _ChannelState(capacity)
    return ChangeSender(state), ChangeReceiver(state)
