"""One-way, unbounded, single-consumer channel with disconnect detection.

``queue.Queue`` cannot tell a producer that nobody is listening any more, and
the status bus needs exactly that to know when to shut down. Each end closes
explicitly or when it is garbage collected.
"""

import threading
import weakref
from collections import deque
from queue import Empty
from typing import Any, Iterator, Optional, Tuple

__all__ = ["ChannelClosed", "Empty", "Sender", "Receiver", "channel"]


class ChannelClosed(Exception):
    """Raised when the other end of a channel has gone away."""


class _ChannelState:
    def __init__(self):
        self.items = deque()
        self.cond = threading.Condition()
        self.sender_open = True
        self.receiver_open = True


def _close_sender(state: _ChannelState) -> None:
    with state.cond:
        state.sender_open = False
        state.cond.notify_all()


def _close_receiver(state: _ChannelState) -> None:
    with state.cond:
        state.receiver_open = False
        state.items.clear()
        state.cond.notify_all()


class Sender:
    """Producing end of a channel."""

    def __init__(self, state: _ChannelState):
        self._state = state
        self._finalizer = weakref.finalize(self, _close_sender, state)

    @property
    def is_connected(self) -> bool:
        return self._state.receiver_open

    def send(self, item: Any) -> None:
        """Queue an item.

        Raises:
            ChannelClosed: if the receiver has been closed
        """
        state = self._state
        with state.cond:
            if not state.receiver_open or not state.sender_open:
                raise ChannelClosed()
            state.items.append(item)
            state.cond.notify()

    def close(self) -> None:
        self._finalizer()


class Receiver:
    """Consuming end of a channel."""

    def __init__(self, state: _ChannelState):
        self._state = state
        self._finalizer = weakref.finalize(self, _close_receiver, state)

    def recv(self, timeout: Optional[float] = None) -> Any:
        """Block until an item arrives.

        Raises:
            queue.Empty: if ``timeout`` elapses first
            ChannelClosed: once the sender is closed and the backlog is drained
        """
        state = self._state
        with state.cond:
            if not state.receiver_open:
                raise ChannelClosed()
            ready = state.cond.wait_for(
                lambda: state.items or not state.sender_open or not state.receiver_open,
                timeout,
            )
            if not ready:
                raise Empty()
            if state.items and state.receiver_open:
                return state.items.popleft()
            raise ChannelClosed()

    def try_recv(self) -> Any:
        """Return the next item without blocking (raises Empty or ChannelClosed)."""
        state = self._state
        with state.cond:
            if state.items:
                return state.items.popleft()
            if not state.sender_open or not state.receiver_open:
                raise ChannelClosed()
            raise Empty()

    def pending(self) -> int:
        with self._state.cond:
            return len(self._state.items)

    def close(self) -> None:
        self._finalizer()

    def __iter__(self) -> Iterator[Any]:
        while True:
            try:
                yield self.recv()
            except ChannelClosed:
                return


def channel() -> Tuple[Sender, Receiver]:
    state = _ChannelState()
    return Sender(state), Receiver(state)
