"""Publisher contracts for session transition events."""

from __future__ import annotations

from queue import Queue
from typing import Protocol

from .types import SessionTransition


class TransitionPublisher(Protocol):
    """Protocol for publishing session transition events."""

    def publish(self, transition: SessionTransition) -> None: ...


class QueueTransitionPublisher:
    """Transition publisher that pushes events onto a FIFO queue."""

    def __init__(self, queue: Queue):
        self._queue = queue

    def publish(self, transition: SessionTransition) -> None:
        self._queue.put(transition)
