"""Bounded work queue with drop-on-full backpressure."""

import logging
import queue
import threading
from typing import Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_CAPACITY = 5

# How long a worker blocks on an empty queue before re-checking the stop event.
_GET_TIMEOUT = 0.5


class BoundedWorkQueue(Generic[T]):
    """Fixed-capacity FIFO between the poller and one worker.

    ``offer()`` never blocks: when the queue is full the new item is
    dropped and a warning is logged. Nothing is retried here; the next
    poll rediscovers anything still pending upstream.

    Example:
        checks = BoundedWorkQueue("pending check", capacity=5)
        checks.offer(item)                 # poller thread
        checks.drain(handle, stop_event)   # worker thread
    """

    def __init__(self, name: str, capacity: int = DEFAULT_CAPACITY) -> None:
        """Initialize the queue.

        Args:
            name: Item kind, used in log messages (e.g. "pending check")
            capacity: Maximum number of queued items
        """
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self.name = name
        self.capacity = capacity
        self._queue: queue.Queue[T] = queue.Queue(maxsize=capacity)
        self._dropped = 0

    def __len__(self) -> int:
        return self._queue.qsize()

    @property
    def dropped(self) -> int:
        """Number of items dropped because the queue was full."""
        return self._dropped

    def offer(self, item: T) -> bool:
        """Enqueue *item* without blocking.

        Returns:
            True if queued, False if dropped
        """
        try:
            self._queue.put_nowait(item)
        except queue.Full:
            self._dropped += 1
            logger.warning("too busy; dropping %s %s", self.name, item)
            return False
        return True

    def get(self, timeout: float | None = None) -> T:
        """Dequeue the next item, blocking up to *timeout* seconds.

        Raises:
            queue.Empty: If no item arrived in time
        """
        return self._queue.get(timeout=timeout)

    def drain(self, handler: Callable[[T], None], stop_event: threading.Event) -> None:
        """Process items one at a time until *stop_event* is set.

        A handler failure is logged and the loop moves on to the next
        item; it never ends the worker.

        Args:
            handler: Called once per dequeued item
            stop_event: Ends the loop when set
        """
        logger.info("Worker for %s queue started", self.name)
        while not stop_event.is_set():
            try:
                item = self._queue.get(timeout=_GET_TIMEOUT)
            except queue.Empty:
                continue
            try:
                handler(item)
            except Exception:
                logger.exception("Failed to execute %s %s", self.name, item)
            finally:
                self._queue.task_done()
        logger.info("Worker for %s queue stopped", self.name)
