"""
Request Sequencer Module

Hands out strictly increasing 64-bit request ids starting at 1. A single
background producer thread fills a bounded queue; callers dequeue the next
id. Stopping the sequencer ends the producer and wakes every waiting caller
with ConnectionClosedError.
"""

import logging
import queue
import threading
from typing import Optional

from ..config.settings import settings
from ..errors import ConnectionClosedError

logger = logging.getLogger(__name__)

_CLOSED = object()


class RequestSequencer:
    """
    Bounded producer of request ids.

    Usage:
        sequencer = RequestSequencer()
        sequencer.start()
        request_id = sequencer.next_id()   # 1, 2, 3, ...
        sequencer.stop()
    """

    def __init__(self, queue_size: int = None, poll_interval: float = None):
        self.queue_size = queue_size if queue_size is not None else settings.REQUEST_ID_QUEUE_SIZE
        self.poll_interval = (
            poll_interval if poll_interval is not None else settings.SEQUENCER_POLL_INTERVAL
        )
        self._queue: "queue.Queue" = queue.Queue(maxsize=self.queue_size)
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(
            target=self._produce,
            name="ignite-request-ids",
            daemon=True,
        )
        self._thread.start()

    def _produce(self) -> None:
        counter = 0
        while not self._stop_event.is_set():
            counter += 1
            while not self._stop_event.is_set():
                try:
                    self._queue.put(counter, timeout=self.poll_interval)
                    break
                except queue.Full:
                    continue
        logger.debug(f"Request id producer stopped after {counter} ids")

    def next_id(self) -> int:
        """
        Return the next request id, blocking until one is available.

        Raises:
            ConnectionClosedError: the sequencer has been stopped
        """
        item = self._queue.get()
        if item is _CLOSED:
            # Leave the marker for the next waiter
            self._queue.put(_CLOSED)
            raise ConnectionClosedError("request sequencer is stopped")
        return item

    def stop(self) -> None:
        """Stop the producer and close the queue. Safe to call more than once."""
        if self._stop_event.is_set():
            return
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join()

        while True:
            try:
                self._queue.get_nowait()
            except queue.Empty:
                break
        self._queue.put(_CLOSED)
