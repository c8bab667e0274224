"""Forwarding of unsolicited server events to a local consumer."""

from __future__ import annotations

import logging
import queue
import threading
from typing import NamedTuple, Optional, Protocol


logger = logging.getLogger(__name__)

END_OF_SESSION = "quit"


class EventEntry(NamedTuple):
    source_label: str
    text: str


class EventSink(Protocol):
    def produce(self, entry: EventEntry) -> bool: ...


class EventQueue:
    """Unbounded FIFO shared with the consumer thread.

    Once closed, producers are refused; the consumer still drains whatever was
    queued before the close and then gets ``None``.
    """

    def __init__(self) -> None:
        self._queue: queue.Queue[Optional[EventEntry]] = queue.Queue()
        self._lock = threading.Lock()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def produce(self, entry: EventEntry) -> bool:
        with self._lock:
            if self._closed:
                return False
            self._queue.put_nowait(entry)
        return True

    def consume(self, timeout: float | None = None) -> EventEntry | None:
        try:
            entry = self._queue.get(timeout=timeout)
        except queue.Empty:
            return None
        if entry is None:
            # Leave the close marker in place for later calls.
            self._queue.put_nowait(None)
        return entry

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._queue.put_nowait(None)


class EventProducer:
    """Labels event text with the producing thread and hands it to the sink."""

    def __init__(self, sink: EventSink):
        self.sink = sink

    def produce(self, text: str) -> bool:
        entry = EventEntry(threading.current_thread().name, text)
        if not self.sink.produce(entry):
            logger.warning("Event sink refused entry from %s", entry.source_label)
            return False
        return True
