"""Append-only capture of page events as formatted text records."""

import asyncio
import logging
from contextlib import suppress
from typing import Any, Callable, List, Optional

logger = logging.getLogger(__name__)


class LogBuffer:
    """Listens to one page event and keeps a formatted record of each occurrence.

    Entries are only ever appended, in the order the page delivered the events.
    Async formatters are fed through a queue drained by a single consumer task,
    so a slow formatter cannot reorder records.

    A formatter that raises drops that one record; the listener stays
    registered for later events.

    ``max_entries`` caps the number of stored records. Records past the cap are
    counted in ``overflowed`` and discarded; stored entries are never truncated.
    """

    def __init__(
        self,
        page,
        event_name: str,
        formatter: Callable[[Any], Any],
        is_async: bool = False,
        max_entries: Optional[int] = None,
    ):
        self.page = page
        self.event_name = event_name
        self.formatter = formatter
        self.is_async = is_async
        self.max_entries = max_entries
        self.dropped = 0
        self.overflowed = 0
        self._buffer: List[str] = []
        self._closed = False
        self._queue: Optional[asyncio.Queue] = None
        self._pending = 0
        self._consumer: Optional[asyncio.Task] = None

        if is_async:
            self._queue = asyncio.Queue()
            self._consumer = asyncio.get_running_loop().create_task(self._consume())
        page.on(event_name, self._on_event)

    @property
    def buffer(self) -> List[str]:
        """Live view of every record appended so far."""
        return self._buffer

    def __len__(self) -> int:
        return len(self._buffer)

    def _on_event(self, payload):
        if self._queue is not None:
            self._pending += 1
            self._queue.put_nowait(payload)
            return
        try:
            record = self.formatter(payload)
        except Exception as e:
            self._drop(e)
            return
        self._append(record)

    async def _consume(self):
        while True:
            payload = await self._queue.get()
            try:
                record = await self.formatter(payload)
            except Exception as e:
                self._drop(e)
            else:
                self._append(record)
            finally:
                self._pending -= 1
                self._queue.task_done()

    def _append(self, record):
        if self.max_entries is not None and len(self._buffer) >= self.max_entries:
            self.overflowed += 1
            return
        self._buffer.append(str(record))

    def _drop(self, exc: Exception):
        self.dropped += 1
        logger.warning(
            "Dropped %r event record, formatter failed: %s: %s",
            self.event_name, type(exc).__name__, exc,
        )

    async def drain(self, timeout: Optional[int] = None):
        """Wait until every event delivered so far has been formatted.

        With a timeout (ms), asyncio.TimeoutError is raised if formatting
        does not catch up in time.
        """
        if self._queue is None or self._closed:
            return
        if timeout is None:
            await self._queue.join()
        else:
            await asyncio.wait_for(self._queue.join(), timeout / 1000)

    async def close(self):
        """Stop listening. Records captured so far stay readable.

        Events still waiting for an async formatter are counted in ``dropped``.
        """
        if self._closed:
            return
        self._closed = True
        self.page.remove_listener(self.event_name, self._on_event)
        if self._consumer is not None:
            lost = self._pending
            self._consumer.cancel()
            with suppress(asyncio.CancelledError):
                await self._consumer
            self._pending = 0
            if lost:
                self.dropped += lost
                logger.warning("Dropped %d pending %r event records on close", lost, self.event_name)
