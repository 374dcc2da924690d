"""Readers/writer barrier separating store resets from other operations."""
import asyncio
from contextlib import asynccontextmanager


class ResetBarrier:
    """
    Async readers/writer lock that prefers the writer.

    Appends and queries enter in shared mode and run concurrently. A reset
    enters in exclusive mode: it waits for in-flight shared holders to
    drain, and new shared holders wait while a reset is pending or running.
    """

    def __init__(self):
        self._cond = asyncio.Condition()
        self._active_readers = 0
        self._writer_active = False
        self._writers_waiting = 0

    @asynccontextmanager
    async def shared(self):
        async with self._cond:
            await self._cond.wait_for(lambda: not self._writer_active and not self._writers_waiting)
            self._active_readers += 1
        try:
            yield
        finally:
            async with self._cond:
                self._active_readers -= 1
                if not self._active_readers:
                    self._cond.notify_all()

    @asynccontextmanager
    async def exclusive(self):
        async with self._cond:
            self._writers_waiting += 1
            try:
                await self._cond.wait_for(lambda: not self._writer_active and not self._active_readers)
            finally:
                self._writers_waiting -= 1
                # Readers blocked on a cancelled writer must re-check
                self._cond.notify_all()
            self._writer_active = True
        try:
            yield
        finally:
            async with self._cond:
                self._writer_active = False
                self._cond.notify_all()
