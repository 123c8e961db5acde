"""
Debounced automatic saving.

Every change notification cancels the pending save timer and starts a new
one, so a burst of edits produces a single save once the design has been
quiet for the debounce window. Saves never overlap: each runs under one
lock, in the order they were started.
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Set

logger = logging.getLogger(__name__)

SaveCallable = Callable[[], Awaitable[Any]]


class SaveStatus(str, Enum):
    IDLE = "idle"
    SAVING = "saving"
    SAVED = "saved"
    ERROR = "error"


class AutoSaveScheduler:
    """
    Cancel-and-reschedule save timer.

    Args:
        save: Coroutine function performing one save
        debounce_seconds: Quiet period before the save fires (defaults to settings)
    """

    def __init__(self, save: SaveCallable, debounce_seconds: Optional[float] = None) -> None:
        if debounce_seconds is None:
            from drainsketch.core.config import settings

            debounce_seconds = settings.autosave_debounce_seconds
        self._save = save
        self.debounce_seconds = debounce_seconds
        self._timer: Optional[asyncio.Task] = None  # type: ignore
        self._in_flight: Set[asyncio.Task] = set()  # type: ignore
        self._lock = asyncio.Lock()
        self._closed = False

    @property
    def pending(self) -> bool:
        """Whether a debounced save is waiting to fire."""
        return self._timer is not None and not self._timer.done()

    def notify_change(self) -> None:
        """Record an edit: restart the debounce timer."""
        if self._closed:
            return

        self.cancel_pending()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; automatic save not scheduled")
            return

        self._timer = loop.create_task(self._debounce())

    def cancel_pending(self) -> bool:
        """Cancel the waiting timer, if any. In-flight saves are not interrupted."""
        if self.pending:
            self._timer.cancel()
            self._timer = None
            return True
        self._timer = None
        return False

    async def _debounce(self) -> None:
        await asyncio.sleep(self.debounce_seconds)

        # Past the quiet period: detach from the timer slot so a new edit
        # schedules a fresh timer instead of cancelling this save.
        current = asyncio.current_task()
        if self._timer is current:
            self._timer = None
        if current is not None:
            self._in_flight.add(current)

        try:
            await self.run_now()
        except Exception as e:
            logger.error(f"Automatic save failed: {e}", exc_info=True)
        finally:
            if current is not None:
                self._in_flight.discard(current)

    async def run_now(self, save: Optional[SaveCallable] = None) -> Any:
        """
        Save immediately, cancelling any pending timer.

        Args:
            save: Save to run instead of the scheduler's own

        Returns:
            Whatever the save returns
        """
        self.cancel_pending()
        async with self._lock:
            return await (save or self._save)()

    async def flush(self) -> Any:
        """Run the scheduler's save now."""
        return await self.run_now()

    async def close(self) -> None:
        """Cancel the pending timer and wait for in-flight saves to finish."""
        self._closed = True
        timer = self._timer
        self.cancel_pending()
        if timer is not None:
            try:
                await timer
            except asyncio.CancelledError:
                logger.debug("Pending automatic save cancelled on close")

        if self._in_flight:
            await asyncio.gather(*self._in_flight, return_exceptions=True)
