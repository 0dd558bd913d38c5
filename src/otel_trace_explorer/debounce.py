"""
Per-key debouncing of bursts of events.
"""

from typing import Awaitable, Callable, Dict, Hashable, List
import asyncio
import contextlib
import logging

DEFAULT_DEBOUNCE_SECONDS = 0.5


class Debouncer:
    """
    Runs an action once a key has been quiet for a fixed delay.

    Each trigger for a key cancels the action still pending for that key
    and restarts the delay. Must be used from a running event loop.
    """

    def __init__(self, delay_seconds: float = DEFAULT_DEBOUNCE_SECONDS):
        self.delay_seconds = delay_seconds
        self.logger = logging.getLogger(self.__class__.__name__)
        self._pending: Dict[Hashable, asyncio.Task] = {}

    def trigger(self, key: Hashable, action: Callable[[], Awaitable[None]]) -> asyncio.Task:
        """
        Schedule an action for a key, replacing any pending one.

        Args:
            key: Debounce key, typically a file path
            action: Coroutine function to run after the delay

        Returns:
            The task that will run the action
        """
        self.cancel(key)
        task = asyncio.get_running_loop().create_task(self._run_after_delay(key, action))
        self._pending[key] = task
        return task

    async def _run_after_delay(self, key: Hashable, action: Callable[[], Awaitable[None]]):
        await asyncio.sleep(self.delay_seconds)
        if self._pending.get(key) is asyncio.current_task():
            del self._pending[key]
        try:
            await action()
        except Exception as e:
            self.logger.error(f"Debounced action for '{key}' failed: {e}", exc_info=True)

    def cancel(self, key: Hashable) -> bool:
        """Cancel the pending action for a key. Returns True if one was pending."""
        task = self._pending.pop(key, None)
        if task is None or task.done():
            return False
        task.cancel()
        self.logger.debug(f"Cancelled pending action for '{key}'")
        return True

    def is_pending(self, key: Hashable) -> bool:
        task = self._pending.get(key)
        return task is not None and not task.done()

    def cancel_all(self) -> List[asyncio.Task]:
        """Cancel every pending action. Returns the cancelled tasks."""
        tasks = [task for task in self._pending.values() if not task.done()]
        self._pending.clear()
        for task in tasks:
            task.cancel()
        return tasks

    async def aclose(self):
        """Cancel every pending action and wait for the cancellations to finish."""
        for task in self.cancel_all():
            with contextlib.suppress(asyncio.CancelledError):
                await task
