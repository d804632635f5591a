"""Debounced typing previews with last-write-wins semantics."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

PreviewFn = Callable[[str, str], Awaitable[Any]]
ResultCallback = Callable[[Any], None]


class PreviewDebouncer:
    """Runs ``fn(text, language)`` once input has been quiet for ``delay`` seconds.

    Each ``submit`` cancels the pending timer. A result is published through
    ``latest()`` and ``on_result`` only if no newer input arrived while it
    was being computed.
    """

    def __init__(
        self,
        fn: PreviewFn,
        delay: float = 0.3,
        on_result: Optional[ResultCallback] = None,
    ):
        if delay < 0:
            raise ValueError(f"delay must be non-negative, got {delay}")
        self.fn = fn
        self.delay = delay
        self.on_result = on_result
        self._generation = 0
        self._pending: Optional["asyncio.Task[Any]"] = None
        self._latest: Any = None

    def submit(self, text: str, language: str) -> "asyncio.Task[Any]":
        """Schedule a preview for the newest input, superseding older ones."""
        self._generation += 1
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = asyncio.create_task(
            self._run(self._generation, text, language)
        )
        return self._pending

    async def _run(self, generation: int, text: str, language: str) -> Any:
        await asyncio.sleep(self.delay)
        result = await self.fn(text, language)
        if generation != self._generation:
            logger.debug("Discarding superseded typing preview")
            return None
        self._latest = result
        if self.on_result is not None:
            try:
                self.on_result(result)
            except Exception as e:
                logger.warning(f"Preview callback raised: {e}")
        return result

    def latest(self) -> Any:
        """Result for the most recent input that has completed, if any."""
        return self._latest

    async def flush(self) -> Any:
        """Wait for the pending preview and return the latest result."""
        pending = self._pending
        if pending is not None:
            try:
                await pending
            except asyncio.CancelledError:
                if not pending.cancelled():
                    raise
        return self._latest

    def cancel(self) -> None:
        """Drop any pending preview."""
        self._generation += 1
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None
