"""
User-facing notifications from the sync layer.

The engine reports fallback adoption, reconciliation, guard rejections and
suspicious empty responses through a ``Notifier``. Embedding hosts pass a
sink that shows a toast; standalone use logs.

Delivery is fire-and-forget: a failing sink never affects sync.
"""

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Union

logger = logging.getLogger(__name__)

NotifySink = Callable[[str, bool], Union[None, Awaitable[None]]]


def log_sink(message: str, is_error: bool) -> None:
    """Default sink: route notifications to the module logger."""
    if is_error:
        logger.warning(message)
    else:
        logger.info(message)


class Notifier:
    """
    Non-blocking notification dispatcher.

    Example:
        >>> seen = []
        >>> notifier = Notifier(lambda msg, err: seen.append((msg, err)))
        >>> notifier.notify("Restored 5 templates from local cache", is_error=True)
        >>> seen
        [('Restored 5 templates from local cache', True)]
    """

    def __init__(self, sink: NotifySink | None = None) -> None:
        self.sink = sink or log_sink
        self._pending: set[asyncio.Task[None]] = set()

    def notify(self, message: str, is_error: bool = False) -> None:
        try:
            result = self.sink(message, is_error)
        except Exception as e:
            logger.debug("Notification sink failed: %s", e)
            return

        if inspect.isawaitable(result):
            self._schedule(result)

    def _schedule(self, awaitable: Awaitable[None]) -> None:
        async def _deliver() -> None:
            try:
                await awaitable
            except Exception as e:
                logger.debug("Notification sink failed: %s", e)

        try:
            task = asyncio.get_running_loop().create_task(_deliver())
        except RuntimeError:
            # No running loop; nothing can drive the coroutine.
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            logger.debug("Dropping async notification outside an event loop")
            return
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)


__all__ = ["Notifier", "NotifySink", "log_sink"]
