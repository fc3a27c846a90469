"""Run lifecycle events that must trigger a best-effort flush of buffered output."""

import asyncio
import logging
import signal
from typing import Awaitable, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

PERSIST_STATE = "persist_state"
MIGRATING = "migrating"
ABORTING = "aborting"

LIFECYCLE_EVENTS = (PERSIST_STATE, MIGRATING, ABORTING)

Handler = Callable[[], Awaitable[None]]


class LifecycleEvents:
    """
    Minimal async event bus for interruption-style lifecycle signals.

    Handlers run sequentially; a failing handler is logged and does not
    prevent the remaining handlers from running.
    """

    def __init__(self):
        self._handlers: Dict[str, List[Handler]] = {event: [] for event in LIFECYCLE_EVENTS}
        self._persist_task: Optional[asyncio.Task] = None
        self._pending: List[asyncio.Task] = []

    def on(self, event: str, handler: Handler) -> None:
        if event not in self._handlers:
            raise ValueError(f"Unknown lifecycle event: {event}")
        self._handlers[event].append(handler)

    async def emit(self, event: str) -> None:
        logger.debug(f"Lifecycle event: {event}")
        for handler in list(self._handlers.get(event, [])):
            try:
                await handler()
            except Exception as e:
                logger.error(f"Lifecycle handler for '{event}' failed: {e}")

    def _emit_soon(self, event: str) -> None:
        logger.info(f"Received {event} signal, flushing buffered output")
        task = asyncio.get_running_loop().create_task(self.emit(event))
        self._pending.append(task)
        task.add_done_callback(self._pending.remove)

    def install_signal_handlers(self, loop: asyncio.AbstractEventLoop, on_abort: Optional[Callable[[], None]] = None) -> None:
        """
        Route process signals to lifecycle events.

        SIGTERM and SIGINT emit ``aborting`` (then call ``on_abort``), SIGUSR1
        emits ``migrating``. Platforms without signal support are skipped.
        """
        def aborting() -> None:
            self._emit_soon(ABORTING)
            if on_abort:
                on_abort()

        mapping = [(signal.SIGTERM, aborting), (signal.SIGINT, aborting)]
        if hasattr(signal, "SIGUSR1"):
            mapping.append((signal.SIGUSR1, lambda: self._emit_soon(MIGRATING)))

        for sig, callback in mapping:
            try:
                loop.add_signal_handler(sig, callback)
            except (NotImplementedError, RuntimeError):
                logger.debug(f"Signal handlers not supported for {sig!r} on this platform")

    def start_persist_timer(self, interval_sec: float) -> None:
        """Emit ``persist_state`` every ``interval_sec`` seconds until stopped."""
        async def _loop() -> None:
            while True:
                await asyncio.sleep(interval_sec)
                await self.emit(PERSIST_STATE)

        if interval_sec > 0 and self._persist_task is None:
            self._persist_task = asyncio.get_running_loop().create_task(_loop())

    async def stop(self) -> None:
        """Stop the periodic timer and wait for in-flight signal handlers."""
        if self._persist_task:
            self._persist_task.cancel()
            try:
                await self._persist_task
            except asyncio.CancelledError:
                pass
            self._persist_task = None
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
