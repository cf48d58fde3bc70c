import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Set
from .base_trigger import TriggerStrategy, TickCallback

class IntervalTrigger(TriggerStrategy):
    """Fixed-rate trigger.

    Fires every ``interval_ms`` milliseconds, starting one interval after
    start(). Each firing runs as its own task, so a callback that outlasts the
    interval overlaps with the next one instead of delaying it.
    """

    def __init__(self, trigger_config: Dict[str, Any]):
        super().__init__(trigger_config)
        interval_ms = trigger_config.get("interval_ms")
        if not isinstance(interval_ms, (int, float)) or interval_ms <= 0:
            raise ValueError(f"interval_ms must be positive, got {interval_ms!r}")
        self.interval_seconds = interval_ms / 1000
        self._task: Optional[asyncio.Task] = None
        self._in_flight: Set[asyncio.Task] = set()
        self.logger = logging.getLogger(self.__class__.__name__)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, callback: TickCallback) -> None:
        if self.running:
            self.logger.warning("Trigger is already running")
            return
        self._task = asyncio.get_running_loop().create_task(self._run(callback))

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    def in_flight(self) -> int:
        """Firings whose callback has not returned yet."""
        return len(self._in_flight)

    async def _run(self, callback: TickCallback) -> None:
        loop = asyncio.get_running_loop()
        next_fire = loop.time() + self.interval_seconds

        while True:
            await asyncio.sleep(max(0.0, next_fire - loop.time()))
            self._fire(callback)

            next_fire += self.interval_seconds
            now = loop.time()
            if next_fire < now:
                # the loop itself was stalled; resume from now rather than burst
                next_fire = now

    def _fire(self, callback: TickCallback) -> None:
        self.execution_count += 1
        self.last_execution = datetime.now(timezone.utc)
        task = asyncio.create_task(self._safe_callback(callback))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

    async def _safe_callback(self, callback: TickCallback) -> None:
        try:
            await callback()
        except Exception as e:
            self.logger.error(f"Error in trigger callback: {e}", exc_info=True)
