"""
Visibility-aware interval poller

Runs an async callback every `interval_seconds` while the poller is both
visible and online. Starting runs the callback once immediately; a tick
is skipped while the previous run is still in progress. Hiding or going
offline stops the loop, and becoming visible or online again restarts it.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class VisibilityPoller:
    def __init__(
        self,
        callback: Callable[[], Awaitable[None]],
        interval_seconds: float,
        name: str = "poller",
    ):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.callback = callback
        self.interval_seconds = interval_seconds
        self.name = name
        self.visible = True
        self.online = True
        self._loop_task: Optional[asyncio.Task] = None
        self._run_task: Optional[asyncio.Task] = None

    @property
    def is_active(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    @property
    def is_running_callback(self) -> bool:
        return self._run_task is not None and not self._run_task.done()

    def start(self) -> bool:
        """Start polling; returns False when already active, hidden or offline"""
        if self.is_active or not (self.visible and self.online):
            return False
        logger.info(f"🔄 Starting {self.name} (every {self.interval_seconds}s)")
        self._trigger()
        self._loop_task = asyncio.get_running_loop().create_task(self._loop())
        return True

    def stop(self):
        """Stop the interval; a run already in progress is left to finish"""
        if self._loop_task is not None:
            self._loop_task.cancel()
            self._loop_task = None
            logger.info(f"⏸️ Stopped {self.name}")

    def set_visible(self, visible: bool):
        self.visible = visible
        if visible:
            self.start()
        else:
            self.stop()

    def set_online(self, online: bool):
        self.online = online
        if online:
            self.start()
        else:
            self.stop()

    async def shutdown(self):
        """Stop polling and wait for an in-flight run"""
        loop_task = self._loop_task
        self.stop()
        if loop_task is not None:
            try:
                await loop_task
            except asyncio.CancelledError:
                pass
        if self._run_task is not None:
            await asyncio.gather(self._run_task, return_exceptions=True)

    def _trigger(self) -> bool:
        if self.is_running_callback:
            logger.debug(f"⏭️ {self.name}: previous run still in progress, skipping tick")
            return False
        self._run_task = asyncio.get_running_loop().create_task(self._run_once())
        return True

    async def _run_once(self):
        try:
            await self.callback()
        except Exception as e:
            logger.warning(f"⚠️ {self.name} callback failed: {e}")

    async def _loop(self):
        while True:
            await asyncio.sleep(self.interval_seconds)
            if not (self.visible and self.online):
                continue
            self._trigger()
