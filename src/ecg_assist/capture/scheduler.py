"""
Frame Ticker
============

Explicit scheduler for the per-frame capture loop.

Each tick reads exactly one frame from the source and hands it to the
callback. The callback returns True to keep sampling or False to stop. The
ticker can be driven synchronously (tests, scripts) or cooperatively on an
asyncio loop, yielding between frames the way a display-refresh callback
would.

Design Rules:
    - One frame per tick, never more
    - stop() is idempotent and takes effect before the next read
    - No frame is read once stopped
    - No blocking calls inside a tick besides the source read
"""

import asyncio
import logging
from typing import Callable, Optional

from ecg_assist.capture.frame import Frame
from ecg_assist.capture.source import FrameSource


logger = logging.getLogger(__name__)


FrameCallback = Callable[[Frame], bool]


class FrameTicker:
    """
    Cooperative frame loop over an injectable source.

    Attributes:
        source: Where frames come from
        on_frame: Called once per frame; return False to stop
        running: Whether the loop will sample on the next tick
        ticks: Frames delivered since the last start()

    Example:
        ticker = FrameTicker(source, on_frame=session.on_frame)
        ticker.start()
        ticker.run()            # synchronous
        await ticker.run_async(frame_interval=1 / 30)
    """

    def __init__(self, source: FrameSource, on_frame: FrameCallback) -> None:
        self.source = source
        self.on_frame = on_frame
        self._running: bool = False
        self._ticks: int = 0

    @property
    def running(self) -> bool:
        return self._running

    @property
    def ticks(self) -> int:
        return self._ticks

    def start(self) -> None:
        """Arm the loop. Does not read a frame."""
        self._running = True
        self._ticks = 0
        logger.debug("FrameTicker started")

    def stop(self) -> None:
        """Cancel the loop. Safe to call repeatedly, including from on_frame."""
        if self._running:
            logger.debug(f"FrameTicker stopped after {self._ticks} ticks")
        self._running = False

    def tick(self) -> bool:
        """
        Process one frame.

        Returns:
            True if the loop should continue, False once stopped
        """
        if not self._running:
            return False

        frame = self.source.read()
        if frame is None:
            logger.info("Frame source exhausted")
            self.stop()
            return False

        self._ticks += 1
        if not self.on_frame(frame):
            self.stop()

        return self._running

    def run(self, max_ticks: Optional[int] = None) -> int:
        """
        Tick until stopped, the source is exhausted, or max_ticks is reached.

        Returns:
            Number of frames delivered during this call
        """
        delivered = 0
        while max_ticks is None or delivered < max_ticks:
            before = self._ticks
            keep_going = self.tick()
            delivered += self._ticks - before
            if not keep_going:
                break
        return delivered

    async def run_async(self, frame_interval: float = 0.0) -> int:
        """
        Tick on the event loop, yielding between frames.

        Args:
            frame_interval: Seconds to wait between frames (0 just yields)

        Returns:
            Number of frames delivered during this call
        """
        delivered = 0
        try:
            while self._running:
                before = self._ticks
                keep_going = self.tick()
                delivered += self._ticks - before
                if not keep_going:
                    break
                await asyncio.sleep(frame_interval)
        except asyncio.CancelledError:
            logger.info("FrameTicker cancelled")
            self.stop()
            raise
        return delivered
