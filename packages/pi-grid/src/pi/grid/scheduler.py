"""Redraw scheduler: coalesces redraw requests and caps the frame rate.

Any number of ``request_redraw`` calls made before the next permitted frame
collapse into one draw.  The frame-rate ceiling follows the measured
round-trip time to the terminal, which is re-probed every few seconds from
inside the same cycle that performs the draws.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)

__all__ = ["Scheduler", "fps_for_rtt", "DEFAULT_FPS"]

# Ceiling used while the round-trip time is unknown
DEFAULT_FPS = 20.0

Probe = Callable[[], Awaitable["float | None"]]


def fps_for_rtt(rtt_ms: float | None) -> float:
    """Map a round-trip time in milliseconds to a frame-rate ceiling."""
    if rtt_ms is None:
        return DEFAULT_FPS
    if rtt_ms < 50:
        return 30.0
    if rtt_ms < 120:
        return 15.0
    if rtt_ms < 200:
        return 8.0
    return 4.0


class Scheduler:
    """Runs *draw* at most once per frame interval, only when requested.

    The cycle is a single asyncio task: wait until the next frame is
    allowed, draw if a request is still pending, probe the round-trip time
    when due, and go idle once nothing is pending.  A frame-rate change from
    a probe only affects frames scheduled after it.

    Without a running event loop ``request_redraw`` draws immediately.
    Draw errors inside the cycle go to *on_error*, or are logged when there
    is none.
    """

    def __init__(
        self,
        draw: Callable[[], None],
        *,
        probe: Probe | None = None,
        probe_interval: float = 5.0,
        initial_fps: float = DEFAULT_FPS,
        on_error: Callable[[BaseException], None] | None = None,
    ) -> None:
        if not initial_fps > 0:
            raise ValueError(f"initial_fps must be positive, got {initial_fps!r}")
        self._draw = draw
        self._probe = probe
        self._probe_interval = probe_interval
        self._on_error = on_error

        self._max_fps: float = float(initial_fps)
        self._next_allowed: float = 0.0
        self._next_probe: float = 0.0
        self._pending: bool = False
        self._running: bool = False
        self._stopped: bool = False
        self._task: asyncio.Task | None = None
        self._draw_count: int = 0

    # -- properties ---------------------------------------------------------

    @property
    def max_fps(self) -> float:
        return self._max_fps

    @property
    def pending(self) -> bool:
        """``True`` while a requested draw has not happened yet."""
        return self._pending

    @property
    def running(self) -> bool:
        return self._running

    @property
    def draw_count(self) -> int:
        return self._draw_count

    # -- lifecycle ----------------------------------------------------------

    def start(self) -> None:
        self._stopped = False

    def stop(self) -> None:
        """Drop any pending draw and cancel the cycle.  Later requests are ignored."""
        self._stopped = True
        self._pending = False
        if self._task is not None:
            self._task.cancel()
            self._task = None
        self._running = False

    # -- API ----------------------------------------------------------------

    def set_max_fps_by_rtt(self, rtt_ms: float | None) -> None:
        fps = fps_for_rtt(rtt_ms)
        if fps != self._max_fps:
            logger.debug("frame rate ceiling %g -> %g (rtt=%s)", self._max_fps, fps, rtt_ms)
        self._max_fps = fps

    def request_redraw(self) -> None:
        """Ask for a frame.  Returns immediately; the draw happens later."""
        if self._stopped:
            return
        self._pending = True
        if self._running:
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No running event loop -- draw synchronously
            self._pending = False
            self._do_draw()
            return

        self._running = True
        self._task = loop.create_task(self._cycle(loop))

    # -- private ------------------------------------------------------------

    def _do_draw(self) -> None:
        self._draw_count += 1
        self._draw()

    async def _cycle(self, loop: asyncio.AbstractEventLoop) -> None:
        try:
            while self._pending and not self._stopped:
                await asyncio.sleep(max(0.0, self._next_allowed - loop.time()))

                if self._pending and not self._stopped:
                    self._pending = False
                    self._do_draw()
                    self._next_allowed = loop.time() + 1.0 / self._max_fps

                if self._probe is not None and loop.time() >= self._next_probe:
                    await self._refresh_fps(loop)
        except Exception as exc:
            self._pending = False
            if self._on_error is None:
                # Nothing awaits this task, so the log is the only report
                logger.error("draw failed", exc_info=exc)
                return
            self._on_error(exc)
        finally:
            # stop() may already have handed the cycle to a newer task
            if self._task is asyncio.current_task():
                self._running = False
                self._task = None

    async def _refresh_fps(self, loop: asyncio.AbstractEventLoop) -> None:
        try:
            rtt = await self._probe()  # type: ignore[misc]
        except Exception:
            logger.warning("round-trip probe failed", exc_info=True)
            rtt = None
        self._next_probe = loop.time() + self._probe_interval
        self.set_max_fps_by_rtt(rtt)
