"""Application shell: wires terminal, input, scheduler and renderer together.

Per frame: state changes call :meth:`App.request_redraw`; the scheduler
decides when to call :meth:`App.draw`, which paints the root layout node
into a fresh grid and commits it through the differential renderer.
"""

from __future__ import annotations

import asyncio
import logging
import signal
from typing import Callable

from pi.grid.config import GridConfig
from pi.grid.input import InputBackend, KeyEvent
from pi.grid.layout import Node, Rect, RenderContext, render
from pi.grid.painter import Painter
from pi.grid.renderer import DiffRenderer
from pi.grid.rtt import measure_rtt
from pi.grid.scheduler import Scheduler
from pi.grid.terminal import ProcessTerminal, Terminal

logger = logging.getLogger(__name__)

_STOP_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class App:
    """A full-screen application rendering *root* into *terminal*.

    :meth:`run` owns the terminal for its whole duration and restores it on
    every way out: :meth:`exit`, ctrl+c, SIGINT/SIGTERM, or an exception
    raised while drawing (which :meth:`run` re-raises after cleanup).
    """

    def __init__(
        self,
        root: Node,
        terminal: Terminal | None = None,
        *,
        config: GridConfig | None = None,
    ) -> None:
        self.root = root
        self.config = config if config is not None else GridConfig.from_env()
        self.terminal: Terminal = (
            terminal
            if terminal is not None
            else ProcessTerminal(write_log=self.config.write_log)
        )
        self.renderer = DiffRenderer(self.terminal)
        self.input = InputBackend(self.terminal)
        self.scheduler = Scheduler(
            self.draw,
            probe=self.probe_rtt if self.config.adaptive_fps else None,
            probe_interval=self.config.probe_interval,
            initial_fps=self.config.initial_fps,
            on_error=self._on_draw_error,
        )
        self.last_rtt: float | None = None
        self._done: asyncio.Future[None] | None = None

    # -- drawing ------------------------------------------------------------

    def draw(self) -> None:
        """Paint the root node into a new grid and commit it."""
        grid = self.renderer.new_frame()
        ctx = RenderContext(Painter(grid))
        render(self.root, Rect(0, 0, grid.cols, grid.rows), ctx)
        self.renderer.commit(grid)

    def request_redraw(self) -> None:
        self.scheduler.request_redraw()

    async def probe_rtt(self) -> float | None:
        self.last_rtt = await measure_rtt(self.terminal, self.config.probe_timeout)
        return self.last_rtt

    # -- input --------------------------------------------------------------

    def on_key(self, handler: Callable[[KeyEvent], None]) -> Callable[[], None]:
        """Subscribe to key events; returns an unsubscribe function."""
        return self.input.on(handler)

    def _on_key(self, key: KeyEvent) -> None:
        # Raw mode swallows SIGINT, so ctrl+c has to be handled here
        if key.ctrl and key.name == "c":
            self.exit()

    def _on_resize(self) -> None:
        self.renderer.reset()
        self.request_redraw()

    # -- lifecycle ----------------------------------------------------------

    def exit(self) -> None:
        """Make :meth:`run` return."""
        if self._done is not None and not self._done.done():
            self._done.set_result(None)

    def _on_draw_error(self, exc: BaseException) -> None:
        logger.error("draw failed", exc_info=exc)
        if self._done is not None and not self._done.done():
            self._done.set_exception(exc)

    async def run(self) -> None:
        """Take over the terminal until :meth:`exit` is called."""
        loop = asyncio.get_running_loop()
        self._done = loop.create_future()

        cleanups: list[Callable[[], None]] = []
        try:
            self.terminal.install()
            self.input.install()
            cleanups.append(self.input.on(self._on_key))
            cleanups.append(self.terminal.on_resize(self._on_resize))
            for sig in _STOP_SIGNALS:
                try:
                    loop.add_signal_handler(sig, self.exit)
                except (NotImplementedError, RuntimeError):
                    continue
                cleanups.append(lambda sig=sig: loop.remove_signal_handler(sig))

            self.scheduler.start()
            self.request_redraw()
            await self._done
        finally:
            self.scheduler.stop()
            for cleanup in reversed(cleanups):
                cleanup()
            self.input.uninstall()
            self.terminal.uninstall()
            self.renderer.reset()
            self._done = None
