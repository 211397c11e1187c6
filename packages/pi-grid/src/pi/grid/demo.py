"""Demo dashboard: run shell commands and show their output.

Layout::

    ┌ pi-grid ───────────────────────────────┐
    ┌ Commands ──┐  ┌ Output ────────────────┐
    │ > uptime   │  │ ...                    │
    └────────────┘  └────────────────────────┘
    ┌ Status ────────────────────────────────┐

with a help window composited on top through an overlay.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from pi.grid.app import App
from pi.grid.cells import Style
from pi.grid.config import GridConfig
from pi.grid.input import KeyEvent
from pi.grid.layout import Node, Rect, RenderContext, hstack, overlay, vstack
from pi.grid.terminal import Terminal

logger = logging.getLogger(__name__)

COMMANDS: list[tuple[str, str]] = [
    ("Uptime", "uptime"),
    ("Disk usage", "df -h"),
    ("Memory", "free -h"),
    ("Processes", "ps -eo pid,comm,%cpu,%mem --sort=-%cpu | head -n 40"),
    ("Kernel", "uname -a"),
]

FRAME = Style(fg=245, bold=True)
TITLE = Style(fg=214, bold=True)
ITEM = Style(fg=250)
SELECTED = Style(fg=15, inverse=True)
OUTPUT = Style(fg=252)
FOOTER = Style(fg=244)
BACKDROP = Style(bg=236)
HELP_FRAME = Style(fg=223, bold=True)
HELP_TEXT = Style(fg=229)

SPINNER = "⠋⠙⠹⠸⠼⠴⠦⠧⠇⠏"


@dataclass
class DashboardState:
    selected: int = 0
    output: list[str] = field(default_factory=lambda: ["(select a command)"])
    running: bool = False
    show_help: bool = False
    tick: int = 0


def _clip(text: str, width: int) -> str:
    if width <= 0:
        return ""
    if len(text) <= width:
        return text
    if width <= 3:
        return text[:width]
    return text[: width - 3] + "..."


class Dashboard:
    """Builds the layout tree and reacts to keys for one :class:`App`."""

    def __init__(
        self, config: GridConfig | None = None, terminal: Terminal | None = None
    ) -> None:
        self.state = DashboardState()
        self.app = App(self.build(), terminal, config=config)
        self.app.on_key(self.handle_key)
        self._command_task: asyncio.Task | None = None

    # -- layout -------------------------------------------------------------

    def build(self) -> Node:
        body = hstack([self.paint_commands, self.paint_output], gap=2)
        body.child_grow(0, 1).child_grow(1, 2)
        base = vstack([self.paint_header, body, self.paint_footer], pad=1, gap=1)
        base.child_grow(0, 1).child_grow(1, 6).child_grow(2, 1)
        return overlay([base, self.paint_help])

    def paint_header(self, area: Rect, ctx: RenderContext) -> None:
        p = ctx.painter
        p.box(area.x, area.y, area.w, max(2, area.h), "pi-grid", FRAME)
        if area.h > 2:
            title = "terminal dashboard demo"
            tx = area.x + max(1, (area.w - len(title)) // 2)
            p.text(tx, area.y + 1, _clip(title, area.w - 2), TITLE)

    def paint_commands(self, area: Rect, ctx: RenderContext) -> None:
        p = ctx.painter
        p.box(area.x, area.y, area.w, area.h, "Commands", FRAME)
        inner_w = area.w - 4
        for i, (label, _) in enumerate(COMMANDS[: max(0, area.h - 2)]):
            style = SELECTED if i == self.state.selected else ITEM
            p.text(area.x + 2, area.y + 1 + i, _clip(label, inner_w), style)

    def paint_output(self, area: Rect, ctx: RenderContext) -> None:
        p = ctx.painter
        label, _ = COMMANDS[self.state.selected]
        if self.state.running:
            label = f"{label} {SPINNER[self.state.tick % len(SPINNER)]}"
        p.box(area.x, area.y, area.w, area.h, f"Output: {label}", FRAME)
        max_w = area.w - 2
        for i, line in enumerate(self.state.output[: max(0, area.h - 2)]):
            p.text(area.x + 1, area.y + 1 + i, _clip(line, max_w), OUTPUT)

    def paint_footer(self, area: Rect, ctx: RenderContext) -> None:
        p = ctx.painter
        p.box(area.x, area.y, area.w, max(2, area.h), "Status", FRAME)
        rtt = self.app.last_rtt
        rtt_text = "?" if rtt is None else f"{rtt:.0f}ms"
        status = (
            f"tick {self.state.tick} | rtt {rtt_text} | "
            f"max fps {self.app.scheduler.max_fps:g} | z help | q quit"
        )
        p.text(area.x + 2, area.y + 1, _clip(status, area.w - 4), FOOTER)

    def paint_help(self, area: Rect, ctx: RenderContext) -> None:
        if not self.state.show_help:
            return
        p = ctx.painter
        p.fill(area.x, area.y, area.w, area.h, " ", BACKDROP)

        mw = min(54, max(32, area.w * 6 // 10))
        mh = min(12, max(7, area.h * 4 // 10))
        mx = area.x + (area.w - mw) // 2
        my = area.y + (area.h - mh) // 2
        p.fill(mx, my, mw, mh)
        p.box(mx, my, mw, mh, "Help", HELP_FRAME)
        lines = [
            "up / down : select command",
            "z         : open this help",
            "c         : close help",
            "q         : quit",
        ]
        for i, line in enumerate(lines):
            p.text(mx + 2, my + 2 + i, line, HELP_TEXT)

    # -- behaviour ----------------------------------------------------------

    def handle_key(self, key: KeyEvent) -> None:
        if key.name == "q" and not key.ctrl:
            self.app.exit()
            return
        if key.name == "z":
            self.state.show_help = True
        elif key.name == "c" and not key.ctrl:
            self.state.show_help = False
        elif key.name == "up":
            self.select(self.state.selected - 1)
        elif key.name == "down":
            self.select(self.state.selected + 1)
        else:
            return
        self.app.request_redraw()

    def select(self, index: int) -> None:
        index = max(0, min(len(COMMANDS) - 1, index))
        if index == self.state.selected and self._command_task is not None:
            return
        self.state.selected = index
        if self._command_task is not None:
            self._command_task.cancel()
        self._command_task = asyncio.get_running_loop().create_task(
            self.run_selected()
        )

    async def run_selected(self) -> None:
        label, cmd = COMMANDS[self.state.selected]
        self.state.running = True
        self.app.request_redraw()
        try:
            proc = await asyncio.create_subprocess_shell(
                cmd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            stdout, stderr = await proc.communicate()
        except OSError as exc:
            logger.warning("command %r failed to start: %s", cmd, exc)
            self.state.output = [f'[error running "{cmd}"]', str(exc)]
        else:
            text = stdout.decode("utf-8", errors="replace")
            if stderr:
                text += "\n[stderr]\n" + stderr.decode("utf-8", errors="replace")
            self.state.output = text.expandtabs().splitlines() or ["(no output)"]
            logger.info("%s exited with %s", label, proc.returncode)
        finally:
            if asyncio.current_task() is self._command_task:
                self.state.running = False
            self.app.request_redraw()

    async def animate(self) -> None:
        while True:
            await asyncio.sleep(1.0 if not self.state.running else 0.08)
            self.state.tick += 1
            self.app.request_redraw()

    async def run(self) -> None:
        loop = asyncio.get_running_loop()
        ticker = loop.create_task(self.animate())
        self._command_task = loop.create_task(self.run_selected())
        try:
            await self.app.run()
        finally:
            ticker.cancel()
            if self._command_task is not None:
                self._command_task.cancel()
