"""Differential renderer: turns grid changes into batched ANSI writes.

Each commit compares the freshly painted grid with the grid the terminal is
known to display.  Changed cells are grouped per row into *runs* that share
one style, and every run becomes ``cursor-move + (SGR if needed) + text``.
The whole commit is handed to the terminal as a single write, so a frame
costs one round of output latency over SSH no matter how many runs it has.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterator

from pi.grid.cells import Grid, Style

if TYPE_CHECKING:
    from pi.grid.terminal import Terminal

__all__ = [
    "Run",
    "DiffRenderer",
    "diff_grids",
    "sgr",
    "cursor_to",
    "CLEAR_AND_HOME",
    "RESET",
]

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# ANSI escape constants
# ---------------------------------------------------------------------------

RESET = "\x1b[0m"
CLEAR_AND_HOME = "\x1b[2J\x1b[H"
_CURSOR_TO_FMT = "\x1b[{};{}H"


def cursor_to(x: int, y: int) -> str:
    """Cursor-position sequence for 0-based cell ``(x, y)``."""
    return _CURSOR_TO_FMT.format(y + 1, x + 1)


def sgr(style: Style | None) -> str:
    """Return the SGR sequence that puts the terminal into *style*.

    The sequence always starts from a reset (``0``) so attributes of the
    previously active style never leak into the new one.  ``None`` and a
    style without attributes both map to the plain reset.
    """
    if style is None or style.is_plain:
        return RESET
    codes = ["0"]
    if style.bold:
        codes.append("1")
    if style.underline:
        codes.append("4")
    if style.inverse:
        codes.append("7")
    if style.fg is not None:
        codes.append(f"38;5;{style.fg}")
    if style.bg is not None:
        codes.append(f"48;5;{style.bg}")
    return "\x1b[" + ";".join(codes) + "m"


# ---------------------------------------------------------------------------
# Diffing
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Run:
    """A horizontal stretch of changed cells sharing one style."""

    x: int
    y: int
    length: int
    text: str
    style: Style | None


def diff_grids(prev: Grid, nxt: Grid) -> Iterator[Run]:
    """Yield the runs that turn *prev* into *nxt*, row by row.

    Both grids must have the same shape.  A run starts at the first cell
    that differs from *prev* and grows while the following cells also
    differ and carry the same style as the first one.  *prev* is not
    modified.
    """
    if prev.shape != nxt.shape:
        raise ValueError(f"grid shapes differ: {prev.shape} vs {nxt.shape}")

    for y, (old_row, new_row) in enumerate(zip(prev, nxt)):
        cols = len(new_row)
        x = 0
        while x < cols:
            cell = new_row[x]
            if cell == old_row[x]:
                x += 1
                continue

            style = cell.style
            end = x + 1
            while end < cols:
                candidate = new_row[end]
                if candidate == old_row[end] or candidate.style != style:
                    break
                end += 1

            yield Run(x, y, end - x, "".join(c.char for c in new_row[x:end]), style)
            x = end


# ---------------------------------------------------------------------------
# DiffRenderer
# ---------------------------------------------------------------------------


class DiffRenderer:
    """Keeps the terminal in sync with the latest committed grid.

    The renderer owns the *previous* grid: its record of what the terminal
    currently shows.  ``None`` means unknown, which forces a clear and a
    full repaint on the next commit.
    """

    def __init__(self, terminal: Terminal) -> None:
        self.terminal = terminal
        self._prev: Grid | None = None
        self._active_sgr: str = RESET
        self._full_redraw_count: int = 0

    # -- properties ---------------------------------------------------------

    @property
    def previous(self) -> Grid | None:
        """The grid the terminal is known to display (read-only view)."""
        return self._prev

    @property
    def active_sgr(self) -> str:
        return self._active_sgr

    @property
    def full_redraws(self) -> int:
        """Number of commits that cleared the screen and repainted."""
        return self._full_redraw_count

    # -- API ----------------------------------------------------------------

    def new_frame(self) -> Grid:
        """Return a blank grid sized to the terminal right now."""
        return Grid(self.terminal.columns, self.terminal.rows)

    def reset(self) -> None:
        """Forget the terminal contents, e.g. after a resize."""
        self._prev = None
        self._active_sgr = RESET

    def commit(self, grid: Grid) -> None:
        """Diff *grid* against the terminal state and write the delta.

        Write failures propagate.  After a failed write the terminal state
        is unknown, so the next commit clears and repaints in full.
        """
        out: list[str] = []
        prev = self._prev
        active = self._active_sgr

        if prev is None or prev.shape != grid.shape:
            logger.debug(
                "full repaint: %s -> %dx%d",
                "unknown" if prev is None else f"{prev.cols}x{prev.rows}",
                grid.cols,
                grid.rows,
            )
            prev = Grid(grid.cols, grid.rows)
            out.append(CLEAR_AND_HOME)
            active = RESET
            self._full_redraw_count += 1

        runs = 0
        for run in diff_grids(prev, grid):
            runs += 1
            out.append(cursor_to(run.x, run.y))
            code = sgr(run.style)
            if code != active:
                out.append(code)
                active = code
            out.append(run.text)
            for x in range(run.x, run.x + run.length):
                prev.set_cell(x, run.y, grid.get(x, run.y))

        # Leave the terminal unstyled between frames
        out.append(RESET)

        try:
            self.terminal.batch(out)
        except Exception:
            self._prev = None
            self._active_sgr = RESET
            raise

        self._prev = prev
        self._active_sgr = RESET
        logger.debug("commit: %d run(s)", runs)
