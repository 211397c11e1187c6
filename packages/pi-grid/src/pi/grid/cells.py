"""Cell grid: a fixed-size buffer of styled character cells.

A ``Grid`` is the unit of state the renderer diffs between frames.  Every
cell holds one glyph (a single grapheme cluster) and an optional ``Style``.
Writes outside the grid are silently dropped so layout arithmetic can
overshoot without clamping at every call-site.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

import grapheme

__all__ = ["Style", "Cell", "Grid", "BLANK"]


# ---------------------------------------------------------------------------
# Style
# ---------------------------------------------------------------------------


def _check_color(name: str, value: object) -> None:
    if value is None:
        return
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 255:
        raise ValueError(f"{name} must be a 0-255 color index or None, got {value!r}")


@dataclass(frozen=True)
class Style:
    """Text attributes for a cell, using the indexed 256-color palette.

    Equality is structural: unset booleans default to ``False`` and truthy
    values are coerced, so ``Style(bold=1) == Style(bold=True)``.
    """

    fg: int | None = None
    bg: int | None = None
    bold: bool = False
    underline: bool = False
    inverse: bool = False

    def __post_init__(self) -> None:
        _check_color("fg", self.fg)
        _check_color("bg", self.bg)
        # Frozen dataclass: normalise flags through object.__setattr__
        object.__setattr__(self, "bold", bool(self.bold))
        object.__setattr__(self, "underline", bool(self.underline))
        object.__setattr__(self, "inverse", bool(self.inverse))

    @property
    def is_plain(self) -> bool:
        """``True`` when the style carries no attribute at all."""
        return (
            self.fg is None
            and self.bg is None
            and not (self.bold or self.underline or self.inverse)
        )


# ---------------------------------------------------------------------------
# Cell
# ---------------------------------------------------------------------------


def _first_glyph(ch: str) -> str:
    if len(ch) == 1:
        return ch
    return next(grapheme.graphemes(ch), " ")


@dataclass(frozen=True)
class Cell:
    """One character-plus-style unit of the grid."""

    char: str = " "
    style: Style | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "char", _first_glyph(self.char))


BLANK = Cell()


# ---------------------------------------------------------------------------
# Grid
# ---------------------------------------------------------------------------


class Grid:
    """A ``cols x rows`` row-major buffer of cells.

    Dimensions are fixed at construction.  New grids are filled with blank
    (space, no style) cells.
    """

    def __init__(self, cols: int, rows: int) -> None:
        self._cols = max(0, int(cols))
        self._rows = max(0, int(rows))
        self._cells: list[list[Cell]] = [
            [BLANK] * self._cols for _ in range(self._rows)
        ]

    # -- properties ---------------------------------------------------------

    @property
    def cols(self) -> int:
        return self._cols

    @property
    def rows(self) -> int:
        return self._rows

    @property
    def shape(self) -> tuple[int, int]:
        return (self._cols, self._rows)

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self._cols and 0 <= y < self._rows

    # -- reads --------------------------------------------------------------

    def get(self, x: int, y: int) -> Cell | None:
        """Return the cell at ``(x, y)``, or ``None`` when out of bounds."""
        if not self.in_bounds(x, y):
            return None
        return self._cells[y][x]

    def row(self, y: int) -> list[Cell]:
        """Return the cells of row *y* (a copy; mutate through ``put``)."""
        return list(self._cells[y])

    def lines(self) -> list[str]:
        """Return the plain characters of every row, styles dropped."""
        return ["".join(cell.char for cell in row) for row in self._cells]

    def __iter__(self) -> Iterator[list[Cell]]:
        return iter(self._cells)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Grid):
            return NotImplemented
        return self.shape == other.shape and self._cells == other._cells

    def __repr__(self) -> str:
        return f"Grid(cols={self._cols}, rows={self._rows})"

    def copy(self) -> Grid:
        """Return an independent grid with the same contents."""
        dup = Grid(self._cols, self._rows)
        # Cells are immutable, so copying the row lists is enough
        dup._cells = [list(row) for row in self._cells]
        return dup

    # -- writes -------------------------------------------------------------

    def put(self, x: int, y: int, ch: str, style: Style | None = None) -> None:
        """Write one cell.  Out-of-bounds coordinates are ignored."""
        if not self.in_bounds(x, y):
            return
        self._cells[y][x] = Cell(ch or " ", style)

    def set_cell(self, x: int, y: int, cell: Cell) -> None:
        if self.in_bounds(x, y):
            self._cells[y][x] = cell

    def text(self, x: int, y: int, s: str, style: Style | None = None) -> None:
        """Write *s* left to right from ``(x, y)``, one glyph per cell.

        Each cell is clipped independently; there is no wrapping.
        """
        if not 0 <= y < self._rows:
            return
        for i, glyph in enumerate(grapheme.graphemes(s)):
            self.put(x + i, y, glyph, style)

    def fill(
        self,
        x: int,
        y: int,
        w: int,
        h: int,
        ch: str = " ",
        style: Style | None = None,
    ) -> None:
        """Set every cell of the rectangle to *ch* / *style*."""
        x0 = max(0, x)
        y0 = max(0, y)
        x1 = min(self._cols, x + max(0, w))
        y1 = min(self._rows, y + max(0, h))
        if x0 >= x1 or y0 >= y1:
            return
        cell = Cell(ch or " ", style)
        for yy in range(y0, y1):
            row = self._cells[yy]
            for xx in range(x0, x1):
                row[xx] = cell

    def clear(self) -> None:
        """Reset the whole grid to blank cells."""
        for row in self._cells:
            for xx in range(self._cols):
                row[xx] = BLANK
