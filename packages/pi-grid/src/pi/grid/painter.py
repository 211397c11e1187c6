"""Drawing primitives over a ``Grid``: points, text, lines and boxes."""

from __future__ import annotations

from pi.grid.cells import Grid, Style

# Box-drawing glyphs
H_LINE = "─"
V_LINE = "│"
TOP_LEFT = "┌"
TOP_RIGHT = "┐"
BOTTOM_LEFT = "└"
BOTTOM_RIGHT = "┘"


class Painter:
    """Writes into a grid.  Pure: performs no terminal I/O.

    All primitives inherit the grid's clipping, so partially visible
    shapes are drawn up to the grid edge and the rest is dropped.
    """

    def __init__(self, grid: Grid) -> None:
        self.grid = grid

    @property
    def cols(self) -> int:
        return self.grid.cols

    @property
    def rows(self) -> int:
        return self.grid.rows

    def put(self, x: int, y: int, ch: str, style: Style | None = None) -> None:
        self.grid.put(x, y, ch, style)

    def text(self, x: int, y: int, s: str, style: Style | None = None) -> None:
        self.grid.text(x, y, s, style)

    def fill(
        self,
        x: int,
        y: int,
        w: int,
        h: int,
        ch: str = " ",
        style: Style | None = None,
    ) -> None:
        self.grid.fill(x, y, w, h, ch, style)

    def hline(
        self, x: int, y: int, w: int, ch: str = H_LINE, style: Style | None = None
    ) -> None:
        for i in range(max(0, w)):
            self.put(x + i, y, ch, style)

    def vline(
        self, x: int, y: int, h: int, ch: str = V_LINE, style: Style | None = None
    ) -> None:
        for i in range(max(0, h)):
            self.put(x, y + i, ch, style)

    def box(
        self,
        x: int,
        y: int,
        w: int,
        h: int,
        title: str | None = None,
        style: Style | None = None,
    ) -> None:
        """Draw a single-line border around the ``w x h`` rectangle.

        The optional *title* is padded with one space on each side and laid
        over the top edge starting one cell in; it is cut short rather than
        overwrite the top-right corner.  Boxes narrower or shorter than 2
        cells are not drawn at all.
        """
        if w < 2 or h < 2:
            return

        right = x + w - 1
        bottom = y + h - 1

        self.put(x, y, TOP_LEFT, style)
        self.put(right, y, TOP_RIGHT, style)
        self.put(x, bottom, BOTTOM_LEFT, style)
        self.put(right, bottom, BOTTOM_RIGHT, style)
        self.hline(x + 1, y, w - 2, H_LINE, style)
        self.hline(x + 1, bottom, w - 2, H_LINE, style)
        self.vline(x, y + 1, h - 2, V_LINE, style)
        self.vline(right, y + 1, h - 2, V_LINE, style)

        if title:
            label = f" {title} "
            room = w - 2
            self.text(x + 1, y, label[:room], style)
