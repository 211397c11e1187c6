"""Tests for the cell grid: Style equality, Cell normalisation, Grid writes."""

from __future__ import annotations

import pytest

from pi.grid.cells import BLANK, Cell, Grid, Style


# ---------------------------------------------------------------------------
# Style
# ---------------------------------------------------------------------------


class TestStyle:
    def test_defaults_are_unset(self) -> None:
        s = Style()
        assert s.fg is None and s.bg is None
        assert not (s.bold or s.underline or s.inverse)
        assert s.is_plain

    def test_structural_equality(self) -> None:
        assert Style(fg=1, bold=True) == Style(fg=1, bold=True)
        assert Style(fg=1) != Style(fg=2)
        assert Style(bg=3) != Style(fg=3)

    def test_absent_flag_equals_explicit_false(self) -> None:
        assert Style(fg=7) == Style(fg=7, bold=False, underline=False, inverse=False)

    def test_truthy_flags_are_coerced(self) -> None:
        s = Style(bold=1, underline="yes")  # type: ignore[arg-type]
        assert s.bold is True
        assert s.underline is True
        assert s == Style(bold=True, underline=True)

    def test_styles_are_hashable(self) -> None:
        assert len({Style(fg=1), Style(fg=1), Style(fg=2)}) == 2

    @pytest.mark.parametrize("value", [-1, 256, 1.5, "red", True])
    def test_invalid_color_rejected(self, value: object) -> None:
        with pytest.raises(ValueError):
            Style(fg=value)  # type: ignore[arg-type]
        with pytest.raises(ValueError):
            Style(bg=value)  # type: ignore[arg-type]

    def test_color_bounds_accepted(self) -> None:
        assert Style(fg=0, bg=255).bg == 255

    def test_is_plain_false_with_any_attribute(self) -> None:
        assert not Style(inverse=True).is_plain
        assert not Style(bg=0).is_plain


# ---------------------------------------------------------------------------
# Cell
# ---------------------------------------------------------------------------


class TestCell:
    def test_blank_is_space_without_style(self) -> None:
        assert BLANK == Cell(" ", None)

    def test_empty_char_becomes_space(self) -> None:
        assert Cell("").char == " "

    def test_only_first_glyph_is_kept(self) -> None:
        assert Cell("abc").char == "a"

    def test_combining_sequence_kept_as_one_glyph(self) -> None:
        assert Cell("éx").char == "é"

    def test_style_none_differs_from_plain_style(self) -> None:
        assert Cell("a") != Cell("a", Style())


# ---------------------------------------------------------------------------
# Grid
# ---------------------------------------------------------------------------


class TestGridConstruction:
    def test_dimensions(self) -> None:
        g = Grid(10, 4)
        assert (g.cols, g.rows) == (10, 4)
        assert g.shape == (10, 4)

    def test_starts_blank(self) -> None:
        g = Grid(3, 2)
        assert g.lines() == ["   ", "   "]
        assert all(cell == BLANK for row in g for cell in row)

    def test_negative_dimensions_clamped(self) -> None:
        g = Grid(-3, -1)
        assert g.shape == (0, 0)
        assert g.lines() == []

    def test_equality_and_copy(self) -> None:
        g = Grid(4, 2)
        g.text(0, 0, "ab", Style(fg=1))
        dup = g.copy()
        assert dup == g
        dup.put(3, 1, "z")
        assert dup != g
        assert g.get(3, 1) == BLANK

    def test_different_shapes_not_equal(self) -> None:
        assert Grid(2, 3) != Grid(3, 2)


class TestGridPut:
    def test_put_writes_cell(self) -> None:
        g = Grid(5, 3)
        g.put(2, 1, "x", Style(bold=True))
        assert g.get(2, 1) == Cell("x", Style(bold=True))

    @pytest.mark.parametrize("x, y", [(-1, 0), (0, -1), (5, 0), (0, 3), (99, 99)])
    def test_out_of_bounds_ignored(self, x: int, y: int) -> None:
        g = Grid(5, 3)
        before = g.copy()
        g.put(x, y, "x")
        assert g == before

    def test_get_out_of_bounds_is_none(self) -> None:
        assert Grid(2, 2).get(2, 0) is None

    def test_row_returns_copy(self) -> None:
        g = Grid(2, 1)
        row = g.row(0)
        row[0] = Cell("q")
        assert g.get(0, 0) == BLANK


class TestGridText:
    def test_text_left_to_right(self) -> None:
        g = Grid(6, 1)
        g.text(1, 0, "abc")
        assert g.lines() == [" abc  "]

    def test_text_clipped_at_right_edge(self) -> None:
        g = Grid(4, 1)
        g.text(2, 0, "hello")
        assert g.lines() == ["  he"]

    def test_text_clipped_at_left_edge(self) -> None:
        g = Grid(4, 1)
        g.text(-2, 0, "hello")
        assert g.lines() == ["llo "]

    def test_text_outside_rows_ignored(self) -> None:
        g = Grid(4, 1)
        g.text(0, 1, "hello")
        g.text(0, -1, "hello")
        assert g.lines() == ["    "]

    def test_text_applies_style_to_every_cell(self) -> None:
        g = Grid(3, 1)
        g.text(0, 0, "ab", Style(fg=2))
        assert g.get(0, 0).style == Style(fg=2)
        assert g.get(1, 0).style == Style(fg=2)
        assert g.get(2, 0).style is None

    def test_no_wrapping(self) -> None:
        g = Grid(3, 2)
        g.text(0, 0, "abcdef")
        assert g.lines() == ["abc", "   "]


class TestGridFillClear:
    def test_fill_rectangle(self) -> None:
        g = Grid(4, 3)
        g.fill(1, 1, 2, 2, "#")
        assert g.lines() == ["    ", " ## ", " ## "]

    def test_fill_defaults_to_space_without_style(self) -> None:
        g = Grid(2, 1)
        g.text(0, 0, "ab", Style(fg=1))
        g.fill(0, 0, 2, 1)
        assert g.get(0, 0) == BLANK

    def test_fill_clips_to_grid(self) -> None:
        g = Grid(3, 2)
        g.fill(-5, -5, 100, 100, ".")
        assert g.lines() == ["...", "..."]

    def test_fill_with_non_positive_size_is_noop(self) -> None:
        g = Grid(3, 2)
        g.fill(0, 0, 0, 2, "x")
        g.fill(0, 0, 2, -1, "x")
        assert g == Grid(3, 2)

    def test_clear_resets_everything(self) -> None:
        g = Grid(3, 2)
        g.fill(0, 0, 3, 2, "x", Style(bg=4))
        g.clear()
        assert g == Grid(3, 2)
