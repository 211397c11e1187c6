"""Layout tree: leaves, vertical/horizontal stacks and overlays.

Nodes are plain data.  A single recursive evaluator, :func:`render`, walks
the tree every frame, partitions the area it is given and hands each leaf
its rectangle together with the shared :class:`RenderContext`.  No layout
state survives between frames.

Stacks divide their main axis by growth weight::

    ui = vstack([header, hstack([menu, detail]).child_grow(1, 2), footer])
    ui.pad(1).gap(1)
    render(ui, Rect(0, 0, grid.cols, grid.rows), RenderContext(painter))
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Callable, Iterable, Sequence, Union

from pi.grid.painter import Painter

__all__ = [
    "Rect",
    "RenderContext",
    "Leaf",
    "StackChild",
    "VerticalStack",
    "HorizontalStack",
    "Overlay",
    "Node",
    "leaf",
    "vstack",
    "hstack",
    "overlay",
    "split_length",
    "render",
]


# ---------------------------------------------------------------------------
# Geometry and context
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Rect:
    """Axis-aligned area in terminal cell coordinates."""

    x: int
    y: int
    w: int
    h: int

    @property
    def empty(self) -> bool:
        return self.w <= 0 or self.h <= 0

    def inset(self, n: int) -> Rect:
        """Shrink by *n* cells on every side (never below zero size)."""
        return Rect(
            self.x + n,
            self.y + n,
            max(0, self.w - n * 2),
            max(0, self.h - n * 2),
        )


@dataclass
class RenderContext:
    """Shared state handed to every node during one render pass."""

    painter: Painter


# ---------------------------------------------------------------------------
# Input sanitizing
# ---------------------------------------------------------------------------


def _non_negative_int(value: object) -> int:
    """Coerce a gap/pad/weight input to a non-negative integer.

    Finite numbers are truncated toward zero; anything else (NaN, infinity,
    non-numbers) counts as 0.
    """
    if isinstance(value, int):
        return max(0, int(value))
    if isinstance(value, float) and math.isfinite(value):
        return max(0, int(value))
    return 0


# ---------------------------------------------------------------------------
# Nodes
# ---------------------------------------------------------------------------

LeafFn = Callable[[Rect, RenderContext], None]


@dataclass
class Leaf:
    """Application-supplied painter for a rectangle."""

    paint: LeafFn


@dataclass
class StackChild:
    node: Node
    grow: int = 1

    def __post_init__(self) -> None:
        self.grow = _non_negative_int(self.grow)


@dataclass
class _Stack:
    children: list[StackChild] = field(default_factory=list)
    spacing: int = 0
    padding: int = 0

    def __post_init__(self) -> None:
        self.spacing = _non_negative_int(self.spacing)
        self.padding = _non_negative_int(self.padding)

    def gap(self, n: int):
        """Set the number of cells between consecutive children."""
        self.spacing = _non_negative_int(n)
        return self

    def pad(self, n: int):
        """Inset the whole stack by *n* cells on every side."""
        self.padding = _non_negative_int(n)
        return self

    def child_grow(self, index: int, grow: int):
        """Set the growth weight of child *index* (ignored if out of range)."""
        if 0 <= index < len(self.children):
            self.children[index].grow = _non_negative_int(grow)
        return self


@dataclass
class VerticalStack(_Stack):
    """Children laid out top to bottom, sharing the height."""


@dataclass
class HorizontalStack(_Stack):
    """Children laid out left to right, sharing the width."""


@dataclass
class Overlay:
    """Children rendered into the same rectangle in declaration order."""

    children: list[Node] = field(default_factory=list)
    padding: int = 0

    def __post_init__(self) -> None:
        self.padding = _non_negative_int(self.padding)

    def pad(self, n: int) -> Overlay:
        self.padding = _non_negative_int(n)
        return self


Node = Union[Leaf, VerticalStack, HorizontalStack, Overlay]

_NODE_TYPES = (Leaf, VerticalStack, HorizontalStack, Overlay)


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def _as_node(child: Node | LeafFn) -> Node:
    if isinstance(child, _NODE_TYPES):
        return child
    if callable(child):
        return Leaf(child)
    raise TypeError(f"not a layout node or paint function: {child!r}")


def leaf(paint: LeafFn) -> Leaf:
    return Leaf(paint)


def vstack(
    children: Iterable[Node | LeafFn], *, gap: int = 0, pad: int = 0
) -> VerticalStack:
    return VerticalStack(
        [StackChild(_as_node(c)) for c in children], spacing=gap, padding=pad
    )


def hstack(
    children: Iterable[Node | LeafFn], *, gap: int = 0, pad: int = 0
) -> HorizontalStack:
    return HorizontalStack(
        [StackChild(_as_node(c)) for c in children], spacing=gap, padding=pad
    )


def overlay(children: Iterable[Node | LeafFn], *, pad: int = 0) -> Overlay:
    return Overlay([_as_node(c) for c in children], padding=pad)


# ---------------------------------------------------------------------------
# Space division
# ---------------------------------------------------------------------------


def split_length(length: int, weights: Sequence[object]) -> list[int]:
    """Divide *length* cells among children in proportion to *weights*.

    Each child gets ``floor(length * weight / total)``; the rounding
    remainder is handed out one cell at a time starting from the first
    child.  The result always sums to ``max(0, length)``.  An all-zero
    weight vector behaves as if every weight were 1.
    """
    if not weights:
        return []

    length = max(0, length)
    clean = [_non_negative_int(w) for w in weights]
    total = sum(clean)
    if total == 0:
        clean = [1] * len(clean)
        total = len(clean)

    sizes = [length * w // total for w in clean]
    leftover = length - sum(sizes)
    for i in range(len(sizes)):
        if leftover <= 0:
            break
        sizes[i] += 1
        leftover -= 1
    return sizes


# ---------------------------------------------------------------------------
# Evaluator
# ---------------------------------------------------------------------------


def render(node: Node, area: Rect, ctx: RenderContext) -> None:
    """Render *node* into *area*, recursing through stacks and overlays."""
    if isinstance(node, Leaf):
        node.paint(area, ctx)
    elif isinstance(node, VerticalStack):
        _render_stack(node, area, ctx, vertical=True)
    elif isinstance(node, HorizontalStack):
        _render_stack(node, area, ctx, vertical=False)
    elif isinstance(node, Overlay):
        inner = area.inset(node.padding)
        if inner.empty:
            return
        for child in node.children:
            render(child, inner, ctx)
    else:
        raise TypeError(f"cannot render {type(node).__name__!r} as a layout node")


def _render_stack(
    node: _Stack, area: Rect, ctx: RenderContext, *, vertical: bool
) -> None:
    inner = area.inset(node.padding)
    if inner.empty or not node.children:
        return

    count = len(node.children)
    length = inner.h if vertical else inner.w
    free = max(0, length - node.spacing * (count - 1))
    sizes = split_length(free, [c.grow for c in node.children])

    pos = inner.y if vertical else inner.x
    for child, size in zip(node.children, sizes):
        if size > 0:
            if vertical:
                rect = Rect(inner.x, pos, inner.w, size)
            else:
                rect = Rect(pos, inner.y, size, inner.h)
            render(child.node, rect, ctx)
        pos += size + node.spacing
