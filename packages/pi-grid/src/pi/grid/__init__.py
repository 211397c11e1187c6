"""pi-grid: cell-grid terminal rendering with differential updates."""

# Application shell
from pi.grid.app import App

# Cell grid
from pi.grid.cells import BLANK, Cell, Grid, Style

# Configuration
from pi.grid.config import GridConfig

# Keyboard input
from pi.grid.input import InputBackend, KeyEvent, SequenceBuffer, decode_key

# Layout
from pi.grid.layout import (
    HorizontalStack,
    Leaf,
    Overlay,
    Rect,
    RenderContext,
    StackChild,
    VerticalStack,
    hstack,
    leaf,
    overlay,
    render,
    split_length,
    vstack,
)

# Drawing primitives
from pi.grid.painter import Painter

# Differential rendering
from pi.grid.renderer import DiffRenderer, Run, diff_grids, sgr

# Round-trip probe
from pi.grid.rtt import measure_rtt

# Redraw scheduling
from pi.grid.scheduler import Scheduler, fps_for_rtt

# Terminal interface and implementation
from pi.grid.terminal import ProcessTerminal, Terminal

__all__ = [
    # App
    "App",
    # Cells
    "BLANK",
    "Cell",
    "Grid",
    "Style",
    # Config
    "GridConfig",
    # Input
    "InputBackend",
    "KeyEvent",
    "SequenceBuffer",
    "decode_key",
    # Layout
    "HorizontalStack",
    "Leaf",
    "Overlay",
    "Rect",
    "RenderContext",
    "StackChild",
    "VerticalStack",
    "hstack",
    "leaf",
    "overlay",
    "render",
    "split_length",
    "vstack",
    # Painter
    "Painter",
    # Renderer
    "DiffRenderer",
    "Run",
    "diff_grids",
    "sgr",
    # RTT
    "measure_rtt",
    # Scheduler
    "Scheduler",
    "fps_for_rtt",
    # Terminal
    "ProcessTerminal",
    "Terminal",
]
