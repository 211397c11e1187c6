"""Tests for the App shell driving a VirtualTerminal."""

from __future__ import annotations

import asyncio
import io
import os
import signal
from typing import Callable

import pytest

from pi.grid.app import App
from pi.grid.cells import Style
from pi.grid.config import GridConfig
from pi.grid.input import KeyEvent
from pi.grid.layout import Rect, RenderContext, hstack, vstack
from pi.grid.renderer import CLEAR_AND_HOME
from pi.grid.terminal import ProcessTerminal

from .virtual_terminal import VirtualTerminal


def _label(text: str) -> Callable[[Rect, RenderContext], None]:
    def paint(area: Rect, ctx: RenderContext) -> None:
        ctx.painter.text(area.x, area.y, text, Style(fg=2))

    return paint


def _make_app(root, rows: int = 3, columns: int = 8, **config) -> tuple[App, VirtualTerminal]:
    term = VirtualTerminal(rows=rows, columns=columns)
    cfg = GridConfig(adaptive_fps=False, initial_fps=1000, **config)
    return App(root, term, config=cfg), term


async def _wait_for(predicate: Callable[[], bool], timeout: float = 1.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached")
        await asyncio.sleep(0.005)


class TestDraw:
    def test_draw_renders_layout(self) -> None:
        app, term = _make_app(vstack([_label("top"), hstack([_label("l"), _label("r")])]))
        app.draw()
        assert term.screen() == ["top     ", "        ", "l   r   "]

    def test_second_draw_writes_only_changes(self) -> None:
        words = ["one"]
        app, term = _make_app(vstack([lambda a, c: c.painter.text(0, 0, words[0])]))
        app.draw()
        term.clear_buffer()
        words[0] = "ore"
        app.draw()
        assert CLEAR_AND_HOME not in term.output
        assert "\x1b[1;2Hr" in term.output

    def test_request_redraw_without_loop_draws(self) -> None:
        app, term = _make_app(vstack([_label("x")]))
        app.request_redraw()
        assert term.screen()[0].startswith("x")


class TestRun:
    @pytest.mark.asyncio
    async def test_run_paints_and_exit_restores(self) -> None:
        app, term = _make_app(vstack([_label("hello")]))
        task = asyncio.create_task(app.run())
        await _wait_for(lambda: app.scheduler.draw_count == 1)
        assert term.installed
        assert term.screen()[0] == "hello   "

        app.exit()
        await asyncio.wait_for(task, 1.0)
        assert not term.installed
        assert not app.input.installed
        assert term._data_handlers == []
        assert term._resize_handlers == []

    @pytest.mark.asyncio
    async def test_ctrl_c_exits(self) -> None:
        app, term = _make_app(vstack([_label("x")]))
        task = asyncio.create_task(app.run())
        await _wait_for(lambda: term.installed)
        term.simulate_input("\x03")
        await asyncio.wait_for(task, 1.0)
        assert not term.installed

    @pytest.mark.asyncio
    async def test_key_handlers_receive_events(self) -> None:
        app, term = _make_app(vstack([_label("x")]))
        seen: list[KeyEvent] = []
        task = asyncio.create_task(app.run())
        await _wait_for(lambda: term.installed)
        app.on_key(seen.append)
        term.simulate_input("\x1b[B")
        app.exit()
        await asyncio.wait_for(task, 1.0)
        assert [e.name for e in seen] == ["down"]

    @pytest.mark.asyncio
    async def test_resize_repaints_at_new_size(self) -> None:
        app, term = _make_app(vstack([_label("hi")]), rows=2, columns=4)
        task = asyncio.create_task(app.run())
        await _wait_for(lambda: app.scheduler.draw_count == 1)

        term.clear_buffer()
        term.simulate_resize(rows=3, columns=6)
        await _wait_for(lambda: app.scheduler.draw_count == 2)
        assert term.output.startswith(CLEAR_AND_HOME)
        assert term.screen() == ["hi    ", "      ", "      "]
        assert app.renderer.full_redraws == 2

        app.exit()
        await asyncio.wait_for(task, 1.0)

    @pytest.mark.asyncio
    async def test_draw_error_restores_terminal_and_propagates(self) -> None:
        def broken(area: Rect, ctx: RenderContext) -> None:
            raise RuntimeError("paint failed")

        app, term = _make_app(vstack([broken]))
        with pytest.raises(RuntimeError, match="paint failed"):
            await asyncio.wait_for(app.run(), 1.0)
        assert not term.installed

    @pytest.mark.asyncio
    async def test_probe_records_rtt(self) -> None:
        term = VirtualTerminal(rows=2, columns=4)
        term.answer_cursor_query = True
        app = App(vstack([_label("x")]), term, config=GridConfig(initial_fps=1000))
        task = asyncio.create_task(app.run())
        await _wait_for(lambda: app.scheduler.max_fps == 30.0)
        assert app.last_rtt is not None

        app.exit()
        await asyncio.wait_for(task, 1.0)

    @pytest.mark.asyncio
    async def test_failed_install_still_restores(self) -> None:
        class BrokenTerminal(VirtualTerminal):
            def install(self) -> None:
                super().install()
                raise OSError("tty gone")

        term = BrokenTerminal(rows=2, columns=4)
        app = App(vstack([_label("x")]), term, config=GridConfig(adaptive_fps=False))
        with pytest.raises(OSError, match="tty gone"):
            await asyncio.wait_for(app.run(), 1.0)
        assert not term.installed
        assert term._data_handlers == []

    @pytest.mark.asyncio
    async def test_failed_process_terminal_install_restores_screen(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        read_fd, write_fd = os.pipe()
        stdin = os.fdopen(read_fd, "r")
        stdout = io.StringIO()
        term = ProcessTerminal(stdin=stdin, stdout=stdout, write_log="")

        def no_signals(*args: object) -> None:
            raise ValueError("signal only works in main thread")

        monkeypatch.setattr(signal, "signal", no_signals)
        app = App(vstack([_label("x")]), term, config=GridConfig(adaptive_fps=False))
        try:
            with pytest.raises(ValueError):
                await asyncio.wait_for(app.run(), 1.0)
        finally:
            stdin.close()
            os.close(write_fd)
        assert not term.installed
        assert "\x1b[?1049l" in stdout.getvalue()

    @pytest.mark.asyncio
    async def test_key_handlers_kept_across_runs(self) -> None:
        app, term = _make_app(vstack([_label("x")]))
        seen: list[str] = []
        app.on_key(lambda e: seen.append(e.name))

        for key in ("a", "b"):
            task = asyncio.create_task(app.run())
            await _wait_for(lambda: term.installed)
            term.simulate_input(key)
            app.exit()
            await asyncio.wait_for(task, 1.0)
        assert seen == ["a", "b"]
