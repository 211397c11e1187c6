"""Terminal abstraction for full-screen rendering.

Provides a ``Terminal`` protocol (the surface the renderer, input backend
and round-trip probe depend on) and a concrete ``ProcessTerminal`` that
drives the controlling TTY: raw mode, the alternate screen, cursor
visibility, SIGWINCH resize notification and asyncio-based stdin reading.
"""

from __future__ import annotations

import asyncio
import atexit
import logging
import os
import signal
import sys
import termios
import tty
from typing import Callable, Iterable, Protocol, TextIO

from pi.grid.input import SequenceBuffer

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# ANSI escape constants
# ---------------------------------------------------------------------------

_ALT_SCREEN_ENABLE = "\x1b[?1049h"
_ALT_SCREEN_DISABLE = "\x1b[?1049l"
_HIDE_CURSOR = "\x1b[?25l"
_SHOW_CURSOR = "\x1b[?25h"
_RESET_SGR = "\x1b[0m"
_CLEAR_SCREEN = "\x1b[2J\x1b[H"

_DEFAULT_COLUMNS = 80
_DEFAULT_ROWS = 24


# ---------------------------------------------------------------------------
# Terminal protocol
# ---------------------------------------------------------------------------


class Terminal(Protocol):
    """Interface for terminal I/O operations."""

    @property
    def columns(self) -> int: ...

    @property
    def rows(self) -> int: ...

    def write(self, data: str) -> None: ...

    def batch(self, chunks: Iterable[str]) -> None: ...

    def on_resize(self, handler: Callable[[], None]) -> Callable[[], None]: ...

    def on_data(self, handler: Callable[[str], None]) -> Callable[[], None]: ...

    def install(self) -> None: ...

    def uninstall(self) -> None: ...


def _subscribe(handlers: list, handler: Callable) -> Callable[[], None]:
    handlers.append(handler)

    def unsubscribe() -> None:
        try:
            handlers.remove(handler)
        except ValueError:
            pass

    return unsubscribe


# ---------------------------------------------------------------------------
# ProcessTerminal implementation
# ---------------------------------------------------------------------------


class ProcessTerminal:
    """Terminal backed by the process's stdin/stdout.

    ``install`` switches to raw mode and the alternate screen and hides the
    cursor; ``uninstall`` undoes all of it.  ``uninstall`` is idempotent and
    is also registered with :mod:`atexit`, so the user's terminal is
    restored on every way out of the process that runs Python cleanup.
    The instance can be used as a context manager for the same effect.
    """

    def __init__(
        self,
        *,
        stdin: TextIO | None = None,
        stdout: TextIO | None = None,
        write_log: str | None = None,
    ) -> None:
        self._stdin = stdin if stdin is not None else sys.stdin
        self._stdout = stdout if stdout is not None else sys.stdout
        self._installed: bool = False
        self._resize_handlers: list[Callable[[], None]] = []
        self._data_handlers: list[Callable[[str], None]] = []
        self._original_termios: list | None = None
        self._prev_sigwinch_handler: signal.Handlers | None = None
        self._reader_loop: asyncio.AbstractEventLoop | None = None
        self._buffer = SequenceBuffer(self._emit_data)
        self._write_log_path: str = (
            write_log
            if write_log is not None
            else os.environ.get("PI_GRID_WRITE_LOG", "")
        )

    # -- properties ---------------------------------------------------------

    @property
    def installed(self) -> bool:
        return self._installed

    @property
    def columns(self) -> int:
        try:
            return os.get_terminal_size(self._stdout.fileno()).columns
        except (ValueError, OSError):
            return _DEFAULT_COLUMNS

    @property
    def rows(self) -> int:
        try:
            return os.get_terminal_size(self._stdout.fileno()).lines
        except (ValueError, OSError):
            return _DEFAULT_ROWS

    # -- install / uninstall ------------------------------------------------

    def install(self) -> None:
        """Enter raw mode and the alternate screen, start reading stdin."""
        if self._installed:
            return
        self._installed = True
        atexit.register(self.uninstall)

        try:
            fd = self._stdin.fileno()
            if os.isatty(fd):
                self._original_termios = termios.tcgetattr(fd)
                tty.setraw(fd)

            self.write(_ALT_SCREEN_ENABLE + _HIDE_CURSOR + _RESET_SGR + _CLEAR_SCREEN)

            prev_handler = signal.getsignal(signal.SIGWINCH)
            signal.signal(signal.SIGWINCH, self._on_sigwinch)
            self._prev_sigwinch_handler = prev_handler

            self._start_reader()
        except BaseException:
            # Undo whatever part of the setup already happened
            self.uninstall()
            raise
        logger.debug("terminal installed (%dx%d)", self.columns, self.rows)

    def uninstall(self) -> None:
        """Restore the terminal.  Every step runs even if an earlier one fails."""
        if not self._installed:
            return
        self._installed = False
        atexit.unregister(self.uninstall)

        self._stop_reader()
        self._buffer.clear()

        if self._prev_sigwinch_handler is not None:
            signal.signal(signal.SIGWINCH, self._prev_sigwinch_handler)
            self._prev_sigwinch_handler = None

        try:
            self.write(_RESET_SGR + _SHOW_CURSOR + _ALT_SCREEN_DISABLE)
        except OSError:
            logger.warning("could not reset terminal attributes", exc_info=True)

        if self._original_termios is not None:
            try:
                termios.tcsetattr(
                    self._stdin.fileno(), termios.TCSADRAIN, self._original_termios
                )
            except (termios.error, OSError):
                logger.warning("could not restore terminal mode", exc_info=True)
            self._original_termios = None
        logger.debug("terminal restored")

    def __enter__(self) -> ProcessTerminal:
        self.install()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.uninstall()

    # -- output -------------------------------------------------------------

    def write(self, data: str) -> None:
        """Write *data* to stdout and flush.  ``OSError`` propagates."""
        self._stdout.write(data)
        self._stdout.flush()

        if self._write_log_path:
            try:
                with open(self._write_log_path, "a", encoding="utf-8") as f:
                    f.write(data)
            except OSError:
                logger.debug("write log unavailable: %s", self._write_log_path)

    def batch(self, chunks: Iterable[str]) -> None:
        """Join *chunks* and send them in one write."""
        self.write("".join(chunks))

    def clear(self) -> None:
        self.write(_CLEAR_SCREEN)

    def hide_cursor(self) -> None:
        self.write(_HIDE_CURSOR)

    def show_cursor(self) -> None:
        self.write(_SHOW_CURSOR)

    # -- subscriptions ------------------------------------------------------

    def on_resize(self, handler: Callable[[], None]) -> Callable[[], None]:
        """Call *handler* after every size change; returns an unsubscribe."""
        return _subscribe(self._resize_handlers, handler)

    def on_data(self, handler: Callable[[str], None]) -> Callable[[], None]:
        """Call *handler* with every complete input sequence."""
        return _subscribe(self._data_handlers, handler)

    # -- private: stdin reading ---------------------------------------------

    def _start_reader(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("no running event loop, stdin is not read")
            return
        loop.add_reader(self._stdin.fileno(), self._on_stdin_readable)
        self._reader_loop = loop

    def _stop_reader(self) -> None:
        if self._reader_loop is None:
            return
        try:
            self._reader_loop.remove_reader(self._stdin.fileno())
        except (RuntimeError, ValueError, OSError):
            logger.debug("stdin reader already gone")
        self._reader_loop = None

    def _on_stdin_readable(self) -> None:
        try:
            raw = os.read(self._stdin.fileno(), 4096)
        except OSError:
            logger.debug("stdin read failed", exc_info=True)
            return
        if raw:
            self._buffer.feed(raw.decode("utf-8", errors="replace"))

    def _emit_data(self, data: str) -> None:
        for handler in list(self._data_handlers):
            handler(data)

    # -- private: SIGWINCH --------------------------------------------------

    def _on_sigwinch(self, signum: int, frame: object) -> None:
        for handler in list(self._resize_handlers):
            handler()
