"""Keyboard input: splitting raw stdin data and decoding key events.

Terminals deliver escape sequences in arbitrary chunks, so raw data first
goes through a :class:`SequenceBuffer` that emits one complete sequence at a
time.  :func:`decode_key` then maps a sequence to a normalized
:class:`KeyEvent`, and :class:`InputBackend` fans those out to subscribers.
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from pi.grid.terminal import Terminal

logger = logging.getLogger(__name__)

ESC = "\x1b"

# Cursor-position report: ESC [ row ; col R (answer to ESC [ 6 n)
CURSOR_REPORT_RE = re.compile(r"^\x1b\[(\d+);(\d+)R$")


def is_cursor_report(seq: str) -> bool:
    """Return ``True`` if *seq* is a cursor-position report.

    xterm sends F3 with modifiers as ``ESC [ 1 ; <mod> R`` (``mod >= 2``),
    which has the same shape as a report for row 1.  Those are treated as
    keys; a report from column 1 is never ambiguous.
    """
    m = CURSOR_REPORT_RE.match(seq)
    if m is None:
        return False
    return not (m.group(1) == "1" and int(m.group(2)) >= 2)


# ---------------------------------------------------------------------------
# Sequence splitting
# ---------------------------------------------------------------------------


def _sequence_length(data: str, start: int) -> int | None:
    """Length of the sequence starting at ``data[start]``.

    Returns ``None`` when the data ends in the middle of an escape sequence.
    """
    if data[start] != ESC:
        return 1
    end = len(data)
    if start + 1 >= end:
        return None

    kind = data[start + 1]
    if kind == "[":
        # CSI: parameters then a final byte in 0x40-0x7E
        for i in range(start + 2, end):
            if 0x40 <= ord(data[i]) <= 0x7E:
                return i - start + 1
        return None
    if kind == "O":
        # SS3: exactly one more character
        return 3 if start + 2 < end else None
    if kind == "]":
        # OSC: terminated by BEL or ST
        for i in range(start + 2, end):
            if data[i] == "\x07":
                return i - start + 1
            if data[i] == ESC and i + 1 < end and data[i + 1] == "\\":
                return i - start + 2
        return None
    # ESC + one character (meta/alt)
    return 2


def split_sequences(data: str) -> tuple[list[str], str]:
    """Split *data* into complete sequences plus an incomplete tail."""
    sequences: list[str] = []
    pos = 0
    while pos < len(data):
        length = _sequence_length(data, pos)
        if length is None:
            return sequences, data[pos:]
        sequences.append(data[pos : pos + length])
        pos += length
    return sequences, ""


class SequenceBuffer:
    """Accumulates raw input and emits complete sequences.

    A lone trailing ``ESC`` (or any unfinished sequence) is held back for
    *timeout* seconds in case the rest arrives in the next chunk; after that
    it is emitted as-is, which is how a bare Escape key press gets through.
    """

    def __init__(
        self, on_sequence: Callable[[str], None], *, timeout: float = 0.01
    ) -> None:
        self._on_sequence = on_sequence
        self._timeout = timeout
        self._pending: str = ""
        self._timer: asyncio.TimerHandle | None = None

    @property
    def pending(self) -> str:
        return self._pending

    def feed(self, data: str) -> None:
        self._cancel_timer()
        sequences, self._pending = split_sequences(self._pending + data)
        for seq in sequences:
            self._on_sequence(seq)

        if not self._pending:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No event loop to wait on: give up on the rest of the sequence
            self.flush()
            return
        self._timer = loop.call_later(self._timeout, self.flush)

    def flush(self) -> None:
        """Emit whatever is buffered, complete or not."""
        self._cancel_timer()
        if self._pending:
            data, self._pending = self._pending, ""
            self._on_sequence(data)

    def clear(self) -> None:
        self._cancel_timer()
        self._pending = ""

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None


# ---------------------------------------------------------------------------
# Key decoding
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class KeyEvent:
    """A normalized key press."""

    name: str
    ctrl: bool = False
    meta: bool = False
    shift: bool = False
    sequence: str = ""


# Final byte of ``CSI [1;mod] X`` / ``SS3 X`` sequences
_CSI_LETTER_KEYS = {
    "A": "up",
    "B": "down",
    "C": "right",
    "D": "left",
    "E": "clear",
    "F": "end",
    "H": "home",
    "P": "f1",
    "Q": "f2",
    "R": "f3",
    "S": "f4",
}

# Number of ``CSI n [;mod] ~`` sequences
_CSI_TILDE_KEYS = {
    "1": "home",
    "2": "insert",
    "3": "delete",
    "4": "end",
    "5": "pageup",
    "6": "pagedown",
    "7": "home",
    "8": "end",
    "11": "f1",
    "12": "f2",
    "13": "f3",
    "14": "f4",
    "15": "f5",
    "17": "f6",
    "18": "f7",
    "19": "f8",
    "20": "f9",
    "21": "f10",
    "23": "f11",
    "24": "f12",
}

_SINGLE_KEYS = {
    "\r": "return",
    "\n": "enter",
    "\t": "tab",
    "\x7f": "backspace",
    "\x08": "backspace",
    ESC: "escape",
    " ": "space",
}

_CSI_RE = re.compile(r"^\x1b\[(\d*)(?:;(\d+))?([A-Za-z~])$")
_SS3_RE = re.compile(r"^\x1bO([A-Z])$")


def _with_modifier(name: str, modifier: str | None, seq: str) -> KeyEvent:
    # xterm modifier parameter: 1 + (shift | alt << 1 | ctrl << 2)
    bits = int(modifier) - 1 if modifier else 0
    return KeyEvent(
        name=name,
        shift=bool(bits & 1),
        meta=bool(bits & 2),
        ctrl=bool(bits & 4),
        sequence=seq,
    )


def _decode_plain(ch: str, seq: str, meta: bool) -> KeyEvent | None:
    name = _SINGLE_KEYS.get(ch)
    if name is not None:
        return KeyEvent(name=name, meta=meta, sequence=seq)
    code = ord(ch)
    if 1 <= code <= 26:
        return KeyEvent(name=chr(code + 96), ctrl=True, meta=meta, sequence=seq)
    if ch.isprintable():
        return KeyEvent(
            name=ch.lower(),
            shift=ch.isupper(),
            meta=meta,
            sequence=seq,
        )
    return None


def decode_key(seq: str) -> KeyEvent | None:
    """Map one complete input sequence to a :class:`KeyEvent`.

    Returns ``None`` for terminal replies (cursor-position reports) and for
    sequences that do not correspond to a key.
    """
    if not seq:
        return None

    if len(seq) == 1:
        return _decode_plain(seq, seq, meta=False)

    if seq == "\x1b[Z":
        return KeyEvent(name="tab", shift=True, sequence=seq)

    if is_cursor_report(seq):
        return None

    m = _CSI_RE.match(seq)
    if m:
        number, modifier, final = m.groups()
        if final == "~":
            name = _CSI_TILDE_KEYS.get(number)
        else:
            name = _CSI_LETTER_KEYS.get(final)
        if name is None:
            return None
        return _with_modifier(name, modifier, seq)

    m = _SS3_RE.match(seq)
    if m:
        name = _CSI_LETTER_KEYS.get(m.group(1))
        if name is None:
            return None
        return KeyEvent(name=name, sequence=seq)

    if len(seq) == 2 and seq[0] == ESC:
        return _decode_plain(seq[1], seq, meta=True)

    return None


# ---------------------------------------------------------------------------
# InputBackend
# ---------------------------------------------------------------------------

KeyHandler = Callable[[KeyEvent], None]


class InputBackend:
    """Subscribes to terminal input and publishes decoded key events."""

    def __init__(self, terminal: Terminal) -> None:
        self.terminal = terminal
        self._handlers: list[KeyHandler] = []
        self._unsubscribe: Callable[[], None] | None = None

    @property
    def installed(self) -> bool:
        return self._unsubscribe is not None

    def install(self) -> None:
        if self._unsubscribe is not None:
            return
        self._unsubscribe = self.terminal.on_data(self._on_data)

    def uninstall(self) -> None:
        if self._unsubscribe is None:
            return
        self._unsubscribe()
        self._unsubscribe = None

    def on(self, handler: KeyHandler) -> Callable[[], None]:
        """Subscribe *handler*; returns a function that unsubscribes it."""
        self._handlers.append(handler)

        def unsubscribe() -> None:
            try:
                self._handlers.remove(handler)
            except ValueError:
                pass

        return unsubscribe

    def _on_data(self, data: str) -> None:
        event = decode_key(data)
        if event is None:
            logger.debug("ignoring input sequence %r", data)
            return
        for handler in list(self._handlers):
            handler(event)
