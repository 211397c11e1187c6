"""Round-trip time probe using the cursor-position report.

``ESC[6n`` asks the terminal where the cursor is; the terminal emulator on
the user's side answers ``ESC[<row>;<col>R``.  The time between sending the
query and reading the answer covers the whole path (SSH, remote shell,
local terminal), which is what the redraw rate should adapt to.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from pi.grid.input import is_cursor_report

if TYPE_CHECKING:
    from pi.grid.terminal import Terminal

logger = logging.getLogger(__name__)

# Home the cursor first so the reply is ESC[1;1R, which no key sends.  The
# renderer positions the cursor before every run, so moving it is harmless.
_CURSOR_QUERY = "\x1b[H\x1b[6n"


async def measure_rtt(terminal: Terminal, timeout: float = 0.5) -> float | None:
    """Return the round-trip time in milliseconds, or ``None`` on timeout.

    The terminal must be delivering input (see ``Terminal.on_data``) for a
    reply to be seen.
    """
    loop = asyncio.get_running_loop()
    reply: asyncio.Future[float] = loop.create_future()
    started = loop.time()

    def _on_data(data: str) -> None:
        if not reply.done() and is_cursor_report(data):
            reply.set_result((loop.time() - started) * 1000.0)

    unsubscribe = terminal.on_data(_on_data)
    try:
        terminal.write(_CURSOR_QUERY)
        rtt = await asyncio.wait_for(reply, timeout)
    except asyncio.TimeoutError:
        logger.debug("no cursor report within %.0fms", timeout * 1000)
        return None
    finally:
        unsubscribe()

    logger.debug("rtt %.1fms", rtt)
    return rtt
