"""Runtime configuration, read from ``PI_GRID_*`` environment variables."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping

logger = logging.getLogger(__name__)

_FALSE_VALUES = ("0", "false", "no", "off")


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("ignoring %s=%r: not a number", name, raw)
        return default
    if not value > 0:
        logger.warning("ignoring %s=%r: must be positive", name, raw)
        return default
    return value


def _env_flag(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name, "").strip().lower()
    if not raw:
        return default
    return raw not in _FALSE_VALUES


@dataclass
class GridConfig:
    """Settings for the redraw loop and terminal backend."""

    # Seconds between round-trip probes
    probe_interval: float = 5.0
    # Seconds to wait for a cursor-position reply
    probe_timeout: float = 0.25
    # Frame-rate ceiling before the first measurement
    initial_fps: float = 20.0
    adaptive_fps: bool = True
    # Copy of everything written to the terminal, for debugging
    write_log: str = ""
    log_file: str = ""

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> GridConfig:
        if env is None:
            env = os.environ
        defaults = cls()
        return cls(
            probe_interval=_env_float(
                env, "PI_GRID_PROBE_INTERVAL", defaults.probe_interval
            ),
            probe_timeout=_env_float(
                env, "PI_GRID_PROBE_TIMEOUT", defaults.probe_timeout
            ),
            initial_fps=_env_float(env, "PI_GRID_INITIAL_FPS", defaults.initial_fps),
            adaptive_fps=_env_flag(env, "PI_GRID_ADAPTIVE_FPS", defaults.adaptive_fps),
            write_log=env.get("PI_GRID_WRITE_LOG", defaults.write_log),
            log_file=env.get("PI_GRID_LOG_FILE", defaults.log_file),
        )
