"""Entry point for the pi-grid demo dashboard."""

from __future__ import annotations

import argparse
import asyncio
import logging


def main() -> None:
    parser = argparse.ArgumentParser(description="pi-grid: terminal dashboard demo")
    parser.add_argument(
        "--log-level", default="info", choices=["debug", "info", "warning", "error"]
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="Write logs to this file (stdout belongs to the UI)",
    )
    parser.add_argument(
        "--no-probe",
        action="store_true",
        help="Do not measure round-trip time; keep a fixed frame rate",
    )
    parser.add_argument(
        "--fps", type=float, default=None, help="Initial frame-rate ceiling"
    )
    args = parser.parse_args()

    from pi.grid.config import GridConfig

    config = GridConfig.from_env()
    if args.log_file:
        config.log_file = args.log_file
    if args.no_probe:
        config.adaptive_fps = False
    if args.fps is not None:
        if args.fps <= 0:
            parser.error("--fps must be positive")
        config.initial_fps = args.fps

    if config.log_file:
        logging.basicConfig(
            filename=config.log_file,
            level=getattr(logging, args.log_level.upper()),
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        )
    else:
        logging.disable(logging.CRITICAL)

    from pi.grid.demo import Dashboard

    dashboard = Dashboard(config)
    asyncio.run(dashboard.run())


if __name__ == "__main__":
    main()
