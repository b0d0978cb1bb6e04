# SPDX-FileCopyrightText: 2026 Lasath Fernando <devel@lasath.org>
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Entry point for running the daemon directly.

Usage:
    python -m wharf.daemon
    python -m wharf.daemon --system  # Use system bus (requires root/polkit)
"""

from __future__ import annotations

import asyncio
import argparse
import logging
import signal
import sys

from .config import load_config

logger = logging.getLogger(__name__)


async def main(bus_type: str = "session") -> None:
    """Run the Wharf D-Bus daemon."""
    from .service import WharfService

    config = load_config()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    service = WharfService(bus_type=bus_type, config=config)

    # Handle shutdown signals
    loop = asyncio.get_running_loop()
    shutdown_event = asyncio.Event()

    def handle_signal() -> None:
        logger.info("Shutting down...")
        shutdown_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, handle_signal)

    try:
        await service.start()

        # Wait for either disconnect or shutdown signal
        _, pending = await asyncio.wait(
            [
                asyncio.create_task(service.run()),
                asyncio.create_task(shutdown_event.wait()),
            ],
            return_when=asyncio.FIRST_COMPLETED,
        )

        # Cancel pending tasks
        for task in pending:
            task.cancel()

    finally:
        await service.stop()


def run() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Wharf D-Bus daemon")
    parser.add_argument(
        "--system",
        action="store_true",
        help="Use system bus instead of session bus",
    )
    args = parser.parse_args()

    bus_type = "system" if args.system else "session"

    try:
        asyncio.run(main(bus_type))
    except KeyboardInterrupt:
        pass
    except ValueError as e:
        print(f"wharf-daemon: invalid configuration: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    run()
