#!/usr/bin/env python3
"""X-ray agent CLI - watch the modality folder or test the server connection.

Usage:
    rayosx-agent run             Production mode
    rayosx-agent check           Test the connection to the server
"""

import argparse
import asyncio
import sys

from rayosx_agent import __version__
from rayosx_agent.exceptions import ConfigError
from rayosx_agent.services.diagnostics import check_connection
from rayosx_agent.services.scanner import DirectoryScanner
from rayosx_agent.services.upload import UploadClient
from rayosx_agent.settings import Settings, load_settings
from rayosx_agent.utils.logger import logger, setup_logging


async def run_agent(settings: Settings, once: bool = False) -> None:
    """Watch the folder until the process is stopped.

    Args:
        settings: Agent settings
        once: Scan a single time, wait for those uploads and return
    """
    logger.info(f"Server:     {settings.server_url}")
    logger.info(f"Folder:     {settings.watch_dir}")
    logger.info(f"Extensions: {', '.join(settings.extensions)}")

    async with UploadClient(
        settings.server_url,
        upload_path=settings.upload_path,
        status_path=settings.status_path,
        timeout=settings.request_timeout,
    ) as client:
        scanner = DirectoryScanner(settings, client)

        if not once:
            logger.info("Press Ctrl+C to stop")
            await scanner.run_forever()
            return

        dispatched = await scanner.scan_once()
        await scanner.join()
        counts = {state.value: n for state, n in scanner.tracker.counts().items() if n}
        logger.info(f"Single scan finished: {dispatched} file(s) dispatched {counts}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rayosx-agent",
        description="X-ray / DICOM agent - uploads new images from a folder to the server",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to the TOML configuration file (default: ./rayosx-agent.toml)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # run command
    run_parser = subparsers.add_parser("run", help="Watch the folder and upload new images")
    run_parser.add_argument(
        "--once", action="store_true", help="Scan once, wait for the uploads and exit"
    )

    # check command
    subparsers.add_parser("check", help="Test the connection to the server and exit")

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    command = args.command or "run"

    try:
        settings = load_settings(args.config)
    except ConfigError as e:
        logger.error(f"Could not load the configuration: {e}")
        sys.exit(1)

    try:
        setup_logging(
            level=settings.log_level,
            log_file=settings.log_file,
            rotation=settings.log_rotation,
            retention=settings.log_retention,
        )
    except (ValueError, OSError) as e:
        # bad rotation / retention strings or an unwritable log file
        logger.error(f"Could not set up logging: {e}")
        sys.exit(1)

    logger.info(f"X-ray agent {__version__} - DICOM/CR image monitor")

    if command == "check":
        reachable = asyncio.run(check_connection(settings))
        sys.exit(0 if reachable else 1)

    try:
        asyncio.run(run_agent(settings, once=getattr(args, "once", False)))
    except KeyboardInterrupt:
        logger.info("Agent stopped")
    except Exception as e:
        logger.error(f"Fatal error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
