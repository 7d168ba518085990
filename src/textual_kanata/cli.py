"""CLI entry point for kanata-status: auto-generates default config and launches the TUI."""

import argparse
import asyncio
import dataclasses
import logging
import signal
import sys
from pathlib import Path

from kanata_status.config import DEFAULT_CONFIG_PATH, StatusConfig, load_status_config, parse_port
from kanata_status.display import LoggingDisplay
from kanata_status.errors import ConfigError
from kanata_status.notifier import LoggingNotifier
from textual_kanata import __version__

logger = logging.getLogger(__name__)

# Default config template for a kanata user service
DEFAULT_CONFIG_TEMPLATE = """\
# Auto-generated config.toml for kanata-status

[kanata]
# Start kanata with --port to enable its TCP server
host = "127.0.0.1"
port = 10000

[systemd]
# Reconnect automatically when this unit restarts
service-name = "kanata.service"
# Escaped object path suffix; derived from service-name when omitted
# dbus-name = "kanata_2eservice"
enabled = true
"""


def create_default_config(config_path: Path) -> bool:
    """
    Create a default config.toml if it doesn't exist.

    Args:
        config_path: Path where config should be created

    Returns:
        True if config was created, False if it already exists

    Raises:
        PermissionError: If unable to write to the directory
        OSError: If other file system errors occur
    """
    if config_path.exists():
        return False

    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(DEFAULT_CONFIG_TEMPLATE)
    return True


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        prog="kanata-status",
        description="Show the active kanata layer and reconnect when kanata restarts.",
        epilog="Examples:\n"
        "  kanata-status                     # Auto-create config and launch the TUI\n"
        "  kanata-status --port 5829         # Override the kanata port\n"
        "  kanata-status --headless -v       # Log layer changes instead of drawing them",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "-c",
        "--config",
        default=str(DEFAULT_CONFIG_PATH),
        help=f"Path to config file (default: {DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument("--host", help="Override the kanata host from the config")
    parser.add_argument("--port", type=int, help="Override the kanata port from the config")
    parser.add_argument(
        "--headless",
        action="store_true",
        help="Run without the TUI and log layer changes",
    )
    parser.add_argument(
        "--no-service-monitor",
        action="store_true",
        help="Do not reconnect automatically when the systemd unit restarts",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    return parser.parse_args(argv)


def apply_overrides(config: StatusConfig, args: argparse.Namespace) -> StatusConfig:
    """Apply --host / --port to a loaded config."""
    target = config.target
    if args.host:
        target = dataclasses.replace(target, host=args.host)
    if args.port is not None:
        target = dataclasses.replace(target, port=parse_port(args.port))
    return dataclasses.replace(config, target=target)


def configure_logging(verbose: bool, headless: bool) -> None:
    """Log to stderr in headless mode; the TUI owns the terminal otherwise."""
    level = logging.DEBUG if verbose else logging.INFO
    if headless:
        logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    for name in ("kanata_status", "textual_kanata"):
        logging.getLogger(name).setLevel(level)


async def run_headless(config: StatusConfig, enable_service_monitor: bool) -> None:
    """Track the layer without a UI until SIGINT or SIGTERM."""
    from textual_kanata.controller import KanataStatusController

    controller = KanataStatusController(
        config,
        display=LoggingDisplay(),
        notifier=LoggingNotifier(),
        enable_service_monitor=enable_service_monitor,
    )
    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_event.set)

    controller.attach(loop)
    try:
        await stop_event.wait()
    finally:
        await controller.detach()


def main(argv: list[str] | None = None) -> None:
    """
    Main entry point for kanata-status CLI.

    Handles:
    - Argument parsing
    - Auto-creation of the default config
    - Launching the TUI or the headless loop
    - Error handling and exit codes
    """
    args = parse_args(argv)
    configure_logging(args.verbose, args.headless)

    config_path = Path(args.config).expanduser().resolve()

    try:
        if create_default_config(config_path):
            print(f"Created default config at: {config_path}")

        config = apply_overrides(load_status_config(config_path), args)
        enable_monitor = not args.no_service_monitor

        if args.headless:
            asyncio.run(run_headless(config, enable_monitor))
        else:
            from textual_kanata.app import KanataStatusApp

            app = KanataStatusApp(config, enable_service_monitor=enable_monitor)
            app.run()

    except KeyboardInterrupt:
        sys.exit(130)
    except ConfigError as e:
        print(f"Error: Invalid config: {e}", file=sys.stderr)
        sys.exit(2)
    except (PermissionError, OSError) as e:
        print(f"Error: Failed to create config: {e}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
