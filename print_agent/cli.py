"""
Command line entry point for the print agent.

    print-agent run            # poll the queue and print (default)
    print-agent init-config    # write a starter config.json
    print-agent preview FILE   # render an invoice JSON to plain text, no printer needed
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import signal
import sys
import threading
from typing import List, Optional

from print_agent import __version__, create_agent, create_app
from print_agent.core.config import get_config_path, load_config, sample_config, save_config
from print_agent.core.logging import configure_logging
from print_agent.errors import ConfigError, RenderError
from print_agent.jobs.poller import Poller
from print_agent.printing.render import render_receipt, to_plain_text

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="print-agent",
        description="Poll a job queue for invoice print jobs and print them on a receipt printer",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--config",
        default=None,
        help=f"Path to config.json (default: {get_config_path()})",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    sub = parser.add_subparsers(dest="command")

    run = sub.add_parser("run", help="Start polling and printing (default)")
    run.add_argument(
        "--health-port",
        type=int,
        default=None,
        help="Serve /healthz on this port (default: config health_port, disabled if unset)",
    )
    run.add_argument(
        "--health-host",
        default=os.environ.get("PRINTAGENT_HEALTH_HOST", "127.0.0.1"),
        help="Host for the health endpoint (default: 127.0.0.1)",
    )

    init = sub.add_parser("init-config", help="Write a sample config file")
    init.add_argument("--force", action="store_true", help="Overwrite an existing config")

    preview = sub.add_parser("preview", help="Render an invoice JSON file as plain text")
    preview.add_argument("file", help="JSON file holding a job or its print_data")

    args = parser.parse_args(argv)
    if args.command is None:
        args.command = "run"
        args.health_port = None
        args.health_host = os.environ.get("PRINTAGENT_HEALTH_HOST", "127.0.0.1")
    return args


def _log_thread_exception(hook_args: threading.ExceptHookArgs) -> None:
    logger.error(
        "Uncaught exception in thread %s",
        getattr(hook_args.thread, "name", "?"),
        exc_info=(hook_args.exc_type, hook_args.exc_value, hook_args.exc_traceback),
    )


def shutdown_handler(poller: Poller):
    """
    Signal handler that asks the poller to stop without waiting for it;
    cmd_run's bounded join does the waiting.
    """

    def _handle_signal(signum, frame):
        logger.info("Received signal %s, shutting down", signum)
        poller.stop(timeout=0)

    return _handle_signal


def cmd_init_config(args: argparse.Namespace) -> int:
    path = args.config or get_config_path()
    if os.path.exists(path) and not args.force:
        print(f"Config already exists at {path} (use --force to overwrite)", file=sys.stderr)
        return 1
    written = save_config(sample_config(), path=path)
    print(f"Sample config written to {written}. Update it and start the agent.")
    return 0


def cmd_preview(args: argparse.Namespace) -> int:
    try:
        with open(args.file, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        print(f"Cannot read {args.file}: {e}", file=sys.stderr)
        return 1
    if isinstance(data, dict) and isinstance(data.get("print_data"), dict):
        data = data["print_data"]
    try:
        directives = render_receipt(data)
    except RenderError as e:
        print(f"Cannot render {args.file}: {e}", file=sys.stderr)
        return 1
    sys.stdout.write(to_plain_text(directives))
    return 0


def cmd_run(args: argparse.Namespace) -> int:
    try:
        config = load_config(args.config)
    except ConfigError as e:
        configure_logging()
        logger.error("%s", e)
        return 2

    configure_logging(
        log_file=config.log_file,
        error_log_file=config.error_log_file,
        level=logging.DEBUG if args.debug else logging.INFO,
    )
    threading.excepthook = _log_thread_exception

    try:
        poller = create_agent(config)
    except ConfigError as e:
        logger.error("%s", e)
        return 2

    handler = shutdown_handler(poller)
    signal.signal(signal.SIGINT, handler)
    signal.signal(signal.SIGTERM, handler)

    logger.info("Print Agent %s started (printer %s, %s)", __version__, config.printer_id, config.printer_type)
    poller.start()

    health_port = args.health_port if args.health_port is not None else config.health_port
    if health_port:
        app = create_app(poller=poller, config=config)
        t = threading.Thread(
            target=app.run,
            kwargs={"host": args.health_host, "port": health_port, "use_reloader": False},
            daemon=True,
            name="print-agent-health",
        )
        t.start()
        logger.info("Health endpoint on http://%s:%d/healthz", args.health_host, health_port)

    # Wake up periodically so signals are handled promptly on every platform
    while not poller.stopping and poller.status()["alive"]:
        poller.join(timeout=1.0)
    poller.join(timeout=config.request_timeout + 5)
    poller.client.close()
    logger.info("Print Agent stopped")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    if args.command == "init-config":
        return cmd_init_config(args)
    if args.command == "preview":
        return cmd_preview(args)
    return cmd_run(args)


if __name__ == "__main__":
    sys.exit(main())
