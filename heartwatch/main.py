#!/usr/bin/env python3
"""Heartwatch entry point."""

import logging
import signal
import sys
import threading

from heartwatch.client import HeartbeatClient
from heartwatch.config import ConfigError, build_cli_parser, load_config
from heartwatch.daemon import run_in_background
from heartwatch.logsetup import configure_logging
from heartwatch.server import HeartbeatServer

logger = logging.getLogger(__name__)


def _install_signal_handlers(shutdown_event: threading.Event):
    def signal_handler(signum, frame):
        logger.info("Received signal %d, shutting down...", signum)
        shutdown_event.set()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)


def run_server(config, shutdown_event: threading.Event) -> int:
    server = HeartbeatServer(config, shutdown_event)
    try:
        server.bind()
    except OSError as e:
        logger.error("Error starting server on port %d: %s", config.port, e)
        return 1
    try:
        server.start()
    finally:
        server.stop()
    return 0


def run_client(config, shutdown_event: threading.Event) -> int:
    client = HeartbeatClient(
        config.remote,
        config.port,
        config.key,
        interval=config.timeout,
        shutdown_event=shutdown_event,
        connect_timeout=config.connect_timeout,
    )
    client.run()
    return 0


def run(argv=None) -> int:
    try:
        config = load_config(argv)
    except ConfigError as e:
        print(f"Error: {e}.", file=sys.stderr)
        build_cli_parser().print_usage(sys.stderr)
        return 2

    try:
        configure_logging(config.log_file, config.log_level)
    except OSError as e:
        print(f"Error opening log file: {e}", file=sys.stderr)
        return 1

    if not config.foreground:
        pid = run_in_background()
        if pid is not None:
            logger.info("Started in background (pid %d)", pid)
            return 0

    shutdown_event = threading.Event()
    _install_signal_handlers(shutdown_event)

    logger.info("Starting heartwatch in %s mode", config.mode)
    if config.mode == "server":
        return run_server(config, shutdown_event)
    return run_client(config, shutdown_event)


def main():
    sys.exit(run())


if __name__ == "__main__":
    main()
