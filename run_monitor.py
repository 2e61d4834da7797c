"""
Standalone entry point for DNS Monitor.

Loads the YAML monitor file, starts one worker per check and serves the
status page with the built-in Werkzeug server.  With ``--once`` every check
runs a single time and the script exits, which suits cron.

USAGE
=====
  # Monitor continuously using ./config.yaml, status page on the configured port
  python run_monitor.py

  # Alternate config file
  python run_monitor.py --config /etc/dns-monitor/config.yaml

  # One pass over all checks (cron), debug logging
  python run_monitor.py --once --verbose

The config path can also be given through the DNS_MONITOR_CONFIG
environment variable.

EXIT CODES
==========
  0 - Normal exit (Ctrl-C / SIGTERM, or --once finished)
  1 - Fatal error (configuration missing or invalid)
"""

from __future__ import annotations

import argparse
import logging
import os
import signal
import sys
import time


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Monitor DNS records and serve a live status page.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--config",
        metavar="PATH",
        default=os.environ.get("DNS_MONITOR_CONFIG", "config.yaml"),
        help="Path to the YAML monitor file (default: %(default)s).",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        default=False,
        help="Run every check once, write the logs and exit.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        default=False,
        help="Enable DEBUG-level logging output.",
    )
    return parser.parse_args(argv)


def _handle_sigterm(signum, frame) -> None:  # noqa: ARG001
    raise SystemExit(0)


def main(argv: list[str] | None = None) -> int:
    """Run the monitor.

    Returns:
        Integer exit code: 0 for success, 1 for fatal error.
    """
    args = _parse_args(argv)

    from dns_monitor import EXTENSION_KEY, configure_logging, create_app
    from dns_monitor.config import Config, ConfigError, load_config

    configure_logging(args.verbose)
    logger = logging.getLogger("run_monitor")

    try:
        monitor_config = load_config(args.config)
    except ConfigError as exc:
        logger.error("FATAL: failed to load config: %s", exc)
        return 1

    class RunConfig(Config):
        MONITOR_CONFIG_PATH = args.config
        START_SCHEDULER = False

    app = create_app(RunConfig, monitor_config=monitor_config)
    monitor = app.extensions[EXTENSION_KEY]

    if args.once:
        t0 = time.monotonic()
        recorded = monitor.run_once()
        logger.info("Recorded %d result(s) in %.1fs", recorded, time.monotonic() - t0)
        for check in monitor.state.checks:
            logger.info("%-40s %s", check.spec.key, check.status)
        return 0

    settings = monitor_config.settings
    signal.signal(signal.SIGTERM, _handle_sigterm)
    monitor.start()
    try:
        logger.info("Starting server on %s:%d", settings.host, settings.port)
        app.run(host=settings.host, port=settings.port, threaded=True, use_reloader=False)
    except KeyboardInterrupt:
        logger.info("Interrupted")
    finally:
        monitor.shutdown()
    return 0


if __name__ == "__main__":
    sys.exit(main())
