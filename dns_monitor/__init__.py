"""
Flask application factory for DNS Monitor.

Creates the Flask application, builds the monitor runtime (shared state,
history store, scheduler) from the YAML monitor file, registers the status
page blueprint, and optionally starts the per-check workers.
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime
from zoneinfo import ZoneInfo

from flask import Flask

from dns_monitor.config import Config, MonitorConfig, format_duration, load_config

logger = logging.getLogger(__name__)

EXTENSION_KEY = "dns_monitor"


def configure_logging(debug: bool) -> None:
    """Configure the root logger.

    Logging goes to stdout so container runtimes and process supervisors
    capture it without file handlers.

    Format: timestamp  level  logger-name  message

    Args:
        debug: When True, sets the root level to DEBUG.  Otherwise INFO.
    """
    level = logging.DEBUG if debug else logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s %(levelname)-8s %(name)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S%z",
        )
    )

    root_logger = logging.getLogger()
    # First caller wins: run_monitor.py configures before create_app(), and
    # create_app() may run several times in one process (tests).
    if not root_logger.handlers:
        root_logger.addHandler(handler)
        root_logger.setLevel(level)


def create_app(
    config_object: object = Config,
    monitor_config: MonitorConfig | None = None,
    monitor=None,
) -> Flask:
    """Application factory.

    Args:
        config_object: Flask configuration class or object.
        monitor_config: Parsed monitor file.  Loaded from
            ``MONITOR_CONFIG_PATH`` when omitted.
        monitor: A ready-made Monitor (tests inject one with fake
            resolvers).  Built from *monitor_config* when omitted.

    Returns:
        A fully configured Flask application instance.

    Raises:
        ConfigError: If the monitor file cannot be loaded.
    """
    app = Flask(__name__, template_folder="templates")
    app.config.from_object(config_object)

    configure_logging(debug=app.debug)

    # ------------------------------------------------------------------
    # Monitor runtime
    # ------------------------------------------------------------------
    from dns_monitor.monitor import Monitor

    if monitor is None:
        if monitor_config is None:
            monitor_config = load_config(app.config["MONITOR_CONFIG_PATH"])
        monitor = Monitor.from_config(monitor_config)
    app.extensions[EXTENSION_KEY] = monitor

    # ------------------------------------------------------------------
    # Blueprints
    # ------------------------------------------------------------------
    from dns_monitor.status import bp as status_bp

    app.register_blueprint(status_bp)

    # ------------------------------------------------------------------
    # Template filters
    # ------------------------------------------------------------------
    display_tz = ZoneInfo(monitor.state.settings.display_timezone)

    @app.template_filter("to_tz")
    def to_tz_filter(dt: datetime | None, fmt: str = "%Y-%m-%d %H:%M:%S") -> str:
        """Convert a UTC datetime to the configured display timezone."""
        if dt is None:
            return ""
        return dt.astimezone(display_tz).strftime(fmt)

    @app.template_filter("duration")
    def duration_filter(seconds: float) -> str:
        return format_duration(seconds)

    # ------------------------------------------------------------------
    # Errors and security headers
    # ------------------------------------------------------------------
    from flask import Response

    @app.errorhandler(500)
    def internal_error(error) -> tuple[str, int, dict[str, str]]:
        return "Internal Server Error\n", 500, {"Content-Type": "text/plain; charset=utf-8"}

    @app.after_request
    def set_security_headers(response: Response) -> Response:
        """Attach security-related HTTP response headers.

        The status page has no scripts and only inline styles.
        """
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Content-Security-Policy"] = (
            "default-src 'none'; style-src 'unsafe-inline';"
        )
        return response

    if app.config.get("START_SCHEDULER"):
        monitor.start()

    logger.info(
        "DNS Monitor ready: %d check(s), log_dir=%s",
        len(monitor.state.checks),
        monitor.state.settings.log_dir or "(disabled)",
    )
    return app
