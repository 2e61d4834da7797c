"""
Configuration module for DNS Monitor.

Two layers live here:

* ``Config`` - Flask settings read from environment variables, in the same
  spirit as any Flask app config class.
* ``load_config()`` - parses the YAML monitor file (global resolver
  settings plus the list of checks) into immutable ``CheckSpec`` objects.

A failure in ``load_config()`` is the only fatal error in the system; it is
raised as ``ConfigError`` before any worker starts.
"""

from __future__ import annotations

import ipaddress
import os
import re
from dataclasses import dataclass, field
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

from dns_monitor.models import CheckSpec

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

DEFAULT_INTERVAL: float = 300.0
DEFAULT_LOG_DIR: str = "logs"
DEFAULT_PORT: int = 8080
DEFAULT_HOST: str = "0.0.0.0"
DEFAULT_TIMEOUT: float = 5.0
DEFAULT_RETRIES: int = 2
DEFAULT_TIMEZONE: str = "UTC"

_DURATION_RE = re.compile(r"(\d+(?:\.\d+)?)(ns|us|µs|ms|s|m|h)")

_UNIT_SECONDS: dict[str, float] = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


class ConfigError(Exception):
    """Raised when the monitor configuration cannot be loaded."""


class Config:
    """Flask configuration shared by all environments."""

    # Path to the YAML monitor definition
    MONITOR_CONFIG_PATH: str = os.environ.get("DNS_MONITOR_CONFIG", "config.yaml")

    # Start the per-check worker threads when the app is created.
    # Tests switch this off and drive the scheduler directly.
    START_SCHEDULER: bool = os.environ.get("DNS_MONITOR_START_SCHEDULER", "True").lower() == "true"


# ---------------------------------------------------------------------------
# Parsed monitor configuration
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class GlobalSettings:
    """Settings from the ``global`` section of the monitor file."""

    dns_server: str = ""
    secondary_dns_server: str = ""
    default_interval: float = DEFAULT_INTERVAL
    log_dir: str = DEFAULT_LOG_DIR
    port: int = DEFAULT_PORT
    host: str = DEFAULT_HOST
    timeout: float = DEFAULT_TIMEOUT
    retries: int = DEFAULT_RETRIES
    display_timezone: str = DEFAULT_TIMEZONE


@dataclass(frozen=True)
class MonitorConfig:
    """The whole monitor file: global settings plus the checks in file order."""

    settings: GlobalSettings = field(default_factory=GlobalSettings)
    checks: tuple[CheckSpec, ...] = ()


def parse_duration(value: Any) -> float:
    """Convert a duration value to seconds.

    Accepts plain numbers (seconds) and Go-style duration strings such as
    ``"30s"``, ``"5m"`` or ``"1h30m"``.

    Raises:
        ValueError: If the value cannot be interpreted.
    """
    if isinstance(value, bool):
        raise ValueError(f"invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        return float(value)
    if not isinstance(value, str):
        raise ValueError(f"invalid duration: {value!r}")

    text = value.strip()
    if not text:
        raise ValueError("empty duration")
    try:
        return float(text)
    except ValueError:
        pass

    pos = 0
    total = 0.0
    for match in _DURATION_RE.finditer(text):
        if match.start() != pos:
            raise ValueError(f"invalid duration: {value!r}")
        total += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        pos = match.end()
    if pos != len(text):
        raise ValueError(f"invalid duration: {value!r}")
    return total


def format_duration(seconds: float) -> str:
    """Render *seconds* the way Go prints a ``time.Duration`` (``5m0s``)."""
    if seconds <= 0:
        return "0s"
    whole = int(seconds)
    frac = seconds - whole
    hours, rest = divmod(whole, 3600)
    minutes, secs = divmod(rest, 60)

    sec_text = f"{secs + frac:g}s" if frac else f"{secs}s"
    if hours:
        return f"{hours}h{minutes}m{sec_text}"
    if minutes:
        return f"{minutes}m{sec_text}"
    return sec_text


def load_config(path: str) -> MonitorConfig:
    """Read and validate the YAML monitor file at *path*.

    Args:
        path: Filesystem path to the YAML file.

    Returns:
        A fully defaulted MonitorConfig.

    Raises:
        ConfigError: If the file is missing, unparseable, or invalid.
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as exc:
        raise ConfigError(f"error reading config file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"error parsing YAML in {path}: {exc}") from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"config file {path} must contain a mapping at the top level")

    settings = _parse_global(data.get("global") or {})

    raw_checks = data.get("checks") or []
    if not isinstance(raw_checks, list):
        raise ConfigError("'checks' must be a list")

    checks = tuple(
        _parse_check(index, raw, settings.default_interval)
        for index, raw in enumerate(raw_checks)
    )
    return MonitorConfig(settings=settings, checks=checks)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _parse_global(raw: Any) -> GlobalSettings:
    if not isinstance(raw, dict):
        raise ConfigError("'global' must be a mapping")

    dns_server = _parse_server(raw.get("dns_server"), "dns_server")
    secondary = _parse_server(raw.get("secondary_dns_server"), "secondary_dns_server")

    default_interval = _positive_duration(
        raw.get("default_interval"), DEFAULT_INTERVAL, "global.default_interval"
    )
    timeout = _positive_duration(raw.get("timeout"), DEFAULT_TIMEOUT, "global.timeout")

    log_dir = str(raw.get("log_dir") or DEFAULT_LOG_DIR)
    host = str(raw.get("host") or DEFAULT_HOST)
    port = _parse_port(raw.get("port"))

    retries = raw.get("retries", DEFAULT_RETRIES)
    if isinstance(retries, bool) or not isinstance(retries, int) or retries < 1:
        raise ConfigError(f"global.retries must be a positive integer, got {retries!r}")

    tz_name = str(raw.get("display_timezone") or DEFAULT_TIMEZONE)
    try:
        ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigError(f"unknown display_timezone {tz_name!r}") from exc

    return GlobalSettings(
        dns_server=dns_server,
        secondary_dns_server=secondary,
        default_interval=default_interval,
        log_dir=log_dir,
        port=port,
        host=host,
        timeout=timeout,
        retries=retries,
        display_timezone=tz_name,
    )


def _parse_check(index: int, raw: Any, default_interval: float) -> CheckSpec:
    if not isinstance(raw, dict):
        raise ConfigError(f"checks[{index}] must be a mapping")

    domain = str(raw.get("domain") or "").strip()
    record_type = str(raw.get("type") or "").strip().upper()
    if not domain:
        raise ConfigError(f"checks[{index}] is missing 'domain'")
    if not record_type:
        raise ConfigError(f"checks[{index}] ({domain}) is missing 'type'")

    expected = raw.get("expected")
    expected = "" if expected is None else str(expected)

    interval = _positive_duration(
        raw.get("interval"), default_interval, f"checks[{index}].interval"
    )
    return CheckSpec(domain=domain, record_type=record_type, expected=expected, interval=interval)


def _parse_server(value: Any, name: str) -> str:
    """Return the server as a string; it must be an IP literal when present."""
    if value is None:
        return ""
    server = str(value).strip()
    if not server:
        return ""
    try:
        ipaddress.ip_address(server)
    except ValueError as exc:
        raise ConfigError(f"global.{name} must be an IP address, got {server!r}") from exc
    return server


def _parse_port(value: Any) -> int:
    if value is None or value == "":
        return DEFAULT_PORT
    text = str(value).strip().lstrip(":")
    try:
        port = int(text)
    except ValueError as exc:
        raise ConfigError(f"global.port is not a number: {value!r}") from exc
    if not 0 < port < 65536:
        raise ConfigError(f"global.port out of range: {port}")
    return port


def _positive_duration(value: Any, default: float, name: str) -> float:
    if value is None or value == "" or value == 0:
        return default
    try:
        seconds = parse_duration(value)
    except ValueError as exc:
        raise ConfigError(f"{name}: {exc}") from exc
    if seconds == 0:
        return default
    if seconds < 0:
        raise ConfigError(f"{name} must be positive, got {value!r}")
    return seconds
