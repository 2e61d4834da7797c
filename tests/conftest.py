"""
Shared pytest fixtures for the DNS Monitor test suite.

Resolvers are replaced by ``FakeResolver`` so no real DNS traffic occurs,
and every log directory lives under pytest's ``tmp_path``.
"""

from __future__ import annotations

import pytest

from dns_monitor import create_app
from dns_monitor.config import GlobalSettings, MonitorConfig
from dns_monitor.models import CheckSpec
from dns_monitor.monitor import Monitor


# ---------------------------------------------------------------------------
# Fake resolver
# ---------------------------------------------------------------------------


class FakeResolver:
    """Stand-in for DnsResolver.

    ``answers`` maps a record type, or a ``(domain, record type)`` pair, to
    either a list of records or an exception instance to raise.
    """

    def __init__(self, server: str = "", answers: dict | None = None) -> None:
        self.server = server
        self.answers = answers or {}
        self.calls: list[tuple[str, str]] = []

    def _lookup(self, rdtype: str, domain: str) -> list[str]:
        self.calls.append((rdtype, domain))
        answer = self.answers.get((domain, rdtype), self.answers.get(rdtype, []))
        if isinstance(answer, BaseException):
            raise answer
        return list(answer)

    def lookup_a(self, domain: str) -> list[str]:
        return self._lookup("A", domain)

    def lookup_cname(self, domain: str) -> list[str]:
        return self._lookup("CNAME", domain)

    def lookup_ns(self, domain: str) -> list[str]:
        return self._lookup("NS", domain)

    def lookup_txt(self, domain: str) -> list[str]:
        return self._lookup("TXT", domain)

    def lookup_mx(self, domain: str) -> list[str]:
        return self._lookup("MX", domain)


# ---------------------------------------------------------------------------
# Test configuration
# ---------------------------------------------------------------------------


class TestConfig:
    """Minimal Flask config for automated testing."""

    TESTING = True
    START_SCHEDULER = False
    MONITOR_CONFIG_PATH = "unused.yaml"


# ---------------------------------------------------------------------------
# Core fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_resolver():
    """Return the FakeResolver class for building custom resolvers."""
    return FakeResolver


@pytest.fixture
def specs() -> tuple[CheckSpec, ...]:
    return (
        CheckSpec(domain="example.org", record_type="A", expected="93.184.216.34", interval=60.0),
        CheckSpec(domain="x.test", record_type="TXT", expected="v=spf1", interval=300.0),
    )


@pytest.fixture
def log_dir(tmp_path) -> str:
    return str(tmp_path / "logs")


@pytest.fixture
def monitor_config(specs, log_dir) -> MonitorConfig:
    settings = GlobalSettings(dns_server="10.0.0.1", log_dir=log_dir)
    return MonitorConfig(settings=settings, checks=specs)


@pytest.fixture
def primary() -> FakeResolver:
    return FakeResolver(
        "10.0.0.1",
        answers={"A": ["93.184.216.34"], "TXT": ["nothing-relevant"]},
    )


@pytest.fixture
def monitor(monitor_config, primary):
    """A Monitor wired to the fake primary resolver, shut down afterwards."""
    mon = Monitor.from_config(monitor_config, primary=primary)
    yield mon
    mon.shutdown(timeout=2.0)


@pytest.fixture
def app(monitor):
    """Flask application around the fake-resolver monitor."""
    return create_app(TestConfig, monitor=monitor)


@pytest.fixture
def client(app):
    """Return a Flask test client."""
    return app.test_client()
