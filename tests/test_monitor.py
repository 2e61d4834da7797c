"""
Tests for the monitor runtime (dns_monitor/monitor.py) and the
run_monitor.py entry point.
"""

from __future__ import annotations

import os
import textwrap
from unittest.mock import patch

import run_monitor
from dns_monitor.config import GlobalSettings, MonitorConfig
from dns_monitor.history import format_line, log_path
from dns_monitor.models import CheckResult, utcnow
from dns_monitor.monitor import Monitor


# ---------------------------------------------------------------------------
# Tests - Monitor.from_config
# ---------------------------------------------------------------------------


def test_from_config_rehydrates_history(monitor_config, specs, log_dir, fake_resolver):
    result = CheckResult(
        status="example.org-A-PASS",
        timestamp=utcnow().replace(microsecond=0),
        server="10.0.0.1",
        records=("93.184.216.34",),
    )
    os.makedirs(log_dir)
    with open(log_path(log_dir, specs[0]), "w", encoding="utf-8") as f:
        f.write(format_line(result))

    monitor = Monitor.from_config(monitor_config, primary=fake_resolver("10.0.0.1"))

    first, second = monitor.state.checks
    assert first.history() == [result]
    # Status stays PENDING until this process runs a check
    assert first.status == "PENDING"
    assert second.history() == []
    monitor.shutdown(timeout=1.0)


def test_from_config_creates_resolvers_from_settings(specs, log_dir):
    settings = GlobalSettings(
        dns_server="8.8.8.8",
        secondary_dns_server="1.1.1.1",
        log_dir=log_dir,
        timeout=3.0,
        retries=4,
    )
    with patch("dns_monitor.monitor.create_resolver") as mock_create:
        monitor = Monitor.from_config(MonitorConfig(settings=settings, checks=specs))

    assert [c.args for c in mock_create.call_args_list] == [
        ("8.8.8.8", 3.0, 4),
        ("1.1.1.1", 3.0, 4),
    ]
    assert monitor.scheduler.secondary is not None
    monitor.shutdown(timeout=1.0)


def test_from_config_without_secondary(monitor_config):
    with patch("dns_monitor.monitor.create_resolver") as mock_create:
        monitor = Monitor.from_config(monitor_config)

    mock_create.assert_called_once()
    assert monitor.scheduler.secondary is None
    monitor.shutdown(timeout=1.0)


# ---------------------------------------------------------------------------
# Tests - run_monitor.py
# ---------------------------------------------------------------------------


def test_main_missing_config_exits_with_error(tmp_path):
    assert run_monitor.main(["--config", str(tmp_path / "missing.yaml")]) == 1


def test_main_once_runs_every_check_and_writes_logs(tmp_path, fake_resolver):
    log_dir = tmp_path / "logs"
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        textwrap.dedent(
            f"""
            global:
              dns_server: 10.0.0.1
              log_dir: {log_dir}
            checks:
              - domain: example.org
                type: A
                expected: 93.184.216.34
              - domain: example.org
                type: SRV
                expected: anything
            """
        ),
        encoding="utf-8",
    )
    resolver = fake_resolver("10.0.0.1", {"A": ["93.184.216.34"]})

    with patch("dns_monitor.monitor.create_resolver", return_value=resolver):
        code = run_monitor.main(["--config", str(config_path), "--once"])

    assert code == 0
    a_log = (log_dir / "example.org-A.log").read_text(encoding="utf-8")
    srv_log = (log_dir / "example.org-SRV.log").read_text(encoding="utf-8")
    assert "\texample.org-A-PASS\t10.0.0.1\t93.184.216.34\n" in a_log
    assert "\texample.org-SRV-UNSUPPORTED\t10.0.0.1\t\n" in srv_log
