"""
Check result history.

Keeps a rolling 30-day window of results per check in memory and mirrors
every recorded result to an append-only log file:

    <log_dir>/<domain>-<type>.log

one tab-separated line per result:

    <RFC3339 timestamp>\\t<status>\\t<server>\\t<comma-joined records>

Writes happen on a single background thread so slow disks never delay the
scheduler.  Write failures are logged and dropped.  At startup each check's
history is rehydrated from its log; unparseable lines are skipped.
"""

from __future__ import annotations

import logging
import os
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime, timedelta, timezone

from dns_monitor.models import CheckResult, CheckSpec, utcnow
from dns_monitor.state import CheckState, MonitorState

logger = logging.getLogger(__name__)

RETENTION: timedelta = timedelta(days=30)

_FIELD_SEP = "\t"
_RECORD_SEP = ","


# ---------------------------------------------------------------------------
# Line format
# ---------------------------------------------------------------------------


def log_path(log_dir: str, spec: CheckSpec) -> str:
    """Return the durable log path for *spec*."""
    return os.path.join(log_dir, f"{spec.key}.log")


def format_timestamp(ts: datetime) -> str:
    """Format the aware datetime *ts* as RFC 3339 in UTC with second precision."""
    return ts.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def parse_timestamp(text: str) -> datetime:
    """Parse an RFC 3339 timestamp.

    Raises:
        ValueError: If *text* is not a valid timestamp with a UTC offset, or
            falls outside the representable range once converted to UTC.
    """
    text = text.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    ts = datetime.fromisoformat(text)
    if ts.tzinfo is None:
        raise ValueError(f"timestamp has no UTC offset: {text!r}")
    try:
        return ts.astimezone(timezone.utc)
    except OverflowError as exc:
        raise ValueError(f"timestamp out of range: {text!r}") from exc


def format_line(result: CheckResult) -> str:
    """Serialise *result* as one log line (with trailing newline)."""
    fields = [
        format_timestamp(result.timestamp),
        _clean(result.status),
        _clean(result.server),
        _RECORD_SEP.join(_clean(r) for r in result.records),
    ]
    return _FIELD_SEP.join(fields) + "\n"


def parse_line(line: str) -> CheckResult:
    """Parse one log line back into a CheckResult.

    Raises:
        ValueError: If the line has fewer than four fields or a bad timestamp.
    """
    parts = line.rstrip("\r\n").split(_FIELD_SEP)
    if len(parts) < 4:
        raise ValueError(f"expected 4 tab-separated fields, got {len(parts)}")

    timestamp = parse_timestamp(parts[0])
    records = tuple(parts[3].split(_RECORD_SEP)) if parts[3] else ()
    return CheckResult(status=parts[1], timestamp=timestamp, server=parts[2], records=records)


def _clean(value: str) -> str:
    # Tabs and newlines would break the line format
    return value.replace("\t", " ").replace("\r", " ").replace("\n", " ")


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class HistoryStore:
    """Records results into CheckState objects and their durable logs.

    Args:
        state: The shared MonitorState; its coarse lock guards status fields.
        log_dir: Directory for the per-check logs.  Empty disables
            persistence.
        retention: How long results are kept in memory and on reload.
    """

    def __init__(
        self,
        state: MonitorState,
        log_dir: str,
        retention: timedelta = RETENTION,
    ) -> None:
        self.state = state
        self.log_dir = log_dir
        self.retention = retention
        self._writer = ThreadPoolExecutor(max_workers=1, thread_name_prefix="history-writer")

    def cutoff(self, now: datetime | None = None) -> datetime:
        """Return the oldest timestamp that is still outside the window."""
        return (now or utcnow()) - self.retention

    def append(self, check: CheckState, result: CheckResult) -> Future | None:
        """Record *result* for *check*.

        Updates the display status (last write wins), appends to the
        in-memory history pruned to the retention window, and queues the
        line for the durable log.

        Returns:
            The Future of the background write, or None when persistence is
            disabled.
        """
        self.state.set_status(check, result.status, result.timestamp)
        check.append_result(result, self.cutoff())

        if not self.log_dir:
            return None
        path = log_path(self.log_dir, check.spec)
        try:
            return self._writer.submit(self._write_line, path, format_line(result))
        except RuntimeError:
            # Writer already shut down
            logger.warning("History writer closed; %s not persisted", check.spec.key)
            return None

    def load(self, spec: CheckSpec, now: datetime | None = None) -> list[CheckResult]:
        """Read the retained results for *spec* from its durable log.

        A missing file yields an empty list.  Malformed lines are skipped
        with a warning.
        """
        if not self.log_dir:
            return []
        path = log_path(self.log_dir, spec)
        if not os.path.exists(path):
            return []

        cutoff = self.cutoff(now)
        results: list[CheckResult] = []
        with open(path, encoding="utf-8", errors="replace") as f:
            for lineno, line in enumerate(f, start=1):
                if not line.strip():
                    continue
                try:
                    result = parse_line(line)
                except ValueError as exc:
                    logger.warning("Skipping %s line %d: %s", path, lineno, exc)
                    continue
                if result.timestamp > cutoff:
                    results.append(result)
        return results

    def rehydrate(self, check: CheckState, now: datetime | None = None) -> int:
        """Replace *check*'s history with what its durable log holds.

        Returns:
            The number of results loaded.
        """
        try:
            results = self.load(check.spec, now)
        except OSError as exc:
            logger.warning("Failed to load history for %s: %s", check.spec.key, exc)
            return 0
        check.replace_history(results)
        if results:
            logger.info("Loaded %d history entries for %s", len(results), check.spec.key)
        return len(results)

    def rehydrate_all(self) -> None:
        for check in self.state.checks:
            self.rehydrate(check)

    def close(self) -> None:
        """Wait for pending writes and stop the writer thread."""
        self._writer.shutdown(wait=True)

    # ------------------------------------------------------------------
    # Background writer
    # ------------------------------------------------------------------

    @staticmethod
    def _write_line(path: str, line: str) -> bool:
        try:
            os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        except OSError as exc:
            logger.error("Error creating log directory for %s: %s", path, exc)
            return False

        try:
            with open(path, "a", encoding="utf-8") as f:
                f.write(line)
        except OSError as exc:
            logger.error("Error writing to log file %s: %s", path, exc)
            return False
        return True
