"""
Value types for DNS Monitor.

  CheckSpec   - one configured check (immutable after load)
  CheckResult - one recorded evaluation (immutable once created)

Mutable per-check state lives in ``dns_monitor.state``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

# ---------------------------------------------------------------------------
# Status classifications
# ---------------------------------------------------------------------------

PENDING = "PENDING"
PASS = "PASS"
FAIL = "FAIL"
ERROR = "ERROR"
UNSUPPORTED = "UNSUPPORTED"

_CLASSIFICATIONS: tuple[str, ...] = (PASS, FAIL, UNSUPPORTED)


def utcnow() -> datetime:
    """Return the current UTC datetime (timezone-aware)."""
    return datetime.now(timezone.utc)


def status_prefix(domain: str, record_type: str) -> str:
    """Return the ``<domain>-<type>-`` prefix shared by every status string."""
    return f"{domain}-{record_type}-"


def classify_status(status: str, domain: str, record_type: str) -> str:
    """Extract the classification keyword from a full status string.

    Status strings look like ``example.org-A-PASS`` or
    ``example.org-A-ERROR-<detail>``.  Anything that does not match one of
    the known forms is reported as PENDING.
    """
    prefix = status_prefix(domain, record_type)
    if not status.startswith(prefix):
        return PENDING
    tail = status[len(prefix):]
    if tail == ERROR or tail.startswith(f"{ERROR}-"):
        return ERROR
    for keyword in _CLASSIFICATIONS:
        if tail == keyword:
            return keyword
    return PENDING


@dataclass(frozen=True)
class CheckSpec:
    """One configured monitoring unit."""

    domain: str
    record_type: str
    expected: str
    interval: float

    @property
    def key(self) -> str:
        """Identifier used for the durable log file name."""
        return f"{self.domain}-{self.record_type}"


@dataclass(frozen=True)
class CheckResult:
    """Outcome of evaluating one check against one server."""

    status: str
    timestamp: datetime
    server: str
    records: tuple[str, ...] = ()

    def classification_for(self, spec: CheckSpec) -> str:
        """Return PASS/FAIL/ERROR/UNSUPPORTED for this result."""
        return classify_status(self.status, spec.domain, spec.record_type)
