"""
Shared in-memory state for DNS Monitor.

One ``MonitorState`` object is created at startup and passed by reference to
the scheduler, the history store and the status page.  Locking is split in
two levels:

* ``MonitorState.lock`` - a coarse read/write lock guarding the status and
  last-check fields of every check.
* ``CheckState.history_lock`` - one plain lock per check guarding its result
  history, so appends for unrelated checks never contend with each other.

A worker never waits on a lock held by another worker while holding one of
its own, so there is no lock-ordering cycle.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime

from dns_monitor.config import GlobalSettings, MonitorConfig
from dns_monitor.models import PENDING, CheckResult, CheckSpec


class ReadWriteLock:
    """Many readers or a single writer.

    Writers are preferred: once a writer is waiting, new readers queue behind
    it so a busy status page cannot starve the scheduler.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class CheckState:
    """Mutable runtime state for one CheckSpec."""

    def __init__(self, spec: CheckSpec) -> None:
        self.spec = spec
        self.status: str = PENDING
        self.last_check: datetime | None = None
        self.history_lock = threading.Lock()
        self._history: list[CheckResult] = []

    def __repr__(self) -> str:
        return f"<CheckState {self.spec.key} status={self.status!r}>"

    def history(self) -> list[CheckResult]:
        """Return a copy of the retained results, oldest first."""
        with self.history_lock:
            return list(self._history)

    def latest(self) -> CheckResult | None:
        """Return the most recently recorded result, if any."""
        with self.history_lock:
            return self._history[-1] if self._history else None

    def summary(self) -> tuple[CheckResult | None, int]:
        """Latest result and history length, read together."""
        with self.history_lock:
            latest = self._history[-1] if self._history else None
            return latest, len(self._history)

    def append_result(self, result: CheckResult, cutoff: datetime) -> None:
        """Append *result* and drop every entry not newer than *cutoff*."""
        with self.history_lock:
            self._history.append(result)
            self._history = [r for r in self._history if r.timestamp > cutoff]

    def replace_history(self, results: list[CheckResult]) -> None:
        with self.history_lock:
            self._history = list(results)


@dataclass(frozen=True)
class CheckSnapshot:
    """Point-in-time view of one check for rendering."""

    spec: CheckSpec
    status: str
    last_check: datetime | None
    latest: CheckResult | None
    history_size: int


class MonitorState:
    """Global settings plus every CheckState, in configuration order."""

    def __init__(self, settings: GlobalSettings, specs: tuple[CheckSpec, ...] | list[CheckSpec]) -> None:
        self.settings = settings
        self.checks: list[CheckState] = [CheckState(spec) for spec in specs]
        self.lock = ReadWriteLock()

    @classmethod
    def from_config(cls, config: MonitorConfig) -> MonitorState:
        return cls(config.settings, config.checks)

    def set_status(self, check: CheckState, status: str, timestamp: datetime) -> None:
        """Update the display fields of *check* under the coarse write lock."""
        with self.lock.write():
            check.status = status
            check.last_check = timestamp

    def snapshot(self) -> list[CheckSnapshot]:
        """Capture every check under the coarse read lock."""
        views: list[CheckSnapshot] = []
        with self.lock.read():
            for check in self.checks:
                latest, size = check.summary()
                views.append(
                    CheckSnapshot(
                        spec=check.spec,
                        status=check.status,
                        last_check=check.last_check,
                        latest=latest,
                        history_size=size,
                    )
                )
        return views
