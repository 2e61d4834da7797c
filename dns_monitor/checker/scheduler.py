"""
Check scheduler.

Runs one worker thread per configured check.  Each worker evaluates its
check immediately, then once per interval on a fixed cadence, against the
primary resolver and, when configured, the secondary resolver.  Both
results of one tick share the same timestamp.

Workers are isolated from each other: a failing lookup becomes an ERROR
result, and any unexpected exception is logged without stopping the loop.
``stop()`` signals every worker and joins them.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime

from dns_monitor.checker.evaluator import evaluate
from dns_monitor.checker.resolver import DnsResolver
from dns_monitor.history import HistoryStore
from dns_monitor.models import ERROR, CheckResult, utcnow
from dns_monitor.state import CheckState, MonitorState

logger = logging.getLogger(__name__)


class Scheduler:
    """Supervisor for the per-check worker threads.

    Args:
        state: Shared MonitorState holding the checks.
        history: Store that records every result.
        primary: Resolver queried on every tick.
        secondary: Optional resolver queried after the primary.
    """

    def __init__(
        self,
        state: MonitorState,
        history: HistoryStore,
        primary: DnsResolver,
        secondary: DnsResolver | None = None,
    ) -> None:
        self.state = state
        self.history = history
        self.primary = primary
        self.secondary = secondary
        self._stop_event = threading.Event()
        self._threads: list[threading.Thread] = []

    @property
    def running(self) -> bool:
        return any(t.is_alive() for t in self._threads)

    def start(self) -> None:
        """Start one daemon worker per check."""
        if self.running:
            logger.warning("Scheduler already running")
            return

        self._stop_event.clear()
        self._threads = []
        for check in self.state.checks:
            thread = threading.Thread(
                target=self._run_loop,
                args=(check,),
                daemon=True,
                name=f"check-{check.spec.key}",
            )
            self._threads.append(thread)
            thread.start()

        logger.info(
            "Scheduler started: %d check(s), primary=%s, secondary=%s",
            len(self._threads),
            self.primary.server or "system",
            self.secondary.server if self.secondary else "none",
        )

    def stop(self, timeout: float | None = 10.0) -> None:
        """Signal all workers to exit and wait for them."""
        self._stop_event.set()
        for thread in self._threads:
            thread.join(timeout)
            if thread.is_alive():
                logger.warning("Worker %s did not stop within %.1fs", thread.name, timeout or 0)
        logger.info("Scheduler stopped")

    def run_tick(self, check: CheckState) -> list[CheckResult]:
        """Evaluate *check* once against each configured resolver.

        Returns:
            The recorded results, primary first.
        """
        now = utcnow()
        results = [self._record(check, self.primary, now)]
        if self.secondary is not None:
            results.append(self._record(check, self.secondary, now))
        return results

    def run_once(self, max_workers: int = 5) -> list[CheckResult]:
        """Run a single tick for every check, concurrently, and return.

        Checks whose tick raises are logged and skipped.
        """
        checks = self.state.checks
        if not checks:
            return []
        max_workers = max(1, min(max_workers, len(checks)))
        results: list[CheckResult] = []

        with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="check-once") as executor:
            future_to_check = {executor.submit(self.run_tick, c): c for c in checks}
            for future in as_completed(future_to_check):
                check = future_to_check[future]
                try:
                    results.extend(future.result())
                except Exception:
                    logger.exception("Check %s failed", check.spec.key)

        logger.info("Single pass complete: %d result(s) for %d check(s)", len(results), len(checks))
        return results

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _record(self, check: CheckState, resolver: DnsResolver, now: datetime) -> CheckResult:
        status, records = evaluate(check.spec, resolver)
        result = CheckResult(
            status=status,
            timestamp=now,
            server=resolver.server,
            records=tuple(records),
        )
        if result.classification_for(check.spec) == ERROR:
            logger.warning("Check %s via %s: %s", check.spec.key, resolver.server or "system", status)
        else:
            logger.debug("Check %s via %s: %s", check.spec.key, resolver.server or "system", status)
        self.history.append(check, result)
        return result

    def _run_loop(self, check: CheckState) -> None:
        interval = check.spec.interval
        next_run = time.monotonic()

        while not self._stop_event.is_set():
            try:
                self.run_tick(check)
            except Exception:
                logger.exception("Unexpected error in check loop for %s", check.spec.key)

            # Fixed cadence; ticks missed while a slow lookup ran are skipped
            next_run += interval
            now = time.monotonic()
            if next_run < now:
                missed = int((now - next_run) // interval) + 1
                next_run += missed * interval
            if self._stop_event.wait(next_run - now):
                break
