"""
Monitor runtime.

Wires the shared state, history store, resolvers and scheduler together
from a parsed MonitorConfig and owns their start/shutdown.
"""

from __future__ import annotations

import logging

from dns_monitor.checker.resolver import DnsResolver, create_resolver
from dns_monitor.checker.scheduler import Scheduler
from dns_monitor.config import MonitorConfig
from dns_monitor.history import HistoryStore
from dns_monitor.state import MonitorState

logger = logging.getLogger(__name__)


class Monitor:
    """The running monitoring engine."""

    def __init__(self, state: MonitorState, history: HistoryStore, scheduler: Scheduler) -> None:
        self.state = state
        self.history = history
        self.scheduler = scheduler

    @classmethod
    def from_config(
        cls,
        config: MonitorConfig,
        primary: DnsResolver | None = None,
        secondary: DnsResolver | None = None,
    ) -> Monitor:
        """Build a Monitor, rehydrating every check's history from disk.

        Resolvers are created from the global settings unless given.
        """
        settings = config.settings
        state = MonitorState.from_config(config)

        history = HistoryStore(state, settings.log_dir)
        history.rehydrate_all()

        if primary is None:
            primary = create_resolver(settings.dns_server, settings.timeout, settings.retries)
        if secondary is None and settings.secondary_dns_server:
            secondary = create_resolver(
                settings.secondary_dns_server, settings.timeout, settings.retries
            )

        return cls(state, history, Scheduler(state, history, primary, secondary))

    def start(self) -> None:
        self.scheduler.start()

    def run_once(self) -> int:
        """Run every check once and wait for the log writes.

        Returns:
            The number of results recorded.
        """
        results = self.scheduler.run_once()
        self.history.close()
        return len(results)

    def shutdown(self, timeout: float | None = 10.0) -> None:
        """Stop the workers, then drain pending log writes."""
        self.scheduler.stop(timeout)
        self.history.close()
