"""
Check evaluation.

Runs the lookup for one CheckSpec against one resolver and classifies the
outcome.  The status string embeds the domain and record type so that it is
meaningful on its own in the status page and in the durable log:

    example.org-A-PASS
    example.org-A-FAIL
    example.org-A-ERROR-<detail>
    example.org-SRV-UNSUPPORTED
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from dns_monitor.checker.resolver import DnsResolver, ResolverError
from dns_monitor.models import ERROR, FAIL, PASS, UNSUPPORTED, CheckSpec, status_prefix

logger = logging.getLogger(__name__)

# Record type -> name of the DnsResolver method performing the lookup
_LOOKUPS: dict[str, str] = {
    "A": "lookup_a",
    "CNAME": "lookup_cname",
    "NS": "lookup_ns",
    "TXT": "lookup_txt",
    "MX": "lookup_mx",
}

SUPPORTED_TYPES: frozenset[str] = frozenset(_LOOKUPS)


def evaluate(spec: CheckSpec, resolver: DnsResolver) -> tuple[str, list[str]]:
    """Query *resolver* for *spec* and classify the answer.

    Args:
        spec: The check to run.
        resolver: Lookup capability bound to one server.

    Returns:
        A ``(status, records)`` tuple.  ``records`` is the full list of
        returned values for PASS and FAIL and empty otherwise.
    """
    prefix = status_prefix(spec.domain, spec.record_type)

    method_name = _LOOKUPS.get(spec.record_type)
    if method_name is None:
        logger.debug("Unsupported record type %s for %s", spec.record_type, spec.domain)
        return f"{prefix}{UNSUPPORTED}", []

    lookup: Callable[[str], list[str]] = getattr(resolver, method_name)
    try:
        records = list(lookup(spec.domain))
    except ResolverError as exc:
        return f"{prefix}{ERROR}-{exc.message}", []

    if matches_expected(records, spec.expected):
        return f"{prefix}{PASS}", records
    return f"{prefix}{FAIL}", records


def matches_expected(records: list[str], expected: str) -> bool:
    """Return True if any record contains *expected*, ignoring case."""
    needle = expected.lower()
    return any(needle in record.lower() for record in records)
