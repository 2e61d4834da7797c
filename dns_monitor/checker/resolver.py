"""
DNS resolver adapter.

Wraps dnspython behind a small lookup interface (A, CNAME, NS, TXT, MX)
bound to one nameserver.  When a server address is configured every query
goes to that server on port 53 and nowhere else; an unreachable server is
reported as a ``ResolverError`` rather than silently falling back to the
system resolver.
"""

from __future__ import annotations

import logging

import dns.exception
import dns.resolver

logger = logging.getLogger(__name__)

DNS_PORT: int = 53


class ResolverError(Exception):
    """A lookup failed.

    Attributes:
        error_type: Short category (NXDOMAIN, NO_ANSWER, NO_NAMESERVERS,
            TIMEOUT, DNS_ERROR).
        message: Human-readable description, used in ERROR status strings.
    """

    def __init__(self, error_type: str, message: str) -> None:
        super().__init__(message)
        self.error_type = error_type
        self.message = message


def create_resolver(
    server: str = "",
    timeout: float = 5.0,
    retries: int = 2,
) -> DnsResolver:
    """Create a DnsResolver for *server*.

    Args:
        server: Nameserver IP address, or empty for the system resolver
            configuration (``/etc/resolv.conf``).
        timeout: Per-try timeout in seconds.
        retries: Number of tries; the overall lifetime is
            ``timeout * retries``.

    Returns:
        A configured DnsResolver.
    """
    if server:
        resolver = dns.resolver.Resolver(configure=False)
        resolver.nameservers = [server]
        resolver.port = DNS_PORT
    else:
        resolver = dns.resolver.Resolver()

    resolver.timeout = float(timeout)
    resolver.lifetime = float(timeout * retries)
    return DnsResolver(resolver, server)


class DnsResolver:
    """Record lookups against one configured server."""

    def __init__(self, resolver: dns.resolver.Resolver, server: str = "") -> None:
        self._resolver = resolver
        self.server = server

    def __repr__(self) -> str:
        return f"<DnsResolver server={self.server or 'system'!r}>"

    def lookup_a(self, domain: str) -> list[str]:
        """Return the IPv4 addresses of *domain*."""
        answer = self._resolve(domain, "A")
        return [rdata.address for rdata in answer]

    def lookup_cname(self, domain: str) -> list[str]:
        """Return the canonical name of *domain* after following CNAMEs.

        A name with no CNAME is its own canonical name.
        """
        answer = self._resolve(domain, "A", raise_on_no_answer=False)
        return [answer.canonical_name.to_text()]

    def lookup_ns(self, domain: str) -> list[str]:
        """Return the nameserver host names for *domain*."""
        answer = self._resolve(domain, "NS")
        return [rdata.target.to_text() for rdata in answer]

    def lookup_txt(self, domain: str) -> list[str]:
        """Return the TXT records of *domain*, one string per record."""
        answer = self._resolve(domain, "TXT")
        return [
            b"".join(rdata.strings).decode("utf-8", errors="replace")
            for rdata in answer
        ]

    def lookup_mx(self, domain: str) -> list[str]:
        """Return the mail exchange host names for *domain*."""
        answer = self._resolve(domain, "MX")
        return [rdata.exchange.to_text() for rdata in answer]

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _resolve(self, domain: str, rdtype: str, raise_on_no_answer: bool = True):
        server = self.server or "system resolver"
        try:
            answer = self._resolver.resolve(
                domain, rdtype, raise_on_no_answer=raise_on_no_answer
            )
            logger.debug("DNS query %s/%s via %s succeeded", domain, rdtype, server)
            return answer

        except dns.resolver.NXDOMAIN as exc:
            logger.info("NXDOMAIN for %s/%s via %s", domain, rdtype, server)
            raise ResolverError(
                "NXDOMAIN", f"domain {domain} does not exist (NXDOMAIN)"
            ) from exc

        except dns.resolver.NoAnswer as exc:
            logger.info("NoAnswer for %s/%s via %s", domain, rdtype, server)
            raise ResolverError(
                "NO_ANSWER", f"no {rdtype} records found for {domain}"
            ) from exc

        except dns.resolver.NoNameservers as exc:
            logger.warning("NoNameservers for %s/%s via %s", domain, rdtype, server)
            raise ResolverError(
                "NO_NAMESERVERS",
                f"no nameservers answered for {domain} via {server} (SERVFAIL or unreachable)",
            ) from exc

        except dns.resolver.Timeout as exc:
            logger.warning("Timeout for %s/%s via %s", domain, rdtype, server)
            raise ResolverError(
                "TIMEOUT", f"query for {domain}/{rdtype} via {server} timed out"
            ) from exc

        except dns.exception.DNSException as exc:
            logger.error("DNSException for %s/%s via %s: %s", domain, rdtype, server, exc)
            raise ResolverError(
                "DNS_ERROR", f"DNS error for {domain}/{rdtype}: {exc}"
            ) from exc

        except OSError as exc:
            # Socket-level failures, e.g. no route to the configured server
            logger.warning("Network error for %s/%s via %s: %s", domain, rdtype, server, exc)
            raise ResolverError(
                "DNS_ERROR", f"cannot reach {server} for {domain}/{rdtype}: {exc}"
            ) from exc

        except Exception as exc:
            logger.exception("Unexpected error querying %s/%s via %s", domain, rdtype, server)
            raise ResolverError(
                "DNS_ERROR", f"unexpected error for {domain}/{rdtype}: {exc}"
            ) from exc
