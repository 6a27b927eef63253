"""TXT record lookups through a recursive DNS resolver."""
from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Protocol

import dns.asyncresolver
import dns.exception
import dns.resolver

logger = logging.getLogger(__name__)

RESOLV_CONF = "/etc/resolv.conf"


class TxtLookupError(Exception):
    """Raised when TXT records for a name cannot be retrieved."""


class ResolverConfigError(Exception):
    """Raised when no usable nameserver can be determined."""


class TxtLookup(Protocol):
    """Capability returning every TXT payload published for a DNS name."""

    async def __call__(self, name: str) -> list[str]: ...


class DnsTxtLookup:
    """TXT lookups backed by `dns.asyncresolver.Resolver`.

    Truncated UDP replies are retried over TCP by the resolver. Every call
    runs its own query, so one instance may serve concurrent requests.

    Args:
        nameservers: Nameserver addresses; None or empty reads the system
            resolver configuration.
        port: Nameserver port.
        timeout: Seconds allowed for a whole lookup.
        tcp: Query over TCP only.
        resolv_conf: resolv.conf path used when no nameservers are given.

    Raises:
        ResolverConfigError: If no nameserver is given and none can be read
            from the system configuration, or an address is invalid.
    """

    def __init__(
        self,
        nameservers: Sequence[str] | None = None,
        port: int = 53,
        timeout: float = 2.0,
        tcp: bool = False,
        resolv_conf: str | None = None,
    ) -> None:
        filename = resolv_conf or RESOLV_CONF
        try:
            self.resolver = dns.asyncresolver.Resolver(filename=filename, configure=not nameservers)
        except dns.resolver.NoResolverConfiguration as exc:
            raise ResolverConfigError(f"no nameservers configured and none found in {filename}") from exc

        if nameservers:
            servers = list(nameservers)
        else:
            servers = [getattr(ns, "address", str(ns)) for ns in self.resolver.nameservers]
            logger.info("using system nameservers %s (from %s)", ", ".join(servers), filename)

        self.resolver.port = port
        try:
            self.resolver.nameservers = servers
        except ValueError as exc:
            raise ResolverConfigError(f"invalid nameserver: {exc}") from exc
        self.resolver.timeout = timeout
        self.resolver.lifetime = timeout
        self.tcp = tcp

    @property
    def nameservers(self) -> list[str]:
        """Addresses of the nameservers queried, in order."""
        return [getattr(ns, "address", str(ns)) for ns in self.resolver.nameservers]

    async def __call__(self, name: str) -> list[str]:
        """Resolve TXT records for *name*.

        CNAMEs are followed by the resolver; the payloads returned are those
        of the final name in the chain.

        Args:
            name: Fully qualified domain name.

        Returns:
            Decoded payloads in the order the nameserver returned them. Each
            record's character-strings are concatenated.

        Raises:
            TxtLookupError: If the name is invalid, does not exist, or no
                nameserver answered in time.
        """
        try:
            answer = await self.resolver.resolve(name, "TXT", tcp=self.tcp, raise_on_no_answer=False)
        except dns.resolver.NXDOMAIN as exc:
            raise TxtLookupError(f"{name} does not exist") from exc
        except dns.resolver.LifetimeTimeout as exc:
            raise TxtLookupError(f"timeout resolving {name}") from exc
        except dns.resolver.NoNameservers as exc:
            raise TxtLookupError(f"no nameserver answered for {name}: {exc}") from exc
        except dns.exception.DNSException as exc:
            raise TxtLookupError(f"lookup of {name} failed: {exc}") from exc
        except UnicodeError as exc:
            raise TxtLookupError(f"invalid name {name!r}: {exc}") from exc

        payloads: list[str] = []
        for rdata in answer:
            try:
                payloads.append(b"".join(rdata.strings).decode("utf-8"))
            except UnicodeDecodeError:
                logger.warning("skipping non UTF-8 TXT record for %s", name)
        return payloads
