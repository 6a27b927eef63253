"""Hostname to redirect resolution through `_redirect` TXT records."""
from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Callable, Sequence

from .parser import ConfigParseError, parse_config
from .protocol import TxtLookup, TxtLookupError
from .records import RedirectConfig

logger = logging.getLogger(__name__)

LOOKUP_PREFIX = "_redirect."

SelectionPolicy = Callable[[Sequence[RedirectConfig]], RedirectConfig]


class RedirectorError(Exception):
    """Base class for hostnames that cannot be redirected."""


class ResolverError(RedirectorError):
    """The TXT lookup itself failed."""


class NoValidRedirect(RedirectorError):
    """DNS answered but no record decoded to a usable configuration."""


def lookup_name(hostname: str) -> str:
    """Return the DNS name holding the redirect records for *hostname*."""
    return LOOKUP_PREFIX + hostname


def first_valid(configs: Sequence[RedirectConfig]) -> RedirectConfig:
    """Pick the first configuration in the order the nameserver returned."""
    return configs[0]


class SeededChoice:
    """Load-splitting policy picking uniformly among valid configurations.

    Picks are reproducible for a given seed and call sequence.

    Args:
        seed: Seed for the private random generator; None seeds from the OS.
    """

    def __init__(self, seed: int | None = None) -> None:
        self.seed = seed
        self._random = random.Random(seed)

    def __call__(self, configs: Sequence[RedirectConfig]) -> RedirectConfig:
        """Pick one of *configs*.

        Args:
            configs: Valid configurations, at least one.

        Returns:
            A configuration drawn from the seeded generator.
        """
        return self._random.choice(configs)


class RedirectResolver:
    """Resolve hostnames into redirect configurations.

    Args:
        lookup: TXT lookup capability.
        select: Policy choosing among several valid configurations.
    """

    def __init__(self, lookup: TxtLookup, select: SelectionPolicy = first_valid) -> None:
        self.lookup = lookup
        self.select = select

    async def resolve(self, hostname: str) -> RedirectConfig:
        """Find the redirect configured for *hostname*.

        Args:
            hostname: Request host, without port.

        Returns:
            The configuration chosen by the selection policy.

        Raises:
            ResolverError: If the TXT lookup failed.
            NoValidRedirect: If no TXT record decoded successfully.
        """
        name = lookup_name(hostname)
        logger.debug("lookup: %s", name)

        try:
            payloads = await self.lookup(name)
        except (TxtLookupError, OSError, asyncio.TimeoutError) as exc:
            raise ResolverError(f"TXT lookup for {name} failed: {exc}") from exc

        configs: list[RedirectConfig] = []
        for payload in payloads:
            try:
                configs.append(parse_config(payload))
            except ConfigParseError as exc:
                logger.debug("discarding record %r for %s: %s", payload, name, exc)

        if not configs:
            raise NoValidRedirect(f"no valid redirect record at {name}")
        if len(configs) == 1:
            return configs[0]
        return self.select(configs)
