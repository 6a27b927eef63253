"""Server entry point and lifecycle management."""
from __future__ import annotations

import asyncio
import logging

import uvicorn

from .app import create_app
from .config import Config
from .protocol import DnsTxtLookup
from .resolver import RedirectResolver, SeededChoice, SelectionPolicy, first_valid


def build_resolver(config: Config) -> RedirectResolver:
    """Create the resolver described by *config*.

    Raises:
        ResolverConfigError: If no nameserver is configured or discoverable.
    """
    lookup = DnsTxtLookup(config.nameservers, port=config.dns_port, timeout=config.timeout, tcp=config.tcp)

    select: SelectionPolicy = first_valid
    if config.selection == "random":
        select = SeededChoice(config.seed)
    return RedirectResolver(lookup, select)


async def serve(
    config_path: str | None,
    host: str | None = None,
    port: int | None = None,
    log_level: str | None = None,
) -> None:
    """Run the HTTP redirect server.

    Loads configuration, builds the DNS-backed resolver and serves until
    cancelled. Arguments left as None fall back to the configuration file.

    Args:
        config_path (str | None): Path to the YAML configuration file.
        host (str | None): IP address to bind to.
        port (int | None): TCP port number to listen on.
        log_level (str | None): Logging verbosity level.

    Raises:
        FileNotFoundError: If `config_path` does not exist.
        ValueError: If the configuration is invalid.
        ResolverConfigError: If no nameserver can be determined.
    """
    logging.basicConfig(format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    root = logging.getLogger()
    root.setLevel(getattr(logging, (log_level or "INFO").upper(), logging.INFO))
    logger = logging.getLogger(__name__)

    config = Config(config_path)
    level = (log_level or config.log_level).upper()
    root.setLevel(getattr(logging, level, logging.INFO))

    app = create_app(config, build_resolver(config))
    server = uvicorn.Server(
        uvicorn.Config(
            app,
            host=host or config.listen_host,
            port=port if port is not None else config.listen_port,
            log_level=level.lower(),
            log_config=None,
        )
    )

    try:
        await server.serve()
    except asyncio.CancelledError:
        logger.info("server task cancelled")
    finally:
        logger.info("shutting down…")
