"""CLI for the DNS redirect server."""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from .protocol import ResolverConfigError
from .server import serve


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        argparse.Namespace: Parsed CLI options:
            - config (str | None): Path to YAML config file.
            - host (str | None): Bind address.
            - port (int | None): HTTP port.
            - log_level (str | None): Logging level.
    """
    parser = argparse.ArgumentParser(
        description="HTTP redirects configured through DNS TXT records",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--config", default=None, help="Path to YAML config")
    parser.add_argument("--host", default=None, help="Bind address (overrides config)")
    parser.add_argument("--port", type=int, default=None, help="HTTP port (overrides config)")
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (overrides config)",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Run the CLI entry point.

    Returns:
        int: Process exit status.
    """
    args = parse_args(argv)
    try:
        asyncio.run(serve(args.config, args.host, args.port, args.log_level))
    except (KeyboardInterrupt, SystemExit):
        pass
    except (OSError, ValueError, ResolverConfigError) as exc:
        logging.getLogger(__name__).error("cannot start: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
