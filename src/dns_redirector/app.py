"""HTTP front end turning resolved redirects into responses."""
from __future__ import annotations

import ipaddress
import logging
import re
from http import HTTPStatus
from urllib.parse import quote

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse, RedirectResponse, Response

from .config import Config
from .records import PATH_SAFE
from .resolver import NoValidRedirect, RedirectResolver, ResolverError

logger = logging.getLogger(__name__)

METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
_LABEL = re.compile(r"[a-z0-9_-]{1,63}")


class InvalidHost(ValueError):
    """The Host header does not name a domain."""


def parse_host(header: str | None) -> str:
    """Extract the domain name from a Host header.

    Args:
        header: Raw Host header value.

    Returns:
        Lowercased domain name without port or trailing dot.

    Raises:
        InvalidHost: If the header is empty, an IP literal or malformed.
    """
    if not header or not header.strip():
        raise InvalidHost("Unknown Host")
    host = header.strip()
    if host.startswith("["):
        raise InvalidHost("Invalid Host")
    host = host.rsplit(":", 1)[0] if ":" in host else host
    host = host.rstrip(".").lower()

    try:
        ipaddress.ip_address(host)
    except ValueError:
        pass
    else:
        raise InvalidHost("Invalid Host")

    labels = host.split(".")
    if not all(_LABEL.fullmatch(label) for label in labels):
        raise InvalidHost("Invalid Host")
    return host


def request_path(request: Request) -> str:
    """Return the request path as received, percent-encoded.

    Raw bytes that may not appear in a URL path are percent-encoded as they
    are, so UTF-8 sequences are encoded once.
    """
    raw = request.scope.get("raw_path")
    if raw:
        return quote(raw.split(b"?", 1)[0], safe=PATH_SAFE)
    return request.url.path


def bad_request(text: str, status: int = 400) -> Response:
    """Build a plain-text error response.

    Args:
        text: Short reason shown after the status line.
        status: HTTP status code.

    Returns:
        Response whose body is `<status> <phrase>: <text>` plus a newline.
    """
    phrase = HTTPStatus(status).phrase
    return PlainTextResponse(f"{status} {phrase}: {text}\n", status_code=status)


def create_app(config: Config, resolver: RedirectResolver) -> FastAPI:
    """Build the redirect application.

    Args:
        config: Server configuration; re-read on file change.
        resolver: Resolver used for every request.

    Returns:
        FastAPI application answering every path and method with a redirect.
    """
    app = FastAPI(title="DNS Redirector", docs_url=None, redoc_url=None, openapi_url=None)
    app.state.config = config
    app.state.resolver = resolver

    @app.api_route("/{path:path}", methods=METHODS)
    async def handle(request: Request) -> Response:
        config.maybe_reload()

        try:
            hostname = parse_host(request.headers.get("host"))
        except InvalidHost as exc:
            return bad_request(str(exc))

        try:
            found = await resolver.resolve(hostname)
        except ResolverError as exc:
            logger.warning("%s: %s", hostname, exc)
            return bad_request("Resolver Error", config.resolver_error_status)
        except NoValidRedirect as exc:
            logger.info("%s: %s", hostname, exc)
            return bad_request("No Valid Redirect")

        target = found.target_from(request_path(request))
        logger.debug("redirecting %s to %s", hostname, target)
        return RedirectResponse(target, status_code=config.redirect_status)

    return app
