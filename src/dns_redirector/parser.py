"""Decoding of the `_redirect` TXT record payload.

Payload grammar::

    v=1; target=<absolute-url>[; replace_path=<true|false>]

Fields are separated by ``;`` plus optional whitespace. Each field splits on
its first ``=`` only, so values may contain ``=`` (query strings). Unknown
keys are ignored and the last occurrence of a duplicate key wins.
"""
from __future__ import annotations

import ipaddress
import re
from urllib.parse import urlsplit, urlunsplit

from .records import RedirectConfig

SUPPORTED_VERSION = 1

_DELIMITER = re.compile(r";\s*")
_VERSION = re.compile(r"\+?[0-9]+")
_FORBIDDEN = re.compile(r"[\s\x00-\x1f\x7f<>\"{}|\\^`]")
_HOST_LABEL = re.compile(r"[a-z0-9_-]{1,63}")


class ConfigParseError(ValueError):
    """Base class for TXT payloads that do not decode to a redirect."""


class MissingVersion(ConfigParseError):
    """The payload has no `v` field."""

    def __init__(self) -> None:
        super().__init__("missing version field 'v'")


class InvalidVersion(ConfigParseError):
    """The `v` field is not an unsigned 8-bit decimal integer.

    Attributes:
        raw: The offending field value.
    """

    def __init__(self, raw: str) -> None:
        super().__init__(f"invalid version {raw!r}")
        self.raw = raw


class UnsupportedVersion(ConfigParseError):
    """The `v` field names a version this parser does not implement.

    Attributes:
        version: The declared version.
    """

    def __init__(self, version: int) -> None:
        super().__init__(f"unsupported version {version}")
        self.version = version


class MissingTarget(ConfigParseError):
    """The payload has no `target` field."""

    def __init__(self) -> None:
        super().__init__("missing field 'target'")


class InvalidTarget(ConfigParseError):
    """The `target` field is not an absolute URL.

    Attributes:
        reason: Why the URL was rejected.
    """

    def __init__(self, reason: str) -> None:
        super().__init__(f"invalid target: {reason}")
        self.reason = reason


def split_fields(payload: str) -> dict[str, str]:
    """Split a payload into its key/value fields.

    Args:
        payload: Raw TXT record text.

    Returns:
        Mapping of key to value. Fields without ``=`` are dropped.
    """
    fields: dict[str, str] = {}
    for field in _DELIMITER.split(payload.strip()):
        key, sep, value = field.partition("=")
        if sep:
            fields[key] = value
    return fields


def _parse_version(raw: str) -> int:
    """Parse the `v` field as an unsigned 8-bit decimal integer.

    Args:
        raw: Field value.

    Returns:
        The version number.

    Raises:
        InvalidVersion: If `raw` is not a decimal integer in 0-255.
    """
    if not _VERSION.fullmatch(raw):
        raise InvalidVersion(raw)
    version = int(raw)
    if version > 0xFF:
        raise InvalidVersion(raw)
    return version


def _ascii_host(hostname: str, bracketed: bool) -> str:
    """Validate a URL host and return its ASCII form.

    Args:
        hostname: Lowercased host as split from the URL, brackets removed.
        bracketed: The host was written as an IPv6 literal.

    Returns:
        The host as it must appear in the URL: IP literals unchanged,
        domain names IDNA-encoded.

    Raises:
        InvalidTarget: If the host is neither an IP address nor a domain name.
    """
    if bracketed:
        try:
            ipaddress.IPv6Address(hostname)
        except ValueError as exc:
            raise InvalidTarget(f"invalid IPv6 address {hostname!r}") from exc
        return f"[{hostname}]"

    try:
        ipaddress.IPv4Address(hostname)
    except ValueError:
        pass
    else:
        return hostname

    try:
        encoded = hostname.encode("idna").decode("ascii")
    except UnicodeError as exc:
        raise InvalidTarget(f"invalid host {hostname!r}: {exc}") from exc
    if not all(_HOST_LABEL.fullmatch(label) for label in encoded.rstrip(".").split(".")):
        raise InvalidTarget(f"invalid host {hostname!r}")
    return encoded


def _parse_target(raw: str) -> str:
    """Validate the `target` field as an absolute URL.

    Args:
        raw: Field value.

    Returns:
        The URL with surrounding whitespace removed and its host in ASCII
        (IDNA) form.

    Raises:
        InvalidTarget: If the URL is relative, has no valid host or port, or
            contains characters a URL cannot carry.
    """
    raw = raw.strip()
    forbidden = _FORBIDDEN.search(raw)
    if forbidden:
        raise InvalidTarget(f"forbidden character {forbidden.group()!r}")
    try:
        parts = urlsplit(raw)
        port = parts.port
    except ValueError as exc:
        raise InvalidTarget(str(exc)) from exc
    if not parts.scheme:
        raise InvalidTarget("relative URL without a base")
    if not parts.hostname:
        raise InvalidTarget("empty host")

    host = _ascii_host(parts.hostname, "[" in parts.netloc)
    userinfo, at, _ = parts.netloc.rpartition("@")
    netloc = f"{userinfo}{at}{host}" + (f":{port}" if port is not None else "")
    return urlunsplit((parts.scheme, netloc, parts.path, parts.query, parts.fragment))


def parse_config(payload: str) -> RedirectConfig:
    """Decode one TXT payload into a `RedirectConfig`.

    Args:
        payload: Raw TXT record text.

    Returns:
        The decoded configuration.

    Raises:
        MissingVersion: No `v` field.
        InvalidVersion: `v` is not an unsigned 8-bit decimal integer.
        UnsupportedVersion: `v` is not the supported version.
        MissingTarget: No `target` field.
        InvalidTarget: `target` is not an absolute URL.
    """
    fields = split_fields(payload)

    if "v" not in fields:
        raise MissingVersion()
    version = _parse_version(fields["v"])
    if version != SUPPORTED_VERSION:
        raise UnsupportedVersion(version)

    if "target" not in fields:
        raise MissingTarget()
    target = _parse_target(fields["target"])

    replace_path = fields.get("replace_path") == "true"
    return RedirectConfig(target=target, replace_path=replace_path)
