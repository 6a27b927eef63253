"""Configuration loading for the redirect server."""
from __future__ import annotations

import logging
import os
from typing import Any

import yaml

logger = logging.getLogger(__name__)

REDIRECT_STATUSES: tuple[int, ...] = (301, 302, 303, 307, 308)
RESOLVER_ERROR_STATUSES: tuple[int, ...] = (400, 502, 503)
SELECTIONS: tuple[str, ...] = ("first", "random")
LOG_LEVELS: tuple[str, ...] = ("DEBUG", "INFO", "WARNING", "ERROR")


def _section(data: dict[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key) or {}
    if not isinstance(value, dict):
        raise ValueError(f"'{key}' must be a mapping, got {type(value).__name__}")
    return value


def _choice(value: Any, allowed: tuple, key: str) -> Any:
    if value not in allowed:
        raise ValueError(f"{key} must be one of {', '.join(map(str, allowed))} (got {value!r})")
    return value


class Config:
    """Parsed server configuration.

    Args:
        path: Filesystem path to the YAML configuration, or None for defaults.

    Attributes:
        path: Path to the YAML config file.
        listen_host: HTTP bind address.
        listen_port: HTTP port.
        nameservers: Upstream nameservers; empty means use the system ones.
        dns_port: Upstream nameserver port.
        timeout: Seconds allowed per DNS exchange.
        tcp: Query nameservers over TCP only.
        redirect_status: HTTP status of successful redirects.
        resolver_error_status: HTTP status when the TXT lookup fails.
        selection: Policy among several valid records ("first" or "random").
        seed: Seed for the "random" policy.
        log_level: Logging level name.
    """

    def __init__(self, path: str | None = None) -> None:
        """Initialize and load configuration.

        Args:
            path: Path to YAML file.
        """
        self.path = path
        self._mtime = 0.0
        self.listen_host = "127.0.0.1"
        self.listen_port = 1337
        self.nameservers: list[str] = []
        self.dns_port = 53
        self.timeout = 2.0
        self.tcp = False
        self.redirect_status = 301
        self.resolver_error_status = 400
        self.selection = "first"
        self.seed: int | None = None
        self.log_level = "INFO"
        if path is not None:
            self.load(force=True)

    def load(self, force: bool = False) -> None:
        """Load or reload YAML configuration.

        Args:
            force: Reload regardless of file mtime.

        Raises:
            ValueError: On invalid YAML structure or values.
            FileNotFoundError: If the config is missing and `force=True`.
        """
        if self.path is None:
            return
        try:
            st = os.stat(self.path)
        except FileNotFoundError:
            if force:
                raise
            return

        if not force and st.st_mtime <= self._mtime:
            return

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"YAML parsing error: {exc}") from exc
        if not isinstance(data, dict):
            raise ValueError("configuration root must be a mapping")

        listen = _section(data, "listen")
        resolver = _section(data, "resolver")
        redirect = _section(data, "redirect")

        try:
            listen_host = str(listen.get("host", "127.0.0.1"))
            listen_port = int(listen.get("port", 1337))
            dns_port = int(resolver.get("port", 53))
            timeout = float(resolver.get("timeout", 2.0))
            redirect_status = int(redirect.get("status", 301))
            resolver_error_status = int(redirect.get("resolver_error_status", 400))
            seed = redirect.get("seed")
            seed = None if seed is None else int(seed)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"invalid value: {exc}") from exc

        nameservers = resolver.get("nameservers") or []
        if not isinstance(nameservers, list):
            raise ValueError("'resolver.nameservers' must be a list")
        if timeout <= 0:
            raise ValueError(f"resolver.timeout must be positive (got {timeout})")
        _choice(redirect_status, REDIRECT_STATUSES, "redirect.status")
        _choice(resolver_error_status, RESOLVER_ERROR_STATUSES, "redirect.resolver_error_status")
        selection = _choice(redirect.get("selection", "first"), SELECTIONS, "redirect.selection")
        log_level = _choice(str(data.get("log_level", "INFO")).upper(), LOG_LEVELS, "log_level")

        self.listen_host = listen_host
        self.listen_port = listen_port
        self.nameservers = [str(ns).strip() for ns in nameservers]
        self.dns_port = dns_port
        self.timeout = timeout
        self.tcp = bool(resolver.get("tcp", False))
        self.redirect_status = redirect_status
        self.resolver_error_status = resolver_error_status
        self.selection = selection
        self.seed = seed
        self.log_level = log_level
        self._mtime = st.st_mtime
        logger.info("configuration loaded from %s", self.path)

    def maybe_reload(self) -> None:
        """Reload on mtime change; keep last good config on errors.

        Returns:
            None
        """
        try:
            self.load(force=False)
        except (ValueError, yaml.YAMLError, OSError) as exc:
            logger.error("failed to reload configuration: %s", exc)
