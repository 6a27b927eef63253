"""Data structures representing decoded redirect configurations."""
from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import quote, urlsplit, urlunsplit

# Characters allowed verbatim in a URL path; "%" keeps existing escapes intact.
PATH_SAFE = "/%:@!$&'()*+,;=-._~"


@dataclass(frozen=True, slots=True)
class RedirectConfig:
    """Redirect configuration decoded from a single TXT record.

    Attributes:
        target (str): Absolute URL to redirect to.
        replace_path (bool): Carry the request path over onto `target`.
    """

    target: str
    replace_path: bool = False

    def target_from(self, request_path: str) -> str:
        """Compute the redirect destination for a request path.

        Args:
            request_path: Path of the inbound request, as received.

        Returns:
            `target` unchanged when `replace_path` is false; otherwise `target`
            with its path replaced by `request_path`, keeping scheme, host,
            port, query and fragment.
        """
        if not self.replace_path:
            return self.target

        parts = urlsplit(self.target)
        path = quote(request_path, safe=PATH_SAFE)
        if not path.startswith("/"):
            path = "/" + path
        return urlunsplit((parts.scheme, parts.netloc, path, parts.query, parts.fragment))
