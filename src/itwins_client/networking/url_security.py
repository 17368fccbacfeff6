"""Security policy for redirect targets.

A redirect the client follows receives the caller's bearer credential, so
the target must be HTTPS and must be one of the trusted API hosts. Hosts
are trusted when they equal an allowed domain exactly or carry an
environment prefix joined with a dash (``dev-api.bentley.com``).
"""

from __future__ import annotations

from typing import Iterable
from urllib.parse import urlsplit

from .config import DEFAULT_ALLOWED_DOMAINS
from .errors import RedirectValidationError


def is_trusted_host(hostname: str, allowed_domains: Iterable[str]) -> bool:
    host = hostname.lower()
    return any(
        host == domain or host.endswith(f"-{domain}")
        for domain in (d.lower() for d in allowed_domains)
    )


def validate_redirect_url(
    url: str, allowed_domains: Iterable[str] = DEFAULT_ALLOWED_DOMAINS
) -> None:
    """Raise RedirectValidationError unless ``url`` is safe to follow.

    Args:
        url: Absolute redirect target, usually a ``Location`` header value.
        allowed_domains: Trusted API domains.

    Raises:
        RedirectValidationError: The URL is malformed, is not HTTPS, or
            points at an untrusted host.
    """
    malformed = f'Invalid redirect URL: malformed URL "{url}"'
    try:
        parts = urlsplit(url)
        hostname = parts.hostname
        # Out-of-range or non-numeric ports only surface on access.
        _ = parts.port
    except ValueError as exc:
        raise RedirectValidationError(malformed) from exc

    if not parts.scheme:
        raise RedirectValidationError(malformed)

    scheme = parts.scheme.lower()
    if scheme != "https":
        raise RedirectValidationError(
            "Invalid redirect URL: HTTPS required, but URL uses "
            f'"{scheme}:" protocol. URL: {url}'
        )

    if not hostname:
        raise RedirectValidationError(malformed)

    domains = tuple(allowed_domains)
    if not is_trusted_host(hostname, domains):
        raise RedirectValidationError(
            f'Invalid redirect URL: domain "{hostname.lower()}" is not a '
            f"trusted Bentley domain. Only {', '.join(domains)} and its "
            "environment-prefixed hosts are allowed."
        )
