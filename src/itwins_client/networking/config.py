"""Configuration model for the iTwins client."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Iterable, Mapping
from urllib.parse import urlsplit, urlunsplit

DEFAULT_BASE_URL = "https://api.bentley.com/itwins"
DEFAULT_MAX_REDIRECTS = 5
DEFAULT_ALLOWED_DOMAINS: tuple[str, ...] = ("api.bentley.com",)

URL_PREFIX_ENV = "IMJS_URL_PREFIX"
MAX_REDIRECTS_ENV = "IMJS_MAX_REDIRECTS"


def _normalize_domains(domains: Iterable[str]) -> tuple[str, ...]:
    """Return lower-cased, de-duplicated domains in their original order."""

    seen: dict[str, None] = {}
    for domain in domains:
        cleaned = domain.strip().lower()
        if cleaned:
            seen.setdefault(cleaned, None)
    return tuple(seen)


def _prefix_hostname(url: str, prefix: str) -> str:
    parts = urlsplit(url)
    netloc = f"{prefix}{parts.hostname}"
    if parts.port is not None:
        netloc = f"{netloc}:{parts.port}"
    return urlunsplit(parts._replace(netloc=netloc))


@dataclass(frozen=True)
class ClientConfig:
    """Settings fixed for the lifetime of a client.

    Every request made through one client observes the same values, so a
    client can be shared between threads without locking.
    """

    base_url: str = DEFAULT_BASE_URL
    max_redirects: int = DEFAULT_MAX_REDIRECTS
    allowed_redirect_domains: tuple[str, ...] = DEFAULT_ALLOWED_DOMAINS
    user_agent: str | None = "itwins-client-python"
    verify_tls: bool = True
    connect_timeout_seconds: float | None = None
    read_timeout_seconds: float | None = None
    timeout_seconds: float | None = 30.0

    def __post_init__(self) -> None:
        if not self.base_url:
            raise ValueError("base_url must be a non-empty URL")
        if isinstance(self.max_redirects, bool) or self.max_redirects < 0:
            raise ValueError("max_redirects must be >= 0")

        domains = _normalize_domains(self.allowed_redirect_domains)
        if not domains:
            raise ValueError("allowed_redirect_domains must not be empty")
        object.__setattr__(self, "allowed_redirect_domains", domains)

        has_connect_timeout = self.connect_timeout_seconds is not None
        has_read_timeout = self.read_timeout_seconds is not None
        if has_connect_timeout != has_read_timeout:
            raise ValueError(
                "connect_timeout_seconds and read_timeout_seconds "
                "must be set together"
            )
        if self.timeout_seconds is not None and self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0 when provided")
        if (
            self.connect_timeout_seconds is not None
            and self.connect_timeout_seconds <= 0
        ):
            raise ValueError(
                "connect_timeout_seconds must be > 0 when provided"
            )
        if (
            self.read_timeout_seconds is not None
            and self.read_timeout_seconds <= 0
        ):
            raise ValueError("read_timeout_seconds must be > 0 when provided")

    @property
    def timeout(self) -> float | tuple[float, float] | None:
        """Timeout in the form ``requests`` expects."""
        if (
            self.connect_timeout_seconds is not None
            and self.read_timeout_seconds is not None
        ):
            return (self.connect_timeout_seconds, self.read_timeout_seconds)
        return self.timeout_seconds

    @classmethod
    def from_env(
        cls, environ: Mapping[str, str] | None = None, **overrides: Any
    ) -> ClientConfig:
        """Build a config, reading the process environment exactly once.

        ``IMJS_URL_PREFIX`` (for example ``dev-``) is prepended to the base
        URL hostname unless ``base_url`` is passed explicitly, and
        ``IMJS_MAX_REDIRECTS`` replaces the default redirect bound unless
        ``max_redirects`` is passed explicitly.
        """
        env = os.environ if environ is None else environ

        if "base_url" not in overrides:
            prefix = env.get(URL_PREFIX_ENV, "").strip()
            if prefix:
                overrides["base_url"] = _prefix_hostname(
                    DEFAULT_BASE_URL, prefix
                )

        if "max_redirects" not in overrides:
            raw = env.get(MAX_REDIRECTS_ENV, "").strip()
            if raw:
                try:
                    overrides["max_redirects"] = int(raw)
                except ValueError as exc:
                    raise ValueError(
                        f"{MAX_REDIRECTS_ENV} must be an integer, got {raw!r}"
                    ) from exc

        return cls(**overrides)
