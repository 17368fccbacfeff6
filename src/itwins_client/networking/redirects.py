"""Bounded, validated following of redirects with a readable target."""

from __future__ import annotations

import threading
from dataclasses import replace
from typing import Any, Mapping

import requests
import structlog

from .config import ClientConfig
from .errors import (
    RedirectValidationError,
    invalid_redirect_url,
    missing_location,
    too_many_redirects,
)
from .normalizer import normalize_response
from .transport import HttpTransport
from .types import Err, Ok, RequestSpec, ResponseEnvelope, Result
from .url_security import validate_redirect_url

logger = structlog.get_logger(__name__)

# Auth headers a redirecting service may hand out for the next hop.
# ``authorization`` is never taken from a redirect response.
FORWARDED_AUTH_HEADERS = ("x-api-key", "x-auth-token", "api-key")

SEE_OTHER_STATUS = 303


def extract_redirect_auth_headers(
    response: requests.Response,
) -> dict[str, str]:
    """Return forwarded auth headers from a redirect response, lower-cased."""
    forwarded: dict[str, str] = {}
    for key, value in response.headers.items():
        lower_key = key.lower()
        if lower_key in FORWARDED_AUTH_HEADERS:
            forwarded[lower_key] = value
    return forwarded


def _next_hop(
    request: RequestSpec,
    response: requests.Response,
    location: str,
    extra_headers: Mapping[str, str],
) -> RequestSpec:
    next_request = request.with_url(location, extra_headers)
    # 303 See Other is always fetched with a bodiless GET.
    if response.status_code == SEE_OTHER_STATUS and request.method != "GET":
        headers = {
            key: value
            for key, value in next_request.headers.items()
            if key != "content-type"
        }
        next_request = replace(
            next_request, method="GET", headers=headers, body=None
        )
    return next_request


class RedirectResolver:
    """Follows redirects one hop at a time.

    Each hop is checked against the redirect bound, the presence of a
    ``Location`` header and the URL security policy, in that order, before
    anything is sent to the new target.
    """

    def __init__(self, transport: HttpTransport, config: ClientConfig) -> None:
        self._transport = transport
        self._config = config

    def check_redirect(
        self, response: requests.Response, depth: int
    ) -> Result[str, ResponseEnvelope[None]]:
        """Validate one redirect response.

        Returns:
            Ok with the target URL, or Err with the envelope to hand back.
        """
        limit = self._config.max_redirects
        if depth >= limit:
            logger.warning("redirect_limit_reached", depth=depth, limit=limit)
            return Err(too_many_redirects(limit))

        location = response.headers.get("location")
        if not location:
            logger.warning("redirect_missing_location", depth=depth)
            return Err(missing_location())

        try:
            validate_redirect_url(
                location, self._config.allowed_redirect_domains
            )
        except RedirectValidationError as exc:
            logger.warning("redirect_rejected", depth=depth, reason=str(exc))
            return Err(invalid_redirect_url(str(exc)))

        return Ok(location)

    def resolve(
        self,
        response: requests.Response,
        request: RequestSpec,
        depth: int = 0,
        cancel_event: threading.Event | None = None,
    ) -> ResponseEnvelope[Any]:
        """Follow ``response`` (a redirect) until a terminal response or a stop.

        Args:
            response: The redirect response that started the chain.
            request: The request that produced ``response``; its method,
                body and headers are replayed on every hop, except that a
                303 turns it into a bodiless GET.
            depth: Number of hops already followed.
            cancel_event: Checked before every hop.

        Returns:
            The normalized terminal response, or an error envelope when the
            chain is too long or a hop is unsafe.
        """
        while True:
            checked = self.check_redirect(response, depth)
            if isinstance(checked, Err):
                return checked.error

            extra: Mapping[str, str] = extract_redirect_auth_headers(response)
            request = _next_hop(request, response, checked.value, extra)
            logger.debug(
                "redirect_follow",
                depth=depth,
                method=request.method,
                url=request.url,
            )
            response = self._transport.send(
                request, follow_redirects=False, cancel_event=cancel_event
            )
            if not self._transport.is_explicit_redirect(response):
                return normalize_response(response)
            depth += 1
