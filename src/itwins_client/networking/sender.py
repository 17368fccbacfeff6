"""Authenticated request entry point with safe redirect handling."""

from __future__ import annotations

import json
import threading
from typing import Any, Mapping

import requests
import structlog

from .config import ClientConfig
from .errors import (
    RedirectValidationError,
    RequestCancelledError,
    internal_server_error,
    invalid_redirect_url,
    redirects_not_allowed,
    too_many_redirects,
)
from .normalizer import normalize_response
from .redirects import RedirectResolver
from .transport import HttpTransport
from .types import Method, RequestSpec, ResponseEnvelope
from .url_security import validate_redirect_url

logger = structlog.get_logger(__name__)

JSON_CONTENT_TYPE = "application/json"
BINARY_CONTENT_TYPE = "application/octet-stream"

BINARY_BODY_TYPES = (bytes, bytearray, memoryview)


def _require_target(credential: str, url: str) -> None:
    if not credential:
        raise ValueError("Access token is required")
    if not url:
        raise ValueError("URL is required")


def build_request(
    credential: str,
    method: Method,
    url: str,
    body: Any | None = None,
    headers: Mapping[str, str] | None = None,
) -> RequestSpec:
    """Assemble the outgoing request.

    Caller headers are kept (names lower-cased), ``authorization`` is always
    the credential, and ``content-type`` defaults to JSON. Binary bodies are
    sent untouched; everything else is JSON-encoded.

    Raises:
        ValueError: ``credential`` or ``url`` is empty.
    """
    _require_target(credential, url)

    merged = {key.lower(): value for key, value in (headers or {}).items()}
    is_binary = isinstance(body, BINARY_BODY_TYPES)

    if is_binary:
        payload: bytes | str | None = bytes(body)
    elif body is not None:
        payload = json.dumps(body)
    else:
        payload = None

    if not merged.get("content-type"):
        merged["content-type"] = (
            BINARY_CONTENT_TYPE if is_binary else JSON_CONTENT_TYPE
        )
    merged["authorization"] = credential

    return RequestSpec(method=method, url=url, headers=merged, body=payload)


class RequestSender:
    """Sends authenticated requests and decides which redirects to follow.

    The transport never follows redirects on its own. Every 302, and any
    other redirect with a readable ``Location``, goes through
    RedirectResolver. A redirect status without a target is opaque: when
    allowed, the request is replayed once with the transport in follow
    mode, which checks each hop, and the final URL is checked afterwards.

    Every outcome is a ResponseEnvelope. Failures the sender cannot
    classify become one generic InternalServerError so distinct internal
    failure modes look the same from outside.
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        transport: HttpTransport | None = None,
    ) -> None:
        self._config = config or ClientConfig()
        self._transport = transport or HttpTransport(self._config)
        self._redirects = RedirectResolver(self._transport, self._config)

    @property
    def config(self) -> ClientConfig:
        return self._config

    def close(self) -> None:
        self._transport.close()

    def send(
        self,
        credential: str,
        method: Method,
        url: str,
        body: Any | None = None,
        headers: Mapping[str, str] | None = None,
        allow_redirects: bool = False,
        cancel_event: threading.Event | None = None,
    ) -> ResponseEnvelope[Any]:
        """Send one logical request.

        Args:
            credential: Value for the ``authorization`` header.
            method: HTTP method.
            url: Absolute request URL.
            body: JSON-serializable payload, or raw bytes.
            headers: Extra request headers.
            allow_redirects: Follow validated redirects instead of answering
                403 RedirectsNotAllowed.
            cancel_event: Checked before every hop; once set the call raises
                RequestCancelledError.

        Returns:
            The response envelope.

        Raises:
            ValueError: ``credential`` or ``url`` is empty.
            RequestCancelledError: ``cancel_event`` was set.
        """
        _require_target(credential, url)
        try:
            request = build_request(credential, method, url, body, headers)
            response = self._transport.send(
                request, follow_redirects=False, cancel_event=cancel_event
            )

            if self._transport.is_opaque_redirect(response):
                if not allow_redirects:
                    return redirects_not_allowed()
                return self._follow_opaque_redirect(request, cancel_event)

            if self._transport.is_explicit_redirect(response):
                if not allow_redirects:
                    return redirects_not_allowed()
                return self._redirects.resolve(
                    response, request, depth=0, cancel_event=cancel_event
                )

            return normalize_response(response)
        except RequestCancelledError:
            raise
        except Exception as exc:
            logger.warning(
                "request_failed",
                method=method,
                url=url,
                error_type=type(exc).__name__,
            )
            return internal_server_error()

    def _follow_opaque_redirect(
        self,
        request: RequestSpec,
        cancel_event: threading.Event | None,
    ) -> ResponseEnvelope[Any]:
        try:
            response = self._transport.send(
                request, follow_redirects=True, cancel_event=cancel_event
            )
        except requests.exceptions.TooManyRedirects:
            logger.warning(
                "redirect_limit_reached",
                limit=self._config.max_redirects,
                follow_mode=True,
            )
            return too_many_redirects(self._config.max_redirects)
        except RedirectValidationError as exc:
            logger.warning(
                "redirect_rejected", reason=str(exc), follow_mode=True
            )
            return invalid_redirect_url(str(exc))

        if self._transport.was_redirected(response):
            try:
                validate_redirect_url(
                    response.url, self._config.allowed_redirect_domains
                )
            except RedirectValidationError as exc:
                logger.warning("redirect_rejected", reason=str(exc))
                return invalid_redirect_url(str(exc))

        return normalize_response(response)
