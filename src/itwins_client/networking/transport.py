"""Synchronous HTTP transport for the iTwins networking layer.

The transport only moves bytes: it sends one RequestSpec and hands back
the raw ``requests.Response``. Deciding whether a redirect may be followed
is left to the sender, so redirect following is off unless the caller
explicitly asks for it. Even then every hop is checked against the URL
security policy before requests sends it.
"""

from __future__ import annotations

import threading
from typing import Any
from urllib.parse import urljoin

import requests
import structlog

from .config import ClientConfig
from .errors import RequestCancelledError
from .types import RequestSpec
from .url_security import validate_redirect_url

logger = structlog.get_logger(__name__)

EXPLICIT_REDIRECT_STATUS = 302

REDIRECT_STATUSES = frozenset({301, 302, 303, 307, 308})


def redirect_target(response: requests.Response) -> str | None:
    """Return the ``Location`` of a response, or None when it has none."""
    return response.headers.get("location") or None


class HttpTransport:
    """Thin wrapper around a ``requests.Session``.

    ``requests`` does not promise that a Session is thread-safe, so give
    each thread its own transport.
    """

    def __init__(self, config: ClientConfig) -> None:
        self._config = config
        self._session = requests.Session()
        self._session.max_redirects = config.max_redirects
        if self._config.user_agent:
            self._session.headers["User-Agent"] = self._config.user_agent

    def __enter__(self) -> HttpTransport:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        self._session.close()

    def send(
        self,
        request: RequestSpec,
        *,
        follow_redirects: bool = False,
        cancel_event: threading.Event | None = None,
    ) -> requests.Response:
        """Send one request.

        Args:
            request: The request to send.
            follow_redirects: Let requests chase redirects itself. Each
                redirect target is validated before the next hop goes out.
            cancel_event: When set before the request goes out,
                RequestCancelledError is raised instead.

        Returns:
            The raw response with its body already read.

        Raises:
            RedirectValidationError: In follow mode, a hop pointed at an
                untrusted URL. Nothing was sent to it.
        """
        if cancel_event is not None and cancel_event.is_set():
            raise RequestCancelledError(
                f"{request.method} request cancelled before it was sent"
            )

        extra: dict[str, Any] = {}
        if follow_redirects:
            extra["hooks"] = {"response": self._check_redirect_hop}

        response = self._session.request(
            request.method,
            request.url,
            headers=dict(request.headers),
            data=request.body,
            timeout=self._config.timeout,
            allow_redirects=follow_redirects,
            verify=self._config.verify_tls,
            **extra,
        )
        logger.debug(
            "http_response",
            method=request.method,
            url=request.url,
            status=response.status_code,
            follow_redirects=follow_redirects,
        )
        return response

    def _check_redirect_hop(
        self, response: requests.Response, *args: Any, **kwargs: Any
    ) -> requests.Response:
        # Response hooks run before requests resolves the redirect, so a
        # rejected target never receives the next hop.
        if response.is_redirect:
            location = self._session.get_redirect_target(response)
            validate_redirect_url(
                urljoin(response.url, location),
                self._config.allowed_redirect_domains,
            )
        return response

    @staticmethod
    def is_explicit_redirect(response: requests.Response) -> bool:
        """Return True for redirects the client follows hop by hop.

        That is every 302, and any other redirect status whose target is
        readable.
        """
        status = response.status_code
        if status == EXPLICIT_REDIRECT_STATUS:
            return True
        return status in REDIRECT_STATUSES and redirect_target(response) is not None

    @staticmethod
    def is_opaque_redirect(response: requests.Response) -> bool:
        """Return True for a redirect status that does not expose a target."""
        status = response.status_code
        return (
            status in REDIRECT_STATUSES
            and status != EXPLICIT_REDIRECT_STATUS
            and redirect_target(response) is None
        )

    @staticmethod
    def was_redirected(response: requests.Response) -> bool:
        return bool(response.history)
