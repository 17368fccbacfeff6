"""Exceptions and error envelopes for the iTwins networking layer."""

from __future__ import annotations

from .types import ApiError, ResponseEnvelope

REDIRECTS_NOT_ALLOWED = "RedirectsNotAllowed"
INVALID_REDIRECT = "InvalidRedirect"
INVALID_REDIRECT_URL = "InvalidRedirectUrl"
TOO_MANY_REDIRECTS = "TooManyRedirects"
INTERNAL_SERVER_ERROR = "InternalServerError"

INTERNAL_SERVER_ERROR_MESSAGE = (
    "An internal exception happened while calling iTwins Service"
)


class ITwinsClientError(Exception):
    """Base error for the iTwins client."""


class RedirectValidationError(ITwinsClientError, ValueError):
    """A redirect target failed the URL security policy."""


class UnexpectedResponseError(ITwinsClientError):
    """The service answered with a failure body of an unknown shape."""


class RequestCancelledError(ITwinsClientError):
    """The caller cancelled the request before the next hop was sent."""


def redirects_not_allowed() -> ResponseEnvelope[None]:
    return ResponseEnvelope(
        status=403,
        error=ApiError(
            code=REDIRECTS_NOT_ALLOWED,
            message="Redirects are not allowed for this request.",
        ),
    )


def missing_location() -> ResponseEnvelope[None]:
    return ResponseEnvelope(
        status=502,
        error=ApiError(
            code=INVALID_REDIRECT,
            message="302 redirect response missing Location header",
        ),
    )


def invalid_redirect_url(reason: str) -> ResponseEnvelope[None]:
    return ResponseEnvelope(
        status=502,
        error=ApiError(code=INVALID_REDIRECT_URL, message=reason),
    )


def too_many_redirects(limit: int) -> ResponseEnvelope[None]:
    return ResponseEnvelope(
        status=508,
        error=ApiError(
            code=TOO_MANY_REDIRECTS,
            message=(
                f"Maximum redirect limit ({limit}) exceeded. "
                "Possible redirect loop detected."
            ),
        ),
    )


def internal_server_error() -> ResponseEnvelope[None]:
    return ResponseEnvelope(
        status=500,
        error=ApiError(
            code=INTERNAL_SERVER_ERROR,
            message=INTERNAL_SERVER_ERROR_MESSAGE,
        ),
    )
