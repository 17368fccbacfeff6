"""Conversion of raw HTTP responses into ResponseEnvelope values."""

from __future__ import annotations

import json
from typing import Any

import requests

from .errors import UnexpectedResponseError
from .types import ApiError, Err, Ok, ResponseEnvelope, Result


def is_success_status(status: int) -> bool:
    return 200 <= status < 300


def parse_error_body(payload: Any) -> Result[ApiError, str]:
    """Check that ``payload`` is ``{"error": {"code": str, "message": str}}``."""
    if not isinstance(payload, dict):
        return Err("error body is not a JSON object")
    error = payload.get("error")
    if not isinstance(error, dict):
        return Err("error body has no 'error' object")
    if not isinstance(error.get("code"), str):
        return Err("error object has no string 'code'")
    if not isinstance(error.get("message"), str):
        return Err("error object has no string 'message'")
    return Ok(ApiError.from_dict(error))


def _decode_body(response: requests.Response) -> Any:
    content = response.content
    if not content:
        return None
    payload = json.loads(content)
    if payload == "":
        return None
    return payload


def normalize_response(response: requests.Response) -> ResponseEnvelope[Any]:
    """Turn a terminal (non-redirect) response into an envelope.

    Failure bodies that are not in the service's error shape raise
    UnexpectedResponseError; malformed JSON raises json.JSONDecodeError.
    Callers are expected to flatten both into a generic error.
    """
    status = response.status_code
    if status == 204:
        return ResponseEnvelope(status=status)

    payload = _decode_body(response)

    if not is_success_status(status):
        parsed = parse_error_body(payload)
        if isinstance(parsed, Err):
            raise UnexpectedResponseError(
                f"unexpected error body for status {status}: {parsed.error}"
            )
        return ResponseEnvelope(status=status, error=parsed.value)

    return ResponseEnvelope(status=status, data=payload)
