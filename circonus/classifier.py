"""Maps a completed HTTP response onto a decoded value or a client error.

The status line is checked before the body: 401/403/404/429 are recognized
without parsing anything, since those bodies may be absent or not JSON.
"""
from __future__ import annotations
import json
from typing import Any
from .exceptions import (
    AccessDeniedError,
    CirconusError,
    EmptyResponseError,
    MalformedResponseError,
    RateLimitError,
    ResourceNotFoundError,
    TokenNotValidatedError,
)


def _decode(body: bytes) -> Any:
    try:
        return json.loads(body.decode('utf-8'))
    except (UnicodeDecodeError, ValueError) as e:
        raise MalformedResponseError(str(e)) from e


def classify_response(status: int, body: bytes, endpoint: str) -> Any:
    """Return the decoded body of a successful response, raise otherwise."""
    if status < 400:
        if not body.strip():
            raise EmptyResponseError()
        return _decode(body)

    if status == 401:
        raise TokenNotValidatedError()
    if status == 403:
        raise AccessDeniedError()
    if status == 404:
        raise ResourceNotFoundError(endpoint)
    if status == 429:
        raise RateLimitError()

    payload = _decode(body)
    if not isinstance(payload, dict):
        raise MalformedResponseError(f"Expected a JSON object in error response, got {type(payload).__name__}")
    raise CirconusError.from_payload(payload, status=status)
