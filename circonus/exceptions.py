from __future__ import annotations
from typing import Any, Dict, Optional


class ApiRequestError(Exception):
    """Base class for every error raised by the Circonus client.

    Two errors are equal when they are the same class carrying the same fields,
    which keeps response classification comparable across calls.
    """
    message = 'Circonus request failed'

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)

    def __eq__(self, other: object) -> bool:
        if type(self) is not type(other):
            return NotImplemented
        return self.args == other.args and vars(self) == vars(other)  # type: ignore[arg-type]

    def __hash__(self) -> int:
        return hash((type(self), self.args))


class RequestDataError(ApiRequestError):
    """Request body could not be encoded as JSON."""
    message = 'Cannot encode request data'

    def __init__(self, reason: str = ''):
        super().__init__()
        self.reason = reason


class TransportError(ApiRequestError):
    """The HTTP round trip itself failed (DNS, connect, protocol)."""

    def __init__(self, reason: str = ''):
        super().__init__(reason or 'Transport error')
        self.reason = reason


class MalformedRequestError(TransportError):
    """Request could not be built, normally a malformed URL."""

    def __init__(self, reason: str = ''):
        super().__init__(reason or 'Malformed request')


class EmptyResponseError(ApiRequestError):
    message = 'Empty response from Circonus'


class MalformedResponseError(ApiRequestError):
    message = 'Malformed JSON response from Circonus'

    def __init__(self, reason: str = ''):
        super().__init__()
        self.reason = reason


class ApiAuthError(ApiRequestError):
    """Authentication or authorization failure (401/403) or missing credentials."""


class TokenNotValidatedError(ApiAuthError):
    message = 'Invalid authentication token'


class AccessDeniedError(ApiAuthError):
    message = 'Access denied'


class ResourceNotFoundError(ApiRequestError):

    def __init__(self, endpoint: str):
        super().__init__(f'Circonus endpoint "{endpoint}" not found')
        self.endpoint = endpoint


class ApiRateLimitError(ApiRequestError):
    """Rate limiting encountered (429)."""


class RateLimitError(ApiRateLimitError):
    """A single attempt was rate limited. Consumed by the retry loop."""
    message = 'Request was rate limited'


class RateLimitExceededError(ApiRateLimitError):
    message = 'Request exceeded rate limit and exhausted retries'

    def __init__(self, attempts: int = 0):
        super().__init__()
        self.attempts = attempts


class RequestCancelledError(ApiRequestError):
    message = 'Request was cancelled'


class RequestTimeoutError(RequestCancelledError):

    def __init__(self, timeout: float):
        super().__init__(f'Request timed out after {timeout:g}s')
        self.timeout = timeout


class CirconusError(ApiRequestError):
    """Structured error body returned by the service for any other 4xx/5xx."""
    FIELDS = ('code', 'explanation', 'message', 'reference', 'tag', 'server')

    def __init__(self, code: str = '', explanation: str = '', message: str = '', reference: str = '',
                 tag: str = '', server: str = '', status: int = 0):
        super().__init__(explanation)
        self.code = code
        self.explanation = explanation
        self.message = message
        self.reference = reference
        self.tag = tag
        self.server = server
        self.status = status

    def __str__(self) -> str:
        return self.explanation

    @classmethod
    def from_payload(cls, payload: Dict[str, Any], status: int = 0) -> 'CirconusError':
        fields = {name: '' if payload.get(name) is None else str(payload.get(name)) for name in cls.FIELDS}
        return cls(status=status, **fields)

    def to_dict(self) -> Dict[str, str]:
        return {name: getattr(self, name) for name in self.FIELDS}
