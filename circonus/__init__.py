"""Client for the Circonus monitoring API.

Usage example:
    from circonus.client import CirconusClient, CHECK_BUNDLE
    client = CirconusClient.from_env()
    bundles = client.list(CHECK_BUNDLE)
"""
from .exceptions import (  # noqa: F401
    AccessDeniedError,
    ApiAuthError,
    ApiRateLimitError,
    ApiRequestError,
    CirconusError,
    EmptyResponseError,
    MalformedRequestError,
    MalformedResponseError,
    RateLimitExceededError,
    RequestCancelledError,
    RequestDataError,
    RequestTimeoutError,
    ResourceNotFoundError,
    TokenNotValidatedError,
    TransportError,
)
from .config import ClientConfig  # noqa: F401
from .request import ApiRequest  # noqa: F401
from .transport import CancelSignal, SessionTransport  # noqa: F401
from .client import CirconusClient  # noqa: F401
