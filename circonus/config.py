from __future__ import annotations
import os
from dataclasses import dataclass
from typing import Optional
from .exceptions import ApiAuthError

DEFAULT_HOST = 'https://api.circonus.com'
SUPPORTED_VERSION = 'v2'
DEFAULT_TIMEOUT = 30.0
DEFAULT_RETRY_ATTEMPTS = 5
DEFAULT_RETRY_INTERVAL = 1.0


def env(name: str, required: bool = True) -> Optional[str]:
    val = os.getenv(name)
    if required and (val is None or val.strip() == ''):
        raise ApiAuthError(f"Missing required environment variable: {name}")
    return val


def _env_number(name: str, default: float, cast=float):
    raw = os.getenv(name)
    if raw is None or raw.strip() == '':
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ValueError(f"Invalid value for {name}: {raw!r}") from None


@dataclass(frozen=True)
class ClientConfig:
    """Settings shared read-only by every call made through one client.

    timeout is the overall deadline of one call in seconds, retries included;
    0 disables it. retries bounds how many times a rate-limited call is
    re-attempted, and retry_interval is the fixed pause between attempts.
    """
    app_name: str
    api_token: str
    host: str = DEFAULT_HOST
    path: str = '/' + SUPPORTED_VERSION
    timeout: float = DEFAULT_TIMEOUT
    retries: int = DEFAULT_RETRY_ATTEMPTS
    retry_interval: float = DEFAULT_RETRY_INTERVAL

    def __post_init__(self):
        if self.retries < 0:
            raise ValueError('retries must be >= 0')
        if self.timeout < 0:
            raise ValueError('timeout must be >= 0 (0 disables the deadline)')
        if self.retry_interval < 0:
            raise ValueError('retry_interval must be >= 0')

    @classmethod
    def from_env(cls) -> 'ClientConfig':
        return cls(
            app_name=env('CIRCONUS_APP_NAME'),  # type: ignore[arg-type]
            api_token=env('CIRCONUS_API_TOKEN'),  # type: ignore[arg-type]
            host=os.getenv('CIRCONUS_API_HOST') or DEFAULT_HOST,
            path=os.getenv('CIRCONUS_API_PATH', '/' + SUPPORTED_VERSION),
            timeout=_env_number('CIRCONUS_TIMEOUT', DEFAULT_TIMEOUT),
            retries=_env_number('CIRCONUS_RETRIES', DEFAULT_RETRY_ATTEMPTS, cast=int),
            retry_interval=_env_number('CIRCONUS_RETRY_INTERVAL', DEFAULT_RETRY_INTERVAL),
        )

    def url_for(self, resource: str) -> str:
        base = self.host.rstrip('/') + '/' + self.path.strip('/')
        return base.rstrip('/') + '/' + resource.lstrip('/')
