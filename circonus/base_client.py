from __future__ import annotations
import json
import time
import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError, wait
from typing import Any, Dict, Optional
import requests
from .classifier import classify_response
from .config import ClientConfig
from .exceptions import (
    MalformedRequestError,
    RateLimitError,
    RateLimitExceededError,
    RequestDataError,
    RequestTimeoutError,
    TransportError,
)
from .request import ApiRequest
from .transport import CancelSignal, SessionTransport

logger = logging.getLogger(__name__)

WORKER_THREAD_PREFIX = 'circonus-send'


class BaseClient:
    """Base HTTP client: per-call deadline, cancellation and rate-limit retries.

    send() is the single entry point. Each call runs its retry loop on its own
    worker thread while the calling thread waits on the deadline, so calls made
    concurrently through one client never wait on each other.
    """

    def __init__(self, config: ClientConfig, transport: Any = None):
        self.config = config
        self.transport = transport or SessionTransport()

    def _headers(self) -> Dict[str, str]:
        return {
            'Accept': 'application/json',
            'Content-Type': 'application/json',
            'X-Circonus-App-Name': self.config.app_name,
            'X-Circonus-Auth-Token': self.config.api_token,
        }

    def send(self, request: ApiRequest, cancel: Optional[CancelSignal] = None) -> Any:
        """Execute request and return the decoded JSON body.

        Raises RequestTimeoutError once config.timeout elapses (retries and
        delays included) and RequestCancelledError when `cancel` fires first.
        """
        timeout = self.config.timeout or None
        signal = CancelSignal(timeout)
        detach = None
        if cancel is not None:
            detach = cancel.add_callback(lambda: signal.cancel(cancel.error))
        try:
            with ThreadPoolExecutor(max_workers=1, thread_name_prefix=WORKER_THREAD_PREFIX) as pool:
                future = pool.submit(self._retry_loop, request, signal)
                try:
                    return future.result(timeout=timeout)
                except FutureTimeoutError:
                    if future.done():
                        # finished right at the deadline, or raised a TimeoutError of its own
                        return future.result()
                    signal.cancel(RequestTimeoutError(timeout))  # type: ignore[arg-type]
                    # the aborted attempt has to unwind before the call returns
                    wait([future])
                    logger.warning("%s %s gave up after %.2fs", request.method, request.resource, timeout)
                    raise signal.error from None  # type: ignore[misc]
        finally:
            if detach is not None:
                detach()

    def _retry_loop(self, request: ApiRequest, signal: CancelSignal) -> Any:
        attempt = 0
        started = time.monotonic()
        while True:
            try:
                return self._try_request(request, signal, attempt)
            except RateLimitError:
                if attempt >= self.config.retries:
                    logger.warning("%s %s still rate limited after %d attempt(s)", request.method, request.resource, attempt + 1)
                    raise RateLimitExceededError(attempts=attempt + 1) from None
            attempt += 1
            logger.info(
                "Rate limited on %s %s, retrying (%d/%d) in %.2fs (elapsed %.2fs)",
                request.method, request.resource, attempt, self.config.retries,
                self.config.retry_interval, time.monotonic() - started,
            )
            if signal.wait(self.config.retry_interval):
                raise signal.error  # type: ignore[misc]

    def _encode(self, data: Any) -> Optional[bytes]:
        if data is None:
            return None
        try:
            return json.dumps(data, allow_nan=False).encode('utf-8')
        except (TypeError, ValueError) as e:
            raise RequestDataError(str(e)) from e

    def _prepare(self, request: ApiRequest) -> requests.PreparedRequest:
        body = self._encode(request.data)
        url = self.config.url_for(request.resource)
        try:
            return requests.Request(
                request.method, url, headers=self._headers(), params=dict(request.params), data=body,
            ).prepare()
        except (requests.exceptions.MissingSchema, requests.exceptions.InvalidSchema,
                requests.exceptions.InvalidURL) as e:
            raise MalformedRequestError(str(e)) from e

    def _try_request(self, request: ApiRequest, signal: CancelSignal, attempt: int = 0) -> Any:
        prepared = self._prepare(request)
        signal.raise_if_cancelled()
        logger.debug("%s %s (attempt %d)", prepared.method, prepared.url, attempt + 1)

        try:
            resp = self.transport.execute_once(prepared, signal)
        except Exception as e:
            # an aborted socket surfaces as whatever the read was doing
            signal.raise_if_cancelled()
            if isinstance(e, (requests.exceptions.MissingSchema, requests.exceptions.InvalidSchema,
                              requests.exceptions.InvalidURL)):
                raise MalformedRequestError(str(e)) from e
            if isinstance(e, requests.RequestException):
                raise TransportError(str(e)) from e
            raise

        remove = signal.add_callback(resp.close)
        try:
            body = resp.content
        except Exception as e:
            signal.raise_if_cancelled()
            if isinstance(e, requests.RequestException):
                raise TransportError(str(e)) from e
            raise
        finally:
            remove()
            resp.close()
        # a body cut short by an abort can look complete
        signal.raise_if_cancelled()
        return classify_response(resp.status_code, body or b'', request.resource)
