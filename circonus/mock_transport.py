from __future__ import annotations
import io
import json
import threading
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Union
import requests
from .transport import CancelSignal


def make_response(status: int, body: Union[bytes, str] = b'', url: str = '') -> requests.Response:
    if isinstance(body, str):
        body = body.encode('utf-8')
    resp = requests.Response()
    resp.status_code = status
    resp.url = url
    resp.headers['Content-Type'] = 'application/json'
    resp.raw = io.BytesIO(body)
    return resp


def json_body(data: Any) -> str:
    return json.dumps(data)


def circonus_error_body(code: str = '1234', explanation: str = 'Intentional error', message: str = 'Test-triggered error',
                        reference: str = 'code-1234', tag: str = 'id-abcd', server: str = 'test') -> str:
    return json.dumps({
        'code': code,
        'explanation': explanation,
        'message': message,
        'reference': reference,
        'tag': tag,
        'server': server,
    })


@dataclass
class CannedResponse:
    status: int = 200
    body: Union[bytes, str] = b''
    delay: float = 0.0
    error: Optional[Exception] = None


class ScriptedTransport:
    """Transport double that replays canned responses in order.

    The last entry repeats once the script runs out. A delayed entry sleeps on
    the cancellation signal and fails like an aborted connection when it fires.
    """

    def __init__(self, script: Sequence[CannedResponse]):
        if not script:
            raise ValueError('script cannot be empty')
        self.script: List[CannedResponse] = list(script)
        self.requests: List[requests.PreparedRequest] = []
        self.aborted = 0
        self._lock = threading.Lock()

    @classmethod
    def always(cls, status: int = 200, body: Union[bytes, str] = b'', delay: float = 0.0) -> 'ScriptedTransport':
        return cls([CannedResponse(status, body, delay)])

    @classmethod
    def rate_limited(cls, times: int, body: Union[bytes, str] = '{"ok": true}') -> 'ScriptedTransport':
        """429 `times` times, then 200 with body."""
        limited = [CannedResponse(429, circonus_error_body()) for _ in range(times)]
        return cls(limited + [CannedResponse(200, body)])

    @property
    def calls(self) -> int:
        return len(self.requests)

    def execute_once(self, prepared: requests.PreparedRequest, signal: CancelSignal) -> requests.Response:
        with self._lock:
            index = min(len(self.requests), len(self.script) - 1)
            self.requests.append(prepared)
        canned = self.script[index]
        if canned.delay and signal.wait(canned.delay):
            with self._lock:
                self.aborted += 1
            raise requests.ConnectionError('connection aborted')
        if canned.error is not None:
            raise canned.error
        return make_response(canned.status, canned.body, prepared.url or '')
