import json
import threading
import time
from dataclasses import dataclass, field
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Dict, List, Optional
from urllib.parse import parse_qsl, urlsplit

import pytest

from circonus.base_client import WORKER_THREAD_PREFIX
from circonus.client import CirconusClient
from circonus.config import ClientConfig
from circonus.mock_transport import circonus_error_body

MALFORMED_JSON = '{ count:4 )'
SUCCESS_JSON = '{ "data":[1,2,3,4] }'
SLOW_RESPONSE_DELAY = 0.55
# upper bound on how long a stalling handler holds its connection
STALL_LIMIT = 4.0
TRICKLE_INTERVAL = 0.3


def make_config(**overrides) -> ClientConfig:
    settings = dict(
        app_name='sampleapp',
        api_token='abc123',
        host='http://circonus.test',
        path='',
        timeout=0.5,
        retries=5,
        retry_interval=0.01,
    )
    settings.update(overrides)
    return ClientConfig(**settings)


def worker_threads() -> List[threading.Thread]:
    return [t for t in threading.enumerate() if t.name.startswith(WORKER_THREAD_PREFIX)]


@dataclass
class ServerState:
    """Per-test view of what the fake service saw and how it should behave."""
    rate_limit_failures: int = 0
    rate_limit_before_success: int = 2
    headers: Dict[str, str] = field(default_factory=dict)
    query: Dict[str, str] = field(default_factory=dict)
    body: Optional[bytes] = None
    hits: int = 0
    release: threading.Event = field(default_factory=threading.Event)


class FakeCirconusHandler(BaseHTTPRequestHandler):
    """Mimics the Circonus service on a handful of fixed paths.

      /empty               200 with an empty body
      /failure             500 with a well-formed Circonus error
      /invalid-token       401
      /malformed-failure   500 with malformed JSON
      /malformed-success   200 with malformed JSON
      /no-access           403 with malformed JSON
      /rate-limit-partial  429 until rate_limit_before_success, then 200
      /rate-limit-full     always 429
      /success             200, records headers, query and body
      /timeout             200 after SLOW_RESPONSE_DELAY
      /stall-headers       sends nothing until released
      /stall-body          headers and part of the body, then nothing until released
      /trickle-headers     status line, then one header line every TRICKLE_INTERVAL

    The stalling paths hold the connection until the test ends (release is
    set on teardown) or STALL_LIMIT passes.
    """
    protocol_version = 'HTTP/1.1'

    def log_message(self, format, *args):
        pass

    def _respond(self, code: int, content: str = '') -> None:
        payload = (content + '\n').encode('utf-8')
        try:
            self.send_response(code)
            self.send_header('Content-Type', 'application/json')
            self.send_header('Content-Length', str(len(payload)))
            self.end_headers()
            self.wfile.write(payload)
        except (BrokenPipeError, ConnectionResetError):
            # client gave up (timeout tests)
            pass

    def _stall(self, state: ServerState, partial: Optional[bytes] = None, trickle: bool = False) -> None:
        self.close_connection = True
        try:
            if partial is not None:
                self.send_response(200)
                self.send_header('Content-Length', str(len(partial) * 10))
                self.end_headers()
                self.wfile.write(partial)
            elif trickle:
                self.wfile.write(b'HTTP/1.1 200 OK\r\n')
            deadline = time.monotonic() + STALL_LIMIT
            while time.monotonic() < deadline:
                if state.release.wait(TRICKLE_INTERVAL):
                    break
                if trickle:
                    self.wfile.write(b'X-Trickle: 1\r\n')
        except (BrokenPipeError, ConnectionResetError):
            pass

    def _dispatch(self):
        state: ServerState = self.server.state  # type: ignore[attr-defined]
        state.hits += 1
        parts = urlsplit(self.path)
        length = int(self.headers.get('Content-Length') or 0)
        body = self.rfile.read(length) if length else b''

        if parts.path == '/empty':
            self._respond(200, '')
        elif parts.path == '/failure':
            self._respond(500, circonus_error_body())
        elif parts.path == '/invalid-token':
            self._respond(401, circonus_error_body())
        elif parts.path == '/malformed-failure':
            self._respond(500, MALFORMED_JSON)
        elif parts.path == '/malformed-success':
            self._respond(200, MALFORMED_JSON)
        elif parts.path == '/no-access':
            self._respond(403, MALFORMED_JSON)
        elif parts.path == '/rate-limit-partial':
            if state.rate_limit_failures < state.rate_limit_before_success:
                state.rate_limit_failures += 1
                self._respond(429, circonus_error_body())
            else:
                state.rate_limit_failures = 0
                self._respond(200, SUCCESS_JSON)
        elif parts.path == '/rate-limit-full':
            self._respond(429, circonus_error_body())
        elif parts.path == '/success':
            state.headers = {k: v for k, v in self.headers.items()}
            state.query = dict(parse_qsl(parts.query))
            state.body = body
            self._respond(200, SUCCESS_JSON)
        elif parts.path == '/timeout':
            time.sleep(SLOW_RESPONSE_DELAY)
            self._respond(200, SUCCESS_JSON)
        elif parts.path == '/stall-headers':
            self._stall(state)
        elif parts.path == '/stall-body':
            self._stall(state, partial=b'{"data": ')
        elif parts.path == '/trickle-headers':
            self._stall(state, trickle=True)
        else:
            self._respond(404, '404 page not found')

    do_GET = _dispatch
    do_POST = _dispatch
    do_PUT = _dispatch
    do_DELETE = _dispatch


@pytest.fixture(scope='session')
def fake_server():
    server = ThreadingHTTPServer(('127.0.0.1', 0), FakeCirconusHandler)
    server.daemon_threads = True
    server.state = ServerState()  # type: ignore[attr-defined]
    thread = threading.Thread(target=server.serve_forever, name='fake-circonus', daemon=True)
    thread.start()
    yield server
    server.shutdown()
    server.server_close()
    thread.join()


@pytest.fixture
def server_state(fake_server) -> ServerState:
    fake_server.state = ServerState()
    yield fake_server.state
    fake_server.state.release.set()


@pytest.fixture
def server_client(fake_server, server_state):
    """Real SessionTransport pointed at the local fake service."""
    host, port = fake_server.server_address[:2]
    client = CirconusClient(make_config(host=f'http://{host}:{port}'))
    yield client
    client.transport.close()


@pytest.fixture
def error_payload() -> dict:
    return json.loads(circonus_error_body())
