from __future__ import annotations
import socket
import threading
import time
from typing import Callable, List, Optional
import requests
from requests.adapters import HTTPAdapter
from urllib3.connection import HTTPConnection, HTTPSConnection
from urllib3.connectionpool import HTTPConnectionPool, HTTPSConnectionPool
from .exceptions import RequestCancelledError, RequestTimeoutError


class CancelSignal:
    """Cancellation signal shared between a call and its in-flight attempt.

    cancel() is idempotent: the first error wins and every registered abort
    callback runs exactly once. A signal built with a timeout also knows its
    deadline so blocking socket operations can be bounded by remaining().
    """

    def __init__(self, timeout: Optional[float] = None):
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: List[Callable[[], None]] = []
        self.timeout = timeout
        self.deadline = time.monotonic() + timeout if timeout else None
        self.error: Optional[Exception] = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, error: Optional[Exception] = None) -> bool:
        with self._lock:
            if self._event.is_set():
                return False
            self.error = error or RequestCancelledError()
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback()
        return True

    def add_callback(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Run callback on cancellation (immediately if already cancelled).

        Returns a function that unregisters it.
        """
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)

                def remove() -> None:
                    with self._lock:
                        if callback in self._callbacks:
                            self._callbacks.remove(callback)
                return remove
        callback()
        return lambda: None

    def wait(self, seconds: Optional[float]) -> bool:
        """Sleep up to seconds, returning True early if cancelled."""
        return self._event.wait(seconds)

    def remaining(self) -> Optional[float]:
        if self.deadline is None:
            return None
        return max(self.deadline - time.monotonic(), 0.0)

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise self.error  # type: ignore[misc]
        if self.deadline is not None and time.monotonic() >= self.deadline:
            self.cancel(RequestTimeoutError(self.timeout))  # type: ignore[arg-type]
            raise self.error  # type: ignore[misc]


# Signal of the attempt running on this thread, read by connections as they
# are used inside session.send().
_attempt = threading.local()


def shutdown_socket(sock) -> None:
    """Shut down both directions of sock, waking any thread blocked on it."""
    if sock is None:
        return
    try:
        # bypass SSLSocket.shutdown, which drops the TLS object under the reader
        socket.socket.shutdown(sock, socket.SHUT_RDWR)
    except (OSError, TypeError):
        # already disconnected, or not a plain socket
        pass


class _AbortableConnectionMixin:
    """urllib3 connection that shuts its socket down when the attempt is cancelled.

    The binding outlives session.send() so a cancel during the body read still
    reaches the socket. It is dropped as soon as another attempt reuses the
    connection.
    """
    _bound_signal: Optional[CancelSignal] = None
    _unbind: Optional[Callable[[], None]] = None

    def _bind_attempt(self) -> Optional[CancelSignal]:
        signal = getattr(_attempt, 'signal', None)
        if signal is self._bound_signal:
            return signal
        if self._unbind is not None:
            self._unbind()
        self._bound_signal = signal
        self._unbind = signal.add_callback(self.abort) if signal is not None else None
        return signal

    def abort(self) -> None:
        shutdown_socket(getattr(self, 'sock', None))

    def connect(self):
        signal = self._bind_attempt()
        super().connect()  # type: ignore[misc]
        if signal is not None and signal.cancelled:
            self.abort()

    def request(self, *args, **kwargs):
        self._bind_attempt()
        return super().request(*args, **kwargs)  # type: ignore[misc]


class AbortableHTTPConnection(_AbortableConnectionMixin, HTTPConnection):
    pass


class AbortableHTTPSConnection(_AbortableConnectionMixin, HTTPSConnection):
    pass


class AbortableHTTPConnectionPool(HTTPConnectionPool):
    ConnectionCls = AbortableHTTPConnection


class AbortableHTTPSConnectionPool(HTTPSConnectionPool):
    ConnectionCls = AbortableHTTPSConnection


POOL_CLASSES = {'http': AbortableHTTPConnectionPool, 'https': AbortableHTTPSConnectionPool}


class AbortableHTTPAdapter(HTTPAdapter):
    """HTTPAdapter whose pools hand each attempt's connection to its CancelSignal."""

    def init_poolmanager(self, *args, **kwargs):
        super().init_poolmanager(*args, **kwargs)
        self.poolmanager.pool_classes_by_scheme = POOL_CLASSES

    def proxy_manager_for(self, proxy, **proxy_kwargs):
        manager = super().proxy_manager_for(proxy, **proxy_kwargs)
        # SOCKS managers bring their own connection classes
        if not proxy.lower().startswith('socks'):
            manager.pool_classes_by_scheme = POOL_CLASSES
        return manager


class SessionTransport:
    """Reusable HTTP connector over one requests.Session.

    The session is mounted with AbortableHTTPAdapter: while an attempt is in
    flight its socket is registered on the signal, and cancel() shuts it down.
    That wakes a read blocked on the headers or on a streamed body. The socket
    timeout (remaining time plus a small grace) only backs this up.
    """
    SOCKET_TIMEOUT_GRACE = 0.1

    def __init__(self, session: Optional[requests.Session] = None):
        self.session = session or requests.Session()
        adapter = AbortableHTTPAdapter()
        self.session.mount('http://', adapter)
        self.session.mount('https://', adapter)

    def execute_once(self, prepared: requests.PreparedRequest, signal: CancelSignal) -> requests.Response:
        remaining = signal.remaining()
        timeout = None if remaining is None else remaining + self.SOCKET_TIMEOUT_GRACE
        settings = self.session.merge_environment_settings(prepared.url, {}, True, None, None)
        settings['stream'] = True
        _attempt.signal = signal
        try:
            return self.session.send(prepared, timeout=timeout, **settings)
        finally:
            _attempt.signal = None

    def close(self) -> None:
        self.session.close()
