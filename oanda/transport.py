"""HTTP transport shared by Client instances.

The transport owns the ``requests.Session`` and its connection pool. One
transport is normally shared by every client in the process; see
``shared_transport``.
"""

import abc
import logging
import threading
from typing import Dict, Optional, Set

import requests
from requests.adapters import HTTPAdapter

logger = logging.getLogger(__name__)


class Transport(abc.ABC):
    """Prepares and executes requests built by a Client."""

    @property
    def supports_cancellation(self) -> bool:
        """Whether ``cancel`` can abort an in-flight request."""
        return False

    @abc.abstractmethod
    def prepare(self, request: requests.Request) -> requests.PreparedRequest:
        raise NotImplementedError

    @abc.abstractmethod
    def send(self, request: requests.PreparedRequest, stream: bool = False) -> requests.Response:
        raise NotImplementedError

    def cancel(self, request: requests.PreparedRequest) -> None:
        """Abort an in-flight request. Does nothing unless ``supports_cancellation`` is true."""


class HTTPTransport(Transport):
    """Transport backed by a ``requests.Session``.

    The number of open connections to the OANDA stream servers is restricted
    per account, so only a small number of idle connections is kept in the
    pool. Proxies are taken from the environment. Only connecting (including
    the TLS handshake) is bounded by a timeout; reading the response body is
    not.

    Args:
        max_idle_connections: Idle connections kept per host.
        connect_timeout: Seconds allowed for establishing a connection.
        session: Session to use instead of a new one.
    """

    DEFAULT_MAX_IDLE_CONNECTIONS = 1
    DEFAULT_CONNECT_TIMEOUT = 30.0

    def __init__(
        self,
        max_idle_connections: int = DEFAULT_MAX_IDLE_CONNECTIONS,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.connect_timeout = connect_timeout
        self.session = session if session is not None else requests.Session()
        self.session.trust_env = True

        adapter = HTTPAdapter(pool_connections=1, pool_maxsize=max_idle_connections)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

        self._lock = threading.Lock()
        self._in_flight: Dict[int, requests.Response] = {}
        self._cancelled: Set[int] = set()

    @property
    def supports_cancellation(self) -> bool:
        return True

    def prepare(self, request: requests.Request) -> requests.PreparedRequest:
        return self.session.prepare_request(request)

    def send(self, request: requests.PreparedRequest, stream: bool = False) -> requests.Response:
        """Send a prepared request.

        Unless ``stream`` is set the body is read before returning, and the
        request can be cancelled while that read is in progress.

        Raises:
            requests.ConnectionError: If the request was cancelled.
        """
        logger.debug(f"HTTP {request.method} {request.url}")
        settings = self.session.merge_environment_settings(request.url, {}, None, None, None)
        # the body is read below so that the read can be cancelled
        settings["stream"] = True
        settings["timeout"] = (self.connect_timeout, None)
        try:
            response = self.session.send(request, **settings)
        except requests.RequestException as e:
            logger.error(f"Request {request.method} {request.url} failed: {e}")
            raise

        logger.debug(f"HTTP {request.method} {request.url} -> {response.status_code}")
        if stream:
            return response

        key = id(request)
        with self._lock:
            self._in_flight[key] = response
        try:
            response.content
        except Exception as e:
            cancelled = self._finish(key)
            response.close()
            if cancelled:
                raise requests.ConnectionError(f"{request.method} {request.url} cancelled", request=request) from e
            logger.error(f"Reading response to {request.method} {request.url} failed: {e}")
            raise

        if self._finish(key):
            response.close()
            raise requests.ConnectionError(f"{request.method} {request.url} cancelled", request=request)
        return response

    def _finish(self, key: int) -> bool:
        """Stop tracking a request. Returns True if it was cancelled."""
        with self._lock:
            self._in_flight.pop(key, None)
            cancelled = key in self._cancelled
            self._cancelled.discard(key)
        return cancelled

    def cancel(self, request: requests.PreparedRequest) -> None:
        """Abort reading the response to ``request``, if it is still in flight.

        The pending ``send`` raises ``requests.ConnectionError``.
        """
        key = id(request)
        with self._lock:
            response = self._in_flight.pop(key, None)
            if response is not None:
                self._cancelled.add(key)
        if response is not None:
            logger.info(f"Cancelling {request.method} {request.url}")
            response.close()


_shared_transport: Optional[HTTPTransport] = None
_shared_lock = threading.Lock()


def shared_transport() -> HTTPTransport:
    """Return the process-wide transport, creating it on first use."""
    global _shared_transport
    with _shared_lock:
        if _shared_transport is None:
            _shared_transport = HTTPTransport()
        return _shared_transport
