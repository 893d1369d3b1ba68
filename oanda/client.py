import logging
import re
from typing import Any, Mapping, Optional, Tuple, Type, TypeVar
from urllib.parse import urlencode, urlsplit

import requests

from .errors import ConfigurationError, RequestConstructionError
from .modifiers import (
    FXPRACTICE,
    FXTRADE,
    SANDBOX,
    ContentType,
    DateFormat,
    RequestModifier,
    TokenAuthenticator,
    UsernameAuthenticator,
)
from .poll import PollRequest
from .responses import ApiResponse, SandboxAccount, decode_response
from .transport import Transport, shared_transport

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    formatter = logging.Formatter('[%(asctime)s] %(levelname)s - %(message)s')
    handler.setFormatter(formatter)
    logger.addHandler(handler)
logger.setLevel(logging.INFO)

T = TypeVar("T", bound=ApiResponse)

# RFC 7230 token
_METHOD_RE = re.compile(r"[!#$%&'*+\-.^_`|~0-9A-Za-z]+")


class Client:
    DEFAULT_DATE_FORMAT = DateFormat("RFC3339")
    DEFAULT_CONTENT_TYPE = ContentType("application/x-www-form-urlencoded")
    SANDBOX_ACCOUNTS_PATH = "/v1/accounts"

    def __init__(self, *modifiers: RequestModifier, transport: Optional[Transport] = None):
        """Client for the OANDA REST API.

        Most callers should use one of the ``fxpractice``, ``fxtrade`` or
        ``sandbox`` constructors.

        Args:
            *modifiers: Applied to every request after the default date format
                and content type modifiers, in the given order.
            transport: Transport used to send requests. Defaults to the
                process-wide shared transport.
        """
        self._modifiers: Tuple[RequestModifier, ...] = (
            self.DEFAULT_DATE_FORMAT,
            self.DEFAULT_CONTENT_TYPE,
        ) + tuple(modifiers)
        self.transport = transport if transport is not None else shared_transport()
        self._account_id = 0
        self.sandbox_account: Optional[SandboxAccount] = None

    @classmethod
    def fxpractice(cls, token: str, transport: Optional[Transport] = None) -> "Client":
        """Return a client connected to the fxpractice environment.

        ``token`` is the generated personal access token, see
        http://developer.oanda.com/docs/v1/auth/.
        """
        if not token:
            raise ConfigurationError("No FxPractice access token")
        return cls(FXPRACTICE, TokenAuthenticator(token), transport=transport)

    @classmethod
    def fxtrade(cls, token: str, transport: Optional[Transport] = None) -> "Client":
        """Return a client connected to the fxtrade environment.

        ``token`` is the generated personal access token, see
        http://developer.oanda.com/docs/v1/auth/.
        """
        if not token:
            raise ConfigurationError("No FxTrade access token")
        return cls(FXTRADE, TokenAuthenticator(token), transport=transport)

    @classmethod
    def sandbox(cls, transport: Optional[Transport] = None) -> "Client":
        """Return a client connected to the sandbox environment.

        Creates a user in the sandbox environment. All further calls made with
        the returned client are authenticated as that user. If creating the
        user fails, the error is raised and no client is returned.
        """
        bootstrap = cls(SANDBOX, transport=transport)
        account = bootstrap.request_and_decode("POST", cls.SANDBOX_ACCOUNTS_PATH, None, SandboxAccount)
        logger.info(f"Created sandbox user {account.username} with account {account.account_id}")

        client = cls(SANDBOX, UsernameAuthenticator(account.username), transport=bootstrap.transport)
        client.sandbox_account = account
        return client

    @property
    def modifiers(self) -> Tuple[RequestModifier, ...]:
        return self._modifiers

    @property
    def account_id(self) -> int:
        """Currently selected account, 0 if none."""
        return self._account_id

    def select_account(self, account_id: int) -> None:
        """Select the account subsequent trades and orders are for.

        Use 0 to disable account selection. The id is not checked against the
        server.
        """
        self._account_id = account_id

    def new_request(self, method: str, url: str, data: Any = None) -> requests.PreparedRequest:
        """Build a request and apply every modifier to it.

        Args:
            method: HTTP method.
            url: Path such as ``/v1/accounts``, or a full URL.
            data: Optional request body.

        Returns:
            The prepared request. It is not sent.

        Raises:
            RequestConstructionError: If the method or URL is malformed.
        """
        if not isinstance(method, str) or not _METHOD_RE.fullmatch(method):
            raise RequestConstructionError(f"Invalid method {method!r}")
        try:
            urlsplit(url)
        except (TypeError, ValueError) as e:
            raise RequestConstructionError(f"Invalid URL {url!r}: {e}") from e

        request = requests.Request(method, url, data=data)
        for modifier in self._modifiers:
            modifier.modify(request)

        try:
            return self.transport.prepare(request)
        except (requests.RequestException, ValueError) as e:
            raise RequestConstructionError(f"Cannot build {method} {request.url}: {e}") from e

    def do(self, request: requests.PreparedRequest, stream: bool = False) -> requests.Response:
        """Send a request built by ``new_request``."""
        return self.transport.send(request, stream=stream)

    def cancel_request(self, request: requests.PreparedRequest) -> None:
        """Abort an in-progress request. Does nothing if the transport cannot cancel."""
        if self.transport.supports_cancellation:
            self.transport.cancel(request)
        else:
            logger.debug(f"Transport {type(self.transport).__name__} cannot cancel requests")

    def new_poll_request(self, url: str, data: Any = None, method: str = "GET") -> PollRequest:
        """Build a request that can be repeated with ``PollRequest.poll``."""
        return PollRequest(self, self.new_request(method, url, data))

    def get_and_decode(self, url: str, receiver: Type[T]) -> T:
        return self.request_and_decode("GET", url, None, receiver)

    def request_and_decode(
        self,
        method: str,
        url: str,
        data: Optional[Mapping[str, Any]],
        receiver: Type[T],
    ) -> T:
        """Send a request and decode its JSON body into ``receiver``.

        Args:
            method: HTTP method.
            url: Path or full URL.
            data: Form values sent URL-encoded as the body, if not empty.
            receiver: ``ApiResponse`` subclass to decode into.

        Returns:
            The decoded response.

        Raises:
            requests.RequestException: If the request could not be sent.
            DecodeError: If the body is not valid JSON for ``receiver``.
            ApiError: If the body reports a nonzero error code.
        """
        body = urlencode(sorted(data.items()), doseq=True) if data else None
        request = self.new_request(method, url, body)
        response = self.do(request)
        return decode_response(response, receiver)
