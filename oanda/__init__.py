"""OANDA REST API client library.

This package builds authenticated requests against the OANDA environments,
decodes JSON responses and supports long polling with conditional re-fetch.

Main Public API:
    Client - Builds, sends and decodes requests

Usage:
    from oanda import Client

    # Personal access token for fxpractice
    client = Client.fxpractice(token)

    # Throw-away user in the sandbox environment
    client = Client.sandbox()

    # Repeat a request; unchanged resources come back as 304
    poll = client.new_poll_request("/v1/prices?instruments=EUR_USD")
    rsp = poll.poll()
"""

from .client import Client
from .errors import ApiError, ConfigurationError, DecodeError, OandaError, RequestConstructionError
from .modifiers import (
    FXPRACTICE,
    FXTRADE,
    SANDBOX,
    ContentType,
    DateFormat,
    Environment,
    RequestModifier,
    TokenAuthenticator,
    UsernameAuthenticator,
)
from .poll import PollRequest, is_not_modified
from .responses import ApiResponse, SandboxAccount, decode_response
from .transport import HTTPTransport, Transport, shared_transport

__all__ = ["Client", "PollRequest", "ApiResponse", "SandboxAccount"]

__all__ += ["ApiError", "ConfigurationError", "DecodeError", "OandaError", "RequestConstructionError"]

__all__ += [
    "RequestModifier",
    "TokenAuthenticator",
    "UsernameAuthenticator",
    "Environment",
    "DateFormat",
    "ContentType",
    "FXPRACTICE",
    "FXTRADE",
    "SANDBOX",
]

__all__ += ["Transport", "HTTPTransport", "shared_transport", "decode_response", "is_not_modified"]
