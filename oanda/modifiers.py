"""Request modifiers.

A modifier updates a ``requests.Request`` before it is prepared and handed to
the transport. A Client holds an ordered list of modifiers and applies all of
them to every request it builds, which keeps authentication, routing and
formatting headers out of the individual endpoint calls.
"""

import abc
from dataclasses import dataclass
from typing import ClassVar, FrozenSet
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import requests


class RequestModifier(abc.ABC):
    """Mutates an outgoing request in place."""

    @abc.abstractmethod
    def modify(self, request: requests.Request) -> None:
        raise NotImplementedError


@dataclass(frozen=True)
class TokenAuthenticator(RequestModifier):
    """Authenticates with a personal access token (fxpractice, fxtrade)."""

    token: str

    def modify(self, request: requests.Request) -> None:
        request.headers["Authorization"] = "Bearer " + self.token

    def __repr__(self) -> str:
        # keep the token out of logs
        return "TokenAuthenticator(token='***')"


@dataclass(frozen=True)
class UsernameAuthenticator(RequestModifier):
    """Authenticates sandbox requests with a ``username`` query parameter."""

    username: str

    def modify(self, request: requests.Request) -> None:
        parts = urlsplit(request.url)
        query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != "username"]
        query.append(("username", self.username))
        # by key only, repeated keys keep their order
        query.sort(key=lambda kv: kv[0])
        request.url = urlunsplit(parts._replace(query=urlencode(query)))


@dataclass(frozen=True)
class Environment(RequestModifier):
    """Routes a request to one of the OANDA environments.

    The scheme is always set. The host is only filled in when the URL has
    none, so call sites may pass either a bare path or a full override URL.
    """

    PROVIDER_DOMAIN: ClassVar[str] = "oanda.com"
    INSECURE: ClassVar[FrozenSet[str]] = frozenset({"sandbox"})

    name: str

    @property
    def scheme(self) -> str:
        return "http" if self.name in self.INSECURE else "https"

    @property
    def host(self) -> str:
        return f"api-{self.name}.{self.PROVIDER_DOMAIN}"

    def modify(self, request: requests.Request) -> None:
        parts = urlsplit(request.url)
        netloc = parts.netloc or self.host
        request.url = urlunsplit(parts._replace(scheme=self.scheme, netloc=netloc))


@dataclass(frozen=True)
class DateFormat(RequestModifier):
    """Selects how the server formats timestamps (``RFC3339`` or ``UNIX``)."""

    format: str

    def modify(self, request: requests.Request) -> None:
        request.headers["X-Accept-Datetime-Format"] = self.format


@dataclass(frozen=True)
class ContentType(RequestModifier):
    """Sets the body content type. Requests without a body are left alone."""

    content_type: str

    def modify(self, request: requests.Request) -> None:
        if request.data:
            request.headers["Content-Type"] = self.content_type


FXPRACTICE = Environment("fxpractice")
FXTRADE = Environment("fxtrade")
SANDBOX = Environment("sandbox")
