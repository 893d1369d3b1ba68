"""Repeated requests with conditional re-fetch.

A PollRequest remembers the ``ETag`` of the last response and sends it back
as ``If-None-Match``, so the server can answer ``304 Not Modified`` instead of
repeating an unchanged payload.
"""

import logging
import threading
from typing import TYPE_CHECKING, Optional, Type, TypeVar

import requests

from .responses import ApiResponse, decode_response

if TYPE_CHECKING:
    from .client import Client

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=ApiResponse)


def is_not_modified(response: requests.Response) -> bool:
    """True if the server reports the resource as unchanged. Such responses have no body."""
    return response.status_code == requests.codes.not_modified


class PollRequest:
    """An HTTP request that is executed repeatedly.

    Calls to ``poll`` on one instance are serialised, each one sending the
    token captured by the previous call.

    Args:
        client: Client used to send the request. Not owned.
        request: Prepared request, normally from ``Client.new_request``.
    """

    def __init__(self, client: "Client", request: requests.PreparedRequest):
        self.client = client
        self.request = request
        self._etag: Optional[str] = None
        self._lock = threading.Lock()

    @property
    def etag(self) -> Optional[str]:
        """Token sent with the next poll, or None before the first ETag is seen."""
        return self._etag

    def poll(self) -> requests.Response:
        """Repeat the request.

        Transport errors are raised unchanged and leave the stored token as
        it was, so the next call retries with the same precondition.
        """
        with self._lock:
            response = self.client.do(self.request)
            etag = response.headers.get("ETag")
            if etag:
                self._etag = etag
                self.request.headers["If-None-Match"] = etag
            return response

    def poll_and_decode(self, receiver: Type[T]) -> Optional[T]:
        """Poll and decode the body into ``receiver``.

        Returns:
            The decoded response, or None if the server answered 304.
        """
        response = self.poll()
        if is_not_modified(response):
            logger.debug(f"{self.request.method} {self.request.url} not modified")
            return None
        return decode_response(response, receiver)
