"""Shared fixtures: an HTTPTransport whose session talks to a stub adapter."""

import json
import sys
import time
from collections import deque
from pathlib import Path

import pytest
import requests
from requests.adapters import BaseAdapter
from requests.structures import CaseInsensitiveDict

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from oanda import HTTPTransport


class StubAdapter(BaseAdapter):
    """Answers requests from a queue of canned replies and records what was sent."""

    def __init__(self):
        super().__init__()
        self.sent = []
        self.timeouts = []
        self.replies = deque()
        # seconds each send blocks for, to widen races between threads
        self.delay = 0

    def reply(self, body=None, status=200, headers=None, raw=None):
        if body is None:
            content = b""
        elif isinstance(body, (bytes, str)):
            content = body.encode() if isinstance(body, str) else body
        else:
            content = json.dumps(body).encode()
        self.replies.append((status, headers or {}, content, raw))

    def fail(self, error):
        self.replies.append(error)

    def send(self, request, stream=False, timeout=None, verify=True, cert=None, proxies=None):
        # snapshot, the same PreparedRequest may be sent again with new headers
        self.sent.append(request.copy())
        self.timeouts.append(timeout)
        reply = self.replies.popleft()
        time.sleep(self.delay)
        if isinstance(reply, Exception):
            raise reply

        status, headers, content, raw = reply
        response = requests.Response()
        response.status_code = status
        response.headers = CaseInsensitiveDict(headers)
        response.encoding = "utf-8"
        response.url = request.url
        response.request = request
        if raw is not None:
            response.raw = raw
        else:
            response._content = content
            response._content_consumed = True
        return response

    def close(self):
        pass


@pytest.fixture
def adapter():
    return StubAdapter()


@pytest.fixture
def transport(adapter):
    transport = HTTPTransport()
    transport.session.mount("http://", adapter)
    transport.session.mount("https://", adapter)
    return transport
