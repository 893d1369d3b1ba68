"""Tests for the sandbox client bootstrap."""

import pytest
import requests

from oanda import ApiError, Client, DecodeError, Environment, UsernameAuthenticator

ACCOUNT = {"code": 0, "username": "u1", "password": "p1", "accountId": 7}


def test_sandbox_creates_user_and_authenticates_with_it(transport, adapter):
    adapter.reply(ACCOUNT)

    client = Client.sandbox(transport=transport)

    create = adapter.sent[0]
    assert create.method == "POST"
    assert create.url == "http://api-sandbox.oanda.com/v1/accounts"
    assert create.body is None
    assert "username" not in create.url

    assert client.modifiers[-2:] == (Environment("sandbox"), UsernameAuthenticator("u1"))
    assert client.sandbox_account.username == "u1"
    assert client.sandbox_account.password == "p1"
    assert client.sandbox_account.account_id == 7
    assert client.transport is transport

    request = client.new_request("GET", "/v1/accounts")
    assert request.url == "http://api-sandbox.oanda.com/v1/accounts?username=u1"
    assert "Authorization" not in request.headers


def test_sandbox_password_not_in_repr(transport, adapter):
    adapter.reply(ACCOUNT)
    client = Client.sandbox(transport=transport)
    assert "p1" not in repr(client.sandbox_account)


@pytest.mark.parametrize(
    "failure, expected",
    [
        (requests.ConnectionError("no route to host"), requests.ConnectionError),
        ({"code": 1, "message": "sandbox down", "moreInfo": ""}, ApiError),
        ("not json", DecodeError),
    ],
)
def test_sandbox_bootstrap_failure_aborts_construction(failure, expected, transport, adapter):
    if isinstance(failure, Exception):
        adapter.fail(failure)
    else:
        adapter.reply(failure)

    with pytest.raises(expected):
        Client.sandbox(transport=transport)
