"""Tests for the request modifiers."""

import dataclasses

import pytest
import requests

from oanda import (
    ContentType,
    DateFormat,
    Environment,
    TokenAuthenticator,
    UsernameAuthenticator,
)


def apply(request, *modifiers):
    for modifier in modifiers:
        modifier.modify(request)
    return request


def test_token_authenticator_sets_bearer_header():
    request = apply(requests.Request("GET", "/v1/accounts"), TokenAuthenticator("secret"))
    assert request.headers["Authorization"] == "Bearer secret"


def test_token_authenticator_repr_hides_token():
    assert "secret" not in repr(TokenAuthenticator("secret"))


def test_username_authenticator_adds_query_parameter():
    request = apply(requests.Request("GET", "/v1/prices?instruments=EUR_USD"), UsernameAuthenticator("u1"))
    assert request.url == "/v1/prices?instruments=EUR_USD&username=u1"


def test_username_authenticator_replaces_previous_value():
    request = requests.Request("GET", "/v1/accounts?username=old")
    apply(request, UsernameAuthenticator("u1"), UsernameAuthenticator("u1"))
    assert request.url == "/v1/accounts?username=u1"


@pytest.mark.parametrize(
    "name, expected",
    [
        ("sandbox", "http://api-sandbox.oanda.com/v1/accounts"),
        ("fxtrade", "https://api-fxtrade.oanda.com/v1/accounts"),
        ("fxpractice", "https://api-fxpractice.oanda.com/v1/accounts"),
    ],
)
def test_environment_fills_in_scheme_and_host(name, expected):
    request = apply(requests.Request("GET", "/v1/accounts"), Environment(name))
    assert request.url == expected


def test_environment_keeps_existing_host():
    request = apply(requests.Request("GET", "http://stream.example.com/v1/events"), Environment("fxtrade"))
    assert request.url == "https://stream.example.com/v1/events"


def test_environment_is_idempotent():
    env = Environment("sandbox")
    request = apply(requests.Request("GET", "/v1/accounts?x=1"), env)
    first = request.url
    apply(request, env)
    assert request.url == first == "http://api-sandbox.oanda.com/v1/accounts?x=1"


def test_date_format_header():
    request = apply(requests.Request("GET", "/v1/candles"), DateFormat("UNIX"))
    assert request.headers["X-Accept-Datetime-Format"] == "UNIX"


def test_content_type_only_with_body():
    ct = ContentType("application/x-www-form-urlencoded")

    without_body = apply(requests.Request("GET", "/v1/accounts"), ct, ct)
    assert "Content-Type" not in without_body.headers

    with_body = apply(requests.Request("POST", "/v1/accounts", data="a=1"), ct, ct)
    assert with_body.headers["Content-Type"] == "application/x-www-form-urlencoded"


def test_later_modifiers_override_earlier_ones():
    request = apply(requests.Request("GET", "/v1/candles"), DateFormat("RFC3339"), DateFormat("UNIX"))
    assert request.headers["X-Accept-Datetime-Format"] == "UNIX"


def test_modifiers_are_immutable():
    env = Environment("fxtrade")
    with pytest.raises(dataclasses.FrozenInstanceError):
        env.name = "sandbox"


def test_username_authenticator_keeps_order_of_repeated_keys():
    request = apply(requests.Request("GET", "/v1/candles?instrument=B&instrument=A&count=5"), UsernameAuthenticator("u1"))
    assert request.url == "/v1/candles?count=5&instrument=B&instrument=A&username=u1"
