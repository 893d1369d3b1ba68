"""Decoded response bodies.

Every OANDA response body carries the same error envelope::

    {"code": 123, "message": "...", "moreInfo": "http://..."}

``code`` is 0 (or absent) on success. Response types subclass ``ApiResponse``
and add their own fields; ``decode`` fills them from the JSON payload and
``check_return_code`` turns a nonzero code into an ``ApiError``.
"""

import dataclasses
import logging
from dataclasses import dataclass
from typing import Any, Dict, Type, TypeVar, get_type_hints

import requests

from .errors import ApiError, DecodeError

logger = logging.getLogger(__name__)

T = TypeVar("T", bound="ApiResponse")


def _json_name(field: dataclasses.Field) -> str:
    if "json" in field.metadata:
        return field.metadata["json"]
    head, *tail = field.name.split("_")
    return head + "".join(part.title() for part in tail)


def _check_type(value: Any, expected: Any) -> bool:
    if expected is int:
        return isinstance(value, int) and not isinstance(value, bool)
    if expected is float:
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if expected in (str, bool, list, dict):
        return isinstance(value, expected)
    # containers and optionals are not checked
    return True


@dataclass
class ApiResponse:
    """Error envelope embedded in every decoded response."""

    code: int = 0
    message: str = ""
    more_info: str = ""

    @classmethod
    def decode(cls: Type[T], payload: Any) -> T:
        """Build an instance from a parsed JSON payload.

        Keys without a matching field are ignored. Missing keys and JSON
        nulls keep the field default.

        Raises:
            DecodeError: If the payload is not an object or a field has the
                wrong type.
        """
        if not isinstance(payload, dict):
            raise DecodeError(f"Expected a JSON object for {cls.__name__}, got {type(payload).__name__}")

        hints = get_type_hints(cls)
        values: Dict[str, Any] = {}
        for field in dataclasses.fields(cls):
            key = _json_name(field)
            value = payload.get(key)
            if value is None:
                continue
            if not _check_type(value, hints.get(field.name)):
                raise DecodeError(
                    f"{cls.__name__}.{field.name}: cannot decode {type(value).__name__} value {value!r} "
                    f"from key {key!r}"
                )
            values[field.name] = value
        return cls(**values)

    def check_return_code(self) -> None:
        if self.code != 0:
            raise ApiError(self.code, self.message, self.more_info)


@dataclass
class SandboxAccount(ApiResponse):
    """Account created by ``POST /v1/accounts`` in the sandbox environment."""

    username: str = ""
    password: str = dataclasses.field(default="", repr=False)
    account_id: int = 0


def decode_response(response: requests.Response, receiver: Type[T]) -> T:
    """Decode a response body into ``receiver`` and check its error code.

    The HTTP status is not inspected; OANDA reports failures in the body.
    """
    try:
        payload = response.json()
    except ValueError as e:
        raise DecodeError(
            f"Invalid JSON in response to {response.request.method} {response.url} "
            f"(status {response.status_code}): {e}"
        ) from e

    result = receiver.decode(payload)
    try:
        result.check_return_code()
    except ApiError as e:
        logger.warning(f"{response.request.method} {response.url} returned {e}")
        raise
    return result
