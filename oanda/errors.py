"""Exceptions raised by the OANDA client.

Transport failures are not wrapped: they surface as the
``requests.RequestException`` subclasses raised by the HTTP stack.
"""


class OandaError(Exception):
    """Base class for errors raised by this package."""


class ConfigurationError(OandaError):
    """A required setting, such as an access token, is missing."""


class RequestConstructionError(OandaError, ValueError):
    """The request could not be formed from the given method and URL."""


class DecodeError(OandaError, ValueError):
    """The response body is not valid JSON for the expected shape."""


class ApiError(OandaError):
    """Error reported by the OANDA servers inside a response body.

    Args:
        code: Server error code, never 0.
        message: Human readable description.
        more_info: URL pointing at further documentation.
    """

    def __init__(self, code: int, message: str = "", more_info: str = ""):
        self.code = code
        self.message = message
        self.more_info = more_info
        super().__init__(str(self))

    def __str__(self) -> str:
        return f"ApiError{{Code: {self.code}, Message: {self.message}, Moreinfo: {self.more_info}}}"
