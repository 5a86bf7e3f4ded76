"""ACME session errors."""
from typing import Any
from typing import Mapping
from typing import Optional

import requests


class Error(Exception):
    """Generic ACME session error."""


class ClientError(Error):
    """Network error."""


class TransportError(ClientError):
    """Request failed without a structured error from the server.

    Raised for connection failures and for non-2xx responses whose body
    is not an HTTP Problem document.

    :ivar requests.Response response: Offending response, if any.

    """
    def __init__(self, message: str, response: Optional[requests.Response] = None) -> None:
        super().__init__(message)
        self.response = response

    @property
    def status_code(self) -> Optional[int]:
        """HTTP status of the offending response, if there was one."""
        if self.response is None:
            return None
        return self.response.status_code


class ResponseDecodeError(ClientError):
    """Response body announced JSON but could not be decoded."""


class LinkFormatError(ClientError):
    """Malformed Link header value.

    :ivar str value: The header value that failed to parse.

    """
    def __init__(self, value: str, reason: str) -> None:
        super().__init__(value, reason)
        self.value = value
        self.reason = reason

    def __str__(self) -> str:
        return 'Invalid Link header value ({0!r}): {1}'.format(self.value, self.reason)


class NonceError(ClientError):
    """Server response nonce error."""


class MissingNonce(NonceError):
    """Missing nonce error.

    According to the specification an "ACME server MUST include an
    Replay-Nonce header field in each successful response to a POST it
    provides to a client (...)". The same holds for responses from the
    newNonce endpoint.

    :ivar headers: Mapping of HTTP headers

    """
    def __init__(self, headers: Mapping[str, str], *args: Any) -> None:
        super().__init__(*args)
        self.headers = dict(headers)

    def __str__(self) -> str:
        return ('Server response did not include a replay '
                'nonce, headers: {0} (This may be a service outage)'.format(
                    self.headers))


class AmbiguousNonce(NonceError):
    """Server response carried more than one replay nonce."""
    def __init__(self, values: str) -> None:
        super().__init__(values)
        self.values = values

    def __str__(self) -> str:
        return 'Server response included more than one replay nonce: {0!r}'.format(
            self.values)


class ConfigurationError(Error):
    """Client and server capabilities do not match."""


class UnknownResourceKind(ConfigurationError, ValueError):
    """Requested resource kind is not a known directory resource."""
    def __init__(self, kind: Any) -> None:
        super().__init__(kind)
        self.kind = kind

    def __str__(self) -> str:
        return 'Unknown resource kind: {0!r}'.format(self.kind)


class MissingEndpoint(ConfigurationError):
    """Directory does not advertise an endpoint for a resource kind."""
    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return 'Directory field "{0}" not found'.format(self.name)


class TimeoutError(Error):  # pylint: disable=redefined-builtin
    """Error for when a request to the server times out."""
