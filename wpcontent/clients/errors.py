"""Error taxonomy for the WordPress API layer.

Every failure surfaced by the transport or the client is a
``WordPressAPIError``. Subclasses tag the failure class so callers can
branch on type (or on ``kind``) instead of sniffing message text:

    ValidationError   caller passed a bad argument, raised before any I/O
    RequestTimeout    remote did not answer within the timeout
    NetworkFailure    transport failure after transport-level retries
    HTTPStatusError   remote answered with a non-2xx status
    NotFoundError     lookup matched nothing (synthetic 404)
    InvalidResponse   2xx with a null, unparsable or ill-shaped body
    RequestCancelled  the call was cancelled through its CancelToken

``retryable`` tells the retry orchestrator whether another attempt can
possibly succeed.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    VALIDATION = "VALIDATION"
    TIMEOUT = "TIMEOUT"
    NETWORK = "NETWORK"
    HTTP_STATUS = "HTTP_STATUS"
    NOT_FOUND = "NOT_FOUND"
    INVALID_RESPONSE = "INVALID_RESPONSE"
    CANCELLED = "CANCELLED"


# 408/425/429 and any 5xx may succeed on a later attempt.
RETRYABLE_STATUSES = frozenset({408, 425, 429})


class WordPressAPIError(Exception):
    """Structured API error. Attributes are read-only once constructed."""

    kind: ErrorKind = ErrorKind.HTTP_STATUS
    default_code = "UNKNOWN_ERROR"
    default_retryable = False

    def __init__(
        self,
        message: str,
        status: int = 0,
        endpoint: str = "",
        code: str | None = None,
        retryable: bool | None = None,
    ):
        super().__init__(message)
        self._message = message
        self._status = status
        self._endpoint = endpoint
        self._code = code or self.default_code
        self._retryable = self.default_retryable if retryable is None else retryable

    @property
    def message(self) -> str:
        return self._message

    @property
    def status(self) -> int:
        return self._status

    @property
    def endpoint(self) -> str:
        return self._endpoint

    @property
    def code(self) -> str:
        return self._code

    @property
    def retryable(self) -> bool:
        return self._retryable

    def to_dict(self) -> dict[str, object]:
        return {
            "kind": self.kind.value,
            "code": self.code,
            "message": self.message,
            "status": self.status,
            "endpoint": self.endpoint,
            "retryable": self.retryable,
        }

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}({self.message!r}, status={self.status}, "
            f"endpoint={self.endpoint!r}, code={self.code!r})"
        )


class ValidationError(WordPressAPIError):
    """A caller-side argument was malformed. Never retryable."""

    kind = ErrorKind.VALIDATION
    default_code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: str, endpoint: str = "", code: str | None = None):
        super().__init__(message, status=400, endpoint=endpoint, code=code, retryable=False)
        self._field = field

    @property
    def field(self) -> str:
        return self._field


class RequestTimeout(WordPressAPIError):
    kind = ErrorKind.TIMEOUT
    default_code = "TIMEOUT_ERROR"
    default_retryable = True

    def __init__(self, endpoint: str, timeout: float):
        super().__init__(f"Request timeout after {timeout:g}s", status=408, endpoint=endpoint)
        self._timeout = timeout

    @property
    def timeout(self) -> float:
        return self._timeout


class NetworkFailure(WordPressAPIError):
    kind = ErrorKind.NETWORK
    default_code = "NETWORK_ERROR"
    default_retryable = True

    def __init__(self, message: str, endpoint: str, attempts: int):
        super().__init__(message, status=0, endpoint=endpoint)
        self._attempts = attempts

    @property
    def attempts(self) -> int:
        return self._attempts


class HTTPStatusError(WordPressAPIError):
    """Remote responded with a non-2xx status."""

    kind = ErrorKind.HTTP_STATUS
    default_code = "HTTP_ERROR"

    def __init__(
        self,
        message: str,
        status: int,
        endpoint: str,
        code: str | None = None,
        remote_message: str | None = None,
    ):
        retryable = status in RETRYABLE_STATUSES or status >= 500
        super().__init__(message, status=status, endpoint=endpoint, code=code, retryable=retryable)
        self._remote_message = remote_message

    @property
    def remote_code(self) -> str:
        return self.code

    @property
    def remote_message(self) -> str | None:
        return self._remote_message


class NotFoundError(HTTPStatusError):
    """Nothing matched the lookup.

    Raised for real 404s and for empty slug lookups alike, so callers see
    one shape for "not found".
    """

    kind = ErrorKind.NOT_FOUND
    default_code = "NOT_FOUND"

    def __init__(self, message: str, endpoint: str, code: str | None = None, remote_message: str | None = None):
        super().__init__(message, status=404, endpoint=endpoint, code=code, remote_message=remote_message)


class InvalidResponse(WordPressAPIError):
    kind = ErrorKind.INVALID_RESPONSE
    default_code = "INVALID_RESPONSE"

    def __init__(self, message: str, endpoint: str):
        super().__init__(message, status=500, endpoint=endpoint, retryable=False)


class RequestCancelled(WordPressAPIError):
    kind = ErrorKind.CANCELLED
    default_code = "CANCELLED"

    def __init__(self, endpoint: str = ""):
        super().__init__("Request cancelled", status=0, endpoint=endpoint, retryable=False)


_USER_MESSAGES = {
    ErrorKind.VALIDATION: "The request was invalid.",
    ErrorKind.TIMEOUT: "The server took too long to respond. Please try again.",
    ErrorKind.NETWORK: "There was a connection problem. Check your connection and try again.",
    ErrorKind.NOT_FOUND: "The content you are looking for could not be found.",
    ErrorKind.INVALID_RESPONSE: "The server sent an unexpected response.",
    ErrorKind.CANCELLED: "The request was cancelled.",
}


def describe_error(error: BaseException) -> str:
    """Map an error to short user-facing copy."""
    if not isinstance(error, WordPressAPIError):
        return "Something went wrong. Please try again."
    if error.kind in _USER_MESSAGES:
        return _USER_MESSAGES[error.kind]
    if error.status in (401, 403):
        return "You do not have access to this content."
    if error.status == 429:
        return "Too many requests. Please wait a moment and try again."
    if error.status >= 500:
        return "The server encountered an error. Please try again later."
    return "The request could not be completed."


def is_retryable(error: BaseException) -> bool:
    """Whether another attempt could succeed. Unknown exceptions are retryable."""
    return bool(getattr(error, "retryable", True))
