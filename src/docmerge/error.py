"""Document update error module."""

import http

from collections.abc import Iterator
from contextlib import contextmanager


class Error(Exception):
    """
    Base class for document update errors.

    All error classes must include the following attributes:
    • status: HTTP status code (int)
    • phrase: HTTP reason phrase
    """


class ClientError(Error):
    """
    Base class for errors caused by the caller: invalid input or absent documents.
    """


class ServerError(Error):
    """
    Base class for errors raised by, or on behalf of, the document store.
    """


class _Errors:
    """
    Encapsulates error exception classes. Errors are dynamically generated from errors in
    the http.HTTPStatus enum; document stores commonly report their conditions as HTTP
    status codes.

    Errors can be accessed by HTTP status or name.
    Example: docmerge.error.errors[404] == docmerge.error.errors.NotFoundError
    """

    def __init__(self):
        self._names = {}
        self._codes = {}
        for status in (s for s in http.HTTPStatus if 400 <= s.value <= 599):
            name = "".join(
                w.title() if w not in {"HTTP", "URI"} else w for w in status.name.split("_")
            )
            if not name.endswith("Error"):
                name += "Error"
            error = type(
                name,
                (ClientError if 400 <= status.value <= 499 else ServerError,),
                {
                    "status": status.value,
                    "phrase": status.phrase,
                    "__doc__": f"{status.description or status.phrase.capitalize()}.",
                },
            )
            self._names[name] = error
            self._codes[status.value] = error

    def get(self, code: int, default=None) -> Error:
        """Return error for code."""
        return self._codes.get(code, default)

    def __getitem__(self, code: int) -> Error:
        return self._codes[code]

    def __getattr__(self, name: str) -> Error:
        if error := self._names.get(name):
            return error
        raise AttributeError(name)

    def __iter__(self) -> Iterator[Error]:
        return iter(self._codes.values())


errors = _Errors()


# commonly used errors
BadRequestError: ClientError = errors.BadRequestError
ConflictError: ClientError = errors.ConflictError
NotFoundError: ClientError = errors.NotFoundError
TooManyRequestsError: ClientError = errors.TooManyRequestsError
BadGatewayError: ServerError = errors.BadGatewayError


class RateLimitError(TooManyRequestsError):
    """
    Raised by a document store when a request is rate limited.

    Parameters:
    • message: description of the condition
    • retry_after: duration in seconds the store suggests waiting before retrying  [0]
    """

    def __init__(self, message: str | None = None, *, retry_after: float = 0.0):
        super().__init__(*((message,) if message is not None else ()))
        self.retry_after = retry_after


class RetriesExhaustedError(RateLimitError):
    """Raised when a store operation remains rate limited after all permitted retries."""


class StoreError(BadGatewayError):
    """Raised when a document store fails with an error that is not retried."""


@contextmanager
def wrap_exception(
    *,
    catch: type[BaseException] | tuple[type[BaseException], ...] = Exception,
    throw: type[BaseException] = StoreError,
    exclude: type[BaseException] | tuple[type[BaseException], ...] = Error,
):
    """
    Return a context manager that catches exceptions and raises another in their place.

    Parameters:
    • catch: exception class(es) to catch  [Exception]
    • throw: exception class to raise  [StoreError]
    • exclude: exception class(es) to let pass through unwrapped  [Error]

    The raised exception is chained to the caught exception, and carries its string
    representation as its argument.
    """
    try:
        yield
    except exclude:
        raise
    except catch as e:
        raise throw(str(e)) from e
