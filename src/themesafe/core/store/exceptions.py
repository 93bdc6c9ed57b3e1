"""
Error taxonomy for the remote theme store.

Every failed call is classified into one of these exceptions at the client
boundary, so orchestrators never look at raw HTTP status codes.

Exception Hierarchy:
    StoreError (base)
    ├── AuthError (bad or missing credential)
    ├── ForbiddenError (credential lacks a capability)
    ├── NotFoundError (target or item absent)
    ├── ValidationError (write payload rejected)
    ├── RateLimitedError (leaky bucket overflowed)
    ├── MalformedResponseError (unexpected payload shape)
    └── TransientError (timeouts, 5xx, connection failures)

Example:
    >>> from themesafe.core.store.exceptions import RateLimitedError
    >>> try:
    ...     raise RateLimitedError("Rate limited", retry_after=2.0)
    ... except RateLimitedError as e:
    ...     print(f"Wait {e.retry_after}s")
    Wait 2.0s
"""


class StoreError(Exception):
    """
    Base exception for all remote store errors.

    Attributes:
        message: Human-readable error message
        context: Additional context (status_code, url, key, ...)
    """

    fatal = False

    def __init__(self, message: str, **context: object) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        return self.message


class AuthError(StoreError):
    """The access token is missing, revoked or wrong. Never retried."""

    fatal = True


class ForbiddenError(StoreError):
    """
    The access token is valid but lacks a required capability.

    Attributes:
        capability: Name of the missing access scope (e.g. "write_themes")
    """

    fatal = True

    def __init__(self, message: str, capability: str, **context: object) -> None:
        super().__init__(message, capability=capability, **context)
        self.capability = capability

    def __str__(self) -> str:
        return f"{self.message} (missing capability: {self.capability})"


class NotFoundError(StoreError):
    """The requested target or item does not exist."""


class ValidationError(StoreError):
    """
    The store rejected a write payload.

    Fatal for that item, never for the batch.

    Attributes:
        errors: Field errors reported by the store, if any
    """

    def __init__(self, message: str, errors: object = None, **context: object) -> None:
        super().__init__(message, errors=errors, **context)
        self.errors = errors


class RateLimitedError(StoreError):
    """
    The store refused the call because the request budget was exceeded.

    Not retried automatically; the caller decides whether to wait
    ``retry_after`` seconds and try again.
    """

    fatal = True

    def __init__(self, message: str, retry_after: float, **context: object) -> None:
        super().__init__(message, retry_after=retry_after, **context)
        self.retry_after = retry_after

    def __str__(self) -> str:
        return f"{self.message} (retry after {self.retry_after:g}s)"


class MalformedResponseError(StoreError):
    """A response body could not be decoded into the expected shape."""


class TransientError(StoreError):
    """A timeout, connection failure or server-side error for one call."""


__all__ = [
    "StoreError",
    "AuthError",
    "ForbiddenError",
    "NotFoundError",
    "ValidationError",
    "RateLimitedError",
    "MalformedResponseError",
    "TransientError",
]
