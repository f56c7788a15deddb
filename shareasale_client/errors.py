"""Exception hierarchy for the ShareASale client.

Every error raised to callers of ShareASaleClient derives from ShareASaleError,
so a caller that does not care about the failure class can catch one type.
"""

from __future__ import annotations


class ShareASaleError(Exception):
    """Base class for all client errors."""


class ConfigError(ShareASaleError):
    """Raised when a required credential, endpoint field, or config file is missing or invalid."""


class UnknownActionError(ShareASaleError):
    """Raised when an action name matches no catalog entry. No request is sent."""

    def __init__(self, action: str) -> None:
        super().__init__(f"Unknown action '{action}'")
        self.action = action


class ServiceError(ShareASaleError):
    """Raised when the service call fails or the service reports an error.

    ``body`` holds the raw diagnostic text from the failure point: the
    response body for HTTP and service-level failures, the transport error
    message for connection failures. ``code`` names the transport failure
    (the httpx exception class, e.g. "ConnectError") and is None otherwise.
    """

    def __init__(
        self,
        message: str,
        body: str | None = None,
        status_code: int | None = None,
        code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.body = body if body is not None else message
        self.status_code = status_code
        self.code = code


class ParseError(ShareASaleError):
    """Raised in strict mode when an XML response body cannot be parsed."""

    def __init__(self, messages: list[str]) -> None:
        super().__init__("Could not parse XML response: " + "; ".join(messages))
        self.messages = messages
