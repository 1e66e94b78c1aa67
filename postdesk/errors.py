"""
Error types shared by the stores, the orchestrator and the HTTP layer.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class PostdeskError(Exception):
    """Base error; `status_code` is the HTTP status the API answers with."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ConfigurationError(PostdeskError):
    default_message = "Server is not configured"


class Unauthorized(PostdeskError):
    status_code = 401
    default_message = "Unauthorized"


class NoCookie(Unauthorized):
    default_message = "Not logged in"


class NoToken(Unauthorized):
    default_message = "Invalid session"


class InvalidCredentials(Unauthorized):
    default_message = "Invalid credentials"


class Forbidden(PostdeskError):
    status_code = 403
    default_message = "Access denied"


class ValidationError(PostdeskError):
    status_code = 400
    default_message = "Missing fields"


class NotFound(PostdeskError):
    status_code = 404
    default_message = "Not found"


class AssetWriteFailed(PostdeskError):
    status_code = 502
    default_message = "Asset upload failed"


class UpstreamFailure(PostdeskError):
    status_code = 502
    default_message = "Record store request failed"


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """
    Result of a single remote store call.

    Store clients return an Outcome instead of raising so callers decide
    explicitly whether a failure aborts the workflow or is only logged.
    """

    value: Optional[T] = None
    error: Optional[PostdeskError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Optional[T] = None) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: PostdeskError) -> "Outcome[T]":
        return cls(error=error)

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]
