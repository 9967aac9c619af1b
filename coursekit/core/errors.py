"""Domain error taxonomy.

Every error the media, enrollment and progress services raise derives
from CourseKitError and carries the HTTP status the route layer answers
with.  main.py registers one exception handler for the whole hierarchy,
so services never import FastAPI.

RETRY SEMANTICS
----------------
  ConfigurationError     fatal at startup; retrying cannot help
  KeyUnavailable         the key cache does not remember failures, so the
                         next request fetches again
  Forbidden              an authorization denial; never retried
  NotFound               unknown resource (distinct from Forbidden)
  StoreUnavailable       progress writes are idempotent, so the caller may
                         retry without double counting

A timeout against a dependency raises the same class as a hard failure of
that dependency.  Callers cannot tell "slow" from "down", and should not.
"""

from __future__ import annotations


class CourseKitError(Exception):
    status_code: int = 500
    public_detail: str = "Internal error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.public_detail)

    @property
    def detail(self) -> str:
        return self.public_detail


class ConfigurationError(CourseKitError):
    """Required configuration is missing or invalid."""

    status_code = 500
    public_detail = "Service misconfigured"


class KeyUnavailable(CourseKitError):
    """The signing key could not be fetched from the secret store."""

    status_code = 503
    public_detail = "Video access temporarily unavailable"


class MediaDeliveryDisabled(CourseKitError):
    status_code = 503
    public_detail = "Video delivery is not configured"


class Forbidden(CourseKitError):
    """Enrollment missing or not in an access-granting payment state.

    The detail never varies with the reason: an unknown course id and an
    unpaid enrollment must look the same to the caller.
    """

    status_code = 403
    public_detail = "not enrolled"

    def __init__(self, message: str = "not enrolled") -> None:
        super().__init__(message)


class NotFound(CourseKitError):
    status_code = 404
    public_detail = "Not found"

    def __init__(self, message: str = "Not found") -> None:
        super().__init__(message)

    @property
    def detail(self) -> str:
        return str(self)


class StoreUnavailable(CourseKitError):
    """Key-value store error or timeout.  Safe to retry."""

    status_code = 503
    public_detail = "Storage temporarily unavailable"
