# src/bulk_outreach/core/errors.py

"""
Errors a JobService raises.

They live next to the ports so the orchestration core can tell an
authentication failure from a transient one without knowing which transport
produced it.
"""

from __future__ import annotations

from ..tasks.task_models import SnapshotError


class JobServiceError(Exception):
    """Base class for everything a job service raises."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class TransportError(JobServiceError):
    """The request never produced a response (DNS, refused, timeout, ...)."""


class JobServiceHTTPError(JobServiceError):
    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthenticationError(JobServiceHTTPError):
    """The token was rejected. Credentials are already cleared when this is raised."""


class MalformedResponseError(JobServiceError, SnapshotError):
    """A successful response whose body is not the expected JSON."""
