# src/bulk_outreach/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The orchestration core depends on Protocols instead of concrete implementations.
This keeps the HTTP transport swappable and lets tests drive the pollers with
in-memory fakes.
"""

from typing import Any, Awaitable, Mapping, Protocol

from ..notifications.models import Notification, Severity
from ..tasks.task_models import TaskKind, TaskSnapshot


class JobService(Protocol):
    """
    Remote job owner.

    initiate(): starts a job and returns its first snapshot (pending/running).
    get_status(): returns the current snapshot of a job.

    Both raise core.errors.JobServiceError subclasses on transport/HTTP/payload
    failures; AuthenticationError means no later call will succeed either.
    """

    def initiate(self, kind: TaskKind, params: Mapping[str, Any]) -> Awaitable[TaskSnapshot]: ...

    def get_status(self, kind: TaskKind, task_id: str) -> Awaitable[TaskSnapshot]: ...


class Notifier(Protocol):
    """What the poller/workflow need from the notification queue."""

    def push(self, severity: Severity | str, title: str, message: str) -> Notification: ...

    def success(self, title: str, message: str) -> Notification: ...
    def error(self, title: str, message: str) -> Notification: ...
    def info(self, title: str, message: str) -> Notification: ...


class Credentials(Protocol):
    """Token holder used by the authenticated request layer."""

    @property
    def token(self) -> str | None: ...

    def set(self, token: str, user: Mapping[str, Any] | None = None) -> None: ...
    def clear(self) -> None: ...
