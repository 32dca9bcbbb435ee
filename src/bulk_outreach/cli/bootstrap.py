# src/bulk_outreach/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires the credential store, HTTP job service, registry, notification queue,
  poller and workflow into one OutreachSession.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from ..api.auth import CredentialStore
from ..api.client import JobServiceClient
from ..config import get_settings
from ..core.ports import JobService
from ..core.state import OutreachSession
from ..notifications.queue import NotificationQueue
from ..tasks.task_api import BulkOutreachWorkflow
from ..tasks.task_poller import PollErrorPolicy, TaskPoller
from ..tasks.task_registry import TaskRegistry

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    if settings.persist_credentials:
        settings.credentials_path.parent.mkdir(parents=True, exist_ok=True)


def error_policy_from_settings(settings) -> PollErrorPolicy:
    return PollErrorPolicy(
        max_consecutive_errors=settings.poll_max_errors,
        backoff_factor=settings.poll_backoff_factor,
        max_interval_seconds=settings.poll_max_interval_seconds,
    )


def create_session(
    *,
    settings=None,
    service: JobService | None = None,
    on_unauthorized: Callable[[], None] | None = None,
) -> OutreachSession:
    """
    Create an OutreachSession from the provided settings.

    Keeping settings and the job service injectable makes the app easy to test
    and avoids hidden global config reads. If settings is None, falls back to
    get_settings(); if service is None, an HTTP JobServiceClient is built.
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    credentials = CredentialStore(
        settings.credentials_path if settings.persist_credentials else None,
        token=settings.api_token,
    )

    if service is None:
        service = JobServiceClient.from_settings(settings, credentials, on_unauthorized=on_unauthorized)

    registry = TaskRegistry()
    notifications = NotificationQueue(ttl_seconds=settings.notification_ttl_seconds)
    poller = TaskPoller(
        service,
        registry,
        notifications,
        interval_seconds=settings.poll_interval_seconds,
        error_policy=error_policy_from_settings(settings),
    )
    workflow = BulkOutreachWorkflow(service, registry, notifications, poller)

    logger.debug(
        "Session ready: api=%s poll=%.1fs ttl=%.1fs",
        settings.api_base_url,
        settings.poll_interval_seconds,
        settings.notification_ttl_seconds,
    )

    return OutreachSession(
        settings=settings,
        credentials=credentials,
        service=service,
        registry=registry,
        notifications=notifications,
        poller=poller,
        workflow=workflow,
    )
