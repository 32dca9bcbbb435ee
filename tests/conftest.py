# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from bulk_outreach.notifications.queue import NotificationQueue
from bulk_outreach.tasks.task_api import BulkOutreachWorkflow
from bulk_outreach.tasks.task_poller import TaskPoller
from bulk_outreach.tasks.task_registry import TaskRegistry

from .fakes import FakeJobService, ManualSleep


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with create_session().

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated from the environment.
    """
    return SimpleNamespace(
        app_name="bulk-outreach-test",
        log_level="DEBUG",
        api_base_url="http://testserver/api",
        api_token="test-token",
        auth_scheme="Token",
        connect_timeout_seconds=1.0,
        read_timeout_seconds=1.0,
        poll_interval_seconds=2.0,
        poll_max_errors=None,
        poll_backoff_factor=1.0,
        poll_max_interval_seconds=30.0,
        notification_ttl_seconds=60.0,
        data_dir=tmp_path / "data",
        credentials_path=tmp_path / "data" / "auth.json",
        persist_credentials=False,
    )


@pytest.fixture()
def service() -> FakeJobService:
    return FakeJobService()


@pytest.fixture()
def registry() -> TaskRegistry:
    return TaskRegistry()


@pytest.fixture()
def notifications():
    # Long TTL: tests that care about eviction build their own queue.
    queue = NotificationQueue(ttl_seconds=60.0)
    yield queue
    queue.close()


@pytest.fixture()
def poller(service: FakeJobService, registry: TaskRegistry, notifications: NotificationQueue) -> TaskPoller:
    """Poller without background loops: tests call tick() themselves."""
    return TaskPoller(service, registry, notifications, interval_seconds=2.0, autostart=False)


@pytest.fixture()
def manual_sleep() -> ManualSleep:
    return ManualSleep()


@pytest.fixture()
def workflow(
    service: FakeJobService,
    registry: TaskRegistry,
    notifications: NotificationQueue,
    poller: TaskPoller,
) -> BulkOutreachWorkflow:
    return BulkOutreachWorkflow(service, registry, notifications, poller)
