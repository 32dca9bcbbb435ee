# tests/test_notification_queue.py

from __future__ import annotations

import asyncio

import pytest

from bulk_outreach.notifications.models import Severity
from bulk_outreach.notifications.queue import NotificationQueue


@pytest.mark.asyncio
async def test_notification_lives_for_its_ttl() -> None:
    queue = NotificationQueue(ttl_seconds=0.05)
    n = queue.success("Discovery Started", "URL discovery task has been initiated.")

    assert queue.items() == [n]
    assert n.severity == Severity.SUCCESS
    assert n.created_at > 0

    await asyncio.sleep(0.15)
    assert queue.items() == []
    assert n.id not in queue


@pytest.mark.asyncio
async def test_ids_are_unique_and_increasing(notifications: NotificationQueue) -> None:
    ids = [notifications.info("t", str(i)).id for i in range(5)]
    assert ids == sorted(ids)
    assert len(set(ids)) == 5


@pytest.mark.asyncio
async def test_dismiss_second_of_three_keeps_the_others_until_they_expire() -> None:
    queue = NotificationQueue(ttl_seconds=0.2)
    first = queue.info("one", "1")
    second = queue.error("two", "2")
    third = queue.success("three", "3")

    assert queue.dismiss(second.id) is True
    assert queue.items() == [first, third]

    await asyncio.sleep(0.1)
    assert queue.items() == [first, third]

    await asyncio.sleep(0.25)
    assert queue.items() == []


@pytest.mark.asyncio
async def test_dismiss_is_idempotent_and_expiry_after_dismiss_is_harmless() -> None:
    queue = NotificationQueue(ttl_seconds=0.05)
    gone = queue.info("gone", "x")
    queue.dismiss(gone.id)
    later = queue.info("later", "y")

    assert queue.dismiss(gone.id) is False
    assert queue.items() == [later]

    await asyncio.sleep(0.02)
    assert queue.items() == [later]
    await asyncio.sleep(0.1)
    assert queue.items() == []


@pytest.mark.asyncio
async def test_subscribers_see_add_and_remove(notifications: NotificationQueue) -> None:
    events = []
    unsubscribe = notifications.subscribe(lambda event, n: events.append((event, n.title)))

    n = notifications.push("error", "Scraping Failed", "boom")
    notifications.dismiss(n.id)
    unsubscribe()
    notifications.info("ignored", "")

    assert events == [("added", "Scraping Failed"), ("removed", "Scraping Failed")]


@pytest.mark.asyncio
async def test_close_cancels_pending_evictions() -> None:
    queue = NotificationQueue(ttl_seconds=0.05)
    n = queue.info("sticky", "x")
    queue.close()

    await asyncio.sleep(0.1)
    assert queue.items() == [n]


def test_push_requires_running_loop(notifications: NotificationQueue) -> None:
    with pytest.raises(RuntimeError):
        notifications.info("no loop", "x")
