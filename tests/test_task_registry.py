# tests/test_task_registry.py

from __future__ import annotations

import pytest

from bulk_outreach.tasks.task_models import TaskKind, TaskStatus
from bulk_outreach.tasks.task_registry import TaskRegistry

from .fakes import snap


def test_add_and_apply_publish_new_records(registry: TaskRegistry) -> None:
    seen = []
    registry.subscribe(seen.append)

    registry.add(snap(TaskKind.DISCOVERY, "d1", "pending"))
    registry.apply_snapshot(snap(TaskKind.DISCOVERY, "d1", "running", discovered_count=3))

    assert [r.status for r in seen] == [TaskStatus.PENDING, TaskStatus.RUNNING]
    assert registry.get("d1").discovered_count == 3
    assert "d1" in registry and len(registry) == 1


def test_duplicate_ids_are_rejected(registry: TaskRegistry) -> None:
    registry.add(snap(TaskKind.DISCOVERY, "d1", "pending"))
    with pytest.raises(ValueError):
        registry.add(snap(TaskKind.DISCOVERY, "d1", "running"))


@pytest.mark.parametrize("terminal", ["completed", "failed"])
def test_terminal_records_are_never_mutated(registry: TaskRegistry, terminal: str) -> None:
    registry.add(snap(TaskKind.SCRAPING, "s1", "running", total_units=10, processed_units=1))
    final = registry.apply_snapshot(
        snap(TaskKind.SCRAPING, "s1", terminal, total_units=10, processed_units=10, error_message="x" if terminal == "failed" else None)
    )
    assert final is not None

    assert registry.apply_snapshot(snap(TaskKind.SCRAPING, "s1", "running", total_units=10, processed_units=2)) is None
    assert registry.get("s1") == final


def test_unknown_task_snapshot_is_ignored(registry: TaskRegistry) -> None:
    assert registry.apply_snapshot(snap(TaskKind.DISCOVERY, "nope", "running")) is None
    assert registry.get("nope") is None


def test_unsubscribe_and_broken_listener(registry: TaskRegistry) -> None:
    seen = []

    def broken(_record) -> None:
        raise RuntimeError("ui crashed")

    registry.subscribe(broken)
    unsubscribe = registry.subscribe(seen.append)

    registry.add(snap(TaskKind.DISCOVERY, "d1", "pending"))
    unsubscribe()
    unsubscribe()
    registry.apply_snapshot(snap(TaskKind.DISCOVERY, "d1", "running"))

    assert len(seen) == 1
    assert registry.get("d1").status == TaskStatus.RUNNING


def test_list_tasks_by_kind(registry: TaskRegistry) -> None:
    registry.add(snap(TaskKind.DISCOVERY, "d1", "completed", discovered_count=5))
    registry.add(snap(TaskKind.SCRAPING, "s1", "pending"))
    assert [t.id for t in registry.list_tasks(TaskKind.SCRAPING)] == ["s1"]
    assert {t.id for t in registry} == {"d1", "s1"}
