# src/bulk_outreach/tasks/task_registry.py

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterator
from typing import Any

from .task_models import TaskKind, TaskRecord, TaskSnapshot

logger = logging.getLogger(__name__)

TaskListener = Callable[[TaskRecord], None]


class TaskRegistry:
    """
    Session-owned map of task id -> TaskRecord.

    Every change (add or applied snapshot) is published to subscribers with the
    new record. Terminal records are frozen: snapshots arriving for them are
    refused, which keeps "completed"/"failed" final no matter who calls.
    """

    def __init__(self, *, clock: Callable[[], float] = time.time) -> None:
        self._tasks: dict[str, TaskRecord] = {}
        self._listeners: list[TaskListener] = []
        self._clock = clock

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._tasks

    def __len__(self) -> int:
        return len(self._tasks)

    def __iter__(self) -> Iterator[TaskRecord]:
        return iter(list(self._tasks.values()))

    def get(self, task_id: str | None) -> TaskRecord | None:
        if task_id is None:
            return None
        return self._tasks.get(task_id)

    def list_tasks(self, kind: TaskKind | None = None) -> list[TaskRecord]:
        return [t for t in self._tasks.values() if kind is None or t.kind == kind]

    def add(self, snapshot: TaskSnapshot, *, meta: dict[str, Any] | None = None) -> TaskRecord:
        if snapshot.id in self._tasks:
            raise ValueError(f"task {snapshot.id} is already registered")
        record = TaskRecord.from_snapshot(snapshot, now_ts=self._clock(), meta=meta)
        self._tasks[record.id] = record
        logger.debug("Registered %s task %s status=%s", record.kind.value, record.id, record.status.value)
        self._publish(record)
        return record

    def apply_snapshot(self, snapshot: TaskSnapshot) -> TaskRecord | None:
        """
        Replace the mutable fields of a known task.

        Returns the new record, or None when the task is unknown or already terminal.
        """
        current = self._tasks.get(snapshot.id)
        if current is None:
            logger.warning("Snapshot for unknown task %s ignored", snapshot.id)
            return None
        if current.is_terminal:
            logger.debug("Task %s is terminal (%s); snapshot ignored", current.id, current.status.value)
            return None

        record = current.with_snapshot(snapshot, now_ts=self._clock())
        self._tasks[record.id] = record
        self._publish(record)
        return record

    def subscribe(self, listener: TaskListener) -> Callable[[], None]:
        """Register a change listener; returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

        return _unsubscribe

    def _publish(self, record: TaskRecord) -> None:
        for listener in list(self._listeners):
            try:
                listener(record)
            except Exception:
                # A broken subscriber (e.g. a UI) must not break polling.
                logger.exception("Task listener failed task_id=%s", record.id)
