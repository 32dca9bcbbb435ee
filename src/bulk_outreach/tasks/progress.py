# src/bulk_outreach/tasks/progress.py

"""
Progress projection: Task Record -> 0..100 display value.

Pure functions only; UI snapshots and tests rely on them being reproducible.
"""

from __future__ import annotations

from .task_models import TaskKind, TaskRecord, TaskStatus

# The discovery job reports no granular progress, only its status.
_DISCOVERY_PROGRESS: dict[TaskStatus, int] = {
    TaskStatus.PENDING: 0,
    TaskStatus.RUNNING: 50,
    TaskStatus.COMPLETED: 100,
    TaskStatus.FAILED: 0,
}


def discovery_progress(task: TaskRecord | None) -> int:
    if task is None:
        return 0
    return _DISCOVERY_PROGRESS.get(task.status, 0)


def scraping_progress(task: TaskRecord | None) -> int:
    if task is None or not task.total_units:
        return 0
    processed = task.processed_units or 0
    pct = round(100 * processed / task.total_units)
    return max(0, min(100, pct))


def task_progress(task: TaskRecord | None) -> int:
    if task is None:
        return 0
    if task.kind == TaskKind.SCRAPING:
        return scraping_progress(task)
    return discovery_progress(task)
