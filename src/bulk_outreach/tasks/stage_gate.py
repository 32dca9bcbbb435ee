# src/bulk_outreach/tasks/stage_gate.py

from __future__ import annotations

from .task_models import TaskRecord, TaskStatus


class StageGateError(RuntimeError):
    """Scraping was requested before its discovery task completed."""


def can_initiate_scraping(discovery_task: TaskRecord | None) -> bool:
    return discovery_task is not None and discovery_task.status == TaskStatus.COMPLETED


def scraping_gate_hint(discovery_task: TaskRecord | None) -> str | None:
    """User-facing reason why scraping is blocked, or None when the gate is open."""
    if discovery_task is None:
        return "Complete URL discovery first to enable bulk scraping."
    if discovery_task.status != TaskStatus.COMPLETED:
        return "Wait for URL discovery to complete before starting scraping."
    return None
