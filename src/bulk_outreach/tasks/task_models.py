# src/bulk_outreach/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import Any, Mapping


class TaskKind(StrEnum):
    DISCOVERY = "discovery"
    SCRAPING = "scraping"


class TaskStatus(StrEnum):
    """
    Remote job status, exactly as reported by the job service.

    The client never invents a status: every transition comes from an
    initiation or status response.
    """

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskStatus.COMPLETED, TaskStatus.FAILED)


class SnapshotError(ValueError):
    """The job service returned a payload that cannot be read as a task snapshot."""


# Wire name -> attribute name. The service reports URL counters; both spellings are accepted.
_PROGRESS_FIELDS: dict[TaskKind, dict[str, str]] = {
    TaskKind.DISCOVERY: {
        "discovered_urls_count": "discovered_count",
        "discovered_count": "discovered_count",
    },
    TaskKind.SCRAPING: {
        "total_urls": "total_units",
        "processed_urls": "processed_units",
        "successful_urls": "successful_units",
        "total_units": "total_units",
        "processed_units": "processed_units",
        "successful_units": "successful_units",
    },
}


def _count(raw: Any, name: str) -> int | None:
    if raw is None:
        return None
    if isinstance(raw, bool):
        raise SnapshotError(f"{name} must be an integer, got {raw!r}")
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise SnapshotError(f"{name} must be an integer, got {raw!r}") from None
    if value < 0:
        raise SnapshotError(f"{name} must be non-negative, got {value}")
    return value


@dataclass(slots=True, frozen=True)
class TaskSnapshot:
    """One initiation/status response, already normalized."""

    id: str
    kind: TaskKind
    status: TaskStatus

    discovered_count: int | None = None

    total_units: int | None = None
    processed_units: int | None = None
    successful_units: int | None = None

    error_message: str | None = None

    @classmethod
    def from_payload(cls, kind: TaskKind, data: Mapping[str, Any]) -> TaskSnapshot:
        if not isinstance(data, Mapping):
            raise SnapshotError(f"expected a JSON object, got {type(data).__name__}")

        raw_id = data.get("id")
        if raw_id is None or str(raw_id).strip() == "":
            raise SnapshotError("task snapshot has no id")

        try:
            status = TaskStatus(str(data.get("status", "")).strip().lower())
        except ValueError:
            raise SnapshotError(f"unknown task status {data.get('status')!r}") from None

        progress: dict[str, int | None] = {}
        for wire_name, attr in _PROGRESS_FIELDS[kind].items():
            if wire_name in data and progress.get(attr) is None:
                progress[attr] = _count(data[wire_name], wire_name)

        # error_message is only meaningful for failed jobs.
        error_message = None
        if status == TaskStatus.FAILED:
            raw_err = data.get("error_message")
            error_message = str(raw_err) if raw_err else None

        return cls(
            id=str(raw_id),
            kind=kind,
            status=status,
            error_message=error_message,
            **progress,
        )


@dataclass(slots=True, frozen=True)
class TaskRecord:
    """
    Identity + latest known status of one remote job.

    Records are immutable values; the registry swaps in a new record for every
    applied snapshot, so readers never observe a half-updated task.
    """

    id: str
    kind: TaskKind
    status: TaskStatus
    updated_at: float

    discovered_count: int | None = None

    total_units: int | None = None
    processed_units: int | None = None
    successful_units: int | None = None

    error_message: str | None = None
    meta: dict[str, Any] = field(default_factory=dict)

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @classmethod
    def from_snapshot(cls, snapshot: TaskSnapshot, *, now_ts: float, meta: dict[str, Any] | None = None) -> TaskRecord:
        return cls(
            id=snapshot.id,
            kind=snapshot.kind,
            status=snapshot.status,
            updated_at=now_ts,
            discovered_count=snapshot.discovered_count,
            total_units=snapshot.total_units,
            processed_units=snapshot.processed_units,
            successful_units=snapshot.successful_units,
            error_message=snapshot.error_message,
            meta=dict(meta or {}),
        )

    def with_snapshot(self, snapshot: TaskSnapshot, *, now_ts: float) -> TaskRecord:
        """Replace every mutable field with the snapshot's values (identity stays)."""
        if snapshot.id != self.id or snapshot.kind != self.kind:
            raise ValueError(
                f"snapshot {snapshot.kind.value}:{snapshot.id} does not belong to task {self.kind.value}:{self.id}"
            )
        return replace(
            self,
            status=snapshot.status,
            updated_at=now_ts,
            discovered_count=snapshot.discovered_count,
            total_units=snapshot.total_units,
            processed_units=snapshot.processed_units,
            successful_units=snapshot.successful_units,
            error_message=snapshot.error_message,
        )
