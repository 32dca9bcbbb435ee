# src/bulk_outreach/tasks/task_poller.py

from __future__ import annotations

"""
Task poller.

Keeps one TaskRecord per attached task current until the remote job reaches a
terminal status:
- every interval, fetch the job status (never two fetches in flight per task),
- apply the snapshot to the registry,
- on completed/failed: detach and emit exactly one notification,
- on transport errors: keep the last snapshot and try again next interval,
- on a rejected token: stop polling every task, since no later request can succeed.

Each attach gets a fresh handle; detach invalidates it. A response that comes
back for an invalidated handle is dropped, so a late fetch can never overwrite
a newer attach or touch a task nobody is watching anymore.

Subscribers are told whenever a task stops being polled, with the reason, so
anyone waiting on a task learns when no terminal status is coming.
"""

import asyncio
import itertools
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import StrEnum

from ..core.errors import AuthenticationError
from ..core.ports import JobService, Notifier
from ..notifications.models import Severity
from .task_models import TaskKind, TaskRecord, TaskSnapshot, TaskStatus
from .task_registry import TaskRegistry

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class StopReason(StrEnum):
    TERMINAL = "terminal"
    DETACHED = "detached"
    GAVE_UP = "gave_up"
    UNAUTHORIZED = "unauthorized"


StopListener = Callable[[str, StopReason, Exception | None], None]


class PollingStoppedError(RuntimeError):
    """Polling of a task ended before it reached a terminal status."""

    def __init__(self, task_id: str, reason: StopReason, error: Exception | None = None) -> None:
        super().__init__(f"stopped polling task {task_id} ({reason.value})")
        self.task_id = task_id
        self.reason = reason
        self.error = error


@dataclass(slots=True, frozen=True)
class PollErrorPolicy:
    """
    What to do about consecutive failed status fetches.

    The defaults retry forever at the normal interval. max_consecutive_errors
    stops polling (the task keeps its last known status) and backoff_factor > 1
    stretches the interval after each failure, up to max_interval_seconds.
    """

    max_consecutive_errors: int | None = None
    backoff_factor: float = 1.0
    max_interval_seconds: float = 30.0

    def next_delay(self, interval_seconds: float, consecutive_errors: int) -> float:
        if consecutive_errors <= 0 or self.backoff_factor <= 1.0:
            return interval_seconds
        cap = max(interval_seconds, self.max_interval_seconds)
        return min(cap, interval_seconds * self.backoff_factor ** consecutive_errors)

    def exhausted(self, consecutive_errors: int) -> bool:
        return self.max_consecutive_errors is not None and consecutive_errors >= self.max_consecutive_errors


@dataclass(slots=True)
class _PollHandle:
    task_id: str
    kind: TaskKind
    generation: int
    cancelled: bool = False
    in_flight: bool = False
    consecutive_errors: int = 0
    runner: asyncio.Task[None] | None = None


_STAGE_TITLES: dict[TaskKind, str] = {
    TaskKind.DISCOVERY: "Discovery",
    TaskKind.SCRAPING: "Scraping",
}


def terminal_notification(record: TaskRecord) -> tuple[Severity, str, str]:
    """Severity/title/message announcing a finished task."""
    stage = _STAGE_TITLES[record.kind]

    if record.status == TaskStatus.FAILED:
        message = record.error_message or f"The {stage.lower()} task failed."
        return Severity.ERROR, f"{stage} Failed", message

    if record.kind == TaskKind.DISCOVERY:
        return Severity.SUCCESS, f"{stage} Completed", f"{record.discovered_count or 0} URLs discovered."

    return (
        Severity.SUCCESS,
        f"{stage} Completed",
        f"{record.successful_units or 0} contacts were successfully scraped.",
    )


class TaskPoller:
    def __init__(
        self,
        service: JobService,
        registry: TaskRegistry,
        notifier: Notifier,
        *,
        interval_seconds: float = 2.0,
        error_policy: PollErrorPolicy | None = None,
        sleep: Sleep = asyncio.sleep,
        autostart: bool = True,
    ) -> None:
        self._service = service
        self._registry = registry
        self._notifier = notifier
        self.interval_seconds = max(0.0, float(interval_seconds))
        self.error_policy = error_policy or PollErrorPolicy()
        self.autostart = autostart
        self._sleep = sleep

        self._handles: dict[str, _PollHandle] = {}
        self._generations = itertools.count(1)
        self._stop_listeners: list[StopListener] = []

    def is_attached(self, task_id: str) -> bool:
        return task_id in self._handles

    def is_in_flight(self, task_id: str) -> bool:
        handle = self._handles.get(task_id)
        return handle is not None and handle.in_flight

    def attached_ids(self) -> list[str]:
        return list(self._handles)

    def attach(
        self,
        task_id: str,
        kind: TaskKind,
        initial_snapshot: TaskSnapshot | None = None,
        *,
        start: bool | None = None,
    ) -> bool:
        """
        Start polling a task. Returns False if the task is already terminal.

        The initial snapshot (the initiation response) is registered if the task
        is not known yet. The first status fetch happens one interval later.
        With start=False (or autostart=False on the poller) no background loop
        is created; call tick() to poll.
        """
        if start is None:
            start = self.autostart
        if task_id in self._handles:
            raise ValueError(f"task {task_id} is already being polled")

        if initial_snapshot is not None and task_id not in self._registry:
            if initial_snapshot.id != task_id or initial_snapshot.kind != kind:
                raise ValueError(f"initial snapshot does not belong to {kind.value} task {task_id}")
            self._registry.add(initial_snapshot)

        record = self._registry.get(task_id)
        if record is None:
            raise ValueError(f"task {task_id} is not registered")
        if record.kind != kind:
            raise ValueError(f"task {task_id} is a {record.kind.value} task, not {kind.value}")
        if record.is_terminal:
            logger.info("Task %s is already %s; not polling", task_id, record.status.value)
            return False

        handle = _PollHandle(task_id=task_id, kind=kind, generation=next(self._generations))
        self._handles[task_id] = handle

        if start:
            handle.runner = asyncio.get_running_loop().create_task(
                self._run(handle), name=f"poll-{kind.value}-{task_id}"
            )

        logger.info("Polling %s task %s every %.1fs", kind.value, task_id, self.interval_seconds)
        return True

    def detach(self, task_id: str) -> bool:
        """
        Stop polling a task. Idempotent.

        A fetch already in flight is left to finish; its result is discarded.
        """
        return self._release(task_id, StopReason.DETACHED)

    def subscribe(self, listener: StopListener) -> Callable[[], None]:
        """
        Register a listener called as listener(task_id, reason, error) whenever
        a task stops being polled. Returns a callable that unsubscribes it.
        """
        self._stop_listeners.append(listener)

        def _unsubscribe() -> None:
            try:
                self._stop_listeners.remove(listener)
            except ValueError:
                pass

        return _unsubscribe

    async def tick(self, task_id: str) -> bool:
        """Poll one task once. Returns True if a snapshot was applied."""
        handle = self._handles.get(task_id)
        if handle is None:
            return False
        return await self._tick(handle)

    async def aclose(self) -> None:
        """Detach everything and wait for the background loops to wind down."""
        runners = [h.runner for h in self._handles.values() if h.runner is not None]
        for task_id in list(self._handles):
            self.detach(task_id)
        if runners:
            await asyncio.gather(*runners, return_exceptions=True)

    # ---- internals ----

    def _release(self, task_id: str, reason: StopReason, error: Exception | None = None) -> bool:
        handle = self._handles.pop(task_id, None)
        if handle is None:
            return False
        handle.cancelled = True

        runner = handle.runner
        if runner is not None and not runner.done() and not handle.in_flight:
            try:
                current = asyncio.current_task()
            except RuntimeError:
                current = None
            if runner is not current:
                runner.cancel()

        logger.debug("Detached task %s (generation %s, %s)", task_id, handle.generation, reason.value)
        self._publish_stop(task_id, reason, error)
        return True

    def _publish_stop(self, task_id: str, reason: StopReason, error: Exception | None) -> None:
        for listener in list(self._stop_listeners):
            try:
                listener(task_id, reason, error)
            except Exception:
                logger.exception("Poll stop listener failed task_id=%s", task_id)

    def _is_current(self, handle: _PollHandle) -> bool:
        return not handle.cancelled and self._handles.get(handle.task_id) is handle

    async def _run(self, handle: _PollHandle) -> None:
        while not handle.cancelled:
            delay = self.error_policy.next_delay(self.interval_seconds, handle.consecutive_errors)
            await self._sleep(delay)
            if handle.cancelled:
                break
            await self._tick(handle)

    async def _tick(self, handle: _PollHandle) -> bool:
        if handle.in_flight:
            logger.debug("Status fetch for task %s still in flight; tick skipped", handle.task_id)
            return False

        handle.in_flight = True
        try:
            snapshot = await self._service.get_status(handle.kind, handle.task_id)
            if snapshot.id != handle.task_id or snapshot.kind != handle.kind:
                raise ValueError(
                    f"status response for {snapshot.kind.value}:{snapshot.id} "
                    f"while polling {handle.kind.value}:{handle.task_id}"
                )
        except asyncio.CancelledError:
            raise
        except AuthenticationError as exc:
            if self._is_current(handle):
                self._on_unauthorized(exc)
            return False
        except Exception as exc:
            if self._is_current(handle):
                self._on_poll_error(handle, exc)
            return False
        finally:
            handle.in_flight = False

        if not self._is_current(handle):
            logger.debug("Dropping late status for detached task %s", handle.task_id)
            return False

        handle.consecutive_errors = 0
        record = self._registry.apply_snapshot(snapshot)
        if record is None:
            # Unknown or already terminal: nothing left to watch.
            self.detach(handle.task_id)
            return False

        logger.debug(
            "Task %s status=%s progress=%s/%s",
            record.id,
            record.status.value,
            record.processed_units,
            record.total_units,
        )

        if record.is_terminal:
            self._release(handle.task_id, StopReason.TERMINAL)
            logger.info("Task %s -> %s", record.id, record.status.value)
            severity, title, message = terminal_notification(record)
            self._notify(severity, title, message)

        return True

    def _on_poll_error(self, handle: _PollHandle, exc: Exception) -> None:
        handle.consecutive_errors += 1
        logger.warning(
            "Status poll failed task_id=%s kind=%s (consecutive=%d): %s",
            handle.task_id,
            handle.kind.value,
            handle.consecutive_errors,
            exc,
        )

        if self.error_policy.exhausted(handle.consecutive_errors):
            logger.error("Giving up on task %s after %d failed polls", handle.task_id, handle.consecutive_errors)
            self._notify(
                Severity.ERROR,
                "Lost contact with task",
                f"Stopped checking {handle.kind.value} task {handle.task_id} "
                f"after {handle.consecutive_errors} failed status requests.",
            )
            self._release(handle.task_id, StopReason.GAVE_UP, exc)

    def _on_unauthorized(self, exc: AuthenticationError) -> None:
        # Credentials are gone; every other poll would be rejected too.
        task_ids = list(self._handles)
        logger.error("Job service rejected the credentials; stopping %d poll(s): %s", len(task_ids), exc.message)
        self._notify(Severity.ERROR, "Authentication required", "Log in again to keep tracking tasks.")
        for task_id in task_ids:
            self._release(task_id, StopReason.UNAUTHORIZED, exc)

    def _notify(self, severity: Severity, title: str, message: str) -> None:
        try:
            self._notifier.push(severity, title, message)
        except Exception:
            logger.exception("Failed to emit notification %r", title)
