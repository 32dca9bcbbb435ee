# src/bulk_outreach/tasks/task_api.py

from __future__ import annotations

import asyncio
import logging

from ..core.errors import AuthenticationError, JobServiceHTTPError
from ..core.ports import JobService, Notifier
from .stage_gate import StageGateError, can_initiate_scraping, scraping_gate_hint
from .task_models import TaskKind, TaskRecord, TaskSnapshot
from .task_poller import PollingStoppedError, StopReason, TaskPoller, terminal_notification
from .task_registry import TaskRegistry

logger = logging.getLogger(__name__)


class BulkOutreachWorkflow:
    """
    Two-stage bulk outreach: URL discovery, then contact scraping.

    Holds the current task of each stage, sends initiation requests and hands
    the created tasks to the poller. Initiation failures become one error
    notification and no task (a rejected token is re-raised after the
    notification); a scraping request while discovery is not completed is
    refused before anything goes over the network.
    """

    def __init__(
        self,
        service: JobService,
        registry: TaskRegistry,
        notifier: Notifier,
        poller: TaskPoller,
    ) -> None:
        self._service = service
        self._registry = registry
        self._notifier = notifier
        self._poller = poller
        self.discovery_task_id: str | None = None
        self.scraping_task_id: str | None = None

    @property
    def discovery_task(self) -> TaskRecord | None:
        return self._registry.get(self.discovery_task_id)

    @property
    def scraping_task(self) -> TaskRecord | None:
        return self._registry.get(self.scraping_task_id)

    def can_start_scraping(self) -> bool:
        return can_initiate_scraping(self.discovery_task)

    def scraping_hint(self) -> str | None:
        return scraping_gate_hint(self.discovery_task)

    async def start_discovery(self, industry_or_seed_domain: str) -> TaskRecord | None:
        seed = (industry_or_seed_domain or "").strip()
        if not seed:
            raise ValueError("industry or seed domain must not be empty")

        snapshot = await self._initiate(
            TaskKind.DISCOVERY,
            {"industry_or_seed_domain": seed},
            failure_title="Discovery Failed",
            failure_default="Failed to start discovery task.",
        )
        if snapshot is None:
            return None

        # One current discovery at a time; stop watching the previous one.
        if self.discovery_task_id is not None:
            self._poller.detach(self.discovery_task_id)

        self._notifier.success("Discovery Started", "URL discovery task has been initiated.")
        record = self._track(snapshot, meta={"industry_or_seed_domain": seed})
        self.discovery_task_id = record.id
        return record

    async def start_scraping(self) -> TaskRecord | None:
        discovery = self.discovery_task
        if discovery is None or not can_initiate_scraping(discovery):
            raise StageGateError(scraping_gate_hint(discovery) or "discovery is not completed")

        snapshot = await self._initiate(
            TaskKind.SCRAPING,
            {"discovery_task_id": discovery.id},
            failure_title="Scraping Failed",
            failure_default="Failed to start scraping task.",
        )
        if snapshot is None:
            return None

        if self.scraping_task_id is not None:
            self._poller.detach(self.scraping_task_id)

        self._notifier.success("Scraping Started", "Bulk scraping task has been initiated.")
        record = self._track(snapshot, meta={"discovery_task_id": discovery.id})
        self.scraping_task_id = record.id
        return record

    async def wait_until_terminal(self, task_id: str, timeout: float | None = None) -> TaskRecord:
        """
        Wait until the registry holds a terminal record for task_id.

        Raises PollingStoppedError if the task is (or becomes) unpolled while
        still pending/running, and re-raises AuthenticationError when polling
        stopped because the token was rejected.
        """
        current = self._registry.get(task_id)
        if current is not None and current.is_terminal:
            return current
        if not self._poller.is_attached(task_id):
            raise PollingStoppedError(task_id, StopReason.DETACHED)

        loop = asyncio.get_running_loop()
        done: asyncio.Future[TaskRecord] = loop.create_future()

        def _on_change(record: TaskRecord) -> None:
            if record.id == task_id and record.is_terminal and not done.done():
                done.set_result(record)

        def _on_stop(stopped_id: str, reason: StopReason, error: Exception | None) -> None:
            if stopped_id != task_id or done.done():
                return
            record = self._registry.get(task_id)
            if record is not None and record.is_terminal:
                done.set_result(record)
            elif isinstance(error, AuthenticationError):
                done.set_exception(error)
            else:
                done.set_exception(PollingStoppedError(task_id, reason, error))

        unsubscribe_changes = self._registry.subscribe(_on_change)
        unsubscribe_stops = self._poller.subscribe(_on_stop)
        try:
            return await asyncio.wait_for(done, timeout)
        finally:
            unsubscribe_changes()
            unsubscribe_stops()

    def stop(self) -> None:
        """Stop watching both stages (e.g. the view is gone). Records stay in the registry."""
        for task_id in (self.discovery_task_id, self.scraping_task_id):
            if task_id is not None:
                self._poller.detach(task_id)

    # ---- internals ----

    async def _initiate(
        self,
        kind: TaskKind,
        params: dict[str, str],
        *,
        failure_title: str,
        failure_default: str,
    ) -> TaskSnapshot | None:
        try:
            return await self._service.initiate(kind, params)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.warning("Failed to initiate %s task: %s", kind.value, exc)
            # Only the service's own explanation is worth showing; transport noise is not.
            message = exc.message if isinstance(exc, JobServiceHTTPError) else failure_default
            self._notifier.error(failure_title, message)
            if isinstance(exc, AuthenticationError):
                raise
            return None

    def _track(self, snapshot: TaskSnapshot, *, meta: dict[str, str]) -> TaskRecord:
        record = self._registry.get(snapshot.id)
        if record is None:
            record = self._registry.add(snapshot, meta=meta)
        if record.is_terminal:
            logger.info("%s task %s was already %s at initiation", record.kind.value, record.id, record.status.value)
            severity, title, message = terminal_notification(record)
            self._notifier.push(severity, title, message)
        elif not self._poller.is_attached(record.id):
            self._poller.attach(record.id, record.kind)
        return record
