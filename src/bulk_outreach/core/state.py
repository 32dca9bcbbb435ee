# src/bulk_outreach/core/state.py

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from ..api.auth import CredentialStore
from ..notifications.queue import NotificationQueue
from ..tasks.task_api import BulkOutreachWorkflow
from ..tasks.task_poller import TaskPoller
from ..tasks.task_registry import TaskRegistry
from .ports import JobService

logger = logging.getLogger(__name__)


@dataclass
class OutreachSession:
    """
    Everything one application session owns.

    The registry and the notification queue live here (not in module globals)
    so that each session, and each test, gets its own.
    """

    settings: Any
    credentials: CredentialStore
    service: JobService
    registry: TaskRegistry
    notifications: NotificationQueue
    poller: TaskPoller
    workflow: BulkOutreachWorkflow

    async def aclose(self) -> None:
        """Stop polling, cancel eviction timers, close the transport. Best-effort."""
        try:
            await self.poller.aclose()
        except Exception:
            logger.exception("Poller shutdown failed.")

        self.notifications.close()

        close = getattr(self.service, "aclose", None)
        if close is not None:
            try:
                await close()
            except Exception:
                logger.debug("Job service close failed.", exc_info=True)
