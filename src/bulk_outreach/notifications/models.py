# src/bulk_outreach/notifications/models.py

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class Severity(StrEnum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


@dataclass(slots=True, frozen=True)
class Notification:
    id: int
    severity: Severity
    title: str
    message: str
    created_at: float
