# src/bulk_outreach/api/auth.py

"""
Credential store for the authenticated request layer.

Holds the API token (and the user payload returned by login) in memory and,
optionally, in a small private JSON file so a CLI session survives restarts.
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
from pathlib import Path
from typing import Any, Mapping

logger = logging.getLogger(__name__)


class CredentialStore:
    def __init__(self, path: str | Path | None = None, *, token: str | None = None) -> None:
        self._path = Path(path) if path else None
        self._token: str | None = None
        self._user: dict[str, Any] | None = None

        self._load()
        # An explicit token (e.g. from settings) wins over whatever was on disk.
        if token:
            self._token = token

    @property
    def token(self) -> str | None:
        return self._token

    @property
    def user(self) -> dict[str, Any] | None:
        return dict(self._user) if self._user is not None else None

    @property
    def is_authenticated(self) -> bool:
        return bool(self._token)

    def set(self, token: str, user: Mapping[str, Any] | None = None) -> None:
        self._token = token
        self._user = dict(user) if user is not None else None
        self._save()

    def clear(self) -> None:
        self._token = None
        self._user = None
        if self._path is None:
            return
        try:
            self._path.unlink(missing_ok=True)
        except OSError:
            logger.exception("Failed to remove credentials file %s", self._path)

    def _load(self) -> None:
        if self._path is None or not self._path.exists():
            return
        try:
            data = json.loads(self._path.read_text("utf-8"))
        except (OSError, ValueError):
            logger.exception("Failed to load credentials from %s", self._path)
            return
        if not isinstance(data, dict):
            return
        token = data.get("token")
        user = data.get("user")
        self._token = token if isinstance(token, str) and token else None
        self._user = user if isinstance(user, dict) else None

    def _save(self) -> None:
        if self._path is None:
            return
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self._path.with_suffix(".tmp")
            tmp.write_text(json.dumps({"token": self._token, "user": self._user}, ensure_ascii=False), "utf-8")
            os.replace(tmp, self._path)
            with contextlib.suppress(OSError):
                # The token is a secret: keep the file private on disk.
                os.chmod(self._path, 0o600)
            logger.info("Saved credentials to %s", self._path)
        except OSError:
            logger.exception("Failed to save credentials to %s", self._path)
