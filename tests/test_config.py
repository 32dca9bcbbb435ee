# tests/test_config.py

from __future__ import annotations

from pathlib import Path

from bulk_outreach.cli.bootstrap import create_session, error_policy_from_settings
from bulk_outreach.config import Settings

from .fakes import FakeJobService


def test_defaults(monkeypatch) -> None:
    for key in ("OUTREACH_API_BASE_URL", "OUTREACH_API_TOKEN", "OUTREACH_POLL_INTERVAL_SECONDS",
                "OUTREACH_POLL_MAX_ERRORS", "OUTREACH_NOTIFICATION_TTL_SECONDS", "OUTREACH_DATA_DIR",
                "OUTREACH_CREDENTIALS_PATH", "OUTREACH_AUTH_SCHEME"):
        monkeypatch.delenv(key, raising=False)

    s = Settings.from_env()

    assert s.api_base_url == "http://localhost:8000/api"
    assert s.api_token is None
    assert s.auth_scheme == "Token"
    assert s.poll_interval_seconds == 2.0
    assert s.poll_max_errors is None
    assert s.notification_ttl_seconds == 5.0
    assert s.credentials_path == Path(".local/outreach") / "auth.json"


def test_env_overrides_and_bad_numbers(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("OUTREACH_API_BASE_URL", "https://outreach.example.com/api/")
    monkeypatch.setenv("OUTREACH_API_TOKEN", "  tok  ")
    monkeypatch.setenv("OUTREACH_POLL_INTERVAL_SECONDS", "0.5")
    monkeypatch.setenv("OUTREACH_POLL_MAX_ERRORS", "10")
    monkeypatch.setenv("OUTREACH_POLL_BACKOFF_FACTOR", "fast")
    monkeypatch.setenv("OUTREACH_DATA_DIR", str(tmp_path))
    monkeypatch.delenv("OUTREACH_CREDENTIALS_PATH", raising=False)

    s = Settings.from_env()

    assert s.api_base_url == "https://outreach.example.com/api"
    assert s.api_token == "tok"
    assert s.poll_interval_seconds == 0.5
    assert s.poll_max_errors == 10
    assert s.poll_backoff_factor == 1.0
    assert s.credentials_path == tmp_path / "auth.json"

    policy = error_policy_from_settings(s)
    assert policy.max_consecutive_errors == 10


def test_create_session_wires_settings(settings) -> None:
    session = create_session(settings=settings, service=FakeJobService())

    assert session.credentials.token == "test-token"
    assert session.poller.interval_seconds == 2.0
    assert session.notifications.ttl_seconds == 60.0
    assert settings.data_dir.is_dir()
