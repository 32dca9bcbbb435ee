# src/bulk_outreach/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds the OutreachSession, then runs the bulk outreach
pipeline on one event loop:
- URL discovery for the given industry / seed domain,
- bulk scraping of the discovered URLs (unless --no-scrape),
printing task progress and notifications to the console as they happen.
"""

from __future__ import annotations

import argparse
import asyncio
import getpass
import logging
from datetime import datetime

from ..api.client import JobServiceClient
from ..cli.bootstrap import create_session
from ..config import get_settings
from ..core.errors import AuthenticationError, JobServiceError
from ..core.state import OutreachSession
from ..logging_setup import setup_logging
from ..notifications.models import Notification
from ..tasks.progress import task_progress
from ..tasks.stage_gate import StageGateError
from ..tasks.task_models import TaskRecord, TaskStatus
from ..tasks.task_poller import PollingStoppedError

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_AUTH = 2


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


def _describe(record: TaskRecord) -> str:
    line = f"[{record.kind.value.upper()}] {record.id} {record.status.value} {task_progress(record)}%"
    if record.discovered_count is not None:
        line += f" urls={record.discovered_count}"
    if record.total_units is not None:
        line += f" processed={record.processed_units or 0}/{record.total_units} ok={record.successful_units or 0}"
    if record.error_message:
        line += f" error={record.error_message}"
    return line


def _on_notification(event: str, notification: Notification) -> None:
    if event == "added":
        _print_ts(f"({notification.severity.value}) {notification.title}: {notification.message}")


def _on_unauthorized() -> None:
    _print_ts("Session expired or token rejected. Log in again with --login USER.")


async def _login(session: OutreachSession, username: str) -> None:
    if not isinstance(session.service, JobServiceClient):
        raise RuntimeError("login requires the HTTP job service")
    password = await asyncio.to_thread(getpass.getpass, f"Password for {username}: ")
    await session.service.login(username, password)


async def run_bulk_outreach(
    session: OutreachSession,
    seed: str,
    *,
    scrape: bool = True,
    timeout: float | None = None,
) -> int:
    """
    Run discovery (and scraping) to completion. Returns a process exit code.

    A rejected token ends the run with EXIT_AUTH; a task that stops being
    polled before it finishes ends it with EXIT_FAILED.
    """
    workflow = session.workflow

    last_line: dict[str, str] = {}

    def _on_task(record: TaskRecord) -> None:
        line = _describe(record)
        if last_line.get(record.id) != line:
            last_line[record.id] = line
            _print_ts(line)

    unsubscribe_tasks = session.registry.subscribe(_on_task)
    unsubscribe_notes = session.notifications.subscribe(_on_notification)
    try:
        discovery = await workflow.start_discovery(seed)
        if discovery is None:
            return EXIT_FAILED

        discovery = await workflow.wait_until_terminal(discovery.id, timeout)
        if discovery.status != TaskStatus.COMPLETED or not scrape:
            return EXIT_OK if discovery.status == TaskStatus.COMPLETED else EXIT_FAILED

        try:
            scraping = await workflow.start_scraping()
        except StageGateError as exc:
            _print_ts(str(exc))
            return EXIT_FAILED
        if scraping is None:
            return EXIT_FAILED

        scraping = await workflow.wait_until_terminal(scraping.id, timeout)
        return EXIT_OK if scraping.status == TaskStatus.COMPLETED else EXIT_FAILED
    except AuthenticationError:
        return EXIT_AUTH
    except PollingStoppedError as exc:
        _print_ts(f"Stopped tracking task {exc.task_id} before it finished ({exc.reason.value}).")
        return EXIT_FAILED
    finally:
        unsubscribe_tasks()
        unsubscribe_notes()


async def _amain(args: argparse.Namespace, settings) -> int:
    session = create_session(settings=settings, on_unauthorized=_on_unauthorized)
    try:
        if args.login:
            await _login(session, args.login)
        if not session.credentials.is_authenticated:
            logger.warning("No API token configured; requests will likely be rejected.")
        return await run_bulk_outreach(session, args.seed, scrape=not args.no_scrape, timeout=args.timeout)
    except AuthenticationError:
        return EXIT_AUTH
    except JobServiceError as exc:
        _print_ts(f"Job service error: {exc.message}")
        return EXIT_FAILED
    except TimeoutError:
        _print_ts("Gave up waiting for the task to finish.")
        return EXIT_FAILED
    finally:
        await session.aclose()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bulk-outreach",
        description="Discover URLs for an industry or seed domain and scrape their contacts.",
    )
    parser.add_argument("seed", help="industry (e.g. 'SaaS companies') or seed domain (https://example.com)")
    parser.add_argument("--no-scrape", action="store_true", help="stop after URL discovery")
    parser.add_argument("--login", metavar="USER", help="log in first (password is prompted)")
    parser.add_argument("--timeout", type=float, default=None, help="max seconds to wait per stage")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s...", settings.app_name)

    if not args.seed.strip():
        _print_ts("Industry or seed domain must not be empty.")
        return EXIT_FAILED

    try:
        return asyncio.run(_amain(args, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down...")
        return EXIT_FAILED
    finally:
        logger.info("Bye.")


if __name__ == "__main__":
    raise SystemExit(main())
