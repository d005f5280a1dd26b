"""Headless watcher: polls the server and logs badge changes and toasts."""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
from collections.abc import Sequence

import httpx

from notification_center.client.center import NotificationCenter
from notification_center.client.config import ClientSettings, get_client_settings
from notification_center.client.filters import NotificationFilter
from notification_center.client.sync import SyncClient
from notification_center.client.toasts import LoggingToastSink
from notification_center.core.logging import bind_log_context, configure_logging, reset_log_context

logger = logging.getLogger("notification_center.client.watch")


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="python -m notification_center.client",
        description="Poll the notification server and log unread-count changes.",
    )
    parser.add_argument(
        "--filter",
        choices=[item.value for item in NotificationFilter],
        default=NotificationFilter.ALL.value,
        help="Filter tab to poll (default: all).",
    )
    parser.add_argument(
        "--identity",
        default="watcher",
        help="Label for the session in log records.",
    )
    return parser.parse_args(argv)


class BadgeLogger:
    """Logs the badge whenever its label changes."""

    def __init__(self) -> None:
        self._last_label: str | None = None

    def __call__(self, center: NotificationCenter) -> None:
        badge = center.badge
        if badge.label == self._last_label:
            return
        self._last_label = badge.label
        logger.info(
            "Unread badge changed",
            extra={"label": badge.label, "unread_count": center.unread_count},
        )


async def run_watcher(
    settings: ClientSettings,
    *,
    selected: NotificationFilter = NotificationFilter.ALL,
    identity: str = "watcher",
    stop_event: asyncio.Event | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> NotificationCenter:
    stop_event = stop_event or asyncio.Event()
    # Polling tasks copy this context, so their records carry the session labels.
    log_token = bind_log_context(session=identity, tab=selected.value)
    try:
        return await _watch(settings, selected, identity, stop_event, transport)
    finally:
        reset_log_context(log_token)


async def _watch(
    settings: ClientSettings,
    selected: NotificationFilter,
    identity: str,
    stop_event: asyncio.Event,
    transport: httpx.AsyncBaseTransport | None,
) -> NotificationCenter:
    async with SyncClient(
        settings.api_url,
        token=settings.bearer_token(),
        timeout=settings.request_timeout_seconds,
        page_size=settings.page_size,
        transport=transport,
    ) as sync:
        center = NotificationCenter(
            sync,
            toasts=LoggingToastSink(),
            poll_interval_seconds=settings.poll_interval_seconds,
        )
        center.subscribe(BadgeLogger())
        center.set_filter(selected)
        center.activate(identity)
        logger.info(
            "Watching notifications",
            extra={"api_url": settings.api_url, "filter": selected.value},
        )
        try:
            await stop_event.wait()
        finally:
            center.deactivate()
            await center.scheduler.wait_idle()
    return center


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)
    settings = get_client_settings()
    configure_logging(settings.log_level)

    async def _main() -> None:
        stop_event = asyncio.Event()
        loop = asyncio.get_running_loop()
        for signum in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(signum, stop_event.set)
            except NotImplementedError:  # pragma: no cover - Windows event loops
                pass
        await run_watcher(
            settings,
            selected=NotificationFilter(args.filter),
            identity=args.identity,
            stop_event=stop_event,
        )

    asyncio.run(_main())


__all__ = ["BadgeLogger", "main", "parse_args", "run_watcher"]
