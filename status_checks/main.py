from __future__ import annotations

import argparse
import asyncio
import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import partial
from pathlib import Path
from typing import Awaitable, Callable, Protocol

import httpx
import structlog
from dotenv import load_dotenv

from status_checks.config import ConfigError, MonitorSettings, Site, load_settings, load_sites
from status_checks.discord import DiscordNotifier
from status_checks.probe import probe_url
from status_checks.status import Observation, Status, classify, describe_previous
from status_checks.store import StatusStore
from status_checks.transitions import Decision, Notification, build_notification, decide

logger = structlog.get_logger(__name__)

ProbeFn = Callable[[str], Awaitable[Observation]]


class Notifier(Protocol):
    async def deliver(self, notification: Notification) -> bool: ...


@dataclass(frozen=True)
class SiteOutcome:
    site: Site
    observation: Observation
    previous: Status | None
    current: Status
    decision: Decision
    notification: Notification | None = None
    delivered: bool = False


@dataclass
class CycleReport:
    outcomes: list[SiteOutcome] = field(default_factory=list)

    @property
    def notifications(self) -> list[Notification]:
        return [o.notification for o in self.outcomes if o.notification is not None]

    def status_counts(self) -> dict[str, int]:
        return dict(Counter(o.current.value for o in self.outcomes))


async def process_site(
    site: Site,
    observation: Observation,
    store: StatusStore,
    notifier: Notifier,
    *,
    now: datetime | None = None,
) -> SiteOutcome:
    current = classify(observation, site.expected_status)
    previous = store.get(site.url)
    decision = decide(previous, current)

    # Persist before delivery; a failed notification never rolls this back.
    store.set(site.url, current)

    if not decision.notify:
        logger.info(
            "No status change to notify",
            site=site.name,
            status=current.value,
            previous=describe_previous(previous),
        )
        return SiteOutcome(site=site, observation=observation, previous=previous, current=current, decision=decision)

    notification = build_notification(site, observation, current, decision, now=now)
    logger.warning(
        "Status changed",
        site=site.name,
        url=site.url,
        previous=describe_previous(previous),
        status=current.value,
        kind=decision.kind.value if decision.kind else None,
    )
    delivered = await notifier.deliver(notification)
    return SiteOutcome(
        site=site,
        observation=observation,
        previous=previous,
        current=current,
        decision=decision,
        notification=notification,
        delivered=bool(delivered),
    )


async def run_cycle(
    sites: list[Site],
    store: StatusStore,
    notifier: Notifier,
    *,
    probe: ProbeFn,
    concurrency: int = 1,
) -> CycleReport:
    """
    One pass over all sites. The store is updated in memory only; saving it
    is the caller's job, once, after this returns.
    """
    report = CycleReport()
    logger.info("Starting check cycle", sites=len(sites), concurrency=concurrency)

    if concurrency <= 1:
        for site in sites:
            observation = await probe(site.url)
            report.outcomes.append(await process_site(site, observation, store, notifier))
    else:
        semaphore = asyncio.Semaphore(concurrency)
        unit_lock = asyncio.Lock()

        async def _check(site: Site) -> SiteOutcome:
            async with semaphore:
                observation = await probe(site.url)
            async with unit_lock:
                return await process_site(site, observation, store, notifier)

        report.outcomes.extend(await asyncio.gather(*(_check(site) for site in sites)))

    logger.info(
        "Check cycle finished",
        sites=len(report.outcomes),
        notifications=len(report.notifications),
        statuses=report.status_counts(),
    )
    return report


async def run_once(
    settings: MonitorSettings,
    sites: list[Site],
    *,
    notifier: Notifier | None = None,
) -> CycleReport:
    store = StatusStore.load(Path(settings.status_cache_path))
    async with httpx.AsyncClient(headers={"User-Agent": settings.user_agent}) as client:
        probe = partial(probe_url, client, timeout_seconds=settings.probe_timeout_seconds)
        report = await run_cycle(
            sites,
            store,
            notifier or DiscordNotifier(client, settings.discord_webhook_url),
            probe=probe,
            concurrency=settings.check_concurrency,
        )
    store.save()
    return report


def configure_logging(level: str) -> None:
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="ISO"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, str(level).upper(), logging.INFO)),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Avoid leaking secrets (the webhook token is part of the webhook URL).
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def main(argv: list[str] | None = None) -> int:
    load_dotenv()

    parser = argparse.ArgumentParser(description="Run one site status check cycle")
    parser.add_argument("--config", default=None, help="Path to the site list (default: $SITES_PATH or config.json)")
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (INFO, WARNING, ...; default: $LOG_LEVEL or INFO)",
    )
    args = parser.parse_args(argv)

    try:
        settings = load_settings()
    except ConfigError as exc:
        configure_logging(args.log_level or "INFO")
        logger.error("Configuration error", error=str(exc))
        return 1

    configure_logging(args.log_level or settings.log_level)

    try:
        sites = load_sites(Path(args.config or settings.sites_path))
    except ConfigError as exc:
        logger.error("Configuration error", error=str(exc))
        return 1

    started = datetime.now(timezone.utc)
    asyncio.run(run_once(settings, sites))
    logger.info("Done", elapsed_seconds=round((datetime.now(timezone.utc) - started).total_seconds(), 3))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
