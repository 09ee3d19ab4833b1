# ABOUTME: Background refresh loop run by the web app.
# ABOUTME: Seeds an empty store, then periodically fetches and sweeps old records.

import asyncio

import structlog

from hn_digest.errors import HNDigestError
from hn_digest.services.container import Services

log = structlog.get_logger()


async def _refresh_once(services: Services) -> None:
    try:
        await services.pipeline.run_cycle()
    except HNDigestError as e:
        log.error("scheduled_fetch_failed", error=str(e))
    except Exception:
        log.exception("scheduled_fetch_crashed")

    try:
        await services.pipeline.purge()
    except Exception:
        log.exception("scheduled_purge_failed")


async def refresh_loop(services: Services) -> None:
    """Run fetch cycles every `fetch_interval_hours` until cancelled."""
    interval = services.settings.fetch_interval_hours * 3600

    try:
        stats = await services.store.get_stats()
    except Exception:
        log.exception("initial_stats_failed")
        stats = None
    if stats is not None and stats.story_count == 0:
        log.info("store_empty_initial_fetch")
        await _refresh_once(services)

    while True:
        await asyncio.sleep(interval)
        log.info("scheduled_fetch_triggered", interval_hours=services.settings.fetch_interval_hours)
        await _refresh_once(services)
