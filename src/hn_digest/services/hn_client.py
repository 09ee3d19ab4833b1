# ABOUTME: Async client for the Hacker News Firebase API.
# ABOUTME: Story id lists, per-item and bulk lookups; item failures are returned as None.

import asyncio
from collections.abc import Iterable

import httpx
import structlog
from bs4 import BeautifulSoup
from pydantic import ValidationError

from hn_digest.config import Settings
from hn_digest.errors import SourceUnavailableError
from hn_digest.models import HNItem

log = structlog.get_logger()


def strip_html(html: str | None) -> str:
    """Remove HTML tags and return trimmed plain text."""
    if not html:
        return ""
    return BeautifulSoup(html, "html.parser").get_text().strip()


class HNClient:
    """Thin wrapper over one shared httpx.AsyncClient."""

    def __init__(self, settings: Settings, client: httpx.AsyncClient | None = None) -> None:
        self.client = client or httpx.AsyncClient(
            base_url=settings.hn_api_base,
            timeout=settings.request_timeout,
            headers={"User-Agent": settings.user_agent},
            follow_redirects=True,
        )

    async def aclose(self) -> None:
        await self.client.aclose()

    async def get_top_story_ids(self) -> list[int]:
        return await self._get_id_list("/topstories.json")

    async def get_best_story_ids(self) -> list[int]:
        return await self._get_id_list("/beststories.json")

    async def _get_id_list(self, path: str) -> list[int]:
        """Fetch a story id list. The whole cycle depends on it, so failures raise."""
        try:
            response = await self.client.get(path)
            response.raise_for_status()
            ids = response.json()
            if not isinstance(ids, list):
                raise SourceUnavailableError(f"unexpected payload from {path}")
            return [int(i) for i in ids]
        except (httpx.HTTPError, TypeError, ValueError) as e:
            log.error("story_ids_unavailable", path=path, error=str(e))
            raise SourceUnavailableError(f"could not fetch {path}: {e}") from e

    async def get_item(self, item_id: int) -> HNItem | None:
        """Fetch one item. Network errors, timeouts and bad payloads yield None."""
        try:
            response = await self.client.get(f"/item/{item_id}.json")
            response.raise_for_status()
            data = response.json()
            if data is None:
                return None
            return HNItem.model_validate(data)
        except httpx.HTTPError as e:
            log.warning("item_fetch_failed", item_id=item_id, error=str(e))
            return None
        except (ValueError, ValidationError) as e:
            log.warning("item_malformed", item_id=item_id, error=str(e))
            return None

    async def get_items(self, ids: Iterable[int]) -> list[HNItem]:
        """Fetch items concurrently, dropping the ones that failed."""
        items = await asyncio.gather(*(self.get_item(i) for i in ids))
        return [item for item in items if item is not None]
