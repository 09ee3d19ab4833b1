# ABOUTME: Builds the process-wide service graph once and hands it to callers.
# ABOUTME: Database, store, HN client, translator, enricher and pipeline, wired explicitly.

from dataclasses import dataclass

from hn_digest.config import Settings
from hn_digest.db.session import Database
from hn_digest.db.store import Store
from hn_digest.services.enrichment import Enricher
from hn_digest.services.hn_client import HNClient
from hn_digest.services.pipeline import Pipeline
from hn_digest.services.translator import AnthropicTranslator, Translator


@dataclass
class Services:
    settings: Settings
    database: Database
    store: Store
    client: HNClient
    pipeline: Pipeline

    async def start(self) -> None:
        await self.database.init()

    async def close(self) -> None:
        await self.client.aclose()
        await self.database.close()


def build_services(
    settings: Settings,
    client: HNClient | None = None,
    translator: Translator | None = None,
) -> Services:
    database = Database(settings.database_url)
    store = Store(database.session_factory)
    client = client or HNClient(settings)
    enricher = Enricher(
        translator or AnthropicTranslator(settings),
        comment_limit=settings.comment_translate_limit,
        delay=settings.enrichment_delay,
        abstract_length=settings.abstract_length,
    )
    pipeline = Pipeline(client, store, enricher, settings)
    return Services(
        settings=settings, database=database, store=store, client=client, pipeline=pipeline
    )
