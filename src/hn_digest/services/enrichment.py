# ABOUTME: Best-effort translation and abstract generation for stories and comments.
# ABOUTME: Each field is produced by an ordered chain of strategies; first non-empty result wins.

import asyncio
import inspect
import re
from collections.abc import Awaitable, Callable

import structlog

from hn_digest.models import Comment, Story
from hn_digest.services.translator import Translator

log = structlog.get_logger()

Strategy = Callable[..., Awaitable[str | None] | str | None]

DISCUSSION_PREFIX = "讨论要点："
TITLE_TEMPLATE = '关于"{title}"的讨论'
DIGEST_COMMENTS = 3
SENTENCE_ENDS = ".!?。"

# Offline glossary used when the translation backend is unavailable
KEYWORD_TRANSLATIONS = {
    "Ask HN": "问 HN",
    "Tell HN": "告诉 HN",
    "Show HN": "展示 HN",
    "CEO": "首席执行官",
    "AI": "人工智能",
    "AWS": "亚马逊云服务",
    "API": "应用程序接口",
    "junior devs": "初级开发者",
    "Pricing": "定价",
    "Changes": "变更",
    "appoints new": "任命新的",
    "replacing": "取代",
    "built for speed": "为速度而生",
    "formal verification": "形式化验证",
    "go mainstream": "成为主流",
    "combine with": "与...合并",
    "Data Centers": "数据中心",
    "heat pumps": "热泵",
    "biggest": "最大的",
    "Japan": "日本",
    "revise": "修订",
    "first time in 70 years": "70年来首次",
    "brain activity": "大脑活动",
    "Happiness Report": "幸福报告",
    "methodological problems": "方法论问题",
    "got hacked": "被黑了",
    "server": "服务器",
    "mining": "挖矿",
    "open source": "开源",
    "database": "数据库",
    "security": "安全",
}

_KEYWORD_PATTERN = re.compile(
    r"\b("
    + "|".join(re.escape(k) for k in sorted(KEYWORD_TRANSLATIONS, key=len, reverse=True))
    + r")\b",
    re.IGNORECASE,
)
_KEYWORD_LOOKUP = {k.lower(): v for k, v in KEYWORD_TRANSLATIONS.items()}


def keyword_translate(text: str) -> str | None:
    """Substitute known phrases from the glossary. Unknown words stay as they are."""
    if not text:
        return None
    return _KEYWORD_PATTERN.sub(lambda m: _KEYWORD_LOOKUP[m.group(0).lower()], text)


def truncate_to_sentence(text: str, max_length: int = 200) -> str:
    """Cut text at the last sentence end before max_length.

    When no sentence end falls in the second half of the window, the hard cut
    gets an ellipsis instead.
    """
    text = text.strip()
    if len(text) <= max_length:
        return text

    cut = text[:max_length]
    last_end = max(cut.rfind(ch) for ch in SENTENCE_ENDS)
    if last_end > max_length / 2:
        return cut[: last_end + 1]
    return cut + "..."


class FallbackChain:
    """Try strategies in order; the first non-empty result wins.

    A strategy that raises is logged and skipped.
    """

    def __init__(self, name: str, strategies: list[Strategy]) -> None:
        self.name = name
        self.strategies = strategies

    async def run(self, *args) -> str | None:
        for strategy in self.strategies:
            label = getattr(strategy, "__name__", repr(strategy))
            try:
                result = strategy(*args)
                if inspect.isawaitable(result):
                    result = await result
            except Exception as e:
                log.warning("enrichment_strategy_failed", chain=self.name, strategy=label, error=str(e))
                continue
            if result:
                log.debug("enrichment_strategy_used", chain=self.name, strategy=label)
                return result
        return None


def title_template(story: Story, comments: list[Comment]) -> str:  # noqa: ARG001
    return TITLE_TEMPLATE.format(title=story.title)


class Enricher:
    """Attaches translations and abstracts, never failing the caller."""

    def __init__(
        self,
        translator: Translator,
        comment_limit: int = 20,
        delay: float = 0.1,
        abstract_length: int = 200,
    ) -> None:
        self.translator = translator
        self.comment_limit = comment_limit
        self.delay = delay
        self.abstract_length = abstract_length
        self._translation = FallbackChain("translation", [self._remote_translate, keyword_translate])
        self._abstract = FallbackChain(
            "abstract",
            [self._remote_summarize, self._body_excerpt, self._comment_digest, title_template],
        )

    async def _throttle(self) -> None:
        if self.delay > 0:
            await asyncio.sleep(self.delay)

    async def _remote_translate(self, text: str) -> str | None:
        if not self.translator.available:
            return None
        try:
            return await self.translator.translate(text)
        finally:
            await self._throttle()

    async def _remote_summarize(self, story: Story, comments: list[Comment]) -> str | None:
        if not self.translator.available:
            return None
        try:
            return await self.translator.summarize(story.title, story.body_text, comments)
        finally:
            await self._throttle()

    def _body_excerpt(self, story: Story, comments: list[Comment]) -> str | None:  # noqa: ARG002
        if not story.body_text:
            return None
        return truncate_to_sentence(story.body_text, self.abstract_length)

    def _comment_digest(self, story: Story, comments: list[Comment]) -> str | None:  # noqa: ARG002
        texts = [c.body_text for c in comments[:DIGEST_COMMENTS] if c.body_text]
        if not texts:
            return None
        return DISCUSSION_PREFIX + truncate_to_sentence(" ".join(texts), self.abstract_length)

    async def translate(self, text: str | None) -> str | None:
        if not text:
            return None
        return await self._translation.run(text)

    async def enrich_story(self, story: Story) -> Story:
        """Return a copy of the story with translated title and body."""
        translated_title = await self.translate(story.title)
        translated_body = await self.translate(story.body_text) if story.body_text else None
        return story.model_copy(
            update={"translated_title": translated_title, "translated_body": translated_body}
        )

    async def enrich_comments(self, comments: list[Comment]) -> list[Comment]:
        """Translate the first comment_limit comments; the rest keep translated_body None."""
        enriched = []
        for i, comment in enumerate(comments):
            translated = await self.translate(comment.body_text) if i < self.comment_limit else None
            enriched.append(comment.model_copy(update={"translated_body": translated}))
        log.info(
            "comments_enriched",
            total=len(comments),
            translated=min(len(comments), self.comment_limit),
        )
        return enriched

    async def summarize(self, story: Story, comments: list[Comment]) -> str:
        """Abstract for a story; the title template guarantees a result."""
        abstract = await self._abstract.run(story, comments)
        return abstract or title_template(story, comments)
