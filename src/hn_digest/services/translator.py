# ABOUTME: Translation and summarization backend using Anthropic Haiku.
# ABOUTME: Returns None when unavailable so callers can fall back to local transforms.

from typing import Protocol

import structlog
from anthropic import AsyncAnthropic

from hn_digest.config import Settings
from hn_digest.errors import EnrichmentError
from hn_digest.models import Comment

log = structlog.get_logger()

SYSTEM_PROMPT = """\
You are a professional translator and summarizer of technical discussions. \
Write concise, accurate {language}. Respond with the requested text only: \
no explanations, no quotes around the output, no Markdown or HTML formatting.
"""

TRANSLATE_PROMPT = """\
Translate the following text into {language}, keeping technical terms accurate:

{text}"""

SUMMARY_PROMPT = """\
This is a Hacker News thread. Write a {language} summary of 150-250 characters that:
1. states the core topic of the post
2. outlines the main viewpoints and points of contention among commenters
3. names any consensus, and lists the differing positions where there is none

{context}"""

MAX_INPUT_CHARS = 1500
SUMMARY_BODY_CHARS = 500
SUMMARY_COMMENT_CHARS = 300
SUMMARY_COMMENTS = 10


class Translator(Protocol):
    @property
    def available(self) -> bool: ...

    async def translate(self, text: str) -> str | None: ...

    async def summarize(self, title: str, body: str | None, comments: list[Comment]) -> str | None: ...


def _clip(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[:limit] + "..."


class AnthropicTranslator:
    """Translator backed by the Anthropic Messages API."""

    def __init__(self, settings: Settings, client: AsyncAnthropic | None = None) -> None:
        self.model = settings.translator_model
        self.language = settings.target_language
        if client is None and settings.anthropic_api_key is not None:
            client = AsyncAnthropic(api_key=settings.anthropic_api_key.get_secret_value())
        if client is None:
            log.warning("no_anthropic_api_key", fallback="local keyword translation")
        self.client = client

    @property
    def available(self) -> bool:
        return self.client is not None

    async def translate(self, text: str) -> str | None:
        if not text:
            return None
        prompt = TRANSLATE_PROMPT.format(language=self.language, text=_clip(text, MAX_INPUT_CHARS))
        return await self._complete(prompt, max_tokens=1500)

    async def summarize(
        self, title: str, body: str | None, comments: list[Comment]
    ) -> str | None:
        context = f"Title: {title}\n\n"
        if body:
            context += f"Post: {body[:SUMMARY_BODY_CHARS]}\n\n"
        if comments:
            context += "Community discussion (different users):\n"
            for i, comment in enumerate(comments[:SUMMARY_COMMENTS], start=1):
                context += f"\nUser {i}: {comment.body_text[:SUMMARY_COMMENT_CHARS]}\n"
        prompt = SUMMARY_PROMPT.format(language=self.language, context=context)
        return await self._complete(prompt, max_tokens=800)

    async def _complete(self, prompt: str, max_tokens: int) -> str | None:
        if self.client is None:
            return None
        try:
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=max_tokens,
                system=SYSTEM_PROMPT.format(language=self.language),
                messages=[{"role": "user", "content": prompt}],
            )
        except Exception as e:
            raise EnrichmentError(str(e)) from e

        text = response.content[0].text.strip() if response.content else ""
        log.debug("translator_raw_response", text=text[:200], stop_reason=response.stop_reason)
        return text or None
