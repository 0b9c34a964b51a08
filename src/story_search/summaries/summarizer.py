"""
Summaries Module - turn a story into a one or two sentence summary.

The chat endpoint is consumed as a stream and collapsed into the final
string; callers never see partial tokens.
"""

from __future__ import annotations

import logging

import httpx
import openai
from openai import AsyncOpenAI

from story_search.core.errors import SummarizationError
from story_search.core.protocols import Summarizer

logger = logging.getLogger(__name__)

DEFAULT_CHAT_MODEL = "gemma3:1b"

SUMMARY_PROMPT = "Summarize the following story in exactly one or two sentences: {content}"


class ChatSummarizer:
    """Summarizer backed by an OpenAI-compatible chat completions endpoint."""

    def __init__(
        self,
        model: str = DEFAULT_CHAT_MODEL,
        base_url: str | None = "http://localhost:11434/v1",
        api_key: str | None = "ollama",
        client: AsyncOpenAI | None = None,
    ):
        self.model = model
        self._client = client or AsyncOpenAI(base_url=base_url, api_key=api_key)

    async def summarize(self, text: str, *, model: str | None = None) -> str:
        model = model or self.model
        try:
            stream = await self._client.chat.completions.create(
                model=model,
                messages=[{"role": "user", "content": SUMMARY_PROMPT.format(content=text)}],
                stream=True,
            )
            parts = []
            async for chunk in stream:
                if chunk.choices and chunk.choices[0].delta.content:
                    parts.append(chunk.choices[0].delta.content)
        except openai.NotFoundError as e:
            raise SummarizationError(
                f"Chat model '{model}' is not loaded on the provider", model=model
            ) from e
        except openai.OpenAIError as e:
            raise SummarizationError(f"Summarization request failed: {e}", model=model) from e
        except httpx.HTTPError as e:
            raise SummarizationError(f"Summarization stream failed: {e}", model=model) from e

        summary = "".join(parts).strip()
        if not summary:
            raise SummarizationError("Provider returned an empty summary", model=model)
        return summary


class MockSummarizer:
    """
    Deterministic summarizer for tests and offline runs.

    Returns the first sentence of the text, capped at max_chars.
    """

    def __init__(self, max_chars: int = 200):
        self._max_chars = max_chars

    async def summarize(self, text: str, *, model: str | None = None) -> str:
        first = text.strip().split(". ")[0].strip()
        return first[: self._max_chars] or "(empty story)"


def get_summarizer(
    use_mock: bool = False,
    model: str = DEFAULT_CHAT_MODEL,
    base_url: str | None = None,
    api_key: str | None = None,
) -> Summarizer:
    """Factory function to get the appropriate summarizer."""
    if use_mock:
        logger.debug("Using mock summarizer")
        return MockSummarizer()
    return ChatSummarizer(
        model=model,
        base_url=base_url or "http://localhost:11434/v1",
        api_key=api_key or "ollama",
    )
