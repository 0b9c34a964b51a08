"""Summaries module - story summarization via chat models."""

from story_search.core.protocols import Summarizer
from story_search.summaries.summarizer import (
    DEFAULT_CHAT_MODEL,
    SUMMARY_PROMPT,
    ChatSummarizer,
    MockSummarizer,
    get_summarizer,
)

__all__ = [
    "Summarizer",
    "ChatSummarizer",
    "MockSummarizer",
    "get_summarizer",
    "DEFAULT_CHAT_MODEL",
    "SUMMARY_PROMPT",
]
