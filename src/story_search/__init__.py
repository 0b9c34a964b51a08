"""Hybrid lexical + semantic search over short stories, with content-addressed ingestion."""

__version__ = "0.1.0"
