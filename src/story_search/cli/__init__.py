"""
CLI module - unified command-line interface.

Provides entry points for:
- Creating the database schema
- Running ingestion
- Searching from the terminal
- Serving the HTTP API
"""

from story_search.cli.commands import (
    main,
    run_init_db_cli,
    run_ingest_cli,
    run_search_cli,
    run_serve_cli,
)

__all__ = [
    "main",
    "run_init_db_cli",
    "run_ingest_cli",
    "run_search_cli",
    "run_serve_cli",
]
