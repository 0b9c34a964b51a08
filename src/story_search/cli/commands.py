"""
CLI commands - entry points for schema setup, ingestion, search and serving.

Each command follows a consistent pattern:
1. Parse arguments
2. Load environment
3. Run the operation
4. Print results
5. Return exit code
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from dotenv import load_dotenv

from story_search.config import get_settings
from story_search.core.errors import ManifestError, ProviderError, StoreError


def _load_env() -> None:
    """Load environment variables from .env file."""
    load_dotenv()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def run_init_db_cli() -> int:
    """CLI entry point for creating the stories table and indexes."""
    from story_search.wiring import build_store

    parser = argparse.ArgumentParser(description="Create the stories schema")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()
    _configure_logging(args.verbose)

    async def _run() -> None:
        store = build_store(get_settings())
        try:
            await store.create_schema()
        finally:
            await store.close()

    try:
        asyncio.run(_run())
    except StoreError as e:
        print(f"Schema creation failed: {e}", file=sys.stderr)
        return 1
    print("Schema ready.")
    return 0


def run_ingest_cli() -> int:
    """
    CLI entry point for ingestion.

    Only one ingestion may run against a database at a time.
    """
    from story_search.observability import init_tracing, shutdown_tracing
    from story_search.wiring import build_ingestion_pipeline, build_store

    parser = argparse.ArgumentParser(description="Ingest stories from STORIES_PATH")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()
    _configure_logging(args.verbose)

    settings = get_settings()
    init_tracing(settings)

    async def _run():
        store = build_store(settings)
        try:
            return await build_ingestion_pipeline(settings, store).run()
        finally:
            await store.close()

    print("=" * 60)
    print(f"INGESTING STORIES FROM {settings.stories_path}")
    print("=" * 60)

    try:
        report = asyncio.run(_run())
    except (ManifestError, StoreError) as e:
        print(f"\nIngestion failed: {e}", file=sys.stderr)
        return 1
    finally:
        shutdown_tracing()

    for title in report.inserted:
        print(f"  [INSERT]  {title}")
    for title in report.replaced:
        print(f"  [REPLACE] {title}")
    for title in report.skipped:
        print(f"  [SKIP]    {title}")
    for failure in report.failed:
        print(f"  [FAIL]    {failure.title}: {failure.reason}")

    print(f"\n{report.summary()}")
    return 0


def run_search_cli() -> int:
    """CLI entry point for a single search."""
    from story_search.retrieval import DEFAULT_LIMIT, SearchMode, SearchRequest
    from story_search.wiring import build_search_service, build_store

    parser = argparse.ArgumentParser(description="Search stories")
    parser.add_argument("query", help="Free-text query")
    parser.add_argument(
        "--mode",
        choices=[m.value for m in SearchMode],
        default=SearchMode.HYBRID.value,
        help="Retrieval mode (default: hybrid)",
    )
    parser.add_argument("--limit", type=int, default=DEFAULT_LIMIT, help="Maximum results")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()
    _configure_logging(args.verbose)

    settings = get_settings()
    request = SearchRequest(query=args.query, mode=SearchMode(args.mode), limit=args.limit)

    async def _run():
        store = build_store(settings)
        try:
            return await build_search_service(settings, store).search(request)
        finally:
            await store.close()

    try:
        hits = asyncio.run(_run())
    except (ProviderError, StoreError, TimeoutError) as e:
        print(f"Search failed: {e}", file=sys.stderr)
        return 1

    if not hits:
        print("No results.")
    for position, hit in enumerate(hits, start=1):
        doc = hit.document
        print(f"{position:>2}. [{hit.score:.4f}] {doc.title} ({doc.author}, {doc.published_year})")
        if doc.summary:
            print(f"      {doc.summary}")
    return 0


def run_serve_cli() -> int:
    """CLI entry point for the HTTP API."""
    import uvicorn

    from story_search.api import create_app

    parser = argparse.ArgumentParser(description="Serve the search API")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()
    _configure_logging(args.verbose)

    uvicorn.run(create_app(get_settings()), host=args.host, port=args.port)
    return 0


def main() -> int:
    """
    Main CLI entry point with subcommands.

    Usage:
        story-search init-db              # Create table and indexes
        story-search ingest               # Sync store with STORIES_PATH
        story-search search "lighthouse"  # Hybrid search
        story-search serve                # Run the HTTP API
    """
    _load_env()

    parser = argparse.ArgumentParser(
        description="Hybrid lexical + semantic story search",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  init-db     Create the stories table, HNSW and GIN indexes
  ingest      Insert new and replace changed stories (single writer only)
  search      Run one query (--mode lexical|semantic|hybrid, --limit N)
  serve       Run the HTTP API

Examples:
  story-search search "storm at sea" --mode semantic --limit 3
  story-search serve --port 8080
        """,
    )

    parser.add_argument(
        "command",
        choices=["init-db", "ingest", "search", "serve"],
        help="Command to run",
    )

    # Parse just the command first
    args, remaining = parser.parse_known_args()

    commands = {
        "init-db": run_init_db_cli,
        "ingest": run_ingest_cli,
        "search": run_search_cli,
        "serve": run_serve_cli,
    }

    # Re-inject remaining args for the subcommand
    sys.argv = [sys.argv[0]] + remaining

    try:
        return commands[args.command]()
    except KeyboardInterrupt:
        print("\nInterrupted")
        return 130


if __name__ == "__main__":
    sys.exit(main())
