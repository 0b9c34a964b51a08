"""
Unit Tests for CLI Commands

Tests the CLI entry points without Postgres or a model server.
Runs commands against the in-memory store and mock providers.

STAFF ENGINEER PATTERNS:
------------------------
1. Configure through environment variables, exactly as in production
2. Test CLI argument parsing
3. Verify exit codes
4. Test error handling
"""

import json
import sys

import pytest
from unittest.mock import patch, AsyncMock

from story_search.config import reset_settings
from story_search.core.errors import StoreError


@pytest.fixture
def offline_env(monkeypatch, tmp_path):
    """In-memory store, mock providers, a one-story directory."""
    (tmp_path / "The_Orchard.txt").write_text(
        "The Orchard\nCleo Park\n2004\nFiction\n\nApples ripened late. Nobody picked them.",
        encoding="utf-8",
    )
    (tmp_path / "metadata.json").write_text(
        json.dumps([{"title": "The Orchard", "author": "Cleo Park", "genre": "Fiction", "published_year": 2004}]),
        encoding="utf-8",
    )
    monkeypatch.setenv("USE_POSTGRES", "false")
    monkeypatch.setenv("USE_MOCK_PROVIDERS", "true")
    monkeypatch.setenv("TRACING_ENABLED", "false")
    monkeypatch.setenv("STORIES_PATH", str(tmp_path))
    reset_settings()
    yield tmp_path
    reset_settings()


# ---------------------------------------------------------------------------
# LOAD_ENV TESTS
# ---------------------------------------------------------------------------


class TestLoadEnv:
    """Test environment loading."""

    def test_load_env_does_not_raise(self):
        """Should not raise when no .env file exists."""
        from story_search.cli.commands import _load_env
        _load_env()


# ---------------------------------------------------------------------------
# MAIN CLI DISPATCH TESTS
# ---------------------------------------------------------------------------


class TestMainCliDispatch:
    """Test main CLI dispatches to correct handlers."""

    @pytest.mark.parametrize(
        "command,handler",
        [
            ("init-db", "run_init_db_cli"),
            ("ingest", "run_ingest_cli"),
            ("search", "run_search_cli"),
            ("serve", "run_serve_cli"),
        ],
    )
    def test_main_dispatches(self, command, handler):
        from story_search.cli import commands

        with patch.object(commands, handler) as mock_handler:
            mock_handler.return_value = 0
            with patch("sys.argv", ["story-search", command]):
                result = commands.main()

            mock_handler.assert_called_once()
            assert result == 0

    def test_main_reinjects_subcommand_args(self):
        """Arguments after the command reach the subcommand parser."""
        from story_search.cli import commands

        seen = {}

        def fake_search():
            seen["argv"] = list(sys.argv)
            return 0

        with patch.object(commands, "run_search_cli", side_effect=fake_search):
            with patch("sys.argv", ["story-search", "search", "storm", "--limit", "3"]):
                commands.main()

        assert seen["argv"][1:] == ["storm", "--limit", "3"]

    def test_main_handles_keyboard_interrupt(self):
        """Main should return 130 on KeyboardInterrupt."""
        from story_search.cli import commands

        with patch.object(commands, "run_ingest_cli") as mock_ingest:
            mock_ingest.side_effect = KeyboardInterrupt()
            with patch("sys.argv", ["story-search", "ingest"]):
                result = commands.main()

        assert result == 130

    def test_unknown_command_exits(self):
        from story_search.cli import commands

        with patch("sys.argv", ["story-search", "reindex"]):
            with pytest.raises(SystemExit):
                commands.main()


# ---------------------------------------------------------------------------
# SUBCOMMANDS
# ---------------------------------------------------------------------------


class TestIngestCli:
    """Test the ingest command end to end with offline components."""

    def test_ingest_prints_report(self, offline_env, capsys):
        from story_search.cli.commands import run_ingest_cli

        with patch("sys.argv", ["ingest"]):
            result = run_ingest_cli()

        out = capsys.readouterr().out
        assert result == 0
        assert "[INSERT]  The Orchard" in out
        assert "inserted 1" in out

    def test_missing_manifest_fails(self, offline_env, capsys):
        from story_search.cli.commands import run_ingest_cli

        (offline_env / "metadata.json").unlink()
        with patch("sys.argv", ["ingest"]):
            result = run_ingest_cli()

        assert result == 1
        assert "Ingestion failed" in capsys.readouterr().err


class TestSearchCli:
    """Test the search command."""

    def test_empty_store_prints_no_results(self, offline_env, capsys):
        from story_search.cli.commands import run_search_cli

        with patch("sys.argv", ["search", "apples", "--mode", "lexical"]):
            result = run_search_cli()

        assert result == 0
        assert "No results." in capsys.readouterr().out

    def test_invalid_mode_exits(self, offline_env):
        from story_search.cli.commands import run_search_cli

        with patch("sys.argv", ["search", "apples", "--mode", "fuzzy"]):
            with pytest.raises(SystemExit):
                run_search_cli()

    def test_store_failure_returns_error(self, offline_env, capsys):
        from story_search.cli.commands import run_search_cli
        from story_search.retrieval import InMemoryDocumentStore

        broken = InMemoryDocumentStore()
        broken.lexical_search = AsyncMock(side_effect=StoreError("connection refused"))

        with patch("story_search.wiring.get_document_store", return_value=broken):
            with patch("sys.argv", ["search", "apples", "--mode", "lexical"]):
                result = run_search_cli()

        assert result == 1
        assert "connection refused" in capsys.readouterr().err


class TestInitDbCli:
    """Test the init-db command."""

    def test_creates_schema(self, offline_env, capsys):
        from story_search.cli.commands import run_init_db_cli
        from story_search.retrieval import InMemoryDocumentStore

        store = InMemoryDocumentStore()
        store.create_schema = AsyncMock()

        with patch("story_search.wiring.get_document_store", return_value=store):
            with patch("sys.argv", ["init-db"]):
                result = run_init_db_cli()

        assert result == 0
        store.create_schema.assert_awaited_once()
        assert "Schema ready." in capsys.readouterr().out

    def test_schema_failure(self, offline_env):
        from story_search.cli.commands import run_init_db_cli
        from story_search.retrieval import InMemoryDocumentStore

        store = InMemoryDocumentStore()
        store.create_schema = AsyncMock(side_effect=StoreError("permission denied"))

        with patch("story_search.wiring.get_document_store", return_value=store):
            with patch("sys.argv", ["init-db"]):
                assert run_init_db_cli() == 1
