"""Tests for the cacher CLI."""

import asyncio
import sqlite3
from pathlib import Path
from unittest.mock import patch

from typer.testing import CliRunner

from cacher import __version__
from cacher.cli import app
from cacher.config import settings
from cacher.models import CacheRecord
from cacher.storage.records import RecordStore

runner = CliRunner()


def seed_record(db_path: Path, record: CacheRecord) -> None:
    """Write a record into a fresh database."""

    async def _seed():
        store = RecordStore(db_path)
        await store.initialize()
        await store.upsert(record)
        await store.close()

    asyncio.run(_seed())


class TestVersion:
    """Tests for --version."""

    def test_version_flag(self):
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.stdout


class TestLookupCommand:
    """Tests for the lookup command."""

    def test_lookup_existing_record(self, tmp_path):
        """Stored records are printed."""
        db_path = tmp_path / "records.db"
        seed_record(
            db_path,
            CacheRecord(
                original_url="http://example.com/a.jpg",
                cached_url="https://cdn.example.com/a",
                time_at=1700000000,
            ),
        )

        result = runner.invoke(
            app, ["lookup", "http://EXAMPLE.com/a.jpg", "--db-path", str(db_path)]
        )

        assert result.exit_code == 0
        assert "https://cdn.example.com/a" in result.stdout
        assert "1700000000" in result.stdout

    def test_lookup_missing_record(self, tmp_path):
        """A miss exits with status 1."""
        db_path = tmp_path / "records.db"
        seed_record(
            db_path,
            CacheRecord(original_url="http://example.com/a.jpg", cached_url="https://cdn/a"),
        )

        result = runner.invoke(
            app, ["lookup", "http://example.com/other.jpg", "--db-path", str(db_path)]
        )

        assert result.exit_code == 1
        assert "No record" in result.stdout

    def test_lookup_invalid_url(self, tmp_path):
        result = runner.invoke(
            app, ["lookup", "::not a url::", "--db-path", str(tmp_path / "records.db")]
        )

        assert result.exit_code == 1
        assert "Invalid URL" in result.stdout

    def test_lookup_missing_database(self, tmp_path):
        """A missing database is reported rather than created."""
        db_path = tmp_path / "absent.db"

        result = runner.invoke(
            app, ["lookup", "http://example.com/a.jpg", "--db-path", str(db_path)]
        )

        assert result.exit_code == 1
        assert "Database not found" in result.stdout
        assert not db_path.exists()

    def test_lookup_leaves_foreign_database_untouched(self, tmp_path):
        """Lookup on a database without the records table changes nothing."""
        db_path = tmp_path / "other.db"
        conn = sqlite3.connect(db_path)
        conn.execute("PRAGMA user_version = 7")
        conn.close()

        result = runner.invoke(
            app, ["lookup", "http://example.com/a.jpg", "--db-path", str(db_path)]
        )

        assert result.exit_code == 1
        assert "Error reading database" in result.stdout

        conn = sqlite3.connect(db_path)
        try:
            tables = conn.execute("SELECT name FROM sqlite_master").fetchall()
            journal_mode = conn.execute("PRAGMA journal_mode").fetchone()[0]
        finally:
            conn.close()
        assert tables == []
        assert journal_mode != "wal"


class TestServeCommand:
    """Tests for the serve command."""

    def test_serve_applies_options(self, tmp_path, monkeypatch):
        """Command-line options override settings before the server starts."""
        for field in ("PORT", "HOST", "DB_PATH", "S3_BUCKET", "LOG_LEVEL"):
            monkeypatch.setattr(settings, field, getattr(settings, field))

        with patch("cacher.main.main") as mock_run:
            result = runner.invoke(
                app,
                [
                    "serve",
                    "--port",
                    "9555",
                    "--db-path",
                    str(tmp_path / "records.db"),
                    "--bucket",
                    "other-bucket",
                ],
            )

        assert result.exit_code == 0
        mock_run.assert_called_once_with()
        assert settings.PORT == 9555
        assert settings.DB_PATH == tmp_path / "records.db"
        assert settings.S3_BUCKET == "other-bucket"
