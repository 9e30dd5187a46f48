"""SQLite-backed record store mapping origin URLs to cached locations."""

import logging
import re
from pathlib import Path
from typing import Optional

import aiosqlite

from ..errors import RecordNotFound, RecordStoreError
from ..models import CacheRecord

logger = logging.getLogger(__name__)

_TABLE_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class RecordStore:
    """SQLite-backed persistent store of cache records.

    One row per origin URL. ``upsert`` is a single statement keyed by the
    primary key, so readers never observe a partially written record.
    """

    def __init__(self, db_path: Path, table_name: str = "cacher"):
        """Initialize with path to SQLite database file.

        Args:
            db_path: Path to the SQLite database file
            table_name: Name of the records table

        Raises:
            ValueError: If table_name is not a plain SQL identifier
        """
        if not _TABLE_NAME_RE.match(table_name):
            raise ValueError(f"Invalid table name: {table_name!r}")

        self.db_path = Path(db_path)
        self.table_name = table_name
        self._db: Optional[aiosqlite.Connection] = None

    async def initialize(self, read_only: bool = False) -> None:
        """Open the connection and create the table if needed.

        Args:
            read_only: Open an existing database without creating or
                altering anything
        """
        if read_only:
            try:
                self._db = await aiosqlite.connect(
                    f"{self.db_path.resolve().as_uri()}?mode=ro", uri=True
                )
            except aiosqlite.Error as e:
                raise RecordStoreError(f"Failed to open {self.db_path}: {e}") from e
            logger.info(f"RecordStore opened read-only at {self.db_path}")
            return

        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._db = await aiosqlite.connect(self.db_path)
        await self._db.execute("PRAGMA journal_mode=WAL")
        await self._db.execute(
            f"""
            CREATE TABLE IF NOT EXISTS {self.table_name} (
                original_url    TEXT PRIMARY KEY,
                cached_url      TEXT NOT NULL DEFAULT '',
                err             TEXT NOT NULL DEFAULT '',
                time_at         INTEGER NOT NULL DEFAULT 0
            )
            """
        )
        await self._db.commit()
        logger.info(f"RecordStore initialized with database at {self.db_path}")

    def _connection(self) -> aiosqlite.Connection:
        if not self._db:
            raise RecordStoreError("RecordStore not initialized")
        return self._db

    async def get(self, origin: str) -> CacheRecord:
        """Look up the record for an origin.

        Args:
            origin: Normalized origin URL

        Returns:
            The stored record

        Raises:
            RecordNotFound: If no record exists for origin
            RecordStoreError: If the database cannot be queried
        """
        db = self._connection()
        try:
            async with db.execute(
                f"SELECT original_url, cached_url, err, time_at "
                f"FROM {self.table_name} WHERE original_url = ?",
                (origin,),
            ) as cursor:
                row = await cursor.fetchone()
        except aiosqlite.Error as e:
            raise RecordStoreError(f"Failed to read record for {origin}: {e}") from e

        if row is None:
            raise RecordNotFound(origin)

        original_url, cached_url, err, time_at = row
        return CacheRecord(
            original_url=original_url,
            cached_url=cached_url,
            err=err,
            time_at=time_at,
        )

    async def upsert(self, record: CacheRecord) -> None:
        """Insert a record, replacing any existing record for its origin.

        Args:
            record: Record to write

        Raises:
            RecordStoreError: If the write fails
        """
        db = self._connection()
        try:
            await db.execute(
                f"""
                INSERT INTO {self.table_name} (original_url, cached_url, err, time_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(original_url) DO UPDATE SET
                    cached_url = excluded.cached_url,
                    err = excluded.err,
                    time_at = excluded.time_at
                """,
                (record.original_url, record.cached_url, record.err, record.time_at),
            )
            await db.commit()
        except aiosqlite.Error as e:
            raise RecordStoreError(
                f"Failed to write record for {record.original_url}: {e}"
            ) from e
        logger.debug(f"Upserted record for {record.original_url}")

    async def count(self, origin: Optional[str] = None) -> int:
        """Count stored records.

        Args:
            origin: Only count records for this origin

        Returns:
            Number of matching rows
        """
        db = self._connection()
        query = f"SELECT COUNT(*) FROM {self.table_name}"
        values: tuple = ()
        if origin is not None:
            query += " WHERE original_url = ?"
            values = (origin,)

        try:
            async with db.execute(query, values) as cursor:
                row = await cursor.fetchone()
        except aiosqlite.Error as e:
            raise RecordStoreError(f"Failed to count records: {e}") from e
        return row[0]

    async def close(self) -> None:
        """Close the database connection."""
        if self._db:
            await self._db.close()
            self._db = None
            logger.info("RecordStore database connection closed")
