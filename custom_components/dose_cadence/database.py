"""SQLite log of recorded administrations for Dose Cadence."""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timezone, tzinfo
from pathlib import Path
from typing import Any

import aiosqlite

from dosecadence import AdministrationEvent

from .const import EVENT_RETENTION_DAYS

_LOGGER = logging.getLogger(__name__)

SCHEMA_VERSION = 1

ROW_COLUMNS = "id, config_entry_id, timestamp, site, notes"

CREATE_TABLES = """
CREATE TABLE IF NOT EXISTS administrations (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    config_entry_id TEXT NOT NULL,
    timestamp REAL NOT NULL,
    site TEXT,
    notes TEXT,
    created_at REAL NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_administrations_entry_ts
    ON administrations(config_entry_id, timestamp);
"""


def row_to_event(row: dict[str, Any], tz: tzinfo = timezone.utc) -> AdministrationEvent:
    """Convert a stored row into an engine event in the given time zone."""
    return AdministrationEvent(
        protocol_id=row["config_entry_id"],
        occurred_at=datetime.fromtimestamp(row["timestamp"], tz=tz),
        site=row.get("site"),
    )


class DoseCadenceDatabase:
    """Administration log shared by every Dose Cadence entry."""

    def __init__(self, db_path: str | Path) -> None:
        self._path = Path(db_path)
        self._db: aiosqlite.Connection | None = None
        # Serializes writers on the single connection
        self._write_lock = asyncio.Lock()

    async def async_setup(self) -> None:
        """Connect and bring the schema up to date."""
        db = await aiosqlite.connect(self._path)
        db.row_factory = aiosqlite.Row
        for pragma in ("journal_mode = WAL", "busy_timeout = 5000"):
            await db.execute(f"PRAGMA {pragma}")

        cursor = await db.execute("PRAGMA user_version")
        (version,) = await cursor.fetchone()
        if version < SCHEMA_VERSION:
            await db.executescript(CREATE_TABLES)
            await db.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")
            _LOGGER.info(
                "Created administration log schema v%d in %s", SCHEMA_VERSION, self._path
            )
        await db.commit()
        self._db = db

    async def async_close(self) -> None:
        """Close the connection, if open."""
        if self._db is None:
            return
        await self._db.close()
        self._db = None

    def _connection(self) -> aiosqlite.Connection:
        if self._db is None:
            raise RuntimeError("Dose Cadence database is not initialized")
        return self._db

    # ── Administrations ──────────────────────────────────────────────────────

    async def add_administration(
        self,
        config_entry_id: str,
        timestamp: float | None = None,
        site: str | None = None,
        notes: str | None = None,
    ) -> int:
        """Record an administration. Returns the new row ID."""
        db = self._connection()
        now = time.time()
        ts = timestamp if timestamp is not None else now
        async with self._write_lock:
            cursor = await db.execute(
                "INSERT INTO administrations "
                "(config_entry_id, timestamp, site, notes, created_at) "
                "VALUES (?, ?, ?, ?, ?)",
                (config_entry_id, ts, site, notes, now),
            )
            await db.commit()
        return cursor.lastrowid  # type: ignore[return-value]

    async def get_administrations(self, config_entry_id: str) -> list[dict[str, Any]]:
        """Return every retained administration for an entry, oldest first."""
        db = self._connection()
        async with db.execute(
            f"SELECT {ROW_COLUMNS} FROM administrations "
            "WHERE config_entry_id = ? ORDER BY timestamp, id",
            (config_entry_id,),
        ) as cursor:
            return [dict(row) for row in await cursor.fetchall()]

    async def get_last_site(self, config_entry_id: str) -> str | None:
        """Return the site of the most recent administration with a site."""
        db = self._connection()
        cursor = await db.execute(
            "SELECT site FROM administrations "
            "WHERE config_entry_id = ? AND site IS NOT NULL "
            "ORDER BY timestamp DESC LIMIT 1",
            (config_entry_id,),
        )
        row = await cursor.fetchone()
        return row["site"] if row else None

    async def delete_administration(
        self, config_entry_id: str, administration_id: int
    ) -> bool:
        """Delete an administration by ID. Returns True if a row was deleted."""
        db = self._connection()
        async with self._write_lock:
            cursor = await db.execute(
                "DELETE FROM administrations WHERE id = ? AND config_entry_id = ?",
                (administration_id, config_entry_id),
            )
            await db.commit()
        return cursor.rowcount > 0

    async def clear_entry(self, config_entry_id: str) -> None:
        """Delete every administration recorded for an entry."""
        db = self._connection()
        async with self._write_lock:
            await db.execute(
                "DELETE FROM administrations WHERE config_entry_id = ?",
                (config_entry_id,),
            )
            await db.commit()
        _LOGGER.info("Cleared administrations for %s", config_entry_id)

    async def prune_old_administrations(
        self, config_entry_id: str, retention_days: float = EVENT_RETENTION_DAYS
    ) -> int:
        """Remove administrations older than the retention period.

        Returns the number of rows deleted.
        """
        db = self._connection()
        cutoff_ts = time.time() - retention_days * 86400.0
        async with self._write_lock:
            cursor = await db.execute(
                "DELETE FROM administrations "
                "WHERE config_entry_id = ? AND timestamp < ?",
                (config_entry_id, cutoff_ts),
            )
            if cursor.rowcount > 0:
                await db.commit()
                _LOGGER.debug(
                    "Pruned %d old administrations for %s",
                    cursor.rowcount,
                    config_entry_id,
                )
        return cursor.rowcount
