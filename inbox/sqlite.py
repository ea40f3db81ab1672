"""
SQLite-backed inbox store.

Same contract as the Supabase table, for local runs and tests.

Design:
- One table: inbox
- raw_payload stored as JSON text, timestamps as ISO-8601 text
- Partial unique index on message_id for inbound rows, so a redelivered
  message cannot be inserted twice even when two deliveries race
"""

import json
import logging
import sqlite3
from datetime import datetime
from typing import Any, Dict, Optional

from inbox.base import InboxStore
from inbox.types import (
    MessageRecord,
    StoreReadResponse,
    StoreWriteResponse,
    to_iso,
)

logger = logging.getLogger(__name__)

_COLUMNS = (
    "id",
    "phone",
    "message",
    "message_id",
    "direction",
    "status",
    "raw_payload",
    "received_at",
    "sent_at",
    "created_at",
)


class SQLiteInboxStore(InboxStore):
    """SQLite implementation of InboxStore. Never raises from public methods."""

    def __init__(self, db_path: Optional[str] = None):
        """
        Args:
            db_path: Path to SQLite database file. Defaults to ":memory:",
                     which only lives as long as one connection, so tests
                     should pass a file path.
        """
        self.db_path = db_path or ":memory:"
        self._initialize_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _initialize_db(self) -> None:
        try:
            conn = self._connect()
            cursor = conn.cursor()

            if self.db_path != ":memory:":
                cursor.execute("PRAGMA journal_mode=WAL")

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS inbox (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    phone TEXT NOT NULL,
                    message TEXT NOT NULL DEFAULT '',
                    message_id TEXT,
                    direction TEXT NOT NULL CHECK (direction IN ('inbound', 'outbound')),
                    status TEXT,
                    raw_payload TEXT,
                    received_at TEXT,
                    sent_at TEXT,
                    created_at TEXT NOT NULL
                )
            """)
            cursor.execute("""
                CREATE UNIQUE INDEX IF NOT EXISTS idx_inbox_inbound_message_id
                ON inbox(message_id) WHERE direction = 'inbound'
            """)
            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_inbox_phone_received
                ON inbox(phone, received_at)
            """)

            conn.commit()
            conn.close()
            logger.debug(f"SQLite inbox initialized: {self.db_path}")
        except Exception as e:
            # Surfaces as "unavailable"/"failed" on first operation
            logger.error(f"Failed to initialize SQLite inbox: {e}")

    def find_by_message_id(self, message_id: str) -> StoreReadResponse:
        return self._read_one(
            "SELECT * FROM inbox WHERE message_id = ? LIMIT 1",
            (message_id,),
        )

    def latest_inbound(self, phone: str) -> StoreReadResponse:
        return self._read_one(
            """
            SELECT * FROM inbox
            WHERE phone = ? AND direction = 'inbound' AND received_at IS NOT NULL
            ORDER BY received_at DESC, id DESC
            LIMIT 1
            """,
            (phone,),
        )

    def insert(self, record: MessageRecord) -> StoreWriteResponse:
        try:
            row = _encode(record.to_row())
            names = [name for name in _COLUMNS if name != "id"]
            conn = self._connect()
            cursor = conn.cursor()
            cursor.execute(
                f"INSERT INTO inbox ({', '.join(names)}) "
                f"VALUES ({', '.join('?' for _ in names)})",
                tuple(row[name] for name in names),
            )
            conn.commit()
            new_id = cursor.lastrowid
            conn.close()

            stored = MessageRecord.from_row({**record.to_row(), "id": new_id})
            logger.debug(
                "Inbox insert successful",
                extra={"record_id": new_id, "direction": record.direction},
            )
            return StoreWriteResponse(status="success", record=stored)

        except sqlite3.IntegrityError as e:
            logger.info(f"Inbox insert conflict: message_id={record.message_id}")
            return StoreWriteResponse(status="conflict", error=str(e))
        except sqlite3.Error as e:
            logger.error(f"SQLite error during insert: {e}")
            return StoreWriteResponse(status="failed", error=f"Inbox unavailable: {e}")
        except (TypeError, ValueError) as e:
            logger.error(f"Inbox row not serializable: {e}")
            return StoreWriteResponse(status="failed", error=f"Row not serializable: {e}")

    def update(self, record_id: Any, changes: Dict[str, Any]) -> StoreWriteResponse:
        unknown = set(changes) - set(_COLUMNS[1:])
        if unknown:
            return StoreWriteResponse(
                status="failed",
                error=f"Unknown columns: {', '.join(sorted(unknown))}",
            )

        try:
            values = _encode(changes)
            assignments = ", ".join(f"{name} = ?" for name in values)
            conn = self._connect()
            cursor = conn.cursor()
            cursor.execute(
                f"UPDATE inbox SET {assignments} WHERE id = ?",
                (*values.values(), record_id),
            )
            conn.commit()
            updated = cursor.rowcount
            conn.close()

            if updated == 0:
                return StoreWriteResponse(status="failed", error=f"No row with id {record_id}")
            return StoreWriteResponse(status="success")

        except sqlite3.Error as e:
            logger.error(f"SQLite error during update of {record_id}: {e}")
            return StoreWriteResponse(status="failed", error=f"Inbox unavailable: {e}")
        except (TypeError, ValueError) as e:
            logger.error(f"Inbox update not serializable: {e}")
            return StoreWriteResponse(status="failed", error=f"Row not serializable: {e}")

    def _read_one(self, query: str, params: tuple) -> StoreReadResponse:
        try:
            conn = self._connect()
            cursor = conn.cursor()
            cursor.execute(query, params)
            row = cursor.fetchone()
            conn.close()
        except sqlite3.Error as e:
            logger.error(f"SQLite error during read: {e}")
            return StoreReadResponse(status="unavailable", error=f"Inbox unavailable: {e}")

        if row is None:
            return StoreReadResponse(status="not_found")

        data = dict(row)
        try:
            if data.get("raw_payload") is not None:
                data["raw_payload"] = json.loads(data["raw_payload"])
            return StoreReadResponse(status="success", record=MessageRecord.from_row(data))
        except (json.JSONDecodeError, ValueError) as e:
            logger.error(f"Corrupted inbox row {data.get('id')}: {e}")
            return StoreReadResponse(status="unavailable", error=f"Corrupted inbox row: {e}")


def _encode(values: Dict[str, Any]) -> Dict[str, Any]:
    """Turn column values into SQLite parameters."""
    encoded = {}
    for name, value in values.items():
        if isinstance(value, datetime):
            value = to_iso(value)
        elif name == "raw_payload" and value is not None:
            value = json.dumps(value)
        encoded[name] = value
    return encoded
