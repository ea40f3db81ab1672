"""
Supabase-backed inbox store.

Talks to the `inbox` table through the PostgREST client bundled with
supabase-py. Expected table (SQL editor):

    create table inbox (
        id bigint generated always as identity primary key,
        phone text not null,
        message text not null default '',
        message_id text,
        direction text not null check (direction in ('inbound', 'outbound')),
        status text,
        raw_payload jsonb,
        received_at timestamptz,
        sent_at timestamptz,
        created_at timestamptz not null default now()
    );
    create unique index inbox_inbound_message_id
        on inbox (message_id) where direction = 'inbound';
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from postgrest.exceptions import APIError
from supabase import Client, create_client

from inbox.base import InboxStore
from inbox.types import (
    MessageRecord,
    StoreReadResponse,
    StoreWriteResponse,
    to_iso,
)

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"


class SupabaseInboxStore(InboxStore):
    """Supabase implementation of InboxStore. Never raises from public methods."""

    def __init__(
        self,
        url: Optional[str] = None,
        key: Optional[str] = None,
        table: str = "inbox",
        client: Optional[Client] = None,
    ):
        """
        Args:
            url:    Supabase project URL
            key:    Service-role (or anon) key
            table:  Inbox table name
            client: Pre-built client; skips create_client when given
        """
        self.table = table
        self.client = client or create_client(url, key)

    def find_by_message_id(self, message_id: str) -> StoreReadResponse:
        try:
            resp = (
                self.client.table(self.table)
                .select("*")
                .eq("message_id", message_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error(f"Supabase select error (idempotency): {e}")
            return StoreReadResponse(status="unavailable", error=str(e))
        return _first_row(resp.data)

    def latest_inbound(self, phone: str) -> StoreReadResponse:
        try:
            resp = (
                self.client.table(self.table)
                .select("*")
                .eq("phone", phone)
                .eq("direction", "inbound")
                .order("received_at", desc=True)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error(f"Supabase select error (latest inbound): {e}")
            return StoreReadResponse(status="unavailable", error=str(e))
        return _first_row(resp.data)

    def insert(self, record: MessageRecord) -> StoreWriteResponse:
        row = record.to_row()
        try:
            resp = self.client.table(self.table).insert(row).execute()
        except APIError as e:
            if e.code == UNIQUE_VIOLATION:
                logger.info(f"Inbox insert conflict: message_id={record.message_id}")
                return StoreWriteResponse(status="conflict", error=e.message)
            logger.error(f"Supabase insert error: {e.message}", extra={"code": e.code})
            return StoreWriteResponse(status="failed", error=e.message)
        except Exception as e:
            logger.error(f"Supabase insert failed: {e}")
            return StoreWriteResponse(status="failed", error=str(e))

        if not resp.data:
            return StoreWriteResponse(status="failed", error="Insert returned no row")
        try:
            stored = MessageRecord.from_row(resp.data[0])
        except (TypeError, ValueError) as e:
            # The row is committed; report success with what was sent
            logger.error(f"Malformed inserted row: {e}")
            stored = MessageRecord.from_row({**row, "id": resp.data[0].get("id")})
        return StoreWriteResponse(status="success", record=stored)

    def update(self, record_id: Any, changes: Dict[str, Any]) -> StoreWriteResponse:
        values = {
            name: to_iso(value) if isinstance(value, datetime) else value
            for name, value in changes.items()
        }
        try:
            self.client.table(self.table).update(values).eq("id", record_id).execute()
        except Exception as e:
            logger.error(f"Supabase update of {record_id} failed: {e}")
            return StoreWriteResponse(status="failed", error=str(e))
        return StoreWriteResponse(status="success")


def _first_row(rows) -> StoreReadResponse:
    if not rows:
        return StoreReadResponse(status="not_found")
    try:
        return StoreReadResponse(status="success", record=MessageRecord.from_row(rows[0]))
    except (TypeError, ValueError) as e:
        logger.error(f"Malformed inbox row: {e}")
        return StoreReadResponse(status="unavailable", error=f"Malformed inbox row: {e}")
