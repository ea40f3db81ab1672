"""
Inbox module exports.

Clean interface for the relay to import store components.
"""

from inbox.base import InboxStore
from inbox.sqlite import SQLiteInboxStore
from inbox.types import (
    Direction,
    MessageRecord,
    StoreReadResponse,
    StoreReadStatus,
    StoreWriteResponse,
    StoreWriteStatus,
)

__all__ = [
    "InboxStore",
    "SQLiteInboxStore",
    "MessageRecord",
    "Direction",
    "StoreReadResponse",
    "StoreReadStatus",
    "StoreWriteResponse",
    "StoreWriteStatus",
]
