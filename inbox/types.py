"""
Inbox boundary layer types and contracts.

One MessageRecord per row of the inbox log. Store operations report their
outcome through response objects instead of raising.
"""

import re
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Literal, Optional

Direction = Literal["inbound", "outbound"]
StoreReadStatus = Literal["success", "not_found", "unavailable"]
StoreWriteStatus = Literal["success", "conflict", "failed"]

TIMESTAMP_FIELDS = ("received_at", "sent_at", "created_at")

# Fractional seconds before an optional UTC offset. PostgREST trims trailing
# zeros, and fromisoformat on 3.10 only takes 3 or 6 digits.
_FRACTION = re.compile(r"\.(\d+)(?=([+-]\d{2}:?\d{2})?$)")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    # UTC everywhere so text ordering matches time ordering
    return value.astimezone(timezone.utc).isoformat()


def from_iso(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 column value. Naive values are taken as UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value)
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        text = _FRACTION.sub(lambda m: "." + m.group(1).ljust(6, "0")[:6], text)
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass
class MessageRecord:
    """A row of the inbox log (inbound or outbound)."""

    phone: str
    message: str
    direction: Direction
    message_id: Optional[str] = None
    status: Optional[str] = None           # outbound only: pending -> sent | failed | provider value
    raw_payload: Optional[Dict[str, Any]] = None
    received_at: Optional[datetime] = None  # inbound
    sent_at: Optional[datetime] = None      # outbound, set once the send attempt ends
    created_at: datetime = field(default_factory=utcnow)
    id: Optional[Any] = None                # assigned by the store

    def to_row(self) -> Dict[str, Any]:
        """Column dict with ISO-8601 timestamps. `id` is left to the store."""
        row = asdict(self)
        row.pop("id")
        for name in TIMESTAMP_FIELDS:
            row[name] = to_iso(row[name])
        return row

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "MessageRecord":
        return cls(
            id=row.get("id"),
            phone=row.get("phone") or "",
            message=row.get("message") or "",
            direction=row.get("direction"),
            message_id=row.get("message_id"),
            status=row.get("status"),
            raw_payload=row.get("raw_payload"),
            received_at=from_iso(row.get("received_at")),
            sent_at=from_iso(row.get("sent_at")),
            created_at=from_iso(row.get("created_at")) or utcnow(),
        )


@dataclass
class StoreReadResponse:
    """Response from an inbox query."""

    status: StoreReadStatus
    record: Optional[MessageRecord] = None
    error: Optional[str] = None


@dataclass
class StoreWriteResponse:
    """Response from an inbox insert or update."""

    status: StoreWriteStatus
    record: Optional[MessageRecord] = None  # stored row (insert only)
    error: Optional[str] = None
