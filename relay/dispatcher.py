"""
Reply dispatch with an outbound audit row.

Flow:
    insert outbound (pending) -> send via AiSensy -> update row to a
    terminal status (provider status | sent | failed)

Store failures here are logged and never raised: once dispatch is reached
the webhook is acknowledged, since a redelivery would send the reply twice.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from fastapi.concurrency import run_in_threadpool
from pydantic import ValidationError

from inbox import InboxStore, MessageRecord
from transport.aisensy.schemas import AiSensySendResponse
from transport.aisensy.sender import AiSensySender, AiSensySenderError

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class DispatchOutcome:
    """What happened to one reply."""

    status: str                                # terminal status written to the row
    templated: bool
    record_id: Optional[Any] = None            # outbound row id, if one was stored
    provider_message_id: Optional[str] = None
    error: Optional[str] = None


class Dispatcher:
    def __init__(
        self,
        store: InboxStore,
        sender: AiSensySender,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.store = store
        self.sender = sender
        self.clock = clock

    async def dispatch(self, phone: str, reply_text: str, within_window: bool) -> DispatchOutcome:
        templated = not within_window
        outbound_id = await self._insert_pending(phone, reply_text)

        try:
            result = await self.sender.send(phone, reply_text, templated=templated)
        except Exception as e:
            # AiSensySenderError, or anything unexpected from the client
            logger.error(
                f"AiSensy send error: {e}",
                exc_info=not isinstance(e, AiSensySenderError),
                extra={"phone": phone, "record_id": outbound_id},
            )
            changes = {
                "status": "failed",
                "sent_at": self.clock(),
                "raw_payload": {"error": str(e)},
            }
            record_id = await self._finalize(outbound_id, phone, reply_text, changes)
            return DispatchOutcome(
                status="failed",
                templated=templated,
                record_id=record_id,
                error=str(e),
            )

        try:
            parsed = AiSensySendResponse.model_validate(result)
        except ValidationError:
            logger.warning("Unexpected AiSensy response shape", extra={"phone": phone})
            parsed = AiSensySendResponse()
        provider_message_id = _provider_message_id(parsed)
        changes = {
            "status": str(parsed.status) if parsed.status else "sent",
            "sent_at": self.clock(),
            "raw_payload": result,
            "message_id": provider_message_id,
        }
        record_id = await self._finalize(outbound_id, phone, reply_text, changes)
        return DispatchOutcome(
            status=changes["status"],
            templated=templated,
            record_id=record_id,
            provider_message_id=provider_message_id,
        )

    async def _insert_pending(self, phone: str, reply_text: str) -> Optional[Any]:
        pending = MessageRecord(
            phone=phone,
            message=reply_text,
            direction="outbound",
            status="pending",
            created_at=self.clock(),
        )
        result = await run_in_threadpool(self.store.insert, pending)
        if result.status != "success" or result.record is None or result.record.id is None:
            # Still send; the outcome is logged as a standalone row afterwards
            logger.error(
                f"Failed to insert outbound row: {result.error}",
                extra={"phone": phone},
            )
            return None
        return result.record.id

    async def _finalize(
        self,
        outbound_id: Optional[Any],
        phone: str,
        reply_text: str,
        changes: Dict[str, Any],
    ) -> Optional[Any]:
        """Move the outbound row to its terminal state. Returns the row id."""
        if outbound_id is not None:
            result = await run_in_threadpool(self.store.update, outbound_id, changes)
            if result.status != "success":
                logger.error(
                    f"Failed to update outbound row: {result.error}",
                    extra={"record_id": outbound_id, "status": changes["status"]},
                )
            return outbound_id

        log_row = MessageRecord(
            phone=phone,
            message=reply_text,
            direction="outbound",
            status=changes["status"],
            raw_payload=changes["raw_payload"],
            sent_at=changes["sent_at"],
            message_id=changes.get("message_id"),
            created_at=self.clock(),
        )
        result = await run_in_threadpool(self.store.insert, log_row)
        if result.status != "success" or result.record is None:
            logger.error(f"Fallback log insert failed: {result.error}", extra={"phone": phone})
            return None
        return result.record.id


def _provider_message_id(response: AiSensySendResponse) -> Optional[str]:
    if response.messageId is not None:
        return str(response.messageId)
    if response.data and response.data.get("message_id") is not None:
        return str(response.data["message_id"])
    return None
