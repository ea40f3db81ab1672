"""
Idempotency and service-window checks over the inbox log.

Read failures degrade instead of raising: an unreadable store means
"not a duplicate" and "outside the window".
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from fastapi.concurrency import run_in_threadpool

from inbox import InboxStore, MessageRecord

logger = logging.getLogger(__name__)

SERVICE_WINDOW = timedelta(hours=24)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ServiceWindowResolver:
    """Answers "seen this message before?" and "may we reply freeform?"."""

    def __init__(
        self,
        store: InboxStore,
        window: timedelta = SERVICE_WINDOW,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.store = store
        self.window = window
        self.clock = clock

    async def is_duplicate(self, message_id: str) -> bool:
        # Stores are blocking clients
        result = await run_in_threadpool(self.store.find_by_message_id, message_id)
        if result.status == "unavailable":
            logger.error(
                f"Idempotency lookup failed, treating as new: {result.error}",
                extra={"message_id": message_id},
            )
            return False
        return result.status == "success"

    async def previous_inbound(self, phone: str) -> Optional[MessageRecord]:
        """
        Latest inbound row for the phone.

        Must run before the current message is inserted, so the row found
        is always an earlier message and never the current one.
        """
        result = await run_in_threadpool(self.store.latest_inbound, phone)
        if result.status == "unavailable":
            logger.error(
                f"Window lookup failed, assuming outside window: {result.error}",
                extra={"phone": phone},
            )
            return None
        return result.record

    def is_within_window(self, previous: Optional[MessageRecord]) -> bool:
        if previous is None or previous.received_at is None:
            return False
        return self.clock() - previous.received_at <= self.window
