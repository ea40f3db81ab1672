"""
Inbound Message Processor

One webhook delivery, handled start to finish:

    authenticate -> normalize -> duplicate check -> previous-message lookup
    -> inbound insert -> window decision -> reply text -> dispatch

Strictly sequential, no state kept between deliveries beyond the inbox.
Raises only WebhookError subclasses; everything after the inbound insert is
recovered locally so the delivery is acknowledged.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Optional

from fastapi.concurrency import run_in_threadpool

from inbox import MessageRecord
from transport.aisensy.errors import StoreWriteFailure
from transport.aisensy.normalize import normalize_payload
from transport.aisensy.security import BODY_TOKEN_FIELD, WebhookAuthenticator

from .dispatcher import DispatchOutcome, Dispatcher
from .replies import ReplyGenerator
from .window import ServiceWindowResolver

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _without_secret(payload: dict) -> dict:
    """Webhook body as stored in the inbox; the body token is never persisted."""
    return {key: value for key, value in payload.items() if key != BODY_TOKEN_FIELD}


@dataclass
class ProcessResult:
    """Outcome of one delivery."""

    message_id: str
    duplicate: bool = False
    within_window: Optional[bool] = None
    reply_text: Optional[str] = None
    dispatch: Optional[DispatchOutcome] = None

    def response_body(self) -> dict:
        if self.duplicate:
            return {"ok": True, "message": "duplicate ignored"}
        return {"ok": True}


class InboundMessageProcessor:
    def __init__(
        self,
        authenticator: WebhookAuthenticator,
        resolver: ServiceWindowResolver,
        replies: ReplyGenerator,
        dispatcher: Dispatcher,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.authenticator = authenticator
        self.resolver = resolver
        self.replies = replies
        self.dispatcher = dispatcher
        self.clock = clock

    @property
    def store(self):
        return self.resolver.store

    async def handle(
        self,
        headers: Mapping[str, str],
        query_params: Mapping[str, str],
        payload: Any,
    ) -> ProcessResult:
        """
        Process one webhook delivery.

        Raises:
            AuthFailure: Token mismatch (nothing written)
            InvalidPayload: No phone in the body (nothing written)
            StoreWriteFailure: Inbound row could not be stored
        """
        self.authenticator.authenticate(headers, query_params, payload)

        inbound = normalize_payload(payload, now=self.clock())
        log_extra = {"phone": inbound.phone, "message_id": inbound.message_id}

        if await self.resolver.is_duplicate(inbound.message_id):
            logger.info("Duplicate delivery ignored", extra=log_extra)
            return ProcessResult(message_id=inbound.message_id, duplicate=True)

        previous = await self.resolver.previous_inbound(inbound.phone)

        inserted = await run_in_threadpool(self.store.insert, MessageRecord(
            phone=inbound.phone,
            message=inbound.message_text,
            message_id=inbound.message_id,
            direction="inbound",
            raw_payload=_without_secret(inbound.raw_payload),
            received_at=inbound.received_at,
            created_at=self.clock(),
        ))
        if inserted.status == "conflict":
            # Lost the race against a concurrent delivery of the same message
            logger.info("Duplicate delivery ignored (store constraint)", extra=log_extra)
            return ProcessResult(message_id=inbound.message_id, duplicate=True)
        if inserted.status != "success":
            logger.error(f"Failed to insert inbound row: {inserted.error}", extra=log_extra)
            raise StoreWriteFailure(inserted.error or "inbound insert failed")

        within_window = self.resolver.is_within_window(previous)
        reply_text = await self.replies.generate(
            within_window,
            inbound.message_text,
            trace_id=inbound.message_id,
        )
        outcome = await self.dispatcher.dispatch(inbound.phone, reply_text, within_window)

        logger.info(
            "Inbound message processed",
            extra={
                **log_extra,
                "within_window": within_window,
                "dispatch_status": outcome.status,
            },
        )
        return ProcessResult(
            message_id=inbound.message_id,
            within_window=within_window,
            reply_text=reply_text,
            dispatch=outcome,
        )
