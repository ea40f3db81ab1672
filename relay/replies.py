"""
Reply text selection.

Inside the service window the reply comes from the model; outside it a
fixed greeting is used because only template messages may be sent.
"""

import logging
from typing import Optional

from fastapi.concurrency import run_in_threadpool

from inference import ModelBackend, ModelRequest

logger = logging.getLogger(__name__)

FALLBACK_GREETING = "Hi, thanks for messaging. We'll reply soon."
ACKNOWLEDGEMENT = "Thanks, we received your message. We will reply soon."
APOLOGY = "Sorry, temporary error generating reply."


class ReplyGenerator:
    """Pick or generate the reply text. Never raises."""

    def __init__(
        self,
        backend: ModelBackend,
        fallback_greeting: str = FALLBACK_GREETING,
        acknowledgement: str = ACKNOWLEDGEMENT,
        apology: str = APOLOGY,
    ):
        self.backend = backend
        self.fallback_greeting = fallback_greeting
        self.acknowledgement = acknowledgement
        self.apology = apology

    async def generate(self, within_window: bool, message_text: str, trace_id: Optional[str] = None) -> str:
        if not within_window:
            return self.fallback_greeting

        request = ModelRequest(
            task="respond",
            prompt=f"Incoming message: {message_text}",
            trace_id=trace_id,
        )
        try:
            # Backends are blocking HTTP clients
            response = await run_in_threadpool(self.backend.generate, request)
        except Exception as e:
            logger.error(f"Model backend raised: {e}", exc_info=True, extra={"trace_id": trace_id})
            return self.apology

        if response.status != "success":
            logger.warning(
                f"Model call failed ({response.error_type}), using apology reply",
                extra={"trace_id": trace_id},
            )
            return self.apology

        text = (response.output or "").strip()
        return text or self.acknowledgement
