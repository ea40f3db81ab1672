"""
Relay pipeline: idempotency, service window, reply text and dispatch.
"""

from .dispatcher import DispatchOutcome, Dispatcher
from .processor import InboundMessageProcessor, ProcessResult
from .replies import ACKNOWLEDGEMENT, APOLOGY, FALLBACK_GREETING, ReplyGenerator
from .window import SERVICE_WINDOW, ServiceWindowResolver

__all__ = [
    "InboundMessageProcessor",
    "ProcessResult",
    "ServiceWindowResolver",
    "SERVICE_WINDOW",
    "ReplyGenerator",
    "FALLBACK_GREETING",
    "ACKNOWLEDGEMENT",
    "APOLOGY",
    "Dispatcher",
    "DispatchOutcome",
]
