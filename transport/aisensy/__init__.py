"""AiSensy Transport Layer - Module Exports"""

from .errors import AuthFailure, InvalidPayload, StoreWriteFailure, WebhookError
from .normalize import first_present, normalize_payload, parse_timestamp
from .schemas import AiSensySendRequest, AiSensySendResponse, NormalizedInbound
from .security import WebhookAuthenticator, verify_webhook_challenge
from .sender import AiSensySender, AiSensySenderError
from .webhook import router

__all__ = [
    # Errors
    "WebhookError",
    "AuthFailure",
    "InvalidPayload",
    "StoreWriteFailure",
    # Schemas
    "NormalizedInbound",
    "AiSensySendRequest",
    "AiSensySendResponse",
    # Normalization
    "normalize_payload",
    "parse_timestamp",
    "first_present",
    # Security
    "WebhookAuthenticator",
    "verify_webhook_challenge",
    # Sender
    "AiSensySender",
    "AiSensySenderError",
    # Router
    "router",
]
