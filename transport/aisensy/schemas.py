"""
AiSensy Transport Layer - Pydantic Schemas

PURE DATA MODELS - NO LOGIC
Defines the contract between the AiSensy webhook/campaign API and the relay.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# NORMALIZED INBOUND MESSAGE (THE CONTRACT)
# ============================================================================

class NormalizedInbound(BaseModel):
    """
    Canonical inbound message extracted from a loosely-shaped webhook body.
    """

    phone: str = Field(..., min_length=1, description="Sender phone / wa id")
    message_text: str = Field("", description="Message content, may be empty")
    message_id: str = Field(..., description="Provider message id or synthesized id")
    received_at: datetime = Field(..., description="Message timestamp, timezone-aware")
    raw_payload: dict[str, Any] = Field(
        default_factory=dict,
        description="Original webhook body, stored verbatim"
    )

    model_config = ConfigDict(frozen=True)


# ============================================================================
# AISENSY CAMPAIGN API (OUTPUT)
# ============================================================================

class AiSensySendRequest(BaseModel):
    """
    Body for POST /campaign/t1/api/v2.

    Freeform replies carry `message`; template replies carry
    `templateName` and `templateParams` instead.
    """

    apiKey: str
    campaignName: str
    destination: str
    message: Optional[str] = None
    templateName: Optional[str] = None
    templateParams: Optional[list[str]] = None


class AiSensySendResponse(BaseModel):
    """Fields of the campaign API response that the relay reads."""

    status: Optional[str] = None
    messageId: Optional[str | int] = None
    data: Optional[dict[str, Any]] = None

    model_config = ConfigDict(extra="allow")  # AiSensy returns more than we read
