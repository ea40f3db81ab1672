from dataclasses import dataclass
from typing import Optional, Dict, Any, Literal

ModelStatus = Literal["success", "recoverable_error", "fatal_error"]


@dataclass
class ModelRequest:
    task: str                  # "respond" for inbox replies
    prompt: str                # user content sent after the system instruction
    max_tokens: Optional[int] = None
    temperature: Optional[float] = None
    timeout_s: Optional[float] = 30
    trace_id: Optional[str] = None   # inbound message_id, for log correlation


@dataclass
class ModelResponse:
    status: ModelStatus
    output: Optional[str] = None
    error_type: Optional[str] = None   # timeout | invalid_output | backend_unavailable
    metadata: Optional[Dict[str, Any]] = None
