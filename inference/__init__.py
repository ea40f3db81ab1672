"""
Model boundary layer for reply generation.

The reply generator only sees ModelBackend, so the completion provider
can be swapped through configuration.

Supported backends:
- StubModelBackend: Deterministic fake model (tests, local runs)
- OpenAIModelBackend: OpenAI chat-completions API

Example usage:
    from inference import StubModelBackend, ModelRequest

    backend = StubModelBackend()
    response = backend.generate(ModelRequest(task="respond", prompt="Hello"))
"""

from .types import ModelRequest, ModelResponse, ModelStatus
from .base import ModelBackend
from .stub import StubModelBackend
from .openai_chat import OpenAIModelBackend, SYSTEM_PROMPT

__all__ = [
    "ModelRequest",
    "ModelResponse",
    "ModelStatus",
    "ModelBackend",
    "StubModelBackend",
    "OpenAIModelBackend",
    "SYSTEM_PROMPT",
]
