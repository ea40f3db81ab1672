import logging
from typing import Optional

import requests

from .base import ModelBackend
from .types import ModelRequest, ModelResponse

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a concise WhatsApp assistant. "
    "Reply in short Hinglish if user uses Hinglish."
)


class OpenAIModelBackend(ModelBackend):
    """
    OpenAI chat-completions backend.

    Sends a fixed system instruction plus the request prompt as the user
    message and returns the first choice's content. Sampling parameters are
    set once per process; a request may override them.
    """

    def __init__(
        self,
        api_key: str,
        model_name: str = "gpt-4o-mini",
        base_url: str = "https://api.openai.com/v1",
        max_tokens: int = 200,
        temperature: float = 0.2,
    ):
        """
        Initialize OpenAI backend.

        Args:
            api_key:     OpenAI API key (sent as a bearer token)
            model_name:  Chat model name
            base_url:    API root, without a trailing slash
            max_tokens:  Completion length cap
            temperature: Sampling temperature
        """
        self.api_key = api_key
        self.model_name = model_name
        self.base_url = base_url.rstrip("/")
        self.max_tokens = max_tokens
        self.temperature = temperature

    def generate(self, request: ModelRequest) -> ModelResponse:
        """
        Generate a reply using POST /chat/completions.

        Returns:
            ModelResponse with the completion text on success. Timeouts are
            recoverable; transport and HTTP errors are fatal; a body without
            choices is an invalid_output.
        """
        base_metadata = {
            "backend": "openai",
            "model": self.model_name,
            "trace_id": request.trace_id,
        }

        payload = {
            "model": self.model_name,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": request.prompt},
            ],
            "max_tokens": request.max_tokens or self.max_tokens,
            "temperature": (
                request.temperature
                if request.temperature is not None
                else self.temperature
            ),
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        try:
            resp = requests.post(
                f"{self.base_url}/chat/completions",
                json=payload,
                headers=headers,
                timeout=request.timeout_s,
            )
            resp.raise_for_status()
            data = resp.json()

        except requests.Timeout:
            logger.warning("OpenAI request timed out", extra=base_metadata)
            return ModelResponse(
                status="recoverable_error",
                error_type="timeout",
                metadata=base_metadata,
            )

        except Exception as e:
            logger.error(f"OpenAI call failed: {e}", extra=base_metadata)
            return ModelResponse(
                status="fatal_error",
                error_type="backend_unavailable",
                metadata={**base_metadata, "error": str(e)},
            )

        content = _first_choice_content(data)
        if content is None:
            logger.error("OpenAI response had no usable choice", extra=base_metadata)
            return ModelResponse(
                status="recoverable_error",
                error_type="invalid_output",
                metadata=base_metadata,
            )

        return ModelResponse(
            status="success",
            output=content.strip(),
            metadata={**base_metadata, "usage": data.get("usage")},
        )


def _first_choice_content(data) -> Optional[str]:
    """Return choices[0].message.content, or None when the shape is wrong."""
    if not isinstance(data, dict):
        return None
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    message = choices[0].get("message") if isinstance(choices[0], dict) else None
    if not isinstance(message, dict):
        return None
    content = message.get("content")
    if content is None:
        return ""
    return content if isinstance(content, str) else None
