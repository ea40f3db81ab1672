"""
AiSensy Reply Sender

Sends reply text through the AiSensy campaign API.
No formatting intelligence. No retries.
"""

import logging
from typing import Any, Optional

import httpx

from .schemas import AiSensySendRequest

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "https://backend.aisensy.com/campaign/t1/api/v2"


class AiSensySenderError(Exception):
    """Failed to send a reply through AiSensy."""
    pass


class AiSensySender:
    """
    Thin client for the AiSensy campaign API.

    Inside the service window the reply goes out as a freeform message.
    Outside it only the pre-approved template may be sent, with the reply
    text as its single parameter.
    """

    def __init__(
        self,
        api_key: str,
        campaign_name: str,
        template_name: str = "auto_reply_fallback",
        endpoint: str = DEFAULT_ENDPOINT,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.campaign_name = campaign_name
        self.template_name = template_name
        self.endpoint = endpoint
        self.timeout = timeout
        self._transport = transport

    def build_request(self, destination: str, text: str, templated: bool) -> AiSensySendRequest:
        if templated:
            return AiSensySendRequest(
                apiKey=self.api_key,
                campaignName=self.campaign_name,
                destination=destination,
                templateName=self.template_name,
                templateParams=[text],
            )
        return AiSensySendRequest(
            apiKey=self.api_key,
            campaignName=self.campaign_name,
            destination=destination,
            message=text,
        )

    async def send(self, destination: str, text: str, templated: bool) -> dict[str, Any]:
        """
        Send one reply.

        Args:
            destination: Recipient phone
            text: Reply text (freeform body or template parameter)
            templated: Use the template payload instead of a freeform message

        Returns:
            Decoded AiSensy response body

        Raises:
            AiSensySenderError: Transport error, non-2xx status or non-JSON body
        """
        body = self.build_request(destination, text, templated).model_dump(exclude_none=True)

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.endpoint, json=body)
        except httpx.HTTPError as e:
            logger.error(
                f"AiSensy request failed: {e}",
                extra={"destination": destination, "error": str(e)},
            )
            raise AiSensySenderError(f"HTTP request failed: {e}") from e

        if response.is_error:
            logger.error(
                f"AiSensy API error: {response.status_code} - {response.text}",
                extra={
                    "status_code": response.status_code,
                    "error_body": response.text,
                },
            )
            raise AiSensySenderError(f"AiSensy API returned {response.status_code}")

        try:
            result = response.json()
        except ValueError as e:
            raise AiSensySenderError(f"AiSensy returned a non-JSON body: {e}") from e

        if not isinstance(result, dict):
            result = {"response": result}

        logger.info(
            f"Reply sent to {destination}",
            extra={"destination": destination, "templated": templated},
        )
        return result
