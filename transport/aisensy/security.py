"""
AiSensy Webhook Authentication

SECURITY BOUNDARY - shared-secret token check and subscription challenge.
No store access. No retries.
"""

import hmac
import logging
from typing import Any, Mapping, Optional

from .errors import AuthFailure

logger = logging.getLogger(__name__)

# Header names in priority order. Starlette headers are case-insensitive.
TOKEN_HEADERS = ("X-AiSensy-Token", "X-Provider-Token", "X-Webhook-Token")
QUERY_TOKEN_PARAM = "token"
BODY_TOKEN_FIELD = "token"


class WebhookAuthenticator:
    """
    Compare the delivery's token with the configured shared secret.

    With no secret configured every delivery passes.
    """

    def __init__(self, secret: Optional[str] = None):
        self.secret = secret or None

    def extract_token(
        self,
        headers: Mapping[str, str],
        query_params: Mapping[str, str],
        body: Any,
    ) -> str:
        """First present of the token headers, ?token=, then body["token"]."""
        for name in TOKEN_HEADERS:
            value = headers.get(name)
            if value:
                return str(value)

        value = query_params.get(QUERY_TOKEN_PARAM)
        if value:
            return str(value)

        if isinstance(body, dict) and body.get(BODY_TOKEN_FIELD):
            return str(body[BODY_TOKEN_FIELD])

        return ""

    def authenticate(
        self,
        headers: Mapping[str, str],
        query_params: Mapping[str, str],
        body: Any,
    ) -> None:
        """
        Raises:
            AuthFailure: A secret is configured and the token does not match
        """
        if self.secret is None:
            return

        token = self.extract_token(headers, query_params, body)
        if not hmac.compare_digest(token.encode("utf-8"), self.secret.encode("utf-8")):
            logger.warning(
                "Webhook token mismatch",
                extra={"token_present": bool(token), "token_hint": _mask(token)},
            )
            raise AuthFailure("webhook token mismatch")


def verify_webhook_challenge(
    hub_mode: Optional[str],
    hub_challenge: Optional[str],
    hub_verify_token: Optional[str],
    expected_token: Optional[str],
) -> str:
    """
    Verify a provider subscription challenge.

    The provider calls GET with hub.mode=subscribe, hub.verify_token and
    hub.challenge; we echo the challenge back when the token matches.

    Returns:
        The challenge string to echo back

    Raises:
        AuthFailure: Wrong mode, wrong or unconfigured token, or no challenge
    """
    if (
        hub_mode != "subscribe"
        or not expected_token
        or hub_verify_token is None
        or hub_challenge is None
        or not hmac.compare_digest(hub_verify_token.encode("utf-8"), expected_token.encode("utf-8"))
    ):
        raise AuthFailure("verify token mismatch")

    return hub_challenge


def _mask(token: str) -> str:
    if len(token) <= 4:
        return "*" * len(token)
    return token[:2] + "*" * (len(token) - 4) + token[-2:]
