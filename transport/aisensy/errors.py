"""
Webhook boundary errors.

Each error knows the HTTP status and JSON body the provider receives.
"""

from typing import Any, Dict


class WebhookError(Exception):
    """Base class for failures that end a webhook delivery early."""

    status_code = 500

    def response_body(self) -> Dict[str, Any]:
        return {"ok": False, "error": str(self)}


class AuthFailure(WebhookError):
    """Webhook token missing or not equal to the shared secret."""

    status_code = 403

    def response_body(self) -> Dict[str, Any]:
        return {"ok": False, "message": "forbidden"}


class InvalidPayload(WebhookError):
    """Payload cannot be parsed or carries no phone."""

    status_code = 400

    def response_body(self) -> Dict[str, Any]:
        return {"ok": False, "message": f"invalid payload: {self}"}


class StoreWriteFailure(WebhookError):
    """Inbound row could not be persisted. Surfaced so the sender redelivers."""

    status_code = 500

    def response_body(self) -> Dict[str, Any]:
        return {"ok": False, "error": "db_inbound_insert_failed"}
