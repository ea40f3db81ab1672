"""
AiSensy Webhook Receiver

FastAPI router for provider deliveries. Parses HTTP, hands the body to the
InboundMessageProcessor found on app.state, and maps boundary errors to
JSON responses. No relay imports: the processor is injected at startup.
"""

import json
import logging

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse

from .errors import AuthFailure, InvalidPayload, WebhookError
from .security import verify_webhook_challenge

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhook", tags=["AiSensy Transport"])


# ============================================================================
# WEBHOOK CHALLENGE (Setup only)
# ============================================================================

@router.get("/aisensy", response_class=PlainTextResponse)
async def aisensy_webhook_challenge(request: Request) -> PlainTextResponse:
    """
    Verify webhook subscription challenge.

    Query: hub.mode, hub.verify_token, hub.challenge. Echoes the challenge
    as plain text when mode is "subscribe" and the token matches.
    """
    params = request.query_params
    mode = params.get("hub.mode")
    challenge = params.get("hub.challenge")
    logger.info("Webhook verify request", extra={"mode": mode, "has_challenge": challenge is not None})

    try:
        result = verify_webhook_challenge(
            mode,
            challenge,
            params.get("hub.verify_token"),
            getattr(request.app.state, "verify_token", None),
        )
    except AuthFailure:
        logger.warning("Webhook verify failed - token mismatch or missing challenge")
        return PlainTextResponse(
            "Forbidden - verify token mismatch",
            status_code=status.HTTP_403_FORBIDDEN,
        )

    logger.info("Webhook verified - returning challenge")
    return PlainTextResponse(result, status_code=status.HTTP_200_OK)


# ============================================================================
# WEBHOOK RECEIVER (Message processing)
# ============================================================================

@router.post("/aisensy")
async def aisensy_webhook_receiver(request: Request) -> JSONResponse:
    """
    Receive one AiSensy delivery.

    Responses:
        200 {"ok": true}                                 processed
        200 {"ok": true, "message": "duplicate ignored"} already seen
        400 {"ok": false, "message": ...}                no phone / bad body
        403 {"ok": false, "message": "forbidden"}        token mismatch
        500 {"ok": false, "error": ...}                  inbound insert failed
    """
    processor = getattr(request.app.state, "processor", None)
    if processor is None:
        logger.error("Webhook received but the processor is not configured")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"ok": False, "error": "service_not_configured"},
        )

    body = await request.body()
    try:
        payload = json.loads(body) if body else {}
        parse_error = None
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        payload = None
        parse_error = InvalidPayload(f"malformed json ({e.__class__.__name__})")

    try:
        if parse_error is not None:
            # Still authenticate first so a bad token reads as 403
            processor.authenticator.authenticate(request.headers, request.query_params, None)
            raise parse_error

        result = await processor.handle(request.headers, request.query_params, payload)

    except WebhookError as e:
        if e.status_code >= 500:
            logger.error(f"Webhook failed: {e}")
        else:
            logger.warning(f"Webhook rejected ({e.status_code}): {e}")
        return JSONResponse(status_code=e.status_code, content=e.response_body())

    return JSONResponse(status_code=status.HTTP_200_OK, content=result.response_body())


@router.api_route("/aisensy", methods=["PUT", "PATCH", "DELETE"], include_in_schema=False)
async def aisensy_webhook_method_not_allowed() -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        content={"error": "Method not allowed"},
    )
