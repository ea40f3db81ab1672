"""
AiSensy Input Normalization

PURE EXTRACTION - NO I/O

Webhook bodies arrive either nested under `data` or flat, with field names
that vary between provider events. Each logical field is an ordered list of
extraction rules; the first rule that yields a present value wins.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Sequence

from .errors import InvalidPayload
from .schemas import NormalizedInbound

logger = logging.getLogger(__name__)

Rule = Callable[[dict, dict], Any]

# Epoch values above this are milliseconds
_EPOCH_MILLIS_THRESHOLD = 1e12


def _from_data(key: str) -> Rule:
    return lambda payload, data: data.get(key)


def _from_payload(key: str) -> Rule:
    return lambda payload, data: payload.get(key)


PHONE_RULES: Sequence[Rule] = (
    _from_data("phone"),
    _from_data("from"),
    _from_data("sender"),
    _from_payload("from"),
)

MESSAGE_TEXT_RULES: Sequence[Rule] = (
    _from_data("message"),
    _from_data("text"),
    _from_data("body"),
    _from_payload("message"),
)

MESSAGE_ID_RULES: Sequence[Rule] = (
    _from_data("message_id"),
    _from_data("id"),
    _from_payload("messageId"),
)

TIMESTAMP_RULES: Sequence[Rule] = (
    _from_data("timestamp"),
    _from_payload("timestamp"),
)


def first_present(rules: Sequence[Rule], payload: dict, data: dict) -> Any:
    """Apply rules in priority order. None and "" count as absent."""
    for rule in rules:
        value = rule(payload, data)
        if value is not None and value != "":
            return value
    return None


def normalize_payload(
    payload: Any,
    now: Optional[datetime] = None,
) -> NormalizedInbound:
    """
    Convert a webhook body into NormalizedInbound.

    Args:
        payload: Decoded JSON body
        now: Current time, used for the synthesized message id and a
             missing timestamp

    Returns:
        NormalizedInbound

    Raises:
        InvalidPayload: Body is not an object, or no phone can be found
    """
    if not isinstance(payload, dict):
        raise InvalidPayload("body is not a JSON object")

    now = now or datetime.now(timezone.utc)
    data = payload.get("data")
    if not isinstance(data, dict):
        data = payload

    phone = first_present(PHONE_RULES, payload, data)
    if phone is None:
        raise InvalidPayload("no phone")
    phone = str(phone)

    message_text = first_present(MESSAGE_TEXT_RULES, payload, data)
    if message_text is None:
        message_text = ""
    elif not isinstance(message_text, str):
        # Some events nest the text, e.g. {"text": {"body": "..."}}
        if isinstance(message_text, dict) and isinstance(message_text.get("body"), str):
            message_text = message_text["body"]
        else:
            message_text = str(message_text)

    message_id = first_present(MESSAGE_ID_RULES, payload, data)
    if message_id is None:
        message_id = f"{phone}-{int(now.timestamp() * 1000)}"

    raw_timestamp = first_present(TIMESTAMP_RULES, payload, data)
    received_at = parse_timestamp(raw_timestamp) if raw_timestamp is not None else None
    if received_at is None:
        if raw_timestamp is not None:
            logger.warning(f"Unparseable timestamp {raw_timestamp!r}, using current time")
        received_at = now

    return NormalizedInbound(
        phone=phone,
        message_text=message_text,
        message_id=str(message_id),
        received_at=received_at,
        raw_payload=payload,
    )


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse ISO-8601 text or epoch seconds/milliseconds into an aware datetime.

    Returns None for anything else.
    """
    if isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        return _from_epoch(value)

    if not isinstance(value, str):
        return None

    text = value.strip()
    try:
        return _from_epoch(float(text))
    except ValueError:
        pass

    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _from_epoch(value: float) -> Optional[datetime]:
    if value > _EPOCH_MILLIS_THRESHOLD:
        value = value / 1000
    try:
        return datetime.fromtimestamp(value, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None
