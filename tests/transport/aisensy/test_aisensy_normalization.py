"""
AiSensy Input Normalization Tests

Field fallbacks, defaults and timestamp parsing.
"""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from transport.aisensy.errors import InvalidPayload
from transport.aisensy.normalize import normalize_payload, parse_timestamp
from transport.aisensy.schemas import AiSensySendResponse, NormalizedInbound

NOW = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


class TestNestedPayload:
    """Bodies nested under `data`."""

    def test_full_nested_payload(self):
        payload = {
            "data": {
                "phone": "919999000001",
                "message": "Hello",
                "message_id": "wamid.1",
                "timestamp": "2024-03-01T11:00:00Z",
            }
        }

        result = normalize_payload(payload, now=NOW)

        assert isinstance(result, NormalizedInbound)
        assert result.phone == "919999000001"
        assert result.message_text == "Hello"
        assert result.message_id == "wamid.1"
        assert result.received_at == datetime(2024, 3, 1, 11, 0, tzinfo=timezone.utc)
        assert result.raw_payload == payload

    def test_alternate_field_names(self):
        payload = {"data": {"from": "911", "text": "hi", "id": 42}}

        result = normalize_payload(payload, now=NOW)

        assert result.phone == "911"
        assert result.message_text == "hi"
        assert result.message_id == "42"

    def test_sender_and_body_fields(self):
        result = normalize_payload({"data": {"sender": "912", "body": "yo"}}, now=NOW)
        assert result.phone == "912"
        assert result.message_text == "yo"

    def test_data_fields_take_priority_over_top_level(self):
        payload = {
            "from": "top",
            "message": "top message",
            "data": {"phone": "inner", "message": "inner message"},
        }

        result = normalize_payload(payload, now=NOW)

        assert result.phone == "inner"
        assert result.message_text == "inner message"

    def test_top_level_fallbacks_when_data_lacks_fields(self):
        payload = {
            "from": "913",
            "message": "top",
            "messageId": "m-top",
            "timestamp": 1709290800,
            "data": {"unrelated": True},
        }

        result = normalize_payload(payload, now=NOW)

        assert result.phone == "913"
        assert result.message_text == "top"
        assert result.message_id == "m-top"
        assert result.received_at == datetime(2024, 3, 1, 11, 0, tzinfo=timezone.utc)


class TestFlatPayload:
    """Bodies without `data` are read as the data object itself."""

    def test_flat_payload(self):
        result = normalize_payload({"phone": "914", "message": "flat"}, now=NOW)
        assert result.phone == "914"
        assert result.message_text == "flat"

    def test_numeric_phone_coerced_to_string(self):
        result = normalize_payload({"phone": 919999000002}, now=NOW)
        assert result.phone == "919999000002"

    def test_nested_text_object(self):
        result = normalize_payload({"from": "915", "text": {"body": "nested"}}, now=NOW)
        assert result.message_text == "nested"


class TestDefaults:
    """Missing optional fields."""

    def test_missing_text_defaults_to_empty(self):
        result = normalize_payload({"phone": "916"}, now=NOW)
        assert result.message_text == ""

    def test_missing_message_id_is_synthesized(self):
        result = normalize_payload({"phone": "917"}, now=NOW)
        assert result.message_id == f"917-{int(NOW.timestamp() * 1000)}"

    def test_missing_timestamp_is_now(self):
        result = normalize_payload({"phone": "918"}, now=NOW)
        assert result.received_at == NOW

    def test_unparseable_timestamp_is_now(self):
        result = normalize_payload({"phone": "919", "timestamp": "yesterday-ish"}, now=NOW)
        assert result.received_at == NOW

    def test_empty_string_counts_as_absent(self):
        result = normalize_payload({"data": {"phone": "", "from": "920"}}, now=NOW)
        assert result.phone == "920"


class TestInvalidPayload:
    """Bodies that cannot be processed."""

    @pytest.mark.parametrize("payload", [
        {},
        {"data": {}},
        {"data": {"message": "no phone here"}},
        {"message": "hello", "messageId": "x"},
        {"data": {"phone": None, "from": ""}},
    ])
    def test_no_phone_raises_400(self, payload):
        with pytest.raises(InvalidPayload) as exc_info:
            normalize_payload(payload, now=NOW)

        assert exc_info.value.status_code == 400
        assert exc_info.value.response_body() == {
            "ok": False,
            "message": "invalid payload: no phone",
        }

    @pytest.mark.parametrize("payload", [None, [], "text", 5])
    def test_non_object_body_raises(self, payload):
        with pytest.raises(InvalidPayload):
            normalize_payload(payload, now=NOW)


class TestParseTimestamp:
    """Accepted timestamp encodings."""

    def test_epoch_seconds(self):
        assert parse_timestamp(1709290800) == datetime(2024, 3, 1, 11, 0, tzinfo=timezone.utc)

    def test_epoch_milliseconds(self):
        assert parse_timestamp(1709290800000) == datetime(2024, 3, 1, 11, 0, tzinfo=timezone.utc)

    def test_numeric_string(self):
        assert parse_timestamp("1709290800") == datetime(2024, 3, 1, 11, 0, tzinfo=timezone.utc)

    def test_iso_with_offset(self):
        parsed = parse_timestamp("2024-03-01T16:30:00+05:30")
        assert parsed == datetime(2024, 3, 1, 11, 0, tzinfo=timezone.utc)

    def test_naive_iso_is_utc(self):
        assert parse_timestamp("2024-03-01T11:00:00") == datetime(2024, 3, 1, 11, 0, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", ["garbage", True, {"t": 1}, None])
    def test_unsupported_values(self, value):
        assert parse_timestamp(value) is None


class TestSchemaConfig:
    def test_normalized_inbound_is_frozen(self):
        inbound = normalize_payload({"phone": "911", "message": "hi"}, now=NOW)

        with pytest.raises(ValidationError):
            inbound.phone = "922"

    def test_send_response_keeps_unknown_fields(self):
        parsed = AiSensySendResponse.model_validate({"status": "ok", "credits": 3})

        assert parsed.status == "ok"
        assert parsed.model_extra == {"credits": 3}
