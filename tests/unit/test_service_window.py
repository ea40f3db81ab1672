"""
Unit tests for the idempotency and service-window resolver.
"""

import asyncio
import time
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from inbox import MessageRecord, StoreReadResponse
from relay.window import ServiceWindowResolver

NOW = datetime(2024, 3, 2, 12, 0, tzinfo=timezone.utc)


def previous_at(delta):
    return MessageRecord(
        phone="911", message="earlier", direction="inbound", message_id="prev",
        received_at=NOW - delta,
    )


def resolver_with(**store_methods):
    store = MagicMock()
    for name, value in store_methods.items():
        getattr(store, name).return_value = value
    return ServiceWindowResolver(store, clock=lambda: NOW), store


class TestWindow:
    def test_no_previous_message_is_outside(self):
        resolver, _ = resolver_with()
        assert resolver.is_within_window(None) is False

    def test_just_under_24h_is_inside(self):
        resolver, _ = resolver_with()
        assert resolver.is_within_window(previous_at(timedelta(hours=23, minutes=59))) is True

    def test_exactly_24h_is_inside(self):
        resolver, _ = resolver_with()
        assert resolver.is_within_window(previous_at(timedelta(hours=24))) is True

    def test_25h_is_outside(self):
        resolver, _ = resolver_with()
        assert resolver.is_within_window(previous_at(timedelta(hours=25))) is False

    def test_previous_without_received_at_is_outside(self):
        resolver, _ = resolver_with()
        record = MessageRecord(phone="911", message="", direction="inbound")
        assert resolver.is_within_window(record) is False


class TestLookups:
    @pytest.mark.asyncio
    async def test_duplicate_when_found(self):
        resolver, _ = resolver_with(find_by_message_id=StoreReadResponse(
            status="success", record=previous_at(timedelta(hours=1)),
        ))
        assert await resolver.is_duplicate("prev") is True

    @pytest.mark.asyncio
    async def test_not_duplicate_when_not_found(self):
        resolver, _ = resolver_with(find_by_message_id=StoreReadResponse(status="not_found"))
        assert await resolver.is_duplicate("new") is False

    @pytest.mark.asyncio
    async def test_read_failure_degrades_to_not_duplicate(self):
        resolver, _ = resolver_with(find_by_message_id=StoreReadResponse(status="unavailable", error="down"))
        assert await resolver.is_duplicate("new") is False

    @pytest.mark.asyncio
    async def test_previous_inbound_returns_record(self):
        record = previous_at(timedelta(hours=2))
        resolver, store = resolver_with(latest_inbound=StoreReadResponse(status="success", record=record))

        assert await resolver.previous_inbound("911") is record
        store.latest_inbound.assert_called_once_with("911")

    @pytest.mark.asyncio
    async def test_previous_inbound_read_failure_degrades_to_none(self):
        resolver, _ = resolver_with(latest_inbound=StoreReadResponse(status="unavailable", error="down"))
        assert await resolver.previous_inbound("911") is None


class TestEventLoop:
    @pytest.mark.asyncio
    async def test_slow_store_read_keeps_loop_running(self):
        def slow_find(message_id):
            time.sleep(0.5)
            return StoreReadResponse(status="not_found")

        store = MagicMock()
        store.find_by_message_id.side_effect = slow_find
        resolver = ServiceWindowResolver(store, clock=lambda: NOW)

        ticks = []

        async def ticker():
            while True:
                ticks.append(time.monotonic())
                await asyncio.sleep(0.05)

        task = asyncio.create_task(ticker())
        try:
            assert await resolver.is_duplicate("new") is False
        finally:
            task.cancel()

        gaps = [later - earlier for earlier, later in zip(ticks, ticks[1:])]
        assert len(ticks) >= 5
        assert max(gaps) < 0.2
