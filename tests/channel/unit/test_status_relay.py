"""
Unit Tests: RedisOrderStatusRelay

Publishing status events to Redis and forwarding received ones into the
local OrderStatusChannel.
"""

import asyncio
import json
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from enums.order_status import OrderStatus
from models.order import OrderStatusEventDTO
from services.order_status_channel import OrderStatusChannel, STAFF_TOPIC
from services.status_relay import RedisOrderStatusRelay


@pytest.fixture
def channel():
    return OrderStatusChannel()


@pytest.fixture
def event():
    return OrderStatusEventDTO(
        order_id="order-1",
        order_number="ORD-123456-001",
        user_id="user-1",
        previous_status=OrderStatus.PENDING,
        new_status=OrderStatus.PREPARING,
        changed_by="staff-1",
        changed_at=datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    )


class TestPublish:

    @pytest.mark.asyncio
    async def test_payload_carries_origin_and_event(self, channel, event):
        redis = AsyncMock()
        relay = RedisOrderStatusRelay(redis, channel)

        assert await relay.publish(event) is True

        redis_channel, payload = redis.publish.call_args.args
        assert redis_channel == "order-status-updates"
        message = json.loads(payload)
        assert message["origin"] == relay.origin
        assert message["event"]["new_status"] == "preparing"
        assert message["event"]["order_number"] == "ORD-123456-001"

    @pytest.mark.asyncio
    async def test_publish_with_fake_redis(self, redis_client, channel, event):
        relay = RedisOrderStatusRelay(redis_client, channel, redis_channel="test-status")

        assert await relay.publish(event) is True

    @pytest.mark.asyncio
    async def test_redis_failure_reported(self, channel, event):
        redis = AsyncMock()
        redis.publish.side_effect = RedisConnectionError("connection refused")

        assert await RedisOrderStatusRelay(redis, channel).publish(event) is False


class TestForward:

    @pytest.mark.asyncio
    async def test_remote_event_forwarded(self, channel, event):
        received = []
        channel.open(STAFF_TOPIC, received.append)
        sender = RedisOrderStatusRelay(AsyncMock(), OrderStatusChannel())
        receiver = RedisOrderStatusRelay(AsyncMock(), channel)
        await sender.publish(event)
        payload = sender.redis.publish.call_args.args[1]

        assert await receiver.handle_message(payload.encode("utf-8")) is True

        assert received == [event]

    @pytest.mark.asyncio
    async def test_own_event_not_forwarded_twice(self, channel, event):
        received = []
        channel.open(STAFF_TOPIC, received.append)
        relay = RedisOrderStatusRelay(AsyncMock(), channel)
        await relay.publish(event)
        payload = relay.redis.publish.call_args.args[1]

        assert await relay.handle_message(payload) is False
        assert received == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", ["not json", "{}", "{\"origin\": \"x\", \"event\": {\"order_id\": 1}}", "[]"])
    async def test_malformed_messages_ignored(self, channel, payload):
        relay = RedisOrderStatusRelay(AsyncMock(), channel)

        assert await relay.handle_message(payload) is False

    @pytest.mark.asyncio
    async def test_listen_forwards_only_messages(self, channel, event):
        received = []
        channel.open(STAFF_TOPIC, received.append)
        remote_payload = json.dumps({"origin": "other-process", "event": event.model_dump(mode="json")})

        async def fake_listen():
            yield {"type": "subscribe", "data": 1}
            yield {"type": "message", "data": remote_payload}

        pubsub = MagicMock()
        pubsub.subscribe = AsyncMock()
        pubsub.unsubscribe = AsyncMock()
        pubsub.aclose = AsyncMock()
        pubsub.listen = fake_listen
        redis = MagicMock()
        redis.pubsub.return_value = pubsub
        relay = RedisOrderStatusRelay(redis, channel, redis_channel="test-status")

        await relay.listen()

        assert received == [event]
        pubsub.subscribe.assert_awaited_once_with("test-status")
        pubsub.aclose.assert_awaited_once()


def make_pubsub(listen):
    pubsub = MagicMock()
    pubsub.subscribe = AsyncMock()
    pubsub.unsubscribe = AsyncMock()
    pubsub.aclose = AsyncMock()
    pubsub.listen = listen
    return pubsub


class TestConnectionLoss:

    @pytest.mark.asyncio
    async def test_listen_resubscribes_after_connection_loss(self, channel, event, caplog):
        received = []
        channel.open(STAFF_TOPIC, received.append)
        remote_payload = json.dumps({"origin": "other-process", "event": event.model_dump(mode="json")})

        async def dropped_listen():
            raise RedisConnectionError("Connection reset by peer")
            yield

        async def healthy_listen():
            yield {"type": "message", "data": remote_payload}

        dropped, healthy = make_pubsub(dropped_listen), make_pubsub(healthy_listen)
        redis = MagicMock()
        redis.pubsub.side_effect = [dropped, healthy]
        relay = RedisOrderStatusRelay(redis, channel, redis_channel="test-status", reconnect_delays=(0,))

        await asyncio.wait_for(relay.listen(), timeout=1.0)

        assert received == [event]
        assert redis.pubsub.call_count == 2
        dropped.aclose.assert_awaited_once()
        assert relay.failures == 0
        assert "Connection reset by peer" in caplog.text

    @pytest.mark.asyncio
    async def test_stop_keeps_retrying_listener_quiet(self, channel):
        async def dropped_listen():
            raise RedisConnectionError("Connection refused")
            yield

        redis = MagicMock()
        redis.pubsub.side_effect = lambda: make_pubsub(dropped_listen)
        relay = RedisOrderStatusRelay(redis, channel, reconnect_delays=(0,))

        listener = relay.start()
        await asyncio.sleep(0.01)
        assert not listener.done()

        await relay.stop()

        assert listener.cancelled()
        assert redis.pubsub.call_count >= 2

    @pytest.mark.asyncio
    async def test_stop_logs_listener_that_already_died(self, channel, caplog):
        redis = MagicMock()
        redis.pubsub.side_effect = RuntimeError("pubsub unavailable")
        relay = RedisOrderStatusRelay(redis, channel)

        listener = relay.start()
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        assert listener.done()

        await relay.stop()

        assert "pubsub unavailable" in caplog.text
