"""
Cross-process fan-out of order status events over Redis pub/sub.

Each process keeps its own OrderStatusChannel. The relay publishes every
local status event to config.ORDER_STATUS_REDIS_CHANNEL and forwards events
published by other processes into the local channel. Messages carry the
publishing relay's origin id so a process never re-delivers its own events.
"""

import asyncio
import json
import logging
import uuid

from redis.asyncio import Redis
from redis.exceptions import RedisError

import config
from models.order import OrderStatusEventDTO
from services.order_status_channel import OrderStatusChannel

# Seconds to wait before each resubscribe; the last value repeats
RECONNECT_DELAYS = (1, 2, 5, 10, 30)


class RedisOrderStatusRelay:

    def __init__(
        self,
        redis: Redis,
        channel: OrderStatusChannel,
        redis_channel: str | None = None,
        reconnect_delays: tuple[float, ...] = RECONNECT_DELAYS
    ):
        self.redis = redis
        self.channel = channel
        self.redis_channel = redis_channel or config.ORDER_STATUS_REDIS_CHANNEL
        self.reconnect_delays = reconnect_delays or (0,)
        self.origin = uuid.uuid4().hex
        self._listener: asyncio.Task | None = None
        # Consecutive lost connections, reset by a successful subscribe
        self.failures = 0

    async def publish(self, event: OrderStatusEventDTO) -> bool:
        """
        Send an event to the other processes.

        Best effort: a Redis failure is logged and reported as False.
        """
        payload = json.dumps({"origin": self.origin, "event": event.model_dump(mode="json")})
        try:
            await self.redis.publish(self.redis_channel, payload)
        except RedisError as e:
            logging.error(f"Failed to relay status event of order {event.order_id}: {e}")
            return False
        return True

    async def handle_message(self, data: str | bytes) -> bool:
        """
        Forward one pub/sub payload into the local channel.

        Returns:
            True if the event was forwarded, False if skipped or malformed
        """
        if isinstance(data, bytes):
            data = data.decode("utf-8")
        try:
            message = json.loads(data)
            if message.get("origin") == self.origin:
                return False
            event = OrderStatusEventDTO.model_validate(message["event"])
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            # ValidationError is a ValueError
            logging.warning(f"Ignoring malformed status relay message: {e}")
            return False

        await self.channel.publish(event)
        return True

    async def listen(self) -> None:
        """
        Forward events from Redis until cancelled.

        A lost connection is logged and the subscription re-established after
        the next delay in `reconnect_delays`; local delivery keeps working in
        the meantime.
        """
        self.failures = 0
        while True:
            try:
                await self._listen_once()
                return
            except RedisError as e:
                delay = self.reconnect_delays[min(self.failures, len(self.reconnect_delays) - 1)]
                self.failures += 1
                logging.error(
                    f"Status relay lost Redis channel '{self.redis_channel}': {e} "
                    f"(attempt {self.failures}, resubscribing in {delay}s)"
                )
                await asyncio.sleep(delay)

    async def _listen_once(self) -> None:
        pubsub = self.redis.pubsub()
        try:
            await pubsub.subscribe(self.redis_channel)
            self.failures = 0
            logging.info(f"Status relay listening on Redis channel '{self.redis_channel}'")
            async for message in pubsub.listen():
                if message.get("type") != "message":
                    continue
                await self.handle_message(message["data"])
        finally:
            try:
                await pubsub.unsubscribe(self.redis_channel)
                await pubsub.aclose()
            except RedisError as e:
                logging.warning(f"Status relay could not release Redis subscription cleanly: {e}")
            logging.info(f"Status relay stopped listening on '{self.redis_channel}'")

    def start(self) -> asyncio.Task:
        if self._listener is None or self._listener.done():
            self._listener = asyncio.create_task(self.listen())
        return self._listener

    async def stop(self) -> None:
        """Cancel the listener. Never raises: a listener that already died is logged."""
        listener, self._listener = self._listener, None
        if listener is None:
            return
        listener.cancel()
        try:
            await listener
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logging.error(f"Status relay listener had failed: {e}")
