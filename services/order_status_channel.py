"""
In-process publish/subscribe for order status events.

Topics:
- orders:user:<user_id>  events for one customer's orders
- orders:staff           every event (staff order table)

Delivery is at-most-once: a subscriber that is not connected when an event
is published never sees it and has to re-fetch through OrderStatusService.
"""

import asyncio
import inspect
import itertools
import logging
from typing import Awaitable, Callable, Union

from exceptions.channel import ChannelDisconnectedException
from models.order import OrderStatusEventDTO

STAFF_TOPIC = "orders:staff"

EventHandler = Callable[[OrderStatusEventDTO], Union[None, Awaitable[None]]]


def user_topic(user_id: str) -> str:
    return f"orders:user:{user_id}"


class Subscription:
    """
    Handle returned by OrderStatusChannel.open().

    cancel() is idempotent. Use as a (async) context manager to have the
    subscription released on every exit path.
    """

    _ids = itertools.count(1)

    def __init__(self, channel: 'OrderStatusChannel', topic: str, handler: EventHandler):
        self.id = next(Subscription._ids)
        self.topic = topic
        self.handler = handler
        self._channel = channel
        self._active = True
        self.disconnect_reason: str | None = None

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        if not self._active:
            return
        self._active = False
        self._channel._remove(self)
        logging.debug(f"Subscription {self.id} on '{self.topic}' cancelled")

    def _disconnect(self, reason: str) -> None:
        self.disconnect_reason = reason
        self.cancel()

    def ensure_active(self) -> None:
        if not self._active:
            raise ChannelDisconnectedException(self.topic, self.disconnect_reason or "subscription closed")

    def __enter__(self) -> 'Subscription':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.cancel()
        return False

    async def __aenter__(self) -> 'Subscription':
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.cancel()
        return False

    def __repr__(self):
        state = "active" if self._active else "closed"
        return f"<Subscription {self.id} {self.topic} {state}>"


class OrderStatusChannel:
    """
    Sync handlers run inline during publish(). Coroutine handlers are
    scheduled as tasks, so a slow subscriber never holds up the publisher;
    drain() waits for the ones still running.
    """

    def __init__(self):
        self._subscriptions: dict[str, list[Subscription]] = {}
        self._pending: set[asyncio.Future] = set()

    def open(self, topic: str, handler: EventHandler) -> Subscription:
        subscription = Subscription(self, topic, handler)
        self._subscriptions.setdefault(topic, []).append(subscription)
        logging.debug(f"Subscription {subscription.id} opened on '{topic}'")
        return subscription

    def subscriber_count(self, topic: str | None = None) -> int:
        if topic is not None:
            return len(self._subscriptions.get(topic, []))
        return sum(len(subscriptions) for subscriptions in self._subscriptions.values())

    @property
    def pending_deliveries(self) -> int:
        return len(self._pending)

    async def publish(self, event: OrderStatusEventDTO) -> int:
        """
        Deliver an event to the owner's topic and the staff topic.

        A handler that raises is logged and its subscription is dropped; the
        remaining handlers still run. Publishing never raises and never waits
        for coroutine handlers.

        Returns:
            Number of handlers the event was handed to
        """
        delivered = 0
        for topic in (user_topic(event.user_id), STAFF_TOPIC):
            # Copy: handlers may cancel subscriptions while we iterate
            for subscription in list(self._subscriptions.get(topic, [])):
                if not subscription.active:
                    continue
                try:
                    result = subscription.handler(event)
                except Exception as e:
                    self._drop(subscription, e)
                    continue
                if inspect.isawaitable(result):
                    self._track(subscription, result)
                delivered += 1

        logging.debug(f"Order {event.order_id} status event delivered to {delivered} subscriber(s)")
        return delivered

    async def drain(self, timeout: float | None = None) -> None:
        """
        Wait for scheduled handlers to finish. Those still running after
        `timeout` seconds are cancelled.
        """
        if not self._pending:
            return
        _, still_running = await asyncio.wait(set(self._pending), timeout=timeout)
        for future in still_running:
            future.cancel()
        if still_running:
            logging.warning(f"Cancelled {len(still_running)} status handler(s) still running after {timeout}s")
            await asyncio.wait(still_running)

    def disconnect_all(self, reason: str = "channel closed") -> None:
        for subscriptions in list(self._subscriptions.values()):
            for subscription in list(subscriptions):
                subscription._disconnect(reason)

    def _track(self, subscription: Subscription, awaitable: Awaitable[None]) -> None:
        future = asyncio.ensure_future(awaitable)
        self._pending.add(future)

        def on_done(done: asyncio.Future) -> None:
            self._pending.discard(done)
            if done.cancelled():
                return
            error = done.exception()
            if error is not None:
                self._drop(subscription, error)

        future.add_done_callback(on_done)

    def _drop(self, subscription: Subscription, error: BaseException) -> None:
        logging.error(f"Handler of subscription {subscription.id} on '{subscription.topic}' failed: {error}")
        subscription._disconnect(f"handler error: {error}")
        logging.warning(str(ChannelDisconnectedException(subscription.topic, subscription.disconnect_reason)))

    def _remove(self, subscription: Subscription) -> None:
        subscriptions = self._subscriptions.get(subscription.topic)
        if not subscriptions:
            return
        if subscription in subscriptions:
            subscriptions.remove(subscription)
        if not subscriptions:
            del self._subscriptions[subscription.topic]
