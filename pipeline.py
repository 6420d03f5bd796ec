"""
Wiring of the order pipeline for one process.

One OrderPipeline owns the status channel, the notification fan-out and the
optional Redis relay. Sessions get their cart, feeds and status service
from it:

    pipeline = OrderPipeline.from_config()
    await pipeline.startup()
    cart = pipeline.new_cart(session)
"""

import logging

from redis.asyncio import Redis

import config
from db import create_db_and_tables
from models.session import SessionContext
from services.cart import CartStore
from services.cart_storage import CartStorage, create_cart_storage
from services.notification import LoggingToastSink, NotificationService, TelegramToastSink
from services.order_feed import CustomerOrderFeed, RefreshCallback, StaffOrderFeed, SessionFactory
from services.order_status import OrderStatusService
from services.order_status_channel import OrderStatusChannel
from services.status_relay import RedisOrderStatusRelay

# Seconds status handlers get to finish before shutdown cancels them
SHUTDOWN_DRAIN_TIMEOUT = 5


class OrderPipeline:

    def __init__(
        self,
        channel: OrderStatusChannel | None = None,
        notification_service: NotificationService | None = None,
        cart_storage: CartStorage | None = None,
        relay: RedisOrderStatusRelay | None = None,
        session_factory: SessionFactory | None = None
    ):
        self.channel = channel or OrderStatusChannel()
        self.notification_service = notification_service or NotificationService([LoggingToastSink()])
        self.cart_storage = cart_storage or create_cart_storage()
        self.relay = relay
        self.session_factory = session_factory
        self.status_service = OrderStatusService(self.channel, relay=self.relay)

    @classmethod
    def from_config(cls) -> 'OrderPipeline':
        from db import session_maker

        sinks = [LoggingToastSink()]
        if config.TOKEN and config.STAFF_CHAT_ID_LIST:
            sinks.append(TelegramToastSink(config.STAFF_CHAT_ID_LIST))

        channel = OrderStatusChannel()
        relay = None
        if config.ORDER_STATUS_RELAY_ENABLED:
            redis = Redis(
                host=config.REDIS_HOST,
                port=config.REDIS_PORT,
                password=config.REDIS_PASSWORD,
                decode_responses=True
            )
            relay = RedisOrderStatusRelay(redis, channel)

        return cls(
            channel=channel,
            notification_service=NotificationService(sinks),
            relay=relay,
            session_factory=session_maker
        )

    def new_cart(self, session: SessionContext) -> CartStore:
        """Cart of one browsing session, stored under a per-user key when logged in."""
        storage_key = config.CART_STORAGE_KEY
        if session.is_authenticated:
            storage_key = f"{storage_key}:{session.user_id}"
        return CartStore(self.cart_storage, self.notification_service, storage_key=storage_key)

    def customer_feed(self, session: SessionContext, notification_service: NotificationService | None = None) -> CustomerOrderFeed:
        return CustomerOrderFeed(
            self.channel,
            notification_service or self.notification_service,
            session,
            session_factory=self.session_factory
        )

    def staff_feed(
        self,
        on_refresh: RefreshCallback | None = None,
        notification_service: NotificationService | None = None
    ) -> StaffOrderFeed:
        return StaffOrderFeed(
            self.channel,
            notification_service or self.notification_service,
            session_factory=self.session_factory,
            on_refresh=on_refresh
        )

    async def startup(self) -> None:
        await create_db_and_tables()
        if self.relay is not None:
            self.relay.start()
        logging.info("🚀 Order pipeline started")

    async def shutdown(self) -> None:
        """Release everything; a relay that fails to stop is logged and the rest still run."""
        if self.relay is not None:
            try:
                await self.relay.stop()
            except Exception as e:
                logging.error(f"Failed to stop status relay: {e}")
        self.channel.disconnect_all("shutdown")
        await self.channel.drain(timeout=SHUTDOWN_DRAIN_TIMEOUT)
        for sink in self.notification_service.sinks:
            if isinstance(sink, TelegramToastSink):
                await sink.drain()
        logging.info("Order pipeline stopped")
