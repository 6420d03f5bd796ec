"""
Session-side consumers of the order status channel.

A feed owns at most one subscription. connect() opens it, close() releases
it, and reconnect() re-opens a dropped subscription and re-fetches the
order list, since events published while disconnected are never replayed.
"""

import inspect
import logging
from typing import Awaitable, Callable

from sqlalchemy.ext.asyncio import AsyncSession

from models.order import OrderDTO, OrderStatusEventDTO
from models.session import SessionContext
from services.notification import NotificationService
from services.order_status import OrderStatusService
from services.order_status_channel import OrderStatusChannel, Subscription, STAFF_TOPIC, user_topic

RefreshCallback = Callable[[list[OrderDTO]], Awaitable[None] | None]
SessionFactory = Callable[[], AsyncSession]


class OrderFeed:
    topic: str

    def __init__(
        self,
        channel: OrderStatusChannel,
        notification_service: NotificationService,
        session_factory: SessionFactory | None = None
    ):
        self.channel = channel
        self.notification_service = notification_service
        self.session_factory = session_factory
        self.orders: list[OrderDTO] = []
        self._subscription: Subscription | None = None

    @property
    def is_connected(self) -> bool:
        return self._subscription is not None and self._subscription.active

    def connect(self) -> Subscription:
        if self.is_connected:
            return self._subscription
        self._subscription = self.channel.open(self.topic, self.handle_event)
        logging.info(f"{type(self).__name__} connected to '{self.topic}'")
        return self._subscription

    async def reconnect(self) -> list[OrderDTO]:
        """Re-open the subscription if it dropped, then re-fetch the orders."""
        if not self.is_connected:
            if self._subscription is not None and self._subscription.disconnect_reason:
                logging.info(f"{type(self).__name__} reconnecting after: {self._subscription.disconnect_reason}")
            self._subscription = None
            self.connect()
        return await self.refresh()

    def close(self) -> None:
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None

    async def refresh(self) -> list[OrderDTO]:
        if self.session_factory is None:
            return self.orders
        async with self.session_factory() as session:
            self.orders = await self.fetch_orders(session)
        return self.orders

    async def fetch_orders(self, session: AsyncSession) -> list[OrderDTO]:
        raise NotImplementedError

    async def handle_event(self, event: OrderStatusEventDTO) -> None:
        raise NotImplementedError

    async def __aenter__(self) -> 'OrderFeed':
        self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


class CustomerOrderFeed(OrderFeed):
    """Toasts status changes of the signed-in customer's own orders."""

    def __init__(
        self,
        channel: OrderStatusChannel,
        notification_service: NotificationService,
        session: SessionContext,
        session_factory: SessionFactory | None = None
    ):
        super().__init__(channel, notification_service, session_factory)
        if not session.is_authenticated:
            raise ValueError("CustomerOrderFeed requires an authenticated session")
        self.user_id = session.user_id
        self.topic = user_topic(session.user_id)

    async def fetch_orders(self, session: AsyncSession) -> list[OrderDTO]:
        return await OrderStatusService.list_orders_for_user(self.user_id, session)

    async def handle_event(self, event: OrderStatusEventDTO) -> None:
        if event.user_id != self.user_id:
            return
        self.notification_service.notify(NotificationService.order_status_changed_for_customer(event))


class StaffOrderFeed(OrderFeed):
    """Dashboard toast plus an order table refresh for every status change."""

    topic = STAFF_TOPIC

    def __init__(
        self,
        channel: OrderStatusChannel,
        notification_service: NotificationService,
        session_factory: SessionFactory | None = None,
        on_refresh: RefreshCallback | None = None
    ):
        super().__init__(channel, notification_service, session_factory)
        self.on_refresh = on_refresh

    async def fetch_orders(self, session: AsyncSession) -> list[OrderDTO]:
        return await OrderStatusService.list_orders(session)

    async def refresh(self) -> list[OrderDTO]:
        orders = await super().refresh()
        if self.on_refresh is not None:
            result = self.on_refresh(orders)
            if inspect.isawaitable(result):
                await result
        return orders

    async def handle_event(self, event: OrderStatusEventDTO) -> None:
        self.notification_service.notify(NotificationService.order_status_changed_for_staff(event))
        await self.refresh()
