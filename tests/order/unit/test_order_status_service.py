"""
Unit Tests: OrderStatusService

Staff-only status writes, operator overrides, event publishing and the
read side used for re-fetching.
"""

import asyncio
import logging
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from enums.order_status import OrderStatus
from exceptions.order import OrderNotFoundException, StatusUpdateForbiddenException
from models.order import OrderDTO
from repositories.order import OrderRepository
from services.notification import CollectingToastSink, NotificationService
from services.order_feed import CustomerOrderFeed
from services.order_status import OrderStatusService
from services.order_status_channel import OrderStatusChannel, STAFF_TOPIC


@pytest.fixture
def channel():
    return OrderStatusChannel()


@pytest.fixture
def status_service(channel):
    return OrderStatusService(channel)


@pytest_asyncio.fixture
async def order(test_session):
    order = await OrderRepository.create(OrderDTO(
        user_id="user-1",
        order_number="ORD-123456-001",
        status=OrderStatus.PENDING,
        total_amount=Decimal("27.00")
    ), test_session)
    await test_session.commit()
    return order


class TestUpdateStatus:

    @pytest.mark.asyncio
    async def test_skipping_preparing_is_accepted_and_customer_notified(
        self, test_session, channel, status_service, staff_session, customer_session, order, caplog
    ):
        customer_sink = CollectingToastSink()
        feed = CustomerOrderFeed(channel, NotificationService([customer_sink]), customer_session)
        feed.connect()

        with caplog.at_level(logging.WARNING):
            event = await status_service.update_status(order.id, OrderStatus.READY, staff_session, test_session)
        await channel.drain()

        assert event.previous_status == OrderStatus.PENDING
        assert event.new_status == OrderStatus.READY
        assert (await OrderStatusService.get_order(order.id, test_session)).status == OrderStatus.READY
        assert "ORDER_STATUS_OVERRIDE" in caplog.text
        assert len(customer_sink.toasts) == 1
        assert customer_sink.toasts[0].title == "Order #ORD-123456-001 Status Updated"
        assert "ready" in customer_sink.toasts[0].description

    @pytest.mark.asyncio
    async def test_terminal_status_can_be_overridden(self, test_session, status_service, staff_session, order):
        await status_service.update_status(order.id, OrderStatus.DELIVERED, staff_session, test_session)

        event = await status_service.update_status(order.id, "pending", staff_session, test_session)

        assert event.previous_status == OrderStatus.DELIVERED
        assert (await OrderStatusService.get_order(order.id, test_session)).status == OrderStatus.PENDING

    @pytest.mark.asyncio
    async def test_customer_cannot_change_status(
        self, test_session, channel, status_service, customer_session, order
    ):
        handler = AsyncMock()
        channel.open(STAFF_TOPIC, handler)

        with pytest.raises(StatusUpdateForbiddenException) as exc_info:
            await status_service.update_status(order.id, OrderStatus.CANCELLED, customer_session, test_session)

        assert exc_info.value.user_id == "user-1"
        assert (await OrderStatusService.get_order(order.id, test_session)).status == OrderStatus.PENDING
        handler.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_order(self, test_session, status_service, staff_session):
        with pytest.raises(OrderNotFoundException):
            await status_service.update_status("missing", OrderStatus.READY, staff_session, test_session)

    @pytest.mark.asyncio
    async def test_unknown_status_string(self, test_session, status_service, staff_session, order):
        with pytest.raises(ValueError):
            await status_service.update_status(order.id, "burnt", staff_session, test_session)

    @pytest.mark.asyncio
    async def test_event_published_to_staff_and_relay(
        self, test_session, channel, staff_session, order
    ):
        relay = AsyncMock()
        service = OrderStatusService(channel, relay=relay)
        staff_events = []
        channel.open(STAFF_TOPIC, staff_events.append)

        event = await service.update_status(order.id, OrderStatus.PREPARING, staff_session, test_session)

        assert staff_events == [event]
        assert event.changed_by == "staff-1"
        relay.publish.assert_awaited_once_with(event)

    @pytest.mark.asyncio
    async def test_stalled_subscriber_does_not_hold_up_write(
        self, test_session, channel, staff_session, order
    ):
        relay = AsyncMock()
        service = OrderStatusService(channel, relay=relay)
        never_set = asyncio.Event()

        async def stalled_dashboard(event):
            await never_set.wait()

        channel.open(STAFF_TOPIC, stalled_dashboard)

        event = await asyncio.wait_for(
            service.update_status(order.id, OrderStatus.READY, staff_session, test_session),
            timeout=1.0
        )

        assert (await OrderStatusService.get_order(order.id, test_session)).status == OrderStatus.READY
        relay.publish.assert_awaited_once_with(event)
        assert channel.pending_deliveries == 1
        await channel.drain(timeout=0.01)


class TestReadSide:

    @pytest.mark.asyncio
    async def test_list_orders_filters(self, test_session, order):
        other = await OrderRepository.create(OrderDTO(
            user_id="user-2",
            order_number="ORD-123456-002",
            status=OrderStatus.READY,
            total_amount=Decimal("5.00")
        ), test_session)
        await test_session.commit()

        assert {o.id for o in await OrderStatusService.list_orders(test_session)} == {order.id, other.id}
        assert [o.id for o in await OrderStatusService.list_orders(test_session, OrderStatus.READY)] == [other.id]
        assert [o.id for o in await OrderStatusService.list_orders_for_user("user-1", test_session)] == [order.id]

    @pytest.mark.asyncio
    async def test_get_missing_order(self, test_session):
        with pytest.raises(OrderNotFoundException):
            await OrderStatusService.get_order("missing", test_session)

    @pytest.mark.asyncio
    async def test_order_without_lines(self, test_session, order):
        assert await OrderStatusService.get_order_lines(order.id, test_session) == []
