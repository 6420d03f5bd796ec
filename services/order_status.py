import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy.ext.asyncio import AsyncSession

from db import session_commit
from enums.order_status import OrderStatus
from exceptions.order import OrderNotFoundException, StatusUpdateForbiddenException
from models.order import OrderDTO, OrderStatusEventDTO
from models.order_item import OrderLineDetailsDTO
from models.session import SessionContext
from repositories.order import OrderRepository
from repositories.order_item import OrderItemRepository
from repositories.order_item_addon import OrderItemAddonRepository
from services.order_status_channel import OrderStatusChannel
from utils.order_state_machine import OrderStateMachine

if TYPE_CHECKING:
    from services.status_relay import RedisOrderStatusRelay


class OrderStatusService:
    """
    Staff status writes plus the read side used by order feeds.

    Every write is followed by a publish on the channel (and the Redis relay
    when one is configured). The read methods are the authoritative way to
    catch up after missed events.
    """

    def __init__(self, channel: OrderStatusChannel, relay: 'RedisOrderStatusRelay | None' = None):
        self.channel = channel
        self.relay = relay

    async def update_status(
        self,
        order_id: str,
        new_status: OrderStatus | str,
        actor: SessionContext,
        session: AsyncSession
    ) -> OrderStatusEventDTO:
        """
        Set an order's status (staff only).

        Any status may be set from any status; moves outside the nominal
        pending -> preparing -> ready -> delivered flow are logged as
        operator overrides.

        Args:
            order_id: Order to update
            new_status: Target status (enum or its string value)
            actor: Session performing the change
            session: Database session

        Returns:
            The published OrderStatusEventDTO

        Raises:
            StatusUpdateForbiddenException: actor is not staff
            OrderNotFoundException: no such order
            ValueError: unknown status string
        """
        if not actor.is_staff:
            logging.warning(f"Rejected status change of order {order_id} by non-staff user {actor.user_id}")
            raise StatusUpdateForbiddenException(order_id, actor.user_id)

        if isinstance(new_status, str) and not isinstance(new_status, OrderStatus):
            new_status = OrderStatus.from_string(new_status)

        order = await OrderRepository.get_by_id(order_id, session)
        if order is None:
            raise OrderNotFoundException(order_id)

        OrderStateMachine.log_transition(order_id, order.status, new_status, staff_id=actor.user_id)

        updated = await OrderRepository.update_status(order_id, new_status, session)
        if updated == 0:
            raise OrderNotFoundException(order_id)
        await session_commit(session)

        event = OrderStatusEventDTO(
            order_id=order_id,
            order_number=order.order_number,
            user_id=order.user_id,
            previous_status=order.status,
            new_status=new_status,
            changed_by=actor.user_id,
            changed_at=datetime.now(timezone.utc)
        )
        await self.channel.publish(event)
        if self.relay is not None:
            await self.relay.publish(event)
        return event

    @staticmethod
    async def get_order(order_id: str, session: AsyncSession) -> OrderDTO:
        order = await OrderRepository.get_by_id(order_id, session)
        if order is None:
            raise OrderNotFoundException(order_id)
        return order

    @staticmethod
    async def list_orders(session: AsyncSession, status: OrderStatus | None = None) -> list[OrderDTO]:
        """All orders, newest first (staff table)."""
        return await OrderRepository.get_all(session, status)

    @staticmethod
    async def list_orders_for_user(user_id: str, session: AsyncSession) -> list[OrderDTO]:
        return await OrderRepository.get_by_user_id(user_id, session)

    @staticmethod
    async def get_order_lines(order_id: str, session: AsyncSession) -> list[OrderLineDetailsDTO]:
        """Order lines in cart order, each with its captured add-ons."""
        lines = await OrderItemRepository.get_by_order_id(order_id, session)
        addons = await OrderItemAddonRepository.get_by_order_item_ids([line.id for line in lines], session)

        addons_by_line = {}
        for addon in addons:
            addons_by_line.setdefault(addon.order_item_id, []).append(addon)
        return [OrderLineDetailsDTO(line=line, addons=addons_by_line.get(line.id, [])) for line in lines]
