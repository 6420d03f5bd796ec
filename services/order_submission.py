import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

import config
from db import session_commit, session_rollback
from enums.order_status import OrderStatus
from enums.payment_method import PaymentMethod
from enums.submission_step import SubmissionStep
from exceptions.order import OrderSubmissionFailedException, OrderNumberCollisionException
from models.cart import CartLineDTO
from models.checkout import DeliveryInfoDTO
from models.order import OrderDTO, OrderReceiptDTO
from models.order_item import OrderItemDTO
from models.order_item_addon import OrderItemAddonDTO
from repositories.order import OrderRepository
from repositories.order_item import OrderItemRepository
from repositories.order_item_addon import OrderItemAddonRepository
from services.cart import CartStore
from utils.order_number import generate_order_number
from utils.transaction_manager import TransactionManager


class OrderSubmissionService:

    @staticmethod
    async def submit(
        cart: CartStore,
        delivery_info: DeliveryInfoDTO,
        user_id: str | None,
        session: AsyncSession,
        payment_method: PaymentMethod = PaymentMethod.PAY_ON_DELIVERY,
        order_number: str | None = None,
        atomic: bool | None = None
    ) -> OrderReceiptDTO:
        """
        Turns the cart into an order header, order lines and line add-ons.

        Flow:
        1. Generate ORD-<timestamp>-<random> order number
        2. Write the order header (status=pending, total=cart total)
        3. Write one order line per cart line with the unit price resolved
           when the line was added to the cart
        4. Write one add-on row per add-on of each line, with its price
        5. Clear the cart and return the receipt

        Each step only starts once the previous write is acknowledged. An
        order number collision is retried with a fresh number.

        Sequential mode (default) commits after every step. If step 3 or 4
        fails, the rows already committed stay in place: the header can
        exist with missing lines. This is logged, not compensated.

        Atomic mode (config.ORDER_SUBMISSION_ATOMIC or atomic=True) flushes
        steps 2-4 inside one transaction and commits once, retrying the whole
        unit on collisions. Passing the order_number of an order that was
        already written for this user returns that order instead of writing
        a second one.

        Args:
            cart: The session's cart; cleared only on success
            delivery_info: Address, phone and notes from checkout
            user_id: Owning user (required)
            session: Database session
            payment_method: Fulfillment payment method
            order_number: Number to use for the first attempt (replays)
            atomic: Override config.ORDER_SUBMISSION_ATOMIC

        Returns:
            OrderReceiptDTO with order id, number and total

        Raises:
            OrderSubmissionFailedException: any step failed; cart untouched
        """
        atomic = config.ORDER_SUBMISSION_ATOMIC if atomic is None else atomic
        lines = list(cart.lines)
        total = cart.total

        if not user_id:
            raise OrderSubmissionFailedException(SubmissionStep.VALIDATE.value, ValueError("user id is required"))
        if not lines:
            raise OrderSubmissionFailedException(SubmissionStep.VALIDATE.value, ValueError("cart is empty"))

        header = OrderDTO(
            user_id=user_id,
            status=OrderStatus.PENDING,
            total_amount=total,
            delivery_address=delivery_info.address,
            delivery_phone=delivery_info.phone,
            delivery_notes=delivery_info.notes or None,
            payment_method=payment_method
        )

        if atomic:
            order = await OrderSubmissionService._submit_atomic(header, lines, order_number, session)
        else:
            order = await OrderSubmissionService._submit_sequential(header, lines, order_number, session)

        # 5. Everything is durable: only now may the cart go
        cart.clear()

        receipt = OrderReceiptDTO(
            order_id=order.id,
            order_number=order.order_number,
            total=order.total_amount,
            line_count=len(lines)
        )
        logging.info(
            f"✅ Order {receipt.order_number} submitted for user {user_id}: "
            f"{receipt.line_count} lines, total {receipt.total}"
        )
        return receipt

    @staticmethod
    async def _submit_sequential(
        header: OrderDTO,
        lines: list[CartLineDTO],
        order_number: str | None,
        session: AsyncSession
    ) -> OrderDTO:
        # 1 + 2. Header, committed on its own
        async def write_header(attempt: int) -> OrderDTO:
            number = OrderSubmissionService._number_for_attempt(order_number, attempt)
            try:
                order = await OrderRepository.create(header.model_copy(update={"order_number": number}), session)
                await session_commit(session)
            except IntegrityError as e:
                await session_rollback(session)
                if OrderSubmissionService._is_order_number_collision(e):
                    raise OrderNumberCollisionException(number) from e
                raise
            return order

        try:
            order = await TransactionManager.run_with_retry(
                write_header,
                retry_on=(OrderNumberCollisionException,),
                max_attempts=config.ORDER_NUMBER_MAX_ATTEMPTS
            )
        except Exception as e:
            await OrderSubmissionService._rollback_quietly(session)
            logging.error(f"❌ Order header write failed: {e}")
            raise OrderSubmissionFailedException(SubmissionStep.ORDER_HEADER.value, e) from e
        logging.info(f"💾 Order header {order.order_number} written (id={order.id}, status=pending)")

        # 3. Lines
        step = SubmissionStep.ORDER_LINES
        try:
            order_items = await OrderSubmissionService._write_lines(order.id, lines, session)
            await session_commit(session)

            # 4. Line add-ons
            step = SubmissionStep.ORDER_LINE_ADDONS
            addon_count = await OrderSubmissionService._write_line_addons(order_items, lines, session)
            if addon_count:
                await session_commit(session)
        except Exception as e:
            await OrderSubmissionService._rollback_quietly(session)
            logging.error(
                f"❌ Order {order.order_number} partially written: header committed, step '{step.value}' failed: {e}"
            )
            raise OrderSubmissionFailedException(step.value, e, order.order_number) from e

        logging.info(f"💾 Order {order.order_number}: {len(order_items)} lines, {addon_count} add-ons written")
        return order

    @staticmethod
    async def _submit_atomic(
        header: OrderDTO,
        lines: list[CartLineDTO],
        order_number: str | None,
        session: AsyncSession
    ) -> OrderDTO:
        if order_number:
            existing = await OrderRepository.get_by_order_number(order_number, session)
            if existing is not None and existing.user_id == header.user_id:
                logging.info(f"Order {order_number} already written - returning existing order")
                return existing

        step = SubmissionStep.ORDER_HEADER

        async def write_all(attempt: int) -> OrderDTO:
            nonlocal step
            number = OrderSubmissionService._number_for_attempt(order_number, attempt)
            step = SubmissionStep.ORDER_HEADER
            try:
                async with TransactionManager.atomic_transaction(session):
                    order = await OrderRepository.create(header.model_copy(update={"order_number": number}), session)
                    step = SubmissionStep.ORDER_LINES
                    order_items = await OrderSubmissionService._write_lines(order.id, lines, session)
                    step = SubmissionStep.ORDER_LINE_ADDONS
                    await OrderSubmissionService._write_line_addons(order_items, lines, session)
            except IntegrityError as e:
                if step == SubmissionStep.ORDER_HEADER and OrderSubmissionService._is_order_number_collision(e):
                    raise OrderNumberCollisionException(number) from e
                raise
            return order

        try:
            order = await TransactionManager.run_with_retry(
                write_all,
                retry_on=(OrderNumberCollisionException,),
                max_attempts=config.ORDER_NUMBER_MAX_ATTEMPTS
            )
        except Exception as e:
            logging.error(f"❌ Atomic order submission failed at step '{step.value}', nothing committed: {e}")
            raise OrderSubmissionFailedException(step.value, e) from e
        return order

    @staticmethod
    async def _write_lines(order_id: str, lines: list[CartLineDTO], session: AsyncSession) -> list[OrderItemDTO]:
        order_items = [
            OrderItemDTO(
                order_id=order_id,
                item_id=line.menu_item.id,
                variation_id=line.customization.variation_id,
                line_index=index,
                quantity=line.quantity,
                price=line.unit_price,
                notes=line.customization.describe() or None
            )
            for index, line in enumerate(lines)
        ]
        return await OrderItemRepository.create_many(order_items, session)

    @staticmethod
    async def _write_line_addons(
        order_items: list[OrderItemDTO],
        lines: list[CartLineDTO],
        session: AsyncSession
    ) -> int:
        # create_many returns rows in input order, so order_items[i] belongs to lines[i]
        addon_rows = [
            OrderItemAddonDTO(order_item_id=order_item.id, addon_id=addon.id, price=addon.price)
            for order_item, line in zip(order_items, lines)
            for addon in line.customization.addons
        ]
        if addon_rows:
            await OrderItemAddonRepository.create_many(addon_rows, session)
        return len(addon_rows)

    @staticmethod
    def _number_for_attempt(order_number: str | None, attempt: int) -> str:
        if order_number and attempt == 1:
            return order_number
        return generate_order_number()

    @staticmethod
    def _is_order_number_collision(error: IntegrityError) -> bool:
        # SQLite: "UNIQUE constraint failed: orders.order_number"
        # PostgreSQL: "... unique constraint "orders_order_number_key""
        message = str(error.orig).lower()
        return "order_number" in message and "unique" in message

    @staticmethod
    async def _rollback_quietly(session: AsyncSession) -> None:
        try:
            await session_rollback(session)
        except Exception as rollback_error:
            logging.critical(f"Failed to rollback after submission error: {rollback_error}")
