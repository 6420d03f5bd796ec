import asyncio
import logging
from typing import Protocol

from aiogram import Bot

from models.cart import CustomizationDTO
from models.menu_item import MenuItemDTO
from models.notification import ToastDTO
from models.order import OrderReceiptDTO, OrderStatusEventDTO
from utils.html_escape import safe_html
from utils.money import format_money


class ToastSink(Protocol):
    def push(self, toast: ToastDTO) -> None:
        ...


class CollectingToastSink:
    """Keeps toasts in memory, in arrival order (a session's toast area)."""

    def __init__(self):
        self.toasts: list[ToastDTO] = []

    def push(self, toast: ToastDTO) -> None:
        self.toasts.append(toast)

    def clear(self) -> None:
        self.toasts.clear()


class LoggingToastSink:
    def push(self, toast: ToastDTO) -> None:
        logging.info(f"[Toast:{toast.variant.value}] {toast.title} - {toast.description}")


class TelegramToastSink:
    """
    Delivers toasts as Telegram messages to a fixed set of chats.

    push() only schedules the send on the running event loop; delivery
    failures are logged and never reach the caller.
    """

    def __init__(self, chat_ids: list[int], bot: Bot | None = None):
        self.chat_ids = list(chat_ids)
        self._bot = bot
        self._pending: set[asyncio.Task] = set()

    @property
    def bot(self) -> Bot:
        if self._bot is None:
            from bot_instance import get_bot
            self._bot = get_bot()
        return self._bot

    def push(self, toast: ToastDTO) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logging.warning(f"No running event loop - Telegram toast '{toast.title}' dropped")
            return

        message = f"<b>{safe_html(toast.title)}</b>"
        if toast.description:
            message += f"\n{safe_html(toast.description)}"
        for chat_id in self.chat_ids:
            task = loop.create_task(self._send(chat_id, message))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

    async def _send(self, chat_id: int, message: str) -> None:
        try:
            await self.bot.send_message(chat_id, message)
        except Exception as e:
            logging.error(f"Failed to deliver toast to chat {chat_id}: {e}")

    async def drain(self) -> None:
        """Wait for scheduled sends (used on shutdown)."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)


class NotificationService:
    """
    Fire-and-forget toast fan-out to the registered sinks.

    A failing sink is logged and skipped; notify() never raises.
    """

    def __init__(self, sinks: list[ToastSink] | None = None):
        self.sinks: list[ToastSink] = list(sinks or [])

    def add_sink(self, sink: ToastSink) -> None:
        self.sinks.append(sink)

    def remove_sink(self, sink: ToastSink) -> None:
        if sink in self.sinks:
            self.sinks.remove(sink)

    def notify(self, toast: ToastDTO) -> None:
        for sink in list(self.sinks):
            try:
                sink.push(toast)
            except Exception as e:
                logging.error(f"Toast sink {type(sink).__name__} failed: {e}")

    @staticmethod
    def cart_item_added(menu_item: MenuItemDTO, quantity: int, customization: CustomizationDTO) -> ToastDTO:
        description = customization.describe()
        name = f"{menu_item.name} ({description})" if description else menu_item.name
        return ToastDTO(title="Added to cart", description=f"{quantity} × {name} added to your cart.")

    @staticmethod
    def order_submitted(receipt: OrderReceiptDTO) -> ToastDTO:
        return ToastDTO.success(
            "Order Placed Successfully!",
            f"Order #{receipt.order_number} ({format_money(receipt.total)}) has been received and is being processed."
        )

    @staticmethod
    def order_submission_failed(error: Exception) -> ToastDTO:
        return ToastDTO.destructive(
            "Order failed",
            f"We couldn't place your order, your cart has been kept. Please try again. ({error})"
        )

    @staticmethod
    def order_status_changed_for_customer(event: OrderStatusEventDTO) -> ToastDTO:
        return ToastDTO.success(
            f"Order #{event.display_number} Status Updated",
            f"Your order status has been updated to: {event.new_status.value}"
        )

    @staticmethod
    def order_status_changed_for_staff(event: OrderStatusEventDTO) -> ToastDTO:
        previous = event.previous_status.value if event.previous_status else "unknown"
        return ToastDTO(
            title=f"Order #{event.display_number} updated",
            description=f"Status changed from {previous} to {event.new_status.value}"
        )

    @staticmethod
    def checkout_denied(reason_message: str) -> ToastDTO:
        return ToastDTO.destructive("Checkout unavailable", reason_message)
