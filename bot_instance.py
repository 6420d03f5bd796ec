"""
Shared Telegram Bot used by TelegramToastSink to deliver staff and customer
toasts as chat messages.

The bot is created lazily on first use, so importing this module never
requires a token.
"""

from aiogram import Bot
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode

import config

_bot_instance: Bot | None = None


def get_bot() -> Bot:
    """
    Raises:
        RuntimeError: TOKEN is not configured
    """
    global _bot_instance
    if _bot_instance is None:
        if not config.TOKEN:
            raise RuntimeError("TOKEN is not configured - Telegram toasts are unavailable")
        _bot_instance = Bot(
            token=config.TOKEN,
            default=DefaultBotProperties(parse_mode=ParseMode.HTML)
        )
    return _bot_instance


async def close_bot() -> None:
    global _bot_instance
    if _bot_instance is not None:
        await _bot_instance.session.close()
        _bot_instance = None
