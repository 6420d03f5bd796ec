"""
Centralized Logging Configuration

Provides production-ready logging with:
- Configurable log levels
- Automatic log rotation
- Masking of secrets and customer PII (delivery address, phone, email)
"""

import logging
import logging.handlers
import re
from pathlib import Path
from typing import Pattern

import config


class SecretMaskingFilter(logging.Filter):
    """
    Logging filter that masks sensitive data in log records.

    Masks:
    - Bot tokens and bearer tokens
    - Passwords
    - Email addresses
    - Phone numbers
    - Delivery addresses
    """

    PATTERNS: list[tuple[Pattern, str]] = [
        # Tokens
        (re.compile(r'(token["\']?\s*[:=]\s*["\']?)([A-Za-z0-9_\-:]{20,})(["\']?)', re.IGNORECASE), r'\1[REDACTED_TOKEN]\3'),
        (re.compile(r'(Bearer\s+)([A-Za-z0-9_\-\.]+)', re.IGNORECASE), r'\1[REDACTED_BEARER_TOKEN]'),

        # Passwords
        (re.compile(r'(password["\']?\s*[:=]\s*["\']?)([^\s"\']+)(["\']?)', re.IGNORECASE), r'\1[REDACTED_PASSWORD]\3'),

        # Email addresses (PII)
        (re.compile(r'\b([a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,})\b'), '[REDACTED_EMAIL]'),

        # Delivery addresses and phone fields (key=value or JSON style)
        (re.compile(r'(address["\']?\s*[:=]\s*["\']?)([^"\']{4,})(["\']?)', re.IGNORECASE), r'\1[REDACTED_ADDRESS]\3'),
        (re.compile(r'(phone["\']?\s*[:=]\s*["\']?)([^"\',\s]{4,})(["\']?)', re.IGNORECASE), r'\1[REDACTED_PHONE]\3'),

        # Free-standing phone numbers (various formats)
        (re.compile(r'(?<![\w-])(\+?\d{1,3}[-.\s]?)?\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}\b'), '[REDACTED_PHONE]'),
    ]

    @classmethod
    def mask(cls, text: str) -> str:
        for pattern, replacement in cls.PATTERNS:
            text = pattern.sub(replacement, text)
        return text

    def filter(self, record: logging.LogRecord) -> bool:
        # Rewrites the record in place; never drops it
        if record.msg:
            record.msg = self.mask(str(record.msg))
        if isinstance(record.args, tuple):
            record.args = tuple(self.mask(arg) if isinstance(arg, str) else arg for arg in record.args)
        return True


LOG_FORMAT = '%(asctime)s | %(name)-25s | %(levelname)-8s | %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'
LOG_FILE = Path("logs") / "orders.log"

# Libraries that log every statement or request at DEBUG
NOISY_LOGGERS = ("aiosqlite", "sqlalchemy.engine", "aiogram.event")


def _build_handlers(level: int, retention_days: int, mask_secrets: bool) -> list[logging.Handler]:
    LOG_FILE.parent.mkdir(exist_ok=True)
    handlers: list[logging.Handler] = [
        logging.handlers.TimedRotatingFileHandler(
            filename=LOG_FILE,
            when="midnight",
            backupCount=retention_days,
            encoding="utf-8"
        ),
        logging.StreamHandler(),
    ]
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.setLevel(level)
        if mask_secrets:
            handler.addFilter(SecretMaskingFilter())
    return handlers


def setup_logging():
    """
    Configure the root logger once at process start: daily rotated
    logs/orders.log plus console, both masked when config.LOG_MASK_SECRETS.
    """
    level_name = getattr(config, "LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    retention_days = getattr(config, "LOG_RETENTION_DAYS", 7)
    mask_secrets = getattr(config, "LOG_MASK_SECRETS", True)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
    for handler in _build_handlers(level, retention_days, mask_secrets):
        root_logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.info(
        f"Logging initialized: level={level_name}, retention={retention_days} days, "
        f"masking={'on' if mask_secrets else 'off'}"
    )
