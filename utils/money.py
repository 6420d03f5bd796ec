from decimal import Decimal, ROUND_HALF_UP

import config

CENT = Decimal("0.01")


def quantize_money(amount: Decimal) -> Decimal:
    """Round to currency minor units (two places, half up)."""
    return Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


def format_money(amount: Decimal) -> str:
    """
    Format an amount for toasts and receipts.

    Examples:
        Decimal("14.25") → "£14.25"
        Decimal("1080") → "£1,080.00"
    """
    return f"{config.CURRENCY_SYMBOL}{quantize_money(amount):,.2f}"
