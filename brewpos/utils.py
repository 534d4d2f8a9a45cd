from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings

CENT = Decimal('0.01')


def brewpos_setting(name):
    return settings.BREWPOS[name]


def to_money(value):
    """Round any number to two decimal places (half up)."""
    if value is None:
        value = 0
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def format_currency(value):
    """Format a money value the way receipts and reports show it, e.g. ₱1,234.50"""
    symbol = brewpos_setting('CURRENCY_SYMBOL')
    amount = to_money(value)
    sign = '-' if amount < 0 else ''
    return f"{sign}{symbol}{abs(amount):,.2f}"
