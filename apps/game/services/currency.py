"""
Currency conversion service.

Receipts are posted in their local currency and guessed in USD. Conversion
uses a static rate table and rounds half-up to cents exactly once, when the
post is created, so re-deriving a total always gives the same value.
"""

from decimal import Decimal, ROUND_HALF_UP

from django.utils.formats import number_format

from .exceptions import UnsupportedCurrencyError

CENTS = Decimal('0.01')

# USD per one unit of each currency. Declaration order is the display order.
EXCHANGE_RATES = {
    'USD': Decimal('1'),
    'EUR': Decimal('1.07'),
    'GBP': Decimal('1.25'),
    'CAD': Decimal('0.74'),
    'AUD': Decimal('0.66'),
    'JPY': Decimal('0.0067'),
    'CHF': Decimal('1.09'),
    'CNY': Decimal('0.14'),
    'INR': Decimal('0.012'),
    'MXN': Decimal('0.059'),
}

CURRENCY_SYMBOLS = {
    'USD': '$',
    'EUR': '€',
    'GBP': '£',
    'CAD': 'C$',
    'AUD': 'A$',
    'JPY': '¥',
    'CHF': 'CHF',
    'CNY': '¥',
    'INR': '₹',
    'MXN': '$',
}


def to_decimal(value) -> Decimal:
    """Coerce ints, floats and numeric strings to Decimal without float noise."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_cents(amount) -> Decimal:
    return to_decimal(amount).quantize(CENTS, rounding=ROUND_HALF_UP)


def convert_to_usd(amount, currency: str) -> Decimal:
    """
    Convert an amount in ``currency`` to USD, rounded half-up to cents.

    Raises:
        UnsupportedCurrencyError: If the currency has no static rate

    Example:
        >>> convert_to_usd(Decimal('10.00'), 'EUR')
        Decimal('10.70')
    """
    rate = EXCHANGE_RATES.get(currency)
    if rate is None:
        raise UnsupportedCurrencyError(currency)
    return round_cents(to_decimal(amount) * rate)


def format_currency(amount, currency: str) -> str:
    """
    Format an amount for display, e.g. ``$1,234.50`` or ``€3.20``.

    Grouping follows the active locale. Codes without a known symbol are
    shown with the code itself as prefix. Never used for stored values.
    """
    value = round_cents(amount)
    symbol = CURRENCY_SYMBOLS.get(currency, f'{currency} ')
    formatted = number_format(value, decimal_pos=2, use_l10n=True, force_grouping=True)
    if value < 0:
        return f'-{symbol}{formatted.lstrip("-")}'
    return f'{symbol}{formatted}'


def get_supported_currencies() -> tuple:
    return tuple(EXCHANGE_RATES)
