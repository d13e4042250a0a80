from decimal import Decimal

import pytest

from apps.game.services.currency import (
    EXCHANGE_RATES,
    convert_to_usd,
    format_currency,
    get_supported_currencies,
    round_cents,
)
from apps.game.services.exceptions import UnsupportedCurrencyError


class TestConvertToUsd:

    def test_usd_is_identity(self):
        assert convert_to_usd(Decimal('3.50'), 'USD') == Decimal('3.50')

    @pytest.mark.parametrize('amount, currency, expected', [
        ('10.00', 'EUR', '10.70'),
        ('1000', 'JPY', '6.70'),
        ('100', 'INR', '1.20'),
        ('20', 'GBP', '25.00'),
        ('50', 'MXN', '2.95'),
    ])
    def test_static_rates(self, amount, currency, expected):
        assert convert_to_usd(Decimal(amount), currency) == Decimal(expected)

    @pytest.mark.parametrize('currency', list(EXCHANGE_RATES))
    def test_zero_converts_to_zero(self, currency):
        assert convert_to_usd(0, currency) == Decimal('0.00')

    def test_rounds_half_up_to_cents(self):
        # 1.006 GBP = 1.2575 USD
        assert convert_to_usd(Decimal('1.006'), 'GBP') == Decimal('1.26')
        # 1.002 GBP = 1.2525 USD
        assert convert_to_usd(Decimal('1.002'), 'GBP') == Decimal('1.25')

    def test_accepts_floats_without_binary_noise(self):
        assert convert_to_usd(0.1 + 0.2, 'USD') == Decimal('0.30')

    def test_deterministic(self):
        results = {convert_to_usd(Decimal('123.45'), 'CAD') for _ in range(5)}
        assert results == {Decimal('91.35')}

    def test_unknown_currency(self):
        with pytest.raises(UnsupportedCurrencyError) as exc_info:
            convert_to_usd(Decimal('1'), 'XYZ')

        assert str(exc_info.value) == 'Unsupported currency: XYZ'


class TestRoundCents:

    def test_half_up(self):
        assert round_cents('0.005') == Decimal('0.01')
        assert round_cents('2.675') == Decimal('2.68')


class TestFormatCurrency:

    def test_grouping_and_symbol(self):
        assert format_currency(Decimal('1234.5'), 'USD') == '$1,234.50'

    def test_euro(self):
        assert format_currency(Decimal('3.2'), 'EUR') == '€3.20'

    def test_unknown_code_is_used_as_prefix(self):
        assert format_currency(Decimal('5'), 'XYZ') == 'XYZ 5.00'

    def test_negative_amount(self):
        assert format_currency(Decimal('-5'), 'USD') == '-$5.00'


class TestSupportedCurrencies:

    def test_declaration_order(self):
        assert get_supported_currencies() == (
            'USD', 'EUR', 'GBP', 'CAD', 'AUD', 'JPY', 'CHF', 'CNY', 'INR', 'MXN',
        )
