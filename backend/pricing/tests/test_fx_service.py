from decimal import Decimal
from unittest.mock import patch

import pytest

from ..dataclasses import Money
from ..services.fx_service import (
    DEFAULT_EXCHANGE_RATE,
    FxConverter,
    convert_currency,
    resolve_rate,
)


class TestConvertCurrency:

    def test_cny_to_usd(self):
        assert convert_currency(Decimal("720"), "USD", Decimal("7.2")) == Decimal("100.00")

    @pytest.mark.parametrize("rate", [Decimal("7.2"), 0, None, "garbage"])
    def test_cny_is_identity(self, rate):
        assert convert_currency(Decimal("123.456"), "CNY", rate) == Decimal("123.456")

    @pytest.mark.parametrize("rate", [0, "abc", -1, Decimal("NaN")])
    def test_invalid_rate_uses_default(self, rate):
        with patch('pricing.services.fx_service.logger') as log:
            assert convert_currency(Decimal("720"), "USD", rate) == Decimal("100.00")
        log.warning.assert_called_once()
        assert "No usable %s exchange rate" in log.warning.call_args[0][0]

    def test_configured_default_for_currency(self):
        assert convert_currency(Decimal("780"), "EUR", None) == Decimal("100.00")

    def test_unknown_currency_uses_global_default(self):
        assert resolve_rate("XYZ") == DEFAULT_EXCHANGE_RATE

    def test_non_numeric_amount_counts_as_zero(self):
        assert convert_currency("n/a", "USD", Decimal("7.2")) == Decimal("0.00")


class TestFxConverter:

    def test_cross_rate_through_cny(self):
        fx = FxConverter({"usd": "7.2", "EUR": "7.8"})
        assert fx.convert(Money(Decimal("100"), "USD"), "EUR") == Money(Decimal("92.31"), "EUR")

    def test_to_cny(self):
        fx = FxConverter({"USD": Decimal("7.2")})
        assert fx.to_cny(Money(Decimal("10"), "USD")) == Money(Decimal("72.00"), "CNY")

    def test_same_currency_untouched(self):
        fx = FxConverter()
        amount = Money(Decimal("5.555"), "USD")
        assert fx.convert(amount, "usd") is amount
        assert fx.rate("USD", "USD") == Decimal("1")
