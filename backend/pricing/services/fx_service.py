from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional

from ..dataclasses import Money
from .pricing_rules import default_rate_for
from .utils import ZERO, money, safe_d

logger = logging.getLogger(__name__)

BASE_CURRENCY = "CNY"
SUPPORTED_CURRENCIES = ("CNY", "USD", "EUR", "GBP", "JPY", "KRW", "SGD", "HKD")
DEFAULT_DISPLAY_CURRENCY = "USD"
# CNY per 1 USD, used when neither the caller nor the rules table has a rate.
DEFAULT_EXCHANGE_RATE = Decimal("7.2")


def usable_rate(rate: Any) -> Optional[Decimal]:
    value = safe_d(rate)
    if value is None or value <= ZERO:
        return None
    return value


def resolve_rate(currency: str, rate: Any = None) -> Decimal:
    """
    CNY per one unit of ``currency``.

    Uses ``rate`` when it is a positive finite number, then the configured
    default for the currency, then DEFAULT_EXCHANGE_RATE.
    """
    currency = (currency or DEFAULT_DISPLAY_CURRENCY).upper()
    if currency == BASE_CURRENCY:
        return Decimal("1")
    value = usable_rate(rate)
    if value is not None:
        return value
    value = default_rate_for(currency)
    if value is None:
        value = DEFAULT_EXCHANGE_RATE
    logger.warning("No usable %s exchange rate supplied (%r); using %s", currency, rate, value)
    return value


def convert_currency(cny_amount: Any, target_currency: str, rate: Any = None) -> Decimal:
    """
    Project a CNY amount into ``target_currency``.

    ``rate`` is CNY per one unit of the target currency. CNY returns the
    amount unchanged whatever the rate. Other currencies are rounded to cents.
    """
    amount = safe_d(cny_amount)
    if amount is None:
        logger.warning("convert_currency got a non-numeric amount %r; using 0", cny_amount)
        amount = ZERO
    target = (target_currency or DEFAULT_DISPLAY_CURRENCY).upper()
    if target == BASE_CURRENCY:
        return amount
    return money(amount / resolve_rate(target, rate))


class FxConverter:
    """
    Converts Money between currencies through the CNY basis.

    ``rates`` maps currency code -> CNY per unit. Missing currencies fall
    back through :func:`resolve_rate`.
    """

    def __init__(self, rates: Optional[Mapping[str, Any]] = None):
        self.rates: Dict[str, Any] = {k.upper(): v for k, v in (rates or {}).items()}

    def cny_per_unit(self, currency: str) -> Decimal:
        currency = currency.upper()
        return resolve_rate(currency, self.rates.get(currency))

    def rate(self, base_ccy: str, quote_ccy: str) -> Decimal:
        """Units of ``quote_ccy`` per unit of ``base_ccy``."""
        base_ccy = base_ccy.upper()
        quote_ccy = quote_ccy.upper()
        if base_ccy == quote_ccy:
            return Decimal("1")
        return self.cny_per_unit(base_ccy) / self.cny_per_unit(quote_ccy)

    def to_cny(self, amount: Money) -> Money:
        if amount.currency.upper() == BASE_CURRENCY:
            return Money(amount.amount, BASE_CURRENCY)
        return Money(money(amount.amount * self.cny_per_unit(amount.currency)), BASE_CURRENCY)

    def convert(self, amount: Money, to_ccy: str) -> Money:
        to_ccy = to_ccy.upper()
        if amount.currency.upper() == to_ccy:
            return amount
        cny = self.to_cny(amount)
        return Money(convert_currency(cny.amount, to_ccy, self.rates.get(to_ccy)), to_ccy)
