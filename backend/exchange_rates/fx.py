from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
import json
import logging
import os
from typing import Dict, Iterable, List, Optional

from django.utils.timezone import now

from pricing.services.fx_service import BASE_CURRENCY
from pricing.services.utils import d

from .models import ExchangeRate

logger = logging.getLogger(__name__)


@dataclass
class MidRate:
    base: str
    quote: str
    rate: Decimal
    as_of: datetime


class FXProvider:
    source = "manual"

    def get_mid_rate(self, base: str, quote: str) -> MidRate:
        raise NotImplementedError


class EnvProvider(FXProvider):
    """
    Reads rates from the FX_RATES env var as JSON.
    Example:
      FX_RATES='{"USD": {"CNY": 7.2}, "EUR": {"CNY": 7.8}, "CNY": {"JPY": 20.8}}'
    """

    source = "env"

    def __init__(self, as_of: datetime | None = None):
        self.as_of = as_of or now()
        blob = os.environ.get("FX_RATES", "{}")
        try:
            self.table: Dict[str, Dict[str, float]] = json.loads(blob)
        except ValueError:
            logger.exception("Invalid FX_RATES JSON; falling back to empty table")
            self.table = {}

    def get_mid_rate(self, base: str, quote: str) -> MidRate:
        base = base.upper(); quote = quote.upper()
        r = None
        if self.table.get(base, {}).get(quote) is not None:
            r = d(self.table[base][quote])
        elif self.table.get(quote, {}).get(base) is not None:
            # Use reciprocal if only reverse is provided
            val = d(self.table[quote][base])
            if val:
                r = Decimal(1) / val
        if r is None:
            raise ValueError(f"No rate configured in FX_RATES for {base}->{quote}")
        return MidRate(base=base, quote=quote, rate=r, as_of=self.as_of)


def upsert_rate(base: str, quote: str, rate: Decimal, source: str) -> ExchangeRate:
    obj, _ = ExchangeRate.objects.update_or_create(
        base_currency=base.upper(),
        target_currency=quote.upper(),
        defaults={"rate": d(rate), "source": source, "is_active": True},
    )
    return obj


def refresh_rates(currencies: Iterable[str], provider: FXProvider) -> List[Dict]:
    """
    Fetch CNY rates for ``currencies`` and persist one row per currency.

    Each row reads ``1 <currency> = rate CNY``. Provider errors propagate so
    the caller can decide whether to fall back.
    """
    results: List[Dict] = []
    for currency in currencies:
        currency = currency.strip().upper()
        if not currency or currency == BASE_CURRENCY:
            continue
        mr = provider.get_mid_rate(currency, BASE_CURRENCY)
        if mr.rate <= 0:
            logger.warning("Ignoring non-positive %s->%s rate %s from %s", mr.base, mr.quote, mr.rate, provider.source)
            continue
        upsert_rate(mr.base, mr.quote, mr.rate, provider.source)
        results.append({
            "pair": f"{mr.base}->{mr.quote}",
            "as_of": mr.as_of.isoformat(),
            "rate": str(mr.rate),
            "source": provider.source,
        })
    return results


def get_cny_rate(currency: str, fallback: Optional[Decimal] = None) -> Optional[Decimal]:
    """
    CNY per one unit of ``currency`` from the stored active rates.

    Falls back to the reciprocal of a stored CNY->currency row, then to
    ``fallback``.
    """
    currency = (currency or "").upper()
    if currency == BASE_CURRENCY:
        return Decimal(1)
    row = ExchangeRate.objects.filter(
        base_currency=currency, target_currency=BASE_CURRENCY, is_active=True
    ).first()
    if row and row.rate > 0:
        return row.rate
    row = ExchangeRate.objects.filter(
        base_currency=BASE_CURRENCY, target_currency=currency, is_active=True
    ).first()
    if row and row.rate > 0:
        return Decimal(1) / row.rate
    logger.info("No stored %s rate; using fallback %s", currency, fallback)
    return fallback


def stored_cny_rates() -> Dict[str, Decimal]:
    """All active rates as currency -> CNY per unit, for FxConverter."""
    table: Dict[str, Decimal] = {}
    for row in ExchangeRate.objects.filter(is_active=True):
        if row.rate <= 0:
            continue
        if row.target_currency == BASE_CURRENCY:
            table[row.base_currency] = row.rate
        elif row.base_currency == BASE_CURRENCY:
            table.setdefault(row.target_currency, Decimal(1) / row.rate)
    return table
