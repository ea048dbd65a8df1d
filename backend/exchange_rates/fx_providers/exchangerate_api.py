from __future__ import annotations

from decimal import Decimal
from typing import Dict, Optional

import requests
from django.conf import settings
from django.utils.timezone import now

from exchange_rates.fx import FXProvider, MidRate
from pricing.services.utils import d

DEFAULT_URL = "https://api.exchangerate-api.com/v4/latest/{base}"


class ExchangeRateApiProvider(FXProvider):
    """
    Reads the public exchangerate-api.com "latest" endpoint, which returns
    ``{"base": "USD", "rates": {"CNY": 7.2, ...}}`` for one base currency.
    Responses are cached per base for the life of the provider.
    """

    source = "api_exchangerate"

    def __init__(self, url: Optional[str] = None, timeout: Optional[float] = None) -> None:
        self.url = url or getattr(settings, "FX_API_URL", DEFAULT_URL)
        self.timeout = timeout or getattr(settings, "FX_TIMEOUT", 10)
        self._cache: Dict[str, Dict[str, Decimal]] = {}

    def _fetch_rates(self, base: str) -> Dict[str, Decimal]:
        resp = requests.get(
            self.url.format(base=base),
            headers={"Accept": "application/json"},
            timeout=self.timeout,
        )
        resp.raise_for_status()
        payload = resp.json()
        rates = payload.get("rates")
        if not isinstance(rates, dict):
            raise ValueError(f"exchangerate-api: no rates in response for {base}")
        return {code.upper(): d(value) for code, value in rates.items()}

    def get_mid_rate(self, base: str, quote: str) -> MidRate:
        base = base.upper(); quote = quote.upper()
        if base not in self._cache:
            self._cache[base] = self._fetch_rates(base)
        rate = self._cache[base].get(quote)
        if rate is None:
            raise ValueError(f"exchangerate-api: no {base}->{quote} rate")
        return MidRate(base=base, quote=quote, rate=rate, as_of=now())
