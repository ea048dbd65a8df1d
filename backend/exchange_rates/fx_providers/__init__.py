from __future__ import annotations

from typing import Optional


def load(name: Optional[str]):
    """
    Lazy-load an FX provider by name.
    - 'exchangerate_api', 'exchangerate', 'api' -> ExchangeRateApiProvider
    - 'env', 'env_provider', None -> EnvProvider (from exchange_rates.fx)
    """
    key = (name or "env").strip().lower()
    if key in {"exchangerate_api", "exchangerate", "api"}:
        from .exchangerate_api import ExchangeRateApiProvider  # local import to avoid circulars
        return ExchangeRateApiProvider()
    if key not in {"env", "env_provider"}:
        raise ValueError(f"Unknown FX provider '{name}'")
    from exchange_rates.fx import EnvProvider
    return EnvProvider()
