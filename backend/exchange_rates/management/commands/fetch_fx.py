from __future__ import annotations

import logging
from typing import List

import requests
from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from exchange_rates.fx import EnvProvider, refresh_rates
from exchange_rates.fx_providers import load as load_provider

logger = logging.getLogger(__name__)


def parse_currencies(arg: str) -> List[str]:
    currencies: List[str] = []
    for part in (arg or "").split(","):
        part = part.strip().upper()
        if not part:
            continue
        if len(part) != 3 or not part.isalpha():
            raise CommandError(f"Invalid currency '{part}'. Use ISO codes, e.g., USD,EUR")
        currencies.append(part)
    return currencies


class Command(BaseCommand):
    help = "Fetch CNY exchange rates from the configured provider and store them (env table as fallback)."

    def add_arguments(self, parser):
        parser.add_argument("--currencies", type=str, help="Comma-separated currency codes, e.g., USD,EUR")
        parser.add_argument("--provider", type=str, default=None, help="FX provider to use (exchangerate_api|env)")

    def handle(self, *args, **options):
        currencies = parse_currencies(options.get("currencies"))
        if not currencies:
            raise CommandError("--currencies is required (e.g., USD,EUR)")

        provider_name = options.get("provider") or getattr(settings, "FX_PROVIDER", "exchangerate_api")
        try:
            provider = load_provider(provider_name)
        except ValueError as e:
            raise CommandError(str(e)) from e

        try:
            results = refresh_rates(currencies, provider)
        except (requests.RequestException, ValueError) as e:
            if isinstance(provider, EnvProvider):
                raise CommandError(f"FX refresh failed: {e}") from e
            logger.warning("%s provider failed, falling back to ENV: %s", provider_name, e)
            try:
                results = refresh_rates(currencies, EnvProvider())
            except ValueError as env_error:
                raise CommandError(f"FX refresh failed: {env_error}") from env_error

        for r in results:
            self.stdout.write(self.style.SUCCESS(f"Saved {r['pair']} {r['rate']} @ {r['as_of']} [{r['source']}]"))
