import json
from decimal import Decimal
from io import StringIO
from unittest.mock import patch

import requests
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase, override_settings

from exchange_rates.management.commands.fetch_fx import parse_currencies
from exchange_rates.models import ExchangeRate

FX_TABLE = json.dumps({"USD": {"CNY": 7.2}, "EUR": {"CNY": 7.8}})


@override_settings(FX_PROVIDER="exchangerate_api")
class FetchFxCommandTests(TestCase):

    def test_parse_currencies(self):
        self.assertEqual(parse_currencies(" usd, eur ,"), ["USD", "EUR"])
        with self.assertRaises(CommandError):
            parse_currencies("USD,EURO")

    def test_currencies_required(self):
        with self.assertRaises(CommandError):
            call_command("fetch_fx")

    @patch.dict("os.environ", {"FX_RATES": FX_TABLE})
    def test_env_provider(self):
        out = StringIO()
        call_command("fetch_fx", "--currencies", "USD,EUR", "--provider", "env", stdout=out)
        self.assertIn("Saved USD->CNY 7.2", out.getvalue())
        self.assertEqual(ExchangeRate.objects.get(base_currency="EUR").rate, Decimal("7.8"))

    @patch.dict("os.environ", {"FX_RATES": FX_TABLE})
    @patch("exchange_rates.fx_providers.exchangerate_api.requests.get")
    def test_api_failure_falls_back_to_env(self, mock_get):
        mock_get.side_effect = requests.ConnectionError("offline")
        out = StringIO()
        with self.assertLogs("exchange_rates.management.commands.fetch_fx", level="WARNING") as logs:
            call_command("fetch_fx", "--currencies", "USD", stdout=out)
        self.assertIn("falling back to ENV", logs.output[0])
        row = ExchangeRate.objects.get(base_currency="USD", target_currency="CNY")
        self.assertEqual(row.source, "env")
        self.assertIn("[env]", out.getvalue())

    @patch.dict("os.environ", {"FX_RATES": "{}"})
    def test_env_failure_is_command_error(self):
        with self.assertRaises(CommandError):
            call_command("fetch_fx", "--currencies", "USD", "--provider", "env")
        self.assertFalse(ExchangeRate.objects.exists())

    def test_unknown_provider(self):
        with self.assertRaises(CommandError):
            call_command("fetch_fx", "--currencies", "USD", "--provider", "bsp")
