import json
from decimal import Decimal
from unittest.mock import patch

import requests
from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from rest_framework.test import APIClient

from exchange_rates.models import ExchangeRate

FX_TABLE = json.dumps({"USD": {"CNY": 7.2}, "EUR": {"CNY": 7.8}})


class FxApiTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        U = get_user_model()
        cls.staff = U.objects.create_user(username="fx_admin", password="x", is_staff=True)
        cls.user = U.objects.create_user(username="fx_user", password="x")

    def setUp(self):
        self.client = APIClient()

    def test_rates_list_is_public(self):
        ExchangeRate.objects.create(base_currency="USD", target_currency="CNY", rate=Decimal("7.2"))
        ExchangeRate.objects.create(base_currency="EUR", target_currency="CNY", rate=Decimal("7.8"), is_active=False)
        r = self.client.get(reverse("exchange_rates:fx-rates"))
        self.assertEqual(r.status_code, 200, r.content)
        data = r.json()
        self.assertEqual(len(data), 1)
        self.assertEqual(data[0]["base_currency"], "USD")

    def test_refresh_requires_staff(self):
        self.client.force_authenticate(user=self.user)
        r = self.client.post(reverse("exchange_rates:fx-refresh"), {"currencies": ["USD"]}, format="json")
        self.assertEqual(r.status_code, 403)

    @patch.dict("os.environ", {"FX_RATES": FX_TABLE})
    def test_refresh_with_env_provider(self):
        self.client.force_authenticate(user=self.staff)
        r = self.client.post(
            reverse("exchange_rates:fx-refresh"), {"currencies": "usd,eur", "provider": "env"}, format="json"
        )
        self.assertEqual(r.status_code, 200, r.content)
        body = r.json()
        self.assertFalse(body["fallback_used"])
        self.assertEqual([row["pair"] for row in body["results"]], ["USD->CNY", "EUR->CNY"])

    @patch.dict("os.environ", {"FX_RATES": FX_TABLE})
    @patch("exchange_rates.fx_providers.exchangerate_api.requests.get")
    def test_refresh_falls_back_to_env(self, mock_get):
        mock_get.side_effect = requests.Timeout("slow")
        self.client.force_authenticate(user=self.staff)
        with self.assertLogs("exchange_rates.views", level="WARNING"):
            r = self.client.post(
                reverse("exchange_rates:fx-refresh"),
                {"currencies": ["USD"], "provider": "exchangerate_api"},
                format="json",
            )
        self.assertEqual(r.status_code, 200, r.content)
        self.assertTrue(r.json()["fallback_used"])

    @patch.dict("os.environ", {"FX_RATES": "{}"})
    def test_refresh_env_failure_is_bad_gateway(self):
        self.client.force_authenticate(user=self.staff)
        r = self.client.post(
            reverse("exchange_rates:fx-refresh"), {"currencies": ["USD"], "provider": "env"}, format="json"
        )
        self.assertEqual(r.status_code, 502)

    def test_refresh_validation(self):
        self.client.force_authenticate(user=self.staff)
        url = reverse("exchange_rates:fx-refresh")
        self.assertEqual(self.client.post(url, {"currencies": ["DOLLAR"]}, format="json").status_code, 400)
        self.assertEqual(self.client.post(url, {}, format="json").status_code, 400)
        r = self.client.post(url, {"currencies": ["USD"], "provider": "bsp"}, format="json")
        self.assertEqual(r.status_code, 400)
