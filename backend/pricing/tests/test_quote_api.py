import json
from decimal import Decimal

import pytest
from django.urls import reverse
from rest_framework.test import APIClient

from exchange_rates.models import ExchangeRate

pytestmark = pytest.mark.django_db

BASELINE = {"layers": 2, "single_length": 100, "single_width": 100, "quantity": 10}


def _post(body):
    client = APIClient()
    return client.post(reverse("pricing:compute-quote"), data=body, format="json")


def test_quote_baseline_board():
    r = _post({"spec": BASELINE, "currency": "USD", "exchange_rate": "7.2"})
    assert r.status_code == 200, r.content
    data = r.json()
    assert data["price"]["total"] == "300.00"
    assert data["cycle"]["days"] == 5
    assert data["cycle"]["ship_date"]
    assert data["totals"]["currency"] == "USD"
    assert data["totals"]["cny_price"] == "300.00"
    assert data["totals"]["admin_price"] == "41.67"
    assert data["urgent_fee"] is None
    assert data["shipping"] is None
    assert data["rules_version"] == "3.1"


def test_quote_camel_case_form():
    body = {
        "spec": {
            "layers": "4",
            "singleDimensions": {"length": 10, "width": 10},
            "singleCount": 10,
            "deliveryOptions": {"delivery": "urgent", "urgentReduceDays": 2},
        },
        "currency": "CNY",
    }
    r = _post(body)
    assert r.status_code == 200, r.content
    data = r.json()
    assert data["spec"]["layers"] == 4
    assert data["urgent_fee"]["supported"] is True
    assert data["urgent_fee_charged"] == "400.00"
    assert data["totals"]["cny_price"] == "1010.00"
    assert data["totals"]["admin_price"] == data["totals"]["cny_price"]


def test_quote_with_shipping_uses_stored_rate():
    ExchangeRate.objects.create(base_currency="USD", target_currency="CNY", rate=Decimal("7.0"))
    r = _post({"spec": BASELINE, "currency": "CNY", "country": "US", "service": "standard"})
    assert r.status_code == 200, r.content
    data = r.json()
    assert data["shipping"]["supported"] is True
    assert data["customs"]["total"] == "15.00"
    ship_cny = Decimal(data["shipping"]["total"]) * Decimal("7.0")
    expected = Decimal("300.00") + ship_cny.quantize(Decimal("0.01")) + Decimal("15.00")
    assert Decimal(data["totals"]["cny_price"]) == expected


def test_quote_unsupported_destination_is_not_an_error():
    r = _post({"spec": BASELINE, "country": "ZZ"})
    assert r.status_code == 200, r.content
    assert r.json()["shipping"]["supported"] is False


@pytest.mark.parametrize("body", [
    {},
    {"spec": "layers=2"},
    {"spec": BASELINE, "currency": "XYZ"},
    {"spec": BASELINE, "coupon": "-5"},
    {"spec": BASELINE, "courier": "pigeon"},
])
def test_quote_rejects_bad_request(body):
    r = _post(body)
    assert r.status_code == 400
    assert "detail" in r.json()


def test_quote_zero_length_uses_default_size():
    r = APIClient().post(
        reverse("pricing:compute-quote"),
        data=json.dumps({"spec": {"layers": 2, "quantity": 10, "single_length": 0}}),
        content_type="application/json",
    )
    assert r.status_code == 200
    assert "single_length" in r.json()["spec"]["defaulted_fields"]


def test_quote_oversized_length_uses_default_size():
    r = _post({"spec": {**BASELINE, "single_length": 2e8}})
    assert r.status_code == 200, r.content
    data = r.json()
    assert data["spec"]["single_length"] == "50.00"
    assert "single_length" in data["spec"]["defaulted_fields"]
    assert not data["price"]["calculation_failed"]


def test_quote_largest_accepted_order_serializes():
    spec = {
        "layers": 2,
        "single_length": 2000,
        "single_width": 2000,
        "quantity": 1000000,
        "panel_mode": "panel_by_speedx",
        "panel_row": 100,
        "panel_column": 100,
        "panel_rails": 100,
    }
    r = _post({"spec": spec, "currency": "USD", "exchange_rate": "7.2", "country": "US"})
    assert r.status_code == 200, r.content
    data = r.json()
    assert "panel_row" not in data["spec"]["defaulted_fields"]
    assert data["spec"]["total_area"] == "40040000000.0000"
