from datetime import date
from decimal import Decimal

import pytest

from ..dataclasses import QuoteSpec
from ..services.customs import calculate_customs_fee
from ..services.shipping import estimate_shipping, shipped_units, zone_for
from ..services.spec_normalizer import normalize_spec

BASELINE = {"layers": 2, "single_length": 100, "single_width": 100, "quantity": 10}
JUNE = date(2025, 6, 2)


def spec(**overrides) -> QuoteSpec:
    return normalize_spec({**BASELINE, **overrides})


class TestEstimateShipping:

    def test_weights(self):
        result = estimate_shipping(spec(), "US", order_date=JUNE)
        assert result.actual_weight_kg == Decimal("0.352")
        assert result.volumetric_weight_kg == Decimal("0.032")
        assert result.chargeable_weight_kg == Decimal("0.5")

    def test_standard_dhl_to_us(self):
        result = estimate_shipping(spec(), "us", order_date=JUNE)
        assert result.supported
        assert result.zone == "North America"
        assert result.base_cost == Decimal("49.25")
        assert result.fuel_surcharge == Decimal("7.88")
        assert result.peak_surcharge == Decimal("0.00")
        assert result.total == Decimal("57.13")
        assert result.currency == "USD"

    def test_express_multiplier(self):
        result = estimate_shipping(spec(), "US", service="express", order_date=JUNE)
        assert result.total == Decimal("74.27")

    def test_peak_season(self):
        result = estimate_shipping(spec(), "US", order_date=date(2025, 12, 1))
        assert result.peak_surcharge == Decimal("9.85")
        assert result.total == Decimal("66.98")

    def test_chargeable_weight_steps(self):
        result = estimate_shipping(spec(quantity=100), "US", order_date=JUNE)
        assert result.chargeable_weight_kg == Decimal("4.0")

    @pytest.mark.parametrize("country,courier,service,note", [
        ("zz", "dhl", "standard", "Unsupported shipping destination"),
        ("US", "tnt", "standard", "Unsupported courier"),
        ("US", "dhl", "overnight", "Unsupported service type"),
    ])
    def test_unsupported(self, country, courier, service, note):
        result = estimate_shipping(spec(), country, courier=courier, service=service, order_date=JUNE)
        assert not result.supported
        assert result.total == Decimal("0.00")
        assert result.note.startswith(note)

    def test_zones(self):
        assert zone_for("GB") == zone_for("uk") == "Europe"
        assert zone_for(" jp ") == "Asia Pacific"
        assert zone_for("") is None

    def test_gerber_panels_ship_as_panels(self):
        s = spec(panel_mode="panel_by_gerber", panel_row=2, panel_column=2, quantity=10)
        assert shipped_units(s) == 10
        assert shipped_units(spec()) == 10


class TestCustomsFee:

    def test_us_duty_only(self):
        result = calculate_customs_fee("US", Decimal("1000"))
        assert result.duty == Decimal("50.00")
        assert result.vat == Decimal("0.00")
        assert result.total == Decimal("50.00")

    def test_germany_ddp(self):
        result = calculate_customs_fee("de", Decimal("1000"), "DDP")
        assert (result.duty, result.vat, result.agent_fee) == (Decimal("80.00"), Decimal("190.00"), Decimal("20.00"))
        assert result.total == Decimal("290.00")

    def test_default_rates(self):
        assert calculate_customs_fee("FR", "1000").total == Decimal("300.00")

    def test_non_numeric_value(self):
        assert calculate_customs_fee("FR", "abc").total == Decimal("0.00")
