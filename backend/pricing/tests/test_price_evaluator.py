from decimal import Decimal, InvalidOperation
from unittest.mock import patch

import pytest

from ..dataclasses import QuoteSpec
from ..services.price_evaluator import evaluate_price, select_unit_price
from ..services.spec_normalizer import normalize_spec

BASELINE = {"layers": 2, "single_length": 100, "single_width": 100, "quantity": 10}


def spec(**overrides) -> QuoteSpec:
    return normalize_spec({**BASELINE, **overrides})


def line_amounts(breakdown):
    return {line.name: line.amount for line in breakdown.surcharges}


class TestSelectUnitPrice:

    STEPS = [[0.5, 560], [1, 450], [3, 460], [None, 320]]

    @pytest.mark.parametrize("area,expected", [
        (Decimal("0.3"), Decimal("560")),
        (Decimal("0.7"), Decimal("450")),
        (Decimal("2"), Decimal("460")),
        (Decimal("50"), Decimal("320")),
    ])
    def test_inside_a_step(self, area, expected):
        assert select_unit_price(self.STEPS, area) == expected

    @pytest.mark.parametrize("area,expected", [
        # on a bound both neighbours qualify; the cheaper one wins
        (Decimal("0.5"), Decimal("450")),
        (Decimal("1"), Decimal("450")),
        (Decimal("3"), Decimal("320")),
    ])
    def test_bound_takes_cheaper_neighbour(self, area, expected):
        assert select_unit_price(self.STEPS, area) == expected


class TestBasePrice:

    def test_small_double_sided_order_is_lot_priced(self):
        result = evaluate_price(spec())
        assert not result.calculation_failed
        assert result.base == Decimal("300.00")
        assert result.surcharges == ()
        assert result.total == Decimal("300.00")

    def test_lot_threshold_inclusive(self):
        # 100 x 100 mm x 20 = 0.2 m2
        result = evaluate_price(spec(quantity=20))
        assert result.base == Decimal("300.00")

    def test_per_area_step(self):
        # 0.1 m2 x 7 = 0.7 m2 -> 450 CNY/m2
        result = evaluate_price(spec(single_length=1000, quantity=7))
        assert result.base == Decimal("315.00")

    def test_area_on_step_bound(self):
        # exactly 1 m2: 450 (<=1) vs 460 (1-3) -> 450
        result = evaluate_price(spec(single_length=1000, quantity=10))
        assert result.base == Decimal("450.00")

    def test_heavy_copper_uses_2oz_table(self):
        result = evaluate_price(spec(outer_copper_weight=2))
        assert result.base == Decimal("330.00")
        assert line_amounts(result)["Copper weight (2oz)"] == Decimal("100.00")
        assert result.total == Decimal("430.00")

    def test_multilayer_inner_copper_selects_tier(self):
        result = evaluate_price(spec(layers=4, outer_copper_weight=2))
        assert result.base == Decimal("610.00")
        assert line_amounts(result)["Copper weight (2oz outer / 1oz inner)"] == Decimal("100.00")

    def test_unsupported_layer_count(self):
        result = evaluate_price(QuoteSpec(layers=3, single_length=Decimal("100"), single_width=Decimal("100")))
        assert result.base == Decimal("0.00")
        assert any("3 layers not supported" in note for note in result.notes)
        assert not result.calculation_failed


class TestThickness:

    def test_thin_sample_board(self):
        result = evaluate_price(spec(thickness="0.4"))
        assert result.base == Decimal("600.00")

    def test_thick_board_step(self):
        result = evaluate_price(spec(thickness="2.0"))
        assert result.base == Decimal("400.00")

    def test_thick_multilayer_step(self):
        # 4L lot 610 + 2 steps x 80
        result = evaluate_price(spec(layers=4, thickness="2.4"))
        assert result.base == Decimal("770.00")


class TestSurcharges:

    def test_special_processes_are_flat(self):
        result = evaluate_price(spec(impedance=True, gold_fingers=True, edge_plating=True))
        assert line_amounts(result) == {
            "Impedance control": Decimal("50.00"),
            "Gold fingers": Decimal("30.00"),
            "Edge plating": Decimal("25.00"),
        }
        assert result.total == Decimal("405.00")

    def test_enig_sample(self):
        result = evaluate_price(spec(surface_finish="enig", enig_type="2u"))
        assert line_amounts(result) == {"Surface finish (ENIG 2U)": Decimal("190.00")}

    def test_matt_green_minimum_area(self):
        result = evaluate_price(spec(solder_mask="matt_green"))
        assert line_amounts(result) == {"Solder mask (matt green)": Decimal("50.00")}

    def test_batch_fees(self):
        # 1 m2 batch: engineering, film and flying-probe test apply
        result = evaluate_price(spec(single_length=1000, quantity=10))
        assert line_amounts(result) == {
            "Engineering fee": Decimal("142.00"),
            "Film fee": Decimal("120.00"),
            "Electrical test (flying probe)": Decimal("60.00"),
        }
        assert result.total == Decimal("772.00")
        assert "Test method adjusted to flying_probe" in result.notes

    def test_fixture_test_by_layers(self):
        result = evaluate_price(spec(layers=8, single_length=1000, quantity=60, test_method="fixture"))
        assert line_amounts(result)["Electrical test (fixture)"] == Decimal("800.00")

    def test_all_lines_positive(self):
        result = evaluate_price(spec(layers=4, surface_finish="hasl"))
        assert all(line.amount > 0 for line in result.surcharges)
        assert result.total == result.base + sum(line.amount for line in result.surcharges)


class TestNotesAndFailures:

    def test_minimum_order_quantity_note(self):
        result = evaluate_price(spec(layers=8, quantity=2))
        assert "Minimum order quantity for 8L boards is 5 pcs" in result.notes

    @pytest.mark.parametrize("field,value", [
        ("single_length", Decimal("0")),
        ("thickness", Decimal("NaN")),
        ("quantity", 0),
        ("single_width", Decimal("-5")),
    ])
    def test_invalid_dimensions_fail(self, field, value):
        result = evaluate_price(QuoteSpec(**{field: value}))
        assert result.calculation_failed
        assert result.total == Decimal("0.00")
        assert result.notes[0].startswith("calculation failed")

    def test_oversized_dimensions_fail_instead_of_raising(self):
        huge = QuoteSpec(single_length=Decimal("1e30"), single_width=Decimal("1e30"))
        result = evaluate_price(huge)
        assert result.calculation_failed
        assert result.notes == ("calculation failed: invalid total_area",)

    def test_arithmetic_overflow_while_pricing_fails(self):
        with patch('pricing.services.price_evaluator.base_price', side_effect=InvalidOperation):
            result = evaluate_price(spec())
        assert result.calculation_failed
        assert result.notes == ("calculation failed: amounts out of range",)

    def test_idempotent(self):
        s = spec(impedance=True, single_length=1000, quantity=12)
        assert evaluate_price(s) == evaluate_price(s)


def test_impedance_and_gold_fingers_add_flat_fees():
    plain = evaluate_price(spec())
    flagged = evaluate_price(spec(impedance=True, gold_fingers=True))
    assert flagged.total - plain.total == Decimal("80.00")
    assert flagged.base == plain.base
