"""
PCB price rule evaluator.

Computes a :class:`~pricing.dataclasses.PriceBreakdown` for a normalized
QuoteSpec: a base price from the tiered base tables (copper tier, layer
count, total area), adjusted for board thickness, plus one surcharge line per
active option. Pure function of (spec, rules); no I/O besides the cached
rules table.

Area tiers: total area at or below ``lot_area_max`` is charged the lot
(pack) price. Above that, the first step whose upper bound covers the area
sets the price per m². When the area sits exactly on a step's upper bound,
both that step and the next one qualify and the cheaper unit price is used.
"""
from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Callable, List, Optional

from ..dataclasses import PriceBreakdown, QuoteSpec, SurchargeLine
from .pricing_rules import get_pricing_rules, table_for_layers
from .utils import ONE, ZERO, d, money, safe_d

logger = logging.getLogger(__name__)

SAMPLE_AREA_LIMIT = Decimal("1")
THIN_BOARD = (Decimal("0.2"), Decimal("0.4"))
THIN_BOARD_SAMPLE_FEE = Decimal("300")
THIN_BOARD_BATCH_RATE = Decimal("0.5")
THICK_BOARD = (Decimal("1.6"), Decimal("3.2"))
THICK_BOARD_STEP = Decimal("0.4")
THICK_BOARD_STEP_FEE = {"double_sided": Decimal("100"), "multilayer": Decimal("80")}
BATCH_DISCOUNT_AREA = Decimal("5")

SurchargeHandler = Callable[[QuoteSpec, Decimal, dict, List[str]], List[SurchargeLine]]


def _oz(value: Decimal) -> str:
    return format(d(value).normalize(), "f")


def copper_tier(spec: QuoteSpec) -> str:
    return "2oz" if spec.copper_weight >= 2 else "1oz"


def select_unit_price(steps: list, area: Decimal) -> Decimal:
    """
    Pick the per-m² price for ``area`` from ascending ``[max_area, price]`` steps.

    An area exactly on a bound takes the cheaper of the two adjacent steps.
    """
    for i, (bound, price) in enumerate(steps):
        if bound is None or area < d(bound):
            return d(price)
        if area == d(bound):
            following = steps[i + 1][1] if i + 1 < len(steps) else price
            return min(d(price), d(following))
    return d(steps[-1][1])


def _invalid_fields(spec: QuoteSpec) -> List[str]:
    invalid = []
    for name in ("single_length", "single_width", "thickness", "quantity"):
        value = safe_d(getattr(spec, name, None))
        if value is None or value <= ZERO:
            invalid.append(name)
    if invalid:
        return invalid
    try:
        area = spec.total_area
    except InvalidOperation:
        # Dimensions too large to express as an area
        return ["total_area"]
    if area <= ZERO:
        invalid.append("total_area")
    return invalid


def base_price(spec: QuoteSpec, area: Decimal, rules: dict, notes: List[str]) -> Decimal:
    tier = copper_tier(spec)
    entry = table_for_layers(rules["base_price"]["tables"][tier], spec.layers)
    if entry is None:
        notes.append(f"{spec.layers} layers not supported by base price table; manual quote required")
        return ZERO

    lot_area_max = d(rules["base_price"]["lot_area_max"])
    if area <= lot_area_max:
        price = d(entry["pack_price"])
        notes.append(f"Base: lot price {price} CNY ({spec.layers}L, {tier}, area {area}㎡ ≤ {lot_area_max}㎡)")
        return price

    unit = select_unit_price(entry["steps"], area)
    price = unit * area
    notes.append(f"Base: {unit} CNY/㎡ × {area}㎡ = {money(price)} CNY ({spec.layers}L, {tier})")
    return price


def apply_thickness(spec: QuoteSpec, area: Decimal, base: Decimal, notes: List[str]) -> Decimal:
    """Fold board-thickness adjustments into the base price."""
    t = spec.thickness
    double_sided = spec.layers <= 2

    if double_sided and THIN_BOARD[0] <= t <= THIN_BOARD[1]:
        if area < SAMPLE_AREA_LIMIT:
            notes.append(f"Thin board {t}mm: sample +{THIN_BOARD_SAMPLE_FEE} CNY")
            return base + THIN_BOARD_SAMPLE_FEE
        notes.append(f"Thin board {t}mm: batch +50% of base")
        return base + base * THIN_BOARD_BATCH_RATE

    if THICK_BOARD[0] < t <= THICK_BOARD[1]:
        steps = ((t - THICK_BOARD[0]) / THICK_BOARD_STEP).to_integral_value(rounding=ROUND_HALF_UP)
        per_step = THICK_BOARD_STEP_FEE["double_sided" if double_sided else "multilayer"]
        add = steps * per_step * max(ONE, area)
        notes.append(f"Thick board {t}mm: {steps} step(s) × {per_step} CNY = +{money(add)} CNY")
        return base + add

    if double_sided and area > BATCH_DISCOUNT_AREA:
        if Decimal("0.6") <= t <= Decimal("1.0"):
            discount = Decimal("15") * area
        elif t == Decimal("1.2"):
            discount = Decimal("10") * area
        else:
            return base
        notes.append(f"Thickness {t}mm batch discount: -{money(discount)} CNY")
        return max(ZERO, base - discount)

    return base


def special_process_surcharges(spec, area, rules, notes) -> List[SurchargeLine]:
    fees = rules["special_process_fees"]
    lines = []
    if spec.impedance:
        lines.append(SurchargeLine("Impedance control", d(fees["impedance"])))
    if spec.gold_fingers:
        lines.append(SurchargeLine("Gold fingers", d(fees["gold_fingers"])))
    if spec.edge_plating:
        lines.append(SurchargeLine("Edge plating", d(fees["edge_plating"])))
    return lines


def surface_finish_surcharge(spec, area, rules, notes) -> List[SurchargeLine]:
    if spec.surface_finish == "enig":
        key = f"enig_{spec.enig_type}"
        label = f"ENIG {spec.enig_type.upper()}"
        if spec.enig_type == "3u":
            notes.append("ENIG above 3U requires manual pricing")
    elif spec.surface_finish in ("immersion_silver", "immersion_tin"):
        key = spec.surface_finish
        label = spec.surface_finish.replace("_", " ").title()
    else:
        return []

    rate = rules["surface_finish_fees"].get(key)
    if rate is None:
        notes.append(f"No surcharge configured for surface finish {label}")
        return []
    amount = d(rate["sample"]) if area < SAMPLE_AREA_LIMIT else d(rate["per_sqm"]) * area
    return [SurchargeLine(f"Surface finish ({label})", amount)]


def solder_mask_surcharge(spec, area, rules, notes) -> List[SurchargeLine]:
    fees = rules["solder_mask_fees"]
    if spec.solder_mask == "yellow":
        rate = fees["yellow"]
        amount = d(rate["sample"]) if area < SAMPLE_AREA_LIMIT else d(rate["per_sqm"]) * area
        return [SurchargeLine("Solder mask (yellow)", amount)]
    if spec.solder_mask == "matt_green":
        rate = fees["matt_green"]
        billing_area = max(d(rate["min_area"]), area)
        return [SurchargeLine("Solder mask (matt green)", d(rate["per_sqm"]) * billing_area)]
    return []


def copper_weight_surcharge(spec, area, rules, notes) -> List[SurchargeLine]:
    fees = rules["copper_weight_fees"]
    column = "sample" if area < SAMPLE_AREA_LIMIT else "batch"

    if spec.layers <= 2:
        if spec.outer_copper_weight <= ONE:
            return []
        rate = fees["double_sided"].get(_oz(spec.outer_copper_weight))
        label = f"{_oz(spec.outer_copper_weight)}oz"
    else:
        inner = spec.inner_copper_weight if spec.inner_copper_weight is not None else ONE
        label = f"{_oz(spec.outer_copper_weight)}oz outer / {_oz(inner)}oz inner"
        table = table_for_layers(fees["multilayer"], spec.layers) or {}
        rate = table.get(f"{_oz(spec.outer_copper_weight)}-{_oz(inner)}")

    if rate is None:
        notes.append(f"Copper weight {label} on {spec.layers}L requires manual pricing")
        return []
    amount = d(rate[column]) * max(ONE, area)
    return [SurchargeLine(f"Copper weight ({label})", amount)]


def engineering_fee(spec, area, rules, notes) -> List[SurchargeLine]:
    if area <= d(rules["base_price"]["lot_area_max"]) or area > Decimal("3"):
        return []
    fees = table_for_layers(rules["engineering_fees"][copper_tier(spec)], spec.layers)
    if fees is None:
        return []
    amount = d(fees[0]) if area <= Decimal("0.5") else d(fees[1])
    return [SurchargeLine("Engineering fee", amount)]


def film_fee(spec, area, rules, notes) -> List[SurchargeLine]:
    cfg = rules["film_fee"]
    unit_area = spec.unit_area
    if unit_area <= d(cfg["min_single_area"]):
        return []
    films = table_for_layers(cfg["film_counts"], spec.layers) or spec.layers + 5
    amount = unit_area * films * d(cfg["price_per_film_sqm"])
    notes.append(f"Film fee: {unit_area}㎡ × {films} films × {cfg['price_per_film_sqm']} CNY")
    return [SurchargeLine("Film fee", amount)]


def electrical_test_fee(spec, area, rules, notes) -> List[SurchargeLine]:
    cfg = rules["test_fees"]
    if area <= d(cfg["free_area_max"]):
        return []

    method = spec.test_method
    if spec.layers == 1:
        method = method or "none"
    elif method not in ("flying_probe", "fixture") or (
        method == "flying_probe" and area > d(cfg["flying_probe_max_area"])
    ):
        method = "flying_probe" if area <= d(cfg["flying_probe_max_area"]) else "fixture"
        notes.append(f"Test method adjusted to {method}")

    if method == "flying_probe":
        per_sqm = cfg["flying_probe_per_sqm_high_layer"] if spec.layers >= 8 else cfg["flying_probe_per_sqm"]
        return [SurchargeLine("Electrical test (flying probe)", d(per_sqm) * max(ONE, area))]
    if method == "fixture":
        for max_layers, fee in sorted(cfg["fixture"].items(), key=lambda item: int(item[0])):
            if spec.layers <= int(max_layers):
                return [SurchargeLine("Electrical test (fixture)", d(fee))]
    return []


SURCHARGE_HANDLERS: List[SurchargeHandler] = [
    special_process_surcharges,
    surface_finish_surcharge,
    solder_mask_surcharge,
    copper_weight_surcharge,
    engineering_fee,
    film_fee,
    electrical_test_fee,
]


def evaluate_price(spec: QuoteSpec, rules: Optional[dict] = None) -> PriceBreakdown:
    """
    Price a normalized quote spec in CNY.

    Args:
        spec: Normalized quote spec
        rules: Pricing rules; defaults to the cached configuration

    Returns:
        PriceBreakdown: base, surcharge lines and total. A spec with
        non-positive or non-finite dimensions, thickness or quantity yields a
        zero breakdown flagged ``calculation_failed``.
    """
    invalid = _invalid_fields(spec)
    if invalid:
        logger.warning("Price calculation failed, invalid fields: %s", ", ".join(invalid))
        return PriceBreakdown.failed(f"calculation failed: invalid {', '.join(invalid)}")

    rules = rules or get_pricing_rules()
    area = spec.total_area
    notes: List[str] = []

    try:
        base = base_price(spec, area, rules, notes)
        base = apply_thickness(spec, area, base, notes)

        surcharges: List[SurchargeLine] = []
        for handler in SURCHARGE_HANDLERS:
            surcharges.extend(line for line in handler(spec, area, rules, notes) if line.amount > ZERO)

        # Keys are the lowest layer count the minimum applies to.
        for min_layers, min_qty in rules.get("minimum_order_quantity", {}).items():
            if spec.layers >= int(min_layers) and spec.piece_count < int(min_qty):
                notes.append(f"Minimum order quantity for {spec.layers}L boards is {min_qty} pcs")

        return PriceBreakdown.build(base, surcharges, notes)
    except InvalidOperation:
        logger.warning("Price calculation failed, amounts out of range for %s m2", area)
        return PriceBreakdown.failed("calculation failed: amounts out of range")
