"""
Production cycle (lead time) calculation.

The baseline comes from the delivery-days table for the layer count and
total area. Special materials and processes add days, most of them scaled
by the area factor (whole square metres, at least 1). Urgent delivery then
removes the requested days, never going below one day. Every adjustment
appends a reason string in the order it was applied.
"""
from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_CEILING
from typing import List, Optional, Union

from ..dataclasses import CycleResult, QuoteSpec
from .delivery_date import FactoryCalendar
from .pricing_rules import get_pricing_rules, lookup_step, table_for_layers
from .utils import ONE, ZERO, safe_d

logger = logging.getLogger(__name__)

REVIEW_CAP_DAYS = 20
SAMPLE_AREA_LIMIT = Decimal("1")

BOARD_TYPE_EXTRA = {"aluminum": 1, "rogers": 1, "flex": 1, "rigid-flex": 1}
SURFACE_FINISH_EXTRA = {"enig": 1, "immersion_silver": 2, "immersion_tin": 2}
MIN_TRACE_EXTRA = {"4/4": 1, "3.5/3.5": 1}
MIN_HOLE_EXTRA = {"0.2": 1, "0.15": 1}
HDI_EXTRA = {"1step": 1, "2step": 2, "3step": 2}
FLAT_EXTRA = (
    ("gold_fingers", 3, "Gold fingers"),
    ("impedance", 1, "Impedance control"),
    ("edge_plating", 1, "Edge plating"),
)


def _baseline_steps(rules: dict, spec: QuoteSpec) -> list:
    table_name = "heavy_copper" if spec.copper_weight > ONE else "standard"
    table = rules["delivery_days"][table_name]
    # Unknown layer counts use the nearest lower row.
    layers = spec.layers
    while layers > 1 and table_for_layers(table, layers) is None:
        layers -= 1
    return table_for_layers(table, layers) or table["2"]


def calculate_production_cycle(
    spec: QuoteSpec,
    reference_date: Optional[Union[date, datetime]] = None,
    delivery_mode: Optional[str] = None,
    rules: Optional[dict] = None,
) -> CycleResult:
    """
    Compute production days for ``spec``.

    Args:
        spec: Normalized quote spec
        reference_date: Order time; when given, ``ship_date`` is projected
            over factory working days from it
        delivery_mode: ``"standard"`` or ``"urgent"``; defaults to ``spec.delivery``

    Returns:
        CycleResult: days (≥ 1) with the reasons behind them
    """
    mode = delivery_mode if delivery_mode in ("standard", "urgent") else spec.delivery

    try:
        area = safe_d(spec.total_area) if spec.quantity else None
    except InvalidOperation:
        area = None
    if area is None or area <= ZERO:
        logger.warning("Production cycle requested without a usable board area")
        return CycleResult(
            days=1,
            reasons=("Quantity and board size are required to calculate production cycle",),
            delivery_mode=mode,
            calculation_failed=True,
        )

    rules = rules or get_pricing_rules()
    calendar = FactoryCalendar.from_rules(rules)

    def finish(days: int, needs_review: bool) -> CycleResult:
        ship_date = calendar.add_working_days(reference_date, days) if reference_date else None
        return CycleResult(
            days=days,
            reasons=tuple(reasons),
            delivery_mode=mode,
            ship_date=ship_date,
            needs_review=needs_review,
        )

    reasons: List[str] = []
    threshold = int(rules["delivery_days"].get("review_threshold", REVIEW_CAP_DAYS))
    baseline = int(lookup_step(_baseline_steps(rules, spec), area) or REVIEW_CAP_DAYS)
    needs_review = baseline >= threshold
    if needs_review:
        baseline = REVIEW_CAP_DAYS
    reasons.append(f"{mode.capitalize()} baseline: {baseline} days")
    if needs_review:
        reasons.append(f"Lead time of {REVIEW_CAP_DAYS}+ days requires evaluation")

    extra = 0
    copper = spec.copper_weight
    if copper >= 3:
        if area > SAMPLE_AREA_LIMIT:
            reasons.append(f"Batch thick copper ({copper}oz) requires evaluation: {REVIEW_CAP_DAYS} days")
            return finish(REVIEW_CAP_DAYS, True)
        extra = 2 if copper == 3 else 3
        reasons.append(f"Sample {copper}oz copper: +{extra} days")

    area_factor = max(1, int(area.to_integral_value(rounding=ROUND_CEILING)))
    per_area = (
        (BOARD_TYPE_EXTRA.get(spec.board_type, 0), f"Material {spec.board_type}"),
        (SURFACE_FINISH_EXTRA.get(spec.surface_finish, 0), f"Surface finish {spec.surface_finish}"),
        (MIN_TRACE_EXTRA.get(spec.min_trace, 0), f"Min trace/space {spec.min_trace}mil"),
        (MIN_HOLE_EXTRA.get(spec.min_hole, 0), f"Min hole {spec.min_hole}mm"),
        (HDI_EXTRA.get(spec.hdi, 0), f"HDI {spec.hdi}"),
    )
    for days, label in per_area:
        if days:
            add = days * area_factor
            extra += add
            if area_factor > 1:
                reasons.append(f"{label}: +{days} day(s) × {area_factor} = +{add} days")
            else:
                reasons.append(f"{label}: +{add} day(s)")

    for flag, days, label in FLAT_EXTRA:
        if getattr(spec, flag):
            extra += days
            reasons.append(f"{label}: +{days} day(s)")

    total = baseline + extra

    if mode == "urgent":
        requested = spec.urgent_reduce_days
        reduced = min(requested, total - 1)
        if reduced > 0:
            total -= reduced
            reasons.append(f"Urgent: -{reduced} days (requested: {requested} days)")

    return finish(max(1, total), needs_review)
