"""
Urgent delivery fee lookup.

Expedited production is priced from a table keyed by
``"{layers}-{copper}oz-{area range}"``. Each entry lists which day reductions
can be bought and whether the fee is a flat amount or a per-m² rate.
Combinations missing from the table cannot be expedited.

The calculator never applies a fallback fee itself. Callers that still need
to charge for an unsupported request use the ``default_urgent_fee`` rule through
:func:`urgent_fee_or_default`.
"""
from __future__ import annotations

import logging
from decimal import Decimal, ROUND_FLOOR
from typing import Optional

from ..dataclasses import QuoteSpec, UrgentFeeResult
from .pricing_rules import get_pricing_rules
from .utils import ZERO, d, money, safe_d

logger = logging.getLogger(__name__)

AREA_RANGES = (
    (Decimal("0.5"), "0-0.5"),
    (Decimal("1"), "0.5-1"),
    (Decimal("3"), "1-3"),
)
OPEN_AREA_RANGE = "3+"
MAX_COPPER_OZ = 4

# Fallback when the rules config carries no usable default_urgent_fee.
DEFAULT_URGENT_FEE = Decimal("100")


def area_range(area: Decimal) -> str:
    for bound, label in AREA_RANGES:
        if area <= bound:
            return label
    return OPEN_AREA_RANGE


def copper_key(spec: QuoteSpec) -> str:
    oz = int(d(spec.copper_weight).to_integral_value(rounding=ROUND_FLOOR))
    return f"{min(max(oz, 1), MAX_COPPER_OZ)}oz"


def urgent_table_key(spec: QuoteSpec, area: Decimal) -> str:
    return f"{spec.layers}-{copper_key(spec)}-{area_range(area)}"


def calculate_urgent_fee(
    spec: QuoteSpec,
    total_area,
    reduce_days,
    rules: Optional[dict] = None,
) -> UrgentFeeResult:
    """
    Look up the surcharge for shortening production by ``reduce_days``.

    Args:
        spec: Normalized quote spec (layers and copper weight select the row)
        total_area: Total board area in m²
        reduce_days: Requested lead-time reduction in days

    Returns:
        UrgentFeeResult: ``supported=False`` (and no fee) when the reduction
        is not positive, the area is unusable, or the table has no matching
        entry or option.
    """
    days = safe_d(reduce_days)
    if days is None or days <= ZERO or days != days.to_integral_value():
        return UrgentFeeResult(supported=False, note="No lead-time reduction requested")
    days = int(days)

    area = safe_d(total_area)
    if area is None or area <= ZERO:
        return UrgentFeeResult(supported=False, reduce_days=days, note="Board area is required for urgent pricing")

    rules = rules or get_pricing_rules()
    key = urgent_table_key(spec, area)
    entry = rules["urgent"].get(key)
    if not entry or not entry.get("fees"):
        logger.info("Urgent delivery not available for %s", key)
        return UrgentFeeResult(supported=False, reduce_days=days, note=f"Urgent delivery not available for {key}")

    max_days = int(entry["max_reduce_days"])
    fee = entry["fees"].get(str(days))
    if fee is None:
        offered = ", ".join(sorted(entry["fees"], key=int))
        return UrgentFeeResult(
            supported=False,
            reduce_days=days,
            max_reduce_days=max_days,
            note=f"Reducing {days} day(s) not offered for {key} (options: {offered})",
        )

    fee_type = entry["fee_type"]
    amount = d(fee) * area if fee_type == "per_sqm" else d(fee)
    return UrgentFeeResult(
        supported=True,
        fee=money(amount),
        fee_type=fee_type,
        reduce_days=days,
        max_reduce_days=max_days,
        note=f"Urgent -{days} day(s): {fee} CNY{'/㎡' if fee_type == 'per_sqm' else ''}",
    )


def urgent_fee_or_default(result: UrgentFeeResult, rules: Optional[dict] = None) -> Decimal:
    """Fee to charge for an urgent request: the looked-up fee, else the configured default."""
    if result.supported:
        return result.fee
    rules = rules or get_pricing_rules()
    fee = safe_d(rules.get("default_urgent_fee"))
    if fee is None or fee < ZERO:
        logger.warning("No usable default_urgent_fee in pricing rules, using %s", DEFAULT_URGENT_FEE)
        return DEFAULT_URGENT_FEE
    return money(fee)
