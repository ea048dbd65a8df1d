"""
Quote orchestration.

Runs one raw specification through the calculators in order: normalize,
price, production cycle, urgent fee, optional shipping and customs, then the
order aggregate in the display currency. Nothing is persisted here.
"""
from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Mapping, Optional, Union

from ..dataclasses import AdminOrderEdit, Money, QuoteResult, SurchargeLine
from .customs import calculate_customs_fee
from .fx_service import DEFAULT_DISPLAY_CURRENCY, FxConverter
from .order_aggregate import build_order_aggregate
from .price_evaluator import evaluate_price
from .pricing_rules import get_pricing_rules, rules_version
from .production_cycle import calculate_production_cycle
from .shipping import estimate_shipping
from .spec_normalizer import normalize_spec
from .urgent_fee import calculate_urgent_fee, urgent_fee_or_default
from .utils import ZERO

logger = logging.getLogger(__name__)

URGENT_SURCHARGE_NAME = "Urgent delivery"


def _as_date(value: Optional[Union[date, datetime]]) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    return value


def recalculate_quote(
    raw: Any,
    reference: Optional[Union[date, datetime]] = None,
    currency: Optional[str] = None,
    exchange_rate: Any = None,
    country: Optional[str] = None,
    courier: Optional[str] = None,
    service: Optional[str] = None,
    declaration_method: Optional[str] = None,
    coupon: Any = ZERO,
    rates: Optional[Mapping[str, Any]] = None,
    rules: Optional[dict] = None,
) -> QuoteResult:
    """
    Build a complete quote from a raw specification.

    Args:
        raw: Form/API payload describing the boards
        reference: Order time used for the ship date and peak-season check
        currency: Display currency for the aggregate; defaults to USD
        exchange_rate: CNY per unit of ``currency``
        country: Destination country code; enables shipping and customs
        rates: Extra CNY-per-unit rates, e.g. stored rates for USD shipping

    Returns:
        QuoteResult: Every intermediate result plus the aggregate totals.
        An urgent request the table cannot price is charged the default
        urgent fee.
    """
    rules = rules or get_pricing_rules()
    spec = normalize_spec(raw)
    price = evaluate_price(spec, rules)
    cycle = calculate_production_cycle(spec, reference_date=reference, rules=rules)

    currency = (currency or DEFAULT_DISPLAY_CURRENCY).upper()
    fx_rates = dict(rates or {})
    if exchange_rate is not None:
        fx_rates[currency] = exchange_rate
    fx = FxConverter(fx_rates)

    urgent = None
    urgent_charged = ZERO
    surcharges = []
    if spec.is_urgent:
        urgent = calculate_urgent_fee(spec, spec.total_area, spec.urgent_reduce_days, rules)
        urgent_charged = urgent_fee_or_default(urgent, rules)
        if not urgent.supported:
            logger.info("Urgent fee fell back to default %s: %s", urgent_charged, urgent.note)
        surcharges.append(SurchargeLine(URGENT_SURCHARGE_NAME, urgent_charged))

    shipping = None
    customs = None
    ship_cny = ZERO
    duty_cny = ZERO
    if country:
        shipping = estimate_shipping(
            spec,
            country,
            courier=courier or "dhl",
            service=service or "standard",
            order_date=_as_date(reference),
        )
        if shipping.supported:
            ship_cny = fx.to_cny(Money(shipping.total, shipping.currency)).amount
        customs = calculate_customs_fee(country, price.total + urgent_charged, declaration_method or "")
        duty_cny = customs.total

    edit = AdminOrderEdit(
        pcb_price=price.total,
        ship_price=ship_cny,
        custom_duty=duty_cny,
        coupon=coupon,
        surcharges=[{"name": s.name, "amount": s.amount} for s in surcharges],
        currency=currency,
        exchange_rate=fx_rates.get(currency),
        production_days=cycle.days,
        delivery_date=cycle.ship_date,
    )
    aggregate = build_order_aggregate(edit)

    return QuoteResult(
        spec=spec,
        price=price,
        cycle=cycle,
        urgent_fee=urgent,
        urgent_fee_charged=urgent_charged,
        shipping=shipping,
        customs=customs,
        aggregate=aggregate,
        meta={
            "rules_version": rules_version(rules),
            "defaulted_fields": list(spec.defaulted_fields),
            "ship_price_cny": ship_cny,
            "custom_duty_cny": duty_cny,
        },
    )
