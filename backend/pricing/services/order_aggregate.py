from __future__ import annotations

import json
import logging
from dataclasses import asdict, is_dataclass
from decimal import Decimal
from typing import Any, Iterable, List, Mapping

from ..dataclasses import AdminOrderEdit, OrderAggregate, SurchargeLine
from .fx_service import DEFAULT_DISPLAY_CURRENCY, convert_currency, resolve_rate
from .utils import ZERO, money, safe_d

logger = logging.getLogger(__name__)

COMPONENT_FIELDS = ("pcb_price", "ship_price", "custom_duty", "coupon")


def parse_surcharges(raw: Any, notes: List[str]) -> List[SurchargeLine]:
    """
    Accept surcharges as a list of ``{"name", "amount"}`` dicts, SurchargeLine
    objects, or a JSON string of the list. Unusable entries are skipped.
    """
    if raw is None or raw == "":
        return []
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            notes.append("Surcharges could not be parsed; ignored")
            return []
    if not isinstance(raw, Iterable) or isinstance(raw, (str, bytes, Mapping)):
        notes.append("Surcharges must be a list; ignored")
        return []

    lines = []
    for item in raw:
        if isinstance(item, SurchargeLine):
            lines.append(item)
            continue
        if not isinstance(item, Mapping):
            notes.append(f"Surcharge entry {item!r} ignored")
            continue
        amount = safe_d(item.get("amount"))
        if amount is None:
            notes.append(f"Surcharge {item.get('name', '')!r} has no numeric amount; ignored")
            continue
        lines.append(SurchargeLine(str(item.get("name") or ""), amount))
    return lines


def _fields(edit: Any) -> Mapping[str, Any]:
    if isinstance(edit, AdminOrderEdit) or is_dataclass(edit):
        return asdict(edit)
    if isinstance(edit, Mapping):
        return edit
    return {}


def _component(fields: Mapping[str, Any], name: str, notes: List[str]) -> Decimal:
    value = fields.get(name)
    if value is None or value == "":
        return ZERO
    amount = safe_d(value)
    if amount is None:
        notes.append(f"{name} is not a number ({value!r}); counted as 0")
        return ZERO
    return amount


def build_order_aggregate(edit: Any) -> OrderAggregate:
    """
    Recompute the admin totals from the component prices.

    cny_price = pcb + ship + duty + Σ surcharges − coupon, in CNY, then
    converted once to the display currency with the edit's exchange rate.
    Never raises; unusable components count as zero and are noted.
    """
    fields = _fields(edit)
    notes: List[str] = []

    pcb, ship, duty, coupon = (_component(fields, name, notes) for name in COMPONENT_FIELDS)
    surcharges = parse_surcharges(fields.get("surcharges"), notes)
    surcharge_total = sum((s.amount for s in surcharges), ZERO)

    cny_price = money(pcb + ship + duty + surcharge_total - coupon)

    currency = str(fields.get("currency") or DEFAULT_DISPLAY_CURRENCY).upper()
    rate = resolve_rate(currency, fields.get("exchange_rate"))
    admin_price = money(convert_currency(cny_price, currency, rate))

    if notes:
        logger.info("Order aggregate built with adjustments: %s", "; ".join(notes))
    return OrderAggregate(
        cny_price=cny_price,
        admin_price=admin_price,
        currency=currency,
        exchange_rate=rate,
        notes=tuple(notes),
    )
