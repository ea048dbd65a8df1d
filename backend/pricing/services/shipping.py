"""
International courier cost estimate for a PCB order.

Board weight is estimated from the laminate volume and material density plus
copper, plating, solder mask and silkscreen. The courier bills the larger of
actual and volumetric weight, rounded up to the next 0.5 kg. Rates are USD.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Dict, Optional

from ..dataclasses import QuoteSpec, ShippingEstimate
from .utils import ZERO, d, money, round_up_to_step

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CourierRate:
    base_rate: Decimal
    per_kg: Decimal
    fuel: Decimal
    peak: Decimal


def _rate(base, per_kg, fuel, peak) -> CourierRate:
    return CourierRate(d(base), d(per_kg), d(fuel), d(peak))


ZONES: Dict[str, dict] = {
    "North America": {
        "countries": {"us", "ca"},
        "dhl": _rate("45", "8.5", "0.16", "0.20"),
        "fedex": _rate("48", "9.0", "0.18", "0.22"),
        "ups": _rate("46", "8.8", "0.17", "0.21"),
    },
    "Europe": {
        "countries": {"uk", "gb", "de", "fr", "it", "es", "nl", "be", "ch", "se", "no", "dk", "fi"},
        "dhl": _rate("50", "9.5", "0.18", "0.22"),
        "fedex": _rate("52", "10.0", "0.19", "0.23"),
        "ups": _rate("51", "9.8", "0.185", "0.225"),
    },
    "Asia Pacific": {
        "countries": {"au", "jp", "kr", "sg", "my", "th", "vn", "id", "ph", "nz", "cn"},
        "dhl": _rate("40", "7.5", "0.15", "0.18"),
        "fedex": _rate("42", "8.0", "0.16", "0.19"),
        "ups": _rate("41", "7.8", "0.155", "0.185"),
    },
}

SERVICE_MULTIPLIERS = {"express": Decimal("1.3"), "standard": Decimal("1.0"), "economy": Decimal("0.8")}

# g/cm³
MATERIAL_DENSITY = {
    "fr4": Decimal("1.85"),
    "aluminum": Decimal("2.7"),
    "rogers": Decimal("2.2"),
    "flex": Decimal("1.7"),
    "rigid-flex": Decimal("1.8"),
}
COPPER_DENSITY = Decimal("8.96")
OZ_TO_MM = Decimal("0.035")
COPPER_COVERAGE = Decimal("0.75")
PLATING_FACTOR = Decimal("0.03")
SOLDER_MASK_G_PER_CM2 = Decimal("0.0025")
SILKSCREEN_G_PER_CM2 = Decimal("0.0015")
VOLUMETRIC_DIVISOR = Decimal("5000")
WEIGHT_STEP_KG = Decimal("0.5")
PEAK_MONTHS = {11, 12, 1}


def board_weight_grams(spec: QuoteSpec) -> Decimal:
    """Weight of one board in grams."""
    area_cm2 = spec.single_length * spec.single_width / 100
    density = MATERIAL_DENSITY.get(spec.board_type, MATERIAL_DENSITY["fr4"])
    laminate = area_cm2 * (spec.thickness / 10) * density

    inner_oz = spec.inner_copper_weight or ZERO
    outer = 2 * area_cm2 * (spec.outer_copper_weight * OZ_TO_MM / 10) * COPPER_DENSITY * COPPER_COVERAGE
    inner_layers = max(0, spec.layers - 2)
    inner = inner_layers * area_cm2 * (inner_oz * OZ_TO_MM / 10) * COPPER_DENSITY * COPPER_COVERAGE
    plating = (outer + inner) * PLATING_FACTOR
    mask = area_cm2 * SOLDER_MASK_G_PER_CM2 * 2
    silkscreen = area_cm2 * SILKSCREEN_G_PER_CM2 * 2
    return laminate + outer + inner + plating + mask + silkscreen


def shipped_units(spec: QuoteSpec) -> int:
    # A gerber panel is shipped as one board of the panel's size.
    if spec.panel_mode == "panel_by_gerber":
        return spec.quantity
    return spec.piece_count


def zone_for(country: str) -> Optional[str]:
    code = (country or "").strip().lower()
    for name, zone in ZONES.items():
        if code in zone["countries"]:
            return name
    return None


def is_peak_season(day: date) -> bool:
    return day.month in PEAK_MONTHS


def estimate_shipping(
    spec: QuoteSpec,
    country: str,
    courier: str = "dhl",
    service: str = "standard",
    order_date: Optional[date] = None,
) -> ShippingEstimate:
    """
    Estimate the courier cost in USD.

    Unknown destinations, couriers or services return ``supported=False``
    with zero costs and a note instead of raising.
    """
    courier = (courier or "dhl").lower()
    service = (service or "standard").lower()
    order_date = order_date or date.today()

    units = shipped_units(spec)
    actual = board_weight_grams(spec) * units / 1000
    volumetric = (
        (spec.single_length / 10) * (spec.single_width / 10) * (spec.thickness / 10) * units / VOLUMETRIC_DIVISOR
    )
    chargeable = max(WEIGHT_STEP_KG, round_up_to_step(max(actual, volumetric), WEIGHT_STEP_KG))

    zone = zone_for(country)
    rates = ZONES[zone].get(courier) if zone else None
    multiplier = SERVICE_MULTIPLIERS.get(service)

    def unsupported(note: str) -> ShippingEstimate:
        logger.info("Shipping estimate unavailable: %s", note)
        return ShippingEstimate(
            supported=False,
            courier=courier,
            service=service,
            zone=zone,
            actual_weight_kg=actual.quantize(Decimal("0.001")),
            volumetric_weight_kg=volumetric.quantize(Decimal("0.001")),
            chargeable_weight_kg=chargeable,
            base_cost=money(ZERO),
            fuel_surcharge=money(ZERO),
            peak_surcharge=money(ZERO),
            total=money(ZERO),
            note=note,
        )

    if zone is None:
        return unsupported(f"Unsupported shipping destination: {country!r}")
    if rates is None:
        return unsupported(f"Unsupported courier: {courier!r}")
    if multiplier is None:
        return unsupported(f"Unsupported service type: {service!r}")

    base = rates.base_rate + chargeable * rates.per_kg
    fuel = base * rates.fuel
    peak = base * rates.peak if is_peak_season(order_date) else ZERO
    total = (base + fuel + peak) * multiplier

    return ShippingEstimate(
        supported=True,
        courier=courier,
        service=service,
        zone=zone,
        actual_weight_kg=actual.quantize(Decimal("0.001")),
        volumetric_weight_kg=volumetric.quantize(Decimal("0.001")),
        chargeable_weight_kg=chargeable,
        base_cost=money(base),
        fuel_surcharge=money(fuel),
        peak_surcharge=money(peak),
        total=money(total),
    )
