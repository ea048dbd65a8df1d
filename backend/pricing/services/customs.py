from __future__ import annotations

from decimal import Decimal
from typing import Any

from ..dataclasses import CustomsFee
from .utils import ZERO, money, safe_d

DEFAULT_DUTY_RATE = Decimal("0.10")
DEFAULT_VAT_RATE = Decimal("0.20")
AGENT_FEE = Decimal("20")
AGENT_DECLARATIONS = {"ddp", "agent"}

# country code -> (duty rate, VAT rate)
COUNTRY_RATES = {
    "US": (Decimal("0.05"), ZERO),
    "DE": (Decimal("0.08"), Decimal("0.19")),
}


def calculate_customs_fee(country: str, declared_value: Any, declaration_method: str = "") -> CustomsFee:
    """
    Estimate import duty and VAT on the declared value.

    DDP and agent declarations add the customs agent fee. A non-numeric
    declared value is treated as zero.
    """
    duty_rate, vat_rate = COUNTRY_RATES.get((country or "").upper(), (DEFAULT_DUTY_RATE, DEFAULT_VAT_RATE))
    value = safe_d(declared_value, ZERO)
    duty = value * duty_rate
    vat = value * vat_rate
    agent_fee = AGENT_FEE if (declaration_method or "").lower() in AGENT_DECLARATIONS else ZERO
    return CustomsFee(
        duty=money(duty),
        vat=money(vat),
        agent_fee=money(agent_fee),
        total=money(duty + vat + agent_fee),
        duty_rate=duty_rate,
        vat_rate=vat_rate,
    )
