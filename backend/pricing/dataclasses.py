from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from .services.utils import ONE, ZERO, area4, money

MM2_PER_M2 = Decimal(1_000_000)


@dataclass(frozen=True)
class QuoteSpec:
    board_type: str = "fr4"
    layers: int = 2
    thickness: Decimal = Decimal("1.6")
    single_length: Decimal = Decimal("50")
    single_width: Decimal = Decimal("50")
    panel_mode: str = "single"
    panel_row: int = 1
    panel_column: int = 1
    panel_rails: Decimal = ZERO
    quantity: int = 5
    surface_finish: str = "hasl"
    enig_type: str = "1u"
    solder_mask: str = "green"
    silkscreen: str = "white"
    outer_copper_weight: Decimal = ONE
    inner_copper_weight: Optional[Decimal] = None
    min_trace: str = "6/6"
    min_hole: str = "0.3"
    hdi: str = "none"
    test_method: Optional[str] = None
    impedance: bool = False
    gold_fingers: bool = False
    edge_plating: bool = False
    ul_mark: bool = False
    delivery: str = "standard"
    urgent_reduce_days: int = 0
    defaulted_fields: Tuple[str, ...] = field(default=(), compare=False)

    @property
    def single_area(self) -> Decimal:
        """Area of one board in m²."""
        return area4(self.single_length * self.single_width / MM2_PER_M2)

    @property
    def unit_area(self) -> Decimal:
        """Area of one produced unit: a single board, or a whole panel."""
        if self.panel_mode == "panel_by_speedx":
            length = self.single_length * self.panel_column + 2 * self.panel_rails
            width = self.single_width * self.panel_row
            return area4(length * width / MM2_PER_M2)
        return self.single_area

    @property
    def total_area(self) -> Decimal:
        return area4(self.unit_area * self.quantity)

    @property
    def piece_count(self) -> int:
        if self.panel_mode == "single":
            return self.quantity
        return self.panel_row * self.panel_column * self.quantity

    @property
    def copper_weight(self) -> Decimal:
        """Heaviest copper layer in oz."""
        if self.inner_copper_weight is None:
            return self.outer_copper_weight
        return max(self.outer_copper_weight, self.inner_copper_weight)

    @property
    def is_urgent(self) -> bool:
        return self.delivery == "urgent"


@dataclass(frozen=True)
class SurchargeLine:
    name: str
    amount: Decimal


@dataclass(frozen=True)
class PriceBreakdown:
    base: Decimal
    surcharges: Tuple[SurchargeLine, ...]
    total: Decimal
    notes: Tuple[str, ...] = ()
    calculation_failed: bool = False

    @classmethod
    def build(cls, base: Decimal, surcharges: List[SurchargeLine], notes: List[str]) -> "PriceBreakdown":
        lines = tuple(SurchargeLine(s.name, money(s.amount)) for s in surcharges)
        base = money(base)
        total = base + sum((s.amount for s in lines), ZERO)
        return cls(base=base, surcharges=lines, total=total, notes=tuple(notes))

    @classmethod
    def failed(cls, note: str) -> "PriceBreakdown":
        return cls(
            base=money(ZERO),
            surcharges=(),
            total=money(ZERO),
            notes=(note,),
            calculation_failed=True,
        )


@dataclass(frozen=True)
class CycleResult:
    days: int
    reasons: Tuple[str, ...]
    delivery_mode: str = "standard"
    ship_date: Optional[date] = None
    needs_review: bool = False
    calculation_failed: bool = False


@dataclass(frozen=True)
class UrgentFeeResult:
    supported: bool
    fee: Optional[Decimal] = None
    fee_type: Optional[str] = None
    reduce_days: int = 0
    max_reduce_days: int = 0
    note: str = ""

    def __post_init__(self):
        if not self.supported and self.fee is not None:
            raise ValueError("UrgentFeeResult.fee must be None when unsupported")
        if self.supported and self.fee is None:
            raise ValueError("UrgentFeeResult.fee is required when supported")


@dataclass
class Money:
    amount: Decimal
    currency: str


@dataclass
class AdminOrderEdit:
    pcb_price: Any = ZERO
    ship_price: Any = ZERO
    custom_duty: Any = ZERO
    coupon: Any = ZERO
    surcharges: Any = field(default_factory=list)
    currency: str = "USD"
    exchange_rate: Any = Decimal("7.2")
    production_days: Optional[int] = None
    delivery_date: Optional[date] = None
    status: str = "created"
    payment_status: str = "unpaid"
    admin_note: str = ""


@dataclass(frozen=True)
class OrderAggregate:
    cny_price: Decimal
    admin_price: Decimal
    currency: str
    exchange_rate: Decimal
    notes: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ShippingEstimate:
    supported: bool
    courier: str
    service: str
    zone: Optional[str]
    actual_weight_kg: Decimal
    volumetric_weight_kg: Decimal
    chargeable_weight_kg: Decimal
    base_cost: Decimal
    fuel_surcharge: Decimal
    peak_surcharge: Decimal
    total: Decimal
    currency: str = "USD"
    note: str = ""


@dataclass(frozen=True)
class CustomsFee:
    duty: Decimal
    vat: Decimal
    agent_fee: Decimal
    total: Decimal
    duty_rate: Decimal
    vat_rate: Decimal


@dataclass
class QuoteResult:
    spec: QuoteSpec
    price: PriceBreakdown
    cycle: CycleResult
    urgent_fee: Optional[UrgentFeeResult]
    urgent_fee_charged: Decimal
    shipping: Optional[ShippingEstimate]
    customs: Optional[CustomsFee]
    aggregate: OrderAggregate
    meta: Dict[str, Any] = field(default_factory=dict)
