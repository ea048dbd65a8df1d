"""
Quote spec normalization.

Turns whatever a quote form, an API client or a stored order holds into a
canonical :class:`~pricing.dataclasses.QuoteSpec`. Malformed or missing
values never raise; they are replaced by defaults and the field name is
recorded in ``QuoteSpec.defaulted_fields`` so callers can show which values
were assumed.

Keys are accepted in snake_case or in the camelCase used by the quote forms.
Plain dimensions (``single_length``/``singleLength``) are millimetres; the
nested ``singleDimensions`` object carries centimetres, as the forms send it.
"""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Callable, Dict, List, Mapping, Optional

from ..dataclasses import QuoteSpec
from .utils import ONE, ZERO, safe_d

logger = logging.getLogger(__name__)

SUPPORTED_LAYERS = (1, 2, 4, 6, 8, 10, 12, 14, 16, 18, 20)
BOARD_TYPES = ("fr4", "aluminum", "rogers", "flex", "rigid-flex")
PANEL_MODES = ("single", "panel_by_gerber", "panel_by_speedx")
SURFACE_FINISHES = ("hasl", "leadfree", "enig", "osp", "immersion_silver", "immersion_tin")
ENIG_TYPES = ("1u", "2u", "3u")
SOLDER_MASKS = ("green", "matt_green", "blue", "red", "black", "matt_black", "white", "yellow")
SILKSCREENS = ("white", "black", "yellow")
OUTER_COPPER = (Decimal("1"), Decimal("2"), Decimal("3"), Decimal("4"))
INNER_COPPER = (Decimal("0.5"), Decimal("1"), Decimal("1.5"), Decimal("2"), Decimal("3"), Decimal("4"))
MIN_TRACES = ("6/6", "5/5", "4/4", "3.5/3.5")
MIN_HOLES = ("0.3", "0.25", "0.2", "0.15")
HDI_TYPES = ("none", "1step", "2step", "3step")
TEST_METHODS = ("none", "flying_probe", "fixture")
DELIVERY_MODES = ("standard", "urgent")

DEFAULTS = QuoteSpec()
MULTILAYER_INNER_DEFAULT = ONE

# Largest values accepted from a request; anything above is replaced by the default.
MAX_BOARD_MM = Decimal("2000")
MAX_THICKNESS_MM = Decimal("10")
MAX_RAILS_MM = Decimal("100")
MAX_PANEL_COUNT = 100
MAX_QUANTITY = 1000000

# Display labels used by the quote forms, mapped onto canonical values.
SYNONYMS = {
    "fr-4": "fr4",
    "panel_by_custom": "panel_by_gerber",
    "panelbygerber": "panel_by_gerber",
    "panelbycustom": "panel_by_gerber",
    "panelbyspeedx": "panel_by_speedx",
    "leadfree_hasl": "leadfree",
    "lead_free": "leadfree",
    "enig1u": "1u",
    "enig2u": "2u",
    "enig3u": "3u",
    "mattgreen": "matt_green",
    "mattblack": "matt_black",
    "100%_fpt_for_batches": "flying_probe",
    "flyingprobe": "flying_probe",
    "test_fixture": "fixture",
    "immersionsilver": "immersion_silver",
    "immersiontin": "immersion_tin",
}

FIELD_ALIASES: Dict[str, tuple] = {
    "board_type": ("board_type", "pcbType", "pcb_type"),
    "layers": ("layers",),
    "thickness": ("thickness",),
    "single_length": ("single_length", "singleLength"),
    "single_width": ("single_width", "singleWidth"),
    "panel_mode": ("panel_mode", "shipmentType", "shipment_type"),
    "panel_row": ("panel_row", "panelRow"),
    "panel_column": ("panel_column", "panelColumn"),
    "panel_rails": ("panel_rails", "border"),
    "quantity": ("quantity",),
    "surface_finish": ("surface_finish", "surfaceFinish"),
    "enig_type": ("enig_type", "surfaceFinishEnigType"),
    "solder_mask": ("solder_mask", "solderMask"),
    "silkscreen": ("silkscreen",),
    "outer_copper_weight": ("outer_copper_weight", "outerCopperWeight"),
    "inner_copper_weight": ("inner_copper_weight", "innerCopperWeight"),
    "min_trace": ("min_trace", "minTrace"),
    "min_hole": ("min_hole", "minHole"),
    "hdi": ("hdi",),
    "test_method": ("test_method", "testMethod"),
    "impedance": ("impedance",),
    "gold_fingers": ("gold_fingers", "goldFingers"),
    "edge_plating": ("edge_plating", "edgePlating"),
    "ul_mark": ("ul_mark", "ulMark"),
    "delivery": ("delivery", "delivery_mode", "deliveryMode"),
    "urgent_reduce_days": ("urgent_reduce_days", "urgentReduceDays"),
}

_MISSING = object()


def _token(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    token = value.strip().lower().replace(" ", "_")
    return SYNONYMS.get(token, token)


def _choice(allowed) -> Callable[[Any], Optional[str]]:
    def coerce(value):
        token = _token(value)
        return token if token in allowed else None
    return coerce


def _positive_decimal(value) -> Optional[Decimal]:
    out = safe_d(value)
    if out is None or out <= ZERO:
        return None
    return out


def _at_most(limit, coerce: Callable[[Any], Any]) -> Callable[[Any], Any]:
    """Wrap ``coerce`` so values above ``limit`` count as unusable."""
    def bounded(value):
        out = coerce(value)
        if out is not None and out > limit:
            return None
        return out
    return bounded


def _positive_int(value) -> Optional[int]:
    out = safe_d(value)
    if out is None or out <= ZERO or out != out.to_integral_value():
        return None
    return int(out)


def _non_negative_int(value) -> Optional[int]:
    out = safe_d(value)
    if out is None or out < ZERO or out != out.to_integral_value():
        return None
    return int(out)


def _layers(value) -> Optional[int]:
    out = _positive_int(value)
    return out if out in SUPPORTED_LAYERS else None


def _bool(value) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)) and value in (0, 1):
        return bool(value)
    token = _token(value)
    if token in ("true", "yes", "1", "on"):
        return True
    if token in ("false", "no", "0", "off", ""):
        return False
    return None


def _copper(allowed) -> Callable[[Any], Optional[Decimal]]:
    def coerce(value):
        if isinstance(value, str):
            value = value.strip().lower().removesuffix("oz")
        out = safe_d(value)
        if out is None:
            return None
        return out.normalize() if out in allowed else None
    return coerce


def _rails(value) -> Optional[Decimal]:
    if _token(value) == "none":
        return ZERO
    out = safe_d(value)
    if out is None or out < ZERO:
        return None
    return out


def _hole(value) -> Optional[str]:
    out = safe_d(value)
    if out is None:
        return None
    text = format(out.normalize(), "f")
    return text if text in MIN_HOLES else None


def _hdi(value) -> Optional[str]:
    token = _token(value)
    return token if token in HDI_TYPES else None


def _flatten(raw: Any) -> Dict[str, Any]:
    """Collect canonical field values from flat and nested form shapes."""
    if not isinstance(raw, Mapping):
        return {}

    values: Dict[str, Any] = {}
    for name, aliases in FIELD_ALIASES.items():
        for alias in aliases:
            if alias in raw and raw[alias] is not None:
                values[name] = raw[alias]
                break

    dims = raw.get("singleDimensions")
    if isinstance(dims, Mapping):
        for key, name in (("length", "single_length"), ("width", "single_width")):
            cm = _positive_decimal(dims.get(key))
            if name not in values and cm is not None:
                values[name] = cm * 10

    panel = raw.get("panelDimensions")
    if isinstance(panel, Mapping):
        values.setdefault("panel_row", panel.get("row"))
        values.setdefault("panel_column", panel.get("column"))

    options = raw.get("deliveryOptions")
    if isinstance(options, Mapping):
        if "delivery" not in values and options.get("delivery") is not None:
            values["delivery"] = options["delivery"]
        if "urgent_reduce_days" not in values and options.get("urgentReduceDays") is not None:
            values["urgent_reduce_days"] = options["urgentReduceDays"]

    if "quantity" not in values:
        mode = _choice(PANEL_MODES)(values.get("panel_mode")) or DEFAULTS.panel_mode
        count_key = "singleCount" if mode == "single" else "panelSet"
        for alias in (count_key, "single_count" if mode == "single" else "panel_set"):
            if raw.get(alias) is not None:
                values["quantity"] = raw[alias]
                break

    return {name: value for name, value in values.items() if value is not None}


def normalize_spec(raw: Any) -> QuoteSpec:
    """
    Normalize a raw quote specification into a QuoteSpec.

    Args:
        raw: A mapping from a form/API payload. Anything else is treated as empty.

    Returns:
        QuoteSpec: Every field set; substituted fields listed in ``defaulted_fields``.
    """
    source = _flatten(raw)
    defaulted: List[str] = []

    def pick(name: str, coerce: Callable[[Any], Any]):
        value = source.get(name, _MISSING)
        if value is not _MISSING:
            out = coerce(value)
            if out is not None:
                return out
        defaulted.append(name)
        return getattr(DEFAULTS, name)

    layers = pick("layers", _layers)
    panel_mode = pick("panel_mode", _choice(PANEL_MODES))

    fields = dict(
        board_type=pick("board_type", _choice(BOARD_TYPES)),
        layers=layers,
        thickness=pick("thickness", _at_most(MAX_THICKNESS_MM, _positive_decimal)),
        single_length=pick("single_length", _at_most(MAX_BOARD_MM, _positive_decimal)),
        single_width=pick("single_width", _at_most(MAX_BOARD_MM, _positive_decimal)),
        panel_mode=panel_mode,
        quantity=pick("quantity", _at_most(MAX_QUANTITY, _positive_int)),
        surface_finish=pick("surface_finish", _choice(SURFACE_FINISHES)),
        solder_mask=pick("solder_mask", _choice(SOLDER_MASKS)),
        silkscreen=pick("silkscreen", _choice(SILKSCREENS)),
        outer_copper_weight=pick("outer_copper_weight", _copper(OUTER_COPPER)),
        min_trace=pick("min_trace", _choice(MIN_TRACES)),
        min_hole=pick("min_hole", _hole),
        hdi=pick("hdi", _hdi),
        impedance=pick("impedance", _bool),
        gold_fingers=pick("gold_fingers", _bool),
        edge_plating=pick("edge_plating", _bool),
        ul_mark=pick("ul_mark", _bool),
        delivery=pick("delivery", _choice(DELIVERY_MODES)),
        urgent_reduce_days=pick("urgent_reduce_days", _non_negative_int),
    )

    # Panel geometry only applies to panelized orders.
    if panel_mode != "single":
        fields["panel_row"] = pick("panel_row", _at_most(MAX_PANEL_COUNT, _positive_int))
        fields["panel_column"] = pick("panel_column", _at_most(MAX_PANEL_COUNT, _positive_int))
    if panel_mode == "panel_by_speedx":
        fields["panel_rails"] = pick("panel_rails", _at_most(MAX_RAILS_MM, _rails))

    if fields["surface_finish"] == "enig":
        fields["enig_type"] = pick("enig_type", _choice(ENIG_TYPES))

    if layers >= 4:
        inner = source.get("inner_copper_weight", _MISSING)
        inner = _copper(INNER_COPPER)(inner) if inner is not _MISSING else None
        if inner is None:
            defaulted.append("inner_copper_weight")
            inner = MULTILAYER_INNER_DEFAULT
        fields["inner_copper_weight"] = inner
    elif "inner_copper_weight" in source:
        defaulted.append("inner_copper_weight")

    if "test_method" in source:
        method = _choice(TEST_METHODS)(source["test_method"])
        if method is None:
            defaulted.append("test_method")
        fields["test_method"] = method

    spec = QuoteSpec(defaulted_fields=tuple(defaulted), **fields)
    if defaulted:
        logger.debug("normalize_spec substituted defaults for: %s", ", ".join(defaulted))
    return spec
