"""
Pricing Rules Configuration

This module loads and validates the PCB pricing tables (base price steps,
surcharge schedules, lead-time tables, urgent-delivery options and the
factory calendar) from ``config/pricing_rules.json``, and exposes a cached
accessor shared by all calculators.

Only configuration problems raise here. Calculators that consume the tables
degrade to placeholder results instead of raising.
"""

import json
import logging
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Optional

from .utils import ZERO, d, safe_d

logger = logging.getLogger(__name__)

REQUIRED_KEYS = [
    'version',
    'supported_layers',
    'base_price',
    'special_process_fees',
    'delivery_days',
    'urgent',
    'calendar',
]
URGENT_FEE_TYPES = ('fixed', 'per_sqm')


class PricingRulesError(Exception):
    """Base exception for pricing rules related errors"""
    pass


class ConfigurationError(PricingRulesError):
    """Raised when the pricing rules file cannot be read or parsed"""
    pass


class ValidationError(PricingRulesError):
    """Raised when pricing rules are structurally invalid"""
    pass


def load_pricing_rules(config_path: str = None) -> dict:
    """
    Load pricing rules from the JSON configuration file

    Args:
        config_path: Path to the pricing rules JSON file. If None, uses default location.

    Returns:
        dict: Parsed pricing rules configuration

    Raises:
        ConfigurationError: If file cannot be loaded or parsed
    """
    if config_path is None:
        current_dir = Path(__file__).parent.parent
        config_path = current_dir / "config" / "pricing_rules.json"

    config_path = Path(config_path)
    if not config_path.exists():
        raise ConfigurationError(f"Pricing rules configuration file not found: {config_path}")

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            rules = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in pricing rules file: {e}")
    except OSError as e:
        raise ConfigurationError(f"Error loading pricing rules configuration: {e}")

    logger.info(f"Successfully loaded pricing rules from {config_path}")
    return rules


def validate_pricing_rules(rules: dict) -> List[str]:
    """
    Validate that pricing rules are complete and consistent

    Args:
        rules: Pricing rules configuration dictionary

    Returns:
        List[str]: List of validation errors (empty if valid)
    """
    errors = []

    for key in REQUIRED_KEYS:
        if key not in rules:
            errors.append(f"Missing required top-level key: {key}")
    if errors:
        return errors

    layers = [str(layer) for layer in rules['supported_layers']]

    for copper_tier, table in rules['base_price'].get('tables', {}).items():
        for layer in layers:
            if layer not in table:
                errors.append(f"Base price table {copper_tier} has no entry for {layer} layers")
                continue
            errors.extend(_validate_steps(table[layer].get('steps', []), f"base_price.{copper_tier}.{layer}"))

    for table_name, table in rules['delivery_days'].items():
        if not isinstance(table, dict):
            continue
        for layer in layers:
            if layer not in table:
                errors.append(f"Delivery days table {table_name} has no entry for {layer} layers")
                continue
            errors.extend(_validate_steps(table[layer], f"delivery_days.{table_name}.{layer}"))

    for key, entry in rules['urgent'].items():
        if entry.get('fee_type') not in URGENT_FEE_TYPES:
            errors.append(f"Urgent entry {key} has invalid fee_type: {entry.get('fee_type')}")
        options = [int(days) for days in entry.get('fees', {})]
        if options and max(options) > int(entry.get('max_reduce_days', 0)):
            errors.append(f"Urgent entry {key} offers more days than max_reduce_days")

    if 'default_urgent_fee' in rules:
        fee = safe_d(rules['default_urgent_fee'])
        if fee is None or fee < ZERO:
            errors.append(f"default_urgent_fee must be a non-negative amount: {rules['default_urgent_fee']}")

    if not errors:
        logger.info("Pricing rules validation passed")
    else:
        logger.warning(f"Pricing rules validation found {len(errors)} errors")

    return errors


def _validate_steps(steps: list, label: str) -> List[str]:
    """Steps must be ascending by upper bound and end with an open (null) bound."""
    errors = []
    if not steps:
        return [f"{label}: no steps defined"]
    bounds = [step[0] for step in steps]
    if bounds[-1] is not None:
        errors.append(f"{label}: last step must have an open upper bound")
    closed = [d(b) for b in bounds if b is not None]
    if closed != sorted(closed) or len(set(closed)) != len(closed):
        errors.append(f"{label}: step bounds must be strictly ascending")
    return errors


def get_pricing_rules() -> dict:
    """
    Get the validated pricing rules, loading them once per process.

    Returns:
        dict: Pricing rules configuration

    Raises:
        ConfigurationError: If rules cannot be loaded
        ValidationError: If rules fail validation
    """
    if not hasattr(get_pricing_rules, '_cached_rules'):
        rules = load_pricing_rules()
        errors = validate_pricing_rules(rules)
        if errors:
            raise ValidationError(f"Pricing rules validation failed: {'; '.join(errors)}")
        get_pricing_rules._cached_rules = rules

    return get_pricing_rules._cached_rules


def clear_pricing_rules_cache():
    """Clear the cached pricing rules (useful for testing or config reloading)"""
    if hasattr(get_pricing_rules, '_cached_rules'):
        delattr(get_pricing_rules, '_cached_rules')


def lookup_step(steps: List[Any], area: Decimal) -> Optional[Any]:
    """
    Return the value of the first step whose upper bound covers ``area``.

    A ``None`` bound is open-ended. Used for lead-time tables, where the
    bound is inclusive and no tie-break applies.
    """
    for bound, value in steps:
        if bound is None or area <= d(bound):
            return value
    return None


def default_rate_for(currency: str, rules: Optional[dict] = None) -> Optional[Decimal]:
    rules = rules or get_pricing_rules()
    value = rules.get('default_exchange_rates', {}).get((currency or '').upper())
    return d(value) if value is not None else None


def rules_version(rules: Optional[dict] = None) -> str:
    rules = rules or get_pricing_rules()
    return str(rules['version'])


def table_for_layers(table: Dict[str, Any], layers: int) -> Optional[Any]:
    return table.get(str(int(layers)))
