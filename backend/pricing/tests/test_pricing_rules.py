"""
Unit tests for the pricing rules configuration loader and validator.
"""

import copy
import json
import tempfile
from decimal import Decimal
from pathlib import Path
from unittest.mock import patch

import pytest

from ..services.pricing_rules import (
    ConfigurationError,
    ValidationError,
    clear_pricing_rules_cache,
    default_rate_for,
    get_pricing_rules,
    load_pricing_rules,
    lookup_step,
    rules_version,
    validate_pricing_rules,
)


@pytest.fixture
def bundled_rules():
    return copy.deepcopy(load_pricing_rules())


class TestConfigurationLoading:
    """Test configuration loading functionality"""

    def test_load_bundled_configuration(self):
        """The bundled rules file loads and describes every supported layer count"""
        rules = load_pricing_rules()
        assert rules["version"] == "3.1"
        assert rules["supported_layers"][0] == 1
        assert "2" in rules["base_price"]["tables"]["1oz"]

    def test_load_invalid_json(self):
        """Test handling of invalid JSON"""
        with tempfile.NamedTemporaryFile(mode='w', suffix='.json', delete=False) as f:
            f.write('{"version": "1.0", "urgent": {')
            temp_path = f.name

        try:
            with pytest.raises(ConfigurationError, match="Invalid JSON"):
                load_pricing_rules(temp_path)
        finally:
            Path(temp_path).unlink()

    def test_load_missing_file(self):
        """Test handling of missing configuration file"""
        with pytest.raises(ConfigurationError, match="not found"):
            load_pricing_rules("/path/that/does/not/exist.json")

    def test_load_with_permission_error(self, tmp_path):
        """Test handling of permission errors"""
        path = tmp_path / "rules.json"
        path.write_text("{}")
        with patch('builtins.open', side_effect=PermissionError("Access denied")):
            with pytest.raises(ConfigurationError, match="Error loading"):
                load_pricing_rules(str(path))

    def test_load_custom_path(self, tmp_path, bundled_rules):
        bundled_rules["version"] = "9.9"
        path = tmp_path / "rules.json"
        path.write_text(json.dumps(bundled_rules))
        assert load_pricing_rules(str(path))["version"] == "9.9"


class TestRuleValidation:
    """Test rule validation functionality"""

    def test_bundled_rules_are_valid(self, bundled_rules):
        assert validate_pricing_rules(bundled_rules) == []

    def test_validate_missing_top_level_keys(self):
        errors = validate_pricing_rules({"version": "1.0"})
        assert any("Missing required top-level key: base_price" in e for e in errors)
        assert any("Missing required top-level key: urgent" in e for e in errors)

    def test_missing_layer_entry(self, bundled_rules):
        del bundled_rules["base_price"]["tables"]["2oz"]["6"]
        errors = validate_pricing_rules(bundled_rules)
        assert errors == ["Base price table 2oz has no entry for 6 layers"]

    def test_steps_must_ascend(self, bundled_rules):
        bundled_rules["delivery_days"]["standard"]["2"] = [[1, 5], [0.5, 5], [None, 20]]
        errors = validate_pricing_rules(bundled_rules)
        assert any("delivery_days.standard.2: step bounds must be strictly ascending" in e for e in errors)

    def test_last_step_must_be_open(self, bundled_rules):
        bundled_rules["base_price"]["tables"]["1oz"]["4"]["steps"] = [[0.5, 850], [1, 800]]
        errors = validate_pricing_rules(bundled_rules)
        assert any("open upper bound" in e for e in errors)

    def test_urgent_fee_type(self, bundled_rules):
        bundled_rules["urgent"]["2-1oz-0-0.5"]["fee_type"] = "hourly"
        errors = validate_pricing_rules(bundled_rules)
        assert any("invalid fee_type: hourly" in e for e in errors)

    def test_urgent_options_within_max(self, bundled_rules):
        bundled_rules["urgent"]["2-1oz-0-0.5"]["max_reduce_days"] = 2
        errors = validate_pricing_rules(bundled_rules)
        assert errors == ["Urgent entry 2-1oz-0-0.5 offers more days than max_reduce_days"]

    @pytest.mark.parametrize("fee", ["-5", "free"])
    def test_default_urgent_fee_must_be_amount(self, bundled_rules, fee):
        bundled_rules["default_urgent_fee"] = fee
        errors = validate_pricing_rules(bundled_rules)
        assert errors == [f"default_urgent_fee must be a non-negative amount: {fee}"]


class TestCachedAccess:

    def teardown_method(self):
        clear_pricing_rules_cache()

    def test_rules_loaded_once(self):
        clear_pricing_rules_cache()
        with patch('pricing.services.pricing_rules.load_pricing_rules', wraps=load_pricing_rules) as loader:
            first = get_pricing_rules()
            second = get_pricing_rules()
        assert first is second
        assert loader.call_count == 1

    def test_clear_cache_reloads(self):
        first = get_pricing_rules()
        clear_pricing_rules_cache()
        assert get_pricing_rules() is not first

    def test_invalid_rules_raise(self, bundled_rules):
        clear_pricing_rules_cache()
        del bundled_rules["delivery_days"]["standard"]["20"]
        with patch('pricing.services.pricing_rules.load_pricing_rules', return_value=bundled_rules):
            with pytest.raises(ValidationError, match="20 layers"):
                get_pricing_rules()

    def test_rules_version_and_default_rates(self):
        assert rules_version() == "3.1"
        assert default_rate_for("usd") == Decimal("7.2")
        assert default_rate_for("XYZ") is None


class TestLookupStep:

    STEPS = [[0.5, 5], [1, 5], [3, 7], [None, 20]]

    @pytest.mark.parametrize("area,expected", [
        (Decimal("0.1"), 5),
        (Decimal("0.5"), 5),
        (Decimal("3"), 7),
        (Decimal("3.01"), 20),
        (Decimal("500"), 20),
    ])
    def test_upper_bound_inclusive(self, area, expected):
        assert lookup_step(self.STEPS, area) == expected

    def test_no_open_step(self):
        assert lookup_step([[1, 5]], Decimal("2")) is None
