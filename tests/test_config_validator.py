"""
Tests for ConfigValidator
"""

import unittest
import os
from unittest import mock

from netops.utils.config_validator import (
    ConfigValidator,
    validate_hacker_config,
    validate_startup_config,
)


class TestConfigValidator(unittest.TestCase):
    """Test cases for ConfigValidator."""

    def setUp(self):
        """Set up test fixtures."""
        self.validator = ConfigValidator()

    def test_required_field_present(self):
        """Test validation with required field present."""
        self.validator.add_rule("TEST_KEY", required=True)
        config = {"TEST_KEY": "test_value"}

        is_valid, errors = self.validator.validate(config)
        self.assertTrue(is_valid)
        self.assertEqual(len(errors), 0)

    def test_required_field_missing(self):
        """Test validation with required field missing."""
        self.validator.add_rule("TEST_KEY", required=True)
        config = {}

        is_valid, errors = self.validator.validate(config)
        self.assertFalse(is_valid)
        self.assertGreater(len(errors), 0)

    def test_optional_field_with_default(self):
        """Test optional field with default value."""
        self.validator.add_rule("OPTIONAL_KEY", required=False, default="default_value")
        config = {}

        is_valid, errors = self.validator.validate(config)
        self.assertTrue(is_valid)
        self.assertEqual(config.get("OPTIONAL_KEY"), "default_value")

    def test_validator_function(self):
        """Test custom validator function."""
        self.validator.add_rule(
            "NETOPS_MODE",
            required=True,
            validator=lambda x: x.upper() in ["DRY_RUN", "LIVE"],
        )

        # Valid value
        config = {"NETOPS_MODE": "live"}
        is_valid, errors = self.validator.validate(config)
        self.assertTrue(is_valid)

        # Invalid value
        config = {"NETOPS_MODE": "INVALID"}
        is_valid, errors = self.validator.validate(config)
        self.assertFalse(is_valid)

    def test_validator_exception_is_an_error(self):
        """A validator that raises counts as a failed rule."""
        self.validator.add_rule("N", validator=lambda x: int(x) > 0)
        is_valid, errors = self.validator.validate({"N": "abc"})
        self.assertFalse(is_valid)
        self.assertIn("Validation error", errors[0])


class TestHackerRules(unittest.TestCase):
    """Test cases for the hacker section rules."""

    def test_defaults_filled_in(self):
        """An empty section passes and receives every default."""
        section = {}
        self.assertTrue(validate_hacker_config(section))
        self.assertEqual(section["home_reserve"], 32.0)
        self.assertEqual(section["money_threshold"], 0.80)
        self.assertEqual(section["security_buffer"], 5.0)
        self.assertEqual(section["hack_percent"], 0.25)
        self.assertEqual(section["max_targets"], 100)

    def test_bad_values_raise(self):
        """Out-of-range values raise ValueError naming every problem."""
        with self.assertRaises(ValueError) as ctx:
            validate_hacker_config({"home_reserve": -1, "money_threshold": 1.5, "hack_percent": 0})
        message = str(ctx.exception)
        self.assertIn("home_reserve", message)
        self.assertIn("money_threshold", message)
        self.assertIn("hack_percent", message)

    def test_max_targets_at_least_one(self):
        """max_targets must allow at least one target."""
        validator = ConfigValidator()
        validator.add_hacker_rules()
        is_valid, errors = validator.validate({"max_targets": 0})
        self.assertFalse(is_valid)
        self.assertEqual(len(errors), 1)


class TestStartupConfig(unittest.TestCase):
    """Test cases for validate_startup_config()."""

    @mock.patch.dict(os.environ, {"NETOPS_MODE": "LIVE", "NETOPS_WORLD": "world.yaml"})
    def test_valid_environment(self):
        """A known mode and a YAML world pass."""
        self.assertTrue(validate_startup_config())

    @mock.patch.dict(os.environ, {"NETOPS_MODE": "TURBO"})
    def test_unknown_mode_raises(self):
        """An unknown mode stops startup."""
        with self.assertRaises(RuntimeError):
            validate_startup_config()

    @mock.patch.dict(os.environ, {"NETOPS_MODE": "DRY_RUN", "NETOPS_WORLD": "world.json"})
    def test_non_yaml_world_raises(self):
        """The world snapshot must be YAML."""
        with self.assertRaises(RuntimeError):
            validate_startup_config()


if __name__ == "__main__":
    unittest.main()
