"""
Configuration Validator
-----------------------
Validates tool configuration and environment variables on startup.
"""

from __future__ import annotations

import os
import logging
from typing import Dict, Any, Optional, List, Tuple
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass
class ConfigRule:
    """Rule for validating a configuration value."""
    key: str
    required: bool = True
    default: Any = None
    validator: Optional[callable] = None
    error_message: Optional[str] = None


def _is_number(x: Any) -> bool:
    try:
        float(x)
        return True
    except (TypeError, ValueError):
        return False


def _non_negative(x: Any) -> bool:
    return _is_number(x) and float(x) >= 0


def _fraction(x: Any) -> bool:
    return _is_number(x) and 0.0 <= float(x) <= 1.0


class ConfigValidator:
    """
    Validates configuration and environment variables.

    Usage:
        validator = ConfigValidator()
        validator.add_rule("NETOPS_MODE", required=True, validator=lambda x: x in ["DRY_RUN", "LIVE"])
        is_valid, errors = validator.validate()
    """

    def __init__(self):
        self.rules: List[ConfigRule] = []
        self.logger = logging.getLogger("ConfigValidator")

    def add_rule(
        self,
        key: str,
        required: bool = True,
        default: Any = None,
        validator: Optional[callable] = None,
        error_message: Optional[str] = None,
    ) -> None:
        """Add a validation rule."""
        rule = ConfigRule(
            key=key,
            required=required,
            default=default,
            validator=validator,
            error_message=error_message,
        )
        self.rules.append(rule)

    def validate(self, config: Optional[Dict[str, Any]] = None) -> Tuple[bool, List[str]]:
        """
        Validate all rules.

        Args:
            config: Optional config dict. If None, reads from environment variables.

        Returns:
            Tuple of (is_valid: bool, errors: list[str])
        """
        errors = []

        if config is None:
            config = dict(os.environ)

        for rule in self.rules:
            value = config.get(rule.key)

            if rule.required and value is None:
                error_msg = rule.error_message or f"Required configuration '{rule.key}' is missing"
                errors.append(error_msg)
                self.logger.error("%s", error_msg)
                continue

            if value is None and rule.default is not None:
                value = rule.default
                config[rule.key] = value
                self.logger.info("Using default for %s: %s", rule.key, rule.default)

            if value is not None and rule.validator is not None:
                try:
                    if not rule.validator(value):
                        error_msg = (
                            rule.error_message or
                            f"Invalid value for '{rule.key}': {value}"
                        )
                        errors.append(error_msg)
                        self.logger.error("%s", error_msg)
                except Exception as e:
                    error_msg = (
                        rule.error_message or
                        f"Validation error for '{rule.key}': {e}"
                    )
                    errors.append(error_msg)
                    self.logger.error("%s", error_msg)

        is_valid = len(errors) == 0

        if is_valid:
            self.logger.info("Configuration validation passed")
        else:
            self.logger.error("Configuration validation failed with %d errors", len(errors))

        return is_valid, errors

    def add_hacker_rules(self) -> None:
        """Rules for the distributed hacker section."""
        self.add_rule("home_reserve", required=False, default=32.0, validator=_non_negative,
                      error_message="home_reserve must be a non-negative number of GB")
        self.add_rule("money_threshold", required=False, default=0.80, validator=_fraction,
                      error_message="money_threshold must be between 0 and 1")
        self.add_rule("security_buffer", required=False, default=5.0, validator=_non_negative,
                      error_message="security_buffer must be non-negative")
        self.add_rule("hack_percent", required=False, default=0.25,
                      validator=lambda x: _fraction(x) and float(x) > 0,
                      error_message="hack_percent must be in (0, 1]")
        self.add_rule("max_targets", required=False, default=100,
                      validator=lambda x: _is_number(x) and int(float(x)) >= 1,
                      error_message="max_targets must be at least 1")

    def validate_netops_env(self) -> Tuple[bool, List[str]]:
        """
        Validate process-level environment configuration.

        Returns:
            Tuple of (is_valid: bool, errors: list[str])
        """
        self.add_rule(
            "NETOPS_MODE",
            required=False,
            default="DRY_RUN",
            validator=lambda x: x.upper() in ["DRY_RUN", "LIVE"],
            error_message="NETOPS_MODE must be DRY_RUN or LIVE",
        )
        self.add_rule(
            "NETOPS_WORLD",
            required=False,
            validator=lambda x: x.endswith((".yaml", ".yml")),
            error_message="NETOPS_WORLD must point to a YAML world snapshot",
        )
        return self.validate()


def validate_hacker_config(section: Dict[str, Any]) -> bool:
    """
    Validate the ``hacker`` config section in place (defaults are filled in).

    Raises:
        ValueError if any rule fails
    """
    validator = ConfigValidator()
    validator.add_hacker_rules()
    is_valid, errors = validator.validate(section)
    if not is_valid:
        raise ValueError("Invalid hacker config:\n" + "\n".join(f"  - {e}" for e in errors))
    return True


def validate_startup_config() -> bool:
    """
    Validate configuration on startup.

    Returns:
        True if valid, raises RuntimeError if invalid
    """
    validator = ConfigValidator()
    is_valid, errors = validator.validate_netops_env()

    if not is_valid:
        error_msg = "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
        logger.error(error_msg)
        raise RuntimeError(error_msg)

    return True
