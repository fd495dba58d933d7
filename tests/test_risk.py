"""
Tests for risk priority numbers.
"""

from types import SimpleNamespace

import pytest

from safeops.core.exceptions import ConfigurationError, ValidationError
from safeops.models.enums import Likelihood, Severity
from safeops.services.risk import RpnScale, rpn


class TestRpn:
    def test_product_of_ordinals(self, scale: RpnScale) -> None:
        assert rpn(Severity.HIGH, Likelihood.MEDIUM, scale) == 6
        assert rpn("critical", "very_high", scale) == 16
        assert rpn("low", "low", scale) == 1

    def test_no_scale_configured(self) -> None:
        with pytest.raises(ConfigurationError):
            rpn(Severity.LOW, Likelihood.LOW, None)

    def test_unknown_value(self, scale: RpnScale) -> None:
        with pytest.raises(ValidationError):
            rpn("catastrophic", "low", scale)


class TestRpnScale:
    def test_every_member_needs_a_value(self) -> None:
        with pytest.raises(ConfigurationError):
            RpnScale.from_mappings({"low": 1}, {"low": 1, "medium": 2, "high": 3, "very_high": 4})

    def test_from_settings_unset(self) -> None:
        settings = SimpleNamespace(RPN_SEVERITY_SCALE=None, RPN_LIKELIHOOD_SCALE=None)
        assert RpnScale.from_settings(settings) is None

    def test_from_settings_half_configured(self) -> None:
        settings = SimpleNamespace(RPN_SEVERITY_SCALE={"low": 1}, RPN_LIKELIHOOD_SCALE=None)
        with pytest.raises(ConfigurationError):
            RpnScale.from_settings(settings)

    def test_custom_ordinals(self) -> None:
        scale = RpnScale.from_mappings(
            {"low": 1, "medium": 3, "high": 5, "critical": 10},
            {"low": 1, "medium": 2, "high": 4, "very_high": 8},
        )
        assert rpn("critical", "high", scale) == 40
