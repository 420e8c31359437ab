"""Tests for unit normalization."""

import pytest

from price_comparator.unit_converter import NormalizedQuantity, UnitNormalizer, UnitType, normalize


class TestParseUnit:
    @pytest.mark.parametrize("token, expected", [
        ("l", UnitType.LITER),
        ("ML", UnitType.MILLILITER),
        (" kg ", UnitType.KILOGRAM),
        ("G", UnitType.GRAM),
        ("Buc", UnitType.PIECE),
    ])
    def test_known_tokens(self, token, expected):
        """Tokens are matched case-insensitively after trimming."""
        assert UnitNormalizer.parse_unit(token) is expected

    @pytest.mark.parametrize("token", [None, "", "   ", "sac", "lb", "litri"])
    def test_unknown_tokens(self, token):
        """Empty or unknown tokens yield no unit."""
        assert UnitNormalizer.parse_unit(token) is None


class TestNormalize:
    def test_milliliters_to_liters(self):
        """ml divides by 1000 into liters."""
        assert normalize(500, "ml") == (UnitType.LITER, 500 / 1000)

    def test_grams_to_kilograms(self):
        """g divides by 1000 into kilograms."""
        assert normalize(250, " G ") == NormalizedQuantity(UnitType.KILOGRAM, 0.25)

    @pytest.mark.parametrize("token, unit", [
        ("l", UnitType.LITER),
        ("kg", UnitType.KILOGRAM),
        ("buc", UnitType.PIECE),
    ])
    def test_base_units_unchanged(self, token, unit):
        """Base units keep their quantity."""
        assert normalize(3, token) == (unit, 3)

    def test_unknown_unit(self):
        """Unrecognized units are not normalized."""
        assert normalize(2, "sac") is None

    @pytest.mark.parametrize("token", ["l", "ML", " kg", "g ", "BUC"])
    def test_repeatable(self, token):
        """Repeated calls give the same answer."""
        assert normalize(750, token) == normalize(750, token)

    def test_base_unit_properties(self):
        """Sub-units point at their base unit."""
        assert UnitType.MILLILITER.base_unit is UnitType.LITER
        assert UnitType.GRAM.base_unit is UnitType.KILOGRAM
        assert UnitType.PIECE.is_base_unit
        assert not UnitType.GRAM.is_base_unit
