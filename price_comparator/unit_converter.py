"""
Unit Converter for Grocery Package Normalization

Converts the package quantity declared by a store to a standardized base unit:
- Volume: ml → l (liter)
- Weight: g → kg (kilogram)
- Count: buc (piece), no conversion

This enables fair price comparison across different package sizes.
"""

from enum import Enum
from typing import NamedTuple, Optional


class UnitType(str, Enum):
    """Package units recognized in store exports."""

    LITER = "l"
    MILLILITER = "ml"
    KILOGRAM = "kg"
    GRAM = "g"
    PIECE = "buc"

    @property
    def is_base_unit(self) -> bool:
        return self in UnitNormalizer.BASE_UNITS

    @property
    def base_unit(self) -> "UnitType":
        return UnitNormalizer.CONVERSIONS[self][0]


class NormalizedQuantity(NamedTuple):
    """A package quantity expressed in its base unit."""
    unit: UnitType
    quantity: float


class UnitNormalizer:
    """
    Normalizes package quantities to standard base units.

    Base Units:
    - Volume: liter (l)
    - Weight: kilogram (kg)
    - Count: piece (buc)
    """

    # =========================================================================
    # CONVERSION TABLE: unit → (base unit, divisor)
    # =========================================================================

    CONVERSIONS = {
        UnitType.LITER: (UnitType.LITER, 1),
        UnitType.MILLILITER: (UnitType.LITER, 1000),
        UnitType.KILOGRAM: (UnitType.KILOGRAM, 1),
        UnitType.GRAM: (UnitType.KILOGRAM, 1000),
        UnitType.PIECE: (UnitType.PIECE, 1),
    }

    BASE_UNITS = frozenset({UnitType.LITER, UnitType.KILOGRAM, UnitType.PIECE})

    @staticmethod
    def parse_unit(token: Optional[str]) -> Optional[UnitType]:
        """
        Identify a unit token such as 'ML', ' kg ' or 'buc'.

        Args:
            token: Unit string as written in the source data

        Returns:
            The matching UnitType, or None for empty/unknown tokens
        """
        if token is None:
            return None

        cleaned = token.strip().lower()
        if not cleaned:
            return None

        try:
            return UnitType(cleaned)
        except ValueError:
            return None

    @staticmethod
    def normalize(quantity: float, token: Optional[str]) -> Optional[NormalizedQuantity]:
        """
        Convert a declared package quantity to its base unit.

        Example:
            >>> UnitNormalizer.normalize(500, "ml")
            NormalizedQuantity(unit=<UnitType.LITER: 'l'>, quantity=0.5)

        Args:
            quantity: Declared package quantity (e.g., 500)
            token: Declared package unit (e.g., 'ml')

        Returns:
            NormalizedQuantity, or None when the unit is not recognized
        """
        unit = UnitNormalizer.parse_unit(token)
        if unit is None:
            return None

        base_unit, divisor = UnitNormalizer.CONVERSIONS[unit]
        if divisor == 1:
            return NormalizedQuantity(base_unit, quantity)
        return NormalizedQuantity(base_unit, quantity / divisor)


def normalize(quantity: float, token: Optional[str]) -> Optional[NormalizedQuantity]:
    """Module-level shortcut for UnitNormalizer.normalize."""
    return UnitNormalizer.normalize(quantity, token)
