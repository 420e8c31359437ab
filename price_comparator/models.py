"""
Domain Models for the Price Comparator

Entities:
- Product: catalog item with declared and normalized package size
- PriceEntry: one price observed for a product at a store on a day
- Discount: a store's percentage discount over an inclusive date range
- PriceAlert: a user's target price for a product
- User: a registered shopper
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Generic, List, Optional, TypeVar

from price_comparator.unit_converter import UnitNormalizer, UnitType

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class ValidationResult(Generic[T]):
    """A constructed value plus the data-quality warnings found while building it"""
    value: T
    warnings: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.warnings


def product_key(product_id: Optional[str]) -> str:
    """Lookup key for product ids (trimmed, case-insensitive)."""
    return (product_id or "").strip().casefold()


@dataclass(eq=False)
class Product:
    """
    Catalog product.

    The normalized quantity/unit pair is derived once from the declared
    package size. When the unit is unknown the normalized unit stays None
    and the normalized quantity mirrors the declared quantity.
    """
    product_id: str
    product_name: str
    category: Optional[str]
    brand: Optional[str]
    package_quantity: float
    package_unit_input: Optional[str] = None
    package_unit: Optional[UnitType] = field(init=False, default=None)
    normalized_quantity: float = field(init=False, default=0.0)
    normalized_unit: Optional[UnitType] = field(init=False, default=None)

    def __post_init__(self):
        self.package_unit = UnitNormalizer.parse_unit(self.package_unit_input)
        normalized = UnitNormalizer.normalize(self.package_quantity, self.package_unit_input)
        if normalized is None:
            self.normalized_quantity = self.package_quantity
            self.normalized_unit = None
        else:
            self.normalized_unit, self.normalized_quantity = normalized

    @property
    def key(self) -> str:
        return product_key(self.product_id)

    @property
    def has_valid_normalization(self) -> bool:
        return self.normalized_unit is not None and self.normalized_quantity > 0

    @property
    def package_info(self) -> str:
        unit = self.package_unit.value if self.package_unit else "unit"
        return f"{self.package_quantity:.2f} {unit}"

    def __eq__(self, other):
        if not isinstance(other, Product):
            return NotImplemented
        return self.key == other.key

    def __hash__(self):
        return hash(self.key)

    def __repr__(self):
        pkg_unit = self.package_unit.value if self.package_unit else "[UNKNOWN_UNIT]"
        norm_unit = self.normalized_unit.value if self.normalized_unit else "[UNKNOWN_BASE]"
        return (
            f"<Product {self.product_id} '{self.product_name}' "
            f"{self.package_quantity} {pkg_unit} → {self.normalized_quantity:.3f} {norm_unit}>"
        )


def build_product(
    product_id: str,
    product_name: str,
    category: Optional[str],
    brand: Optional[str],
    package_quantity: float,
    package_unit: Optional[str],
) -> ValidationResult[Product]:
    """Construct a Product and report an unrecognized package unit as a warning."""
    product = Product(product_id, product_name, category, brand, package_quantity, package_unit)
    warnings = []
    if product.normalized_unit is None:
        warnings.append(
            f"Normalization skipped for product {product_id}: unknown unit '{package_unit}'"
        )
    for message in warnings:
        logger.warning(message)
    return ValidationResult(product, warnings)


@dataclass(frozen=True)
class PriceEntry:
    """Price observed for a product at one store on one day"""
    product: Product
    store_name: str
    entry_date: date
    price: float
    currency: str = "RON"
    price_per_normalized_unit: float = field(init=False, default=0.0)

    def __post_init__(self):
        object.__setattr__(self, "currency", (self.currency or "").strip().upper())
        if self.product is None or not self.product.has_valid_normalization:
            ppu = self.price
        else:
            ppu = self.price / self.product.normalized_quantity
        object.__setattr__(self, "price_per_normalized_unit", ppu)

    @property
    def unit_for_normalized_price(self) -> str:
        if self.product is not None and self.product.normalized_unit is not None:
            return self.product.normalized_unit.value
        if self.product is not None and self.product.package_unit is not None:
            return self.product.package_unit.value
        return "pachet"

    def __repr__(self):
        return (
            f"<PriceEntry {self.product.product_id} @ {self.store_name} {self.entry_date}: "
            f"{self.price:.2f} {self.currency} "
            f"({self.price_per_normalized_unit:.2f}/{self.unit_for_normalized_price})>"
        )


@dataclass(frozen=True)
class Discount:
    """Percentage discount active between start_date and end_date (both inclusive)"""
    product: Product
    store_name: str
    start_date: date
    end_date: date
    percentage: float
    observation_date: date

    def is_active_on(self, check_date: date) -> bool:
        return self.start_date <= check_date <= self.end_date


def build_discount(
    product: Product,
    store_name: str,
    start_date: date,
    end_date: date,
    percentage: float,
    observation_date: date,
) -> ValidationResult[Discount]:
    """
    Construct a Discount.

    Percentages outside 0-100 are kept as given and reported as a warning.
    """
    discount = Discount(product, store_name, start_date, end_date, percentage, observation_date)
    warnings = []
    if percentage < 0 or percentage > 100:
        warnings.append(
            f"Discount percentage {percentage}% for product {product.product_id} "
            f"is outside the 0-100 range. Using as is."
        )
    if end_date < start_date:
        warnings.append(
            f"Discount for product {product.product_id} at {store_name} ends "
            f"({end_date}) before it starts ({start_date})"
        )
    for message in warnings:
        logger.warning(message)
    return ValidationResult(discount, warnings)


@dataclass(frozen=True)
class PriceAlert:
    """A user's target price for a product. Replaced, never mutated."""
    user_id: int
    product: Product
    target_price: float
    active: bool = True
    date_created: Optional[date] = None

    def deactivate(self) -> "PriceAlert":
        return replace(self, active=False)

    def __str__(self):
        return (
            f"Alert for UserID {self.user_id}: Product '{self.product.product_name}' "
            f"(ID: {self.product.product_id}), Target Price: {self.target_price:.2f}, "
            f"Active: {self.active}, Created: {self.date_created}"
        )


@dataclass(frozen=True)
class User:
    """Registered shopper"""
    user_id: int
    username: str
    first_name: str = ""
    last_name: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
