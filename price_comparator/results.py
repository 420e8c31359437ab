"""
Presentation records returned by the services.

Every record is flat, carries money as Decimal rounded half-up to
2 places, and converts to a JSON-friendly dict with to_dict().
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Optional, Union

# Synthetic group for basket items that exist but have no current price
UNPRICED_GROUP = "Items_Not_Found_Or_Priced"

CENT = Decimal("0.01")


def to_money(value: Union[float, int, str, Decimal]) -> Decimal:
    """
    Round a price to 2 decimals, half-up.

    Raises:
        ValueError: If the value is infinite or NaN
    """
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    if not value.is_finite():
        raise ValueError(f"Cannot express non-finite amount {value} as money")
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass
class DiscountedProduct:
    product_id: str
    product_name: str
    brand: Optional[str]
    store_name: str
    original_price: Decimal
    discounted_price: Decimal
    discount_percentage: float
    package_info: str

    def to_dict(self) -> Dict:
        return {
            "product_id": self.product_id,
            "product_name": self.product_name,
            "brand": self.brand,
            "store": self.store_name,
            "original_price": float(self.original_price),
            "discounted_price": float(self.discounted_price),
            "discount_percentage": self.discount_percentage,
            "package": self.package_info,
        }

    def __str__(self):
        return (
            f"{self.product_name} ({self.brand}) at {self.store_name}: "
            f"Was {self.original_price:.2f}, Now {self.discounted_price:.2f} "
            f"({self.discount_percentage:.0f}% off) [{self.package_info}]"
        )


@dataclass
class PriceHistoryPoint:
    date: date
    price: Decimal
    store_name: str
    product_id: str
    currency: str = ""

    def to_dict(self) -> Dict:
        return {
            "date": self.date.isoformat(),
            "price": float(self.price),
            "store": self.store_name,
            "product_id": self.product_id,
            "currency": self.currency,
        }

    def __str__(self):
        return f"{self.date} | {self.store_name:<12} | {self.product_id:<8} | {self.price:.2f} {self.currency}"


@dataclass
class ProductRecommendation:
    product_id: str
    product_name: str
    brand: Optional[str]
    store_name: str
    price: Decimal
    package_info: str
    price_per_unit: Decimal
    normalized_unit: str
    category: Optional[str]

    def to_dict(self) -> Dict:
        return {
            "product_id": self.product_id,
            "product_name": self.product_name,
            "brand": self.brand,
            "store": self.store_name,
            "price": float(self.price),
            "package": self.package_info,
            "price_per_unit": float(self.price_per_unit),
            "unit": self.normalized_unit,
            "category": self.category,
        }

    def __str__(self):
        return (
            f"{self.product_name} ({self.brand}) at {self.store_name}: "
            f"{self.price:.2f} for {self.package_info} → "
            f"{self.price_per_unit:.2f}/{self.normalized_unit}"
        )


@dataclass
class ShoppingListItem:
    product_id: str
    product_name: str
    brand: Optional[str]
    quantity: int
    unit_price: Decimal
    subtotal: Decimal
    package_info: str

    def to_dict(self) -> Dict:
        return {
            "product_id": self.product_id,
            "product_name": self.product_name,
            "brand": self.brand,
            "quantity": self.quantity,
            "unit_price": float(self.unit_price),
            "subtotal": float(self.subtotal),
            "package": self.package_info,
        }

    def __str__(self):
        return (
            f"  • {self.product_name} ({self.brand}) x{self.quantity} "
            f"@ {self.unit_price:.2f} = {self.subtotal:.2f} [{self.package_info}]"
        )


@dataclass
class OptimizedShoppingList:
    """Line items won by one store (or the unpriced group)"""
    store_name: str
    items: List[ShoppingListItem] = field(default_factory=list)
    store_total: Decimal = Decimal("0.00")

    @property
    def is_unpriced(self) -> bool:
        return self.store_name == UNPRICED_GROUP

    def to_dict(self) -> Dict:
        return {
            "store": self.store_name,
            "items": [item.to_dict() for item in self.items],
            "store_total": float(self.store_total),
        }

    def __str__(self):
        lines = [f"Store: {self.store_name}"]
        lines.extend(str(item) for item in self.items)
        lines.append(f"  Store total: {self.store_total:.2f}")
        return "\n".join(lines)


def basket_total(lists: Iterable[OptimizedShoppingList]) -> Decimal:
    """Sum of every priced group; the unpriced group is excluded."""
    total = Decimal("0.00")
    for shopping_list in lists:
        if not shopping_list.is_unpriced:
            total += shopping_list.store_total
    return to_money(total)


@dataclass
class TriggeredAlert:
    user_id: int
    product_id: str
    product_name: str
    brand: Optional[str]
    store_name: str
    current_price: Decimal
    target_price: Decimal

    def to_dict(self) -> Dict:
        return {
            "user_id": self.user_id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "brand": self.brand,
            "store": self.store_name,
            "current_price": float(self.current_price),
            "target_price": float(self.target_price),
        }

    def __str__(self):
        return (
            f"ALERT TRIGGERED for User ID {self.user_id}: Product '{self.product_name}' "
            f"(ID: {self.product_id}, Brand: {self.brand or 'N/A'}) is now "
            f"{self.current_price:.2f} at {self.store_name}. "
            f"(Target was <= {self.target_price:.2f})"
        )
