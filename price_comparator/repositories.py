"""
In-memory repositories for the Price Comparator

Handles:
- Product catalog keyed by product id
- Append-only price entry and discount lists
- User registry keyed by user id
- PriceCatalog: the bundle every service is constructed with

Writes take a per-repository lock; reads work on a snapshot copy so
queries never block ingestion for longer than a list copy.
String lookups are case-insensitive.
"""

import logging
import math
import threading
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional

from price_comparator.models import Discount, PriceEntry, Product, User, product_key

logger = logging.getLogger(__name__)


def _matches(value: Optional[str], wanted: str) -> bool:
    return value is not None and value.strip().casefold() == wanted


def _clean(text: Optional[str]) -> Optional[str]:
    if text is None or not text.strip():
        return None
    return text.strip().casefold()


def _require_finite_price(entry: PriceEntry) -> None:
    if not math.isfinite(entry.price):
        raise ValueError(f"PriceEntry price must be finite, got {entry.price}")


def _require_finite_percentage(discount: Discount) -> None:
    if not math.isfinite(discount.percentage):
        raise ValueError(f"Discount percentage must be finite, got {discount.percentage}")


class ProductRepository:
    """Products keyed by case-insensitive product id; last write wins"""

    def __init__(self):
        self._products: Dict[str, Product] = {}
        self._lock = threading.Lock()

    def save(self, product: Product) -> Product:
        if product is None or not product.product_id:
            raise ValueError("Product or product id cannot be empty")
        with self._lock:
            self._products[product.key] = product
        return product

    def save_all(self, products: Iterable[Product]) -> List[Product]:
        saved = [self.save(p) for p in products if p is not None]
        logger.debug(f"Saved {len(saved)} products")
        return saved

    def find_by_id(self, product_id: Optional[str]) -> Optional[Product]:
        if not product_id:
            return None
        return self._products.get(product_key(product_id))

    def exists_by_id(self, product_id: Optional[str]) -> bool:
        return self.find_by_id(product_id) is not None

    def find_all(self) -> List[Product]:
        with self._lock:
            return list(self._products.values())

    def count(self) -> int:
        return len(self._products)

    def delete_by_id(self, product_id: str) -> bool:
        with self._lock:
            return self._products.pop(product_key(product_id), None) is not None

    def delete_all(self) -> None:
        with self._lock:
            self._products.clear()
        logger.info("All products cleared from repository")

    def find_by_category(self, category: Optional[str]) -> List[Product]:
        wanted = _clean(category)
        if wanted is None:
            return []
        return [p for p in self.find_all() if _matches(p.category, wanted)]

    def find_by_brand(self, brand: Optional[str]) -> List[Product]:
        wanted = _clean(brand)
        if wanted is None:
            return []
        return [p for p in self.find_all() if _matches(p.brand, wanted)]

    def find_by_name_and_brand(self, name: str, brand: str) -> Optional[Product]:
        wanted_name, wanted_brand = _clean(name), _clean(brand)
        if wanted_name is None or wanted_brand is None:
            return None
        for product in self.find_all():
            if _matches(product.product_name, wanted_name) and _matches(product.brand, wanted_brand):
                return product
        return None

    def find_by_name_containing(self, fragment: Optional[str]) -> List[Product]:
        wanted = _clean(fragment)
        if wanted is None:
            return []
        return [
            p for p in self.find_all()
            if p.product_name and wanted in p.product_name.casefold()
        ]


class PriceEntryRepository:
    """Append-only list of price observations"""

    def __init__(self):
        self._entries: List[PriceEntry] = []
        self._lock = threading.Lock()

    def save(self, entry: PriceEntry) -> PriceEntry:
        if entry is None:
            raise ValueError("PriceEntry cannot be None")
        _require_finite_price(entry)
        with self._lock:
            self._entries.append(entry)
        return entry

    def save_all(self, entries: Iterable[PriceEntry]) -> List[PriceEntry]:
        batch = [e for e in entries if e is not None]
        for entry in batch:
            _require_finite_price(entry)
        with self._lock:
            self._entries.extend(batch)
        return batch

    def find_all(self) -> List[PriceEntry]:
        with self._lock:
            return list(self._entries)

    def count(self) -> int:
        return len(self._entries)

    def find_by_product_id(self, product_id: Optional[str]) -> List[PriceEntry]:
        if not product_id:
            return []
        key = product_key(product_id)
        return [e for e in self.find_all() if e.product is not None and e.product.key == key]

    def find_by_store_name(self, store_name: Optional[str]) -> List[PriceEntry]:
        wanted = _clean(store_name)
        if wanted is None:
            return []
        return [e for e in self.find_all() if _matches(e.store_name, wanted)]

    def find_by_entry_date(self, entry_date: Optional[date]) -> List[PriceEntry]:
        if entry_date is None:
            return []
        return [e for e in self.find_all() if e.entry_date == entry_date]

    def find_by_store_name_and_entry_date(self, store_name: str, entry_date: date) -> List[PriceEntry]:
        wanted = _clean(store_name)
        if wanted is None or entry_date is None:
            return []
        return [
            e for e in self.find_all()
            if _matches(e.store_name, wanted) and e.entry_date == entry_date
        ]

    def find_by_date_range(self, start: date, end: date) -> List[PriceEntry]:
        if start is None or end is None:
            return []
        return [e for e in self.find_all() if start <= e.entry_date <= end]

    def delete_all(self) -> None:
        with self._lock:
            self._entries.clear()
        logger.info("All price entries cleared")


class DiscountRepository:
    """Append-only list of discounts"""

    def __init__(self):
        self._discounts: List[Discount] = []
        self._lock = threading.Lock()

    def save(self, discount: Discount) -> Discount:
        if discount is None:
            raise ValueError("Discount cannot be None")
        _require_finite_percentage(discount)
        with self._lock:
            self._discounts.append(discount)
        return discount

    def save_all(self, discounts: Iterable[Discount]) -> List[Discount]:
        batch = [d for d in discounts if d is not None]
        for discount in batch:
            _require_finite_percentage(discount)
        with self._lock:
            self._discounts.extend(batch)
        return batch

    def find_all(self) -> List[Discount]:
        with self._lock:
            return list(self._discounts)

    def count(self) -> int:
        return len(self._discounts)

    def find_by_product_id(self, product_id: Optional[str]) -> List[Discount]:
        if not product_id:
            return []
        key = product_key(product_id)
        return [d for d in self.find_all() if d.product is not None and d.product.key == key]

    def find_by_store_name(self, store_name: Optional[str]) -> List[Discount]:
        wanted = _clean(store_name)
        if wanted is None:
            return []
        return [d for d in self.find_all() if _matches(d.store_name, wanted)]

    def find_active_on_date(self, check_date: Optional[date]) -> List[Discount]:
        if check_date is None:
            return []
        return [d for d in self.find_all() if d.is_active_on(check_date)]

    def find_by_date_range(self, start: date, end: date) -> List[Discount]:
        """Discounts whose active period overlaps [start, end]."""
        if start is None or end is None:
            return []
        return [d for d in self.find_all() if d.start_date <= end and d.end_date >= start]

    def delete_all(self) -> None:
        with self._lock:
            self._discounts.clear()
        logger.info("All discounts cleared")


class UserRepository:
    """Users keyed by user id; usernames are matched case-insensitively"""

    def __init__(self):
        self._users: Dict[int, User] = {}
        self._lock = threading.Lock()

    def save(self, user: User) -> User:
        if user is None or user.user_id is None:
            raise ValueError("User or user id cannot be empty")
        with self._lock:
            self._users[user.user_id] = user
        return user

    def save_all(self, users: Iterable[User]) -> List[User]:
        return [self.save(u) for u in users if u is not None]

    def find_by_id(self, user_id: Optional[int]) -> Optional[User]:
        if user_id is None:
            return None
        return self._users.get(user_id)

    def exists_by_id(self, user_id: Optional[int]) -> bool:
        return self.find_by_id(user_id) is not None

    def find_by_username(self, username: Optional[str]) -> Optional[User]:
        wanted = _clean(username)
        if wanted is None:
            return None
        for user in self.find_all():
            if _matches(user.username, wanted):
                return user
        return None

    def find_all(self) -> List[User]:
        with self._lock:
            return sorted(self._users.values(), key=lambda u: u.user_id)

    def count(self) -> int:
        return len(self._users)

    def delete_by_id(self, user_id: int) -> bool:
        with self._lock:
            return self._users.pop(user_id, None) is not None

    def delete_all(self) -> None:
        with self._lock:
            self._users.clear()
        logger.info("All users cleared")


@dataclass
class PriceCatalog:
    """Read/write access to every repository the services query"""
    products: ProductRepository = field(default_factory=ProductRepository)
    prices: PriceEntryRepository = field(default_factory=PriceEntryRepository)
    discounts: DiscountRepository = field(default_factory=DiscountRepository)
    users: UserRepository = field(default_factory=UserRepository)

    def clear_market_data(self) -> None:
        """Drop products, prices and discounts; users are kept."""
        self.products.delete_all()
        self.prices.delete_all()
        self.discounts.delete_all()

    def summary(self) -> Dict[str, int]:
        return {
            "products": self.products.count(),
            "price_entries": self.prices.count(),
            "discounts": self.discounts.count(),
            "users": self.users.count(),
        }
