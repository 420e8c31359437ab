"""
Basket Optimizer - Cheapest Store per Item

For every requested product, pick the lowest current price across all
stores, then group the resulting line items by the store that won them.

Each item is assigned independently (greedy per item). The result is the
cheapest sum of item prices, not the plan with the fewest store visits.
Other assignment policies plug in through BasketStrategy.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Mapping, Optional

from price_comparator.config import Clock, default_clock, recency_cutoff
from price_comparator.models import PriceEntry, Product
from price_comparator.repositories import PriceCatalog
from price_comparator.results import (
    UNPRICED_GROUP,
    OptimizedShoppingList,
    ShoppingListItem,
    to_money,
)

logger = logging.getLogger(__name__)


@dataclass
class ItemAssignment:
    """Store chosen for one basket item."""
    store_name: str
    price: float


class BasketStrategy:
    """Chooses where to buy a single basket item."""

    def assign(self, product: Product, entries: List[PriceEntry]) -> Optional[ItemAssignment]:
        """
        Args:
            product: The requested product
            entries: Its price observations inside the recency window

        Returns:
            ItemAssignment, or None if the item cannot be priced
        """
        raise NotImplementedError


class CheapestPerItemStrategy(BasketStrategy):
    """Lowest observed price wins; the first observation wins a tie."""

    def assign(self, product: Product, entries: List[PriceEntry]) -> Optional[ItemAssignment]:
        if not entries:
            return None
        cheapest = min(entries, key=lambda entry: entry.price)
        return ItemAssignment(store_name=cheapest.store_name, price=cheapest.price)


class BasketOptimizer:
    """Groups a basket into per-store shopping lists"""

    def __init__(
        self,
        catalog: PriceCatalog,
        strategy: Optional[BasketStrategy] = None,
        clock: Optional[Clock] = None,
    ):
        self.catalog = catalog
        self.strategy = strategy or CheapestPerItemStrategy()
        self.clock = clock or default_clock

    def optimize(self, items: Mapping[str, int]) -> List[OptimizedShoppingList]:
        """
        Optimize a shopping basket.

        Unknown product ids are skipped. Known products without a recent
        price go to the UNPRICED_GROUP list with zero price and subtotal.

        Args:
            items: Product id → requested quantity

        Returns:
            OptimizedShoppingList per store, sorted by store name
        """
        if not items:
            return []

        cutoff = recency_cutoff(self.clock())
        groups: Dict[str, List[ShoppingListItem]] = defaultdict(list)
        total = Decimal("0.00")

        for product_id, quantity in items.items():
            product = self.catalog.products.find_by_id(product_id)
            if product is None:
                logger.warning(f"Product with ID {product_id} in basket not found in catalog. Skipping.")
                continue
            if quantity is None or quantity <= 0:
                logger.warning(f"Invalid quantity {quantity} for product {product_id}. Skipping.")
                continue

            recent = [
                entry for entry in self.catalog.prices.find_by_product_id(product.product_id)
                if entry.entry_date >= cutoff
            ]
            assignment = self.strategy.assign(product, recent)

            if assignment is None:
                logger.warning(f"No current price found for product ID {product_id}")
                groups[UNPRICED_GROUP].append(
                    ShoppingListItem(
                        product_id=product.product_id,
                        product_name=product.product_name,
                        brand=product.brand,
                        quantity=quantity,
                        unit_price=Decimal("0.00"),
                        subtotal=Decimal("0.00"),
                        package_info="Price Not Found",
                    )
                )
                continue

            unit_price = to_money(assignment.price)
            subtotal = unit_price * quantity
            groups[assignment.store_name].append(
                ShoppingListItem(
                    product_id=product.product_id,
                    product_name=product.product_name,
                    brand=product.brand,
                    quantity=quantity,
                    unit_price=unit_price,
                    subtotal=subtotal,
                    package_info=product.package_info,
                )
            )
            total += subtotal

        logger.info(f"Estimated basket cost (cheapest item by item): {to_money(total)}")

        return [
            OptimizedShoppingList(
                store_name=store_name,
                items=line_items,
                store_total=to_money(sum((item.subtotal for item in line_items), Decimal("0.00"))),
            )
            for store_name, line_items in sorted(groups.items())
        ]
