"""
Best Value Recommendations

Ranks products by price per normalized unit (per l, kg or buc):
- Candidates: a product and its category siblings, or a whole category
- One price per store: the most recent observation at that store
- Only observations inside the recency window count
- Products with unknown units cannot be compared and are left out
"""

import logging
from typing import Dict, List, Optional

from price_comparator.config import Clock, default_clock, recency_cutoff
from price_comparator.models import PriceEntry, Product
from price_comparator.repositories import PriceCatalog
from price_comparator.results import ProductRecommendation, to_money

logger = logging.getLogger(__name__)


class RecommendationService:
    """Service computing best-value (price per unit) rankings"""

    def __init__(self, catalog: PriceCatalog, clock: Optional[Clock] = None):
        self.catalog = catalog
        self.clock = clock or default_clock

    def best_value(
        self,
        product_id: Optional[str] = None,
        category: Optional[str] = None,
        limit: int = 5,
    ) -> List[ProductRecommendation]:
        """
        Cheapest offers per normalized unit.

        Args:
            product_id: Rank this product against the rest of its category
            category: Rank every product of this category
            limit: Maximum number of records to return

        Exactly one of product_id and category must be given.

        Returns:
            ProductRecommendation records, lowest price per unit first
        """
        logger.debug(f"Best value for product={product_id}, category={category}, limit={limit}")

        candidates = self._candidates(product_id, category)
        if not candidates:
            return []

        cutoff = recency_cutoff(self.clock())
        current: List[PriceEntry] = []
        for product in candidates:
            latest = self._latest_per_store(self.catalog.prices.find_by_product_id(product.product_id))
            current.extend(entry for entry in latest if entry.entry_date >= cutoff)

        comparable = [entry for entry in current if entry.product.has_valid_normalization]
        comparable.sort(
            key=lambda entry: (
                entry.price_per_normalized_unit,
                entry.product.product_id,
                entry.store_name,
            )
        )

        return [self._to_recommendation(entry) for entry in comparable[:max(limit, 0)]]

    def _candidates(self, product_id: Optional[str], category: Optional[str]) -> List[Product]:
        has_product = bool(product_id and product_id.strip())
        has_category = bool(category and category.strip())

        if has_product == has_category:
            logger.warning("Provide exactly one of product id or category for best value")
            return []

        if has_product:
            product = self.catalog.products.find_by_id(product_id)
            if product is None:
                logger.warning(f"Product with ID {product_id} not found for best value")
                return []
            siblings = [
                p for p in self.catalog.products.find_by_category(product.category)
                if p.key != product.key
            ]
            return [product] + siblings

        products = self.catalog.products.find_by_category(category)
        if not products:
            logger.info(f"No products found in category {category}")
        return products

    @staticmethod
    def _latest_per_store(entries: List[PriceEntry]) -> List[PriceEntry]:
        latest: Dict[str, PriceEntry] = {}
        for entry in entries:
            store = entry.store_name.strip().casefold()
            if store not in latest or entry.entry_date > latest[store].entry_date:
                latest[store] = entry
        return list(latest.values())

    @staticmethod
    def _to_recommendation(entry: PriceEntry) -> ProductRecommendation:
        product = entry.product
        return ProductRecommendation(
            product_id=product.product_id,
            product_name=product.product_name,
            brand=product.brand,
            store_name=entry.store_name,
            price=to_money(entry.price),
            package_info=product.package_info,
            price_per_unit=to_money(entry.price_per_normalized_unit),
            normalized_unit=product.normalized_unit.value,
            category=product.category,
        )
