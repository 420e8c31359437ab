"""
Discount Ranking Service

Turns stored discount records into concrete discounted prices:
1. Select discounts active today
2. Resolve each one against the latest price seen at the same store
3. Drop discounts without a reference price or with a non-positive percentage
4. Rank and truncate
"""

import logging
import math
from datetime import timedelta
from decimal import Decimal
from typing import List, Optional

from price_comparator.config import Clock, default_clock
from price_comparator.models import Discount
from price_comparator.repositories import PriceCatalog
from price_comparator.results import DiscountedProduct, to_money

logger = logging.getLogger(__name__)

HUNDRED = Decimal(100)


def hours_to_days(hours_ago: int) -> int:
    """
    Convert an hour look-back to whole days, rounding up.

    Observation dates have day granularity, so 1 hour and 24 hours
    both mean "since yesterday".
    """
    return math.ceil(hours_ago / 24)


class DiscountService:
    """Service ranking current and newly observed discounts"""

    def __init__(self, catalog: PriceCatalog, clock: Optional[Clock] = None):
        self.catalog = catalog
        self.clock = clock or default_clock

    def best_current_discounts(self, limit: int) -> List[DiscountedProduct]:
        """
        Highest discounts active today.

        Args:
            limit: Maximum number of records to return

        Returns:
            DiscountedProduct records sorted by percentage, highest first
        """
        today = self.clock()
        logger.debug(f"Fetching best current discounts for {today}, limit {limit}")

        active = self.catalog.discounts.find_active_on_date(today)
        if not active:
            logger.info("No active discounts found for today")
            return []

        resolved = self._resolve_all(active)
        resolved.sort(key=lambda d: d.discount_percentage, reverse=True)
        return resolved[:max(limit, 0)]

    def new_discounts(self, hours_ago: int, limit: int) -> List[DiscountedProduct]:
        """
        Discounts active today that were first observed recently.

        The look-back is converted to whole days with hours_to_days(), so
        any value from 1 to 24 hours covers today and yesterday.

        Args:
            hours_ago: Look-back window in hours
            limit: Maximum number of records to return

        Returns:
            DiscountedProduct records, newest observation first, then by
            percentage, highest first
        """
        today = self.clock()
        days = hours_to_days(hours_ago)
        since = today - timedelta(days=days)
        logger.debug(f"Fetching discounts active on {today} observed since {since}, limit {limit}")

        recent = [
            d for d in self.catalog.discounts.find_all()
            if d.is_active_on(today) and d.observation_date >= since
        ]
        if not recent:
            logger.info(f"No new and active discounts found since {since}")
            return []

        recent.sort(key=lambda d: (d.observation_date, d.percentage), reverse=True)
        return self._resolve_all(recent)[:max(limit, 0)]

    def _resolve_all(self, discounts: List[Discount]) -> List[DiscountedProduct]:
        resolved = []
        for discount in discounts:
            record = self.resolve(discount)
            if record is not None and record.discount_percentage > 0:
                resolved.append(record)
        return resolved

    def resolve(self, discount: Discount) -> Optional[DiscountedProduct]:
        """
        Price a discount against the most recent observation for the same
        product at the same store.

        Returns:
            DiscountedProduct, or None when no reference price exists
        """
        product = discount.product
        store = discount.store_name.strip().casefold()
        candidates = [
            entry for entry in self.catalog.prices.find_by_product_id(product.product_id)
            if entry.store_name.strip().casefold() == store
        ]
        if not candidates:
            logger.warning(
                f"No price entry found for product {product.product_id} at store "
                f"{discount.store_name}; discount omitted"
            )
            return None

        reference = max(candidates, key=lambda entry: entry.entry_date)
        original_price = to_money(reference.price)
        factor = 1 - Decimal(str(discount.percentage)) / HUNDRED
        discounted_price = to_money(original_price * factor)

        return DiscountedProduct(
            product_id=product.product_id,
            product_name=product.product_name,
            brand=product.brand,
            store_name=discount.store_name,
            original_price=original_price,
            discounted_price=discounted_price,
            discount_percentage=discount.percentage,
            package_info=product.package_info,
        )
