"""Filtered, date-ordered price history."""

import logging
from datetime import date
from typing import List, Optional

from price_comparator.models import PriceEntry, product_key
from price_comparator.repositories import PriceCatalog
from price_comparator.results import PriceHistoryPoint, to_money

logger = logging.getLogger(__name__)


def _same(value: Optional[str], wanted: str) -> bool:
    return value is not None and value.strip().casefold() == wanted


def _given(text: Optional[str]) -> bool:
    return text is not None and bool(text.strip())


class PriceHistoryService:
    def __init__(self, catalog: PriceCatalog):
        self.catalog = catalog

    def history(
        self,
        product_id: Optional[str] = None,
        store: Optional[str] = None,
        category: Optional[str] = None,
        brand: Optional[str] = None,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
    ) -> List[PriceHistoryPoint]:
        """
        Price observations matching every given filter, oldest first.

        A product id, category or brand is required. When a product id is
        given, category and brand are ignored. Both date bounds are inclusive.
        """
        logger.debug(
            f"Price history: product={product_id}, store={store}, category={category}, "
            f"brand={brand}, from={from_date}, to={to_date}"
        )

        entries = self.catalog.prices.find_all()

        if _given(product_id):
            key = product_key(product_id)
            entries = [e for e in entries if e.product.key == key]
        elif _given(category) or _given(brand):
            if _given(category):
                wanted = category.strip().casefold()
                entries = [e for e in entries if _same(e.product.category, wanted)]
            if _given(brand):
                wanted = brand.strip().casefold()
                entries = [e for e in entries if _same(e.product.brand, wanted)]
        else:
            logger.warning("Price history requested without product id, category or brand")
            return []

        if _given(store):
            wanted = store.strip().casefold()
            entries = [e for e in entries if _same(e.store_name, wanted)]
        if from_date is not None:
            entries = [e for e in entries if e.entry_date >= from_date]
        if to_date is not None:
            entries = [e for e in entries if e.entry_date <= to_date]

        entries.sort(key=lambda e: e.entry_date)
        if not entries:
            logger.info("No price entries found for the given criteria")

        return [self._to_point(e) for e in entries]

    @staticmethod
    def _to_point(entry: PriceEntry) -> PriceHistoryPoint:
        return PriceHistoryPoint(
            date=entry.entry_date,
            price=to_money(entry.price),
            store_name=entry.store_name,
            product_id=entry.product.product_id,
            currency=entry.currency,
        )
