"""
Price Alerts

- AlertStore: the alert collection, one alert per (user, product)
- PriceAlertService: set, remove and deactivate alerts, and poll for triggered ones

Polling is read-only: a triggered alert keeps triggering on every check
until its owner removes or deactivates it.
"""

import logging
import math
import threading
from typing import Dict, List, Optional

from price_comparator.config import Clock, default_clock, recency_cutoff
from price_comparator.models import PriceAlert, product_key
from price_comparator.repositories import PriceCatalog
from price_comparator.results import TriggeredAlert, to_money

logger = logging.getLogger(__name__)


class AlertStore:
    """Alerts keyed by user id, then by product key"""

    def __init__(self):
        self._alerts: Dict[int, Dict[str, PriceAlert]] = {}
        self._lock = threading.Lock()

    def put(self, alert: PriceAlert) -> Optional[PriceAlert]:
        """Store an alert, returning the one it replaced (if any)."""
        with self._lock:
            user_alerts = self._alerts.setdefault(alert.user_id, {})
            previous = user_alerts.get(alert.product.key)
            user_alerts[alert.product.key] = alert
            return previous

    def remove(self, user_id: int, product_id: str) -> bool:
        """Delete an active alert; inactive alerts stay on record."""
        key = product_key(product_id)
        with self._lock:
            user_alerts = self._alerts.get(user_id)
            if not user_alerts or key not in user_alerts:
                return False
            if not user_alerts[key].active:
                return False
            del user_alerts[key]
            if not user_alerts:
                del self._alerts[user_id]
            return True

    def deactivate(self, user_id: int, product_id: str) -> bool:
        """Swap an active alert for its inactive copy."""
        key = product_key(product_id)
        with self._lock:
            alert = self._alerts.get(user_id, {}).get(key)
            if alert is None or not alert.active:
                return False
            self._alerts[user_id][key] = alert.deactivate()
            return True

    def get(self, user_id: int, product_id: str) -> Optional[PriceAlert]:
        with self._lock:
            return self._alerts.get(user_id, {}).get(product_key(product_id))

    def for_user(self, user_id: int) -> List[PriceAlert]:
        with self._lock:
            alerts = list(self._alerts.get(user_id, {}).values())
        return sorted(alerts, key=lambda a: a.product.product_id)

    def all_alerts(self) -> List[PriceAlert]:
        with self._lock:
            alerts = [a for user_alerts in self._alerts.values() for a in user_alerts.values()]
        return sorted(alerts, key=lambda a: (a.user_id, a.product.product_id))

    def clear(self) -> None:
        with self._lock:
            self._alerts.clear()

    def __len__(self):
        with self._lock:
            return sum(len(user_alerts) for user_alerts in self._alerts.values())


class PriceAlertService:
    """Manages user price alerts against the catalog"""

    def __init__(self, catalog: PriceCatalog, store: AlertStore, clock: Optional[Clock] = None):
        self.catalog = catalog
        self.store = store
        self.clock = clock or default_clock

    def set_alert(self, user_id: int, product_id: str, target_price: float) -> bool:
        """
        Create or replace the alert for (user, product).

        Returns:
            False when the user or product is unknown or the target is not a
            positive finite number
        """
        if self.catalog.users.find_by_id(user_id) is None:
            logger.warning(f"Cannot set alert. User with ID {user_id} not found.")
            return False

        product = self.catalog.products.find_by_id(product_id)
        if product is None:
            logger.warning(f"Cannot set alert. Product with ID {product_id} not found.")
            return False

        if target_price is None or not math.isfinite(target_price) or target_price <= 0:
            logger.warning(f"Cannot set alert. Target price {target_price} must be a positive number.")
            return False

        alert = PriceAlert(
            user_id=user_id,
            product=product,
            target_price=target_price,
            active=True,
            date_created=self.clock(),
        )
        replaced = self.store.put(alert)
        action = "replaced" if replaced else "set"
        logger.info(f"Price alert {action} for user {user_id}, product {product.product_id}, target {target_price}")
        return True

    def remove_alert(self, user_id: int, product_id: str) -> bool:
        """Delete an active alert. Inactive or unknown alerts give False."""
        removed = self.store.remove(user_id, product_id)
        if removed:
            logger.info(f"Price alert removed for user {user_id}, product {product_id}")
        else:
            logger.warning(f"No active price alert for user {user_id}, product {product_id}")
        return removed

    def deactivate_alert(self, user_id: int, product_id: str) -> bool:
        """Keep the alert on record but stop it from triggering."""
        deactivated = self.store.deactivate(user_id, product_id)
        if deactivated:
            logger.info(f"Price alert deactivated for user {user_id}, product {product_id}")
        return deactivated

    def get_alerts_for_user(self, user_id: int, active_only: bool = False) -> List[PriceAlert]:
        alerts = self.store.for_user(user_id)
        if active_only:
            return [a for a in alerts if a.active]
        return alerts

    def check_triggered_alerts(self) -> List[TriggeredAlert]:
        """
        Compare every active alert with the cheapest price seen in the
        recency window.

        Returns:
            TriggeredAlert for each alert whose target is met, ordered by
            user id then product id
        """
        cutoff = recency_cutoff(self.clock())
        triggered = []

        for alert in self.store.all_alerts():
            if not alert.active:
                continue

            recent = [
                entry for entry in self.catalog.prices.find_by_product_id(alert.product.product_id)
                if entry.entry_date >= cutoff
            ]
            if not recent:
                continue

            cheapest = min(recent, key=lambda entry: entry.price)
            if cheapest.price <= alert.target_price:
                triggered.append(
                    TriggeredAlert(
                        user_id=alert.user_id,
                        product_id=alert.product.product_id,
                        product_name=alert.product.product_name,
                        brand=alert.product.brand,
                        store_name=cheapest.store_name,
                        current_price=to_money(cheapest.price),
                        target_price=to_money(alert.target_price),
                    )
                )

        if triggered:
            logger.info(f"Found {len(triggered)} triggered price alerts")
        return triggered
