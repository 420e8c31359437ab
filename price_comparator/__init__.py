"""
Price Comparator

Compares grocery prices across stores: current and new discounts,
price history, best value per unit, basket optimization and price alerts.
"""

from price_comparator.alerts import AlertStore, PriceAlertService
from price_comparator.basket_optimizer import BasketOptimizer, BasketStrategy, CheapestPerItemStrategy
from price_comparator.discount_service import DiscountService
from price_comparator.ingestion import DataLoader
from price_comparator.models import Discount, PriceAlert, PriceEntry, Product, User
from price_comparator.price_history import PriceHistoryService
from price_comparator.recommendation import RecommendationService
from price_comparator.repositories import PriceCatalog
from price_comparator.unit_converter import UnitNormalizer, UnitType, normalize

__version__ = "0.1.0"

__all__ = [
    "AlertStore",
    "BasketOptimizer",
    "BasketStrategy",
    "CheapestPerItemStrategy",
    "DataLoader",
    "Discount",
    "DiscountService",
    "PriceAlert",
    "PriceAlertService",
    "PriceCatalog",
    "PriceEntry",
    "PriceHistoryService",
    "Product",
    "RecommendationService",
    "UnitNormalizer",
    "UnitType",
    "User",
    "normalize",
]
