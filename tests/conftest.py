"""Shared fixtures: a catalog seeded relative to a fixed date."""

from datetime import date, timedelta

import pytest

from price_comparator.models import Discount, PriceEntry, Product, User
from price_comparator.repositories import PriceCatalog

TODAY = date(2025, 5, 8)


def days_ago(n: int) -> date:
    return TODAY - timedelta(days=n)


def days_ahead(n: int) -> date:
    return TODAY + timedelta(days=n)


@pytest.fixture
def clock():
    return lambda: TODAY


@pytest.fixture
def products():
    return {
        "P001": Product("P001", "lapte zuzu", "lactate", "Zuzu", 1, "l"),
        "P002": Product("P002", "lapte napolact", "lactate", "Napolact", 500, "ml"),
        "P003": Product("P003", "iaurt grecesc", "lactate", "Olympus", 400, "g"),
        "P004": Product("P004", "oua marimea M", "oua", "Lidl", 10, "buc"),
        "P005": Product("P005", "branza la sac", "lactate", "NoName", 2, "sac"),
        "P006": Product("P006", "paine alba", "panificatie", "Vel Pitar", 500, "g"),
    }


@pytest.fixture
def catalog(products):
    """
    Prices (relative to TODAY):
        P001: Lidl 10.00 (-10d), Lidl 9.50 (-1d), Kaufland 9.90 (-2d), Profi 8.90 (0d)
        P002: Lidl 5.20 (-1d), Kaufland 4.80 (-3d)
        P003: Kaufland 6.00 (-1d)
        P004: Lidl 12.00 (-2d)
        P005: Lidl 3.00 (-1d), unknown unit
        P006: Lidl 4.00 (-20d), stale
    """
    catalog = PriceCatalog()
    catalog.products.save_all(products.values())

    p = products
    catalog.prices.save_all([
        PriceEntry(p["P001"], "Lidl", days_ago(10), 10.00, "RON"),
        PriceEntry(p["P001"], "Lidl", days_ago(1), 9.50, "RON"),
        PriceEntry(p["P001"], "Kaufland", days_ago(2), 9.90, "RON"),
        PriceEntry(p["P001"], "Profi", TODAY, 8.90, "RON"),
        PriceEntry(p["P002"], "Lidl", days_ago(1), 5.20, "RON"),
        PriceEntry(p["P002"], "Kaufland", days_ago(3), 4.80, "RON"),
        PriceEntry(p["P003"], "Kaufland", days_ago(1), 6.00, "RON"),
        PriceEntry(p["P004"], "Lidl", days_ago(2), 12.00, "RON"),
        PriceEntry(p["P005"], "Lidl", days_ago(1), 3.00, "RON"),
        PriceEntry(p["P006"], "Lidl", days_ago(20), 4.00, "RON"),
    ])

    catalog.discounts.save_all([
        Discount(p["P001"], "Lidl", days_ago(3), days_ahead(4), 10, days_ago(3)),
        Discount(p["P002"], "Kaufland", days_ago(1), days_ahead(6), 25, days_ago(1)),
        Discount(p["P003"], "Kaufland", TODAY, days_ahead(2), 0, TODAY),
        Discount(p["P004"], "Lidl", days_ago(10), days_ago(5), 50, days_ago(10)),
        Discount(p["P004"], "Profi", days_ago(1), days_ahead(1), 30, TODAY),
        Discount(p["P004"], "Lidl", days_ago(2), days_ahead(2), 15, TODAY),
    ])

    catalog.users.save_all([
        User(1, "alice", "Alice", "Popescu"),
        User(2, "bob", "Bob", "Ionescu"),
    ])
    return catalog
