"""
Command line interface for the Price Comparator

Every command loads the data directory, runs one query and prints the
result (human readable, or JSON with --json).

Examples:
    price-comparator best-discounts --limit 10
    price-comparator history --product P001 --from 2025-05-01
    price-comparator optimize P001=2 P014=1
    price-comparator check-alerts --alert 1:P001:9.50
    price-comparator my-alerts --user 1 --alert 1:P001:9.50
"""

import argparse
import json
import logging
import sys
from dataclasses import asdict
from datetime import date
from typing import Dict, List, Optional, Sequence, Tuple

from price_comparator.alerts import AlertStore, PriceAlertService
from price_comparator.basket_optimizer import BasketOptimizer
from price_comparator.config import configure_logging, get_settings
from price_comparator.discount_service import DiscountService
from price_comparator.exceptions import PriceComparatorError
from price_comparator.ingestion import DataLoader
from price_comparator.models import PriceAlert
from price_comparator.price_history import PriceHistoryService
from price_comparator.recommendation import RecommendationService
from price_comparator.repositories import PriceCatalog
from price_comparator.results import basket_total

logger = logging.getLogger(__name__)


def _iso_date(text: str) -> date:
    try:
        return date.fromisoformat(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid date '{text}', use YYYY-MM-DD")


def _basket_item(text: str) -> Tuple[str, int]:
    product_id, sep, quantity = text.partition("=")
    if not sep or not product_id:
        raise argparse.ArgumentTypeError(f"Invalid item '{text}', use PRODUCT_ID=QUANTITY")
    try:
        return product_id.strip(), int(quantity)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid quantity in '{text}'")


def _alert_arg(text: str) -> Tuple[int, str, float]:
    parts = text.split(":")
    if len(parts) != 3:
        raise argparse.ArgumentTypeError(f"Invalid alert '{text}', use USER_ID:PRODUCT_ID:TARGET")
    try:
        return int(parts[0]), parts[1].strip(), float(parts[2])
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid number in alert '{text}'")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="price-comparator",
        description="Compare grocery prices across stores",
    )
    parser.add_argument("--data-dir", help="Directory with store CSV exports (default: PRICE_DATA_DIR)")
    parser.add_argument("--json", action="store_true", help="Print results as JSON")
    parser.add_argument("--log-level", help="Logging level (default: LOG_LEVEL or INFO)")

    subparsers = parser.add_subparsers(dest="command", required=True)

    best = subparsers.add_parser("best-discounts", help="Highest discounts active today")
    best.add_argument("--limit", type=int, default=10)

    new = subparsers.add_parser("new-discounts", help="Discounts observed recently")
    new.add_argument("--hours", type=int, default=24, help="Look-back in hours (rounded up to days)")
    new.add_argument("--limit", type=int, default=10)

    history = subparsers.add_parser("history", help="Price history for a product, category or brand")
    history.add_argument("--product")
    history.add_argument("--store")
    history.add_argument("--category")
    history.add_argument("--brand")
    history.add_argument("--from", dest="from_date", type=_iso_date)
    history.add_argument("--to", dest="to_date", type=_iso_date)

    value = subparsers.add_parser("best-value", help="Best price per unit")
    selector = value.add_mutually_exclusive_group(required=True)
    selector.add_argument("--product")
    selector.add_argument("--category")
    value.add_argument("--limit", type=int, default=5)

    optimize = subparsers.add_parser("optimize", help="Cheapest store for each basket item")
    optimize.add_argument("items", nargs="+", type=_basket_item, metavar="PRODUCT_ID=QUANTITY")

    alerts = subparsers.add_parser("check-alerts", help="Evaluate price alerts")
    _add_alert_option(alerts)

    my_alerts = subparsers.add_parser("my-alerts", help="List a user's active price alerts")
    my_alerts.add_argument("--user", type=int, required=True)
    _add_alert_option(my_alerts)

    remove = subparsers.add_parser("remove-alert", help="Remove an active price alert")
    remove.add_argument("--user", type=int, required=True)
    remove.add_argument("--product", required=True)
    _add_alert_option(remove)

    subparsers.add_parser("users", help="List known users")
    return parser


def _add_alert_option(subparser: argparse.ArgumentParser) -> None:
    subparser.add_argument(
        "--alert", action="append", type=_alert_arg, default=[],
        metavar="USER_ID:PRODUCT_ID:TARGET", help="Alert to set before running (repeatable)",
    )


def _seeded_alert_service(args: argparse.Namespace, catalog: PriceCatalog) -> PriceAlertService:
    service = PriceAlertService(catalog, AlertStore())
    for user_id, product_id, target in args.alert:
        if not service.set_alert(user_id, product_id, target):
            print(f"Could not set alert {user_id}:{product_id}:{target}", file=sys.stderr)
    return service


def _print_alerts(alerts: List[PriceAlert], as_json: bool, user_id: int) -> None:
    if as_json:
        print(json.dumps([
            {
                "user_id": a.user_id,
                "product_id": a.product.product_id,
                "target_price": a.target_price,
                "active": a.active,
                "date_created": a.date_created.isoformat() if a.date_created else None,
            }
            for a in alerts
        ], indent=2))
    elif not alerts:
        print(f"No active price alerts for user {user_id}.")
    else:
        for alert in alerts:
            print(alert)


def _emit(records: List, as_json: bool, empty_message: str) -> None:
    if as_json:
        print(json.dumps([r.to_dict() for r in records], indent=2))
    elif not records:
        print(empty_message)
    else:
        for record in records:
            print(record)


def run(args: argparse.Namespace, catalog: PriceCatalog) -> int:
    """Execute one parsed command against a loaded catalog."""
    if args.command == "best-discounts":
        _emit(DiscountService(catalog).best_current_discounts(args.limit), args.json,
              "No current discounts found.")

    elif args.command == "new-discounts":
        _emit(DiscountService(catalog).new_discounts(args.hours, args.limit), args.json,
              f"No new discounts found in the last {args.hours} hours (approx).")

    elif args.command == "history":
        points = PriceHistoryService(catalog).history(
            product_id=args.product,
            store=args.store,
            category=args.category,
            brand=args.brand,
            from_date=args.from_date,
            to_date=args.to_date,
        )
        _emit(points, args.json, "No price history found for the given criteria.")

    elif args.command == "best-value":
        recommendations = RecommendationService(catalog).best_value(
            product_id=args.product, category=args.category, limit=args.limit
        )
        _emit(recommendations, args.json, "No recommendations found for the given criteria.")

    elif args.command == "optimize":
        basket: Dict[str, int] = dict(args.items)
        lists = BasketOptimizer(catalog).optimize(basket)
        if args.json:
            print(json.dumps({
                "lists": [shopping_list.to_dict() for shopping_list in lists],
                "total": float(basket_total(lists)),
            }, indent=2))
        elif not lists:
            print("Could not generate optimized shopping lists.")
        else:
            for shopping_list in lists:
                print(shopping_list)
            print(f"\nEstimated Total Cost for Priced Items: {basket_total(lists):.2f}")

    elif args.command == "check-alerts":
        service = _seeded_alert_service(args, catalog)
        _emit(service.check_triggered_alerts(), args.json, "No alerts have been triggered.")

    elif args.command == "my-alerts":
        service = _seeded_alert_service(args, catalog)
        _print_alerts(service.get_alerts_for_user(args.user, active_only=True), args.json, args.user)

    elif args.command == "remove-alert":
        service = _seeded_alert_service(args, catalog)
        if not service.remove_alert(args.user, args.product):
            print(f"No active alert for user {args.user} and product {args.product}.", file=sys.stderr)
            return 1
        if not args.json:
            print(f"Alert for product {args.product} removed.")
        _print_alerts(service.get_alerts_for_user(args.user, active_only=True), args.json, args.user)

    elif args.command == "users":
        users = catalog.users.find_all()
        if args.json:
            print(json.dumps([asdict(u) for u in users], indent=2))
        elif not users:
            print("No users found.")
        else:
            for u in users:
                print(f"ID: {u.user_id}, Username: {u.username}, Name: {u.full_name}")

    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level.upper() if args.log_level else None)

    catalog = PriceCatalog()
    data_dir = args.data_dir or get_settings().data_dir
    try:
        DataLoader(catalog, data_dir).load_directory(strict=True)
    except PriceComparatorError as e:
        logger.error(str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return run(args, catalog)


if __name__ == "__main__":
    sys.exit(main())
