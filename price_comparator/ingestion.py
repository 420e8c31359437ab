"""
CSV Ingestion for Store Price Exports

File naming (store and date come from the file name):
- <store>_<YYYY-MM-DD>.csv            price list observed on that date
- <store>_discounts_<YYYY-MM-DD>.csv  discounts first observed on that date
- users.csv                           registered users

All files are ';'-delimited UTF-8 with a header row. Malformed rows are
skipped and logged; one bad row or file never aborts a load.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Dict, List, Optional, Union

import pandas as pd
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from price_comparator.config import get_settings
from price_comparator.exceptions import DataLoadError
from price_comparator.models import (
    Discount,
    PriceEntry,
    Product,
    User,
    build_discount,
    build_product,
    product_key,
)
from price_comparator.repositories import PriceCatalog

logger = logging.getLogger(__name__)

CSV_DELIMITER = ";"
USERS_FILE = "users.csv"

PRICE_FILE_PATTERN = re.compile(r"^([a-z0-9]+)_(\d{4}-\d{2}-\d{2})\.csv$", re.IGNORECASE)
DISCOUNT_FILE_PATTERN = re.compile(r"^([a-z0-9]+)_discounts_(\d{4}-\d{2}-\d{2})\.csv$", re.IGNORECASE)

PRICE_COLUMNS = [
    "product_id", "product_name", "product_category", "brand",
    "package_quantity", "package_unit", "price", "currency",
]
DISCOUNT_COLUMNS = [
    "product_id", "product_name", "brand", "package_quantity", "package_unit",
    "product_category", "from_date", "to_date", "percentage_of_discount",
]
USER_COLUMNS = ["userId", "username", "firstName", "lastName"]


# --------------------- Row schemas ---------------------


def _decimal_comma(value):
    if isinstance(value, str):
        return value.strip().replace(",", ".")
    return value


class ProductFields(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    product_id: str
    product_name: str
    product_category: str = ""
    brand: str = ""
    package_quantity: float
    package_unit: str = ""

    @field_validator("product_id", "product_name", "product_category", "brand", "package_unit", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("product_id")
    @classmethod
    def id_not_empty(cls, v):
        if not v:
            raise ValueError("product_id is empty")
        return v

    @field_validator("package_quantity", mode="before")
    @classmethod
    def parse_quantity(cls, v):
        return _decimal_comma(v)


class PriceRow(ProductFields):
    price: float
    currency: str

    @field_validator("price", mode="before")
    @classmethod
    def parse_price(cls, v):
        return _decimal_comma(v)

    @field_validator("currency", mode="before")
    @classmethod
    def upper_currency(cls, v):
        return v.strip().upper() if isinstance(v, str) else v


class DiscountRow(ProductFields):
    from_date: date
    to_date: date
    percentage_of_discount: float

    @field_validator("from_date", "to_date", mode="before")
    @classmethod
    def strip_date(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("percentage_of_discount", mode="before")
    @classmethod
    def parse_percentage(cls, v):
        return _decimal_comma(v)


class UserRow(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    userId: int
    username: str
    firstName: str = ""
    lastName: str = ""

    @field_validator("userId", "username", "firstName", "lastName", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("username")
    @classmethod
    def username_not_empty(cls, v):
        if not v:
            raise ValueError("username is empty")
        return v


# --------------------- Parsing ---------------------


@dataclass
class ParsedFile:
    """Entities read from one CSV file"""
    products: List[Product] = field(default_factory=list)
    price_entries: List[PriceEntry] = field(default_factory=list)
    discounts: List[Discount] = field(default_factory=list)
    skipped_rows: int = 0
    recognized: bool = True


def _read_rows(path: Path, columns: List[str]) -> Optional[List[Dict]]:
    """
    Read a delimited file into row dicts keyed by the expected column names.

    Columns are matched by position. Rows with extra fields are dropped
    by pandas and logged here.

    Returns:
        List of row dicts, or None if the file has too few columns
    """
    def report_bad_line(fields):
        logger.warning(f"Skipping malformed line in {path.name}: {CSV_DELIMITER.join(fields)}")
        return None

    df = pd.read_csv(
        path,
        sep=CSV_DELIMITER,
        dtype=str,
        keep_default_na=False,
        encoding="utf-8",
        engine="python",
        on_bad_lines=report_bad_line,
    )

    if len(df.columns) < len(columns):
        logger.error(
            f"File {path.name} has {len(df.columns)} columns, expected {len(columns)}. Skipping."
        )
        return None

    df = df.iloc[:, :len(columns)]
    df.columns = columns

    rows = []
    for _, row in df.iterrows():
        record = row.to_dict()
        # Short rows come back as NaN
        for key, value in record.items():
            if pd.isna(value):
                record[key] = None
        rows.append(record)
    return rows


class CsvDataParser:
    """Parses store exports into domain entities"""

    def __init__(self, catalog: PriceCatalog):
        self.catalog = catalog
        # Products first seen during the current load, by product key
        self._pending: Dict[str, Product] = {}

    def reset(self) -> None:
        self._pending.clear()

    def parse_file(self, path: Union[str, Path]) -> ParsedFile:
        path = Path(path)
        name = path.name

        discount_match = DISCOUNT_FILE_PATTERN.match(name)
        if discount_match:
            store, observed = discount_match.groups()
            return self._parse_discounts(path, store, self._file_date(observed))

        price_match = PRICE_FILE_PATTERN.match(name)
        if price_match:
            store, observed = price_match.groups()
            return self._parse_prices(path, store, self._file_date(observed))

        logger.warning(f"Skipping file with unrecognized name format: {name}")
        return ParsedFile(recognized=False)

    @staticmethod
    def _file_date(text: str) -> Optional[date]:
        try:
            return datetime.strptime(text, "%Y-%m-%d").date()
        except ValueError:
            return None

    def _product_for(self, row: ProductFields, parsed: ParsedFile, source: str) -> Product:
        key = product_key(row.product_id)
        existing = self.catalog.products.find_by_id(row.product_id) or self._pending.get(key)
        if existing is not None:
            return existing

        product = build_product(
            row.product_id,
            row.product_name,
            row.product_category or None,
            row.brand or None,
            row.package_quantity,
            row.package_unit,
        ).value
        self._pending[key] = product
        parsed.products.append(product)
        logger.debug(f"New product {product.product_id} created from {source}")
        return product

    def _parse_prices(self, path: Path, store: str, observed: Optional[date]) -> ParsedFile:
        parsed = ParsedFile()
        if observed is None:
            logger.error(f"Could not parse date from price file name: {path.name}")
            return parsed

        logger.info(f"Parsing price file: {path.name}")
        rows = _read_rows(path, PRICE_COLUMNS)
        if rows is None:
            return parsed

        for line_number, record in enumerate(rows, start=2):
            try:
                row = PriceRow(**record)
            except ValidationError as e:
                parsed.skipped_rows += 1
                logger.warning(f"Skipping line {line_number} in {path.name}: {e.error_count()} invalid field(s)")
                continue

            product = self._product_for(row, parsed, path.name)
            parsed.price_entries.append(
                PriceEntry(product, store, observed, row.price, row.currency)
            )

        logger.info(f"Parsed {len(parsed.price_entries)} price entries from {path.name}")
        return parsed

    def _parse_discounts(self, path: Path, store: str, observed: Optional[date]) -> ParsedFile:
        parsed = ParsedFile()
        if observed is None:
            logger.error(f"Could not parse date from discount file name: {path.name}")
            return parsed

        logger.info(f"Parsing discount file: {path.name}")
        rows = _read_rows(path, DISCOUNT_COLUMNS)
        if rows is None:
            return parsed

        for line_number, record in enumerate(rows, start=2):
            try:
                row = DiscountRow(**record)
            except ValidationError as e:
                parsed.skipped_rows += 1
                logger.warning(f"Skipping line {line_number} in {path.name}: {e.error_count()} invalid field(s)")
                continue

            product = self._product_for(row, parsed, path.name)
            parsed.discounts.append(
                build_discount(
                    product,
                    store,
                    row.from_date,
                    row.to_date,
                    row.percentage_of_discount,
                    observed,
                ).value
            )

        logger.info(f"Parsed {len(parsed.discounts)} discounts from {path.name}")
        return parsed

    def parse_users_file(self, path: Union[str, Path]) -> List[User]:
        path = Path(path)
        logger.info(f"Parsing users file: {path.name}")

        header = pd.read_csv(path, sep=CSV_DELIMITER, nrows=0, encoding="utf-8")
        if [c.strip().lower() for c in header.columns] != [c.lower() for c in USER_COLUMNS]:
            logger.error(
                f"Invalid header in users file {path.name}. "
                f"Expected '{CSV_DELIMITER.join(USER_COLUMNS)}'"
            )
            return []

        rows = _read_rows(path, USER_COLUMNS) or []
        users = []
        for line_number, record in enumerate(rows, start=2):
            try:
                row = UserRow(**record)
            except ValidationError as e:
                logger.warning(f"Skipping line {line_number} in {path.name}: {e.error_count()} invalid field(s)")
                continue
            users.append(User(row.userId, row.username, row.firstName, row.lastName))

        logger.info(f"Parsed {len(users)} users from {path.name}")
        return users


# --------------------- Loading ---------------------


@dataclass
class LoadSummary:
    products: int = 0
    price_entries: int = 0
    discounts: int = 0
    users: int = 0
    skipped_rows: int = 0
    skipped_files: int = 0


class DataLoader:
    """Fills a PriceCatalog from a directory of CSV exports"""

    def __init__(self, catalog: PriceCatalog, data_dir: Optional[Union[str, Path]] = None):
        self.catalog = catalog
        self.parser = CsvDataParser(catalog)
        self.data_dir = Path(data_dir) if data_dir is not None else Path(get_settings().data_dir)

    def load_directory(self, strict: bool = False) -> LoadSummary:
        """
        Load every CSV under the data directory, then users.csv.

        Args:
            strict: Raise DataLoadError instead of logging when the
                    directory is missing

        Returns:
            LoadSummary with the number of records added
        """
        summary = LoadSummary()
        logger.info(f"Starting data load from directory: {self.data_dir}")

        if not self.data_dir.is_dir():
            message = f"Data directory not found or is not a directory: {self.data_dir}"
            if strict:
                raise DataLoadError(message)
            logger.error(message)
            return summary

        self.parser.reset()
        csv_files = sorted(
            p for p in self.data_dir.rglob("*")
            if p.is_file() and p.suffix.lower() == ".csv" and p.name.lower() != USERS_FILE
        )
        for path in csv_files:
            self._process_file(path, summary)

        summary.users = self._load_users()

        logger.info(f"✓ Data load finished: {self.catalog.summary()}")
        return summary

    def _process_file(self, path: Path, summary: LoadSummary) -> None:
        try:
            parsed = self.parser.parse_file(path)
        except (OSError, UnicodeDecodeError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
            logger.error(f"Error processing file {path.name}: {e}")
            summary.skipped_files += 1
            return

        if not parsed.recognized:
            summary.skipped_files += 1
            return

        self.catalog.products.save_all(parsed.products)
        self.catalog.prices.save_all(parsed.price_entries)
        self.catalog.discounts.save_all(parsed.discounts)

        summary.products += len(parsed.products)
        summary.price_entries += len(parsed.price_entries)
        summary.discounts += len(parsed.discounts)
        summary.skipped_rows += parsed.skipped_rows

    def _load_users(self) -> int:
        users_path = self.data_dir / USERS_FILE
        if not users_path.exists():
            logger.info(f"Users file ({USERS_FILE}) not found in {self.data_dir}")
            return 0

        try:
            users = self.parser.parse_users_file(users_path)
        except (OSError, UnicodeDecodeError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
            logger.error(f"Error loading users from {USERS_FILE}: {e}")
            return 0

        added = 0
        for user in users:
            if self.catalog.users.exists_by_id(user.user_id) or self.catalog.users.find_by_username(user.username):
                logger.warning(f"User with ID {user.user_id} or username {user.username} already exists. Skipping.")
                continue
            self.catalog.users.save(user)
            added += 1

        logger.info(f"{added} new users loaded. Total users: {self.catalog.users.count()}")
        return added

    def reload(self) -> LoadSummary:
        """Clear products, prices and discounts, then load again."""
        logger.info("Reloading all data...")
        self.catalog.clear_market_data()
        return self.load_directory()
