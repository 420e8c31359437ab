"""Tests for CSV ingestion."""

from datetime import date

import pytest

from price_comparator.discount_service import DiscountService
from price_comparator.exceptions import DataLoadError
from price_comparator.ingestion import CsvDataParser, DataLoader
from price_comparator.price_history import PriceHistoryService
from price_comparator.repositories import PriceCatalog

PRICE_HEADER = "product_id;product_name;product_category;brand;package_quantity;package_unit;price;currency"
DISCOUNT_HEADER = (
    "product_id;product_name;brand;package_quantity;package_unit;"
    "product_category;from_date;to_date;percentage_of_discount"
)


def write(path, *lines):
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def data_dir(tmp_path):
    write(
        tmp_path / "lidl_2025-05-01.csv",
        PRICE_HEADER,
        "P001;lapte zuzu;lactate;Zuzu;1;l;9,60;RON",
        "P002;iaurt;lactate;Danone;400;g;abc;RON",
        "P003;paine alba;panificatie;Vel Pitar;0.5;kg;4.10;ron",
        "P004;extra;x;y;1;kg;1.00;RON;surplus",
    )
    write(
        tmp_path / "lidl_discounts_2025-05-01.csv",
        DISCOUNT_HEADER,
        "P001;lapte zuzu;Zuzu;1;l;lactate;2025-05-01;2025-05-07;10",
        "P009;cafea;Jacobs;250;g;cafea;2025-05-01;2025-05-07;120",
        "P010;bad;X;1;kg;x;notadate;2025-05-07;5",
    )
    write(
        tmp_path / "users.csv",
        "userId;username;firstName;lastName",
        "1;alice;Alice;Popescu",
        "2;bob;Bob;Ionescu",
        "x;broken;B;C",
        "3;ALICE;Dup;User",
    )
    write(tmp_path / "notes.csv", "just;some;text")
    return tmp_path


@pytest.fixture
def catalog():
    return PriceCatalog()


class TestParser:
    def test_price_file(self, data_dir, catalog):
        """Store and date come from the file name; bad rows are skipped."""
        parsed = CsvDataParser(catalog).parse_file(data_dir / "lidl_2025-05-01.csv")

        assert [e.product.product_id for e in parsed.price_entries] == ["P001", "P003"]
        assert parsed.skipped_rows == 1
        entry = parsed.price_entries[0]
        assert entry.store_name == "lidl"
        assert entry.entry_date == date(2025, 5, 1)
        assert entry.price == pytest.approx(9.60)
        assert parsed.price_entries[1].currency == "RON"

    def test_products_created_once(self, data_dir, catalog):
        parser = CsvDataParser(catalog)
        first = parser.parse_file(data_dir / "lidl_2025-05-01.csv")
        second = parser.parse_file(data_dir / "lidl_discounts_2025-05-01.csv")
        assert [p.product_id for p in first.products] == ["P001", "P003"]
        # P001 was already seen in the price file
        assert [p.product_id for p in second.products] == ["P009"]
        assert second.discounts[0].product is first.products[0]

    def test_discount_file(self, data_dir, catalog):
        parsed = CsvDataParser(catalog).parse_file(data_dir / "lidl_discounts_2025-05-01.csv")

        assert len(parsed.discounts) == 2
        assert parsed.skipped_rows == 1
        discount = parsed.discounts[0]
        assert discount.start_date == date(2025, 5, 1)
        assert discount.end_date == date(2025, 5, 7)
        assert discount.observation_date == date(2025, 5, 1)
        assert discount.percentage == 10

    def test_out_of_range_percentage_kept(self, data_dir, catalog):
        parsed = CsvDataParser(catalog).parse_file(data_dir / "lidl_discounts_2025-05-01.csv")
        assert parsed.discounts[1].percentage == 120

    def test_normalization_from_file(self, data_dir, catalog):
        parsed = CsvDataParser(catalog).parse_file(data_dir / "lidl_discounts_2025-05-01.csv")
        cafea = parsed.discounts[1].product
        assert cafea.normalized_quantity == pytest.approx(0.25)
        assert cafea.normalized_unit.value == "kg"

    def test_unrecognized_name(self, data_dir, catalog):
        parsed = CsvDataParser(catalog).parse_file(data_dir / "notes.csv")
        assert not parsed.recognized
        assert parsed.price_entries == []

    def test_too_few_columns(self, tmp_path, catalog):
        path = write(tmp_path / "mega_2025-05-02.csv", "product_id;product_name;price", "P1;x;1.0")
        parsed = CsvDataParser(catalog).parse_file(path)
        assert parsed.recognized
        assert parsed.price_entries == []

    def test_users_file(self, data_dir, catalog):
        users = CsvDataParser(catalog).parse_users_file(data_dir / "users.csv")
        assert [u.username for u in users] == ["alice", "bob", "ALICE"]
        assert users[0].full_name == "Alice Popescu"

    def test_users_file_bad_header(self, tmp_path, catalog):
        path = write(tmp_path / "users.csv", "id;name;first;last", "1;alice;A;P")
        assert CsvDataParser(catalog).parse_users_file(path) == []


class TestDataLoader:
    def test_load_directory(self, data_dir, catalog):
        summary = DataLoader(catalog, data_dir).load_directory()

        assert summary.products == 3
        assert summary.price_entries == 2
        assert summary.discounts == 2
        assert summary.users == 2
        assert summary.skipped_rows == 2
        assert summary.skipped_files == 1
        assert catalog.summary() == {
            "products": 3,
            "price_entries": 2,
            "discounts": 2,
            "users": 2,
        }

    def test_duplicate_username_skipped(self, data_dir, catalog):
        """A second user with an existing username is not registered."""
        DataLoader(catalog, data_dir).load_directory()
        assert catalog.users.find_by_id(3) is None
        assert catalog.users.find_by_username("ALICE").user_id == 1

    def test_nested_directories(self, data_dir, catalog):
        nested = data_dir / "2025" / "may"
        nested.mkdir(parents=True)
        write(nested / "profi_2025-05-03.csv", PRICE_HEADER, "P001;lapte zuzu;lactate;Zuzu;1;l;8.90;RON")

        DataLoader(catalog, data_dir).load_directory()

        stores = {e.store_name for e in catalog.prices.find_by_product_id("P001")}
        assert stores == {"lidl", "profi"}

    def test_empty_file_skipped(self, data_dir, catalog):
        (data_dir / "kaufland_2025-05-01.csv").write_text("", encoding="utf-8")
        summary = DataLoader(catalog, data_dir).load_directory()
        assert summary.skipped_files == 2
        assert summary.price_entries == 2

    def test_missing_directory(self, tmp_path, catalog):
        summary = DataLoader(catalog, tmp_path / "missing").load_directory()
        assert summary.price_entries == 0
        assert catalog.summary()["products"] == 0

    def test_missing_directory_strict(self, tmp_path, catalog):
        with pytest.raises(DataLoadError):
            DataLoader(catalog, tmp_path / "missing").load_directory(strict=True)

    def test_reload_replaces_market_data(self, data_dir, catalog):
        """Reload does not duplicate entries and keeps users."""
        loader = DataLoader(catalog, data_dir)
        loader.load_directory()
        write(data_dir / "profi_2025-05-03.csv", PRICE_HEADER, "P001;lapte zuzu;lactate;Zuzu;1;l;8.90;RON")

        summary = loader.reload()

        assert catalog.prices.count() == 3
        assert catalog.products.count() == 3
        assert catalog.discounts.count() == 2
        assert catalog.users.count() == 2
        assert summary.users == 0


class TestNonFiniteValues:
    @pytest.fixture
    def noisy_dir(self, tmp_path):
        write(
            tmp_path / "mega_2025-05-01.csv",
            PRICE_HEADER,
            "P1;lapte;lactate;Zuzu;1;l;5,00;RON",
            "P2;iaurt;lactate;Danone;400;g;inf;RON",
            "P3;paine;panificatie;Vel Pitar;500;g;nan;RON",
            "P4;cafea;cafea;Jacobs;250;g;1e400;RON",
            "P5;zahar;baza;Margaritar;inf;kg;4.00;RON",
        )
        write(
            tmp_path / "mega_discounts_2025-05-01.csv",
            DISCOUNT_HEADER,
            "P1;lapte;Zuzu;1;l;lactate;2025-05-01;2025-05-07;-inf",
            "P1;lapte;Zuzu;1;l;lactate;2025-05-01;2025-05-07;NaN",
            "P1;lapte;Zuzu;1;l;lactate;2025-05-01;2025-05-07;15",
        )
        return tmp_path

    def test_rows_skipped_as_malformed(self, noisy_dir, catalog):
        """Infinite, NaN and overflowing numbers are rejected like any bad value."""
        summary = DataLoader(catalog, noisy_dir).load_directory()
        assert summary.price_entries == 1
        assert summary.discounts == 1
        assert summary.skipped_rows == 6
        assert [p.product_id for p in catalog.products.find_all()] == ["P1"]

    def test_queries_after_noisy_load(self, noisy_dir, catalog):
        DataLoader(catalog, noisy_dir).load_directory()
        points = PriceHistoryService(catalog).history(product_id="P1")
        assert [str(p.price) for p in points] == ["5.00"]

        result = DiscountService(catalog, clock=lambda: date(2025, 5, 3)).best_current_discounts(5)
        assert [(d.discount_percentage, str(d.discounted_price)) for d in result] == [(15, "4.25")]
