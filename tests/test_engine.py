"""
Unit tests for the reporting engine.
"""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from stockbook.engine import (
    EXPORT_HEADER,
    aggregate_total,
    build_report,
    distinct_brands,
    export_sales,
    filter_sales,
    low_stock,
    search_products,
    sort_by_date_descending,
)
from stockbook.errors import EmptyExportError
from stockbook.models import Product, SaleFilter

from tests.helpers import sale


# ── fixtures ──────────────────────────────────────────────────────────────────

JAN1  = datetime(2026, 1, 1, 9, 30, tzinfo=timezone.utc)
JAN5  = datetime(2026, 1, 5, 12, 0, tzinfo=timezone.utc)
JAN5_LATE = datetime(2026, 1, 5, 23, 59, tzinfo=timezone.utc)
JAN10 = datetime(2026, 1, 10, 8, 15, tzinfo=timezone.utc)


def ledger():
    return [
        sale(1, "Shirt",    "Hering",  quantity=3, unit_price="50.00",  at=JAN5),
        sale(2, "Jeans",    "Levi's",  quantity=1, unit_price="219.90", at=JAN1),
        sale(3, "Sneakers", "Nike",    quantity=2, unit_price="499.99", at=JAN10),
        sale(4, "Cap",      "Nike",    quantity=1, unit_price="69.00",  at=JAN5_LATE),
        sale(5, "Hoodie",   "Hering",  quantity=1, unit_price="149.00", at=JAN5),
    ]


def product(id, name, brand, quantity=10, color="White", size="M"):
    return Product(
        id=id,
        name=name,
        size=size,
        color=color,
        brand=brand,
        purchase_price=Decimal("10.00"),
        sale_price=Decimal("20.00"),
        quantity=quantity,
    )


def ids(sales):
    return [s.id for s in sales]


# ── tests ─────────────────────────────────────────────────────────────────────

class TestFilter:
    def test_no_criteria_keeps_everything(self):
        assert ids(filter_sales(ledger())) == [1, 2, 3, 4, 5]
        assert ids(filter_sales(ledger(), SaleFilter(text="", brand=""))) == [1, 2, 3, 4, 5]

    def test_text_matches_name_or_brand_case_insensitively(self):
        assert ids(filter_sales(ledger(), SaleFilter(text="SHIRT"))) == [1]
        assert ids(filter_sales(ledger(), SaleFilter(text="nik"))) == [3, 4]
        assert ids(filter_sales(ledger(), SaleFilter(text="her"))) == [1, 5]

    def test_date_ignores_time_of_day(self):
        assert ids(filter_sales(ledger(), SaleFilter(date=date(2026, 1, 5)))) == [1, 4, 5]
        assert filter_sales(ledger(), SaleFilter(date=date(2026, 2, 5))) == []

    def test_brand_is_exact(self):
        assert ids(filter_sales(ledger(), SaleFilter(brand="Nike"))) == [3, 4]
        assert filter_sales(ledger(), SaleFilter(brand="nike")) == []

    def test_brand_and_text_is_intersection(self):
        sales = ledger()
        both = filter_sales(sales, SaleFilter(brand="Hering", text="hoodie"))
        by_brand = set(ids(filter_sales(sales, SaleFilter(brand="Hering"))))
        by_text = set(ids(filter_sales(sales, SaleFilter(text="hoodie"))))
        assert set(ids(both)) == by_brand & by_text == {5}

    def test_all_three_criteria(self):
        criteria = SaleFilter(text="cap", brand="Nike", date=date(2026, 1, 5))
        assert ids(filter_sales(ledger(), criteria)) == [4]


class TestSortAndTotals:
    def test_newest_first_with_stable_ties(self):
        # sales 1 and 5 share a timestamp and keep their ledger order
        assert ids(sort_by_date_descending(ledger())) == [3, 4, 1, 5, 2]

    def test_sort_does_not_touch_input(self):
        sales = ledger()
        sort_by_date_descending(sales)
        assert ids(sales) == [1, 2, 3, 4, 5]

    def test_aggregate_is_sum_of_totals(self):
        sales = ledger()
        assert aggregate_total(sales) == sum(s.total_value for s in sales)
        assert aggregate_total(sales) == Decimal("1587.88")

    def test_aggregate_of_nothing_is_zero(self):
        assert aggregate_total([]) == Decimal("0")

    def test_report_for_day(self):
        report = build_report(ledger(), SaleFilter(date=date(2026, 1, 5)))
        assert ids(report.sales) == [4, 1, 5]
        assert report.count == 3
        assert report.total == Decimal("368.00")

    def test_report_after_clear(self):
        report = build_report([])
        assert report.count == 0
        assert report.total == Decimal("0")


class TestExport:
    def test_empty_export_refused(self):
        with pytest.raises(EmptyExportError):
            export_sales([])

    def test_single_sale(self):
        lines = export_sales([ledger()[0]]).decode("utf-8").splitlines()
        assert lines == [
            "Date,Product,Brand,Quantity,Unit Price,Total",
            "2026-01-05 12:00,Shirt,Hering,3,50.00,150.00",
        ]

    def test_rows_follow_input_order(self):
        sales = sort_by_date_descending(ledger())
        lines = export_sales(sales).decode("utf-8").splitlines()
        assert lines[0].split(",") == list(EXPORT_HEADER)
        assert len(lines) == 6
        assert lines[1].startswith("2026-01-10 08:15,Sneakers,Nike,2,499.99,999.98")

    def test_commas_are_quoted(self):
        odd = sale(9, "Shirt, long sleeve", "Hering", at=JAN1)
        line = export_sales([odd]).decode("utf-8").splitlines()[1]
        assert line == '2026-01-01 09:30,"Shirt, long sleeve",Hering,1,50.00,50.00'

    def test_output_is_deterministic(self):
        assert export_sales(ledger()) == export_sales(ledger())


class TestCatalogViews:
    def test_distinct_brands(self):
        products = [product(1, "Shirt", "Hering"), product(2, "Cap", "Nike"), product(3, "Tee", "Hering")]
        assert distinct_brands(products) == {"Hering", "Nike"}
        assert distinct_brands([]) == set()

    def test_search_products(self):
        products = [
            product(1, "Shirt", "Hering", color="Blue"),
            product(2, "Cap", "Nike", size="U"),
        ]
        assert [p.id for p in search_products(products, "blue")] == [1]
        assert [p.id for p in search_products(products, None)] == [1, 2]

    def test_low_stock_threshold_inclusive(self):
        products = [
            product(1, "Shirt", "Hering", quantity=5),
            product(2, "Cap", "Nike", quantity=6),
            product(3, "Tee", "Hering", quantity=0),
        ]
        assert [p.id for p in low_stock(products)] == [1, 3]
        assert [p.id for p in low_stock(products, threshold=0)] == [3]
