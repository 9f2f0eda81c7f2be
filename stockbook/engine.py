"""
Read-side views over catalog and ledger snapshots.

Everything here is a pure function of the sequences passed in; nothing holds
state or touches storage.
"""

import csv
import io
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from stockbook.currency import ZERO, format_amount
from stockbook.errors import EmptyExportError
from stockbook.models import Product, Sale, SaleFilter, SalesReport

EXPORT_HEADER = ("Date", "Product", "Brand", "Quantity", "Unit Price", "Total")
EXPORT_DATE_FORMAT = "%Y-%m-%d %H:%M"

DEFAULT_LOW_STOCK_THRESHOLD = 5


# ── Sales ─────────────────────────────────────────────────────────────────────

def filter_sales(sales: Iterable[Sale], criteria: Optional[SaleFilter] = None) -> list[Sale]:
    """Keep the sales matching every criterion that is set.

    ``text`` is a case-insensitive substring of the product name or brand,
    ``date`` is the calendar day of the sale timestamp and ``brand`` must
    match exactly. Empty criteria do not filter.
    """
    criteria = criteria or SaleFilter()
    needle = criteria.text.lower() if criteria.text else None

    result = []
    for sale in sales:
        if needle and needle not in sale.product_name.lower() and needle not in sale.brand.lower():
            continue
        if criteria.date and sale.timestamp.date() != criteria.date:
            continue
        if criteria.brand and sale.brand != criteria.brand:
            continue
        result.append(sale)
    return result


def sort_by_date_descending(sales: Iterable[Sale]) -> list[Sale]:
    # sorted() is stable with reverse=True, ties keep insertion order
    return sorted(sales, key=lambda s: s.timestamp, reverse=True)


def aggregate_total(sales: Iterable[Sale]) -> Decimal:
    return sum((s.total_value for s in sales), ZERO)


def build_report(sales: Iterable[Sale], criteria: Optional[SaleFilter] = None) -> SalesReport:
    """Newest-first filtered sales with their total, as the history view shows them."""
    rows = sort_by_date_descending(filter_sales(sales, criteria))
    return SalesReport(sales=rows, total=aggregate_total(rows), count=len(rows))


def export_sales(sales: Sequence[Sale]) -> bytes:
    """Serialize ``sales`` as UTF-8 CSV: header row, then one row per sale.

    Rows keep the order they were given in. Raises ``EmptyExportError`` for an
    empty sequence.
    """
    if not sales:
        raise EmptyExportError()

    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(EXPORT_HEADER)
    for sale in sales:
        writer.writerow([
            sale.timestamp.strftime(EXPORT_DATE_FORMAT),
            sale.product_name,
            sale.brand,
            sale.quantity,
            format_amount(sale.unit_price),
            format_amount(sale.total_value),
        ])
    return buf.getvalue().encode("utf-8")


# ── Catalog ──────────────────────────────────────────────────────────────────

def distinct_brands(products: Iterable[Product]) -> set[str]:
    return {p.brand for p in products}


def search_products(products: Iterable[Product], text: Optional[str]) -> list[Product]:
    """Products whose name, brand, color or size contains ``text`` (any case)."""
    if not text:
        return list(products)
    needle = text.lower()
    return [
        p for p in products
        if needle in p.name.lower()
        or needle in p.brand.lower()
        or needle in p.color.lower()
        or needle in p.size.lower()
    ]


def low_stock(products: Iterable[Product], threshold: int = DEFAULT_LOW_STOCK_THRESHOLD) -> list[Product]:
    return [p for p in products if p.quantity <= threshold]
