from datetime import date as Date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, StrictInt


class ProductFields(BaseModel):
    """Every product attribute except the generated id."""

    name: str
    size: str
    color: str
    brand: str
    purchase_price: Decimal
    sale_price: Decimal
    quantity: StrictInt


class Product(ProductFields):
    model_config = ConfigDict(frozen=True)

    id: int

    def fields(self) -> ProductFields:
        return ProductFields(**self.model_dump(exclude={"id"}))


class SaleFields(BaseModel):
    """Snapshot of the product at sale time plus the sold quantity."""

    model_config = ConfigDict(frozen=True)

    product_name: str
    brand: str
    color: str
    size: str
    unit_price: Decimal
    quantity: int
    total_value: Decimal
    timestamp: datetime


class Sale(SaleFields):
    id: int


# ── Read-side models ─────────────────────────────────────────────────────────

class SaleFilter(BaseModel):
    text: Optional[str] = None      # product name or brand, case-insensitive
    date: Optional[Date] = None     # calendar day of the sale
    brand: Optional[str] = None     # exact brand


class SalesReport(BaseModel):
    sales: list[Sale]
    total: Decimal
    count: int
