"""Shared builders and fakes for the test modules."""

import asyncio
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from stockbook.coordinator import SaleTransactionCoordinator
from stockbook.errors import PersistenceError
from stockbook.models import ProductFields, Sale
from stockbook.persistence import InMemoryKeyValueStore
from stockbook.store import ProductCatalogStore, SalesLedgerStore


def run(coro):
    return asyncio.run(coro)


class FlakyKeyValueStore(InMemoryKeyValueStore):
    """In-memory store whose writes can be made to fail per key.

    ``fail_after(key, n)`` lets ``n`` more writes of ``key`` through, then
    every later write of that key raises ``PersistenceError``.
    """

    def __init__(self) -> None:
        super().__init__()
        self.writes: list[str] = []
        self._remaining: dict[str, int] = {}

    def fail_after(self, key: str, n: int = 0) -> None:
        self._remaining[key] = n

    def heal(self, key: str) -> None:
        self._remaining.pop(key, None)

    async def set(self, key, blob):
        if key in self._remaining:
            if self._remaining[key] == 0:
                raise PersistenceError(f"disk full while writing '{key}'", key=key)
            self._remaining[key] -= 1
        self.writes.append(key)
        await super().set(key, blob)


def shirt(**overrides) -> ProductFields:
    fields = dict(
        name="Shirt",
        size="M",
        color="White",
        brand="Hering",
        purchase_price=Decimal("22.00"),
        sale_price=Decimal("50.00"),
        quantity=10,
    )
    fields.update(overrides)
    return ProductFields(**fields)


async def open_stores(kv: Optional[InMemoryKeyValueStore] = None):
    kv = kv if kv is not None else FlakyKeyValueStore()
    catalog = ProductCatalogStore(kv)
    ledger = SalesLedgerStore(kv)
    await catalog.load()
    await ledger.load()
    return kv, catalog, ledger, SaleTransactionCoordinator(catalog, ledger)


def sale(
    id: int,
    product: str = "Shirt",
    brand: str = "Hering",
    quantity: int = 1,
    unit_price: str = "50.00",
    at: Optional[datetime] = None,
) -> Sale:
    price = Decimal(unit_price)
    return Sale(
        id=id,
        product_name=product,
        brand=brand,
        color="White",
        size="M",
        unit_price=price,
        quantity=quantity,
        total_value=price * quantity,
        timestamp=at or datetime(2026, 1, 5, 12, 0, tzinfo=timezone.utc),
    )
