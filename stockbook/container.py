"""
Composition root.

Builds the persistence adapter, both stores and the sale coordinator once,
and hands the same instances to whoever needs them. Nothing in the package
reaches these objects through module globals.
"""

from dataclasses import dataclass
from typing import Optional

from stockbook.config import Settings
from stockbook.coordinator import SaleTransactionCoordinator
from stockbook.logging_config import get_logger
from stockbook.persistence import InMemoryKeyValueStore, JsonFileKeyValueStore, KeyValueStore
from stockbook.store import ProductCatalogStore, SalesLedgerStore

log = get_logger("container")


@dataclass
class Container:
    settings: Settings
    kv: KeyValueStore
    catalog: ProductCatalogStore
    ledger: SalesLedgerStore
    coordinator: SaleTransactionCoordinator

    @classmethod
    async def build(cls, settings: Settings, kv: Optional[KeyValueStore] = None) -> "Container":
        if kv is None:
            if settings.data_dir:
                kv = JsonFileKeyValueStore(settings.data_dir, write_timeout=settings.write_timeout)
            else:
                kv = InMemoryKeyValueStore()

        catalog = ProductCatalogStore(kv)
        ledger = SalesLedgerStore(kv)
        await catalog.load()
        await ledger.load()

        log.info(
            "stores ready",
            extra={"backend": type(kv).__name__, "products": len(catalog), "sales": len(ledger)},
        )
        return cls(
            settings=settings,
            kv=kv,
            catalog=catalog,
            ledger=ledger,
            coordinator=SaleTransactionCoordinator(catalog, ledger),
        )
