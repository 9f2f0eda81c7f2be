from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ValidationError as ModelValidationError

from stockbook.engine import search_products
from stockbook.errors import NotFoundError, PersistenceError, ValidationError
from stockbook.locks import TaskLock
from stockbook.logging_config import get_logger
from stockbook.models import Product, ProductFields, Sale, SaleFields
from stockbook.persistence import KeyValueStore

log = get_logger("store")

T = TypeVar("T", bound=BaseModel)


class IdSequence:
    """Strictly increasing integer ids, resumed from the highest persisted id."""

    def __init__(self, last: int = 0) -> None:
        self._last = last

    def next(self) -> int:
        self._last += 1
        return self._last


class CollectionStore(Generic[T]):
    """In-memory list of records mirrored in full to one key of a KeyValueStore.

    Mutations run under ``lock``: the new list is swapped in first (readers
    see it immediately), then flushed. A failed flush puts the previous list
    back and raises ``PersistenceError``.
    """

    key: str
    model: type[T]

    def __init__(self, kv: KeyValueStore, key: Optional[str] = None) -> None:
        self._kv = kv
        if key is not None:
            self.key = key
        self._items: list[T] = []
        self._ids = IdSequence()
        self.lock = TaskLock()

    async def load(self) -> None:
        blob = await self._kv.get(self.key)
        if blob is None:
            items: list[T] = []
        else:
            try:
                items = [self.model.model_validate(record) for record in blob]
            except (ModelValidationError, TypeError) as exc:
                raise PersistenceError(
                    f"Stored '{self.key}' data is malformed: {exc}", key=self.key
                ) from exc
        self._items = items
        self._ids = IdSequence(max((r.id for r in items), default=0))
        log.info("collection loaded", extra={"key": self.key, "count": len(items)})

    async def _commit(self, items: list[T]) -> None:
        # caller holds self.lock
        previous = self._items
        self._items = items
        try:
            await self._kv.set(self.key, [r.model_dump(mode="json") for r in items])
        except PersistenceError:
            self._items = previous
            log.error("flush failed", extra={"key": self.key}, exc_info=True)
            raise
        except Exception as exc:
            self._items = previous
            log.error("flush failed", extra={"key": self.key}, exc_info=True)
            raise PersistenceError(f"Could not write '{self.key}': {exc}", key=self.key) from exc

    def list(self) -> list[T]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)


# ── Catalog ──────────────────────────────────────────────────────────────────

def _check_product_fields(fields: ProductFields) -> None:
    if fields.purchase_price < 0:
        raise ValidationError("purchase_price must not be negative", field="purchase_price")
    if fields.sale_price < 0:
        raise ValidationError("sale_price must not be negative", field="sale_price")
    if fields.quantity < 0:
        raise ValidationError("quantity must not be negative", field="quantity")


class ProductCatalogStore(CollectionStore[Product]):
    key = "products"
    model = Product

    # ── reads ─────────────────────────────────────────────────────────────────

    def get_by_id(self, product_id: int) -> Product:
        for product in self._items:
            if product.id == product_id:
                return product
        raise NotFoundError("Product", product_id)

    def search(self, text: Optional[str]) -> list[Product]:
        return search_products(self._items, text)

    # ── writes ────────────────────────────────────────────────────────────────

    async def create(self, fields: ProductFields) -> Product:
        _check_product_fields(fields)
        async with self.lock:
            product = Product(id=self._ids.next(), **fields.model_dump())
            await self._commit([*self._items, product])
        log.info("product created", extra={"product_id": product.id, "product_name": product.name})
        return product

    async def update(self, product_id: int, fields: ProductFields) -> Product:
        _check_product_fields(fields)
        async with self.lock:
            self.get_by_id(product_id)
            product = Product(id=product_id, **fields.model_dump())
            await self._commit([product if p.id == product_id else p for p in self._items])
        log.debug("product updated", extra={"product_id": product_id})
        return product

    async def remove(self, product_id: int) -> None:
        async with self.lock:
            remaining = [p for p in self._items if p.id != product_id]
            if len(remaining) == len(self._items):
                return
            await self._commit(remaining)
        log.info("product removed", extra={"product_id": product_id})


# ── Ledger ───────────────────────────────────────────────────────────────────

class SalesLedgerStore(CollectionStore[Sale]):
    key = "sales"
    model = Sale

    async def append(self, fields: SaleFields) -> Sale:
        async with self.lock:
            sale = Sale(id=self._ids.next(), **fields.model_dump())
            await self._commit([*self._items, sale])
        return sale

    async def clear(self) -> None:
        async with self.lock:
            count = len(self._items)
            await self._commit([])
        log.warning("sales ledger cleared", extra={"removed": count})
