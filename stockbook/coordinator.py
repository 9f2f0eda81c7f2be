"""
Recording a sale: decrement stock and append to the ledger as one unit.

The catalog and the ledger are persisted independently and share no
transaction primitive, so ``sell`` applies the stock change first, then the
ledger append, and writes the prior stock back if the append fails. Both
store locks are held for the whole operation, rollback included, so no other
mutation of either collection can interleave with it.
"""

from datetime import datetime, timezone
from typing import Callable, Optional

from stockbook.currency import line_total
from stockbook.errors import InconsistentStateError, InsufficientStockError, ValidationError
from stockbook.logging_config import get_logger
from stockbook.models import Product, Sale, SaleFields
from stockbook.store import ProductCatalogStore, SalesLedgerStore

log = get_logger("coordinator")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SaleTransactionCoordinator:
    def __init__(
        self,
        catalog: ProductCatalogStore,
        ledger: SalesLedgerStore,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._catalog = catalog
        self._ledger = ledger
        self._clock = clock

    async def sell(self, product_id: int, quantity: int, at: Optional[datetime] = None) -> Sale:
        async with self._catalog.lock, self._ledger.lock:
            product = self._catalog.get_by_id(product_id)

            if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
                raise ValidationError(
                    f"quantity must be a positive integer, got {quantity!r}", field="quantity"
                )
            if quantity > product.quantity:
                raise InsufficientStockError(product.id, quantity, product.quantity)

            new_quantity = product.quantity - quantity
            snapshot = SaleFields(
                product_name=product.name,
                brand=product.brand,
                color=product.color,
                size=product.size,
                unit_price=product.sale_price,
                quantity=quantity,
                total_value=line_total(quantity, product.sale_price),
                timestamp=at or self._clock(),
            )

            await self._catalog.update(
                product.id, product.fields().model_copy(update={"quantity": new_quantity})
            )
            try:
                sale = await self._ledger.append(snapshot)
            except Exception as exc:
                await self._roll_back(product, exc)
                raise

        log.info(
            "sale recorded",
            extra={
                "sale_id": sale.id,
                "product_id": product.id,
                "quantity": quantity,
                "total_value": sale.total_value,
                "stock_left": new_quantity,
            },
        )
        return sale

    async def _roll_back(self, product: Product, cause: Exception) -> None:
        log.warning(
            "ledger append failed, restoring stock",
            extra={"product_id": product.id, "restore_quantity": product.quantity},
        )
        try:
            await self._catalog.update(product.id, product.fields())
        except Exception:
            current = self._catalog.get_by_id(product.id).quantity
            log.critical(
                "stock rollback failed",
                extra={
                    "product_id": product.id,
                    "expected_quantity": product.quantity,
                    "current_quantity": current,
                },
                exc_info=True,
            )
            raise InconsistentStateError(product.id, product.quantity, current) from cause
