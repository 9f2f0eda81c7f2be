"""
Typed errors for the catalog, the ledger and the reports built on them.

Every error carries a machine-readable ``code`` and its structured fields as
attributes, so callers (and the HTTP layer) branch on type and data rather
than on message text.

    StockbookError
    +-- ValidationError
    +-- NotFoundError
    +-- InsufficientStockError
    +-- EmptyExportError
    +-- PersistenceError
        +-- InconsistentStateError
"""

from typing import Any, Optional


class StockbookError(Exception):
    code: str = "STOCKBOOK_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        for key, value in vars(self).items():
            if not key.startswith("_") and key not in payload:
                payload[key] = value
        return payload


class ValidationError(StockbookError):
    code = "VALIDATION_FAILED"

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


class NotFoundError(StockbookError):
    code = "NOT_FOUND"

    def __init__(self, entity: str, entity_id: Any) -> None:
        super().__init__(f"{entity} '{entity_id}' not found")
        self.entity = entity
        self.entity_id = entity_id


class InsufficientStockError(StockbookError):
    code = "INSUFFICIENT_STOCK"

    def __init__(self, product_id: int, requested: int, available: int) -> None:
        super().__init__(
            f"Cannot sell {requested} of product {product_id}: only {available} on hand"
        )
        self.product_id = product_id
        self.requested = requested
        self.available = available


class EmptyExportError(StockbookError):
    code = "EMPTY_EXPORT"

    def __init__(self) -> None:
        super().__init__("There are no sales to export")


class PersistenceError(StockbookError):
    code = "PERSISTENCE_FAILED"

    def __init__(self, message: str, key: Optional[str] = None) -> None:
        super().__init__(message)
        self.key = key


class InconsistentStateError(PersistenceError):
    """The compensating write of a failed sale did not go through.

    Stock for ``product_id`` is left at ``current_quantity`` while no sale was
    recorded; ``expected_quantity`` is what it should be restored to.
    """

    code = "INCONSISTENT_STATE"

    def __init__(self, product_id: int, expected_quantity: int, current_quantity: int) -> None:
        super().__init__(
            f"Rollback failed for product {product_id}: stock is {current_quantity}, "
            f"expected {expected_quantity}",
            key=None,
        )
        self.product_id = product_id
        self.expected_quantity = expected_quantity
        self.current_quantity = current_quantity
