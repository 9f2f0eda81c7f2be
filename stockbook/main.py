from contextlib import asynccontextmanager
from datetime import date
from typing import Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, StrictInt

from stockbook.config import Settings
from stockbook.container import Container
from stockbook.engine import build_report, distinct_brands, export_sales, low_stock
from stockbook.errors import (
    EmptyExportError,
    InsufficientStockError,
    NotFoundError,
    PersistenceError,
    StockbookError,
    ValidationError,
)
from stockbook.logging_config import configure_logging, get_logger
from stockbook.models import ProductFields, SaleFilter
from stockbook.persistence import KeyValueStore

log = get_logger("api")

_STATUS_BY_ERROR: list[tuple[type[StockbookError], int]] = [
    (ValidationError, 422),
    (NotFoundError, 404),
    (InsufficientStockError, 409),
    (EmptyExportError, 400),
    (PersistenceError, 503),
]


class SaleRequest(BaseModel):
    product_id: int
    quantity: StrictInt


def get_container(request: Request) -> Container:
    return request.app.state.container


def create_app(settings: Optional[Settings] = None, kv: Optional[KeyValueStore] = None) -> FastAPI:
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(level=settings.log_level)
        app.state.container = await Container.build(settings, kv=kv)
        if settings.seed_on_startup and not app.state.container.catalog.list():
            from scripts.seed_data import seed
            await seed(app.state.container)
        yield

    app = FastAPI(
        title="Stockbook",
        version="1.0.0",
        description="Retail inventory and sales ledger",
        lifespan=lifespan,
    )

    @app.exception_handler(StockbookError)
    async def stockbook_error_handler(request: Request, exc: StockbookError):
        status = next((code for cls, code in _STATUS_BY_ERROR if isinstance(exc, cls)), 500)
        if status >= 500:
            log.error("request failed", extra={"path": request.url.path}, exc_info=exc)
        return JSONResponse(status_code=status, content=exc.to_dict())

    # ── Products ──────────────────────────────────────────────────────────────

    @app.get("/api/v1/products", summary="List products, optionally matching a search term")
    async def list_products(q: Optional[str] = None, c: Container = Depends(get_container)):
        return {"products": [p.model_dump(mode="json") for p in c.catalog.search(q)]}

    @app.get("/api/v1/products/low-stock", summary="Products at or under the stock threshold")
    async def list_low_stock(threshold: Optional[int] = None, c: Container = Depends(get_container)):
        limit = settings.low_stock_threshold if threshold is None else threshold
        return {
            "threshold": limit,
            "products": [p.model_dump(mode="json") for p in low_stock(c.catalog.list(), limit)],
        }

    @app.post("/api/v1/products", status_code=201, summary="Create a product")
    async def create_product(fields: ProductFields, c: Container = Depends(get_container)):
        product = await c.catalog.create(fields)
        return product.model_dump(mode="json")

    @app.get("/api/v1/products/{product_id}", summary="Get product details")
    async def get_product(product_id: int, c: Container = Depends(get_container)):
        return c.catalog.get_by_id(product_id).model_dump(mode="json")

    @app.put("/api/v1/products/{product_id}", summary="Replace a product's fields")
    async def update_product(product_id: int, fields: ProductFields, c: Container = Depends(get_container)):
        product = await c.catalog.update(product_id, fields)
        return product.model_dump(mode="json")

    @app.delete("/api/v1/products/{product_id}", status_code=204, summary="Delete a product")
    async def delete_product(product_id: int, c: Container = Depends(get_container)):
        await c.catalog.remove(product_id)
        return Response(status_code=204)

    @app.get("/api/v1/brands", summary="Brands present in the catalog")
    async def list_brands(c: Container = Depends(get_container)):
        return {"brands": sorted(distinct_brands(c.catalog.list()))}

    # ── Sales ─────────────────────────────────────────────────────────────────

    @app.post("/api/v1/sales", status_code=201, summary="Sell units of a product")
    async def record_sale(body: SaleRequest, c: Container = Depends(get_container)):
        sale = await c.coordinator.sell(body.product_id, body.quantity)
        return sale.model_dump(mode="json")

    @app.get("/api/v1/sales", summary="Sales history, newest first, with period total")
    async def list_sales(
        text: Optional[str] = None,
        on: Optional[date] = Query(default=None, alias="date", examples=["2026-01-15"]),
        brand: Optional[str] = None,
        c: Container = Depends(get_container),
    ):
        report = build_report(c.ledger.list(), SaleFilter(text=text, date=on, brand=brand))
        return report.model_dump(mode="json")

    @app.get("/api/v1/sales/export", summary="Download the filtered sales as CSV")
    async def export_sales_csv(
        text: Optional[str] = None,
        on: Optional[date] = Query(default=None, alias="date"),
        brand: Optional[str] = None,
        c: Container = Depends(get_container),
    ):
        report = build_report(c.ledger.list(), SaleFilter(text=text, date=on, brand=brand))
        return Response(
            content=export_sales(report.sales),
            media_type="text/csv",
            headers={"Content-Disposition": "attachment; filename=sales_report.csv"},
        )

    @app.delete("/api/v1/sales", summary="Clear the whole sales history")
    async def clear_sales(c: Container = Depends(get_container)):
        removed = len(c.ledger)
        await c.ledger.clear()
        return {"status": "cleared", "removed": removed}

    # ── Admin ─────────────────────────────────────────────────────────────────

    @app.post("/api/v1/admin/seed", summary="Replace all data with the demo set")
    async def reseed(c: Container = Depends(get_container)):
        from scripts.seed_data import seed
        await c.ledger.clear()
        for product in c.catalog.list():
            await c.catalog.remove(product.id)
        await seed(c)
        return {
            "status": "seeded",
            "products": len(c.catalog),
            "sales": len(c.ledger),
        }

    return app


app = create_app()
