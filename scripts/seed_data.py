"""
Deterministic demo data.

Produces:
  - 8 products across 4 brands, with stock between 3 and 40 units
  - ~30 sales spread over Jan 2026, recorded through the sale coordinator
    so stock and ledger reconcile
"""

import random
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from stockbook.container import Container
from stockbook.errors import InsufficientStockError
from stockbook.models import ProductFields

SEED = 42
START = datetime(2026, 1, 1, 9, 0, tzinfo=timezone.utc)
END   = datetime(2026, 1, 31, 18, 0, tzinfo=timezone.utc)
SALES = 30

_CATALOG = [
    # name,            size,  color,   brand,        purchase, sale,    qty
    ("Shirt",          "M",   "White", "Hering",     "22.00",  "50.00", 40),
    ("Shirt",          "L",   "Black", "Hering",     "22.00",  "50.00", 25),
    ("Jeans",          "40",  "Blue",  "Levi's",     "95.00",  "219.90", 12),
    ("Polo",           "G",   "Navy",  "Lacoste",    "140.00", "329.00", 6),
    ("Sneakers",       "41",  "White", "Nike",       "210.00", "499.99", 8),
    ("Running shorts", "M",   "Gray",  "Nike",       "38.50",  "89.90", 15),
    ("Cap",            "U",   "Red",   "Nike",       "25.00",  "69.00", 3),
    ("Hoodie",         "P",   "Green", "Hering",     "60.00",  "149.00", 10),
]


def _rand_dt(rng: random.Random, lo: datetime = START, hi: datetime = END) -> datetime:
    delta = hi - lo
    secs = rng.randint(0, int(delta.total_seconds()))
    return lo + timedelta(seconds=secs)


async def seed(container: Container) -> None:
    rng = random.Random(SEED)

    # ── products ─────────────────────────────────────────────────────────────
    products = []
    for name, size, color, brand, purchase, sale, qty in _CATALOG:
        products.append(await container.catalog.create(ProductFields(
            name=name,
            size=size,
            color=color,
            brand=brand,
            purchase_price=Decimal(purchase),
            sale_price=Decimal(sale),
            quantity=qty,
        )))

    # ── sales ────────────────────────────────────────────────────────────────
    moments = sorted(_rand_dt(rng) for _ in range(SALES))
    for at in moments:
        product = rng.choice(products)
        try:
            await container.coordinator.sell(product.id, rng.randint(1, 3), at=at)
        except InsufficientStockError:
            # sold out, skip this one
            continue
