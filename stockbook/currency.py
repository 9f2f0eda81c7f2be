from decimal import Decimal, ROUND_HALF_UP

# Minor unit of the store's currency
_CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def line_total(quantity: int, unit_price: Decimal) -> Decimal:
    """Return quantity × unit_price, rounded to 2 dp."""
    return (unit_price * quantity).quantize(_CENT, rounding=ROUND_HALF_UP)


def format_amount(amount: Decimal) -> str:
    return f"{amount.quantize(_CENT, rounding=ROUND_HALF_UP):.2f}"
