"""Currency helpers"""

from decimal import ROUND_HALF_UP, Decimal


def round_to_cents(value) -> float:
    """Round half up to two decimals, as the cashier's receipts do"""
    return float(Decimal(str(value or 0)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))
