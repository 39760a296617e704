import math
from typing import Optional

from models import ParsedReceipt, ParsedReceiptItem
from schemas import RawReceipt

DEFAULT_CURRENCY = 'USD'


def _floor_cents(value: Optional[float]) -> int:
    if value is None or not math.isfinite(value):
        return 0
    return max(0, math.floor(value))


def _floor_quantity(value: Optional[float]) -> int:
    if not value or not math.isfinite(value):
        return 1
    return max(1, math.floor(value))


def normalize_receipt(raw: RawReceipt, default_currency: str = DEFAULT_CURRENCY) -> ParsedReceipt:
    """
    Clean up a receipt returned by the model before anything is split.

    Strings are trimmed, the currency is uppercased, money is floored to whole
    non-negative cents and quantities to at least 1. Rows with a blank name
    or a zero price are dropped.
    """
    items = []
    for item in raw.items:
        name = (item.name or '').strip()
        total_price_cents = _floor_cents(item.total_price_cents)
        if not name or total_price_cents <= 0:
            continue
        items.append(ParsedReceiptItem(
            name=name,
            quantity=_floor_quantity(item.quantity),
            total_price_cents=total_price_cents
        ))

    return ParsedReceipt(
        restaurant_name=(raw.restaurant_name or '').strip() or None,
        currency=(raw.currency or '').strip().upper() or default_currency,
        items=items,
        tax_cents=_floor_cents(raw.tax_cents),
        tip_cents=_floor_cents(raw.tip_cents)
    )
