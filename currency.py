from decimal import Decimal, InvalidOperation, ROUND_HALF_UP


def to_cents(value) -> int:
    """
    Convert a typed amount like "12.34" to integer cents.

    Rounds half up; blank, non-numeric, non-finite or negative input gives 0.
    """
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, TypeError, ValueError):
        return 0

    if not amount.is_finite() or amount < 0:
        return 0

    return int((amount * 100).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def money_from_cents(cents: int) -> str:
    """Format integer cents as a two-decimal string, e.g. 105 -> "1.05" """
    sign = '-' if cents < 0 else ''
    whole, fraction = divmod(abs(int(cents)), 100)
    return f'{sign}{whole}.{fraction:02d}'
