from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

# Largest cent value stored exactly in SQLite INTEGER and in a JSON double.
MAX_AMOUNT_CENTS = 2**53 - 1


def parse_amount(value: str) -> Decimal:
    """Parse a user-entered amount such as ``"1 234,50"`` or ``"$12.5"``."""
    clean = value.strip().replace("₹", "").replace("€", "").replace("$", "")
    clean = clean.replace(" ", "").replace(",", ".")
    if clean.count(".") > 1:
        parts = clean.split(".")
        clean = "".join(parts[:-1]) + "." + parts[-1]
    try:
        amount = Decimal(clean)
    except InvalidOperation as exc:
        raise ValueError("Invalid amount") from exc
    if not amount.is_finite():
        raise ValueError("Invalid amount")
    return amount


def to_cents(amount: Decimal) -> int:
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def cents_to_units(cents: int) -> float:
    return cents / 100
