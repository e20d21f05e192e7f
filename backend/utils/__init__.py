from decimal import Decimal, ROUND_HALF_UP

CENT = Decimal("0.01")


def to_decimal(value) -> Decimal:
    """Coerce DB/JSON numbers to Decimal without float artefacts."""
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def money(value) -> Decimal:
    """Round to cents, half-up."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)
