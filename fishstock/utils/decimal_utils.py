# fishstock/utils/decimal_utils.py
from decimal import Decimal, ROUND_HALF_UP

ONEPLACE = Decimal("0.1")
ZERO_KG = Decimal("0.0")


def to_kg(value) -> Decimal:
    """Weights are kept in kg with one fractional digit."""
    if value is None:
        return ZERO_KG
    if isinstance(value, Decimal):
        return value.quantize(ONEPLACE, rounding=ROUND_HALF_UP)
    return Decimal(str(value)).quantize(ONEPLACE, rounding=ROUND_HALF_UP)


def share_of_weight(weight_kg: Decimal, part: int, whole: int) -> Decimal:
    """Weight carried by `part` pieces out of `whole`, never above weight_kg."""
    if whole <= 0 or part <= 0:
        return ZERO_KG
    if part >= whole:
        return to_kg(weight_kg)
    share = to_kg(to_kg(weight_kg) * part / whole)
    return min(share, to_kg(weight_kg))


def percent(part: Decimal, whole: Decimal) -> Decimal:
    if whole <= 0:
        return ZERO_KG
    return (Decimal(part) * 100 / Decimal(whole)).quantize(ONEPLACE, rounding=ROUND_HALF_UP)
