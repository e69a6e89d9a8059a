from decimal import Decimal, InvalidOperation
from typing import Any, Optional

# порядок величины, дальше которого данные считаем мусором (1e50+)
_MAX_EXPONENT = 50


def parse_decimal(value: Any) -> Optional[Decimal]:
    """Decimal from provider data (str / int / float / Decimal), None if unusable."""
    if value is None or isinstance(value, bool):
        return None
    try:
        # через str(), чтобы float не тащил двоичный хвост (0.1 -> "0.1")
        d = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not d.is_finite() or d.adjusted() > _MAX_EXPONENT:
        return None
    if d.adjusted() < -_MAX_EXPONENT:
        return Decimal(0)
    return d


def _round_ratio(numerator: int, denominator: int) -> int:
    """numerator / denominator rounded half away from zero, in integers only."""
    q, r = divmod(abs(numerator), denominator)
    if 2 * r >= denominator:
        q += 1
    return q if numerator >= 0 else -q


def round_half_up(value: Decimal) -> int:
    return _round_ratio(*value.as_integer_ratio())


def to_cents(major_units: Decimal) -> int:
    """The one conversion step from major units (dollars) to integer cents."""
    numerator, denominator = major_units.as_integer_ratio()
    return _round_ratio(numerator * 100, denominator)


def percent_of(total_cents: int, percent: Decimal) -> int:
    numerator, denominator = percent.as_integer_ratio()
    return _round_ratio(total_cents * numerator, denominator * 100)


def coerce_total_cents(value: Any) -> int:
    """Cart subtotal in cents; missing, non-numeric and negative become 0."""
    if isinstance(value, int) and not isinstance(value, bool):
        return max(0, value)
    d = parse_decimal(value)
    if d is None:
        return 0
    return max(0, round_half_up(d))
