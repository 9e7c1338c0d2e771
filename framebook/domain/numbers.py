import math
from decimal import Decimal


def safe_int(value: object) -> int | float | None:
    """Coerce untrusted input (query strings, path fragments) to a finite number.

    Strings are read as IEEE-754 doubles, so out-of-range exponents overflow to
    infinity and are rejected like NaN. Returns None instead of raising when the
    value is not numeric, is not finite, or is blank. Integral values come back
    as ``int``.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, int):
        return value
    if isinstance(value, (float, Decimal)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text or "_" in text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None

    if not math.isfinite(number):
        return None
    if number.is_integer():
        return int(number)
    return number
