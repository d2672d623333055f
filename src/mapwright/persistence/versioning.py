"""Mapping version strings: ``v<major>.<hundredths>``, bumped by 0.01 per save."""

from decimal import Decimal, InvalidOperation

FIRST_VERSION = "v1.00"
_STEP = Decimal("0.01")


def next_version(current: str | None) -> str:
    """Version following ``current``; the first save is ``v1.00``.

    Examples:
        >>> next_version("v1.04")
        'v1.05'
        >>> next_version("v1.99")
        'v2.00'

    Raises:
        ValueError: If ``current`` is not a ``vX.YY`` version string
    """
    if not current:
        return FIRST_VERSION
    try:
        number = Decimal(current.removeprefix("v"))
    except InvalidOperation as e:
        raise ValueError(f"Not a mapping version: {current!r}") from e
    if not number.is_finite() or number < 0:
        raise ValueError(f"Not a mapping version: {current!r}")
    return f"v{(number + _STEP).quantize(_STEP)}"
