"""
Resolution of single layout dimensions against a parent size.

A dimension in a template can be written several ways::

    "25%"   -> 25 percent of the parent
    "auto"  -> deferred; the caller decides (see zones.resolve_zone)
    -10     -> parent - 10, i.e. anchored 10 mm from the far edge
    0.25    -> fraction shorthand, 25 percent of the parent
    150     -> literal millimetres

Resolution never raises. Input that cannot be read as a number resolves to
``nan`` and the caller is expected to bounds-check before drawing.
"""

from __future__ import annotations

import math
import re
from typing import Final, Union


class _Auto:
    """Sentinel returned for ``"auto"`` dimensions."""

    _instance: _Auto | None = None

    def __new__(cls) -> _Auto:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "AUTO"

    def __bool__(self) -> bool:
        return False


AUTO: Final = _Auto()

Dimension = Union[float, int, str]

_LEADING_NUMBER = re.compile(r"^\s*[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")


def parse_number(text: str) -> float:
    """Parse the leading number of ``text`` (``"12mm"`` -> 12.0), else ``nan``."""
    match = _LEADING_NUMBER.match(text)
    if not match:
        return math.nan
    return float(match.group(0))


def is_auto(value: object) -> bool:
    """True for the ``"auto"`` keyword or the AUTO sentinel."""
    return value is AUTO or (isinstance(value, str) and value.strip().lower() == "auto")


def resolve_value(value: Dimension | None, parent_size: float) -> float | _Auto:
    """
    Resolve one layout dimension against ``parent_size``.

    Args:
        value: Percentage string, ``"auto"``, negative far-edge offset,
            fraction in (0, 1), or literal millimetres
        parent_size: Size of the parent along the same axis

    Returns:
        The resolved size/position, or ``AUTO`` for deferred dimensions
    """
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("%"):
            return parse_number(text) / 100 * parent_size
        if is_auto(text):
            return AUTO
        return parse_number(text)

    if value is None or isinstance(value, bool):
        return math.nan

    try:
        number = float(value)
    except (TypeError, ValueError):
        return math.nan

    if number < 0:
        return parent_size + number
    if 0 < number < 1:
        return number * parent_size
    return number
