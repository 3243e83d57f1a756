from __future__ import annotations

from typing import Any, Iterable, Optional


def parse_amount(value: Any) -> Optional[float]:
    """Parse registry amounts (int, float or numeric string like '12 500 000') into a number.

    Returns None for missing or unparsable inputs; integral values come back as int.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    s = str(value).strip().replace(" ", "").replace("\u00a0", "").replace(",", ".")
    if not s:
        return None
    try:
        num = float(s)
    except ValueError:
        return None
    return int(num) if num.is_integer() else num


def latest_year(keys: Iterable[Any]) -> Optional[int]:
    """Largest numeric key of a year-indexed mapping ({"2021": ..., "2022": ...} -> 2022)."""
    years = []
    for key in keys:
        s = str(key).strip()
        if s.isdigit():
            years.append(int(s))
    return max(years) if years else None
