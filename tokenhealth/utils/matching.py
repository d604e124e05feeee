"""
Priority matching of a symbol/name against candidate records.

Shared by the identifier resolver (market-data search hits) and the TVL
client (protocol list). Priority, first hit wins:

1. Exact symbol (case-insensitive)
2. Exact name
3. Substring on symbol, either direction
4. Substring on name, either direction (only when the name is longer
   than 3 characters, short names match too much)
"""

from collections.abc import Callable, Sequence
from typing import TypeVar

T = TypeVar("T")

MIN_NAME_SUBSTRING_LENGTH = 4


def _contains_either_way(a: str, b: str) -> bool:
    if not a or not b:
        return False
    return a in b or b in a


def match_by_priority(
    candidates: Sequence[T],
    symbol: str,
    name: str,
    get_symbol: Callable[[T], str | None],
    get_name: Callable[[T], str | None],
) -> T | None:
    """
    Pick the best candidate for a symbol/name pair.

    Args:
        candidates: Records in provider order
        symbol: Symbol to look for
        name: Name to look for
        get_symbol: Reads a candidate's symbol
        get_name: Reads a candidate's name

    Returns:
        The matching candidate, or None
    """
    wanted_symbol = symbol.strip().lower()
    wanted_name = name.strip().lower()

    def sym(c: T) -> str:
        return (get_symbol(c) or "").strip().lower()

    def nam(c: T) -> str:
        return (get_name(c) or "").strip().lower()

    if wanted_symbol:
        for c in candidates:
            if sym(c) == wanted_symbol:
                return c

    if wanted_name:
        for c in candidates:
            if nam(c) == wanted_name:
                return c

    for c in candidates:
        if _contains_either_way(sym(c), wanted_symbol):
            return c

    if len(wanted_name) >= MIN_NAME_SUBSTRING_LENGTH:
        for c in candidates:
            if _contains_either_way(nam(c), wanted_name):
                return c

    return None
