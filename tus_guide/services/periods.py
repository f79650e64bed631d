"""
Period tokens ("2024/1", "2024/2", ...) and the active period window.

Tokens are ordered by year, then by half. Lexical order happens to agree for
well-formed tokens, but "2024/10"-style or padded tokens would not, so the
order is always computed from the parsed numbers.
"""

import re
from typing import Iterable, List, Tuple

from sqlalchemy.orm import Session

from tus_guide.db.database import fetch_all

PERIOD_RE = re.compile(r"^\s*(\d{4})\s*/\s*(\d+)\s*$")


def period_sort_key(token: str) -> Tuple[int, int, int, str]:
    """
    Chronological sort key. Malformed tokens sort before every well-formed
    one so they never displace a real period from the window.
    """
    match = PERIOD_RE.match(token)
    if match is None:
        return (0, 0, 0, token)
    return (1, int(match.group(1)), int(match.group(2)), token)


def sort_periods(tokens: Iterable[str], descending: bool = False) -> List[str]:
    return sorted(tokens, key=period_sort_key, reverse=descending)


def active_period_window(db: Session, size: int = 4) -> List[str]:
    """The `size` most recent distinct periods, most recent first."""
    rows = fetch_all(db, """
        SELECT DISTINCT donem FROM tus_puanlar
        WHERE donem IS NOT NULL AND donem <> ''
    """)
    return sort_periods((r["donem"] for r in rows), descending=True)[:size]
