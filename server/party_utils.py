"""
party_utils.py
==============

Helper functions shared by the store and the settlement modules: id and
timestamp generation, ordering songs by popularity, and formatting prices
in the Indian lakh/crore notation used on the scoreboard.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from party_models import Song

LAKH = 100_000
CRORE = 10_000_000


def new_id() -> str:
    return uuid.uuid4().hex


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def sort_songs_by_streams(songs: Sequence[Song]) -> List[Song]:
    """Return songs ordered most-streamed first.

    The sort is stable, so songs with equal ``streams`` keep the order in
    which they were entered.
    """
    return sorted(songs, key=lambda s: s.streams, reverse=True)


def _scaled(value: float, suffix: str) -> str:
    if value % 1 == 0:
        return f"{int(value)}{suffix}"
    return f"{value:.1f}{suffix}"


def format_price(price: Optional[float]) -> str:
    """Format a price in lakhs and crores.

    Parameters
    ----------
    price : float or None
        Amount in currency units.  ``None`` renders as an empty string.

    Returns
    -------
    str
        ``"1.5cr"`` for 15,000,000, ``"2L"`` for 200,000, ``"1.2K"`` for
        1,200 and the plain number below a thousand.  A decimal is shown only
        when the scaled value is not whole.
    """
    if price is None:
        return ""
    try:
        num = float(price)
    except (TypeError, ValueError):
        return ""
    if num == 0:
        return "0"
    if num >= CRORE:
        return _scaled(num / CRORE, "cr")
    if num >= LAKH:
        return _scaled(num / LAKH, "L")
    if num >= 1000:
        return _scaled(num / 1000, "K")
    return str(int(num)) if num % 1 == 0 else str(num)


def format_price_with_symbol(price: Optional[float]) -> str:
    formatted = format_price(price)
    return f"₹{formatted}" if formatted else ""
