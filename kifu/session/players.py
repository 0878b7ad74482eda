"""
Player display helpers - ranks and avatar URLs.
"""

from __future__ import annotations
import re

_ICON_FILE_SIZE = re.compile(r"-[0-9]+\.png")
_ICON_QUERY_SIZE = re.compile(r"s=[0-9]+")


def format_rank(rank: float | None, professional: bool = False) -> str:
    """
    Human-readable rank from the server's numeric rank.

    30 is 1 dan; below that are kyu ranks (29 is 1 kyu). Professional ranks
    start at 37 (1p).
    """
    if rank is None:
        return ""
    rank = int(rank)
    if professional:
        return f"{max(rank - 36, 1)}p"
    if rank < 30:
        return f"{30 - rank}k"
    return f"{rank - 29}d"


def resize_icon(icon: str | None, size: int) -> str | None:
    """Rewrite an avatar URL so the server returns a `size` pixel image."""
    if not icon:
        return None
    result = _ICON_FILE_SIZE.sub(f"-{size}.png", icon)
    return _ICON_QUERY_SIZE.sub(f"s={size}", result)
