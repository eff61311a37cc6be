"""
Half-open interval arithmetic.

All intervals are ``[start, end)``: the start instant is included, the end
instant is not, so back-to-back sessions never collide. ``overlaps`` is the
single overlap test used by conflict detection and slot generation.
"""

from typing import TypeVar

T = TypeVar("T")


def overlaps(a_start: T, a_end: T, b_start: T, b_end: T) -> bool:
    """Check if ``[a_start, a_end)`` and ``[b_start, b_end)`` share any instant."""
    return a_start < b_end and b_start < a_end


def contains(outer_start: T, outer_end: T, inner_start: T, inner_end: T) -> bool:
    """Check if ``[inner_start, inner_end)`` lies fully inside ``[outer_start, outer_end)``."""
    return outer_start <= inner_start and inner_end <= outer_end
