"""Ecliptic longitude to tropical sign mapping."""

import math

from planetaryhours.models import ZodiacSign
from planetaryhours.timeutil import normalize_360

SIGN_WIDTH_DEG = 30.0
SIGNS: tuple[ZodiacSign, ...] = tuple(ZodiacSign)


def sign_index(longitude: float) -> int:
    """Index 0 (Aries) .. 11 (Pisces) of the sign containing ``longitude``."""
    idx = math.floor(normalize_360(longitude) / SIGN_WIDTH_DEG)
    return min(max(idx, 0), len(SIGNS) - 1)


def sign_of(longitude: float) -> tuple[ZodiacSign, float]:
    """Return (sign, degree within sign) for an ecliptic longitude.

    Args:
        longitude: Ecliptic longitude in degrees, any range.

    Returns:
        The sign and the offset into it in [0, 30).
    """
    lon = normalize_360(longitude)
    idx = sign_index(lon)
    return SIGNS[idx], lon - idx * SIGN_WIDTH_DEG


def whole_sign_house(longitude: float, ascendant: float) -> int:
    """Whole-sign house 1..12 of ``longitude`` counted from the ascendant's sign."""
    return (sign_index(longitude) - sign_index(ascendant) + 12) % 12 + 1
