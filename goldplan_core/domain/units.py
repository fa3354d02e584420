from __future__ import annotations

OUNCES_PER_KILOGRAM = 32.1507  # troy ounces in one kilogram


def price_per_kilogram(price_per_ounce: float) -> float:
    return price_per_ounce * OUNCES_PER_KILOGRAM


def price_per_ounce(price_per_kilogram: float) -> float:
    return price_per_kilogram / OUNCES_PER_KILOGRAM
