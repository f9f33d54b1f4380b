"""Fuel types and their OFDF product codes."""

from __future__ import annotations

from enum import Enum


class FuelType(str, Enum):
    DIESEL = "diesel"
    GASOLINE = "gasoline"
    BIODIESEL = "biodiesel"


PRODUCT_CODES: dict[FuelType, str] = {
    FuelType.DIESEL: "DIESEL",
    FuelType.GASOLINE: "ESSENCE",
    FuelType.BIODIESEL: "BIODIESEL",
}


def parse_fuel_type(value: str | None) -> FuelType:
    """Normalise a fuel type string. Anything unrecognised is treated as diesel."""
    if not value:
        return FuelType.DIESEL
    try:
        return FuelType(value.strip().lower())
    except (ValueError, AttributeError):
        return FuelType.DIESEL


def product_code(value: str | None) -> str:
    return PRODUCT_CODES[parse_fuel_type(value)]
