"""Reimbursement amounts in CHF, rounded half-up to the centime."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from mineraltax.engine.resolver import DateInput, resolve_rate
from mineraltax.exceptions import InvalidVolumeError
from mineraltax.models.fuel import FuelType
from mineraltax.models.rates import DEFAULT_RATE_TABLE, STANDARD_RATE, RateTable

CENT = Decimal("0.01")


@dataclass(frozen=True)
class ReimbursementResult:
    rate_per_liter: Decimal
    amount_chf: Decimal


def to_volume(value: Decimal | int | float | str) -> Decimal:
    """Convert a litre quantity to Decimal; NaN, infinities and non-numbers are rejected."""
    if isinstance(value, bool):
        raise InvalidVolumeError(value)
    if isinstance(value, Decimal):
        volume = value
    elif isinstance(value, (int, float, str)):
        try:
            volume = Decimal(str(value).strip())
        except InvalidOperation:
            raise InvalidVolumeError(value) from None
    else:
        raise InvalidVolumeError(value)
    if not volume.is_finite():
        raise InvalidVolumeError(value)
    return volume


def round_chf(amount: Decimal) -> Decimal:
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def compute_reimbursement(
    volume_liters: Decimal | int | float | str,
    when: DateInput,
    sector_activity_code: str | None = None,
    fuel_type: str | None = FuelType.DIESEL.value,
    table: RateTable = DEFAULT_RATE_TABLE,
) -> ReimbursementResult:
    """Resolve the rate and compute the amount for one fuel entry.

    Negative volumes (correction entries) yield negative amounts.
    """
    volume = to_volume(volume_liters)
    rate = resolve_rate(when, sector_activity_code, fuel_type, table)
    return ReimbursementResult(rate_per_liter=rate, amount_chf=round_chf(volume * rate))


def calculate_reimbursement(
    volume_liters: Decimal | int | float | str,
    when: DateInput,
    sector_activity_code: str | None = None,
    fuel_type: str | None = FuelType.DIESEL.value,
    table: RateTable = DEFAULT_RATE_TABLE,
) -> Decimal:
    """Reimbursement in CHF (2 dp) for one fuel entry."""
    return compute_reimbursement(volume_liters, when, sector_activity_code, fuel_type, table).amount_chf


def estimate_flat_reimbursement(volume_liters: Decimal | int | float | str) -> Decimal:
    """Quick estimate at the standard rate, ignoring date and sector.

    For dashboard totals only; exports go through calculate_reimbursement.
    """
    return round_chf(to_volume(volume_liters) * STANDARD_RATE)
