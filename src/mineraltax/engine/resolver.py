"""Rate resolution: (date, Taxas activity, fuel type) -> CHF per litre."""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum

from mineraltax.exceptions import InvalidDateError
from mineraltax.models.fuel import FuelType, parse_fuel_type
from mineraltax.models.rates import DEFAULT_RATE_TABLE, REFORM_PIVOT, RateRule, RateTable
from mineraltax.models.sectors import SectorActivity, parse_sector

logger = logging.getLogger(__name__)

DateInput = datetime | date | str


class RegulatoryEra(str, Enum):
    PRE_REFORM = "pre_reform"
    POST_REFORM = "post_reform"


def to_utc_instant(value: DateInput) -> datetime:
    """Read a transaction date as an aware UTC datetime.

    Naive datetimes are taken as UTC, plain dates as midnight UTC, and strings
    are parsed as ISO 8601 (a trailing ``Z`` is accepted). Anything else raises
    InvalidDateError.
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            raise InvalidDateError(value) from None
    else:
        raise InvalidDateError(value)

    if dt.tzinfo is None or dt.tzinfo.utcoffset(dt) is None:
        return dt.replace(tzinfo=timezone.utc)
    try:
        return dt.astimezone(timezone.utc)
    except OverflowError:
        # offset pushes the instant outside datetime's range
        raise InvalidDateError(value) from None


def regulatory_era(value: DateInput, pivot: datetime = REFORM_PIVOT) -> RegulatoryEra:
    if to_utc_instant(value) < pivot:
        return RegulatoryEra.PRE_REFORM
    return RegulatoryEra.POST_REFORM


def _sector_of(code: object) -> SectorActivity | None:
    if isinstance(code, SectorActivity):
        return code
    if isinstance(code, str):
        return parse_sector(code)
    return None


def _fuel_of(value: object) -> FuelType:
    if isinstance(value, FuelType):
        return value
    if isinstance(value, str):
        return parse_fuel_type(value)
    return FuelType.DIESEL


def resolve_rule(
    when: DateInput,
    sector_activity_code: str | None = None,
    fuel_type: str | None = FuelType.DIESEL.value,
    table: RateTable = DEFAULT_RATE_TABLE,
) -> RateRule:
    """Return the rate rule that applies to a transaction."""
    instant = to_utc_instant(when)
    sector = _sector_of(sector_activity_code)
    fuel = _fuel_of(fuel_type)

    if sector is None and sector_activity_code:
        logger.debug("Unknown activity %r, using standard rate", sector_activity_code)
    if (
        isinstance(fuel_type, str)
        and not isinstance(fuel_type, FuelType)
        and fuel.value != fuel_type.strip().lower()
    ):
        logger.debug("Unknown fuel type %r, treated as diesel", fuel_type)

    return table.lookup(instant, sector, fuel)


def resolve_rate(
    when: DateInput,
    sector_activity_code: str | None = None,
    fuel_type: str | None = FuelType.DIESEL.value,
    table: RateTable = DEFAULT_RATE_TABLE,
) -> Decimal:
    """CHF per litre for a transaction.

    Never raises for unknown or missing sector/fuel values: they resolve to the
    standard rate (fuel as diesel). Malformed dates raise InvalidDateError.
    """
    return resolve_rule(when, sector_activity_code, fuel_type, table).rate_per_liter
