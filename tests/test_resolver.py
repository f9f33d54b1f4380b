from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from mineraltax.engine.resolver import (
    RegulatoryEra,
    regulatory_era,
    resolve_rate,
    resolve_rule,
    to_utc_instant,
)
from mineraltax.exceptions import InvalidDateError
from mineraltax.models.fuel import FuelType
from mineraltax.models.rates import REFORM_PIVOT, WILDCARD
from mineraltax.models.sectors import SectorActivity

POST = "2026-06-01T00:00:00Z"
PRE = "2025-06-01T00:00:00Z"


def test_pivot_instant_switches_agriculture_rate():
    assert resolve_rate("2025-12-31T23:59:59Z", "agriculture_with_direct", "diesel") == Decimal("0.3406")
    assert resolve_rate("2026-01-01T00:00:00Z", "agriculture_with_direct", "diesel") == Decimal("0.6005")


def test_last_microsecond_before_pivot_is_pre_reform():
    just_before = REFORM_PIVOT - timedelta(microseconds=1)
    assert resolve_rate(just_before, "agriculture_with_direct", "diesel") == Decimal("0.3406")
    assert resolve_rate(REFORM_PIVOT, "agriculture_with_direct", "diesel") == Decimal("0.6005")


@pytest.mark.parametrize("when, era", [
    # 00:30 in Zurich on New Year's day is still 2025 in UTC
    ("2026-01-01T00:30:00+01:00", RegulatoryEra.PRE_REFORM),
    ("2025-12-31T23:30:00-01:00", RegulatoryEra.POST_REFORM),
    (datetime(2026, 1, 1), RegulatoryEra.POST_REFORM),
    (datetime(2025, 12, 31, 23, 59, 59), RegulatoryEra.PRE_REFORM),
    (date(2026, 1, 1), RegulatoryEra.POST_REFORM),
    (date(2025, 12, 31), RegulatoryEra.PRE_REFORM),
    ("2026-01-01", RegulatoryEra.POST_REFORM),
])
def test_era_uses_utc_timestamp(when, era):
    assert regulatory_era(when) == era


def test_timezone_shifted_date_resolves_on_utc():
    assert resolve_rate("2026-01-01T00:30:00+01:00", "agriculture_with_direct") == Decimal("0.3406")
    assert resolve_rate("2025-12-31T23:30:00-01:00", "agriculture_with_direct") == Decimal("0.6005")


def test_only_direct_payment_agriculture_is_elevated_after_reform():
    assert resolve_rate(POST, "agriculture_with_direct", "diesel") == Decimal("0.6005")
    assert resolve_rate(POST, "construction", "diesel") == Decimal("0.3406")
    assert resolve_rate(POST, "agriculture_without_direct", "diesel") == Decimal("0.3406")


@pytest.mark.parametrize("sector", [s for s in SectorActivity if s != SectorActivity.AGRICULTURE_WITH_DIRECT])
@pytest.mark.parametrize("fuel", list(FuelType))
def test_other_sectors_keep_standard_rate(sector, fuel):
    assert resolve_rate(POST, sector.value, fuel.value) == Decimal("0.3406")


@pytest.mark.parametrize("sector", [None, *SectorActivity])
@pytest.mark.parametrize("fuel", list(FuelType))
def test_pre_reform_rate_is_flat(sector, fuel):
    code = sector.value if sector else None
    assert resolve_rate(PRE, code, fuel.value) == Decimal("0.3406")


@pytest.mark.parametrize("code", [None, "", "   ", "unknown", "AGRICULTURE_WITH_DIRECT", "agri", 42])
def test_unknown_sector_falls_back_to_standard(code):
    assert resolve_rate(POST, code, "diesel") == resolve_rate(POST, "construction", "diesel")
    assert resolve_rule(POST, code, "diesel").sector == WILDCARD


def test_fuel_types_differ_for_direct_payment_agriculture():
    diesel = resolve_rate(POST, "agriculture_with_direct", "diesel")
    gasoline = resolve_rate(POST, "agriculture_with_direct", "gasoline")
    assert diesel == Decimal("0.6005")
    assert gasoline == Decimal("0.5924")
    assert diesel != gasoline
    assert resolve_rate(POST, "agriculture_with_direct", "biodiesel") == Decimal("0.6005")


@pytest.mark.parametrize("fuel", [None, "", "kerosene", "DIESEL", 7])
def test_unknown_fuel_is_treated_as_diesel(fuel):
    assert resolve_rate(POST, "agriculture_with_direct", fuel) == Decimal("0.6005")
    assert resolve_rate(POST, "construction", fuel) == Decimal("0.3406")


def test_enum_members_are_accepted():
    assert resolve_rate(POST, SectorActivity.AGRICULTURE_WITH_DIRECT, FuelType.GASOLINE) == Decimal("0.5924")


@pytest.mark.parametrize("bad", [
    "not-a-date", "", "2026-13-01", "31.12.2025", None, float("nan"), 20260101,
    "0001-01-01T00:00:00+01:00", "9999-12-31T23:59:59-01:00",
])
def test_malformed_dates_raise(bad):
    with pytest.raises(InvalidDateError):
        resolve_rate(bad, "construction", "diesel")


def test_invalid_date_is_a_value_error():
    with pytest.raises(ValueError):
        to_utc_instant("yesterday")


def test_to_utc_instant_normalises_offsets():
    instant = to_utc_instant("2026-01-01T01:00:00+01:00")
    assert instant == REFORM_PIVOT
    assert instant.tzinfo == timezone.utc
    assert to_utc_instant(date(2026, 1, 1)) == REFORM_PIVOT
