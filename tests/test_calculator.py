from datetime import datetime, timezone
from decimal import Decimal

import pytest

from mineraltax.engine.calculator import (
    calculate_reimbursement,
    compute_reimbursement,
    estimate_flat_reimbursement,
    round_chf,
)
from mineraltax.exceptions import InvalidDateError, InvalidVolumeError
from mineraltax.models.fuel import FuelType
from mineraltax.models.rates import DEFAULT_RATE_TABLE, REFORM_PIVOT, RateRule
from mineraltax.models.sectors import SectorActivity

POST = "2026-06-01"


def test_pivot_boundary_amounts():
    assert calculate_reimbursement(1000, "2025-12-31T23:59:59Z", "agriculture_with_direct", "diesel") == Decimal("340.60")
    assert calculate_reimbursement(1000, "2026-01-01T00:00:00Z", "agriculture_with_direct", "diesel") == Decimal("600.50")


def test_sector_differentiation_after_reform():
    assert calculate_reimbursement(1000, POST, "agriculture_with_direct", "diesel") == Decimal("600.50")
    assert calculate_reimbursement(1000, POST, "construction", "diesel") == Decimal("340.60")


def test_facture_a_and_b():
    a = calculate_reimbursement(1000, datetime(2025, 12, 15, tzinfo=timezone.utc), "agriculture_with_direct", "diesel")
    b = calculate_reimbursement(1000, datetime(2026, 1, 5, tzinfo=timezone.utc), "agriculture_with_direct", "diesel")
    assert (a, b) == (Decimal("340.60"), Decimal("600.50"))


def test_rounds_to_centimes():
    # 333 * 0.3406 = 113.4198
    assert calculate_reimbursement(333, POST, "construction", "diesel") == Decimal("113.42")


def test_rounds_half_up():
    # 10 * 0.6005 = 6.005 exactly
    assert calculate_reimbursement(10, POST, "agriculture_with_direct", "diesel") == Decimal("6.01")
    assert round_chf(Decimal("2.345")) == Decimal("2.35")
    assert round_chf(Decimal("2.344999")) == Decimal("2.34")


def test_result_has_two_decimals():
    amount = calculate_reimbursement(100, POST, "agriculture_with_direct", "gasoline")
    assert amount == Decimal("59.24")
    assert amount.as_tuple().exponent == -2


def test_zero_volume_gives_zero():
    assert calculate_reimbursement(0, POST, "agriculture_with_direct", "diesel") == Decimal("0.00")


def test_negative_volume_gives_credit():
    assert calculate_reimbursement(-100, POST, "agriculture_with_direct", "diesel") == Decimal("-60.05")
    # half-up rounds away from zero on both sides
    assert calculate_reimbursement(-10, POST, "agriculture_with_direct", "diesel") == Decimal("-6.01")


def test_is_idempotent():
    args = (Decimal("1234.56"), "2026-03-03T10:00:00Z", "agriculture_with_direct", "gasoline")
    assert calculate_reimbursement(*args) == calculate_reimbursement(*args)


@pytest.mark.parametrize("volume", [Decimal("1"), Decimal("7.5"), Decimal("333"), Decimal("1234.567")])
@pytest.mark.parametrize("sector", ["agriculture_with_direct", "construction", None])
@pytest.mark.parametrize("fuel", ["diesel", "gasoline"])
def test_doubling_volume_doubles_amount(volume, sector, fuel):
    single = calculate_reimbursement(volume, POST, sector, fuel)
    double = calculate_reimbursement(volume * 2, POST, sector, fuel)
    assert abs(double - single * 2) <= Decimal("0.01")


@pytest.mark.parametrize("volume", [100, 100.0, "100", " 100 ", Decimal("100")])
def test_accepts_numeric_volume_types(volume):
    assert calculate_reimbursement(volume, POST, "construction") == Decimal("34.06")


def test_float_volume_is_read_as_written():
    assert calculate_reimbursement(0.1, POST, "construction") == Decimal("0.03")


@pytest.mark.parametrize("bad", ["abc", "", float("nan"), float("inf"), None, True, [100]])
def test_malformed_volume_raises(bad):
    with pytest.raises(InvalidVolumeError):
        calculate_reimbursement(bad, POST, "construction")


def test_malformed_date_raises():
    with pytest.raises(InvalidDateError):
        calculate_reimbursement(100, "not-a-date", "construction")


def test_compute_returns_rate_and_amount():
    result = compute_reimbursement(1000, REFORM_PIVOT, SectorActivity.AGRICULTURE_WITH_DIRECT, FuelType.BIODIESEL)
    assert result.rate_per_liter == Decimal("0.6005")
    assert result.amount_chf == Decimal("600.50")


def test_injected_table_is_used():
    table = DEFAULT_RATE_TABLE.extended([
        RateRule(None, None, SectorActivity.FORESTRY, FuelType.DIESEL, Decimal("0.5000")),
    ])
    assert calculate_reimbursement(100, POST, "forestry", "diesel", table=table) == Decimal("50.00")
    assert calculate_reimbursement(100, POST, "forestry", "diesel") == Decimal("34.06")


def test_flat_estimate_matches_standard_rate():
    assert estimate_flat_reimbursement(1000) == Decimal("340.60")
    assert estimate_flat_reimbursement(1000) == calculate_reimbursement(1000, POST, "construction")
