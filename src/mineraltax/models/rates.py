"""Mineral oil tax reimbursement rates (CHF per litre) and the rule table."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Iterable, Union

from mineraltax.exceptions import RateTableError
from mineraltax.models.fuel import FuelType
from mineraltax.models.sectors import SectorActivity

# Agricultural reform of the mineral oil tax refund (in force 1 January 2026, 00:00 UTC)
REFORM_PIVOT = datetime(2026, 1, 1, tzinfo=timezone.utc)

STANDARD_RATE = Decimal("0.3406")              # 34.06 ct/L, all sectors
AGRI_DIRECT_DIESEL_RATE = Decimal("0.6005")    # 60.05 ct/L, diesel and biodiesel
AGRI_DIRECT_GASOLINE_RATE = Decimal("0.5924")  # 59.24 ct/L

WILDCARD = "*"

SectorKey = Union[SectorActivity, str]


@dataclass(frozen=True)
class RateRule:
    """One line of the rate table.

    ``effective_from`` is inclusive and ``effective_until`` exclusive; ``None``
    leaves that side open. ``sector`` is a SectorActivity or WILDCARD.
    """

    effective_from: datetime | None
    effective_until: datetime | None
    sector: SectorKey
    fuel_type: FuelType
    rate_per_liter: Decimal

    def covers(self, instant: datetime) -> bool:
        if self.effective_from is not None and instant < self.effective_from:
            return False
        if self.effective_until is not None and instant >= self.effective_until:
            return False
        return True

    @property
    def is_wildcard(self) -> bool:
        return self.sector == WILDCARD


def _start_key(rule: RateRule) -> datetime:
    return rule.effective_from or datetime.min.replace(tzinfo=timezone.utc)


def _check_rule(rule: RateRule) -> None:
    for bound in (rule.effective_from, rule.effective_until):
        if bound is not None and bound.tzinfo is None:
            raise RateTableError(f"Rule bounds must be timezone-aware: {rule}")
    if (
        rule.effective_from is not None
        and rule.effective_until is not None
        and rule.effective_from >= rule.effective_until
    ):
        raise RateTableError(f"Empty validity window: {rule}")
    if rule.sector != WILDCARD and not isinstance(rule.sector, SectorActivity):
        raise RateTableError(f"Unknown sector in rule: {rule.sector!r}")


def _validate(rules: tuple[RateRule, ...]) -> None:
    groups: dict[tuple[SectorKey, FuelType], list[RateRule]] = defaultdict(list)
    for rule in rules:
        _check_rule(rule)
        groups[(rule.sector, rule.fuel_type)].append(rule)

    # No two rules for the same (sector, fuel) may overlap in time
    for (sector, fuel), group in groups.items():
        group.sort(key=_start_key)
        for prev, nxt in zip(group, group[1:]):
            if prev.effective_until is None or prev.effective_until > _start_key(nxt):
                raise RateTableError(
                    f"Overlapping rules for {sector}/{fuel.value}: {prev} and {nxt}"
                )

    # The wildcard rules of every fuel type must cover the whole timeline
    for fuel in FuelType:
        chain = groups.get((WILDCARD, fuel))
        if not chain:
            raise RateTableError(f"No standard rate for fuel type {fuel.value!r}")
        if chain[0].effective_from is not None:
            raise RateTableError(f"Standard {fuel.value} rate starts at {chain[0].effective_from}")
        for prev, nxt in zip(chain, chain[1:]):
            if prev.effective_until != nxt.effective_from:
                raise RateTableError(
                    f"Gap in standard {fuel.value} rate between "
                    f"{prev.effective_until} and {nxt.effective_from}"
                )
        if chain[-1].effective_until is not None:
            raise RateTableError(f"Standard {fuel.value} rate ends at {chain[-1].effective_until}")


@dataclass(frozen=True)
class RateTable:
    """Immutable, validated set of rate rules.

    Built once and passed to the resolver; several tables can live side by
    side (e.g. to simulate a future reform).
    """

    rules: tuple[RateRule, ...]
    name: str = "default"
    _index: dict = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        rules = tuple(self.rules)
        _validate(rules)
        index: dict[tuple[SectorKey, FuelType], tuple[RateRule, ...]] = {}
        for rule in rules:
            key = (rule.sector, rule.fuel_type)
            index[key] = index.get(key, ()) + (rule,)
        object.__setattr__(self, "rules", rules)
        object.__setattr__(self, "_index", index)

    def _match(self, instant: datetime, sector: SectorKey, fuel: FuelType) -> RateRule | None:
        for rule in self._index.get((sector, fuel), ()):
            if rule.covers(instant):
                return rule
        return None

    def lookup(self, instant: datetime, sector: SectorActivity | None, fuel: FuelType) -> RateRule:
        """Return the rule for a UTC instant; sectors without a rule use the wildcard."""
        if sector is not None:
            rule = self._match(instant, sector, fuel)
            if rule is not None:
                return rule
        rule = self._match(instant, WILDCARD, fuel)
        if rule is None:
            raise RateTableError(f"No rule covers {instant.isoformat()} for {fuel.value}")
        return rule

    def extended(self, extra: Iterable[RateRule], name: str | None = None) -> RateTable:
        """A new table with additional rules; the current one is left untouched."""
        return RateTable(self.rules + tuple(extra), name=name or self.name)


def _standard_rules() -> list[RateRule]:
    rules = []
    for fuel in FuelType:
        rules.append(RateRule(None, REFORM_PIVOT, WILDCARD, fuel, STANDARD_RATE))
        rules.append(RateRule(REFORM_PIVOT, None, WILDCARD, fuel, STANDARD_RATE))
    return rules


DEFAULT_RATE_TABLE = RateTable(
    tuple(_standard_rules()) + (
        RateRule(REFORM_PIVOT, None, SectorActivity.AGRICULTURE_WITH_DIRECT,
                 FuelType.DIESEL, AGRI_DIRECT_DIESEL_RATE),
        RateRule(REFORM_PIVOT, None, SectorActivity.AGRICULTURE_WITH_DIRECT,
                 FuelType.BIODIESEL, AGRI_DIRECT_DIESEL_RATE),
        RateRule(REFORM_PIVOT, None, SectorActivity.AGRICULTURE_WITH_DIRECT,
                 FuelType.GASOLINE, AGRI_DIRECT_GASOLINE_RATE),
    ),
    name="OFDF 2026",
)
