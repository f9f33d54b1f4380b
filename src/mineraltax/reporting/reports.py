"""Refund summary over a period, per machine and per regulatory era."""

from __future__ import annotations

import datetime as _dt
from collections import defaultdict
from dataclasses import dataclass, field
from decimal import Decimal

from rich.console import Console
from rich.table import Table

from mineraltax.engine.calculator import calculate_reimbursement
from mineraltax.engine.resolver import RegulatoryEra, regulatory_era, resolve_rate, to_utc_instant
from mineraltax.models.fuel import FuelType
from mineraltax.models.rates import DEFAULT_RATE_TABLE, RateTable
from mineraltax.models.records import FuelEntry, Machine
from mineraltax.models.sectors import SECTOR_LABELS, list_sectors

console = Console()

PeriodBound = _dt.datetime | _dt.date | str


@dataclass
class MachineLine:
    machine_id: str
    name: str
    chassis_number: str
    year: int | None
    eligible: bool
    liters: Decimal = Decimal("0")
    reimbursement: Decimal = Decimal("0")


@dataclass
class ReportSummary:
    period_start: _dt.datetime
    period_end: _dt.datetime
    end_exclusive: bool = True
    entry_count: int = 0
    total_volume: Decimal = Decimal("0")
    eligible_volume: Decimal = Decimal("0")
    reimbursement: Decimal = Decimal("0")
    by_machine: list[MachineLine] = field(default_factory=list)
    by_era: dict[RegulatoryEra, Decimal] = field(default_factory=dict)

    @property
    def average_rate(self) -> Decimal:
        if not self.eligible_volume:
            return Decimal("0")
        return (self.reimbursement / self.eligible_volume).quantize(Decimal("0.0001"))


def _period_end(end: PeriodBound) -> tuple[_dt.datetime, bool]:
    """Upper bound and whether it is exclusive. A bare date covers its whole day."""
    try:
        if isinstance(end, _dt.date) and not isinstance(end, _dt.datetime):
            return to_utc_instant(end + _dt.timedelta(days=1)), True
        if isinstance(end, str) and len(end.strip()) == 10:
            return to_utc_instant(end) + _dt.timedelta(days=1), True
    except OverflowError:
        return _dt.datetime.max.replace(tzinfo=_dt.timezone.utc), False
    return to_utc_instant(end), False


def entries_in_period(entries: list[FuelEntry], start: PeriodBound,
                      end: PeriodBound) -> list[FuelEntry]:
    lo = to_utc_instant(start)
    hi, exclusive = _period_end(end)
    selected = []
    for e in entries:
        t = to_utc_instant(e.invoice_date)
        if t < lo:
            continue
        if t > hi or (exclusive and t == hi):
            continue
        selected.append(e)
    return selected


def build_summary(
    machines: list[Machine],
    entries: list[FuelEntry],
    start: PeriodBound,
    end: PeriodBound,
    table: RateTable = DEFAULT_RATE_TABLE,
) -> ReportSummary:
    """Totals for the period. Amounts are rounded per entry, then summed."""
    by_id = {m.id: m for m in machines}
    selected = entries_in_period(entries, start, end)
    period_end, exclusive = _period_end(end)
    summary = ReportSummary(period_start=to_utc_instant(start), period_end=period_end,
                            end_exclusive=exclusive, entry_count=len(selected))

    lines: dict[str, MachineLine] = {}
    by_era: dict[RegulatoryEra, Decimal] = defaultdict(lambda: Decimal("0"))

    for e in selected:
        machine = by_id.get(e.machine_id)
        eligible = machine.is_eligible if machine else True
        line = lines.get(e.machine_id)
        if line is None:
            line = MachineLine(
                machine_id=e.machine_id,
                name=machine.name if machine else "Unknown",
                chassis_number=machine.chassis_number if machine else "",
                year=machine.year if machine else None,
                eligible=eligible,
            )
            lines[e.machine_id] = line

        summary.total_volume += e.volume_liters
        line.liters += e.volume_liters
        if not eligible:
            continue

        amount = calculate_reimbursement(
            e.volume_liters, e.invoice_date,
            machine.taxas_activity if machine else None, e.fuel_type.value, table,
        )
        summary.eligible_volume += e.volume_liters
        summary.reimbursement += amount
        line.reimbursement += amount
        by_era[regulatory_era(e.invoice_date)] += amount

    summary.by_machine = sorted(lines.values(), key=lambda m: m.name)
    summary.by_era = dict(by_era)
    return summary


def _period_title(summary: ReportSummary) -> str:
    last_day = summary.period_end
    if summary.end_exclusive:
        last_day -= _dt.timedelta(seconds=1)
    return f"{summary.period_start:%d.%m.%Y} – {last_day:%d.%m.%Y}"


def print_summary(summary: ReportSummary) -> None:
    """Print the refund summary as rich tables."""
    if not summary.entry_count:
        console.print("[yellow]No fuel entries for the given period.[/yellow]")
        return

    table = Table(title=f"Mineral oil tax refund — {_period_title(summary)}")
    table.add_column("Machine", width=20)
    table.add_column("Chassis (VIN)", width=22)
    table.add_column("Year", width=6)
    table.add_column("Litres", justify="right", width=12)
    table.add_column("Refund CHF", justify="right", width=12)

    for line in summary.by_machine:
        refund = str(line.reimbursement) if line.eligible else "[dim]not eligible[/dim]"
        table.add_row(
            line.name[:20],
            line.chassis_number or "—",
            str(line.year) if line.year else "—",
            f"{line.liters:.2f}",
            refund,
        )

    table.add_section()
    table.add_row("[bold]Total[/bold]", "", "", f"{summary.total_volume:.2f}", f"{summary.reimbursement:.2f}")
    console.print(table)

    console.print(f"  Eligible volume: {summary.eligible_volume:.2f} L")
    for era in RegulatoryEra:
        if era in summary.by_era:
            console.print(f"  {era.value}: CHF {summary.by_era[era]:.2f}")
    console.print(f"  Average rate: {summary.average_rate} CHF/L")


def print_rate_grid(when: PeriodBound, table: RateTable = DEFAULT_RATE_TABLE) -> None:
    """Print the rate of every sector and fuel type on a given date."""
    grid = Table(title=f"Rates on {to_utc_instant(when):%d.%m.%Y} ({table.name})")
    grid.add_column("Activity", width=42)
    for fuel in FuelType:
        grid.add_column(fuel.value, justify="right", width=10)

    for sector in list_sectors():
        grid.add_row(
            SECTOR_LABELS[sector],
            *(str(resolve_rate(when, sector.value, fuel.value, table)) for fuel in FuelType),
        )
    grid.add_section()
    grid.add_row("[dim]Not classified[/dim]",
                 *(str(resolve_rate(when, None, fuel.value, table)) for fuel in FuelType))
    console.print(grid)
