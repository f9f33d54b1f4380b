"""Pre-export audit: duplicates, implausible volumes, missing classifications."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from rich.console import Console
from rich.table import Table

from mineraltax.models.records import FuelEntry, Machine
from mineraltax.models.sectors import is_known_sector
from mineraltax.reporting.reports import PeriodBound, entries_in_period

console = Console()

# Litres per machine and period above which the volume is flagged
HIGH_VOLUME_THRESHOLD = Decimal("50000")


class FindingType(str, Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass
class Finding:
    type: FindingType
    code: str
    message: str
    details: dict = field(default_factory=dict)


@dataclass
class AuditResult:
    machines_checked: int
    entries_analyzed: int
    findings: list[Finding]

    @property
    def errors(self) -> list[Finding]:
        return [f for f in self.findings if f.type == FindingType.ERROR]

    @property
    def warnings(self) -> list[Finding]:
        return [f for f in self.findings if f.type == FindingType.WARNING]

    @property
    def is_valid(self) -> bool:
        return not self.errors


def run_audit(machines: list[Machine], entries: list[FuelEntry],
              start: PeriodBound, end: PeriodBound) -> AuditResult:
    by_id = {m.id: m for m in machines}
    selected = entries_in_period(entries, start, end)
    findings: list[Finding] = []

    invoice_groups: dict[tuple[str, str], list[FuelEntry]] = defaultdict(list)
    for e in selected:
        if e.invoice_number:
            invoice_groups[(e.machine_id, e.invoice_number)].append(e)
    for (machine_id, invoice_number), group in invoice_groups.items():
        if len(group) > 1:
            name = by_id[machine_id].name if machine_id in by_id else "Unknown"
            findings.append(Finding(
                FindingType.ERROR, "DUPLICATE_INVOICE",
                f"Duplicate invoice detected: {invoice_number}",
                {"invoice_number": invoice_number, "machine_name": name, "count": len(group)},
            ))

    volumes: dict[str, Decimal] = defaultdict(lambda: Decimal("0"))
    for e in selected:
        volumes[e.machine_id] += e.volume_liters
    for machine_id, total in volumes.items():
        if total > HIGH_VOLUME_THRESHOLD:
            name = by_id[machine_id].name if machine_id in by_id else "Unknown"
            findings.append(Finding(
                FindingType.WARNING, "HIGH_VOLUME",
                f"High volume for {name}: {total:,.0f} L",
                {"machine_name": name, "volume": total},
            ))

    for e in selected:
        if e.volume_liters <= 0:
            findings.append(Finding(
                FindingType.ERROR, "INVALID_VOLUME",
                f"Invalid volume: {e.volume_liters} L",
                {"entry_id": e.id, "volume": e.volume_liters},
            ))

    for m in machines:
        if not m.is_eligible:
            continue
        if not m.taxas_activity:
            findings.append(Finding(
                FindingType.WARNING, "MISSING_TAXAS_CATEGORY",
                f"Missing Taxas category: {m.name}",
                {"machine_id": m.id, "machine_name": m.name},
            ))
        elif not is_known_sector(m.taxas_activity):
            findings.append(Finding(
                FindingType.WARNING, "UNKNOWN_TAXAS_CATEGORY",
                f"Unknown Taxas category {m.taxas_activity!r} for {m.name} (standard rate applied)",
                {"machine_id": m.id, "machine_name": m.name, "activity": m.taxas_activity},
            ))

    return AuditResult(machines_checked=len(machines), entries_analyzed=len(selected), findings=findings)


def print_audit(result: AuditResult) -> None:
    console.print(
        f"Checked {result.machines_checked} machines, {result.entries_analyzed} entries: "
        f"{len(result.errors)} errors, {len(result.warnings)} warnings"
    )
    if not result.findings:
        console.print("[green]No findings.[/green]")
        return

    table = Table(title="Audit findings")
    table.add_column("Type", width=8)
    table.add_column("Code", no_wrap=True)
    table.add_column("Message")
    for f in result.findings:
        style = "red" if f.type == FindingType.ERROR else "yellow"
        table.add_row(f"[{style}]{f.type.value}[/{style}]", f.code, f.message)
    console.print(table)
