"""Click CLI — all user-facing commands."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from mineraltax.config import COMPANY_RC_NUMBER, LEDGER_PATH
from mineraltax.engine.calculator import compute_reimbursement, to_volume
from mineraltax.engine.resolver import regulatory_era, resolve_rate, to_utc_instant
from mineraltax.exceptions import MineralTaxError
from mineraltax.export.taxas_csv import (
    check_export_fields,
    export_filename,
    fiscal_year,
    generate_taxas_csv,
    machine_code,
    technical_signature,
    write_taxas_csv,
)
from mineraltax.logging_config import configure_logging
from mineraltax.models.fuel import FuelType, product_code
from mineraltax.models.records import FuelEntry, Machine, MachineType
from mineraltax.models.sectors import SECTOR_LABELS, list_sectors, parse_sector
from mineraltax.reporting.audit import print_audit, run_audit
from mineraltax.reporting.reports import build_summary, entries_in_period, print_rate_grid, print_summary
from mineraltax.storage.local_json import LocalJsonStorage

console = Console()

FUEL_CHOICES = [f.value for f in FuelType]


def _get_storage() -> LocalJsonStorage:
    ctx = click.get_current_context()
    storage = LocalJsonStorage(ctx.find_root().obj.get("ledger"))
    try:
        storage.load()
    except MineralTaxError as exc:
        _fail(str(exc))
    return storage


def _fail(message: str) -> None:
    console.print(f"[red]{message}[/red]")
    raise SystemExit(1)


def _default_period(start: str | None, end: str | None) -> tuple[str, str]:
    """Missing bounds default to the fiscal year being claimed."""
    year = fiscal_year()
    return start or f"{year}-01-01", end or f"{year}-12-31"


period_options = [
    click.option("--from", "start", help="Period start (YYYY-MM-DD), default: fiscal year start"),
    click.option("--to", "end", help="Period end (YYYY-MM-DD, inclusive), default: fiscal year end"),
]


def with_period(f):
    for option in reversed(period_options):
        f = option(f)
    return f


@click.group()
@click.option("--ledger", type=click.Path(dir_okay=False, path_type=Path), default=None,
              help=f"Ledger file (default {LEDGER_PATH})")
@click.option("--log-level", default=None, help="DEBUG, INFO, WARNING, ...")
@click.pass_context
def cli(ctx: click.Context, ledger: Path | None, log_level: str | None) -> None:
    """MineralTax — Swiss mineral oil tax refund preparation (Taxas)."""
    configure_logging(log_level)
    ctx.obj = {"ledger": ledger}


@cli.command("add-machine")
@click.argument("name")
@click.option("-t", "--type", "machine_type", type=click.Choice([t.value for t in MachineType]),
              default=MachineType.OTHER.value)
@click.option("-a", "--activity", help="Taxas activity code (see 'sectors')")
@click.option("--chassis", default="", help="Chassis number (VIN)")
@click.option("--registration", default="", help="Registration number (N° matricule)")
@click.option("--rc", default="", help="RC number if different from the company's")
@click.option("--year", type=int)
@click.option("--ineligible", is_flag=True, help="Machine is not eligible for the refund")
def add_machine(name: str, machine_type: str, activity: str | None, chassis: str,
                registration: str, rc: str, year: int | None, ineligible: bool) -> None:
    """Register a machine."""
    if activity and parse_sector(activity) is None:
        console.print(f"[yellow]Unknown activity {activity!r}: the standard rate will apply.[/yellow]")

    machine = Machine(
        name=name,
        type=MachineType(machine_type),
        taxas_activity=activity,
        chassis_number=chassis,
        registration_number=registration,
        rc_number=rc,
        year=year,
        is_eligible=not ineligible,
    )
    _get_storage().save_machine(machine)
    console.print(f"Machine registered: {machine.id} — {machine.name}")


@cli.command()
def machines() -> None:
    """List registered machines."""
    items = _get_storage().list_machines()
    if not items:
        console.print("[yellow]No machines registered.[/yellow]")
        return

    table = Table(title="Machines")
    table.add_column("ID", style="dim", width=12)
    table.add_column("Name", width=20)
    table.add_column("Code", width=5)
    table.add_column("Chassis", width=18)
    table.add_column("Activity", width=28)
    table.add_column("Eligible", width=8)

    for m in sorted(items, key=lambda x: x.name):
        sector = m.sector
        activity = SECTOR_LABELS[sector] if sector else (m.taxas_activity or "—")
        table.add_row(
            m.id,
            m.name,
            machine_code(m.type.value),
            m.chassis_number or "—",
            activity,
            "yes" if m.is_eligible else "[red]no[/red]",
        )
    console.print(table)


@cli.command("add-fuel")
@click.argument("machine_id")
@click.argument("volume")
@click.argument("invoice_date")
@click.option("-f", "--fuel", type=click.Choice(FUEL_CHOICES), default=FuelType.DIESEL.value)
@click.option("-i", "--invoice", default="", help="Invoice number")
@click.option("--article", default="", help="Article number (N° article)")
@click.option("--warehouse", default="", help="Warehouse number (N° entrepôt)")
@click.option("--movement", default="", help="Movement number (N° mouvement)")
@click.option("-n", "--notes", default="")
def add_fuel(machine_id: str, volume: str, invoice_date: str, fuel: str, invoice: str,
             article: str, warehouse: str, movement: str, notes: str) -> None:
    """Log a fuel purchase for a machine."""
    storage = _get_storage()
    try:
        machine = storage.find_machine(machine_id)
    except MineralTaxError as exc:
        _fail(str(exc))
    if not machine:
        _fail(f"Machine {machine_id!r} not found.")

    try:
        entry = FuelEntry(
            machine_id=machine.id,
            invoice_date=to_utc_instant(invoice_date),
            invoice_number=invoice,
            volume_liters=to_volume(volume),
            fuel_type=FuelType(fuel),
            article_number=article,
            warehouse_number=warehouse,
            movement_number=movement,
            notes=notes,
        )
    except MineralTaxError as exc:
        _fail(str(exc))

    storage.save_fuel_entry(entry)
    result = compute_reimbursement(entry.volume_liters, entry.invoice_date,
                                   machine.taxas_activity, entry.fuel_type.value)
    estimate = f"CHF {result.amount_chf}" if machine.is_eligible else "not eligible"
    console.print(
        f"Fuel entry {entry.id}: {entry.volume_liters} L {entry.fuel_type.value} "
        f"on {entry.invoice_date:%d.%m.%Y} — {estimate} (rate {result.rate_per_liter} CHF/L)"
    )


@cli.command("list-fuel")
@with_period
@click.option("-m", "--machine", "machine_id", help="Filter by machine id")
def list_fuel(start: str | None, end: str | None, machine_id: str | None) -> None:
    """List fuel entries with their refund."""
    storage = _get_storage()
    by_id = {m.id: m for m in storage.list_machines()}
    start, end = _default_period(start, end)
    try:
        entries = entries_in_period(storage.list_fuel_entries(), start, end)
    except MineralTaxError as exc:
        _fail(str(exc))
    if machine_id:
        entries = [e for e in entries if e.machine_id.startswith(machine_id)]

    if not entries:
        console.print("[yellow]No fuel entries found.[/yellow]")
        return

    table = Table(title=f"Fuel entries {start} – {end}")
    table.add_column("ID", style="dim", width=12)
    table.add_column("Date", width=10)
    table.add_column("Machine", width=18)
    table.add_column("Product", width=9)
    table.add_column("Litres", justify="right", width=10)
    table.add_column("Rate", justify="right", width=7)
    table.add_column("CHF", justify="right", width=10)

    total = Decimal("0")
    for e in sorted(entries, key=lambda x: to_utc_instant(x.invoice_date)):
        machine = by_id.get(e.machine_id)
        result = compute_reimbursement(e.volume_liters, e.invoice_date,
                                       machine.taxas_activity if machine else None, e.fuel_type.value)
        eligible = machine.is_eligible if machine else True
        amount = result.amount_chf if eligible else Decimal("0")
        total += amount
        table.add_row(
            e.id,
            f"{to_utc_instant(e.invoice_date):%Y-%m-%d}",
            machine.name if machine else "?",
            product_code(e.fuel_type.value),
            str(e.volume_liters),
            str(result.rate_per_liter),
            f"{amount:.2f}" if eligible else "[dim]0.00[/dim]",
        )

    console.print(table)
    console.print(f"  Total refund: CHF {total:.2f} ({len(entries)} entries)")


@cli.command("delete-fuel")
@click.argument("entry_id")
def delete_fuel(entry_id: str) -> None:
    """Delete a fuel entry."""
    try:
        deleted = _get_storage().delete_fuel_entry(entry_id)
    except MineralTaxError as exc:
        _fail(str(exc))
    if not deleted:
        _fail(f"Fuel entry {entry_id!r} not found.")
    console.print(f"Deleted fuel entry {entry_id}")


@cli.command()
def sectors() -> None:
    """Show all Taxas activity codes."""
    table = Table(title="Taxas activities")
    table.add_column("Code", style="bold", width=28)
    table.add_column("Label", width=45)
    for sector in list_sectors():
        table.add_row(sector.value, SECTOR_LABELS[sector])
    console.print(table)


@cli.command()
@click.argument("when", default=lambda: date.today().isoformat())
@click.option("-s", "--sector", help="Taxas activity code")
@click.option("-f", "--fuel", default=FuelType.DIESEL.value)
@click.option("--all", "show_all", is_flag=True, help="Show every activity and fuel type")
def rate(when: str, sector: str | None, fuel: str, show_all: bool) -> None:
    """Show the refund rate applicable on a date."""
    try:
        if show_all:
            print_rate_grid(when)
            return
        per_liter = resolve_rate(when, sector, fuel)
        era = regulatory_era(when)
    except MineralTaxError as exc:
        _fail(str(exc))
    console.print(f"{per_liter} CHF/L ({era.value})")


@cli.command()
@click.argument("volume")
@click.argument("when")
@click.option("-s", "--sector", help="Taxas activity code")
@click.option("-f", "--fuel", default=FuelType.DIESEL.value)
def calculate(volume: str, when: str, sector: str | None, fuel: str) -> None:
    """Compute the refund for a volume on a date."""
    try:
        result = compute_reimbursement(volume, when, sector, fuel)
    except MineralTaxError as exc:
        _fail(str(exc))
    console.print(f"CHF {result.amount_chf} ({volume} L × {result.rate_per_liter} CHF/L)")


@cli.command()
@with_period
def report(start: str | None, end: str | None) -> None:
    """Refund summary per machine for a period."""
    storage = _get_storage()
    start, end = _default_period(start, end)
    try:
        summary = build_summary(storage.list_machines(), storage.list_fuel_entries(), start, end)
    except MineralTaxError as exc:
        _fail(str(exc))
    print_summary(summary)


@cli.command()
@with_period
def audit(start: str | None, end: str | None) -> None:
    """Check the ledger for duplicates, implausible volumes and missing categories."""
    storage = _get_storage()
    start, end = _default_period(start, end)
    try:
        result = run_audit(storage.list_machines(), storage.list_fuel_entries(), start, end)
    except MineralTaxError as exc:
        _fail(str(exc))
    print_audit(result)
    if not result.is_valid:
        raise SystemExit(1)


@cli.command()
@with_period
@click.option("-o", "--output", type=click.Path(path_type=Path), help="Output CSV file path")
@click.option("--client", default="Client", help="Client name used in the default file name")
@click.option("--rc", default=COMPANY_RC_NUMBER, help="Company RC number")
@click.option("--user-id", default="local", help="User id used in the technical signature")
@click.option("--force", is_flag=True, help="Export even if Taxas fields are missing")
def export(start: str | None, end: str | None, output: Path | None, client: str,
           rc: str, user_id: str, force: bool) -> None:
    """Export fuel entries to the Taxas CSV format."""
    storage = _get_storage()
    start, end = _default_period(start, end)
    try:
        entries = entries_in_period(storage.list_fuel_entries(), start, end)
        if not entries:
            console.print("[yellow]No fuel entries to export.[/yellow]")
            return
        if not force:
            check_export_fields(entries, rc)
        content = generate_taxas_csv(storage.list_machines(), entries, rc)
    except MineralTaxError as exc:
        _fail(str(exc))

    path = write_taxas_csv(output or Path(export_filename(client)), content)
    console.print(f"Exported {len(entries)} entries to {path}")
    console.print(f"  Signature: {technical_signature(user_id)}")
