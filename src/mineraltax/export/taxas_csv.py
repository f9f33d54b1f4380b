"""Taxas CSV export (OFDF mineral oil tax refund, form 45.35)."""

from __future__ import annotations

import csv
import datetime as _dt
import io
import logging
import re
from decimal import Decimal
from pathlib import Path

from mineraltax.engine.calculator import calculate_reimbursement, round_chf
from mineraltax.engine.resolver import to_utc_instant
from mineraltax.exceptions import TaxasFieldsMissingError
from mineraltax.models.rates import DEFAULT_RATE_TABLE, RateTable
from mineraltax.models.records import MACHINE_CODES, FuelEntry, Machine, MachineType

logger = logging.getLogger(__name__)

TAXAS_HEADERS = [
    "RC",
    "N° matricule",
    "N° châssis",
    "N° article",
    "N° entrepôt",
    "Date mouvement",
    "N° mouvement",
    "Quantité de litres / kg",
    "BD",
    "Stat.",
    "CI",
    "Montant de l'impôt CHF",
]

FOOTER_LINES = [
    "Source légale : Règlement 09 de l'OFDF",
    "Compatible avec la plateforme Taxas",
]

SIGNATURE_PREFIX = "MTX26"


def format_swiss_date(value: _dt.datetime | _dt.date | str) -> str:
    """DD.MM.YYYY of the UTC calendar day."""
    return to_utc_instant(value).strftime("%d.%m.%Y")


def format_taxas_number(value: Decimal) -> str:
    return f"{round_chf(value):.2f}"


def sanitize_taxas_text(text: str | None) -> str:
    """Strip CSV-breaking characters (semicolons, line breaks)."""
    if not text:
        return ""
    return re.sub(r"\r?\n", " ", text.replace(";", ",")).strip()


def machine_code(machine_type: str | None) -> str:
    try:
        return MACHINE_CODES.get(MachineType((machine_type or "").lower()), "OTH")
    except ValueError:
        return "OTH"


def technical_signature(user_id: str, today: _dt.date | None = None) -> str:
    """e.g. MTX26-20260125-A1B2C3"""
    today = today or _dt.date.today()
    return f"{SIGNATURE_PREFIX}-{today.strftime('%Y%m%d')}-{user_id[:6].upper()}"


def check_export_fields(entries: list[FuelEntry], company_rc_number: str) -> None:
    """Raise TaxasFieldsMissingError if the export would be rejected by Taxas."""
    missing: list[str] = []
    if not company_rc_number:
        missing.append("N° RC (Registre du Commerce)")
    incomplete = [e for e in entries if not e.article_number or not e.warehouse_number]
    if incomplete:
        missing.append(f"{len(incomplete)} entrée(s) sans N° article ou N° entrepôt")
    if missing:
        raise TaxasFieldsMissingError(missing)


def build_rows(
    machines: list[Machine],
    entries: list[FuelEntry],
    company_rc_number: str = "",
    table: RateTable = DEFAULT_RATE_TABLE,
) -> list[list[str]]:
    """One Taxas row per fuel entry, in invoice date order."""
    by_id = {m.id: m for m in machines}
    rows = []
    for entry in sorted(entries, key=lambda e: to_utc_instant(e.invoice_date)):
        machine = by_id.get(entry.machine_id)
        if machine is None:
            logger.warning("Fuel entry %s references unknown machine %s", entry.id, entry.machine_id)
        eligible = machine.is_eligible if machine else True
        activity = machine.taxas_activity if machine else None

        if eligible:
            amount = calculate_reimbursement(
                entry.volume_liters, entry.invoice_date, activity, entry.fuel_type.value, table
            )
        else:
            amount = Decimal("0")

        rows.append([
            sanitize_taxas_text((machine.rc_number if machine else "") or company_rc_number),
            sanitize_taxas_text(machine.registration_number if machine else ""),
            sanitize_taxas_text(machine.chassis_number if machine else ""),
            sanitize_taxas_text(entry.article_number),
            sanitize_taxas_text(entry.warehouse_number),
            format_swiss_date(entry.invoice_date),
            sanitize_taxas_text(entry.movement_number or entry.invoice_number),
            format_taxas_number(entry.volume_liters),
            sanitize_taxas_text(entry.bd),
            sanitize_taxas_text(entry.stat),
            sanitize_taxas_text(entry.ci),
            format_taxas_number(amount),
        ])
    return rows


def generate_taxas_csv(
    machines: list[Machine],
    entries: list[FuelEntry],
    company_rc_number: str = "",
    table: RateTable = DEFAULT_RATE_TABLE,
) -> str:
    """Render the Taxas CSV (semicolon separated, CRLF, legal footer)."""
    buf = io.StringIO()
    writer = csv.writer(buf, delimiter=";", lineterminator="\r\n")
    writer.writerow(TAXAS_HEADERS)
    writer.writerows(build_rows(machines, entries, company_rc_number, table))
    writer.writerow([])
    for line in FOOTER_LINES:
        writer.writerow([line])
    return buf.getvalue()


def write_taxas_csv(path: str | Path, content: str) -> Path:
    """Write with a UTF-8 BOM so Excel and Taxas read the accents correctly."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8-sig", newline="") as f:
        f.write(content)
    return path


def fiscal_year(today: _dt.date | None = None) -> int:
    """Refunds are claimed for the previous calendar year."""
    return (today or _dt.date.today()).year - 1


def export_filename(client_name: str, today: _dt.date | None = None) -> str:
    safe_name = re.sub(r"[^a-zA-Z0-9]", "_", client_name) or "Client"
    return f"MineralTax_Export_{fiscal_year(today)}_{safe_name}.csv"
