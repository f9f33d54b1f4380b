"""Local JSON ledger with file locking for concurrent access."""

import fcntl
import json
import logging
from pathlib import Path

from mineraltax.config import LEDGER_PATH
from mineraltax.exceptions import AmbiguousIdError, LedgerCorruptError
from mineraltax.models.records import FuelEntry, Ledger, Machine
from mineraltax.storage.adapter import StorageAdapter

logger = logging.getLogger(__name__)


def _read_json_locked(path: Path) -> dict:
    if not path.exists():
        return {}
    with open(path, "r") as f:
        fcntl.flock(f, fcntl.LOCK_SH)
        try:
            data = json.load(f)
        except json.JSONDecodeError:
            logger.error("Ledger %s is not valid JSON", path)
            raise LedgerCorruptError(path) from None
        finally:
            fcntl.flock(f, fcntl.LOCK_UN)
    return data


def _write_json_locked(path: Path, data: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        fcntl.flock(f, fcntl.LOCK_EX)
        try:
            json.dump(data, f, indent=2, default=str)
        finally:
            fcntl.flock(f, fcntl.LOCK_UN)


def _upsert(records: list, item) -> list:
    for i, r in enumerate(records):
        if r.id == item.id:
            records[i] = item
            return records
    records.append(item)
    return records


def _match_one(records: list, prefix: str):
    """The single record whose id is or starts with prefix, None if there is none."""
    prefix = (prefix or "").strip()
    if not prefix:
        return None
    for r in records:
        if r.id == prefix:
            return r
    matches = [r for r in records if r.id.startswith(prefix)]
    if len(matches) > 1:
        raise AmbiguousIdError(prefix, [r.id for r in matches])
    return matches[0] if matches else None


class LocalJsonStorage(StorageAdapter):
    def __init__(self, path: Path | None = None):
        self.path = path or LEDGER_PATH
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def load(self) -> Ledger:
        return Ledger.model_validate(_read_json_locked(self.path))

    def _store(self, ledger: Ledger) -> None:
        _write_json_locked(self.path, json.loads(ledger.model_dump_json()))

    def list_machines(self) -> list[Machine]:
        return self.load().machines

    def list_fuel_entries(self) -> list[FuelEntry]:
        return self.load().fuel_entries

    def save_machine(self, machine: Machine) -> None:
        ledger = self.load()
        _upsert(ledger.machines, machine)
        self._store(ledger)

    def save_fuel_entry(self, entry: FuelEntry) -> None:
        ledger = self.load()
        _upsert(ledger.fuel_entries, entry)
        self._store(ledger)

    def find_machine(self, machine_id: str) -> Machine | None:
        return _match_one(self.list_machines(), machine_id)

    def find_fuel_entry(self, entry_id: str) -> FuelEntry | None:
        return _match_one(self.list_fuel_entries(), entry_id)

    def delete_fuel_entry(self, entry_id: str) -> bool:
        ledger = self.load()
        entry = _match_one(ledger.fuel_entries, entry_id)
        if entry is None:
            return False
        ledger.fuel_entries = [e for e in ledger.fuel_entries if e.id != entry.id]
        self._store(ledger)
        return True
