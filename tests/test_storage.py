from decimal import Decimal

import pytest

from mineraltax.exceptions import AmbiguousIdError, LedgerCorruptError
from mineraltax.models.fuel import FuelType
from mineraltax.storage.local_json import LocalJsonStorage


def test_round_trip_of_machines_and_entries(storage, tractor, facture_a):
    storage.save_machine(tractor)
    storage.save_fuel_entry(facture_a)

    reloaded = LocalJsonStorage(storage.path)
    [machine] = reloaded.list_machines()
    [entry] = reloaded.list_fuel_entries()
    assert machine == tractor
    assert entry.volume_liters == Decimal("1000")
    assert entry.invoice_date == facture_a.invoice_date
    assert entry.fuel_type == FuelType.DIESEL


def test_save_upserts_by_id(storage, tractor):
    storage.save_machine(tractor)
    tractor.name = "Tractor A (renamed)"
    storage.save_machine(tractor)
    assert [m.name for m in storage.list_machines()] == ["Tractor A (renamed)"]


def test_find_by_id_prefix(storage, tractor, excavator, facture_a):
    storage.save_machine(tractor)
    storage.save_machine(excavator)
    storage.save_fuel_entry(facture_a)
    assert storage.find_machine("machine00002").name == "Excavator B"
    assert storage.find_fuel_entry("entry0").id == facture_a.id
    assert storage.find_machine("nope") is None


def test_delete_fuel_entry(storage, facture_a, facture_b):
    storage.save_fuel_entry(facture_a)
    storage.save_fuel_entry(facture_b)
    assert storage.delete_fuel_entry(facture_a.id)
    assert not storage.delete_fuel_entry("missing")
    assert [e.id for e in storage.list_fuel_entries()] == [facture_b.id]


def test_missing_ledger_reads_empty(storage):
    assert storage.list_machines() == []
    assert storage.list_fuel_entries() == []


def test_corrupt_ledger_raises_instead_of_reading_empty(storage, tractor):
    storage.path.write_text("{not json")
    with pytest.raises(LedgerCorruptError):
        storage.list_fuel_entries()
    with pytest.raises(LedgerCorruptError):
        storage.save_machine(tractor)
    assert storage.path.read_text() == "{not json"


def test_empty_id_matches_nothing(storage, tractor, facture_a):
    storage.save_machine(tractor)
    storage.save_fuel_entry(facture_a)
    assert storage.find_machine("") is None
    assert storage.find_fuel_entry("  ") is None
    assert not storage.delete_fuel_entry("")
    assert len(storage.list_fuel_entries()) == 1


def test_ambiguous_prefix_is_rejected(storage, tractor, excavator, facture_a, facture_b):
    storage.save_machine(tractor)
    storage.save_machine(excavator)
    storage.save_fuel_entry(facture_a)
    storage.save_fuel_entry(facture_b)

    with pytest.raises(AmbiguousIdError):
        storage.find_machine("machine")
    with pytest.raises(AmbiguousIdError) as excinfo:
        storage.delete_fuel_entry("entry")
    assert excinfo.value.matches == [facture_a.id, facture_b.id]
    assert len(storage.list_fuel_entries()) == 2


def test_exact_id_wins_over_longer_ids(storage, tractor):
    storage.save_machine(tractor)
    longer = tractor.model_copy(update={"id": tractor.id + "0", "name": "Tractor A2"})
    storage.save_machine(longer)
    assert storage.find_machine(tractor.id).name == "Tractor A"
