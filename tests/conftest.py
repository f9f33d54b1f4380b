from datetime import datetime, timezone
from decimal import Decimal

import pytest

from mineraltax.models.records import FuelEntry, Machine, MachineType
from mineraltax.storage.local_json import LocalJsonStorage


@pytest.fixture
def tractor() -> Machine:
    return Machine(
        id="machine00001",
        name="Tractor A",
        type=MachineType.TRACTOR,
        taxas_activity="agriculture_with_direct",
        chassis_number="VIN-123456789",
        registration_number="MAT-987654",
        rc_number="RC-555",
        year=2020,
    )


@pytest.fixture
def excavator() -> Machine:
    return Machine(
        id="machine00002",
        name="Excavator B",
        type=MachineType.EXCAVATOR,
        taxas_activity="construction",
        chassis_number="VIN-EXC-1",
    )


@pytest.fixture
def facture_a(tractor: Machine) -> FuelEntry:
    return FuelEntry(
        id="entry0000001",
        machine_id=tractor.id,
        invoice_date=datetime(2025, 12, 15, 12, 0, tzinfo=timezone.utc),
        invoice_number="INV-2025",
        volume_liters=Decimal("1000"),
        article_number="ART-001",
        warehouse_number="WH-01",
        movement_number="MOV-001",
    )


@pytest.fixture
def facture_b(tractor: Machine) -> FuelEntry:
    return FuelEntry(
        id="entry0000002",
        machine_id=tractor.id,
        invoice_date=datetime(2026, 1, 5, 12, 0, tzinfo=timezone.utc),
        invoice_number="INV-2026",
        volume_liters=Decimal("1000"),
        article_number="ART-001",
        warehouse_number="WH-01",
    )


@pytest.fixture
def storage(tmp_path) -> LocalJsonStorage:
    return LocalJsonStorage(tmp_path / "ledger.json")
