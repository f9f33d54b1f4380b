"""Pydantic models for machines and fuel entries."""

import datetime as _dt
import uuid
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from mineraltax.models.fuel import FuelType, parse_fuel_type
from mineraltax.models.sectors import SectorActivity, parse_sector


class MachineType(str, Enum):
    EXCAVATOR = "excavator"
    SPIDER_EXCAVATOR = "spider_excavator"
    LOADER = "loader"
    CRANE = "crane"
    DRILL = "drill"
    FINISHER = "finisher"
    MILLING_MACHINE = "milling_machine"
    ROLLER = "roller"
    DUMPER = "dumper"
    FORKLIFT = "forklift"
    CRUSHER = "crusher"
    GENERATOR = "generator"
    COMPRESSOR = "compressor"
    CONCRETE_PUMP = "concrete_pump"
    TRACTOR = "tractor"
    OTHER = "other"


# OFDF machine codes used in Taxas exports
MACHINE_CODES: dict[MachineType, str] = {
    MachineType.EXCAVATOR: "EXC",
    MachineType.SPIDER_EXCAVATOR: "EXS",
    MachineType.LOADER: "LDR",
    MachineType.CRANE: "CRA",
    MachineType.DRILL: "DRL",
    MachineType.FINISHER: "FIN",
    MachineType.MILLING_MACHINE: "MIL",
    MachineType.ROLLER: "ROL",
    MachineType.DUMPER: "DMP",
    MachineType.FORKLIFT: "FLT",
    MachineType.CRUSHER: "CRU",
    MachineType.GENERATOR: "GEN",
    MachineType.COMPRESSOR: "CMP",
    MachineType.CONCRETE_PUMP: "CPM",
    MachineType.OTHER: "OTH",
}


def _new_id() -> str:
    return uuid.uuid4().hex[:12]


class Machine(BaseModel):
    """An off-road machine or stationary installation declared for the refund."""

    id: str = Field(default_factory=_new_id)
    name: str
    type: MachineType = MachineType.OTHER
    chassis_number: str = ""
    registration_number: str = ""
    rc_number: str = ""
    year: Optional[int] = None
    is_eligible: bool = True
    # Kept verbatim: unknown codes are billed at the standard rate and flagged by the audit
    taxas_activity: Optional[str] = None

    @field_validator("taxas_activity")
    @classmethod
    def _blank_activity_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return v.strip()

    @property
    def sector(self) -> Optional[SectorActivity]:
        return parse_sector(self.taxas_activity)


class FuelEntry(BaseModel):
    """A fuel purchase (invoice line) booked against one machine."""

    id: str = Field(default_factory=_new_id)
    machine_id: str
    invoice_date: _dt.datetime
    invoice_number: str = ""
    volume_liters: Decimal
    engine_hours: Optional[Decimal] = None
    fuel_type: FuelType = FuelType.DIESEL
    article_number: str = ""
    warehouse_number: str = ""
    movement_number: str = ""
    bd: str = ""
    stat: str = ""
    ci: str = ""
    notes: str = ""
    created_at: _dt.datetime = Field(default_factory=lambda: _dt.datetime.now(_dt.timezone.utc))

    @field_validator("fuel_type", mode="before")
    @classmethod
    def _unknown_fuel_is_diesel(cls, v: object) -> object:
        if isinstance(v, str):
            return parse_fuel_type(v)
        return v


class Ledger(BaseModel):
    """Everything the local storage keeps."""

    machines: list[Machine] = Field(default_factory=list)
    fuel_entries: list[FuelEntry] = Field(default_factory=list)
