"""Abstract storage adapter for machines and fuel entries."""

from abc import ABC, abstractmethod

from mineraltax.models.records import FuelEntry, Machine


class StorageAdapter(ABC):
    @abstractmethod
    def list_machines(self) -> list[Machine]:
        """Load all machines."""

    @abstractmethod
    def list_fuel_entries(self) -> list[FuelEntry]:
        """Load all fuel entries."""

    @abstractmethod
    def save_machine(self, machine: Machine) -> None:
        """Save or update a machine (upsert by id)."""

    @abstractmethod
    def save_fuel_entry(self, entry: FuelEntry) -> None:
        """Save or update a fuel entry (upsert by id)."""

    @abstractmethod
    def find_machine(self, machine_id: str) -> Machine | None:
        """Find a machine by id or unique id prefix."""

    @abstractmethod
    def find_fuel_entry(self, entry_id: str) -> FuelEntry | None:
        """Find a fuel entry by id or unique id prefix."""

    @abstractmethod
    def delete_fuel_entry(self, entry_id: str) -> bool:
        """Delete the one fuel entry matching an id or unique id prefix."""
