"""Exceptions raised by the rate engine and the export layer."""


class MineralTaxError(Exception):
    """Base class for all mineraltax errors."""


class InvalidDateError(MineralTaxError, ValueError):
    """A transaction date could not be read as a calendar instant."""

    def __init__(self, value: object) -> None:
        self.value = value
        super().__init__(f"Invalid transaction date: {value!r}")


class InvalidVolumeError(MineralTaxError, ValueError):
    """A fuel volume is not a finite number."""

    def __init__(self, value: object) -> None:
        self.value = value
        super().__init__(f"Invalid fuel volume: {value!r}")


class RateTableError(MineralTaxError):
    """A rate table has a gap or an ambiguous overlap."""


class TaxasFieldsMissingError(MineralTaxError):
    """Fields required by the Taxas export are missing."""

    def __init__(self, missing_fields: list[str]) -> None:
        self.missing_fields = missing_fields
        super().__init__("Missing Taxas fields: " + "; ".join(missing_fields))


class LedgerCorruptError(MineralTaxError):
    """The ledger file exists but cannot be read back."""

    def __init__(self, path: object) -> None:
        self.path = path
        super().__init__(f"Ledger {path} is not valid JSON; fix or move it before writing again")


class AmbiguousIdError(MineralTaxError):
    """An id prefix matches more than one record."""

    def __init__(self, prefix: str, matches: list[str]) -> None:
        self.prefix = prefix
        self.matches = matches
        super().__init__(f"Id prefix {prefix!r} is ambiguous: " + ", ".join(matches))
