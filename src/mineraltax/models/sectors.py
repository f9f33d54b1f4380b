"""Taxas activity classifications (secteurs d'activité OFDF)."""

from __future__ import annotations

from enum import Enum


class SectorActivity(str, Enum):
    AGRICULTURE_WITH_DIRECT = "agriculture_with_direct"
    AGRICULTURE_WITHOUT_DIRECT = "agriculture_without_direct"
    FORESTRY = "forestry"
    CONSTRUCTION = "construction"
    NATURAL_STONE = "natural_stone"
    SNOW_GROOMER = "snow_groomer"
    PROFESSIONAL_FISHING = "professional_fishing"
    STATIONARY_GENERATOR = "stationary_generator"
    STATIONARY_CLEANING = "stationary_cleaning"
    STATIONARY_COMBUSTION = "stationary_combustion"
    CONCESSION_TRANSPORT = "concession_transport"
    RINSING = "rinsing"
    OTHER_TAXAS = "other_taxas"


SECTOR_LABELS: dict[SectorActivity, str] = {
    SectorActivity.AGRICULTURE_WITH_DIRECT: "Agriculture avec paiements directs",
    SectorActivity.AGRICULTURE_WITHOUT_DIRECT: "Agriculture sans paiements directs",
    SectorActivity.FORESTRY: "Sylviculture",
    SectorActivity.CONSTRUCTION: "Construction (BTP)",
    SectorActivity.NATURAL_STONE: "Extraction de pierre naturelle",
    SectorActivity.SNOW_GROOMER: "Dameuses de pistes",
    SectorActivity.PROFESSIONAL_FISHING: "Pêche professionnelle",
    SectorActivity.STATIONARY_GENERATOR: "Groupes électrogènes stationnaires",
    SectorActivity.STATIONARY_CLEANING: "Installations de nettoyage stationnaires",
    SectorActivity.STATIONARY_COMBUSTION: "Moteurs stationnaires",
    SectorActivity.CONCESSION_TRANSPORT: "Entreprises de transport concessionnaires",
    SectorActivity.RINSING: "Rinçage",
    SectorActivity.OTHER_TAXAS: "Autre catégorie Taxas",
}


def parse_sector(code: str | None) -> SectorActivity | None:
    """Map a stored activity code to its enum member, or None if absent/unknown.

    Matching is exact: a code that is not spelled as in the enumeration never
    earns a preferential rate.
    """
    if not code:
        return None
    try:
        return SectorActivity(code.strip())
    except (ValueError, AttributeError):
        return None


def is_known_sector(code: str | None) -> bool:
    return parse_sector(code) is not None


def list_sectors() -> list[SectorActivity]:
    return list(SectorActivity)
