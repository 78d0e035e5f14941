"""
Curated Override Tables

Taxonomic judgment calls made during curation are kept as data, separate
from the join/filter engine that applies them. This module defines the
structure of those tables and loads them from YAML.

Tables:
- manual_type_genomes: type genomes the automatic detection missed
- bad_links: wrong genome -> type strain links, keyed by
  (strain_name, species), (genome, species) or (genome, name)
- superseded_names: (kept_name, superseded_name) pairs for genomes that
  carry both names
- species_to_drop: names that lose a merger to an earlier published name
- promotions: (old_name, new_name) subspecies raised to species rank
- abbreviations: (pattern, replacement) pairs for report tables

The default tables ship with the package in data/curation.yaml.

Example Usage:
    >>> from clusternamer.curation import load_curation
    >>> curation = load_curation("my_curation.yaml")
    >>> "Lactobacillus zeae" in curation.species_to_drop
    True
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union
import logging

import pandas as pd
import yaml

logger = logging.getLogger(__name__)

DEFAULT_CURATION_PATH = Path(__file__).parent / "data" / "curation.yaml"


class CurationError(ValueError):
    """Malformed or missing curation file."""
    pass


@dataclass(frozen=True)
class ManualTypeGenome:
    """A type genome added by hand; why_manual is documentation only."""
    name: str
    genome: str
    why_manual: str = ""


@dataclass(frozen=True)
class BadLinks:
    """
    Known-wrong genome -> type strain associations.

    Attributes
    ----------
    strain_species : List[Tuple[str, str]]
        (strain_name, species) pairs
    genome_species : List[Tuple[str, str]]
        (genome, species) pairs
    genome_name : List[Tuple[str, str]]
        (genome, name) pairs
    """
    strain_species: List[Tuple[str, str]] = field(default_factory=list)
    genome_species: List[Tuple[str, str]] = field(default_factory=list)
    genome_name: List[Tuple[str, str]] = field(default_factory=list)

    def frames(self) -> Dict[Tuple[str, str], pd.DataFrame]:
        """Return each key table as a DataFrame, keyed by its column pair."""
        tables = {
            ("strain_name", "species"): self.strain_species,
            ("genome", "species"): self.genome_species,
            ("genome", "name"): self.genome_name,
        }
        return {
            columns: pd.DataFrame(list(rows), columns=list(columns), dtype=str)
            for columns, rows in tables.items()
        }


@dataclass(frozen=True)
class Curation:
    """All hand-curated override tables."""
    manual_type_genomes: List[ManualTypeGenome] = field(default_factory=list)
    bad_links: BadLinks = field(default_factory=BadLinks)
    superseded_names: List[Tuple[str, str]] = field(default_factory=list)
    species_to_drop: List[str] = field(default_factory=list)
    promotions: List[Tuple[str, str]] = field(default_factory=list)
    abbreviations: List[Tuple[str, str]] = field(default_factory=list)

    def summary(self) -> Dict[str, int]:
        """Entry counts per table, for logging."""
        return {
            "manual_type_genomes": len(self.manual_type_genomes),
            "bad_links": (
                len(self.bad_links.strain_species)
                + len(self.bad_links.genome_species)
                + len(self.bad_links.genome_name)
            ),
            "superseded_names": len(self.superseded_names),
            "species_to_drop": len(self.species_to_drop),
            "promotions": len(self.promotions),
            "abbreviations": len(self.abbreviations),
        }


_KNOWN_KEYS = {
    "manual_type_genomes", "bad_links", "superseded_names",
    "species_to_drop", "promotions", "abbreviations",
}


def _pairs(entries: Any, table: str) -> List[Tuple[str, str]]:
    """Validate a list of two-element entries."""
    pairs = []
    for entry in entries or []:
        if not isinstance(entry, (list, tuple)) or len(entry) != 2:
            raise CurationError(
                f"Entries of '{table}' must be pairs, got: {entry!r}"
            )
        pairs.append((str(entry[0]), str(entry[1])))
    return pairs


def curation_from_dict(data: Optional[Dict[str, Any]]) -> Curation:
    """
    Build a Curation object from a parsed YAML/JSON mapping.

    Missing tables default to empty.

    Raises
    ------
    CurationError
        If the mapping has unknown keys or malformed entries
    """
    data = data or {}
    if not isinstance(data, dict):
        raise CurationError("Curation file must contain a mapping of tables")

    unknown = sorted(set(data) - _KNOWN_KEYS)
    if unknown:
        raise CurationError(f"Unknown curation tables: {unknown}")

    manual = []
    for entry in data.get("manual_type_genomes") or []:
        if not isinstance(entry, dict) or "name" not in entry or "genome" not in entry:
            raise CurationError(
                f"manual_type_genomes entries need 'name' and 'genome': {entry!r}"
            )
        manual.append(ManualTypeGenome(
            name=str(entry["name"]),
            genome=str(entry["genome"]),
            why_manual=str(entry.get("why_manual", "")),
        ))

    bad = data.get("bad_links") or {}
    if not isinstance(bad, dict):
        raise CurationError("bad_links must be a mapping")
    bad_unknown = sorted(set(bad) - {"strain_species", "genome_species", "genome_name"})
    if bad_unknown:
        raise CurationError(f"Unknown bad_links tables: {bad_unknown}")

    return Curation(
        manual_type_genomes=manual,
        bad_links=BadLinks(
            strain_species=_pairs(bad.get("strain_species"), "bad_links.strain_species"),
            genome_species=_pairs(bad.get("genome_species"), "bad_links.genome_species"),
            genome_name=_pairs(bad.get("genome_name"), "bad_links.genome_name"),
        ),
        superseded_names=_pairs(data.get("superseded_names"), "superseded_names"),
        species_to_drop=[str(s) for s in data.get("species_to_drop") or []],
        promotions=_pairs(data.get("promotions"), "promotions"),
        abbreviations=_pairs(data.get("abbreviations"), "abbreviations"),
    )


def load_curation(path: Optional[Union[str, Path]] = None) -> Curation:
    """
    Load curation tables from a YAML file.

    Parameters
    ----------
    path : Optional[Union[str, Path]]
        Curation file; None loads the packaged defaults

    Returns
    -------
    Curation
        Parsed override tables

    Raises
    ------
    CurationError
        If the file does not exist or is malformed
    """
    curation_path = Path(path) if path is not None else DEFAULT_CURATION_PATH

    if not curation_path.exists():
        raise CurationError(f"Curation file not found: {curation_path}")

    with open(curation_path, "r", encoding="utf-8") as fh:
        try:
            data = yaml.safe_load(fh)
        except yaml.YAMLError as e:
            raise CurationError(f"Could not parse curation file {curation_path}: {e}") from e

    curation = curation_from_dict(data)
    logger.info(f"Loaded curation tables from {curation_path}")
    for table, count in curation.summary().items():
        logger.debug(f"  {table}: {count}")
    return curation


def default_curation() -> Curation:
    """Load the curation tables that ship with the package."""
    return load_curation(DEFAULT_CURATION_PATH)
