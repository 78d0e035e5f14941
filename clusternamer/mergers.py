"""
Merger and Split Resolution

A merger is a cluster holding type genomes of more than one species; a split
is a species whose type genomes fall into more than one cluster. Mergers are
resolved with a curated drop list (the later published names lose); splits
are only reported, clusters are never merged.

Key Responsibilities:
1. Detect mergers and splits in the type genome combinations
2. Apply the curated drop list and report mergers it leaves unresolved
3. Apply subspecies promotions (before the drop list, so promoted species
   take part in the unresolved check) and project to one species per cluster

Important Notes:
- Name precedence is not computed here: there is no publication date in the
  data. The drop list is configuration (see clusternamer.curation).
- A cluster the drop list does not fully resolve keeps all of its species in
  a single " / "-joined label and is reported in the unresolved cases.
"""

from typing import Iterable, Tuple
import logging
import warnings

import pandas as pd

from .names import join_unique, species_from_name

logger = logging.getLogger(__name__)

UNRESOLVED_SPECIES_SEP = " / "


class UnresolvedMergerWarning(UserWarning):
    """A merger cluster still holds several species after the drop list."""
    pass


def detect_mergers(combinations: pd.DataFrame) -> pd.DataFrame:
    """
    Find clusters with type genomes of more than one species.

    Returns
    -------
    pd.DataFrame
        One row per merger cluster: cluster, species, names (comma-joined)
    """
    n_species = combinations.groupby("cluster")["species"].transform("nunique")
    merged = combinations[n_species > 1]
    if merged.empty:
        logger.info("  Found 0 merger clusters")
        return pd.DataFrame(columns=["cluster", "species", "names"])
    mergers = (
        merged.groupby("cluster")
        .agg(species=("species", join_unique), names=("name", join_unique))
        .reset_index()
        .sort_values("cluster")
        .reset_index(drop=True)
    )
    logger.info(f"  Found {len(mergers)} merger clusters")
    return mergers


def detect_splits(combinations: pd.DataFrame) -> pd.DataFrame:
    """
    Find species with type genomes in more than one cluster.

    Returns
    -------
    pd.DataFrame
        One row per (split species, cluster): species, cluster, names
    """
    n_clusters = combinations.groupby("species")["cluster"].transform("nunique")
    split = combinations[n_clusters > 1]
    if split.empty:
        logger.info("  Found 0 split species")
        return pd.DataFrame(columns=["species", "cluster", "names"])
    splits = (
        split.groupby(["species", "cluster"])
        .agg(names=("name", join_unique))
        .reset_index()
        .sort_values(["species", "cluster"])
        .reset_index(drop=True)
    )
    logger.info(f"  Found {splits['species'].nunique()} split species over {len(splits)} clusters")
    return splits


def apply_precedence_rule(
    combinations: pd.DataFrame,
    species_to_drop: Iterable[str],
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    Remove combinations whose species lost a merger to an earlier name.

    Parameters
    ----------
    combinations : pd.DataFrame
        Distinct (cluster, species, name) combinations
    species_to_drop : Iterable[str]
        Curated drop list, one entry per name to discard

    Returns
    -------
    Tuple[pd.DataFrame, pd.DataFrame]
        (resolved combinations, unresolved mergers with columns cluster, species)

    Notes
    -----
    Entries matching no combination are ignored. Clusters still holding
    more than one species are returned as unresolved with an
    UnresolvedMergerWarning; the run is not interrupted.
    """
    drop = set(species_to_drop)
    dropped = combinations["species"].isin(drop)
    if dropped.any():
        logger.info(
            f"  Dropped {int(dropped.sum())} combinations of "
            f"{combinations.loc[dropped, 'species'].nunique()} species on the drop list"
        )
    resolved = combinations[~dropped].reset_index(drop=True)

    n_species = resolved.groupby("cluster")["species"].transform("nunique")
    still_merged = resolved[n_species > 1]
    if still_merged.empty:
        return resolved, pd.DataFrame(columns=["cluster", "species"])

    unresolved = (
        still_merged.groupby("cluster")
        .agg(species=("species", join_unique))
        .reset_index()
        .sort_values("cluster")
        .reset_index(drop=True)
    )

    for row in unresolved.itertuples(index=False):
        message = f"Cluster {row.cluster} still holds several species: {row.species}"
        logger.warning(f"  ⚠ {message}")
        warnings.warn(message, UnresolvedMergerWarning, stacklevel=2)

    return resolved, unresolved


def apply_promotions(
    combinations: pd.DataFrame,
    promotions: Iterable[Tuple[str, str]],
) -> pd.DataFrame:
    """
    Rename subspecies raised to species rank.

    Rows whose name equals an old name get the new name and the species
    derived from it.
    """
    promoted = combinations.copy()
    for old_name, new_name in promotions:
        mask = promoted["name"] == old_name
        if mask.any():
            promoted.loc[mask, "name"] = new_name
            promoted.loc[mask, "species"] = species_from_name(new_name)
            logger.info(f"  Promoted '{old_name}' to '{new_name}' in {int(mask.sum())} rows")
    return promoted


def finalize_type_genome_naming(
    resolved: pd.DataFrame,
    promotions: Iterable[Tuple[str, str]] = (),
) -> pd.DataFrame:
    """
    Give every cluster with type genomes its final species.

    Parameters
    ----------
    resolved : pd.DataFrame
        Combinations after the drop list
    promotions : Iterable[Tuple[str, str]]
        (old_name, new_name) subspecies promotions; empty when `resolved`
        was promoted before apply_precedence_rule, as run_pipeline does

    Returns
    -------
    pd.DataFrame
        One row per cluster: cluster, species
    """
    promoted = apply_promotions(resolved, promotions)
    named = (
        promoted[["cluster", "species"]]
        .drop_duplicates()
        .groupby("cluster")["species"]
        .agg(lambda s: join_unique(s, sep=UNRESOLVED_SPECIES_SEP))
        .reset_index()
        .sort_values("cluster")
        .reset_index(drop=True)
    )
    logger.info(f"  {len(named)} clusters named by type genomes")
    return named
