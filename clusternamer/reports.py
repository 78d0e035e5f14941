"""
Output Tables

This module assembles and writes the output tables of a naming run:

- splits_and_mergers.csv: clusters involved in a merger or a split, with the
  (abbreviated) names of their type genomes
- clusters_zerotypegenomes.csv: evidence and provisional names for clusters
  without type genomes
- clusters_all_named.csv: the final name of every cluster
- unresolved_cases.csv: genomes with several names and merger clusters left
  for human review

All tables are comma-separated UTF-8 with a header row, sorted, so that
re-running on the same inputs gives byte-identical files.
"""

from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Union
import logging

import pandas as pd

from .names import abbreviate, normalize_underscores

logger = logging.getLogger(__name__)

CERTAINTY_TYPE_GENOME = "type genome"

SPLITS_MERGERS_COLUMNS = ["cluster", "merger_split", "names"]
ZERO_TYPE_GENOMES_COLUMNS = ["cluster", "species_ncbi", "n_16S", "sixteen_s_hits", "species"]
ALL_NAMED_COLUMNS = ["cluster", "species", "species_short"]
UNRESOLVED_COLUMNS = ["kind", "key", "detail"]


def format_text_columns(
    df: pd.DataFrame,
    columns: Iterable[str],
    abbreviations: Iterable[Sequence[str]],
) -> pd.DataFrame:
    """Normalise underscores and abbreviate names in the given columns."""
    abbreviations = list(abbreviations)
    formatted = df.copy()
    for col in columns:
        formatted[col] = (
            formatted[col]
            .map(normalize_underscores)
            .map(lambda text: abbreviate(text, abbreviations))
        )
    return formatted


def _write_csv(df: pd.DataFrame, output_csv: Union[str, Path]) -> Path:
    out = Path(output_csv)
    out.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(out, index=False, encoding="utf-8")
    logger.info(f"  ✓ Wrote {len(df)} rows to {out}")
    return out


# ============================================================================
# Splits and Mergers
# ============================================================================

def splits_and_mergers_table(
    mergers: pd.DataFrame,
    splits: pd.DataFrame,
    abbreviations: Iterable[Sequence[str]] = (),
) -> pd.DataFrame:
    """
    Combine merger and split detections into one table.

    Parameters
    ----------
    mergers : pd.DataFrame
        cluster, names (from mergers.detect_mergers)
    splits : pd.DataFrame
        species, cluster, names (from mergers.detect_splits)
    abbreviations : Iterable[Sequence[str]]
        (pattern, replacement) pairs

    Returns
    -------
    pd.DataFrame
        cluster, merger_split ("merger" or "split"), names
    """
    merger_rows = mergers[["cluster", "names"]].assign(merger_split="merger")
    split_rows = splits[["cluster", "names"]].assign(merger_split="split")
    table = pd.concat([merger_rows, split_rows], ignore_index=True)[SPLITS_MERGERS_COLUMNS]
    table = format_text_columns(table, ["names"], abbreviations)
    return table.sort_values(SPLITS_MERGERS_COLUMNS).reset_index(drop=True)


def write_splits_and_mergers(
    mergers: pd.DataFrame,
    splits: pd.DataFrame,
    output_csv: Union[str, Path],
    abbreviations: Iterable[Sequence[str]] = (),
) -> pd.DataFrame:
    """Write splits_and_mergers.csv and return the written table."""
    table = splits_and_mergers_table(mergers, splits, abbreviations)
    _write_csv(table, output_csv)
    return table


# ============================================================================
# Clusters without Type Genomes
# ============================================================================

def write_clusters_zerotypegenomes(
    clusters_tss: pd.DataFrame,
    output_csv: Union[str, Path],
    abbreviations: Iterable[Sequence[str]] = (),
) -> pd.DataFrame:
    """
    Write clusters_zerotypegenomes.csv.

    Parameters
    ----------
    clusters_tss : pd.DataFrame
        Output of unnamed.name_unnamed_clusters
    output_csv : Union[str, Path]
        Output path
    abbreviations : Iterable[Sequence[str]]
        (pattern, replacement) pairs

    Returns
    -------
    pd.DataFrame
        The written table
    """
    table = clusters_tss[ZERO_TYPE_GENOMES_COLUMNS]
    table = format_text_columns(table, ["species_ncbi", "sixteen_s_hits", "species"], abbreviations)
    table = table.sort_values("cluster").reset_index(drop=True)
    _write_csv(table, output_csv)
    return table


# ============================================================================
# All Named Clusters
# ============================================================================

def combine_named_clusters(
    clusters_tgs: pd.DataFrame,
    clusters_tss: pd.DataFrame,
    all_clusters: Optional[Iterable] = None,
    abbreviations: Iterable[Sequence[str]] = (),
) -> pd.DataFrame:
    """
    Union of clusters named by type genomes and by NCBI/16S evidence.

    Parameters
    ----------
    clusters_tgs : pd.DataFrame
        cluster, species of clusters named by type genomes
    clusters_tss : pd.DataFrame
        cluster, species, certainty of the other clusters
    all_clusters : Optional[Iterable]
        Every cluster of the input; when given, the union must cover it
    abbreviations : Iterable[Sequence[str]]
        Used to build species_short

    Returns
    -------
    pd.DataFrame
        cluster, species, species_short, certainty; one row per cluster

    Raises
    ------
    RuntimeError
        If the two tables share clusters, a cluster appears twice, or a
        cluster of the input is missing
    """
    shared = set(clusters_tgs["cluster"]) & set(clusters_tss["cluster"])
    if shared:
        raise RuntimeError(
            f"Clusters named by both type genomes and 16S/NCBI: {sorted(shared)[:10]}"
        )

    tgs = clusters_tgs[["cluster", "species"]].assign(certainty=CERTAINTY_TYPE_GENOME)
    tss = clusters_tss[["cluster", "species", "certainty"]]
    named = pd.concat([tgs, tss], ignore_index=True)

    duplicated = named["cluster"].duplicated()
    if duplicated.any():
        raise RuntimeError(
            f"Clusters with more than one name: {named.loc[duplicated, 'cluster'].tolist()[:10]}"
        )

    if all_clusters is not None:
        missing = set(all_clusters) - set(named["cluster"])
        if missing:
            raise RuntimeError(f"Clusters without a name: {sorted(missing)[:10]}")

    named["species"] = named["species"].map(normalize_underscores)
    abbreviations = list(abbreviations)
    named["species_short"] = named["species"].map(lambda s: abbreviate(s, abbreviations))

    return (
        named[["cluster", "species", "species_short", "certainty"]]
        .sort_values("cluster")
        .reset_index(drop=True)
    )


def write_clusters_all_named(named: pd.DataFrame, output_csv: Union[str, Path]) -> pd.DataFrame:
    """Write clusters_all_named.csv (cluster, species, species_short)."""
    table = named[ALL_NAMED_COLUMNS].sort_values("cluster").reset_index(drop=True)
    _write_csv(table, output_csv)
    return table


# ============================================================================
# Unresolved Cases
# ============================================================================

def unresolved_cases_table(
    multi_name_genomes: pd.DataFrame,
    unresolved_mergers: pd.DataFrame,
) -> pd.DataFrame:
    """
    Collect cases that need human review.

    Returns
    -------
    pd.DataFrame
        kind ("multi_name_genome" or "unresolved_merger"), key, detail
    """
    frames: List[pd.DataFrame] = [
        pd.DataFrame({
            "kind": "multi_name_genome",
            "key": multi_name_genomes["genome"].astype(str),
            "detail": multi_name_genomes["names"],
        }),
        pd.DataFrame({
            "kind": "unresolved_merger",
            "key": unresolved_mergers["cluster"].astype(str),
            "detail": unresolved_mergers["species"],
        }),
    ]
    table = pd.concat(frames, ignore_index=True)[UNRESOLVED_COLUMNS]
    return table.sort_values(UNRESOLVED_COLUMNS).reset_index(drop=True)


def write_unresolved_cases(
    multi_name_genomes: pd.DataFrame,
    unresolved_mergers: pd.DataFrame,
    output_csv: Union[str, Path],
) -> pd.DataFrame:
    """Write unresolved_cases.csv; an empty table still gets its header."""
    table = unresolved_cases_table(multi_name_genomes, unresolved_mergers)
    if table.empty:
        logger.info("No unresolved cases.")
    else:
        logger.warning(f"  ⚠ {len(table)} cases need review, see {output_csv}")
    _write_csv(table, output_csv)
    return table
