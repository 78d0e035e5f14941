"""
Type Genome Reconciliation

Turns the automatically detected type genomes and the curated overrides into
a clean table of (cluster, species, name) combinations.

Workflow:
1. Concatenate automatic and manual type genome tables
2. Attach clusters (and strain names) from the genome -> cluster table
3. Remove known-bad genome -> type strain links (anti-joins)
4. Resolve genomes that carry more than one name, using the curated
   superseded-name pairs; anything left over is reported, not guessed
5. Project to distinct (cluster, species, name) combinations

Example Usage:
    >>> from clusternamer import type_genomes as tg
    >>> combined = tg.merge_type_genome_sources(auto_df, tg.manual_type_genomes_frame(curation))
    >>> combined = tg.attach_clusters(combined, genomes_clusters)
    >>> cleaned = tg.remove_known_bad_associations(combined, curation.bad_links)
    >>> resolved, unresolved = tg.resolve_multi_name_genomes(cleaned, curation.superseded_names)
    >>> combinations = tg.distinct_combinations(resolved)
"""

from typing import Iterable, Sequence, Tuple
import logging
import warnings

import pandas as pd

from .curation import BadLinks, Curation
from .names import species_from_name

logger = logging.getLogger(__name__)

TYPE_GENOME_COLUMNS = ["genome", "name", "species", "source"]


class UnresolvedMultiNameGenomeWarning(UserWarning):
    """A genome maps to two or more names not covered by the curated overrides."""
    pass


def manual_type_genomes_frame(curation: Curation) -> pd.DataFrame:
    """
    Return the curated manual type genomes as a DataFrame.

    Columns: name, genome, why_manual, species (derived from name).
    """
    df = pd.DataFrame(
        [(m.name, m.genome, m.why_manual) for m in curation.manual_type_genomes],
        columns=["name", "genome", "why_manual"],
        dtype=str,
    )
    df["species"] = df["name"].map(species_from_name)
    return df


def merge_type_genome_sources(automatic: pd.DataFrame, manual: pd.DataFrame) -> pd.DataFrame:
    """
    Concatenate automatically detected and manually added type genomes.

    Duplicates are kept at this stage; they collapse when combinations are
    projected. A 'source' column records where each row came from.
    """
    auto = automatic.copy()
    if "species" not in auto.columns:
        auto["species"] = auto["name"].map(species_from_name)
    auto["source"] = "automatic"

    man = manual.copy()
    if "species" not in man.columns:
        man["species"] = man["name"].map(species_from_name)
    man["source"] = "manual"

    combined = pd.concat(
        [auto[TYPE_GENOME_COLUMNS], man[TYPE_GENOME_COLUMNS]],
        ignore_index=True,
    )
    logger.info(
        f"Combined {len(auto)} automatic and {len(man)} manual type genome associations"
    )
    return combined


def attach_clusters(type_genomes: pd.DataFrame, genomes_clusters: pd.DataFrame) -> pd.DataFrame:
    """
    Add cluster (and strain_name) to type genome associations.

    Type genomes absent from the clustering are dropped with a warning.
    """
    extra = ["cluster", "strain_name"] if "strain_name" in genomes_clusters.columns else ["cluster"]
    lookup = genomes_clusters[["genome"] + extra]
    if "strain_name" in type_genomes.columns and "strain_name" in extra:
        type_genomes = type_genomes.drop(columns=["strain_name"])

    merged = type_genomes.merge(lookup, on="genome", how="left")
    unclustered = merged["cluster"].isna()
    if unclustered.any():
        examples = merged.loc[unclustered, "genome"].drop_duplicates().head(5).tolist()
        logger.warning(
            f"{int(unclustered.sum())} type genome associations refer to genomes "
            f"outside the clustering and are ignored. Examples: {examples}"
        )
    merged = merged[~unclustered].reset_index(drop=True)
    merged["cluster"] = merged["cluster"].astype(genomes_clusters["cluster"].dtype)
    return merged


def _anti_join(df: pd.DataFrame, keys: pd.DataFrame, columns: Sequence[str]) -> pd.DataFrame:
    """Rows of df whose values in `columns` do not appear in `keys`."""
    if keys.empty or not all(col in df.columns for col in columns):
        return df
    keys = keys[list(columns)].dropna().drop_duplicates()
    marked = df.merge(keys, on=list(columns), how="left", indicator=True)
    kept = marked[marked["_merge"] == "left_only"].drop(columns="_merge")
    return kept.reset_index(drop=True)


def remove_known_bad_associations(combined: pd.DataFrame, bad_links: BadLinks) -> pd.DataFrame:
    """
    Remove curated wrong genome -> type strain links.

    Rows matching any (strain_name, species), (genome, species) or
    (genome, name) key are removed. Keys matching nothing are ignored, so the
    operation is idempotent and independent of the order of the keys.

    Parameters
    ----------
    combined : pd.DataFrame
        Type genome associations (with strain_name where available)
    bad_links : BadLinks
        Curated removal keys

    Returns
    -------
    pd.DataFrame
        Associations without the bad links
    """
    cleaned = combined
    for columns, keys in bad_links.frames().items():
        before = len(cleaned)
        cleaned = _anti_join(cleaned, keys, columns)
        removed = before - len(cleaned)
        if removed:
            logger.info(f"  Removed {removed} associations matching bad ({', '.join(columns)}) links")
    return cleaned.reset_index(drop=True)


def _names_per_genome(df: pd.DataFrame) -> pd.Series:
    return df.groupby("genome")["name"].agg(lambda s: sorted(set(s.dropna())))


def resolve_multi_name_genomes(
    cleaned: pd.DataFrame,
    superseded_names: Iterable[Tuple[str, str]],
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    Resolve genomes associated with two or more distinct names.

    For each curated (kept_name, superseded_name) pair, genomes carrying both
    names lose their superseded_name rows. Genomes that still carry several
    names are not guessed at: they stay in the table and are returned for
    review, with an UnresolvedMultiNameGenomeWarning.

    Returns
    -------
    Tuple[pd.DataFrame, pd.DataFrame]
        (resolved associations, unresolved genomes with columns genome, names)
    """
    if cleaned.empty:
        return cleaned.copy(), pd.DataFrame(columns=["genome", "names"])

    names = _names_per_genome(cleaned)
    multi = names[names.map(len) >= 2]
    if not multi.empty:
        logger.info(f"  {len(multi)} genomes are associated with more than one name")

    drop = pd.Series(False, index=cleaned.index)
    for kept, superseded in superseded_names:
        carriers = [g for g, n in multi.items() if kept in n and superseded in n]
        if carriers:
            mask = cleaned["genome"].isin(carriers) & (cleaned["name"] == superseded)
            logger.info(
                f"  Dropped superseded name '{superseded}' (kept '{kept}') "
                f"for {len(carriers)} genomes"
            )
            drop |= mask

    resolved = cleaned[~drop].reset_index(drop=True)

    remaining = _names_per_genome(resolved)
    remaining = remaining[remaining.map(len) >= 2]
    unresolved = pd.DataFrame({
        "genome": remaining.index.tolist(),
        "names": [", ".join(n) for n in remaining.tolist()],
    })

    for row in unresolved.itertuples(index=False):
        message = f"Genome {row.genome} is associated with several names: {row.names}"
        logger.warning(f"  ⚠ {message}")
        warnings.warn(message, UnresolvedMultiNameGenomeWarning, stacklevel=2)

    return resolved, unresolved


def distinct_combinations(resolved: pd.DataFrame) -> pd.DataFrame:
    """Project associations to sorted, distinct (cluster, species, name) rows."""
    combinations = (
        resolved[["cluster", "species", "name"]]
        .dropna()
        .drop_duplicates()
        .sort_values(["cluster", "species", "name"])
        .reset_index(drop=True)
    )
    logger.info(
        f"  {len(combinations)} combinations over {combinations['cluster'].nunique()} clusters"
    )
    return combinations
