"""
Naming Clusters without Type Genomes

Clusters that received no name from type genomes get a provisional label from
two weaker sources of evidence:

1. NCBI species labels of their genomes (placeholders such as
   "Lactobacillus sp. X" are ignored, as are species already claimed by a
   cluster named through its type genome)
2. 16S rRNA genes extracted from their genomes and their BLAST hits against
   type strain 16S sequences (identity >= 98%, alignment >= 100 bp by default)

Each cluster ends up in one of three certainty tiers:

- "best guess": an unclaimed NCBI label backed by a qualifying 16S hit,
  labelled "<species_ncbi> (?)"
- "new species": 16S genes present but none hits a type strain,
  labelled "New species <k>"
- "unidentified": everything else, labelled "Unidentified species <k>"

The counter k runs per tier, in ascending cluster order, so labels are
stable across runs.
"""

from typing import Iterable, Optional
import logging

import pandas as pd

from .config import SixteenSConfig
from .mergers import UNRESOLVED_SPECIES_SEP
from .names import is_placeholder_species, join_unique

logger = logging.getLogger(__name__)

STATUS_NO_16S = "no 16S sequences"
STATUS_NO_HITS = "16S sequences without hits"
STATUS_HITS = "16S sequences with hits"

CERTAINTY_BEST_GUESS = "best guess"
CERTAINTY_NEW_SPECIES = "new species"
CERTAINTY_UNIDENTIFIED = "unidentified"

UNNAMED_COLUMNS = [
    "cluster", "species_ncbi_all", "species_ncbi", "n_16S",
    "sixteen_s_hits", "status", "certainty", "species",
]


def unnamed_clusters(genomes_clusters: pd.DataFrame, clusters_tgs: pd.DataFrame) -> pd.DataFrame:
    """
    Genomes of clusters absent from the type genome naming table.

    Returns
    -------
    pd.DataFrame
        genome, cluster rows for the unnamed clusters
    """
    named = set(clusters_tgs["cluster"])
    mask = ~genomes_clusters["cluster"].isin(named)
    return genomes_clusters.loc[mask, ["genome", "cluster"]].reset_index(drop=True)


def aggregate_ncbi_species(
    genomes: pd.DataFrame,
    genomes_ncbi: pd.DataFrame,
    claimed_species: Iterable[str],
) -> pd.DataFrame:
    """
    Collect the NCBI species labels of each cluster.

    Parameters
    ----------
    genomes : pd.DataFrame
        genome, cluster rows of the clusters to label
    genomes_ncbi : pd.DataFrame
        genome, species NCBI labels
    claimed_species : Iterable[str]
        Species already used by clusters named through type genomes

    Returns
    -------
    pd.DataFrame
        cluster, species_ncbi_all, species_ncbi (null when nothing is left)
    """
    labels = genomes.merge(genomes_ncbi[["genome", "species"]], on="genome", how="inner")
    placeholder = labels["species"].map(is_placeholder_species).astype(bool)
    labels = labels[~placeholder]

    claimed = set(claimed_species)
    all_labels = labels.groupby("cluster")["species"].agg(join_unique).rename("species_ncbi_all")
    free_labels = (
        labels[~labels["species"].isin(claimed)]
        .groupby("cluster")["species"].agg(join_unique).rename("species_ncbi")
    )
    return pd.concat([all_labels, free_labels], axis=1).rename_axis("cluster").reset_index()


def candidate_sixteen_s_hits(
    genomes: pd.DataFrame,
    sixteen_s_hits: pd.DataFrame,
    sixteen_s_config: Optional[SixteenSConfig] = None,
) -> pd.DataFrame:
    """
    Qualifying 16S hits per cluster.

    A hit qualifies with identity >= min_identity_pct and alignment length
    >= min_alignment_length. Matched type strain accessions are deduplicated
    per cluster and comma-joined.

    Returns
    -------
    pd.DataFrame
        cluster, sixteen_s_hits
    """
    cfg = sixteen_s_config or SixteenSConfig()
    qualifying = sixteen_s_hits[
        (sixteen_s_hits["pident"] >= cfg.min_identity_pct)
        & (sixteen_s_hits["length"] >= cfg.min_alignment_length)
    ]
    logger.debug(
        f"{len(qualifying)}/{len(sixteen_s_hits)} 16S hits pass "
        f"{cfg.min_identity_pct}% identity and {cfg.min_alignment_length} bp"
    )
    hits = (
        qualifying[["genome", "sseqid"]]
        .merge(genomes, on="genome", how="inner")[["cluster", "sseqid"]]
        .drop_duplicates()
    )
    return (
        hits.groupby("cluster")["sseqid"].agg(join_unique)
        .rename("sixteen_s_hits")
        .rename_axis("cluster")
        .reset_index()
    )


def count_sixteen_s_genes(genomes: pd.DataFrame, sixteen_s_genomes: pd.DataFrame) -> pd.DataFrame:
    """
    Number of extracted 16S genes per cluster.

    Clusters without genes are absent; callers fill them with 0.

    Returns
    -------
    pd.DataFrame
        cluster, n_16S
    """
    genes = sixteen_s_genomes[["genome"]].merge(genomes, on="genome", how="inner")
    return genes.groupby("cluster").size().rename("n_16S").rename_axis("cluster").reset_index()


def classify_status(n_16s: int, sixteen_s_hits: Optional[str]) -> str:
    """
    16S evidence status of a cluster.

    Examples
    --------
    >>> classify_status(0, None)
    'no 16S sequences'
    >>> classify_status(3, None)
    '16S sequences without hits'
    >>> classify_status(3, "NR_113338.1")
    '16S sequences with hits'
    """
    if not n_16s:
        return STATUS_NO_16S
    if sixteen_s_hits is None or pd.isna(sixteen_s_hits) or not str(sixteen_s_hits):
        return STATUS_NO_HITS
    return STATUS_HITS


def assign_provisional_names(clusters: pd.DataFrame) -> pd.DataFrame:
    """
    Add certainty and provisional species labels.

    Counters for "New species <k>" and "Unidentified species <k>" run
    separately and follow the row order of `clusters`.

    Parameters
    ----------
    clusters : pd.DataFrame
        Must contain species_ncbi and status

    Returns
    -------
    pd.DataFrame
        Copy with certainty and species columns
    """
    result = clusters.copy()
    certainties = []
    labels = []
    n_new = 0
    n_unidentified = 0

    for species_ncbi, status in zip(result["species_ncbi"], result["status"]):
        has_ncbi = species_ncbi is not None and not pd.isna(species_ncbi)
        if has_ncbi and status == STATUS_HITS:
            certainties.append(CERTAINTY_BEST_GUESS)
            labels.append(f"{species_ncbi} (?)")
        elif status == STATUS_NO_HITS:
            n_new += 1
            certainties.append(CERTAINTY_NEW_SPECIES)
            labels.append(f"New species {n_new}")
        else:
            n_unidentified += 1
            certainties.append(CERTAINTY_UNIDENTIFIED)
            labels.append(f"Unidentified species {n_unidentified}")

    result["certainty"] = certainties
    result["species"] = labels
    return result


def _label_species(clusters_tgs: pd.DataFrame) -> set:
    """Species of the type genome labels, unresolved labels split."""
    claimed = set()
    for label in clusters_tgs["species"].dropna():
        claimed.update(str(label).split(UNRESOLVED_SPECIES_SEP))
    return claimed


def name_unnamed_clusters(
    genomes_clusters: pd.DataFrame,
    genomes_ncbi: pd.DataFrame,
    sixteen_s_hits: pd.DataFrame,
    sixteen_s_genomes: pd.DataFrame,
    clusters_tgs: pd.DataFrame,
    sixteen_s_config: Optional[SixteenSConfig] = None,
    claimed_species: Optional[Iterable[str]] = None,
) -> pd.DataFrame:
    """
    Give every cluster without type genomes a provisional name.

    Parameters
    ----------
    genomes_clusters : pd.DataFrame
        genome, cluster assignments of all genomes
    genomes_ncbi : pd.DataFrame
        genome, species NCBI labels
    sixteen_s_hits : pd.DataFrame
        16S BLAST hits (with genome, sseqid, pident, length)
    sixteen_s_genomes : pd.DataFrame
        One row per extracted 16S gene (genome)
    clusters_tgs : pd.DataFrame
        cluster, species of clusters named by type genomes
    sixteen_s_config : Optional[SixteenSConfig]
        Hit thresholds (default: 98% identity, 100 bp)
    claimed_species : Optional[Iterable[str]]
        Species held by type genome named clusters (default: the species in
        the labels of clusters_tgs, with " / " labels split into their parts)

    Returns
    -------
    pd.DataFrame
        One row per unnamed cluster, ascending cluster order, with columns
        cluster, species_ncbi_all, species_ncbi, n_16S, sixteen_s_hits,
        status, certainty, species
    """
    genomes = unnamed_clusters(genomes_clusters, clusters_tgs)
    clusters = pd.DataFrame({"cluster": sorted(genomes["cluster"].unique())})
    clusters["cluster"] = clusters["cluster"].astype(genomes_clusters["cluster"].dtype)
    logger.info(f"  {len(clusters)} clusters without type genomes")

    if claimed_species is None:
        claimed_species = _label_species(clusters_tgs)
    claimed = set(claimed_species)
    evidence = [
        aggregate_ncbi_species(genomes, genomes_ncbi, claimed),
        count_sixteen_s_genes(genomes, sixteen_s_genomes),
        candidate_sixteen_s_hits(genomes, sixteen_s_hits, sixteen_s_config),
    ]
    table = clusters
    for piece in evidence:
        # empty group-bys can lose the cluster dtype
        piece["cluster"] = piece["cluster"].astype(clusters["cluster"].dtype)
        table = table.merge(piece, on="cluster", how="left")
    table["n_16S"] = table["n_16S"].fillna(0).astype(int)
    table["status"] = [
        classify_status(n, hits) for n, hits in zip(table["n_16S"], table["sixteen_s_hits"])
    ]

    table = assign_provisional_names(table)

    counts = table["certainty"].value_counts()
    for tier in (CERTAINTY_BEST_GUESS, CERTAINTY_NEW_SPECIES, CERTAINTY_UNIDENTIFIED):
        logger.info(f"  {tier}: {int(counts.get(tier, 0))} clusters")

    return table[UNNAMED_COLUMNS]
