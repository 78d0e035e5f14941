"""
Input Table Loading and Validation

This module reads the five input tables of a naming run into pandas
DataFrames and validates their structure.

Input Tables:
1. genomes_clusters: genome -> cluster assignment (genome, cluster,
   optional strain_name). Every genome belongs to exactly one cluster.
2. genomes_ncbi: NCBI assembly metadata (genome, species). The species label
   is informal text and may be a placeholder ("Lactobacillus sp. X").
3. type_genomes: automatically detected type genomes (genome, name,
   optional species). Missing species are derived from the name.
4. sixteen_s_hits: BLAST tabular output (outfmt 6) of extracted 16S genes
   against type strain 16S sequences. No header, exactly 12 columns.
5. sixteen_s_genomes: genomes that yielded extracted 16S genes, one line per
   gene, or the extracted 16S FASTA.

Important Notes:
- Tables are read with every column as string; numeric BLAST fields and
  all-numeric cluster ids are converted afterwards.
- 16S query accessions have the form "<genome>:<suffix>"; the genome is the
  part before the first ':'.
- A missing table raises MissingInputError, a structurally wrong table raises
  SchemaError. Both are fatal for the run.

Example Usage:
    >>> from clusternamer.inputs import load_inputs
    >>> tables = load_inputs(config)
    >>> tables.genomes_clusters.head()
"""

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union
import logging

import pandas as pd
from Bio import SeqIO

from .names import species_from_name

logger = logging.getLogger(__name__)

# BLAST outfmt 6 default fields, in order
SIXTEEN_S_HIT_COLUMNS = [
    "qseqid", "sseqid", "pident", "length", "mismatch", "gapopen",
    "qstart", "qend", "sstart", "send", "evalue", "bitscore",
]

FASTA_SUFFIXES = {".fasta", ".fa", ".fna", ".ffn"}
TAB_SUFFIXES = {".tsv", ".tab", ".txt"}


class InputError(Exception):
    """Base exception for input table errors."""
    pass


class MissingInputError(InputError, FileNotFoundError):
    """A required input table does not exist."""
    pass


class SchemaError(InputError, ValueError):
    """An input table does not have the expected structure."""
    pass


@dataclass
class InputTables:
    """The five input relations of a naming run."""
    genomes_clusters: pd.DataFrame
    genomes_ncbi: pd.DataFrame
    type_genomes: pd.DataFrame
    sixteen_s_hits: pd.DataFrame
    sixteen_s_genomes: pd.DataFrame


# ============================================================================
# Generic Table Reading
# ============================================================================

def _require_file(path: Union[str, Path], table_name: str) -> Path:
    path = Path(path)
    if not path.exists():
        raise MissingInputError(f"Input table '{table_name}' not found: {path}")
    return path


def _separator(path: Path) -> str:
    return '\t' if path.suffix.lower() in TAB_SUFFIXES else ','


def read_table(
    path: Union[str, Path],
    required_columns: List[str],
    table_name: str,
) -> pd.DataFrame:
    """
    Read a delimited table and validate its columns.

    Tab-separated for .tsv/.tab/.txt files, comma-separated otherwise. All
    columns are read as strings and stripped of surrounding whitespace.

    Parameters
    ----------
    path : Union[str, Path]
        Path to the table
    required_columns : List[str]
        Columns that must be present
    table_name : str
        Name used in log and error messages

    Returns
    -------
    pd.DataFrame
        Parsed table

    Raises
    ------
    MissingInputError
        If the file doesn't exist
    SchemaError
        If the file is empty or required columns are missing
    """
    path = _require_file(path, table_name)

    logger.debug(f"Reading {table_name} table: {path}")
    try:
        df = pd.read_csv(path, sep=_separator(path), dtype=str, keep_default_na=True)
    except pd.errors.EmptyDataError as e:
        raise SchemaError(f"Input table '{table_name}' is empty: {path}") from e

    df.columns = [str(c).strip() for c in df.columns]

    missing_columns = [col for col in required_columns if col not in df.columns]
    if missing_columns:
        logger.error(
            f"Missing required columns in {table_name}: {missing_columns}\n"
            f"Available columns: {sorted(df.columns.tolist())[:20]}"
        )
        raise SchemaError(
            f"Input table '{table_name}' is missing required columns: {missing_columns}. "
            f"Found {len(df.columns)} columns total."
        )

    for col in df.columns:
        df[col] = df[col].str.strip()

    logger.info(f"Read {len(df)} rows from {table_name} ({path.name})")
    return df


def _numeric_clusters(clusters: pd.Series) -> pd.Series:
    """Convert cluster ids to int when every id is numeric and reads back unchanged."""
    if len(clusters) > 0 and clusters.str.fullmatch(r"\d+").all():
        as_int = clusters.astype(int)
        if (as_int.astype(str) == clusters).all():
            return as_int
        logger.warning("Cluster ids with leading zeros found; keeping all cluster ids as text")
    return clusters


def genome_from_query(accession: str) -> str:
    """
    Extract the genome accession from a 16S sequence id.

    Examples
    --------
    >>> genome_from_query("GCA_000014445.1:NC_008497.1:1200-2767")
    'GCA_000014445.1'
    """
    return str(accession).split(":", 1)[0]


# ============================================================================
# Individual Tables
# ============================================================================

def load_genomes_clusters(path: Union[str, Path]) -> pd.DataFrame:
    """
    Load the genome -> cluster table.

    Raises
    ------
    SchemaError
        If a genome is assigned to more than one cluster or has no cluster
    """
    df = read_table(path, ["genome", "cluster"], "genomes_clusters")

    if df["cluster"].isna().any() or df["genome"].isna().any():
        n_missing = int(df["cluster"].isna().sum() + df["genome"].isna().sum())
        raise SchemaError(
            f"genomes_clusters has {n_missing} rows without genome or cluster"
        )

    duplicates = df["genome"].duplicated()
    if duplicates.any():
        dup_ids = df.loc[duplicates, "genome"].head(5).tolist()
        raise SchemaError(
            f"genomes_clusters assigns {int(duplicates.sum())} genomes more than once. "
            f"Examples: {dup_ids}"
        )

    df["cluster"] = _numeric_clusters(df["cluster"])
    if "strain_name" not in df.columns:
        df["strain_name"] = pd.NA

    logger.info(f"  {df['cluster'].nunique()} clusters, {len(df)} genomes")
    return df[["genome", "cluster", "strain_name"]]


def load_genomes_ncbi(path: Union[str, Path]) -> pd.DataFrame:
    """Load NCBI assembly metadata (genome, species)."""
    df = read_table(path, ["genome", "species"], "genomes_ncbi")
    return df[["genome", "species"]]


def load_type_genomes(path: Union[str, Path]) -> pd.DataFrame:
    """
    Load automatically detected type genomes.

    The species column is derived from the name where absent or empty.
    """
    df = read_table(path, ["genome", "name"], "type_genomes")
    df = df.dropna(subset=["genome", "name"])

    if "species" not in df.columns:
        df["species"] = pd.NA
    derived = df["name"].map(species_from_name)
    df["species"] = df["species"].where(df["species"].notna() & (df["species"] != ""), derived)

    return df[["genome", "name", "species"]].reset_index(drop=True)


def load_sixteen_s_hits(path: Union[str, Path]) -> pd.DataFrame:
    """
    Load 16S BLAST hits (tabular, 12 columns, no header).

    Returns
    -------
    pd.DataFrame
        Hits with the BLAST outfmt 6 column names plus 'genome'. An empty
        file gives an empty table with the same columns.

    Raises
    ------
    SchemaError
        If the table does not have exactly 12 columns or pident/length are
        not numeric
    """
    path = _require_file(path, "sixteen_s_hits")

    try:
        df = pd.read_csv(path, sep='\t', header=None, dtype=str)
    except pd.errors.EmptyDataError:
        logger.warning(f"16S hit table is empty: {path}")
        df = pd.DataFrame(columns=range(len(SIXTEEN_S_HIT_COLUMNS)), dtype=str)

    if df.shape[1] != len(SIXTEEN_S_HIT_COLUMNS):
        raise SchemaError(
            f"16S hit table must have {len(SIXTEEN_S_HIT_COLUMNS)} columns, "
            f"found {df.shape[1]}: {path}"
        )

    df.columns = SIXTEEN_S_HIT_COLUMNS

    for col in ("pident", "length"):
        converted = pd.to_numeric(df[col], errors="coerce")
        bad = converted.isna() & df[col].notna()
        if bad.any():
            examples = df.loc[bad, col].head(3).tolist()
            raise SchemaError(f"16S hit column '{col}' is not numeric: {examples}")
        df[col] = converted.astype(float)

    df["genome"] = df["qseqid"].map(genome_from_query)

    logger.info(f"Read {len(df)} 16S hits for {df['genome'].nunique()} genomes")
    return df


def load_sixteen_s_genomes(path: Union[str, Path]) -> pd.DataFrame:
    """
    Load the 16S gene presence list.

    Each line (or FASTA record) is one extracted 16S gene, so a genome with
    several genes appears several times.

    Returns
    -------
    pd.DataFrame
        Single 'genome' column, one row per gene
    """
    path = _require_file(path, "sixteen_s_genomes")

    if path.suffix.lower() in FASTA_SUFFIXES:
        genomes = [genome_from_query(record.id) for record in SeqIO.parse(str(path), "fasta")]
    else:
        with open(path, 'r', encoding='utf-8') as fh:
            genomes = [genome_from_query(line.strip()) for line in fh if line.strip()]

    df = pd.DataFrame({"genome": genomes}, dtype=str)
    logger.info(f"Read {len(df)} extracted 16S genes from {df['genome'].nunique()} genomes")
    return df


def load_inputs(config) -> InputTables:
    """
    Load every input table named in a PipelineConfig.

    Parameters
    ----------
    config : PipelineConfig
        Pipeline configuration (input_dir and input file names)

    Returns
    -------
    InputTables
        The loaded tables
    """
    return InputTables(
        genomes_clusters=load_genomes_clusters(config.input_path("genomes_clusters")),
        genomes_ncbi=load_genomes_ncbi(config.input_path("genomes_ncbi")),
        type_genomes=load_type_genomes(config.input_path("type_genomes")),
        sixteen_s_hits=load_sixteen_s_hits(config.input_path("sixteen_s_hits")),
        sixteen_s_genomes=load_sixteen_s_genomes(config.input_path("sixteen_s_genomes")),
    )
