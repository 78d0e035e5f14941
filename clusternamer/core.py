"""
Core Pipeline Orchestration for clusternamer

This module runs a complete naming run, from the input tables to the output
tables. It is used by the command-line interface and can be called directly
from scripts or notebooks.

Pipeline Phases:
1. Data loading (input tables and curation tables)
2. Type genome reconciliation
3. Merger and split resolution
4. Naming of clusters without type genomes
5. Output tables

Example Usage:
    >>> from clusternamer.core import run_pipeline
    >>> from clusternamer.config import get_default_config
    >>> cfg = get_default_config().update(input_dir="data", output_dir="results")
    >>> results = run_pipeline(cfg)
    >>> results['clusters_all_named'].head()
"""

from typing import Any, Dict, Optional
from pathlib import Path
import logging
import time

import pandas as pd

from . import config, inputs, mergers, reports, type_genomes, unnamed, utils
from .curation import Curation, load_curation

logger = logging.getLogger(__name__)

OUTPUT_FILES = {
    'splits_and_mergers': "splits_and_mergers.csv",
    'clusters_zerotypegenomes': "clusters_zerotypegenomes.csv",
    'clusters_all_named': "clusters_all_named.csv",
    'unresolved_cases': "unresolved_cases.csv",
    'run_parameters': "run_parameters.json",
}


def _setup_directories(base_output: Path, keep_intermediates: bool) -> Dict[str, Path]:
    """Create the output directory (and intermediate/ when requested)."""
    dirs = {'base': utils.create_output_directory(base_output)}
    if keep_intermediates:
        dirs['intermediate'] = utils.create_output_directory(base_output / 'intermediate')
    return dirs


def _save_intermediate(df: pd.DataFrame, dirs: Dict[str, Path], filename: str) -> Optional[Path]:
    if 'intermediate' not in dirs:
        return None
    path = dirs['intermediate'] / filename
    df.to_csv(path, index=False, encoding="utf-8")
    logger.debug(f"Saved intermediate table: {path}")
    return path


def run_pipeline(
    cfg: Optional[config.PipelineConfig] = None,
    curation: Optional[Curation] = None,
    tables: Optional[inputs.InputTables] = None,
) -> Dict[str, Any]:
    """
    Run a complete naming run.

    Parameters
    ----------
    cfg : PipelineConfig, optional
        Pipeline configuration (default: get_default_config())
    curation : Curation, optional
        Override tables; default loads cfg.curation_file (or the packaged
        tables when that is None)
    tables : InputTables, optional
        Already loaded input tables; default loads them from cfg.input_dir

    Returns
    -------
    Dict[str, Any]
        Dictionary containing:
        - 'combinations': distinct (cluster, species, name) type genome combinations
        - 'mergers', 'splits': detected mergers and splits
        - 'clusters_tgs': clusters named by type genomes
        - 'clusters_tss': clusters named by NCBI/16S evidence
        - 'clusters_all_named': final names, one row per cluster
        - 'unresolved_cases': cases for human review
        - 'files': Dict[str, Path] of written files

    Raises
    ------
    MissingInputError
        If an input table doesn't exist
    SchemaError
        If an input table is malformed
    CurationError
        If the curation file is missing or malformed
    """
    cfg = cfg or config.get_default_config()
    start = time.time()

    logger.info("=" * 80)
    logger.info("clusternamer - naming genome clusters")
    logger.info("=" * 80)
    logger.info(f"Input directory: {cfg.input_dir}")
    logger.info(f"Output directory: {cfg.output_dir}")
    logger.info("")

    for warning in config.validate_config(cfg):
        logger.warning(f"Config: {warning}")

    # ========================================================================
    # PHASE 1: Data Loading
    # ========================================================================
    logger.info("PHASE 1: Data Loading")
    logger.info("-" * 80)

    if tables is None:
        tables = inputs.load_inputs(cfg)
    if curation is None:
        curation = load_curation(cfg.curation_file)
    logger.info(f"  ✓ Curation tables: {curation.summary()}")

    dirs = _setup_directories(cfg.output_dir, cfg.keep_intermediates)
    files: Dict[str, Path] = {}

    # ========================================================================
    # PHASE 2: Type Genome Reconciliation
    # ========================================================================
    logger.info("")
    logger.info("PHASE 2: Type Genome Reconciliation")
    logger.info("-" * 80)

    combined = type_genomes.merge_type_genome_sources(
        tables.type_genomes, type_genomes.manual_type_genomes_frame(curation)
    )
    combined = type_genomes.attach_clusters(combined, tables.genomes_clusters)
    cleaned = type_genomes.remove_known_bad_associations(combined, curation.bad_links)
    resolved, multi_name_genomes = type_genomes.resolve_multi_name_genomes(
        cleaned, curation.superseded_names
    )
    combinations = type_genomes.distinct_combinations(resolved)
    _save_intermediate(resolved, dirs, "type_genomes_cleaned.csv")
    _save_intermediate(combinations, dirs, "combinations.csv")

    # ========================================================================
    # PHASE 3: Merger and Split Resolution
    # ========================================================================
    logger.info("")
    logger.info("PHASE 3: Merger and Split Resolution")
    logger.info("-" * 80)

    merger_table = mergers.detect_mergers(combinations)
    split_table = mergers.detect_splits(combinations)
    # the drop list and the unresolved check work on promoted species
    promoted = mergers.apply_promotions(combinations, curation.promotions)
    combinations_resolved, unresolved_mergers = mergers.apply_precedence_rule(
        promoted, curation.species_to_drop
    )
    clusters_tgs = mergers.finalize_type_genome_naming(combinations_resolved)
    _save_intermediate(combinations_resolved, dirs, "combinations_resolved.csv")
    _save_intermediate(clusters_tgs, dirs, "clusters_tgs.csv")

    # ========================================================================
    # PHASE 4: Clusters without Type Genomes
    # ========================================================================
    logger.info("")
    logger.info("PHASE 4: Naming Clusters without Type Genomes")
    logger.info("-" * 80)

    clusters_tss = unnamed.name_unnamed_clusters(
        genomes_clusters=tables.genomes_clusters,
        genomes_ncbi=tables.genomes_ncbi,
        sixteen_s_hits=tables.sixteen_s_hits,
        sixteen_s_genomes=tables.sixteen_s_genomes,
        clusters_tgs=clusters_tgs,
        sixteen_s_config=cfg.sixteen_s,
        claimed_species=combinations_resolved["species"],
    )

    # ========================================================================
    # PHASE 5: Output Tables
    # ========================================================================
    logger.info("")
    logger.info("PHASE 5: Output Tables")
    logger.info("-" * 80)

    base = dirs['base']
    abbreviations = curation.abbreviations

    reports.write_splits_and_mergers(
        merger_table, split_table, base / OUTPUT_FILES['splits_and_mergers'], abbreviations
    )
    files['splits_and_mergers'] = base / OUTPUT_FILES['splits_and_mergers']

    reports.write_clusters_zerotypegenomes(
        clusters_tss, base / OUTPUT_FILES['clusters_zerotypegenomes'], abbreviations
    )
    files['clusters_zerotypegenomes'] = base / OUTPUT_FILES['clusters_zerotypegenomes']

    clusters_all_named = reports.combine_named_clusters(
        clusters_tgs,
        clusters_tss,
        all_clusters=tables.genomes_clusters["cluster"].unique(),
        abbreviations=abbreviations,
    )
    reports.write_clusters_all_named(clusters_all_named, base / OUTPUT_FILES['clusters_all_named'])
    files['clusters_all_named'] = base / OUTPUT_FILES['clusters_all_named']

    unresolved_cases = reports.write_unresolved_cases(
        multi_name_genomes, unresolved_mergers, base / OUTPUT_FILES['unresolved_cases']
    )
    files['unresolved_cases'] = base / OUTPUT_FILES['unresolved_cases']

    params = {
        'input_dir': str(cfg.input_dir),
        'inputs': cfg.to_dict()['inputs'],
        'sixteen_s': cfg.to_dict()['sixteen_s'],
        'curation_file': str(cfg.curation_file) if cfg.curation_file else "packaged default",
        'curation_tables': curation.summary(),
    }
    files['run_parameters'] = utils.write_run_parameters(
        params, base / OUTPUT_FILES['run_parameters']
    )

    logger.info("")
    logger.info("=" * 80)
    logger.info("✓ Naming run completed")
    logger.info(f"  Clusters: {len(clusters_all_named)}")
    logger.info(f"    named by type genomes: {len(clusters_tgs)}")
    logger.info(f"    named by NCBI/16S evidence: {len(clusters_tss)}")
    logger.info(f"  Mergers: {len(merger_table)}, split species: {split_table['species'].nunique()}")
    logger.info(f"  Unresolved cases: {len(unresolved_cases)}")
    logger.info(f"  Elapsed: {utils.format_elapsed_time(time.time() - start)}")
    logger.info("=" * 80)

    return {
        'combinations': combinations,
        'mergers': merger_table,
        'splits': split_table,
        'clusters_tgs': clusters_tgs,
        'clusters_tss': clusters_tss,
        'clusters_all_named': clusters_all_named,
        'unresolved_cases': unresolved_cases,
        'files': files,
    }
