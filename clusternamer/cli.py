#!/usr/bin/env python3
"""
clusternamer Command-Line Interface

Names de-novo genome clusters from type genomes, NCBI labels and 16S evidence.

Usage:
    clusternamer -i data/ -o results/
    clusternamer -i data/ -o results/ --curation my_curation.yaml --keep-intermediates
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__, config, core, utils
from .curation import CurationError
from .inputs import InputError

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog='clusternamer',
        description='Reconcile de-novo genome clusters with published species names.',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Input tables (in INPUT_DIR, names configurable with --config):
  genomes_clusters.csv   genome, cluster[, strain_name]
  genomes_ncbi.csv       genome, species
  type_genomes.csv       genome, name[, species]
  sixteen_s_hits.tsv     BLAST tabular output, 12 columns, no header
  sixteen_s_genomes.txt  one genome per extracted 16S gene (or 16S FASTA)

Output tables (in OUTPUT_DIR):
  splits_and_mergers.csv, clusters_zerotypegenomes.csv,
  clusters_all_named.csv, unresolved_cases.csv
        """
    )

    parser.add_argument(
        '-i', '--input-dir',
        type=Path,
        help='Directory with the input tables (default: from config, "data")'
    )

    parser.add_argument(
        '-o', '--output-dir',
        type=Path,
        help='Directory for the output tables (default: from config, "results")'
    )

    parser.add_argument(
        '--config',
        type=Path,
        help='Pipeline configuration file (YAML or JSON)'
    )

    parser.add_argument(
        '--curation',
        type=Path,
        help='Curation file with the override tables (default: packaged tables)'
    )

    parser.add_argument(
        '--keep-intermediates',
        action='store_true',
        help='Write intermediate tables to OUTPUT_DIR/intermediate'
    )

    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        default=None,
        help='Logging verbosity (default: INFO)'
    )

    parser.add_argument(
        '--write-config',
        type=Path,
        metavar='FILE',
        help='Write the default configuration to FILE and exit'
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'clusternamer {__version__}'
    )

    return parser


def load_cli_config(args: argparse.Namespace) -> config.PipelineConfig:
    """Combine defaults, config file, environment and command-line options."""
    cfg = config.load_config_from_file(args.config) if args.config else config.get_default_config()

    env_overrides = config.load_config_from_env()
    if env_overrides:
        cfg = cfg.update(**env_overrides)

    overrides = {}
    if args.input_dir is not None:
        overrides['input_dir'] = args.input_dir
    if args.output_dir is not None:
        overrides['output_dir'] = args.output_dir
    if args.curation is not None:
        overrides['curation_file'] = args.curation
    if args.keep_intermediates:
        overrides['keep_intermediates'] = True
    if args.log_level is not None:
        overrides['log_level'] = args.log_level

    return cfg.update(**overrides) if overrides else cfg


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point of the clusternamer command."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.write_config is not None:
        fmt = "json" if args.write_config.suffix.lower() == ".json" else "yaml"
        config.create_config_template(args.write_config, format=fmt)
        print(f"Wrote configuration template: {args.write_config}")
        return 0

    try:
        cfg = load_cli_config(args)
    except (FileNotFoundError, ValueError, TypeError) as e:
        print(f"Error: invalid configuration: {e}", file=sys.stderr)
        return 1

    output_dir = cfg.output_dir.resolve()
    output_dir.mkdir(parents=True, exist_ok=True)
    log_file = output_dir / "clusternamer.log"
    utils.setup_logging(log_level=cfg.log_level, log_file=str(log_file))

    try:
        core.run_pipeline(cfg)
        return 0

    except (InputError, CurationError) as e:
        logger.error(f"✗ {e}")
        print(f"\nError: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\n\nRun interrupted by user", file=sys.stderr)
        return 130
    except Exception as e:
        logger.error(f"Run failed with error: {e}", exc_info=True)
        print(f"\nError: Run failed. Check log file: {log_file}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
