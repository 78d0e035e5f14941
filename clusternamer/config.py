"""
Configuration Management for clusternamer

This module provides the configuration system using dataclasses for clean
parameter management. The configuration system supports:

1. Default parameter values (16S hit thresholds, input file names)
2. Loading configuration from YAML/JSON files
3. Environment variable overrides
4. Validation in __post_init__

Configuration Structure:
- InputFilesConfig: File names of the five input tables
- SixteenSConfig: Thresholds for counting a 16S BLAST hit as a candidate match
- PipelineConfig: Master configuration combining all components

The hand-curated override tables (drop lists, bad links, manual type genomes)
are not part of this configuration; they live in a separate curation file
(see clusternamer.curation) referenced by PipelineConfig.curation_file.

Example Usage:
    >>> from clusternamer.config import get_default_config, load_config_from_file
    >>>
    >>> config = get_default_config()
    >>> print(config.sixteen_s.min_identity_pct)
    98.0
    >>>
    >>> config = load_config_from_file("my_run.yaml")
    >>> custom_config = config.update(
    ...     sixteen_s__min_alignment_length=200,
    ...     keep_intermediates=True,
    ... )
"""

from dataclasses import dataclass, field, asdict, replace
from pathlib import Path
from typing import Optional, List, Dict, Any, Union
import os
import json
import logging

import yaml

logger = logging.getLogger(__name__)


# ============================================================================
# Input Files Configuration
# ============================================================================

@dataclass(frozen=True)
class InputFilesConfig:
    """
    File names of the input tables, relative to PipelineConfig.input_dir.

    Attributes
    ----------
    genomes_clusters : str
        Genome to cluster assignments (columns: genome, cluster[, strain_name])

    genomes_ncbi : str
        NCBI assembly metadata (columns: genome, species)

    type_genomes : str
        Automatically detected type genomes (columns: genome, name[, species])

    sixteen_s_hits : str
        16S BLAST hits against type strain 16S sequences, tabular format
        with 12 columns and no header

    sixteen_s_genomes : str
        Genomes with extracted 16S genes: one genome per line, or the
        extracted 16S FASTA itself (.fasta/.fa/.fna/.ffn)
    """
    genomes_clusters: str = "genomes_clusters.csv"
    genomes_ncbi: str = "genomes_ncbi.csv"
    type_genomes: str = "type_genomes.csv"
    sixteen_s_hits: str = "sixteen_s_hits.tsv"
    sixteen_s_genomes: str = "sixteen_s_genomes.txt"

    def __post_init__(self):
        """Validate configuration parameters."""
        for key, value in asdict(self).items():
            if not value or not str(value).strip():
                raise ValueError(f"Input file name '{key}' must not be empty")


# ============================================================================
# 16S Configuration
# ============================================================================

@dataclass(frozen=True)
class SixteenSConfig:
    """
    Thresholds for 16S rRNA hits against type strain sequences.

    Attributes
    ----------
    min_identity_pct : float
        Minimum percent identity for a hit to count as a candidate match
        (default: 98.0)

    min_alignment_length : int
        Minimum alignment length in bp (default: 100)

    Notes
    -----
    98% 16S identity is below the usual species boundary (~98.7%), so a
    qualifying hit only supports a "best guess" label, never a final name.
    """
    min_identity_pct: float = 98.0
    min_alignment_length: int = 100

    def __post_init__(self):
        """Validate configuration parameters."""
        if not 0 < self.min_identity_pct <= 100:
            raise ValueError("min_identity_pct must be in (0, 100]")
        if self.min_alignment_length < 1:
            raise ValueError("min_alignment_length must be at least 1")


# ============================================================================
# Master Pipeline Configuration
# ============================================================================

@dataclass(frozen=True)
class PipelineConfig:
    """
    Master configuration for the clusternamer pipeline.

    Attributes
    ----------
    input_dir : Path
        Directory holding the input tables (default: "data")

    output_dir : Path
        Directory receiving the output tables (default: "results")

    inputs : InputFilesConfig
        Input file names

    sixteen_s : SixteenSConfig
        16S hit thresholds

    curation_file : Optional[Path]
        Curation YAML with the override tables; None uses the packaged
        defaults

    log_level : str
        Logging level (default: "INFO")

    keep_intermediates : bool
        Write intermediate tables to output_dir/intermediate (default: False)
    """
    input_dir: Path = field(default_factory=lambda: Path("data"))
    output_dir: Path = field(default_factory=lambda: Path("results"))
    inputs: InputFilesConfig = field(default_factory=InputFilesConfig)
    sixteen_s: SixteenSConfig = field(default_factory=SixteenSConfig)
    curation_file: Optional[Path] = None
    log_level: str = "INFO"
    keep_intermediates: bool = False

    def __post_init__(self):
        """Validate and normalize configuration."""
        # Convert string paths to Path objects
        for key in ("input_dir", "output_dir"):
            value = getattr(self, key)
            if isinstance(value, str):
                object.__setattr__(self, key, Path(value))
        if isinstance(self.curation_file, str):
            object.__setattr__(self, 'curation_file', Path(self.curation_file))

        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.log_level.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")

    def input_path(self, key: str) -> Path:
        """Full path of an input table, e.g. input_path("genomes_ncbi")."""
        return self.input_dir / getattr(self.inputs, key)

    def update(self, **kwargs) -> 'PipelineConfig':
        """
        Create a new configuration with updated values.

        Supports nested updates using double underscore notation:
        config.update(sixteen_s__min_identity_pct=99.0)

        Parameters
        ----------
        **kwargs
            Configuration parameters to update. Use double underscore
            for nested parameters (e.g., inputs__genomes_ncbi)

        Returns
        -------
        PipelineConfig
            New configuration object with updates
        """
        top_level = {}
        nested = {}

        for key, value in kwargs.items():
            if '__' in key:
                component, param = key.split('__', 1)
                nested.setdefault(component, {})[param] = value
            else:
                top_level[key] = value

        for component, updates in nested.items():
            current = getattr(self, component)
            top_level[component] = replace(current, **updates)

        return replace(self, **top_level)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to a nested dictionary."""
        return asdict(self)

    def to_yaml(self, output_path: Union[str, Path]) -> None:
        """Save configuration to a YAML file."""
        config_dict = _convert_paths_to_strings(self.to_dict())

        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, 'w') as f:
            yaml.dump(config_dict, f, default_flow_style=False, sort_keys=False)

        logger.info(f"Configuration saved to {path}")

    def to_json(self, output_path: Union[str, Path]) -> None:
        """Save configuration to a JSON file."""
        config_dict = _convert_paths_to_strings(self.to_dict())

        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, 'w') as f:
            json.dump(config_dict, f, indent=2)

        logger.info(f"Configuration saved to {path}")


# ============================================================================
# Helper Functions
# ============================================================================

def get_default_config() -> PipelineConfig:
    """
    Get default pipeline configuration.

    Examples
    --------
    >>> config = get_default_config()
    >>> print(config.inputs.genomes_clusters)
    genomes_clusters.csv
    """
    return PipelineConfig()


def load_config_from_file(config_path: Union[str, Path]) -> PipelineConfig:
    """
    Load configuration from YAML or JSON file.

    Automatically detects file format based on extension.

    Raises
    ------
    FileNotFoundError
        If configuration file doesn't exist
    ValueError
        If file format is not supported
    """
    path = Path(config_path)

    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    suffix = path.suffix.lower()

    if suffix in ['.yaml', '.yml']:
        with open(path, 'r') as f:
            config_dict = yaml.safe_load(f) or {}
    elif suffix == '.json':
        with open(path, 'r') as f:
            config_dict = json.load(f)
    else:
        raise ValueError(f"Unsupported config file format: {suffix}")

    logger.info(f"Loaded configuration from {path}")
    return _dict_to_config(config_dict)


def _dict_to_config(config_dict: Dict[str, Any]) -> PipelineConfig:
    """Convert dictionary to PipelineConfig object."""
    config_dict = _convert_strings_to_paths(dict(config_dict))

    nested_configs = {}

    if 'inputs' in config_dict:
        nested_configs['inputs'] = InputFilesConfig(**config_dict.pop('inputs'))

    if 'sixteen_s' in config_dict:
        nested_configs['sixteen_s'] = SixteenSConfig(**config_dict.pop('sixteen_s'))

    return PipelineConfig(**nested_configs, **config_dict)


def _convert_paths_to_strings(obj: Any) -> Any:
    """Recursively convert Path objects to strings for serialization."""
    if isinstance(obj, Path):
        return str(obj)
    elif isinstance(obj, dict):
        return {k: _convert_paths_to_strings(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_convert_paths_to_strings(item) for item in obj]
    elif isinstance(obj, tuple):
        return tuple(_convert_paths_to_strings(item) for item in obj)
    else:
        return obj


def _convert_strings_to_paths(obj: Any) -> Any:
    """Recursively convert path strings back to Path objects."""
    if isinstance(obj, dict):
        path_fields = ['input_dir', 'output_dir', 'curation_file']

        result = {}
        for k, v in obj.items():
            if k in path_fields and v is not None:
                result[k] = Path(v)
            else:
                result[k] = _convert_strings_to_paths(v)
        return result
    elif isinstance(obj, list):
        return [_convert_strings_to_paths(item) for item in obj]
    else:
        return obj


def load_config_from_env() -> Dict[str, Any]:
    """
    Load configuration overrides from environment variables.

    Environment variables should be prefixed with CLUSTERNAMER_ and use
    double underscores for nesting:

    CLUSTERNAMER_SIXTEEN_S__MIN_IDENTITY_PCT=99
    CLUSTERNAMER_KEEP_INTERMEDIATES=true

    Returns
    -------
    Dict[str, Any]
        Overrides suitable for PipelineConfig.update(**overrides)
    """
    prefix = "CLUSTERNAMER_"
    overrides = {}

    for key, value in os.environ.items():
        if key.startswith(prefix):
            config_key = key[len(prefix):].lower()
            overrides[config_key] = _parse_env_value(value)

    if overrides:
        logger.debug(f"Loaded {len(overrides)} configuration overrides from environment")

    return overrides


def _parse_env_value(value: str) -> Any:
    """Parse environment variable value to appropriate type."""
    if value.lower() in ['true', 'yes']:
        return True
    if value.lower() in ['false', 'no']:
        return False

    try:
        return int(value)
    except ValueError:
        pass

    try:
        return float(value)
    except ValueError:
        pass

    return value


def validate_config(config: PipelineConfig) -> List[str]:
    """
    Validate configuration and return list of warnings.

    Checks for missing input files and unusual 16S thresholds.

    Examples
    --------
    >>> warnings = validate_config(get_default_config())
    >>> for warning in warnings:
    ...     print(f"Warning: {warning}")
    """
    warnings = []

    if not config.input_dir.exists():
        warnings.append(f"Input directory not found: {config.input_dir}")
    else:
        for key in asdict(config.inputs):
            path = config.input_path(key)
            if not path.exists():
                warnings.append(f"Input table '{key}' not found: {path}")

    if config.curation_file is not None and not config.curation_file.exists():
        warnings.append(f"Curation file not found: {config.curation_file}")

    if config.sixteen_s.min_identity_pct < 97:
        warnings.append(
            f"16S min_identity_pct ({config.sixteen_s.min_identity_pct}) is low; "
            "hits to other species of the genus will pass as candidates."
        )

    if config.sixteen_s.min_alignment_length < 100:
        warnings.append(
            f"16S min_alignment_length ({config.sixteen_s.min_alignment_length}) is short; "
            "partial gene fragments may drive best-guess labels."
        )

    return warnings


def create_config_template(output_path: Union[str, Path], format: str = "yaml") -> None:
    """
    Write the default configuration to a file for editing.

    Parameters
    ----------
    output_path : Union[str, Path]
        Output file path
    format : str
        File format: "yaml" or "json" (default: "yaml")
    """
    config = get_default_config()

    if format.lower() == "yaml":
        config.to_yaml(output_path)
    elif format.lower() == "json":
        config.to_json(output_path)
    else:
        raise ValueError(f"Unsupported format: {format}")

    logger.info(f"Created configuration template: {output_path}")
