"""
clusternamer: Species Names for De-Novo Genome Clusters

clusternamer reconciles genome clusters produced by sequence-similarity
clustering with published bacterial species and subspecies names. It loads
genome -> cluster assignments, NCBI assembly metadata, automatically detected
type genomes and 16S rRNA BLAST hits, applies hand-curated override tables,
and writes a cluster naming table and a mergers/splits report.

Core functionality includes:
- Type genome reconciliation (manual additions, bad-link removal,
  multi-name genomes)
- Merger and split detection, merger resolution with a curated drop list
- Provisional names for clusters without type genomes from NCBI labels and
  16S evidence
- Report tables with abbreviated names
"""

__version__ = "0.1.0"

from . import config
from . import curation
from . import inputs
from . import names
from . import type_genomes
from . import mergers
from . import unnamed
from . import reports
from . import utils

__all__ = [
    "config",
    "curation",
    "inputs",
    "names",
    "type_genomes",
    "mergers",
    "unnamed",
    "reports",
    "utils",
]
