"""
Shared fixtures: a small naming run with every kind of cluster.

Clusters:
    10  L. casei + L. zeae type genomes (merger, zeae is on the drop list)
    20  L. plantarum type genome (split with 21)
    21  L. plantarum subsp. argentoratensis type genome (promoted)
    30  L. fermentum type genome also listed as L. cellobiosus (superseded)
    31  L. fermentum type genome, no species column (split with 30)
    50  NCBI L. pentosus, 5 16S genes, one qualifying hit -> best guess
    51  placeholder NCBI label, 16S gene with a 97% hit -> new species
    52  no NCBI label, no 16S gene -> unidentified
    53  NCBI L. casei (claimed by cluster 10), qualifying hit -> unidentified
"""

from pathlib import Path
import sys

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

GENOMES_CLUSTERS = """genome,cluster,strain_name
G1,10,ATCC 393
G2,10,DSM 20178
G3,10,
G4,20,ATCC 14917
G5,21,DSM 16365
G6,30,ATCC 14931
G7,31,
U1,50,
U2,50,
U3,51,
U4,52,
U5,53,
"""

GENOMES_NCBI = """genome,species
G1,Lactobacillus casei
G2,Lactobacillus casei
G3,Lactobacillus casei
G4,Lactobacillus plantarum
G5,Lactobacillus plantarum
G6,Lactobacillus fermentum
G7,Lactobacillus fermentum
U1,Lactobacillus pentosus
U2,Lactobacillus sp. ABC12
U3,Lactobacillales bacterium DSM 1
U5,Lactobacillus casei
"""

TYPE_GENOMES = """genome,name,species
G1,Lactobacillus casei,Lactobacillus casei
G2,Lactobacillus zeae,Lactobacillus zeae
G4,Lactobacillus plantarum,Lactobacillus plantarum
G5,Lactobacillus plantarum subsp. argentoratensis,Lactobacillus plantarum
G6,Lactobacillus fermentum,Lactobacillus fermentum
G6,Lactobacillus cellobiosus,Lactobacillus cellobiosus
G7,Lactobacillus fermentum,
X9,Lactobacillus sakei,Lactobacillus sakei
"""

SIXTEEN_S_HITS = [
    ("G1:NZ_CP000423.1:1-1500", "NR_075032.1", "100.0", "1500"),
    ("U1:NZ_U1.1:1-1500", "NR_029133.1", "99.5", "1500"),
    ("U1:NZ_U1.1:3000-4500", "NR_029133.1", "99.1", "1480"),
    ("U2:NZ_U2.1:1-1500", "NR_042254.1", "95.0", "1500"),
    ("U3:NZ_U3.1:1-1500", "NR_041987.1", "97.0", "1500"),
    ("U5:NZ_U5.1:1-1500", "NR_075032.1", "99.0", "1400"),
]

SIXTEEN_S_GENOMES = ["G1", "U1", "U1", "U1", "U2", "U2", "U3", "U5"]


def blast_line(qseqid, sseqid, pident, length):
    """One BLAST outfmt 6 row."""
    fields = [qseqid, sseqid, pident, length, "7", "0", "1", length, "1", length, "0.0", "2700"]
    return "\t".join(fields) + "\n"


def write_example_inputs(directory: Path) -> Path:
    """Write the example input tables to a directory."""
    directory.mkdir(parents=True, exist_ok=True)
    (directory / "genomes_clusters.csv").write_text(GENOMES_CLUSTERS)
    (directory / "genomes_ncbi.csv").write_text(GENOMES_NCBI)
    (directory / "type_genomes.csv").write_text(TYPE_GENOMES)
    (directory / "sixteen_s_hits.tsv").write_text(
        "".join(blast_line(*hit) for hit in SIXTEEN_S_HITS)
    )
    (directory / "sixteen_s_genomes.txt").write_text("\n".join(SIXTEEN_S_GENOMES) + "\n")
    return directory


@pytest.fixture
def example_input_dir(tmp_path):
    """Directory with the example input tables."""
    return write_example_inputs(tmp_path / "data")
