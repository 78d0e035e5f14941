"""
Unit tests for clusternamer.inputs

Tests cover:
1. Missing tables (MissingInputError)
2. Structural errors (SchemaError)
3. 16S hit and 16S gene list parsing, including FASTA input
4. Loading a complete input directory
"""

import pytest
import pandas as pd

from clusternamer import config
from clusternamer.inputs import (
    InputError,
    MissingInputError,
    SchemaError,
    SIXTEEN_S_HIT_COLUMNS,
    genome_from_query,
    read_table,
    load_genomes_clusters,
    load_genomes_ncbi,
    load_type_genomes,
    load_sixteen_s_hits,
    load_sixteen_s_genomes,
    load_inputs,
)
from conftest import blast_line


class TestErrorHierarchy:

    def test_missing_input_is_file_not_found(self):
        assert issubclass(MissingInputError, FileNotFoundError)
        assert issubclass(MissingInputError, InputError)

    def test_schema_error_is_value_error(self):
        assert issubclass(SchemaError, ValueError)
        assert issubclass(SchemaError, InputError)


class TestReadTable:

    def test_missing_file(self, tmp_path):
        with pytest.raises(MissingInputError, match="genomes_ncbi"):
            load_genomes_ncbi(tmp_path / "genomes_ncbi.csv")

    def test_missing_columns(self, tmp_path):
        path = tmp_path / "genomes_ncbi.csv"
        path.write_text("accession,organism\nG1,Lactobacillus casei\n")
        with pytest.raises(SchemaError, match="missing required columns"):
            load_genomes_ncbi(path)

    def test_empty_file(self, tmp_path):
        path = tmp_path / "genomes_ncbi.csv"
        path.write_text("")
        with pytest.raises(SchemaError, match="empty"):
            load_genomes_ncbi(path)

    def test_values_stripped(self, tmp_path):
        path = tmp_path / "table.csv"
        path.write_text("genome, species\n G1 , Lactobacillus casei \n")
        df = read_table(path, ["genome", "species"], "table")
        assert df.iloc[0].tolist() == ["G1", "Lactobacillus casei"]

    def test_tab_separated(self, tmp_path):
        path = tmp_path / "genomes_ncbi.tsv"
        path.write_text("genome\tspecies\nG1\tLactobacillus casei\n")
        df = load_genomes_ncbi(path)
        assert df["species"].tolist() == ["Lactobacillus casei"]


class TestGenomesClusters:

    def test_numeric_clusters_become_int(self, tmp_path):
        path = tmp_path / "gc.csv"
        path.write_text("genome,cluster\nG1,10\nG2,2\n")
        df = load_genomes_clusters(path)
        assert df["cluster"].tolist() == [10, 2]
        assert pd.api.types.is_integer_dtype(df["cluster"])
        assert list(df.columns) == ["genome", "cluster", "strain_name"]
        assert df["strain_name"].isna().all()

    def test_text_clusters_kept(self, tmp_path):
        path = tmp_path / "gc.csv"
        path.write_text("genome,cluster\nG1,c10\nG2,c2\n")
        df = load_genomes_clusters(path)
        assert df["cluster"].tolist() == ["c10", "c2"]

    def test_leading_zero_ids_stay_distinct(self, tmp_path):
        path = tmp_path / "gc.csv"
        path.write_text("genome,cluster\nA,010\nB,10\n")
        df = load_genomes_clusters(path)
        assert df["cluster"].tolist() == ["010", "10"]
        assert df["cluster"].nunique() == 2

    def test_duplicate_genome(self, tmp_path):
        path = tmp_path / "gc.csv"
        path.write_text("genome,cluster\nG1,10\nG1,11\n")
        with pytest.raises(SchemaError, match="more than once"):
            load_genomes_clusters(path)

    def test_missing_cluster(self, tmp_path):
        path = tmp_path / "gc.csv"
        path.write_text("genome,cluster\nG1,10\nG2,\n")
        with pytest.raises(SchemaError, match="without genome or cluster"):
            load_genomes_clusters(path)


class TestTypeGenomes:

    def test_species_derived_from_name(self, tmp_path):
        path = tmp_path / "tg.csv"
        path.write_text(
            "genome,name\n"
            "G1,Lactobacillus delbrueckii subsp. lactis\n"
            "G2,Lactobacillus casei\n"
        )
        df = load_type_genomes(path)
        assert df["species"].tolist() == ["Lactobacillus delbrueckii", "Lactobacillus casei"]

    def test_given_species_kept_and_blanks_filled(self, tmp_path):
        path = tmp_path / "tg.csv"
        path.write_text(
            "genome,name,species\n"
            "G1,Lactobacillus zeae,Lactobacillus casei\n"
            "G2,Lactobacillus fermentum,\n"
        )
        df = load_type_genomes(path)
        assert df["species"].tolist() == ["Lactobacillus casei", "Lactobacillus fermentum"]


class TestSixteenSHits:

    def test_parse(self, tmp_path):
        path = tmp_path / "hits.tsv"
        path.write_text(
            blast_line("GCA_1.1:NZ_1.1:1-1500", "NR_029133.1", "99.5", "1500")
            + blast_line("GCA_2.1:NZ_2.1:1-1500", "NR_042254.1", "95", "120")
        )
        df = load_sixteen_s_hits(path)
        assert list(df.columns) == SIXTEEN_S_HIT_COLUMNS + ["genome"]
        assert df["genome"].tolist() == ["GCA_1.1", "GCA_2.1"]
        assert df["pident"].tolist() == [99.5, 95.0]
        assert df["length"].tolist() == [1500.0, 120.0]

    def test_wrong_column_count(self, tmp_path):
        path = tmp_path / "hits.tsv"
        path.write_text("GCA_1.1:x\tNR_029133.1\t99.5\t1500\n")
        with pytest.raises(SchemaError, match="12 columns"):
            load_sixteen_s_hits(path)

    def test_non_numeric_identity(self, tmp_path):
        path = tmp_path / "hits.tsv"
        path.write_text(blast_line("GCA_1.1:x", "NR_029133.1", "high", "1500"))
        with pytest.raises(SchemaError, match="pident"):
            load_sixteen_s_hits(path)

    def test_empty_file(self, tmp_path):
        path = tmp_path / "hits.tsv"
        path.write_text("")
        df = load_sixteen_s_hits(path)
        assert df.empty
        assert list(df.columns) == SIXTEEN_S_HIT_COLUMNS + ["genome"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(MissingInputError):
            load_sixteen_s_hits(tmp_path / "hits.tsv")


class TestSixteenSGenomes:

    def test_plain_list_counts_duplicates(self, tmp_path):
        path = tmp_path / "genomes.txt"
        path.write_text("GCA_1.1\nGCA_1.1\n\nGCA_2.1\n")
        df = load_sixteen_s_genomes(path)
        assert df["genome"].tolist() == ["GCA_1.1", "GCA_1.1", "GCA_2.1"]

    def test_fasta(self, tmp_path):
        path = tmp_path / "16S.fasta"
        path.write_text(
            ">GCA_1.1:NZ_1.1:1-10 16S ribosomal RNA\nACGTACGTAC\n"
            ">GCA_1.1:NZ_1.1:500-510\nACGTACGTAC\n"
            ">GCA_2.1:NZ_2.1:1-10\nACGTACGTAC\n"
        )
        df = load_sixteen_s_genomes(path)
        assert df["genome"].tolist() == ["GCA_1.1", "GCA_1.1", "GCA_2.1"]


def test_genome_from_query():
    assert genome_from_query("GCA_000014445.1:NC_008497.1:1200-2767") == "GCA_000014445.1"
    assert genome_from_query("GCA_000014445.1") == "GCA_000014445.1"


def test_load_inputs(example_input_dir):
    cfg = config.PipelineConfig(input_dir=example_input_dir)
    tables = load_inputs(cfg)
    assert len(tables.genomes_clusters) == 12
    assert len(tables.type_genomes) == 8
    assert len(tables.sixteen_s_hits) == 6
    assert len(tables.sixteen_s_genomes) == 8
    assert tables.type_genomes.loc[tables.type_genomes["genome"] == "G7", "species"].item() == (
        "Lactobacillus fermentum"
    )


def test_load_inputs_missing_table(example_input_dir):
    (example_input_dir / "genomes_ncbi.csv").unlink()
    cfg = config.PipelineConfig(input_dir=example_input_dir)
    with pytest.raises(MissingInputError):
        load_inputs(cfg)
