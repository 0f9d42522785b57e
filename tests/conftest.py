"""
Pytest configuration and fixtures for allelecompat tests.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest

from allelecompat.genotype import Coordinate, Genotype
from allelecompat.sample import FileFormat, HLAAllele, ParsedGeneticData, Variant

SampleFactory = Callable[..., ParsedGeneticData]


@pytest.fixture
def make_sample() -> SampleFactory:
    """
    Return a factory building finalized in-memory samples.

    Usage:
        make_sample("S1", [("1", 1000, Genotype.HETEROZYGOUS)], rsids={...})
    """

    def _make(
        sample_id: str,
        calls: list[tuple[str, int, Genotype]] | None = None,
        rsids: dict[int, str] | None = None,
        ref: str = "",
        hla: list[HLAAllele] | None = None,
    ) -> ParsedGeneticData:
        rsids = rsids or {}
        data = ParsedGeneticData(sample_id, f"{sample_id}.vcf", FileFormat.VCF)
        for chrom, pos, genotype in calls or []:
            data.add_variant(
                Variant(
                    coordinate=Coordinate(chrom, pos),
                    rsid=rsids.get(pos),
                    ref=ref,
                    genotype=genotype,
                )
            )
        data.hla_alleles.extend(hla or [])
        data.finalize()
        return data

    return _make


@pytest.fixture
def sample_vcf(tmp_path: Path) -> Path:
    """Create a small single-sample VCF."""
    vcf_content = """##fileformat=VCFv4.2
##reference=GRCh38
##FORMAT=<ID=GT,Number=1,Type=String,Description="Genotype">
##FORMAT=<ID=DP,Number=1,Type=Integer,Description="Read Depth">
#CHROM	POS	ID	REF	ALT	QUAL	FILTER	INFO	FORMAT	NA12878
chr1	1000	rs1	A	G	50	PASS	DP=20;DB	GT:DP	0/1:20
chr1	2000	.	C	T	.	.	DP=30	GT:DP	1/1:30
chr2	3000	rs3	G	A,C	99.5	q10	.	GT	1/2
chrM	150	rs4	T	C	40	PASS	.	GT	./.
"""
    vcf_path = tmp_path / "sample.vcf"
    vcf_path.write_text(vcf_content)
    return vcf_path


@pytest.fixture
def twentythree_file(tmp_path: Path) -> Path:
    """Create a 23andMe raw data export."""
    content = (
        "# This data file generated by 23andMe at: Mon Jan 01 00:00:00 2024\n"
        "# We are using reference human assembly build 37 (also known as Annotation Release 104).\n"
        "# rsid\tchromosome\tposition\tgenotype\n"
        "rs4477212\t1\t82154\tAA\n"
        "rs3094315\t1\t752566\tAG\n"
        "rs3131972\t1\t752721\t--\n"
        "i3000001\tMT\t150\tT\n"
    )
    path = tmp_path / "genome_patient.txt"
    path.write_text(content)
    return path


@pytest.fixture
def ancestry_file(tmp_path: Path) -> Path:
    """Create an AncestryDNA raw data export."""
    content = (
        "#AncestryDNA raw data download\n"
        "#This file was generated by AncestryDNA at: 01/01/2024\n"
        "rsid,chromosome,position,allele1allele2\n"
        "rs4477212,1,82154,AA\n"
        "rs3094315,1,752566,G\n"
    )
    path = tmp_path / "ancestry.txt"
    path.write_text(content)
    return path


@pytest.fixture
def myheritage_file(tmp_path: Path) -> Path:
    """Create a MyHeritage raw data export."""
    content = (
        "# MyHeritage DNA raw data.\n"
        '"RSID","CHROMOSOME","POSITION","RESULT"\n'
        '"rs4477212","1","82154","AA"\n'
        '"rs3094315","1","752566","AG"\n'
    )
    path = tmp_path / "myheritage.csv"
    path.write_text(content)
    return path


@pytest.fixture
def ped_fileset(tmp_path: Path) -> Path:
    """Create a PLINK PED/MAP pair; returns the .ped path."""
    (tmp_path / "cohort.map").write_text(
        "1\trs1\t0\t1000\n"
        "1\trs2\t0\t2000\n"
        "chr2\trs3\t0\t3000\n"
    )
    (tmp_path / "cohort.ped").write_text(
        "FAM1 IND1 0 0 1 -9 A A A G 0 0\n"
        "FAM1 IND2 0 0 2 -9 G G G G A A\n"
    )
    return tmp_path / "cohort.ped"
