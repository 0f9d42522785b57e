"""
Tests for consumer raw data parsers (23andMe, AncestryDNA, MyHeritage).
"""

from __future__ import annotations

from pathlib import Path

import pytest

from allelecompat.consumer import AncestryDNAParser, MyHeritageParser, TwentyThreeAndMeParser
from allelecompat.genotype import Genotype
from allelecompat.parsing import MalformedLineError
from allelecompat.sample import FileFormat


class TestTwentyThreeAndMe:
    """Tests for the 23andMe parser."""

    def test_parses_records(self, twentythree_file: Path) -> None:
        """Data lines become variants keyed by coordinate."""
        data = TwentyThreeAndMeParser().parse(twentythree_file)
        assert len(data) == 4
        assert data.metadata.file_format == FileFormat.TWENTYTHREE_AND_ME
        assert data.sample_id == "genome_patient"

    def test_genotypes(self, twentythree_file: Path) -> None:
        """Allele pairs classify without reference alleles."""
        data = TwentyThreeAndMeParser().parse(twentythree_file)
        assert data.get_variant("1", 82154).genotype == Genotype.HOMOZYGOUS_REFERENCE
        assert data.get_variant("1", 752566).genotype == Genotype.HETEROZYGOUS
        assert data.get_variant("1", 752721).genotype == Genotype.NO_CALL
        assert data.get_variant("MT", 150).genotype == Genotype.PARTIAL

    def test_rsid_and_empty_alleles(self, twentythree_file: Path) -> None:
        """rsID is kept and ref/alt stay empty."""
        v = TwentyThreeAndMeParser().parse(twentythree_file).get_variant("1", 752566)
        assert v.rsid == "rs3094315"
        assert v.ref == ""
        assert v.alt == ()

    def test_genome_build_from_comment(self, twentythree_file: Path) -> None:
        """The build is read from the header prose."""
        data = TwentyThreeAndMeParser().parse(twentythree_file)
        assert data.metadata.genome_build == "GRCh37"

    def test_short_line_raises(self, tmp_path: Path) -> None:
        """A data line with fewer than four columns aborts the parse."""
        path = tmp_path / "bad.txt"
        path.write_text("rs1\t1\t100\n")
        with pytest.raises(MalformedLineError):
            TwentyThreeAndMeParser().parse(path)


class TestAncestryDNA:
    """Tests for the AncestryDNA parser."""

    def test_skips_header_row(self, ancestry_file: Path) -> None:
        """The 'rsid,...' column header row is not a variant."""
        data = AncestryDNAParser().parse(ancestry_file)
        assert len(data) == 2
        assert data.metadata.file_format == FileFormat.ANCESTRY_DNA

    def test_genotype_padding(self, ancestry_file: Path) -> None:
        """A single-character allele column is padded with N."""
        data = AncestryDNAParser().parse(ancestry_file)
        assert data.get_variant("1", 82154).genotype == Genotype.HOMOZYGOUS_REFERENCE
        assert data.get_variant("1", 752566).genotype == Genotype.HETEROZYGOUS

    def test_bad_position_raises(self, tmp_path: Path) -> None:
        """A non-numeric position aborts the parse."""
        path = tmp_path / "bad.txt"
        path.write_text("rs1,1,pos,AA\n")
        with pytest.raises(MalformedLineError):
            AncestryDNAParser().parse(path)


class TestMyHeritage:
    """Tests for the MyHeritage parser."""

    def test_quoted_fields(self, myheritage_file: Path) -> None:
        """Quoted CSV fields are unquoted and the RSID header skipped."""
        data = MyHeritageParser().parse(myheritage_file)
        assert len(data) == 2
        v = data.get_variant("1", 752566)
        assert v.rsid == "rs3094315"
        assert v.genotype == Genotype.HETEROZYGOUS
