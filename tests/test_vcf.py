"""
Tests for VCF parsing.
"""

from __future__ import annotations

import gzip
from pathlib import Path

import pytest

from allelecompat.genotype import Genotype
from allelecompat.parsing import FileAccessError, MalformedLineError
from allelecompat.sample import FileFormat
from allelecompat.vcf import VCFParser, parse_info_field, read_vcf

HEADER = "##fileformat=VCFv4.2\n#CHROM\tPOS\tID\tREF\tALT\tQUAL\tFILTER\tINFO\tFORMAT\tS1\n"


class TestVCFParser:
    """Tests for VCFParser on a complete file."""

    def test_parses_all_records(self, sample_vcf: Path) -> None:
        """Every data line becomes a variant."""
        data = VCFParser().parse(sample_vcf)
        assert len(data) == 4
        assert data.metadata.file_format == FileFormat.VCF

    def test_header_metadata(self, sample_vcf: Path) -> None:
        """Sample ID comes from #CHROM and build from ##reference."""
        data = read_vcf(sample_vcf)
        assert data.sample_id == "NA12878"
        assert data.metadata.genome_build == "GRCh38"

    def test_variant_fields(self, sample_vcf: Path) -> None:
        """Columns map onto Variant fields."""
        data = read_vcf(sample_vcf)
        v = data.get_variant("1", 1000)
        assert v is not None
        assert v.rsid == "rs1"
        assert v.ref == "A"
        assert v.alt == ("G",)
        assert v.genotype == Genotype.HETEROZYGOUS
        assert v.quality == 50.0
        assert v.filter == "PASS"
        assert v.info == {"DP": "20", "DB": "true"}

    def test_missing_values(self, sample_vcf: Path) -> None:
        """'.' in ID, QUAL and FILTER become None."""
        v = read_vcf(sample_vcf).get_variant("1", 2000)
        assert v.rsid is None
        assert v.quality is None
        assert v.filter is None
        assert v.genotype == Genotype.HOMOZYGOUS_ALTERNATE

    def test_multiallelic_and_mito(self, sample_vcf: Path) -> None:
        """Multi-allelic ALT splits; chrM normalizes to MT."""
        data = read_vcf(sample_vcf)
        v = data.get_variant("2", 3000)
        assert v.alt == ("A", "C")
        assert v.genotype == Genotype.HETEROZYGOUS_ALT_ALT
        assert data.get_variant("MT", 150).genotype == Genotype.NO_CALL

    def test_quality_metrics(self, sample_vcf: Path) -> None:
        """Metrics are computed at finalization."""
        metrics = read_vcf(sample_vcf).quality_metrics
        assert metrics is not None
        assert metrics.snp_count == 4
        assert metrics.no_call_rate == pytest.approx(0.25)
        assert metrics.read_depth_mean == pytest.approx(25.0)

    def test_single_het_round_trip(self, tmp_path: Path) -> None:
        """One well-formed 0/1 line yields exactly one heterozygous variant."""
        path = tmp_path / "one.vcf"
        path.write_text(HEADER + "1\t100\t.\tA\tT\t.\t.\t.\tGT\t0/1\n")
        data = read_vcf(path)
        assert len(data) == 1
        assert next(iter(data.variants.values())).genotype == Genotype.HETEROZYGOUS

    def test_gzipped(self, tmp_path: Path) -> None:
        """Gzipped VCFs are read transparently; sample ID falls back to the file name."""
        path = tmp_path / "cohort.vcf.gz"
        with gzip.open(path, "wt") as f:
            f.write("##fileformat=VCFv4.2\n")
            f.write("1\t100\trs9\tC\tT\t.\t.\t.\n")
        data = read_vcf(path)
        assert data.sample_id == "cohort"
        assert data.get_variant("1", 100).genotype == Genotype.NO_CALL

    def test_gt_not_first_format_field(self, tmp_path: Path) -> None:
        """GT is located by name within FORMAT."""
        path = tmp_path / "gt.vcf"
        path.write_text(HEADER + "1\t100\t.\tA\tT\t.\t.\t.\tDP:GT\t12:1|1\n")
        assert read_vcf(path).get_variant("1", 100).genotype == Genotype.HOMOZYGOUS_ALTERNATE

    def test_unparseable_quality(self, tmp_path: Path) -> None:
        """Non-numeric QUAL is read as 0.0."""
        path = tmp_path / "q.vcf"
        path.write_text(HEADER + "1\t100\t.\tA\tT\tbad\t.\t.\tGT\t0/1\n")
        assert read_vcf(path).get_variant("1", 100).quality == 0.0

    def test_blank_lines_skipped(self, tmp_path: Path) -> None:
        """Blank lines are ignored."""
        path = tmp_path / "blank.vcf"
        path.write_text(HEADER + "\n1\t100\t.\tA\tT\t.\t.\t.\tGT\t0/1\n\n")
        assert len(read_vcf(path)) == 1


class TestVCFErrors:
    """Tests for VCF failure modes."""

    def test_too_few_columns(self, tmp_path: Path) -> None:
        """A data line with fewer than 8 columns aborts the parse."""
        path = tmp_path / "short.vcf"
        path.write_text(HEADER + "1\t100\t.\tA\tT\n")
        with pytest.raises(MalformedLineError, match="short.vcf:3"):
            read_vcf(path)

    def test_bad_position(self, tmp_path: Path) -> None:
        """A non-numeric position aborts the parse."""
        path = tmp_path / "pos.vcf"
        path.write_text(HEADER + "1\tabc\t.\tA\tT\t.\t.\t.\n")
        with pytest.raises(MalformedLineError, match="Invalid position"):
            read_vcf(path)

    def test_missing_file(self, tmp_path: Path) -> None:
        """An unreadable path raises FileAccessError."""
        with pytest.raises(FileAccessError):
            read_vcf(tmp_path / "absent.vcf")

    def test_corrupt_gzip(self, tmp_path: Path) -> None:
        """A .gz file that is not gzip data raises FileAccessError."""
        path = tmp_path / "corrupt.vcf.gz"
        path.write_bytes(b"not gzip data\n")
        with pytest.raises(FileAccessError, match="corrupt.vcf.gz"):
            read_vcf(path)

    def test_truncated_gzip(self, tmp_path: Path) -> None:
        """A gzip stream cut short raises FileAccessError."""
        path = tmp_path / "truncated.vcf.gz"
        packed = gzip.compress((HEADER + "1\t100\t.\tA\tT\t.\t.\t.\n" * 50).encode())
        path.write_bytes(packed[: len(packed) // 2])
        with pytest.raises(FileAccessError):
            read_vcf(path)


class TestParseInfoField:
    """Tests for INFO column parsing."""

    def test_flags_and_values(self) -> None:
        """Flags map to 'true' and empty entries are skipped."""
        assert parse_info_field("DP=10;;SOMATIC;AF=0.5") == {
            "DP": "10",
            "SOMATIC": "true",
            "AF": "0.5",
        }

    def test_missing(self) -> None:
        """'.' gives an empty mapping."""
        assert parse_info_field(".") == {}
