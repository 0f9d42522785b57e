"""
Tests for configuration and the end-to-end pipeline.
"""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from allelecompat.config import AnalysisConfig, AnalysisType
from allelecompat.parsing import FileAccessError, MalformedLineError
from allelecompat.pipeline import parse_comparisons, run_analysis
from allelecompat.pool import WorkerPool
from allelecompat.results import OrganType


@pytest.fixture
def broken_vcf(tmp_path: Path) -> Path:
    """Create a VCF with a truncated data line."""
    path = tmp_path / "broken.vcf"
    path.write_text("##fileformat=VCFv4.2\n1\t100\t.\tA\n")
    return path


class TestAnalysisType:
    """Tests for analyzer selection."""

    def test_all_includes_everything(self) -> None:
        """ALL selects every analyzer."""
        assert all(AnalysisType.ALL.includes(t) for t in AnalysisType)

    def test_relationship_runs_ibd(self) -> None:
        """RELATIONSHIP selects the IBD detector only."""
        assert AnalysisType.RELATIONSHIP.includes(AnalysisType.IBD)
        assert not AnalysisType.RELATIONSHIP.includes(AnalysisType.DISEASE)

    def test_single(self) -> None:
        """A single analysis selects only itself."""
        assert AnalysisType.HLA.includes(AnalysisType.HLA)
        assert not AnalysisType.HLA.includes(AnalysisType.IBD)


class TestAnalysisConfig:
    """Tests for AnalysisConfig.validate."""

    def test_defaults_valid(self, tmp_path: Path) -> None:
        """Defaults pass validation."""
        config = AnalysisConfig(patient=tmp_path / "p.vcf")
        config.validate()
        assert config.min_cm == 7.0
        assert config.min_segment_length == 500
        assert config.analysis == AnalysisType.ALL

    @pytest.mark.parametrize(
        "overrides",
        [{"threads": -1}, {"min_cm": -0.5}, {"min_segment_length": 0}],
    )
    def test_invalid(self, tmp_path: Path, overrides: dict) -> None:
        """Out-of-range options raise ValueError."""
        config = AnalysisConfig(patient=tmp_path / "p.vcf", **overrides)
        with pytest.raises(ValueError):
            config.validate()


class TestParseComparisons:
    """Tests for comparison parsing."""

    def test_failed_file_skipped(
        self,
        sample_vcf: Path,
        twentythree_file: Path,
        broken_vcf: Path,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """A malformed comparison is logged and dropped; order is preserved."""
        with caplog.at_level(logging.WARNING, logger="allelecompat.pipeline"):
            samples = parse_comparisons([twentythree_file, broken_vcf, sample_vcf])

        assert [s.sample_id for s in samples] == ["genome_patient", "NA12878"]
        assert "broken.vcf" in caplog.text

    def test_on_pool(self, sample_vcf: Path, ancestry_file: Path) -> None:
        """Parsing on a pool keeps input order."""
        with WorkerPool(2) as pool:
            samples = parse_comparisons([ancestry_file, sample_vcf], pool)
        assert [s.sample_id for s in samples] == ["ancestry", "NA12878"]

    def test_custom_parser(self, tmp_path: Path) -> None:
        """A custom parser callable is used for every path."""
        seen: list[Path] = []

        def fake_parser(path: Path):
            seen.append(path)
            raise FileAccessError("nope")

        assert parse_comparisons([tmp_path / "a", tmp_path / "b"], parser=fake_parser) == []
        assert seen == [tmp_path / "a", tmp_path / "b"]

    def test_undecodable_file_skipped(
        self, sample_vcf: Path, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        """A comparison with invalid UTF-8 is logged and dropped."""
        latin = tmp_path / "latin1_genome.txt"
        latin.write_bytes(b"# rsid\tchromosome\tposition\tgenotype\nrs1\t1\t100\tA\xffG\n")
        with caplog.at_level(logging.WARNING, logger="allelecompat.pipeline"):
            samples = parse_comparisons([latin, sample_vcf])

        assert [s.sample_id for s in samples] == ["NA12878"]
        assert "latin1_genome.txt" in caplog.text
        assert all(r.levelno == logging.WARNING for r in caplog.records)

    def test_corrupt_gzip_skipped(
        self, sample_vcf: Path, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        """A .vcf.gz comparison that is not gzip data is logged and dropped."""
        corrupt = tmp_path / "corrupt.vcf.gz"
        corrupt.write_bytes(b"not gzip data\n")
        with caplog.at_level(logging.WARNING, logger="allelecompat.pipeline"):
            samples = parse_comparisons([sample_vcf, corrupt])

        assert [s.sample_id for s in samples] == ["NA12878"]
        assert "corrupt.vcf.gz" in caplog.text


class TestRunAnalysis:
    """Tests for run_analysis."""

    def test_all_analyses(self, sample_vcf: Path, twentythree_file: Path, myheritage_file: Path) -> None:
        """ALL fills every list with one record per comparison."""
        config = AnalysisConfig(patient=sample_vcf, comparisons=[twentythree_file, myheritage_file])
        results = run_analysis(config)

        for records in (
            results.organ_compatibility,
            results.disease_risks,
            results.hla_matches,
            results.ibd_segments,
            results.pharmacogenomics,
        ):
            assert [r.sample_id for r in records] == ["genome_patient", "myheritage"]

    def test_single_analysis(self, sample_vcf: Path, twentythree_file: Path) -> None:
        """Unselected analyzers leave their lists empty."""
        config = AnalysisConfig(
            patient=sample_vcf,
            comparisons=[twentythree_file],
            analysis=AnalysisType.ORGAN_COMPATIBILITY,
            organ=OrganType.KIDNEY,
        )
        results = run_analysis(config)
        assert results.organ_compatibility[0].organ == "Kidney"
        assert results.disease_risks == []
        assert results.ibd_segments == []

    def test_relationship_runs_ibd(self, sample_vcf: Path) -> None:
        """The relationship analysis fills the IBD list."""
        config = AnalysisConfig(
            patient=sample_vcf,
            comparisons=[sample_vcf],
            analysis=AnalysisType.RELATIONSHIP,
            min_segment_length=2,
        )
        with WorkerPool(2) as pool:
            results = run_analysis(config, pool)
        [ibd] = results.ibd_segments
        assert ibd.segment_count == 1
        assert results.pharmacogenomics == []

    def test_patient_failure_is_fatal(self, broken_vcf: Path, sample_vcf: Path) -> None:
        """A patient parse failure propagates."""
        config = AnalysisConfig(patient=broken_vcf, comparisons=[sample_vcf])
        with pytest.raises(MalformedLineError):
            run_analysis(config)

    def test_comparison_failure_is_skipped(self, sample_vcf: Path, broken_vcf: Path) -> None:
        """A comparison parse failure drops only that sample."""
        config = AnalysisConfig(patient=sample_vcf, comparisons=[broken_vcf, sample_vcf])
        results = run_analysis(config)
        assert [r.sample_id for r in results.disease_risks] == ["NA12878"]

    def test_corrupt_gzip_comparison_skipped(self, sample_vcf: Path, tmp_path: Path) -> None:
        """An unreadable compressed comparison drops only that sample."""
        corrupt = tmp_path / "corrupt.vcf.gz"
        corrupt.write_bytes(b"not gzip data\n")
        config = AnalysisConfig(patient=sample_vcf, comparisons=[corrupt, sample_vcf])
        results = run_analysis(config)
        assert [r.sample_id for r in results.disease_risks] == ["NA12878"]

    def test_corrupt_gzip_patient_is_fatal(self, sample_vcf: Path, tmp_path: Path) -> None:
        """An unreadable compressed patient raises FileAccessError."""
        corrupt = tmp_path / "patient.vcf.gz"
        corrupt.write_bytes(b"not gzip data\n")
        with pytest.raises(FileAccessError):
            run_analysis(AnalysisConfig(patient=corrupt, comparisons=[sample_vcf]))

    def test_invalid_config(self, sample_vcf: Path) -> None:
        """Configuration is validated before parsing."""
        with pytest.raises(ValueError):
            run_analysis(AnalysisConfig(patient=sample_vcf, min_segment_length=0))
