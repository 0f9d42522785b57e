"""
Normalized per-sample genetic data.

Every format parser produces a ParsedGeneticData: a sample's variants keyed
by coordinate, its HLA alleles, metadata, and quality metrics computed once
when parsing finishes.
"""

from __future__ import annotations

import math
import statistics
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from allelecompat.genotype import Coordinate, Genotype, MutationType, mutation_class


class FileFormat(Enum):
    """Input dialects understood by the parsers."""

    VCF = "VCF"
    TWENTYTHREE_AND_ME = "23andMe"
    ANCESTRY_DNA = "AncestryDNA"
    MYHERITAGE = "MyHeritage"
    PLINK_PED = "PLINK-PED"
    PLINK_BED = "PLINK-BED"
    CSV = "CSV"
    TSV = "TSV"
    UNKNOWN = "Unknown"

    @classmethod
    def from_extension(cls, path: Path | str) -> FileFormat:
        """
        Map a file name to a format by extension alone.

        Consumer exports share ``.txt``/``.csv`` extensions with generic
        tables, so those map to UNKNOWN or CSV/TSV and are refined by
        content sniffing in allelecompat.parsers.
        """
        name = Path(path).name.lower()
        if name.endswith((".vcf", ".vcf.gz")):
            return cls.VCF
        suffix = Path(name).suffix
        if suffix in (".ped", ".map"):
            return cls.PLINK_PED
        if suffix in (".bed", ".bim", ".fam"):
            return cls.PLINK_BED
        if suffix == ".csv":
            return cls.CSV
        if suffix == ".tsv":
            return cls.TSV
        return cls.UNKNOWN


@dataclass
class Variant:
    """
    A single variant observed in one sample.

    Attributes:
        coordinate: Normalized chromosome and position
        rsid: Reference SNP identifier, if the format provides one
        ref: Reference allele (empty when the format has none)
        alt: Alternate allele(s)
        genotype: Classified genotype
        quality: Variant quality (QUAL)
        filter: Filter tag (FILTER)
        info: INFO annotations; flags carry the value "true"
    """

    coordinate: Coordinate
    rsid: str | None = None
    ref: str = ""
    alt: tuple[str, ...] = ()
    genotype: Genotype = Genotype.NO_CALL
    quality: float | None = None
    filter: str | None = None
    info: dict[str, str] = field(default_factory=dict)

    @property
    def chromosome(self) -> str:
        return self.coordinate.chromosome

    @property
    def position(self) -> int:
        return self.coordinate.position

    @property
    def is_snp(self) -> bool:
        """Check if variant is a SNP (not indel)."""
        if len(self.ref) != 1:
            return False
        return all(len(a) == 1 for a in self.alt)


class HLAResolution(Enum):
    """Typing resolution of an HLA allele designation."""

    TWO_DIGIT = "TwoDigit"  # A*01
    FOUR_DIGIT = "FourDigit"  # A*01:01
    SIX_DIGIT = "SixDigit"  # A*01:01:01
    EIGHT_DIGIT = "EightDigit"  # A*01:01:01:01
    UNKNOWN = "Unknown"


@dataclass
class HLAAllele:
    """
    An HLA allele call.

    Attributes:
        gene: Gene name, e.g. "HLA-A", "HLA-DRB1"
        allele: Allele designator, e.g. "*01:01"
        resolution: Typing resolution
        confidence: Call confidence [0-1]
    """

    gene: str
    allele: str
    resolution: HLAResolution = HLAResolution.UNKNOWN
    confidence: float = 0.0

    def to_dict(self) -> dict:
        return {
            "gene": self.gene,
            "allele": self.allele,
            "resolution": self.resolution.value,
            "confidence": self.confidence,
        }


@dataclass
class QualityMetrics:
    """
    Sample-level quality metrics, computed once after parsing.

    Attributes:
        snp_count: Number of distinct coordinates stored
        no_call_rate: Fraction of NoCall/Partial genotypes
        heterozygosity_rate: Fraction of called genotypes that are heterozygous
        ti_tv_ratio: Transition/transversion ratio over single-base variants
        read_depth_mean: Mean INFO DP, when present
        read_depth_std: Population standard deviation of INFO DP, when present
    """

    snp_count: int = 0
    no_call_rate: float = 0.0
    heterozygosity_rate: float = 0.0
    ti_tv_ratio: float = 0.0
    read_depth_mean: float | None = None
    read_depth_std: float | None = None

    def to_dict(self) -> dict:
        return {
            "snp_count": self.snp_count,
            "no_call_rate": self.no_call_rate,
            "heterozygosity_rate": self.heterozygosity_rate,
            "ti_tv_ratio": self.ti_tv_ratio,
            "read_depth_mean": self.read_depth_mean,
            "read_depth_std": self.read_depth_std,
        }


@dataclass
class SampleMetadata:
    """Identity and provenance of a parsed sample."""

    sample_id: str
    source_file: str
    file_format: FileFormat
    genome_build: str = "unknown"
    sequencing_platform: str | None = None
    call_rate: float | None = None
    heterozygosity: float | None = None

    def to_dict(self) -> dict:
        return {
            "sample_id": self.sample_id,
            "source_file": self.source_file,
            "file_format": self.file_format.value,
            "genome_build": self.genome_build,
            "sequencing_platform": self.sequencing_platform,
            "call_rate": self.call_rate,
            "heterozygosity": self.heterozygosity,
        }


class ParsedGeneticData:
    """
    All genetic data parsed from one input file.

    Variants are keyed by coordinate in arrival order; a later record for the
    same coordinate replaces the earlier one in place. The container is
    populated by a parser, finalized exactly once, and read-only afterwards.
    """

    def __init__(self, sample_id: str, source_file: Path | str, file_format: FileFormat):
        self.metadata = SampleMetadata(
            sample_id=sample_id,
            source_file=str(source_file),
            file_format=file_format,
        )
        self.variants: dict[Coordinate, Variant] = {}
        self.hla_alleles: list[HLAAllele] = []
        self.quality_metrics: QualityMetrics | None = None

    @property
    def sample_id(self) -> str:
        return self.metadata.sample_id

    @property
    def finalized(self) -> bool:
        return self.quality_metrics is not None

    def add_variant(self, variant: Variant) -> None:
        """
        Store a variant, replacing any earlier record at the same coordinate.

        Raises:
            RuntimeError: If the container has already been finalized
        """
        if self.finalized:
            raise RuntimeError(f"Sample {self.sample_id} is finalized; cannot add variants")
        self.variants[variant.coordinate] = variant

    def get_variant(self, chromosome: str, position: int) -> Variant | None:
        """Look up the variant at a normalized chromosome and position."""
        return self.variants.get(Coordinate(chromosome, position))

    def __len__(self) -> int:
        return len(self.variants)

    def __repr__(self) -> str:
        return (
            f"ParsedGeneticData(sample_id={self.sample_id!r}, "
            f"format={self.metadata.file_format.value}, variants={len(self.variants)})"
        )

    def finalize(self) -> QualityMetrics:
        """
        Compute quality metrics over the complete variant map.

        Must be called exactly once, after the whole source has been read.

        Returns:
            The computed QualityMetrics

        Raises:
            RuntimeError: If called a second time
        """
        if self.finalized:
            raise RuntimeError(f"Sample {self.sample_id} is already finalized")

        metrics = compute_quality_metrics(self.variants.values())
        self.quality_metrics = metrics
        self.metadata.call_rate = 1.0 - metrics.no_call_rate
        self.metadata.heterozygosity = metrics.heterozygosity_rate
        return metrics

    def to_dict(self) -> dict:
        """Summary for JSON output (variants are not serialized)."""
        return {
            "metadata": self.metadata.to_dict(),
            "variant_count": len(self.variants),
            "hla_alleles": [a.to_dict() for a in self.hla_alleles],
            "quality_metrics": (
                self.quality_metrics.to_dict() if self.quality_metrics else None
            ),
        }


def compute_quality_metrics(variants) -> QualityMetrics:
    """
    Compute sample-level quality metrics.

    Args:
        variants: Iterable of Variant objects

    Returns:
        QualityMetrics for the given variants
    """
    total = 0
    no_calls = 0
    hets = 0
    transitions = 0
    transversions = 0
    depths: list[float] = []

    for variant in variants:
        total += 1
        if variant.genotype.is_no_call:
            no_calls += 1
        elif variant.genotype.is_heterozygous:
            hets += 1

        if len(variant.ref) == 1 and variant.alt and len(variant.alt[0]) == 1:
            kind = mutation_class(variant.ref, variant.alt[0])
            if kind is MutationType.TRANSITION:
                transitions += 1
            elif kind is MutationType.TRANSVERSION:
                transversions += 1

        dp = variant.info.get("DP")
        if dp is not None:
            try:
                depth = float(dp)
            except ValueError:
                continue
            if math.isfinite(depth):
                depths.append(depth)

    called = total - no_calls
    return QualityMetrics(
        snp_count=total,
        no_call_rate=no_calls / total if total else 0.0,
        heterozygosity_rate=hets / called if called else 0.0,
        ti_tv_ratio=transitions / transversions if transversions else 0.0,
        read_depth_mean=statistics.fmean(depths) if depths else None,
        read_depth_std=statistics.pstdev(depths) if depths else None,
    )
