"""
Comparative analyzers.

Every analyzer compares one patient sample against a list of comparison
samples and returns one result record per comparison, in input order. Work
fans out over the shared WorkerPool when one is given; the first failure
aborts the whole run.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

from allelecompat.genotype import is_compatible
from allelecompat.pool import WorkerPool, ordered_map
from allelecompat.results import (
    ClinicalAnnotation,
    ConfidenceLevel,
    CrossmatchResult,
    DiseaseRiskResult,
    DiseaseVariant,
    HLAMatchResult,
    HLATypingResult,
    IBDSegment,
    IBDSegmentResult,
    OrganCompatibilityResult,
    OrganType,
    PharmacogenomicResult,
    RelationshipPrediction,
    RiskCategory,
    RiskLevel,
)
from allelecompat.sample import HLAAllele, ParsedGeneticData

logger = logging.getLogger(__name__)

R = TypeVar("R")


class Analyzer(Generic[R]):
    """Base class: maps analyze_sample over the comparison samples."""

    name = "analyzer"

    def __init__(self, pool: WorkerPool | None = None):
        self.pool = pool

    def run(
        self, patient: ParsedGeneticData, comparisons: list[ParsedGeneticData]
    ) -> list[R]:
        """
        Analyze every comparison sample against the patient.

        Args:
            patient: The patient sample
            comparisons: Comparison samples

        Returns:
            One result per comparison, in input order

        Raises:
            Exception: The first failure, in input order; no partial list
        """
        logger.debug("Running %s over %d samples", self.name, len(comparisons))
        return ordered_map(lambda sample: self.analyze_sample(patient, sample), comparisons, self.pool)

    def analyze_sample(self, patient: ParsedGeneticData, sample: ParsedGeneticData) -> R:
        raise NotImplementedError


def shared_compatible_count(patient: ParsedGeneticData, sample: ParsedGeneticData) -> int:
    """Count patient coordinates present in the sample with compatible genotypes."""
    shared = 0
    for coordinate, variant in patient.variants.items():
        other = sample.variants.get(coordinate)
        if other is not None and is_compatible(variant.genotype, other.genotype):
            shared += 1
    return shared


# =============================================================================
# Allele similarity
# =============================================================================


class AlleleComparator(Analyzer[PharmacogenomicResult]):
    """Genome-wide genotype similarity, reported as a pharmacogenomic summary."""

    name = "allele comparison"

    def analyze_sample(
        self, patient: ParsedGeneticData, sample: ParsedGeneticData
    ) -> PharmacogenomicResult:
        similarity = shared_compatible_count(patient, sample) / max(1, len(patient.variants))
        percent = similarity * 100

        if similarity > 0.8:
            recommendation = "Standard dosing expected to be effective"
        else:
            recommendation = "Consider alternative medications or dose adjustments"

        return PharmacogenomicResult(
            sample_id=sample.sample_id,
            gene="MULTI",
            diplotype=f"{percent:.2f}%",
            phenotype=metabolizer_phenotype(similarity),
            activity_score=similarity,
            clinical_annotations=[
                ClinicalAnnotation(
                    drug="Multiple",
                    implication=f"Genetic similarity: {percent:.1f}%",
                    recommendation=recommendation,
                    evidence_level="Moderate",
                )
            ],
        )


def metabolizer_phenotype(similarity: float) -> str:
    if similarity > 0.9:
        return "Extensive Metabolizer"
    if similarity > 0.7:
        return "Intermediate Metabolizer"
    return "Poor Metabolizer"


# =============================================================================
# Organ compatibility
# =============================================================================

# Six HLA loci, two alleles each
HLA_MATCH_DENOMINATOR = 12
HLA_WEIGHT = 0.8
BLOOD_TYPE_WEIGHT = 0.2


def placeholder_hla_typing(patient: ParsedGeneticData, sample: ParsedGeneticData) -> HLATypingResult:
    """Fixed HLA tally used until per-locus typing comparison exists."""
    return HLATypingResult(
        a_matches=2,
        b_matches=2,
        dr_matches=2,
        dq_matches=1,
        dp_matches=1,
        total_matches=8,
        mismatch_count=2,
    )


def assume_blood_type_compatible(patient: ParsedGeneticData, sample: ParsedGeneticData) -> bool:
    """ABO typing is not derived from genotypes; always compatible."""
    return True


def classify_crossmatch(score: float) -> CrossmatchResult:
    """
    Band a compatibility score into a crossmatch result.

    Args:
        score: Compatibility score [0-1]

    Returns:
        COMPATIBLE above 0.8, REQUIRES_FURTHER_TESTING above 0.6,
        otherwise INCOMPATIBLE
    """
    if score > 0.8:
        return CrossmatchResult.COMPATIBLE
    if score > 0.6:
        return CrossmatchResult.REQUIRES_FURTHER_TESTING
    return CrossmatchResult.INCOMPATIBLE


class OrganCompatibilityChecker(Analyzer[OrganCompatibilityResult]):
    """
    Transplant compatibility from HLA matches and blood type.

    The target organ only labels the output; scoring is identical for every
    organ.
    """

    name = "organ compatibility"

    def __init__(
        self,
        pool: WorkerPool | None = None,
        target_organ: OrganType | None = None,
        hla_typer: Callable[[ParsedGeneticData, ParsedGeneticData], HLATypingResult] = placeholder_hla_typing,
        blood_typer: Callable[[ParsedGeneticData, ParsedGeneticData], bool] = assume_blood_type_compatible,
    ):
        super().__init__(pool)
        self.target_organ = target_organ
        self.hla_typer = hla_typer
        self.blood_typer = blood_typer

    @property
    def organ_label(self) -> str:
        if self.target_organ is None:
            return "Multi-organ"
        return self.target_organ.display_name

    def analyze_sample(
        self, patient: ParsedGeneticData, sample: ParsedGeneticData
    ) -> OrganCompatibilityResult:
        hla = self.hla_typer(patient, sample)
        blood_compatible = self.blood_typer(patient, sample)

        score = (
            HLA_WEIGHT * hla.total_matches / HLA_MATCH_DENOMINATOR
            + BLOOD_TYPE_WEIGHT * (1.0 if blood_compatible else 0.0)
        )

        return OrganCompatibilityResult(
            sample_id=sample.sample_id,
            organ=self.organ_label,
            compatibility_score=score,
            hla_matches=hla,
            blood_type_compatible=blood_compatible,
            crossmatch_result=classify_crossmatch(score),
            recommendations=transplant_recommendations(score, hla),
        )


def transplant_recommendations(score: float, hla: HLATypingResult) -> list[str]:
    recommendations = []
    if score > 0.8:
        recommendations.append("High compatibility - suitable candidate for transplantation")
    elif score > 0.6:
        recommendations.append("Moderate compatibility - further testing recommended")
    else:
        recommendations.append("Low compatibility - not recommended for transplantation")

    if hla.mismatch_count > 3:
        recommendations.append("High number of HLA mismatches may increase rejection risk")

    recommendations.append("Consult with transplant team for clinical evaluation")
    return recommendations


# =============================================================================
# Disease risk
# =============================================================================


@dataclass(frozen=True)
class RiskMarker:
    """A known disease-associated SNP."""

    disease: str
    odds_ratio: float | None
    category: RiskCategory
    confidence: ConfidenceLevel


# APOE (rs429358, rs7412) and F5 Leiden (rs6025)
RISK_MARKERS: dict[str, RiskMarker] = {
    "rs429358": RiskMarker("Alzheimer's Disease", 2.5, RiskCategory.HIGH, ConfidenceLevel.DEFINITIVE),
    "rs7412": RiskMarker("Alzheimer's Disease", 2.5, RiskCategory.HIGH, ConfidenceLevel.DEFINITIVE),
    "rs6025": RiskMarker("Thrombophilia", 5.0, RiskCategory.HIGH, ConfidenceLevel.DEFINITIVE),
}

CATEGORY_WEIGHTS: dict[RiskCategory, float] = {
    RiskCategory.HIGH: 3.0,
    RiskCategory.MODERATE: 2.0,
    RiskCategory.LOW: 1.0,
    RiskCategory.PROTECTIVE: -1.0,
    RiskCategory.UNKNOWN: 0.0,
}

SUMMARY_DISEASE = "Cardiovascular Disease"


def risk_score(variants: list[DiseaseVariant]) -> float:
    """Sum of category weight times odds ratio (missing odds ratio counts as 1)."""
    total = 0.0
    for variant in variants:
        odds = variant.odds_ratio if variant.odds_ratio is not None else 1.0
        total += CATEGORY_WEIGHTS[variant.risk_category] * odds
    return total


def risk_level(score: float) -> RiskLevel:
    if score > 10.0:
        return RiskLevel.VERY_HIGH
    if score > 5.0:
        return RiskLevel.HIGH
    if score > 2.0:
        return RiskLevel.MODERATE
    if score > 0.5:
        return RiskLevel.LOW
    return RiskLevel.VERY_LOW


class DiseaseAnalyzer(Analyzer[DiseaseRiskResult]):
    """
    Known risk-marker scan over the patient's variants.

    Only the patient's variants are inspected, so every comparison sample
    receives the same findings under its own sample ID.
    """

    name = "disease risk"

    def analyze_sample(
        self, patient: ParsedGeneticData, sample: ParsedGeneticData
    ) -> DiseaseRiskResult:
        found = self.find_risk_variants(patient)
        score = risk_score(found)

        if found:
            recommendations = [
                "Genetic variants associated with increased disease risk detected",
                "Consult with a genetic counselor for personalized risk assessment",
                "Consider lifestyle modifications to mitigate environmental risk factors",
            ]
        else:
            recommendations = [
                "No high-risk disease variants detected",
                "Continue routine health screenings as recommended by your physician",
            ]

        return DiseaseRiskResult(
            sample_id=sample.sample_id,
            disease=SUMMARY_DISEASE,
            risk_level=risk_level(score),
            risk_score=score,
            variants_found=found,
            recommendations=recommendations,
        )

    @staticmethod
    def find_risk_variants(patient: ParsedGeneticData) -> list[DiseaseVariant]:
        """Match patient rsIDs against RISK_MARKERS, in variant order."""
        found = []
        for coordinate, variant in patient.variants.items():
            marker = RISK_MARKERS.get(variant.rsid) if variant.rsid else None
            if marker is None:
                continue
            found.append(
                DiseaseVariant(
                    disease=marker.disease,
                    rsid=variant.rsid,
                    chromosome=coordinate.chromosome,
                    position=coordinate.position,
                    risk_allele=variant.ref,
                    odds_ratio=marker.odds_ratio,
                    risk_category=marker.category,
                    confidence=marker.confidence,
                )
            )
        return found


# =============================================================================
# HLA matching
# =============================================================================

HLA_GENES = ("HLA-A", "HLA-B", "HLA-C", "HLA-DRB1", "HLA-DQB1", "HLA-DPB1")


def _group_by_gene(alleles: list[HLAAllele]) -> dict[str, list[str]]:
    groups: dict[str, list[str]] = defaultdict(list)
    for allele in alleles:
        groups[allele.gene].append(allele.allele)
    return groups


def hla_match_score(patient_alleles: list[HLAAllele], sample_alleles: list[HLAAllele]) -> float:
    """
    Fraction of exact HLA allele matches over compared pairs.

    For every gene typed in both samples, min(patient count, sample count)
    pairs are compared, and each patient allele scores at most one match.

    Args:
        patient_alleles: Patient HLA alleles
        sample_alleles: Comparison sample HLA alleles

    Returns:
        matches / compared pairs, or 0.0 when no gene is typed in both
    """
    patient_groups = _group_by_gene(patient_alleles)
    sample_groups = _group_by_gene(sample_alleles)

    matches = 0
    compared = 0
    for gene, patient_names in patient_groups.items():
        sample_names = sample_groups.get(gene)
        if not sample_names:
            continue
        compared += min(len(patient_names), len(sample_names))
        matches += sum(1 for name in patient_names if name in sample_names)

    if compared == 0:
        return 0.0
    return matches / compared


class HLAAnalyzer(Analyzer[HLAMatchResult]):
    """HLA allele match score, with the sample's alleles grouped by locus."""

    name = "HLA matching"

    def analyze_sample(self, patient: ParsedGeneticData, sample: ParsedGeneticData) -> HLAMatchResult:
        by_gene = {gene: [a for a in sample.hla_alleles if a.gene == gene] for gene in HLA_GENES}
        return HLAMatchResult(
            sample_id=sample.sample_id,
            hla_a=by_gene["HLA-A"],
            hla_b=by_gene["HLA-B"],
            hla_c=by_gene["HLA-C"],
            hla_drb1=by_gene["HLA-DRB1"],
            hla_dqb1=by_gene["HLA-DQB1"],
            hla_dpb1=by_gene["HLA-DPB1"],
            match_score=hla_match_score(patient.hla_alleles, sample.hla_alleles),
        )


# =============================================================================
# IBD segments
# =============================================================================

# Largest bp gap bridged within one segment
MAX_GAP_BP = 1_000_000
# Approximate physical-to-genetic conversion
BP_PER_CM = 1_000_000

# Normalizers for the confidence score
CONFIDENCE_CM_SCALE = 500.0
CONFIDENCE_SEGMENT_SCALE = 50.0


class IBDDetector(Analyzer[IBDSegmentResult]):
    """
    Greedy detection of shared segments from runs of compatible genotypes.

    Patient variants are walked in stored order. A segment grows while
    compatible positions stay on one chromosome within MAX_GAP_BP of the
    previous one, and is kept when it has at least min_segment_length
    supporting coordinates.
    """

    name = "IBD detection"

    def __init__(
        self,
        pool: WorkerPool | None = None,
        min_cm: float = 7.0,
        min_segment_length: int = 500,
    ):
        super().__init__(pool)
        # Reported with the configuration; detection is governed by
        # min_segment_length.
        self.min_cm = min_cm
        self.min_segment_length = min_segment_length

    def find_segments(self, patient: ParsedGeneticData, sample: ParsedGeneticData) -> list[IBDSegment]:
        """
        Find kept IBD segments between two samples.

        Returns:
            Segments in discovery order
        """
        segments: list[IBDSegment] = []
        chromosome: str | None = None
        start = end = count = 0

        def flush() -> None:
            if chromosome is not None and count >= self.min_segment_length:
                segments.append(
                    IBDSegment(
                        chromosome=chromosome,
                        start=start,
                        end=end,
                        length_cm=max(end - start, 0) / BP_PER_CM,
                        snp_count=count,
                    )
                )

        for coordinate, variant in patient.variants.items():
            other = sample.variants.get(coordinate)
            if other is None or not is_compatible(variant.genotype, other.genotype):
                continue

            position = coordinate.position
            if coordinate.chromosome == chromosome and position <= end + MAX_GAP_BP:
                end = position
                count += 1
                continue

            flush()
            chromosome = coordinate.chromosome
            start = end = position
            count = 1

        flush()
        return segments

    def analyze_sample(self, patient: ParsedGeneticData, sample: ParsedGeneticData) -> IBDSegmentResult:
        segments = self.find_segments(patient, sample)
        total_cm = sum(s.length_cm for s in segments)
        largest_cm = max((s.length_cm for s in segments), default=0.0)

        confidence = (
            min(total_cm / CONFIDENCE_CM_SCALE, 1.0)
            + min(len(segments) / CONFIDENCE_SEGMENT_SCALE, 1.0)
        ) / 2

        return IBDSegmentResult(
            sample_id=sample.sample_id,
            total_shared_cm=total_cm,
            segment_count=len(segments),
            largest_segment_cm=largest_cm,
            segments=segments,
            predicted_relationship=RelationshipPrediction.from_shared_cm(total_cm),
            confidence=confidence,
        )
