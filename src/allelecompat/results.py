"""
Result records produced by the comparative analyzers.

Each analyzer emits one record per comparison sample; AnalysisResults
collects the five ordered lists for the report layer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from allelecompat.sample import HLAAllele


class OrganType(Enum):
    """Target organ for transplant compatibility labelling."""

    KIDNEY = "kidney"
    LIVER = "liver"
    HEART = "heart"
    LUNG = "lung"
    PANCREAS = "pancreas"
    BONE_MARROW = "bone-marrow"
    CORNEA = "cornea"
    SKIN = "skin"

    @property
    def display_name(self) -> str:
        return self.value.replace("-", " ").title()


class CrossmatchResult(Enum):
    COMPATIBLE = "Compatible"
    INCOMPATIBLE = "Incompatible"
    REQUIRES_FURTHER_TESTING = "RequiresFurtherTesting"
    UNKNOWN = "Unknown"


class RiskCategory(Enum):
    HIGH = "High"
    MODERATE = "Moderate"
    LOW = "Low"
    PROTECTIVE = "Protective"
    UNKNOWN = "Unknown"


class ConfidenceLevel(Enum):
    DEFINITIVE = "Definitive"
    LIKELY = "Likely"
    UNCERTAIN = "Uncertain"
    UNKNOWN = "Unknown"


class RiskLevel(Enum):
    VERY_HIGH = "VeryHigh"
    HIGH = "High"
    MODERATE = "Moderate"
    LOW = "Low"
    VERY_LOW = "VeryLow"
    UNKNOWN = "Unknown"


class RelationshipPrediction(Enum):
    """Relationship implied by total shared centimorgans."""

    IDENTICAL_TWIN = "IdenticalTwin"
    PARENT_CHILD = "ParentChild"
    FULL_SIBLING = "FullSibling"
    HALF_SIBLING = "HalfSibling"
    GRANDPARENT_GRANDCHILD = "GrandparentGrandchild"
    AUNT_UNCLE_NIECE_NEPHEW = "AuntUncleNieceNephew"
    FIRST_COUSIN = "FirstCousin"
    FIRST_COUSIN_ONCE_REMOVED = "FirstCousinOnceRemoved"
    SECOND_COUSIN = "SecondCousin"
    SECOND_COUSIN_ONCE_REMOVED = "SecondCousinOnceRemoved"
    THIRD_COUSIN = "ThirdCousin"
    DISTANT = "Distant"
    UNRELATED = "Unrelated"
    UNKNOWN = "Unknown"

    @classmethod
    def from_shared_cm(cls, total_cm: float) -> RelationshipPrediction:
        """Classify a relationship from total shared cM (strict lower bounds)."""
        for threshold, relationship in _RELATIONSHIP_THRESHOLDS:
            if total_cm > threshold:
                return relationship
        return cls.UNRELATED


_RELATIONSHIP_THRESHOLDS = [
    (3400.0, RelationshipPrediction.IDENTICAL_TWIN),
    (3100.0, RelationshipPrediction.PARENT_CHILD),
    (2200.0, RelationshipPrediction.FULL_SIBLING),
    (1300.0, RelationshipPrediction.HALF_SIBLING),
    (1150.0, RelationshipPrediction.GRANDPARENT_GRANDCHILD),
    (800.0, RelationshipPrediction.AUNT_UNCLE_NIECE_NEPHEW),
    (400.0, RelationshipPrediction.FIRST_COUSIN),
    (200.0, RelationshipPrediction.FIRST_COUSIN_ONCE_REMOVED),
    (100.0, RelationshipPrediction.SECOND_COUSIN),
    (50.0, RelationshipPrediction.SECOND_COUSIN_ONCE_REMOVED),
    (30.0, RelationshipPrediction.THIRD_COUSIN),
    (10.0, RelationshipPrediction.DISTANT),
]


@dataclass
class ClinicalAnnotation:
    drug: str
    implication: str
    recommendation: str
    evidence_level: str

    def to_dict(self) -> dict:
        return {
            "drug": self.drug,
            "implication": self.implication,
            "recommendation": self.recommendation,
            "evidence_level": self.evidence_level,
        }


@dataclass
class PharmacogenomicResult:
    """
    Genotype similarity between the patient and one comparison sample.

    Attributes:
        sample_id: Comparison sample identifier
        gene: Gene label ("MULTI" for genome-wide similarity)
        diplotype: Similarity rendered as a percentage string
        phenotype: Coarse metabolizer label derived from similarity
        activity_score: Similarity fraction [0-1]
        clinical_annotations: Summary annotations
    """

    sample_id: str
    gene: str
    diplotype: str
    phenotype: str
    activity_score: float
    clinical_annotations: list[ClinicalAnnotation] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "sample_id": self.sample_id,
            "gene": self.gene,
            "diplotype": self.diplotype,
            "phenotype": self.phenotype,
            "activity_score": self.activity_score,
            "clinical_annotations": [a.to_dict() for a in self.clinical_annotations],
        }


@dataclass
class HLATypingResult:
    """Per-locus HLA match tally used by transplant scoring."""

    a_matches: int = 0
    b_matches: int = 0
    dr_matches: int = 0
    dq_matches: int = 0
    dp_matches: int = 0
    total_matches: int = 0
    mismatch_count: int = 0

    def to_dict(self) -> dict:
        return {
            "a_matches": self.a_matches,
            "b_matches": self.b_matches,
            "dr_matches": self.dr_matches,
            "dq_matches": self.dq_matches,
            "dp_matches": self.dp_matches,
            "total_matches": self.total_matches,
            "mismatch_count": self.mismatch_count,
        }


@dataclass
class OrganCompatibilityResult:
    sample_id: str
    organ: str
    compatibility_score: float
    hla_matches: HLATypingResult
    blood_type_compatible: bool
    crossmatch_result: CrossmatchResult
    recommendations: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "sample_id": self.sample_id,
            "organ": self.organ,
            "compatibility_score": self.compatibility_score,
            "hla_matches": self.hla_matches.to_dict(),
            "blood_type_compatible": self.blood_type_compatible,
            "crossmatch_result": self.crossmatch_result.value,
            "recommendations": self.recommendations,
        }


@dataclass
class DiseaseVariant:
    """A known risk marker found in the patient's variants."""

    disease: str
    rsid: str
    chromosome: str
    position: int
    risk_allele: str
    odds_ratio: float | None
    risk_category: RiskCategory
    confidence: ConfidenceLevel

    def to_dict(self) -> dict:
        return {
            "disease": self.disease,
            "rsid": self.rsid,
            "chromosome": self.chromosome,
            "position": self.position,
            "risk_allele": self.risk_allele,
            "odds_ratio": self.odds_ratio,
            "risk_category": self.risk_category.value,
            "confidence": self.confidence.value,
        }


@dataclass
class DiseaseRiskResult:
    sample_id: str
    disease: str
    risk_level: RiskLevel
    risk_score: float
    variants_found: list[DiseaseVariant] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "sample_id": self.sample_id,
            "disease": self.disease,
            "risk_level": self.risk_level.value,
            "risk_score": self.risk_score,
            "variants_found": [v.to_dict() for v in self.variants_found],
            "recommendations": self.recommendations,
        }


@dataclass
class HLAMatchResult:
    """HLA match score plus the comparison sample's alleles by locus."""

    sample_id: str
    hla_a: list[HLAAllele] = field(default_factory=list)
    hla_b: list[HLAAllele] = field(default_factory=list)
    hla_c: list[HLAAllele] = field(default_factory=list)
    hla_drb1: list[HLAAllele] = field(default_factory=list)
    hla_dqb1: list[HLAAllele] = field(default_factory=list)
    hla_dpb1: list[HLAAllele] = field(default_factory=list)
    match_score: float = 0.0

    def to_dict(self) -> dict:
        return {
            "sample_id": self.sample_id,
            "hla_a": [a.to_dict() for a in self.hla_a],
            "hla_b": [a.to_dict() for a in self.hla_b],
            "hla_c": [a.to_dict() for a in self.hla_c],
            "hla_drb1": [a.to_dict() for a in self.hla_drb1],
            "hla_dqb1": [a.to_dict() for a in self.hla_dqb1],
            "hla_dpb1": [a.to_dict() for a in self.hla_dpb1],
            "match_score": self.match_score,
        }


@dataclass
class IBDSegment:
    """
    A run of compatible genotypes on one chromosome.

    Attributes:
        chromosome: Chromosome of the segment
        start: First supporting position (bp)
        end: Last supporting position (bp)
        length_cm: Approximate length, 1 cM per 1,000,000 bp
        snp_count: Number of supporting coordinates
    """

    chromosome: str
    start: int
    end: int
    length_cm: float
    snp_count: int

    @property
    def start_position_bp(self) -> int:
        return self.start

    @property
    def end_position_bp(self) -> int:
        return self.end

    def to_dict(self) -> dict:
        return {
            "chromosome": self.chromosome,
            "start": self.start,
            "end": self.end,
            "length_cm": self.length_cm,
            "snp_count": self.snp_count,
            "start_position_bp": self.start_position_bp,
            "end_position_bp": self.end_position_bp,
        }


@dataclass
class IBDSegmentResult:
    sample_id: str
    total_shared_cm: float
    segment_count: int
    largest_segment_cm: float
    segments: list[IBDSegment] = field(default_factory=list)
    predicted_relationship: RelationshipPrediction = RelationshipPrediction.UNKNOWN
    confidence: float = 0.0

    def to_dict(self) -> dict:
        return {
            "sample_id": self.sample_id,
            "total_shared_cm": self.total_shared_cm,
            "segment_count": self.segment_count,
            "largest_segment_cm": self.largest_segment_cm,
            "segments": [s.to_dict() for s in self.segments],
            "predicted_relationship": self.predicted_relationship.value,
            "confidence": self.confidence,
        }


@dataclass
class AnalysisResults:
    """
    Output of one analysis run, one ordered list per analyzer.

    Consumed read-only by report generation.
    """

    organ_compatibility: list[OrganCompatibilityResult] = field(default_factory=list)
    disease_risks: list[DiseaseRiskResult] = field(default_factory=list)
    hla_matches: list[HLAMatchResult] = field(default_factory=list)
    ibd_segments: list[IBDSegmentResult] = field(default_factory=list)
    pharmacogenomics: list[PharmacogenomicResult] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON output."""
        return {
            "organ_compatibility": [r.to_dict() for r in self.organ_compatibility],
            "disease_risks": [r.to_dict() for r in self.disease_risks],
            "hla_matches": [r.to_dict() for r in self.hla_matches],
            "ibd_segments": [r.to_dict() for r in self.ibd_segments],
            "pharmacogenomics": [r.to_dict() for r in self.pharmacogenomics],
        }
