"""
Run configuration for an analysis.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from allelecompat.results import OrganType


class AnalysisType(Enum):
    """Which analyzers a run executes."""

    ALL = "all"
    ORGAN_COMPATIBILITY = "organ-compatibility"
    DISEASE = "disease"
    HLA = "hla"
    IBD = "ibd"
    PHARMACOGENOMICS = "pharmacogenomics"
    RELATIONSHIP = "relationship"

    def includes(self, other: AnalysisType) -> bool:
        """Whether selecting ``self`` runs the analyzer for ``other``."""
        if self is AnalysisType.ALL:
            return True
        if self is AnalysisType.RELATIONSHIP:
            return other in (AnalysisType.IBD, AnalysisType.RELATIONSHIP)
        return self is other


@dataclass
class AnalysisConfig:
    """
    Configuration for one analysis run.

    Attributes:
        patient: Patient input file
        comparisons: Comparison input files
        threads: Worker threads (0 = one per CPU)
        analysis: Analyzer selection
        organ: Target organ label for transplant results
        min_cm: Minimum shared cM, reported with IBD results
        min_segment_length: Minimum supporting coordinates per IBD segment
    """

    patient: Path
    comparisons: list[Path] = field(default_factory=list)
    threads: int = 0
    analysis: AnalysisType = AnalysisType.ALL
    organ: OrganType | None = None
    min_cm: float = 7.0
    min_segment_length: int = 500

    def validate(self) -> None:
        """
        Check option ranges.

        Raises:
            ValueError: If any option is out of range
        """
        if self.threads < 0:
            raise ValueError(f"threads must be >= 0, got {self.threads}")
        if self.min_cm < 0:
            raise ValueError(f"min_cm must be >= 0, got {self.min_cm}")
        if self.min_segment_length < 1:
            raise ValueError(
                f"min_segment_length must be >= 1, got {self.min_segment_length}"
            )
