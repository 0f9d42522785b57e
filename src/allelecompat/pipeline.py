"""
End-to-end analysis run: parse inputs, then run the selected analyzers.

A patient parse failure is fatal. A comparison file that fails to parse is
logged and dropped, and the run continues with the remaining samples.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

from allelecompat.analysis import (
    AlleleComparator,
    DiseaseAnalyzer,
    HLAAnalyzer,
    IBDDetector,
    OrganCompatibilityChecker,
)
from allelecompat.config import AnalysisConfig, AnalysisType
from allelecompat.parsers import FileParser
from allelecompat.parsing import ParseError
from allelecompat.pool import WorkerPool, ordered_map
from allelecompat.results import AnalysisResults
from allelecompat.sample import ParsedGeneticData

logger = logging.getLogger(__name__)


def parse_comparisons(
    paths: list[Path],
    pool: WorkerPool | None = None,
    parser: Callable[[Path], ParsedGeneticData] | None = None,
) -> list[ParsedGeneticData]:
    """
    Parse comparison files, dropping those that fail.

    Args:
        paths: Comparison input files
        pool: Worker pool; serial when None
        parser: Callable turning a path into a sample (default FileParser)

    Returns:
        Parsed samples, in the order of ``paths``, without failed files
    """
    parse = parser or FileParser()

    def try_parse(path: Path) -> ParsedGeneticData | None:
        try:
            return parse(path)
        except ParseError as e:
            logger.warning("Skipping comparison file %s: %s", path, e)
            return None

    parsed = ordered_map(try_parse, paths, pool)
    return [sample for sample in parsed if sample is not None]


def run_analysis(config: AnalysisConfig, pool: WorkerPool | None = None) -> AnalysisResults:
    """
    Run a configured analysis.

    Args:
        config: Run configuration
        pool: Shared worker pool; serial when None

    Returns:
        AnalysisResults with a list for every selected analyzer

    Raises:
        ValueError: If the configuration is invalid
        ParseError: If the patient file cannot be parsed
    """
    config.validate()
    parser = FileParser()

    patient = parser(config.patient)
    logger.info("Patient %s: %d variants", patient.sample_id, len(patient))

    comparisons = parse_comparisons(config.comparisons, pool, parser)
    logger.info(
        "Parsed %d of %d comparison files", len(comparisons), len(config.comparisons)
    )

    results = AnalysisResults()
    selected = config.analysis

    if selected.includes(AnalysisType.ORGAN_COMPATIBILITY):
        checker = OrganCompatibilityChecker(pool, target_organ=config.organ)
        results.organ_compatibility = checker.run(patient, comparisons)
    if selected.includes(AnalysisType.DISEASE):
        results.disease_risks = DiseaseAnalyzer(pool).run(patient, comparisons)
    if selected.includes(AnalysisType.HLA):
        results.hla_matches = HLAAnalyzer(pool).run(patient, comparisons)
    if selected.includes(AnalysisType.IBD):
        detector = IBDDetector(
            pool, min_cm=config.min_cm, min_segment_length=config.min_segment_length
        )
        results.ibd_segments = detector.run(patient, comparisons)
    if selected.includes(AnalysisType.PHARMACOGENOMICS):
        results.pharmacogenomics = AlleleComparator(pool).run(patient, comparisons)

    logger.info("Analysis complete for %d comparison samples", len(comparisons))
    return results
