"""
allelecompat: Comparative genetic analysis.

Parses VCF, consumer raw-data, PLINK and delimited genotype files into a
common sample model and compares a patient against a set of samples.
"""

__version__ = "0.1.0"

from allelecompat.parsers import detect_format, parse_file
from allelecompat.pipeline import run_analysis
from allelecompat.sample import ParsedGeneticData

__all__ = ["parse_file", "detect_format", "run_analysis", "ParsedGeneticData", "__version__"]
