"""
Format detection and parser dispatch.

Resolves an input file to one of the supported dialects, by extension for
VCF and PLINK and by content sniffing for the text exports that share
.txt/.csv extensions, then runs the matching parser.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

from allelecompat.consumer import AncestryDNAParser, MyHeritageParser, TwentyThreeAndMeParser
from allelecompat.delimited import COLUMN_ALIASES, DelimitedParser
from allelecompat.parsing import (
    UnsupportedFormatError,
    detect_delimiter,
    open_text,
    read_lines,
)
from allelecompat.plink import PlinkParser
from allelecompat.sample import FileFormat, ParsedGeneticData
from allelecompat.vcf import VCFParser

logger = logging.getLogger(__name__)

SNIFF_LINES = 10


class GeneticDataParser(Protocol):
    """Interface shared by every format parser."""

    def parse(self, path: Path | str) -> ParsedGeneticData: ...


_PARSERS: dict[FileFormat, type[GeneticDataParser]] = {
    FileFormat.VCF: VCFParser,
    FileFormat.TWENTYTHREE_AND_ME: TwentyThreeAndMeParser,
    FileFormat.ANCESTRY_DNA: AncestryDNAParser,
    FileFormat.MYHERITAGE: MyHeritageParser,
    FileFormat.PLINK_PED: PlinkParser,
    FileFormat.PLINK_BED: PlinkParser,
    FileFormat.CSV: DelimitedParser,
    FileFormat.TSV: DelimitedParser,
}

# (name, extensions, description)
SUPPORTED_FORMATS = [
    ("VCF", ".vcf, .vcf.gz", "Variant Call Format; genotype from the first sample"),
    ("23andMe", ".txt", "23andMe raw data (tab-delimited)"),
    ("AncestryDNA", ".txt, .csv", "AncestryDNA raw data (comma-delimited)"),
    ("MyHeritage", ".csv", "MyHeritage raw data (quoted CSV)"),
    ("PLINK PED/MAP", ".ped, .map", "Text genotypes; first individual only"),
    ("PLINK BED/BIM/FAM", ".bed, .bim, .fam", "Marker definitions; genotypes not decoded"),
    ("CSV/TSV", ".csv, .tsv, .txt", "Delimited table with chromosome and position columns"),
]

_CHROMOSOME_HEADERS = frozenset(COLUMN_ALIASES["chromosome"])
_POSITION_HEADERS = frozenset(COLUMN_ALIASES["position"])


def _read_head(path: Path, limit: int = SNIFF_LINES) -> list[str]:
    lines: list[str] = []
    with open_text(path) as f:
        for raw in read_lines(f, path):
            lines.append(raw.rstrip("\r\n"))
            if len(lines) >= limit:
                break
    return lines


def _is_table_header(line: str) -> bool:
    fields = {
        field.strip().strip('"').lower() for field in line.split(detect_delimiter(line))
    }
    return bool(fields & _CHROMOSOME_HEADERS) and bool(fields & _POSITION_HEADERS)


def sniff_format(lines: list[str]) -> FileFormat:
    """
    Guess a text dialect from the first lines of a file.

    Args:
        lines: Leading lines of the file, without line endings

    Returns:
        Detected FileFormat, or UNKNOWN
    """
    for line in lines:
        if line.startswith("##fileformat=VCF"):
            return FileFormat.VCF

    text = "\n".join(lines)
    if "23andMe" in text:
        return FileFormat.TWENTYTHREE_AND_ME
    if "AncestryDNA" in text:
        return FileFormat.ANCESTRY_DNA
    if "MyHeritage" in text:
        return FileFormat.MYHERITAGE

    data_lines = [line for line in lines if line.strip() and not line.startswith("#")]
    if not data_lines:
        return FileFormat.UNKNOWN

    first = data_lines[0]
    if first.startswith(("RSID,", '"RSID"')):
        return FileFormat.MYHERITAGE
    if _is_table_header(first):
        return FileFormat.TSV if detect_delimiter(first) == "\t" else FileFormat.CSV

    if len(first.split("\t")) >= 4:
        return FileFormat.TWENTYTHREE_AND_ME
    if len(first.split(",")) >= 4:
        return FileFormat.ANCESTRY_DNA
    return FileFormat.UNKNOWN


def detect_format(path: Path | str) -> FileFormat:
    """
    Detect the dialect of an input file.

    Args:
        path: Path to the input file

    Returns:
        Detected FileFormat

    Raises:
        FileAccessError: If the file cannot be read for sniffing
        UnsupportedFormatError: If no supported dialect matches
    """
    path = Path(path)
    by_extension = FileFormat.from_extension(path)
    if by_extension in (FileFormat.VCF, FileFormat.PLINK_PED, FileFormat.PLINK_BED):
        return by_extension

    sniffed = sniff_format(_read_head(path))
    if sniffed is not FileFormat.UNKNOWN:
        return sniffed
    if by_extension is not FileFormat.UNKNOWN:
        return by_extension

    raise UnsupportedFormatError(f"Unsupported or unrecognized file format: {path}")


def parse_file(path: Path | str, file_format: FileFormat | None = None) -> ParsedGeneticData:
    """
    Parse a genetic data file with the parser for its format.

    Args:
        path: Path to the input file
        file_format: Format to use; detected when None

    Returns:
        Finalized ParsedGeneticData

    Raises:
        ParseError: If the format is unsupported or parsing fails
    """
    path = Path(path)
    if file_format is None:
        file_format = detect_format(path)

    parser_cls = _PARSERS.get(file_format)
    if parser_cls is None:
        raise UnsupportedFormatError(f"No parser for format {file_format.value}: {path}")

    logger.info("Parsing %s as %s", path, file_format.value)
    return parser_cls().parse(path)


class FileParser:
    """Callable wrapper around parse_file, for handing to a worker pool."""

    def parse(self, path: Path | str) -> ParsedGeneticData:
        return parse_file(path)

    def __call__(self, path: Path | str) -> ParsedGeneticData:
        return self.parse(path)
