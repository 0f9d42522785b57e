"""
Consumer DNA-test raw data parsers.

Handles the raw exports of 23andMe (tab-delimited), AncestryDNA
(comma-delimited) and MyHeritage (comma-delimited, quoted fields). None of
these formats carries reference or alternate alleles, so genotypes are
classified from the two-character allele pair alone.
"""

from __future__ import annotations

import csv
import logging
from pathlib import Path

from allelecompat.genotype import Coordinate, normalize_chromosome, parse_genotype
from allelecompat.parsing import (
    genome_build_from_comment,
    open_text,
    read_lines,
    parse_position,
    require_columns,
    sample_id_from_path,
)
from allelecompat.sample import FileFormat, ParsedGeneticData, Variant

logger = logging.getLogger(__name__)

# rsid, chromosome, position, genotype
REQUIRED_COLUMNS = 4


class ConsumerParser:
    """
    Line-oriented parser shared by the consumer dialects.

    ``#`` lines are comments and may carry the genome build; subclasses
    define how a line is split and which column-header rows are skipped.
    """

    file_format = FileFormat.UNKNOWN
    dialect = "consumer"

    def parse(self, path: Path | str) -> ParsedGeneticData:
        """
        Parse a consumer raw data file.

        Args:
            path: Path to raw data file

        Returns:
            Finalized ParsedGeneticData

        Raises:
            ParseError: If the file cannot be read or a data line is malformed
        """
        path = Path(path)
        data = ParsedGeneticData(sample_id_from_path(path), path, self.file_format)

        with open_text(path) as f:
            for line_no, raw in enumerate(read_lines(f, path), start=1):
                line = raw.strip()
                if not line:
                    continue
                if line.startswith("#"):
                    build = genome_build_from_comment(line)
                    if build:
                        data.metadata.genome_build = build
                    continue

                fields = self.split(line)
                if self.is_header_row(fields):
                    continue
                data.add_variant(self._parse_fields(fields, path, line_no))

        data.finalize()
        logger.debug("Parsed %d %s records from %s", len(data), self.dialect, path)
        return data

    def split(self, line: str) -> list[str]:
        raise NotImplementedError

    def is_header_row(self, fields: list[str]) -> bool:
        return False

    def genotype_token(self, fields: list[str]) -> str:
        return fields[3].strip()

    def _parse_fields(self, fields: list[str], path: Path, line_no: int) -> Variant:
        require_columns(fields, REQUIRED_COLUMNS, path, line_no, self.dialect)

        rsid = fields[0].strip()
        return Variant(
            coordinate=Coordinate(
                normalize_chromosome(fields[1]),
                parse_position(fields[2], path, line_no),
            ),
            rsid=rsid,
            genotype=parse_genotype(self.genotype_token(fields)),
        )


class TwentyThreeAndMeParser(ConsumerParser):
    """Parser for 23andMe raw data (tab-delimited; column header is a comment)."""

    file_format = FileFormat.TWENTYTHREE_AND_ME
    dialect = "23andMe"

    def split(self, line: str) -> list[str]:
        return line.split("\t")


class AncestryDNAParser(ConsumerParser):
    """
    Parser for AncestryDNA raw data (comma-delimited).

    The genotype is the first two characters of the fourth column, with a
    missing character read as "N".
    """

    file_format = FileFormat.ANCESTRY_DNA
    dialect = "AncestryDNA"

    def split(self, line: str) -> list[str]:
        return line.split(",")

    def is_header_row(self, fields: list[str]) -> bool:
        return fields[0].strip().lower() == "rsid"

    def genotype_token(self, fields: list[str]) -> str:
        token = fields[3].strip()
        return (token + "NN")[:2]


class MyHeritageParser(ConsumerParser):
    """Parser for MyHeritage raw data (comma-delimited, quoted fields)."""

    file_format = FileFormat.MYHERITAGE
    dialect = "MyHeritage"

    def split(self, line: str) -> list[str]:
        return next(csv.reader([line]))

    def is_header_row(self, fields: list[str]) -> bool:
        return fields[0].strip().upper() == "RSID"
