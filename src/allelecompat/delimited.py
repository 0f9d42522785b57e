"""
Generic delimited-table parser.

Reads tab- or comma-delimited genotype tables whose header row names the
columns. Chromosome and position columns are required; rsid, genotype (or
allele1 + allele2), reference and alternate columns are optional.
"""

from __future__ import annotations

import csv
import logging
from pathlib import Path

from allelecompat.genotype import Coordinate, Genotype, normalize_chromosome, parse_genotype
from allelecompat.parsing import (
    MalformedLineError,
    MissingColumnError,
    detect_delimiter,
    open_text,
    parse_position,
    read_lines,
    sample_id_from_path,
)
from allelecompat.sample import FileFormat, ParsedGeneticData, Variant

logger = logging.getLogger(__name__)

# Accepted header spellings (lower-case) for each field
COLUMN_ALIASES: dict[str, tuple[str, ...]] = {
    "chromosome": ("chromosome", "chr", "chrom"),
    "position": ("position", "pos", "bp"),
    "rsid": ("rsid", "rs#", "snp"),
    "genotype": ("genotype", "gt"),
    "allele1": ("allele1",),
    "allele2": ("allele2",),
    "reference": ("reference", "ref"),
    "alternate": ("alternate", "alt"),
}

REQUIRED_FIELDS = ("chromosome", "position")


def map_columns(headers: list[str]) -> dict[str, int]:
    """
    Map header names to field indices, case-insensitively.

    Args:
        headers: Header row fields

    Returns:
        Dict of field name -> column index

    Raises:
        MissingColumnError: If chromosome or position is absent
    """
    alias_to_field = {
        alias: name for name, aliases in COLUMN_ALIASES.items() for alias in aliases
    }

    mapping: dict[str, int] = {}
    for i, header in enumerate(headers):
        name = alias_to_field.get(header.strip().lower())
        if name is not None and name not in mapping:
            mapping[name] = i

    missing = [f for f in REQUIRED_FIELDS if f not in mapping]
    if missing:
        raise MissingColumnError(
            f"Required columns (chromosome, position) not found; missing: {', '.join(missing)}"
        )
    return mapping


class DelimitedParser:
    """
    Parser for generic TSV/CSV genotype tables.

    Leading ``#`` comment lines are skipped; the first remaining line is the
    header and decides the delimiter.
    """

    def parse(self, path: Path | str) -> ParsedGeneticData:
        """
        Parse a delimited genotype table.

        Args:
            path: Path to the table

        Returns:
            Finalized ParsedGeneticData (format CSV or TSV by delimiter)

        Raises:
            MissingColumnError: If a required column is absent
            ParseError: If the file cannot be read or a data row is malformed
        """
        path = Path(path)

        with open_text(path) as f:
            lines = read_lines(f, path)
            header_line = ""
            header_no = 0
            for raw in lines:
                header_no += 1
                if raw.strip() and not raw.startswith("#"):
                    header_line = raw.rstrip("\r\n")
                    break

            if not header_line:
                raise MissingColumnError(f"{path}: no header row found")

            delimiter = detect_delimiter(header_line)
            file_format = FileFormat.TSV if delimiter == "\t" else FileFormat.CSV
            data = ParsedGeneticData(sample_id_from_path(path), path, file_format)

            columns = map_columns(next(csv.reader([header_line], delimiter=delimiter)))

            # line_num counts physical lines, including newlines inside quotes
            reader = csv.reader(lines, delimiter=delimiter)
            for row in reader:
                if not row or not any(field.strip() for field in row):
                    continue
                data.add_variant(
                    self._parse_row(row, columns, path, header_no + reader.line_num)
                )

        data.finalize()
        logger.debug("Parsed %d rows from %s", len(data), path)
        return data

    @staticmethod
    def _parse_row(
        row: list[str],
        columns: dict[str, int],
        path: Path,
        line_no: int,
    ) -> Variant:
        chrom_idx = columns["chromosome"]
        pos_idx = columns["position"]
        if chrom_idx >= len(row) or pos_idx >= len(row):
            raise MalformedLineError("Line has insufficient columns", path, line_no)

        def optional(name: str) -> str:
            idx = columns.get(name)
            if idx is None or idx >= len(row):
                return ""
            return row[idx].strip()

        rsid = optional("rsid")
        reference = optional("reference")
        alternate = optional("alternate")
        alternates = (alternate,) if alternate else ()

        if "genotype" in columns:
            genotype = parse_genotype(optional("genotype"), reference, alternates)
        elif "allele1" in columns and "allele2" in columns:
            genotype = parse_genotype(optional("allele1") + optional("allele2"), reference, alternates)
        else:
            genotype = Genotype.NO_CALL

        return Variant(
            coordinate=Coordinate(
                normalize_chromosome(row[chrom_idx]),
                parse_position(row[pos_idx], path, line_no),
            ),
            rsid=rsid if rsid and rsid != "." else None,
            ref=reference,
            alt=alternates,
            genotype=genotype,
        )
