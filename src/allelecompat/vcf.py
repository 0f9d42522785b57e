"""
VCF file parsing.

Reads plain or gzipped VCF text line by line into a ParsedGeneticData,
taking the genotype of the first sample column.
"""

from __future__ import annotations

import logging
from pathlib import Path

from allelecompat.genotype import Coordinate, Genotype, normalize_chromosome, parse_genotype
from allelecompat.parsing import (
    open_text,
    read_lines,
    parse_position,
    require_columns,
    sample_id_from_path,
)
from allelecompat.sample import FileFormat, ParsedGeneticData, Variant

logger = logging.getLogger(__name__)

# CHROM POS ID REF ALT QUAL FILTER INFO
REQUIRED_COLUMNS = 8


class VCFParser:
    """
    Parser for Variant Call Format files.

    Header lines (``#``) may set the genome build (``##reference=``) and the
    sample identifier (first sample column of ``#CHROM``). Each data line
    becomes one Variant.
    """

    file_format = FileFormat.VCF

    def parse(self, path: Path | str) -> ParsedGeneticData:
        """
        Parse a VCF file.

        Args:
            path: Path to VCF file (can be gzipped)

        Returns:
            Finalized ParsedGeneticData

        Raises:
            ParseError: If the file cannot be read or a data line is malformed
        """
        path = Path(path)
        data = ParsedGeneticData(sample_id_from_path(path), path, self.file_format)

        with open_text(path) as f:
            for line_no, raw in enumerate(read_lines(f, path), start=1):
                line = raw.rstrip("\r\n")
                if not line:
                    continue
                if line.startswith("#"):
                    self._parse_header_line(line, data)
                    continue
                data.add_variant(self._parse_variant_line(line, path, line_no))

        data.finalize()
        logger.debug("Parsed %d variants from %s", len(data), path)
        return data

    @staticmethod
    def _parse_header_line(line: str, data: ParsedGeneticData) -> None:
        """Update sample metadata from a header line."""
        if line.startswith("##reference="):
            data.metadata.genome_build = line[len("##reference="):].strip()
        elif line.startswith("#CHROM"):
            columns = line.lstrip("#").split("\t")
            if len(columns) >= 10:
                data.metadata.sample_id = columns[9]

    def _parse_variant_line(self, line: str, path: Path, line_no: int) -> Variant:
        """Convert one VCF data line to a Variant."""
        parts = line.split("\t")
        require_columns(parts, REQUIRED_COLUMNS, path, line_no, "VCF")

        chrom, pos, snp_id, ref, alt, qual, filt, info = parts[:REQUIRED_COLUMNS]

        alternates = tuple(alt.split(",")) if alt != "." else ()

        genotype = Genotype.NO_CALL
        if len(parts) >= 10:
            genotype = self._parse_genotype_field(parts[8], parts[9], ref, alternates)

        return Variant(
            coordinate=Coordinate(normalize_chromosome(chrom), parse_position(pos, path, line_no)),
            rsid=None if snp_id == "." else snp_id,
            ref=ref,
            alt=alternates,
            genotype=genotype,
            quality=self._parse_quality(qual),
            filter=None if filt == "." else filt,
            info=parse_info_field(info),
        )

    @staticmethod
    def _parse_quality(qual: str) -> float | None:
        if qual == ".":
            return None
        try:
            return float(qual)
        except ValueError:
            return 0.0

    @staticmethod
    def _parse_genotype_field(
        format_str: str,
        sample_str: str,
        ref: str,
        alternates: tuple[str, ...],
    ) -> Genotype:
        """Locate GT in the FORMAT/SAMPLE pair and classify it."""
        format_fields = format_str.split(":")
        sample_fields = sample_str.split(":")

        if "GT" not in format_fields:
            return Genotype.NO_CALL
        gt_index = format_fields.index("GT")
        if gt_index >= len(sample_fields):
            return Genotype.NO_CALL

        return parse_genotype(sample_fields[gt_index], ref, alternates)


def parse_info_field(info: str) -> dict[str, str]:
    """
    Parse a VCF INFO column.

    ``key=value`` entries keep their value; bare flags map to "true".
    """
    entries: dict[str, str] = {}
    if info == ".":
        return entries

    for item in info.split(";"):
        if not item:
            continue
        if "=" in item:
            key, value = item.split("=", 1)
            entries[key] = value
        else:
            entries[item] = "true"
    return entries


def read_vcf(path: Path | str) -> ParsedGeneticData:
    """
    Convenience function to parse a VCF file.

    Args:
        path: Path to VCF file

    Returns:
        Finalized ParsedGeneticData
    """
    return VCFParser().parse(path)
