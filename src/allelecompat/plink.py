"""
PLINK genotyping-array parsers.

Supports the text PED/MAP pair and the BED/BIM/FAM companion files. For
BED/BIM/FAM only the marker (BIM) and individual (FAM) definitions are read:
the packed .bed genotype matrix is not decoded, and the emitted variants
carry a fixed placeholder genotype.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
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

# FamilyID IndividualID PaternalID MaternalID Sex Phenotype
PED_LEADING_COLUMNS = 6
MAP_COLUMNS = 4
BIM_COLUMNS = 6
FAM_COLUMNS = 2

# PLINK missing allele code
MISSING_ALLELE = "0"

# BED/BIM/FAM placeholder variants
PLACEHOLDER_MARKER_LIMIT = 100
PLACEHOLDER_REF = "A"
PLACEHOLDER_ALT = "T"
PLACEHOLDER_GENOTYPE = "0/1"


@dataclass
class Marker:
    """A marker definition from a MAP or BIM file."""

    rsid: str
    chromosome: str
    position: int


class PlinkParser:
    """
    Parser for PLINK PED/MAP and BED/BIM/FAM inputs.

    Any member of a file set may be passed; the companion files are located
    by swapping the extension. The PED pair is preferred when a .ped file
    exists.
    """

    def parse(self, path: Path | str) -> ParsedGeneticData:
        """
        Parse a PLINK file set.

        Args:
            path: Path to any file of the set (.ped, .map, .bed, .bim, .fam)

        Returns:
            Finalized ParsedGeneticData

        Raises:
            ParseError: If a companion file is missing or malformed
        """
        path = Path(path)
        if path.suffix.lower() == ".ped" or path.with_suffix(".ped").exists():
            return self.parse_ped(path)
        return self.parse_bed(path)

    def parse_ped(self, path: Path | str) -> ParsedGeneticData:
        """
        Parse a PED/MAP pair, keeping only the first individual.

        PED genotype columns hold two allele tokens per marker, in MAP order.
        """
        path = Path(path)
        ped_path = path.with_suffix(".ped")
        markers = read_map(path.with_suffix(".map"))

        data = ParsedGeneticData(sample_id_from_path(path), path, FileFormat.PLINK_PED)
        required = PED_LEADING_COLUMNS + 2 * len(markers)

        with open_text(ped_path) as f:
            for line_no, raw in enumerate(read_lines(f, ped_path), start=1):
                parts = raw.split()
                if not parts:
                    continue
                require_columns(parts, required, ped_path, line_no, "PED")

                data.metadata.sample_id = parts[1]
                for i, marker in enumerate(markers):
                    allele1 = parts[PED_LEADING_COLUMNS + 2 * i]
                    allele2 = parts[PED_LEADING_COLUMNS + 2 * i + 1]
                    data.add_variant(
                        Variant(
                            coordinate=Coordinate(marker.chromosome, marker.position),
                            rsid=marker.rsid,
                            genotype=_ped_genotype(allele1, allele2),
                        )
                    )
                break

        data.finalize()
        logger.debug("Parsed %d markers for %s from %s", len(data), data.sample_id, ped_path)
        return data

    def parse_bed(self, path: Path | str) -> ParsedGeneticData:
        """
        Read BIM/FAM definitions for a BED file set.

        The first FAM individual becomes the sample. The first
        PLACEHOLDER_MARKER_LIMIT BIM markers are emitted as heterozygous
        placeholders; genotypes in the .bed matrix are not decoded.
        """
        path = Path(path)
        markers = read_bim(path.with_suffix(".bim"))
        individuals = read_fam(path.with_suffix(".fam"))

        data = ParsedGeneticData(sample_id_from_path(path), path, FileFormat.PLINK_BED)
        if individuals:
            data.metadata.sample_id = individuals[0]

        genotype = parse_genotype(PLACEHOLDER_GENOTYPE, PLACEHOLDER_REF, (PLACEHOLDER_ALT,))
        for marker in markers[:PLACEHOLDER_MARKER_LIMIT]:
            data.add_variant(
                Variant(
                    coordinate=Coordinate(marker.chromosome, marker.position),
                    rsid=marker.rsid,
                    ref=PLACEHOLDER_REF,
                    alt=(PLACEHOLDER_ALT,),
                    genotype=genotype,
                )
            )

        data.finalize()
        logger.debug(
            "Read %d BIM markers (%d emitted) for %s", len(markers), len(data), data.sample_id
        )
        return data


def _ped_genotype(allele1: str, allele2: str) -> Genotype:
    if allele1 == MISSING_ALLELE and allele2 == MISSING_ALLELE:
        return parse_genotype("./.")
    return parse_genotype(allele1 + allele2)


def _read_markers(path: Path, minimum: int, dialect: str) -> list[Marker]:
    """Read chromosome/id/position triples from a MAP or BIM file."""
    markers: list[Marker] = []
    with open_text(path) as f:
        for line_no, raw in enumerate(read_lines(f, path), start=1):
            parts = raw.split()
            if not parts:
                continue
            require_columns(parts, minimum, path, line_no, dialect)
            markers.append(
                Marker(
                    rsid=parts[1],
                    chromosome=normalize_chromosome(parts[0]),
                    position=parse_position(parts[3], path, line_no),
                )
            )
    return markers


def read_map(path: Path | str) -> list[Marker]:
    """Read a PLINK MAP file (chromosome, id, genetic distance, position)."""
    return _read_markers(Path(path), MAP_COLUMNS, "MAP")


def read_bim(path: Path | str) -> list[Marker]:
    """Read a PLINK BIM file (MAP columns plus allele 1 and allele 2)."""
    return _read_markers(Path(path), BIM_COLUMNS, "BIM")


def read_fam(path: Path | str) -> list[str]:
    """Read individual IDs from a PLINK FAM file."""
    path = Path(path)
    individuals: list[str] = []
    with open_text(path) as f:
        for line_no, raw in enumerate(read_lines(f, path), start=1):
            parts = raw.split()
            if not parts:
                continue
            require_columns(parts, FAM_COLUMNS, path, line_no, "FAM")
            individuals.append(parts[1])
    return individuals
