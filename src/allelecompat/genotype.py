"""
Coordinate and genotype normalization.

Chromosome naming, genotype classification from raw VCF or consumer
tokens, and the pairwise genotype compatibility predicate shared by every
comparative analyzer.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Sequence


@dataclass(frozen=True)
class Coordinate:
    """
    A genomic position used as the identity key of a variant.

    Attributes:
        chromosome: Normalized chromosome name (see normalize_chromosome)
        position: 1-based genomic position
    """

    chromosome: str
    position: int

    def __str__(self) -> str:
        return f"{self.chromosome}:{self.position}"


# Mitochondrial spellings seen across VCF, consumer exports and PLINK (26)
MITOCHONDRIAL_ALIASES = frozenset(["M", "MT", "MITO", "CHRM", "26"])
MITOCHONDRIAL = "MT"


def normalize_chromosome(raw: str) -> str:
    """
    Normalize a chromosome token.

    Strips a "chr" prefix in any casing, upper-cases the remainder and maps
    every mitochondrial alias to "MT". Normalizing an already normalized
    name returns it unchanged.

    Args:
        raw: Chromosome as written in the source file

    Returns:
        Canonical chromosome name, e.g. "1", "X", "MT"
    """
    name = raw.strip()
    if name[:3].lower() == "chr":
        name = name[3:]
    name = name.upper()
    if name in MITOCHONDRIAL_ALIASES:
        return MITOCHONDRIAL
    return name


class Genotype(Enum):
    """Classification of the allele pair observed at one coordinate."""

    HOMOZYGOUS_REFERENCE = "HomozygousReference"  # ref/ref
    HOMOZYGOUS_ALTERNATE = "HomozygousAlternate"  # alt/alt
    HETEROZYGOUS = "Heterozygous"  # ref/alt
    HETEROZYGOUS_ALT_ALT = "HeterozygousAltAlt"  # alt1/alt2, multi-allelic
    NO_CALL = "NoCall"  # ./. or missing
    PARTIAL = "Partial"  # incomplete or ungrammatical

    @property
    def is_homozygous(self) -> bool:
        return self in (Genotype.HOMOZYGOUS_REFERENCE, Genotype.HOMOZYGOUS_ALTERNATE)

    @property
    def is_heterozygous(self) -> bool:
        return self in (Genotype.HETEROZYGOUS, Genotype.HETEROZYGOUS_ALT_ALT)

    @property
    def is_no_call(self) -> bool:
        return self in (Genotype.NO_CALL, Genotype.PARTIAL)


_EXACT_GENOTYPES: dict[str, Genotype] = {
    "0/0": Genotype.HOMOZYGOUS_REFERENCE,
    "0|0": Genotype.HOMOZYGOUS_REFERENCE,
    "AA": Genotype.HOMOZYGOUS_REFERENCE,
    "1/1": Genotype.HOMOZYGOUS_ALTERNATE,
    "1|1": Genotype.HOMOZYGOUS_ALTERNATE,
    "BB": Genotype.HOMOZYGOUS_ALTERNATE,
    "0/1": Genotype.HETEROZYGOUS,
    "0|1": Genotype.HETEROZYGOUS,
    "1/0": Genotype.HETEROZYGOUS,
    "1|0": Genotype.HETEROZYGOUS,
    "AB": Genotype.HETEROZYGOUS,
    "BA": Genotype.HETEROZYGOUS,
    "": Genotype.NO_CALL,
    "./.": Genotype.NO_CALL,
    ".|.": Genotype.NO_CALL,
}

_ALLELE_SEPARATORS = re.compile(r"[/|]")

# Consumer exports write "--" for a no-call
MISSING_ALLELE_MARKERS = frozenset(["-", "."])


def parse_genotype(
    raw: str,
    reference: str = "",
    alternates: Sequence[str] = (),
) -> Genotype:
    """
    Classify a raw genotype token.

    Index pairs ("0/1", "1|2") are classified by allele index. Two-character
    allele pairs as written by consumer exports ("AG", "TT") are classified
    by comparing the characters with each other and with the reference.

    Args:
        raw: Genotype token, e.g. "0/1", "1|1", "./.", "AG"
        reference: Reference allele, empty when the format has none
        alternates: Alternate alleles (kept for callers that decode alleles)

    Returns:
        Genotype classification
    """
    token = raw.strip()

    exact = _EXACT_GENOTYPES.get(token)
    if exact is not None:
        return exact

    if "/" in token or "|" in token:
        parts = _ALLELE_SEPARATORS.split(token)
        if len(parts) != 2:
            return Genotype.NO_CALL
        first, second = parts
        if first == second:
            if first == "0":
                return Genotype.HOMOZYGOUS_REFERENCE
            return Genotype.HOMOZYGOUS_ALTERNATE
        if first == "0" or second == "0":
            return Genotype.HETEROZYGOUS
        return Genotype.HETEROZYGOUS_ALT_ALT

    if len(token) == 2:
        return _classify_allele_pair(token[0], token[1], reference)

    return Genotype.PARTIAL


def _classify_allele_pair(first: str, second: str, reference: str) -> Genotype:
    """Classify a consumer-style pair of allele characters."""
    missing = (first in MISSING_ALLELE_MARKERS) + (second in MISSING_ALLELE_MARKERS)
    if missing == 2:
        return Genotype.NO_CALL
    if missing == 1:
        return Genotype.PARTIAL

    first = first.upper()
    second = second.upper()
    if first == second:
        if reference and first == reference.upper():
            return Genotype.HOMOZYGOUS_REFERENCE
        return Genotype.HOMOZYGOUS_ALTERNATE
    return Genotype.HETEROZYGOUS


_COMPATIBLE_PAIRS = frozenset([
    (Genotype.HOMOZYGOUS_REFERENCE, Genotype.HOMOZYGOUS_REFERENCE),
    (Genotype.HOMOZYGOUS_REFERENCE, Genotype.HETEROZYGOUS),
    (Genotype.HETEROZYGOUS, Genotype.HOMOZYGOUS_REFERENCE),
    (Genotype.HOMOZYGOUS_ALTERNATE, Genotype.HOMOZYGOUS_ALTERNATE),
    (Genotype.HOMOZYGOUS_ALTERNATE, Genotype.HETEROZYGOUS),
    (Genotype.HETEROZYGOUS, Genotype.HOMOZYGOUS_ALTERNATE),
    (Genotype.HETEROZYGOUS, Genotype.HETEROZYGOUS),
])

# Policy for pairs missing from the table above
UNLISTED_PAIRS_COMPATIBLE = True


def is_compatible(a: Genotype, b: Genotype) -> bool:
    """
    Check whether two genotypes can share an allele.

    A no-call on either side is a wildcard. Pairs sharing at least one
    allele are compatible. Pairs outside the table (multi-allelic, partial,
    hom-ref against hom-alt) are also treated as compatible; see DESIGN.md
    before tightening this.

    Args:
        a: First genotype
        b: Second genotype

    Returns:
        True if the genotypes are considered compatible
    """
    if a is Genotype.NO_CALL or b is Genotype.NO_CALL:
        return True
    return (a, b) in _COMPATIBLE_PAIRS or UNLISTED_PAIRS_COMPATIBLE


class MutationType(Enum):
    """Kind of single-nucleotide change, by base chemistry."""

    TRANSITION = "transition"
    TRANSVERSION = "transversion"


PURINES = frozenset("AG")
PYRIMIDINES = frozenset("CT")


def mutation_class(ref: str, alt: str) -> MutationType | None:
    """
    Classify a REF>ALT change as a transition or transversion.

    A change within the same ring class (A/G or C/T) is a transition;
    a change across classes is a transversion. Case is ignored. Returns
    None unless both alleles are distinct bases from ACGT.
    """
    ref = ref.upper()
    alt = alt.upper()
    bases = PURINES | PYRIMIDINES
    if ref == alt or ref not in bases or alt not in bases:
        return None
    if {ref, alt} <= PURINES or {ref, alt} <= PYRIMIDINES:
        return MutationType.TRANSITION
    return MutationType.TRANSVERSION
