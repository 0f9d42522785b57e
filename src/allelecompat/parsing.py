"""
Shared helpers for the format parsers.

Error types, transparent gzip opening, delimiter detection and the small
field validators every dialect uses.
"""

from __future__ import annotations

import gzip
import re
import zlib
from pathlib import Path
from typing import Iterator, TextIO


class ParseError(ValueError):
    """A genetic data file could not be parsed."""


class FileAccessError(ParseError):
    """The input file could not be opened or read."""


class MalformedLineError(ParseError):
    """A data line has too few columns or a non-numeric position."""

    def __init__(self, message: str, path: Path | str | None = None, line_no: int | None = None):
        self.path = Path(path) if path is not None else None
        self.line_no = line_no
        location = ""
        if self.path is not None:
            location = f"{self.path}"
            if line_no is not None:
                location += f":{line_no}"
            location += ": "
        super().__init__(f"{location}{message}")


class UnsupportedFormatError(ParseError):
    """The file format could not be detected or is not supported."""


class MissingColumnError(ParseError):
    """A delimited file lacks a required column."""


def open_text(path: Path | str) -> TextIO:
    """
    Open a text file for reading, decompressing gzip transparently.

    Args:
        path: Path to the file (``.gz`` suffix selects gzip)

    Returns:
        Open text handle

    Raises:
        FileAccessError: If the file cannot be opened
    """
    path = Path(path)
    try:
        if path.name.endswith(".gz"):
            return gzip.open(path, "rt", encoding="utf-8", newline="")
        return open(path, encoding="utf-8", newline="")
    except OSError as e:
        raise FileAccessError(f"Cannot open {path}: {e}") from e


# Raised mid-stream by undecodable text or damaged gzip data
READ_ERRORS = (OSError, UnicodeDecodeError, EOFError, zlib.error)


def read_lines(handle: TextIO, path: Path | str) -> Iterator[str]:
    """
    Iterate the lines of an open handle from open_text.

    Raises:
        FileAccessError: If the file cannot be read or decoded
    """
    try:
        for line in handle:
            yield line
    except READ_ERRORS as e:
        raise FileAccessError(f"Cannot read {path}: {e}") from e


def detect_delimiter(line: str) -> str:
    """Return tab if the line contains one, otherwise comma."""
    return "\t" if "\t" in line else ","


def parse_position(token: str, path: Path | str, line_no: int) -> int:
    """
    Parse a genomic position.

    Raises:
        MalformedLineError: If the token is not an unsigned integer
    """
    value = token.strip()
    if not (value.isascii() and value.isdigit()):
        raise MalformedLineError(f"Invalid position: {token!r}", path, line_no)
    return int(value)


def require_columns(
    fields: list[str],
    minimum: int,
    path: Path | str,
    line_no: int,
    dialect: str,
) -> None:
    """Raise MalformedLineError when a line has fewer than ``minimum`` fields."""
    if len(fields) < minimum:
        raise MalformedLineError(
            f"Invalid {dialect} line: expected at least {minimum} columns, got {len(fields)}",
            path,
            line_no,
        )


def sample_id_from_path(path: Path | str) -> str:
    """Derive a sample identifier from a file name (``NA12878.vcf.gz`` -> ``NA12878``)."""
    name = Path(path).name
    if name.endswith(".gz"):
        name = name[: -len(".gz")]
    stem = Path(name).stem
    return stem or "unknown"


_BUILD_PATTERNS = [
    (re.compile(r"\b(?:grch|build\s*)37\b|\bhg19\b", re.IGNORECASE), "GRCh37"),
    (re.compile(r"\b(?:grch|build\s*)38\b|\bhg38\b", re.IGNORECASE), "GRCh38"),
    (re.compile(r"\b(?:ncbi|build\s*)36\b|\bhg18\b", re.IGNORECASE), "NCBI36"),
]


def genome_build_from_comment(line: str) -> str | None:
    """
    Extract a genome build from a free-text header comment.

    Consumer exports state the build in prose, e.g.
    "# ... human assembly build 37 (also known as Annotation Release 104)".

    Returns:
        "GRCh37", "GRCh38", "NCBI36" or None if no build is mentioned
    """
    for pattern, build in _BUILD_PATTERNS:
        if pattern.search(line):
            return build
    return None
