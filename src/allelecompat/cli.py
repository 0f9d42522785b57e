"""
Command-line interface for allelecompat.

Provides pipeline-friendly CLI with proper exit codes and JSON output.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import TextIO

import click

from allelecompat import __version__
from allelecompat.config import AnalysisConfig, AnalysisType
from allelecompat.parsers import SUPPORTED_FORMATS
from allelecompat.parsing import FileAccessError
from allelecompat.pipeline import run_analysis
from allelecompat.pool import WorkerPool
from allelecompat.results import AnalysisResults, OrganType

LOG_LEVELS = [logging.WARNING, logging.INFO, logging.DEBUG]


def _configure_logging(verbose: int) -> None:
    level = LOG_LEVELS[min(verbose, len(LOG_LEVELS) - 1)]
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


@click.group()
@click.version_option(version=__version__, prog_name="allelecompat")
def main() -> None:
    """
    allelecompat: Comparative genetic analysis.

    Parses consumer, array and sequencing genotype files and compares a
    patient against a set of samples: transplant compatibility, disease
    risk markers, HLA matching, shared segments and genotype similarity.
    """
    pass


@main.command()
@click.argument("patient", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--compare",
    "-c",
    "comparisons",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    multiple=True,
    required=True,
    help="Comparison sample file (repeatable)",
)
@click.option(
    "--threads",
    "-t",
    type=click.IntRange(min=0),
    default=0,
    help="Worker threads [default: 0 = one per CPU]",
)
@click.option(
    "--analysis",
    "-a",
    type=click.Choice([t.value for t in AnalysisType]),
    default=AnalysisType.ALL.value,
    help="Analysis to run [default: all]",
)
@click.option(
    "--organ",
    type=click.Choice([o.value for o in OrganType]),
    default=None,
    help="Target organ label for transplant compatibility",
)
@click.option(
    "--min-cm",
    type=click.FloatRange(min=0),
    default=7.0,
    help="Minimum shared cM for IBD reporting [default: 7.0]",
)
@click.option(
    "--min-segment-length",
    type=click.IntRange(min=1),
    default=500,
    help="Minimum supporting SNPs per IBD segment [default: 500]",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Output JSON file [default: stdout]",
)
@click.option("--verbose", "-v", count=True, help="Increase log verbosity (-v, -vv)")
def analyze(
    patient: Path,
    comparisons: tuple[Path, ...],
    threads: int,
    analysis: str,
    organ: str | None,
    min_cm: float,
    min_segment_length: int,
    output: Path | None,
    verbose: int,
) -> None:
    """
    Compare a patient file against one or more sample files.
    """
    _configure_logging(verbose)

    config = AnalysisConfig(
        patient=patient,
        comparisons=list(comparisons),
        threads=threads,
        analysis=AnalysisType(analysis),
        organ=OrganType(organ) if organ else None,
        min_cm=min_cm,
        min_segment_length=min_segment_length,
    )

    try:
        click.echo(
            f"Analyzing {patient} against {len(comparisons)} sample(s)...", err=True
        )
        with WorkerPool(config.threads) as pool:
            results = run_analysis(config, pool)

        if output:
            with open(output, "w") as f:
                _write_results(results, f)
            click.echo(f"Results written to {output}", err=True)
        else:
            _write_results(results, sys.stdout)

        sys.exit(0)

    except (FileNotFoundError, FileAccessError) as e:
        click.echo(f"Error: File not found: {e}", err=True)
        sys.exit(10)
    except ValueError as e:
        click.echo(f"Error: Invalid input: {e}", err=True)
        sys.exit(11)
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(99)


def _write_results(results: AnalysisResults, file: TextIO) -> None:
    """Write analysis results as JSON."""
    json.dump(results.to_dict(), file, indent=2)
    file.write("\n")


@main.command()
def formats() -> None:
    """
    List supported input formats.
    """
    for name, extensions, description in SUPPORTED_FORMATS:
        click.echo(f"{name:<20} {extensions:<18} {description}")


if __name__ == "__main__":
    main()
