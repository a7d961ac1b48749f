"""
Command-line interface for phetools.

  phetools qc -e TEMPLATE      validate a curation template workbook
  phetools arrange HP:... ...  print HPO terms in template column order
"""

import logging
import sys
import typing

import click
import hpotk
from stairval.notepad import create_notepad

from .errors import PhetoolsError, ValidationFailure
from .loader import load_template_matrix
from .ppt_template import PptTemplate
from .term_arranger import HpoTermArranger
from .validation import ValidationErrors
from .variant_manager import VariantManager


@click.group()
def main():
    """phetools: validate and arrange phenopacket curation templates."""
    pass


@main.command(name="qc")
@click.option(
    "-e",
    "--excel-path",
    "excel_file",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="path to the template workbook",
)
@click.option(
    "-hpo",
    "--custom-hpo",
    "hpo_path",
    type=click.Path(exists=True, dir_okay=False),
    help="HPO JSON file; when given, HPO column ids and labels are checked against it",
)
@click.option(
    "--check-variants/--no-check-variants",
    default=False,
    help="Also validate every allele with VariantValidator (network).",
)
@click.option(
    "--cache-dir",
    type=click.Path(file_okay=False),
    help="Cohort directory where validated variants are cached between runs",
)
@click.option("--verbose-logging", is_flag=True, help="Also emit debug logs to stderr")
@click.option(
    "--log-file-path",
    type=click.Path(dir_okay=False, writable=True),
    help="Append timestamped logs to this file",
)
def qc(
    excel_file: str,
    hpo_path: typing.Optional[str],
    check_variants: bool,
    cache_dir: typing.Optional[str],
    verbose_logging: bool,
    log_file_path: typing.Optional[str],
):
    """
    Load a curation template and report every problem found in it.
    Exits with status 1 if the template has errors.
    """
    _configure_logging(verbose_logging, log_file_path)
    logging.info(f"Checking template '{excel_file}'")

    hpo = _load_ontology(hpo_path) if hpo_path else None
    matrix = load_template_matrix(excel_file)

    notepad = create_notepad("template")
    template = None
    try:
        template = PptTemplate.from_string_matrix(matrix, hpo=hpo)
    except ValidationFailure as e:
        e.errors.to_notepad(notepad)
    except PhetoolsError as e:
        notepad.add_error(str(e))

    if template is not None and check_variants:
        template.validate_variants(VariantManager(cache_dir=cache_dir)).to_notepad(notepad)

    _report_issues(notepad)
    if notepad.has_errors(include_subsections=True):
        sys.exit(1)

    click.echo(
        f"Template OK: {template.phenopacket_count()} cases, "
        f"{template.header.hpo_count()} HPO columns "
        f"({template.disease_id}, {template.gene_symbol})"
    )


@main.command(name="arrange")
@click.argument("term_ids", nargs=-1, required=True)
@click.option(
    "-hpo",
    "--custom-hpo",
    "hpo_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="path to the HPO JSON file",
)
def arrange(term_ids: tuple[str, ...], hpo_path: str):
    """
    Print HPO terms in the order they get as template columns.
    """
    hpo = _load_ontology(hpo_path)

    verrs = ValidationErrors()
    arranged = HpoTermArranger(hpo).arrange_terms(term_ids, verrs)
    for tid in arranged:
        click.echo(f"{tid.value}\t{hpo.get_term(tid).name}")

    notepad = create_notepad("arrange")
    verrs.to_notepad(notepad)
    _report_issues(notepad)
    if notepad.has_errors(include_subsections=True):
        sys.exit(1)


def _configure_logging(verbose_logging: bool, log_file_path: typing.Optional[str]) -> None:
    handlers: list[logging.Handler] = []
    if log_file_path:
        handlers.append(logging.FileHandler(log_file_path, mode="a", encoding="utf-8"))
    if verbose_logging:
        handlers.append(logging.StreamHandler(sys.stderr))
    if handlers:
        logging.basicConfig(
            level=logging.DEBUG if verbose_logging else logging.INFO,
            format="%(asctime)s %(levelname)s %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            handlers=handlers,
        )


def _load_ontology(hpo_file) -> hpotk.MinimalOntology:
    return hpotk.load_minimal_ontology(str(hpo_file))


def _report_issues(notepad):
    if notepad.has_errors(include_subsections=True):
        click.echo("Errors found in template:")
        for err in notepad.errors():
            click.echo(f"- {err}")
    if notepad.has_warnings(include_subsections=True):
        click.echo("Warnings found in template:")
        for w in notepad.warnings():
            click.echo(f"- {w}")


if __name__ == "__main__":
    main()
