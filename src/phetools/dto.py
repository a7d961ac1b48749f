"""
Plain data-transfer records.

These cross the boundary to the curation front end and back. They carry raw
strings only; validation happens when a DTO is turned into a row or a
template.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

from .errors import TemplateError


class TemplateType(enum.Enum):
    """One disease and one gene, or two diseases with one gene each."""

    MENDELIAN = "mendelian"
    MELDED = "melded"


@dataclass
class HeaderDupletDto:
    h1: str
    h2: str


@dataclass
class HpoTermDto:
    """An HPO column together with one case's value for it."""

    term_id: str
    label: str
    entry: str = "na"


@dataclass
class CellDto:
    value: str


@dataclass
class IndividualBundleDto:
    pmid: str
    title: str
    individual_id: str
    comment: str
    age_of_onset: str
    age_at_last_encounter: str
    deceased: str
    sex: str


@dataclass
class DiseaseDto:
    disease_id: str
    disease_label: str


@dataclass
class GeneTranscriptDto:
    hgnc_id: str
    gene_symbol: str
    transcript: str


@dataclass
class GeneVariantBundleDto:
    hgnc_id: str
    gene_symbol: str
    transcript: str
    allele1: str
    allele2: str
    variant_comment: str


@dataclass
class DiseaseGeneDto:
    """Seed of a new template: which disease(s) and gene(s) it curates."""

    template_type: TemplateType
    disease_dto_list: list[DiseaseDto]
    gene_transcript_dto_list: list[GeneTranscriptDto]


@dataclass
class RowDto:
    individual_dto: IndividualBundleDto
    disease_dto_list: list[DiseaseDto]
    gene_var_dto_list: list[GeneVariantBundleDto]
    hpo_data: list[CellDto] = field(default_factory=list)


@dataclass
class TemplateDto:
    cohort_type: TemplateType
    hpo_headers: list[HeaderDupletDto]
    rows: list[RowDto]

    def get_disease_dto_list(self) -> list[DiseaseDto]:
        """
        The disease(s) shared by every row.

        Raises ``TemplateError`` if the template has no rows or the rows disagree.
        """
        if not self.rows:
            raise TemplateError("Cannot determine diseases of a template without rows")
        first = self.rows[0].disease_dto_list
        for i, row in enumerate(self.rows[1:], start=1):
            if row.disease_dto_list != first:
                raise TemplateError(f"Row {i} has diseases {row.disease_dto_list} but row 0 has {first}")
        return list(first)
