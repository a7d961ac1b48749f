"""
Decoded views over the fixed column ranges of a template row.

- ``IndividualBundle``: columns 0-3 and 12-15 (publication, individual, ages, status)
- ``DiseaseBundle``: columns 4-5
- ``GeneVariantBundle``: columns 6-11

Bundles hold plain strings and convert losslessly to and from their DTOs.
``qc`` checks each value against the column duplet at its position.
"""

from __future__ import annotations

import typing
from dataclasses import dataclass, fields

from .dto import DiseaseDto, GeneVariantBundleDto, IndividualBundleDto
from .errors import PhetoolsError
from .validation import ValidationErrors

if typing.TYPE_CHECKING:
    from .header_duplet_row import HeaderDupletRow


class _Bundle:
    # matrix column index of each dataclass field, in field order
    COLUMNS: typing.ClassVar[tuple[int, ...]] = ()

    @classmethod
    def from_row(cls, row: typing.Sequence[str]):
        return cls(*(row[i] for i in cls.COLUMNS))

    def items(self) -> list[tuple[int, str]]:
        return [(i, getattr(self, f.name)) for i, f in zip(self.COLUMNS, fields(self))]

    def qc(self, header: "HeaderDupletRow") -> ValidationErrors:
        verrs = ValidationErrors()
        for i, value in self.items():
            duplet = header.get_duplet(i)
            try:
                duplet.qc_cell(value)
            except PhetoolsError as e:
                verrs.push(type(e)(f"{duplet.row1}: {e}"))
        return verrs


@dataclass(frozen=True)
class IndividualBundle(_Bundle):
    COLUMNS: typing.ClassVar[tuple[int, ...]] = (0, 1, 2, 3, 12, 13, 14, 15)

    pmid: str
    title: str
    individual_id: str
    comment: str
    age_of_onset: str
    age_at_last_encounter: str
    deceased: str
    sex: str

    @staticmethod
    def from_dto(dto: IndividualBundleDto) -> "IndividualBundle":
        return IndividualBundle(
            pmid=dto.pmid,
            title=dto.title,
            individual_id=dto.individual_id,
            comment=dto.comment,
            age_of_onset=dto.age_of_onset,
            age_at_last_encounter=dto.age_at_last_encounter,
            deceased=dto.deceased,
            sex=dto.sex,
        )

    def to_dto(self) -> IndividualBundleDto:
        return IndividualBundleDto(
            pmid=self.pmid,
            title=self.title,
            individual_id=self.individual_id,
            comment=self.comment,
            age_of_onset=self.age_of_onset,
            age_at_last_encounter=self.age_at_last_encounter,
            deceased=self.deceased,
            sex=self.sex,
        )


@dataclass(frozen=True)
class DiseaseBundle(_Bundle):
    COLUMNS: typing.ClassVar[tuple[int, ...]] = (4, 5)

    disease_id: str
    disease_label: str

    @staticmethod
    def from_dto(dto: DiseaseDto) -> "DiseaseBundle":
        return DiseaseBundle(dto.disease_id, dto.disease_label)

    def to_dto(self) -> DiseaseDto:
        return DiseaseDto(disease_id=self.disease_id, disease_label=self.disease_label)


@dataclass(frozen=True)
class GeneVariantBundle(_Bundle):
    COLUMNS: typing.ClassVar[tuple[int, ...]] = (6, 7, 8, 9, 10, 11)

    hgnc_id: str
    gene_symbol: str
    transcript: str
    allele1: str
    allele2: str
    variant_comment: str

    @staticmethod
    def from_dto(dto: GeneVariantBundleDto) -> "GeneVariantBundle":
        return GeneVariantBundle(
            dto.hgnc_id,
            dto.gene_symbol,
            dto.transcript,
            dto.allele1,
            dto.allele2,
            dto.variant_comment,
        )

    def to_dto(self) -> GeneVariantBundleDto:
        return GeneVariantBundleDto(
            hgnc_id=self.hgnc_id,
            gene_symbol=self.gene_symbol,
            transcript=self.transcript,
            allele1=self.allele1,
            allele2=self.allele2,
            variant_comment=self.variant_comment,
        )

    def alleles(self) -> list[str]:
        """Allele strings that name a variant (``na`` in allele_2 does not)."""
        return [a for a in (self.allele1, self.allele2) if a != "na"]
