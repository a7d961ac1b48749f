"""
One case (phenopacket-to-be) of a template.

A ``PpktRow`` is the decoded form of one data row: an individual, one or two
diseases, one or two gene/variant bundles and the HPO cell values, aligned
with the HPO columns of the shared ``HeaderDupletRow``.

Header-change reconciliation
----------------------------
When HPO columns are added or reordered the template builds a new header
and calls ``update`` on every row. The old values are scattered into their
new positions and every column the row has never seen is filled with "na".
An old column missing from the new header cannot be reconciled; that is a
``TemplateError``, never silent data loss.
"""

from __future__ import annotations

import logging
import typing

from .bundles import DiseaseBundle, GeneVariantBundle, IndividualBundle
from .dto import (
    CellDto,
    DiseaseDto,
    GeneVariantBundleDto,
    HpoTermDto,
    IndividualBundleDto,
    RowDto,
)
from .errors import PhetoolsError, TemplateError
from .header_duplet_row import HPO_START, HeaderDupletRow
from .validation import ValidationErrors

logger = logging.getLogger(__name__)


def get_update_vector(old_ids: typing.Sequence[str], new_ids: typing.Sequence[str]) -> list[int]:
    """For each old term id, its position in ``new_ids``."""
    new_index = {tid: i for i, tid in enumerate(new_ids)}
    vector = []
    for tid in old_ids:
        if tid not in new_index:
            raise TemplateError(f"HPO column {tid} is missing from the updated header")
        vector.append(new_index[tid])
    return vector


def reorder_or_fill_na(
    old_values: typing.Sequence[str],
    update_vector: typing.Sequence[int],
    new_length: int,
) -> list[str]:
    if len(old_values) != len(update_vector):
        raise TemplateError(
            f"Cannot reorder {len(old_values)} values with an update vector of length {len(update_vector)}"
        )
    new_values = ["na"] * new_length
    for value, i in zip(old_values, update_vector):
        new_values[i] = value
    return new_values


class PpktRow:

    def __init__(
        self,
        header: HeaderDupletRow,
        individual_bundle: IndividualBundle,
        disease_bundle_list: typing.Sequence[DiseaseBundle],
        gene_var_bundle_list: typing.Sequence[GeneVariantBundle],
        hpo_content: typing.Sequence[str],
    ):
        if not 1 <= len(disease_bundle_list) <= 2:
            raise TemplateError(f"A case needs one or two diseases, got {len(disease_bundle_list)}")
        if not 1 <= len(gene_var_bundle_list) <= 2:
            raise TemplateError(f"A case needs one or two gene/variant bundles, got {len(gene_var_bundle_list)}")
        if len(hpo_content) != header.hpo_count():
            raise TemplateError(
                f"Row has {len(hpo_content)} HPO values but the header has {header.hpo_count()} HPO columns"
            )
        self._header = header
        self._individual = individual_bundle
        self._diseases = tuple(disease_bundle_list)
        self._gene_vars = tuple(gene_var_bundle_list)
        self._hpo_content = tuple(hpo_content)

    # -------------
    # Construction
    # -------------

    @staticmethod
    def from_row(header: HeaderDupletRow, row: typing.Sequence[str]) -> "PpktRow":
        """Decode one matrix data row (single disease, single gene layout)."""
        if len(row) != len(header):
            raise TemplateError(f"Row has {len(row)} fields but the header has {len(header)} columns")
        return PpktRow(
            header,
            IndividualBundle.from_row(row),
            [DiseaseBundle.from_row(row)],
            [GeneVariantBundle.from_row(row)],
            row[HPO_START:],
        )

    @staticmethod
    def from_dto(header: HeaderDupletRow, dto: RowDto) -> "PpktRow":
        return PpktRow(
            header,
            IndividualBundle.from_dto(dto.individual_dto),
            [DiseaseBundle.from_dto(d) for d in dto.disease_dto_list],
            [GeneVariantBundle.from_dto(g) for g in dto.gene_var_dto_list],
            [c.value for c in dto.hpo_data],
        )

    @staticmethod
    def from_tid_to_value_map(
        header: HeaderDupletRow,
        individual_dto: IndividualBundleDto,
        disease_dto_list: typing.Sequence[DiseaseDto],
        gene_var_dto_list: typing.Sequence[GeneVariantBundleDto],
        tid_to_value: typing.Mapping[str, str],
    ) -> "PpktRow":
        """
        Build a new case from a term id -> value map.

        Columns absent from the map are "na"; ids absent from the header are
        an error.
        """
        hpo_ids = header.get_hpo_id_list()
        unknown = set(tid_to_value) - set(hpo_ids)
        if unknown:
            raise TemplateError(f"HPO term(s) not in template header: {', '.join(sorted(unknown))}")
        return PpktRow(
            header,
            IndividualBundle.from_dto(individual_dto),
            [DiseaseBundle.from_dto(d) for d in disease_dto_list],
            [GeneVariantBundle.from_dto(g) for g in gene_var_dto_list],
            [tid_to_value.get(tid, "na") for tid in hpo_ids],
        )

    # ---------------
    # Reconciliation
    # ---------------

    def update(self, header: HeaderDupletRow) -> "PpktRow":
        """Return this case bound to ``header``, HPO values moved to their new columns."""
        if header == self._header:
            return self
        old_ids = self._header.get_hpo_id_list()
        new_ids = header.get_hpo_id_list()
        vector = get_update_vector(old_ids, new_ids)
        values = reorder_or_fill_na(self._hpo_content, vector, len(new_ids))
        logger.debug(
            f"Reconciled {self.individual_id}: {len(old_ids)} -> {len(new_ids)} HPO columns"
        )
        return PpktRow(header, self._individual, self._diseases, self._gene_vars, values)

    # -----------
    # Validation
    # -----------

    def check_for_errors(self) -> ValidationErrors:
        verrs = ValidationErrors()
        verrs.extend(self._individual.qc(self._header))
        for d in self._diseases:
            verrs.extend(d.qc(self._header))
        for g in self._gene_vars:
            verrs.extend(g.qc(self._header))
        for duplet, value in zip(self._header.hpo_duplets(), self._hpo_content):
            try:
                duplet.qc_cell(value)
            except PhetoolsError as e:
                verrs.push(e)
        return verrs

    # ----------
    # Accessors
    # ----------

    @property
    def header(self) -> HeaderDupletRow:
        return self._header

    @property
    def individual_id(self) -> str:
        return self._individual.individual_id

    def is_mendelian(self) -> bool:
        return len(self._diseases) == 1 and len(self._gene_vars) == 1

    def get_individual_dto(self) -> IndividualBundleDto:
        return self._individual.to_dto()

    def get_disease_dto_list(self) -> list[DiseaseDto]:
        return [d.to_dto() for d in self._diseases]

    def get_gene_var_dto_list(self) -> list[GeneVariantBundleDto]:
        return [g.to_dto() for g in self._gene_vars]

    def get_gene_variant_bundles(self) -> tuple[GeneVariantBundle, ...]:
        return self._gene_vars

    def get_hpo_value_list(self) -> list[str]:
        return list(self._hpo_content)

    def get_hpo_term_dto_list(self) -> list[HpoTermDto]:
        return self._header.get_hpo_term_dto_list(self._hpo_content)

    def to_dto(self) -> RowDto:
        return RowDto(
            individual_dto=self.get_individual_dto(),
            disease_dto_list=self.get_disease_dto_list(),
            gene_var_dto_list=self.get_gene_var_dto_list(),
            hpo_data=[CellDto(v) for v in self._hpo_content],
        )

    def to_string_row(self) -> list[str]:
        if not self.is_mendelian():
            raise TemplateError(f"Case {self.individual_id} has several diseases or genes and no matrix layout")
        row = [""] * len(self._header)
        for bundle in (self._individual, self._diseases[0], self._gene_vars[0]):
            for i, value in bundle.items():
                row[i] = value
        row[HPO_START - 1] = "na"
        row[HPO_START:] = self._hpo_content
        return row

    def __repr__(self) -> str:
        return f"PpktRow({self.individual_id!r}, hpo={len(self._hpo_content)})"
