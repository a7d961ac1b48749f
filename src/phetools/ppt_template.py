"""
The curation template.

A ``PptTemplate`` holds the schema (``HeaderDupletRow``) and one
``PptColumn`` per schema column. It is the single entry point for edits:

- ``set_value`` / ``execute_operation``: one cell, validated before commit;
- ``delete_row``: one case, removed from every column in lock-step;
- ``add_row`` / ``add_hpo_terms``: schema changes, every existing case is
  reconciled against the new header;
- ``get_options``: the edits the UI may offer for a cell.

Templates are built from a string matrix (two header rows, then one row per
case) or from scratch for a disease/gene pair, and serialize back to the
same matrix with ``get_string_matrix``.
"""

from __future__ import annotations

import logging
import typing

import hpotk

from .dto import (
    DiseaseDto,
    DiseaseGeneDto,
    GeneTranscriptDto,
    GeneVariantBundleDto,
    HpoTermDto,
    IndividualBundleDto,
    TemplateDto,
    TemplateType,
)
from .errors import EditError, PhetoolsError, TemplateError, ValidationFailure
from .header_duplet import NOT_EDITABLE, PREFIX_KINDS, DupletKind, HeaderDuplet
from .header_duplet_row import HPO_START, HeaderDupletRow
from .ppkt_row import PpktRow
from .ppt_column import DATA_START, PptColumn
from .rules import DEFAULT_RULES, CellRules
from .term_arranger import HpoTermArranger
from .validation import ValidationErrors

if typing.TYPE_CHECKING:
    from .variant_manager import VariantManager

logger = logging.getLogger(__name__)

# Columns whose value must be identical in every row of a single-gene template
_UNIQUE_KINDS = (
    DupletKind.DISEASE_ID,
    DupletKind.DISEASE_LABEL,
    DupletKind.HGNC_ID,
    DupletKind.GENE_SYMBOL,
    DupletKind.TRANSCRIPT,
)


class PptTemplate:

    def __init__(
        self,
        header: HeaderDupletRow,
        columns: typing.Sequence[PptColumn],
        disease_gene_dto: typing.Optional[DiseaseGeneDto] = None,
        hpo: typing.Optional[hpotk.MinimalOntology] = None,
    ):
        if len(columns) != len(header):
            raise TemplateError(f"Template has {len(columns)} columns but header has {len(header)}")
        counts = {c.phenopacket_count() for c in columns}
        if len(counts) > 1:
            raise TemplateError("Not all columns of template have the same number of rows")
        for duplet, column in zip(header.duplets(), columns):
            if duplet != column.duplet:
                raise TemplateError(f"Column '{column.duplet.row1}' does not match header '{duplet.row1}'")
        self._header = header
        self._columns = list(columns)
        self._seed = disease_gene_dto
        self._hpo = hpo

    # -------------
    # Construction
    # -------------

    @staticmethod
    def create_template(
        disease_gene_dto: DiseaseGeneDto,
        hpo_term_ids: typing.Iterable[typing.Union[str, hpotk.TermId]],
        hpo: hpotk.MinimalOntology,
        rules: CellRules = DEFAULT_RULES,
    ) -> "PptTemplate":
        """
        A template with header rows only, for one disease and one gene.

        The HPO columns are labelled from ``hpo`` and arranged by DFS.
        """
        if disease_gene_dto.template_type is not TemplateType.MENDELIAN:
            raise TemplateError(f"Only Mendelian templates have a matrix layout, got {disease_gene_dto.template_type.value}")
        if len(disease_gene_dto.disease_dto_list) != 1 or len(disease_gene_dto.gene_transcript_dto_list) != 1:
            raise TemplateError("A Mendelian template needs exactly one disease and one gene")
        disease = disease_gene_dto.disease_dto_list[0]
        gene = disease_gene_dto.gene_transcript_dto_list[0]

        header = HeaderDupletRow(rules=rules)
        verrs = ValidationErrors()
        for idx, value in (
            (4, disease.disease_id),
            (5, disease.disease_label),
            (6, gene.hgnc_id),
            (7, gene.gene_symbol),
            (8, gene.transcript),
        ):
            verrs.check(header.qc_cell, idx, value)

        arranged = HpoTermArranger(hpo).arrange_terms(hpo_term_ids, verrs)
        verrs.ok()

        duplets = [HeaderDuplet.hpo_term(tid.value, hpo.get_term(tid).name, rules) for tid in arranged]
        header = header.with_hpo_duplets(duplets)
        columns = [PptColumn(d) for d in header.duplets()]
        logger.info(f"Created template for {disease.disease_id} / {gene.gene_symbol} with {len(duplets)} HPO columns")
        return PptTemplate(header, columns, disease_gene_dto, hpo)

    @staticmethod
    def from_string_matrix(
        matrix: typing.Sequence[typing.Sequence[str]],
        hpo: typing.Optional[hpotk.MinimalOntology] = None,
        rules: CellRules = DEFAULT_RULES,
    ) -> "PptTemplate":
        """
        Decode a template matrix.

        Structural problems (too few rows, ragged rows, no HPO column) raise
        ``TemplateError`` immediately. Header, cell and uniqueness problems are
        collected and raised together as ``ValidationFailure``.
        When the header itself is broken, cells are still checked by column
        position so that both kinds of problem are reported in one go.
        """
        if len(matrix) < 3:
            raise TemplateError(
                f"Valid template must have at least three rows (at least one data row) "
                f"but template has only {len(matrix)} rows"
            )
        ncols = len(matrix[0])
        if any(len(row) != ncols for row in matrix):
            raise TemplateError("Not all rows of template have the same number of fields")
        if ncols <= HPO_START:
            raise TemplateError(
                f"Template must have at least one HPO column after the first {HPO_START} columns "
                f"but has only {ncols} columns"
            )

        try:
            header = HeaderDupletRow.from_string_matrix(matrix, rules)
        except ValidationFailure as e:
            e.errors.extend(PptTemplate._qc_cells_by_position(matrix, rules))
            raise ValidationFailure(e.errors) from None
        columns = [
            PptColumn(duplet, (row[i] for row in matrix[DATA_START:]))
            for i, duplet in enumerate(header.duplets())
        ]
        template = PptTemplate(header, columns, hpo=hpo)
        template.qc().ok()
        template._seed = template.get_disease_gene_dto()
        logger.debug(f"Loaded template with {template.phenopacket_count()} cases and {header.hpo_count()} HPO columns")
        return template

    @staticmethod
    def _qc_cells_by_position(
        matrix: typing.Sequence[typing.Sequence[str]],
        rules: CellRules,
    ) -> ValidationErrors:
        # HPO columns with an unreadable header are skipped
        duplets: list[typing.Optional[HeaderDuplet]] = [HeaderDuplet.fixed(kind, rules) for kind in PREFIX_KINDS]
        for i in range(HPO_START, len(matrix[0])):
            try:
                duplets.append(HeaderDuplet.hpo_term(matrix[1][i], matrix[0][i], rules))
            except PhetoolsError:
                duplets.append(None)
        verrs = ValidationErrors()
        for i, duplet in enumerate(duplets):
            if duplet is not None:
                verrs.extend(PptColumn(duplet, (row[i] for row in matrix[DATA_START:])).qc())
        return verrs

    @staticmethod
    def from_dto(
        dto: TemplateDto,
        hpo: typing.Optional[hpotk.MinimalOntology] = None,
        rules: CellRules = DEFAULT_RULES,
    ) -> "PptTemplate":
        header = HeaderDupletRow(
            (HeaderDuplet.hpo_term(h.h2, h.h1, rules) for h in dto.hpo_headers),
            rules,
        )
        rows = [PpktRow.from_dto(header, r) for r in dto.rows]
        verrs = ValidationErrors()
        for row in rows:
            verrs.extend(row.check_for_errors())
        verrs.ok()
        template = PptTemplate(header, [PptColumn(d) for d in header.duplets()], hpo=hpo)
        template._replace_rows(header, rows)
        if rows:
            template._seed = template.get_disease_gene_dto()
        return template

    # ----------
    # Accessors
    # ----------

    @property
    def header(self) -> HeaderDupletRow:
        return self._header

    def phenopacket_count(self) -> int:
        return self._columns[0].phenopacket_count()

    def nrows(self) -> int:
        return DATA_START + self.phenopacket_count()

    def ncols(self) -> int:
        return len(self._columns)

    def get_column(self, col: int) -> PptColumn:
        if not 0 <= col < len(self._columns):
            raise TemplateError(f"Column index {col} out of range for template with {len(self._columns)} columns")
        return self._columns[col]

    def get_value(self, row: int, col: int) -> str:
        return self.get_column(col).get(row)

    def get_unique(self, kind: DupletKind) -> str:
        return self._columns[PREFIX_KINDS.index(kind)].get_unique()

    def get_disease_gene_dto(self) -> DiseaseGeneDto:
        """Disease and gene of the template, taken from the rows if there are any."""
        if self.phenopacket_count() == 0:
            if self._seed is None:
                raise TemplateError("Template has neither rows nor a disease/gene seed")
            return self._seed
        return DiseaseGeneDto(
            template_type=TemplateType.MENDELIAN,
            disease_dto_list=[
                DiseaseDto(self.get_unique(DupletKind.DISEASE_ID), self.get_unique(DupletKind.DISEASE_LABEL))
            ],
            gene_transcript_dto_list=[
                GeneTranscriptDto(
                    self.get_unique(DupletKind.HGNC_ID),
                    self.get_unique(DupletKind.GENE_SYMBOL),
                    self.get_unique(DupletKind.TRANSCRIPT),
                )
            ],
        )

    @property
    def disease_id(self) -> str:
        return self.get_disease_gene_dto().disease_dto_list[0].disease_id

    @property
    def disease_label(self) -> str:
        return self.get_disease_gene_dto().disease_dto_list[0].disease_label

    @property
    def hgnc_id(self) -> str:
        return self.get_disease_gene_dto().gene_transcript_dto_list[0].hgnc_id

    @property
    def gene_symbol(self) -> str:
        return self.get_disease_gene_dto().gene_transcript_dto_list[0].gene_symbol

    @property
    def transcript(self) -> str:
        return self.get_disease_gene_dto().gene_transcript_dto_list[0].transcript

    def get_ppkt_rows(self) -> list[PpktRow]:
        return [
            PpktRow.from_row(self._header, [c.get(r) for c in self._columns])
            for r in range(DATA_START, self.nrows())
        ]

    def get_string_matrix(self) -> list[list[str]]:
        return [[c.get(r) for c in self._columns] for r in range(self.nrows())]

    def to_dto(self) -> TemplateDto:
        return TemplateDto(
            cohort_type=TemplateType.MENDELIAN,
            hpo_headers=self._header.to_dto_list(),
            rows=[r.to_dto() for r in self.get_ppkt_rows()],
        )

    # -----------
    # Validation
    # -----------

    def qc(self) -> ValidationErrors:
        """Every cell defect, every non-unique disease/gene column and, with an ontology, every stale HPO header."""
        verrs = ValidationErrors()
        for column in self._columns:
            verrs.extend(column.qc())
        if self.phenopacket_count() > 0:
            for kind in _UNIQUE_KINDS:
                verrs.check(self.get_unique, kind)
        if self._hpo is not None:
            verrs.extend(self._header.check_against_ontology(self._hpo))
        return verrs

    def validate_variants(self, manager: "VariantManager") -> ValidationErrors:
        """Check every allele against the variant validator (network bound)."""
        verrs = ValidationErrors()
        for row in self.get_ppkt_rows():
            for bundle in row.get_gene_variant_bundles():
                for allele in bundle.alleles():
                    with verrs.capture():
                        manager.validate(allele, bundle.transcript)
        return verrs

    # ---------
    # Editing
    # ---------

    def set_value(self, row: int, col: int, value: str) -> None:
        """Validate and store one cell; on error nothing changes."""
        self.get_column(col).set(row, value)

    def get_options(self, row: int, col: int, addtl: typing.Sequence[str] = ()) -> list[str]:
        column = self.get_column(col)
        column.get(row)
        duplet = column.duplet
        if row < DATA_START:
            if duplet.is_hpo_term():
                return list(addtl)
            return [NOT_EDITABLE]
        return duplet.get_options() + list(addtl)

    def execute_operation(self, row: int, col: int, operation: str) -> None:
        column = self.get_column(col)
        current = column.get(row)
        if row < DATA_START:
            raise EditError(f"Cannot edit header row {row} of column '{column.duplet.row1}'")
        column.set(row, column.duplet.transform(current, operation))

    def delete_row(self, row: int) -> None:
        if row < DATA_START:
            raise EditError(f"Cannot delete row {row} (header)")
        if row >= self.nrows():
            raise EditError(f"Attempt to delete row {row} in template with {self.nrows()} rows")
        for column in self._columns:
            column.delete_row(row)
        logger.debug(f"Deleted row {row}")

    # ---------------
    # Schema changes
    # ---------------

    def add_hpo_terms(self, terms: typing.Iterable[HpoTermDto]) -> None:
        """Add HPO columns; existing cases get "na" for each new column."""
        header = self._extend_header(terms)
        rows = [r.update(header) for r in self.get_ppkt_rows()]
        self._replace_rows(header, rows)

    def add_row(
        self,
        individual_dto: IndividualBundleDto,
        hpo_terms: typing.Iterable[HpoTermDto],
        gene_var_dto_list: typing.Sequence[GeneVariantBundleDto],
    ) -> None:
        """
        Append one case.

        HPO terms the template does not have yet become new columns. The new
        case is fully validated before anything changes.
        """
        hpo_terms = list(hpo_terms)
        seed = self.get_disease_gene_dto()
        genes = {(g.hgnc_id, g.gene_symbol, g.transcript) for g in seed.gene_transcript_dto_list}
        for gv in gene_var_dto_list:
            if (gv.hgnc_id, gv.gene_symbol, gv.transcript) not in genes:
                raise TemplateError(
                    f"Gene {gv.hgnc_id} ({gv.gene_symbol}, {gv.transcript}) is not curated by this template"
                )
        ids = [r.individual_id for r in self.get_ppkt_rows()]
        if individual_dto.individual_id in ids:
            logger.warning(f"Individual '{individual_dto.individual_id}' already present in template")

        header = self._extend_header(hpo_terms)
        new_row = PpktRow.from_tid_to_value_map(
            header,
            individual_dto,
            seed.disease_dto_list,
            gene_var_dto_list,
            {t.term_id: t.entry for t in hpo_terms},
        )
        new_row.check_for_errors().ok()
        rows = [r.update(header) for r in self.get_ppkt_rows()]
        rows.append(new_row)
        self._replace_rows(header, rows)
        logger.info(f"Added {individual_dto.individual_id}, template now has {len(rows)} cases")

    def _extend_header(self, terms: typing.Iterable[HpoTermDto]) -> HeaderDupletRow:
        duplets = list(self._header.hpo_duplets())
        known = {d.term_id for d in duplets}
        for t in terms:
            if t.term_id not in known:
                duplets.append(HeaderDuplet.hpo_term(t.term_id, t.label, self._header.rules))
                known.add(t.term_id)
        if len(duplets) == self._header.hpo_count():
            return self._header
        if self._hpo is not None:
            verrs = ValidationErrors()
            by_id = {d.term_id: d for d in duplets}
            arranged = HpoTermArranger(self._hpo).arrange_terms(list(by_id), verrs)
            verrs.ok()
            duplets = [by_id[tid.value] for tid in arranged]
        return self._header.with_hpo_duplets(duplets)

    def _replace_rows(self, header: HeaderDupletRow, rows: typing.Sequence[PpktRow]) -> None:
        string_rows = [r.to_string_row() for r in rows]
        self._columns = [
            PptColumn(duplet, (sr[i] for sr in string_rows))
            for i, duplet in enumerate(header.duplets())
        ]
        self._header = header

    def __repr__(self) -> str:
        return f"PptTemplate(cases={self.phenopacket_count()}, hpo_columns={self._header.hpo_count()})"
