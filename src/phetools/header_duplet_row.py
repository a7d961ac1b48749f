"""
The template schema: 17 fixed columns followed by the HPO term columns.

A ``HeaderDupletRow`` is immutable and shared by a template and all of its
rows. Changing the set of HPO columns produces a new ``HeaderDupletRow``;
rows are then reconciled against it (see ``PpktRow.update``).
"""

from __future__ import annotations

import logging
import typing

import hpotk
from hpotk.validate import ObsoleteTermIdsValidator, ValidationRunner

from .dto import HeaderDupletDto, HpoTermDto
from .errors import HeaderError, HpIdNotFound, ObsoleteTermId, TemplateError, WrongLabel
from .header_duplet import PREFIX_KINDS, HeaderDuplet, prefix_duplets
from .rules import DEFAULT_RULES, CellRules
from .validation import ValidationErrors

logger = logging.getLogger(__name__)

# Index of the first HPO column (the fixed prefix occupies 0..16)
HPO_START = len(PREFIX_KINDS)


class HeaderDupletRow:
    """Ordered column schema of a template."""

    def __init__(
        self,
        hpo_duplets: typing.Iterable[HeaderDuplet] = (),
        rules: CellRules = DEFAULT_RULES,
    ):
        self._rules = rules
        self._prefix = prefix_duplets(rules)
        self._hpo = tuple(hpo_duplets)
        seen: set[str] = set()
        for d in self._hpo:
            if not d.is_hpo_term():
                raise TemplateError(f"Column '{d.row1}' is not an HPO term column")
            if d.term_id in seen:
                raise TemplateError(f"Duplicate HPO column {d.row1} ({d.term_id})")
            seen.add(d.term_id)

    # -------------
    # Construction
    # -------------

    @staticmethod
    def from_string_matrix(
        matrix: typing.Sequence[typing.Sequence[str]],
        rules: CellRules = DEFAULT_RULES,
    ) -> "HeaderDupletRow":
        """
        Recognize the schema in the first two rows of ``matrix``.

        All header defects are collected and raised together as a
        ``ValidationFailure``.
        """
        if len(matrix) < 2:
            raise HeaderError(f"Template must have two header rows but has only {len(matrix)}")
        row1, row2 = matrix[0], matrix[1]
        if len(row1) != len(row2):
            raise HeaderError(f"Header rows differ in length: {len(row1)} vs {len(row2)}")
        if len(row1) < HPO_START:
            raise HeaderError(f"Template header must have at least {HPO_START} columns but has {len(row1)}")

        verrs = ValidationErrors()
        for i, kind in enumerate(PREFIX_KINDS):
            verrs.check(HeaderDuplet.from_table, row1[i], row2[i], kind, rules)
        hpo_duplets = []
        for i in range(HPO_START, len(row1)):
            d = verrs.check(HeaderDuplet.hpo_term, row2[i], row1[i], rules)
            if d is not None:
                hpo_duplets.append(d)
        verrs.ok()
        return HeaderDupletRow(hpo_duplets, rules)

    @staticmethod
    def from_hpo_terms(
        terms: typing.Iterable[HpoTermDto],
        rules: CellRules = DEFAULT_RULES,
    ) -> "HeaderDupletRow":
        return HeaderDupletRow(
            (HeaderDuplet.hpo_term(t.term_id, t.label, rules) for t in terms),
            rules,
        )

    def with_hpo_duplets(self, hpo_duplets: typing.Iterable[HeaderDuplet]) -> "HeaderDupletRow":
        """New schema with the same fixed prefix and the given HPO columns."""
        return HeaderDupletRow(hpo_duplets, self._rules)

    def with_hpo_terms(self, terms: typing.Iterable[HpoTermDto]) -> "HeaderDupletRow":
        return HeaderDupletRow.from_hpo_terms(terms, self._rules)

    # -----------
    # Accessors
    # -----------

    @property
    def rules(self) -> CellRules:
        return self._rules

    def prefix_duplets(self) -> tuple[HeaderDuplet, ...]:
        return self._prefix

    def hpo_duplets(self) -> tuple[HeaderDuplet, ...]:
        return self._hpo

    def duplets(self) -> tuple[HeaderDuplet, ...]:
        return self._prefix + self._hpo

    def get_duplet(self, idx: int) -> HeaderDuplet:
        if not 0 <= idx < len(self):
            raise TemplateError(f"Column index {idx} out of range for template with {len(self)} columns")
        if idx < HPO_START:
            return self._prefix[idx]
        return self._hpo[idx - HPO_START]

    def hpo_count(self) -> int:
        return len(self._hpo)

    def get_hpo_id_list(self) -> list[str]:
        return [d.term_id for d in self._hpo]

    def row1(self) -> list[str]:
        return [d.row1 for d in self.duplets()]

    def row2(self) -> list[str]:
        return [d.row2 for d in self.duplets()]

    def qc_cell(self, idx: int, value: str) -> None:
        self.get_duplet(idx).qc_cell(value)

    def get_hpo_content_map(self, cells: typing.Sequence[str]) -> dict[str, str]:
        """Map term id -> cell value for one row's HPO cells."""
        if len(cells) != len(self._hpo):
            raise TemplateError(
                f"Row has {len(cells)} HPO values but the header has {len(self._hpo)} HPO columns"
            )
        return {d.term_id: value for d, value in zip(self._hpo, cells)}

    def get_hpo_term_dto_list(self, cells: typing.Sequence[str]) -> list[HpoTermDto]:
        content = self.get_hpo_content_map(cells)
        return [HpoTermDto(d.term_id, d.label, content[d.term_id]) for d in self._hpo]

    def to_dto_list(self) -> list[HeaderDupletDto]:
        """HPO headers only; the fixed prefix is implied."""
        return [d.to_dto() for d in self._hpo]

    # ------------------
    # Ontology checking
    # ------------------

    def check_against_ontology(self, hpo: hpotk.MinimalOntology) -> ValidationErrors:
        """
        Report HPO columns whose id is unknown or obsolete, or whose label
        does not match the ontology's primary label.
        """
        verrs = ValidationErrors()
        runner = ValidationRunner(validators=[ObsoleteTermIdsValidator(hpo)])
        for d in self._hpo:
            tid = d.to_term_id()
            term = hpo.get_term(tid)
            if term is None:
                verrs.push(HpIdNotFound(f"HPO term id {d.term_id} ({d.label}) not found in ontology"))
            elif runner.validate_all([tid]).results:
                verrs.push(ObsoleteTermId(d.term_id, term.identifier.value))
            elif term.name != d.label:
                verrs.push(WrongLabel(d.term_id, d.label, term.name))
        logger.debug(f"Checked {len(self._hpo)} HPO columns against ontology, {len(verrs)} problem(s)")
        return verrs

    # ------

    def __len__(self) -> int:
        return HPO_START + len(self._hpo)

    def __eq__(self, other) -> bool:
        if not isinstance(other, HeaderDupletRow):
            return NotImplemented
        return self._hpo == other._hpo

    def __hash__(self) -> int:
        return hash(self._hpo)

    def __repr__(self) -> str:
        return f"HeaderDupletRow(hpo={self.get_hpo_id_list()!r})"
