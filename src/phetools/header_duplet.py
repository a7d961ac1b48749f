"""
Typed column descriptors.

A template column is described by its two header cells, the "duplet".
Seventeen kinds are fixed (demographics, disease, genotype, the separator);
their header text is literal and must match exactly. The HPO-term kind is
open: its first header cell is the term label and its second the term id.

Each duplet knows three things about the cells underneath it:
- the grammar a data cell must satisfy (``qc_cell``);
- the edits the curation UI may offer (``get_options``);
- how a named edit transforms a value (``transform``).
"""

from __future__ import annotations

import enum
import typing
from dataclasses import dataclass, field

import hpotk

from .dto import HeaderDupletDto
from .errors import (
    DeceasedError,
    EditError,
    EmptyField,
    HeaderError,
    PhetoolsError,
    SeparatorError,
    SexFieldError,
    UnrecognizedValue,
    WhiteSpaceError,
)
from .rules import DEFAULT_RULES, CellRules


class DupletKind(enum.Enum):
    PMID = "pmid"
    TITLE = "title"
    INDIVIDUAL_ID = "individual_id"
    COMMENT = "comment"
    DISEASE_ID = "disease_id"
    DISEASE_LABEL = "disease_label"
    HGNC_ID = "hgnc_id"
    GENE_SYMBOL = "gene_symbol"
    TRANSCRIPT = "transcript"
    ALLELE_1 = "allele_1"
    ALLELE_2 = "allele_2"
    VARIANT_COMMENT = "variant_comment"
    AGE_OF_ONSET = "age_of_onset"
    AGE_AT_LAST_ENCOUNTER = "age_at_last_encounter"
    DECEASED = "deceased"
    SEX = "sex"
    SEPARATOR = "separator"
    HPO_TERM = "hpo_term"


# Header literals of the fixed columns, in template order
_FIXED_HEADERS: dict[DupletKind, tuple[str, str]] = {
    DupletKind.PMID: ("PMID", "CURIE"),
    DupletKind.TITLE: ("title", "str"),
    DupletKind.INDIVIDUAL_ID: ("individual_id", "str"),
    DupletKind.COMMENT: ("comment", "optional"),
    DupletKind.DISEASE_ID: ("disease_id", "CURIE"),
    DupletKind.DISEASE_LABEL: ("disease_label", "str"),
    DupletKind.HGNC_ID: ("HGNC_id", "CURIE"),
    DupletKind.GENE_SYMBOL: ("gene_symbol", "str"),
    DupletKind.TRANSCRIPT: ("transcript", "str"),
    DupletKind.ALLELE_1: ("allele_1", "str"),
    DupletKind.ALLELE_2: ("allele_2", "str"),
    DupletKind.VARIANT_COMMENT: ("variant.comment", "optional"),
    DupletKind.AGE_OF_ONSET: ("age_of_onset", "age"),
    DupletKind.AGE_AT_LAST_ENCOUNTER: ("age_at_last_encounter", "age"),
    DupletKind.DECEASED: ("deceased", "yes/no/na"),
    DupletKind.SEX: ("sex", "M:F:O:U"),
    DupletKind.SEPARATOR: ("HPO", "na"),
}

PREFIX_KINDS: tuple[DupletKind, ...] = tuple(_FIXED_HEADERS)

_BY_ROW1 = {h1: kind for kind, (h1, _) in _FIXED_HEADERS.items()}

_HPO_CELL_VALUES = ("observed", "excluded", "na")

# Options offered for data cells; the HPO column additionally offers "edit"
_OPTIONS: dict[DupletKind, tuple[str, ...]] = {
    DupletKind.PMID: ("edit", "remove whitespace"),
    DupletKind.TITLE: ("edit", "trim"),
    DupletKind.INDIVIDUAL_ID: ("edit", "trim"),
    DupletKind.COMMENT: ("edit", "trim", "clear"),
    DupletKind.DISEASE_ID: ("edit", "remove whitespace"),
    DupletKind.DISEASE_LABEL: ("edit", "trim"),
    DupletKind.HGNC_ID: ("edit", "remove whitespace"),
    DupletKind.GENE_SYMBOL: ("edit", "remove whitespace"),
    DupletKind.TRANSCRIPT: ("edit", "remove whitespace"),
    DupletKind.ALLELE_1: ("edit", "remove whitespace"),
    DupletKind.ALLELE_2: ("edit", "remove whitespace", "na"),
    DupletKind.VARIANT_COMMENT: ("edit", "trim", "clear"),
    DupletKind.AGE_OF_ONSET: ("edit", "trim", "na"),
    DupletKind.AGE_AT_LAST_ENCOUNTER: ("edit", "trim", "na"),
    DupletKind.DECEASED: ("yes", "no", "na"),
    DupletKind.SEX: ("M", "F", "O", "U"),
    DupletKind.SEPARATOR: ("na",),
    DupletKind.HPO_TERM: ("observed", "excluded", "na", "edit"),
}

_TEXT_OPERATIONS = {"edit", "trim", "clear", "remove whitespace"}

NOT_EDITABLE = "not editable"


@dataclass(frozen=True)
class HeaderDuplet:
    """
    One column descriptor.

    Attributes:
        kind: which column this is.
        row1: first header cell (fixed literal, or the HPO term label).
        row2: second header cell (fixed literal, or the HPO term id).
        rules: cell grammars used by ``qc_cell``; not part of equality.
    """

    kind: DupletKind
    row1: str
    row2: str
    rules: CellRules = field(default=DEFAULT_RULES, compare=False, repr=False)

    # -------------
    # Construction
    # -------------

    @staticmethod
    def fixed(kind: DupletKind, rules: CellRules = DEFAULT_RULES) -> "HeaderDuplet":
        if kind is DupletKind.HPO_TERM:
            raise ValueError("HPO term duplets need a term id and label, use HeaderDuplet.hpo_term")
        h1, h2 = _FIXED_HEADERS[kind]
        return HeaderDuplet(kind, h1, h2, rules)

    @staticmethod
    def hpo_term(term_id: str, label: str, rules: CellRules = DEFAULT_RULES) -> "HeaderDuplet":
        """Build an HPO column; the id and label are checked as header text."""
        try:
            rules.check_hpo_id(term_id)
        except PhetoolsError as e:
            raise HeaderError(f"Malformed HPO term id '{term_id}' in header of '{label}': {e}") from e
        try:
            rules.check_label(label)
        except PhetoolsError as e:
            raise HeaderError(f"Malformed HPO label '{label}' in header of {term_id}: {e}") from e
        return HeaderDuplet(DupletKind.HPO_TERM, label, term_id, rules)

    @staticmethod
    def from_table(
        r1: str,
        r2: str,
        kind: typing.Optional[DupletKind] = None,
        rules: CellRules = DEFAULT_RULES,
    ) -> "HeaderDuplet":
        """
        Reconstruct a duplet from its two header cells.

        With ``kind`` the text must match that column. Without it, a known
        fixed header is recognized by its first cell and anything else is
        read as an HPO term column.
        """
        if kind is None:
            kind = _BY_ROW1.get(r1, DupletKind.HPO_TERM)
        if kind is DupletKind.HPO_TERM:
            return HeaderDuplet.hpo_term(r2, r1, rules)
        h1, h2 = _FIXED_HEADERS[kind]
        if r1 != h1:
            raise HeaderError(f"Malformed {h1} Header: Expected '{h1}' but got '{r1}'")
        if r2 != h2:
            raise HeaderError(f"Malformed {h1} Header: Expected '{h2}' but got '{r2}'")
        return HeaderDuplet(kind, h1, h2, rules)

    # -----------
    # Properties
    # -----------

    def is_hpo_term(self) -> bool:
        return self.kind is DupletKind.HPO_TERM

    @property
    def allows_empty(self) -> bool:
        return self.kind in (DupletKind.COMMENT, DupletKind.VARIANT_COMMENT)

    @property
    def term_id(self) -> str:
        if not self.is_hpo_term():
            raise ValueError(f"'{self.row1}' is not an HPO term column")
        return self.row2

    @property
    def label(self) -> str:
        return self.row1

    def to_term_id(self) -> hpotk.TermId:
        return hpotk.TermId.from_curie(self.term_id)

    def to_dto(self) -> HeaderDupletDto:
        return HeaderDupletDto(h1=self.row1, h2=self.row2)

    # -----------
    # Validation
    # -----------

    def qc_cell(self, value: str) -> None:
        """Raise a typed error if ``value`` is not a legal data cell for this column."""
        r = self.rules
        k = self.kind
        if k is DupletKind.PMID:
            r.check_pmid(value)
        elif k in (DupletKind.TITLE, DupletKind.DISEASE_LABEL):
            r.check_label(value)
        elif k is DupletKind.INDIVIDUAL_ID:
            r.check_label(value, forbid_chars=True)
        elif k is DupletKind.GENE_SYMBOL:
            r.check_label(value, forbid_chars=True)
            if " " in value:
                raise WhiteSpaceError(f"Contains stray whitespace: '{value}'")
        elif k in (DupletKind.COMMENT, DupletKind.VARIANT_COMMENT):
            r.check_comment(value)
        elif k is DupletKind.DISEASE_ID:
            r.check_disease_id(value)
        elif k is DupletKind.HGNC_ID:
            r.check_hgnc_id(value)
        elif k is DupletKind.TRANSCRIPT:
            r.check_transcript(value)
        elif k is DupletKind.ALLELE_1:
            r.check_allele1(value)
        elif k is DupletKind.ALLELE_2:
            r.check_allele2(value)
        elif k is DupletKind.AGE_OF_ONSET:
            r.check_age(value, "age_of_onset")
        elif k is DupletKind.AGE_AT_LAST_ENCOUNTER:
            r.check_age(value, "age_at_last_encounter")
        elif k is DupletKind.DECEASED:
            if not value:
                raise EmptyField("deceased must not be empty")
            if value not in r.deceased_values:
                raise DeceasedError(f"Malformed deceased entry: '{value}'")
        elif k is DupletKind.SEX:
            if not value:
                raise EmptyField("sex must not be empty")
            if value not in r.sex_values:
                raise SexFieldError(f"Malformed entry in sex field: '{value}'")
        elif k is DupletKind.SEPARATOR:
            if not value:
                raise EmptyField("HPO (separator) must not be empty")
            if value != "na":
                raise SeparatorError(f"Malformed HPO (separator) entry: '{value}'")
        elif k is DupletKind.HPO_TERM:
            if not value:
                raise EmptyField(f"{self.row1} ({self.row2}) must not be empty")
            if value not in _HPO_CELL_VALUES and not r.is_valid_age(value):
                raise UnrecognizedValue(f"Malformed entry for {self.row1} ({self.row2}): '{value}'")
        else:
            raise ValueError(f"Unhandled column kind {k}")

    # ---------
    # Editing
    # ---------

    def get_options(self) -> list[str]:
        return list(_OPTIONS[self.kind])

    def transform(self, value: str, operation: str) -> str:
        """
        Apply a named edit to ``value`` and return the new value.

        The result is not validated here; callers run ``qc_cell`` on it
        before committing.
        """
        if operation == "trim":
            return value.strip()
        if operation == "remove whitespace":
            return "".join(value.split())
        if operation == "clear":
            return ""
        if operation == "edit":
            raise EditError("Operation 'edit' needs a new value and cannot be executed directly")
        if operation in _OPTIONS[self.kind] and operation not in _TEXT_OPERATIONS:
            return operation
        if self.kind is DupletKind.SEX and operation in self.rules.sex_synonyms:
            return self.rules.sex_synonyms[operation]
        raise EditError(f"Unrecognized operation '{operation}' for {self.row1} column")


def prefix_duplets(rules: CellRules = DEFAULT_RULES) -> tuple[HeaderDuplet, ...]:
    """The 17 fixed columns every template starts with."""
    return tuple(HeaderDuplet.fixed(kind, rules) for kind in PREFIX_KINDS)
