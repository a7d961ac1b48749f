"""
Column descriptors: header recognition, cell checks, options and named edits.
"""

import hpotk
import pytest

from phetools.errors import (
    DeceasedError,
    EditError,
    EmptyField,
    HeaderError,
    SeparatorError,
    SexFieldError,
    UnrecognizedValue,
    WhiteSpaceError,
)
from phetools.header_duplet import PREFIX_KINDS, DupletKind, HeaderDuplet, prefix_duplets


def test_prefix_has_seventeen_columns_in_template_order():
    duplets = prefix_duplets()
    assert len(duplets) == 17
    assert [d.row1 for d in duplets][:3] == ["PMID", "title", "individual_id"]
    assert duplets[-1].row1 == "HPO"
    assert duplets[-1].row2 == "na"
    assert PREFIX_KINDS[14] is DupletKind.DECEASED


@pytest.mark.parametrize(
    "kind, r1, r2, message",
    [
        (DupletKind.DECEASED, "deceased", "yes/no", "Malformed deceased Header: Expected 'yes/no/na' but got 'yes/no'"),
        (DupletKind.DECEASED, "Deceased", "yes/no/na", "Malformed deceased Header: Expected 'deceased' but got 'Deceased'"),
        (DupletKind.SEX, "sex", "M:F:O", "Malformed sex Header: Expected 'M:F:O:U' but got 'M:F:O'"),
        (DupletKind.SEPARATOR, "HPO", "n/a", "Malformed HPO Header: Expected 'na' but got 'n/a'"),
        (DupletKind.PMID, "PMIDs", "CURIE", "Malformed PMID Header: Expected 'PMID' but got 'PMIDs'"),
    ],
)
def test_from_table_rejects_wrong_header(kind, r1, r2, message):
    with pytest.raises(HeaderError) as e:
        HeaderDuplet.from_table(r1, r2, kind)
    assert str(e.value) == message


def test_from_table_recognizes_fixed_and_hpo_columns():
    sex = HeaderDuplet.from_table("sex", "M:F:O:U")
    assert sex.kind is DupletKind.SEX
    seizure = HeaderDuplet.from_table("Seizure", "HP:0001250")
    assert seizure.is_hpo_term()
    assert seizure.term_id == "HP:0001250"
    assert seizure.label == "Seizure"
    assert seizure.to_term_id() == hpotk.TermId.from_curie("HP:0001250")


@pytest.mark.parametrize("r1, r2", [("Seizure", "HP:00012"), ("Seizure ", "HP:0001250"), ("", "HP:0001250")])
def test_malformed_hpo_header(r1, r2):
    with pytest.raises(HeaderError):
        HeaderDuplet.from_table(r1, r2)


# -----------
# Cell checks
# -----------


def test_deceased_cell():
    d = HeaderDuplet.fixed(DupletKind.DECEASED)
    for v in ("yes", "no", "na"):
        d.qc_cell(v)
    with pytest.raises(DeceasedError, match="Malformed deceased entry: 'Yes'"):
        d.qc_cell("Yes")
    with pytest.raises(EmptyField, match="deceased must not be empty"):
        d.qc_cell("")


def test_sex_cell():
    d = HeaderDuplet.fixed(DupletKind.SEX)
    for v in ("M", "F", "O", "U"):
        d.qc_cell(v)
    with pytest.raises(SexFieldError, match="Malformed entry in sex field: 'male'"):
        d.qc_cell("male")
    with pytest.raises(EmptyField, match="sex must not be empty"):
        d.qc_cell("")


def test_separator_cell():
    d = HeaderDuplet.fixed(DupletKind.SEPARATOR)
    d.qc_cell("na")
    with pytest.raises(SeparatorError, match=r"Malformed HPO \(separator\) entry: 'nan'"):
        d.qc_cell("nan")
    with pytest.raises(EmptyField):
        d.qc_cell("")


@pytest.mark.parametrize("value", ["observed", "excluded", "na", "P3Y", "Infantile onset", "G20w1d"])
def test_hpo_cell_accepts(value):
    HeaderDuplet.hpo_term("HP:0001508", "Failure to thrive").qc_cell(value)


@pytest.mark.parametrize("value", ["+", "Observed", "yes", "nan"])
def test_hpo_cell_rejects(value):
    d = HeaderDuplet.hpo_term("HP:0001508", "Failure to thrive")
    with pytest.raises(UnrecognizedValue) as e:
        d.qc_cell(value)
    assert str(e.value) == f"Malformed entry for Failure to thrive (HP:0001508): '{value}'"


def test_empty_hpo_cell_is_not_na():
    d = HeaderDuplet.hpo_term("HP:0001508", "Failure to thrive")
    with pytest.raises(EmptyField):
        d.qc_cell("")


def test_only_comment_columns_allow_empty():
    allowing = {d.kind for d in prefix_duplets() if d.allows_empty}
    assert allowing == {DupletKind.COMMENT, DupletKind.VARIANT_COMMENT}
    HeaderDuplet.fixed(DupletKind.COMMENT).qc_cell("")


def test_gene_symbol_rejects_inner_space():
    d = HeaderDuplet.fixed(DupletKind.GENE_SYMBOL)
    d.qc_cell("ZSWIM6")
    with pytest.raises(WhiteSpaceError, match="Trailing whitespace in 'ZSWIM6 '"):
        d.qc_cell("ZSWIM6 ")
    with pytest.raises(WhiteSpaceError, match="stray whitespace"):
        d.qc_cell("ZSW IM6")


# ---------------------
# Options and editing
# ---------------------


def test_options():
    assert HeaderDuplet.fixed(DupletKind.ALLELE_2).get_options() == ["edit", "remove whitespace", "na"]
    assert HeaderDuplet.fixed(DupletKind.SEX).get_options() == ["M", "F", "O", "U"]
    assert HeaderDuplet.hpo_term("HP:0001250", "Seizure").get_options() == ["observed", "excluded", "na", "edit"]


@pytest.mark.parametrize(
    "kind, value, operation, expected",
    [
        (DupletKind.AGE_OF_ONSET, "Infantile onset ", "trim", "Infantile onset"),
        (DupletKind.PMID, "PMID: 29198722", "remove whitespace", "PMID:29198722"),
        (DupletKind.COMMENT, "some comment", "clear", ""),
        (DupletKind.ALLELE_2, "c.1A>G", "na", "na"),
        (DupletKind.DECEASED, "na", "yes", "yes"),
        (DupletKind.SEX, "U", "female", "F"),
        (DupletKind.SEX, "U", "male", "M"),
        (DupletKind.SEX, "M", "O", "O"),
    ],
)
def test_transform(kind, value, operation, expected):
    assert HeaderDuplet.fixed(kind).transform(value, operation) == expected


def test_transform_unknown_operation():
    with pytest.raises(EditError):
        HeaderDuplet.fixed(DupletKind.DECEASED).transform("na", "female")
    with pytest.raises(EditError):
        HeaderDuplet.fixed(DupletKind.TITLE).transform("x", "edit")


def test_duplets_compare_by_value():
    assert HeaderDuplet.hpo_term("HP:0001250", "Seizure") == HeaderDuplet.from_table("Seizure", "HP:0001250")
    assert HeaderDuplet.fixed(DupletKind.SEX) != HeaderDuplet.fixed(DupletKind.DECEASED)
