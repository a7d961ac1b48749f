"""
Decoding single cases and reconciling them with a changed header.
"""

import pytest

from phetools.dto import DiseaseDto, GeneVariantBundleDto, HpoTermDto, IndividualBundleDto
from phetools.errors import TemplateError
from phetools.header_duplet import HeaderDuplet
from phetools.header_duplet_row import HeaderDupletRow
from phetools.ppkt_row import PpktRow, get_update_vector, reorder_or_fill_na

from conftest import DISEASE_LABEL, TITLE


def _header(*term_ids: str) -> HeaderDupletRow:
    return HeaderDupletRow(HeaderDuplet.hpo_term(tid, f"Term {tid[-4:]}") for tid in term_ids)


@pytest.fixture
def individual_dto() -> IndividualBundleDto:
    return IndividualBundleDto(
        pmid="PMID:29198722",
        title=TITLE,
        individual_id="p.Arg913Ter Affected Individual 5",
        comment="",
        age_of_onset="Infantile onset",
        age_at_last_encounter="P3Y",
        deceased="na",
        sex="F",
    )


@pytest.fixture
def disease_dto() -> DiseaseDto:
    return DiseaseDto("OMIM:617865", DISEASE_LABEL)


@pytest.fixture
def gene_var_dto() -> GeneVariantBundleDto:
    return GeneVariantBundleDto("HGNC:29316", "ZSWIM6", "NM_020928.2", "c.2737C>T", "na", "")


def test_update_vector():
    assert get_update_vector(["a", "b", "c"], ["a", "x", "b", "c"]) == [0, 2, 3]
    assert get_update_vector(["a", "b"], ["b", "a"]) == [1, 0]
    with pytest.raises(TemplateError, match="missing"):
        get_update_vector(["a", "b"], ["a", "c"])


def test_reorder_or_fill_na():
    assert reorder_or_fill_na(["1", "2"], [2, 0], 3) == ["2", "na", "1"]
    with pytest.raises(TemplateError):
        reorder_or_fill_na(["1", "2"], [0], 3)


def test_update_inserts_na_for_new_terms(individual_dto, disease_dto, gene_var_dto):
    a, b, c, d, e, x, y = (f"HP:000000{i}" for i in range(1, 8))
    old_header = _header(a, b, c, d, e)
    row = PpktRow.from_tid_to_value_map(
        old_header, individual_dto, [disease_dto], [gene_var_dto], {t: "observed" for t in (a, b, c, d, e)}
    )
    new_header = _header(a, b, x, c, y, d, e)

    updated = row.update(new_header)

    assert updated.get_hpo_value_list() == ["observed", "observed", "na", "observed", "na", "observed", "observed"]
    assert updated.header is new_header
    assert updated.get_individual_dto() == individual_dto
    # the original row is untouched
    assert row.get_hpo_value_list() == ["observed"] * 5


def test_update_with_reordering(individual_dto, disease_dto, gene_var_dto):
    row = PpktRow.from_tid_to_value_map(
        _header("HP:0000001", "HP:0000002"), individual_dto, [disease_dto], [gene_var_dto],
        {"HP:0000001": "observed", "HP:0000002": "excluded"},
    )
    updated = row.update(_header("HP:0000003", "HP:0000002", "HP:0000001"))
    assert updated.get_hpo_value_list() == ["na", "excluded", "observed"]


def test_update_cannot_drop_a_column(individual_dto, disease_dto, gene_var_dto):
    row = PpktRow.from_tid_to_value_map(
        _header("HP:0000001", "HP:0000002"), individual_dto, [disease_dto], [gene_var_dto], {}
    )
    with pytest.raises(TemplateError):
        row.update(_header("HP:0000001"))


def test_from_tid_to_value_map_defaults_to_na(individual_dto, disease_dto, gene_var_dto):
    header = _header("HP:0000001", "HP:0000002")
    row = PpktRow.from_tid_to_value_map(header, individual_dto, [disease_dto], [gene_var_dto], {"HP:0000002": "P2Y"})
    assert row.get_hpo_value_list() == ["na", "P2Y"]
    assert row.get_hpo_term_dto_list()[1] == HpoTermDto("HP:0000002", "Term 0002", "P2Y")
    with pytest.raises(TemplateError, match="HP:0000009"):
        PpktRow.from_tid_to_value_map(header, individual_dto, [disease_dto], [gene_var_dto], {"HP:0000009": "na"})


def test_from_row_round_trip(matrix):
    header = HeaderDupletRow.from_string_matrix(matrix)
    for raw in matrix[2:]:
        row = PpktRow.from_row(header, raw)
        assert row.to_string_row() == raw
        assert not row.check_for_errors().has_error()


def test_dto_round_trip(matrix):
    header = HeaderDupletRow.from_string_matrix(matrix)
    row = PpktRow.from_row(header, matrix[3])
    again = PpktRow.from_dto(header, row.to_dto())
    assert again.to_string_row() == matrix[3]
    assert again.get_disease_dto_list() == [DiseaseDto("OMIM:617865", DISEASE_LABEL)]


def test_check_for_errors_collects_all(matrix):
    header = HeaderDupletRow.from_string_matrix(matrix)
    raw = list(matrix[2])
    raw[0] = "PMID29198722"
    raw[15] = "male"
    raw[17] = "+"
    errors = PpktRow.from_row(header, raw).check_for_errors()
    assert len(errors) == 3


def test_bundle_counts(individual_dto, disease_dto, gene_var_dto):
    header = _header("HP:0000001")
    with pytest.raises(TemplateError):
        PpktRow.from_tid_to_value_map(header, individual_dto, [], [gene_var_dto], {})
    melded = PpktRow.from_tid_to_value_map(
        header, individual_dto, [disease_dto, disease_dto], [gene_var_dto, gene_var_dto], {}
    )
    assert not melded.is_mendelian()
    with pytest.raises(TemplateError):
        melded.to_string_row()
