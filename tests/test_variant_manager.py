"""
VariantManager caching, without hitting the network.

pyphetools' VariantValidator is patched in the module under test, so every
"network call" is a counted call to a Mock.
"""

from unittest.mock import patch

import pytest
import requests

from phetools.errors import VariantValidationError
from phetools.ppt_template import PptTemplate
from phetools.variant_manager import (
    CACHE_FILE_NAME,
    HgvsVariant,
    LocalHgvsVariant,
    StructuralVariant,
    VariantDto,
    VariantManager,
)
from phetools.validation import ValidationErrors


@pytest.fixture
def fake_vv():
    with patch("phetools.variant_manager.VariantValidator") as vv_cls:
        vv_cls.return_value.encode_hgvs.side_effect = lambda hgvs: f"encoded {hgvs}"
        yield vv_cls


def test_each_variant_is_validated_once(fake_vv):
    manager = VariantManager(skip_vv=False)
    for _ in range(3):
        assert manager.validate("c.2737C>T", "NM_020928.2") == HgvsVariant("NM_020928.2", "c.2737C>T", "GRCh38")
    manager.validate("c.2738G>A", "NM_020928.2")

    assert fake_vv.return_value.encode_hgvs.call_count == 2
    fake_vv.assert_called_with(genome_build="GRCh38", transcript="NM_020928.2")
    assert manager.cache_size() == 2


def test_failures_are_cached(fake_vv):
    fake_vv.return_value.encode_hgvs.side_effect = requests.ConnectionError("offline")
    manager = VariantManager(skip_vv=False)
    for _ in range(2):
        with pytest.raises(VariantValidationError, match="offline"):
            manager.validate("c.2737C>T", "NM_020928.2")
    assert fake_vv.return_value.encode_hgvs.call_count == 1


def test_structural_and_skipped_variants_stay_local(fake_vv):
    manager = VariantManager(skip_vv=True)
    sv = manager.validate("DEL: deletion exon 5", "NM_020928.2")
    assert sv == StructuralVariant(sv_type="DEL", label="deletion exon 5", transcript="NM_020928.2")
    assert manager.validate("c.2737C>T", "NM_020928.2") == LocalHgvsVariant("NM_020928.2", "c.2737C>T")
    fake_vv.assert_not_called()


def test_malformed_allele_never_reaches_validator(fake_vv):
    manager = VariantManager(skip_vv=False)
    with pytest.raises(VariantValidationError, match="Malformed allele"):
        manager.validate("c.2737CT", "NM_020928.2")
    fake_vv.assert_not_called()


def test_skip_flag_from_environment(monkeypatch, fake_vv):
    monkeypatch.setenv("PHETOOLS_SKIP_VV", "1")
    VariantManager().validate("c.2737C>T", "NM_020928.2")
    fake_vv.assert_not_called()


def test_unsupported_genome_build():
    with pytest.raises(ValueError):
        VariantManager(genome_build="hg19")


def test_validate_dto_list_sorts_and_reports(fake_vv):
    manager = VariantManager(skip_vv=False)
    dtos = [
        VariantDto("DUP: duplication exon 2", "NM_020928.2", "HGNC:29316", "ZSWIM6"),
        VariantDto("n.12A>G", "NM_020928.2", "HGNC:29316", "ZSWIM6"),
        VariantDto("c.2737CT", "NM_020928.2", "HGNC:29316", "ZSWIM6"),
        VariantDto("c.2737C>T", "NM_020928.2", "HGNC:29316", "ZSWIM6"),
    ]
    verrs = ValidationErrors()
    validated = manager.validate_dto_list(dtos, verrs)
    assert [d.variant_string for d in validated] == ["c.2737C>T", "n.12A>G", "DUP: duplication exon 2"]
    assert all(d.validated for d in validated)
    assert validated[-1].is_structural
    assert len(verrs) == 1


def test_template_variant_pass(matrix, fake_vv):
    template = PptTemplate.from_string_matrix(matrix)
    manager = VariantManager(skip_vv=False)
    verrs = template.validate_variants(manager)
    assert not verrs.has_error()
    # four cases share one allele, allele_2 is "na"
    assert fake_vv.return_value.encode_hgvs.call_count == 1


def test_cache_dir_is_reused_across_managers(tmp_path, fake_vv):
    cache_dir = tmp_path / "ZSWIM6"
    first = VariantManager(skip_vv=False, cache_dir=cache_dir)
    first.validate("c.2737C>T", "NM_020928.2")
    first.validate("DEL: deletion exon 5", "NM_020928.2")
    assert (cache_dir / CACHE_FILE_NAME).is_file()
    assert fake_vv.return_value.encode_hgvs.call_count == 1

    second = VariantManager(skip_vv=False, cache_dir=cache_dir)
    assert second.cache_size() == 2
    assert second.validate("c.2737C>T", "NM_020928.2") == HgvsVariant("NM_020928.2", "c.2737C>T", "GRCh38")
    assert fake_vv.return_value.encode_hgvs.call_count == 1


def test_cache_dir_keeps_failures_and_skipped_variants_out(tmp_path, fake_vv):
    fake_vv.return_value.encode_hgvs.side_effect = requests.ConnectionError("offline")
    with pytest.raises(VariantValidationError):
        VariantManager(skip_vv=False, cache_dir=tmp_path).validate("c.2737C>T", "NM_020928.2")
    VariantManager(skip_vv=True, cache_dir=tmp_path).validate("c.2738G>A", "NM_020928.2")

    assert VariantManager(skip_vv=False, cache_dir=tmp_path).cache_size() == 0


def test_cache_dir_ignores_other_genome_build(tmp_path, fake_vv):
    VariantManager(skip_vv=False, cache_dir=tmp_path).validate("c.2737C>T", "NM_020928.2")
    other = VariantManager(genome_build="hg38", skip_vv=False, cache_dir=tmp_path)
    assert other.cache_size() == 0
