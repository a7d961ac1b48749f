"""
Variant validation with a read-through cache.

Allele cells are checked syntactically by the column grammar. Whether an
HGVS expression actually describes a variant on its transcript can only be
answered by VariantValidator, which is slow and rate limited. The
``VariantManager`` asks pyphetools' ``VariantValidator`` at most once per
distinct variant (failures are remembered too) and is only ever invoked
explicitly, never from per-cell validation.

Structural variants (``DEL: exon 5``, ``TRANSL: t(2;4)``) are free text and
are validated locally.

With a cache directory, validated variants are also kept in
``<cache_dir>/variant_cache.json`` so that later runs over the same cohort
skip VariantValidator for everything already seen. Failures are only
remembered for the lifetime of the manager.

Environment flags
----------------------------------------
PHETOOLS_SKIP_VV=1        : Only check HGVS syntax, never call VariantValidator.
PHETOOLS_GENOME_BUILD     : Genome build passed to VariantValidator (default GRCh38).
"""

from __future__ import annotations

import dataclasses
import json
import logging
import os
import pathlib
import typing
from dataclasses import dataclass

import requests
from pyphetools.creation.variant_validator import VariantValidator

from .errors import PhetoolsError, VariantValidationError
from .rules import DEFAULT_RULES, CellRules
from .validation import ValidationErrors

logger = logging.getLogger(__name__)

_ACCEPTED_GENOME_BUILDS = {"GRCh38", "hg38"}

CACHE_FILE_NAME = "variant_cache.json"


def _skip_vv_from_env() -> bool:
    return os.getenv("PHETOOLS_SKIP_VV", "").strip().lower() in {"1", "true"}


# -------------
# Data classes
# -------------


@dataclass
class VariantDto:
    """A variant as curated: allele string plus the gene/transcript it lives on."""

    variant_string: str
    transcript: str
    hgnc_id: str
    gene_symbol: str
    validated: bool = False
    is_structural: bool = False

    def clone_validated(self, is_structural: bool = False) -> "VariantDto":
        return dataclasses.replace(self, validated=True, is_structural=is_structural)

    def sort_key(self) -> tuple[int, str]:
        # c. before n. before structural
        if self.variant_string.startswith("c."):
            return 0, self.variant_string
        if self.variant_string.startswith("n."):
            return 1, self.variant_string
        return 2, self.variant_string


@dataclass(frozen=True)
class HgvsVariant:
    """HGVS accepted by VariantValidator."""

    transcript: str
    hgvs: str
    genome_build: str


@dataclass(frozen=True)
class StructuralVariant:
    sv_type: str
    label: str
    transcript: str


@dataclass(frozen=True)
class LocalHgvsVariant:
    """Syntax-checked HGVS, used when VariantValidator is switched off."""

    transcript: str
    hgvs: str


# -------------------
# The cached manager
# -------------------


class VariantManager:

    def __init__(
        self,
        genome_build: typing.Optional[str] = None,
        skip_vv: typing.Optional[bool] = None,
        rules: CellRules = DEFAULT_RULES,
        cache_dir: typing.Optional[typing.Union[str, pathlib.Path]] = None,
    ):
        build = genome_build or os.getenv("PHETOOLS_GENOME_BUILD", "GRCh38")
        if build not in _ACCEPTED_GENOME_BUILDS:
            raise ValueError(f"Unsupported genome build '{build}', use one of {sorted(_ACCEPTED_GENOME_BUILDS)}")
        self._genome_build = build
        self._skip_vv = _skip_vv_from_env() if skip_vv is None else skip_vv
        self._rules = rules
        self._validated: dict[str, typing.Union[HgvsVariant, StructuralVariant, LocalHgvsVariant]] = {}
        self._failed: dict[str, VariantValidationError] = {}
        self._cache_file: typing.Optional[pathlib.Path] = None
        if cache_dir is not None:
            cache_path = pathlib.Path(cache_dir)
            cache_path.mkdir(parents=True, exist_ok=True)
            self._cache_file = cache_path / CACHE_FILE_NAME
            self._load_cache()

    @property
    def genome_build(self) -> str:
        return self._genome_build

    def validate(
        self, variant_string: str, transcript: str
    ) -> typing.Union[HgvsVariant, StructuralVariant, LocalHgvsVariant]:
        """
        Return the structured variant for ``variant_string`` on ``transcript``.

        Raises ``VariantValidationError``; the outcome is cached either way.
        """
        key = f"{transcript}:{variant_string}"
        if key in self._validated:
            return self._validated[key]
        if key in self._failed:
            raise self._failed[key]
        try:
            variant = self._validate_uncached(variant_string, transcript)
        except VariantValidationError as e:
            self._failed[key] = e
            raise
        self._validated[key] = variant
        if not isinstance(variant, LocalHgvsVariant):
            self._save_cache()
        return variant

    def _validate_uncached(
        self, variant_string: str, transcript: str
    ) -> typing.Union[HgvsVariant, StructuralVariant, LocalHgvsVariant]:
        if self._rules.is_structural(variant_string):
            sv_type, _, label = variant_string.partition(":")
            return StructuralVariant(sv_type=sv_type, label=label.strip(), transcript=transcript)
        if not self._rules.is_hgvs(variant_string):
            raise VariantValidationError(f"Malformed allele '{variant_string}'")
        if self._skip_vv:
            return LocalHgvsVariant(transcript=transcript, hgvs=variant_string)
        logger.debug(f"Querying VariantValidator for {transcript}:{variant_string}")
        try:
            vv = VariantValidator(genome_build=self._genome_build, transcript=transcript)
            vv.encode_hgvs(variant_string)
        except (
            requests.RequestException,
            ValueError,
            TypeError,
            AttributeError,
            KeyError,
        ) as e:
            raise VariantValidationError(
                f"VariantValidator could not validate {transcript}:{variant_string}: {e}"
            ) from e
        return HgvsVariant(transcript=transcript, hgvs=variant_string, genome_build=self._genome_build)

    # ------------------
    # Persistent cache
    # ------------------

    def _load_cache(self) -> None:
        if self._cache_file is None or not self._cache_file.is_file():
            return
        with open(self._cache_file, encoding="utf-8") as f:
            data = json.load(f)
        for key, record in data.get("hgvs", {}).items():
            # results for another build are not reused
            if record.get("genome_build") == self._genome_build:
                self._validated[key] = HgvsVariant(**record)
        for key, record in data.get("structural", {}).items():
            self._validated[key] = StructuralVariant(**record)
        logger.debug(f"Loaded {len(self._validated)} cached variant(s) from {self._cache_file}")

    def _save_cache(self) -> None:
        if self._cache_file is None:
            return
        data: dict[str, dict[str, typing.Any]] = {"hgvs": {}, "structural": {}}
        if self._cache_file.is_file():
            with open(self._cache_file, encoding="utf-8") as f:
                data.update(json.load(f))
        for key, variant in self._validated.items():
            if isinstance(variant, HgvsVariant):
                data["hgvs"][key] = dataclasses.asdict(variant)
            elif isinstance(variant, StructuralVariant):
                data["structural"][key] = dataclasses.asdict(variant)
        with open(self._cache_file, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)

    def validate_dto(self, dto: VariantDto) -> VariantDto:
        self.validate(dto.variant_string, dto.transcript)
        return dto.clone_validated(is_structural=self._rules.is_structural(dto.variant_string))

    def validate_dto_list(
        self,
        dtos: typing.Iterable[VariantDto],
        verrs: typing.Optional[ValidationErrors] = None,
    ) -> list[VariantDto]:
        """Validate many variants; failures go to ``verrs`` and the rest come back sorted."""
        if verrs is None:
            verrs = ValidationErrors()
        validated = []
        for dto in dtos:
            try:
                validated.append(self.validate_dto(dto))
            except PhetoolsError as e:
                verrs.push(e)
        return sorted(validated, key=VariantDto.sort_key)

    def cache_size(self) -> int:
        return len(self._validated) + len(self._failed)
