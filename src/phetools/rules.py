"""
Cell grammars shared by all template columns.

``CellRules`` bundles the lookup tables and regular expressions that the
column checks need (onset labels, HGVS shapes, forbidden label characters,
...). It is immutable and built once; header duplets receive it at
construction time and ``DEFAULT_RULES`` is what they get when the caller
does not pass their own.

Each ``check_*`` method returns ``None`` on success and raises a typed
``PhetoolsError`` describing the first defect it finds.
"""

from __future__ import annotations

import re
import types
import typing
from dataclasses import dataclass, field

from .errors import (
    AgeParseError,
    CurieError,
    DiseaseIdError,
    EmptyField,
    EmptyLabel,
    ForbiddenLabelChar,
    HgncError,
    HgvsError,
    MalformedLabel,
    PmidError,
    TermIdError,
    TranscriptError,
    WhiteSpaceError,
)


# ----------------------------------
# Patterns and small constant tables
# ----------------------------------

_CURIE_PREFIX = re.compile(r"^[A-Za-z][A-Za-z0-9_]*$")
_DIGITS = re.compile(r"^\d+$")

_ISO8601_AGE = re.compile(r"^P(?:(\d+)Y)?(?:(\d+)M)?(?:(\d+)D)?$")
_GESTATIONAL_AGE = re.compile(r"^G\d+w[0-6]d$")

_TRANSCRIPT_BODY = re.compile(r"^[A-Z]+_?\d+\.\d+$")

# Coding/non-coding position, optionally intronic (c.100+2) or UTR (c.-19, c.*21)
_POS = r"[-*]?\d+(?:[+-]\d+)?"
_HGVS_PATTERNS = (
    re.compile(rf"^[cn]\.{_POS}[ACGT]+>[ACGT]+$"),  # substitution
    re.compile(rf"^[cn]\.{_POS}(?:_{_POS})?delins[ACGT]+$"),  # deletion-insertion
    re.compile(rf"^[cn]\.{_POS}(?:_{_POS})?del[ACGT]*$"),  # deletion
    re.compile(rf"^[cn]\.{_POS}(?:_{_POS})?dup[ACGT]*$"),  # duplication
    re.compile(rf"^[cn]\.{_POS}_{_POS}ins[ACGT]+$"),  # insertion
    re.compile(rf"^[cn]\.{_POS}_{_POS}inv$"),  # inversion
)

_STRUCTURAL_PREFIXES = frozenset({"DEL", "DUP", "INV", "INS", "TRANSL"})
_TRANSCRIPT_PREFIXES = ("NM_", "NR_", "XM_", "XR_", "ENST")
_DISEASE_PREFIXES = frozenset({"OMIM", "MONDO"})
_FORBIDDEN_LABEL_CHARS = frozenset({"/", "\\", "(", ")"})

_DECEASED_VALUES = ("yes", "no", "na")
_SEX_VALUES = ("M", "F", "O", "U")
_SEX_SYNONYMS = {"male": "M", "female": "F", "other": "O", "unknown": "U"}

# HPO Onset (HP:0003674) subhierarchy, label -> term id
_ONSET_TERMS = {
    "Late onset": "HP:0003584",
    "Middle age onset": "HP:0003596",
    "Young adult onset": "HP:0011462",
    "Late young adult onset": "HP:0025710",
    "Intermediate young adult onset": "HP:0025709",
    "Early young adult onset": "HP:0025708",
    "Adult onset": "HP:0003581",
    "Juvenile onset": "HP:0003621",
    "Childhood onset": "HP:0011463",
    "Infantile onset": "HP:0003593",
    "Neonatal onset": "HP:0003623",
    "Congenital onset": "HP:0003577",
    "Antenatal onset": "HP:0030674",
    "Embryonal onset": "HP:0011460",
    "Fetal onset": "HP:0011461",
    "Late first trimester onset": "HP:0034199",
    "Second trimester onset": "HP:0034198",
    "Third trimester onset": "HP:0034197",
}


def _frozen(mapping: dict[str, str]) -> typing.Mapping[str, str]:
    return types.MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class CellRules:
    """
    Lookup tables and grammars for template cells.

    Attributes:
        onset_terms: HPO onset labels accepted as ages, mapped to their term ids.
        hgvs_patterns: accepted c./n. HGVS shapes (transcript not included).
        structural_prefixes: tags of free-text structural variants (``DEL: exon 5``).
        transcript_prefixes: accepted transcript accession prefixes.
        disease_prefixes: accepted disease CURIE prefixes.
        forbidden_label_chars: characters banned from identifier-like labels.
        deceased_values / sex_values: the controlled vocabularies.
        sex_synonyms: words the editor maps onto a sex code.
    """

    onset_terms: typing.Mapping[str, str] = field(default_factory=lambda: _frozen(_ONSET_TERMS))
    hgvs_patterns: tuple[re.Pattern, ...] = _HGVS_PATTERNS
    structural_prefixes: frozenset[str] = _STRUCTURAL_PREFIXES
    transcript_prefixes: tuple[str, ...] = _TRANSCRIPT_PREFIXES
    disease_prefixes: frozenset[str] = _DISEASE_PREFIXES
    forbidden_label_chars: frozenset[str] = _FORBIDDEN_LABEL_CHARS
    deceased_values: tuple[str, ...] = _DECEASED_VALUES
    sex_values: tuple[str, ...] = _SEX_VALUES
    sex_synonyms: typing.Mapping[str, str] = field(default_factory=lambda: _frozen(_SEX_SYNONYMS))

    # -------
    # CURIEs
    # -------

    def check_curie(self, value: str) -> tuple[str, str]:
        """Check the generic ``PREFIX:digits`` shape and return ``(prefix, suffix)``."""
        if not value:
            raise CurieError("Empty CURIE")
        if any(c.isspace() for c in value):
            raise WhiteSpaceError(f"Contains stray whitespace: '{value}'")
        n_colons = value.count(":")
        if n_colons == 0:
            raise CurieError(f"Invalid CURIE with no colon: '{value}'")
        if n_colons > 1:
            raise CurieError(f"Invalid CURIE with multiple colons: '{value}'")
        prefix, suffix = value.split(":")
        if not prefix:
            raise CurieError(f"Invalid CURIE with no prefix: '{value}'")
        if not suffix:
            raise CurieError(f"Invalid CURIE with no suffix: '{value}'")
        if not _CURIE_PREFIX.match(prefix):
            raise CurieError(f"Invalid CURIE prefix: '{value}'")
        if not _DIGITS.match(suffix):
            raise CurieError(f"Invalid CURIE with non-digit characters in suffix: '{value}'")
        return prefix, suffix

    def check_pmid(self, value: str) -> None:
        prefix, _ = self.check_curie(value)
        if prefix != "PMID":
            raise PmidError(f"Invalid PMID prefix: '{value}'")

    def check_disease_id(self, value: str) -> None:
        prefix, suffix = self.check_curie(value)
        if prefix not in self.disease_prefixes:
            raise DiseaseIdError(f"Disease id has invalid prefix: '{value}'")
        if prefix == "OMIM" and len(suffix) != 6:
            raise DiseaseIdError(f"OMIM identifiers must have 6 digits: '{value}'")

    def check_hgnc_id(self, value: str) -> None:
        prefix, _ = self.check_curie(value)
        if prefix != "HGNC":
            raise HgncError(f"HGNC id has invalid prefix: '{value}'")

    def check_hpo_id(self, value: str) -> None:
        prefix, suffix = self.check_curie(value)
        if prefix != "HP" or len(suffix) != 7:
            raise TermIdError(f"Invalid HPO term id: '{value}'")

    # -------
    # Labels
    # -------

    def check_label(self, value: str, forbid_chars: bool = False) -> None:
        """
        Free-text label: non-empty, single spaces only, nothing at either end.
        With ``forbid_chars`` the identifier-unsafe characters are rejected too.
        """
        if not value:
            raise EmptyLabel("Value must not be empty")
        if value[0].isspace():
            raise WhiteSpaceError(f"Leading whitespace in '{value}'")
        if value[-1].isspace():
            raise WhiteSpaceError(f"Trailing whitespace in '{value}'")
        for a, b in zip(value, value[1:]):
            if a.isspace() and b.isspace():
                raise WhiteSpaceError(f"Consecutive whitespace in '{value}'")
        for c in value:
            if c.isspace() and c != " ":
                raise MalformedLabel(f"Non-space whitespace character in '{value}'")
        if forbid_chars:
            for c in value:
                if c in self.forbidden_label_chars:
                    raise ForbiddenLabelChar(f"Forbidden character '{c}' found in label '{value}'")

    def check_comment(self, value: str) -> None:
        if "\t" in value:
            raise WhiteSpaceError("Value must not contain a tab character")

    # ----------------------
    # Transcripts & alleles
    # ----------------------

    def check_transcript(self, value: str) -> None:
        if not value:
            raise EmptyField("Value must not be empty")
        if any(c.isspace() for c in value):
            raise WhiteSpaceError(f"Contains stray whitespace: '{value}'")
        if not value.startswith(self.transcript_prefixes):
            raise TranscriptError(f"Unrecognized transcript prefix '{value}'")
        if "." not in value:
            raise TranscriptError(f"Transcript '{value}' is missing a version")
        if not _TRANSCRIPT_BODY.match(value):
            raise TranscriptError(f"Malformed transcript '{value}'")

    def is_hgvs(self, value: str) -> bool:
        return any(p.match(value) for p in self.hgvs_patterns)

    def is_structural(self, value: str) -> bool:
        prefix, sep, rest = value.partition(":")
        return bool(sep) and prefix in self.structural_prefixes and bool(rest.strip())

    def check_allele1(self, value: str) -> None:
        if not value:
            raise EmptyField("Value must not be empty")
        if not (self.is_hgvs(value) or self.is_structural(value)):
            raise HgvsError(f"Malformed allele '{value}'")

    def check_allele2(self, value: str) -> None:
        if value == "na":
            return
        if not value:
            raise EmptyField("Value must not be empty")
        if not (self.is_hgvs(value) or self.is_structural(value)):
            raise HgvsError(f"Malformed allele_2 field: '{value}'")

    # -----
    # Ages
    # -----

    def is_valid_age(self, value: str) -> bool:
        """True for an onset label, an ISO-8601 duration (``P2Y3M``) or a gestational age (``G32w2d``)."""
        if value in self.onset_terms:
            return True
        if value != "P" and _ISO8601_AGE.match(value):
            return True
        return bool(_GESTATIONAL_AGE.match(value))

    def check_age(self, value: str, field_name: str) -> None:
        if not value:
            raise EmptyField(f"{field_name} must not be empty")
        if value == "na":
            return
        if not self.is_valid_age(value):
            raise AgeParseError(f"Malformed {field_name} '{value}'")


DEFAULT_RULES = CellRules()
