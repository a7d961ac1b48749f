"""
Deterministic ordering of HPO columns.

Curators read templates left to right, so related phenotypes should sit
next to each other. Terms are ordered by a depth-first walk of the HPO
graph:

1. walk the Neoplasm (HP:0002664) subtree first and set its terms aside;
2. walk Phenotypic abnormality (HP:0000118), skipping nodes already visited;
3. emit the phenotypic-abnormality order followed by the neoplasm order.

Only the selected terms are emitted. The result depends on the two roots,
the ontology's child order and the selected set, nothing else.
"""

from __future__ import annotations

import logging
import typing

import hpotk
from hpotk.validate import PhenotypicAbnormalityValidator

from .errors import HpIdNotFound, PhetoolsError, TermIdError
from .rules import DEFAULT_RULES, CellRules
from .validation import ValidationErrors

logger = logging.getLogger(__name__)

PHENOTYPIC_ABNORMALITY = hpotk.TermId.from_curie("HP:0000118")
NEOPLASM = hpotk.TermId.from_curie("HP:0002664")


class HpoTermArranger:

    def __init__(self, hpo: hpotk.MinimalOntology, rules: CellRules = DEFAULT_RULES):
        self._hpo = hpo
        self._rules = rules
        self._pa_validator = PhenotypicAbnormalityValidator(hpo)

    def arrange_terms(
        self,
        term_ids: typing.Iterable[typing.Union[str, hpotk.TermId]],
        verrs: typing.Optional[ValidationErrors] = None,
    ) -> list[hpotk.TermId]:
        """
        Return the selected terms in DFS order.

        Terms that are malformed, unknown or outside the Phenotypic abnormality
        subtree are left out and reported into ``verrs`` when given.
        """
        if verrs is None:
            verrs = ValidationErrors()
        selected: set[str] = set()
        for term in term_ids:
            tid = self._to_term_id(term, verrs)
            if tid is None:
                continue
            if self._hpo.get_term(tid) is None:
                verrs.push(HpIdNotFound(f"HPO term id {tid.value} not found in ontology"))
                continue
            issues = self._pa_validator.validate([tid]).results
            for issue in issues:
                verrs.push(TermIdError(f"{tid.value}: {issue.message}"))
            if not issues:
                selected.add(tid.value)

        visited: set[str] = set()
        neoplasm_terms: list[hpotk.TermId] = []
        pa_terms: list[hpotk.TermId] = []
        self._dfs(NEOPLASM, selected, visited, neoplasm_terms)
        self._dfs(PHENOTYPIC_ABNORMALITY, selected, visited, pa_terms)
        logger.debug(
            f"Arranged {len(pa_terms)} phenotype and {len(neoplasm_terms)} neoplasm terms"
        )
        return pa_terms + neoplasm_terms

    def _to_term_id(
        self,
        term: typing.Union[str, hpotk.TermId],
        verrs: ValidationErrors,
    ) -> typing.Optional[hpotk.TermId]:
        if isinstance(term, hpotk.TermId):
            return term
        try:
            self._rules.check_hpo_id(term)
        except PhetoolsError as e:
            verrs.push(e)
            return None
        return hpotk.TermId.from_curie(term)

    def _dfs(
        self,
        tid: hpotk.TermId,
        selected: set[str],
        visited: set[str],
        out: list[hpotk.TermId],
    ) -> None:
        if tid.value in visited:
            return
        visited.add(tid.value)
        if tid.value in selected:
            out.append(tid)
        for child in self._hpo.graph.get_children(tid):
            self._dfs(child, selected, visited, out)
