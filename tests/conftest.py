import os

import hpotk
import pytest

TITLE = (
    "A Recurrent De Novo Nonsense Variant in ZSWIM6 Results in Severe Intellectual "
    "Disability without Frontonasal or Limb Malformations"
)
DISEASE_LABEL = "Neurodevelopmental disorder with movement abnormalities, abnormal gait, and autistic features"

PREFIX_ROW1 = [
    "PMID", "title", "individual_id", "comment", "disease_id", "disease_label", "HGNC_id", "gene_symbol",
    "transcript", "allele_1", "allele_2", "variant.comment", "age_of_onset", "age_at_last_encounter",
    "deceased", "sex", "HPO",
]
PREFIX_ROW2 = [
    "CURIE", "str", "str", "optional", "CURIE", "str", "CURIE", "str", "str", "str", "str", "optional",
    "age", "age", "yes/no/na", "M:F:O:U", "na",
]


def case_prefix(individual: str, last_encounter: str, deceased: str, sex: str) -> list[str]:
    return [
        "PMID:29198722", TITLE, individual, "", "OMIM:617865", DISEASE_LABEL, "HGNC:29316", "ZSWIM6",
        "NM_020928.2", "c.2737C>T", "na", "", "Infantile onset", last_encounter, deceased, sex, "na",
    ]


# ---------------------------------------------
# A small HPO: nervous system, growth, head/neck and neoplasm branches under
# Phenotypic abnormality, plus a mode-of-inheritance branch outside it.
# HP:0007000 is an alternative id of Seizure (HP:0001250).
# ---------------------------------------------


@pytest.fixture(scope="session")
def fpath_test_dir() -> str:
    """
    Path to `tests/data/` folder.
    """
    return os.path.join(os.path.dirname(__file__), "data")


@pytest.fixture(scope="session")
def fpath_hpo(fpath_test_dir: str) -> str:
    return os.path.join(fpath_test_dir, "hp.toy.json")


@pytest.fixture(scope="session")
def hpo(fpath_hpo: str) -> hpotk.MinimalOntology:
    return hpotk.load_minimal_ontology(fpath_hpo)


# ---------------------------------------------
# Template matrices (ZSWIM6, OMIM:617865)
# ---------------------------------------------


@pytest.fixture
def matrix() -> list[list[str]]:
    row1 = PREFIX_ROW1 + [
        "Failure to thrive", "Tongue thrusting", "Ataxia", "Hypertonia", "Loss of ambulation",
        "Happy demeanor", "Seizure",
    ]
    row2 = PREFIX_ROW2 + [
        "HP:0001508", "HP:0100703", "HP:0001251", "HP:0001276", "HP:0002505", "HP:0040082", "HP:0001250",
    ]
    row3 = case_prefix("p.Arg913Ter Affected Individual 1", "P16Y", "na", "M") + [
        "observed", "observed", "excluded", "observed", "observed", "observed", "observed",
    ]
    row4 = case_prefix("p.Arg913Ter Affected Individual 2", "P7Y", "yes", "F") + [
        "excluded", "observed", "observed", "excluded", "excluded", "observed", "excluded",
    ]
    row5 = case_prefix("p.Arg913Ter Affected Individual 3", "P4Y", "no", "F") + [
        "excluded", "observed", "excluded", "observed", "excluded", "observed", "na",
    ]
    row6 = case_prefix("p.Arg913Ter Affected Individual 4", "P5Y", "no", "F") + [
        "excluded", "excluded", "observed", "excluded", "excluded", "na", "excluded",
    ]
    return [row1, row2, row3, row4, row5, row6]


@pytest.fixture
def one_case_matrix() -> list[list[str]]:
    row1 = PREFIX_ROW1 + ["Failure to thrive", "Seizure"]
    row2 = PREFIX_ROW2 + ["HP:0001508", "HP:0001250"]
    row3 = case_prefix("p.Arg913Ter Affected Individual 1", "P16Y", "na", "M") + ["observed", "observed"]
    return [row1, row2, row3]
