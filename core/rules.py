# core/rules.py
"""
The seven automated measure-name checks (Common Errors 1, 3-8).

Every check is a pure function of the name and its reference terms and
returns 1 when the error is present, 0 otherwise. No check reads another
check's result. Common Error 2 (describing the end result instead of the
action) can only be judged by a reviewer and has no check here.

A check whose reference list is empty reports 0 for every name.
"""
from typing import Dict, Iterable, List, Optional, Sequence

from core.lemmatizer import Lemmatizer, LemmatizerUnavailable, lemmatize_name
from core.matching import TermList, WordIndex, contains_any, count_matches, starts_with_any
from core.models import SynonymGroup
from core.tokenizer import whitespace_length

DEFAULT_LENGTH_THRESHOLD = 10
DEFAULT_CONJUNCTIONS = ("and", "or", "and/or")
DEFAULT_SEPARATORS = (";",)
DEFAULT_MIN_ACTIONS = 2

RULES: Dict[str, Dict[str, str]] = {
    "Error_1": {
        "label": "Tentative action",
        "description": "Describes a tentative action or a non-action (e.g. consider, evaluate).",
    },
    "Error_3": {
        "label": "Multiple actions",
        "description": "Joins two or more actions with and/or/; instead of naming a single action.",
    },
    "Error_4": {
        "label": "Excessive length",
        "description": "Has more words than the length threshold.",
    },
    "Error_5": {
        "label": "Missing action",
        "description": "Does not start with an action verb.",
    },
    "Error_6": {
        "label": "Missing element",
        "description": "Does not name a building element or system.",
    },
    "Error_7": {
        "label": "Vague terminology",
        "description": "Uses vague wording (e.g. optimize, improve, upgrade).",
    },
    "Error_8": {
        "label": "Synonymous terminology",
        "description": "Uses a term that appears under more than one synonym across the measure list.",
    },
}


# -------------------- per-name checks --------------------

def check_tentative_action(name: Optional[str], tentative_terms) -> int:
    return int(contains_any(name, tentative_terms))


def check_multiple_actions(
    name: Optional[str],
    action_terms,
    conjunctions: Iterable[str] = DEFAULT_CONJUNCTIONS,
    separators: Iterable[str] = DEFAULT_SEPARATORS,
    min_actions: int = DEFAULT_MIN_ACTIONS,
) -> int:
    """
    1 when the name both contains a conjunction (word or literal separator)
    and names at least `min_actions` action terms. Action terms immediately
    followed by a hyphen ("fire-tube") are not counted.
    """
    text = name or ""
    has_conjunction = contains_any(text, conjunctions) or any(sep and sep in text for sep in separators)
    if not has_conjunction:
        return 0
    return int(count_matches(text, action_terms, skip_hyphenated=True) >= min_actions)


def check_excessive_length(name: Optional[str], threshold: int = DEFAULT_LENGTH_THRESHOLD) -> int:
    return int(whitespace_length(name) > threshold)


def check_missing_action(name: Optional[str], action_terms) -> int:
    action_terms = TermList.of(action_terms)
    if not action_terms:
        return 0
    return int(not starts_with_any(name, action_terms))


def check_missing_element(
    name: Optional[str],
    element_terms,
    lemmatizer: Optional[Lemmatizer] = None,
) -> int:
    """
    0 when an element term appears in the raw name or in its lemmatized form
    ("chillers" -> "chiller"). Without a lemmatizer only the raw name is used.

    Whatever the lemmatizer raises comes out as LemmatizerUnavailable, so
    callers can retry with raw names only.
    """
    element_terms = TermList.of(element_terms)
    if not element_terms:
        return 0
    if contains_any(name, element_terms):
        return 0
    if lemmatizer is None:
        return 1
    try:
        lemmatized = lemmatize_name(name, lemmatizer)
    except LemmatizerUnavailable:
        raise
    except Exception as e:
        raise LemmatizerUnavailable(f"lemmatizer failed on {name!r}: {e!r}") from e
    return int(not contains_any(lemmatized, element_terms))


def check_vague_terminology(name: Optional[str], vague_terms) -> int:
    return int(contains_any(name, vague_terms))


def check_synonymous_terminology(name: Optional[str], attested_terms) -> int:
    """`attested_terms` must come from attested_synonyms() over the whole measure list."""
    return int(contains_any(name, attested_terms))


# -------------------- corpus pre-pass (Error 8) --------------------

def attested_synonyms(names: Iterable[Optional[str]], groups: Sequence[SynonymGroup]) -> TermList:
    """
    Scans all names, joined into one text, for every synonym group. A group
    survives when at least two of its alternatives occur somewhere in the
    list; the alternatives actually found in surviving groups form the term
    list that per-name checks match against.
    """
    corpus = WordIndex(" ".join(n for n in names if n))
    if not corpus.words:
        return TermList()
    attested: List[str] = []
    for group in groups or ():
        found = corpus.find(group.terms)
        if len(found) >= 2:
            attested.extend(found)
    return TermList(attested)
