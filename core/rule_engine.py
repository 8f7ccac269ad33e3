# core/rule_engine.py
import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional

from core import rules
from core.lemmatizer import Lemmatizer, LemmatizerUnavailable
from core.matching import TermList
from core.models import (
    COLLABORATOR_FAILURE,
    ERROR_FLAGS,
    INPUT_MALFORMED,
    FlaggedRecord,
    Issue,
    MeasureRecord,
    TermSet,
)

logger = logging.getLogger(__name__)

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
DEFAULT_RULES_PATH = os.path.join(PROJECT_ROOT, "data", "default_rules.json")

DEFAULT_SOURCES = {
    "measures": "sample-eems.csv",
    "tentative": "tentative-terms.csv",
    "action": "action-terms.csv",
    "element": "categorization-tags.csv",
    "vague": "vague-terms.csv",
    "synonyms": "synonymous-terms.csv",
}

DEFAULT_COLUMNS = {
    "id": "eem_id",
    "document": "document",
    "cat_lev1": "cat_lev1",
    "cat_lev2": "cat_lev2",
    "name": "eem_name",
    "terms": "terms",
    "element_keyword": "keyword",
    "element_type": "type",
    "synonym_category": "category",
}


@dataclass
class EvaluationResult:
    records: List[FlaggedRecord]
    attested_synonyms: TermList = field(default_factory=TermList)
    issues: List[Issue] = field(default_factory=list)

    @property
    def lemma_fallback_count(self) -> int:
        return sum(1 for r in self.records if r.lemma_fallback)

    def flag_totals(self) -> Dict[str, int]:
        return {k: sum(r.flags[k] for r in self.records) for k in ERROR_FLAGS}


class RuleEngine:
    def __init__(self, rule_filepath: str = DEFAULT_RULES_PATH):
        """
        Initializes the Rule Engine by loading a JSON rule file.
        Missing or unreadable files leave every setting at its default.
        """
        # remember where we tried to load from (for diagnostics)
        self._rule_filepath = rule_filepath
        self.rules: Dict[str, Any] = {}

        try:
            with open(rule_filepath, "r", encoding="utf-8") as f:
                self.rules = json.load(f)
            logger.info("Loaded rules: %s", self.rules.get("name"))
        except FileNotFoundError:
            logger.error("Rule file not found at %s. Using default rules.", rule_filepath)
            self.rules = {}
        except json.JSONDecodeError:
            logger.error("Could not parse JSON in %s. Using default rules.", rule_filepath)
            self.rules = {}

        if not isinstance(self.rules, dict):
            logger.error("Rule file %s does not hold a JSON object. Using default rules.", rule_filepath)
            self.rules = {}

    # -------------------- getters --------------------

    def _section(self, name: str) -> Dict[str, Any]:
        return (self.rules.get("rules", {}) or {}).get(name, {}) or {}

    def get_length_threshold(self) -> int:
        try:
            return int(self._section("excessive_length").get("threshold", rules.DEFAULT_LENGTH_THRESHOLD))
        except (TypeError, ValueError):
            return rules.DEFAULT_LENGTH_THRESHOLD

    def set_length_threshold(self, threshold: int) -> None:
        self.rules.setdefault("rules", {}).setdefault("excessive_length", {})["threshold"] = int(threshold)

    def get_conjunctions(self) -> List[str]:
        return list(self._section("multiple_actions").get("conjunctions") or rules.DEFAULT_CONJUNCTIONS)

    def get_separators(self) -> List[str]:
        return list(self._section("multiple_actions").get("separators") or rules.DEFAULT_SEPARATORS)

    def get_min_actions(self) -> int:
        try:
            return int(self._section("multiple_actions").get("min_actions", rules.DEFAULT_MIN_ACTIONS))
        except (TypeError, ValueError):
            return rules.DEFAULT_MIN_ACTIONS

    def get_source(self, key: str) -> str:
        """File name of an input list (measures, tentative, action, element, vague, synonyms)."""
        return (self.rules.get("sources", {}) or {}).get(key) or DEFAULT_SOURCES[key]

    def get_column(self, key: str) -> str:
        return (self.rules.get("columns", {}) or {}).get(key) or DEFAULT_COLUMNS[key]

    def get_columns(self) -> Dict[str, str]:
        return {k: self.get_column(k) for k in DEFAULT_COLUMNS}

    def get_element_type(self) -> str:
        return self.rules.get("element_type") or "Element"

    # -------------------- evaluation --------------------

    def _checks(
        self,
        terms: TermSet,
        attested: TermList,
    ) -> Dict[str, Callable[[str], int]]:
        threshold = self.get_length_threshold()
        conjunctions = TermList(self.get_conjunctions())
        separators = self.get_separators()
        min_actions = self.get_min_actions()
        return {
            "Error_1": lambda name: rules.check_tentative_action(name, terms.tentative),
            "Error_3": lambda name: rules.check_multiple_actions(
                name, terms.action, conjunctions, separators, min_actions
            ),
            "Error_4": lambda name: rules.check_excessive_length(name, threshold),
            "Error_5": lambda name: rules.check_missing_action(name, terms.action),
            "Error_7": lambda name: rules.check_vague_terminology(name, terms.vague),
            "Error_8": lambda name: rules.check_synonymous_terminology(name, attested),
        }

    def evaluate(
        self,
        records: Iterable[MeasureRecord],
        terms: TermSet,
        lemmatizer: Optional[Lemmatizer] = None,
    ) -> EvaluationResult:
        """
        Flags every record against the seven checks.

        The synonym scan over the whole list runs first and finishes before
        any record is flagged. A check that fails on one record is logged and
        counted, reports 0 for that record, and does not stop the run.
        """
        records = list(records)
        issues: List[Issue] = _term_list_issues(terms)

        attested = rules.attested_synonyms((r.name for r in records), terms.synonym_groups)
        checks = self._checks(terms, attested)

        failures: Dict[str, int] = {}
        if lemmatizer is None:
            issues.append(Issue(
                COLLABORATOR_FAILURE, "lemmatizer",
                "No lemmatizer available; Error_6 matched raw names only.",
                count=len(records),
            ))
        active_lemmatizer = lemmatizer
        lemma_issue: Optional[Issue] = None

        flagged: List[FlaggedRecord] = []
        for rec in records:
            name = rec.name or ""
            flags: Dict[str, int] = {}
            for key, check in checks.items():
                try:
                    flags[key] = check(name)
                except Exception:
                    logger.exception("%s failed on measure %s", key, rec.id)
                    failures[key] = failures.get(key, 0) + 1
                    flags[key] = 0

            fallback = active_lemmatizer is None
            try:
                flags["Error_6"] = rules.check_missing_element(name, terms.element, active_lemmatizer)
            except LemmatizerUnavailable as e:
                logger.warning("Lemmatizer failed on measure %s, matching raw names from here on: %s", rec.id, e)
                lemma_issue = Issue(COLLABORATOR_FAILURE, "lemmatizer", f"Lemmatizer stopped working: {e}")
                issues.append(lemma_issue)
                active_lemmatizer = None
                fallback = True
                flags["Error_6"] = rules.check_missing_element(name, terms.element, None)
            except Exception:
                logger.exception("Error_6 failed on measure %s", rec.id)
                failures["Error_6"] = failures.get("Error_6", 0) + 1
                flags["Error_6"] = 0

            flagged.append(FlaggedRecord(
                record=rec,
                flags={k: int(flags.get(k, 0)) for k in ERROR_FLAGS},
                lemma_fallback=fallback,
            ))

        if lemma_issue is not None:
            lemma_issue.count = sum(1 for r in flagged if r.lemma_fallback)

        for key, n in failures.items():
            issues.append(Issue(INPUT_MALFORMED, key, f"Check failed on {n} record(s); reported as 0.", count=n))

        blank = sum(1 for r in records if not (r.name or "").strip())
        if blank:
            issues.append(Issue(INPUT_MALFORMED, "measures", "Measure(s) with an empty name.", count=blank))

        for issue in issues:
            logger.warning("[%s] %s: %s (%d)", issue.kind, issue.source, issue.message, issue.count)

        return EvaluationResult(records=flagged, attested_synonyms=attested, issues=issues)

    def evaluate_name(
        self,
        name: str,
        terms: TermSet,
        lemmatizer: Optional[Lemmatizer] = None,
        attested: Optional[TermList] = None,
    ) -> Dict[str, int]:
        """
        Flags a single name. Error_8 needs the synonym terms attested across a
        whole list; pass `attested` from an earlier evaluate() run, otherwise
        the name alone is used as the list. A failing lemmatizer leaves
        Error_6 to the raw name.
        """
        if attested is None:
            attested = rules.attested_synonyms([name], terms.synonym_groups)
        flags = {key: check(name) for key, check in self._checks(terms, attested).items()}
        try:
            flags["Error_6"] = rules.check_missing_element(name, terms.element, lemmatizer)
        except LemmatizerUnavailable as e:
            logger.warning("Lemmatizer failed, matching the raw name only: %s", e)
            flags["Error_6"] = rules.check_missing_element(name, terms.element, None)
        return {k: flags[k] for k in ERROR_FLAGS}

    # -------------------- Diagnostics helper --------------------

    def debug_summary(self) -> Dict[str, Any]:
        return {
            "loaded": bool(self.rules),
            "source": self._rule_filepath,
            "name": self.rules.get("name"),
            "length_threshold": self.get_length_threshold(),
            "conjunctions": self.get_conjunctions(),
            "separators": self.get_separators(),
            "min_actions": self.get_min_actions(),
            "sources": {k: self.get_source(k) for k in DEFAULT_SOURCES},
        }


# -------------------- small utility --------------------

def _term_list_issues(terms: TermSet) -> List[Issue]:
    issues: List[Issue] = []
    lists = {
        "tentative": ("Error_1", terms.tentative),
        "action": ("Error_3/Error_5", terms.action),
        "element": ("Error_6", terms.element),
        "vague": ("Error_7", terms.vague),
    }
    for source, (flag, tl) in lists.items():
        if not tl:
            issues.append(Issue(INPUT_MALFORMED, source, f"Term list is empty; {flag} reports no errors."))
    if not terms.synonym_groups:
        issues.append(Issue(INPUT_MALFORMED, "synonyms", "No synonym groups; Error_8 reports no errors."))
    return issues
