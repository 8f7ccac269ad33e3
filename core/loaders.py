# core/loaders.py
import logging
import os
from typing import Any, Dict, List, Mapping, Optional, Tuple

import pandas as pd

from core.matching import TermList
from core.models import INPUT_MALFORMED, Issue, MeasureRecord, SynonymGroup, TermSet
from core.rule_engine import DEFAULT_COLUMNS, RuleEngine

logger = logging.getLogger(__name__)

SYNONYM_TERM_COLUMNS = ("first_term", "second_term", "third_term", "fourth_term")


def _label(source: Any) -> str:
    if isinstance(source, (str, os.PathLike)):
        return os.path.basename(os.fspath(source))
    return getattr(source, "name", None) or "upload"


def _read_csv(source: Any, label: str, issues: List[Issue]) -> Optional[pd.DataFrame]:
    """Reads a reference CSV; any problem becomes an issue and None."""
    if source is None:
        issues.append(Issue(INPUT_MALFORMED, label, "No file given."))
        return None
    try:
        if hasattr(source, "seek"):
            source.seek(0)
        return pd.read_csv(source, dtype=str, keep_default_na=False)
    except FileNotFoundError:
        issues.append(Issue(INPUT_MALFORMED, label, "File not found."))
    except pd.errors.EmptyDataError:
        issues.append(Issue(INPUT_MALFORMED, label, "File is empty."))
    except (pd.errors.ParserError, UnicodeDecodeError, ValueError) as e:
        issues.append(Issue(INPUT_MALFORMED, label, f"Could not parse CSV: {e}"))
    return None


def _column(df: pd.DataFrame, name: str, label: str, issues: List[Issue]) -> Optional[pd.Series]:
    if name in df.columns:
        return df[name]
    if len(df.columns):
        issues.append(Issue(INPUT_MALFORMED, label, f"No '{name}' column; using '{df.columns[0]}'."))
        return df[df.columns[0]]
    return None


def _clean(value: Any) -> str:
    return "" if value is None else str(value).strip()


# -------------------- measures --------------------

def load_measures(source: Any, columns: Mapping[str, str] = DEFAULT_COLUMNS) -> Tuple[List[MeasureRecord], List[Issue]]:
    """
    Loads the measure list. The file itself is mandatory (FileNotFoundError
    propagates); a missing name column or blank names load as empty names.
    """
    label = _label(source)
    issues: List[Issue] = []
    if hasattr(source, "seek"):
        source.seek(0)
    try:
        df = pd.read_csv(source, dtype=str, keep_default_na=False)
    except pd.errors.EmptyDataError:
        issues.append(Issue(INPUT_MALFORMED, label, "Measure list is empty."))
        return [], issues

    name_col = columns.get("name", DEFAULT_COLUMNS["name"])
    if name_col not in df.columns:
        issues.append(Issue(INPUT_MALFORMED, label, f"No '{name_col}' column; every name is empty.", count=len(df)))

    def cell(row: Dict[str, Any], key: str) -> str:
        return _clean(row.get(columns.get(key, DEFAULT_COLUMNS[key]), ""))

    records: List[MeasureRecord] = []
    for i, row in enumerate(df.to_dict(orient="records"), start=1):
        records.append(MeasureRecord(
            id=cell(row, "id") or str(i),
            document=cell(row, "document"),
            cat_lev1=cell(row, "cat_lev1"),
            cat_lev2=cell(row, "cat_lev2") or None,
            name=cell(row, "name"),
        ))
    logger.info("Loaded %d measures from %s", len(records), label)
    return records, issues


# -------------------- term lists --------------------

def load_terms(source: Any, column: str = "terms", label: Optional[str] = None) -> Tuple[TermList, List[Issue]]:
    label = label or _label(source)
    issues: List[Issue] = []
    df = _read_csv(source, label, issues)
    if df is None:
        return TermList(), issues
    series = _column(df, column, label, issues)
    terms = TermList([] if series is None else [_clean(v) for v in series])
    return terms, issues


def load_element_terms(
    source: Any,
    keyword_column: str = "keyword",
    type_column: str = "type",
    element_type: str = "Element",
    label: Optional[str] = None,
) -> Tuple[TermList, List[Issue]]:
    """Keywords of the categorization tags whose type is `element_type`."""
    label = label or _label(source)
    issues: List[Issue] = []
    df = _read_csv(source, label, issues)
    if df is None:
        return TermList(), issues
    if type_column not in df.columns or keyword_column not in df.columns:
        issues.append(Issue(INPUT_MALFORMED, label, f"Needs '{keyword_column}' and '{type_column}' columns."))
        return TermList(), issues
    rows = df[df[type_column].str.strip() == element_type]
    terms = TermList(_clean(v) for v in rows[keyword_column])
    return terms, issues


def load_synonym_groups(
    source: Any,
    category_column: str = "category",
    label: Optional[str] = None,
) -> Tuple[List[SynonymGroup], List[Issue]]:
    """
    One group per row: the first..fourth_term columns (any column ending in
    "_term" if those are absent) hold the alternatives; blanks are skipped.
    """
    label = label or _label(source)
    issues: List[Issue] = []
    df = _read_csv(source, label, issues)
    if df is None:
        return [], issues
    term_cols = [c for c in SYNONYM_TERM_COLUMNS if c in df.columns] or [c for c in df.columns if c.endswith("_term")]
    if not term_cols:
        issues.append(Issue(INPUT_MALFORMED, label, "No *_term columns found."))
        return [], issues

    groups: List[SynonymGroup] = []
    skipped = 0
    for i, row in enumerate(df.to_dict(orient="records"), start=1):
        alternatives = tuple(t for t in (_clean(row.get(c)) for c in term_cols) if t)
        if len(alternatives) < 2:
            skipped += 1
            continue
        category = _clean(row.get(category_column)) or str(i)
        groups.append(SynonymGroup(category=category, terms=alternatives))
    if skipped:
        issues.append(Issue(INPUT_MALFORMED, label, "Row(s) with fewer than two alternatives skipped.", count=skipped))
    return groups, issues


def load_term_set(
    data_dir: str,
    engine: RuleEngine,
    overrides: Optional[Mapping[str, Any]] = None,
) -> Tuple[TermSet, List[Issue]]:
    """
    Loads the five reference lists from `data_dir` using the file names in the
    rule configuration. `overrides` maps a source key (tentative, action,
    element, vague, synonyms) to a path or an open file to use instead.
    """
    overrides = overrides or {}

    def src(key: str) -> Any:
        if overrides.get(key) is not None:
            return overrides[key]
        return os.path.join(data_dir, engine.get_source(key))

    terms_col = engine.get_column("terms")
    tentative, i1 = load_terms(src("tentative"), terms_col)
    action, i2 = load_terms(src("action"), terms_col)
    element, i3 = load_element_terms(
        src("element"),
        keyword_column=engine.get_column("element_keyword"),
        type_column=engine.get_column("element_type"),
        element_type=engine.get_element_type(),
    )
    vague, i4 = load_terms(src("vague"), terms_col)
    groups, i5 = load_synonym_groups(src("synonyms"), category_column=engine.get_column("synonym_category"))

    issues = i1 + i2 + i3 + i4 + i5
    for issue in issues:
        logger.warning("[%s] %s: %s", issue.kind, issue.source, issue.message)
    return TermSet(tentative=tentative, action=action, element=element, vague=vague, synonym_groups=groups), issues
