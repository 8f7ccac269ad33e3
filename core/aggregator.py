# core/aggregator.py
"""
Descriptive statistics over a measure list.

Frequency tables are ordered by descending count; equal counts keep the
order in which the terms first appeared in the input. Categories are listed
alphabetically. Nothing here keeps state between calls, so the same input
always gives the same tables.
"""
from collections import Counter
from statistics import mean, median
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from core.models import ERROR_FLAGS, CategorySummary, FlaggedRecord, LengthSummary, MeasureRecord
from core.stopwords import STOPWORDS
from core.tokenizer import bigramize, filter_stopwords, tokenize

Frequency = List[Tuple[str, int]]


def _ranked(items: Iterable[str]) -> Frequency:
    # Counter keeps first-insertion order; sorted() is stable.
    counts = Counter(items)
    return sorted(counts.items(), key=lambda kv: -kv[1])


def summarize(flagged: Iterable[FlaggedRecord]) -> List[CategorySummary]:
    """Record count and per-error sums for each level-1 category."""
    totals: Dict[str, int] = {}
    sums: Dict[str, Dict[str, int]] = {}
    for fr in flagged:
        cat = fr.record.cat_lev1 or ""
        totals[cat] = totals.get(cat, 0) + 1
        bucket = sums.setdefault(cat, {k: 0 for k in ERROR_FLAGS})
        for k in ERROR_FLAGS:
            bucket[k] += int(fr.flags.get(k, 0))
    return [
        CategorySummary(category=cat, total=totals[cat], error_counts=dict(sums[cat]))
        for cat in sorted(totals)
    ]


def word_frequencies(names: Iterable[Optional[str]]) -> Frequency:
    """Word counts across all names, stopwords removed."""
    return _ranked(w for name in names for w in filter_stopwords(tokenize(name)))


def bigram_frequencies(names: Iterable[Optional[str]]) -> Frequency:
    return _ranked(b for name in names for b in bigramize(name))


def first_word_frequencies(records: Iterable[MeasureRecord]) -> Frequency:
    """
    Counts the first word of each measure name. A name repeated within the
    same category counts once.
    """
    seen = set()
    firsts: List[str] = []
    for rec in records:
        key = (rec.cat_lev1, rec.name)
        if key in seen:
            continue
        seen.add(key)
        words = tokenize(rec.name)
        if words:
            firsts.append(words[0])
    return _ranked(firsts)


def removed_stopwords(names: Iterable[Optional[str]]) -> List[str]:
    """Unique stopwords that occur in the names, sorted."""
    return sorted({w for name in names for w in tokenize(name) if w in STOPWORDS})


def token_counts(names: Iterable[Optional[str]]) -> List[int]:
    return [len(tokenize(name)) for name in names]


def length_summary(counts: Sequence[int]) -> LengthSummary:
    if not counts:
        return LengthSummary(minimum=0, mean=0.0, median=0.0, maximum=0, counts=())
    return LengthSummary(
        minimum=min(counts),
        mean=float(mean(counts)),
        median=float(median(counts)),
        maximum=max(counts),
        counts=tuple(counts),
    )


def sample_measures(names: Iterable[Optional[str]]) -> List[Tuple[int, str]]:
    """
    One example name per word count, shortest first. The example is the
    alphabetically first distinct name of that length, so the table does
    not depend on row order.
    """
    samples: Dict[int, str] = {}
    for name in set(n for n in names if n):
        n = len(tokenize(name))
        if n and (n not in samples or name < samples[n]):
            samples[n] = name
    return sorted(samples.items())
